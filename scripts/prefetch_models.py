"""
Model prefetch script - download the classifier and Whisper weights ahead of
time (e.g. during an image build) so the first request does not pay for it.
"""
import os
import sys
from pathlib import Path

os.environ["HF_HOME"] = os.getenv("HF_HOME", "/models/hf")

from huggingface_hub import snapshot_download
from app.core.config import settings
from app.core.logging import get_logger

logger = get_logger("prefetch")


def prefetch_model(model_id: str, model_type: str) -> bool:
    """Download one model snapshot into the HF cache."""
    logger.info(f"Prefetching {model_type} model: {model_id}")

    try:
        snapshot_download(
            repo_id=model_id,
            cache_dir=settings.hf_home,
            ignore_patterns=["*.msgpack", "*.h5", "*.ot"],
        )
        logger.info(f"Prefetched {model_id}")
        return True
    except Exception as e:
        logger.error(f"Failed to prefetch {model_id}: {e}")
        return False


def main() -> int:
    logger.info(f"Starting model prefetch into {settings.hf_home}")
    Path(settings.hf_home).mkdir(parents=True, exist_ok=True)

    models = [
        (settings.nsfw_model_id, "nsfw"),
        (settings.whisper_model_id, "whisper"),
    ]
    failed = [model_id for model_id, kind in models if not prefetch_model(model_id, kind)]

    if failed:
        logger.error(f"Prefetch incomplete, missing: {', '.join(failed)}")
        return 1

    logger.info(f"All {len(models)} models prefetched")
    return 0


if __name__ == "__main__":
    sys.exit(main())
