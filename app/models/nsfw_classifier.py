"""
NSFW image classifier.

Wraps a Hugging Face image-classification model whose labels include
porn / sexy / hentai (plus neutral and drawings). Scores are independent
per-label probabilities as returned by the model.
"""
import io
from typing import Dict, Optional

from PIL import Image

from app.core.config import settings
from app.core.logging import get_logger

logger = get_logger("models.nsfw")


class NSFWClassifier:
    """Frame-level NSFW classifier backed by a transformers pipeline."""

    def __init__(self, model_id: Optional[str] = None, top_k: int = 5):
        self.model_id = model_id or settings.nsfw_model_id
        self.top_k = top_k
        self._pipeline = None

    @property
    def loaded(self) -> bool:
        return self._pipeline is not None

    def load(self):
        """Load the model on first use."""
        if self._pipeline is not None:
            return

        import torch
        from transformers import pipeline

        device = 0 if torch.cuda.is_available() else -1
        logger.info(f"Loading NSFW classifier {self.model_id} (device={device})")
        self._pipeline = pipeline(
            "image-classification",
            model=self.model_id,
            device=device,
        )
        logger.info("NSFW classifier loaded")

    def classify(self, image_bytes: bytes) -> Dict[str, float]:
        """
        Classify one encoded image.

        Returns:
            {label: probability} with lower-cased labels
        """
        self.load()

        image = Image.open(io.BytesIO(image_bytes))
        try:
            rgb = image.convert("RGB")
            try:
                predictions = self._pipeline(rgb, top_k=self.top_k)
            finally:
                rgb.close()
        finally:
            image.close()

        return {
            str(p["label"]).lower(): float(p["score"])
            for p in predictions
        }
