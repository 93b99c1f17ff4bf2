"""
ClipGuard FastAPI application.

API Structure (v1):
- /v1/moderate - Media and/or text moderation (safe/unsafe report)
- /v1/moderate/visual - Visual stage only
- /v1/moderate/text - Literal text check with censored rewrite
- /v1/strictness, /v1/cache/stats, /v1/health - Utility endpoints
"""
import asyncio
import os
import threading
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from app.api.routes import router as moderation_router
from app.core.config import settings
from app.core.logging import get_logger
from app.pipeline.runner import build_pipeline
from app.utils.cache import InMemoryResultCache
from app.utils.cleanup import cleanup_temp_files

logger = get_logger("main")


def preload_models():
    """Pre-load model weights in a background thread.

    Skipped when PRELOAD_MODELS=false (lazy load for faster startup).
    """
    if not settings.preload_models:
        logger.info("PRELOAD_MODELS=false - models will lazy-load on first request")
        return

    def load_in_background():
        try:
            from app.models import preload_all_models
            preload_all_models()
        except Exception as e:
            logger.error(f"Error pre-loading models: {e}")
            logger.warning("Models will load on first request")

    thread = threading.Thread(target=load_in_background, daemon=True)
    thread.start()


async def periodic_cleanup():
    """Remove stale temp files left by interrupted requests."""
    loop = asyncio.get_running_loop()
    while True:
        await asyncio.sleep(settings.cleanup_interval_sec)
        try:
            await loop.run_in_executor(
                None, cleanup_temp_files, settings.temp_dir, settings.temp_max_age_sec
            )
        except Exception as e:
            logger.error(f"Temp cleanup failed: {e}")


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Lifespan context manager for startup/shutdown."""
    logger.info("Starting ClipGuard service")
    logger.info(f"Models cache: {settings.hf_home}")
    logger.info(f"Temp directory: {settings.temp_dir}")

    os.makedirs(settings.temp_dir, exist_ok=True)
    cleanup_temp_files(settings.temp_dir, settings.temp_max_age_sec)

    cache = InMemoryResultCache(max_entries=settings.cache_max_entries)
    app.state.pipeline = build_pipeline(cache)

    preload_models()
    cleanup_task = asyncio.create_task(periodic_cleanup())

    yield

    # Shutdown
    cleanup_task.cancel()
    logger.info("Shutting down ClipGuard service")


# Create FastAPI app
app = FastAPI(
    title=settings.app_name,
    version=settings.version,
    description="Multi-modal content moderation for video, audio and text",
    lifespan=lifespan
)

# Add CORS middleware
app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

app.include_router(moderation_router, prefix=settings.api_prefix)


@app.get("/")
async def root():
    """Root endpoint."""
    return {
        "service": settings.app_name,
        "version": settings.version,
        "status": "running"
    }


if __name__ == "__main__":
    import uvicorn
    uvicorn.run(app, host="0.0.0.0", port=8000)
