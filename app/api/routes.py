"""
FastAPI routes for ClipGuard service.
"""
import uuid
from pathlib import Path
from typing import List, Optional, Tuple

from fastapi import APIRouter, File, Form, HTTPException, Request, UploadFile
from fastapi.responses import JSONResponse
from pydantic import TypeAdapter, ValidationError

from app.api.schemas import (
    CacheStatsResponse,
    HealthResponse,
    StrictnessLevelsResponse,
    SubtitleSegment,
    TextModerationResponse,
)
from app.core.config import settings
from app.core.logging import get_logger
from app.evaluation.result import (
    ModerationInputError,
    ModerationRequest,
    StrictnessLevel,
    TranscriptSegment,
)
from app.fusion.report import build_error_report, build_report
from app.pipeline.runner import ModerationPipeline
from app.policies.thresholds import list_strictness_levels

logger = get_logger("api.routes")

router = APIRouter()

UPLOAD_CHUNK_SIZE = 1024 * 1024
SEGMENT_LIST = TypeAdapter(List[SubtitleSegment])


def get_pipeline(request: Request) -> ModerationPipeline:
    """Pipeline built once at startup."""
    return request.app.state.pipeline


async def save_upload(upload: UploadFile) -> str:
    """
    Stream an upload into the temp directory.

    Raises:
        ModerationInputError: empty file or over the size limit
    """
    temp_dir = Path(settings.temp_dir)
    temp_dir.mkdir(parents=True, exist_ok=True)
    suffix = Path(upload.filename or "").suffix
    path = temp_dir / f"upload_{uuid.uuid4().hex}{suffix}"

    max_bytes = settings.max_upload_mb * 1024 * 1024
    size = 0

    try:
        with open(path, "wb") as f:
            while True:
                chunk = await upload.read(UPLOAD_CHUNK_SIZE)
                if not chunk:
                    break
                size += len(chunk)
                if size > max_bytes:
                    raise ModerationInputError(
                        f"File exceeds the {settings.max_upload_mb} MB upload limit"
                    )
                f.write(chunk)

        if size == 0:
            raise ModerationInputError("Uploaded file is empty")
    except ModerationInputError:
        path.unlink(missing_ok=True)
        raise

    logger.info(f"Saved upload {upload.filename} ({size} bytes)")
    return str(path)


def parse_segments(raw: Optional[str]) -> Tuple[TranscriptSegment, ...]:
    """
    Parse the `segments` form field: a JSON array of {start, end, text}.

    Raises:
        ModerationInputError: malformed JSON or a segment with end <= start
    """
    if not raw or not raw.strip():
        return ()

    try:
        items = SEGMENT_LIST.validate_json(raw)
        return tuple(TranscriptSegment(start=s.start, end=s.end, text=s.text) for s in items)
    except (ValidationError, ValueError) as e:
        raise ModerationInputError(f"Invalid segments: {e}") from e


@router.post("/moderate")
async def moderate(
    request: Request,
    media: Optional[UploadFile] = File(None),
    text: Optional[str] = Form(None),
    strictness: Optional[str] = Form(None),
    segments: Optional[str] = Form(None),
):
    """
    Moderate an optional media file and/or literal text.

    **Input (multipart/form-data):**
    - `media`: video or audio file
    - `text`: literal text to check
    - `strictness`: strict | moderate | lenient (default moderate)
    - `segments`: JSON array of `{start, end, text}` subtitles; when
      non-empty they are checked instead of transcribing the audio

    **Returns:**
    - `status: "safe"` with the checked content types, or
    - `status: "unsafe"` with per-signal violation detail

    **Example:**
    ```bash
    curl -X POST http://localhost:8000/v1/moderate \\
         -F "media=@clip.mp4" -F "text=caption" -F "strictness=strict"
    ```
    """
    pipeline = get_pipeline(request)
    level = StrictnessLevel.parse(strictness)
    media_path = None

    try:
        if media is not None and media.filename:
            media_path = await save_upload(media)

        moderation_request = ModerationRequest(
            media_path=media_path,
            text=text,
            strictness=level,
            segments=parse_segments(segments),
        )
        result = await pipeline.run(moderation_request)
        return build_report(result, pipeline.weights)

    except ModerationInputError as e:
        raise HTTPException(status_code=400, detail=str(e))
    except Exception as e:
        logger.error(f"Moderation failed: {e}", exc_info=True)
        return JSONResponse(status_code=500, content=build_error_report(e))
    finally:
        if media_path:
            Path(media_path).unlink(missing_ok=True)


@router.post("/moderate/visual")
async def moderate_visual(
    request: Request,
    media: UploadFile = File(...),
    strictness: Optional[str] = Form(None),
):
    """Run the visual stage alone on an uploaded file (uncached)."""
    pipeline = get_pipeline(request)
    level = StrictnessLevel.parse(strictness)
    media_path = None

    try:
        media_path = await save_upload(media)
        result = await pipeline.moderate_visual_only(media_path, level)

        report = result.to_dict()
        report["strictness"] = level.value
        return report

    except ModerationInputError as e:
        raise HTTPException(status_code=400, detail=str(e))
    except Exception as e:
        logger.error(f"Visual moderation failed: {e}", exc_info=True)
        return JSONResponse(status_code=500, content=build_error_report(e))
    finally:
        if media_path:
            Path(media_path).unlink(missing_ok=True)


@router.post("/moderate/text", response_model=TextModerationResponse)
async def moderate_text(request: Request, text: str = Form(...)):
    """Check literal text and return the censored rewrite."""
    if not text.strip():
        raise HTTPException(status_code=400, detail="Text must not be empty")

    pipeline = get_pipeline(request)
    violation = pipeline.text_stage.moderate_text(text)

    if violation is None:
        return TextModerationResponse(flagged=False, cleaned_text=text)

    return TextModerationResponse(
        flagged=True,
        cleaned_text=violation.cleaned_text,
        detected_words=list(violation.detected_words),
        flag_reason=violation.flag_reason,
    )


@router.get("/strictness", response_model=StrictnessLevelsResponse)
async def strictness_levels():
    """Per-category cutoffs for each strictness level."""
    return StrictnessLevelsResponse(
        default=StrictnessLevel.MODERATE.value,
        levels=list_strictness_levels(),
    )


@router.get("/cache/stats", response_model=CacheStatsResponse)
async def cache_stats(request: Request):
    """Result cache counters."""
    return CacheStatsResponse(**get_pipeline(request).cache.stats())


@router.get("/health", response_model=HealthResponse)
async def health_check():
    """Health check endpoint."""
    from app.models import models_loaded

    return HealthResponse(
        status="healthy",
        version=settings.version,
        models_loaded=models_loaded(),
    )
