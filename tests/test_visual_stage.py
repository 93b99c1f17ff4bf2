"""
Tests for the visual moderation stage.

ffprobe/ffmpeg are patched out; frames are placeholder files and the
classifier returns scripted scores.
"""
import asyncio
import subprocess
import threading
import time
from pathlib import Path
from unittest.mock import patch

import pytest

from app.evaluation.result import StageStatus
from app.pipeline.sampler import FrameSampler
from app.pipeline.stages.nsfw_detection import VisualModerationStage
from app.utils.ffmpeg import FrameExtractionError, MediaProbeError, extract_frames

STAGE = "app.pipeline.stages.nsfw_detection"


@pytest.fixture
def sampler():
    return FrameSampler(min_frames=8, max_frames=20, seconds_per_frame=10, seed=3)


def run_stage(stage, duration, fake_frames, strictness="moderate"):
    with patch(f"{STAGE}.get_media_duration", return_value=duration), \
            patch(f"{STAGE}.extract_frames", side_effect=fake_frames):
        return asyncio.run(stage.moderate("clip.mp4", strictness))


class TestVisualModeration:
    """Sampling, scoring and violation detection."""

    def test_clean_media(self, tmp_path, sampler, fake_frames, fake_classifier):
        classifier = fake_classifier({"neutral": 0.95, "porn": 0.02, "sexy": 0.03})
        stage = VisualModerationStage(classifier=classifier, sampler=sampler, work_dir=str(tmp_path))

        result = run_stage(stage, 100.0, fake_frames)

        assert result.status == StageStatus.COMPLETED
        assert result.flagged is False
        assert result.violations == ()
        assert result.total_frames_checked == 10
        assert result.video_duration_seconds == 100.0
        assert result.confidence == 0.0
        assert classifier.calls == 10

    def test_violations_and_confidence(self, tmp_path, sampler, fake_frames, fake_classifier):
        """2 of 8 frames above the porn cutoff."""
        hot = {"porn": 0.91, "sexy": 0.4, "hentai": 0.01}
        cold = {"neutral": 0.9, "porn": 0.05}
        classifier = fake_classifier(hot, cold, cold, hot, cold)
        stage = VisualModerationStage(classifier=classifier, sampler=sampler, work_dir=str(tmp_path))

        result = run_stage(stage, 30.0, fake_frames)

        assert result.flagged is True
        assert result.total_frames_checked == 8
        assert [v.frame_index for v in result.violations] == [0, 3]
        assert result.confidence == pytest.approx(2 / 8)

        violation = result.violations[0]
        assert violation.scores.porn == 0.91
        assert violation.estimated_duration_label == "~1-2 seconds"
        assert violation.formatted_timestamp.endswith("s")

    def test_score_equal_to_cutoff_does_not_trigger(self, tmp_path, sampler, fake_frames, fake_classifier):
        """Cutoffs are exclusive: a score must be strictly above."""
        classifier = fake_classifier({"porn": 0.6, "sexy": 0.8, "hentai": 0.7})
        stage = VisualModerationStage(classifier=classifier, sampler=sampler, work_dir=str(tmp_path))

        result = run_stage(stage, 50.0, fake_frames, strictness="moderate")

        assert result.flagged is False
        assert result.total_frames_checked == 8

    def test_strictness_changes_outcome(self, tmp_path, sampler, fake_frames, fake_classifier):
        scores = {"porn": 0.5, "sexy": 0.1, "hentai": 0.1}

        strict = VisualModerationStage(
            classifier=fake_classifier(scores), sampler=sampler, work_dir=str(tmp_path)
        )
        lenient = VisualModerationStage(
            classifier=fake_classifier(scores), sampler=sampler, work_dir=str(tmp_path)
        )

        assert run_stage(strict, 50.0, fake_frames, "strict").flagged is True
        assert run_stage(lenient, 50.0, fake_frames, "lenient").flagged is False

    def test_missing_categories_default_to_zero(self, tmp_path, sampler, fake_frames, fake_classifier):
        classifier = fake_classifier({"hentai": 0.75})
        stage = VisualModerationStage(classifier=classifier, sampler=sampler, work_dir=str(tmp_path))

        result = run_stage(stage, 20.0, fake_frames)

        assert result.flagged is True
        assert result.violations[0].scores.porn == 0.0
        assert result.violations[0].scores.sexy == 0.0


class TestVisualDegradation:
    """Engine problems become soft results, never exceptions."""

    def test_zero_duration(self, tmp_path, sampler, fake_frames, fake_classifier):
        classifier = fake_classifier()
        stage = VisualModerationStage(classifier=classifier, sampler=sampler, work_dir=str(tmp_path))

        result = run_stage(stage, 0.0, fake_frames)

        assert result.status == StageStatus.COMPLETED
        assert result.flagged is False
        assert result.total_frames_checked == 0
        assert result.confidence == 0.0
        assert classifier.calls == 0

    def test_unreadable_media(self, tmp_path, sampler, fake_classifier):
        stage = VisualModerationStage(
            classifier=fake_classifier(), sampler=sampler, work_dir=str(tmp_path)
        )

        with patch(f"{STAGE}.get_media_duration", side_effect=MediaProbeError("Unable to read media")):
            result = asyncio.run(stage.moderate("broken.mp4"))

        assert result.status == StageStatus.FAILED
        assert result.flagged is False
        assert result.total_frames_checked == 0
        assert "Unable to read media" in result.error

    def test_extraction_failure(self, tmp_path, sampler, fake_classifier):
        stage = VisualModerationStage(
            classifier=fake_classifier(), sampler=sampler, work_dir=str(tmp_path)
        )

        with patch(f"{STAGE}.get_media_duration", return_value=12.0), \
                patch(f"{STAGE}.extract_frames", side_effect=FrameExtractionError("no frames")):
            result = asyncio.run(stage.moderate("clip.mp4"))

        assert result.status == StageStatus.FAILED
        assert result.flagged is False
        assert list(tmp_path.iterdir()) == []

    def test_failed_frame_is_skipped(self, tmp_path, sampler, fake_frames, fake_classifier):
        classifier = fake_classifier(RuntimeError("bad tensor"), {"porn": 0.99})
        stage = VisualModerationStage(classifier=classifier, sampler=sampler, work_dir=str(tmp_path))

        result = run_stage(stage, 40.0, fake_frames)

        assert result.status == StageStatus.COMPLETED
        assert result.total_frames_checked == 7
        assert len(result.violations) == 7
        assert 0 not in [v.frame_index for v in result.violations]

    def test_all_frames_failing(self, tmp_path, sampler, fake_frames, fake_classifier):
        classifier = fake_classifier(RuntimeError("model unavailable"))
        stage = VisualModerationStage(classifier=classifier, sampler=sampler, work_dir=str(tmp_path))

        result = run_stage(stage, 40.0, fake_frames)

        assert result.status == StageStatus.FAILED
        assert result.flagged is False
        assert result.total_frames_checked == 0

    def test_frame_files_are_removed(self, tmp_path, sampler, fake_frames, fake_classifier):
        """Nothing is left behind whether frames succeed or fail."""
        classifier = fake_classifier({"porn": 0.9}, RuntimeError("oom"), {"neutral": 1.0})
        stage = VisualModerationStage(classifier=classifier, sampler=sampler, work_dir=str(tmp_path))

        run_stage(stage, 60.0, fake_frames)

        assert list(tmp_path.iterdir()) == []


def slow_extract_frame(media_path, timestamp, output_path, size=224):
    """Behaves like ffmpeg: slow, and fails when the output dir is gone."""
    time.sleep(0.05)
    try:
        Path(output_path).write_bytes(b"frame")
    except FileNotFoundError as e:
        raise subprocess.CalledProcessError(1, "ffmpeg") from e
    return output_path


class TestVisualCancellation:
    """A stage abandoned by its caller leaves no frames behind."""

    def test_timeout_during_extraction_leaves_work_dir_empty(self, tmp_path, sampler, fake_classifier):
        classifier = fake_classifier()
        stage = VisualModerationStage(classifier=classifier, sampler=sampler, work_dir=str(tmp_path))

        async def run_with_deadline():
            with pytest.raises(asyncio.TimeoutError):
                await asyncio.wait_for(stage.moderate("clip.mp4"), timeout=0.12)

        with patch(f"{STAGE}.get_media_duration", return_value=80.0), \
                patch("app.utils.ffmpeg.extract_frame", side_effect=slow_extract_frame) as extract:
            # asyncio.run joins the executor, so the extraction thread has finished here
            asyncio.run(run_with_deadline())

        assert 0 < extract.call_count < 8
        assert classifier.calls == 0
        assert list(tmp_path.iterdir()) == []

    def test_stop_event_removes_partial_output(self, tmp_path):
        stop = threading.Event()
        stop.set()
        output_dir = tmp_path / "frames_x"

        with pytest.raises(FrameExtractionError, match="cancelled"):
            extract_frames("clip.mp4", [1.0, 2.0], str(output_dir), stop_event=stop)

        assert not output_dir.exists()


if __name__ == "__main__":
    pytest.main([__file__, "-v"])
