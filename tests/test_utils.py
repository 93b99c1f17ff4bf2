"""
Tests for cache, hashing, cleanup and formatting helpers.
"""
import asyncio
import os
import subprocess
import time
from unittest.mock import patch

import pytest

from app.core.config import settings
from app.evaluation.result import LiteralTextResult, ModerationResult, TextResult, VisualResult
from app.utils.cache import InMemoryResultCache
from app.utils.cleanup import cleanup_temp_files
from app.utils.ffmpeg import AudioExtractionError, extract_audio
from app.utils.hashing import build_cache_key, hash_bytes, hash_file, hash_text
from app.utils.timing import format_seconds, format_timestamp


def make_result(flagged: bool = False) -> ModerationResult:
    return ModerationResult(
        flagged=flagged,
        confidence=0.1,
        visual=VisualResult(),
        audio_text=TextResult(),
        literal_text=LiteralTextResult.skipped(),
    )


class TestInMemoryResultCache:

    def test_miss_then_hit(self):
        cache = InMemoryResultCache(max_entries=4)
        result = make_result()

        assert asyncio.run(cache.get("k")) is None
        asyncio.run(cache.put("k", result))
        assert asyncio.run(cache.get("k")) is result

        stats = cache.stats()
        assert stats["hits"] == 1
        assert stats["misses"] == 1
        assert stats["entries"] == 1

    def test_evicts_least_recently_used(self):
        cache = InMemoryResultCache(max_entries=2)

        async def scenario():
            await cache.put("a", make_result())
            await cache.put("b", make_result())
            await cache.get("a")
            await cache.put("c", make_result())
            return await cache.get("a"), await cache.get("b"), await cache.get("c")

        a, b, c = asyncio.run(scenario())

        assert a is not None
        assert b is None
        assert c is not None
        assert cache.stats()["evictions"] == 1

    def test_unbounded_when_disabled(self):
        cache = InMemoryResultCache(max_entries=0)

        async def fill():
            for i in range(50):
                await cache.put(str(i), make_result())

        asyncio.run(fill())
        assert len(cache) == 50

    def test_concurrent_distinct_writes(self):
        cache = InMemoryResultCache(max_entries=100)

        async def writer(i):
            await cache.put(f"key-{i}", make_result())
            return await cache.get(f"key-{i}")

        async def scenario():
            return await asyncio.gather(*(writer(i) for i in range(20)))

        results = asyncio.run(scenario())
        assert all(r is not None for r in results)
        assert len(cache) == 20

    def test_clear(self):
        cache = InMemoryResultCache()
        asyncio.run(cache.put("k", make_result()))
        asyncio.run(cache.clear())
        assert len(cache) == 0


class TestHashing:

    def test_file_hash_matches_bytes_hash(self, tmp_path):
        path = tmp_path / "blob.bin"
        data = os.urandom(3 * 1024 * 1024 + 17)
        path.write_bytes(data)

        assert hash_file(str(path)) == hash_bytes(data)

    def test_text_hash(self):
        assert hash_text("hello") == hash_bytes(b"hello")
        assert hash_text("hello") != hash_text("hello ")

    def test_cache_key(self):
        assert build_cache_key("abc", "moderate") == "abc:moderate"
        assert build_cache_key("abc", "strict", "def") == "abc:strict:def"
        assert build_cache_key("abc", "strict", segments_hash="seg") == "abc:strict:segments:seg"


class TestCleanup:

    def test_removes_only_stale_entries(self, tmp_path):
        stale_file = tmp_path / "upload_old.mp4"
        stale_dir = tmp_path / "frames_old"
        fresh_file = tmp_path / "upload_new.mp4"

        stale_file.write_bytes(b"x")
        stale_dir.mkdir()
        (stale_dir / "frame_000.png").write_bytes(b"x")
        fresh_file.write_bytes(b"x")

        old = time.time() - 3600
        os.utime(stale_file, (old, old))
        os.utime(stale_dir, (old, old))

        removed = cleanup_temp_files(str(tmp_path), max_age_sec=1800)

        assert removed == 2
        assert not stale_file.exists()
        assert not stale_dir.exists()
        assert fresh_file.exists()

    def test_missing_directory(self, tmp_path):
        assert cleanup_temp_files(str(tmp_path / "nope")) == 0


class TestFfmpegBudgets:

    def test_audio_extraction_uses_ffmpeg_timeout(self, tmp_path, monkeypatch):
        monkeypatch.setattr(settings, "ffmpeg_timeout_sec", 42.0)

        with patch("app.utils.ffmpeg.subprocess.run") as run:
            extract_audio("clip.mp4", str(tmp_path / "audio.wav"))

        assert run.call_args.kwargs["timeout"] == 42.0

    def test_audio_extraction_timeout_is_wrapped(self, tmp_path):
        with patch(
            "app.utils.ffmpeg.subprocess.run",
            side_effect=subprocess.TimeoutExpired("ffmpeg", 60),
        ):
            with pytest.raises(AudioExtractionError, match="Timed out"):
                extract_audio("clip.mp4", str(tmp_path / "audio.wav"))


class TestFormatting:

    @pytest.mark.parametrize("seconds,expected", [
        (0, "0.00s"),
        (7.25, "7.25s"),
        (59.5, "59.50s"),
        (67.25, "1:07.25"),
        (125.0, "2:05.00"),
    ])
    def test_format_timestamp(self, seconds, expected):
        assert format_timestamp(seconds) == expected

    @pytest.mark.parametrize("seconds,expected", [
        (5, "5s"),
        (5.0, "5s"),
        (2.5, "2.5s"),
        (0, "0s"),
    ])
    def test_format_seconds(self, seconds, expected):
        assert format_seconds(seconds) == expected


if __name__ == "__main__":
    pytest.main([__file__, "-v"])
