"""
Hashing utilities for content-addressed cache keys.
"""
import asyncio
import hashlib
import json
from typing import Iterable, Optional

CHUNK_SIZE = 1024 * 1024


def hash_bytes(data: bytes) -> str:
    """SHA-256 hex digest of raw bytes."""
    return hashlib.sha256(data).hexdigest()


def hash_text(text: str) -> str:
    """SHA-256 hex digest of UTF-8 text."""
    return hash_bytes(text.encode("utf-8"))


def hash_file(path: str) -> str:
    """SHA-256 of a file's raw bytes, read in chunks."""
    digest = hashlib.sha256()
    with open(path, "rb") as f:
        for chunk in iter(lambda: f.read(CHUNK_SIZE), b""):
            digest.update(chunk)
    return digest.hexdigest()


async def hash_file_async(path: str) -> str:
    """hash_file off the event loop."""
    loop = asyncio.get_running_loop()
    return await loop.run_in_executor(None, hash_file, path)


def hash_segments(segments: Iterable) -> str:
    """Digest of (start, end, text) triples, order-sensitive."""
    payload = [[round(s.start, 3), round(s.end, 3), s.text] for s in segments]
    return hash_text(json.dumps(payload, ensure_ascii=False))


def build_cache_key(
    content_hash: str,
    strictness: str,
    text_hash: Optional[str] = None,
    segments_hash: Optional[str] = None,
) -> str:
    """
    Cache key: content digest + strictness, plus the literal text digest
    (media with text) and the supplied-subtitles digest, when present.
    """
    key = f"{content_hash}:{strictness}"
    if text_hash:
        key = f"{key}:{text_hash}"
    if segments_hash:
        key = f"{key}:segments:{segments_hash}"
    return key
