"""Payload codecs for compressed cache entries.

The codec is picked once at startup and injected into the store; the store
never branches on codec availability per call. ``zlib`` is an optional
part of a CPython build, so this module only imports it once the gzip codec
is actually constructed.
"""

from __future__ import annotations

from importlib.util import find_spec

from familyspots.logger import get_logger

from .types import CacheCorruptionError, Codec

logger = get_logger(__name__)


class GzipCodec:
    name = "gzip"

    def __init__(self, *, level: int = 6) -> None:
        self._level = level
        import gzip
        import zlib

        self._gzip = gzip
        self._zlib = zlib

    def compress(self, text: str) -> bytes:
        return self._gzip.compress(text.encode("utf-8"), compresslevel=self._level)

    def decompress(self, data: bytes) -> str:
        try:
            return self._gzip.decompress(data).decode("utf-8")
        except (OSError, EOFError, self._zlib.error, UnicodeDecodeError) as exc:
            raise CacheCorruptionError(str(exc)) from exc


class IdentityCodec:
    """No-op codec used when compression is disabled or unavailable."""

    name = "identity"

    def compress(self, text: str) -> bytes:
        return text.encode("utf-8")

    def decompress(self, data: bytes) -> str:
        try:
            return data.decode("utf-8")
        except UnicodeDecodeError as exc:
            raise CacheCorruptionError(str(exc)) from exc


def _deflate_available() -> bool:
    return find_spec("zlib") is not None


def detect_codec(*, enabled: bool = True) -> Codec:
    """Return the gzip codec when usable, otherwise the identity codec."""
    if enabled and _deflate_available():
        codec: Codec = GzipCodec()
    else:
        codec = IdentityCodec()
    logger.info("cache_codec_selected", codec=codec.name, enabled=enabled)
    return codec
