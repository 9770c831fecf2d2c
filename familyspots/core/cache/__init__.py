from .codec import GzipCodec, IdentityCodec, detect_codec
from .keys import canonical_json, hash_text, http_key, resource_key, search_key
from .provider import build_cache_service, get_cache_service, options_for
from .service import CacheService
from .store import CacheStore
from .types import CacheCorruptionError, CacheEntry, CacheError, CacheOptions, Codec

__all__ = [
    "CacheCorruptionError",
    "CacheEntry",
    "CacheError",
    "CacheOptions",
    "CacheService",
    "CacheStore",
    "Codec",
    "GzipCodec",
    "IdentityCodec",
    "build_cache_service",
    "canonical_json",
    "detect_codec",
    "get_cache_service",
    "hash_text",
    "http_key",
    "options_for",
    "resource_key",
    "search_key",
]
