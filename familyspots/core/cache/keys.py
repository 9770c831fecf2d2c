from __future__ import annotations

import hashlib
import json
from typing import Any


def canonical_json(value: Any) -> str:
    return json.dumps(value, sort_keys=True, separators=(",", ":"), ensure_ascii=False)


def hash_text(text: str) -> str:
    return hashlib.sha256(text.encode("utf-8")).hexdigest()


def resource_key(kind: str, resource_id: str) -> str:
    """Key for a single record, e.g. ``spot:abc123``."""
    return f"{kind}:{resource_id}"


def search_key(kind: str, params: dict[str, Any]) -> str:
    """Key for one page of search results; raw query text is hashed, never stored."""
    return f"search:{kind}:{hash_text(canonical_json(params))}"


def http_key(url: str, params: dict[str, Any] | None = None) -> str:
    return f"http:{hash_text(canonical_json({'url': url, 'params': params or {}}))}"
