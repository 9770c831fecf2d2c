"""Query sanitisation and record post-processing helpers."""

from __future__ import annotations

import json
import re
from typing import Any

from .types import Record

# ASCII word characters plus Hiragana, Katakana and CJK unified ideographs.
_DISALLOWED = re.compile(r"[^A-Za-z0-9_\u3040-\u309F\u30A0-\u30FF\u4E00-\u9FAF]")

AND_OPERATOR = " & "


def tokenize(query: str) -> list[str]:
    return [token for token in query.split() if token]


def sanitize_tokens(query: str) -> list[str]:
    cleaned = (_DISALLOWED.sub("", token) for token in tokenize(query))
    return [token for token in cleaned if token]


def build_tsquery(query: str) -> str:
    """AND-join the surviving tokens; empty string when nothing survives."""
    return AND_OPERATOR.join(sanitize_tokens(query))


def split_tsquery(ts_query: str) -> list[str]:
    return [token.strip() for token in ts_query.split("&") if token.strip()]


def safe_parse_array(raw: Any) -> list[str]:
    if isinstance(raw, list):
        return [str(item) for item in raw]
    try:
        value = json.loads("[]" if raw is None else str(raw))
    except (TypeError, ValueError):
        return []
    return [str(item) for item in value] if isinstance(value, list) else []


def transform_record(record: Record) -> Record:
    return {
        **record,
        "tags": safe_parse_array(record.get("tags")),
        "images": safe_parse_array(record.get("images")),
    }


def highlight_search_terms(text: str, query: str) -> str:
    """Wrap each query term in ``<mark>`` tags, case-insensitively."""
    terms = tokenize(query)
    if not terms:
        return text
    pattern = re.compile("|".join(re.escape(term) for term in terms), re.IGNORECASE)
    return pattern.sub(lambda match: f"<mark>{match.group(0)}</mark>", text)
