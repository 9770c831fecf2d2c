from __future__ import annotations

from copy import deepcopy

# Process-wide counters, bounded in shape: {namespace: {cache_event: count}}.
# The event loop is single-threaded, so no lock is taken.
_COUNTS: dict[str, dict[str, int]] = {}


def increment(*, namespace: str, cache_event: str) -> None:
    """Increment a cache event counter."""
    ns = _COUNTS.setdefault(namespace, {})
    ns[cache_event] = ns.get(cache_event, 0) + 1


def snapshot() -> dict[str, dict[str, int]]:
    """Return a deep copy snapshot of current counters."""
    return deepcopy(_COUNTS)


def hit_ratio(counts: dict[str, int]) -> float | None:
    """Fraction of reads served from cache (fresh or stale) for one namespace."""
    served = counts.get("hit", 0) + counts.get("stale", 0)
    reads = served + counts.get("miss", 0)
    if reads == 0:
        return None
    return round(served / reads, 4)


def reset() -> None:
    """Reset all counters (test helper)."""
    _COUNTS.clear()


def diff(
    before: dict[str, dict[str, int]],
    after: dict[str, dict[str, int]],
) -> dict[str, dict[str, int]]:
    """Compute a sparse diff (after - before) omitting zeros."""

    out: dict[str, dict[str, int]] = {}

    namespaces = set(before.keys()) | set(after.keys())
    for ns in sorted(namespaces):
        b = before.get(ns, {})
        a = after.get(ns, {})
        events = set(b.keys()) | set(a.keys())

        ns_delta: dict[str, int] = {}
        for ev in sorted(events):
            d = a.get(ev, 0) - b.get(ev, 0)
            if d:
                ns_delta[ev] = d

        if ns_delta:
            out[ns] = ns_delta

    return out
