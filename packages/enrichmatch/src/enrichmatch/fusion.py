"""Merge hits from fanned-out queries into one ranked candidate list."""

from __future__ import annotations

from typing import Iterable

from enrichmatch.types import ScoredHit

DEFAULT_MAX_RESULTS = 10


def fuse_hits(
    hit_lists: Iterable[Iterable[ScoredHit]],
    limit: int = DEFAULT_MAX_RESULTS,
) -> list[ScoredHit]:
    """Keep the best-scoring hit per identity key, rank, truncate.

    A later hit replaces a stored one only with a strictly higher score, so on
    ties the first-seen hit wins. Ranking is by score descending, then by the
    order in which each key was first seen.
    """
    best: dict[str, ScoredHit] = {}
    first_seen: dict[str, int] = {}

    for hits in hit_lists:
        for hit in hits:
            key = hit.identity_key
            if key not in best:
                best[key] = hit
                first_seen[key] = len(first_seen)
            elif hit.score > best[key].score:
                best[key] = hit

    ranked = sorted(best.values(), key=lambda h: (-h.score, first_seen[h.identity_key]))
    return ranked[:limit]
