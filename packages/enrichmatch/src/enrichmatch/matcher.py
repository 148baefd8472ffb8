"""Main orchestration: query fan-out, fusion, and batch matching."""

from __future__ import annotations

import asyncio
from typing import Sequence

import structlog

from enrichmatch.backend import BackendError, InvalidInputError, SearchBackend
from enrichmatch.config import MatchConfig
from enrichmatch.fusion import fuse_hits
from enrichmatch.queries import build_composite, build_queries
from enrichmatch.types import (
    CandidateQuery,
    InputRecord,
    MatchResult,
    ScoredHit,
    SearchResponse,
)

log = structlog.get_logger()


class Matcher:
    """Resolves input records against the company index.

    Holds only the read-only config and a backend reference, so one instance
    can serve any number of concurrent matches.
    """

    def __init__(self, backend: SearchBackend, config: MatchConfig | None = None) -> None:
        self.backend = backend
        self.config = config or MatchConfig()

    async def match_one(self, record: InputRecord) -> MatchResult:
        """Fan out one query per signal strategy, then fuse the hits."""
        queries = build_queries(record, self.config.scoring)
        if not queries:
            if not self.config.search.fallback_match_all:
                log.debug("match_one_no_signals")
                return MatchResult()
            log.debug("match_one_fallback_match_all")
            queries = [CandidateQuery.match_all()]

        log.debug("match_one_start", query_count=len(queries), record=record.to_dict())

        hit_lists = await asyncio.gather(*(self._run_query(q) for q in queries))
        failed = sum(1 for hits in hit_lists if hits is None)

        # gather() preserves query order, so first-seen ties stay deterministic
        hits = fuse_hits(
            (h for h in hit_lists if h is not None),
            limit=self.config.search.max_results,
        )

        log.debug(
            "match_one_done",
            query_count=len(queries),
            failed_queries=failed,
            candidates=len(hits),
            best=hits[0].identity_key if hits else None,
            best_score=round(hits[0].score, 4) if hits else None,
        )
        return MatchResult(hits=hits)

    async def match_many(self, records: Sequence[InputRecord]) -> list[MatchResult]:
        """Match records one after another, in input order."""
        results: list[MatchResult] = []
        for i, record in enumerate(records):
            results.append(await self._match_isolated(record, position=i))
        log.info("match_many_done", total=len(results))
        return results

    async def match_batch(
        self, records: Sequence[InputRecord], batch_size: int | None = None
    ) -> list[MatchResult]:
        """Match consecutive chunks of records, each chunk concurrently.

        Output order mirrors input order regardless of completion order.
        """
        size = batch_size if batch_size is not None else self.config.batch.batch_size
        if size < 1:
            raise InvalidInputError(f"batch_size must be >= 1, got {size}")

        total_chunks = (len(records) + size - 1) // size
        results: list[MatchResult] = []
        for chunk_num, start in enumerate(range(0, len(records), size)):
            chunk = records[start : start + size]
            chunk_results = await asyncio.gather(
                *(self._match_isolated(r, position=start + j) for j, r in enumerate(chunk))
            )
            results.extend(chunk_results)
            log.info(
                "batch_chunk_done",
                chunk=chunk_num + 1,
                total_chunks=total_chunks,
                chunk_size=len(chunk),
                processed=len(results),
                total=len(records),
            )
        return results

    async def search(self, record: InputRecord) -> SearchResponse:
        """Combined mode: one disjunctive backend call, ranking passed through.

        Backend failures propagate to the caller here; there is nothing to
        fall back to within a single call.
        """
        composite = build_composite(record, self.config.scoring)
        log.debug("search_start", clauses=len(composite.clauses))
        response = await asyncio.wait_for(
            self.backend.search(composite, size=self.config.search.page_size),
            timeout=self.config.search.query_timeout,
        )
        log.debug("search_done", total=response.total, returned=len(response.hits))
        return response

    async def _run_query(self, query: CandidateQuery) -> list[ScoredHit] | None:
        """Execute one query; None marks a failed call (no hits)."""
        try:
            response = await asyncio.wait_for(
                self.backend.search(query, size=self.config.search.page_size),
                timeout=self.config.search.query_timeout,
            )
        except asyncio.TimeoutError:
            log.warning(
                "query_timeout",
                target=query.target.value,
                timeout=self.config.search.query_timeout,
            )
            return None
        except BackendError as e:
            log.warning("query_failed", target=query.target.value, error=str(e))
            return None
        except Exception as e:
            log.exception("query_failed", target=query.target.value, error=str(e))
            return None
        return response.hits

    async def _match_isolated(self, record: InputRecord, position: int) -> MatchResult:
        """match_one, with any failure contained to this record's slot."""
        try:
            return await self.match_one(record)
        except Exception as e:
            log.exception("match_record_failed", position=position, error=str(e))
            return MatchResult(error=str(e) or type(e).__name__)
