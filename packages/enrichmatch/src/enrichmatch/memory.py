"""In-process search backend over a list of company documents."""

from __future__ import annotations

import json
import re
from pathlib import Path
from typing import Any, Mapping

import structlog
from rapidfuzz.distance import Levenshtein

from enrichmatch.backend import Query, clauses_of
from enrichmatch.types import (
    CandidateQuery,
    CompanyRecord,
    MatchMode,
    ScoredHit,
    SearchResponse,
)

log = structlog.get_logger()

_TOKEN_RE = re.compile(r"\w+", re.UNICODE)

# Untokenized fields: fuzzy matching compares the whole value.
KEYWORD_FIELDS = {"domain", "phone", "socialMedia"}


def auto_fuzziness(term: str) -> int:
    """Allowed edit distance for a term, as Elasticsearch's AUTO does it."""
    if len(term) <= 2:
        return 0
    if len(term) <= 5:
        return 1
    return 2


def _tokens(text: str) -> list[str]:
    return _TOKEN_RE.findall(text.casefold())


class MemoryBackend:
    """SearchBackend holding the corpus in memory.

    Scores mimic the index: exact and substring clauses score their weight,
    fuzzy clauses on text fields score weight times the fraction of query
    tokens matched (keyword fields match whole values), and a composite
    query sums the scores of the clauses that matched.
    """

    def __init__(self, documents: list[Mapping[str, Any]] | None = None) -> None:
        self._docs: list[tuple[str, CompanyRecord]] = []
        for i, doc in enumerate(documents or []):
            self.add(doc, doc_id=str(doc.get("id", i)))

    @classmethod
    def load(cls, path: str | Path) -> MemoryBackend:
        """Load a JSON array of company documents."""
        path = Path(path)
        data = json.loads(path.read_text(encoding="utf-8"))
        if not isinstance(data, list):
            raise ValueError(f"{path} must contain a JSON array of companies")
        backend = cls(data)
        log.info("memory_corpus_loaded", path=str(path), count=len(backend))
        return backend

    def add(self, document: Mapping[str, Any], doc_id: str | None = None) -> None:
        record = CompanyRecord.from_source(document)
        self._docs.append((doc_id or str(len(self._docs)), record))

    def __len__(self) -> int:
        return len(self._docs)

    async def search(self, query: Query, size: int = 10) -> SearchResponse:
        clauses = [c for c in clauses_of(query) if c.mode is not MatchMode.ALL]
        match_all = not clauses

        scored: list[ScoredHit] = []
        for doc_id, record in self._docs:
            if match_all:
                score = 1.0
            else:
                score = sum(_clause_score(c, record) for c in clauses)
                if score <= 0:
                    continue
            scored.append(ScoredHit(
                identity_key=record.domain or doc_id,
                record=record,
                score=score,
            ))

        # sorted() is stable, so equal scores keep corpus order
        scored.sort(key=lambda h: h.score, reverse=True)
        return SearchResponse(total=len(scored), hits=scored[:size])

    async def ping(self) -> bool:
        return True

    async def close(self) -> None:
        return None

    def stats(self) -> dict[str, Any]:
        return {"indexName": "memory", "documentsCount": len(self._docs), "indexSize": 0}


def _field_values(record: CompanyRecord, field: str | None) -> list[str]:
    source = record.to_source()
    value = source.get(field) if field else None
    if value is None:
        return []
    if isinstance(value, list):
        return [v for v in value if v]
    return [value]


def _clause_score(clause: CandidateQuery, record: CompanyRecord) -> float:
    values = _field_values(record, clause.field)
    if not values:
        return 0.0

    if clause.mode is MatchMode.EXACT:
        matched = any(v == clause.value for v in values)
        return clause.weight if matched else 0.0

    if clause.mode is MatchMode.SUBSTRING:
        needle = clause.value.casefold()
        matched = any(needle in v.casefold() for v in values)
        return clause.weight if matched else 0.0

    if clause.mode is MatchMode.FUZZY:
        if clause.field in KEYWORD_FIELDS:
            term = clause.value.casefold()
            max_edits = auto_fuzziness(term)
            matched = any(
                Levenshtein.distance(term, v.casefold(), score_cutoff=max_edits) <= max_edits
                for v in values
            )
            return clause.weight if matched else 0.0
        return clause.weight * max(_fuzzy_fraction(clause.value, v) for v in values)

    return 0.0


def _fuzzy_fraction(query: str, text: str) -> float:
    """Fraction of query tokens that some text token matches within AUTO edits."""
    query_tokens = _tokens(query)
    text_tokens = _tokens(text)
    if not query_tokens or not text_tokens:
        return 0.0

    matched = 0
    for qt in query_tokens:
        max_edits = auto_fuzziness(qt)
        if any(
            Levenshtein.distance(qt, tt, score_cutoff=max_edits) <= max_edits
            for tt in text_tokens
        ):
            matched += 1
    return matched / len(query_tokens)
