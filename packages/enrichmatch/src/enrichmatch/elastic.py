"""Elasticsearch-backed SearchBackend."""

from __future__ import annotations

from typing import Any

import structlog
from elastic_transport import TransportError
from elasticsearch import ApiError, AsyncElasticsearch

from enrichmatch.backend import (
    BackendError,
    BackendUnavailableError,
    MalformedResponseError,
    Query,
    clauses_of,
)
from enrichmatch.config import ElasticsearchConfig
from enrichmatch.types import (
    CandidateQuery,
    CompanyRecord,
    MatchMode,
    QueryTarget,
    ScoredHit,
    SearchResponse,
)

log = structlog.get_logger()


def escape_wildcard(value: str) -> str:
    """Escape characters with meaning in a wildcard pattern."""
    return value.replace("\\", "\\\\").replace("*", "\\*").replace("?", "\\?")


def clause_to_dsl(clause: CandidateQuery) -> dict[str, Any]:
    """Translate one candidate query into an Elasticsearch query clause."""
    field = clause.field
    if clause.mode is MatchMode.ALL or field is None:
        return {"match_all": {"boost": clause.weight}}

    if clause.mode is MatchMode.EXACT:
        if clause.target is QueryTarget.SOCIAL_EXACT:
            return {"terms": {field: [clause.value], "boost": clause.weight}}
        return {"term": {field: {"value": clause.value, "boost": clause.weight}}}

    if clause.mode is MatchMode.SUBSTRING:
        return {
            "wildcard": {
                field: {
                    "value": f"*{escape_wildcard(clause.value)}*",
                    "boost": clause.weight,
                    "case_insensitive": True,
                }
            }
        }

    return {
        "match": {
            field: {"query": clause.value, "fuzziness": "AUTO", "boost": clause.weight}
        }
    }


def build_search_body(query: Query, size: int) -> dict[str, Any]:
    """Disjunctive bool query: match_all base, at least one should clause."""
    should = [
        clause_to_dsl(c) for c in clauses_of(query) if c.mode is not MatchMode.ALL
    ]
    return {
        "query": {
            "bool": {
                "must": [{"match_all": {}}],
                "should": should,
                "minimum_should_match": 1 if should else 0,
            }
        },
        "size": size,
        "sort": [{"_score": {"order": "desc"}}],
    }


def parse_search_response(body: Any) -> SearchResponse:
    try:
        hits_section = body["hits"]
        total = hits_section["total"]
        total_value = total["value"] if isinstance(total, dict) else int(total)
        hits: list[ScoredHit] = []
        for hit in hits_section["hits"]:
            record = CompanyRecord.from_source(hit.get("_source") or {})
            hits.append(ScoredHit(
                identity_key=record.domain or str(hit["_id"]),
                record=record,
                score=float(hit.get("_score") or 0.0),
            ))
    except (KeyError, TypeError, ValueError) as e:
        raise MalformedResponseError(f"unexpected search response: {e}") from e
    return SearchResponse(total=total_value, hits=hits)


class ElasticsearchBackend:
    """SearchBackend over the companies index."""

    def __init__(
        self,
        config: ElasticsearchConfig | None = None,
        client: AsyncElasticsearch | None = None,
    ) -> None:
        self.config = config or ElasticsearchConfig()
        self._client = client or AsyncElasticsearch(
            self.config.node,
            request_timeout=self.config.request_timeout,
        )

    async def search(self, query: Query, size: int = 10) -> SearchResponse:
        body = build_search_body(query, size)
        try:
            response = await self._client.search(index=self.config.index_name, **body)
        except ApiError as e:
            raise BackendError(f"search rejected: {e}") from e
        except TransportError as e:
            raise BackendUnavailableError(f"search transport failure: {e}") from e
        return parse_search_response(_body_of(response))

    async def ping(self) -> bool:
        try:
            return bool(
                await self._client.options(request_timeout=self.config.ping_timeout).ping()
            )
        except (ApiError, TransportError) as e:
            log.warning("elasticsearch_ping_failed", error=str(e))
            return False

    async def stats(self) -> dict[str, Any]:
        name = self.config.index_name
        try:
            response = _body_of(await self._client.indices.stats(index=name))
            total = response["indices"][name]["total"]
            return {
                "indexName": name,
                "documentsCount": total["docs"]["count"],
                "indexSize": total["store"]["size_in_bytes"],
            }
        except (ApiError, TransportError, KeyError, TypeError) as e:
            log.warning("elasticsearch_stats_failed", index=name, error=str(e))
            return {"indexName": name, "documentsCount": 0, "indexSize": 0}

    async def close(self) -> None:
        await self._client.close()


def _body_of(response: Any) -> Any:
    """ObjectApiResponse exposes the decoded JSON as .body; plain dicts pass through."""
    return getattr(response, "body", response)
