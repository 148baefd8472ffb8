"""Tests for the Elasticsearch adapter (no live cluster needed)."""

import pytest
from elastic_transport import ConnectionError as ESConnectionError

from enrichmatch.backend import BackendUnavailableError, MalformedResponseError
from enrichmatch.config import ElasticsearchConfig
from enrichmatch.elastic import (
    ElasticsearchBackend,
    build_search_body,
    clause_to_dsl,
    escape_wildcard,
    parse_search_response,
)
from enrichmatch.types import CandidateQuery, CompositeQuery, MatchMode, QueryTarget


class MockESClient:
    """Mock AsyncElasticsearch client."""

    def __init__(self, response=None, error: Exception | None = None):
        self.response = response
        self.error = error
        self.calls: list[dict] = []
        self.closed = False

    async def search(self, **kwargs):
        self.calls.append(kwargs)
        if self.error:
            raise self.error
        return self.response

    async def close(self):
        self.closed = True


def es_hit(doc_id, score, source):
    return {"_id": doc_id, "_score": score, "_source": source}


def test_escape_wildcard():
    assert escape_wildcard("a*b?c\\d") == "a\\*b\\?c\\\\d"


def test_exact_domain_is_term_with_boost():
    clause = CandidateQuery(QueryTarget.DOMAIN, MatchMode.EXACT, "acme.com", 8.0)
    assert clause_to_dsl(clause) == {"term": {"domain": {"value": "acme.com", "boost": 8.0}}}


def test_exact_social_is_terms_set_membership():
    clause = CandidateQuery(QueryTarget.SOCIAL_EXACT, MatchMode.EXACT, "fb.com/acme", 25.0)
    assert clause_to_dsl(clause) == {"terms": {"socialMedia": ["fb.com/acme"], "boost": 25.0}}


def test_substring_is_wildcard():
    clause = CandidateQuery(QueryTarget.PHONE, MatchMode.SUBSTRING, "555", 1.5)
    assert clause_to_dsl(clause) == {
        "wildcard": {"phone": {"value": "*555*", "boost": 1.5, "case_insensitive": True}}
    }


def test_fuzzy_is_match_with_auto_fuzziness():
    clause = CandidateQuery(QueryTarget.NAME_LEGAL, MatchMode.FUZZY, "Acme", 1.5)
    assert clause_to_dsl(clause) == {
        "match": {"companyLegalName": {"query": "Acme", "fuzziness": "AUTO", "boost": 1.5}}
    }


def test_body_is_disjunctive_and_sorted():
    composite = CompositeQuery(clauses=(
        CandidateQuery(QueryTarget.DOMAIN, MatchMode.EXACT, "acme.com", 8.0),
        CandidateQuery(QueryTarget.DOMAIN, MatchMode.SUBSTRING, "acme.com", 6.0),
    ))
    body = build_search_body(composite, size=10)
    assert body["query"]["bool"]["must"] == [{"match_all": {}}]
    assert len(body["query"]["bool"]["should"]) == 2
    assert body["query"]["bool"]["minimum_should_match"] == 1
    assert body["size"] == 10
    assert body["sort"] == [{"_score": {"order": "desc"}}]


def test_body_without_clauses_matches_all():
    body = build_search_body(CandidateQuery.match_all(), size=10)
    assert body["query"]["bool"]["should"] == []
    assert body["query"]["bool"]["minimum_should_match"] == 0


def test_parse_response_identity_key():
    response = parse_search_response({
        "hits": {
            "total": {"value": 2},
            "hits": [
                es_hit("x1", 9.5, {"domain": "acme.com", "companyCommercialName": "Acme"}),
                es_hit("x2", 3.0, {"companyCommercialName": "Nodomain"}),
            ],
        }
    })
    assert response.total == 2
    assert [h.identity_key for h in response.hits] == ["acme.com", "x2"]
    assert response.hits[0].score == 9.5


def test_parse_malformed_response():
    with pytest.raises(MalformedResponseError):
        parse_search_response({"unexpected": True})


@pytest.mark.asyncio
async def test_backend_search_passes_index_and_body():
    client = MockESClient(response={"hits": {"total": {"value": 0}, "hits": []}})
    backend = ElasticsearchBackend(ElasticsearchConfig(index_name="companies"), client=client)

    query = CandidateQuery(QueryTarget.DOMAIN, MatchMode.EXACT, "acme.com", 8.0)
    response = await backend.search(query, size=5)

    assert response.total == 0
    assert client.calls[0]["index"] == "companies"
    assert client.calls[0]["size"] == 5


@pytest.mark.asyncio
async def test_backend_transport_error_becomes_backend_error():
    client = MockESClient(error=ESConnectionError("connection refused"))
    backend = ElasticsearchBackend(client=client)

    with pytest.raises(BackendUnavailableError):
        await backend.search(CandidateQuery.match_all())


@pytest.mark.asyncio
async def test_backend_close():
    client = MockESClient()
    backend = ElasticsearchBackend(client=client)
    await backend.close()
    assert client.closed
