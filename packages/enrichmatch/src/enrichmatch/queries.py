"""Decompose an input record into independent weighted candidate queries."""

from __future__ import annotations

from enrichmatch.config import ScoringWeights
from enrichmatch.inference import infer_domain
from enrichmatch.normalize import extract_domain, normalize_phone, strip_protocol
from enrichmatch.types import (
    CandidateQuery,
    CompositeQuery,
    InputRecord,
    MatchMode,
    QueryTarget,
)


def build_queries(record: InputRecord, weights: ScoringWeights) -> list[CandidateQuery]:
    """Build one query per (signal, strategy), in a fixed order.

    Order: domain, phone, name, then each social handle with its own full
    set of social strategies. A record with no signals yields an empty list.
    """
    queries: list[CandidateQuery] = []

    if record.domain:
        domain = extract_domain(record.domain) or record.domain.strip()
        queries.extend(_domain_queries(domain, weights))

    if record.phone:
        queries.extend(_phone_queries(record.phone, weights))

    if record.name:
        name = record.name.strip()
        queries.append(CandidateQuery(
            QueryTarget.NAME_COMMERCIAL, MatchMode.FUZZY, name, weights.name_commercial
        ))
        queries.append(CandidateQuery(
            QueryTarget.NAME_LEGAL, MatchMode.FUZZY, name, weights.name_legal
        ))

    for handle in record.social_handles():
        queries.extend(_social_queries(handle, weights))

    return queries


def build_composite(record: InputRecord, weights: ScoringWeights) -> CompositeQuery:
    """All of a record's queries folded into one disjunctive query."""
    return CompositeQuery(clauses=tuple(build_queries(record, weights)))


def _domain_queries(domain: str, weights: ScoringWeights) -> list[CandidateQuery]:
    if not domain:
        return []
    return [
        CandidateQuery(QueryTarget.DOMAIN, MatchMode.EXACT, domain, weights.exact_domain),
        CandidateQuery(QueryTarget.DOMAIN, MatchMode.SUBSTRING, domain, weights.partial_domain),
    ]


def _phone_queries(phone: str, weights: ScoringWeights) -> list[CandidateQuery]:
    variants = normalize_phone(phone)
    queries = [
        CandidateQuery(QueryTarget.PHONE, MatchMode.SUBSTRING, variants.raw, weights.phone),
    ]
    if variants.digits and variants.digits != variants.raw:
        queries.append(
            CandidateQuery(QueryTarget.PHONE, MatchMode.SUBSTRING, variants.digits, weights.phone)
        )
    return queries


def _social_queries(handle: str, weights: ScoringWeights) -> list[CandidateQuery]:
    queries = [
        CandidateQuery(QueryTarget.SOCIAL_EXACT, MatchMode.EXACT, handle, weights.social_exact),
        CandidateQuery(
            QueryTarget.SOCIAL_WILDCARD, MatchMode.SUBSTRING, handle, weights.social_wildcard
        ),
    ]

    bare = strip_protocol(handle)
    if bare and bare != handle:
        queries.append(CandidateQuery(
            QueryTarget.SOCIAL_PROTOCOL_AGNOSTIC,
            MatchMode.SUBSTRING,
            bare,
            weights.social_protocol_agnostic,
        ))

    domain = infer_domain(handle)
    if domain:
        queries.append(CandidateQuery(
            QueryTarget.SOCIAL_DOMAIN_EXACT,
            MatchMode.EXACT,
            domain,
            weights.social_domain_inference_exact,
        ))
        queries.append(CandidateQuery(
            QueryTarget.SOCIAL_DOMAIN_WILDCARD,
            MatchMode.SUBSTRING,
            domain,
            weights.social_domain_inference_wildcard,
        ))

    queries.append(
        CandidateQuery(QueryTarget.SOCIAL_FUZZY, MatchMode.FUZZY, handle, weights.social_fuzzy)
    )
    return queries
