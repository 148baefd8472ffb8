"""Configuration for the enrichmatch company matching engine."""

from __future__ import annotations

import os
from dataclasses import dataclass, field, fields

import structlog

log = structlog.get_logger()


@dataclass(frozen=True)
class ScoringWeights:
    exact_domain: float = 8.0
    partial_domain: float = 6.0
    social_exact: float = 25.0
    social_wildcard: float = 20.0
    social_protocol_agnostic: float = 20.0
    social_domain_inference_exact: float = 8.0
    social_domain_inference_wildcard: float = 7.0
    social_fuzzy: float = 10.0
    name_commercial: float = 2.0
    name_legal: float = 1.5
    phone: float = 1.5

    def __post_init__(self) -> None:
        for f in fields(self):
            value = getattr(self, f.name)
            if value <= 0:
                raise ValueError(f"weight {f.name} must be positive, got {value}")


@dataclass(frozen=True)
class SearchConfig:
    page_size: int = 10
    max_results: int = 10
    query_timeout: float = 10.0  # seconds, per backend call
    fallback_match_all: bool = True


@dataclass(frozen=True)
class BatchConfig:
    batch_size: int = 10


@dataclass(frozen=True)
class ElasticsearchConfig:
    node: str = "http://localhost:9200"
    index_name: str = "companies"
    request_timeout: float = 60.0
    ping_timeout: float = 3.0


@dataclass(frozen=True)
class MatchConfig:
    scoring: ScoringWeights = field(default_factory=ScoringWeights)
    search: SearchConfig = field(default_factory=SearchConfig)
    batch: BatchConfig = field(default_factory=BatchConfig)
    elasticsearch: ElasticsearchConfig = field(default_factory=ElasticsearchConfig)

    @classmethod
    def from_env(cls) -> MatchConfig:
        """Build a config from environment variables, falling back to defaults."""
        base = cls()
        weights = {
            f.name: _env_number(
                _WEIGHT_ENV[f.name], getattr(base.scoring, f.name), float
            )
            for f in fields(ScoringWeights)
        }
        search = SearchConfig(
            page_size=_env_number("DEFAULT_SEARCH_SIZE", base.search.page_size, int),
            max_results=base.search.max_results,
            query_timeout=_env_number("QUERY_TIMEOUT", base.search.query_timeout, float),
            fallback_match_all=base.search.fallback_match_all,
        )
        es = ElasticsearchConfig(
            node=os.environ.get("ELASTICSEARCH_NODE") or base.elasticsearch.node,
            index_name=(
                os.environ.get("ELASTICSEARCH_INDEX_NAME") or base.elasticsearch.index_name
            ),
            request_timeout=_env_number(
                "ELASTICSEARCH_REQUEST_TIMEOUT", base.elasticsearch.request_timeout, float
            ),
            ping_timeout=_env_number(
                "ELASTICSEARCH_PING_TIMEOUT", base.elasticsearch.ping_timeout, float
            ),
        )
        return cls(
            scoring=ScoringWeights(**weights),
            search=search,
            batch=BatchConfig(
                batch_size=_env_number("MATCH_BATCH_SIZE", base.batch.batch_size, int)
            ),
            elasticsearch=es,
        )


_WEIGHT_ENV: dict[str, str] = {
    "exact_domain": "BOOST_EXACT_DOMAIN",
    "partial_domain": "BOOST_PARTIAL_DOMAIN",
    "social_exact": "BOOST_SOCIAL_EXACT",
    "social_wildcard": "BOOST_SOCIAL_WILDCARD",
    "social_protocol_agnostic": "BOOST_SOCIAL_PROTOCOL_AGNOSTIC",
    "social_domain_inference_exact": "BOOST_SOCIAL_DOMAIN_INFERENCE_EXACT",
    "social_domain_inference_wildcard": "BOOST_SOCIAL_DOMAIN_INFERENCE_WILDCARD",
    "social_fuzzy": "BOOST_SOCIAL_FUZZY",
    "name_commercial": "BOOST_NAME_COMMERCIAL",
    "name_legal": "BOOST_NAME_LEGAL",
    "phone": "BOOST_PHONE",
}


def _env_number(name: str, default, kind: type):
    """Read a positive number from the environment.

    Missing, unparseable and non-positive values all yield the default.
    """
    raw = os.environ.get(name)
    if raw is None or not raw.strip():
        return default
    try:
        value = kind(raw.strip())
    except ValueError:
        log.warning("config_env_invalid", name=name, value=raw, default=default)
        return default
    if value <= 0:
        log.warning("config_env_not_positive", name=name, value=raw, default=default)
        return default
    return value
