"""Core types for the enrichmatch company matching engine."""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Mapping

SOCIAL_PLATFORMS = ("facebook", "twitter", "instagram", "linkedin")


def _clean(value: Any) -> str | None:
    if value is None:
        return None
    text = str(value).strip()
    return text or None


def _split_social(value: Any) -> list[str]:
    """Split a socialMedia value (string, comma list or sequence) into handles."""
    if value is None:
        return []
    if isinstance(value, (list, tuple, set)):
        parts = [str(v) for v in value if v is not None]
    else:
        parts = str(value).split(",")
    return [p.strip() for p in parts if p and p.strip()]


@dataclass(frozen=True)
class InputRecord:
    """A partial description of a company supplied by the caller."""

    name: str | None = None
    domain: str | None = None
    phone: str | None = None
    social_media: tuple[str, ...] = ()
    facebook: str | None = None
    twitter: str | None = None
    instagram: str | None = None
    linkedin: str | None = None

    @classmethod
    def from_mapping(cls, data: Mapping[str, Any]) -> InputRecord:
        """Build a record from the wire shape, resolving field aliases."""
        return cls(
            name=_clean(data.get("name")) or _clean(data.get("companyCommercialName")),
            domain=_clean(data.get("domain")) or _clean(data.get("website")),
            phone=_clean(data.get("phone")),
            social_media=tuple(_split_social(data.get("socialMedia"))),
            facebook=_clean(data.get("facebook")),
            twitter=_clean(data.get("twitter")),
            instagram=_clean(data.get("instagram")),
            linkedin=_clean(data.get("linkedin")),
        )

    def social_handles(self) -> list[str]:
        """All social handles in a stable order, without duplicates."""
        handles: list[str] = []
        candidates = list(self.social_media) + [
            getattr(self, platform) for platform in SOCIAL_PLATFORMS
        ]
        for handle in candidates:
            if handle and handle not in handles:
                handles.append(handle)
        return handles

    def is_empty(self) -> bool:
        return not (self.name or self.domain or self.phone or self.social_handles())

    def to_dict(self) -> dict[str, Any]:
        data: dict[str, Any] = {}
        for key in ("name", "domain", "phone"):
            if getattr(self, key):
                data[key] = getattr(self, key)
        if self.social_media:
            data["socialMedia"] = list(self.social_media)
        for platform in SOCIAL_PLATFORMS:
            if getattr(self, platform):
                data[platform] = getattr(self, platform)
        return data


@dataclass
class CompanyRecord:
    """A canonical company document as stored in the index."""

    domain: str | None = None
    commercial_name: str | None = None
    legal_name: str | None = None
    phone: str | None = None
    social_media: list[str] = field(default_factory=list)
    address: str | None = None

    @classmethod
    def from_source(cls, source: Mapping[str, Any]) -> CompanyRecord:
        return cls(
            domain=_clean(source.get("domain")),
            commercial_name=_clean(source.get("companyCommercialName")),
            legal_name=_clean(source.get("companyLegalName")),
            phone=_clean(source.get("phone")),
            social_media=_split_social(source.get("socialMedia")),
            address=_clean(source.get("address")),
        )

    def to_source(self) -> dict[str, Any]:
        return {
            "domain": self.domain,
            "companyCommercialName": self.commercial_name,
            "companyLegalName": self.legal_name,
            "phone": self.phone,
            "socialMedia": list(self.social_media),
            "address": self.address,
        }


class QueryTarget(str, Enum):
    DOMAIN = "domain"
    PHONE = "phone"
    NAME_COMMERCIAL = "name-commercial"
    NAME_LEGAL = "name-legal"
    SOCIAL_EXACT = "social-exact"
    SOCIAL_WILDCARD = "social-wildcard"
    SOCIAL_PROTOCOL_AGNOSTIC = "social-protocol-agnostic"
    SOCIAL_DOMAIN_EXACT = "social-domain-exact"
    SOCIAL_DOMAIN_WILDCARD = "social-domain-wildcard"
    SOCIAL_FUZZY = "social-fuzzy"
    ANY = "any"  # neutral fallback for records without signals


class MatchMode(str, Enum):
    EXACT = "exact"
    SUBSTRING = "substring"
    FUZZY = "fuzzy"
    ALL = "all"


# Index document field searched by each target.
TARGET_FIELDS: dict[QueryTarget, str | None] = {
    QueryTarget.DOMAIN: "domain",
    QueryTarget.PHONE: "phone",
    QueryTarget.NAME_COMMERCIAL: "companyCommercialName",
    QueryTarget.NAME_LEGAL: "companyLegalName",
    QueryTarget.SOCIAL_EXACT: "socialMedia",
    QueryTarget.SOCIAL_WILDCARD: "socialMedia",
    QueryTarget.SOCIAL_PROTOCOL_AGNOSTIC: "socialMedia",
    QueryTarget.SOCIAL_DOMAIN_EXACT: "domain",
    QueryTarget.SOCIAL_DOMAIN_WILDCARD: "domain",
    QueryTarget.SOCIAL_FUZZY: "socialMedia",
    QueryTarget.ANY: None,
}


@dataclass(frozen=True)
class CandidateQuery:
    target: QueryTarget
    mode: MatchMode
    value: str
    weight: float

    @property
    def field(self) -> str | None:
        return TARGET_FIELDS[self.target]

    @classmethod
    def match_all(cls, weight: float = 1.0) -> CandidateQuery:
        return cls(target=QueryTarget.ANY, mode=MatchMode.ALL, value="", weight=weight)


@dataclass(frozen=True)
class CompositeQuery:
    """Disjunction of candidate queries: any may match, at least one must."""

    clauses: tuple[CandidateQuery, ...] = ()


@dataclass
class ScoredHit:
    identity_key: str
    record: CompanyRecord
    score: float

    def to_dict(self) -> dict[str, Any]:
        return {"id": self.identity_key, "score": self.score, **self.record.to_source()}


@dataclass
class SearchResponse:
    total: int
    hits: list[ScoredHit] = field(default_factory=list)


@dataclass
class MatchResult:
    """Ranked candidates for one input record, best first."""

    hits: list[ScoredHit] = field(default_factory=list)
    error: str | None = None

    @property
    def best_match(self) -> ScoredHit | None:
        return self.hits[0] if self.hits else None

    def __len__(self) -> int:
        return len(self.hits)
