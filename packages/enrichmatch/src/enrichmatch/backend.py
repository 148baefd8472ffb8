"""Search backend protocol and the errors adapters may raise."""

from __future__ import annotations

from typing import Protocol, Union

from enrichmatch.types import CandidateQuery, CompositeQuery, SearchResponse

Query = Union[CandidateQuery, CompositeQuery]


class BackendError(Exception):
    """A backend call failed; the caller may treat it as zero hits."""


class BackendUnavailableError(BackendError):
    """The backend could not be reached or timed out at the transport level."""


class MalformedResponseError(BackendError):
    """The backend answered with a body of an unexpected shape."""


class InvalidInputError(ValueError):
    """Structurally invalid input handed to the matcher."""


class SearchBackend(Protocol):
    """Protocol for search backends (e.g. Elasticsearch)."""

    async def search(self, query: Query, size: int = 10) -> SearchResponse: ...

    async def ping(self) -> bool: ...

    async def close(self) -> None: ...


def clauses_of(query: Query) -> tuple[CandidateQuery, ...]:
    """Flatten a single or composite query into its clauses."""
    if isinstance(query, CompositeQuery):
        return query.clauses
    return (query,)
