"""FastAPI server exposing the match, batch-match and search endpoints."""

from __future__ import annotations

import inspect
from contextlib import asynccontextmanager
from datetime import datetime, timezone
from typing import Any, AsyncIterator

import structlog
from fastapi import Body, FastAPI, Request
from fastapi.responses import JSONResponse
from pydantic import BaseModel

from enrichmatch.backend import InvalidInputError, SearchBackend
from enrichmatch.config import MatchConfig
from enrichmatch.matcher import Matcher
from enrichmatch.types import InputRecord, MatchResult

log = structlog.get_logger()


class MatchResponse(BaseModel):
    """Response for a single-record match."""

    success: bool = True
    matches: list[dict[str, Any]]
    bestMatch: dict[str, Any] | None


class MatchItem(BaseModel):
    """One input record with its ranked candidates."""

    input: dict[str, Any]
    matches: list[dict[str, Any]]
    bestMatch: dict[str, Any] | None
    error: str | None = None


class MultiMatchResponse(BaseModel):
    """Response for list and batch matching."""

    success: bool = True
    results: list[MatchItem]
    total: int


class SearchResponseBody(BaseModel):
    """Response for combined-mode search."""

    success: bool = True
    total: int
    companies: list[dict[str, Any]]


def _fail(status_code: int, message: str) -> JSONResponse:
    return JSONResponse(status_code=status_code, content={"success": False, "error": message})


def _match_item(raw: Any, result: MatchResult) -> MatchItem:
    best = result.best_match
    return MatchItem(
        input=raw if isinstance(raw, dict) else {"value": raw},
        matches=[h.to_dict() for h in result.hits],
        bestMatch=best.to_dict() if best else None,
        error=result.error,
    )


def _records(companies: list[Any]) -> list[InputRecord]:
    return [
        InputRecord.from_mapping(c) if isinstance(c, dict) else InputRecord()
        for c in companies
    ]


def create_app(
    backend: SearchBackend,
    config: MatchConfig | None = None,
) -> FastAPI:
    """Create the FastAPI application around a search backend."""
    config = config or MatchConfig()
    matcher = Matcher(backend, config)

    @asynccontextmanager
    async def lifespan(app: FastAPI) -> AsyncIterator[None]:
        log.info("server_start", backend=type(backend).__name__)
        yield
        await backend.close()
        log.info("server_stop")

    app = FastAPI(title="enrichmatch", lifespan=lifespan)

    @app.exception_handler(InvalidInputError)
    async def invalid_input(request: Request, exc: InvalidInputError) -> JSONResponse:
        return _fail(400, str(exc))

    @app.exception_handler(Exception)
    async def unexpected(request: Request, exc: Exception) -> JSONResponse:
        log.exception("request_failed", path=request.url.path, error=str(exc))
        return _fail(500, str(exc) or type(exc).__name__)

    @app.get("/health")
    async def health() -> dict[str, Any]:
        """Liveness plus backend reachability."""
        return {
            "status": "ok",
            "timestamp": datetime.now(timezone.utc).isoformat(),
            "backend": await backend.ping(),
        }

    @app.get("/stats")
    async def stats() -> dict[str, Any]:
        """Index statistics, where the backend reports them."""
        stats_fn = getattr(backend, "stats", None)
        if stats_fn is None:
            return {"success": False, "error": "backend does not report stats"}
        result = stats_fn()
        if inspect.isawaitable(result):
            result = await result
        return {"success": True, **result}

    @app.post("/match", response_model=None)
    async def match(body: Any = Body(...)) -> MatchResponse | MultiMatchResponse | JSONResponse:
        """Match one record, or a list given as {companies: [...]} or a bare array."""
        if isinstance(body, dict) and "companies" not in body:
            result = await matcher.match_one(InputRecord.from_mapping(body))
            best = result.best_match
            return MatchResponse(
                matches=[h.to_dict() for h in result.hits],
                bestMatch=best.to_dict() if best else None,
            )

        companies = body.get("companies") if isinstance(body, dict) else body
        if not isinstance(companies, list):
            return _fail(400, "Invalid input format")

        results = await matcher.match_many(_records(companies))
        items = [_match_item(raw, r) for raw, r in zip(companies, results)]
        return MultiMatchResponse(results=items, total=len(items))

    @app.post("/batch-match", response_model=None)
    async def batch_match(body: Any = Body(...)) -> MultiMatchResponse | JSONResponse:
        """Match {companies: [...]} in concurrent chunks."""
        companies = body.get("companies") if isinstance(body, dict) else None
        if not isinstance(companies, list):
            return _fail(400, "Companies must be an array")

        results = await matcher.match_batch(_records(companies))
        items = [_match_item(raw, r) for raw, r in zip(companies, results)]
        return MultiMatchResponse(results=items, total=len(items))

    @app.post("/search", response_model=None)
    async def search(body: Any = Body(...)) -> SearchResponseBody | JSONResponse:
        """Single combined query; the backend's ranking is returned unchanged."""
        if not isinstance(body, dict):
            return _fail(400, "Search body must be an object")
        response = await matcher.search(InputRecord.from_mapping(body))
        return SearchResponseBody(
            total=response.total,
            companies=[h.to_dict() for h in response.hits],
        )

    return app
