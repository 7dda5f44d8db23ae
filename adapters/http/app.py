"""
Wellness API: FastAPI application factory.

Every path under /api requires the shared API key header, including paths
with no route. CORS preflight is answered before the key check.

Routes:
- GET  /api/data          current patient document, or the default document
- PUT  /api/data          replace the document (backup of the previous one kept)
- POST /api/side-effects  server-side side-effect lookup for a medication name
- GET  /api/health        liveness plus whether a document exists on disk

Error mapping:
- ``InvalidRequestError`` -> 400 ``{"error": ...}``
- missing or wrong key    -> 403 ``{"error": "Forbidden"}`` (``ApiKeyMiddleware``)
- store failures          -> 500 ``{"error": ...}``
"""

import secrets
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager
from datetime import UTC, datetime
from typing import Any

import httpx
import structlog
from fastapi import APIRouter, Depends, FastAPI, Request, Response
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from starlette.concurrency import run_in_threadpool
from starlette.middleware.base import BaseHTTPMiddleware

from adapters.http.schemas import ErrorResponse, HealthResponse, SaveResponse, SideEffectsResponse
from wellness.config import AppConfig, get_config
from wellness.services.side_effects import SideEffectResolver, build_server_resolver
from wellness.services.store import PatientStore

logger = structlog.get_logger(__name__)

API_PREFIX = "/api"


class InvalidRequestError(ValueError):
    """The request body is not acceptable; reported to the caller as 400."""


async def _handle_invalid_request(request: Request, exc: InvalidRequestError) -> JSONResponse:
    logger.info("invalid_request", path=request.url.path, error=str(exc))
    return JSONResponse(status_code=400, content=ErrorResponse(error=str(exc)).model_dump())


class ApiKeyMiddleware(BaseHTTPMiddleware):
    """Rejects any /api request without the configured key before routing."""

    async def dispatch(self, request: Request, call_next: Any) -> Response:
        if request.url.path.startswith(API_PREFIX):
            api = request.app.state.config.api
            supplied = request.headers.get(api.api_key_header, "")
            if not secrets.compare_digest(supplied.encode(), api.api_key.encode()):
                logger.warning("forbidden_request", method=request.method, path=request.url.path)
                return JSONResponse(
                    status_code=403, content=ErrorResponse(error="Forbidden").model_dump()
                )
        return await call_next(request)


def get_store(request: Request) -> PatientStore:
    return request.app.state.store


def get_resolver(request: Request) -> SideEffectResolver:
    return request.app.state.resolver


async def _json_body(request: Request) -> Any:
    try:
        return await request.json()
    except ValueError as e:
        raise InvalidRequestError("Invalid data format") from e


router = APIRouter(prefix=API_PREFIX)


@router.get("/data")
async def get_data(store: PatientStore = Depends(get_store)) -> Any:
    try:
        return await run_in_threadpool(store.read)
    except Exception:
        logger.exception("document_read_failed")
        return JSONResponse(
            status_code=500, content=ErrorResponse(error="Failed to load data").model_dump()
        )


@router.put("/data", response_model=SaveResponse)
async def put_data(request: Request, store: PatientStore = Depends(get_store)) -> Any:
    document = await _json_body(request)
    if not isinstance(document, dict):
        raise InvalidRequestError("Invalid data format")
    try:
        await run_in_threadpool(store.write, document)
    except OSError:
        logger.exception("document_write_failed")
        return JSONResponse(
            status_code=500, content=ErrorResponse(error="Failed to save data").model_dump()
        )
    return SaveResponse(saved_at=datetime.now(UTC).isoformat())


@router.post("/side-effects", response_model=SideEffectsResponse)
async def post_side_effects(
    request: Request, resolver: SideEffectResolver = Depends(get_resolver)
) -> Any:
    body = await _json_body(request)
    medication = body.get("medication") if isinstance(body, dict) else None
    if not isinstance(medication, str) or not medication.strip():
        raise InvalidRequestError("Medication name is required")
    return SideEffectsResponse(side_effects=await resolver.resolve(medication))


@router.get("/health", response_model=HealthResponse)
async def health(request: Request, store: PatientStore = Depends(get_store)) -> Any:
    return HealthResponse(
        data_file="exists" if store.exists() else "empty",
        origin=request.app.state.config.api.allowed_origin,
    )


def create_app(
    config: AppConfig | None = None,
    *,
    store: PatientStore | None = None,
    resolver: SideEffectResolver | None = None,
) -> FastAPI:
    """
    Create and configure the FastAPI application.

    Parameters
    ----------
    config:
        Application config; defaults to the cached environment config.
    store:
        Document store. Defaults to a ``PatientStore`` over ``config.store``.
    resolver:
        Side-effect resolver. Defaults to the openFDA/fallback chain over an
        HTTP client owned (and closed) by the app.
    """
    config = config or get_config()
    owned_client: httpx.AsyncClient | None = None
    if resolver is None:
        owned_client = httpx.AsyncClient(timeout=config.resolver.timeout_seconds)
        resolver = build_server_resolver(owned_client, config.resolver)

    @asynccontextmanager
    async def lifespan(app: FastAPI) -> AsyncIterator[None]:
        logger.info(
            "wellness_api_started",
            allowed_origin=config.api.allowed_origin,
            data_file=str(app.state.store.data_file),
        )
        yield
        if owned_client is not None:
            await owned_client.aclose()

    app = FastAPI(title="Wellness API", version="0.1.0", lifespan=lifespan)
    app.state.config = config
    app.state.store = store or PatientStore(config.store)
    app.state.resolver = resolver

    # CORS must wrap the key check; the middleware added last runs first
    app.add_middleware(ApiKeyMiddleware)
    app.add_middleware(
        CORSMiddleware,
        allow_origins=[config.api.allowed_origin],
        allow_methods=["GET", "PUT", "POST", "OPTIONS"],
        allow_headers=["Content-Type", config.api.api_key_header],
    )
    app.add_exception_handler(InvalidRequestError, _handle_invalid_request)  # type: ignore[arg-type]
    app.include_router(router)
    return app
