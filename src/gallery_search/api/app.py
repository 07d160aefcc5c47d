"""HTTP boundary for gallery search."""

from __future__ import annotations

import logging
import secrets
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager

from fastapi import Depends, FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from gallery_search.api.schemas import (
    HealthResponse,
    IndexBatchRequest,
    IndexBatchResponse,
    IndexResponse,
    ImageInput,
    SearchHit,
    SearchRequest,
)
from gallery_search.config import Settings
from gallery_search.errors import GallerySearchError, Unauthorized
from gallery_search.runtime import GalleryServices

logger = logging.getLogger(__name__)

SERVICE_NAME = "gallery-search"


def _services(request: Request) -> GalleryServices:
    return request.app.state.services


def require_admin(request: Request) -> None:
    """Reject admin calls without the configured bearer key."""
    expected = request.app.state.settings.admin_api_key
    if not expected:
        return
    header = request.headers.get("Authorization", "")
    scheme, _, token = header.partition(" ")
    if scheme.lower() != "bearer" or not secrets.compare_digest(token, expected):
        raise Unauthorized()


def register_exception_handlers(app: FastAPI) -> None:
    @app.exception_handler(GallerySearchError)
    async def handle_gallery_error(_request: Request, exc: GallerySearchError):
        if exc.http_status >= 500:
            logger.error("%s: %s (%s)", exc.code, exc.message, exc.detail)
        return JSONResponse(status_code=exc.http_status, content=exc.to_dict())

    @app.exception_handler(RequestValidationError)
    async def handle_request_validation(_request: Request, exc: RequestValidationError):
        return JSONResponse(
            status_code=400,
            content={
                "error": "Malformed request body",
                "code": "INVALID_REQUEST",
                "detail": [
                    {"loc": list(err.get("loc", ())), "msg": err.get("msg", "")}
                    for err in exc.errors()
                ],
            },
        )

    @app.exception_handler(Exception)
    async def handle_unexpected_error(_request: Request, exc: Exception):
        logger.exception("Unhandled error", exc_info=exc)
        return JSONResponse(
            status_code=500,
            content={"error": "Internal server error", "code": "INTERNAL"},
        )


def create_app(
    settings: Settings | None = None,
    services: GalleryServices | None = None,
) -> FastAPI:
    """Build the FastAPI application.

    Args:
        settings: Application settings; loaded from the environment if omitted.
        services: Prebuilt services. When omitted they are built from
            ``settings`` at startup and closed at shutdown.
    """
    settings = settings or Settings()

    @asynccontextmanager
    async def lifespan(app: FastAPI) -> AsyncIterator[None]:
        owned = services is None
        app.state.services = services or GalleryServices.from_settings(settings)
        logger.info(
            "Gallery search ready (embeddings=%s, index=%s)",
            settings.embedding_provider,
            settings.vector_backend,
        )
        try:
            yield
        finally:
            if owned:
                await app.state.services.aclose()

    app = FastAPI(title="Gallery Search", version="0.1.0", lifespan=lifespan)
    app.state.settings = settings
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.allowed_origin_list,
        allow_methods=["GET", "POST", "OPTIONS"],
        allow_headers=["Content-Type", "Authorization"],
        max_age=86400,
    )
    register_exception_handlers(app)

    @app.get("/", response_model=HealthResponse)
    @app.get("/health", response_model=HealthResponse)
    async def health() -> HealthResponse:
        return HealthResponse(status="ok", service=SERVICE_NAME)

    @app.post("/search", response_model=list[SearchHit])
    async def search(request: Request, payload: SearchRequest) -> list[SearchHit]:
        results = await _services(request).searcher.search(
            payload.query, payload.limit
        )
        return [SearchHit(**result.to_dict()) for result in results]

    @app.get("/tags", response_model=list[str])
    async def tags(request: Request) -> list[str]:
        return await _services(request).catalog.list_tags()

    @app.get("/images")
    async def images(request: Request) -> list[dict]:
        return await _services(request).catalog.list_images()

    @app.post(
        "/index",
        response_model=IndexResponse,
        dependencies=[Depends(require_admin)],
    )
    async def index_one(request: Request, payload: ImageInput) -> IndexResponse:
        indexed = await _services(request).indexer.index_one(payload.model_dump())
        return IndexResponse(success=True, id=indexed["id"])

    @app.post(
        "/index-batch",
        response_model=IndexBatchResponse,
        dependencies=[Depends(require_admin)],
    )
    async def index_batch(request: Request, payload: IndexBatchRequest):
        raws = (
            [image.model_dump() for image in payload.images]
            if payload.images is not None
            else None
        )
        result = await _services(request).indexer.index_batch(raws)
        body = result.to_dict()
        if not result.success:
            return JSONResponse(status_code=207, content=body)
        return body

    return app
