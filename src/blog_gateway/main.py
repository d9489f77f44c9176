"""Main entry point for the blog gateway."""

from __future__ import annotations

from collections.abc import Awaitable, Callable

from fastapi import FastAPI, Request, Response
from fastapi.middleware.cors import CORSMiddleware
from fastapi.middleware.gzip import GZipMiddleware

from blog_gateway.api import (
    admin_router,
    media_router,
    posts_router,
    system_router,
    walls_router,
)
from blog_gateway.api.dependencies import get_blob_service, get_cache_store, get_session_store
from blog_gateway.core.errors import register_exception_handlers
from blog_gateway.core.settings import settings

SECURITY_HEADERS = {
    "X-Content-Type-Options": "nosniff",
    "X-Frame-Options": "DENY",
    "Referrer-Policy": "strict-origin-when-cross-origin",
}

# Initialize FastAPI app
app = FastAPI(
    title=settings.app_name,
    description="Multi-tenant blog with role-gated writes and moderated comments",
    version=settings.app_version,
)

# Add CORS middleware
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins,
    allow_credentials=settings.cors_allow_credentials,
    allow_methods=settings.cors_allow_methods,
    allow_headers=settings.cors_allow_headers,
)

# Add GZip middleware for compression
app.add_middleware(GZipMiddleware)


@app.middleware("http")
async def add_security_headers(
    request: Request,
    call_next: Callable[[Request], Awaitable[Response]],
) -> Response:
    response = await call_next(request)
    for name, value in SECURITY_HEADERS.items():
        response.headers.setdefault(name, value)
    return response


register_exception_handlers(app)

# Include API routers
app.include_router(system_router)
app.include_router(posts_router)
app.include_router(walls_router)
app.include_router(media_router)
app.include_router(admin_router)


@app.on_event("shutdown")
async def on_shutdown() -> None:
    for provider in (get_session_store, get_cache_store, get_blob_service):
        if provider.cache_info().currsize == 0:
            continue
        client = provider()
        close = getattr(client, "close", None)
        if close is not None:
            await close()
        provider.cache_clear()


if __name__ == "__main__":
    import uvicorn
    uvicorn.run("blog_gateway.main:app", host="0.0.0.0", port=8000, reload=settings.debug)
