"""FastAPI application factory with role-based route mounting."""

import os
from typing import Literal

from fastapi import FastAPI, Request, Response

from chatrelay.observability.correlation import CORRELATION_ID_HEADER, bind_correlation_id

from .routers import public, worker

AppRole = Literal["public", "worker"]


def create_app(role: AppRole | None = None) -> FastAPI:
    """Create the relay app.

    Args:
        role: Explicit role override. If None, reads APP_ROLE, defaulting
              to "public". Messenger task routes are mounted only for
              the "worker" role.
    """
    if role is None:
        role = os.environ.get("APP_ROLE", "public")  # type: ignore[assignment]

    app = FastAPI(title="chatrelay", docs_url=None, redoc_url=None)

    @app.middleware("http")
    async def correlation_id_middleware(request: Request, call_next) -> Response:
        with bind_correlation_id(request.headers.get(CORRELATION_ID_HEADER)) as cid:
            response = await call_next(request)
            response.headers[CORRELATION_ID_HEADER] = cid
            return response

    app.include_router(public.router)

    if role == "worker":
        app.include_router(worker.router)

    return app
