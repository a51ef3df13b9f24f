# ---------------------------------------------------------------------------
# Author  : Kyle <kyle@hacking-linux.com>
# Version : 20260206v1
# ---------------------------------------------------------------------------
"""
FastAPI application factory.

Responsibilities
----------------
* Build the app from an explicit :class:`Settings` (environment by default).
* Configure logging and hand the logger to every component via ``app.state``.
* Create the DB engine, session factory and token issuer once per app.
* Register CORS, request logging and the JSON error envelope.
* Mount the auth router and expose a /health endpoint.

Run with::

    uvicorn main:create_app --factory --app-dir backend
"""

import logging
import time
from contextlib import asynccontextmanager
from datetime import timedelta
from typing import Optional

from fastapi import FastAPI, Request
from sqlalchemy.engine import Engine
from starlette.middleware.base import BaseHTTPMiddleware
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import Response

from auth.router import router as auth_router
from core.config import Settings, get_settings
from core.error_handling import register_exception_handlers
from core.logger import configure_logging
from core.security import TokenIssuer, get_client_ip
from database import build_engine, make_session_factory


# ---------------------------------------------------------------------------
# Request-logging middleware
# ---------------------------------------------------------------------------
# Logs every inbound request: method, path, client IP (X-Forwarded-For
# aware, same value the sessions and audit rows store), status, latency.
# Sensitive data (login payload, Authorization header) is NOT echoed – only
# the URL and metadata are recorded.


class _RequestLogMiddleware(BaseHTTPMiddleware):
    """Log method, path, client IP, response status and latency (ms)."""

    def __init__(self, app, logger: logging.Logger):
        super().__init__(app)
        self._log = logger

    async def dispatch(self, request: Request, call_next) -> Response:
        start = time.perf_counter()
        response: Response = await call_next(request)
        elapsed_ms = (time.perf_counter() - start) * 1000

        client_ip = get_client_ip(request)

        self._log.info(
            "%s %s | client=%s status=%d latency=%.1fms",
            request.method,
            request.url.path,
            client_ip,
            response.status_code,
            elapsed_ms,
        )
        return response


def create_app(settings: Optional[Settings] = None, engine: Optional[Engine] = None) -> FastAPI:
    """
    Build the application.  *engine* lets callers share an existing engine
    (tests); otherwise one is created from ``settings.database_url`` and
    disposed on shutdown.
    """
    settings = settings or get_settings()
    logger = configure_logging(settings)
    owns_engine = engine is None
    if owns_engine:
        engine = build_engine(settings.database_url)

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        logger.info("Records office auth service starting up")
        yield
        logger.info("Records office auth service shutting down")
        if owns_engine:
            app.state.engine.dispose()

    app = FastAPI(title="Records Office Auth", version="1.0.0", lifespan=lifespan)

    app.state.settings = settings
    app.state.logger = logger
    app.state.engine = engine
    app.state.session_factory = make_session_factory(engine)
    app.state.token_issuer = TokenIssuer(
        settings.secret_key,
        default_ttl=timedelta(minutes=settings.access_token_expire_minutes),
        algorithm=settings.token_algorithm,
        logger=logger.getChild("tokens"),
    )

    # -----------------------------------------------------------------------
    # CORS
    # -----------------------------------------------------------------------
    # Tighten cors_origins to the exact frontend origin before deploying.
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_methods=["GET", "POST", "PUT", "DELETE"],
        allow_headers=["Authorization", "Content-Type"],
    )
    app.add_middleware(_RequestLogMiddleware, logger=logger.getChild("http"))

    register_exception_handlers(app, settings, logger.getChild("errors"))

    app.include_router(auth_router)

    @app.get("/health")
    def health():
        return {"status": "ok"}

    return app
