from __future__ import annotations
import time
import logging
from typing import Callable
from fastapi import FastAPI, Request, Response
from fastapi.middleware.cors import CORSMiddleware
from starlette.middleware.base import BaseHTTPMiddleware

from .config import CORS_ORIGINS
from .routes import router

logger = logging.getLogger(__name__)

VERSION = "0.3.0"


class LoggingMiddleware(BaseHTTPMiddleware):
    """Middleware to log request and response information."""

    async def dispatch(self, request: Request, call_next: Callable) -> Response:
        start_time = time.time()
        client_ip = request.client.host if request.client else "unknown"

        # CORS preflight, just pass through
        if request.method == "OPTIONS":
            logger.debug(f"OPTIONS request: {request.url.path} from {client_ip}")
            return await call_next(request)

        query_params = dict(request.query_params) if request.query_params else None
        logger.info(
            f"Request: {request.method} {request.url.path} | "
            f"IP: {client_ip} | "
            f"Query: {query_params}"
        )

        response = await call_next(request)

        process_time = time.time() - start_time
        logger.info(
            f"Response: {request.method} {request.url.path} | "
            f"Status: {response.status_code} | "
            f"Time: {process_time:.3f}s"
        )
        return response


def create_app() -> FastAPI:
    app = FastAPI(
        title="skreader",
        description="SEKONIC spectrometer remote control",
        version=VERSION,
    )

    # Request logging middleware (add first so it wraps everything)
    app.add_middleware(LoggingMiddleware)

    app.add_middleware(
        CORSMiddleware,
        allow_origins=CORS_ORIGINS,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    app.include_router(router)
    return app
