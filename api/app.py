"""FastAPI application for bubbles."""

import logging
import sqlite3
from typing import Any

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from api.deps import set_config, set_db_path
from api.routes import router

logger = logging.getLogger(__name__)


def create_app(db_path: str, config: dict[str, Any] | None = None) -> FastAPI:
    """Create and configure the FastAPI application.

    Args:
        db_path: Path to the SQLite database.
        config: Full bubbles config dict. Renderer settings fall back to
                the defaults when omitted.
    """
    set_db_path(db_path)
    set_config(config)

    app = FastAPI(title="bubbles")

    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    @app.exception_handler(sqlite3.Error)
    async def store_error_handler(request: Request, exc: sqlite3.Error) -> JSONResponse:
        logger.error(
            "Store error on %s %s", request.method, request.url.path, exc_info=exc
        )
        return JSONResponse(status_code=500, content={"detail": f"store error: {exc}"})

    app.include_router(router)

    return app
