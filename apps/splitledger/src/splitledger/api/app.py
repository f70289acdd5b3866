"""FastAPI app bootstrap for splitledger.

Run with ``uvicorn splitledger.api.app:create_app --factory``.
"""

from __future__ import annotations

import logging
from typing import Annotated

from fastapi import Depends, FastAPI, HTTPException, status
from sqlalchemy import text
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from splitledger import __version__
from splitledger.api.error_handlers import register_error_handlers
from splitledger.api.routes import v1_router
from splitledger.core.settings import Settings, get_settings
from splitledger.db.session import (
    build_engine,
    build_session_factory,
    get_db_session,
)


def create_app(settings: Settings | None = None) -> FastAPI:
    """Create and configure FastAPI application instance."""

    settings = settings or get_settings()
    logging.basicConfig(level=settings.log_level.upper())

    app = FastAPI(
        title="Splitledger API",
        version=__version__,
    )
    app.state.settings = settings
    app.state.session_factory = build_session_factory(build_engine(settings))

    @app.get("/health/live", include_in_schema=False)
    def health_live() -> dict[str, str]:
        return {"status": "alive"}

    @app.get("/health/ready", include_in_schema=False)
    def health_ready(
        db_session: Annotated[Session, Depends(get_db_session)],
    ) -> dict[str, str]:
        try:
            db_session.execute(text("SELECT 1"))
        except SQLAlchemyError as exc:
            raise HTTPException(
                status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
                detail="Database is unavailable",
            ) from exc
        return {"status": "ready"}

    register_error_handlers(app)
    app.include_router(v1_router)
    return app
