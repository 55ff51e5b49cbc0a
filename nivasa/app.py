# nivasa/app.py
from __future__ import annotations

import time
from datetime import datetime, timezone

from fastapi import Depends, FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from sqlalchemy import text
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from .config import settings
from .db import Base, engine, get_db
from .errors import register_error_handlers
from .logging import get_logger, setup_logging

from .routers import auth as auth_router
from .routers import complaints as complaints_router
from .routers import maintenance as maintenance_router
from .routers import technicians as technicians_router

# Import models so SQLAlchemy registers them
from . import models  # noqa: F401

logger = get_logger(__name__)


def create_app() -> FastAPI:
    setup_logging(settings.LOG_LEVEL, settings.LOG_FORMAT)

    app = FastAPI(title="Nivasa Apartment Management API", version="0.1.0")

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    @app.middleware("http")
    async def log_requests(request: Request, call_next):
        started = time.perf_counter()
        response = await call_next(request)
        duration_ms = round((time.perf_counter() - started) * 1000, 1)
        logger.info(
            "%s %s -> %s",
            request.method,
            request.url.path,
            response.status_code,
            extra={
                "fields": {
                    "method": request.method,
                    "path": request.url.path,
                    "status": response.status_code,
                    "durationMs": duration_ms,
                }
            },
        )
        return response

    register_error_handlers(app)

    # Ensure DB tables exist after models are imported
    Base.metadata.create_all(bind=engine)

    # --- Routers ---
    app.include_router(auth_router.router)
    app.include_router(complaints_router.router)
    app.include_router(maintenance_router.router)
    app.include_router(technicians_router.router)

    @app.get("/api/health")
    def health(db: Session = Depends(get_db)):
        db_status = "connected"
        try:
            db.execute(text("SELECT 1"))
        except SQLAlchemyError:
            logger.exception("Health check could not reach the database")
            db_status = "disconnected"
        return {
            "status": "ok",
            "timestamp": datetime.now(timezone.utc).isoformat(),
            "database": db_status,
        }

    return app


app = create_app()
