from __future__ import annotations

from typing import Generator

from sqlalchemy import create_engine
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import Session, sessionmaker, declarative_base

from .config import settings
from .exceptions import ConflictError, InternalError
from .logging import get_logger

logger = get_logger(__name__)

engine_kwargs = {}
if settings.DB_URL.startswith("sqlite"):
    engine_kwargs["connect_args"] = {"check_same_thread": False}

engine = create_engine(settings.DB_URL, **engine_kwargs)
SessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)
Base = declarative_base()


def get_db() -> Generator:
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()


def commit(db: Session, conflict_message: str = "Record already exists") -> None:
    """Commit the session, translating driver errors into the error taxonomy.

    A uniqueness violation becomes a ``ConflictError`` carrying
    ``conflict_message``; any other storage failure becomes ``InternalError``.
    """
    try:
        db.commit()
    except IntegrityError:
        db.rollback()
        raise ConflictError(conflict_message)
    except SQLAlchemyError:
        db.rollback()
        logger.exception("Database commit failed")
        raise InternalError("Internal server error")
