"""Shared FastAPI dependencies: per-request DB session and app state accessors."""

from collections.abc import Generator

from fastapi import Depends, Request
from sqlalchemy.orm import Session

from job_ingest.config import AppConfig
from job_ingest.matching.dispatch import MatchingDispatcher
from job_ingest.models import User


def get_db(request: Request) -> Generator[Session, None, None]:
    db = request.app.state.session_factory()
    try:
        yield db
    finally:
        db.close()


def get_config(request: Request) -> AppConfig:
    return request.app.state.config


def get_dispatcher(request: Request) -> MatchingDispatcher | None:
    return request.app.state.dispatcher


def get_current_user(request: Request, db: Session = Depends(get_db)) -> User | None:
    """Return the logged-in User or None (reads session cookie)."""
    user_id = request.session.get("user_id")
    if user_id is None:
        return None
    return db.query(User).filter(User.id == user_id, User.is_active.is_(True)).first()
