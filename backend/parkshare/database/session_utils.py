"""Dialect lookup for repositories that need backend-specific SQL."""

from __future__ import annotations

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session


def get_dialect_name(session: Session, default: str = "sqlite") -> str:
    """Name of the dialect the session is bound to, or ``default`` when unbound."""
    try:
        bind = session.get_bind()
    except SQLAlchemyError:
        return default
    dialect = getattr(bind, "dialect", None)
    return getattr(dialect, "name", None) or default
