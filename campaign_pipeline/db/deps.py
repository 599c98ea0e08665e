from collections.abc import Iterator

from sqlalchemy.orm import Session

from campaign_pipeline.db.base import SessionLocal


def get_session() -> Iterator[Session]:
    """Request-scoped session; an exception escaping the route discards pending writes."""
    session = SessionLocal()
    try:
        yield session
    except Exception:
        session.rollback()
        raise
    finally:
        session.close()
