"""SQLAlchemy engine and session factory builders."""

from collections.abc import Generator

from fastapi import Request
from sqlalchemy import Engine, create_engine
from sqlalchemy.orm import Session, sessionmaker

from splitledger.core.settings import Settings


def build_engine(settings: Settings) -> Engine:
    """Create the engine for the configured database URL."""

    return create_engine(settings.database_url, pool_pre_ping=True)


def build_session_factory(engine: Engine) -> sessionmaker[Session]:
    """Create the session factory bound to ``engine``."""

    return sessionmaker(
        bind=engine,
        class_=Session,
        autoflush=False,
        autocommit=False,
        expire_on_commit=False,
    )


def get_db_session(request: Request) -> Generator[Session, None, None]:
    """Yield a database session per request lifecycle."""

    session_factory: sessionmaker[Session] = request.app.state.session_factory
    with session_factory() as session:
        yield session
