"""Scoped transaction helper for service write paths."""

from __future__ import annotations

from collections.abc import Iterator
from contextlib import contextmanager
from typing import Protocol


class TransactionalSession(Protocol):
    """Subset of SQLAlchemy session APIs needed to end a transaction."""

    def commit(self) -> None: ...

    def rollback(self) -> None: ...


@contextmanager
def atomic(session: TransactionalSession) -> Iterator[None]:
    """Commit when the block finishes, roll back and re-raise on any error."""

    try:
        yield
        session.commit()
    except Exception:
        session.rollback()
        raise
