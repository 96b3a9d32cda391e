"""SQLAlchemy unit of work and engine/session wiring."""

from __future__ import annotations

from pathlib import Path

from sqlalchemy import create_engine
from sqlalchemy.engine import Engine, make_url
from sqlalchemy.orm import Session, sessionmaker

from ims.domain.repository.unit_of_work import UnitOfWork
from ims.infrastructure.persistence.orm import Base
from ims.infrastructure.persistence.sqlalchemy_repositories import (
    SqlAlchemyInventoryRepository,
    SqlAlchemyMovementRepository,
    SqlAlchemyReservationRepository,
)


def create_session_factory(database_url: str, echo: bool = False) -> sessionmaker[Session]:
    """Build an engine for ``database_url`` and make sure the tables exist."""
    url = make_url(database_url)
    connect_args = {}
    if url.get_backend_name() == "sqlite":
        connect_args["check_same_thread"] = False
        if url.database and url.database != ":memory:":
            Path(url.database).parent.mkdir(parents=True, exist_ok=True)
    engine = create_engine(url, echo=echo, connect_args=connect_args)
    init_schema(engine)
    return sessionmaker(bind=engine, expire_on_commit=False, autoflush=False)


def init_schema(engine: Engine) -> None:
    Base.metadata.create_all(engine)


class SqlAlchemyUnitOfWork(UnitOfWork):
    """One Session, one transaction.

    ``commit()`` or nothing: leaving the ``with`` block rolls back whatever
    was not committed and closes the session, releasing any row locks.
    """

    def __init__(self, session_factory: sessionmaker[Session]) -> None:
        self._session_factory = session_factory
        self._session: Session | None = None

    def __enter__(self) -> SqlAlchemyUnitOfWork:
        self._session = self._session_factory()
        self.inventory = SqlAlchemyInventoryRepository(self._session)
        self.movements = SqlAlchemyMovementRepository(self._session)
        self.reservations = SqlAlchemyReservationRepository(self._session)
        return self

    def __exit__(self, *exc_info: object) -> None:
        try:
            self.rollback()
        finally:
            if self._session is not None:
                self._session.close()
                self._session = None

    def commit(self) -> None:
        self._require_session().commit()

    def rollback(self) -> None:
        if self._session is not None:
            self._session.rollback()

    def _require_session(self) -> Session:
        if self._session is None:
            raise RuntimeError("Unit of work used outside of a 'with' block")
        return self._session
