"""SQLite-backed registrations of vector database hosts and credentials."""

from __future__ import annotations

import json
from contextlib import contextmanager
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any, Dict, Iterator, Optional

from sqlalchemy import DateTime, String, Text, create_engine, select
from sqlalchemy.exc import MultipleResultsFound
from sqlalchemy.orm import DeclarativeBase, Mapped, Session, mapped_column, sessionmaker

from tether.errors import MultipleFoundError
from tether.vectordb.utils import record_vectordb_event


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class Base(DeclarativeBase):
    pass


class RegistrationRow(Base):
    __tablename__ = "vectordb_registrations"

    product: Mapped[str] = mapped_column(String, primary_key=True)
    host: Mapped[Optional[str]] = mapped_column(String, nullable=True)
    credentials: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    mapping: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    updated_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=_utcnow)


@dataclass(slots=True)
class RegistrationRecord:
    """Host, credentials and default mapping stored for one product."""

    product: str
    host: Optional[str]
    credentials: Any = None
    mapping: Dict[str, Any] = field(default_factory=dict)


class RegistrationStore:
    """
    One registration per vector database product.

    ``put`` always overwrites the row for a product, so at most one record
    exists per key.
    """

    def __init__(self, database_url: str) -> None:
        self._engine = create_engine(database_url, future=True)
        self._session_factory = sessionmaker(self._engine, expire_on_commit=False)
        Base.metadata.create_all(self._engine)

    @contextmanager
    def session(self) -> Iterator[Session]:
        session = self._session_factory()
        try:
            yield session
            session.commit()
        except Exception:
            session.rollback()
            raise
        finally:
            session.close()

    def get(self, product: str) -> Optional[RegistrationRecord]:
        stmt = select(RegistrationRow).where(RegistrationRow.product == product.lower())
        with self.session() as session:
            try:
                row = session.execute(stmt).scalar_one_or_none()
            except MultipleResultsFound as exc:
                raise MultipleFoundError(
                    f"Multiple registrations found for {product}"
                ) from exc
            return self._from_row(row) if row is not None else None

    def put(
        self,
        product: str,
        host: Optional[str],
        credentials: Any = None,
        mapping: Optional[Dict[str, Any]] = None,
    ) -> RegistrationRecord:
        """Create or overwrite the registration for ``product``."""
        key = product.lower()
        with self.session() as session:
            session.merge(
                RegistrationRow(
                    product=key,
                    host=host,
                    credentials=json.dumps(credentials) if credentials is not None else None,
                    mapping=json.dumps(mapping or {}),
                    updated_at=_utcnow(),
                )
            )
        record_vectordb_event("registration.stored", {"product": key, "host": host})
        return RegistrationRecord(
            product=key,
            host=host,
            credentials=credentials,
            mapping=dict(mapping or {}),
        )

    def close(self) -> None:
        self._engine.dispose()

    @staticmethod
    def _from_row(row: RegistrationRow) -> RegistrationRecord:
        return RegistrationRecord(
            product=row.product,
            host=row.host,
            credentials=json.loads(row.credentials) if row.credentials else None,
            mapping=json.loads(row.mapping) if row.mapping else {},
        )
