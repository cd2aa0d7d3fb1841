"""Record store - CRUD over the files table with soft delete.

The store owns its engine and session factory and is constructed once per
application (see ``filemanager.main.create_app``). Each operation runs in its
own session; sequences of calls are not wrapped in a larger transaction.
"""
import logging
from datetime import datetime, timezone
from typing import Any, List

from sqlalchemy import select, text
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncEngine

from filemanager.database import build_engine, build_session_factory
from filemanager.errors import NotFound, StoreError
from filemanager.models import Base, FileRecord
from filemanager.models.file_record import MUTABLE_FIELDS

logger = logging.getLogger(__name__)

# Drivers raise OverflowError directly for integers the column type cannot hold
_DB_ERRORS = (SQLAlchemyError, OverflowError)


def _normalize(fields: dict[str, Any]) -> dict[str, Any]:
    """Convert aware datetimes to UTC. Columns keep UTC wall time without an offset."""
    return {
        key: value.astimezone(timezone.utc) if isinstance(value, datetime) and value.tzinfo else value
        for key, value in fields.items()
    }


class RecordStore:
    """Persists FileRecord rows. Deleted rows stay in the table but are never returned."""

    def __init__(self, engine: AsyncEngine):
        self.engine = engine
        self.session_factory = build_session_factory(engine)

    @classmethod
    def from_url(cls, database_url: str) -> "RecordStore":
        return cls(build_engine(database_url))

    async def initialize(self) -> None:
        """Create the files table if missing. Safe to call on every startup."""
        try:
            async with self.engine.begin() as conn:
                await conn.run_sync(Base.metadata.create_all)
        except _DB_ERRORS as e:
            logger.error(f"Schema initialization failed: {e}")
            raise StoreError(str(e)) from e

    async def dispose(self) -> None:
        await self.engine.dispose()

    async def ping(self) -> None:
        try:
            async with self.session_factory() as session:
                await session.execute(text("SELECT 1"))
        except _DB_ERRORS as e:
            raise StoreError(str(e)) from e

    async def create(self, fields: dict[str, Any]) -> FileRecord:
        """Insert a record and return it with its assigned id."""
        record = FileRecord(**_normalize(fields))
        try:
            async with self.session_factory() as session:
                session.add(record)
                await session.commit()
                await session.refresh(record)
        except _DB_ERRORS as e:
            logger.error(f"Failed to create record for {fields.get('path')}: {e}")
            raise StoreError(str(e)) from e
        return record

    async def get(self, record_id: int) -> FileRecord:
        try:
            async with self.session_factory() as session:
                record = await self._get_active(session, record_id)
        except _DB_ERRORS as e:
            raise StoreError(str(e)) from e
        if record is None:
            raise NotFound("File not found")
        return record

    async def list(self) -> List[FileRecord]:
        """All active records, ordered by id."""
        try:
            async with self.session_factory() as session:
                result = await session.execute(
                    select(FileRecord)
                    .where(FileRecord.deleted_at.is_(None))
                    .order_by(FileRecord.id)
                )
                return list(result.scalars().all())
        except _DB_ERRORS as e:
            raise StoreError(str(e)) from e

    async def update(self, record_id: int, fields: dict[str, Any]) -> FileRecord:
        """Overwrite the given mutable fields. Other keys are ignored."""
        try:
            async with self.session_factory() as session:
                record = await self._get_active(session, record_id)
                if record is None:
                    raise NotFound("File not found")
                for key, value in _normalize(fields).items():
                    if key in MUTABLE_FIELDS:
                        setattr(record, key, value)
                await session.commit()
                await session.refresh(record)
        except _DB_ERRORS as e:
            logger.error(f"Failed to update record {record_id}: {e}")
            raise StoreError(str(e)) from e
        return record

    async def delete(self, record_id: int) -> None:
        """Soft delete: mark the row, keep it in the table."""
        try:
            async with self.session_factory() as session:
                record = await self._get_active(session, record_id)
                if record is None:
                    raise NotFound("File not found")
                record.deleted_at = datetime.now(timezone.utc)
                await session.commit()
        except _DB_ERRORS as e:
            logger.error(f"Failed to delete record {record_id}: {e}")
            raise StoreError(str(e)) from e

    @staticmethod
    async def _get_active(session, record_id: int) -> FileRecord | None:
        result = await session.execute(
            select(FileRecord).where(
                FileRecord.id == record_id,
                FileRecord.deleted_at.is_(None),
            )
        )
        return result.scalar_one_or_none()
