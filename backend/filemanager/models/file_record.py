"""FileRecord model - file metadata (actual bytes live in the storage area)."""
from datetime import datetime
from sqlalchemy import BigInteger, DateTime, Integer, String
from sqlalchemy.orm import Mapped, mapped_column
from filemanager.models.base import Base, SoftDeleteMixin, TimestampMixin

# Columns a caller may overwrite through the update endpoint.
MUTABLE_FIELDS = ("name", "path", "size", "recorded_at", "uuid", "duration")

# Largest values the size (BIGINT) and duration (INTEGER) columns hold
MAX_SIZE = 2**63 - 1
MAX_DURATION = 2**31 - 1


class FileRecord(Base, TimestampMixin, SoftDeleteMixin):
    __tablename__ = "files"

    id: Mapped[int] = mapped_column(primary_key=True, autoincrement=True)
    name: Mapped[str] = mapped_column(String(500), nullable=False)
    path: Mapped[str] = mapped_column(String(1000), nullable=False)
    size: Mapped[int] = mapped_column(BigInteger, default=0)
    recorded_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)
    uuid: Mapped[str] = mapped_column(String(100), default="")
    duration: Mapped[int] = mapped_column(Integer, default=0)
