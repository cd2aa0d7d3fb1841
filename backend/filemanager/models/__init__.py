"""Import all models so SQLAlchemy metadata knows about them."""
from filemanager.models.base import Base
from filemanager.models.file_record import FileRecord

__all__ = ["Base", "FileRecord"]
