"""
Pytest configuration for the file manager.

Provides fixtures for:
- Settings pointing at a temporary SQLite database and storage root
- An initialized RecordStore
- A TestClient running the full app lifespan
"""

from __future__ import annotations

import io
import zipfile
from pathlib import Path
from typing import AsyncGenerator, Generator

import pytest
from fastapi.testclient import TestClient

from filemanager.config import Settings
from filemanager.main import create_app
from filemanager.services.file_storage import FileStorageService
from filemanager.services.record_store import RecordStore


@pytest.fixture
def test_settings(tmp_path: Path) -> Settings:
    """Settings isolated to the test's temporary directory."""
    return Settings(
        _env_file=None,
        DATABASE_URL=f"sqlite+aiosqlite:///{tmp_path / 'files.db'}",
        FILE_STORAGE_PATH=str(tmp_path / "uploads"),
        LOG_LEVEL="DEBUG",
    )


@pytest.fixture
async def store(test_settings: Settings) -> AsyncGenerator[RecordStore, None]:
    record_store = RecordStore.from_url(test_settings.DATABASE_URL)
    await record_store.initialize()
    try:
        yield record_store
    finally:
        await record_store.dispose()


@pytest.fixture
def storage(test_settings: Settings) -> FileStorageService:
    file_storage = FileStorageService(test_settings.FILE_STORAGE_PATH)
    file_storage.ensure_root()
    return file_storage


@pytest.fixture
def client(test_settings: Settings) -> Generator[TestClient, None, None]:
    app = create_app(test_settings)
    with TestClient(app) as test_client:
        yield test_client


def build_zip(entries: dict[str, bytes | None]) -> bytes:
    """Zip bytes from a name -> content map. A None content makes a directory entry."""
    buffer = io.BytesIO()
    with zipfile.ZipFile(buffer, "w", compression=zipfile.ZIP_DEFLATED) as bundle:
        for name, content in entries.items():
            if content is None:
                bundle.writestr(zipfile.ZipInfo(name.rstrip("/") + "/"), b"")
            else:
                bundle.writestr(name, content)
    return buffer.getvalue()
