"""Bulk import from a zip archive.

The uploaded archive is written to a temporary directory, then every regular
entry is extracted into the storage area and gets its own record. The batch
is best-effort: an entry that fails to extract or to be recorded is counted
in the result and the rest of the archive is still processed.
"""
import asyncio
import logging
import shutil
import zipfile
import zlib
from dataclasses import dataclass, field
from datetime import datetime, timezone
from pathlib import Path
from tempfile import TemporaryDirectory

import aiofiles
from fastapi import UploadFile

from filemanager.errors import BadRequest, Conflict, InternalError, StoreError
from filemanager.services.enrichers import MANIFEST_NAME, Enricher, ManifestEnricher
from filemanager.services.file_storage import FileStorageService
from filemanager.services.record_store import RecordStore

logger = logging.getLogger(__name__)

# Failures that skip a single entry instead of aborting the import
_ENTRY_ERRORS = (
    OSError,
    EOFError,
    RuntimeError,
    NotImplementedError,
    zipfile.BadZipFile,
    zlib.error,
    BadRequest,
    Conflict,
)
_ENRICH_ERRORS = (OSError, ValueError, RuntimeError, OverflowError)


@dataclass
class ImportResult:
    created: list[int] = field(default_factory=list)
    skipped: list[str] = field(default_factory=list)
    failed: list[tuple[str, str]] = field(default_factory=list)

    @property
    def succeeded(self) -> int:
        return len(self.created)

    @property
    def failed_count(self) -> int:
        return len(self.failed)


class ImportService:
    """Extracts archives into the storage area and records each file."""

    def __init__(
        self,
        store: RecordStore,
        storage: FileStorageService,
        use_manifest: bool = False,
        enrichers: list[Enricher] | None = None,
    ):
        self.store = store
        self.storage = storage
        self.use_manifest = use_manifest
        self.enrichers = list(enrichers or [])

    async def import_upload(self, file: UploadFile | None) -> ImportResult:
        if file is None or not file.filename:
            raise BadRequest("File upload failed")

        contents = await file.read()
        await file.close()

        with TemporaryDirectory(prefix="import_") as temp_dir:
            archive_path = Path(temp_dir) / "upload.zip"
            try:
                async with aiofiles.open(archive_path, "wb") as f:
                    await f.write(contents)
            except OSError as e:
                raise InternalError(str(e)) from e
            return await self.import_archive(archive_path)

    async def import_archive(self, archive_path: Path) -> ImportResult:
        try:
            archive = zipfile.ZipFile(archive_path)
        except (zipfile.BadZipFile, OSError) as e:
            raise BadRequest("Invalid ZIP file") from e

        result = ImportResult()
        with archive:
            enrichers = self._enrichers_for(archive)
            for info in archive.infolist():
                if info.is_dir() or info.filename == MANIFEST_NAME:
                    result.skipped.append(info.filename)
                    continue

                try:
                    dest = await asyncio.to_thread(self._extract, archive, info)
                except _ENTRY_ERRORS as e:
                    reason = getattr(e, "detail", None) or str(e)
                    logger.warning(f"Skipping archive entry {info.filename}: {reason}")
                    result.failed.append((info.filename, reason))
                    continue

                fields = {
                    "name": info.filename,
                    "path": str(dest),
                    "size": info.file_size,
                    "recorded_at": datetime.now(timezone.utc),
                    "uuid": "",
                    "duration": 0,
                }
                for enricher in enrichers:
                    try:
                        await enricher.enrich(info.filename, dest, fields)
                    except _ENRICH_ERRORS as e:
                        logger.warning(f"{type(enricher).__name__} failed for {info.filename}: {e}")

                try:
                    record = await self.store.create(fields)
                except StoreError as e:
                    logger.warning(f"Could not record archive entry {info.filename}: {e.detail}")
                    result.failed.append((info.filename, e.detail))
                    continue
                result.created.append(record.id)

        logger.info(
            f"Imported {archive_path.name}: {result.succeeded} created, "
            f"{result.failed_count} failed, {len(result.skipped)} skipped"
        )
        return result

    def _enrichers_for(self, archive: zipfile.ZipFile) -> list[Enricher]:
        enrichers: list[Enricher] = []
        if self.use_manifest:
            manifest = ManifestEnricher.from_archive(archive)
            if manifest is not None:
                enrichers.append(manifest)
        return enrichers + self.enrichers

    def _extract(self, archive: zipfile.ZipFile, info: zipfile.ZipInfo) -> Path:
        dest = self.storage.prepare(info.filename)
        with archive.open(info) as src, open(dest, "wb") as out:
            shutil.copyfileobj(src, out)
        return dest
