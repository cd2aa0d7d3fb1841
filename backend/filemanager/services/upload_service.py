"""Single-file upload: write bytes to the storage area, then record metadata."""
import logging
from datetime import datetime, timezone

from fastapi import UploadFile

from filemanager.errors import BadRequest
from filemanager.models import FileRecord
from filemanager.services.file_storage import FileStorageService
from filemanager.services.record_store import RecordStore

logger = logging.getLogger(__name__)

RECORDED_AT_FORMAT = "%Y-%m-%dT%H:%M"


def parse_recorded_at(value: str | None) -> datetime:
    """Parse a form timestamp as UTC. Missing or unparsable values mean now."""
    if value:
        try:
            return datetime.strptime(value, RECORDED_AT_FORMAT).replace(tzinfo=timezone.utc)
        except ValueError:
            logger.warning(f"Ignoring unparsable recorded_at {value!r}, using current time")
    return datetime.now(timezone.utc)


async def handle_upload(
    store: RecordStore,
    storage: FileStorageService,
    file: UploadFile | None,
    name: str | None = None,
    recorded_at: str | None = None,
) -> FileRecord:
    """Persist an uploaded file and create its record.

    The bytes are written before the record is created; a failure in either
    step surfaces as an error and no record is left behind.
    """
    if file is None or not file.filename:
        raise BadRequest("File upload failed")

    contents = await file.read()
    await file.close()
    storage_path = await storage.save(contents, file.filename)

    record = await store.create({
        "name": name or file.filename,
        "path": storage_path,
        "size": file.size if file.size is not None else len(contents),
        "recorded_at": parse_recorded_at(recorded_at),
    })
    logger.info(f"Uploaded {file.filename} as record {record.id} ({record.size} bytes)")
    return record
