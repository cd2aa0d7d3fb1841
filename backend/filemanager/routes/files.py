"""Files routes: listing, upload, archive import and per-record CRUD."""
import logging
from typing import Optional

from fastapi import APIRouter, Depends, File, Form, Request, UploadFile
from fastapi.responses import HTMLResponse, RedirectResponse
from pydantic import ValidationError

from filemanager.dependencies import get_import_service, get_storage, get_store
from filemanager.errors import BadRequest, NotFound
from filemanager.models import FileRecord
from filemanager.schemas.file import DeleteResponse, FileResponse, FileUpdate
from filemanager.services.file_storage import FileStorageService
from filemanager.services.import_service import ImportService
from filemanager.services.record_store import RecordStore
from filemanager.services.upload_service import handle_upload
from filemanager.views import load_template, render_file_list

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/files", tags=["files"])


@router.get("", response_model=None)
async def list_files(
    request: Request,
    store: RecordStore = Depends(get_store),
    storage: FileStorageService = Depends(get_storage),
):
    """List active files. HTML unless the client asks for JSON."""
    files = await store.list()
    if _wants_json(request):
        return [_to_response(f) for f in files]
    return HTMLResponse(render_file_list(files, storage))


@router.post("")
async def create_file(
    file: Optional[UploadFile] = File(None),
    name: Optional[str] = Form(None),
    recorded_at: Optional[str] = Form(None),
    store: RecordStore = Depends(get_store),
    storage: FileStorageService = Depends(get_storage),
):
    """Upload a single file and create its record."""
    await handle_upload(store, storage, file, name=name, recorded_at=recorded_at)
    return RedirectResponse("/files", status_code=302)


@router.get("/new", response_class=HTMLResponse)
async def new_file_form():
    return HTMLResponse(load_template("new.html"))


@router.get("/import", response_class=HTMLResponse)
async def import_form():
    return HTMLResponse(load_template("import.html"))


@router.post("/import")
async def import_files(
    file: Optional[UploadFile] = File(None),
    importer: ImportService = Depends(get_import_service),
):
    """Extract a zip archive and create one record per file. Failed entries are skipped."""
    await importer.import_upload(file)
    return RedirectResponse("/files", status_code=302)


@router.get("/{file_id}", response_model=FileResponse)
async def get_file(
    file_id: str,
    store: RecordStore = Depends(get_store),
):
    """Get file metadata by ID."""
    record = await store.get(_parse_id(file_id))
    return _to_response(record)


@router.put("/{file_id}", response_model=FileResponse)
async def update_file(
    file_id: str,
    request: Request,
    store: RecordStore = Depends(get_store),
):
    """Replace a file's metadata with the values in the JSON body."""
    record_id = _parse_id(file_id)
    try:
        body = FileUpdate.model_validate_json(await request.body())
    except ValidationError as e:
        raise BadRequest(f"Invalid file body: {e.errors(include_url=False)}") from e

    update_data = body.model_dump(exclude_unset=True)
    if update_data.get("recorded_at") is None:
        update_data.pop("recorded_at", None)

    record = await store.update(record_id, update_data)
    logger.info(f"Updated record {record_id}")
    return _to_response(record)


@router.delete("/{file_id}", response_model=DeleteResponse)
async def delete_file(
    file_id: str,
    store: RecordStore = Depends(get_store),
):
    """Soft-delete a file record. The bytes stay in the storage area."""
    record_id = _parse_id(file_id)
    await store.delete(record_id)
    logger.info(f"Deleted record {record_id}")
    return {"message": "File deleted"}


def _parse_id(file_id: str) -> int:
    try:
        return int(file_id)
    except ValueError:
        raise NotFound("File not found") from None


def _wants_json(request: Request) -> bool:
    accept = request.headers.get("accept", "")
    return "application/json" in accept and "text/html" not in accept


def _to_response(record: FileRecord) -> dict:
    """Convert SQLAlchemy model to response dict."""
    return {
        "id": record.id,
        "name": record.name,
        "path": record.path,
        "size": record.size,
        "recorded_at": record.recorded_at,
        "uuid": record.uuid,
        "duration": record.duration,
        "created_at": record.created_at,
        "updated_at": record.updated_at,
    }
