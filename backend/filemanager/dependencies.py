"""FastAPI dependencies that hand routes the objects built in create_app."""
from fastapi import Request

from filemanager.services.file_storage import FileStorageService
from filemanager.services.import_service import ImportService
from filemanager.services.record_store import RecordStore


def get_store(request: Request) -> RecordStore:
    return request.app.state.store


def get_storage(request: Request) -> FileStorageService:
    return request.app.state.storage


def get_import_service(request: Request) -> ImportService:
    return request.app.state.import_service
