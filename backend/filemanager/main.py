"""FastAPI application entry point."""
import logging
from contextlib import asynccontextmanager

import uvicorn
from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from fastapi.staticfiles import StaticFiles

from filemanager.config import Settings, settings as default_settings
from filemanager.errors import FileManagerError, StoreError
from filemanager.routes.files import router as files_router
from filemanager.routes.pages import router as pages_router
from filemanager.services.enrichers import FFProbeDurationEnricher
from filemanager.services.file_storage import FileStorageService
from filemanager.services.import_service import ImportService
from filemanager.services.record_store import RecordStore

logger = logging.getLogger(__name__)


def create_app(settings: Settings | None = None) -> FastAPI:
    """Build the app with its own store and storage area."""
    settings = settings or default_settings

    store = RecordStore.from_url(settings.DATABASE_URL)
    storage = FileStorageService(settings.FILE_STORAGE_PATH, settings.COLLISION_POLICY)
    enrichers = []
    if settings.PROBE_MEDIA_DURATION:
        enrichers.append(FFProbeDurationEnricher(settings.FFPROBE_PATH))
    import_service = ImportService(
        store,
        storage,
        use_manifest=settings.IMPORT_USE_MANIFEST,
        enrichers=enrichers,
    )

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        """Create the storage root and files table on startup, close the engine on shutdown."""
        storage.ensure_root()
        await store.initialize()
        logger.info(f"Storage area at {storage.base_path.resolve()}")
        yield
        await store.dispose()

    app = FastAPI(
        title="File Manager",
        version="1.0.0",
        description="Upload, import and manage recorded media files.",
        lifespan=lifespan,
    )
    app.state.settings = settings
    app.state.store = store
    app.state.storage = storage
    app.state.import_service = import_service

    # CORS
    origins = [o.strip() for o in settings.CORS_ORIGINS.split(",")]
    app.add_middleware(
        CORSMiddleware,
        allow_origins=origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    @app.exception_handler(FileManagerError)
    async def file_manager_error_handler(request: Request, exc: FileManagerError):
        return JSONResponse(status_code=exc.status_code, content={"detail": exc.detail})

    @app.get("/api/health")
    async def health_check():
        """Verify API and database connectivity."""
        try:
            await store.ping()
            return {"status": "ok", "database": "connected"}
        except StoreError as e:
            return {"status": "error", "database": e.detail}

    app.include_router(pages_router)
    app.include_router(files_router)
    app.mount("/uploads", StaticFiles(directory=storage.base_path, check_dir=False), name="uploads")

    return app


app = create_app()


def main():
    """Console entry point: run the app under uvicorn."""
    logging.basicConfig(
        level=default_settings.LOG_LEVEL,
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
    )
    uvicorn.run(app, host=default_settings.API_HOST, port=default_settings.API_PORT)


if __name__ == "__main__":
    main()
