"""FastAPI application serving the recordings directory.

Routes
------
``GET /api/health``                    liveness probe
``POST /api/upload``                   store one recording (multipart field ``audio``)
``GET /api/recordings/{student_id}``   list a student's recordings
``DELETE /api/recordings/{filename}``  delete one recording (idempotent)

Every error answers ``{"status": "error", "message": ...}``; unknown routes
answer 404 and unexpected failures a generic 500 without internals.
"""

from typing import Optional

from fastapi import FastAPI, File, Request, UploadFile
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from loguru import logger
from starlette.exceptions import HTTPException as StarletteHTTPException

from voice_collector.core.config import AppConfig
from voice_collector.core.errors import NoFileUploaded, RecorderError
from voice_collector.core.storage import RecordingsDirectory

HEALTHY_STATUS = "Server is running"


def _error(status_code: int, message: str) -> JSONResponse:
    return JSONResponse(status_code=status_code, content={"status": "error", "message": message})


def create_app(
    config: Optional[AppConfig] = None,
    directory: Optional[RecordingsDirectory] = None,
) -> FastAPI:
    """Build the application around a recordings directory.

    Args:
        config: Source of ``upload_dir`` and ``max_file_size`` when *directory* is not given
        directory: Pre-built store, mainly for tests
    """
    if directory is None:
        config = config or AppConfig()
        directory = RecordingsDirectory(
            storage_dir=str(config.get_upload_dir()),
            max_file_size=int(config.get("max_file_size")),
        )

    app = FastAPI(
        title="voice-collector",
        description="Stores spoken letter and command samples recorded by students",
        version="1.0.0",
    )
    app.state.directory = directory

    # ------------------------------------------------------------------
    # Error handlers
    # ------------------------------------------------------------------

    @app.exception_handler(RecorderError)
    async def recorder_error_handler(request: Request, exc: RecorderError) -> JSONResponse:
        logger.warning(f"{request.method} {request.url.path} rejected: {exc.message}")
        return _error(exc.status_code, exc.message)

    @app.exception_handler(StarletteHTTPException)
    async def http_error_handler(request: Request, exc: StarletteHTTPException) -> JSONResponse:
        if exc.status_code in (404, 405):
            return _error(404, f"Can't find {request.url.path} on this server!")
        return _error(exc.status_code, str(exc.detail))

    @app.exception_handler(RequestValidationError)
    async def validation_error_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
        logger.warning(f"{request.method} {request.url.path} malformed: {exc.errors()}")
        return _error(400, "Malformed request.")

    @app.exception_handler(Exception)
    async def unhandled_error_handler(request: Request, exc: Exception) -> JSONResponse:
        logger.opt(exception=exc).error(f"ERROR while handling {request.method} {request.url.path}")
        return _error(500, "Something went wrong!")

    # ------------------------------------------------------------------
    # Routes
    # ------------------------------------------------------------------

    @app.get("/api/health")
    async def health() -> dict:
        return {"status": HEALTHY_STATUS}

    @app.post("/api/upload")
    async def upload(audio: Optional[UploadFile] = File(None)) -> dict:
        """Validate and store one uploaded recording."""
        if audio is None:
            raise NoFileUploaded()

        store: RecordingsDirectory = app.state.directory
        store.check_upload(audio.filename, audio.content_type)
        data = await audio.read(store.max_file_size + 1)
        store.store(audio.filename, data, audio.content_type)

        return {
            "status": "success",
            "message": "File uploaded successfully",
            "data": {"filename": audio.filename, "size": len(data)},
        }

    @app.get("/api/recordings/{student_id}")
    async def list_recordings(student_id: str) -> JSONResponse:
        store: RecordingsDirectory = app.state.directory
        try:
            recordings = store.list(student_id)
        except OSError as e:
            logger.error(f"Cannot read recordings directory {store.storage_dir}: {e}")
            return _error(500, "Cannot read recordings directory.")
        return JSONResponse({"status": "success", "data": {"recordings": recordings}})

    @app.delete("/api/recordings/{filename}")
    async def delete_recording(filename: str) -> JSONResponse:
        store: RecordingsDirectory = app.state.directory
        try:
            store.delete(filename)
        except OSError as e:
            logger.error(f"Error deleting file {filename}: {e}")
            return _error(500, "Error deleting file.")
        return JSONResponse({"status": "success", "message": "File deleted."})

    return app
