"""HTTP API — upload a workbook, fetch or clear the current analysis."""

from __future__ import annotations

import logging
from typing import Any

from fastapi import FastAPI, File, Request, UploadFile
from fastapi.responses import JSONResponse
from starlette.concurrency import run_in_threadpool

from takedown_insights import __version__
from takedown_insights.config import Settings
from takedown_insights.errors import (
    AnalysisNotFoundError,
    MissingFileError,
    UploadValidationError,
    WorkbookParseError,
)
from takedown_insights.service import (
    clear_analysis,
    fetch_analysis,
    process_upload,
    validate_upload,
)
from takedown_insights.store import AnalysisStore, default_store

logger = logging.getLogger(__name__)


def create_app(store: AnalysisStore | None = None, settings: Settings | None = None) -> FastAPI:
    """Build the API around *store* (the process-wide store by default)."""
    store = store if store is not None else default_store
    settings = settings or Settings()

    app = FastAPI(title="takedown-insights", version=__version__)
    app.state.store = store
    app.state.settings = settings

    @app.exception_handler(UploadValidationError)
    async def _validation_error(_request: Request, exc: UploadValidationError) -> JSONResponse:
        return JSONResponse(status_code=400, content={"message": str(exc)})

    @app.exception_handler(AnalysisNotFoundError)
    async def _not_found(_request: Request, exc: AnalysisNotFoundError) -> JSONResponse:
        return JSONResponse(status_code=404, content={"message": str(exc)})

    @app.exception_handler(WorkbookParseError)
    async def _parse_error(_request: Request, exc: WorkbookParseError) -> JSONResponse:
        logger.error("Error processing file: %s", exc)
        return JSONResponse(status_code=500, content={"message": str(exc) or "Error processing file"})

    @app.post("/api/upload")
    async def upload(file: UploadFile | None = File(None)) -> dict[str, Any]:
        if file is None:
            raise MissingFileError("No file uploaded")

        # Reject on the declared size before buffering the body.
        if file.size is not None:
            validate_upload(file.filename, file.content_type, file.size, settings)

        data = await file.read()
        summary = await run_in_threadpool(
            process_upload, file.filename, file.content_type, data, store, settings
        )
        return {
            "success": True,
            "message": "File processed successfully",
            "summary": summary.to_dict(),
        }

    @app.get("/api/workbook")
    def get_workbook() -> dict[str, Any]:
        return fetch_analysis(store).to_dict()

    @app.delete("/api/workbook")
    def delete_workbook() -> dict[str, Any]:
        clear_analysis(store)
        return {"success": True, "message": "Workbook data cleared"}

    return app
