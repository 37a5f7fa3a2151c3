"""
HTTP endpoints for the receipt capture front end.

POST /api/ocr     image data URL → extracted receipt JSON
POST /api/sheets  confirmed receipt JSON → rows appended to the sheet
GET  /health
"""
from __future__ import annotations

import asyncio
import logging
from typing import Any

from fastapi import Body, FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from pydantic import BaseModel

from .config import AppConfig, load_config
from .errors import (
    ConfigurationError,
    InputError,
    MalformedResponseError,
    PersistenceError,
    ReceiptPipelineError,
    SchemaViolationError,
    user_message_for,
)
from .image import ImagePreprocessor
from .models import RawImage
from .normalize import parse_completion
from .sheets import SheetAppender
from .validator import validate_receipt
from .vision import VisionBackend, create_backend

logger = logging.getLogger(__name__)


class OcrRequest(BaseModel):
    image: str = ""


def _error(status: int, message: str, details: str | None = None) -> JSONResponse:
    body: dict[str, Any] = {"error": message}
    if details:
        body["details"] = details
    return JSONResponse(status_code=status, content=body)


def create_app(
    config: AppConfig | None = None,
    backend: VisionBackend | None = None,
    appender: SheetAppender | None = None,
    preprocessor: ImagePreprocessor | None = None,
) -> FastAPI:
    """Build the application with explicitly constructed collaborators."""
    config = config or load_config()
    preprocessor = preprocessor or ImagePreprocessor()
    appender = appender or SheetAppender.from_config(config)

    app = FastAPI(
        title="Receipt Sheets",
        description="Receipt photo → structured extraction → spreadsheet rows",
        version="0.1.0",
    )
    app.add_middleware(
        CORSMiddleware,
        allow_origins=config.server.cors_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    @app.exception_handler(RequestValidationError)
    async def request_validation_error(request: Request, exc: RequestValidationError):
        # Unparseable or mistyped bodies keep the {"error": ...} shape
        logger.warning("Rejected request to %s: %s", request.url.path, exc.errors())
        if request.url.path == "/api/sheets":
            return _error(400, "Invalid receipt data", details="request body is not valid JSON")
        return _error(400, "No image provided")

    @app.get("/health")
    async def health_check():
        return {"status": "healthy"}

    # ── POST /api/ocr ────────────────────────────────────────────────────
    @app.post("/api/ocr")
    async def ocr(req: OcrRequest):
        if not req.image or not req.image.strip():
            return _error(400, "No image provided")

        try:
            vision = backend or create_backend(config)
            raw = RawImage.from_data_url(req.image)
            image = await asyncio.to_thread(preprocessor.normalize, raw)
            completion = await vision.extract(image)
            record = validate_receipt(parse_completion(completion))
        except InputError as e:
            logger.warning("Rejected image: %s", e)
            return _error(400, e.user_message)
        except ConfigurationError as e:
            logger.error("Extraction misconfigured: %s", e)
            return _error(500, e.user_message)
        except MalformedResponseError as e:
            logger.error("Unparseable completion: %s\nRaw completion:\n%s", e, e.raw_text)
            return _error(500, e.user_message)
        except ReceiptPipelineError as e:
            logger.error("Extraction failed (%s): %s", type(e).__name__, e)
            return _error(500, e.user_message)
        except Exception:
            logger.exception("Unexpected error processing receipt")
            return _error(500, "Failed to process receipt")

        logger.info(
            "OCR: %s, %d item(s), total %s",
            record.store_name, len(record.items), record.total,
        )
        return record.to_dict()

    # ── POST /api/sheets ─────────────────────────────────────────────────
    @app.post("/api/sheets")
    def append_to_sheet(payload: Any = Body(None)):
        try:
            record = validate_receipt(payload)
        except SchemaViolationError as e:
            logger.warning("Rejected receipt payload: %s", e)
            return _error(400, "Invalid receipt data", details=f"invalid field: {e.field}")

        try:
            result = appender.append(record)
        except ConfigurationError as e:
            logger.error("Sheets misconfigured: %s", e)
            return _error(500, e.user_message)
        except PersistenceError as e:
            logger.error("Sheets append failed after %d attempt(s): %s", e.attempts, e)
            return _error(500, e.user_message, details=str(e))
        except Exception as e:
            logger.exception("Unexpected error appending to sheet")
            return _error(500, user_message_for(e))

        return result.to_dict()

    return app
