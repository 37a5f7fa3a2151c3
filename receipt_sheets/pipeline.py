"""Capture → extract → confirm → save, as a small state machine."""

from __future__ import annotations

import asyncio
import logging
from enum import Enum
from typing import TYPE_CHECKING, Callable

from .errors import (
    MalformedResponseError,
    PersistenceError,
    PipelineStateError,
    ReceiptPipelineError,
    user_message_for,
)
from .image import ImagePreprocessor
from .normalize import parse_completion
from .validator import validate_receipt

if TYPE_CHECKING:
    from .camera import ReceiptCamera
    from .models import AppendResult, RawImage, ReceiptRecord
    from .sheets import SheetAppender
    from .vision import VisionBackend

logger = logging.getLogger(__name__)


class PipelineState(str, Enum):
    IDLE = "idle"
    CAPTURING = "capturing"
    EXTRACTING = "extracting"
    AWAITING_CONFIRMATION = "awaiting_confirmation"
    SAVING = "saving"
    DONE = "done"
    ERROR = "error"


_BUSY = {PipelineState.CAPTURING, PipelineState.EXTRACTING, PipelineState.SAVING}


class ReceiptPipeline:
    """Drives one capture-to-save cycle at a time.

    A new extraction may start from any idle state (including Error and
    AwaitingConfirmation, which discards the pending record). Saving happens
    only through ``confirm``. After a failed save the validated record is
    kept so ``confirm`` can be called again without re-extracting; every
    other failure discards it.
    """

    def __init__(
        self,
        backend: VisionBackend,
        appender: SheetAppender,
        preprocessor: ImagePreprocessor | None = None,
    ) -> None:
        self._backend = backend
        self._appender = appender
        self._preprocessor = preprocessor or ImagePreprocessor()
        self._state = PipelineState.IDLE
        self._record: ReceiptRecord | None = None
        self._error: BaseException | None = None
        self._last_result: AppendResult | None = None

    @property
    def state(self) -> PipelineState:
        return self._state

    @property
    def record(self) -> ReceiptRecord | None:
        return self._record

    @property
    def error(self) -> BaseException | None:
        return self._error

    @property
    def error_message(self) -> str | None:
        return user_message_for(self._error) if self._error else None

    @property
    def last_result(self) -> AppendResult | None:
        return self._last_result

    @property
    def busy(self) -> bool:
        return self._state in _BUSY

    @property
    def can_retry_save(self) -> bool:
        return self._state is PipelineState.ERROR and self._record is not None

    def reset(self) -> None:
        """Return to Idle, dropping any pending record and error."""
        if self.busy:
            raise PipelineStateError(f"cannot reset while {self._state.value}")
        self._state = PipelineState.IDLE
        self._record = None
        self._error = None

    async def process(self, raw: RawImage) -> ReceiptRecord:
        """Normalize, extract and validate a receipt image."""
        return await self._extract(lambda: raw)

    async def process_from_camera(self, camera: ReceiptCamera) -> ReceiptRecord:
        """Capture a frame from ``camera`` and process it."""
        return await self._extract(lambda: camera.capture().image)

    async def confirm(self) -> AppendResult:
        """Persist the pending record. Only ever called on user confirmation."""
        if not (
            self._state is PipelineState.AWAITING_CONFIRMATION or self.can_retry_save
        ):
            raise PipelineStateError(
                f"nothing to save (state: {self._state.value})"
            )

        record = self._record
        self._state = PipelineState.SAVING
        self._error = None
        try:
            result = await asyncio.to_thread(self._appender.append, record)
        except Exception as e:
            self._fail(e, keep_record=isinstance(e, PersistenceError))
            raise

        self._last_result = result
        self._record = None
        self._state = PipelineState.DONE
        return result

    async def _extract(self, get_raw: Callable[[], RawImage]) -> ReceiptRecord:
        if self.busy:
            raise PipelineStateError(f"already {self._state.value}")

        self._state = PipelineState.CAPTURING
        self._record = None
        self._error = None
        self._last_result = None
        try:
            raw = await asyncio.to_thread(get_raw)
            image = await asyncio.to_thread(self._preprocessor.normalize, raw)

            self._state = PipelineState.EXTRACTING
            completion = await self._backend.extract(image)
            record = validate_receipt(parse_completion(completion))
        except Exception as e:
            self._fail(e, keep_record=False)
            raise

        logger.info(
            "Extracted receipt from %s: %d item(s), total %s",
            record.store_name, len(record.items), record.total,
        )
        self._record = record
        self._state = PipelineState.AWAITING_CONFIRMATION
        return record

    def _fail(self, exc: BaseException, keep_record: bool) -> None:
        failed_in = self._state
        if isinstance(exc, MalformedResponseError):
            logger.error(
                "Unparseable completion while %s: %s\nRaw completion:\n%s",
                failed_in.value, exc, exc.raw_text,
            )
        elif isinstance(exc, ReceiptPipelineError):
            logger.error(
                "%s while %s: %s", type(exc).__name__, failed_in.value, exc
            )
        else:
            logger.exception("Unexpected error while %s", failed_in.value)

        if not keep_record:
            self._record = None
        self._error = exc
        self._state = PipelineState.ERROR
