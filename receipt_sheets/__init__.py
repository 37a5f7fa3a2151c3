"""Receipt photo to spreadsheet rows, via a vision model."""

from .camera import CameraCapture, ReceiptCamera
from .config import AppConfig, SheetsConfig, VisionConfig, load_config
from .errors import (
    ConfigurationError,
    DecodeError,
    EmptyResponseError,
    ImageTooLargeError,
    InputError,
    InvalidImageError,
    MalformedResponseError,
    MissingCredentialsError,
    PersistenceError,
    PipelineStateError,
    ReceiptPipelineError,
    SchemaViolationError,
    ServiceError,
    ServiceUnavailableError,
)
from .image import ImagePreprocessor
from .models import AppendResult, NormalizedImage, RawImage, ReceiptItem, ReceiptRecord
from .normalize import parse_completion
from .pipeline import PipelineState, ReceiptPipeline
from .sheets import SheetAppender, record_to_rows
from .validator import validate_receipt
from .vision import VisionBackend, create_backend

__all__ = [
    "ReceiptCamera",
    "CameraCapture",
    "ImagePreprocessor",
    "VisionBackend",
    "create_backend",
    "parse_completion",
    "validate_receipt",
    "SheetAppender",
    "record_to_rows",
    "ReceiptPipeline",
    "PipelineState",
    "RawImage",
    "NormalizedImage",
    "ReceiptItem",
    "ReceiptRecord",
    "AppendResult",
    "AppConfig",
    "VisionConfig",
    "SheetsConfig",
    "load_config",
    "ReceiptPipelineError",
    "InputError",
    "InvalidImageError",
    "ImageTooLargeError",
    "DecodeError",
    "ServiceError",
    "ServiceUnavailableError",
    "EmptyResponseError",
    "MalformedResponseError",
    "SchemaViolationError",
    "ConfigurationError",
    "MissingCredentialsError",
    "PersistenceError",
    "PipelineStateError",
]
