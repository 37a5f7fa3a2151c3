"""Exception hierarchy for the receipt pipeline.

Every error carries a short ``user_message`` that is safe to show to the
person holding the phone. The exception's own ``str()`` keeps the technical
detail for logs.
"""

from __future__ import annotations


class ReceiptPipelineError(Exception):
    """Base class for all pipeline failures."""

    user_message = "Error processing receipt. Please try again."


# -- input -----------------------------------------------------------------


class InputError(ReceiptPipelineError):
    """The image itself is unusable; the user has to retake it."""

    user_message = "Failed to load image. Please try a different image."


class InvalidImageError(InputError):
    """Image payload is empty, not base64, or not an image at all."""


class ImageTooLargeError(InputError):
    user_message = "Image is too large. Please use a smaller image."

    def __init__(self, size: int, limit: int) -> None:
        super().__init__(f"image payload is {size} bytes (limit {limit})")
        self.size = size
        self.limit = limit


class DecodeError(InputError):
    """Image bytes look like an image but cannot be decoded to pixels."""


# -- extraction service ----------------------------------------------------


class ServiceError(ReceiptPipelineError):
    """The vision service failed or returned nothing usable."""

    user_message = "Error processing receipt. Please try again."


class ServiceUnavailableError(ServiceError):
    pass


class EmptyResponseError(ServiceError):
    pass


class MalformedResponseError(ServiceError):
    """The completion could not be recovered as JSON.

    ``raw_text`` holds the untouched completion for diagnostics.
    """

    def __init__(self, message: str, raw_text: str) -> None:
        super().__init__(message)
        self.raw_text = raw_text


# -- schema ----------------------------------------------------------------


class SchemaViolationError(ReceiptPipelineError):
    user_message = "Couldn't read this receipt. Please retake the photo."

    def __init__(self, field: str, reason: str) -> None:
        super().__init__(f"{field}: {reason}")
        self.field = field
        self.reason = reason


# -- operator configuration -----------------------------------------------


class ConfigurationError(ReceiptPipelineError):
    """Operator misconfiguration. Never retried."""

    user_message = "Server configuration error. Please try again later."


class MissingCredentialsError(ConfigurationError, ServiceUnavailableError):
    """A service credential is absent; detected before any network call."""

    user_message = ConfigurationError.user_message


# -- persistence -----------------------------------------------------------


class PersistenceError(ReceiptPipelineError):
    """Appending rows failed on every attempt."""

    user_message = "Error saving receipt. Please try again."

    def __init__(self, message: str, attempts: int) -> None:
        super().__init__(message)
        self.attempts = attempts


# -- orchestration ---------------------------------------------------------


class PipelineStateError(ReceiptPipelineError):
    """An action was requested in a state that does not allow it."""

    user_message = "Please wait for the current operation to finish."


def user_message_for(exc: BaseException) -> str:
    """Return the end-user text for any exception."""
    if isinstance(exc, ReceiptPipelineError):
        return exc.user_message
    return ReceiptPipelineError.user_message
