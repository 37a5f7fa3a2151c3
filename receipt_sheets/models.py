"""Data types flowing through the receipt pipeline."""

from __future__ import annotations

import base64
import binascii
import mimetypes
import re
from dataclasses import dataclass, field
from pathlib import Path

from .errors import InvalidImageError

JPEG = "image/jpeg"
PNG = "image/png"

DEFAULT_CATEGORY = "Other"

_DATA_URL_PREFIX = re.compile(r"^data:image/[a-zA-Z0-9.+-]+;base64,")

# (magic prefix, mime type)
_SIGNATURES: list[tuple[bytes, str]] = [
    (b"\xff\xd8\xff", JPEG),
    (b"\x89PNG\r\n\x1a\n", PNG),
    (b"GIF87a", "image/gif"),
    (b"GIF89a", "image/gif"),
    (b"BM", "image/bmp"),
    (b"II*\x00", "image/tiff"),
    (b"MM\x00*", "image/tiff"),
]


def sniff_mime(data: bytes) -> str | None:
    """Guess an image MIME type from its leading bytes."""
    for magic, mime in _SIGNATURES:
        if data.startswith(magic):
            return mime
    if data[:4] == b"RIFF" and data[8:12] == b"WEBP":
        return "image/webp"
    return None


@dataclass
class RawImage:
    """Captured or uploaded image bytes, before normalization."""

    data: bytes
    mime_type: str = JPEG

    @classmethod
    def from_data_url(cls, value: str) -> RawImage:
        """Decode a ``data:<mime>;base64,<payload>`` string or bare base64.

        Only PNG is recognised from the prefix; anything else is treated
        as JPEG.
        """
        if not isinstance(value, str) or not value.strip():
            raise InvalidImageError("no image data provided")

        mime_type = PNG if value.startswith("data:image/png") else JPEG
        payload = _DATA_URL_PREFIX.sub("", value, count=1).strip()
        if not payload:
            raise InvalidImageError("image data URL has an empty payload")

        try:
            data = base64.b64decode(payload, validate=True)
        except (binascii.Error, ValueError) as e:
            raise InvalidImageError(f"image payload is not valid base64: {e}") from e
        return cls(data=data, mime_type=mime_type)

    @classmethod
    def from_path(cls, path: str | Path) -> RawImage:
        p = Path(path)
        if not p.exists():
            raise InvalidImageError(f"image file not found: {p}")
        data = p.read_bytes()
        mime_type = sniff_mime(data) or mimetypes.guess_type(str(p))[0] or JPEG
        return cls(data=data, mime_type=mime_type)

    def estimated_size(self) -> int:
        return len(self.data)


@dataclass
class NormalizedImage:
    """A resized, JPEG re-encoded image ready to leave the client."""

    data: bytes
    width: int
    height: int
    mime_type: str = JPEG

    def to_base64(self) -> str:
        return base64.standard_b64encode(self.data).decode()

    def to_data_url(self) -> str:
        return f"data:{self.mime_type};base64,{self.to_base64()}"


@dataclass
class ReceiptItem:
    name: str
    price: float
    category: str | None = None  # older extraction schema has no category

    @property
    def category_or_default(self) -> str:
        return self.category or DEFAULT_CATEGORY

    def to_dict(self) -> dict:
        data: dict = {"name": self.name, "price": self.price}
        if self.category is not None:
            data["category"] = self.category
        return data


@dataclass
class ReceiptRecord:
    """A validated receipt.

    ``timestamp`` holds whichever of ``date``/``datetime`` the extraction
    returned, exactly as returned.
    """

    store_name: str
    timestamp: str
    items: list[ReceiptItem] = field(default_factory=list)
    total: float = 0.0

    def to_dict(self) -> dict:
        """Serialize using the external (camelCase, ``datetime``) field names."""
        return {
            "storeName": self.store_name,
            "datetime": self.timestamp,
            "items": [item.to_dict() for item in self.items],
            "total": self.total,
        }


@dataclass
class AppendResult:
    rows_added: int
    attempts: int = 1
    updated_range: str = ""

    def to_dict(self) -> dict:
        return {
            "success": True,
            "message": f"Added {self.rows_added} row(s) to the spreadsheet",
            "rowsAdded": self.rows_added,
        }
