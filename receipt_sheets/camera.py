"""USB camera capture using OpenCV."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime, timezone

from .errors import InvalidImageError
from .models import JPEG, RawImage


def _import_cv2():
    try:
        import cv2
    except ImportError:
        raise ImportError(
            "opencv-python is required: pip install opencv-python-headless"
        ) from None
    return cv2


@dataclass
class CameraCapture:
    camera_index: int
    image: RawImage
    captured_at: str  # ISO8601


class ReceiptCamera:
    """Grab a single frame of a receipt from a USB camera.

    Frames are kept in memory only; nothing is written to disk.
    """

    def __init__(self, camera_index: int = 0) -> None:
        self._camera_index = camera_index

    def capture(self) -> CameraCapture:
        cv2 = _import_cv2()

        cap = cv2.VideoCapture(self._camera_index)
        if not cap.isOpened():
            raise InvalidImageError(
                f"Camera {self._camera_index} could not be opened. "
                f"Check that it is connected."
            )

        try:
            ret, frame = cap.read()
            if not ret or frame is None:
                raise InvalidImageError(
                    f"Could not read a frame from camera {self._camera_index}."
                )

            ok, encoded = cv2.imencode(".jpg", frame)
            if not ok:
                raise InvalidImageError(
                    f"Could not encode the frame from camera {self._camera_index}."
                )

            return CameraCapture(
                camera_index=self._camera_index,
                image=RawImage(data=encoded.tobytes(), mime_type=JPEG),
                captured_at=datetime.now(timezone.utc).isoformat(),
            )
        finally:
            cap.release()

    @staticmethod
    def list_cameras(max_check: int = 10) -> list[int]:
        """List available USB camera indices by probing."""
        cv2 = _import_cv2()

        available: list[int] = []
        for i in range(max_check):
            cap = cv2.VideoCapture(i)
            if cap.isOpened():
                available.append(i)
                cap.release()
        return available
