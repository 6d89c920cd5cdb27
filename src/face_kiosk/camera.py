"""Camera interface module."""

import logging
from abc import ABC, abstractmethod
from typing import Tuple

import cv2
import numpy as np

from .constants import CameraConfig
from .errors import CameraError

logger = logging.getLogger(__name__)


class BaseCamera(ABC):
    """Abstract base class for frame sources."""

    @abstractmethod
    def start(self) -> None:
        """Start the camera."""
        pass

    @abstractmethod
    def stop(self) -> None:
        """Stop the camera."""
        pass

    @abstractmethod
    def capture(self) -> np.ndarray:
        """Capture a single frame.

        Returns:
            BGR image as numpy array

        Raises:
            CameraError: if no frame could be read
        """
        pass

    def __enter__(self):
        self.start()
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        self.stop()


class OpenCVCamera(BaseCamera):
    """Camera interface using OpenCV."""

    def __init__(
        self,
        device_id: int = 0,
        resolution: Tuple[int, int] = (640, 480),
    ):
        """Initialize OpenCV camera.

        Args:
            device_id: Camera device ID
            resolution: Requested frame resolution (width, height)
        """
        self.device_id = device_id
        self.resolution = resolution
        self.cap = None

    @classmethod
    def from_config(cls, config: CameraConfig) -> "OpenCVCamera":
        return cls(device_id=config.device_id, resolution=config.resolution)

    def start(self) -> None:
        """Open the capture device."""
        self.cap = cv2.VideoCapture(self.device_id)
        if not self.cap.isOpened():
            self.cap = None
            raise CameraError(f"Error opening video capture device: {self.device_id}")

        self.cap.set(cv2.CAP_PROP_FRAME_WIDTH, float(self.resolution[0]))
        self.cap.set(cv2.CAP_PROP_FRAME_HEIGHT, float(self.resolution[1]))
        logger.info(
            f"Capture size: {int(self.cap.get(cv2.CAP_PROP_FRAME_WIDTH))} x "
            f"{int(self.cap.get(cv2.CAP_PROP_FRAME_HEIGHT))}"
        )

    def stop(self) -> None:
        """Release the capture device."""
        if self.cap is not None:
            self.cap.release()
            self.cap = None

    def capture(self) -> np.ndarray:
        """Capture a single frame."""
        if self.cap is None:
            raise CameraError("Camera not started")

        ret, frame = self.cap.read()
        if not ret:
            raise CameraError(f"Device closed: {self.device_id}")
        if frame is None or frame.size == 0:
            raise CameraError("Empty frame")

        return frame
