"""Frame capture and per-face identification loop."""

import logging
import threading
from datetime import datetime
from pathlib import Path
from typing import List, Optional

import cv2
import numpy as np

from .camera import BaseCamera
from .errors import CameraError, RemoteCallError
from .remote.base import BaseRecognitionClient
from .resolver import IdentityResolver, Resolution

logger = logging.getLogger(__name__)


def encode_jpeg(image: np.ndarray) -> bytes:
    """Encode a BGR image as JPEG bytes.

    Raises:
        ValueError: if OpenCV cannot encode the image
    """
    ok, buffer = cv2.imencode(".jpg", image)
    if not ok:
        raise ValueError("Failed to encode image as JPEG")
    return buffer.tobytes()


class CaptureLoop:
    """Capture frames, find faces and identify each one."""

    def __init__(
        self,
        camera: BaseCamera,
        client: BaseRecognitionClient,
        resolver: IdentityResolver,
        collection_id: str,
        debug_frame_path: Optional[str] = None,
        warmup_frames: int = 10,
    ):
        """Initialize capture loop.

        Args:
            camera: Started frame source
            client: Remote recognition client
            resolver: Resolver deciding identity or guest per face
            collection_id: Remote collection searched for matches
            debug_frame_path: If set, each encoded frame is written here
            warmup_frames: Frames discarded by warm_up()
        """
        self.camera = camera
        self.client = client
        self.resolver = resolver
        self.collection_id = collection_id
        self.debug_frame_path = Path(debug_frame_path) if debug_frame_path else None
        self.warmup_frames = warmup_frames

    def warm_up(self) -> None:
        """Discard the first frames until the camera stabilizes brightness."""
        for _ in range(self.warmup_frames):
            try:
                self.camera.capture()
            except CameraError as e:
                logger.warning(f"Warm-up frame dropped: {e}")

    def run(self, stop_event: threading.Event) -> None:
        """Process frames until stop_event is set."""
        while not stop_event.is_set():
            self.step()

    def step(self) -> List[Resolution]:
        """Capture and process one frame."""
        try:
            frame = self.camera.capture()
        except CameraError as e:
            logger.error(f"Capture failed: {e}")
            return []

        return self.process_frame(frame)

    def process_frame(
        self,
        frame: np.ndarray,
        captured_at: Optional[datetime] = None,
    ) -> List[Resolution]:
        """Detect and resolve every face in a frame.

        A detect failure drops the frame; a failure on one face only
        drops that face.
        """
        captured_at = captured_at or datetime.now()

        try:
            frame_bytes = encode_jpeg(frame)
        except ValueError as e:
            logger.error(str(e))
            return []

        if self.debug_frame_path is not None:
            self._write_debug_frame(frame_bytes)

        try:
            boxes = self.client.detect_faces(frame_bytes)
        except RemoteCallError as e:
            logger.error(f"Face detection failed: {e}")
            return []

        height, width = frame.shape[:2]
        results = []
        for idx, box in enumerate(boxes):
            x0, y0, x1, y1 = box.to_rect(width, height)
            if x1 <= x0 or y1 <= y0:
                logger.debug(f"Skipped empty face region {box}")
                continue

            result = self.identify(frame[y0:y1, x0:x1], idx, captured_at)
            if result is not None:
                results.append(result)

        return results

    def identify(
        self,
        face: np.ndarray,
        idx: int,
        captured_at: Optional[datetime] = None,
    ) -> Optional[Resolution]:
        """Search one cropped face and resolve the result."""
        try:
            crop_bytes = encode_jpeg(face)
        except ValueError as e:
            logger.error(str(e))
            return None

        try:
            candidates = self.client.search_by_image(crop_bytes, self.collection_id)
        except RemoteCallError as e:
            logger.error(f"Face search failed: {e}")
            return None

        return self.resolver.resolve(candidates, crop_bytes, idx, captured_at)

    def _write_debug_frame(self, frame_bytes: bytes) -> None:
        try:
            self.debug_frame_path.write_bytes(frame_bytes)
        except OSError as e:
            logger.warning(f"Failed to write debug frame {self.debug_frame_path}: {e}")
