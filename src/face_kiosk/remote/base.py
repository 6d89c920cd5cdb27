"""Remote recognition service interface and result types."""

from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import List, Optional, Tuple

from ..errors import FaceKeySyntaxError
from ..keys import FaceKey, parse_face_key


@dataclass(frozen=True)
class BoundingBox:
    """Face bounding box as fractions of the image size."""

    left: float
    top: float
    width: float
    height: float

    def to_rect(self, image_width: int, image_height: int) -> Tuple[int, int, int, int]:
        """Convert to pixel corners ``(x0, y0, x1, y1)``.

        The service can report geometry outside the frame. Left and top
        are clamped to 0 after scaling; right and bottom are capped at
        1.0 before scaling.
        """
        x0 = int(max(self.left * image_width, 0.0))
        y0 = int(max(self.top * image_height, 0.0))
        x1 = int(min(self.left + self.width, 1.0) * image_width)
        y1 = int(min(self.top + self.height, 1.0) * image_height)
        return (x0, y0, x1, y1)


def _parse_optional_key(external_id: Optional[str]) -> Optional[FaceKey]:
    if external_id is None:
        return None
    try:
        return parse_face_key(external_id)
    except FaceKeySyntaxError:
        return None


@dataclass(frozen=True)
class MatchCandidate:
    """One face from the index matched by a search."""

    external_id: Optional[str]
    similarity: float
    face_id: Optional[str] = None

    @property
    def key(self) -> Optional[FaceKey]:
        """Parsed face key, None if missing or malformed."""
        return _parse_optional_key(self.external_id)


@dataclass(frozen=True)
class RemoteIndexEntry:
    """One face stored in the remote collection."""

    external_id: Optional[str]
    face_id: str

    @property
    def key(self) -> Optional[FaceKey]:
        """Parsed face key, None if missing or malformed."""
        return _parse_optional_key(self.external_id)


class BaseRecognitionClient(ABC):
    """Abstract base class for remote face recognition services.

    Every method raises RemoteCallError when the call fails.
    """

    @abstractmethod
    def detect_faces(self, image: bytes) -> List[BoundingBox]:
        """Detect faces in a JPEG image."""
        pass

    @abstractmethod
    def search_by_image(self, image: bytes, collection_id: str) -> List[MatchCandidate]:
        """Search the collection for faces matching the largest face in image."""
        pass

    @abstractmethod
    def list_indexed(self, collection_id: str) -> List[RemoteIndexEntry]:
        """List every face stored in the collection."""
        pass

    @abstractmethod
    def index_image(self, image: bytes, collection_id: str, external_id: str) -> Optional[str]:
        """Add the face in image to the collection under external_id.

        Returns:
            Remote face id of the indexed face
        """
        pass
