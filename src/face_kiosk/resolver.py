"""Identity resolution for search results."""

import logging
from dataclasses import dataclass
from datetime import datetime
from enum import Enum
from typing import List, Optional, Sequence, Tuple

from .errors import StorageError
from .keys import FaceKey
from .remote.base import MatchCandidate
from .store.base import BaseStore

logger = logging.getLogger(__name__)


class ResolutionStatus(Enum):
    """Outcome of resolving one face."""
    IDENTIFIED = "identified"
    GUEST = "guest"


@dataclass
class Resolution:
    """Result of resolving one cropped face."""

    status: ResolutionStatus
    key: Optional[FaceKey] = None
    similarity: float = 0.0
    # Set when the crop was saved as a guest image
    guest_path: Optional[str] = None

    @property
    def is_identified(self) -> bool:
        return self.status == ResolutionStatus.IDENTIFIED

    @property
    def is_guest(self) -> bool:
        return self.status == ResolutionStatus.GUEST


def best_match(candidates: Sequence[MatchCandidate]) -> Optional[Tuple[FaceKey, float]]:
    """Pick the most similar candidate with a usable face key.

    Candidates without an external id or with a malformed one are
    dropped. Among equal similarities the first one seen wins.

    Returns:
        (key, similarity), or None if no candidate is usable
    """
    usable: List[Tuple[FaceKey, float]] = []
    for candidate in candidates:
        if candidate.external_id is None:
            logger.warning(f"Found but no externalImageId attribute: face_id={candidate.face_id}")
            continue

        key = candidate.key
        if key is None:
            logger.warning(f"Skipped malformed externalImageId: {candidate.external_id!r}")
            continue

        usable.append((key, candidate.similarity))

    if not usable:
        return None

    return max(usable, key=lambda match: match[1])


class IdentityResolver:
    """Turn search candidates into an identity or a guest."""

    def __init__(self, store: BaseStore):
        """Initialize resolver.

        Args:
            store: Store receiving guest crops
        """
        self.store = store

    def resolve(
        self,
        candidates: Sequence[MatchCandidate],
        image: bytes,
        frame_index: int,
        captured_at: Optional[datetime] = None,
    ) -> Resolution:
        """Resolve the candidates returned for one face crop.

        Only a search with no candidates at all saves the crop as a
        guest. When candidates exist but none carries a usable key the
        face is still a guest, but nothing is written.

        Args:
            candidates: Search results for the crop
            image: JPEG bytes of the crop
            frame_index: Index of the face within its frame
            captured_at: Capture time of the frame

        Returns:
            Resolution for the face
        """
        if not candidates:
            guest_path = None
            try:
                guest_path = self.store.save_guest(image, frame_index, captured_at)
                logger.info(f"Saved guest face: {guest_path}")
            except StorageError as e:
                logger.error(f"{type(self.store).__name__}: {e}")
            return Resolution(status=ResolutionStatus.GUEST, guest_path=guest_path)

        match = best_match(candidates)
        if match is None:
            logger.info("Matches found but none has a usable face key")
            return Resolution(status=ResolutionStatus.GUEST)

        key, similarity = match
        logger.info(f"Identified: {key.name} ({key}, similarity={similarity:.1f})")
        return Resolution(status=ResolutionStatus.IDENTIFIED, key=key, similarity=similarity)
