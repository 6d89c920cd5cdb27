"""Image store interface.

A store owns the reference face catalogue and the guest image output
area. The synchronizer and the capture loop only talk to this interface,
so the filesystem backend can be swapped for object storage.
"""

import logging
import re
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from datetime import datetime
from typing import Callable, List, Optional, Set

from ..errors import FaceKeySyntaxError
from ..keys import FaceKey
from ..periodic import PeriodicTask

logger = logging.getLogger(__name__)

CATALOGUE_DIR = "catalogue"
GUEST_DIR = "guests"
IMAGE_EXT = ".jpg"
GUEST_TIME_FORMAT = "%Y%m%d-%H%M%S"

# <name>/<index>.jpg relative to the catalogue root
CATALOGUE_PATTERN = re.compile(r"^(\w+)/([-\w]+)\.jpg$", re.ASCII)

DEFAULT_WATCH_INTERVAL = 10.0


@dataclass(frozen=True)
class CatalogueEntry:
    """A reference image found in the catalogue."""

    key: FaceKey
    path: str
    modified: float


@dataclass
class CatalogueScan:
    """Result of walking the catalogue once."""

    entries: List[CatalogueEntry] = field(default_factory=list)
    # Newest modification time among the entries, None when empty
    max_modified: Optional[float] = None

    @property
    def keys(self) -> Set[FaceKey]:
        return {entry.key for entry in self.entries}

    def add(self, entry: CatalogueEntry) -> None:
        self.entries.append(entry)
        if self.max_modified is None or entry.modified > self.max_modified:
            self.max_modified = entry.modified

    def __len__(self) -> int:
        return len(self.entries)


def match_catalogue_path(relative_path: str) -> Optional[FaceKey]:
    """Return the face key for a catalogue-relative path, if it matches.

    Args:
        relative_path: Path below the catalogue root using ``/`` separators

    Returns:
        FaceKey, or None for paths outside the ``<name>/<index>.jpg`` layout
    """
    m = CATALOGUE_PATTERN.match(relative_path)
    if m is None:
        return None

    try:
        return FaceKey(m.group(1), m.group(2))
    except FaceKeySyntaxError as e:
        logger.warning(f"Skipped catalogue file {relative_path}: {e}")
        return None


def guest_filename(frame_index: int, captured_at: Optional[datetime] = None) -> str:
    """Build ``<YYYYmmdd-HHMMSS>-<frameIndex>.jpg`` for a guest crop."""
    captured_at = captured_at or datetime.now()
    return f"{captured_at.strftime(GUEST_TIME_FORMAT)}-{frame_index}{IMAGE_EXT}"


ScanCallback = Callable[[CatalogueScan], object]


class BaseStore(ABC):
    """Abstract base class for image stores."""

    @abstractmethod
    def setup(self) -> None:
        """Create whatever the store needs. Safe to call repeatedly."""
        pass

    @abstractmethod
    def save_guest(
        self,
        image: bytes,
        frame_index: int,
        captured_at: Optional[datetime] = None,
    ) -> str:
        """Persist an unidentified face crop.

        Args:
            image: JPEG bytes of the crop
            frame_index: Index of the face within its frame
            captured_at: Capture time (now if None)

        Returns:
            Location of the written image

        Raises:
            StorageError: if the write fails
        """
        pass

    @abstractmethod
    def read_image(self, key: FaceKey) -> bytes:
        """Read a catalogue reference image.

        Raises:
            ImageNotFoundError: if no image exists for the key
            StorageError: for any other read failure
        """
        pass

    @abstractmethod
    def scan_catalogue(self) -> CatalogueScan:
        """Walk the catalogue and collect its entries.

        Raises:
            StorageError: if the catalogue cannot be listed
        """
        pass

    @abstractmethod
    def catalogue_exists(self) -> bool:
        """Check whether there is a catalogue to watch."""
        pass

    def watch(
        self,
        callback: ScanCallback,
        interval: float = DEFAULT_WATCH_INTERVAL,
    ) -> Optional[PeriodicTask]:
        """Scan the catalogue periodically and hand every scan to callback.

        Args:
            callback: Called with the current CatalogueScan on each tick
            interval: Seconds between scans

        Returns:
            The running task, or None if there is no catalogue to watch
        """
        if not self.catalogue_exists():
            logger.info("Catalogue not found, not watching for updates")
            return None

        logger.info("Start to watch catalogue updates")
        task = PeriodicTask(
            lambda: callback(self.scan_catalogue()),
            interval=interval,
            name="CatalogueWatch",
        )
        return task.start()
