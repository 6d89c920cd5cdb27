"""Filesystem image store.

Layout::

    <base_dir>/catalogue/<name>/<index>.jpg   reference faces
    <base_dir>/guests/<timestamp>-<idx>.jpg   unidentified crops
"""

import logging
import os
from datetime import datetime
from pathlib import Path
from typing import Optional, Union

from ..errors import ImageNotFoundError, StorageError
from ..keys import FaceKey
from .base import (
    CATALOGUE_DIR,
    GUEST_DIR,
    IMAGE_EXT,
    BaseStore,
    CatalogueEntry,
    CatalogueScan,
    guest_filename,
    match_catalogue_path,
)

logger = logging.getLogger(__name__)


class LocalStore(BaseStore):
    """Image store backed by a local directory tree."""

    def __init__(self, base_dir: Union[str, Path] = "localstore"):
        """Initialize local store.

        Args:
            base_dir: Root directory holding catalogue/ and guests/
        """
        self.base_dir = Path(base_dir)

    @property
    def catalogue_dir(self) -> Path:
        return self.base_dir / CATALOGUE_DIR

    @property
    def guest_dir(self) -> Path:
        return self.base_dir / GUEST_DIR

    def setup(self) -> None:
        try:
            self.guest_dir.mkdir(parents=True, exist_ok=True)
        except OSError as e:
            raise StorageError(f"Failed to create {self.guest_dir}: {e}") from e

    def save_guest(
        self,
        image: bytes,
        frame_index: int,
        captured_at: Optional[datetime] = None,
    ) -> str:
        path = self.guest_dir / guest_filename(frame_index, captured_at)

        try:
            # Guest images are write-once
            with open(path, "xb") as f:
                f.write(image)
        except OSError as e:
            raise StorageError(f"Failed to save guest image {path}: {e}") from e

        logger.debug(f"Saved guest image {path}")
        return str(path)

    def read_image(self, key: FaceKey) -> bytes:
        path = self.catalogue_dir / key.name / f"{key.index}{IMAGE_EXT}"

        try:
            return path.read_bytes()
        except FileNotFoundError as e:
            raise ImageNotFoundError(f"No catalogue image for {key}: {path}") from e
        except OSError as e:
            raise StorageError(f"Failed to read {path}: {e}") from e

    def catalogue_exists(self) -> bool:
        return self.catalogue_dir.is_dir()

    def scan_catalogue(self) -> CatalogueScan:
        scan = CatalogueScan()
        if not self.catalogue_exists():
            return scan

        def on_error(err: OSError):
            raise StorageError(f"Failed to walk {self.catalogue_dir}: {err}") from err

        for dirpath, dirnames, filenames in os.walk(self.catalogue_dir, onerror=on_error):
            dirnames.sort()
            for filename in sorted(filenames):
                path = Path(dirpath) / filename
                relative = path.relative_to(self.catalogue_dir).as_posix()

                key = match_catalogue_path(relative)
                if key is None:
                    continue

                try:
                    modified = path.stat().st_mtime
                except OSError as e:
                    # Removed between listing and stat
                    logger.warning(f"Skipped {path}: {e}")
                    continue

                scan.add(CatalogueEntry(key=key, path=str(path), modified=modified))

        logger.debug(f"Scanned {len(scan)} catalogue image(s) in {self.catalogue_dir}")
        return scan
