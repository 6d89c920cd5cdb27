"""Catalogue synchronization.

Keeps the remote face collection in step with the local catalogue. Each
pass walks the catalogue, skips the remote calls entirely when nothing
has changed since the last successful pass, and otherwise indexes only
the faces the collection does not already have.
"""

import logging
from dataclasses import dataclass, field
from typing import Iterable, List, Optional, Set

from .errors import RemoteCallError, StorageError
from .keys import FaceKey
from .periodic import PeriodicTask
from .remote.base import BaseRecognitionClient
from .store.base import DEFAULT_WATCH_INTERVAL, BaseStore, CatalogueScan

logger = logging.getLogger(__name__)


@dataclass
class SyncState:
    """State kept between passes; lives only as long as the process."""

    # Newest catalogue mtime covered by a completed pass
    last_synced: Optional[float] = None


@dataclass
class SyncReport:
    """Outcome of one synchronization pass."""

    skipped: bool = False
    local: int = 0
    remote: int = 0
    pushed: List[FaceKey] = field(default_factory=list)
    failed: List[FaceKey] = field(default_factory=list)

    @property
    def missing(self) -> int:
        return len(self.pushed) + len(self.failed)

    def summary(self) -> str:
        if self.skipped:
            return "no catalogue updates"
        return (
            f"local={self.local} remote={self.remote} "
            f"pushed={len(self.pushed)} failed={len(self.failed)}"
        )


def missing_keys(local: Iterable[FaceKey], remote: Iterable[FaceKey]) -> List[FaceKey]:
    """Local keys absent from remote, in sorted order."""
    return sorted(set(local) - set(remote))


class CatalogueSynchronizer:
    """Push new catalogue faces to the remote collection."""

    def __init__(
        self,
        store: BaseStore,
        client: BaseRecognitionClient,
        collection_id: str,
    ):
        """Initialize synchronizer.

        Args:
            store: Store holding the reference catalogue
            client: Remote recognition client
            collection_id: Remote collection to keep in sync
        """
        self.store = store
        self.client = client
        self.collection_id = collection_id
        self.state = SyncState()

        self._task: Optional[PeriodicTask] = None

    @property
    def last_synced(self) -> Optional[float]:
        return self.state.last_synced

    def sync(self) -> SyncReport:
        """Run one full pass: scan the catalogue, then sync the scan.

        Raises:
            StorageError: if the catalogue cannot be walked
            RemoteCallError: if the remote collection cannot be listed
        """
        return self.sync_scan(self.store.scan_catalogue())

    def sync_scan(self, scan: CatalogueScan) -> SyncReport:
        """Sync an already collected catalogue scan.

        The timestamp only advances once the remote listing succeeded;
        individual index failures do not hold it back.
        """
        if scan.max_modified is None:
            logger.debug("Catalogue is empty, nothing to sync")
            return SyncReport(skipped=True)

        last = self.state.last_synced
        if last is not None and scan.max_modified <= last:
            logger.debug("No updates in the catalogue since last sync")
            return SyncReport(skipped=True, local=len(scan))

        report = self.reconcile(scan.keys)
        self.state.last_synced = scan.max_modified
        logger.info(f"Catalogue sync finished: {report.summary()}")
        return report

    def reconcile(self, local_keys: Set[FaceKey]) -> SyncReport:
        """Index every local key the remote collection does not have.

        Raises:
            RemoteCallError: if the remote collection cannot be listed
        """
        remote_keys = self.fetch_remote_keys()
        report = SyncReport(local=len(local_keys), remote=len(remote_keys))

        for key in missing_keys(local_keys, remote_keys):
            if self.push(key):
                report.pushed.append(key)
            else:
                report.failed.append(key)

        return report

    def fetch_remote_keys(self) -> Set[FaceKey]:
        """Keys of every parseable face in the remote collection."""
        keys = set()
        for entry in self.client.list_indexed(self.collection_id):
            key = entry.key
            if key is None:
                logger.warning(
                    f"Skipped externalImageId {entry.external_id!r} (face_id={entry.face_id})"
                )
                continue
            keys.add(key)
        return keys

    def push(self, key: FaceKey) -> bool:
        """Index one catalogue image. Failures are logged, not raised.

        Returns:
            True if the face was indexed
        """
        try:
            image = self.store.read_image(key)
        except StorageError as e:
            logger.error(f"Failed to read catalogue image {key}: {e}")
            return False

        try:
            face_id = self.client.index_image(image, self.collection_id, key.external_id)
        except RemoteCallError as e:
            logger.error(f"Failed to index {key}: {e}")
            return False

        logger.info(f"Indexed new face: {key} (face_id={face_id})")
        return True

    def start(self, interval: float = DEFAULT_WATCH_INTERVAL) -> Optional[PeriodicTask]:
        """Sync on a fixed interval in the background.

        Returns:
            The running task, or None if the store has no catalogue
        """
        if self._task is not None and self._task.is_running:
            return self._task

        self._task = self.store.watch(self.sync_scan, interval=interval)
        return self._task

    def stop(self, timeout: Optional[float] = 5.0) -> None:
        """Stop background syncing, waiting for an in-flight pass."""
        if self._task is not None:
            self._task.stop(timeout=timeout)
            self._task = None
