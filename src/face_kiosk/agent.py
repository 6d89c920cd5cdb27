"""Kiosk agent wiring and lifecycle."""

import logging
import signal
import threading
from typing import Optional

from .camera import BaseCamera, OpenCVCamera
from .capture import CaptureLoop
from .constants import KioskConfig
from .remote.base import BaseRecognitionClient
from .remote.rekognition import RekognitionClient
from .resolver import IdentityResolver
from .store.base import BaseStore
from .store.local import LocalStore
from .store.s3 import S3Store
from .sync import CatalogueSynchronizer

logger = logging.getLogger(__name__)


def create_store(config: KioskConfig) -> BaseStore:
    """Build the image store selected in the configuration."""
    if config.store.backend == "s3":
        return S3Store(
            bucket=config.store.bucket,
            prefix=config.store.prefix,
            region=config.remote.region,
        )
    return LocalStore(config.store.base_dir)


class KioskAgent:
    """Runs the capture loop with catalogue syncing in the background."""

    def __init__(
        self,
        config: KioskConfig,
        store: Optional[BaseStore] = None,
        client: Optional[BaseRecognitionClient] = None,
        camera: Optional[BaseCamera] = None,
    ):
        """Initialize the agent.

        Args:
            config: Validated agent configuration
            store: Image store (built from config if None)
            client: Recognition client (built from config if None)
            camera: Frame source (built from config if None)
        """
        self.config = config
        self.store = store or create_store(config)
        self.client = client or RekognitionClient.from_config(config.remote)
        self.camera = camera or OpenCVCamera.from_config(config.camera)

        collection_id = config.remote.collection_id
        self.synchronizer = CatalogueSynchronizer(self.store, self.client, collection_id)
        self.resolver = IdentityResolver(self.store)
        self.capture_loop = CaptureLoop(
            camera=self.camera,
            client=self.client,
            resolver=self.resolver,
            collection_id=collection_id,
            debug_frame_path=config.camera.debug_frame_path,
            warmup_frames=config.camera.warmup_frames,
        )

        self._stop_event = threading.Event()
        self._previous_handlers = {}

    @property
    def running(self) -> bool:
        return not self._stop_event.is_set()

    def setup(self) -> None:
        """Prepare the store and start background syncing."""
        self.store.setup()

        if self.config.sync.enabled:
            self.synchronizer.start(interval=self.config.sync.interval_seconds)
        else:
            logger.info("Catalogue sync disabled")

    def start(self) -> None:
        """Run until stop() is called or a shutdown signal arrives.

        Raises:
            StorageError: if the store cannot be set up
            CameraError: if the camera cannot be opened
        """
        self._stop_event.clear()

        try:
            self._install_signal_handlers()
            self.setup()
            self.camera.start()
            self.capture_loop.warm_up()
            logger.info("Kiosk agent running")
            self.capture_loop.run(self._stop_event)
        finally:
            self.shutdown()

    def stop(self) -> None:
        """Ask the capture loop to finish its current frame and exit."""
        logger.info("Stopping kiosk agent...")
        self._stop_event.set()

    def shutdown(self) -> None:
        """Stop background syncing and release the camera."""
        self._stop_event.set()
        self.synchronizer.stop()
        self.camera.stop()
        self._restore_signal_handlers()
        logger.info("Kiosk agent stopped")

    def _install_signal_handlers(self) -> None:
        if threading.current_thread() is not threading.main_thread():
            return
        for signum in (signal.SIGINT, signal.SIGTERM):
            self._previous_handlers[signum] = signal.signal(signum, self._signal_handler)

    def _restore_signal_handlers(self) -> None:
        for signum, handler in self._previous_handlers.items():
            signal.signal(signum, handler)
        self._previous_handlers.clear()

    def _signal_handler(self, signum, frame):
        logger.info(f"Received signal {signum}")
        self.stop()
