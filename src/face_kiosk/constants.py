"""Configuration loader and defaults.

Values are loaded from a YAML file (config/config.yaml by default) and
mapped onto dataclasses. Every component receives the section it needs at
construction time; nothing reads a process-wide settings object.
"""

import logging
import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, Optional, Tuple

import yaml

from .errors import ConfigError

logger = logging.getLogger(__name__)

# Path to the default configuration file
DEFAULT_CONFIG_PATH = Path("config") / "config.yaml"

LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"

# Credentials are read from the environment when the file leaves them out
ENV_ACCESS_KEY_ID = "AWS_ACCESS_KEY"
ENV_SECRET_ACCESS_KEY = "AWS_SECRET_ACCESS_KEY"


def load_config(config_path: Optional[Path] = None) -> Dict[str, Any]:
    """Load configuration from YAML file.

    Args:
        config_path: Path to config file. Uses default if None.

    Returns:
        Configuration dictionary.
    """
    path = Path(config_path) if config_path else DEFAULT_CONFIG_PATH

    try:
        if path.exists():
            with open(path, "r") as f:
                return yaml.safe_load(f) or {}
        logger.warning(f"Config file {path} not found, using defaults")
    except (OSError, yaml.YAMLError) as e:
        logger.warning(f"Failed to load config from {path}: {e}")

    return {}


def _get_nested(config: Dict, *keys: str, default: Any = None) -> Any:
    """Get nested config value with default fallback."""
    value = config
    for key in keys:
        if isinstance(value, dict):
            value = value.get(key)
        else:
            return default
        if value is None:
            return default
    return value


# ============================================================
# Camera
# ============================================================

@dataclass
class CameraConfig:
    """Camera capture settings."""
    device_id: int = 0
    resolution: Tuple[int, int] = (640, 480)
    # Frames discarded while the camera adjusts brightness
    warmup_frames: int = 10
    # When set, every encoded frame is also written here
    debug_frame_path: Optional[str] = None

    @classmethod
    def from_config(cls, config: Dict[str, Any]) -> "CameraConfig":
        """Create from config dictionary."""
        cam = _get_nested(config, "camera") or {}
        resolution = cam.get("resolution", [640, 480])

        return cls(
            device_id=cam.get("device_id", 0),
            resolution=tuple(resolution),
            warmup_frames=cam.get("warmup_frames", 10),
            debug_frame_path=cam.get("debug_frame_path"),
        )


# ============================================================
# Remote recognition service
# ============================================================

@dataclass
class RemoteConfig:
    """AWS Rekognition settings."""
    region: str = "us-east-1"
    collection_id: str = ""
    access_key_id: Optional[str] = None
    secret_access_key: Optional[str] = None
    connect_timeout: float = 5.0
    read_timeout: float = 10.0
    max_attempts: int = 1

    @classmethod
    def from_config(cls, config: Dict[str, Any]) -> "RemoteConfig":
        """Create from config dictionary, falling back to env credentials."""
        remote = _get_nested(config, "remote") or {}

        return cls(
            region=remote.get("region", "us-east-1"),
            collection_id=remote.get("collection_id", ""),
            access_key_id=remote.get("access_key_id") or os.environ.get(ENV_ACCESS_KEY_ID),
            secret_access_key=(
                remote.get("secret_access_key") or os.environ.get(ENV_SECRET_ACCESS_KEY)
            ),
            connect_timeout=remote.get("connect_timeout", 5.0),
            read_timeout=remote.get("read_timeout", 10.0),
            max_attempts=remote.get("max_attempts", 1),
        )


# ============================================================
# Image store
# ============================================================

STORE_BACKENDS = ("local", "s3")


@dataclass
class StoreConfig:
    """Image store settings."""
    backend: str = "local"
    # Local backend
    base_dir: str = "localstore"
    # S3 backend
    bucket: Optional[str] = None
    prefix: str = ""

    @classmethod
    def from_config(cls, config: Dict[str, Any]) -> "StoreConfig":
        """Create from config dictionary."""
        store = _get_nested(config, "store") or {}

        return cls(
            backend=store.get("backend", "local"),
            base_dir=store.get("base_dir", "localstore"),
            bucket=store.get("bucket"),
            prefix=store.get("prefix", ""),
        )


@dataclass
class SyncConfig:
    """Catalogue synchronization settings."""
    enabled: bool = True
    interval_seconds: float = 10.0

    @classmethod
    def from_config(cls, config: Dict[str, Any]) -> "SyncConfig":
        """Create from config dictionary."""
        sync = _get_nested(config, "sync") or {}

        return cls(
            enabled=sync.get("enabled", True),
            interval_seconds=sync.get("interval_seconds", 10.0),
        )


@dataclass
class LoggingConfig:
    """Logging settings."""
    level: str = "INFO"
    format: str = LOG_FORMAT

    @classmethod
    def from_config(cls, config: Dict[str, Any]) -> "LoggingConfig":
        log = _get_nested(config, "logging") or {}
        return cls(
            level=str(log.get("level", "INFO")).upper(),
            format=log.get("format", LOG_FORMAT),
        )


# ============================================================
# Aggregate
# ============================================================

@dataclass
class KioskConfig:
    """All settings for one kiosk agent."""
    camera: CameraConfig = field(default_factory=CameraConfig)
    remote: RemoteConfig = field(default_factory=RemoteConfig)
    store: StoreConfig = field(default_factory=StoreConfig)
    sync: SyncConfig = field(default_factory=SyncConfig)
    logging: LoggingConfig = field(default_factory=LoggingConfig)

    @classmethod
    def from_config(cls, config: Dict[str, Any]) -> "KioskConfig":
        """Create from config dictionary."""
        return cls(
            camera=CameraConfig.from_config(config),
            remote=RemoteConfig.from_config(config),
            store=StoreConfig.from_config(config),
            sync=SyncConfig.from_config(config),
            logging=LoggingConfig.from_config(config),
        )

    @classmethod
    def load(cls, config_path: Optional[Path] = None) -> "KioskConfig":
        """Load from a YAML file."""
        return cls.from_config(load_config(config_path))

    def validate(self) -> None:
        """Check settings required to run the agent.

        Raises:
            ConfigError: if a required value is missing or invalid
        """
        if not self.remote.collection_id:
            raise ConfigError("remote.collection_id is unset")
        if self.store.backend not in STORE_BACKENDS:
            raise ConfigError(
                f"Unknown store backend: {self.store.backend} "
                f"(expected one of {', '.join(STORE_BACKENDS)})"
            )
        if self.store.backend == "s3" and not self.store.bucket:
            raise ConfigError("store.bucket is required for the s3 backend")
        if self.sync.interval_seconds <= 0:
            raise ConfigError("sync.interval_seconds must be positive")


def setup_logging(level: str = "INFO", fmt: str = LOG_FORMAT) -> None:
    """Configure root logging once for the process."""
    logging.basicConfig(level=getattr(logging, level.upper(), logging.INFO), format=fmt)
    # botocore is chatty at DEBUG
    logging.getLogger("botocore").setLevel(logging.WARNING)
