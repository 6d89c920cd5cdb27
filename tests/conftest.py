"""Pytest configuration and fixtures."""

import os
import sys
from pathlib import Path
from typing import Dict, List, Optional, Set

import numpy as np
import pytest

# Add src to path for imports
sys.path.insert(0, str(Path(__file__).parent.parent / "src"))

from face_kiosk.errors import RemoteCallError
from face_kiosk.remote.base import (
    BaseRecognitionClient,
    BoundingBox,
    MatchCandidate,
    RemoteIndexEntry,
)


class FakeRecognitionClient(BaseRecognitionClient):
    """In-memory recognition service that records every call."""

    def __init__(self, indexed: Optional[List[str]] = None):
        self.indexed: List[Optional[str]] = list(indexed or [])
        self.boxes: List[BoundingBox] = []
        self.candidates: List[MatchCandidate] = []
        self.fail_index: Set[str] = set()
        self.fail_list = False
        self.fail_detect = False
        self.fail_search = False
        self.calls: Dict[str, int] = {"detect": 0, "search": 0, "list": 0, "index": 0}
        self.index_requests: List[str] = []
        self.search_images: List[bytes] = []

    def detect_faces(self, image):
        self.calls["detect"] += 1
        if self.fail_detect:
            raise RemoteCallError("DetectFaces", "service unavailable")
        return list(self.boxes)

    def search_by_image(self, image, collection_id):
        self.calls["search"] += 1
        self.search_images.append(image)
        if self.fail_search:
            raise RemoteCallError("SearchFacesByImage", "service unavailable")
        return list(self.candidates)

    def list_indexed(self, collection_id):
        self.calls["list"] += 1
        if self.fail_list:
            raise RemoteCallError("ListFaces", "service unavailable")
        return [
            RemoteIndexEntry(external_id=external_id, face_id=f"face-{i}")
            for i, external_id in enumerate(self.indexed)
        ]

    def index_image(self, image, collection_id, external_id):
        self.calls["index"] += 1
        self.index_requests.append(external_id)
        if external_id in self.fail_index:
            raise RemoteCallError("IndexFaces", "throttled")
        self.indexed.append(external_id)
        return f"face-{len(self.indexed)}"


def write_catalogue_image(base_dir: Path, name: str, index: str, mtime: float = 1_700_000_000.0) -> Path:
    """Create <base>/catalogue/<name>/<index>.jpg with a fixed mtime."""
    path = base_dir / "catalogue" / name / f"{index}.jpg"
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_bytes(f"jpeg:{name}_{index}".encode())
    os.utime(path, (mtime, mtime))
    return path


@pytest.fixture
def fake_client():
    """Recognition client double."""
    return FakeRecognitionClient()


@pytest.fixture
def store(tmp_path):
    """Local store rooted in a temporary directory."""
    from face_kiosk.store import LocalStore

    local_store = LocalStore(tmp_path / "localstore")
    local_store.setup()
    return local_store


@pytest.fixture
def sample_image():
    """Create a sample test frame."""
    return np.random.randint(0, 255, (480, 640, 3), dtype=np.uint8)


@pytest.fixture
def mock_config():
    """Create a mock configuration dictionary."""
    return {
        "camera": {
            "device_id": 1,
            "resolution": [1280, 720],
            "warmup_frames": 5,
        },
        "remote": {
            "region": "eu-west-1",
            "collection_id": "kiosk-faces",
            "read_timeout": 3.0,
        },
        "store": {
            "backend": "local",
            "base_dir": "/tmp/kiosk",
        },
        "sync": {
            "enabled": True,
            "interval_seconds": 30,
        },
        "logging": {
            "level": "debug",
        },
    }
