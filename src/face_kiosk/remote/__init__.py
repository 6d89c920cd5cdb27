"""Remote face recognition service clients."""

from .base import BaseRecognitionClient, BoundingBox, MatchCandidate, RemoteIndexEntry
from .rekognition import RekognitionClient

__all__ = [
    "BaseRecognitionClient",
    "BoundingBox",
    "MatchCandidate",
    "RemoteIndexEntry",
    "RekognitionClient",
]
