"""Face Kiosk - facial recognition kiosk agent.

Captures camera frames, identifies faces against an AWS Rekognition
collection, saves unknown faces as guests and keeps the collection in
sync with a local catalogue of reference images.
"""

__version__ = "0.1.0"

from .keys import FaceKey, format_face_key, parse_face_key
from .resolver import IdentityResolver, Resolution, ResolutionStatus
from .sync import CatalogueSynchronizer, SyncReport

__all__ = [
    "FaceKey",
    "format_face_key",
    "parse_face_key",
    "IdentityResolver",
    "Resolution",
    "ResolutionStatus",
    "CatalogueSynchronizer",
    "SyncReport",
]
