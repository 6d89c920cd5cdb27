"""Face key parsing and formatting.

A face key identifies one reference image in the catalogue. Its external
form, used as the Rekognition ``ExternalImageId``, is ``"<name>_<index>"``.
"""

from dataclasses import dataclass
from typing import Optional

from .errors import FaceKeySyntaxError

SEPARATOR = "_"


@dataclass(frozen=True, order=True)
class FaceKey:
    """Identity label plus per-identity variant (e.g. pose id)."""

    name: str
    index: str

    def __post_init__(self):
        if not self.name or SEPARATOR in self.name or "/" in self.name:
            raise FaceKeySyntaxError(f"Invalid face key name: {self.name!r}")
        if not self.index or "/" in self.index:
            raise FaceKeySyntaxError(f"Invalid face key index: {self.index!r}")

    @property
    def external_id(self) -> str:
        """External id used by the remote index."""
        return format_face_key(self)

    @classmethod
    def parse(cls, value: Optional[str]) -> "FaceKey":
        return parse_face_key(value)

    def __str__(self) -> str:
        return format_face_key(self)


def parse_face_key(value: Optional[str]) -> FaceKey:
    """Parse ``"<name>_<index>"`` into a FaceKey.

    Only the first separator splits, so the index may itself contain
    underscores while the name may not.

    Raises:
        FaceKeySyntaxError: if the value is None or has no separator
    """
    if value is None:
        raise FaceKeySyntaxError("Invalid face key syntax: None")

    parts = value.split(SEPARATOR, 1)
    if len(parts) != 2:
        raise FaceKeySyntaxError(f"Invalid face key syntax: {value!r}")

    return FaceKey(parts[0], parts[1])


def format_face_key(key: FaceKey) -> str:
    return f"{key.name}{SEPARATOR}{key.index}"
