"""S3 image store.

Same layout as the local store, rooted at ``s3://<bucket>/<prefix>/``.
"""

import logging
from datetime import datetime
from typing import Optional

import boto3
from botocore.exceptions import BotoCoreError, ClientError

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

NOT_FOUND_CODES = ("NoSuchKey", "404", "NotFound")


class S3Store(BaseStore):
    """Image store backed by an S3 bucket."""

    def __init__(
        self,
        bucket: str,
        prefix: str = "",
        region: Optional[str] = None,
        client=None,
    ):
        """Initialize S3 store.

        Args:
            bucket: Bucket name
            prefix: Key prefix under which catalogue/ and guests/ live
            region: AWS region for the default client
            client: Pre-built boto3 S3 client (created if None)
        """
        self.bucket = bucket
        self.prefix = prefix.strip("/")
        self.client = client or boto3.client("s3", region_name=region)

    def _key(self, *parts: str) -> str:
        return "/".join(p for p in (self.prefix, *parts) if p)

    @property
    def catalogue_prefix(self) -> str:
        return self._key(CATALOGUE_DIR) + "/"

    def setup(self) -> None:
        try:
            self.client.head_bucket(Bucket=self.bucket)
        except (BotoCoreError, ClientError) as e:
            raise StorageError(f"Bucket {self.bucket} is not reachable: {e}") from e

    def save_guest(
        self,
        image: bytes,
        frame_index: int,
        captured_at: Optional[datetime] = None,
    ) -> str:
        key = self._key(GUEST_DIR, guest_filename(frame_index, captured_at))

        try:
            self.client.put_object(
                Bucket=self.bucket,
                Key=key,
                Body=image,
                ContentType="image/jpeg",
            )
        except (BotoCoreError, ClientError) as e:
            raise StorageError(f"Failed to save guest image {key}: {e}") from e

        return f"s3://{self.bucket}/{key}"

    def read_image(self, key: FaceKey) -> bytes:
        object_key = self._key(CATALOGUE_DIR, key.name, f"{key.index}{IMAGE_EXT}")

        try:
            response = self.client.get_object(Bucket=self.bucket, Key=object_key)
            return response["Body"].read()
        except ClientError as e:
            code = e.response.get("Error", {}).get("Code")
            if code in NOT_FOUND_CODES:
                raise ImageNotFoundError(f"No catalogue image for {key}: {object_key}") from e
            raise StorageError(f"Failed to read {object_key}: {e}") from e
        except BotoCoreError as e:
            raise StorageError(f"Failed to read {object_key}: {e}") from e

    def catalogue_exists(self) -> bool:
        # Prefixes need no creating, so a reachable bucket always has a catalogue
        try:
            self.client.head_bucket(Bucket=self.bucket)
        except (BotoCoreError, ClientError) as e:
            logger.warning(f"Failed to check catalogue in {self.bucket}: {e}")
            return False
        return True

    def scan_catalogue(self) -> CatalogueScan:
        scan = CatalogueScan()
        paginator = self.client.get_paginator("list_objects_v2")

        try:
            for page in paginator.paginate(Bucket=self.bucket, Prefix=self.catalogue_prefix):
                for obj in page.get("Contents", []):
                    relative = obj["Key"][len(self.catalogue_prefix):]
                    key = match_catalogue_path(relative)
                    if key is None:
                        continue
                    scan.add(CatalogueEntry(
                        key=key,
                        path=f"s3://{self.bucket}/{obj['Key']}",
                        modified=obj["LastModified"].timestamp(),
                    ))
        except (BotoCoreError, ClientError) as e:
            raise StorageError(f"Failed to list {self.catalogue_prefix}: {e}") from e

        return scan
