"""AWS Rekognition client."""

import logging
from typing import List, Optional

import boto3
from botocore.config import Config as BotoConfig
from botocore.exceptions import BotoCoreError, ClientError

from ..constants import RemoteConfig
from ..errors import RemoteCallError
from .base import BaseRecognitionClient, BoundingBox, MatchCandidate, RemoteIndexEntry

logger = logging.getLogger(__name__)


def _error_code(error: Exception) -> Optional[str]:
    if isinstance(error, ClientError):
        return error.response.get("Error", {}).get("Code")
    return None


class RekognitionClient(BaseRecognitionClient):
    """Recognition client backed by AWS Rekognition."""

    def __init__(
        self,
        region: str = "us-east-1",
        access_key_id: Optional[str] = None,
        secret_access_key: Optional[str] = None,
        connect_timeout: float = 5.0,
        read_timeout: float = 10.0,
        max_attempts: int = 1,
        client=None,
    ):
        """Initialize Rekognition client.

        Credentials left as None fall back to the default boto3 chain.

        Args:
            region: AWS region
            access_key_id: AWS access key id
            secret_access_key: AWS secret access key
            connect_timeout: Socket connect timeout per call in seconds
            read_timeout: Socket read timeout per call in seconds
            max_attempts: Total attempts per call, including the first
            client: Pre-built boto3 Rekognition client (created if None)
        """
        self.region = region

        if client is None:
            client = boto3.client(
                "rekognition",
                region_name=region,
                aws_access_key_id=access_key_id,
                aws_secret_access_key=secret_access_key,
                config=BotoConfig(
                    connect_timeout=connect_timeout,
                    read_timeout=read_timeout,
                    retries={"total_max_attempts": max_attempts},
                ),
            )
        self.client = client

    @classmethod
    def from_config(cls, config: RemoteConfig) -> "RekognitionClient":
        return cls(
            region=config.region,
            access_key_id=config.access_key_id,
            secret_access_key=config.secret_access_key,
            connect_timeout=config.connect_timeout,
            read_timeout=config.read_timeout,
            max_attempts=config.max_attempts,
        )

    def detect_faces(self, image: bytes) -> List[BoundingBox]:
        try:
            response = self.client.detect_faces(Image={"Bytes": image})
        except (BotoCoreError, ClientError) as e:
            raise RemoteCallError("DetectFaces", str(e), _error_code(e)) from e

        boxes = []
        for detail in response.get("FaceDetails", []):
            box = detail.get("BoundingBox", {})
            boxes.append(BoundingBox(
                left=box.get("Left", 0.0),
                top=box.get("Top", 0.0),
                width=box.get("Width", 0.0),
                height=box.get("Height", 0.0),
            ))

        logger.debug(f"DetectFaces found {len(boxes)} face(s)")
        return boxes

    def search_by_image(self, image: bytes, collection_id: str) -> List[MatchCandidate]:
        try:
            response = self.client.search_faces_by_image(
                CollectionId=collection_id,
                Image={"Bytes": image},
            )
        except (BotoCoreError, ClientError) as e:
            raise RemoteCallError("SearchFacesByImage", str(e), _error_code(e)) from e

        candidates = []
        for match in response.get("FaceMatches", []):
            face = match.get("Face", {})
            candidates.append(MatchCandidate(
                external_id=face.get("ExternalImageId"),
                similarity=float(match.get("Similarity", 0.0)),
                face_id=face.get("FaceId"),
            ))

        logger.info(f"SearchFacesByImage result: {len(candidates)}")
        return candidates

    def list_indexed(self, collection_id: str) -> List[RemoteIndexEntry]:
        entries = []
        paginator = self.client.get_paginator("list_faces")

        try:
            for page in paginator.paginate(CollectionId=collection_id):
                for face in page.get("Faces", []):
                    entries.append(RemoteIndexEntry(
                        external_id=face.get("ExternalImageId"),
                        face_id=face.get("FaceId", ""),
                    ))
        except (BotoCoreError, ClientError) as e:
            raise RemoteCallError("ListFaces", str(e), _error_code(e)) from e

        return entries

    def index_image(self, image: bytes, collection_id: str, external_id: str) -> Optional[str]:
        try:
            response = self.client.index_faces(
                CollectionId=collection_id,
                Image={"Bytes": image},
                ExternalImageId=external_id,
                DetectionAttributes=[],
                MaxFaces=1,
                QualityFilter="AUTO",
            )
        except (BotoCoreError, ClientError) as e:
            raise RemoteCallError("IndexFaces", str(e), _error_code(e)) from e

        records = response.get("FaceRecords", [])
        if not records:
            reasons = [
                reason
                for unindexed in response.get("UnindexedFaces", [])
                for reason in unindexed.get("Reasons", [])
            ]
            detail = ", ".join(reasons) or "no face detected"
            raise RemoteCallError("IndexFaces", f"{external_id} not indexed: {detail}")

        return records[0].get("Face", {}).get("FaceId")
