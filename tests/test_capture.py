"""Tests for the capture loop."""

import threading
from datetime import datetime

import cv2
import numpy as np
import pytest

from conftest import FakeRecognitionClient


class FakeCamera:
    """Frame source returning queued frames, then failing."""

    def __init__(self, frames):
        self.frames = list(frames)
        self.captured = 0

    def start(self):
        pass

    def stop(self):
        pass

    def capture(self):
        from face_kiosk.errors import CameraError

        self.captured += 1
        if not self.frames:
            raise CameraError("Device closed: fake")
        return self.frames.pop(0)


def make_loop(camera, client, store, **kwargs):
    from face_kiosk import IdentityResolver
    from face_kiosk.capture import CaptureLoop

    return CaptureLoop(camera, client, IdentityResolver(store), "kiosk-faces", **kwargs)


def decode(image_bytes):
    return cv2.imdecode(np.frombuffer(image_bytes, dtype=np.uint8), cv2.IMREAD_COLOR)


class TestCaptureLoop:
    """Test cases for CaptureLoop."""

    def test_unknown_faces_saved_as_guests(self, store, sample_image):
        """Test each unmatched face is cropped, searched and saved."""
        from face_kiosk.remote import BoundingBox

        client = FakeRecognitionClient()
        client.boxes = [
            BoundingBox(left=0.25, top=0.5, width=0.5, height=0.25),
            BoundingBox(left=-0.1, top=0.2, width=0.95, height=0.9),
        ]
        loop = make_loop(FakeCamera([]), client, store)

        results = loop.process_frame(sample_image, datetime(2024, 1, 2, 3, 4, 5))

        assert [r.is_guest for r in results] == [True, True]
        assert client.calls["search"] == 2
        names = sorted(p.name for p in store.guest_dir.iterdir())
        assert names == ["20240102-030405-0.jpg", "20240102-030405-1.jpg"]

        first_crop = decode(client.search_images[0])
        assert first_crop.shape[:2] == (120, 320)
        second_crop = decode(client.search_images[1])
        assert second_crop.shape[:2] == (480 - 96, 544)

    def test_identified_face(self, store, sample_image):
        """Test a matched face is identified and nothing is saved."""
        from face_kiosk import FaceKey
        from face_kiosk.remote import BoundingBox, MatchCandidate

        client = FakeRecognitionClient()
        client.boxes = [BoundingBox(left=0.1, top=0.1, width=0.3, height=0.3)]
        client.candidates = [
            MatchCandidate("xavier_1", 80.0),
            MatchCandidate("yolanda_1", 95.0),
        ]
        loop = make_loop(FakeCamera([]), client, store)

        results = loop.process_frame(sample_image)

        assert len(results) == 1
        assert results[0].key == FaceKey("yolanda", "1")
        assert list(store.guest_dir.iterdir()) == []

    def test_detect_failure_skips_frame(self, store, sample_image):
        """Test a detect error drops only the frame."""
        client = FakeRecognitionClient()
        client.fail_detect = True
        loop = make_loop(FakeCamera([]), client, store)

        assert loop.process_frame(sample_image) == []
        assert client.calls["search"] == 0

    def test_search_failure_skips_face(self, store, sample_image):
        """Test a search error drops only that face."""
        from face_kiosk.remote import BoundingBox

        client = FakeRecognitionClient()
        client.boxes = [BoundingBox(0.1, 0.1, 0.2, 0.2), BoundingBox(0.5, 0.5, 0.2, 0.2)]
        client.fail_search = True
        loop = make_loop(FakeCamera([]), client, store)

        assert loop.process_frame(sample_image) == []
        assert client.calls["search"] == 2
        assert list(store.guest_dir.iterdir()) == []

    def test_rejected_search_saves_no_guest(self, store, sample_image):
        """Test a search rejected by Rekognition never writes a guest image."""
        import boto3
        from botocore.stub import Stubber

        from face_kiosk.remote import RekognitionClient

        boto_client = boto3.client(
            "rekognition",
            region_name="us-east-1",
            aws_access_key_id="testing",
            aws_secret_access_key="testing",
        )
        loop = make_loop(FakeCamera([]), RekognitionClient(client=boto_client), store)

        with Stubber(boto_client) as stubber:
            stubber.add_response(
                "detect_faces",
                {"FaceDetails": [{"BoundingBox": {
                    "Left": 0.25, "Top": 0.25, "Width": 0.5, "Height": 0.5,
                }}]},
            )
            stubber.add_client_error(
                "search_faces_by_image",
                service_error_code="InvalidParameterException",
                service_message="Request has invalid image format",
            )

            assert loop.process_frame(sample_image) == []
            stubber.assert_no_pending_responses()

        assert list(store.guest_dir.iterdir()) == []

    def test_empty_regions_are_skipped(self, store, sample_image):
        """Test boxes entirely outside the frame are not searched."""
        from face_kiosk.remote import BoundingBox

        client = FakeRecognitionClient()
        client.boxes = [BoundingBox(left=1.2, top=0.1, width=0.2, height=0.2)]
        loop = make_loop(FakeCamera([]), client, store)

        assert loop.process_frame(sample_image) == []
        assert client.calls["search"] == 0

    def test_step_skips_failed_capture(self, store):
        """Test a failed capture is logged and skipped."""
        client = FakeRecognitionClient()
        loop = make_loop(FakeCamera([]), client, store)

        assert loop.step() == []
        assert client.calls["detect"] == 0

    def test_warm_up_discards_frames(self, store, sample_image):
        """Test warm_up reads and drops the configured number of frames."""
        camera = FakeCamera([sample_image] * 4)
        loop = make_loop(camera, FakeRecognitionClient(), store, warmup_frames=3)

        loop.warm_up()

        assert camera.captured == 3
        assert len(camera.frames) == 1

    def test_debug_frame_written(self, store, sample_image, tmp_path):
        """Test the encoded frame is written when a debug path is set."""
        debug_path = tmp_path / "capture.jpg"
        loop = make_loop(FakeCamera([]), FakeRecognitionClient(), store,
                         debug_frame_path=str(debug_path))

        loop.process_frame(sample_image)

        assert decode(debug_path.read_bytes()).shape == sample_image.shape

    def test_run_until_stopped(self, store, sample_image):
        """Test run keeps going after errors until the stop event is set."""
        stop_event = threading.Event()
        client = FakeRecognitionClient()

        class StoppingCamera(FakeCamera):
            def capture(self):
                if self.captured >= 3:
                    stop_event.set()
                return super().capture()

        camera = StoppingCamera([sample_image])
        loop = make_loop(camera, client, store)
        loop.run(stop_event)

        assert camera.captured == 4
        assert client.calls["detect"] == 1


class TestEncodeJpeg:
    """Test cases for encode_jpeg."""

    def test_encode(self, sample_image):
        """Test frames encode to decodable JPEG bytes."""
        from face_kiosk.capture import encode_jpeg

        data = encode_jpeg(sample_image)

        assert data[:2] == b"\xff\xd8"
        assert decode(data).shape == sample_image.shape
