"""Tests for identity resolution."""

from datetime import datetime

import pytest


def candidate(external_id, similarity, face_id="face-0"):
    from face_kiosk.remote import MatchCandidate

    return MatchCandidate(external_id=external_id, similarity=similarity, face_id=face_id)


def guest_files(store):
    return sorted(store.guest_dir.iterdir())


class TestIdentityResolver:
    """Test cases for IdentityResolver."""

    def test_no_candidates_saves_guest(self, store):
        """Test zero candidates classifies as guest and writes one file."""
        from face_kiosk import IdentityResolver, ResolutionStatus

        resolver = IdentityResolver(store)
        result = resolver.resolve([], b"crop", 3, datetime(2024, 1, 2, 3, 4, 5))

        assert result.status == ResolutionStatus.GUEST
        assert result.is_guest
        files = guest_files(store)
        assert [f.name for f in files] == ["20240102-030405-3.jpg"]
        assert result.guest_path == str(files[0])
        assert files[0].read_bytes() == b"crop"

    def test_highest_similarity_wins(self, store):
        """Test [(X, 80), (Y, 95)] identifies Y."""
        from face_kiosk import FaceKey, IdentityResolver

        resolver = IdentityResolver(store)
        result = resolver.resolve(
            [candidate("xavier_1", 80.0), candidate("yolanda_1", 95.0)], b"crop", 0
        )

        assert result.is_identified
        assert result.key == FaceKey("yolanda", "1")
        assert result.similarity == 95.0
        assert guest_files(store) == []

    def test_unparseable_candidates_are_guest_without_file(self, store):
        """Test matches with no usable key give a guest but write nothing."""
        from face_kiosk import IdentityResolver, ResolutionStatus

        resolver = IdentityResolver(store)
        result = resolver.resolve(
            [candidate(None, 99.0), candidate("nounderscore", 90.0)], b"crop", 0
        )

        assert result.status == ResolutionStatus.GUEST
        assert result.guest_path is None
        assert guest_files(store) == []

    def test_bad_candidates_are_skipped(self, store):
        """Test a malformed best match does not hide a valid one."""
        from face_kiosk import FaceKey, IdentityResolver

        resolver = IdentityResolver(store)
        result = resolver.resolve(
            [candidate("garbage", 99.9), candidate(None, 99.0), candidate("alice_2", 70.0)],
            b"crop",
            0,
        )

        assert result.key == FaceKey("alice", "2")

    def test_guest_save_failure_is_not_fatal(self, tmp_path):
        """Test a storage failure still returns a guest resolution."""
        from face_kiosk import IdentityResolver
        from face_kiosk.store import LocalStore

        resolver = IdentityResolver(LocalStore(tmp_path / "not-set-up"))
        result = resolver.resolve([], b"crop", 0)

        assert result.is_guest
        assert result.guest_path is None


class TestBestMatch:
    """Test cases for best_match."""

    def test_ties_keep_first_seen(self):
        """Test equal similarities resolve to the first candidate."""
        from face_kiosk import FaceKey
        from face_kiosk.resolver import best_match

        key, similarity = best_match([
            candidate("alice_1", 90.0),
            candidate("bob_1", 90.0),
            candidate("carol_1", 10.0),
        ])

        assert key == FaceKey("alice", "1")
        assert similarity == 90.0

    def test_empty(self):
        """Test no candidates gives no match."""
        from face_kiosk.resolver import best_match

        assert best_match([]) is None

    @pytest.mark.parametrize("order", [[0, 1, 2], [2, 1, 0], [1, 2, 0]])
    def test_independent_of_order(self, order):
        """Test a unique maximum wins regardless of position."""
        from face_kiosk.resolver import best_match

        pool = [candidate("a_1", 50.0), candidate("b_1", 99.5), candidate("c_1", 75.0)]
        key, _ = best_match([pool[i] for i in order])

        assert str(key) == "b_1"
