"""Unit tests for the shelf and playback equality policies."""

from __future__ import annotations

import pytest

from src.models.records import Book
from src.services.equality import PlaybackEqualityPolicy, ShelfEqualityPolicy
from tests.conftest import make_shelf, make_track


class TestNoneHandling:
    @pytest.mark.parametrize("policy", [ShelfEqualityPolicy(), PlaybackEqualityPolicy()])
    def test_none_equals_none(self, policy) -> None:
        assert policy.equal(None, None) is True

    def test_record_vs_none_is_material(self) -> None:
        policy = ShelfEqualityPolicy()
        assert policy.equal(make_shelf(), None) is False
        assert policy.equal(None, make_shelf()) is False


class TestShelfEqualityPolicy:
    @pytest.fixture()
    def policy(self) -> ShelfEqualityPolicy:
        return ShelfEqualityPolicy()

    def test_display_fields_are_ignored(self, policy: ShelfEqualityPolicy) -> None:
        a = make_shelf(cover="https://img.example/a.jpg", link="https://a")
        b = make_shelf(
            cover="https://img.example/b.jpg",
            link="https://b",
            previous=Book(title="Emma", author="Austen"),
        )
        assert policy.equal(a, b) is True

    def test_title_change_is_material(self, policy: ShelfEqualityPolicy) -> None:
        assert policy.equal(make_shelf(title="Dune"), make_shelf(title="Dune Messiah")) is False

    def test_author_change_is_material(self, policy: ShelfEqualityPolicy) -> None:
        assert policy.equal(make_shelf(author="Herbert"), make_shelf(author="F. Herbert")) is False

    def test_comparison_is_case_sensitive(self, policy: ShelfEqualityPolicy) -> None:
        assert policy.equal(make_shelf(title="Dune"), make_shelf(title="DUNE")) is False

    def test_rejects_wrong_record_kind(self, policy: ShelfEqualityPolicy) -> None:
        with pytest.raises(TypeError):
            policy.equal(make_track(), make_track())


class TestPlaybackEqualityPolicy:
    @pytest.fixture()
    def policy(self) -> PlaybackEqualityPolicy:
        return PlaybackEqualityPolicy()

    def test_art_change_is_cosmetic(self, policy: PlaybackEqualityPolicy) -> None:
        assert policy.equal(make_track(album_art="a"), make_track(album_art="b")) is True

    def test_pause_is_material(self, policy: PlaybackEqualityPolicy) -> None:
        assert policy.equal(make_track(is_playing=True), make_track(is_playing=False)) is False

    def test_new_track_is_material(self, policy: PlaybackEqualityPolicy) -> None:
        assert policy.equal(make_track(track_id="T1"), make_track(track_id="T2")) is False
