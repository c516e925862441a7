"""Tests for the Display and DeviceSet models."""

import pytest
from pydantic import ValidationError

from dpui.domain.display import DeviceSet, Display


def _display(display_id: str = "1", **kwargs: object) -> Display:
    return Display(id=display_id, resolution=(1920, 1080), **kwargs)


class TestDisplay:
    def test_defaults(self) -> None:
        d = _display()
        assert d.origin == (0, 0)
        assert d.rotation == 0
        assert d.enabled is True
        assert d.width == 1920
        assert d.height == 1080
        assert d.resolution_label == "1920x1080"

    def test_negative_origin_allowed(self) -> None:
        assert _display(origin=(-1920, -200)).origin == (-1920, -200)

    @pytest.mark.parametrize("rotation", [0, 90, 180, 270])
    def test_legal_rotations(self, rotation: int) -> None:
        assert _display(rotation=rotation).rotation == rotation

    @pytest.mark.parametrize("rotation", [45, -90, 360])
    def test_illegal_rotation(self, rotation: int) -> None:
        with pytest.raises(ValidationError):
            _display(rotation=rotation)

    @pytest.mark.parametrize("resolution", [(0, 1080), (1920, -1)])
    def test_non_positive_resolution(self, resolution: tuple[int, int]) -> None:
        with pytest.raises(ValidationError):
            Display(id="1", resolution=resolution)

    def test_whitespace_in_id_rejected(self) -> None:
        with pytest.raises(ValidationError):
            _display("a b")

    def test_empty_id_rejected(self) -> None:
        with pytest.raises(ValidationError):
            _display("")

    def test_frozen(self) -> None:
        d = _display()
        with pytest.raises(ValidationError):
            d.origin = (1, 1)  # type: ignore[misc]

    def test_with_origin(self) -> None:
        d = _display()
        moved = d.with_origin(10, -5)
        assert moved.origin == (10, -5)
        assert d.origin == (0, 0)


class TestDeviceSet:
    def test_duplicate_ids_rejected(self) -> None:
        with pytest.raises(ValidationError, match="duplicate"):
            DeviceSet(displays=(_display("1"), _display("1")))

    def test_lookup_and_counts(self) -> None:
        ds = DeviceSet(displays=(_display("1"), _display("2", enabled=False)))
        assert len(ds) == 2
        assert ds.ids == ["1", "2"]
        assert ds.enabled_count == 1
        assert ds.get("2") is not None
        assert ds.get("3") is None

    def test_with_origin_preserves_order(self) -> None:
        ds = DeviceSet(displays=(_display("1"), _display("2")), raw="raw")
        moved = ds.with_origin("2", 1920, 0)
        assert moved.ids == ["1", "2"]
        assert moved.get("2").origin == (1920, 0)  # type: ignore[union-attr]
        assert moved.raw == "raw"
        assert ds.get("2").origin == (0, 0)  # type: ignore[union-attr]

    def test_with_origin_unknown_id(self) -> None:
        with pytest.raises(KeyError):
            DeviceSet(displays=(_display("1"),)).with_origin("9", 0, 0)
