"""Tests for detail modes."""

from spy.modes import ALL_DETAIL_MODES, DetailMode


def test_detail_mode_cycle():
    """Test that detail modes cycle none, size, time."""
    assert DetailMode.NONE.next() is DetailMode.SIZE
    assert DetailMode.SIZE.next() is DetailMode.TIME
    assert DetailMode.TIME.next() is DetailMode.NONE


def test_detail_mode_labels_and_widths():
    """Test detail mode labels and column widths."""
    assert [mode.label for mode in ALL_DETAIL_MODES] == ["Name", "Size", "Time"]
    assert DetailMode.NONE.width == 0
    assert DetailMode.SIZE.width == 7
    assert DetailMode.TIME.width == 13


def test_detail_mode_from_value():
    """Test looking up a detail mode by name."""
    assert DetailMode("time") is DetailMode.TIME
