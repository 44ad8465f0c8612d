"""Tests for cursor movement, paging and directory changes."""

import os
from pathlib import Path

import pytest

from spy.modes import DetailMode
from spy.navigation import NavigationState, expand_target
from spy.state import ListingError

from conftest import populate


@pytest.fixture
def grid(tmp_path):
    """Eight entries laid out 3 rows by 2 columns: page 0 holds 0-5, page 1 holds 6-7."""
    populate(tmp_path, files=[f"f{n}" for n in range(1, 9)])
    nav = NavigationState(cwd=tmp_path)
    assert nav.rebuild()
    # cell width is 2 + 2, plus one column of padding
    nav.set_viewport(3, 10)
    assert nav.layout.columns == 2
    return nav


@pytest.fixture
def tree(monkeypatch, tmp_path):
    root = tmp_path.resolve()
    populate(root, files=["a.txt", "b.txt"], dirs=["one", "two"])
    populate(root / "one", files=["x", "y"], dirs=["inner"])
    monkeypatch.chdir(root)
    nav = NavigationState(cwd=root)
    nav.rebuild()
    return nav


def test_move_down_wraps_within_column(grid):
    """Test that moving down wraps to the top of the column."""
    grid.select(2)
    grid.move_down()
    assert grid.index == 0


def test_move_down_wraps_in_short_last_column(grid):
    """Test wrapping in a column that is not full."""
    grid.select(7)
    grid.move_down()
    assert grid.index == 6
    grid.move_up()
    assert grid.index == 7


def test_move_up_from_top_goes_to_column_bottom(grid):
    """Test that moving up from the top wraps to the column bottom."""
    grid.select(3)
    grid.move_up()
    assert grid.index == 5


def test_move_right_and_left_wrap(grid):
    """Test horizontal wrapping across columns."""
    grid.select(0)
    grid.move_right()
    assert grid.index == 3
    grid.move_right()
    assert grid.index == 0
    grid.move_left()
    assert grid.index == 3


def test_horizontal_moves_stay_on_populated_cells(grid):
    """Test that horizontal moves never land on an empty cell."""
    grid.select(6)
    grid.move_right()
    assert grid.index == 6
    grid.move_left()
    assert grid.index == 6


def test_page_down_and_up(grid):
    """Test paging forwards and backwards."""
    grid.select(1)
    grid.page_down()
    assert grid.index == 7
    grid.page_down()
    assert grid.index == 7
    grid.page_up()
    assert grid.index == 1
    grid.page_up()
    assert grid.index == 1


def test_page_down_clamps_to_last_entry(grid):
    """Test that paging down on a short page selects the last entry."""
    grid.select(4)
    grid.page_down()
    assert grid.index == 7


def test_first_and_last(grid):
    """Test jumping to the first and last entries."""
    grid.last()
    assert grid.index == 7
    grid.first()
    assert grid.index == 0


def test_movement_on_empty_listing(tmp_path):
    """Test that movement in an empty directory does nothing."""
    nav = NavigationState(cwd=tmp_path)
    nav.rebuild()
    for move in (nav.move_up, nav.move_down, nav.move_left, nav.move_right, nav.page_down, nav.last):
        move()
    assert nav.index == 0
    assert nav.current_entry() is None


def test_rebuild_keeps_selected_name(grid, tmp_path):
    """Test that rebuilding keeps the cursor on the same name."""
    grid.select_name("f3")
    (tmp_path / "a0").write_text("new", encoding="utf-8")
    grid.rebuild()
    assert grid.current_entry().name == "f3"


def test_rebuild_clamps_when_selection_disappears(grid, tmp_path):
    """Test that the cursor is clamped when its entry disappears."""
    grid.last()
    (tmp_path / "f8").unlink()
    grid.rebuild()
    assert grid.index == 6
    assert grid.current_entry().name == "f7"


def test_rebuild_failure_keeps_listing(tmp_path):
    """Test that a failed rebuild keeps the old listing."""
    nav = NavigationState(cwd=tmp_path / "gone")
    assert not nav.rebuild()
    assert "gone" in nav.status_message


def test_set_detail_resorts(tmp_path):
    """Test that changing the detail mode resorts the listing."""
    (tmp_path / "small").write_text("x", encoding="utf-8")
    (tmp_path / "large").write_text("x" * 500, encoding="utf-8")
    nav = NavigationState(cwd=tmp_path)
    nav.rebuild()
    assert nav.listing.names == ["large", "small"]
    nav.select_name("small")
    assert nav.set_detail(DetailMode.SIZE)
    assert nav.listing.names == ["large", "small"]
    assert nav.current_entry().name == "small"
    assert nav.cell_width == len("large") + 2 + DetailMode.SIZE.width


def test_set_detail_reverts_on_failure(tmp_path):
    """Test that the detail mode is unchanged when the directory cannot be read."""
    nav = NavigationState(cwd=tmp_path / "gone")
    assert not nav.set_detail(DetailMode.TIME)
    assert nav.detail is DetailMode.NONE


def test_dirup_selects_child_directory(tree):
    """Test that going up selects the directory just left."""
    root = tree.cwd
    assert tree.change_directory("one")
    assert tree.cwd == root / "one"
    assert Path(os.getcwd()) == root / "one"
    assert tree.change_directory("..")
    assert tree.cwd == root
    assert tree.current_entry().name == "one"


def test_returning_restores_remembered_selection(tree):
    """Test that returning to a directory restores its selection."""
    root = tree.cwd
    tree.select_name("b.txt")
    assert tree.change_directory("one/inner")
    assert tree.change_directory(str(root))
    assert tree.current_entry().name == "b.txt"


def test_new_directory_starts_at_first_entry(tree):
    """Test that a new directory starts on its first entry."""
    tree.select_name("two")
    assert tree.change_directory("one")
    assert tree.index == 0


def test_change_to_same_directory_is_noop(tree):
    """Test that changing to the current directory does nothing."""
    tree.select_name("b.txt")
    assert not tree.change_directory(".")
    assert tree.current_entry().name == "b.txt"


def test_change_directory_clears_tags(tree):
    """Test that tags are cleared on a directory change."""
    tree.select_name("a.txt")
    tree.toggle_tag()
    assert tree.tagged == {"a.txt"}
    tree.change_directory("one")
    assert tree.tagged == set()


def test_change_directory_missing_target(tree):
    """Test that a missing target is reported and nothing changes."""
    root = tree.cwd
    assert not tree.change_directory("missing")
    assert tree.cwd == root
    assert tree.status_message.startswith("missing: ")


def test_change_directory_rolls_back_when_listing_fails(tree, monkeypatch):
    """Test that a failed listing returns to the old directory."""
    root = tree.cwd

    def failing_build(*args, **kwargs):
        raise ListingError("cannot list")

    monkeypatch.setattr("spy.navigation.DirectoryListing.build", failing_build)
    assert not tree.change_directory("one")
    assert tree.cwd == root
    assert Path(os.getcwd()) == root
    assert tree.status_message == "cannot list"
    assert "one" in tree.listing.names


def test_expand_target(monkeypatch, tmp_path):
    """Test variable and home expansion of jump targets."""
    monkeypatch.setenv("SPY_TARGET", str(tmp_path))
    monkeypatch.setenv("HOME", "/home/someone")
    assert expand_target(" $SPY_TARGET/sub ") == f"{tmp_path}/sub"
    assert expand_target("~/src") == "/home/someone/src"
    assert expand_target("") == ""


def test_expand_target_removes_shell_quoting(monkeypatch):
    """Test that quoted and escaped targets lose their quoting before expansion."""
    monkeypatch.setenv("HOME", "/home/someone")
    assert expand_target('"~/My Dir"') == "/home/someone/My Dir"
    assert expand_target("~/My\\ Dir") == "/home/someone/My Dir"
    assert expand_target("'it''s'") == "its"
    assert expand_target('"unbalanced') == '"unbalanced'


def test_change_directory_into_quoted_name(tree):
    """Test that a quoted target with spaces can be entered."""
    populate(tree.cwd, dirs=["My Dir"])
    assert tree.change_directory('"My Dir"')
    assert tree.cwd.name == "My Dir"
