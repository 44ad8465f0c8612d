"""Tests for grid geometry and the index/position bijection."""

import pytest

from spy.layout import GridLayout, Position


@pytest.mark.parametrize("count", [1, 2, 7, 12, 13, 50])
@pytest.mark.parametrize("rows,columns", [(1, 1), (1, 4), (3, 1), (3, 4), (5, 2)])
def test_index_position_bijection(count, rows, columns):
    """Test that index and grid position convert both ways."""
    layout = GridLayout(count=count, rows=rows, columns=columns)
    for index in range(count):
        position = layout.index_to_position(index)
        assert layout.position_to_index(position) == index
        assert 0 <= position.col < columns
        assert 0 <= position.row < rows


def test_compute_geometry():
    """Test rows and columns computed from the viewport."""
    layout = GridLayout.compute(count=10, viewport_rows=3, viewport_cols=40, cell_width=9)
    assert layout.columns == 4
    assert layout.rows == 3
    assert layout.page_size == 12
    assert layout.pages == 1


def test_compute_never_below_one():
    """Test that a tiny viewport still has one row and column."""
    layout = GridLayout.compute(count=5, viewport_rows=0, viewport_cols=3, cell_width=50)
    assert layout.rows == 1
    assert layout.columns == 1
    assert layout.pages == 5


def test_pages_rounds_up():
    """Test that a partial page counts as a page."""
    assert GridLayout(count=13, rows=3, columns=2).pages == 3
    assert GridLayout(count=12, rows=3, columns=2).pages == 2
    assert GridLayout(count=0, rows=3, columns=2).pages == 0


def test_column_major_fill():
    """Test that entries fill columns top to bottom."""
    layout = GridLayout(count=20, rows=3, columns=2)
    assert layout.index_to_position(0) == Position(0, 0, 0)
    assert layout.index_to_position(2) == Position(0, 0, 2)
    assert layout.index_to_position(3) == Position(0, 1, 0)
    assert layout.index_to_position(6) == Position(1, 0, 0)


def test_partial_last_page_rows_and_columns():
    """Test rows and columns on a short last page."""
    # 8 entries, 3 rows x 2 columns: last page holds indices 6 and 7 in column 0
    layout = GridLayout(count=8, rows=3, columns=2)
    assert layout.pages == 2
    assert layout.rows_in(0, 1) == 3
    assert layout.rows_in(1, 0) == 2
    assert layout.rows_in(1, 1) == 0
    assert layout.columns_in(1, 0) == 1
    assert layout.columns_in(1, 2) == 0
    assert layout.columns_in(0, 2) == 2


def test_partial_single_page_columns():
    """Test columns in use on a single partial page."""
    # 5 entries, 3 rows x 2 columns: column 1 holds only rows 0 and 1
    layout = GridLayout(count=5, rows=3, columns=2)
    assert layout.rows_in(0, 1) == 2
    assert layout.columns_in(0, 0) == 2
    assert layout.columns_in(0, 2) == 1


def test_page_bounds():
    """Test the index range of each page."""
    layout = GridLayout(count=8, rows=3, columns=2)
    assert list(layout.page_bounds(0)) == [0, 1, 2, 3, 4, 5]
    assert list(layout.page_bounds(1)) == [6, 7]
