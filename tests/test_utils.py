import pytest

from utils import FREE_COLOR, USED_COLOR, get_color, utilization_color


def test_block_colors():
    assert get_color(True) == USED_COLOR
    assert get_color(False) == FREE_COLOR


@pytest.mark.parametrize("util,color", [
    (100, "#388e3c"),
    (80, "#388e3c"),
    (79.99, "#f57c00"),
    (50, "#f57c00"),
    (49.5, "#d32f2f"),
    (0, "#d32f2f"),
])
def test_utilization_color(util, color):
    assert utilization_color(util) == color
