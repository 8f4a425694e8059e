import math

import numpy as np
import pytest

from imtool.models.image_model import Color
from imtool.services.color_tree import ColorKDTree, squared_distance


def _brute_force_distance(colors, target):
    return min(squared_distance(c, target) for c in colors)


def test_nearest_small_set():
    tree = ColorKDTree([(0, 0, 0), (10, 0, 0), (0, 10, 0)])
    assert tree.nearest((9, 1, 1)) == Color(10, 0, 0)


def test_empty_tree():
    tree = ColorKDTree([])
    assert len(tree) == 0
    assert tree.height() == 0
    assert tree.nearest((1, 2, 3)) is None


def test_single_color():
    tree = ColorKDTree([(5, 5, 5)])
    assert tree.height() == 1
    assert tree.nearest((255, 0, 255)) == Color(5, 5, 5)


def test_member_is_its_own_nearest():
    colors = [(i, (i * 7) % 31, (i * 13) % 17) for i in range(40)]
    tree = ColorKDTree(colors)
    for color in colors:
        assert tree.nearest(color) == Color(*color)


@pytest.mark.parametrize("seed", [0, 1, 2])
def test_matches_brute_force(seed):
    rng = np.random.default_rng(seed)
    colors = [tuple(int(v) for v in c) for c in rng.integers(0, 256, size=(300, 3))]
    colors = list(dict.fromkeys(colors))
    tree = ColorKDTree(colors)

    for target in rng.integers(0, 256, size=(200, 3)):
        target = tuple(int(v) for v in target)
        found = tree.nearest(target)
        assert found in colors
        assert squared_distance(found, target) == _brute_force_distance(colors, target)


def test_16_bit_colors():
    colors = [(0, 0, 0), (65535, 65535, 65535), (30000, 100, 60000)]
    tree = ColorKDTree(colors)
    assert tree.nearest((29000, 0, 65535)) == Color(30000, 100, 60000)
    assert tree.nearest((65000, 65000, 60000)) == Color(65535, 65535, 65535)


def test_tree_is_balanced():
    colors = [(i, 255 - i, (i * 5) % 256) for i in range(256)]
    tree = ColorKDTree(colors)
    assert len(tree) == 256
    assert tree.height() <= math.floor(math.log2(256)) + 1


def test_sorted_input_still_balanced():
    colors = [(i, i, i) for i in range(1000)]
    tree = ColorKDTree(colors)
    assert tree.height() <= math.floor(math.log2(1000)) + 1
    assert tree.nearest((500, 499, 501)) == Color(500, 500, 500)


def test_start_depth_changes_split_axis_only():
    colors = [(1, 9, 4), (8, 2, 6), (5, 5, 0), (3, 7, 9)]
    for depth in range(3):
        tree = ColorKDTree(colors, depth=depth)
        assert tree.nearest((8, 3, 6)) == Color(8, 2, 6)
