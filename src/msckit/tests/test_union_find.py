# -*- coding: utf-8 -*-
"""
Tests for the root finding helpers used by the segmentation.
"""

import numpy as np
import pytest

from msckit.core.utilities.union_find import get_roots


@pytest.mark.parametrize(
    "parents, expected",
    [
        ([0, 1, 2], [0, 1, 2]),
        ([0, 0, 1], [0, 0, 0]),
        ([0, 0, 1, 2], [0, 0, 0, 0]),
        ([1, 2, 2, 0, 3], [2, 2, 2, 2, 2]),
        ([0, 0, 3, 3, 2], [0, 0, 3, 3, 3]),
    ],
)
def test_get_roots_follows_chains(parents, expected):
    parents = np.array(parents, dtype=np.int64)
    original = parents.copy()
    roots = get_roots(parents)
    assert roots.tolist() == expected
    # the pointers are left untouched
    assert np.array_equal(parents, original)


def test_get_roots_long_chain():
    parents = np.arange(-1, 999, dtype=np.int64)
    parents[0] = 0
    assert (get_roots(parents) == 0).all()


def test_ramp_segmentation_finishes():
    from msckit.core import MorseSmaleComplex, Triangulation

    tri = Triangulation.from_regular_grid((4, 4))
    field = tri.vertices[:, 0] + 0.1 * tri.vertices[:, 1]
    msc = MorseSmaleComplex(tri, field)
    assert (msc.descending_manifold == 0).all()
    assert (msc.ascending_manifold == msc.result.segmentation.boundary_label).all()
