# -*- coding: utf-8 -*-
"""
Tests for the parallel separatrix kernels.
"""

from collections import deque

import numpy as np
import pytest

from msckit.core import DiscreteGradient, MorseSmaleComplex
from msckit.core.morse_smale.separatrices import (
    get_ascending_paths,
    get_ascending_walls,
    get_descending_paths,
    get_descending_walls,
)
from msckit.core.morse_smale.separatrices_numba import get_wall_owners


@pytest.fixture(scope="module")
def gradient3d(grid3d, random_field3d):
    return DiscreteGradient.from_field(grid3d, random_field3d)


def serial_wall(saddle, neighbors, partners):
    visited = {saddle}
    wall = [saddle]
    queue = deque([saddle])
    while queue:
        cell = queue.popleft()
        for i in neighbors(cell):
            neighbor = int(partners[i])
            if neighbor == -1 or neighbor in visited:
                continue
            visited.add(neighbor)
            wall.append(neighbor)
            queue.append(neighbor)
    return wall


def test_descending_paths_end_at_minima(gradient3d):
    saddles = gradient3d.critical_cells(1)
    assert len(saddles) > 0
    edges = gradient3d.triangulation.simplices(1)
    traced = get_descending_paths(gradient3d, saddles)
    assert len(traced) == len(saddles)
    for saddle, paths in zip(saddles, traced):
        assert len(paths) == 2
        for dims, cells in paths:
            assert dims[:2] == [1, 0]
            assert cells[0] == saddle
            assert gradient3d.is_critical(0, cells[-1])
            # every vertex belongs to the edges around it
            for n in range(1, len(cells), 2):
                assert cells[n] in edges[cells[n - 1]]
                if n + 1 < len(cells):
                    assert cells[n] in edges[cells[n + 1]]


def test_ascending_paths_end_at_maxima(gradient3d):
    saddles = gradient3d.critical_cells(2)
    tri = gradient3d.triangulation
    facets = tri.facets(3)
    traced = get_ascending_paths(gradient3d, saddles)
    assert len(traced) == len(saddles)
    for saddle, paths in zip(saddles, traced):
        assert len(paths) <= len(tri.cofacets(2, saddle))
        for dims, cells in paths:
            assert dims[:2] == [2, 3]
            assert cells[0] == saddle
            assert gradient3d.is_critical(3, cells[-1])
            for n in range(1, len(cells), 2):
                assert cells[n - 1] in facets[cells[n]]
                if n + 1 < len(cells):
                    assert gradient3d.pairs_down[3][cells[n]] == cells[n + 1]


def test_ascending_paths_leave_through_the_boundary(grid2d):
    field = grid2d.vertices[:, 0] + np.sqrt(2) / 10 * grid2d.vertices[:, 1]
    gradient = DiscreteGradient.from_field(grid2d, field)
    # a boundary edge has a single triangle, whose path exits the mesh
    boundary = np.flatnonzero(grid2d.is_on_boundary(1))[:4]
    traced = get_ascending_paths(gradient, boundary)
    assert traced == [[], [], [], []]


def test_descending_walls_match_serial_search(gradient3d):
    saddles = gradient3d.critical_cells(2)
    facets = gradient3d.triangulation.facets(2)
    cells, offsets = get_descending_walls(gradient3d, saddles)
    assert len(offsets) == len(saddles) + 1
    for i, saddle in enumerate(saddles):
        expected = serial_wall(
            int(saddle), lambda cell: facets[cell], gradient3d.pairs_up[1]
        )
        assert cells[offsets[i] : offsets[i + 1]].tolist() == expected


def test_ascending_walls_match_serial_search(gradient3d):
    saddles = gradient3d.critical_cells(1)
    tri = gradient3d.triangulation
    cells, offsets = get_ascending_walls(gradient3d, saddles)
    for i, saddle in enumerate(saddles):
        expected = serial_wall(
            int(saddle), lambda cell: tri.cofacets(1, cell), gradient3d.pairs_down[2]
        )
        assert cells[offsets[i] : offsets[i + 1]].tolist() == expected


def test_first_wall_owns_shared_cells():
    cells = np.array([4, 1, 2, 1, 3, 2, 5, 4], dtype=np.int64)
    offsets = np.array([0, 3, 6, 8], dtype=np.int64)
    keep = get_wall_owners(cells, offsets, 6)
    assert keep.tolist() == [True, True, True, False, True, False, True, False]


def test_walls_without_1_separatrices(grid3d, random_field3d):
    msc = MorseSmaleComplex(
        grid3d,
        random_field3d,
        compute_critical_points=False,
        compute_ascending_separatrices1=False,
        compute_descending_separatrices1=False,
        compute_descending_separatrices2=True,
        compute_ascending_segmentation=False,
        compute_descending_segmentation=False,
        compute_final_segmentation=False,
    )
    result = msc.result
    assert result.separatrices1 is None
    assert result.critical_points is None
    assert result.separatrices2 is not None
    assert result.separatrices2.num_polygons > 0
