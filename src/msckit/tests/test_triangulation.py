# -*- coding: utf-8 -*-
"""
Tests for building triangulations and reading their cell relations.
"""

import numpy as np
import pytest

from msckit.core import Triangulation
from msckit.core.toolkit import get_vertex_order
from msckit.core.utilities import DegenerateInputError, DimensionalityError


def test_square_grid_counts():
    tri = Triangulation.from_regular_grid((3, 3))
    assert tri.dimension == 2
    assert tri.num_vertices == 9
    assert tri.num_cells(1) == 16
    assert tri.num_cells(2) == 8
    assert tri.euler_characteristic == 1
    # every vertex except the center touches the outer boundary
    assert np.count_nonzero(tri.is_on_boundary(0)) == 8
    assert np.count_nonzero(tri.is_on_boundary(1)) == 8


def test_cube_grid_counts():
    tri = Triangulation.from_regular_grid((3, 3, 3))
    assert tri.dimension == 3
    assert tri.num_vertices == 27
    assert tri.num_cells(1) == 98
    assert tri.num_cells(2) == 120
    assert tri.num_cells(3) == 48
    assert tri.euler_characteristic == 1
    assert not tri.is_on_boundary(0)[13]


def test_facets_are_opposite_vertices(grid3d):
    for k in range(1, 4):
        simplices = grid3d.simplices(k)
        lower = grid3d.simplices(k - 1)
        facets = grid3d.facets(k)
        for j in range(k + 1):
            expected = np.delete(simplices, j, axis=1)
            assert np.array_equal(lower[facets[:, j]], expected)


def test_cofacets_match_facets(grid3d):
    for k in range(3):
        facets = grid3d.facets(k + 1)
        pointers, indices = grid3d.cofacets_csr(k)
        assert pointers[-1] == facets.size
        for cell in [0, grid3d.num_cells(k) // 2, grid3d.num_cells(k) - 1]:
            for cofacet in grid3d.cofacets(k, cell):
                assert cell in facets[cofacet]


def test_vertex_star(grid2d):
    center = 5 * 10 + 5
    star = grid2d.vertex_star(2, center)
    assert len(star) == 6
    assert np.all(np.diff(star) > 0)
    assert np.all((grid2d.simplices(2)[star] == center).any(axis=1))


def test_closed_sphere(sphere):
    assert sphere.dimension == 2
    assert sphere.euler_characteristic == 2
    assert not sphere.is_on_boundary(1).any()
    pointers, _ = sphere.cofacets_csr(1)
    assert np.all(np.diff(pointers) == 2)


def test_2d_coordinates_are_padded():
    tri = Triangulation([[0, 0], [1, 0], [0, 1]], [[0, 1, 2]])
    assert tri.vertices.shape == (3, 3)
    assert np.allclose(tri.barycenters(2), [[1 / 3, 1 / 3, 0]])


def test_invalid_meshes():
    with pytest.raises(DimensionalityError):
        Triangulation([[0, 0, 0], [1, 0, 0]], [[0, 1]])
    with pytest.raises(DimensionalityError):
        Triangulation.from_regular_grid((4,))
    with pytest.raises(ValueError):
        # vertex 3 is unused
        Triangulation([[0, 0], [1, 0], [0, 1], [1, 1]], [[0, 1, 2]])
    with pytest.raises(ValueError):
        Triangulation([[0, 0], [1, 0], [0, 1]], [[0, 1, 1]])


def test_vertex_order_breaks_ties_with_offsets():
    ranks = get_vertex_order(np.array([1.0, 0.0, 1.0]), np.array([5, 0, 2]))
    assert ranks.tolist() == [2, 0, 1]
    # without offsets the vertex id breaks ties
    ranks = get_vertex_order(np.array([1.0, 0.0, 1.0]))
    assert ranks.tolist() == [1, 0, 2]


def test_degenerate_fields():
    with pytest.raises(DegenerateInputError):
        get_vertex_order(np.zeros(3), np.zeros(3, dtype=np.int64))
    with pytest.raises(DegenerateInputError):
        get_vertex_order(np.array([0.0, np.nan, 1.0]))
    with pytest.raises(DegenerateInputError):
        get_vertex_order(np.zeros((2, 2)))
    with pytest.raises(DegenerateInputError):
        get_vertex_order(np.arange(3.0), np.arange(4))
