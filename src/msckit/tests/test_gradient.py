# -*- coding: utf-8 -*-
"""
Tests for building, reducing and validating discrete gradients.
"""

import numpy as np
import pytest

from msckit.core import DiscreteGradient
from msckit.core.gradient import ascending_tree, descending_tree
from msckit.core.utilities import DegenerateInputError, GradientError


def check_matching(gradient):
    tri = gradient.triangulation
    for k in range(gradient.dimension):
        lower = np.flatnonzero(gradient.pairs_up[k] != -1)
        upper = gradient.pairs_up[k][lower]
        # symmetric
        assert np.array_equal(gradient.pairs_down[k + 1][upper], lower)
        # incident
        assert (tri.facets(k + 1)[upper] == lower[:, None]).any(axis=1).all()
        # each cell is in at most one pair
        assert len(np.unique(upper)) == len(upper)
    for k in range(gradient.dimension + 1):
        assert not ((gradient.pairs_up[k] != -1) & (gradient.pairs_down[k] != -1)).any()


def test_builder_pairs_every_vertex_with_a_lower_neighbor(grid2d, random_field2d):
    gradient = DiscreteGradient(grid2d, random_field2d)
    gradient.build()
    edges = grid2d.simplices(1)
    ranks = gradient.vertex_ranks
    has_lower = np.zeros(grid2d.num_vertices, dtype=np.bool_)
    lower_ends = np.where(ranks[edges[:, 0]] < ranks[edges[:, 1]], edges[:, 1], edges[:, 0])
    has_lower[lower_ends] = True
    assert np.array_equal(gradient.pairs_up[0] != -1, has_lower)
    # the paired edge leads to the lowest neighbor
    for v in np.flatnonzero(has_lower)[:10]:
        neighbors = edges[grid2d.vertex_star(1, v)].ravel()
        neighbors = neighbors[neighbors != v]
        a, b = edges[gradient.pairs_up[0][v]]
        partner = b if a == v else a
        assert ranks[partner] == ranks[neighbors].min()


@pytest.mark.parametrize("dimension", [2, 3])
def test_gradient_is_valid(dimension, grid2d, grid3d, random_field2d, random_field3d):
    tri, field = (grid2d, random_field2d) if dimension == 2 else (grid3d, random_field3d)
    gradient = DiscreteGradient.from_field(tri, field)
    check_matching(gradient)
    gradient.validate()
    assert gradient.critical_euler_characteristic == tri.euler_characteristic
    assert gradient.pairs_down[0].max() == -1
    assert gradient.pairs_up[dimension].max() == -1


def test_gradient_is_deterministic(grid3d, random_field3d):
    first = DiscreteGradient.from_field(grid3d, random_field3d)
    second = DiscreteGradient.from_field(grid3d, random_field3d)
    for k in range(4):
        assert np.array_equal(first.pairs_up[k], second.pairs_up[k])
        assert np.array_equal(first.pairs_down[k], second.pairs_down[k])


def test_pairs_stay_in_lower_stars(grid3d, random_field3d):
    gradient = DiscreteGradient.from_field(grid3d, random_field3d)
    for k in range(3):
        lower = np.flatnonzero(gradient.pairs_up[k] != -1)
        upper = gradient.pairs_up[k][lower]
        assert np.array_equal(
            gradient.cell_max_vertex(k)[lower],
            gradient.cell_max_vertex(k + 1)[upper],
        )


def test_reduced_gradient_matches_pl_structure(sphere):
    vertices = sphere.vertices
    field = vertices[:, 2] + 0.013 * vertices[:, 0] + 0.007 * vertices[:, 1]
    gradient = DiscreteGradient.from_field(sphere, field)
    assert gradient.pl_critical_counts.sum(axis=0).tolist() == [1, 0, 1]
    assert gradient.critical_counts == [1, 0, 1]
    # the minimum is the south pole and the maximum sits in the lower star
    # of the north pole
    assert gradient.critical_cells(0).tolist() == [sphere.num_vertices - 1]
    maximum = gradient.critical_cells(2)[0]
    assert gradient.cell_max_vertex(2)[maximum] == 0


def test_validate_catches_broken_pairs(grid2d, random_field2d):
    gradient = DiscreteGradient.from_field(grid2d, random_field2d)
    broken = gradient.copy()
    v = np.flatnonzero(broken.pairs_up[0] != -1)[0]
    broken.pairs_down[1][broken.pairs_up[0][v]] = -1
    with pytest.raises(GradientError):
        broken.validate()
    # copies do not share pairs
    gradient.validate()


def test_validate_catches_cycles():
    from msckit.core import Triangulation

    tri = Triangulation.from_regular_grid((3, 3))
    gradient = DiscreteGradient(tri, np.arange(9.0))
    edges = tri.simplices(1)
    # pair the three vertices of one triangle around its boundary
    triangle = tri.simplices(2)[0]
    loop = [(triangle[0], triangle[1]), (triangle[1], triangle[2]), (triangle[2], triangle[0])]
    for v, w in loop:
        e = np.flatnonzero(
            ((edges[:, 0] == min(v, w)) & (edges[:, 1] == max(v, w)))
        )[0]
        gradient.set_pair(0, v, e)
    with pytest.raises(GradientError):
        gradient.validate()


def test_vpath_trees(sphere):
    vertices = sphere.vertices
    field = -vertices[:, 0] ** 2 + 0.5 * vertices[:, 2]
    gradient = DiscreteGradient.from_field(sphere, field)
    saddle = int(gradient.critical_cells(1)[0])
    down = descending_tree(gradient, 0, saddle)
    minima = set(gradient.critical_cells(0).tolist())
    assert set(down.path_counts) <= minima
    for target in down.path_counts:
        path = down.path_to(target)
        assert path[0] == saddle
        assert path[-1] == target
        assert len(path) % 2 == 0
    up = ascending_tree(gradient, 1, saddle)
    assert set(up.path_counts) == set(gradient.critical_cells(2).tolist())


def test_bad_field_shape(grid2d):
    with pytest.raises(DegenerateInputError):
        DiscreteGradient(grid2d, np.zeros(5))
