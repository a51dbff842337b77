# -*- coding: utf-8 -*-
"""
Shared meshes and fields for the test suite.
"""

import numpy as np
import pytest

from msckit.core import Triangulation


def make_uv_sphere(n_lat: int, n_lon: int) -> Triangulation:
    """
    A closed triangulated unit sphere with a vertex at each pole and
    n_lat - 1 rings of n_lon vertices. Vertex 0 is the north pole and the
    last vertex is the south pole.
    """
    theta = np.pi * np.arange(1, n_lat) / n_lat
    phi = 2 * np.pi * np.arange(n_lon) / n_lon
    t, p = np.meshgrid(theta, phi, indexing="ij")
    rings = np.column_stack(
        (
            (np.sin(t) * np.cos(p)).ravel(),
            (np.sin(t) * np.sin(p)).ravel(),
            np.cos(t).ravel(),
        )
    )
    vertices = np.vstack(([0.0, 0.0, 1.0], rings, [0.0, 0.0, -1.0]))
    north = 0
    south = len(vertices) - 1

    def ring(i, j):
        return 1 + i * n_lon + (j % n_lon)

    triangles = []
    for j in range(n_lon):
        triangles.append((north, ring(0, j), ring(0, j + 1)))
    for i in range(n_lat - 2):
        for j in range(n_lon):
            a, b = ring(i, j), ring(i, j + 1)
            c, d = ring(i + 1, j), ring(i + 1, j + 1)
            triangles.append((a, c, b))
            triangles.append((b, c, d))
    for j in range(n_lon):
        triangles.append((south, ring(n_lat - 2, j + 1), ring(n_lat - 2, j)))
    return Triangulation(vertices, np.array(triangles))


@pytest.fixture(scope="module")
def grid2d() -> Triangulation:
    return Triangulation.from_regular_grid((10, 10))


@pytest.fixture(scope="module")
def grid3d() -> Triangulation:
    return Triangulation.from_regular_grid((6, 6, 6))


@pytest.fixture(scope="module")
def sphere() -> Triangulation:
    return make_uv_sphere(23, 32)


@pytest.fixture(scope="module")
def random_field2d(grid2d):
    rng = np.random.default_rng(0)
    return rng.random(grid2d.num_vertices)


@pytest.fixture(scope="module")
def random_field3d(grid3d):
    rng = np.random.default_rng(1)
    return rng.random(grid3d.num_vertices)


@pytest.fixture(scope="module")
def sphere_factory():
    return make_uv_sphere
