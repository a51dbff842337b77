# -*- coding: utf-8 -*-

import numpy as np
from numba import njit, prange

from msckit.core.utilities.union_find import find_root, union


@njit(cache=True, inline="always")
def get_local_index(values, num_values, value):
    """Linear search in the first num_values entries of a small array"""
    for i in range(num_values):
        if values[i] == value:
            return i
    return -1


@njit(cache=True, inline="always")
def all_lower(simplices, cell, vertex, vertex_ranks):
    """Checks if every vertex of a cell other than the provided one is lower"""
    rank = vertex_ranks[vertex]
    for j in range(simplices.shape[1]):
        w = simplices[cell, j]
        if w != vertex and vertex_ranks[w] > rank:
            return False
    return True


@njit(cache=True, parallel=True)
def get_pl_critical_counts(
    dimension,
    vertex_ranks,
    vertex_on_boundary,
    edges,
    edge_star_ptr,
    edge_star_idx,
    triangles,
    triangle_star_ptr,
    triangle_star_idx,
    top_cells,
    top_star_ptr,
    top_star_idx,
):
    """
    Counts the critical cells of each index that the piecewise linear
    structure of the field places at each vertex. These are the reduced
    Betti numbers of the lower link, shifted up by one dimension.

    Returns
    -------
    NDArray[np.int64]
        An (N, dimension+1) array of counts.

    """
    num_vertices = len(vertex_ranks)
    counts = np.zeros((num_vertices, dimension + 1), dtype=np.int64)
    for v in prange(num_vertices):
        rank = vertex_ranks[v]
        # collect the lower link vertices
        start = edge_star_ptr[v]
        stop = edge_star_ptr[v + 1]
        lower = np.empty(stop - start, dtype=np.int64)
        num_lower = 0
        for i in range(start, stop):
            e = edge_star_idx[i]
            w = edges[e, 0]
            if w == v:
                w = edges[e, 1]
            if vertex_ranks[w] < rank:
                lower[num_lower] = w
                num_lower += 1
        if num_lower == 0:
            # the lower link is empty. This is a minimum
            counts[v, 0] = 1
            continue

        # connect lower link vertices through lower link edges. Each lower
        # link edge is the side opposite v of a triangle in the lower star
        parents = np.arange(num_lower)
        num_link_edges = 0
        for i in range(triangle_star_ptr[v], triangle_star_ptr[v + 1]):
            t = triangle_star_idx[i]
            if not all_lower(triangles, t, v, vertex_ranks):
                continue
            num_link_edges += 1
            first = -1
            for j in range(3):
                w = triangles[t, j]
                if w == v:
                    continue
                local = get_local_index(lower, num_lower, w)
                if first == -1:
                    first = local
                else:
                    union(parents, first, local)
        num_components = 0
        for i in range(num_lower):
            if find_root(parents, i) == i:
                num_components += 1

        # check if the lower link is the whole link
        num_top = top_star_ptr[v + 1] - top_star_ptr[v]
        num_lower_top = 0
        for i in range(top_star_ptr[v], top_star_ptr[v + 1]):
            if all_lower(top_cells, top_star_idx[i], v, vertex_ranks):
                num_lower_top += 1
        full_link = (not vertex_on_boundary[v]) and num_lower_top == num_top

        counts[v, 1] = num_components - 1
        if dimension == 2:
            # the lower link is a graph
            counts[v, 2] = num_link_edges - num_lower + num_components
        else:
            # the lower link is a piece of the 2-sphere around v
            euler = num_lower - num_link_edges + num_lower_top
            b2 = 1 if full_link else 0
            counts[v, 2] = num_components + b2 - euler
            counts[v, 3] = b2
    return counts
