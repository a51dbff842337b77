# -*- coding: utf-8 -*-

import numpy as np
from numba import njit, prange


@njit(parallel=True, cache=True)
def get_descending_pointers(vertex_up, edges):
    """
    Points each vertex to the other end of the edge it is paired with.
    Minima point to themselves.
    """
    num_vertices = len(vertex_up)
    pointers = np.empty(num_vertices, dtype=np.int64)
    for v in prange(num_vertices):
        e = vertex_up[v]
        if e == -1:
            pointers[v] = v
        elif edges[e, 0] == v:
            pointers[v] = edges[e, 1]
        else:
            pointers[v] = edges[e, 0]
    return pointers


@njit(parallel=True, cache=True)
def get_ascending_pointers(top_down, facet_cofacet_ptr, facet_cofacet_idx):
    """
    Points each top cell across the facet it is paired with to the top cell
    on the other side. Maxima point to themselves. Cells paired with a
    boundary facet point to an extra entry at the end of the array that
    stands for the outside of the mesh.
    """
    num_cells = len(top_down)
    pointers = np.empty(num_cells + 1, dtype=np.int64)
    pointers[num_cells] = num_cells
    for t in prange(num_cells):
        f = top_down[t]
        if f == -1:
            pointers[t] = t
            continue
        neighbor = num_cells
        for i in range(facet_cofacet_ptr[f], facet_cofacet_ptr[f + 1]):
            c = facet_cofacet_idx[i]
            if c != t:
                neighbor = c
        pointers[t] = neighbor
    return pointers
