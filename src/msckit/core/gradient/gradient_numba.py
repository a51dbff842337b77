# -*- coding: utf-8 -*-

import numpy as np
from numba import njit, prange


###############################################################################
# Gradient construction
###############################################################################
@njit(parallel=True, cache=True)
def pair_steepest_edges(
    vertex_ranks,
    edges,
    edge_star_ptr,
    edge_star_idx,
    vertex_up,
    edge_down,
):
    """
    Pairs every vertex with the edge of its lower star leading to its lowest
    neighbor. Vertices without a lower neighbor stay unpaired (minima).
    Lower stars never overlap, so every write is owned by a single vertex.

    """
    num_vertices = len(vertex_ranks)
    for v in prange(num_vertices):
        rank = vertex_ranks[v]
        best_edge = -1
        best_rank = rank
        for i in range(edge_star_ptr[v], edge_star_ptr[v + 1]):
            e = edge_star_idx[i]
            w = edges[e, 0]
            if w == v:
                w = edges[e, 1]
            if vertex_ranks[w] < best_rank:
                best_rank = vertex_ranks[w]
                best_edge = e
        if best_edge != -1:
            vertex_up[v] = best_edge
            edge_down[best_edge] = v


@njit(parallel=True, cache=True)
def reduce_lower_stars(
    num_vertices,
    lower_star_ptr,
    lower_star_idx,
    lower_max_vertex,
    lower_order,
    lower_up,
    lower_down,
    upper_star_ptr,
    upper_star_idx,
    upper_max_vertex,
    upper_order,
    upper_facets,
    upper_up,
    upper_down,
):
    """
    One reduction pass over the pairs (k, k+1) of every lower star. Inside
    the lower star of each vertex, the lowest free (k+1)-cell with exactly one
    free k-facet is paired with it until no such cell remains. When the pass
    stalls, the lowest free k-cell is set aside as critical and the pass
    resumes. A cell is free if it is neither paired nor set aside.

    Every pairing happens once all other facets of the (k+1)-cell are settled,
    so no V-path can run back into a cell paired later and the result stays
    acyclic.

    Returns
    -------
    tuple[int, int]
        The number of pairs created and the number of cells set aside as
        critical.

    """
    pairs_per_vertex = np.zeros(num_vertices, dtype=np.int64)
    critical_per_vertex = np.zeros(num_vertices, dtype=np.int64)
    # cells set aside as critical. Each k-cell belongs to one lower star so
    # threads never write the same entry
    set_aside = np.zeros(len(lower_up), dtype=np.bool_)
    num_facets = upper_facets.shape[1]
    for v in prange(num_vertices):
        while True:
            best_upper = -1
            best_lower = -1
            for i in range(upper_star_ptr[v], upper_star_ptr[v + 1]):
                b = upper_star_idx[i]
                if upper_max_vertex[b] != v:
                    continue
                if upper_down[b] != -1 or upper_up[b] != -1:
                    continue
                if best_upper != -1 and upper_order[b] > upper_order[best_upper]:
                    continue
                free_facet = -1
                num_free = 0
                for j in range(num_facets):
                    a = upper_facets[b, j]
                    if lower_max_vertex[a] != v:
                        continue
                    if lower_up[a] != -1 or lower_down[a] != -1 or set_aside[a]:
                        continue
                    num_free += 1
                    free_facet = a
                if num_free == 1:
                    best_upper = b
                    best_lower = free_facet

            if best_upper != -1:
                lower_up[best_lower] = best_upper
                upper_down[best_upper] = best_lower
                pairs_per_vertex[v] += 1
                continue

            # nothing is forced. Set the lowest free k-cell aside
            lowest = -1
            for i in range(lower_star_ptr[v], lower_star_ptr[v + 1]):
                a = lower_star_idx[i]
                if lower_max_vertex[a] != v:
                    continue
                if lower_up[a] != -1 or lower_down[a] != -1 or set_aside[a]:
                    continue
                if lowest == -1 or lower_order[a] < lower_order[lowest]:
                    lowest = a
            if lowest == -1:
                break
            set_aside[lowest] = True
            critical_per_vertex[v] += 1
    return pairs_per_vertex.sum(), critical_per_vertex.sum()


###############################################################################
# Validation
###############################################################################
@njit(cache=True)
def has_vpath_cycle(lower_up, upper_facets):
    """
    Checks the V-paths between k-cells and (k+1)-cells for a cycle using
    Kahn's algorithm. A k-cell points to every other facet of the (k+1)-cell
    it is paired with.
    """
    num_lower = len(lower_up)
    num_facets = upper_facets.shape[1]
    indegree = np.zeros(num_lower, dtype=np.int64)
    for a in range(num_lower):
        b = lower_up[a]
        if b == -1:
            continue
        for j in range(num_facets):
            c = upper_facets[b, j]
            if c != a:
                indegree[c] += 1

    stack = np.empty(num_lower, dtype=np.int64)
    top = 0
    for a in range(num_lower):
        if indegree[a] == 0:
            stack[top] = a
            top += 1
    num_visited = 0
    while top > 0:
        top -= 1
        a = stack[top]
        num_visited += 1
        b = lower_up[a]
        if b == -1:
            continue
        for j in range(num_facets):
            c = upper_facets[b, j]
            if c == a:
                continue
            indegree[c] -= 1
            if indegree[c] == 0:
                stack[top] = c
                top += 1
    return num_visited < num_lower
