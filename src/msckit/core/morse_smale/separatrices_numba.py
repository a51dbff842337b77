# -*- coding: utf-8 -*-

import numpy as np
from numba import njit, prange

###############################################################################
# 1-Separatrix Paths
###############################################################################


@njit(cache=True)
def _get_other_vertex(edges, edge, vertex):
    if edges[edge, 0] == vertex:
        return edges[edge, 1]
    return edges[edge, 0]


@njit(cache=True)
def _get_other_cofacet(pointers, indices, facet, cell):
    for n in range(pointers[facet], pointers[facet + 1]):
        if indices[n] != cell:
            return indices[n]
    return -1


@njit(parallel=True, cache=True)
def get_descending_path_lengths(saddles, edges, vertex_up):
    """
    Counts the cells on the two vertex paths leaving each critical edge.
    Each path starts at the saddle and ends at a minimum.
    """
    lengths = np.empty((len(saddles), 2), dtype=np.int64)
    for i in prange(len(saddles)):
        saddle = saddles[i]
        for j in range(2):
            vertex = edges[saddle, j]
            length = 2
            while vertex_up[vertex] != -1:
                vertex = _get_other_vertex(edges, vertex_up[vertex], vertex)
                length += 2
            lengths[i, j] = length
    return lengths


@njit(parallel=True, cache=True)
def trace_descending_paths(saddles, edges, vertex_up, offsets):
    """
    Writes the vertex paths leaving each critical edge into one flat array.
    The path on side j of saddle i fills offsets[2i+j] to offsets[2i+j+1]
    and alternates between edges and vertices.
    """
    cells = np.empty(offsets[-1], dtype=np.int64)
    for i in prange(len(saddles)):
        saddle = saddles[i]
        for j in range(2):
            pos = offsets[2 * i + j]
            vertex = edges[saddle, j]
            cells[pos] = saddle
            cells[pos + 1] = vertex
            pos += 2
            while vertex_up[vertex] != -1:
                edge = vertex_up[vertex]
                vertex = _get_other_vertex(edges, edge, vertex)
                cells[pos] = edge
                cells[pos + 1] = vertex
                pos += 2
    return cells


@njit(parallel=True, cache=True)
def get_ascending_path_lengths(saddles, pointers, indices, top_down):
    """
    Counts the cells on the dual paths leaving each critical (d-1)-cell
    through its top cofacets. Paths that leave the mesh through a boundary
    facet, and sides without a cofacet, get a length of 0.
    """
    lengths = np.zeros((len(saddles), 2), dtype=np.int64)
    for i in prange(len(saddles)):
        saddle = saddles[i]
        start = pointers[saddle]
        for j in range(pointers[saddle + 1] - start):
            cell = indices[start + j]
            length = 2
            while top_down[cell] != -1:
                cell = _get_other_cofacet(pointers, indices, top_down[cell], cell)
                if cell == -1:
                    length = 0
                    break
                length += 2
            lengths[i, j] = length
    return lengths


@njit(parallel=True, cache=True)
def trace_ascending_paths(saddles, pointers, indices, top_down, offsets):
    """
    Writes the dual paths counted by get_ascending_path_lengths into one flat
    array, alternating between (d-1)-cells and top cells. Dropped paths have
    an empty range in the offsets.
    """
    cells = np.empty(offsets[-1], dtype=np.int64)
    for i in prange(len(saddles)):
        saddle = saddles[i]
        start = pointers[saddle]
        for j in range(pointers[saddle + 1] - start):
            pos = offsets[2 * i + j]
            if pos == offsets[2 * i + j + 1]:
                continue
            cell = indices[start + j]
            cells[pos] = saddle
            cells[pos + 1] = cell
            pos += 2
            while top_down[cell] != -1:
                facet = top_down[cell]
                cell = _get_other_cofacet(pointers, indices, facet, cell)
                cells[pos] = facet
                cells[pos + 1] = cell
                pos += 2
    return cells


###############################################################################
# 2-Separatrix Walls
###############################################################################


@njit(cache=True)
def grow_wall(saddle, pointers, indices, partners, visited, wall):
    """
    Breadth first search from a saddle. The neighbors of a cell are the
    partners of the cells listed for it in the CSR arrays. The wall is
    written into the front of wall, which doubles as the queue, and its
    size is returned.
    """
    visited[saddle] = True
    wall[0] = saddle
    size = 1
    head = 0
    while head < size:
        cell = wall[head]
        head += 1
        for n in range(pointers[cell], pointers[cell + 1]):
            neighbor = partners[indices[n]]
            if neighbor == -1 or visited[neighbor]:
                continue
            visited[neighbor] = True
            wall[size] = neighbor
            size += 1
    return size


@njit(parallel=True, cache=True)
def get_wall_sizes(saddles, pointers, indices, partners, num_cells):
    sizes = np.empty(len(saddles), dtype=np.int64)
    for i in prange(len(saddles)):
        visited = np.zeros(num_cells, dtype=np.bool_)
        wall = np.empty(num_cells, dtype=np.int64)
        sizes[i] = grow_wall(saddles[i], pointers, indices, partners, visited, wall)
    return sizes


@njit(parallel=True, cache=True)
def grow_walls(saddles, pointers, indices, partners, num_cells, offsets):
    """
    Writes the wall of each saddle into one flat array, in breadth first
    order. The wall of saddle i fills offsets[i] to offsets[i+1].
    """
    cells = np.empty(offsets[-1], dtype=np.int64)
    for i in prange(len(saddles)):
        visited = np.zeros(num_cells, dtype=np.bool_)
        grow_wall(
            saddles[i],
            pointers,
            indices,
            partners,
            visited,
            cells[offsets[i] : offsets[i + 1]],
        )
    return cells


@njit(cache=True)
def get_wall_owners(cells, offsets, num_cells):
    """
    Gives each cell to the first wall that reaches it. Walls are visited in
    order, so the result does not depend on the thread count.

    Returns
    -------
    NDArray[np.bool_]
        A mask over the flat wall array that is True where the wall owns the
        cell.

    """
    owned = np.zeros(num_cells, dtype=np.bool_)
    keep = np.zeros(len(cells), dtype=np.bool_)
    for i in range(len(offsets) - 1):
        for n in range(offsets[i], offsets[i + 1]):
            cell = cells[n]
            if not owned[cell]:
                owned[cell] = True
                keep[n] = True
    return keep
