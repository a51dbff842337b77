# -*- coding: utf-8 -*-

import numpy as np
from numba import njit, prange


###############################################################################
# Root Finding Methods
###############################################################################
@njit(cache=True, inline="always")
def find_root(parent, x):
    """Find root with partial path compression"""
    while x != parent[x]:
        parent[x] = parent[parent[x]]
        x = parent[x]
    return x


@njit(cache=True, inline="always")
def find_root_no_compression(parent, x):
    """Find root with no path compression. Parallel friendly."""
    while x != parent[x]:
        x = parent[x]
    return x


###############################################################################
# Union Methods
###############################################################################
@njit(cache=True, inline="always")
def union(parents, x, y):
    """Create union between two points. The lower root is kept."""
    rx = find_root(parents, x)
    ry = find_root(parents, y)
    if rx < ry:
        parents[ry] = rx
    elif ry < rx:
        parents[rx] = ry


###############################################################################
# Compression Methods
###############################################################################
@njit(cache=True, parallel=True)
def get_roots(parents):
    """
    Follows every pointer chain to its root in parallel. The pointer forest
    is read only, so each chain is walked without compression.
    """
    roots = np.empty_like(parents)
    for i in prange(len(parents)):
        # the helper is inlined and walks its argument, so pass a copy
        # rather than the loop index
        current_val = parents[i]
        roots[i] = find_root_no_compression(parents, current_val)
    return roots
