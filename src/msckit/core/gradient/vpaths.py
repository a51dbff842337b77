# -*- coding: utf-8 -*-

from collections import deque

import numpy as np

from .discrete_gradient import DiscreteGradient


class VPathTree:
    """
    Every V-path leaving one critical cell, stored as a directed acyclic
    graph. Nodes are the cells of the source's dimension that the paths
    pass through, and targets are the critical cells they end at. Paths are
    counted so that pairs joined by exactly one path can be recognized.

    Parameters
    ----------
    source : int
        The critical cell the paths start at.
    expand : callable
        Called with a node, returns the critical cells it reaches directly
        and the (via, next node) steps it continues through.

    """

    def __init__(self, source: int, expand):
        self.source = source
        self._predecessors = {source: []}
        self._target_predecessor = {}
        self.path_counts = {}
        # discover the reachable graph
        steps = {}
        stack = [source]
        while stack:
            node = stack.pop()
            targets, edges = expand(node)
            steps[node] = (targets, edges)
            for via, next_node in edges:
                if next_node not in self._predecessors:
                    self._predecessors[next_node] = []
                    stack.append(next_node)
                self._predecessors[next_node].append((node, via))

        # count paths in topological order
        indegree = {node: len(preds) for node, preds in self._predecessors.items()}
        node_counts = {source: 1}
        queue = deque([source])
        while queue:
            node = queue.popleft()
            count = node_counts[node]
            targets, edges = steps[node]
            for target in targets:
                self.path_counts[target] = self.path_counts.get(target, 0) + count
                self._target_predecessor.setdefault(target, node)
            for via, next_node in edges:
                node_counts[next_node] = node_counts.get(next_node, 0) + count
                indegree[next_node] -= 1
                if indegree[next_node] == 0:
                    queue.append(next_node)

    def count(self, target: int) -> int:
        return self.path_counts.get(target, 0)

    def path_to(self, target: int) -> list[int]:
        """
        One V-path from the source to the target as the alternating list of
        cells it runs through, endpoints included. If more than one path
        exists, the first one discovered is returned.
        """
        cells = [target]
        node = self._target_predecessor[target]
        while True:
            cells.append(node)
            if node == self.source:
                break
            previous, via = self._predecessors[node][0]
            cells.append(via)
            node = previous
        cells.reverse()
        return cells


def descending_tree(gradient: DiscreteGradient, k: int, source: int) -> VPathTree:
    """
    The V-paths leaving the critical (k+1)-cell source towards critical
    k-cells. A path enters a k-facet and continues through the (k+1)-cell
    that facet is paired with.
    """
    facets = gradient.triangulation.facets(k + 1)
    lower_up = gradient.pairs_up[k]
    lower_down = gradient.pairs_down[k]

    def expand(node):
        targets = []
        edges = []
        for facet in facets[node]:
            facet = int(facet)
            upper = lower_up[facet]
            if upper == -1:
                if lower_down[facet] == -1:
                    targets.append(facet)
            elif upper != node:
                edges.append((facet, int(upper)))
        return targets, edges

    return VPathTree(source, expand)


def ascending_tree(gradient: DiscreteGradient, k: int, source: int) -> VPathTree:
    """
    The V-paths leaving the critical k-cell source towards critical
    (k+1)-cells. A path enters a (k+1)-cofacet and continues through the
    k-cell that cofacet is paired with.
    """
    pointers, indices = gradient.triangulation.cofacets_csr(k)
    upper_up = gradient.pairs_up[k + 1]
    upper_down = gradient.pairs_down[k + 1]

    def expand(node):
        targets = []
        edges = []
        for cofacet in indices[pointers[node] : pointers[node + 1]]:
            cofacet = int(cofacet)
            lower = upper_down[cofacet]
            if lower == -1:
                if upper_up[cofacet] == -1:
                    targets.append(cofacet)
            elif lower != node:
                edges.append((cofacet, int(lower)))
        return targets, edges

    return VPathTree(source, expand)


def reverse_path(gradient: DiscreteGradient, k: int, cells: list[int], descending: bool) -> None:
    """
    Reverses the pairs along a V-path between a critical k-cell and a
    critical (k+1)-cell. Both endpoints end up paired and every cell in
    between changes partner.
    """
    for i in range(0, len(cells), 2):
        first, second = cells[i], cells[i + 1]
        if descending:
            gradient.set_pair(k, second, first)
        else:
            gradient.set_pair(k, first, second)


def get_path_vertices(gradient: DiscreteGradient, dimensions, cells) -> np.ndarray:
    """
    The unique vertices of a list of cells of mixed dimension.
    """
    tri = gradient.triangulation
    vertices = [tri.simplices(int(d))[int(c)] for d, c in zip(dimensions, cells)]
    return np.unique(np.concatenate(vertices))
