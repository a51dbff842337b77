# -*- coding: utf-8 -*-

import copy
import logging
import time
from typing import TypeVar

import numpy as np
from numpy.typing import NDArray

from msckit.core.toolkit import Triangulation, get_pl_critical_counts, get_vertex_order
from msckit.core.utilities.exceptions import DegenerateInputError, GradientError

from .gradient_numba import has_vpath_cycle, pair_steepest_edges, reduce_lower_stars

# This allows for Self typing and is compatible with python 3.10
Self = TypeVar("Self", bound="DiscreteGradient")


class DiscreteGradient:
    """
    A discrete gradient on a triangulation: a matching between k-cells and
    (k+1)-cells that follows the lower star structure of a scalar field.

    The pairing of dimension k is stored twice. pairs_up[k][a] is the
    (k+1)-cell paired with the k-cell a and pairs_down[k+1][b] is the k-cell
    paired with the (k+1)-cell b. Unpaired entries are -1 and a cell unpaired
    in both directions is critical.

    Parameters
    ----------
    triangulation : Triangulation
        The mesh the field is defined on.
    scalars : NDArray[float]
        One value per vertex.
    offsets : NDArray[int] | None, optional
        One integer per vertex used to break ties in the scalar field. If
        None, the vertex index is used.

    """

    def __init__(
        self,
        triangulation: Triangulation,
        scalars: NDArray[float],
        offsets: NDArray[int] | None = None,
    ):
        scalars = np.asarray(scalars)
        if scalars.shape != (triangulation.num_vertices,):
            raise DegenerateInputError(
                f"Expected {triangulation.num_vertices} scalar values but received an array of shape {scalars.shape}."
            )
        self._triangulation = triangulation
        self._vertex_ranks = get_vertex_order(scalars, offsets)
        self._scalars = scalars.astype(np.float64)
        dim = triangulation.dimension

        # the vertex of each cell that is highest in the total order and the
        # position of each cell in the lexicographic order of its vertex ranks
        # sorted from highest to lowest
        self._cell_max_vertex = []
        self._cell_order = []
        for k in range(dim + 1):
            simplices = triangulation.simplices(k)
            ranks = self._vertex_ranks[simplices]
            self._cell_max_vertex.append(
                simplices[np.arange(len(simplices)), np.argmax(ranks, axis=1)]
            )
            keys = -np.sort(-ranks, axis=1)
            sorted_cells = np.lexsort(keys.T[::-1])
            order = np.empty(len(simplices), dtype=np.int64)
            order[sorted_cells] = np.arange(len(simplices), dtype=np.int64)
            self._cell_order.append(order)

        self.pairs_up = [
            np.full(triangulation.num_cells(k), -1, dtype=np.int64)
            for k in range(dim + 1)
        ]
        self.pairs_down = [
            np.full(triangulation.num_cells(k), -1, dtype=np.int64)
            for k in range(dim + 1)
        ]
        self._pl_critical_counts = None

    ###########################################################################
    # Properties
    ###########################################################################

    @property
    def triangulation(self) -> Triangulation:
        return self._triangulation

    @property
    def dimension(self) -> int:
        return self._triangulation.dimension

    @property
    def scalars(self) -> NDArray[np.float64]:
        return self._scalars

    @property
    def vertex_ranks(self) -> NDArray[np.int64]:
        """

        Returns
        -------
        NDArray[np.int64]
            The position of each vertex in the total order of the field.

        """
        return self._vertex_ranks

    def cell_max_vertex(self, k: int) -> NDArray[np.int64]:
        """
        The highest vertex of each k-cell. A cell belongs to the lower star of
        this vertex.
        """
        return self._cell_max_vertex[k]

    def cell_order(self, k: int) -> NDArray[np.int64]:
        return self._cell_order[k]

    def cell_values(self, k: int, cells: NDArray[int] | None = None) -> NDArray[np.float64]:
        """
        The scalar value of the highest vertex of each k-cell.
        """
        max_vertex = self._cell_max_vertex[k]
        if cells is not None:
            max_vertex = max_vertex[cells]
        return self._scalars[max_vertex]

    @property
    def pl_critical_counts(self) -> NDArray[np.int64]:
        """

        Returns
        -------
        NDArray[np.int64]
            An (N, dimension+1) array with the number of critical cells of
            each index the piecewise linear structure places at each vertex.

        """
        if self._pl_critical_counts is None:
            tri = self._triangulation
            dim = self.dimension
            edge_ptr, edge_idx = tri.star_csr(1)
            tri_ptr, tri_idx = tri.star_csr(2)
            top_ptr, top_idx = tri.star_csr(dim)
            self._pl_critical_counts = get_pl_critical_counts(
                dim,
                self._vertex_ranks,
                tri.is_on_boundary(0),
                tri.simplices(1),
                edge_ptr,
                edge_idx,
                tri.simplices(2),
                tri_ptr,
                tri_idx,
                tri.simplices(dim),
                top_ptr,
                top_idx,
            )
        return self._pl_critical_counts

    ###########################################################################
    # Pair Access
    ###########################################################################

    def critical_mask(self, k: int) -> NDArray[np.bool_]:
        return (self.pairs_up[k] == -1) & (self.pairs_down[k] == -1)

    def critical_cells(self, k: int) -> NDArray[np.int64]:
        """
        The ids of the unpaired k-cells in increasing order.
        """
        return np.flatnonzero(self.critical_mask(k))

    def is_critical(self, k: int, cell: int) -> bool:
        return self.pairs_up[k][cell] == -1 and self.pairs_down[k][cell] == -1

    def set_pair(self, k: int, lower: int, upper: int) -> None:
        """
        Pairs the k-cell lower with the (k+1)-cell upper. Previous pairs of
        either cell are overwritten, not cleared.
        """
        self.pairs_up[k][lower] = upper
        self.pairs_down[k + 1][upper] = lower

    @property
    def critical_counts(self) -> list[int]:
        """

        Returns
        -------
        list[int]
            The number of critical cells of each index.

        """
        return [
            int(np.count_nonzero(self.critical_mask(k)))
            for k in range(self.dimension + 1)
        ]

    @property
    def critical_euler_characteristic(self) -> int:
        return int(sum((-1) ** k * n for k, n in enumerate(self.critical_counts)))

    ###########################################################################
    # Construction
    ###########################################################################

    def build(self) -> None:
        """
        Pairs every vertex with the steepest edge of its lower star. This is
        the discrete analogue of steepest descent and leaves every cell of
        higher dimension unpaired for the reducer.
        """
        tri = self._triangulation
        edge_ptr, edge_idx = tri.star_csr(1)
        pair_steepest_edges(
            self._vertex_ranks,
            tri.simplices(1),
            edge_ptr,
            edge_idx,
            self.pairs_up[0],
            self.pairs_down[1],
        )

    def reduce(self, debug_level: int = 0) -> None:
        """
        Runs one reduction pass per pair of dimensions (k, k+1) above the
        vertex/edge pairs, in increasing order of k. Each pass settles every
        lower star before the next pass starts.
        """
        tri = self._triangulation
        num_vertices = tri.num_vertices
        for k in range(1, self.dimension):
            t0 = time.time()
            lower_ptr, lower_idx = tri.star_csr(k)
            upper_ptr, upper_idx = tri.star_csr(k + 1)
            num_pairs, num_critical = reduce_lower_stars(
                num_vertices,
                lower_ptr,
                lower_idx,
                self._cell_max_vertex[k],
                self._cell_order[k],
                self.pairs_up[k],
                self.pairs_down[k],
                upper_ptr,
                upper_idx,
                self._cell_max_vertex[k + 1],
                self._cell_order[k + 1],
                tri.facets(k + 1),
                self.pairs_up[k + 1],
                self.pairs_down[k + 1],
            )
            t1 = time.time()
            if debug_level > 1:
                logging.info(
                    f"Reduction pass ({k}, {k+1}): {num_pairs} pairs, {num_critical} critical {k}-cells, {round(t1-t0,2)}s"
                )

    def validate(self) -> None:
        """
        Checks that the pairs form a matching between facets and cofacets and
        that no V-path closes into a cycle. Raises a GradientError otherwise.
        """
        dim = self.dimension
        for k in range(dim + 1):
            both = (self.pairs_up[k] != -1) & (self.pairs_down[k] != -1)
            if both.any():
                raise GradientError(
                    f"{np.count_nonzero(both)} {k}-cells are paired in two directions."
                )
        if (self.pairs_down[0] != -1).any() or (self.pairs_up[dim] != -1).any():
            raise GradientError("Found pairs outside of the mesh dimensions.")
        for k in range(dim):
            facets = self._triangulation.facets(k + 1)
            lower = np.flatnonzero(self.pairs_up[k] != -1)
            upper = self.pairs_up[k][lower]
            if (self.pairs_down[k + 1][upper] != lower).any():
                raise GradientError(f"The pairs between dimension {k} and {k+1} are not symmetric.")
            if not (facets[upper] == lower[:, None]).any(axis=1).all():
                raise GradientError(f"A {k}-cell is paired with a {k+1}-cell it does not bound.")
            upper = np.flatnonzero(self.pairs_down[k + 1] != -1)
            if (self.pairs_up[k][self.pairs_down[k + 1][upper]] != upper).any():
                raise GradientError(f"The pairs between dimension {k} and {k+1} are not symmetric.")
            if has_vpath_cycle(self.pairs_up[k], facets):
                raise GradientError(f"Found a cycle in the V-paths between dimension {k} and {k+1}.")

    def copy(self) -> Self:
        """

        Returns
        -------
        Self
            A deep copy of the pairs. The triangulation is shared.

        """
        new = copy.copy(self)
        new.pairs_up = [i.copy() for i in self.pairs_up]
        new.pairs_down = [i.copy() for i in self.pairs_down]
        return new

    @classmethod
    def from_field(
        cls,
        triangulation: Triangulation,
        scalars: NDArray[float],
        offsets: NDArray[int] | None = None,
        debug_level: int = 0,
    ) -> Self:
        """
        Builds, reduces and validates the gradient of a scalar field.
        """
        gradient = cls(triangulation, scalars, offsets)
        t0 = time.time()
        logging.info("Building discrete gradient")
        gradient.build()
        gradient.reduce(debug_level=debug_level)
        gradient.validate()
        t1 = time.time()
        if debug_level > 0:
            logging.info(f"Critical cells after reduction: {gradient.critical_counts}")
        logging.info(f"Time: {round(t1-t0,2)}")
        return gradient
