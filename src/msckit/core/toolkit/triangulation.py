# -*- coding: utf-8 -*-

import itertools
import logging
from typing import TypeVar

import numpy as np
from numpy.typing import NDArray

from msckit.core.utilities.exceptions import DimensionalityError

# This allows for Self typing and is compatible with python 3.10
Self = TypeVar("Self", bound="Triangulation")


def _get_csr(owners: NDArray[np.int64], values: NDArray[np.int64], num_owners: int):
    """
    Groups values by owner. Returns the pointer and index arrays of a
    compressed sparse row layout with the values of each owner in
    increasing order.
    """
    order = np.lexsort((values, owners))
    counts = np.bincount(owners, minlength=num_owners)
    pointers = np.zeros(num_owners + 1, dtype=np.int64)
    np.cumsum(counts, out=pointers[1:])
    return pointers, values[order].astype(np.int64)


class Triangulation:
    """
    An immutable simplicial mesh made of triangles (2D) or tetrahedra (3D).
    Every lower dimensional simplex is derived from the top cells, and the
    boundary/co-boundary relations between each pair of adjacent dimensions
    are stored in flat arrays so they can be handed to numba directly.

    Parameters
    ----------
    vertices : NDArray[float]
        The (N, 3) or (N, 2) coordinates of each vertex. 2D coordinates are
        padded with z = 0.
    cells : NDArray[int]
        The (M, 3) triangles or (M, 4) tetrahedra of the mesh given as vertex
        indices.

    """

    def __init__(
        self,
        vertices: NDArray[float],
        cells: NDArray[int],
    ):
        vertices = np.asarray(vertices, dtype=np.float64)
        cells = np.asarray(cells, dtype=np.int64)
        if cells.ndim != 2 or cells.shape[1] not in (3, 4):
            shape = cells.shape
            raise DimensionalityError(
                f"Cells of shape {shape} are not supported. Only triangles (M, 3) and tetrahedra (M, 4) are."
            )
        if vertices.ndim != 2 or vertices.shape[1] not in (2, 3):
            raise ValueError("Vertices must have shape (N, 2) or (N, 3).")
        if vertices.shape[1] == 2:
            vertices = np.column_stack((vertices, np.zeros(len(vertices))))
        num_vertices = len(vertices)
        if len(cells) == 0:
            raise ValueError("The mesh has no cells.")
        if cells.min() < 0 or cells.max() >= num_vertices:
            raise ValueError("Cells reference vertices that do not exist.")

        self._vertices = vertices
        self._vertices.flags.writeable = False
        self._dimension = cells.shape[1] - 1
        self._build_simplices(cells, num_vertices)
        self._build_relations()
        self._build_boundary()

    ###########################################################################
    # Construction
    ###########################################################################

    def _build_simplices(self, cells, num_vertices):
        dim = self._dimension
        top = np.sort(cells, axis=1)
        if (np.diff(top, axis=1) == 0).any():
            raise ValueError("Cells with repeated vertices are not simplices.")
        top = np.unique(top, axis=0)

        simplices = [None] * (dim + 1)
        facets = [None] * (dim + 1)
        simplices[dim] = top
        # Walk down the dimensions. Removing column j from a sorted simplex
        # gives the (sorted) facet opposite its j-th vertex.
        for k in range(dim - 1, -1, -1):
            upper = simplices[k + 1]
            num_upper = len(upper)
            candidates = np.concatenate(
                [np.delete(upper, j, axis=1) for j in range(k + 2)]
            )
            unique, inverse = np.unique(candidates, axis=0, return_inverse=True)
            inverse = inverse.reshape(-1)
            simplices[k] = unique
            facets[k + 1] = inverse.reshape(k + 2, num_upper).T.copy()

        if len(simplices[0]) != num_vertices:
            raise ValueError(
                "Every vertex must belong to at least one cell. Found "
                f"{num_vertices - len(simplices[0])} unused vertices."
            )
        for array in simplices + facets[1:]:
            array.flags.writeable = False
        self._simplices = simplices
        self._facets = facets

    def _build_relations(self):
        dim = self._dimension
        self._cofacets = [None] * dim
        self._stars = [None] * (dim + 1)
        for k in range(dim):
            facets = self._facets[k + 1]
            owners = facets.ravel()
            values = np.repeat(np.arange(len(facets), dtype=np.int64), k + 2)
            self._cofacets[k] = _get_csr(owners, values, self.num_cells(k))
        num_vertices = self.num_vertices
        # vertices are their own stars
        self._stars[0] = (
            np.arange(num_vertices + 1, dtype=np.int64),
            np.arange(num_vertices, dtype=np.int64),
        )
        for k in range(1, dim + 1):
            simplices = self._simplices[k]
            owners = simplices.ravel()
            values = np.repeat(np.arange(len(simplices), dtype=np.int64), k + 1)
            self._stars[k] = _get_csr(owners, values, num_vertices)

    def _build_boundary(self):
        dim = self._dimension
        boundary = [None] * (dim + 1)
        pointers, _ = self._cofacets[dim - 1]
        boundary[dim - 1] = np.diff(pointers) == 1
        for k in range(dim - 2, -1, -1):
            mask = np.zeros(self.num_cells(k), dtype=np.bool_)
            mask[self._facets[k + 1][boundary[k + 1]].ravel()] = True
            boundary[k] = mask
        boundary[dim] = boundary[dim - 1][self._facets[dim]].any(axis=1)
        for mask in boundary:
            mask.flags.writeable = False
        self._boundary = boundary

    ###########################################################################
    # Properties
    ###########################################################################

    @property
    def dimension(self) -> int:
        """

        Returns
        -------
        int
            The dimension of the top cells (2 or 3).

        """
        return self._dimension

    @property
    def vertices(self) -> NDArray[np.float64]:
        """

        Returns
        -------
        NDArray[np.float64]
            The (N, 3) vertex coordinates.

        """
        return self._vertices

    @property
    def num_vertices(self) -> int:
        return len(self._vertices)

    @property
    def euler_characteristic(self) -> int:
        """

        Returns
        -------
        int
            The alternating sum of the number of cells in each dimension.

        """
        return int(
            sum((-1) ** k * self.num_cells(k) for k in range(self._dimension + 1))
        )

    def num_cells(self, k: int) -> int:
        return len(self._simplices[k])

    def simplices(self, k: int) -> NDArray[np.int64]:
        """
        The (n_k, k+1) sorted vertex indices of every k-cell.
        """
        return self._simplices[k]

    def facets(self, k: int) -> NDArray[np.int64]:
        """
        The (n_k, k+1) boundary of every k-cell (k >= 1). Column j holds the
        (k-1)-cell opposite the j-th vertex of the cell.
        """
        if k < 1:
            raise ValueError("Vertices have no facets.")
        return self._facets[k]

    def cofacets_csr(self, k: int) -> tuple[NDArray[np.int64], NDArray[np.int64]]:
        """
        The pointer and index arrays listing the (k+1)-cells that contain each
        k-cell (k < dimension).
        """
        return self._cofacets[k]

    def cofacets(self, k: int, cell: int) -> NDArray[np.int64]:
        pointers, indices = self._cofacets[k]
        return indices[pointers[cell] : pointers[cell + 1]]

    def star_csr(self, k: int) -> tuple[NDArray[np.int64], NDArray[np.int64]]:
        """
        The pointer and index arrays listing the k-cells that contain each
        vertex, in increasing cell order.
        """
        return self._stars[k]

    def vertex_star(self, k: int, vertex: int) -> NDArray[np.int64]:
        pointers, indices = self._stars[k]
        return indices[pointers[vertex] : pointers[vertex + 1]]

    def is_on_boundary(self, k: int) -> NDArray[np.bool_]:
        """
        A mask that is True for k-cells on the boundary of the mesh. Closed
        surfaces and volumes without holes have no boundary cells.
        """
        return self._boundary[k]

    def barycenters(self, k: int, cells: NDArray[int] | None = None) -> NDArray[np.float64]:
        """
        The average of the vertex coordinates of each requested k-cell.
        """
        simplices = self._simplices[k]
        if cells is not None:
            simplices = simplices[np.asarray(cells, dtype=np.int64)]
        return self._vertices[simplices].mean(axis=1)

    ###########################################################################
    # From Methods
    ###########################################################################

    @classmethod
    def from_regular_grid(
        cls,
        shape: tuple[int, ...],
        spacing: float = 1.0,
        origin: NDArray[float] | None = None,
    ) -> Self:
        """
        Creates the Freudenthal triangulation of a regular 2D or 3D grid.
        Each square is split into 2 triangles and each cube into 6
        tetrahedra sharing the main diagonal.

        Parameters
        ----------
        shape : tuple[int, ...]
            The number of points along each axis.
        spacing : float, optional
            The distance between neighboring points. The default is 1.0.
        origin : NDArray[float] | None, optional
            The coordinates of the first point. The default is the origin.

        Returns
        -------
        Self
            A Triangulation object.

        """
        shape = tuple(int(i) for i in shape)
        dim = len(shape)
        if dim not in (2, 3):
            raise DimensionalityError(
                f"Grids must be 2D or 3D. Received shape {shape}."
            )
        if min(shape) < 2:
            raise ValueError("Grids need at least two points along each axis.")
        indices = np.arange(np.prod(shape), dtype=np.int64).reshape(shape)
        coords = np.indices(shape).reshape(dim, -1).T * float(spacing)
        if origin is not None:
            coords = coords + np.asarray(origin, dtype=np.float64)[:dim]

        def corner(offset):
            # the point at a corner of each square/cube in the grid
            slices = tuple(
                slice(o, n - 1 + o) for o, n in zip(offset, shape)
            )
            return indices[slices].ravel()

        cells = []
        base = corner((0,) * dim)
        top = corner((1,) * dim)
        # each permutation of the axes is a monotone path from the base
        # corner to the top corner
        for permutation in itertools.permutations(range(dim)):
            offset = [0] * dim
            path = [base]
            for axis in permutation[:-1]:
                offset[axis] = 1
                path.append(corner(tuple(offset)))
            path.append(top)
            cells.append(np.column_stack(path))
        cells = np.concatenate(cells)
        logging.info(f"Triangulating grid of shape {shape} into {len(cells)} cells")
        return cls(coords, cells)
