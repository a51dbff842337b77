# -*- coding: utf-8 -*-

import logging
from dataclasses import dataclass

import numpy as np
import pandas as pd
from numpy.typing import NDArray

from msckit.core.gradient import DiscreteGradient

from .enums import CriticalPointType


@dataclass
class CriticalPoints:
    """
    The critical cells of a finished gradient, ordered by dimension and then
    by cell id.

    Attributes
    ----------
    dimension : int
        The dimension of the mesh.
    positions : NDArray[np.float64]
        The barycenter of each critical cell.
    cell_dimensions : NDArray[np.int64]
        The dimension of each cell, which is its Morse index.
    cell_ids : NDArray[np.int64]
        The id of each cell among the cells of its dimension.
    cell_scalars : NDArray[np.float64]
        The value at the highest vertex of each cell.
    is_on_boundary : NDArray[np.bool_]
        Whether each cell lies on the boundary of the mesh.
    pl_vertex_identifiers : NDArray[np.int64]
        The vertex whose lower star holds each cell.
    is_pl_critical : NDArray[np.bool_]
        Whether the piecewise linear structure of the field places a critical
        point of the same index at that vertex.
    manifold_sizes : NDArray[np.int64]
        The number of vertices in the descending manifold of each minimum and
        the ascending manifold of each maximum. Saddles, and extrema whose
        segmentation was not computed, get 0.

    """

    dimension: int
    positions: NDArray[np.float64]
    cell_dimensions: NDArray[np.int64]
    cell_ids: NDArray[np.int64]
    cell_scalars: NDArray[np.float64]
    is_on_boundary: NDArray[np.bool_]
    pl_vertex_identifiers: NDArray[np.int64]
    is_pl_critical: NDArray[np.bool_]
    manifold_sizes: NDArray[np.int64]

    def __len__(self) -> int:
        return len(self.cell_ids)

    @property
    def counts(self) -> list[int]:
        """

        Returns
        -------
        list[int]
            The number of critical points of each index.

        """
        return np.bincount(self.cell_dimensions, minlength=self.dimension + 1).tolist()

    @property
    def types(self) -> list[CriticalPointType]:
        return [
            CriticalPointType.from_index(int(i), self.dimension)
            for i in self.cell_dimensions
        ]

    def get_indices(self, k: int) -> NDArray[np.int64]:
        """
        The positions of the critical points of index k in these arrays.
        """
        return np.flatnonzero(self.cell_dimensions == k)

    def get_ids(self, k: int, cells) -> NDArray[np.int64]:
        """
        Converts ids of critical k-cells to critical point ids.
        """
        indices = self.get_indices(k)
        cells = np.asarray(cells, dtype=np.int64)
        positions = np.searchsorted(self.cell_ids[indices], cells)
        if (positions >= len(indices)).any():
            raise KeyError(f"Some of the requested {k}-cells are not critical.")
        ids = indices[positions]
        if (self.cell_ids[ids] != cells).any():
            raise KeyError(f"Some of the requested {k}-cells are not critical.")
        return ids

    def to_dataframe(self) -> pd.DataFrame:
        """
        Gets a table with one row per critical point.
        """
        return pd.DataFrame(
            {
                "x": self.positions[:, 0],
                "y": self.positions[:, 1],
                "z": self.positions[:, 2],
                "type": [str(i) for i in self.types],
                "cell_dimension": self.cell_dimensions,
                "cell_id": self.cell_ids,
                "cell_scalar": self.cell_scalars,
                "is_on_boundary": self.is_on_boundary,
                "pl_vertex_identifier": self.pl_vertex_identifiers,
                "is_pl_critical": self.is_pl_critical,
                "manifold_size": self.manifold_sizes,
            }
        )

    def to_dict(self, use_json: bool = True) -> dict:
        results = {
            "positions": self.positions,
            "cell_dimensions": self.cell_dimensions,
            "cell_ids": self.cell_ids,
            "cell_scalars": self.cell_scalars,
            "is_on_boundary": self.is_on_boundary,
            "pl_vertex_identifiers": self.pl_vertex_identifiers,
            "is_pl_critical": self.is_pl_critical,
            "manifold_sizes": self.manifold_sizes,
        }
        if use_json:
            results = {key: value.tolist() for key, value in results.items()}
        return results


def get_critical_points(gradient: DiscreteGradient, debug_level: int = 0) -> CriticalPoints:
    """
    Walks the gradient once and collects every unpaired cell.

    Parameters
    ----------
    gradient : DiscreteGradient
        A finished gradient.
    debug_level : int, optional
        Logs the counts per index when above 0. The default is 0.

    Returns
    -------
    CriticalPoints
        The critical points ordered by dimension and cell id.

    """
    tri = gradient.triangulation
    pl_counts = gradient.pl_critical_counts
    positions = []
    dimensions = []
    cell_ids = []
    scalars = []
    boundary = []
    vertices = []
    pl_critical = []
    for k in range(gradient.dimension + 1):
        cells = gradient.critical_cells(k)
        max_vertex = gradient.cell_max_vertex(k)[cells]
        positions.append(tri.barycenters(k, cells))
        dimensions.append(np.full(len(cells), k, dtype=np.int64))
        cell_ids.append(cells)
        scalars.append(gradient.scalars[max_vertex])
        boundary.append(tri.is_on_boundary(k)[cells])
        vertices.append(max_vertex)
        pl_critical.append(pl_counts[max_vertex, k] > 0)

    critical_points = CriticalPoints(
        dimension=gradient.dimension,
        positions=np.concatenate(positions).reshape(-1, 3),
        cell_dimensions=np.concatenate(dimensions),
        cell_ids=np.concatenate(cell_ids).astype(np.int64),
        cell_scalars=np.concatenate(scalars),
        is_on_boundary=np.concatenate(boundary),
        pl_vertex_identifiers=np.concatenate(vertices).astype(np.int64),
        is_pl_critical=np.concatenate(pl_critical),
        manifold_sizes=np.zeros(sum(len(i) for i in cell_ids), dtype=np.int64),
    )
    if debug_level > 0:
        logging.info(f"Critical points per index: {critical_points.counts}")
    return critical_points
