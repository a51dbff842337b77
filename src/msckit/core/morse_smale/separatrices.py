# -*- coding: utf-8 -*-

import logging
import time
from dataclasses import dataclass

import numpy as np
import pandas as pd
from numpy.typing import NDArray

from msckit.core.gradient import DiscreteGradient, descending_tree
from msckit.core.gradient.vpaths import get_path_vertices
from msckit.core.utilities.config import MorseSmaleConfig

from .critical_points import CriticalPoints
from .enums import SeparatrixType
from .separatrices_numba import (
    get_ascending_path_lengths,
    get_descending_path_lengths,
    get_wall_owners,
    get_wall_sizes,
    grow_walls,
    trace_ascending_paths,
    trace_descending_paths,
)


###############################################################################
# Result Structures
###############################################################################


@dataclass
class Separatrices1:
    """
    Polylines running from saddles to extrema or to other saddles. Each
    separatrix owns its points, one per cell it crosses, and is split into
    segments between consecutive points. Every segment carries the tags of
    its separatrix.
    """

    points: NDArray[np.float64]
    point_smoothing_mask: NDArray[np.bool_]
    point_cell_dimensions: NDArray[np.int64]
    point_cell_ids: NDArray[np.int64]
    segments: NDArray[np.int64]
    segment_source_ids: NDArray[np.int64]
    segment_destination_ids: NDArray[np.int64]
    segment_separatrix_ids: NDArray[np.int64]
    segment_types: NDArray[np.int64]
    segment_function_maxima: NDArray[np.float64]
    segment_function_minima: NDArray[np.float64]
    segment_function_diffs: NDArray[np.float64]
    segment_is_on_boundary: NDArray[np.bool_]

    @property
    def num_separatrices(self) -> int:
        return len(np.unique(self.segment_separatrix_ids))

    def to_dataframe(self) -> pd.DataFrame:
        """
        Gets a table with one row per separatrix.
        """
        segments = pd.DataFrame(
            {
                "separatrix_id": self.segment_separatrix_ids,
                "source_id": self.segment_source_ids,
                "destination_id": self.segment_destination_ids,
                "type": [str(SeparatrixType.from_code(i)) for i in self.segment_types],
                "function_maximum": self.segment_function_maxima,
                "function_minimum": self.segment_function_minima,
                "function_diff": self.segment_function_diffs,
                "is_on_boundary": self.segment_is_on_boundary,
            }
        )
        summary = segments.groupby("separatrix_id", sort=True).first()
        summary["num_segments"] = segments.groupby("separatrix_id", sort=True).size()
        return summary.reset_index()

    def to_dict(self, use_json: bool = True) -> dict:
        results = {key: getattr(self, key) for key in self.__dataclass_fields__}
        if use_json:
            results = {key: value.tolist() for key, value in results.items()}
        return results


@dataclass
class Separatrices2:
    """
    Polygonal walls grown from saddles (3D only). Polygons are stored as
    offsets into a flat connectivity array of point indices.
    """

    points: NDArray[np.float64]
    point_cell_dimensions: NDArray[np.int64]
    point_cell_ids: NDArray[np.int64]
    polygon_offsets: NDArray[np.int64]
    polygon_connectivity: NDArray[np.int64]
    polygon_source_ids: NDArray[np.int64]
    polygon_separatrix_ids: NDArray[np.int64]
    polygon_types: NDArray[np.int64]
    polygon_function_maxima: NDArray[np.float64]
    polygon_function_minima: NDArray[np.float64]
    polygon_function_diffs: NDArray[np.float64]
    polygon_is_on_boundary: NDArray[np.bool_]

    @property
    def num_polygons(self) -> int:
        return len(self.polygon_offsets) - 1

    @property
    def num_separatrices(self) -> int:
        return len(np.unique(self.polygon_separatrix_ids))

    def get_polygon(self, index: int) -> NDArray[np.int64]:
        return self.polygon_connectivity[
            self.polygon_offsets[index] : self.polygon_offsets[index + 1]
        ]

    def to_dict(self, use_json: bool = True) -> dict:
        results = {key: getattr(self, key) for key in self.__dataclass_fields__}
        if use_json:
            results = {key: value.tolist() for key, value in results.items()}
        return results


###############################################################################
# 1-Separatrix Tracing
###############################################################################


def _get_offsets(lengths: NDArray[np.int64]) -> NDArray[np.int64]:
    offsets = np.zeros(lengths.size + 1, dtype=np.int64)
    offsets[1:] = np.cumsum(lengths.ravel())
    return offsets


def _split_paths(cells, offsets, num_saddles: int, dims: list[int]) -> list[list[tuple]]:
    """
    Cuts a flat path array back into the paths of each saddle. Saddle i owns
    the ranges 2i and 2i+1 of the offsets, and empty ranges are skipped.
    """
    paths = []
    for i in range(num_saddles):
        saddle_paths = []
        for j in range(2 * i, 2 * i + 2):
            start, end = offsets[j], offsets[j + 1]
            if start == end:
                continue
            saddle_paths.append((dims * int((end - start) // 2), cells[start:end].tolist()))
        paths.append(saddle_paths)
    return paths


def get_descending_paths(gradient: DiscreteGradient, saddles) -> list[list[tuple]]:
    """
    Follows the two vertices of each critical edge down their vertex/edge
    pairs to the minima they end at. Saddles are traced in parallel.

    Returns
    -------
    list[list[tuple]]
        For each saddle, the cell dimensions and cell ids of its two paths.
        A path starts at the saddle and ends at a minimum.

    """
    saddles = np.asarray(saddles, dtype=np.int64)
    edges = gradient.triangulation.simplices(1)
    vertex_up = gradient.pairs_up[0]
    lengths = get_descending_path_lengths(saddles, edges, vertex_up)
    offsets = _get_offsets(lengths)
    cells = trace_descending_paths(saddles, edges, vertex_up, offsets)
    return _split_paths(cells, offsets, len(saddles), [1, 0])


def get_ascending_paths(gradient: DiscreteGradient, saddles) -> list[list[tuple]]:
    """
    Follows the top cells on each side of every critical (d-1)-cell across
    their paired facets up to the maxima they end at. Paths that leave
    through the boundary of the mesh are dropped.
    """
    saddles = np.asarray(saddles, dtype=np.int64)
    dim = gradient.dimension
    pointers, indices = gradient.triangulation.cofacets_csr(dim - 1)
    top_down = gradient.pairs_down[dim]
    lengths = get_ascending_path_lengths(saddles, pointers, indices, top_down)
    offsets = _get_offsets(lengths)
    cells = trace_ascending_paths(saddles, pointers, indices, top_down, offsets)
    return _split_paths(cells, offsets, len(saddles), [dim - 1, dim])


def trace_saddle_connectors(gradient: DiscreteGradient, saddle: int) -> list[tuple]:
    """
    Follows the V-paths from a critical triangle down to critical edges. One
    path is kept for each 1-saddle that can be reached.
    """
    tree = descending_tree(gradient, 1, saddle)
    paths = []
    for target in sorted(tree.path_counts):
        cells = tree.path_to(target)
        dims = [2 - (i % 2) for i in range(len(cells))]
        paths.append((dims, cells))
    return paths


def _get_cell_points(gradient: DiscreteGradient, dims, cells) -> NDArray[np.float64]:
    tri = gradient.triangulation
    vertices = tri.vertices
    return np.array(
        [vertices[tri.simplices(d)[c]].mean(axis=0) for d, c in zip(dims, cells)]
    ).reshape(-1, 3)


def get_separatrices1(
    gradient: DiscreteGradient,
    critical_points: CriticalPoints,
    config: MorseSmaleConfig,
) -> Separatrices1:
    """
    Traces the requested 1-separatrices of a finished gradient. Paths to
    extrema are traced in parallel, saddle connectors one saddle at a time.
    Everything is collected in saddle order, so ids are stable between runs.

    Parameters
    ----------
    gradient : DiscreteGradient
        A finished gradient.
    critical_points : CriticalPoints
        The critical points of the gradient, used to convert cells to ids.
    config : MorseSmaleConfig
        The output toggles and the saddle connector filter.

    Returns
    -------
    Separatrices1
        The separatrix geometry and tags.

    """
    t0 = time.time()
    logging.info("Tracing 1-separatrices")
    dim = gradient.dimension
    tri = gradient.triangulation
    jobs = []
    traced = []
    if config.compute_descending_separatrices1:
        saddles = gradient.critical_cells(1)
        jobs.extend((SeparatrixType.descending, 1, int(i)) for i in saddles)
        traced.extend(get_descending_paths(gradient, saddles))
    if dim == 3 and config.compute_saddle_connectors:
        # connectors need the path counts of the V-path trees
        for saddle in gradient.critical_cells(2):
            jobs.append((SeparatrixType.saddle_connector, 2, int(saddle)))
            traced.append(trace_saddle_connectors(gradient, int(saddle)))
    if config.compute_ascending_separatrices1:
        saddles = gradient.critical_cells(dim - 1)
        jobs.extend((SeparatrixType.ascending, dim - 1, int(i)) for i in saddles)
        traced.extend(get_ascending_paths(gradient, saddles))

    points = []
    smoothing = []
    point_dims = []
    point_ids = []
    segments = []
    tags = []
    num_points = 0
    separatrix_id = 0
    num_dropped = 0
    for (separatrix_type, k, saddle), paths in zip(jobs, traced):
        source = int(critical_points.get_ids(k, [saddle])[0])
        on_boundary = bool(tri.is_on_boundary(k)[saddle])
        for dims, cells in paths:
            destination_dim = dims[-1]
            destination = int(critical_points.get_ids(destination_dim, [cells[-1]])[0])
            if separatrix_type == SeparatrixType.saddle_connector:
                persistence = float(
                    gradient.cell_values(2, saddle) - gradient.cell_values(1, cells[-1])
                )
                if (
                    not config.return_saddle_connectors
                    and persistence < config.saddle_connectors_persistence_threshold
                ):
                    num_dropped += 1
                    continue
            values = gradient.scalars[get_path_vertices(gradient, dims, cells)]
            num_cells = len(cells)
            points.append(_get_cell_points(gradient, dims, cells))
            mask = np.ones(num_cells, dtype=np.bool_)
            mask[[0, -1]] = False
            smoothing.append(mask)
            point_dims.append(np.array(dims, dtype=np.int64))
            point_ids.append(np.array(cells, dtype=np.int64))
            starts = np.arange(num_points, num_points + num_cells - 1, dtype=np.int64)
            segments.append(np.column_stack((starts, starts + 1)))
            tags.append(
                (
                    num_cells - 1,
                    source,
                    destination,
                    separatrix_id,
                    separatrix_type.code,
                    values.max(),
                    values.min(),
                    on_boundary,
                )
            )
            num_points += num_cells
            separatrix_id += 1

    def repeat(index, dtype):
        return np.array(
            np.repeat([i[index] for i in tags], [i[0] for i in tags]), dtype=dtype
        )

    maxima = repeat(5, np.float64)
    minima = repeat(6, np.float64)
    separatrices = Separatrices1(
        points=np.concatenate(points) if points else np.empty((0, 3)),
        point_smoothing_mask=np.concatenate(smoothing) if smoothing else np.empty(0, dtype=np.bool_),
        point_cell_dimensions=np.concatenate(point_dims) if point_dims else np.empty(0, dtype=np.int64),
        point_cell_ids=np.concatenate(point_ids) if point_ids else np.empty(0, dtype=np.int64),
        segments=np.concatenate(segments) if segments else np.empty((0, 2), dtype=np.int64),
        segment_source_ids=repeat(1, np.int64),
        segment_destination_ids=repeat(2, np.int64),
        segment_separatrix_ids=repeat(3, np.int64),
        segment_types=repeat(4, np.int64),
        segment_function_maxima=maxima,
        segment_function_minima=minima,
        segment_function_diffs=maxima - minima,
        segment_is_on_boundary=repeat(7, np.bool_),
    )
    t1 = time.time()
    if config.debug_level > 0:
        logging.info(
            f"{separatrix_id} 1-separatrices, {num_dropped} saddle connectors below the persistence threshold"
        )
    logging.info(f"Time: {round(t1-t0,2)}")
    return separatrices


###############################################################################
# 2-Separatrix Tracing
###############################################################################


def _get_walls(saddles, pointers, indices, partners, num_cells: int) -> tuple:
    saddles = np.asarray(saddles, dtype=np.int64)
    sizes = get_wall_sizes(saddles, pointers, indices, partners, num_cells)
    offsets = _get_offsets(sizes)
    cells = grow_walls(saddles, pointers, indices, partners, num_cells, offsets)
    return cells, offsets


def get_descending_walls(gradient: DiscreteGradient, saddles) -> tuple:
    """
    The triangles reached from each critical triangle by following edges to
    the triangles they are paired with, in breadth first order. Saddles are
    grown in parallel.

    Returns
    -------
    tuple
        The flat array of wall triangles and the offsets of each saddle's
        wall in it.

    """
    tri = gradient.triangulation
    facets = tri.facets(2)
    pointers = np.arange(0, facets.size + 1, 3, dtype=np.int64)
    return _get_walls(
        saddles, pointers, facets.ravel(), gradient.pairs_up[1], tri.num_cells(2)
    )


def get_ascending_walls(gradient: DiscreteGradient, saddles) -> tuple:
    """
    The edges reached from each critical edge by following triangles to the
    edges they are paired with, in breadth first order.
    """
    tri = gradient.triangulation
    pointers, indices = tri.cofacets_csr(1)
    return _get_walls(
        saddles, pointers, indices, gradient.pairs_down[2], tri.num_cells(1)
    )


def get_dual_polygon(gradient: DiscreteGradient, edge: int) -> list[tuple[int, int]]:
    """
    The cells whose barycenters outline the dual polygon of an edge: the
    tetrahedra around it in cyclic order. For boundary edges the open ring is
    closed with the two boundary triangles at its ends.
    """
    tri = gradient.triangulation
    triangles = [int(i) for i in tri.cofacets(1, edge)]
    triangle_tets = {t: [int(i) for i in tri.cofacets(2, t)] for t in triangles}
    tet_triangles = {}
    for t in triangles:
        for tet in triangle_tets[t]:
            tet_triangles.setdefault(tet, []).append(t)

    boundary = [t for t in triangles if len(triangle_tets[t]) == 1]
    start = min(boundary) if boundary else min(triangles)
    polygon = []
    if boundary:
        polygon.append((2, start))
    current_triangle = start
    current_tet = triangle_tets[start][0]
    first_tet = current_tet
    while True:
        polygon.append((3, current_tet))
        a, b = tet_triangles[current_tet]
        next_triangle = b if a == current_triangle else a
        neighbors = [i for i in triangle_tets[next_triangle] if i != current_tet]
        if not neighbors:
            polygon.append((2, next_triangle))
            break
        if neighbors[0] == first_tet:
            break
        current_triangle = next_triangle
        current_tet = neighbors[0]
    return polygon


def get_separatrices2(
    gradient: DiscreteGradient,
    critical_points: CriticalPoints,
    config: MorseSmaleConfig,
) -> Separatrices2:
    """
    Builds the requested walls of a 3D gradient. Walls are grown in parallel
    and merged in saddle order. A cell reached by several walls belongs to
    the first saddle that reaches it and is emitted once.

    Parameters
    ----------
    gradient : DiscreteGradient
        A finished 3D gradient.
    critical_points : CriticalPoints
        The critical points of the gradient, used to convert cells to ids.
    config : MorseSmaleConfig
        The output toggles.

    Returns
    -------
    Separatrices2
        The polygons of every wall and their tags.

    """
    t0 = time.time()
    logging.info("Tracing 2-separatrices")
    tri = gradient.triangulation
    wall_sets = []
    if config.compute_descending_separatrices2:
        saddles = gradient.critical_cells(2)
        cells, wall_offsets = get_descending_walls(gradient, saddles)
        wall_sets.append((SeparatrixType.descending, 2, saddles, cells, wall_offsets))
    if config.compute_ascending_separatrices2:
        saddles = gradient.critical_cells(1)
        cells, wall_offsets = get_ascending_walls(gradient, saddles)
        wall_sets.append((SeparatrixType.ascending, 1, saddles, cells, wall_offsets))

    point_index = {}
    point_cells = []
    offsets = [0]
    connectivity = []
    tags = []
    separatrix_id = 0
    for separatrix_type, k, saddles, wall_cells, wall_offsets in wall_sets:
        keep = get_wall_owners(wall_cells, wall_offsets, tri.num_cells(k))
        sources = critical_points.get_ids(k, saddles)
        on_boundary = tri.is_on_boundary(k)[saddles]
        for i in range(len(saddles)):
            start, end = wall_offsets[i], wall_offsets[i + 1]
            wall = wall_cells[start:end]
            cells = wall[keep[start:end]]
            if len(cells) == 0:
                continue
            values = gradient.scalars[np.unique(tri.simplices(k)[wall])]
            for cell in cells:
                if k == 2:
                    polygon = [(0, int(v)) for v in tri.simplices(2)[cell]]
                else:
                    polygon = get_dual_polygon(gradient, int(cell))
                for key in polygon:
                    if key not in point_index:
                        point_index[key] = len(point_cells)
                        point_cells.append(key)
                    connectivity.append(point_index[key])
                offsets.append(len(connectivity))
                tags.append(
                    (
                        int(sources[i]),
                        separatrix_id,
                        separatrix_type.code,
                        values.max(),
                        values.min(),
                        bool(on_boundary[i]),
                    )
                )
            separatrix_id += 1

    if point_cells:
        point_dims = np.array([i[0] for i in point_cells], dtype=np.int64)
        point_ids = np.array([i[1] for i in point_cells], dtype=np.int64)
        points = _get_cell_points(gradient, point_dims, point_ids)
    else:
        point_dims = np.empty(0, dtype=np.int64)
        point_ids = np.empty(0, dtype=np.int64)
        points = np.empty((0, 3))

    def column(index, dtype):
        return np.array([i[index] for i in tags], dtype=dtype)

    maxima = column(3, np.float64)
    minima = column(4, np.float64)
    separatrices = Separatrices2(
        points=points,
        point_cell_dimensions=point_dims,
        point_cell_ids=point_ids,
        polygon_offsets=np.array(offsets, dtype=np.int64),
        polygon_connectivity=np.array(connectivity, dtype=np.int64),
        polygon_source_ids=column(0, np.int64),
        polygon_separatrix_ids=column(1, np.int64),
        polygon_types=column(2, np.int64),
        polygon_function_maxima=maxima,
        polygon_function_minima=minima,
        polygon_function_diffs=maxima - minima,
        polygon_is_on_boundary=column(5, np.bool_),
    )
    t1 = time.time()
    if config.debug_level > 0:
        logging.info(
            f"{separatrix_id} 2-separatrices made of {separatrices.num_polygons} polygons"
        )
    logging.info(f"Time: {round(t1-t0,2)}")
    return separatrices
