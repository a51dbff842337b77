# -*- coding: utf-8 -*-

import logging
from dataclasses import dataclass

import numpy as np
from numpy.typing import NDArray

from msckit.core.gradient import DiscreteGradient
from msckit.core.utilities.union_find import get_roots

from .segmentation_numba import get_ascending_pointers, get_descending_pointers


@dataclass
class Segmentation:
    """
    Per vertex manifold labels. Entries that were not requested are None.

    Attributes
    ----------
    ascending : NDArray[np.int64] | None
        The maximum (in critical point order among maxima) each vertex flows
        up to. Vertices whose flow leaves through the boundary of the mesh get
        boundary_label.
    descending : NDArray[np.int64] | None
        The minimum (in critical point order among minima) each vertex flows
        down to.
    morse_smale : NDArray[np.int64] | None
        A compact id for each distinct (ascending, descending) pair.
    boundary_label : int
        The ascending label of flows leaving the mesh. This is the number of
        maxima.

    """

    ascending: NDArray[np.int64] | None = None
    descending: NDArray[np.int64] | None = None
    morse_smale: NDArray[np.int64] | None = None
    boundary_label: int = -1

    @property
    def num_ascending(self) -> int:
        if self.ascending is None:
            return 0
        return len(np.unique(self.ascending))

    @property
    def num_descending(self) -> int:
        if self.descending is None:
            return 0
        return len(np.unique(self.descending))

    @property
    def num_morse_smale(self) -> int:
        if self.morse_smale is None:
            return 0
        return int(self.morse_smale.max()) + 1

    def to_dict(self, use_json: bool = True) -> dict:
        results = {
            "ascending": self.ascending,
            "descending": self.descending,
            "morse_smale": self.morse_smale,
            "boundary_label": self.boundary_label,
        }
        if use_json:
            for key in ["ascending", "descending", "morse_smale"]:
                if results[key] is not None:
                    results[key] = results[key].tolist()
        return results


def get_descending_manifold(gradient: DiscreteGradient) -> NDArray[np.int64]:
    """
    Labels each vertex with the minimum its descending V-path ends at.
    """
    tri = gradient.triangulation
    pointers = get_descending_pointers(gradient.pairs_up[0], tri.simplices(1))
    roots = get_roots(pointers)
    minima = gradient.critical_cells(0)
    minimum_labels = np.full(tri.num_vertices, -1, dtype=np.int64)
    minimum_labels[minima] = np.arange(len(minima), dtype=np.int64)
    return minimum_labels[roots]


def get_ascending_manifold(gradient: DiscreteGradient) -> tuple[NDArray[np.int64], int]:
    """
    Labels each vertex with the maximum the ascending V-path of its first top
    cell ends at. Flows leaving through the boundary get the number of maxima
    as their label.

    Returns
    -------
    tuple[NDArray[np.int64], int]
        The vertex labels and the label used for the boundary.

    """
    tri = gradient.triangulation
    dim = gradient.dimension
    facet_ptr, facet_idx = tri.cofacets_csr(dim - 1)
    pointers = get_ascending_pointers(gradient.pairs_down[dim], facet_ptr, facet_idx)
    roots = get_roots(pointers)
    maxima = gradient.critical_cells(dim)
    boundary_label = len(maxima)
    num_cells = tri.num_cells(dim)
    maximum_labels = np.full(num_cells + 1, -1, dtype=np.int64)
    maximum_labels[maxima] = np.arange(len(maxima), dtype=np.int64)
    maximum_labels[num_cells] = boundary_label
    cell_labels = maximum_labels[roots[:num_cells]]
    # the star of each vertex is sorted so this is its lowest id top cell
    star_ptr, star_idx = tri.star_csr(dim)
    return cell_labels[star_idx[star_ptr[:-1]]], boundary_label


def get_morse_smale_manifold(
    ascending: NDArray[np.int64],
    descending: NDArray[np.int64],
) -> NDArray[np.int64]:
    """
    Combines the ascending and descending labels into one compact id per
    distinct pair.
    """
    num_descending = int(descending.max()) + 1
    combined = ascending.astype(np.int64) * num_descending + descending
    _, labels = np.unique(combined, return_inverse=True)
    return labels.reshape(-1).astype(np.int64)


def get_segmentation(
    gradient: DiscreteGradient,
    compute_ascending: bool = True,
    compute_descending: bool = True,
    compute_final: bool = True,
    debug_level: int = 0,
) -> Segmentation:
    """
    Builds the requested manifold labels. The Morse-Smale labels need both
    the ascending and descending labels, which are computed for it even if
    they were not requested.
    """
    logging.info("Computing segmentation")
    segmentation = Segmentation()
    ascending = descending = None
    if compute_ascending or compute_final:
        ascending, segmentation.boundary_label = get_ascending_manifold(gradient)
    if compute_descending or compute_final:
        descending = get_descending_manifold(gradient)
    if compute_final:
        segmentation.morse_smale = get_morse_smale_manifold(ascending, descending)
    if compute_ascending:
        segmentation.ascending = ascending
    if compute_descending:
        segmentation.descending = descending
    if debug_level > 0:
        logging.info(
            f"Manifolds: {segmentation.num_ascending} ascending, {segmentation.num_descending} descending, {segmentation.num_morse_smale} Morse-Smale"
        )
    return segmentation
