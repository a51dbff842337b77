# -*- coding: utf-8 -*-

import numpy as np
from numpy.typing import NDArray

from msckit.core.utilities.exceptions import DegenerateInputError


def get_vertex_order(
    scalars: NDArray[float],
    offsets: NDArray[int] | None = None,
) -> NDArray[np.int64]:
    """
    Gets the position of every vertex in the strict total order given by the
    scalar field, with ties broken by the offset field.

    Parameters
    ----------
    scalars : NDArray[float]
        One value per vertex.
    offsets : NDArray[int] | None, optional
        One integer per vertex used to break ties. If None, the vertex index
        is used.

    Returns
    -------
    NDArray[np.int64]
        The rank of each vertex. Lower ranks compare lower.

    """
    scalars = np.asarray(scalars)
    if scalars.ndim != 1:
        raise DegenerateInputError(
            f"The scalar field must be one value per vertex. Received shape {scalars.shape}."
        )
    if not np.issubdtype(scalars.dtype, np.number):
        raise DegenerateInputError("The scalar field must be numeric.")
    scalars = scalars.astype(np.float64)
    if not np.isfinite(scalars).all():
        raise DegenerateInputError("The scalar field contains NaN or infinite values.")
    if offsets is None:
        offsets = np.arange(len(scalars), dtype=np.int64)
    else:
        offsets = np.asarray(offsets)
        if offsets.shape != scalars.shape:
            raise DegenerateInputError(
                f"The offset field has shape {offsets.shape} but the scalar field has shape {scalars.shape}."
            )
        if not np.issubdtype(offsets.dtype, np.integer):
            raise DegenerateInputError("The offset field must contain integers.")
        offsets = offsets.astype(np.int64)

    # sort by scalar then offset
    sorted_vertices = np.lexsort((offsets, scalars))
    sorted_scalars = scalars[sorted_vertices]
    sorted_offsets = offsets[sorted_vertices]
    ties = (np.diff(sorted_scalars) == 0) & (np.diff(sorted_offsets) == 0)
    if ties.any():
        first = sorted_vertices[np.argmax(ties)]
        raise DegenerateInputError(
            f"{np.count_nonzero(ties)} vertices share both their scalar and offset values with another vertex "
            f"(e.g. vertex {first}). Provide an offset field that resolves the ties."
        )
    ranks = np.empty(len(scalars), dtype=np.int64)
    ranks[sorted_vertices] = np.arange(len(scalars), dtype=np.int64)
    return ranks
