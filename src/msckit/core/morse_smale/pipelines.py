# -*- coding: utf-8 -*-

import logging
import time
from dataclasses import dataclass

import numpy as np
from numpy.typing import NDArray

from msckit.core.gradient import DiscreteGradient, GradientSimplifier, SimplificationReport
from msckit.core.toolkit import Triangulation
from msckit.core.utilities import DimensionalityError, MorseSmaleConfig, numba_threads

from .critical_points import CriticalPoints, get_critical_points
from .segmentation import Segmentation, get_segmentation
from .separatrices import Separatrices1, Separatrices2, get_separatrices1, get_separatrices2


@dataclass
class MorseSmaleResult:
    """
    Everything one execution produced. Stages that were switched off leave
    their entry as None.
    """

    gradient: DiscreteGradient
    simplification_report: SimplificationReport
    critical_points: CriticalPoints | None = None
    separatrices1: Separatrices1 | None = None
    separatrices2: Separatrices2 | None = None
    segmentation: Segmentation | None = None

    def to_dict(self, use_json: bool = True) -> dict:
        results = {
            "critical_counts": self.gradient.critical_counts,
            "simplification": self.simplification_report.to_dict(),
        }
        for key in ["critical_points", "separatrices1", "separatrices2", "segmentation"]:
            value = getattr(self, key)
            results[key] = None if value is None else value.to_dict(use_json=use_json)
        return results


def _set_manifold_sizes(
    critical_points: CriticalPoints,
    segmentation: Segmentation,
    dimension: int,
):
    """
    Fills in the number of vertices in the manifold of each extremum.
    """
    if segmentation.descending is not None:
        minima = critical_points.get_indices(0)
        critical_points.manifold_sizes[minima] = np.bincount(
            segmentation.descending, minlength=len(minima)
        )[: len(minima)]
    if segmentation.ascending is not None:
        maxima = critical_points.get_indices(dimension)
        # the extra bin past the maxima counts the boundary label
        critical_points.manifold_sizes[maxima] = np.bincount(
            segmentation.ascending, minlength=len(maxima) + 1
        )[: len(maxima)]


def _execute(
    triangulation: Triangulation,
    config: MorseSmaleConfig,
    scalars: NDArray[float],
    offsets: NDArray[int] | None,
    trace_walls: bool,
) -> MorseSmaleResult:
    debug_level = config.debug_level
    t0 = time.time()
    with numba_threads(config.thread_number):
        gradient = DiscreteGradient.from_field(
            triangulation, scalars, offsets, debug_level=debug_level
        )
        report = GradientSimplifier(gradient, config).run(debug_level=debug_level)
        result = MorseSmaleResult(gradient=gradient, simplification_report=report)

        # saddle connectors are only traced as part of the 1-separatrices
        needs_separatrices1 = (
            config.compute_ascending_separatrices1
            or config.compute_descending_separatrices1
        )
        needs_separatrices2 = trace_walls and (
            config.compute_ascending_separatrices2
            or config.compute_descending_separatrices2
        )
        # separatrices need critical point ids even if the points are not requested
        critical_points = None
        if config.compute_critical_points or needs_separatrices1 or needs_separatrices2:
            critical_points = get_critical_points(gradient, debug_level=debug_level)
        if needs_separatrices1:
            result.separatrices1 = get_separatrices1(gradient, critical_points, config)
        if needs_separatrices2:
            result.separatrices2 = get_separatrices2(gradient, critical_points, config)
        if (
            config.compute_ascending_segmentation
            or config.compute_descending_segmentation
            or config.compute_final_segmentation
        ):
            result.segmentation = get_segmentation(
                gradient,
                compute_ascending=config.compute_ascending_segmentation,
                compute_descending=config.compute_descending_segmentation,
                compute_final=config.compute_final_segmentation,
                debug_level=debug_level,
            )
            if critical_points is not None:
                _set_manifold_sizes(critical_points, result.segmentation, gradient.dimension)
        if config.compute_critical_points:
            result.critical_points = critical_points
    t1 = time.time()
    logging.info("Morse-Smale Complex Complete")
    logging.info(f"Time: {round(t1-t0,2)}")
    return result


class MorseSmaleComplex2D:
    """
    Computes the Morse-Smale complex of a scalar field on a triangle mesh.

    Parameters
    ----------
    triangulation : Triangulation
        A 2D triangulation.
    config : MorseSmaleConfig | None, optional
        The options to use. If None, the defaults are used.

    """

    dimension = 2

    def __init__(
        self,
        triangulation: Triangulation,
        config: MorseSmaleConfig | None = None,
    ):
        if triangulation.dimension != 2:
            raise DimensionalityError(
                f"MorseSmaleComplex2D requires a 2D triangulation, got dimension {triangulation.dimension}."
            )
        self.triangulation = triangulation
        self.config = config if config is not None else MorseSmaleConfig()

    def execute(
        self,
        scalars: NDArray[float],
        offsets: NDArray[int] | None = None,
    ) -> MorseSmaleResult:
        """
        Runs the full pipeline on one scalar field.

        Parameters
        ----------
        scalars : NDArray[float]
            One value per vertex.
        offsets : NDArray[int] | None, optional
            One integer per vertex used to break ties between equal values.
            If None, the vertex ids are used.

        Returns
        -------
        MorseSmaleResult
            The gradient and every requested output.

        """
        logging.info("Beginning 2D Morse-Smale Complex")
        # 2D meshes have no saddle connectors or walls
        return _execute(self.triangulation, self.config, scalars, offsets, trace_walls=False)


class MorseSmaleComplex3D:
    """
    Computes the Morse-Smale complex of a scalar field on a tetrahedral mesh,
    including saddle connectors and 2-separatrices.

    Parameters
    ----------
    triangulation : Triangulation
        A 3D triangulation.
    config : MorseSmaleConfig | None, optional
        The options to use. If None, the defaults are used.

    """

    dimension = 3

    def __init__(
        self,
        triangulation: Triangulation,
        config: MorseSmaleConfig | None = None,
    ):
        if triangulation.dimension != 3:
            raise DimensionalityError(
                f"MorseSmaleComplex3D requires a 3D triangulation, got dimension {triangulation.dimension}."
            )
        self.triangulation = triangulation
        self.config = config if config is not None else MorseSmaleConfig()

    def execute(
        self,
        scalars: NDArray[float],
        offsets: NDArray[int] | None = None,
    ) -> MorseSmaleResult:
        """
        Runs the full pipeline on one scalar field. See
        MorseSmaleComplex2D.execute.
        """
        logging.info("Beginning 3D Morse-Smale Complex")
        return _execute(self.triangulation, self.config, scalars, offsets, trace_walls=True)


def get_pipeline(
    triangulation: Triangulation,
    config: MorseSmaleConfig | None = None,
) -> MorseSmaleComplex2D | MorseSmaleComplex3D:
    """
    Picks the pipeline matching the dimension of the mesh.
    """
    if triangulation.dimension == 2:
        return MorseSmaleComplex2D(triangulation, config)
    elif triangulation.dimension == 3:
        return MorseSmaleComplex3D(triangulation, config)
    raise DimensionalityError(
        f"Unsupported mesh dimension {triangulation.dimension}. Only 2D and 3D meshes are supported."
    )
