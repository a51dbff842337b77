# -*- coding: utf-8 -*-

import copy
import json
import logging
from pathlib import Path
from typing import TypeVar

import numpy as np
from numpy.typing import NDArray

from msckit.core.gradient import DiscreteGradient, SimplificationReport
from msckit.core.toolkit import Triangulation
from msckit.core.utilities import MorseSmaleConfig

from .critical_points import CriticalPoints
from .pipelines import MorseSmaleResult, get_pipeline
from .separatrices import Separatrices1, Separatrices2

# This allows for Self typing and is compatible with python 3.10
Self = TypeVar("Self", bound="MorseSmaleComplex")


class MorseSmaleComplex:
    """
    Class for computing the Morse-Smale complex of a scalar field defined on
    the vertices of a 2D or 3D triangulation. Results are calculated the
    first time one of them is requested and cached afterwards.

    Parameters
    ----------
    triangulation : Triangulation
        The mesh the field is defined on.
    scalars : NDArray[float]
        One value per vertex.
    offsets : NDArray[int] | None, optional
        One integer per vertex used to break ties between equal values. If
        None, the vertex ids are used.
    config : MorseSmaleConfig | None, optional
        The options to use. If None, the defaults are used.
    **kwargs : dict
        Options that override the matching fields of the config.

    """

    _reset_props = [
        "result",
    ]

    def __init__(
        self,
        triangulation: Triangulation,
        scalars: NDArray[float],
        offsets: NDArray[int] | None = None,
        config: MorseSmaleConfig | None = None,
        **kwargs,
    ):
        if config is None:
            config = MorseSmaleConfig()
        if kwargs:
            config = config.replace(**kwargs)
        self._triangulation = triangulation
        self._scalars = np.asarray(scalars)
        self._offsets = offsets
        self._config = config
        # fail on unsupported meshes before any work is done
        self._pipeline = get_pipeline(triangulation, config)
        self._reset_properties()

    ###########################################################################
    # Set Properties
    ###########################################################################

    def _reset_properties(
        self,
        include_properties: list[str] = None,
        exclude_properties: list[str] = [],
    ):
        if include_properties is None:
            include_properties = self._reset_props
        reset_properties = [
            i for i in include_properties if i not in exclude_properties
        ]
        for prop in reset_properties:
            setattr(self, f"_{prop}", None)

    @property
    def triangulation(self) -> Triangulation:
        return self._triangulation

    @property
    def scalars(self) -> NDArray[float]:
        """

        Returns
        -------
        NDArray[float]
            The scalar value at each vertex.

        """
        return self._scalars

    @scalars.setter
    def scalars(self, value: NDArray[float]):
        self._scalars = np.asarray(value)
        self._reset_properties()

    @property
    def offsets(self) -> NDArray[int] | None:
        return self._offsets

    @offsets.setter
    def offsets(self, value: NDArray[int] | None):
        self._offsets = value
        self._reset_properties()

    @property
    def config(self) -> MorseSmaleConfig:
        """

        Returns
        -------
        MorseSmaleConfig
            The options used for the calculation. Setting a new config clears
            any cached results.

        """
        return self._config

    @config.setter
    def config(self, value: MorseSmaleConfig):
        self._config = value
        self._pipeline = get_pipeline(self.triangulation, value)
        self._reset_properties()

    ###########################################################################
    # Calculated Properties
    ###########################################################################

    @property
    def result(self) -> MorseSmaleResult:
        """

        Returns
        -------
        MorseSmaleResult
            Every output of the calculation.

        """
        if self._result is None:
            self.run()
        return self._result

    @property
    def gradient(self) -> DiscreteGradient:
        """

        Returns
        -------
        DiscreteGradient
            The simplified discrete gradient.

        """
        return self.result.gradient

    @property
    def simplification_report(self) -> SimplificationReport:
        return self.result.simplification_report

    @property
    def critical_points(self) -> CriticalPoints | None:
        """

        Returns
        -------
        CriticalPoints | None
            The critical points of the simplified gradient, or None if they
            were not requested.

        """
        return self.result.critical_points

    @property
    def separatrices1(self) -> Separatrices1 | None:
        return self.result.separatrices1

    @property
    def separatrices2(self) -> Separatrices2 | None:
        """

        Returns
        -------
        Separatrices2 | None
            The walls grown from the saddles. Only available for 3D meshes
            when requested.

        """
        return self.result.separatrices2

    @property
    def ascending_manifold(self) -> NDArray[np.int64] | None:
        """

        Returns
        -------
        NDArray[np.int64] | None
            The maximum each vertex flows up to. Flows leaving the mesh get
            the label equal to the number of maxima.

        """
        if self.result.segmentation is None:
            return None
        return self.result.segmentation.ascending

    @property
    def descending_manifold(self) -> NDArray[np.int64] | None:
        """

        Returns
        -------
        NDArray[np.int64] | None
            The minimum each vertex flows down to.

        """
        if self.result.segmentation is None:
            return None
        return self.result.segmentation.descending

    @property
    def morse_smale_manifold(self) -> NDArray[np.int64] | None:
        """

        Returns
        -------
        NDArray[np.int64] | None
            The Morse-Smale cell each vertex belongs to.

        """
        if self.result.segmentation is None:
            return None
        return self.result.segmentation.morse_smale

    ###########################################################################
    # Core Method
    ###########################################################################

    def run(self) -> None:
        """
        Runs the full calculation and caches the result.
        """
        logging.info(
            f"Computing Morse-Smale complex of {self.triangulation.num_vertices} vertices"
        )
        self._result = self._pipeline.execute(self.scalars, self.offsets)

    def copy(self) -> Self:
        """

        Returns
        -------
        Self
            A deep copy of this object.

        """
        return copy.deepcopy(self)

    ###########################################################################
    # Summary Methods
    ###########################################################################

    def to_dict(
        self,
        use_json: bool = True,
    ) -> dict:
        """

        Gets a summary dictionary of the results.

        Parameters
        ----------
        use_json : bool, optional
            Convert arrays to lists so the results can be written as JSON.
            The default is True.

        Returns
        -------
        dict
            The config and every computed output.

        """
        results = self.result.to_dict(use_json=use_json)
        results["dimension"] = self.triangulation.dimension
        results["config"] = self.config.to_dict()
        return results

    def to_json(self, **kwargs) -> str:
        """
        Creates a JSON string representation of the results, typically for writing
        results to file.

        Parameters
        ----------
        **kwargs : dict
            Keyword arguments for the to_dict method.

        Returns
        -------
        str
            A JSON string representation of the results.

        """
        return json.dumps(self.to_dict(use_json=True, **kwargs))

    def write_json(self, filepath: Path | str, **kwargs) -> None:
        """
        Writes the results to file in a JSON format.

        Parameters
        ----------
        filepath : Path | str
            The Path to write the results to.
        **kwargs : dict
            keyword arguments for the to_dict method.

        """
        filepath = Path(filepath)
        logging.info(f"Writing results to {filepath}")
        with open(filepath, "w") as json_file:
            json.dump(self.to_dict(use_json=True, **kwargs), json_file, indent=4)
