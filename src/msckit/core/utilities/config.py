# -*- coding: utf-8 -*-

import logging
import os
from dataclasses import asdict, dataclass, field, fields
from numbers import Integral


def _default_thread_number() -> int:
    return os.cpu_count() or 1


@dataclass
class MorseSmaleConfig:
    """
    Options shared by the 2D and 3D pipelines. A single instance is threaded
    through one execution, nothing here is global state.

    Parameters
    ----------
    iteration_threshold : int, optional
        The maximum number of cancellations the simplifier may perform. -1
        means no limit. The default is -1.
    persistence_threshold : float | None, optional
        Critical pairs with a persistence at or below this value are cancelled
        even if they are PL critical. If None, only the PL compliance rule (or
        the iteration threshold) decides. The default is None.
    pl_compliance : bool, optional
        Whether to cancel the critical cells that the piecewise linear
        structure of the field does not require while keeping the ones it
        does. The default is True.
    reverse_saddle_maximum_connection : bool, optional
        Cancel (d-1)-saddle/maximum pairs. The default is True.
    reverse_saddle_saddle_connection : bool, optional
        Cancel 1-saddle/2-saddle pairs (3D only). The default is True.
    reverse_minimum_saddle_connection : bool, optional
        Cancel minimum/1-saddle pairs. The default is True.
    compute_critical_points : bool, optional
        The default is True.
    compute_ascending_separatrices1 : bool, optional
        The default is True.
    compute_descending_separatrices1 : bool, optional
        The default is True.
    compute_saddle_connectors : bool, optional
        Add 2-saddle to 1-saddle connectors to the 1-separatrices (3D only).
        They are only traced when ascending or descending 1-separatrices are
        requested. The default is True.
    compute_ascending_separatrices2 : bool, optional
        Trace the walls grown from 1-saddles (3D only). The default is False.
    compute_descending_separatrices2 : bool, optional
        Trace the walls grown from 2-saddles (3D only). The default is False.
    compute_ascending_segmentation : bool, optional
        The default is True.
    compute_descending_segmentation : bool, optional
        The default is True.
    compute_final_segmentation : bool, optional
        Label every vertex with its Morse-Smale cell. The default is True.
    return_saddle_connectors : bool, optional
        Keep every saddle connector regardless of its persistence. The default
        is False.
    saddle_connectors_persistence_threshold : float, optional
        Saddle connectors with a persistence below this value are dropped
        unless return_saddle_connectors is set. The default is 0.0.
    thread_number : int, optional
        The number of threads used by the parallel stages. Defaults to the
        number of cpus.
    debug_level : int, optional
        0 only logs stage progress, 1 adds per stage counts and 2 adds
        detailed pass statistics. The default is 0.

    """

    iteration_threshold: int = -1
    persistence_threshold: float | None = None
    pl_compliance: bool = True
    reverse_saddle_maximum_connection: bool = True
    reverse_saddle_saddle_connection: bool = True
    reverse_minimum_saddle_connection: bool = True
    compute_critical_points: bool = True
    compute_ascending_separatrices1: bool = True
    compute_descending_separatrices1: bool = True
    compute_saddle_connectors: bool = True
    compute_ascending_separatrices2: bool = False
    compute_descending_separatrices2: bool = False
    compute_ascending_segmentation: bool = True
    compute_descending_segmentation: bool = True
    compute_final_segmentation: bool = True
    return_saddle_connectors: bool = False
    saddle_connectors_persistence_threshold: float = 0.0
    thread_number: int = field(default_factory=_default_thread_number)
    debug_level: int = 0

    def __post_init__(self):
        if not isinstance(self.iteration_threshold, Integral) or self.iteration_threshold < -1:
            raise ValueError(
                f"Invalid iteration_threshold '{self.iteration_threshold}'. Use -1 for no limit or a non-negative integer."
            )
        if self.persistence_threshold is not None and self.persistence_threshold < 0:
            raise ValueError(
                f"Invalid persistence_threshold '{self.persistence_threshold}'. It must be None or non-negative."
            )
        if self.saddle_connectors_persistence_threshold < 0:
            raise ValueError(
                "saddle_connectors_persistence_threshold must be non-negative."
            )
        if not isinstance(self.thread_number, Integral) or self.thread_number < 1:
            raise ValueError(
                f"Invalid thread_number '{self.thread_number}'. At least one thread is required."
            )
        if self.debug_level < 0:
            raise ValueError("debug_level must be non-negative.")
        # numpy integers are stored as plain ints so the options stay json friendly
        self.iteration_threshold = int(self.iteration_threshold)
        self.thread_number = int(self.thread_number)

    @classmethod
    def from_dict(cls, options: dict) -> "MorseSmaleConfig":
        """
        Creates a config from a dictionary. Unknown keys are ignored with a
        warning.
        """
        valid_keys = {f.name for f in fields(cls)}
        kwargs = {}
        for key, value in options.items():
            if key not in valid_keys:
                logging.warning(f"Ignoring unknown option '{key}'")
                continue
            kwargs[key] = value
        return cls(**kwargs)

    def to_dict(self) -> dict:
        return asdict(self)

    def replace(self, **kwargs) -> "MorseSmaleConfig":
        """Returns a copy of this config with some options changed"""
        options = self.to_dict()
        options.update(kwargs)
        return self.from_dict(options)
