# -*- coding: utf-8 -*-

import logging
import time
from dataclasses import dataclass, field

import numpy as np

from msckit.core.utilities.config import MorseSmaleConfig

from .discrete_gradient import DiscreteGradient
from .vpaths import ascending_tree, descending_tree, reverse_path


@dataclass
class SimplificationReport:
    """
    A summary of one simplification run. Running out of the iteration budget
    is a valid outcome and is reported through converged.
    """

    num_cancellations: int = 0
    num_rounds: int = 0
    converged: bool = True
    cancellations_per_phase: dict = field(default_factory=dict)
    critical_counts: list = field(default_factory=list)

    def to_dict(self) -> dict:
        return {
            "num_cancellations": self.num_cancellations,
            "num_rounds": self.num_rounds,
            "converged": self.converged,
            "cancellations_per_phase": dict(self.cancellations_per_phase),
            "critical_counts": list(self.critical_counts),
        }


class GradientSimplifier:
    """
    Cancels pairs of critical cells by reversing the single V-path that joins
    them. Each cancellation changes the V-paths of the cells around it, so the
    work is strictly sequential and candidates are checked again right before
    they are cancelled.

    Candidates are ranked by persistence when a persistence threshold is set
    and by discovery order otherwise. Ties keep discovery order.

    Parameters
    ----------
    gradient : DiscreteGradient
        The gradient to simplify in place.
    config : MorseSmaleConfig
        The thresholds and toggles to use.

    """

    def __init__(
        self,
        gradient: DiscreteGradient,
        config: MorseSmaleConfig,
    ):
        self.gradient = gradient
        self.config = config
        self._excess = None

    @property
    def phases(self) -> list[tuple[str, int, bool]]:
        """

        Returns
        -------
        list[tuple[str, int, bool]]
            The name, lower dimension and direction (True for descending) of
            each cancellation phase in the order they run.

        """
        dim = self.gradient.dimension
        config = self.config
        phases = []
        if config.reverse_saddle_maximum_connection:
            phases.append(("saddle-maximum", dim - 1, False))
        if dim == 3 and config.reverse_saddle_saddle_connection:
            phases.append(("saddle-saddle descending", 1, True))
            phases.append(("saddle-saddle ascending", 1, False))
        if config.reverse_minimum_saddle_connection:
            phases.append(("minimum-saddle", 0, True))
        return phases

    ###########################################################################
    # PL bookkeeping
    ###########################################################################

    def _get_excess(self) -> list[np.ndarray]:
        # the number of critical cells of each index at each vertex above what
        # the PL structure requires
        gradient = self.gradient
        pl_counts = gradient.pl_critical_counts
        num_vertices = gradient.triangulation.num_vertices
        excess = []
        for k in range(gradient.dimension + 1):
            critical = gradient.critical_cells(k)
            counts = np.bincount(
                gradient.cell_max_vertex(k)[critical], minlength=num_vertices
            )
            excess.append(counts - pl_counts[:, k])
        return excess

    def _is_spurious(self, k: int, cell: int) -> bool:
        vertex = self.gradient.cell_max_vertex(k)[cell]
        return self._excess[k][vertex] > 0

    def is_eligible(self, k: int, lower: int, upper: int, persistence: float) -> bool:
        """
        Whether the critical k-cell lower and (k+1)-cell upper may cancel.
        """
        threshold = self.config.persistence_threshold
        if threshold is not None and persistence <= threshold:
            return True
        if self.config.pl_compliance:
            return self._is_spurious(k, lower) and self._is_spurious(k + 1, upper)
        return threshold is None

    def get_persistence(self, k: int, lower: int, upper: int) -> float:
        gradient = self.gradient
        return float(
            gradient.cell_values(k + 1, upper) - gradient.cell_values(k, lower)
        )

    ###########################################################################
    # Cancellation
    ###########################################################################

    def _get_tree(self, k: int, source: int, descending: bool):
        if descending:
            return descending_tree(self.gradient, k, source)
        return ascending_tree(self.gradient, k, source)

    def _get_candidates(self, k: int, descending: bool) -> list[tuple]:
        gradient = self.gradient
        sources = gradient.critical_cells(k + 1 if descending else k)
        candidates = []
        discovery = 0
        for source in sources:
            tree = self._get_tree(k, int(source), descending)
            for target, count in tree.path_counts.items():
                if count != 1:
                    continue
                if descending:
                    lower, upper = target, int(source)
                else:
                    lower, upper = int(source), target
                persistence = self.get_persistence(k, lower, upper)
                if self.config.persistence_threshold is None:
                    priority = (discovery,)
                else:
                    priority = (persistence, discovery)
                candidates.append((priority, int(source), target, lower, upper))
                discovery += 1
        candidates.sort(key=lambda x: x[0])
        return candidates

    def _run_phase(self, k: int, descending: bool, budget: int) -> int:
        gradient = self.gradient
        source_dim = k + 1 if descending else k
        target_dim = k if descending else k + 1
        num_cancelled = 0
        for priority, source, target, lower, upper in self._get_candidates(k, descending):
            if budget != -1 and num_cancelled >= budget:
                break
            # earlier cancellations may have consumed or rerouted this pair
            if not gradient.is_critical(source_dim, source):
                continue
            if not gradient.is_critical(target_dim, target):
                continue
            persistence = self.get_persistence(k, lower, upper)
            if not self.is_eligible(k, lower, upper, persistence):
                continue
            tree = self._get_tree(k, source, descending)
            if tree.count(target) != 1:
                continue
            reverse_path(gradient, k, tree.path_to(target), descending)
            if self._excess is not None:
                self._excess[k][gradient.cell_max_vertex(k)[lower]] -= 1
                self._excess[k + 1][gradient.cell_max_vertex(k + 1)[upper]] -= 1
            num_cancelled += 1
        return num_cancelled

    def run(self, debug_level: int = 0) -> SimplificationReport:
        """
        Runs every enabled phase in order and repeats the sweep until a full
        sweep cancels nothing or the iteration threshold is reached.

        Returns
        -------
        SimplificationReport
            The number of cancellations and whether the run converged.

        """
        t0 = time.time()
        logging.info("Simplifying discrete gradient")
        gradient = self.gradient
        report = SimplificationReport()
        if self.config.pl_compliance:
            self._excess = self._get_excess()
        iteration_threshold = self.config.iteration_threshold
        phases = self.phases
        exhausted = False
        while True:
            report.num_rounds += 1
            cancelled_this_round = 0
            for name, k, descending in phases:
                if iteration_threshold == -1:
                    budget = -1
                else:
                    budget = iteration_threshold - report.num_cancellations
                    if budget <= 0:
                        exhausted = True
                        break
                cancelled = self._run_phase(k, descending, budget)
                report.num_cancellations += cancelled
                cancelled_this_round += cancelled
                report.cancellations_per_phase[name] = (
                    report.cancellations_per_phase.get(name, 0) + cancelled
                )
                if debug_level > 1:
                    logging.info(f"Round {report.num_rounds}, {name}: {cancelled} cancellations")
            if cancelled_this_round == 0 or exhausted:
                break
        # only report non convergence if something was left to cancel
        if exhausted and self._has_eligible_candidate():
            report.converged = False
            logging.warning(
                f"Reached the iteration threshold ({iteration_threshold}) before the simplification converged"
            )
        gradient.validate()
        report.critical_counts = gradient.critical_counts
        t1 = time.time()
        if debug_level > 0:
            logging.info(
                f"{report.num_cancellations} cancellations in {report.num_rounds} rounds. Critical cells: {report.critical_counts}"
            )
        logging.info(f"Time: {round(t1-t0,2)}")
        return report

    def _has_eligible_candidate(self) -> bool:
        for name, k, descending in self.phases:
            for priority, source, target, lower, upper in self._get_candidates(k, descending):
                persistence = self.get_persistence(k, lower, upper)
                if self.is_eligible(k, lower, upper, persistence):
                    return True
        return False
