# -*- coding: utf-8 -*-
"""
Tests for cancelling critical pairs of a discrete gradient.
"""

import numpy as np
import pytest

from msckit.core import DiscreteGradient, GradientSimplifier, MorseSmaleConfig


def simplify(triangulation, field, **kwargs):
    gradient = DiscreteGradient.from_field(triangulation, field)
    config = MorseSmaleConfig(**kwargs)
    report = GradientSimplifier(gradient, config).run()
    return gradient, report


@pytest.mark.parametrize("threshold", [None, 0.0, 0.05, 0.2, 1.0])
def test_euler_characteristic_is_kept(threshold, grid2d, random_field2d):
    gradient, report = simplify(grid2d, random_field2d, persistence_threshold=threshold)
    gradient.validate()
    assert gradient.critical_euler_characteristic == grid2d.euler_characteristic
    assert report.converged
    assert report.critical_counts == gradient.critical_counts


@pytest.mark.parametrize("threshold", [None, 0.1, 0.5])
def test_euler_characteristic_is_kept_3d(threshold, grid3d, random_field3d):
    gradient, report = simplify(grid3d, random_field3d, persistence_threshold=threshold)
    gradient.validate()
    assert gradient.critical_euler_characteristic == grid3d.euler_characteristic


def test_critical_cells_decrease_with_threshold(grid2d, random_field2d):
    totals = []
    for threshold in [0.0, 0.1, 0.3, 1.0]:
        gradient, _ = simplify(grid2d, random_field2d, persistence_threshold=threshold)
        totals.append(sum(gradient.critical_counts))
    # a threshold above the range of the field makes every pair eligible
    assert totals[-1] <= totals[0]


def test_simplification_is_idempotent(grid2d, random_field2d):
    config = MorseSmaleConfig(persistence_threshold=0.2)
    gradient = DiscreteGradient.from_field(grid2d, random_field2d)
    first = GradientSimplifier(gradient, config).run()
    pairs = [i.copy() for i in gradient.pairs_up]
    second = GradientSimplifier(gradient, config).run()
    assert second.num_cancellations == 0
    assert second.converged
    for before, after in zip(pairs, gradient.pairs_up):
        assert np.array_equal(before, after)
    assert first.num_rounds >= 1


def test_pl_compliance_keeps_pl_critical_points(sphere):
    vertices = sphere.vertices
    field = -vertices[:, 0] ** 2 + 0.5 * vertices[:, 2]
    gradient, report = simplify(sphere, field)
    assert gradient.critical_counts == gradient.pl_critical_counts.sum(axis=0).tolist()
    assert gradient.critical_counts == [2, 1, 1]


def test_disabled_phases_do_not_cancel(grid2d, random_field2d):
    gradient = DiscreteGradient.from_field(grid2d, random_field2d)
    before = gradient.critical_counts
    config = MorseSmaleConfig(
        pl_compliance=False,
        reverse_saddle_maximum_connection=False,
        reverse_minimum_saddle_connection=False,
    )
    simplifier = GradientSimplifier(gradient, config)
    assert simplifier.phases == []
    report = simplifier.run()
    assert report.num_cancellations == 0
    assert gradient.critical_counts == before


def test_phase_order():
    from msckit.core import Triangulation

    tri = Triangulation.from_regular_grid((3, 3, 3))
    gradient = DiscreteGradient(tri, np.arange(27.0))
    simplifier = GradientSimplifier(gradient, MorseSmaleConfig())
    assert [i[0] for i in simplifier.phases] == [
        "saddle-maximum",
        "saddle-saddle descending",
        "saddle-saddle ascending",
        "minimum-saddle",
    ]
    assert [i[1] for i in simplifier.phases] == [2, 1, 1, 0]


def test_iteration_threshold(grid2d, random_field2d):
    options = dict(pl_compliance=False)
    gradient, full = simplify(grid2d, random_field2d, **options)
    assert full.num_cancellations >= 2
    assert full.converged

    gradient, limited = simplify(grid2d, random_field2d, iteration_threshold=1, **options)
    assert limited.num_cancellations == 1
    assert not limited.converged
    gradient.validate()
    assert gradient.critical_euler_characteristic == grid2d.euler_characteristic


def test_report_to_dict(grid2d, random_field2d):
    _, report = simplify(grid2d, random_field2d, persistence_threshold=0.1)
    results = report.to_dict()
    assert results["num_cancellations"] == sum(results["cancellations_per_phase"].values())
    assert set(results["cancellations_per_phase"]) <= {"saddle-maximum", "minimum-saddle"}
