import math

import numpy as np
import pytest

from poolornot.data.synth import generate_1component, generate_2component
from poolornot.integration.evidence import (
    SAMPLING,
    SUMMING,
    EvidenceEstimate,
    evidence_1component_by_sampling,
    evidence_1component_by_summing,
    evidence_2component_by_sampling,
    evidence_2component_by_summing,
    favors_pooled,
)
from poolornot.integration.quantile_grid import GridConfig, QuantileGrid, build_quantile_grid
from poolornot.invariant_runtime import InvariantViolation
from poolornot.likelihood import gaussian_pdf, mixture_pdf
from poolornot.priors.gaussian_prior import DIFFER, POOLED, GaussianParams, GaussianPrior, MixtureParams, PriorConfig


@pytest.fixture(scope="module")
def prior():
    return GaussianPrior(PriorConfig())


@pytest.fixture(scope="module")
def grid(prior):
    return build_quantile_grid(prior, GridConfig())


@pytest.fixture(scope="module")
def small_grid(prior):
    return build_quantile_grid(prior, GridConfig(n_mean=6, n_precision=4, n_weight=5))


@pytest.fixture
def gaussian_data():
    return generate_1component(GaussianParams(mean=0.0, scale=1.0), 40, np.random.default_rng(2021))


def test_estimates_are_non_negative(gaussian_data, prior, grid):
    rng = np.random.default_rng(1)
    estimates = [
        evidence_1component_by_sampling(gaussian_data, prior, rng, 20_000, batch_size=7_000),
        evidence_2component_by_sampling(gaussian_data, prior, rng, 20_000, batch_size=7_000),
        evidence_1component_by_summing(gaussian_data, grid),
        evidence_2component_by_summing(gaussian_data, grid),
    ]
    for est in estimates:
        assert est.value >= 0.0
        assert not math.isnan(est.log_value)
    assert [e.model for e in estimates] == [POOLED, DIFFER, POOLED, DIFFER]
    assert [e.method for e in estimates] == [SAMPLING, SAMPLING, SUMMING, SUMMING]


def test_pooled_summing_matches_literal_riemann_sum(small_grid):
    data = [0.3, -1.1, 0.8, 2.0, -0.4]
    total = 0.0
    for mean in small_grid.means:
        for scale in small_grid.scales:
            prob = 1.0
            for x in data:
                prob *= gaussian_pdf(x, GaussianParams(float(mean), float(scale)))
            total += prob
    expected = total / (small_grid.means.size * small_grid.scales.size)
    assert evidence_1component_by_summing(data, small_grid).value == pytest.approx(expected, rel=1e-10)


def test_differ_summing_matches_literal_riemann_sum(small_grid):
    data = [0.3, -1.1, 0.8, 2.0, -0.4]
    total = 0.0
    for m1 in small_grid.means:
        for m2 in small_grid.means:
            for s1 in small_grid.scales:
                for s2 in small_grid.scales:
                    for w in small_grid.weights:
                        params = MixtureParams(
                            float(w), GaussianParams(float(m1), float(s1)), GaussianParams(float(m2), float(s2))
                        )
                        prob = 1.0
                        for x in data:
                            prob *= mixture_pdf(x, params)
                        total += prob
    expected = total / small_grid.n_differ_cells
    assert evidence_2component_by_summing(data, small_grid).value == pytest.approx(expected, rel=1e-10)


def test_half_and_full_weight_ranges_agree(prior, gaussian_data):
    half = build_quantile_grid(prior, GridConfig(n_mean=8, n_precision=5, n_weight=6, weight_range="half"))
    full = build_quantile_grid(prior, GridConfig(n_mean=8, n_precision=5, n_weight=6, weight_range="full"))
    a = evidence_2component_by_summing(gaussian_data, half)
    b = evidence_2component_by_summing(gaussian_data, full)
    assert a.log_value == pytest.approx(b.log_value, abs=1e-9)


def test_zero_weight_mixture_collapses_to_pooled(grid, gaussian_data):
    for w in (0.0, 1.0):
        degenerate = QuantileGrid(means=grid.means, scales=grid.scales, weights=[w])
        pooled = evidence_1component_by_summing(gaussian_data, grid)
        differ = evidence_2component_by_summing(gaussian_data, degenerate)
        assert differ.log_value == pytest.approx(pooled.log_value, abs=1e-9)


def test_monte_carlo_is_consistent_across_seeds(gaussian_data, prior):
    a = evidence_1component_by_sampling(gaussian_data, prior, np.random.default_rng(10), 200_000)
    b = evidence_1component_by_sampling(gaussian_data, prior, np.random.default_rng(20), 200_000)
    assert a.value > 0.0
    assert abs(a.log_value - b.log_value) < 0.3


def test_monte_carlo_mixture_with_vanishing_weight_matches_pooled(gaussian_data):
    collapsed = GaussianPrior(PriorConfig(weight_a=1e-3, weight_b=1e3))
    pooled = evidence_1component_by_sampling(gaussian_data, collapsed, np.random.default_rng(31), 200_000)
    differ = evidence_2component_by_sampling(gaussian_data, collapsed, np.random.default_rng(32), 200_000)
    assert abs(pooled.log_value - differ.log_value) < 0.3


def test_monte_carlo_batch_size_does_not_change_result(gaussian_data, prior):
    a = evidence_1component_by_sampling(gaussian_data, prior, np.random.default_rng(4), 10_000, batch_size=10_000)
    b = evidence_1component_by_sampling(gaussian_data, prior, np.random.default_rng(4), 10_000, batch_size=10_000)
    assert a.log_value == b.log_value
    with pytest.raises(ValueError):
        evidence_1component_by_sampling(gaussian_data, prior, np.random.default_rng(4), 0)


def test_pooled_data_selects_pooled_model_by_summing(grid):
    rng = np.random.default_rng(404)
    wins = 0
    n_trials = 10
    for _ in range(n_trials):
        data = generate_1component(GaussianParams(mean=0.0, scale=1.0), 40, rng)
        wins += favors_pooled(evidence_1component_by_summing(data, grid), evidence_2component_by_summing(data, grid))
    assert wins / n_trials >= 0.7


def test_separated_mixture_selects_differ_model_by_summing(grid):
    rng = np.random.default_rng(505)
    params = MixtureParams(0.5, GaussianParams(-3.0, 0.5), GaussianParams(3.0, 0.5))
    for _ in range(5):
        data = generate_2component(params, 40, rng)
        pooled = evidence_1component_by_summing(data, grid)
        differ = evidence_2component_by_summing(data, grid)
        assert not favors_pooled(pooled, differ)


def test_underflow_still_orders_by_log_value(small_grid):
    data = [50.0 + i for i in range(40)]
    pooled = evidence_1component_by_summing(data, small_grid)
    assert pooled.value >= 0.0
    assert pooled.log_value > -math.inf


def test_evidence_rejects_nan():
    with pytest.raises(InvariantViolation):
        EvidenceEstimate(model=POOLED, method=SUMMING, log_value=float("nan"), n_terms=1)


def test_favors_pooled_requires_same_method():
    a = EvidenceEstimate(model=POOLED, method=SUMMING, log_value=-1.0, n_terms=1)
    b = EvidenceEstimate(model=DIFFER, method=SAMPLING, log_value=-2.0, n_terms=1)
    with pytest.raises(ValueError):
        favors_pooled(a, b)
