"""
Evidence (marginal likelihood) estimators for the pooled and differ models.

    Z = ∫ P(D | θ) P(θ) dθ

Summing: average of P(D | θ) over the quantile-grid cross product, which
weights every cell equally because nodes sit at evenly spaced prior
quantiles.
Sampling: average of P(D | θ) over θ drawn from the prior.

Per-cell likelihoods are accumulated as log-likelihoods and combined with
a max-shifted log-sum-exp, so the 40-fold density products never
underflow before the final average.
"""

from __future__ import annotations

import logging
import math
import time
from dataclasses import dataclass
from typing import List, Sequence

import numpy as np

from ..invariant_runtime import require_invariant
from ..likelihood import gaussian_logpdf, log_sum_exp, mixture_logpdf
from ..priors.gaussian_prior import DIFFER, POOLED, GaussianPrior, ModelName
from .quantile_grid import QuantileGrid

SUMMING = "summing"
SAMPLING = "sampling"

# Cap on (rows x cells x observations) evaluated per block in the differ quadrature.
MAX_BLOCK_TERMS = 4_000_000

log = logging.getLogger(__name__)


@dataclass(frozen=True)
class EvidenceEstimate:
    model: ModelName
    method: str
    log_value: float
    n_terms: int

    def __post_init__(self):
        require_invariant(
            not math.isnan(self.log_value) and self.log_value != math.inf,
            invariant_id="evidence-finite",
            message="Evidence is a finite non-negative value",
            data={"model": self.model, "method": self.method, "log_value": self.log_value},
        )

    @property
    def value(self) -> float:
        """exp(log_value); 0.0 when the evidence underflows."""
        return math.exp(self.log_value)


def _values(data) -> np.ndarray:
    values = np.asarray(getattr(data, "values", data), dtype=np.float64)
    if values.ndim != 1 or values.size == 0:
        raise ValueError("data must be a non-empty 1-D sequence")
    return values


def _component_logpdf(values: np.ndarray, grid: QuantileGrid) -> np.ndarray:
    """Per-observation log-densities for every (mean, scale) cell: shape (G*S, N)."""

    per_cell = gaussian_logpdf(values[None, None, :], grid.means[:, None, None], grid.scales[None, :, None])
    return per_cell.reshape(grid.n_pooled_cells, values.size)


def evidence_1component_by_summing(data: Sequence[float], grid: QuantileGrid) -> EvidenceEstimate:
    """Riemann sum over the (mean, scale) grid, divided by G*S."""

    values = _values(data)
    cell_loglik = _component_logpdf(values, grid).sum(axis=1)
    log_value = log_sum_exp(cell_loglik) - math.log(grid.n_pooled_cells)
    return EvidenceEstimate(model=POOLED, method=SUMMING, log_value=log_value, n_terms=grid.n_pooled_cells)


def evidence_2component_by_summing(data: Sequence[float], grid: QuantileGrid) -> EvidenceEstimate:
    """Riemann sum over (mean1, mean2, scale1, scale2, weight), divided by (G*S)^2 * M.

    Component log-densities are computed once per (mean, scale) node and
    reused across every pairing and weight.
    """

    start = time.perf_counter()
    values = _values(data)
    comp = _component_logpdf(values, grid)
    n_cells = comp.shape[0]
    rows_per_block = max(1, MAX_BLOCK_TERMS // (n_cells * values.size))

    partial: List[float] = []
    for weight in grid.weights:
        log_w1 = math.log(weight) if weight > 0.0 else -math.inf
        log_w2 = math.log1p(-weight) if weight < 1.0 else -math.inf
        for lo in range(0, n_cells, rows_per_block):
            block = comp[lo : lo + rows_per_block]
            mix = np.logaddexp(log_w1 + block[:, None, :], log_w2 + comp[None, :, :])
            partial.append(log_sum_exp(mix.sum(axis=2)))

    log_value = log_sum_exp(np.array(partial)) - math.log(grid.n_differ_cells)
    log.debug(
        "Differ quadrature: %d cells x %d observations in %.2fs",
        grid.n_differ_cells,
        values.size,
        time.perf_counter() - start,
    )
    return EvidenceEstimate(model=DIFFER, method=SUMMING, log_value=log_value, n_terms=grid.n_differ_cells)


def evidence_1component_by_sampling(
    data: Sequence[float],
    prior: GaussianPrior,
    rng: np.random.Generator,
    n_samples: int,
    batch_size: int = 50_000,
) -> EvidenceEstimate:
    """Monte Carlo average of the pooled likelihood over prior draws."""

    values = _values(data)

    def batch_loglik(size: int) -> np.ndarray:
        means, scales = prior.sample_gaussian_batch(rng, size)
        return gaussian_logpdf(values[None, :], means[:, None], scales[:, None]).sum(axis=1)

    log_value = _monte_carlo_log_mean(batch_loglik, n_samples, batch_size)
    return EvidenceEstimate(model=POOLED, method=SAMPLING, log_value=log_value, n_terms=n_samples)


def evidence_2component_by_sampling(
    data: Sequence[float],
    prior: GaussianPrior,
    rng: np.random.Generator,
    n_samples: int,
    batch_size: int = 50_000,
) -> EvidenceEstimate:
    """Monte Carlo average of the mixture likelihood over prior draws."""

    values = _values(data)

    def batch_loglik(size: int) -> np.ndarray:
        weights, means1, scales1, means2, scales2 = prior.sample_mixture_batch(rng, size)
        per_point = mixture_logpdf(
            values[None, :],
            weights[:, None],
            means1[:, None],
            scales1[:, None],
            means2[:, None],
            scales2[:, None],
        )
        return per_point.sum(axis=1)

    log_value = _monte_carlo_log_mean(batch_loglik, n_samples, batch_size)
    return EvidenceEstimate(model=DIFFER, method=SAMPLING, log_value=log_value, n_terms=n_samples)


def _monte_carlo_log_mean(batch_loglik, n_samples: int, batch_size: int) -> float:
    if n_samples < 1:
        raise ValueError("n_samples must be positive")
    if batch_size < 1:
        raise ValueError("batch_size must be positive")

    start = time.perf_counter()
    partial: List[float] = []
    remaining = n_samples
    while remaining > 0:
        size = min(batch_size, remaining)
        partial.append(log_sum_exp(batch_loglik(size)))
        remaining -= size
    log_value = log_sum_exp(np.array(partial)) - math.log(n_samples)
    log.debug("Monte Carlo evidence: %d draws in %.2fs", n_samples, time.perf_counter() - start)
    return log_value


def favors_pooled(pooled: EvidenceEstimate, differ: EvidenceEstimate) -> bool:
    """True when the pooled model has strictly higher evidence."""

    if pooled.method != differ.method:
        raise ValueError("compare estimates from the same estimator family")
    return pooled.log_value > differ.log_value
