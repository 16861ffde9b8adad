"""
Quadrature nodes at evenly spaced prior quantiles.

Built once per prior configuration and shared read-only by every trial:
- means:   G nodes at probabilities 1/(G+1) .. G/(G+1) (Normal tails are unbounded)
- scales:  S precision nodes at probabilities 0/S .. (S-1)/S, mapped to
           scale = 1/sqrt(precision) and stored in ascending scale order
- weights: M nodes at probabilities 0.5*i/M, i.e. the lower half of the
           weight range; the mixture is label-symmetric so the upper half
           repeats the same grid sums. weight_range="full" appends the
           mirrored nodes 1 - w.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass

import numpy as np

from ..invariant_runtime import require_invariant
from ..priors.gaussian_prior import GaussianPrior, sigma_of_precision

WEIGHT_RANGES = ("half", "full")


@dataclass(frozen=True)
class GridConfig:
    n_mean: int = 20
    n_precision: int = 10
    n_weight: int = 40
    weight_range: str = "half"

    def __post_init__(self):
        if self.n_mean < 1 or self.n_precision < 1 or self.n_weight < 1:
            raise ValueError("grid sizes must be positive")
        if self.weight_range not in WEIGHT_RANGES:
            raise ValueError(f"weight_range must be one of {WEIGHT_RANGES}")


@dataclass(frozen=True)
class QuantileGrid:
    means: np.ndarray
    scales: np.ndarray
    weights: np.ndarray

    def __post_init__(self):
        for name in ("means", "scales", "weights"):
            arr = np.array(getattr(self, name), dtype=np.float64)
            arr.setflags(write=False)
            object.__setattr__(self, name, arr)

    @property
    def n_pooled_cells(self) -> int:
        return self.means.size * self.scales.size

    @property
    def n_differ_cells(self) -> int:
        return self.n_pooled_cells**2 * self.weights.size


def build_quantile_grid(prior: GaussianPrior, cfg: GridConfig, logger: logging.Logger | None = None) -> QuantileGrid:
    """Precompute mean, scale and weight nodes from the prior quantile functions."""

    log = logger or logging.getLogger(__name__)

    means = [prior.mean_quantile((i + 1) / (cfg.n_mean + 1.0)) for i in range(cfg.n_mean)]
    precisions = [prior.precision_quantile(i / float(cfg.n_precision)) for i in range(cfg.n_precision)]
    scales = sigma_of_precision(np.array(precisions, dtype=np.float64))[::-1]
    weights = [prior.weight_quantile(0.5 * i / float(cfg.n_weight)) for i in range(cfg.n_weight)]
    if cfg.weight_range == "full":
        weights = weights + [1.0 - w for w in reversed(weights)]

    grid = QuantileGrid(means=np.array(means), scales=scales, weights=np.array(weights))

    require_invariant(
        grid.means.size == cfg.n_mean and grid.scales.size == cfg.n_precision,
        invariant_id="grid-size",
        message="Mean and scale grids match configured sizes",
        data={"n_mean": grid.means.size, "n_scale": grid.scales.size},
    )
    require_invariant(
        bool(np.all(np.diff(grid.means) > 0.0)) and bool(np.all(np.diff(grid.scales) > 0.0)),
        invariant_id="grid-monotone",
        message="Mean and scale grids strictly increasing",
    )
    require_invariant(
        bool(np.all(grid.scales > 0.0)),
        invariant_id="scale-positive",
        message="Scale nodes positive",
        data={"min_scale": float(grid.scales.min())},
    )
    require_invariant(
        bool(np.all((grid.weights >= 0.0) & (grid.weights <= 1.0))) and bool(np.all(np.diff(grid.weights) >= 0.0)),
        invariant_id="weight-grid",
        message="Weight nodes non-decreasing within [0,1]",
    )

    log.info(
        "Quantile grid: %d means [%.3f, %.3f], %d scales [%.3f, %g], %d weights (%s range)",
        grid.means.size,
        grid.means[0],
        grid.means[-1],
        grid.scales.size,
        grid.scales[0],
        grid.scales[-1],
        grid.weights.size,
        cfg.weight_range,
    )
    return grid
