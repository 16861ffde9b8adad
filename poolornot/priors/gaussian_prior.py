"""
Priors over the pooled (one Gaussian) and differ (two-Gaussian mixture) models.

- Mean        ~ Normal(mean_loc, mean_scale)
- Precision   ~ Gamma(precision_shape, precision_scale); scale = 1/sqrt(precision)
- Mix weight  ~ Beta(weight_a, weight_b), Jeffreys Beta(0.5, 0.5) by default

Each parameter exposes a draw (numpy Generator) and a quantile function
used to place quadrature nodes.
"""

from __future__ import annotations

import logging
import math
from dataclasses import dataclass
from typing import Tuple

import numpy as np

from ..quantiles import beta_ppf, gamma_ppf, normal_ppf

POOLED = "pooled"
DIFFER = "differ"
ModelName = str  # POOLED or DIFFER


def sigma_of_precision(precision):
    """Scale from precision; precision 0 maps to an infinite scale."""

    if np.ndim(precision) == 0:
        precision = float(precision)
        if precision < 0.0:
            raise ValueError("precision must be nonnegative")
        return math.inf if precision == 0.0 else 1.0 / math.sqrt(precision)
    with np.errstate(divide="ignore"):
        return 1.0 / np.sqrt(np.asarray(precision, dtype=np.float64))


@dataclass(frozen=True)
class GaussianParams:
    mean: float
    scale: float

    def __post_init__(self):
        if math.isnan(self.mean) or math.isnan(self.scale):
            raise ValueError("GaussianParams must not contain NaN")
        if self.scale <= 0.0:
            raise ValueError("scale must be positive")


@dataclass(frozen=True)
class MixtureParams:
    """weight is the mass assigned to component1."""

    weight: float
    component1: GaussianParams
    component2: GaussianParams

    def __post_init__(self):
        if not 0.0 <= self.weight <= 1.0:
            raise ValueError("weight must be in [0,1]")

    def swapped(self) -> "MixtureParams":
        """Label-swapped parameters describing the identical mixture density."""
        return MixtureParams(weight=1.0 - self.weight, component1=self.component2, component2=self.component1)


@dataclass(frozen=True)
class PriorConfig:
    mean_loc: float = 0.0
    mean_scale: float = 4.0
    precision_shape: float = 0.5
    precision_scale: float = 2.0
    weight_a: float = 0.5
    weight_b: float = 0.5

    def __post_init__(self):
        if self.mean_scale <= 0.0:
            raise ValueError("mean_scale must be positive")
        if self.precision_shape <= 0.0 or self.precision_scale <= 0.0:
            raise ValueError("precision_shape and precision_scale must be positive")
        if self.weight_a <= 0.0 or self.weight_b <= 0.0:
            raise ValueError("weight_a and weight_b must be positive")


class GaussianPrior:
    """Fixed priors for both models: draws and quantiles per parameter."""

    def __init__(self, cfg: PriorConfig, logger: logging.Logger | None = None):
        self.cfg = cfg
        self.log = logger or logging.getLogger(__name__)
        self.log.debug(
            "Prior: mean~N(%.2f, %.2f) precision~Gamma(%.2f, scale=%.2f) weight~Beta(%.2f, %.2f)",
            cfg.mean_loc,
            cfg.mean_scale,
            cfg.precision_shape,
            cfg.precision_scale,
            cfg.weight_a,
            cfg.weight_b,
        )

    # Quantiles used for quadrature nodes.

    def mean_quantile(self, q: float) -> float:
        return normal_ppf(q, self.cfg.mean_loc, self.cfg.mean_scale)

    def precision_quantile(self, q: float) -> float:
        return gamma_ppf(q, self.cfg.precision_shape, self.cfg.precision_scale)

    def weight_quantile(self, q: float) -> float:
        return beta_ppf(q, self.cfg.weight_a, self.cfg.weight_b)

    # Single draws.

    def sample_gaussian_params(self, rng: np.random.Generator) -> GaussianParams:
        """One mean draw and one scale draw."""

        mean = float(rng.normal(self.cfg.mean_loc, self.cfg.mean_scale))
        precision = float(rng.gamma(self.cfg.precision_shape, self.cfg.precision_scale))
        return GaussianParams(mean=mean, scale=sigma_of_precision(precision))

    def sample_mixture_params(self, rng: np.random.Generator) -> MixtureParams:
        """One weight draw and two independent component draws."""

        weight = float(rng.beta(self.cfg.weight_a, self.cfg.weight_b))
        component1 = self.sample_gaussian_params(rng)
        component2 = self.sample_gaussian_params(rng)
        return MixtureParams(weight=weight, component1=component1, component2=component2)

    # Batched draws for Monte Carlo integration.

    def sample_gaussian_batch(self, rng: np.random.Generator, size: int) -> Tuple[np.ndarray, np.ndarray]:
        """(means, scales) arrays of length size."""

        means = rng.normal(self.cfg.mean_loc, self.cfg.mean_scale, size=size)
        precisions = rng.gamma(self.cfg.precision_shape, self.cfg.precision_scale, size=size)
        return means, sigma_of_precision(precisions)

    def sample_mixture_batch(
        self, rng: np.random.Generator, size: int
    ) -> Tuple[np.ndarray, np.ndarray, np.ndarray, np.ndarray, np.ndarray]:
        """(weights, means1, scales1, means2, scales2) arrays of length size."""

        weights = rng.beta(self.cfg.weight_a, self.cfg.weight_b, size=size)
        means1, scales1 = self.sample_gaussian_batch(rng, size)
        means2, scales2 = self.sample_gaussian_batch(rng, size)
        return weights, means1, scales1, means2, scales2
