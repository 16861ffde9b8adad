"""
Gaussian and two-component Gaussian mixture densities.

Scalar densities follow the closed-form normal pdf and are never clamped.
The log-density helpers are vectorized over numpy broadcasting so the
integrators can score whole grids or sample batches at once.
"""

from __future__ import annotations

import math
from typing import Sequence

import numpy as np

from .priors.gaussian_prior import GaussianParams, MixtureParams

LOG_SQRT_2PI = 0.5 * math.log(2.0 * math.pi)


def gaussian_pdf(x: float, params: GaussianParams) -> float:
    """Normal density at x; 0.0 for an infinite scale."""

    if math.isinf(params.scale):
        return 0.0
    z = (x - params.mean) / params.scale
    return math.exp(-0.5 * z * z) / (params.scale * math.sqrt(2.0 * math.pi))


def mixture_pdf(x: float, params: MixtureParams) -> float:
    """weight * pdf(component1) + (1 - weight) * pdf(component2)."""

    return params.weight * gaussian_pdf(x, params.component1) + (1.0 - params.weight) * gaussian_pdf(
        x, params.component2
    )


def gaussian_logpdf(x, mean, scale) -> np.ndarray:
    """Elementwise normal log-density; broadcasts x, mean and scale."""

    x = np.asarray(x, dtype=np.float64)
    mean = np.asarray(mean, dtype=np.float64)
    scale = np.asarray(scale, dtype=np.float64)
    z = (x - mean) / scale
    return -0.5 * z * z - np.log(scale) - LOG_SQRT_2PI


def mixture_logpdf(x, weight, mean1, scale1, mean2, scale2) -> np.ndarray:
    """Elementwise log of the two-component mixture density."""

    weight = np.asarray(weight, dtype=np.float64)
    with np.errstate(divide="ignore"):
        log_w1 = np.log(weight)
        log_w2 = np.log1p(-weight)
    return np.logaddexp(
        log_w1 + gaussian_logpdf(x, mean1, scale1),
        log_w2 + gaussian_logpdf(x, mean2, scale2),
    )


def log_likelihood(data: Sequence[float], params) -> float:
    """Sum of per-observation log-densities under GaussianParams or MixtureParams."""

    values = np.asarray(data, dtype=np.float64)
    if isinstance(params, MixtureParams):
        per_point = mixture_logpdf(
            values,
            params.weight,
            params.component1.mean,
            params.component1.scale,
            params.component2.mean,
            params.component2.scale,
        )
    else:
        per_point = gaussian_logpdf(values, params.mean, params.scale)
    return float(np.sum(per_point))


def log_mean_exp(log_values: np.ndarray) -> float:
    """log(mean(exp(v))) with a max shift; -inf when every term is zero."""

    log_values = np.asarray(log_values, dtype=np.float64).ravel()
    if log_values.size == 0:
        raise ValueError("log_mean_exp requires at least one value")
    return log_sum_exp(log_values) - math.log(log_values.size)


def log_sum_exp(log_values: np.ndarray) -> float:
    """log(sum(exp(v))) with a max shift; -inf when every term is zero."""

    log_values = np.asarray(log_values, dtype=np.float64).ravel()
    max_log = float(np.max(log_values)) if log_values.size else -math.inf
    if max_log == -math.inf:
        return -math.inf
    return max_log + math.log(float(np.sum(np.exp(log_values - max_log))))
