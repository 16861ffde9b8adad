"""Synthetic datasets drawn from a single Gaussian or a two-component mixture."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Iterator, Optional

import numpy as np

from ..priors.gaussian_prior import GaussianParams, MixtureParams


@dataclass(frozen=True)
class Dataset:
    """Fixed-length sample; values are read-only once constructed."""

    values: np.ndarray

    def __post_init__(self):
        arr = np.array(self.values, dtype=np.float64)
        if arr.ndim != 1 or arr.size == 0:
            raise ValueError("Dataset values must be a non-empty 1-D sequence")
        arr.setflags(write=False)
        object.__setattr__(self, "values", arr)

    def __len__(self) -> int:
        return int(self.values.size)

    def __iter__(self) -> Iterator[float]:
        return iter(self.values.tolist())

    def __getitem__(self, idx):
        return self.values[idx]

    def sample_mean(self) -> float:
        return float(self.values.mean())

    def sample_variance(self) -> float:
        """Population variance (divisor N)."""
        return float(self.values.var())

    def sorted_values(self) -> np.ndarray:
        return np.sort(self.values)

    def format_sorted(self) -> str:
        return " ".join("%+5.3f" % v for v in self.sorted_values())


def generate_1component(
    params: GaussianParams,
    n: int,
    rng: np.random.Generator,
    logger: Optional[logging.Logger] = None,
) -> Dataset:
    """n i.i.d. draws from Normal(params.mean, params.scale)."""

    if n < 1:
        raise ValueError("n must be positive")
    data = Dataset(rng.normal(params.mean, params.scale, size=n))
    _log_summary(logger, data)
    return data


def generate_2component(
    params: MixtureParams,
    n: int,
    rng: np.random.Generator,
    logger: Optional[logging.Logger] = None,
) -> Dataset:
    """n i.i.d. mixture draws; each picks component1 with probability params.weight."""

    if n < 1:
        raise ValueError("n must be positive")
    component_choices = rng.uniform(size=n) < params.weight
    samples = np.empty(n, dtype=np.float64)
    n_first = int(component_choices.sum())
    n_second = n - n_first
    if n_first > 0:
        samples[component_choices] = rng.normal(params.component1.mean, params.component1.scale, size=n_first)
    if n_second > 0:
        samples[~component_choices] = rng.normal(params.component2.mean, params.component2.scale, size=n_second)
    data = Dataset(samples)
    _log_summary(logger, data)
    return data


def _log_summary(logger: Optional[logging.Logger], data: Dataset) -> None:
    log = logger or logging.getLogger(__name__)
    if log.isEnabledFor(logging.DEBUG):
        log.debug(
            "Dataset n=%d mean=%.3f var=%.3f sorted: %s",
            len(data),
            data.sample_mean(),
            data.sample_variance(),
            data.format_sorted(),
        )
