"""
End-to-end driver for the pooled-vs-differ selection experiment.

Pipeline:
1) Build quadrature nodes once from the fixed priors.
2) For each ground-truth model and each trial:
   - draw true parameters from that model's prior
   - generate a dataset of sample_size observations
   - estimate pooled/differ evidence by sampling and by summing
   - record whether each estimator family picked the generating model
3) Print per-trial lines and a correct-selection summary to stdout.

Everything random flows from one seeded numpy Generator, so identical
configs produce identical stdout.
"""

from __future__ import annotations

import logging
import os
import sys
from dataclasses import dataclass, field, replace
from pathlib import Path
from typing import Dict, List, Optional, TextIO, Tuple

import numpy as np
import pandas as pd
import yaml

from ..data.synth import Dataset, generate_1component, generate_2component
from ..integration.evidence import (
    SAMPLING,
    SUMMING,
    EvidenceEstimate,
    evidence_1component_by_sampling,
    evidence_1component_by_summing,
    evidence_2component_by_sampling,
    evidence_2component_by_summing,
    favors_pooled,
)
from ..integration.quantile_grid import GridConfig, build_quantile_grid
from ..invariant_runtime import require_invariant
from ..priors.gaussian_prior import DIFFER, POOLED, GaussianPrior, ModelName, PriorConfig
from .report import HEADINGS, format_integrals, format_params, format_start, format_summary

DEFAULT_CONFIG_PATH = Path(__file__).resolve().parents[1] / "config" / "default.yaml"
CONFIG_ENV = "POOL_OR_NOT_CONFIG"
SEED_ENV = "POOL_OR_NOT_SEED"
LOG_LEVELS = ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL")


@dataclass(frozen=True)
class ExperimentConfig:
    n_trials: int = 10
    sample_size: int = 40
    n_samples: int = 2_000_000
    batch_size: int = 50_000
    seed: int = 0
    log_level: str = "INFO"
    prior: PriorConfig = field(default_factory=PriorConfig)
    grid: GridConfig = field(default_factory=GridConfig)

    def __post_init__(self):
        if self.n_trials < 1:
            raise ValueError("n_trials must be positive")
        if self.sample_size < 1:
            raise ValueError("sample_size must be positive")
        if self.n_samples < 1 or self.batch_size < 1:
            raise ValueError("n_samples and batch_size must be positive")
        if self.log_level.upper() not in LOG_LEVELS:
            raise ValueError(f"logging level must be one of {LOG_LEVELS}")


def config_from_dict(raw: Dict) -> ExperimentConfig:
    """Build an ExperimentConfig from the YAML layout (experiment/prior/grid/sampling/logging)."""

    raw = raw or {}
    exp = raw.get("experiment", {}) or {}
    sampling = raw.get("sampling", {}) or {}
    defaults = ExperimentConfig()
    return ExperimentConfig(
        n_trials=int(exp.get("n_trials", defaults.n_trials)),
        sample_size=int(exp.get("sample_size", defaults.sample_size)),
        seed=int(exp.get("seed", defaults.seed)),
        n_samples=int(sampling.get("n_samples", defaults.n_samples)),
        batch_size=int(sampling.get("batch_size", defaults.batch_size)),
        log_level=str((raw.get("logging", {}) or {}).get("level", defaults.log_level)),
        prior=PriorConfig(**{k: float(v) for k, v in (raw.get("prior", {}) or {}).items()}),
        grid=GridConfig(**(raw.get("grid", {}) or {})),
    )


def load_experiment_config(path: Optional[str] = None) -> ExperimentConfig:
    """Load YAML config from path, $POOL_OR_NOT_CONFIG, or the packaged default.

    $POOL_OR_NOT_SEED, when set, overrides the configured seed.
    """

    cfg_path = path or os.environ.get(CONFIG_ENV) or str(DEFAULT_CONFIG_PATH)
    with open(cfg_path, "r", encoding="utf-8") as f:
        cfg = config_from_dict(yaml.safe_load(f))

    seed_text = os.environ.get(SEED_ENV)
    if seed_text:
        try:
            seed = int(seed_text)
        except ValueError:
            raise ValueError(f"{SEED_ENV} must be an integer, got {seed_text!r}") from None
        cfg = replace(cfg, seed=seed)
    return cfg


@dataclass(frozen=True)
class TrialRecord:
    truth: ModelName
    trial: int
    params: object
    pooled_sampling: EvidenceEstimate
    differ_sampling: EvidenceEstimate
    pooled_summing: EvidenceEstimate
    differ_summing: EvidenceEstimate

    def correct(self, method: str) -> bool:
        """Whether the given estimator family preferred the generating model."""
        if method == SAMPLING:
            pooled_wins = favors_pooled(self.pooled_sampling, self.differ_sampling)
        elif method == SUMMING:
            pooled_wins = favors_pooled(self.pooled_summing, self.differ_summing)
        else:
            raise ValueError(f"Unknown method: {method}")
        return pooled_wins if self.truth == POOLED else not pooled_wins

    def as_row(self) -> Dict:
        return {
            "truth": self.truth,
            "trial": self.trial,
            "params": repr(self.params),
            "pooled_sampling": self.pooled_sampling.value,
            "differ_sampling": self.differ_sampling.value,
            "pooled_summing": self.pooled_summing.value,
            "differ_summing": self.differ_summing.value,
            "log_pooled_sampling": self.pooled_sampling.log_value,
            "log_differ_sampling": self.differ_sampling.log_value,
            "log_pooled_summing": self.pooled_summing.log_value,
            "log_differ_summing": self.differ_summing.log_value,
            "sampling_correct": self.correct(SAMPLING),
            "summing_correct": self.correct(SUMMING),
        }


def records_frame(records: List[TrialRecord]) -> pd.DataFrame:
    return pd.DataFrame.from_records([r.as_row() for r in records])


def summarize_selection(frame: pd.DataFrame) -> pd.DataFrame:
    """Correct counts and accuracy per (truth, method)."""

    long = frame.melt(
        id_vars=["truth"],
        value_vars=["sampling_correct", "summing_correct"],
        var_name="method",
        value_name="correct",
    )
    long["method"] = long["method"].str.replace("_correct", "", regex=False)
    long["correct"] = long["correct"].astype(int)
    summary = long.groupby(["truth", "method"], sort=False)["correct"].agg(["sum", "count"]).reset_index()
    summary = summary.rename(columns={"sum": "correct", "count": "trials"})
    summary["accuracy"] = summary["correct"] / summary["trials"]
    return summary


class PoolOrNotRunner:
    def __init__(self, cfg: ExperimentConfig, out: Optional[TextIO] = None):
        self.cfg = cfg
        self.out = out

        self.log = logging.getLogger("poolornot")
        self.log.setLevel(getattr(logging, cfg.log_level.upper()))
        ch = logging.StreamHandler()
        ch.setFormatter(logging.Formatter("%(asctime)s %(levelname)s %(message)s"))
        if not self.log.handlers:
            self.log.addHandler(ch)

        self.rng = np.random.default_rng(cfg.seed)
        self.prior = GaussianPrior(cfg.prior, logger=self.log)
        self.grid = build_quantile_grid(self.prior, cfg.grid, logger=self.log)

    def _emit(self, line: str) -> None:
        print(line, file=self.out or sys.stdout)

    def estimate_evidence(self, data: Dataset) -> Tuple[EvidenceEstimate, EvidenceEstimate, EvidenceEstimate, EvidenceEstimate]:
        """(pooled, differ) by sampling, then (pooled, differ) by summing."""

        require_invariant(
            len(data) == self.cfg.sample_size,
            invariant_id="dataset-length",
            message="Dataset length matches configured sample size",
            data={"len": len(data), "sample_size": self.cfg.sample_size},
        )
        pooled_sampling = evidence_1component_by_sampling(
            data, self.prior, self.rng, self.cfg.n_samples, self.cfg.batch_size
        )
        differ_sampling = evidence_2component_by_sampling(
            data, self.prior, self.rng, self.cfg.n_samples, self.cfg.batch_size
        )
        pooled_summing = evidence_1component_by_summing(data, self.grid)
        differ_summing = evidence_2component_by_summing(data, self.grid)
        return pooled_sampling, differ_sampling, pooled_summing, differ_summing

    def run_trial(self, truth: ModelName, trial: int) -> TrialRecord:
        if truth == POOLED:
            params = self.prior.sample_gaussian_params(self.rng)
            self._emit(format_params(params))
            data = generate_1component(params, self.cfg.sample_size, self.rng, logger=self.log)
        elif truth == DIFFER:
            params = self.prior.sample_mixture_params(self.rng)
            self._emit(format_params(params))
            data = generate_2component(params, self.cfg.sample_size, self.rng, logger=self.log)
        else:
            raise ValueError(f"Unknown model: {truth}")

        record = TrialRecord(truth, trial, params, *self.estimate_evidence(data))
        self._emit(format_integrals(record))
        self.log.info(
            "Trial %s/%d: sampling %s, summing %s",
            truth,
            trial,
            "correct" if record.correct(SAMPLING) else "wrong",
            "correct" if record.correct(SUMMING) else "wrong",
        )
        return record

    def run(self) -> pd.DataFrame:
        """Run all trials for both ground-truth models; returns the per-trial frame."""

        self._emit(format_start(self.cfg.n_trials))
        records: List[TrialRecord] = []
        for truth in (POOLED, DIFFER):
            self._emit(HEADINGS[truth])
            for trial in range(self.cfg.n_trials):
                records.append(self.run_trial(truth, trial))

        frame = records_frame(records)
        summary = summarize_selection(frame)
        self._emit(format_summary(summary))
        for row in summary.itertuples(index=False):
            self.log.info("Accuracy %s/%s: %.2f", row.truth, row.method, row.accuracy)
        return frame
