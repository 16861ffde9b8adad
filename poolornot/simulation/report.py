"""Plain-text console report for the selection experiment."""

from __future__ import annotations

import pandas as pd

from ..integration.evidence import SAMPLING, SUMMING
from ..priors.gaussian_prior import DIFFER, POOLED, GaussianParams, MixtureParams

HEADINGS = {
    POOLED: "\nData generated with one component",
    DIFFER: "\nData generated with two components",
}


def format_start(n_trials: int) -> str:
    return "Starting computation for %d datasets each. ..." % n_trials


def format_params(params) -> str:
    if isinstance(params, MixtureParams):
        return "generating data with:  m; (μ1,σ1); (μ2,σ2) =  %5.3f; (%4.2f,%4.2f); (%4.2f,%4.2f)" % (
            params.weight,
            params.component1.mean,
            params.component1.scale,
            params.component2.mean,
            params.component2.scale,
        )
    if isinstance(params, GaussianParams):
        return "generating data with: (μ,σ) =  (%4.2f,%4.2f)" % (params.mean, params.scale)
    raise TypeError(f"Unsupported params type: {type(params).__name__}")


def format_integrals(record) -> str:
    return "Integrals by sampling= (%g,%g)  by summing: (%g,%g)\n" % (
        record.pooled_sampling.value,
        record.differ_sampling.value,
        record.pooled_summing.value,
        record.differ_summing.value,
    )


def format_summary(summary: pd.DataFrame) -> str:
    """Four-line correct-selection summary from summarize_selection output."""

    counts = summary.set_index(["truth", "method"])

    def line(truth: str, method: str) -> str:
        row = counts.loc[(truth, method)]
        return "Model%d data, correct selection %d/%d" % (
            1 if truth == POOLED else 2,
            int(row["correct"]),
            int(row["trials"]),
        )

    return "\n".join(
        [
            "By sampling: " + line(POOLED, SAMPLING),
            "             " + line(DIFFER, SAMPLING),
            "By summing:  " + line(POOLED, SUMMING),
            "             " + line(DIFFER, SUMMING),
        ]
    )
