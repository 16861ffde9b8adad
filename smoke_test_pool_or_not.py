"""
Smoke test for the pooled-vs-differ selection experiment.

Runs a reduced experiment twice with the same seed and validates the
report layout, the per-trial frame, and byte-identical stdout.
"""

from __future__ import annotations

import io
import os
import sys

# Allow running from repo root without installation.
REPO_ROOT = os.path.dirname(os.path.abspath(__file__))
if REPO_ROOT not in sys.path:
    sys.path.insert(0, REPO_ROOT)

from poolornot.integration.quantile_grid import GridConfig
from poolornot.simulation.runner import ExperimentConfig, PoolOrNotRunner, summarize_selection


def main() -> None:
    cfg = ExperimentConfig(
        n_trials=3,
        sample_size=40,
        n_samples=20_000,
        batch_size=10_000,
        seed=20211201,
        log_level="WARNING",
        grid=GridConfig(n_mean=10, n_precision=6, n_weight=10),
    )

    first_out = io.StringIO()
    frame = PoolOrNotRunner(cfg, out=first_out).run()
    assert len(frame) == 2 * cfg.n_trials, "Missing trial records"
    for col in ["pooled_sampling", "differ_sampling", "pooled_summing", "differ_summing"]:
        assert (frame[col] >= 0.0).all(), f"Negative evidence in {col}"

    summary = summarize_selection(frame)
    assert (summary["trials"] == cfg.n_trials).all(), "Summary trial counts wrong"

    text = first_out.getvalue()
    assert text.startswith("Starting computation for 3 datasets each. ..."), "Unexpected report header"
    assert "By sampling: Model1 data, correct selection" in text, "Missing summary"

    # Determinism check: rerun with the same seed and compare stdout.
    second_out = io.StringIO()
    PoolOrNotRunner(cfg, out=second_out).run()
    assert text == second_out.getvalue(), "Report is not deterministic across runs"

    print(text)
    print("SMOKE TEST PASSED: pool-or-not report and determinism validated.")


if __name__ == "__main__":
    main()
