import io

import pytest
import yaml

from poolornot.integration.evidence import SAMPLING, SUMMING
from poolornot.integration.quantile_grid import GridConfig
from poolornot.priors.gaussian_prior import DIFFER, POOLED, PriorConfig
from poolornot.simulation.runner import (
    CONFIG_ENV,
    SEED_ENV,
    ExperimentConfig,
    PoolOrNotRunner,
    config_from_dict,
    load_experiment_config,
    summarize_selection,
)


def small_config(seed: int = 17) -> ExperimentConfig:
    return ExperimentConfig(
        n_trials=2,
        sample_size=12,
        n_samples=3_000,
        batch_size=1_000,
        seed=seed,
        log_level="WARNING",
        grid=GridConfig(n_mean=5, n_precision=4, n_weight=4),
    )


def run_to_text(cfg: ExperimentConfig):
    out = io.StringIO()
    frame = PoolOrNotRunner(cfg, out=out).run()
    return out.getvalue(), frame


def test_run_output_layout():
    text, frame = run_to_text(small_config())
    lines = text.splitlines()
    assert lines[0] == "Starting computation for 2 datasets each. ..."
    assert "Data generated with one component" in lines
    assert "Data generated with two components" in lines
    assert sum(line.startswith("generating data with: (μ,σ)") for line in lines) == 2
    assert sum(line.startswith("generating data with:  m;") for line in lines) == 2
    assert sum(line.startswith("Integrals by sampling=") for line in lines) == 4
    assert lines[-4].startswith("By sampling: Model1 data, correct selection ")
    assert lines[-4].endswith("/2")
    assert lines[-1].startswith("             Model2 data, correct selection ")
    assert len(frame) == 4
    assert list(frame["truth"]) == [POOLED, POOLED, DIFFER, DIFFER]


def test_run_is_deterministic_for_a_seed():
    first, _ = run_to_text(small_config(seed=3))
    second, _ = run_to_text(small_config(seed=3))
    other, _ = run_to_text(small_config(seed=4))
    assert first == second
    assert first != other


def test_summary_counts_and_accuracy():
    _, frame = run_to_text(small_config())
    summary = summarize_selection(frame)
    assert len(summary) == 4
    assert set(summary["method"]) == {SAMPLING, SUMMING}
    assert (summary["trials"] == 2).all()
    assert ((summary["correct"] >= 0) & (summary["correct"] <= 2)).all()
    assert ((summary["accuracy"] >= 0.0) & (summary["accuracy"] <= 1.0)).all()
    pooled_summing = summary[(summary["truth"] == POOLED) & (summary["method"] == SUMMING)]
    assert int(pooled_summing["correct"].iloc[0]) == int(frame[frame["truth"] == POOLED]["summing_correct"].sum())


def test_correct_flag_follows_log_evidence():
    _, frame = run_to_text(small_config())
    for row in frame.itertuples(index=False):
        pooled_wins = row.log_pooled_summing > row.log_differ_summing
        assert row.summing_correct == (pooled_wins if row.truth == POOLED else not pooled_wins)


def test_default_config_matches_reference(monkeypatch):
    monkeypatch.delenv(CONFIG_ENV, raising=False)
    monkeypatch.delenv(SEED_ENV, raising=False)
    cfg = load_experiment_config()
    assert cfg == ExperimentConfig()
    assert cfg.sample_size == 40
    assert cfg.n_samples == 2_000_000
    assert cfg.grid == GridConfig(n_mean=20, n_precision=10, n_weight=40, weight_range="half")
    assert cfg.prior == PriorConfig(mean_loc=0.0, mean_scale=4.0, precision_shape=0.5, precision_scale=2.0)


def test_config_env_and_seed_override(tmp_path, monkeypatch):
    cfg_path = tmp_path / "config.yaml"
    with open(cfg_path, "w", encoding="utf-8") as f:
        yaml.safe_dump({"experiment": {"n_trials": 3, "seed": 5}, "grid": {"n_weight": 6}}, f)
    monkeypatch.setenv(CONFIG_ENV, str(cfg_path))
    monkeypatch.setenv(SEED_ENV, "77")
    cfg = load_experiment_config()
    assert cfg.n_trials == 3
    assert cfg.seed == 77
    assert cfg.grid.n_weight == 6
    assert cfg.grid.n_mean == 20

    monkeypatch.setenv(SEED_ENV, "seventy")
    with pytest.raises(ValueError):
        load_experiment_config()


def test_invalid_config_values_raise():
    with pytest.raises(ValueError):
        config_from_dict({"experiment": {"n_trials": 0}})
    with pytest.raises(ValueError):
        config_from_dict({"grid": {"weight_range": "both"}})
    with pytest.raises(ValueError):
        config_from_dict({"prior": {"mean_scale": -1.0}})
    with pytest.raises(ValueError):
        config_from_dict({"logging": {"level": "LOUD"}})
