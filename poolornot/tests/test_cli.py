import pytest
import yaml

from poolornot.scripts.run_pool_or_not import EX_USAGE, main, parse_args
from poolornot.simulation.runner import CONFIG_ENV, SEED_ENV


@pytest.mark.parametrize("argv", [["abc"], ["0"], ["-3"], ["2", "3"], ["1.5"]])
def test_bad_usage_exits_64(argv, capsys):
    with pytest.raises(SystemExit) as excinfo:
        parse_args(argv)
    assert excinfo.value.code == EX_USAGE == 64
    assert "usage:" in capsys.readouterr().err


def test_num_datasets_is_optional():
    assert parse_args([]).num_datasets is None
    assert parse_args(["7"]).num_datasets == 7


def test_main_runs_small_experiment(tmp_path, monkeypatch, capsys):
    cfg_path = tmp_path / "config.yaml"
    cfg = {
        "experiment": {"n_trials": 5, "sample_size": 10, "seed": 1},
        "grid": {"n_mean": 4, "n_precision": 3, "n_weight": 3},
        "sampling": {"n_samples": 1000, "batch_size": 500},
        "logging": {"level": "ERROR"},
    }
    with open(cfg_path, "w", encoding="utf-8") as f:
        yaml.safe_dump(cfg, f)
    monkeypatch.setenv(CONFIG_ENV, str(cfg_path))
    monkeypatch.delenv(SEED_ENV, raising=False)

    assert main(["2"]) == 0
    out = capsys.readouterr().out
    assert out.startswith("Starting computation for 2 datasets each. ...")
    assert "By summing:  Model1 data, correct selection " in out
    assert out.rstrip().endswith("/2")
