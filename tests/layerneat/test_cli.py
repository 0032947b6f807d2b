from __future__ import annotations

from pathlib import Path

import pytest
from layerneat import cli
from layerneat.network import Network
from layerneat.persistence import save_network


def test_cli_help() -> None:
    parser = cli.build_parser()
    help_text = parser.format_help()
    for command in ("train", "fire", "inspect"):
        assert command in help_text


def _write_evolution_config(path: Path, *, fitness_threshold: float) -> None:
    path.write_text(
        "population_size: 4\n"
        "survival_threshold: 0.5\n"
        "min_mutations: 1\n"
        "max_mutations: 2\n"
        "max_generations: 2\n"
        "seed: 5\n"
        f"fitness_threshold: {fitness_threshold}\n",
        encoding="utf-8",
    )


def _write_task_config(path: Path) -> None:
    path.write_text(
        "samples:\n"
        "  - {inputs: [0.0], targets: [1.0]}\n"
        "  - {inputs: [1.0], targets: [0.0]}\n",
        encoding="utf-8",
    )


def _write_bundle(tmp_path: Path, *, fitness_threshold: float) -> Path:
    _write_evolution_config(
        tmp_path / "evolution.yml", fitness_threshold=fitness_threshold
    )
    _write_task_config(tmp_path / "task.yml")
    run_yaml = tmp_path / "run.yml"
    run_yaml.write_text(
        """
evolution_config: evolution.yml
task_config: task.yml
output_dir: runs
""",
        encoding="utf-8",
    )
    return run_yaml


def test_cli_train_dry_run(tmp_path: Path, capsys: pytest.CaptureFixture[str]) -> None:
    run_yaml = _write_bundle(tmp_path, fitness_threshold=10.0)

    code = cli.main(["train", "--config", str(run_yaml), "--dry-run"])

    assert code == 0
    assert "seeds_per_generation: 2" in capsys.readouterr().out
    assert not (tmp_path / "runs").exists()


def test_cli_train_executes(tmp_path: Path) -> None:
    run_yaml = _write_bundle(tmp_path, fitness_threshold=-100.0)

    code = cli.main(["train", "--config", str(run_yaml)])

    assert code == 0
    (run_dir,) = (tmp_path / "runs").iterdir()
    assert (run_dir / "champion.yml").exists()


def test_cli_fire_prints_outputs(
    tmp_path: Path, capsys: pytest.CaptureFixture[str]
) -> None:
    network = Network.with_io(2, 1)
    network.create_edge(0, 2, 0.5)
    network.create_edge(1, 2, 2.0)
    path = tmp_path / "net.yml"
    save_network(path, network)

    code = cli.main(["fire", "--network", str(path), "--inputs", "2", "1"])

    assert code == 0
    assert capsys.readouterr().out.strip() == "3.0"


def test_cli_fire_reports_bad_input(
    tmp_path: Path, capsys: pytest.CaptureFixture[str]
) -> None:
    path = tmp_path / "net.yml"
    save_network(path, Network.with_io(2, 1))

    code = cli.main(["fire", "--network", str(path), "--inputs", "1"])

    assert code == 1
    assert "[fire]" in capsys.readouterr().err


def test_cli_inspect(tmp_path: Path, capsys: pytest.CaptureFixture[str]) -> None:
    network = Network.with_io(1, 1)
    network.create_node(network.add_layer())
    path = tmp_path / "net.yml"
    save_network(path, network)

    code = cli.main(["inspect", "--network", str(path)])

    assert code == 0
    out = capsys.readouterr().out
    assert "layer hidden(0): 1 nodes" in out
    assert "nodes: 3" in out
    assert "edges: 0" in out


def test_cli_missing_network_returns_error(
    tmp_path: Path, capsys: pytest.CaptureFixture[str]
) -> None:
    missing = tmp_path / "missing.yml"
    assert cli.main(["inspect", "--network", str(missing)]) == 1
    assert cli.main(["fire", "--network", str(missing)]) == 1
    assert "Could not read network" in capsys.readouterr().err
