"""Command-line interface for layerneat workflows."""

from __future__ import annotations

import argparse
import sys
from pathlib import Path

from .config import EvolutionConfig, RunConfig, load_evolution_config, load_run_config
from .errors import InputShapeError, PersistenceError
from .persistence import load_network
from .training import run_training


def _load_bundle(config_path: Path) -> tuple[RunConfig, EvolutionConfig]:
    run_config = load_run_config(config_path)
    evolution_config = load_evolution_config(run_config.evolution_config)
    return run_config, evolution_config


def _cmd_train(args: argparse.Namespace) -> int:
    config_path = Path(args.config)
    run_config, evolution_config = _load_bundle(config_path)

    if args.dry_run:
        # Building the population config runs its validation.
        population_config = evolution_config.population_config()
        print("[train] configuration validated")
        print(f"  evolution_config: {run_config.evolution_config}")
        print(f"  task_config: {run_config.task_config}")
        print(f"  population_size: {population_config.population_size}")
        print(f"  seeds_per_generation: {population_config.seed_count}")
        print(f"  max_generations: {population_config.max_generations}")
        return 0

    result = run_training(run_config, evolution_config)
    print(
        f"[train] best fitness {result.best_fitness:.6f} "
        f"after {result.generations} generations"
    )
    print(f"[train] champion saved to {result.artifacts.champion}")
    return 0


def _cmd_fire(args: argparse.Namespace) -> int:
    try:
        network = load_network(Path(args.network))
    except PersistenceError as error:
        print(f"[fire] {error}", file=sys.stderr)
        return 1
    try:
        outputs = network.fire(args.inputs)
    except InputShapeError as error:
        print(f"[fire] {error}", file=sys.stderr)
        return 1
    print(" ".join(repr(value) for value in outputs))
    return 0


def _cmd_inspect(args: argparse.Namespace) -> int:
    try:
        network = load_network(Path(args.network))
    except PersistenceError as error:
        print(f"[inspect] {error}", file=sys.stderr)
        return 1
    print(f"[inspect] {args.network}")
    print(f"  default_activation: {network.default_activation.describe()}")
    for layer in network.layers:
        print(f"  layer {layer}: {len(network.nodes_in_layer(layer))} nodes")
    print(f"  nodes: {len(network.nodes)}")
    print(f"  edges: {len(network.edges)}")
    return 0


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="layerneat",
        description="Layered network neuroevolution command-line interface",
    )
    subparsers = parser.add_subparsers(dest="command", required=True)

    train = subparsers.add_parser(
        "train",
        help="Run training using a YAML configuration bundle",
    )
    train.add_argument(
        "--config",
        required=True,
        help="Path to run configuration YAML",
    )
    train.add_argument(
        "--dry-run",
        action="store_true",
        help="Validate configuration without training",
    )
    train.set_defaults(func=_cmd_train)

    fire = subparsers.add_parser(
        "fire",
        help="Run a saved network on one input vector",
    )
    fire.add_argument("--network", required=True, help="Path to a saved network")
    fire.add_argument(
        "--inputs",
        type=float,
        nargs="*",
        default=[],
        help="Input values in input-node order",
    )
    fire.set_defaults(func=_cmd_fire)

    inspect = subparsers.add_parser(
        "inspect",
        help="Summarise the structure of a saved network",
    )
    inspect.add_argument("--network", required=True, help="Path to a saved network")
    inspect.set_defaults(func=_cmd_inspect)

    return parser


def main(argv: list[str] | None = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)
    result = args.func(args)
    return int(result)


if __name__ == "__main__":  # pragma: no cover - entry point
    raise SystemExit(main())
