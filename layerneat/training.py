"""Training orchestration for the layerneat CLI."""

from __future__ import annotations

from dataclasses import asdict, dataclass
from datetime import datetime
from pathlib import Path
from random import Random
from time import perf_counter
from typing import Any

import yaml

from .config import EvolutionConfig, RunConfig, TaskConfig, load_task_config
from .evaluator import DatasetEvaluator
from .metrics import MetricsRow, MetricsWriter
from .network import Network
from .persistence import (
    TrainingCheckpoint,
    load_checkpoint,
    save_checkpoint,
    save_network,
)
from .population import PopulationState
from .reporters import EventLogger


@dataclass(frozen=True, slots=True)
class RunArtifacts:
    """Resolved file locations used for a training run."""

    root: Path
    metrics: Path
    events: Path
    checkpoint: Path
    champion: Path
    config: Path


@dataclass(frozen=True, slots=True)
class TrainingResult:
    artifacts: RunArtifacts
    champion: Network
    best_fitness: float
    generations: int


def _allocate_run_dir(output_root: Path) -> Path:
    output_root.mkdir(parents=True, exist_ok=True)
    timestamp = datetime.now().strftime("%Y-%m-%d_%H-%M-%S")
    candidate = output_root / timestamp
    suffix = 1
    while candidate.exists():
        candidate = output_root / f"{timestamp}_{suffix:02d}"
        suffix += 1
    candidate.mkdir(parents=True, exist_ok=False)
    return candidate


def _build_artifacts(run_dir: Path) -> RunArtifacts:
    return RunArtifacts(
        root=run_dir,
        metrics=run_dir / "metrics.csv",
        events=run_dir / "events.log",
        checkpoint=run_dir / "checkpoint.pkl",
        champion=run_dir / "champion.yml",
        config=run_dir / "config.yml",
    )


def _plain(value: Any) -> Any:
    if isinstance(value, Path):
        return str(value)
    if isinstance(value, tuple):
        return [_plain(item) for item in value]
    if isinstance(value, dict):
        return {str(key): _plain(item) for key, item in value.items()}
    return value


def _write_config_snapshot(
    artifacts: RunArtifacts,
    run_config: RunConfig,
    evolution_config: EvolutionConfig,
    task_config: TaskConfig,
) -> None:
    if artifacts.config.exists():
        return
    snapshot = {
        "run": _plain(asdict(run_config)),
        "evolution": _plain(asdict(evolution_config)),
        "task": {
            "samples": len(task_config.samples),
            "input_size": task_config.input_size,
            "output_size": task_config.output_size,
        },
    }
    with artifacts.config.open("w", encoding="utf-8") as handle:
        yaml.safe_dump(snapshot, handle, sort_keys=True)


def _check_task_shape(evolution_config: EvolutionConfig, task: TaskConfig) -> None:
    if task.input_size != evolution_config.inputs:
        msg = (
            f"Task samples have {task.input_size} inputs but the network "
            f"is configured with {evolution_config.inputs}."
        )
        raise ValueError(msg)
    if task.output_size != evolution_config.outputs:
        msg = (
            f"Task samples have {task.output_size} targets but the network "
            f"is configured with {evolution_config.outputs}."
        )
        raise ValueError(msg)


def _create_initial_state(evolution_config: EvolutionConfig) -> PopulationState:
    seed_rng = Random(evolution_config.seed)
    return PopulationState.seeded(
        evolution_config.starting_network(),
        evolution_config.population_config(),
        rng=Random(seed_rng.getrandbits(32)),
    )


def _normalise_checkpoint_path(path: Path) -> Path:
    candidate = Path(path)
    if candidate.is_dir():
        candidate = candidate / "checkpoint.pkl"
    if not candidate.exists():
        msg = f"Checkpoint file not found: {candidate}"
        raise FileNotFoundError(msg)
    return candidate


def _initialise_run(
    run_config: RunConfig,
    evolution_config: EvolutionConfig,
) -> tuple[RunArtifacts, PopulationState, Network | None, float]:
    if run_config.resume:
        checkpoint_path = _normalise_checkpoint_path(run_config.resume)
        checkpoint = load_checkpoint(checkpoint_path)
        population_state = checkpoint.population_state
        # Stopping rule and mutation settings follow the current config.
        population_state.config = evolution_config.population_config()
        best_network: Network | None = checkpoint.best_network.copy()
        best_fitness = checkpoint.best_fitness
        run_dir = checkpoint_path.parent
    else:
        run_dir = _allocate_run_dir(run_config.output_dir)
        population_state = _create_initial_state(evolution_config)
        best_network = None
        best_fitness = float("-inf")
    return _build_artifacts(run_dir), population_state, best_network, best_fitness


def _persist_state(
    artifacts: RunArtifacts,
    population_state: PopulationState,
    best_network: Network | None,
    best_fitness: float,
) -> None:
    if not population_state.organisms:
        msg = "Cannot persist checkpoint with empty population."
        raise ValueError(msg)
    network = (
        best_network.copy()
        if best_network is not None
        else population_state.organisms[0].network.copy()
    )
    checkpoint = TrainingCheckpoint(
        generation=population_state.generation,
        population_state=population_state,
        best_network=network,
        best_fitness=best_fitness,
    )
    save_checkpoint(artifacts.checkpoint, checkpoint)


def _should_save(generation: int, interval: int | None) -> bool:
    if interval is None or interval <= 0:
        return False
    return generation % interval == 0


def run_training(
    run_config: RunConfig,
    evolution_config: EvolutionConfig,
) -> TrainingResult:
    task_config = load_task_config(run_config.task_config)
    _check_task_shape(evolution_config, task_config)

    artifacts, population_state, best_network, best_fitness = _initialise_run(
        run_config,
        evolution_config,
    )
    _write_config_snapshot(artifacts, run_config, evolution_config, task_config)
    evaluator = DatasetEvaluator(task_config.samples)

    if run_config.resume:
        print(f"[train] resuming from checkpoint: {artifacts.checkpoint}")
    else:
        print(f"[train] run directory: {artifacts.root}")

    with MetricsWriter(artifacts.metrics) as metrics_writer, EventLogger(
        artifacts.events
    ) as logger:
        mode = "resumed" if run_config.resume else "started"
        logger.log(f"Training {mode} at {artifacts.root}")
        logger.log(
            f"Configs -> evolution={run_config.evolution_config} "
            f"task={run_config.task_config}"
        )

        while not population_state.should_stop():
            start_time = perf_counter()
            summary = population_state.step(evaluator)
            generation_time = perf_counter() - start_time

            champion = population_state.champion
            if champion is None:
                msg = "Generation finished without a champion."
                raise RuntimeError(msg)
            if summary.best_fitness > best_fitness or best_network is None:
                best_fitness = summary.best_fitness
                best_network = champion.network.copy()
                save_network(artifacts.champion, best_network)
                logger.log(
                    f"New champion at generation {summary.generation} "
                    f"(fitness={best_fitness:.6f})."
                )

            metrics_writer.append(
                MetricsRow.from_summary(
                    summary,
                    population_size=len(population_state.organisms),
                    generation_time_s=generation_time,
                )
            )
            logger.log_generation(summary)
            print(
                f"Generation {summary.generation}: "
                f"best fitness {summary.best_fitness:.4f}"
            )

            if summary.finished:
                if (
                    evolution_config.fitness_threshold is not None
                    and summary.best_fitness >= evolution_config.fitness_threshold
                ):
                    logger.log("Fitness threshold reached; stopping.")
                    print("Fitness threshold reached, stopping training.")
                else:
                    logger.log("Generation limit reached; stopping.")
                break

            if _should_save(population_state.generation, run_config.save_every):
                _persist_state(artifacts, population_state, best_network, best_fitness)
                logger.log(
                    f"Checkpoint saved at generation {population_state.generation}."
                )

        _persist_state(artifacts, population_state, best_network, best_fitness)
        logger.log("Final checkpoint saved.")

    if best_network is None:
        msg = "Training finished without evaluating any generation."
        raise RuntimeError(msg)
    return TrainingResult(
        artifacts=artifacts,
        champion=best_network,
        best_fitness=best_fitness,
        generations=population_state.generation,
    )


__all__ = ["RunArtifacts", "TrainingResult", "run_training"]
