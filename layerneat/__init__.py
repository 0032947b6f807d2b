"""Layered feed-forward networks with a structural evolutionary trainer."""

from __future__ import annotations

from .activations import ActivationFn, ActivationKind, random_activation
from .config import (
    EvolutionConfig,
    RunConfig,
    TaskConfig,
    load_evolution_config,
    load_run_config,
    load_task_config,
)
from .errors import (
    InputShapeError,
    InvariantViolationError,
    LayerNeatError,
    MutationExhaustedError,
    NetworkFormatError,
    NetworkIOError,
    PersistenceError,
    StructuralReferenceError,
)
from .evaluator import DatasetEvaluator, EvaluationStats, Evaluator, Sample
from .genes import Edge, LayerId, Node, NodeKind
from .metrics import MetricsRow, MetricsWriter
from .mutation import (
    DEFAULT_MUTATION_WEIGHTS,
    MAX_FALLBACK_DEPTH,
    MutationConfig,
    MutationType,
    apply_mutation,
    mutate,
)
from .network import Network
from .persistence import (
    TrainingCheckpoint,
    deserialize_network,
    load_checkpoint,
    load_network,
    save_checkpoint,
    save_network,
    serialize_network,
)
from .population import (
    GenerationSummary,
    Organism,
    PopulationConfig,
    PopulationState,
)
from .reporters import EventLogger

__all__ = [
    "ActivationFn",
    "ActivationKind",
    "random_activation",
    "EvolutionConfig",
    "RunConfig",
    "TaskConfig",
    "load_evolution_config",
    "load_run_config",
    "load_task_config",
    "LayerNeatError",
    "StructuralReferenceError",
    "InvariantViolationError",
    "InputShapeError",
    "MutationExhaustedError",
    "PersistenceError",
    "NetworkIOError",
    "NetworkFormatError",
    "DatasetEvaluator",
    "EvaluationStats",
    "Evaluator",
    "Sample",
    "Edge",
    "LayerId",
    "Node",
    "NodeKind",
    "MetricsRow",
    "MetricsWriter",
    "DEFAULT_MUTATION_WEIGHTS",
    "MAX_FALLBACK_DEPTH",
    "MutationConfig",
    "MutationType",
    "apply_mutation",
    "mutate",
    "Network",
    "TrainingCheckpoint",
    "serialize_network",
    "deserialize_network",
    "save_network",
    "load_network",
    "save_checkpoint",
    "load_checkpoint",
    "GenerationSummary",
    "Organism",
    "PopulationConfig",
    "PopulationState",
    "EventLogger",
]
