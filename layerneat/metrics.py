"""Per-generation metrics recorded to CSV."""

from __future__ import annotations

import csv
from dataclasses import asdict, dataclass, fields
from pathlib import Path
from typing import IO, Any

from .population import GenerationSummary


@dataclass(frozen=True, slots=True)
class MetricsRow:
    """Aggregate statistics produced for each generation."""

    generation: int
    population_size: int
    best_fitness: float
    mean_fitness: float
    median_fitness: float
    champion_nodes: int
    champion_edges: int
    generation_time_s: float

    @classmethod
    def from_summary(
        cls,
        summary: GenerationSummary,
        *,
        population_size: int,
        generation_time_s: float,
    ) -> MetricsRow:
        return cls(
            generation=summary.generation,
            population_size=population_size,
            best_fitness=summary.best_fitness,
            mean_fitness=summary.mean_fitness,
            median_fitness=summary.median_fitness,
            champion_nodes=summary.champion_nodes,
            champion_edges=summary.champion_edges,
            generation_time_s=generation_time_s,
        )


class MetricsWriter:
    """CSV-backed writer that appends metrics rows incrementally."""

    _fieldnames = [item.name for item in fields(MetricsRow)]

    def __init__(self, path: Path) -> None:
        self._path = Path(path)
        self._path.parent.mkdir(parents=True, exist_ok=True)
        exists = self._path.exists()
        mode = "a" if exists else "w"
        self._handle: IO[str] = self._path.open(mode, encoding="utf-8", newline="")
        self._writer = csv.DictWriter(self._handle, fieldnames=self._fieldnames)
        if not exists:
            self._writer.writeheader()
            self._handle.flush()

    def __enter__(self) -> MetricsWriter:
        return self

    def __exit__(
        self,
        exc_type: type[BaseException] | None,
        exc: BaseException | None,
        exc_tb: Any,
    ) -> None:
        self.close()

    def append(self, row: MetricsRow) -> None:
        """Append a metrics row and flush to disk."""
        self._writer.writerow(asdict(row))
        self._handle.flush()

    def close(self) -> None:
        if not self._handle.closed:
            self._handle.close()

    @property
    def path(self) -> Path:
        return self._path


__all__ = ["MetricsRow", "MetricsWriter"]
