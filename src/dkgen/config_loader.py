"""Persist and load CLI generation profiles."""

from __future__ import annotations

import json
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict

from dkgen.ingest.projections import DEFAULT_PROJECTION_MAPPING
from dkgen.optimizer.generator import GenerationConfig


_CONFIG_KEYS = (
    "strategy",
    "max_attempts",
    "timeout_ms",
    "target_lineups",
    "scoring_strategy",
    "allow_duplicates",
    "sort_results",
    "salary_cap",
    "prune_salary",
    "enable_logging",
    "log_interval",
)


@dataclass
class GenerationProfile:
    """Saved generation options plus the CSV column mapping they were used with."""

    generation: Dict[str, Any] = field(default_factory=dict)
    projection_mapping: Dict[str, str] = field(default_factory=dict)

    @classmethod
    def load(cls, path: Path) -> "GenerationProfile":
        data = json.loads(path.read_text(encoding="utf-8"))
        generation = data.get("generation", {})
        unknown = sorted(set(generation) - set(_CONFIG_KEYS))
        if unknown:
            raise ValueError(f"Unknown generation options in {path}: {', '.join(unknown)}")
        return cls(
            generation=generation,
            projection_mapping=data.get("projection_mapping", {}),
        )

    def save(self, path: Path) -> None:
        payload = {
            "generation": self.generation,
            "projection_mapping": self.projection_mapping,
        }
        path.write_text(json.dumps(payload, indent=2), encoding="utf-8")

    def mapping(self) -> Dict[str, str]:
        merged = dict(DEFAULT_PROJECTION_MAPPING)
        merged.update(self.projection_mapping)
        return merged

    def to_config(self, **overrides: Any) -> GenerationConfig:
        values = dict(self.generation)
        values.update({key: value for key, value in overrides.items() if value is not None})
        return GenerationConfig.from_env(**values)

    @classmethod
    def from_config(cls, config: GenerationConfig, mapping: Dict[str, str] | None = None) -> "GenerationProfile":
        generation: Dict[str, Any] = {}
        for key in _CONFIG_KEYS:
            value = getattr(config, key)
            generation[key] = getattr(value, "value", value)
        return cls(generation=generation, projection_mapping=dict(mapping or {}))
