"""Experiment configuration: dataclass defaults, overridable from JSON."""

from __future__ import annotations

import json
import math
from dataclasses import asdict, dataclass, field, fields
from pathlib import Path
from typing import Any, Dict, Tuple

from core.errors import ConfigurationError
from core.gas import DispersionKind, Gas


@dataclass(frozen=True)
class GasConfig:
    gas_id: str = "NO"
    propagation_speed: float = 2.0
    dispersion_kind: str = "FLAT"
    emission_radius: float = 10.0
    initial_strength: float = 0.5
    emitter_fraction: float = 0.25  # share of neurons emitting this gas

    def __post_init__(self) -> None:
        if not 0.0 <= self.emitter_fraction <= 1.0:
            raise ConfigurationError(
                f"emitter_fraction for gas '{self.gas_id}' must be in [0, 1], got {self.emitter_fraction}"
            )
        if not 0.0 <= self.initial_strength <= 1.0:
            raise ConfigurationError(
                f"initial_strength for gas '{self.gas_id}' must be in [0, 1], got {self.initial_strength}"
            )
        if not (self.emission_radius > 0 and math.isfinite(self.emission_radius)):
            raise ConfigurationError(
                f"emission_radius for gas '{self.gas_id}' must be finite and > 0, got {self.emission_radius}"
            )
        gas = self.to_gas()  # rejects empty ids, bad speeds and unknown kinds
        if self.emission_radius < gas.propagation_speed:
            raise ConfigurationError(
                f"emission_radius {self.emission_radius} for gas '{self.gas_id}' is shorter than "
                f"one propagation step ({gas.propagation_speed})"
            )

    def to_gas(self) -> Gas:
        return Gas(self.gas_id, self.propagation_speed, DispersionKind.parse(self.dispersion_kind))

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "GasConfig":
        return cls(**_known_keys(cls, data))


@dataclass(frozen=True)
class ExperimentConfig:
    """Everything needed to build and drive one seeded network run."""

    seed: int = 1337
    n_neurons: int = 24
    arena_size: float = 20.0
    activation_rate: float = 0.3
    receptor_retention: float = 0.0  # 0 clears buildup every tick
    gases: Tuple[GasConfig, ...] = field(
        default_factory=lambda: (
            GasConfig(gas_id="NO", dispersion_kind="FLAT"),
            GasConfig(gas_id="CO", propagation_speed=1.5, dispersion_kind="DECAY", emission_radius=9.0),
        )
    )

    def __post_init__(self) -> None:
        if self.n_neurons < 1:
            raise ConfigurationError(f"n_neurons must be >= 1, got {self.n_neurons}")
        if not self.arena_size > 0:
            raise ConfigurationError(f"arena_size must be > 0, got {self.arena_size}")
        if not 0.0 <= self.activation_rate <= 1.0:
            raise ConfigurationError(f"activation_rate must be in [0, 1], got {self.activation_rate}")
        if not 0.0 <= self.receptor_retention <= 1.0:
            raise ConfigurationError(f"receptor_retention must be in [0, 1], got {self.receptor_retention}")
        ids = [g.gas_id for g in self.gases]
        if len(set(ids)) != len(ids):
            raise ConfigurationError(f"duplicate gas ids in config: {ids}")

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "ExperimentConfig":
        values = _known_keys(cls, data)
        if "gases" in values:
            values["gases"] = tuple(GasConfig.from_dict(g) for g in values["gases"])
        return cls(**values)

    @classmethod
    def from_json(cls, path: str | Path) -> "ExperimentConfig":
        return cls.from_dict(json.loads(Path(path).read_text()))

    def with_seed(self, seed: int) -> "ExperimentConfig":
        data = self.to_dict()
        data["seed"] = seed
        return ExperimentConfig.from_dict(data)

    def to_dict(self) -> Dict[str, Any]:
        data = asdict(self)
        data["gases"] = [dict(g) for g in data["gases"]]
        return data


def _known_keys(cls: type, data: Dict[str, Any]) -> Dict[str, Any]:
    if not isinstance(data, dict):
        raise ConfigurationError(f"{cls.__name__} config must be a JSON object, got {type(data).__name__}")
    names = {f.name for f in fields(cls)}
    unknown = sorted(set(data) - names)
    if unknown:
        raise ConfigurationError(f"unknown {cls.__name__} keys: {unknown}")
    return dict(data)


__all__ = ["ExperimentConfig", "GasConfig"]
