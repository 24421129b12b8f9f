"""Immutable gas descriptors shared by every unit emitting the same signal."""

from __future__ import annotations

import math
from dataclasses import dataclass
from enum import Enum

from core.errors import ConfigurationError


class DispersionKind(str, Enum):
    FLAT = "FLAT"  # distance independent
    DECAY = "DECAY"  # inverse square

    @classmethod
    def parse(cls, value: "str | DispersionKind") -> "DispersionKind":
        if isinstance(value, cls):
            return value
        try:
            return cls(str(value).strip().upper())
        except ValueError:
            raise ConfigurationError(
                f"unknown dispersion kind {value!r}, expected one of {[k.value for k in cls]}"
            ) from None


@dataclass(frozen=True)
class Gas:
    """Signal identity plus the propagation parameters every unit of it uses."""

    gas_id: str
    propagation_speed: float
    dispersion_kind: DispersionKind = DispersionKind.FLAT

    def __post_init__(self) -> None:
        if not self.gas_id:
            raise ConfigurationError("gas_id must be a non-empty string")
        if not (self.propagation_speed > 0 and math.isfinite(self.propagation_speed)):
            raise ConfigurationError(
                f"propagation_speed for gas '{self.gas_id}' must be finite and > 0, got {self.propagation_speed}"
            )
        # frozen: route the normalised kind through object.__setattr__
        object.__setattr__(self, "dispersion_kind", DispersionKind.parse(self.dispersion_kind))


__all__ = ["DispersionKind", "Gas"]
