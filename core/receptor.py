"""Receiver side of the gas contract: neurons and their buildup accumulators.

Units only ever add into ``Receptor.built_up_concentrations``. Clearing or
decaying the accumulator between ticks belongs to whoever owns the neuron
(the tick driver in ``core.engine``).
"""

from __future__ import annotations

import math
from dataclasses import dataclass, field
from typing import Dict, Tuple

from model_contracts import assert_range

Vector = Tuple[float, float]


@dataclass
class Receptor:
    built_up_concentrations: Dict[str, float] = field(default_factory=dict)

    def concentration(self, gas_id: str) -> float:
        return self.built_up_concentrations.get(gas_id, 0.0)

    def add(self, gas_id: str, amount: float) -> None:
        self.built_up_concentrations[gas_id] = self.concentration(gas_id) + amount

    def clear(self) -> None:
        self.built_up_concentrations.clear()

    def decay(self, retention: float) -> None:
        """Scale every accumulated level by ``retention``; 0 clears."""
        assert_range(retention, 0.0, 1.0, name="retention")
        if retention == 0.0:
            self.clear()
            return
        for gas_id in self.built_up_concentrations:
            self.built_up_concentrations[gas_id] *= retention

    def copy(self) -> "Receptor":
        return Receptor(built_up_concentrations=dict(self.built_up_concentrations))


@dataclass
class Neuron:
    """Positioned neuron exposing a receptor; firing is decided elsewhere."""

    neuron_id: str
    x: float
    y: float
    receptor: Receptor = field(default_factory=Receptor)

    @property
    def position(self) -> Vector:
        return (self.x, self.y)

    def distance_to(self, other: "Neuron") -> float:
        return math.hypot(other.x - self.x, other.y - self.y)

    def copy(self) -> "Neuron":
        return Neuron(neuron_id=self.neuron_id, x=self.x, y=self.y, receptor=self.receptor.copy())


__all__ = ["Neuron", "Receptor", "Vector"]
