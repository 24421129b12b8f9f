"""Error types raised by the dispersion engine."""

from __future__ import annotations


class ConfigurationError(ValueError):
    """Invalid unit, gas, or network configuration."""


class ReceiverReferenceError(KeyError):
    """A bound receiver id is missing from the neuron lookup passed at tick time."""

    def __init__(self, neuron_id: str, gas_id: str) -> None:
        super().__init__(neuron_id)
        self.neuron_id = neuron_id
        self.gas_id = gas_id

    def __str__(self) -> str:
        return f"receiver '{self.neuron_id}' bound for gas '{self.gas_id}' is not in the neuron lookup"


__all__ = ["ConfigurationError", "ReceiverReferenceError"]
