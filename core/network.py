"""A GasNet network: positioned neurons, gas descriptors and the units they emit."""

from __future__ import annotations

from typing import Dict, Iterable, Iterator, List, Optional

from core.dispersion import DispersionUnit
from core.errors import ConfigurationError
from core.gas import Gas
from core.receptor import Neuron
from model_contracts import assert_finite


class GasNetwork:
    """Owns the neurons (the lookup handed to units) and every unit attached to them."""

    def __init__(self, neurons: Iterable[Neuron] = (), gases: Iterable[Gas] = ()) -> None:
        self.neurons: Dict[str, Neuron] = {}
        self.gases: Dict[str, Gas] = {}
        self.units: Dict[str, List[DispersionUnit]] = {}
        for neuron in neurons:
            self.add_neuron(neuron)
        for gas in gases:
            self.add_gas(gas)

    def add_neuron(self, neuron: Neuron) -> None:
        if neuron.neuron_id in self.neurons:
            raise ConfigurationError(f"duplicate neuron id '{neuron.neuron_id}'")
        assert_finite(neuron.position, name=f"position of neuron '{neuron.neuron_id}'")
        self.neurons[neuron.neuron_id] = neuron
        if self.units:
            # Existing emitters must see the newcomer.
            self.rebind()

    def add_gas(self, gas: Gas) -> None:
        if gas.gas_id in self.gases:
            raise ConfigurationError(f"duplicate gas id '{gas.gas_id}'")
        self.gases[gas.gas_id] = gas

    def attach_emitter(
        self, source_id: str, gas_id: str, emission_radius: float, initial_strength: float
    ) -> DispersionUnit:
        """Create, build and bind a unit for ``source_id`` emitting ``gas_id``."""
        source = self._neuron(source_id)
        gas = self.gases.get(gas_id)
        if gas is None:
            raise ConfigurationError(f"unknown gas '{gas_id}'")
        if any(unit.gas_id == gas_id for unit in self.units.get(source_id, [])):
            raise ConfigurationError(f"neuron '{source_id}' already emits gas '{gas_id}'")
        unit = DispersionUnit.from_gas(emission_radius, initial_strength, gas)
        unit.build_channel()
        unit.bind_receivers(self.neurons.values(), source)
        self.units.setdefault(source_id, []).append(unit)
        return unit

    def units_for(self, source_id: str) -> List[DispersionUnit]:
        return self.units.get(source_id, [])

    def iter_units(self) -> Iterator[tuple[str, DispersionUnit]]:
        for source_id, units in self.units.items():
            for unit in units:
                yield source_id, unit

    def rebind(self) -> None:
        for source_id, unit in self.iter_units():
            unit.bind_receivers(self.neurons.values(), self.neurons[source_id])

    def move_neuron(self, neuron_id: str, x: float, y: float) -> None:
        neuron = self._neuron(neuron_id)
        assert_finite((x, y), name=f"position of neuron '{neuron_id}'")
        neuron.x, neuron.y = x, y
        self.rebind()

    def clear_buildup(self) -> None:
        for neuron in self.neurons.values():
            neuron.receptor.clear()

    def decay_buildup(self, retention: float) -> None:
        for neuron in self.neurons.values():
            neuron.receptor.decay(retention)

    def buildup(self) -> Dict[str, Dict[str, float]]:
        return {nid: dict(n.receptor.built_up_concentrations) for nid, n in self.neurons.items()}

    def clone(self) -> "GasNetwork":
        """Independent copy for evolutionary duplication; gases stay shared."""
        twin = GasNetwork(gases=self.gases.values())
        for neuron in self.neurons.values():
            twin.neurons[neuron.neuron_id] = neuron.copy()
        twin.units = {source_id: [unit.clone() for unit in units] for source_id, units in self.units.items()}
        return twin

    def _neuron(self, neuron_id: str) -> Neuron:
        neuron: Optional[Neuron] = self.neurons.get(neuron_id)
        if neuron is None:
            raise ConfigurationError(f"unknown neuron '{neuron_id}'")
        return neuron

    def __len__(self) -> int:
        return len(self.neurons)


__all__ = ["GasNetwork"]
