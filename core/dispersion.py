"""Radial gas propagation for one (source neuron, gas) pair.

The emission disc is cut into concentric slots one propagation step wide.
Each tick the driver calls, in this order::

    adapt_strength(active) -> emit() -> update_targets(lookup) -> advance()

so emission reflects this tick's activity, receivers sense the fresh value at
slot 0, and the wavefront moves outward only after everything was sensed.
"""

from __future__ import annotations

import bisect
import copy
import math
from typing import Dict, Iterable, List, Mapping, Optional

from core.errors import ConfigurationError, ReceiverReferenceError
from core.gas import DispersionKind, Gas
from core.receptor import Neuron

UNNAMED_GAS = "unnamed"


class DispersionSlot:
    """One annulus of the emission disc."""

    __slots__ = ("inner_radius", "_concentration", "receivers")

    def __init__(
        self,
        inner_radius: float,
        concentration: float = 0.0,
        receivers: Optional[Dict[str, float]] = None,
    ) -> None:
        self.inner_radius = inner_radius
        self._concentration = 0.0
        self.concentration = concentration
        self.receivers: Dict[str, float] = receivers if receivers is not None else {}

    @property
    def concentration(self) -> float:
        return self._concentration

    @concentration.setter
    def concentration(self, value: float) -> None:
        if value < 0:
            raise ValueError(f"slot concentration must be >= 0, got {value}")
        self._concentration = value

    def clone(self) -> "DispersionSlot":
        return DispersionSlot(self.inner_radius, self._concentration, dict(self.receivers))

    def __repr__(self) -> str:
        return (
            f"DispersionSlot(inner_radius={self.inner_radius!r}, "
            f"concentration={self._concentration!r}, receivers={len(self.receivers)})"
        )


class DispersionUnit:
    """Emission engine owned by a single source neuron for a single gas."""

    STRENGTH_INCREMENT = 0.3
    MAX_STRENGTH = 1.0

    def __init__(
        self,
        emission_radius: float,
        initial_strength: float,
        propagation_speed: float,
        dispersion_kind: DispersionKind | str = DispersionKind.FLAT,
        *,
        gas_id: str = UNNAMED_GAS,
    ) -> None:
        _check_geometry(emission_radius, propagation_speed)
        if not 0.0 <= initial_strength <= self.MAX_STRENGTH:
            raise ConfigurationError(
                f"initial_strength must be in [0, {self.MAX_STRENGTH}], got {initial_strength}"
            )
        self.emission_radius = emission_radius
        self.base_strength = initial_strength
        self.current_strength = initial_strength
        self.propagation_speed = propagation_speed
        self.dispersion_kind = DispersionKind.parse(dispersion_kind)
        self.gas_id = gas_id
        self.strength_increment = self.STRENGTH_INCREMENT
        self.max_strength = self.MAX_STRENGTH
        self.was_emitting_last_tick = False
        self.slot_size = 0.0
        self.slots: List[DispersionSlot] = []

    @classmethod
    def from_gas(cls, emission_radius: float, initial_strength: float, gas: Gas) -> "DispersionUnit":
        return cls(
            emission_radius,
            initial_strength,
            gas.propagation_speed,
            gas.dispersion_kind,
            gas_id=gas.gas_id,
        )

    # --- setup ----------------------------------------------------------
    def build_channel(self) -> None:
        """Create ``floor(radius / speed)`` empty slots of equal width."""
        _check_geometry(self.emission_radius, self.propagation_speed)
        ratio = self.emission_radius / self.propagation_speed
        if not math.isfinite(ratio):
            raise ConfigurationError(
                f"emission_radius {self.emission_radius} over propagation_speed {self.propagation_speed} "
                "does not give a finite slot count"
            )
        total_slots = math.floor(ratio)
        if total_slots < 1:
            raise ConfigurationError(
                f"emission_radius {self.emission_radius} is shorter than one propagation step "
                f"({self.propagation_speed}); the channel would have no slots"
            )
        self.slot_size = self.emission_radius / total_slots
        self.slots = [DispersionSlot(self.slot_size * i) for i in range(total_slots)]

    def bind_receivers(self, candidates: Iterable[Neuron], source: Neuron) -> None:
        """Bin every candidate except ``source`` into the slot matching its distance.

        A neuron sitting exactly on a slot boundary goes to the farther slot;
        one at exactly ``emission_radius`` goes to the outermost slot. Neurons
        co-located with the source or beyond the radius are not bound.
        Existing bindings are dropped first.
        """
        if not self.slots:
            raise ConfigurationError("build_channel() must run before bind_receivers()")
        for slot in self.slots:
            slot.receivers.clear()
        last = len(self.slots) - 1
        # Index against the stored inner radii so boundaries match what slots report.
        inner_radii = [slot.inner_radius for slot in self.slots]
        for neuron in candidates:
            if neuron.neuron_id == source.neuron_id:
                continue
            distance = source.distance_to(neuron)
            if distance <= 0.0 or distance > self.emission_radius:
                continue
            index = min(bisect.bisect_right(inner_radii, distance) - 1, last)
            self.slots[index].receivers[neuron.neuron_id] = distance

    # --- tick -----------------------------------------------------------
    def adapt_strength(self, is_source_active: bool) -> None:
        # The first active tick only arms the ramp; strength climbs from the second.
        if is_source_active:
            if self.was_emitting_last_tick:
                self.current_strength = min(self.current_strength + self.strength_increment, self.max_strength)
            else:
                self.was_emitting_last_tick = True
        else:
            if self.was_emitting_last_tick:
                self.current_strength = max(self.current_strength - self.strength_increment, self.base_strength)
            self.was_emitting_last_tick = False

    def emit(self) -> None:
        """Overwrite the innermost slot with the current strength."""
        if not self.slots:
            raise ConfigurationError("build_channel() must run before emit()")
        self.slots[0].concentration = self.current_strength

    def update_targets(self, neuron_lookup: Mapping[str, Neuron]) -> None:
        """Add every occupied slot's contribution into its receivers' buildup.

        All receivers are resolved before anything is written, so a missing
        neuron leaves every receptor untouched.
        """
        decay = self.dispersion_kind is DispersionKind.DECAY
        deliveries = []
        for slot in self.slots:
            concentration = slot.concentration
            if concentration <= 0:
                continue
            for neuron_id, distance in slot.receivers.items():
                neuron = neuron_lookup.get(neuron_id)
                if neuron is None:
                    raise ReceiverReferenceError(neuron_id, self.gas_id)
                amount = concentration / (distance * distance) if decay else concentration
                deliveries.append((neuron, amount))
        for neuron, amount in deliveries:
            buildup = neuron.receptor.built_up_concentrations
            buildup[self.gas_id] = buildup.get(self.gas_id, 0.0) + amount

    def advance(self) -> None:
        """Shift the wavefront one slot outward; the outermost value leaves the disc."""
        carried = 0.0
        for slot in self.slots:
            slot.concentration, carried = carried, slot.concentration

    # --- duplication / inspection --------------------------------------
    def clone(self) -> "DispersionUnit":
        twin = copy.copy(self)
        twin.slots = [slot.clone() for slot in self.slots]
        return twin

    def concentrations(self) -> List[float]:
        return [slot.concentration for slot in self.slots]

    def receiver_ids(self) -> List[str]:
        return [neuron_id for slot in self.slots for neuron_id in slot.receivers]

    def slot_of(self, neuron_id: str) -> Optional[int]:
        for index, slot in enumerate(self.slots):
            if neuron_id in slot.receivers:
                return index
        return None

    def __repr__(self) -> str:
        return (
            f"DispersionUnit(gas_id={self.gas_id!r}, emission_radius={self.emission_radius!r}, "
            f"propagation_speed={self.propagation_speed!r}, kind={self.dispersion_kind.value}, "
            f"strength={self.current_strength!r}, slots={len(self.slots)})"
        )


def _check_geometry(emission_radius: float, propagation_speed: float) -> None:
    if not (emission_radius > 0 and math.isfinite(emission_radius)):
        raise ConfigurationError(f"emission_radius must be finite and > 0, got {emission_radius}")
    if not (propagation_speed > 0 and math.isfinite(propagation_speed)):
        raise ConfigurationError(f"propagation_speed must be finite and > 0, got {propagation_speed}")


__all__ = ["DispersionSlot", "DispersionUnit", "UNNAMED_GAS"]
