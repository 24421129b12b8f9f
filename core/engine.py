"""Reference tick driver for a GasNetwork."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Callable, FrozenSet, Iterable, List

from core.errors import ConfigurationError
from core.network import GasNetwork
from core.pipeline import PIPELINE_ORDER, Pipeline
from metrics.schema import TickData, unit_key
from model_contracts import assert_range

Activation = Callable[[int], Iterable[str]]


@dataclass
class EngineContext:
    """Mutable tick state passed through the pipeline."""

    tick: int
    active: FrozenSet[str] = field(default_factory=frozenset)
    tick_data: TickData | None = None


class Engine:
    """Drives every unit of a network through one phase at a time.

    The engine is the owner of receptor accumulators for the run: it decays
    them by ``receptor_retention`` at the start of each tick (0 clears them),
    so the buildup logged for tick ``t`` is this tick's input plus the
    retained remainder of earlier ticks.
    """

    def __init__(self, network: GasNetwork, *, receptor_retention: float = 0.0) -> None:
        assert_range(receptor_retention, 0.0, 1.0, name="receptor_retention")
        self.network = network
        self.receptor_retention = receptor_retention
        self._tick = -1
        self.pipeline = Pipeline(
            handlers={
                "pre_tick": self._pre_tick,
                "adapt_strength": self._adapt_strength,
                "emit": self._emit,
                "update_targets": self._update_targets,
                "advance": self._advance,
                "log": self._log_tick,
            },
            order=PIPELINE_ORDER,
        )

    def _pre_tick(self, ctx: EngineContext) -> None:
        ctx.tick_data = None
        self.network.decay_buildup(self.receptor_retention)

    def _adapt_strength(self, ctx: EngineContext) -> None:
        for source_id, unit in self.network.iter_units():
            unit.adapt_strength(source_id in ctx.active)

    def _emit(self, ctx: EngineContext) -> None:
        for _, unit in self.network.iter_units():
            unit.emit()

    def _update_targets(self, ctx: EngineContext) -> None:
        lookup = self.network.neurons
        for _, unit in self.network.iter_units():
            unit.update_targets(lookup)

    def _advance(self, ctx: EngineContext) -> None:
        for _, unit in self.network.iter_units():
            unit.advance()

    def _log_tick(self, ctx: EngineContext) -> None:
        strengths = {}
        emitting = 0
        occupied = 0
        for source_id, unit in self.network.iter_units():
            strengths[unit_key(source_id, unit.gas_id)] = unit.current_strength
            emitting += int(unit.was_emitting_last_tick)
            occupied += sum(1 for c in unit.concentrations() if c > 0)
        buildup = {nid: levels for nid, levels in self.network.buildup().items() if levels}
        totals: dict[str, float] = {}
        for levels in buildup.values():
            for gas_id, level in levels.items():
                totals[gas_id] = totals.get(gas_id, 0.0) + level
        ctx.tick_data = TickData(
            tick=ctx.tick,
            active_sources=sorted(ctx.active),
            unit_strengths=strengths,
            emitting_units=emitting,
            occupied_slots=occupied,
            buildup=buildup,
            total_buildup=totals,
        )

    @property
    def tick(self) -> int:
        return self._tick

    def step(self, active_ids: Iterable[str] = ()) -> TickData:
        """Run one tick with ``active_ids`` as this tick's firing sources."""
        active = frozenset(active_ids)
        unknown = active.difference(self.network.neurons)
        if unknown:
            raise ConfigurationError(f"active ids not in the network: {sorted(unknown)}")
        self._tick += 1
        ctx = EngineContext(tick=self._tick, active=active)
        self.pipeline.run(ctx)
        if ctx.tick_data is None:
            raise RuntimeError("Pipeline failed to produce TickData")
        return ctx.tick_data

    def run(self, ticks: int, activation: Activation) -> List[TickData]:
        """Execute ``ticks`` steps, asking ``activation`` for each tick's firing set."""
        trace: List[TickData] = []
        for _ in range(ticks):
            trace.append(self.step(activation(self._tick + 1)))
        return trace


__all__ = ["Activation", "Engine", "EngineContext"]
