"""Seeded construction of a random GasNet layout from an ExperimentConfig."""

from __future__ import annotations

import numpy as np

from core.network import GasNetwork
from core.receptor import Neuron
from core.rng import RNG
from experiments.config import ExperimentConfig
from model_contracts import assert_positions


def neuron_id(index: int) -> str:
    return f"n{index:03d}"


def build_network(config: ExperimentConfig, rng: RNG | None = None) -> GasNetwork:
    """Scatter neurons over a square arena and attach emitters per gas.

    Every gas gets at least one emitter so short configs still propagate.
    """
    rng = rng or RNG(seed=config.seed)
    layout = rng.stream("layout")
    half = config.arena_size / 2.0
    positions = np.array(
        [(layout.uniform(-half, half), layout.uniform(-half, half)) for _ in range(config.n_neurons)],
        dtype=np.float64,
    )
    assert_positions(positions)

    network = GasNetwork(gases=[g.to_gas() for g in config.gases])
    for index, (x, y) in enumerate(positions):
        network.add_neuron(Neuron(neuron_id(index), float(x), float(y)))

    ids = list(network.neurons)
    for gas_cfg in config.gases:
        emitters = rng.stream(f"emitters:{gas_cfg.gas_id}")
        chosen = [nid for nid in ids if emitters.bernoulli(gas_cfg.emitter_fraction)]
        if not chosen:
            chosen = [emitters.choice(ids)]
        for nid in chosen:
            network.attach_emitter(nid, gas_cfg.gas_id, gas_cfg.emission_radius, gas_cfg.initial_strength)
    return network


__all__ = ["build_network", "neuron_id"]
