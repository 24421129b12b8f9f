from __future__ import annotations

import argparse
import json
from pathlib import Path
from typing import Any, Dict, Iterable, List

from core.engine import Engine
from core.network import GasNetwork
from core.rng import RNG, RNGStream
from experiments.config import ExperimentConfig
from experiments.layout import build_network
from metrics.hash import RunHash
from metrics.logger import JsonlLogger
from metrics.schema import SCHEMA_VERSION, TickData


def parse_args() -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Headless GasNet dispersion run")
    parser.add_argument("--config", type=str, help="Path to JSON experiment config")
    parser.add_argument("--seed", type=int, help="Override the config seed")
    parser.add_argument("--ticks", type=int, default=200)
    parser.add_argument("--out", type=str, required=False)
    return parser.parse_args()


def random_activation(stream: RNGStream, neuron_ids: Iterable[str], rate: float):
    """Activation schedule firing each neuron independently with probability ``rate``."""
    ids = sorted(neuron_ids)

    def activation(tick: int) -> List[str]:
        return [nid for nid in ids if stream.bernoulli(rate)]

    return activation


def summarize(network: GasNetwork, trace: List[TickData], run_hash: str) -> Dict[str, Any]:
    gas_ids = sorted(network.gases)
    mean_total = {
        gas_id: (sum(t.total_buildup.get(gas_id, 0.0) for t in trace) / len(trace)) if trace else 0.0
        for gas_id in gas_ids
    }
    peak_strength = max((max(t.unit_strengths.values(), default=0.0) for t in trace), default=0.0)
    return {
        "neurons": len(network),
        "units": sum(1 for _ in network.iter_units()),
        "gases": gas_ids,
        "ticks_run": len(trace),
        "mean_total_buildup": mean_total,
        "peak_strength": peak_strength,
        "schema_version": SCHEMA_VERSION,
        "run_hash": run_hash,
    }


def run(config: ExperimentConfig, ticks: int, outdir: Path) -> Dict[str, Any]:
    rng = RNG(seed=config.seed)
    network = build_network(config, rng)
    engine = Engine(network, receptor_retention=config.receptor_retention)
    activation = random_activation(rng.stream("activation"), network.neurons, config.activation_rate)

    outdir.mkdir(parents=True, exist_ok=True)
    rh = RunHash()
    trace: List[TickData] = []
    with JsonlLogger(outdir / "ticks.jsonl") as logger:
        for _ in range(ticks):
            tick = engine.step(activation(engine.tick + 1))
            logger.write_tick(tick)
            rh.update(tick)
            trace.append(tick)

    summary = summarize(network, trace, rh.hexdigest())
    summary.update({"seed": config.seed, "ticks_requested": ticks, "config": config.to_dict()})
    (outdir / "summary.json").write_text(json.dumps(summary, sort_keys=True, separators=(",", ":")))
    return summary


def main() -> None:
    args = parse_args()
    config = ExperimentConfig.from_json(args.config) if args.config else ExperimentConfig()
    if args.seed is not None:
        config = config.with_seed(args.seed)
    outdir = Path(args.out) if args.out else Path(f"runs/gasnet_{config.seed}")
    run(config, args.ticks, outdir)


if __name__ == "__main__":
    main()
