"""Seeded random streams for network layout and activation schedules.

Nothing in the dispersion engine itself is random; every stochastic choice
made around it (where neurons sit, which ones emit, which fire on a tick)
draws from a named stream here so runs replay exactly.
"""

from __future__ import annotations

import hashlib
import random
from typing import Any, Dict, Iterable, Mapping, Sequence

_SEED_MASK = (1 << 63) - 1


def stream_seed(root_seed: int, name: str, replica: int = 0) -> int:
    """Seed for stream ``name``: the first 63 bits of sha256 over root, replica and name."""
    digest = hashlib.sha256(f"{root_seed}:{replica}:{name}".encode("utf-8")).digest()
    return int.from_bytes(digest[:8], "big") & _SEED_MASK


class RNGStream:
    """Draws for one concern, e.g. ``layout`` or ``emitters:NO``."""

    def __init__(self, name: str, seed: int) -> None:
        self.name = name
        self.seed = seed
        self._gen = random.Random(seed)

    def random(self) -> float:
        return self._gen.random()

    def uniform(self, low: float, high: float) -> float:
        return self._gen.uniform(low, high)

    def bernoulli(self, p: float) -> bool:
        return self._gen.random() < p

    def choice(self, options: Sequence[Any]) -> Any:
        return self._gen.choice(options)

    def __repr__(self) -> str:
        return f"RNGStream(name={self.name!r}, seed={self.seed})"


class RNG:
    """One root seed per run; each stream name maps to its own independent generator.

    Asking for the same name twice returns the same stream, so draws continue
    where they left off. ``replica`` separates repeated runs of one config.
    """

    def __init__(self, seed: int, replica: int = 0) -> None:
        self.seed = seed
        self.replica = replica
        self._by_name: Dict[str, RNGStream] = {}

    def stream(self, name: str) -> RNGStream:
        found = self._by_name.get(name)
        if found is None:
            found = RNGStream(name, stream_seed(self.seed, name, self.replica))
            self._by_name[name] = found
        return found


def spawn_streams(seed: int, names: Iterable[str], replica: int = 0) -> Mapping[str, RNGStream]:
    rng = RNG(seed, replica)
    return {name: rng.stream(name) for name in names}


__all__ = ["RNG", "RNGStream", "spawn_streams", "stream_seed"]
