"""sha256 fingerprints of ticks and whole runs."""

from __future__ import annotations

import hashlib
from typing import Any, Iterable, Mapping, Union

from .logger import canonical_line, tick_payload
from .schema import TickData

TickLike = Union[TickData, Mapping[str, Any]]


def tick_hash(tick: TickLike) -> str:
    canonical = canonical_line(tick_payload(tick))
    return hashlib.sha256(canonical.encode("utf-8")).hexdigest()


class RunHash:
    """Chains per-tick digests into one run digest."""

    def __init__(self) -> None:
        self._hasher = hashlib.sha256()
        self.ticks = 0

    def update(self, tick: TickLike) -> str:
        digest = tick_hash(tick)
        self._hasher.update(digest.encode("utf-8"))
        self.ticks += 1
        return digest

    def hexdigest(self) -> str:
        return self._hasher.hexdigest()


def run_hash(ticks: Iterable[TickLike]) -> str:
    rh = RunHash()
    for tick in ticks:
        rh.update(tick)
    return rh.hexdigest()


__all__ = ["RunHash", "run_hash", "tick_hash"]
