"""Tick log: one canonical JSON object per line.

This is the run's only log sink. Two runs with the same seed and config
produce byte-identical files, which is what ``metrics.hash`` relies on.
"""

from __future__ import annotations

import json
from dataclasses import asdict, is_dataclass
from pathlib import Path
from typing import IO, Any, Dict, Iterable, Mapping, Optional, Union

from .schema import TickData

TickLike = Union[TickData, Mapping[str, Any]]


def tick_payload(tick: TickLike) -> Dict[str, Any]:
    """Plain dict for a ``TickData``, any other dataclass instance, or a mapping."""
    if isinstance(tick, TickData):
        return dict(tick.to_ordered_dict())
    if is_dataclass(tick) and not isinstance(tick, type):
        return asdict(tick)
    if isinstance(tick, Mapping):
        return dict(tick)
    raise TypeError(f"cannot log a tick of type {type(tick).__name__}")


def canonical_line(payload: Mapping[str, Any]) -> str:
    return json.dumps(payload, sort_keys=True, separators=(",", ":"))


class JsonlLogger:
    """Truncates ``path`` on open; every written tick is flushed at once.

    Writing to a logger that was never opened opens it, so the context
    manager is optional.
    """

    def __init__(self, path: str | Path) -> None:
        self.path = Path(path)
        self.lines_written = 0
        self._out: Optional[IO[str]] = None

    @property
    def closed(self) -> bool:
        return self._out is None

    def open(self) -> None:
        if self.closed:
            self.path.parent.mkdir(parents=True, exist_ok=True)
            self._out = self.path.open("w", encoding="utf-8")

    def close(self) -> None:
        if self._out is not None:
            self._out.close()
            self._out = None

    def write_tick(self, tick: TickLike) -> None:
        line = canonical_line(tick_payload(tick))
        self.open()
        self._out.write(f"{line}\n")
        self._out.flush()
        self.lines_written += 1

    def write_all(self, ticks: Iterable[TickLike]) -> None:
        for tick in ticks:
            self.write_tick(tick)

    def __enter__(self) -> "JsonlLogger":
        self.open()
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.close()


__all__ = ["JsonlLogger", "canonical_line", "tick_payload"]
