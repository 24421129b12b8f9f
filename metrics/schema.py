"""Canonical per-tick record produced by the gas engine."""

from __future__ import annotations

from dataclasses import dataclass, field, fields
from typing import Any, Dict, List

SCHEMA_VERSION = "1.0.0"


def unit_key(source_id: str, gas_id: str) -> str:
    return f"{source_id}/{gas_id}"


@dataclass
class TickData:
    """One tick of a network run, as logged and hashed."""

    schema_version: str = SCHEMA_VERSION
    tick: int = 0
    active_sources: List[str] = field(default_factory=list)
    # Emission side, keyed by unit_key()
    unit_strengths: Dict[str, float] = field(default_factory=dict)
    emitting_units: int = 0
    occupied_slots: int = 0
    # Receiver side, read after every unit has written this tick
    buildup: Dict[str, Dict[str, float]] = field(default_factory=dict)
    total_buildup: Dict[str, float] = field(default_factory=dict)

    def to_ordered_dict(self) -> Dict[str, Any]:
        """Plain dict in field order for deterministic serialization."""
        return {f.name: getattr(self, f.name) for f in fields(self)}
