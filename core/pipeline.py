"""Phase ordering for the gas tick loop."""

from __future__ import annotations

from typing import Any, Callable, Dict, Iterable, Tuple

# Each phase runs across every unit before the next one starts. Receptors are
# decayed before any unit writes and read only after every unit has written.
PIPELINE_ORDER: Tuple[str, ...] = (
    "pre_tick",
    "adapt_strength",
    "emit",
    "update_targets",
    "advance",
    "log",
)

# Duck-typed context keeps this module free of Engine imports.
Step = Callable[[Any], None]


class Pipeline:
    """Runs named steps in a fixed order; missing handlers are skipped."""

    def __init__(self, handlers: Dict[str, Step], order: Iterable[str] = PIPELINE_ORDER) -> None:
        unknown = set(handlers) - set(order)
        if unknown:
            raise ValueError(f"handlers for phases not in the order: {sorted(unknown)}")
        self.handlers = handlers
        self.order = tuple(order)

    def run(self, context: Any) -> None:
        for name in self.order:
            handler = self.handlers.get(name)
            if handler:
                handler(context)


__all__ = ["PIPELINE_ORDER", "Pipeline", "Step"]
