"""A human-readable change dump of the simulation, for debugging and regression tests."""

from __future__ import annotations

import math
from typing import AbstractSet, TextIO

from llhdsim.state import Scope, SignalRef, State
from llhdsim.tracer import Tracer
from llhdsim.value import ArrayValue, IntValue, StructValue, Value

_PRECISION = 10**12  # picoseconds


def _format(value: Value) -> str:
    if isinstance(value, IntValue):
        return "0x" + format(value.value, "x").zfill((value.width + 3) // 4)
    if isinstance(value, ArrayValue):
        return "[" + ", ".join(_format(v) for v in value.elements) + "]"
    if isinstance(value, StructValue):
        return "{" + ", ".join(_format(v) for v in value.fields) + "}"
    # Void and time values are not shown.
    return ""


class DumpTracer(Tracer):
    """Writes each time step and the new values of the changed signals."""

    def __init__(self, writer: TextIO) -> None:
        self.writer = writer
        self.signals: dict[SignalRef, str] = {}

    def _prepare_scope(self, scope: Scope, prefix: str) -> None:
        prefix = f"{prefix}{scope.name[1:]}/"
        for signal, names in scope.probes.items():
            for name in names:
                self.signals.setdefault(signal, prefix + name)
        for subscope in scope.subscopes:
            self._prepare_scope(subscope, prefix)

    def init(self, state: State) -> None:
        self._prepare_scope(state.scope, "")

    def step(self, state: State, changed: AbstractSet[SignalRef]) -> None:
        time = state.time
        picos = math.trunc(time.time * _PRECISION)
        self.writer.write(f"{picos}ps {time.delta}d {time.epsilon}e\n")
        for signal in sorted(changed, key=lambda s: self.signals[s]):
            self.writer.write(
                f"  {self.signals[signal]} = {_format(state[signal].value)}\n"
            )

    def finish(self, state: State) -> None:
        """Nothing remains to be written at the end."""