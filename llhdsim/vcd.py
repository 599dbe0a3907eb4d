"""A Value Change Dump (VCD) tracer."""

from __future__ import annotations

import copy
import math
from fractions import Fraction
from typing import AbstractSet, TextIO

from llhdsim.state import Scope, SignalRef, State
from llhdsim.tracer import Tracer
from llhdsim.value import (
    ArrayType,
    ArrayValue,
    IntType,
    IntValue,
    SignalType,
    StructType,
    StructValue,
    Type,
    Value,
)

_PRECISION = 10**12  # picoseconds


def _abbreviation(index: int) -> str:
    chars = []
    while True:
        chars.append(chr(33 + index % 94))
        index //= 94
        if index == 0:
            return "".join(chars)


class VcdTracer(Tracer):
    """Writes the simulation trace as VCD with picosecond resolution."""

    def __init__(self, writer: TextIO, tool_version: str = "0.1.0") -> None:
        self.writer = writer
        self.tool_version = tool_version
        self.abbrevs: dict[SignalRef, list[tuple[str, str, int]]] = {}
        self.time = Fraction(0)
        self.pending: dict[SignalRef, Value] = {}
        self._next_index = 0

    def _flush(self) -> None:
        """Write all changes gathered since the last flush, then clear them."""
        self.writer.write(f"#{math.trunc(self.time * _PRECISION)}\n")
        pending, self.pending = self.pending, {}
        for signal in sorted(pending):
            for abbrev, _, offset in self.abbrevs.get(signal, ()):
                self._flush_signal(offset, pending[signal], abbrev)

    def _flush_signal(self, offset: int, value: Value, abbrev: str) -> None:
        if isinstance(value, IntValue):
            if offset != 0:
                raise ValueError(f"integer value reached with leftover offset {offset}")
            self.writer.write(f"b{value.value:b} {abbrev}\n")
        elif isinstance(value, (ArrayValue, StructValue)):
            items = value.elements if isinstance(value, ArrayValue) else value.fields
            self._flush_signal(offset // len(items), items[offset % len(items)], abbrev)
        # Void and time values have no VCD representation.

    def _prepare_scope(self, state: State, scope: Scope) -> None:
        self.writer.write(f"$scope module {scope.name.replace('.', '_')} $end\n")
        for sigref in sorted(scope.probes):
            ty = state[sigref].ty
            if not isinstance(ty, SignalType):
                raise TypeError(f"probed signal {sigref} has non-signal type {ty}")
            for name in scope.probes[sigref]:
                self._prepare_signal(sigref, ty.inner, name, 0, 1)
        for subscope in scope.subscopes:
            self._prepare_scope(state, subscope)
        self.writer.write("$upscope $end\n")

    def _prepare_signal(
        self, sigref: SignalRef, ty: Type, name: str, offset: int, stride: int
    ) -> None:
        if isinstance(ty, IntType):
            abbrev = _abbreviation(self._next_index)
            self._next_index += 1
            self.writer.write(f"$var wire {ty.width} {abbrev} {name} $end\n")
            self.abbrevs.setdefault(sigref, []).append((abbrev, name, offset))
        elif isinstance(ty, ArrayType):
            for i in range(ty.length):
                self._prepare_signal(
                    sigref,
                    ty.element,
                    f"{name}[{i}]",
                    offset + i * stride,
                    stride * ty.length,
                )
        elif isinstance(ty, StructType):
            for i, subty in enumerate(ty.fields):
                self._prepare_signal(
                    sigref,
                    subty,
                    f"{name}.{i}",
                    offset + i * stride,
                    stride * len(ty.fields),
                )
        else:
            raise TypeError(f"signal of type {ty} not supported in VCD")

    def init(self, state: State) -> None:
        self.writer.write(f"$version\nllhd-sim {self.tool_version}\n$end\n")
        self.writer.write("$timescale 1ps $end\n")
        self._prepare_scope(state, state.scope)
        self.writer.write("$enddefinitions $end\n")

        self.writer.write("$dumpvars\n")
        for signal in sorted(state.probes):
            for abbrev, _, offset in self.abbrevs.get(signal, ()):
                self._flush_signal(offset, state[signal].value, abbrev)
        self.writer.write("$end\n")

    def step(self, state: State, changed: AbstractSet[SignalRef]) -> None:
        if self.time != state.time.time:
            self._flush()
            self.time = state.time.time
        for signal in changed:
            self.pending[signal] = copy.deepcopy(state[signal].value)

    def finish(self, state: State) -> None:
        self._flush()