"""The simulation state: signals, pointers, schedules and the design hierarchy."""

from __future__ import annotations

import enum
from dataclasses import dataclass, field
from typing import Any, Hashable, Iterable, Iterator, Union

from llhdsim.value import TimeValue, Type, Value


@dataclass(frozen=True, order=True)
class SignalRef:
    """A unique handle to a signal in a simulation state."""

    index: int

    def __str__(self) -> str:
        return f"s{self.index}"


@dataclass(frozen=True, order=True)
class InstanceRef:
    """A unique handle to a process or entity instance in a simulation."""

    index: int

    def __str__(self) -> str:
        return f"i{self.index}"


@dataclass
class Signal:
    """A signal with its type and current value."""

    ty: Type
    value: Value = None

    def set_value(self, value: Value) -> bool:
        """Change the signal's value; return whether it actually changed."""
        if self.value != value:
            self.value = value
            return True
        return False


@dataclass(frozen=True)
class Field:
    """Selection of one array element or struct field."""

    index: int

    def __str__(self) -> str:
        return f".{self.index}"


@dataclass(frozen=True)
class Slice:
    """Selection of ``length`` array elements or integer bits at ``offset``."""

    offset: int
    length: int

    def __str__(self) -> str:
        return f"[{self.offset}+:{self.length}]"


Select = Union[Field, Slice]


class TargetKind(enum.Enum):
    """What a pointer slice points into."""

    VALUE = "value"
    VARIABLE = "variable"
    SIGNAL = "signal"


@dataclass(frozen=True)
class ValueTarget:
    """A pointer target: a plain value, a variable, or a signal.

    For signals ``ref`` is a :class:`SignalRef`; for values and variables it is
    the identifier of the value within its unit.
    """

    kind: TargetKind
    ref: Hashable

    def __str__(self) -> str:
        if self.kind is TargetKind.VARIABLE:
            return f"*{self.ref}"
        if self.kind is TargetKind.SIGNAL:
            return f"${self.ref}"
        return str(self.ref)


@dataclass(frozen=True)
class ValueSlice:
    """A slice of a pointer: a target, a chain of selections, and a width.

    The width is the number of bits or elements covered, or 0 for a struct.
    """

    target: ValueTarget
    select: tuple = ()
    width: int = 0

    def __post_init__(self) -> None:
        object.__setattr__(self, "select", tuple(self.select))

    def __str__(self) -> str:
        return str(self.target) + "".join(str(s) for s in self.select)


@dataclass(frozen=True)
class ValuePointer:
    """A pointer to a whole value or to parts of several values, concatenated."""

    slices: tuple = ()

    def __post_init__(self) -> None:
        object.__setattr__(self, "slices", tuple(self.slices))

    def width(self) -> int:
        """Total width of the pointed-at value; 0 for a struct."""
        return sum(s.width for s in self.slices)

    def offset_slices(self) -> Iterator[tuple[int, ValueSlice]]:
        """Yield each slice together with its offset within the pointer."""
        offset = 0
        for s in self.slices:
            yield offset, s
            offset += s.width

    def __str__(self) -> str:
        if len(self.slices) == 1:
            return str(self.slices[0])
        return "[" + ", ".join(str(s) for s in self.slices) + "]"


@dataclass
class Event:
    """A value to be driven onto a signal pointer at a given time."""

    time: TimeValue
    signal: ValuePointer
    value: Value


@dataclass(frozen=True)
class TimedInstance:
    """A request to wake an instance once a given time is reached."""

    time: TimeValue
    inst: InstanceRef


@dataclass
class Scope:
    """A level of the design hierarchy with its own probes and subscopes."""

    name: str
    probes: dict = field(default_factory=dict)
    subscopes: list = field(default_factory=list)

    def add_subscope(self, scope: "Scope") -> None:
        self.subscopes.append(scope)

    def add_probe(self, signal: SignalRef, name: str) -> None:
        self.probes.setdefault(signal, []).append(name)


@dataclass
class State:
    """The complete state of a running simulation."""

    signals: list = field(default_factory=list)
    probes: dict = field(default_factory=dict)
    scope: Scope = field(default_factory=lambda: Scope("root"))
    insts: list = field(default_factory=list)
    time: TimeValue = field(default_factory=TimeValue)
    events: dict = field(default_factory=dict)
    timed: dict = field(default_factory=dict)

    def __getitem__(self, ref: Union[SignalRef, InstanceRef]) -> Any:
        if isinstance(ref, SignalRef):
            return self.signals[ref.index]
        if isinstance(ref, InstanceRef):
            return self.insts[ref.index]
        raise TypeError(f"cannot index state with {ref!r}")

    def alloc_signal(self, ty: Type, value: Value = None) -> SignalRef:
        """Add a new signal and return a reference to it."""
        ref = SignalRef(len(self.signals))
        self.signals.append(Signal(ty, value))
        return ref

    def _check_not_past(self, time: TimeValue) -> None:
        if time < self.time:
            raise ValueError(f"cannot schedule at {time}, which is before {self.time}")

    def schedule_events(self, events: Iterable[Event]) -> None:
        """Add events to the queue; a later event for the same pointer and time wins."""
        for event in events:
            self._check_not_past(event.time)
            self.events.setdefault(event.time, {})[event.signal] = event.value

    def schedule_timed(self, timed: Iterable[TimedInstance]) -> None:
        """Add wake-up requests to the queue."""
        for item in timed:
            self._check_not_past(item.time)
            self.timed.setdefault(item.time, set()).add(item.inst)

    def take_next_events(self) -> list[tuple[ValuePointer, Value]]:
        """Remove and return all events due at the current time."""
        return list(self.events.pop(self.time, {}).items())

    def take_next_timed(self) -> list[InstanceRef]:
        """Remove and return all instances due to wake at the current time."""
        return sorted(self.timed.pop(self.time, set()))

    def next_time(self) -> TimeValue | None:
        """Earliest time of any pending event or wake-up, or None if idle."""
        times = list(self.events) + list(self.timed)
        return min(times) if times else None