"""Values, types and time points that a design carries during simulation."""

from __future__ import annotations

import copy
import enum
from dataclasses import dataclass, field
from fractions import Fraction
from typing import Callable, Union


class Opcode(enum.Enum):
    """Instruction opcodes understood by the simulator."""

    CONST_INT = "const"
    CONST_TIME = "const.time"
    ARRAY_UNIFORM = "array.uniform"
    ARRAY = "array"
    STRUCT = "struct"
    ALIAS = "alias"
    BR = "br"
    BR_COND = "br.cond"
    WAIT = "wait"
    WAIT_TIME = "wait.time"
    VAR = "var"
    LD = "ld"
    ST = "st"
    SIG = "sig"
    PRB = "prb"
    DRV = "drv"
    NOT = "not"
    NEG = "neg"
    ADD = "add"
    SUB = "sub"
    AND = "and"
    OR = "or"
    XOR = "xor"
    SMUL = "smul"
    SDIV = "sdiv"
    SMOD = "smod"
    SREM = "srem"
    UMUL = "umul"
    UDIV = "udiv"
    UMOD = "umod"
    UREM = "urem"
    EQ = "eq"
    NEQ = "neq"
    SLT = "slt"
    SGT = "sgt"
    SLE = "sle"
    SGE = "sge"
    ULT = "ult"
    UGT = "ugt"
    ULE = "ule"
    UGE = "uge"
    SHL = "shl"
    SHR = "shr"
    INS_FIELD = "insf"
    INS_SLICE = "inss"
    EXT_FIELD = "extf"
    EXT_SLICE = "exts"
    MUX = "mux"
    INST = "inst"
    HALT = "halt"

    def __str__(self) -> str:
        return self.value


# ---------------------------------------------------------------------------
# Types


@dataclass(frozen=True)
class IntType:
    """An integer type of a fixed bit width."""

    width: int

    def __str__(self) -> str:
        return f"i{self.width}"


@dataclass(frozen=True)
class ArrayType:
    """An array of ``length`` elements of one type."""

    length: int
    element: "Type"

    def __str__(self) -> str:
        return f"[{self.length} x {self.element}]"


@dataclass(frozen=True)
class StructType:
    """A struct with a fixed sequence of field types."""

    fields: tuple

    def __post_init__(self) -> None:
        object.__setattr__(self, "fields", tuple(self.fields))

    def __str__(self) -> str:
        return "{" + ", ".join(str(f) for f in self.fields) + "}"


@dataclass(frozen=True)
class SignalType:
    """A signal carrying values of the inner type."""

    inner: "Type"

    def __str__(self) -> str:
        return f"{self.inner}$"


@dataclass(frozen=True)
class PointerType:
    """A pointer to a variable of the inner type."""

    inner: "Type"

    def __str__(self) -> str:
        return f"{self.inner}*"


Type = Union[IntType, ArrayType, StructType, SignalType, PointerType]


def inner_type(ty: Type) -> Type:
    """Strip one level of signal or pointer from a type."""
    if isinstance(ty, (SignalType, PointerType)):
        return ty.inner
    return ty


# ---------------------------------------------------------------------------
# Time

_TIME_UNITS = (
    ("s", 1),
    ("ms", 10**3),
    ("us", 10**6),
    ("ns", 10**9),
    ("ps", 10**12),
    ("fs", 10**15),
)


def _format_seconds(seconds: Fraction) -> str:
    if seconds == 0:
        return "0s"
    for unit, scale in _TIME_UNITS:
        scaled = seconds * scale
        if scaled.denominator == 1:
            return f"{scaled.numerator}{unit}"
    return f"{float(seconds * 10**15)}fs"


@dataclass(frozen=True, order=True)
class TimeValue:
    """A point in simulation time: physical seconds, delta and epsilon steps."""

    time: Fraction = Fraction(0)
    delta: int = 0
    epsilon: int = 0

    def __post_init__(self) -> None:
        object.__setattr__(self, "time", Fraction(self.time))

    def is_zero(self) -> bool:
        return self.time == 0 and self.delta == 0 and self.epsilon == 0

    def after_delay(self, delay: "TimeValue") -> "TimeValue":
        """Return the time at which something delayed by ``delay`` from now happens."""
        time, delta, epsilon = self.time, self.delta, self.epsilon
        if delay.time != 0:
            time += delay.time
            delta = 0
            epsilon = 0
        if delay.delta != 0:
            delta += delay.delta
            epsilon = 0
        epsilon += delay.epsilon
        return TimeValue(time, delta, epsilon)

    def next_delta(self) -> "TimeValue":
        """Return the time of the next delta step."""
        return TimeValue(self.time, self.delta + 1, 0)

    def __str__(self) -> str:
        text = _format_seconds(self.time)
        if self.delta:
            text += f" {self.delta}d"
        if self.epsilon:
            text += f" {self.epsilon}e"
        return text


# ---------------------------------------------------------------------------
# Integers


def _trunc_div(a: int, b: int) -> int:
    q = abs(a) // abs(b)
    return q if (a < 0) == (b < 0) else -q


def _trunc_rem(a: int, b: int) -> int:
    return a - b * _trunc_div(a, b)


@dataclass(order=True)
class IntValue:
    """An integer of a fixed bit width, stored as its unsigned bit pattern."""

    width: int
    value: int

    @classmethod
    def from_signed(cls, width: int, value: int) -> "IntValue":
        """Wrap a signed integer into ``width`` bits, two's complement."""
        return cls(width, value % (1 << width))

    @classmethod
    def from_unsigned(cls, width: int, value: int) -> "IntValue":
        """Truncate a non-negative integer to ``width`` bits."""
        if value < 0:
            raise ValueError(f"unsigned value {value} is negative")
        return cls(width, value % (1 << width))

    def to_signed(self) -> int:
        """Interpret the bit pattern as a two's complement number."""
        if self.width == 0:
            return 0
        if self.value & (1 << (self.width - 1)):
            return self.value - (1 << self.width)
        return self.value

    def is_zero(self) -> bool:
        return self.value == 0

    def is_one(self) -> bool:
        return self.value == 1

    def extract_slice(self, offset: int, length: int) -> "IntValue":
        """Return ``length`` bits starting at bit ``offset``."""
        return IntValue.from_unsigned(length, (self.value >> offset) % (1 << length))

    def insert_slice(self, offset: int, length: int, value: "IntValue") -> None:
        """Overwrite ``length`` bits starting at bit ``offset`` with ``value``."""
        if length != value.width:
            raise ValueError(
                f"slice length {length} does not match value width {value.width}"
            )
        mask = ((1 << length) - 1) << offset
        keep = ((1 << self.width) - 1) ^ mask
        self.value = (self.value & keep) | (value.value << offset)

    def __str__(self) -> str:
        return f"i{self.width} {self.value}"


# ---------------------------------------------------------------------------
# Aggregates


def _check_range(size: int, offset: int, length: int) -> None:
    if offset < 0 or length < 0 or offset + length > size:
        raise IndexError(f"slice {offset}+:{length} out of bounds for length {size}")


@dataclass
class ArrayValue:
    """An array of values."""

    elements: list = field(default_factory=list)

    @classmethod
    def uniform(cls, length: int, value: "Value") -> "ArrayValue":
        """Create an array of ``length`` copies of ``value``."""
        return cls([copy.deepcopy(value) for _ in range(length)])

    def _check_index(self, index: int) -> None:
        if not 0 <= index < len(self.elements):
            raise IndexError(
                f"index {index} out of bounds for length {len(self.elements)}"
            )

    def extract_field(self, index: int) -> "Value":
        self._check_index(index)
        return copy.deepcopy(self.elements[index])

    def extract_slice(self, offset: int, length: int) -> "ArrayValue":
        _check_range(len(self.elements), offset, length)
        return ArrayValue(copy.deepcopy(self.elements[offset : offset + length]))

    def insert_field(self, index: int, value: "Value") -> None:
        self._check_index(index)
        self.elements[index] = value

    def insert_slice(self, offset: int, length: int, value: "ArrayValue") -> None:
        if length != len(value.elements):
            raise ValueError(
                f"slice length {length} does not match array length "
                f"{len(value.elements)}"
            )
        _check_range(len(self.elements), offset, length)
        self.elements[offset : offset + length] = copy.deepcopy(value.elements)

    def __str__(self) -> str:
        return "[" + ", ".join(format_value(v) for v in self.elements) + "]"


@dataclass
class StructValue:
    """A struct of values."""

    fields: list = field(default_factory=list)

    def _check_index(self, index: int) -> None:
        if not 0 <= index < len(self.fields):
            raise IndexError(
                f"field {index} out of bounds for {len(self.fields)} fields"
            )

    def extract_field(self, index: int) -> "Value":
        self._check_index(index)
        return copy.deepcopy(self.fields[index])

    def insert_field(self, index: int, value: "Value") -> None:
        self._check_index(index)
        self.fields[index] = value

    def __str__(self) -> str:
        return "{" + ", ".join(format_value(v) for v in self.fields) + "}"


# A value is ``None`` (void), a time, an integer, an array or a struct.
Value = Union[None, TimeValue, IntValue, ArrayValue, StructValue]


def is_zero(value: Value) -> bool:
    """Check whether a value is zero; aggregates and void never are."""
    if isinstance(value, (TimeValue, IntValue)):
        return value.is_zero()
    return False


def is_one(value: Value) -> bool:
    """Check whether a value is the integer one."""
    if isinstance(value, IntValue):
        return value.is_one()
    return False


def format_value(value: Value) -> str:
    """Render a value for display."""
    if value is None:
        return "void"
    if isinstance(value, TimeValue):
        return f"time {value}"
    return str(value)


# ---------------------------------------------------------------------------
# Opcode implementations


def _not(arg: IntValue) -> IntValue:
    return IntValue.from_unsigned(arg.width, ((1 << arg.width) - 1) - arg.value)


def _neg(arg: IntValue) -> IntValue:
    return IntValue.from_unsigned(arg.width, (1 << arg.width) - arg.value)


_UNARY: dict[Opcode, Callable[[IntValue], IntValue]] = {
    Opcode.NOT: _not,
    Opcode.NEG: _neg,
}


def _unsigned(fn: Callable[[int, int], int]) -> Callable[[IntValue, IntValue], IntValue]:
    return lambda a, b: IntValue.from_unsigned(a.width, fn(a.value, b.value))


def _signed(fn: Callable[[int, int], int]) -> Callable[[IntValue, IntValue], IntValue]:
    return lambda a, b: IntValue.from_signed(a.width, fn(a.to_signed(), b.to_signed()))


_BINARY: dict[Opcode, Callable[[IntValue, IntValue], IntValue]] = {
    Opcode.ADD: _unsigned(lambda a, b: a + b),
    Opcode.SUB: _signed(lambda a, b: a - b),
    Opcode.AND: _unsigned(lambda a, b: a & b),
    Opcode.OR: _unsigned(lambda a, b: a | b),
    Opcode.XOR: _unsigned(lambda a, b: a ^ b),
    Opcode.UMUL: _unsigned(lambda a, b: a * b),
    Opcode.UDIV: _unsigned(lambda a, b: a // b),
    Opcode.UMOD: _unsigned(lambda a, b: a % b),
    Opcode.UREM: _unsigned(lambda a, b: a % b),
    Opcode.SMUL: _signed(lambda a, b: a * b),
    Opcode.SDIV: _signed(_trunc_div),
    Opcode.SMOD: _signed(_trunc_rem),
    Opcode.SREM: _signed(_trunc_rem),
}

_COMPARE: dict[Opcode, Callable[[IntValue, IntValue], bool]] = {
    Opcode.EQ: lambda a, b: a.value == b.value,
    Opcode.NEQ: lambda a, b: a.value != b.value,
    Opcode.ULT: lambda a, b: a.value < b.value,
    Opcode.UGT: lambda a, b: a.value > b.value,
    Opcode.ULE: lambda a, b: a.value <= b.value,
    Opcode.UGE: lambda a, b: a.value >= b.value,
    Opcode.SLT: lambda a, b: a.to_signed() < b.to_signed(),
    Opcode.SGT: lambda a, b: a.to_signed() > b.to_signed(),
    Opcode.SLE: lambda a, b: a.to_signed() <= b.to_signed(),
    Opcode.SGE: lambda a, b: a.to_signed() >= b.to_signed(),
}


def unary_op(op: Opcode, arg: IntValue) -> IntValue:
    """Execute a unary integer opcode."""
    try:
        fn = _UNARY[op]
    except KeyError:
        raise ValueError(f"{op} is not a unary op") from None
    return fn(arg)


def binary_op(op: Opcode, lhs: IntValue, rhs: IntValue) -> IntValue:
    """Execute a binary integer opcode; the result has the width of ``lhs``."""
    try:
        fn = _BINARY[op]
    except KeyError:
        raise ValueError(f"{op} is not a binary op") from None
    return fn(lhs, rhs)


def compare_op(op: Opcode, lhs: IntValue, rhs: IntValue) -> IntValue:
    """Execute a comparison opcode, yielding a one-bit integer."""
    try:
        fn = _COMPARE[op]
    except KeyError:
        raise ValueError(f"{op} is not a compare op") from None
    if lhs.width != rhs.width:
        raise ValueError(f"cannot compare i{lhs.width} with i{rhs.width}")
    return IntValue(1, int(fn(lhs, rhs)))