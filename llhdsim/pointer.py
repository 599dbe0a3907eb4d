"""Reading and writing values through pointers made of slices and selections."""

from __future__ import annotations

import copy
from typing import Callable, Sequence

from llhdsim.state import Field, Slice, ValuePointer, ValueSlice, ValueTarget
from llhdsim.value import (
    ArrayType,
    ArrayValue,
    IntType,
    IntValue,
    StructType,
    StructValue,
    Type,
    Value,
    format_value,
    inner_type,
)

ResolveTarget = Callable[[ValueTarget], Value]


def pointer_width(ty: Type) -> int:
    """Width of a value of ``ty`` for pointer operations.

    Signal and pointer types are looked through. Integers yield their bit
    width, arrays their length, and structs 0.
    """
    ty = inner_type(ty)
    if isinstance(ty, IntType):
        return ty.width
    if isinstance(ty, ArrayType):
        return ty.length
    if isinstance(ty, StructType):
        return 0
    raise TypeError(f"{ty} has no pointer width")


def read_pointer(ty: Type, ptr: ValuePointer, resolve_target: ResolveTarget) -> Value:
    """Read the value a pointer refers to, concatenating its slices.

    ``ty`` is the type of the result and ``resolve_target`` maps each pointer
    target to its current value.
    """
    results = [(read_pointer_slice(s, resolve_target), s.width) for s in ptr.slices]

    if isinstance(ty, IntType):
        value = IntValue(ty.width, 0)
        offset = 0
        for result, width in results:
            if not isinstance(result, IntValue):
                raise TypeError(f"{format_value(result)} is not an integer")
            value.insert_slice(offset, width, result)
            offset += width
        if offset != ty.width:
            raise ValueError(
                f"pointer covers {offset} bits but the result has {ty.width}"
            )
        return value

    if isinstance(ty, ArrayType):
        elements: list = []
        for result, _ in results:
            if not isinstance(result, ArrayValue):
                raise TypeError(f"{format_value(result)} is not an array")
            elements.extend(result.elements)
        if len(elements) != ty.length:
            raise ValueError(
                f"pointer covers {len(elements)} elements but the result has "
                f"{ty.length}"
            )
        return ArrayValue(elements)

    if len(results) == 1:
        return results[0][0]
    raise ValueError(f"multi-slice concat on {ty}")


def read_pointer_slice(ptr_slice: ValueSlice, resolve_target: ResolveTarget) -> Value:
    """Read the part of a target value that one pointer slice selects."""
    value = resolve_target(ptr_slice.target)
    for select in ptr_slice.select:
        if isinstance(select, Field):
            if not isinstance(value, (ArrayValue, StructValue)):
                raise TypeError(
                    f"access field {select.index} in {format_value(value)} "
                    f"({ptr_slice.target})"
                )
            value = value.extract_field(select.index)
        elif isinstance(select, Slice):
            if not isinstance(value, (IntValue, ArrayValue)):
                raise TypeError(
                    f"access slice {select.offset},{select.length} in "
                    f"{format_value(value)} ({ptr_slice.target})"
                )
            value = value.extract_slice(select.offset, select.length)
        else:
            raise TypeError(f"unknown selection {select!r}")
    return value


def write_pointer(ptr: ValuePointer, into: Sequence[Value], value: Value) -> list:
    """Write ``value`` through a pointer.

    ``into`` holds the current value of each slice's target, in slice order.
    Returns the updated values in the same order; the inputs are not modified.
    """
    if len(into) < len(ptr.slices):
        raise ValueError(
            f"pointer has {len(ptr.slices)} slices but only {len(into)} values given"
        )
    result = list(into)
    for i, (offset, s) in enumerate(ptr.offset_slices()):
        if s.width != 0:
            if not isinstance(value, (IntValue, ArrayValue)):
                raise TypeError(
                    f"cannot slice {format_value(value)} into {offset},{s.width} "
                    f"for write to pointer slice {s}"
                )
            subvalue: Value = value.extract_slice(offset, s.width)
        else:
            subvalue = copy.deepcopy(value)
        result[i] = write_pointer_slice(s, result[i], subvalue)
    return result


def write_pointer_slice(ptr_slice: ValueSlice, into: Value, value: Value) -> Value:
    """Write ``value`` into ``into`` through one pointer slice; return the result."""
    return write_pointer_select(ptr_slice.select, into, value)


def write_pointer_select(select: Sequence, into: Value, value: Value) -> Value:
    """Apply a chain of selections to write ``value`` into ``into``.

    Returns the updated value; ``into`` itself is left unchanged.
    """
    if not select:
        return value
    first, rest = select[0], select[1:]
    into = copy.deepcopy(into)

    if isinstance(first, Field):
        if not isinstance(into, (ArrayValue, StructValue)):
            raise TypeError(f"access field {first.index} in {format_value(into)}")
        sub = into.extract_field(first.index)
        into.insert_field(first.index, write_pointer_select(rest, sub, value))
        return into

    if isinstance(first, Slice):
        if isinstance(into, IntValue):
            sub = into.extract_slice(first.offset, first.length)
            new = write_pointer_select(rest, sub, value)
            if not isinstance(new, IntValue):
                raise TypeError(f"{format_value(new)} is not an integer")
            into.insert_slice(first.offset, first.length, new)
            return into
        if isinstance(into, ArrayValue):
            sub = into.extract_slice(first.offset, first.length)
            new = write_pointer_select(rest, sub, value)
            if not isinstance(new, ArrayValue):
                raise TypeError(f"{format_value(new)} is not an array")
            into.insert_slice(first.offset, first.length, new)
            return into
        raise TypeError(
            f"access slice {first.offset},{first.length} in {format_value(into)}"
        )

    raise TypeError(f"unknown selection {first!r}")