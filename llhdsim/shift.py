"""Pointer arithmetic for shifts and for field and slice insertion or extraction.

These operations only rearrange pointers. The actual values are computed
when a pointer is read or written.
"""

from __future__ import annotations

import dataclasses
from typing import Iterator, Sequence

from llhdsim.state import Field, Slice, ValuePointer, ValueSlice
from llhdsim.value import (
    ArrayType,
    IntType,
    IntValue,
    Opcode,
    StructType,
    Type,
    Value,
    format_value,
    inner_type,
)


def _narrow(s: ValueSlice, offset: int, length: int) -> ValueSlice | None:
    """Restrict a slice to the bits or elements ``[offset, offset + length)``.

    The bounds are relative to the start of the slice and are clamped to its
    width. Returns None if nothing of the slice remains.
    """

    def clamp(x: int) -> int:
        return max(0, min(s.width, x))

    actual_off = clamp(offset)
    actual_end = clamp(offset + length)
    actual_len = actual_end - actual_off
    if actual_off == 0 and actual_len == s.width:
        return s
    if actual_len == 0:
        return None
    return dataclasses.replace(
        s,
        width=actual_len,
        select=s.select + (Slice(actual_off, actual_len),),
    )


def _select_range(
    ptr: ValuePointer, offset: int, length: int
) -> Iterator[ValueSlice]:
    """Yield the parts of ``ptr`` that fall within ``[offset, offset + length)``."""
    for slice_offset, s in ptr.offset_slices():
        narrowed = _narrow(s, offset - slice_offset, length)
        if narrowed is not None:
            yield narrowed


def exec_shift(
    op: Opcode, base: ValuePointer, hidden: ValuePointer, amount: Value
) -> ValuePointer:
    """Shift ``base`` by ``amount``, filling the vacated part from ``hidden``.

    The shift amount is clamped to the width of ``hidden``. A left shift
    fills the low end with the top of ``hidden``; a right shift fills the
    high end with the bottom of ``hidden``.
    """
    if not isinstance(amount, IntValue):
        raise TypeError(f"shift amount {format_value(amount)} is not an integer")
    shift = min(hidden.width(), amount.value)

    base_len = base.width() - shift
    hidden_len = shift

    if op is Opcode.SHL:
        order = [(hidden, hidden.width() - shift, hidden_len), (base, 0, base_len)]
    elif op is Opcode.SHR:
        order = [(base, shift, base_len), (hidden, 0, hidden_len)]
    else:
        raise ValueError(f"{op} is not a shift op")

    return ValuePointer(
        [s for ptr, off, length in order for s in _select_range(ptr, off, length)]
    )


def _field_width(ty: Type) -> int:
    if isinstance(ty, IntType):
        return ty.width
    if isinstance(ty, ArrayType):
        return ty.length
    return 0


def exec_insext(
    op: Opcode, target_ty: Type, target: ValuePointer, imms: Sequence[int]
) -> ValuePointer:
    """Narrow ``target`` to the field or slice an insert or extract accesses.

    For field accesses ``imms`` holds the field index; for slice accesses it
    holds the offset and the length.
    """
    if op in (Opcode.INS_FIELD, Opcode.EXT_FIELD):
        index = imms[0]
        for offset, s in target.offset_slices():
            # A struct slice always matches; otherwise the index must fall
            # within the slice.
            if s.width == 0 or offset <= index < offset + s.width:
                ty = inner_type(target_ty)
                if isinstance(ty, ArrayType):
                    field_ty = ty.element
                elif isinstance(ty, StructType):
                    field_ty = ty.fields[index]
                else:
                    raise TypeError(f"cannot field access into {ty}")
                narrowed = dataclasses.replace(
                    s,
                    width=_field_width(field_ty),
                    select=s.select + (Field(index - offset),),
                )
                return ValuePointer([narrowed])
        raise IndexError(f"field {index} out of bounds in {target}")

    if op in (Opcode.INS_SLICE, Opcode.EXT_SLICE):
        offset, length = imms[0], imms[1]
        return ValuePointer(list(_select_range(target, offset, length)))

    raise ValueError(f"{op} is not an insert/extract op")