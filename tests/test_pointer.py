import pytest
from hypothesis import given
from hypothesis import strategies as st

from llhdsim.pointer import (
    pointer_width,
    read_pointer,
    read_pointer_slice,
    write_pointer,
    write_pointer_select,
    write_pointer_slice,
)
from llhdsim.state import (
    Field,
    SignalRef,
    Slice,
    TargetKind,
    ValuePointer,
    ValueSlice,
    ValueTarget,
)
from llhdsim.value import (
    ArrayType,
    ArrayValue,
    IntType,
    IntValue,
    PointerType,
    SignalType,
    StructType,
    StructValue,
)

SIG_A = ValueTarget(TargetKind.SIGNAL, SignalRef(0))
SIG_B = ValueTarget(TargetKind.SIGNAL, SignalRef(1))


def resolver(values):
    return values.__getitem__


def test_pointer_width_int_and_array():
    assert pointer_width(IntType(8)) == 8
    assert pointer_width(ArrayType(4, IntType(1))) == 4


def test_pointer_width_looks_through_signal_and_pointer():
    assert pointer_width(SignalType(IntType(12))) == 12
    assert pointer_width(PointerType(ArrayType(3, IntType(2)))) == 3


def test_pointer_width_struct_is_zero():
    assert pointer_width(StructType((IntType(1), IntType(2)))) == 0


def test_pointer_width_rejects_nested_signal():
    with pytest.raises(TypeError):
        pointer_width(SignalType(SignalType(IntType(1))))


def test_read_whole_int():
    value = IntValue(8, 0xAB)
    ptr = ValuePointer([ValueSlice(SIG_A, (), 8)])
    assert read_pointer(IntType(8), ptr, resolver({SIG_A: value})) == value


def test_read_slice_matches_extract_slice():
    value = IntValue(8, 0xAB)
    s = ValueSlice(SIG_A, (Slice(4, 4),), 4)
    assert read_pointer_slice(s, resolver({SIG_A: value})) == value.extract_slice(4, 4)


def test_read_field_of_struct():
    value = StructValue([IntValue(1, 1), IntValue(4, 9)])
    s = ValueSlice(SIG_A, (Field(1),), 4)
    assert read_pointer_slice(s, resolver({SIG_A: value})) == IntValue(4, 9)


def test_read_nested_field_then_slice():
    value = ArrayValue([IntValue(8, 0x12), IntValue(8, 0x34)])
    s = ValueSlice(SIG_A, (Field(1), Slice(0, 4)), 4)
    assert read_pointer_slice(s, resolver({SIG_A: value})) == IntValue(
        8, 0x34
    ).extract_slice(0, 4)


def test_read_concatenates_int_slices_low_first():
    a = IntValue(8, 0x5C)
    b = IntValue(8, 0xE1)
    ptr = ValuePointer(
        [
            ValueSlice(SIG_A, (Slice(0, 4),), 4),
            ValueSlice(SIG_B, (Slice(4, 4),), 4),
        ]
    )
    result = read_pointer(IntType(8), ptr, resolver({SIG_A: a, SIG_B: b}))
    assert result.extract_slice(0, 4) == a.extract_slice(0, 4)
    assert result.extract_slice(4, 4) == b.extract_slice(4, 4)


def test_read_concatenates_array_slices():
    a = ArrayValue([IntValue(1, 0), IntValue(1, 1)])
    b = ArrayValue([IntValue(1, 1), IntValue(1, 1), IntValue(1, 0)])
    ptr = ValuePointer([ValueSlice(SIG_A, (), 2), ValueSlice(SIG_B, (), 3)])
    result = read_pointer(ArrayType(5, IntType(1)), ptr, resolver({SIG_A: a, SIG_B: b}))
    assert result.elements == a.elements + b.elements


def test_read_width_mismatch_raises():
    ptr = ValuePointer([ValueSlice(SIG_A, (Slice(0, 4),), 4)])
    with pytest.raises(ValueError):
        read_pointer(IntType(8), ptr, resolver({SIG_A: IntValue(8, 0)}))


def test_read_multi_slice_struct_raises():
    ty = StructType((IntType(1),))
    ptr = ValuePointer([ValueSlice(SIG_A, (), 0), ValueSlice(SIG_B, (), 0)])
    values = {SIG_A: StructValue([IntValue(1, 0)]), SIG_B: StructValue([IntValue(1, 1)])}
    with pytest.raises(ValueError):
        read_pointer(ty, ptr, resolver(values))


def test_read_single_struct_slice_returns_value():
    value = StructValue([IntValue(1, 1)])
    ptr = ValuePointer([ValueSlice(SIG_A, (), 0)])
    assert read_pointer(StructType((IntType(1),)), ptr, resolver({SIG_A: value})) == value


def test_read_field_on_int_raises():
    s = ValueSlice(SIG_A, (Field(0),), 1)
    with pytest.raises(TypeError):
        read_pointer_slice(s, resolver({SIG_A: IntValue(4, 3)}))


def test_read_slice_on_struct_raises():
    s = ValueSlice(SIG_A, (Slice(0, 1),), 1)
    with pytest.raises(TypeError):
        read_pointer_slice(s, resolver({SIG_A: StructValue([IntValue(1, 0)])}))


def test_write_select_empty_replaces():
    assert write_pointer_select((), IntValue(4, 1), IntValue(4, 7)) == IntValue(4, 7)


def test_write_select_does_not_mutate_input():
    original = IntValue(8, 0)
    result = write_pointer_select((Slice(0, 4),), original, IntValue(4, 15))
    assert original == IntValue(8, 0)
    assert result.extract_slice(0, 4) == IntValue(4, 15)
    assert result.extract_slice(4, 4) == IntValue(4, 0)


def test_write_select_struct_field():
    into = StructValue([IntValue(1, 0), IntValue(2, 0)])
    result = write_pointer_select((Field(1),), into, IntValue(2, 3))
    assert result == StructValue([IntValue(1, 0), IntValue(2, 3)])


def test_write_select_array_slice():
    into = ArrayValue([IntValue(1, 0)] * 4)
    new = ArrayValue([IntValue(1, 1), IntValue(1, 1)])
    result = write_pointer_select((Slice(1, 2),), into, new)
    assert result.extract_slice(1, 2) == new
    assert result.extract_field(0) == IntValue(1, 0)
    assert result.extract_field(3) == IntValue(1, 0)


def test_write_select_field_on_int_raises():
    with pytest.raises(TypeError):
        write_pointer_select((Field(0),), IntValue(4, 0), IntValue(1, 1))


def test_write_select_slice_on_struct_raises():
    with pytest.raises(TypeError):
        write_pointer_select((Slice(0, 1),), StructValue([]), IntValue(1, 1))


def test_write_pointer_slice_field_then_slice():
    into = ArrayValue([IntValue(8, 0), IntValue(8, 0)])
    s = ValueSlice(SIG_A, (Field(0), Slice(4, 4)), 4)
    result = write_pointer_slice(s, into, IntValue(4, 9))
    assert read_pointer_slice(s, resolver({SIG_A: result})) == IntValue(4, 9)
    assert result.extract_field(1) == IntValue(8, 0)


def test_write_pointer_splits_value_across_slices():
    a = IntValue(8, 0)
    b = IntValue(8, 0)
    ptr = ValuePointer(
        [
            ValueSlice(SIG_A, (Slice(0, 4),), 4),
            ValueSlice(SIG_B, (Slice(4, 4),), 4),
        ]
    )
    value = IntValue(8, 0x9D)
    new_a, new_b = write_pointer(ptr, [a, b], value)
    assert read_pointer(IntType(8), ptr, resolver({SIG_A: new_a, SIG_B: new_b})) == value
    assert a == IntValue(8, 0)


def test_write_pointer_struct_slice_takes_whole_value():
    ptr = ValuePointer([ValueSlice(SIG_A, (), 0)])
    value = StructValue([IntValue(1, 1)])
    assert write_pointer(ptr, [StructValue([IntValue(1, 0)])], value) == [value]


def test_write_pointer_unsliceable_value_raises():
    ptr = ValuePointer([ValueSlice(SIG_A, (), 4)])
    with pytest.raises(TypeError):
        write_pointer(ptr, [IntValue(4, 0)], StructValue([]))


def test_write_pointer_too_few_values_raises():
    ptr = ValuePointer([ValueSlice(SIG_A, (), 4), ValueSlice(SIG_B, (), 4)])
    with pytest.raises(ValueError):
        write_pointer(ptr, [IntValue(4, 0)], IntValue(8, 0))


@given(
    width=st.integers(min_value=1, max_value=32),
    data=st.data(),
)
def test_write_then_read_round_trip(width, data):
    original = IntValue(width, data.draw(st.integers(0, (1 << width) - 1)))
    offset = data.draw(st.integers(0, width - 1))
    length = data.draw(st.integers(1, width - offset))
    new = IntValue(length, data.draw(st.integers(0, (1 << length) - 1)))
    s = ValueSlice(SIG_A, (Slice(offset, length),), length)
    (result,) = write_pointer(ValuePointer([s]), [original], new)
    assert read_pointer_slice(s, resolver({SIG_A: result})) == new
    assert result.extract_slice(0, offset) == original.extract_slice(0, offset)
    rest = width - offset - length
    assert result.extract_slice(offset + length, rest) == original.extract_slice(
        offset + length, rest
    )