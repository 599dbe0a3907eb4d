# llhdsim

Building blocks for simulating LLHD hardware designs. The package has
arbitrary-width integer, array and struct values. It has a simulation
state with event and wake-up queues, and pointer arithmetic over values,
variables and signals. It also has tracers that write the resulting
waveforms as a readable change dump or as VCD.

## Installation

```
pip install .
```

To run the tests:

```
pip install ".[test]"
pytest
```

## Modules

- `llhdsim.value`: the types `IntType`, `ArrayType`, `StructType`,
  `SignalType` and `PointerType`, and `inner_type`, which looks through a
  signal or pointer type. The time point `TimeValue` has `after_delay`
  and `next_delta`. The values are `IntValue`, `ArrayValue` and
  `StructValue`, and `None` stands for void. The module also has
  `is_zero`, `is_one` and `format_value`. The `Opcode` enum is used by
  the operator helpers `unary_op`, `binary_op` and `compare_op`.
- `llhdsim.state`: `State` has a signal table and an event queue
  (`schedule_events`, `take_next_events`). It has a wake-up queue
  (`schedule_timed`, `take_next_timed`) and `next_time`. The module also
  has `Signal`, `SignalRef`, `InstanceRef`, `Scope`, `Event` and
  `TimedInstance`. The pointer structures are `ValuePointer`,
  `ValueSlice`, `ValueTarget` with `TargetKind`, and the selections
  `Field` and `Slice`.
- `llhdsim.pointer`: `pointer_width`, `read_pointer`,
  `read_pointer_slice`, `write_pointer`, `write_pointer_slice` and
  `write_pointer_select`. The write functions return updated values and
  leave their inputs unchanged.
- `llhdsim.shift`: `exec_shift` and `exec_insext`. They build the
  pointers that shift, insert and extract operations read or write
  through.
- `llhdsim.tracer`: the `Tracer` base class, with `init`, `step` and
  `finish` hooks, and `NullTracer`.
- `llhdsim.dump`: `DumpTracer`, a readable change dump.
- `llhdsim.vcd`: `VcdTracer`, which writes Value Change Dump output.

## Integer arithmetic

```python
from llhdsim.value import IntValue, Opcode, binary_op, compare_op

a = IntValue.from_unsigned(8, 200)
b = IntValue.from_unsigned(8, 100)
print(binary_op(Opcode.ADD, a, b))   # i8 44
print(compare_op(Opcode.SLT, a, b))  # i1 1  (200 is -56 as a signed i8)
```

Results wrap modulo 2**width. Signed operations read the top bit as the
sign, and signed division truncates toward zero. Comparisons return a
one-bit `IntValue`.

## Tracing

A tracer receives `init(state)` once and `step(state, changed)` after
each time step. It receives `finish(state)` at the end.

```python
import io

from llhdsim.dump import DumpTracer
from llhdsim.state import Scope, State
from llhdsim.value import IntType, IntValue, SignalType

state = State(scope=Scope("@top"))
clk = state.alloc_signal(SignalType(IntType(1)), IntValue(1, 0))
state.scope.add_probe(clk, "clk")

out = io.StringIO()
tracer = DumpTracer(out)
tracer.init(state)
state[clk].set_value(IntValue(1, 1))
tracer.step(state, {clk})
tracer.finish(state)
print(out.getvalue())
# 0ps 0d 0e
#   top/clk = 0x1
```

`DumpTracer` names each signal by its scope path. The first character of
each scope name is dropped. Integers are written in hexadecimal, and
void and time values are left blank.

`VcdTracer(writer, tool_version="0.1.0")` writes a VCD header with a 1 ps
timescale and declares one wire for each integer leaf of each probed
signal. Array elements are named `name[i]` and struct fields `name.i`.
Changes are gathered and written each time the physical time advances,
and again at `finish`. Probed signals must have a `SignalType`.

## What the package does not do

The package does not read or parse design files, and it does not execute
instructions. It has no engine that steps processes and entities, and no
builder that sets up the signals and instance hierarchy from a design.
It has no command-line program. The caller fills in the `State`, moves
events and wake-ups through its queues, updates signals, and calls the
tracers.