"""Values, simulation state, pointer operations and waveform tracers for LLHD designs."""

__version__ = "0.1.0"

__all__ = ["value", "state", "pointer", "shift", "tracer", "dump", "vcd"]