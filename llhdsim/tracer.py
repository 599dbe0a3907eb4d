"""Hooks through which a running simulation reports its trace."""

from __future__ import annotations

from typing import AbstractSet

from llhdsim.state import SignalRef, State


class Tracer:
    """Receives the simulation trace as it is generated.

    Each hook does nothing unless a subclass overrides it.
    """

    def init(self, state: State) -> None:
        """Called once at the beginning of the simulation."""

    def step(self, state: State, changed: AbstractSet[SignalRef]) -> None:
        """Called by the engine after each time step with the changed signals."""

    def finish(self, state: State) -> None:
        """Called once at the end of the simulation."""


class NullTracer(Tracer):
    """A tracer that discards the trace."""