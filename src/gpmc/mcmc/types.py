"""
Chain Data Structures and Type Definitions.

This module contains the core data structures passed between the driver,
samplers and recorders:
- Phase: Warmup / Sampling / Done
- ChainState: Current parameters plus their log density and gradient
- Draw / DiagnosticDraw: Items handed to the sample and diagnostic recorders
- ProgressReport: Periodic progress record
- ChainResult: Summary returned by the driver
"""

from enum import Enum
from types import MappingProxyType
from typing import Any, Dict, Mapping, NamedTuple

import jax


class Phase(str, Enum):
    """Driver phase. Transitions only go WARMUP -> SAMPLING -> DONE."""
    WARMUP = 'warmup'
    SAMPLING = 'sampling'
    DONE = 'done'


class ChainState(NamedTuple):
    """
    A fully evaluated chain state.

    Samplers return a new ChainState from every transition; the driver never
    looks inside `stats`. The default `stats` is an empty read-only mapping
    shared by all states; samplers that report statistics pass their own dict.
    """
    params: jax.Array        # (n_params,)
    log_density: jax.Array   # scalar
    gradient: jax.Array      # (n_params,)
    stats: Mapping[str, Any] = MappingProxyType({})


class Draw(NamedTuple):
    """One persisted state, as seen by the sample recorder."""
    iteration: int
    phase: Phase
    params: jax.Array
    log_density: jax.Array


class DiagnosticDraw(NamedTuple):
    """Sampler internals for one persisted iteration, as seen by the diagnostic recorder."""
    iteration: int
    phase: Phase
    gradient: jax.Array
    stats: Dict[str, Any]


class ProgressReport(NamedTuple):
    phase: Phase
    iteration: int
    total: int

    @property
    def fraction(self) -> float:
        if self.total <= 0:
            return 1.0
        return self.iteration / self.total

    def format(self) -> str:
        width = len(str(self.total))
        return (f"Iteration: {self.iteration + 1:>{width}} / {self.total} "
                f"[{self.fraction:4.0%}]  ({self.phase.value.capitalize()})")


class ChainResult(NamedTuple):
    """
    Outcome of a driver run.

    Attributes:
        state: Last adopted chain state
        iterations_completed: Number of transitions performed
        cancelled: True if the callback stopped the run early
        phase: Phase at exit (DONE unless cancelled)
        wall_time: Seconds spent in the iteration loop
    """
    state: ChainState
    iterations_completed: int
    cancelled: bool
    phase: Phase
    wall_time: float
