"""
Markov-Chain Driver - Warmup and sampling loop for a single chain.

The driver sequences W warmup and S sampling transitions of a pluggable
sampler, applies thinning, persists states to recorders and reports progress:

- validate_chain_inputs: Reject bad phase/thinning settings before the loop
- run_markov_chain: Execute the loop
- sample: Top-level entry point (warmup followed by sampling)

For iteration i in [0, W + S):
    phase = WARMUP if i < W else SAMPLING
    callback(phase, i)           -> False stops the run before the transition
    state = sampler.transition   -> always adopted; failures abort the run
    persist if SAMPLING and (i - W) % T == 0, or WARMUP and save_warmup
    report progress if refresh > 0 and i % refresh == 0

With this rule the number of recorded sampling draws is ceil(S / T): the
first sampling iteration is always kept, then every T-th after it.
"""

import math
import numbers
import time
from datetime import timedelta
from typing import Callable, Optional

import jax
import jax.numpy as jnp
import jax.random as random

from ..error_handling import ChainFailure
from .model import LogDensityModel
from .recorders import Recorder
from .samplers import Sampler
from .types import ChainResult, ChainState, DiagnosticDraw, Draw, Phase, ProgressReport

import logging
logger = logging.getLogger('gpmc')

# Public API for this module
__all__ = [
    'validate_chain_inputs',
    'run_markov_chain',
    'sample',
    'num_recorded_draws',
]


def validate_chain_inputs(num_warmup: int, num_samples: int, num_thin: int, refresh: int) -> bool:
    """Validate driver settings before starting the loop."""
    errors = []

    for name, value in (('num_warmup', num_warmup), ('num_samples', num_samples),
                        ('num_thin', num_thin), ('refresh', refresh)):
        if isinstance(value, bool) or not isinstance(value, numbers.Integral):
            errors.append(f"{name} must be an integer, got {value!r}")

    if not errors:
        if num_warmup < 0:
            errors.append(f"num_warmup must be >= 0, got {num_warmup}")
        if num_samples < 0:
            errors.append(f"num_samples must be >= 0, got {num_samples}")
        if num_thin < 1:
            errors.append(f"num_thin must be >= 1, got {num_thin}")
        if refresh < 0:
            errors.append(f"refresh must be >= 0, got {refresh}")

    if errors:
        error_msg = "Chain Input Validation Failed:\n  " + "\n  ".join(errors)
        raise ValueError(error_msg)

    return True


def num_recorded_draws(num_warmup: int, num_samples: int, num_thin: int, save_warmup: bool) -> int:
    """Number of items each recorder receives for a run that is not cancelled."""
    saved_warmup = num_warmup if save_warmup else 0
    return saved_warmup + math.ceil(num_samples / num_thin)


def _is_finite_state(state: ChainState) -> bool:
    return bool(jnp.isfinite(state.log_density)) and bool(jnp.all(jnp.isfinite(state.params)))


def _should_persist(phase: Phase, iteration: int, num_warmup: int, num_thin: int, save_warmup: bool) -> bool:
    if phase is Phase.SAMPLING:
        return (iteration - num_warmup) % num_thin == 0
    return save_warmup


def run_markov_chain(
    sampler: Sampler,
    model: LogDensityModel,
    initial_state: ChainState,
    key: jax.Array,
    *,
    num_warmup: int,
    num_samples: int,
    num_thin: int = 1,
    refresh: int = 0,
    save_warmup: bool = False,
    sample_recorder: Optional[Recorder] = None,
    diagnostic_recorder: Optional[Recorder] = None,
    callback: Optional[Callable[[Phase, int], Optional[bool]]] = None,
    progress: Optional[Callable[[ProgressReport], None]] = None,
) -> ChainResult:
    """
    Run warmup followed by sampling for one chain.

    Args:
        sampler: Object with transition(state, model, key) -> ChainState
        model: Model capability passed through to the sampler
        initial_state: Fully evaluated starting state
        key: JAX PRNG key; split once per iteration
        num_warmup: Warmup iterations (W)
        num_samples: Sampling iterations (S)
        num_thin: Keep every num_thin-th sampling draw (T >= 1)
        refresh: Report progress every `refresh` iterations; 0 disables
        save_warmup: Persist every warmup state as well
        sample_recorder: Receives a Draw per persisted iteration
        diagnostic_recorder: Receives a DiagnosticDraw per persisted iteration
        callback: Called as callback(phase, i) before each transition;
                  returning False stops the run before that transition
        progress: Optional sink for ProgressReport records

    Returns:
        ChainResult with the last state and run summary

    Raises:
        ValueError: If the phase/thinning settings are invalid
        ChainFailure: If a transition raises or yields a non-finite state
    """
    validate_chain_inputs(num_warmup, num_samples, num_thin, refresh)

    total = num_warmup + num_samples
    state = initial_state
    phase = Phase.WARMUP if num_warmup > 0 else Phase.SAMPLING
    completed = 0
    cancelled = False

    logger.info("\n--- MARKOV CHAIN ---")
    logger.info(f"  Sampler: {sampler!r}  Model: {model!r}")
    logger.info(f"  Warmup: {num_warmup}  Sampling: {num_samples}  Thin: {num_thin}  "
                f"Save warmup: {save_warmup}")

    start_time = time.perf_counter()

    for i in range(total):
        phase = Phase.WARMUP if i < num_warmup else Phase.SAMPLING
        if i == num_warmup and num_warmup > 0:
            logger.info(f"  Warmup complete after {num_warmup} iterations; starting sampling")

        if callback is not None and callback(phase, i) is False:
            logger.info(f"  Run cancelled by callback before iteration {i} ({phase.value})")
            cancelled = True
            break

        if refresh > 0 and i % refresh == 0:
            report = ProgressReport(phase=phase, iteration=i, total=total)
            logger.info(f"  {report.format()}")
            if progress is not None:
                progress(report)

        key, step_key = random.split(key)
        try:
            new_state = sampler.transition(state, model, step_key)
        except Exception as e:
            logger.error(f"Transition failed at iteration {i} ({phase.value}): {e}")
            raise ChainFailure(i, phase, f"sampler transition raised {type(e).__name__}: {e}") from e

        if not isinstance(new_state, ChainState):
            logger.error(f"Sampler returned {type(new_state).__name__} at iteration {i} ({phase.value})")
            raise ChainFailure(i, phase, f"sampler returned {type(new_state).__name__}, expected ChainState")

        if not _is_finite_state(new_state):
            logger.error(f"Non-finite state at iteration {i} ({phase.value}); aborting chain")
            raise ChainFailure(i, phase, "transition produced a non-finite log density or parameters")

        state = new_state
        completed += 1

        if _should_persist(phase, i, num_warmup, num_thin, save_warmup):
            if sample_recorder is not None:
                sample_recorder.append(Draw(iteration=i, phase=phase, params=state.params,
                                            log_density=state.log_density))
            if diagnostic_recorder is not None:
                diagnostic_recorder.append(DiagnosticDraw(iteration=i, phase=phase,
                                                          gradient=state.gradient, stats=state.stats))

    wall_time = time.perf_counter() - start_time
    if not cancelled:
        phase = Phase.DONE

    logger.info(f"\n--- Chain Run Summary ---")
    logger.info(f"  Iterations: {completed} / {total}")
    logger.info(f"  Total Wall Time: {timedelta(seconds=int(wall_time))} ({wall_time:.2f}s)")

    return ChainResult(state=state, iterations_completed=completed, cancelled=cancelled,
                       phase=phase, wall_time=wall_time)


def sample(
    sampler: Sampler,
    model: LogDensityModel,
    initial_state: ChainState,
    key: jax.Array,
    num_warmup: int,
    num_samples: int,
    num_thin: int = 1,
    refresh: int = 0,
    save_warmup: bool = False,
    sample_recorder: Optional[Recorder] = None,
    diagnostic_recorder: Optional[Recorder] = None,
    callback: Optional[Callable[[Phase, int], Optional[bool]]] = None,
    progress: Optional[Callable[[ProgressReport], None]] = None,
) -> ChainResult:
    """
    Draw posterior samples: num_warmup adaptation iterations then num_samples
    sampling iterations in one run. See run_markov_chain for the arguments.
    """
    return run_markov_chain(
        sampler, model, initial_state, key,
        num_warmup=num_warmup,
        num_samples=num_samples,
        num_thin=num_thin,
        refresh=refresh,
        save_warmup=save_warmup,
        sample_recorder=sample_recorder,
        diagnostic_recorder=diagnostic_recorder,
        callback=callback,
        progress=progress,
    )
