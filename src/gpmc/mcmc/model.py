"""
Model Capability - log density and gradient at a parameter vector.

A model wraps a user log-density function `fn(params)` that returns either a
LogDensityResult (from a density in gpmc.densities) or a plain scalar.
Samplers only call `evaluate` and `initial_state`.
"""

from typing import Callable, Tuple, Union

import jax
import jax.numpy as jnp

from ..densities.common import LogDensityResult
from ..error_handling import DensityValidationError
from .types import ChainState


LogDensityFn = Callable[[jax.Array], Union[LogDensityResult, jax.Array]]


class LogDensityModel:
    """
    Reentrant model built from a log-density function.

    Holds no mutable state, so one instance can be shared by chains running
    in parallel.

    Args:
        log_density_fn: fn(params) -> LogDensityResult or scalar
        name: Label used in log messages
    """

    def __init__(self, log_density_fn: LogDensityFn, name: str = 'model'):
        self.log_density_fn = log_density_fn
        self.name = name
        self._value_and_grad = jax.value_and_grad(self._split, has_aux=True)

    def _split(self, params):
        result = self.log_density_fn(params)
        if isinstance(result, LogDensityResult):
            return result.value, result.outcome
        return jnp.asarray(result), None

    def evaluate(self, params) -> Tuple[jax.Array, jax.Array]:
        """
        Log density and its gradient at params.

        Raises:
            DensityValidationError: If the wrapped density rejected its arguments
        """
        params = jnp.asarray(params)
        (log_density, outcome), gradient = self._value_and_grad(params)
        if outcome is not None and not outcome.ok:
            raise DensityValidationError(outcome)
        return log_density, gradient

    def log_density(self, params) -> jax.Array:
        return self.evaluate(params)[0]

    def initial_state(self, params) -> ChainState:
        """Evaluate params and wrap them as the starting ChainState."""
        params = jnp.asarray(params)
        if not jnp.issubdtype(params.dtype, jnp.inexact):
            params = params.astype(jnp.result_type(float))
        log_density, gradient = self.evaluate(params)
        return ChainState(params=params, log_density=log_density, gradient=gradient, stats={})

    def __repr__(self):
        return f"LogDensityModel(name={self.name!r})"
