"""
Reference One-Step Samplers.

Any object with `transition(state, model, key) -> ChainState` can drive a
chain. Two Metropolis-Hastings samplers are provided:
- RandomWalkMetropolis: Symmetric Gaussian random-walk proposal
- MALA: Metropolis-adjusted Langevin proposal using the model gradient

Both leave the input state untouched and return a new ChainState. A rejected
proposal returns the current params and log density with fresh stats.
Proposals whose density is non-finite or fails validation are rejected.
"""

from typing import Protocol

import jax
import jax.numpy as jnp
import jax.random as random

from ..error_handling import DensityValidationError
from .model import LogDensityModel
from .types import ChainState


class Sampler(Protocol):
    """Protocol for one-step transition kernels."""

    def transition(self, state: ChainState, model: LogDensityModel, key: jax.Array) -> ChainState:
        """
        Advance the chain by one step.

        Args:
            state: Current state; must not be modified
            model: Model providing evaluate(params) -> (log_density, gradient)
            key: JAX PRNG key for this step only

        Returns:
            The next state (possibly equal in value to `state`)
        """
        ...


def _safe_log_density(log_density):
    # Non-finite proposals get -inf so they are always rejected
    return jnp.where(jnp.isfinite(log_density), log_density, -jnp.inf)


def _evaluate_proposal(model, proposal):
    """Evaluate a proposal; invalid arguments count as zero density."""
    try:
        log_density, gradient = model.evaluate(proposal)
    except DensityValidationError:
        return -jnp.inf, jnp.zeros_like(proposal)
    return _safe_log_density(log_density), gradient


def _accept_reject(state, proposal, lp_proposed, grad_proposed, log_ratio, accept_key, step_size):
    safe_ratio = jnp.nan_to_num(log_ratio, nan=-jnp.inf)
    log_uniform = jnp.log(random.uniform(accept_key, shape=(), dtype=state.params.dtype))
    accept = bool(log_uniform < safe_ratio)
    stats = {
        'accepted': accept,
        'accept_prob': float(jnp.minimum(1.0, jnp.exp(safe_ratio))),
        'step_size': step_size,
    }
    if accept:
        return ChainState(params=proposal, log_density=lp_proposed,
                          gradient=grad_proposed, stats=stats)
    return state._replace(stats=stats)


class RandomWalkMetropolis:
    """
    Gaussian random-walk Metropolis.

    Proposal: x' = x + step_size * z,  z ~ N(0, I). Symmetric, so the
    Hastings ratio is zero.
    """

    def __init__(self, step_size: float = 0.5):
        if step_size <= 0:
            raise ValueError(f"step_size must be > 0, got {step_size}")
        self.step_size = float(step_size)

    def transition(self, state: ChainState, model: LogDensityModel, key: jax.Array) -> ChainState:
        noise_key, accept_key = random.split(key)
        noise = random.normal(noise_key, shape=state.params.shape, dtype=state.params.dtype)
        proposal = state.params + self.step_size * noise

        lp_proposed, grad_proposed = _evaluate_proposal(model, proposal)
        log_ratio = lp_proposed - state.log_density
        return _accept_reject(state, proposal, lp_proposed, grad_proposed,
                              log_ratio, accept_key, self.step_size)

    def __repr__(self):
        return f"RandomWalkMetropolis(step_size={self.step_size})"


class MALA:
    """
    Metropolis-Adjusted Langevin Algorithm.

    Proposal: x' = x + (eps^2 / 2) * grad log p(x) + eps * z,  z ~ N(0, I)

    The proposal distribution is q(x'|x) = N(x + drift(x), eps^2 I), so the
    Hastings correction needs the gradient at both x and x'.
    """

    def __init__(self, step_size: float = 0.1):
        if step_size <= 0:
            raise ValueError(f"step_size must be > 0, got {step_size}")
        self.step_size = float(step_size)

    def _drift(self, gradient):
        return 0.5 * self.step_size ** 2 * gradient

    def transition(self, state: ChainState, model: LogDensityModel, key: jax.Array) -> ChainState:
        eps = self.step_size
        noise_key, accept_key = random.split(key)
        noise = random.normal(noise_key, shape=state.params.shape, dtype=state.params.dtype)

        drift_current = self._drift(state.gradient)
        proposal = state.params + drift_current + eps * noise

        lp_proposed, grad_proposed = _evaluate_proposal(model, proposal)
        drift_proposed = self._drift(grad_proposed)

        # log q(x|x') - log q(x'|x)
        diff_forward = (proposal - state.params - drift_current) / eps
        diff_reverse = (state.params - proposal - drift_proposed) / eps
        log_hastings_ratio = -0.5 * (jnp.sum(diff_reverse ** 2) - jnp.sum(diff_forward ** 2))

        log_ratio = lp_proposed - state.log_density + log_hastings_ratio
        return _accept_reject(state, proposal, lp_proposed, grad_proposed,
                              log_ratio, accept_key, self.step_size)

    def __repr__(self):
        return f"MALA(step_size={self.step_size})"
