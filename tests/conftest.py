"""
Pytest configuration and shared fixtures for gpmc tests.
"""

import jax

# Oracle comparisons against scipy need double precision
jax.config.update("jax_enable_x64", True)

import numpy as np
import jax.numpy as jnp
import pytest

from gpmc.mcmc.model import LogDensityModel
from gpmc.mcmc.types import ChainState


@pytest.fixture
def rng_seed():
    """Default RNG seed for reproducible tests."""
    return 42


@pytest.fixture
def gp_inputs(rng_seed):
    """A valid (y, Sigma, w) triple with d=3 output rows and N=4 inputs."""
    return make_gp_inputs(d=3, n=4, seed=rng_seed)


@pytest.fixture
def gaussian_model():
    """Standard-normal-ish 2D target with a known mean, as a plain scalar density."""
    return make_isotropic_model(mean=jnp.array([1.0, -2.0]), sd=jnp.array([0.5, 1.5]))


def make_test_covariance(dim, scale=1.0, seed=0):
    """Create a positive definite covariance matrix for testing."""
    rng = np.random.default_rng(seed)
    A = rng.standard_normal((dim, dim)) * 0.3
    return np.eye(dim) * scale + A @ A.T * scale * 0.1


def make_gp_inputs(d=3, n=4, seed=0):
    rng = np.random.default_rng(seed)
    Sigma = make_test_covariance(n, scale=1.5, seed=seed)
    w = rng.uniform(0.5, 2.0, size=d)
    y = rng.standard_normal((d, n))
    return y, Sigma, w


def make_isotropic_model(mean, sd):
    def log_density(params):
        return -0.5 * jnp.sum(((params - mean) / sd) ** 2)
    return LogDensityModel(log_density, name='isotropic')


class ShiftSampler:
    """
    Deterministic stub sampler: moves every parameter by +1 and logs each call.

    Used to test driver sequencing without any randomness in the transition.
    """

    def __init__(self, events=None):
        self.events = events if events is not None else []
        self.calls = 0

    def transition(self, state, model, key):
        self.events.append(('transition', self.calls))
        self.calls += 1
        params = state.params + 1.0
        return ChainState(params=params, log_density=jnp.asarray(-float(self.calls)),
                          gradient=jnp.zeros_like(params), stats={'accepted': True})


class FailingSampler(ShiftSampler):
    """Returns a non-finite log density from the transition at `fail_at`."""

    def __init__(self, fail_at, raise_error=False):
        super().__init__()
        self.fail_at = fail_at
        self.raise_error = raise_error

    def transition(self, state, model, key):
        if self.calls == self.fail_at:
            self.calls += 1
            if self.raise_error:
                raise FloatingPointError("solve blew up")
            return state._replace(log_density=jnp.asarray(jnp.nan))
        return super().transition(state, model, key)


def make_initial_state(n_params=2):
    params = jnp.zeros(n_params)
    return ChainState(params=params, log_density=jnp.asarray(0.0),
                      gradient=jnp.zeros(n_params), stats={})
