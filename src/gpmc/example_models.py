"""
Example Models - Gaussian-process posteriors built on multi_gp_log.

These models give the driver and samplers something realistic to run on and
are used by the test suite.
"""

import numpy as np
import jax.numpy as jnp

from .densities.common import LogDensityResult
from .densities.kernels import exp_quad_kernel
from .densities.multi_gp import multi_gp_log
from .mcmc.model import LogDensityModel


def make_gp_hyperparameter_model(x, y, prior_scale=1.0, jitter=1e-6):
    """
    Posterior over GP kernel hyperparameters given d output rows observed at
    N shared inputs.

    Parameter vector (all on the log scale, unconstrained):
        params[0]   : log amplitude
        params[1]   : log length scale
        params[2:]  : log inverse scale w[i] for each of the d output rows

    Model:
        log_amplitude, log_length_scale, log_w ~ Normal(0, prior_scale)
        y ~ MultiGP(exp_quad_kernel(x, amplitude, length_scale), w)

    Args:
        x: (N,) or (N, D) inputs
        y: (d, N) observations
        prior_scale: Std dev of the Normal prior on every log parameter
        jitter: Diagonal jitter added to the kernel matrix

    Returns:
        LogDensityModel with 2 + d parameters
    """
    x = jnp.asarray(x)
    y = jnp.asarray(y)

    def log_posterior(params):
        amplitude = jnp.exp(params[0])
        length_scale = jnp.exp(params[1])
        w = jnp.exp(params[2:])
        Sigma = exp_quad_kernel(x, amplitude, length_scale, jitter=jitter)

        # y is data; only the kernel and scales are being differentiated
        lik = multi_gp_log(y, Sigma, w, propto=True, wrt=('Sigma', 'w'))
        log_prior = -0.5 * jnp.sum((params / prior_scale) ** 2)
        return LogDensityResult(lik.value + log_prior, lik.outcome)

    return LogDensityModel(log_posterior, name='gp_hyperparameters')


def make_gaussian_model(mean, cov):
    """
    Multivariate normal target, written as a one-row multi_gp_log with w = 1.

    Useful for checking samplers against known moments.
    """
    mean = jnp.asarray(mean)
    cov = jnp.asarray(cov)
    w = jnp.ones(1, dtype=cov.dtype)

    def log_density(params):
        return multi_gp_log((params - mean)[None, :], cov, w, propto=True, wrt=('y',))

    return LogDensityModel(log_density, name='gaussian')


def simulate_gp_data(n_inputs=12, n_outputs=2, amplitude=1.0, length_scale=0.5, w=None, seed=0):
    """Draw synthetic (x, y) from the multi-GP model with NumPy."""
    rng = np.random.default_rng(seed)
    x = np.linspace(0.0, 2.0, n_inputs)
    sq_dist = (x[:, None] - x[None, :]) ** 2
    K = amplitude ** 2 * np.exp(-0.5 * sq_dist / length_scale ** 2) + 1e-6 * np.eye(n_inputs)
    if w is None:
        w = np.ones(n_outputs)
    w = np.asarray(w, dtype=float)
    L = np.linalg.cholesky(K)
    z = rng.standard_normal((n_outputs, n_inputs))
    y = (z @ L.T) / np.sqrt(w)[:, None]
    return x, y
