"""
Covariance kernels for building Gaussian-process kernel matrices.
"""

import jax.numpy as jnp


def exp_quad_kernel(x, amplitude, length_scale, jitter=1e-8):
    """
    Squared-exponential kernel matrix.

        K[i, j] = amplitude^2 * exp(-||x_i - x_j||^2 / (2 * length_scale^2))

    Args:
        x: Inputs, shape (N,) for scalar inputs or (N, D)
        amplitude: Marginal standard deviation (> 0)
        length_scale: Length scale (> 0)
        jitter: Added to the diagonal to keep the matrix numerically SPD

    Returns:
        (N, N) kernel matrix. Differentiable in amplitude and length_scale.
    """
    x = jnp.asarray(x)
    if x.ndim == 1:
        x = x[:, None]
    sq_dist = jnp.sum((x[:, None, :] - x[None, :, :]) ** 2, axis=-1)
    K = amplitude ** 2 * jnp.exp(-0.5 * sq_dist / length_scale ** 2)
    return K + jitter * jnp.eye(x.shape[0], dtype=K.dtype)
