"""
Multivariate Gaussian Process Log Density

Log density of a d x N observation matrix y whose rows are independent
zero-mean Gaussian processes sharing one N x N kernel matrix Sigma, each row
with its own inverse scale w[i]:

    for i in 1..d:  y[i, :] ~ MultiNormal(0, Sigma / w[i])

Summed over rows this is

    lp = -d*N/2 * log(2*pi)                         (normalizing)
         - d/2 * log det(Sigma)                     (log-determinant)
         + N/2 * sum(log(w))                        (scale)
         - 1/2 * dot(rows_dot(y Sigma^-1, y), w)    (quadratic form)

Each term is dropped under propto=True unless one of the arguments it depends
on is listed in `wrt` (the arguments currently being differentiated).

The same code path serves plain evaluation and differentiation: call it
directly on arrays, or under jax.grad / jax.value_and_grad. Argument checks
need concrete values, so the function is not intended for use inside jax.jit.
"""

from typing import Collection

import jax.numpy as jnp

from .common import (
    NEG_LOG_SQRT_TWO_PI,
    LogDensityResult,
    ValidationCheck,
    ValidationOutcome,
    check_finite,
    check_not_nan,
    check_pos_definite,
    check_positive,
    check_positive_size,
    check_size_match,
    check_symmetric,
    include_summand,
    log_determinant_spd,
    mdivide_right_spd,
    rows_dot_product,
)

FUNCTION = "gpmc.multi_gp_log"

ARGUMENT_NAMES = frozenset({'y', 'Sigma', 'w'})


def _promoted_zero(y, Sigma, w):
    dtype = jnp.result_type(y, Sigma, w)
    if not jnp.issubdtype(dtype, jnp.inexact):
        # Weak Python float: follows the default float width (float64 under x64)
        dtype = jnp.result_type(dtype, float)
    return jnp.zeros((), dtype=dtype)


def _check_kernel_rank(Sigma) -> ValidationOutcome:
    if Sigma.ndim != 2:
        return ValidationOutcome.failed(FUNCTION, ValidationCheck.SIGMA_SQUARE, "Kernel matrix",
                                        f"must be a matrix, got {Sigma.ndim} dimension(s)")
    return ValidationOutcome.passed()


def _check_variate_ranks(y, w) -> ValidationOutcome:
    # Runs after the kernel checks so a bad kernel is always reported first
    if y.ndim != 2 or w.ndim != 1:
        return ValidationOutcome.failed(FUNCTION, ValidationCheck.Y_ROWS_MATCH_W, "Random variable",
                                        f"must be a matrix with a vector of scales, got "
                                        f"y.ndim={y.ndim}, w.ndim={w.ndim}")
    return ValidationOutcome.passed()


def multi_gp_log(y, Sigma, w, propto: bool = False, wrt: Collection[str] = ()) -> LogDensityResult:
    """
    Log density of a multivariate Gaussian process with a scaled kernel.

    Args:
        y: (d, N) observations; each row is one output dimension
        Sigma: (N, N) symmetric positive-definite kernel matrix
        w: (d,) positive inverse scales, one per output dimension
        propto: Drop terms that are constant with respect to `wrt`
        wrt: Names of the arguments being differentiated, any of
             'y', 'Sigma', 'w'. Only consulted when propto=True.

    Returns:
        LogDensityResult(value, outcome). On the first failing check the value
        is zero and outcome names the check and argument; later checks and
        all terms are skipped.
    """
    unknown = set(wrt) - ARGUMENT_NAMES
    if unknown:
        raise ValueError(f"wrt contains unknown argument names {sorted(unknown)}; "
                         f"expected a subset of {sorted(ARGUMENT_NAMES)}")

    y = jnp.asarray(y)
    Sigma = jnp.asarray(Sigma)
    w = jnp.asarray(w)
    lp = _promoted_zero(y, Sigma, w)

    outcome = _check_kernel_rank(Sigma)
    if not outcome.ok:
        return LogDensityResult(lp, outcome)

    checks = (
        lambda: check_size_match(FUNCTION, Sigma.shape[0], "Rows of kernel matrix",
                                 Sigma.shape[1], "columns of kernel matrix",
                                 ValidationCheck.SIGMA_SQUARE),
        lambda: check_positive_size(FUNCTION, Sigma.shape[0], "Kernel matrix rows",
                                    ValidationCheck.SIGMA_NONEMPTY),
        lambda: check_finite(FUNCTION, Sigma, "Kernel", ValidationCheck.SIGMA_FINITE),
        lambda: check_symmetric(FUNCTION, Sigma, "Kernel matrix", ValidationCheck.SIGMA_SYMMETRIC),
    )
    for run_check in checks:
        outcome = run_check()
        if not outcome.ok:
            return LogDensityResult(lp, outcome)

    outcome, L = check_pos_definite(FUNCTION, Sigma, "Kernel matrix", ValidationCheck.SIGMA_POS_DEFINITE)
    if not outcome.ok:
        return LogDensityResult(lp, outcome)

    checks = (
        lambda: _check_variate_ranks(y, w),
        lambda: check_size_match(FUNCTION, y.shape[0], "Size of random variable",
                                 w.shape[0], "size of kernel scales",
                                 ValidationCheck.Y_ROWS_MATCH_W),
        lambda: check_size_match(FUNCTION, y.shape[1], "Size of random variable",
                                 Sigma.shape[0], "rows of covariance parameter",
                                 ValidationCheck.Y_COLS_MATCH_SIGMA),
        lambda: check_finite(FUNCTION, w, "Kernel scales", ValidationCheck.W_FINITE),
        lambda: check_positive(FUNCTION, w, "Kernel scales", ValidationCheck.W_POSITIVE),
        lambda: check_not_nan(FUNCTION, y, "Random variable", ValidationCheck.Y_NOT_NAN),
    )
    for run_check in checks:
        outcome = run_check()
        if not outcome.ok:
            return LogDensityResult(lp, outcome)

    if y.shape[0] == 0:
        return LogDensityResult(lp, outcome)

    y_var = 'y' in wrt
    sigma_var = 'Sigma' in wrt
    w_var = 'w' in wrt
    rows, cols = y.shape

    if include_summand(propto):
        lp = lp + NEG_LOG_SQRT_TWO_PI * rows * cols

    if include_summand(propto, sigma_var):
        lp = lp - (0.5 * rows) * log_determinant_spd(L)

    if include_summand(propto, w_var):
        lp = lp + (0.5 * cols) * jnp.sum(jnp.log(w))

    if include_summand(propto, y_var, w_var, sigma_var):
        y_Kinv = mdivide_right_spd(y, L)
        lp = lp - 0.5 * jnp.dot(rows_dot_product(y_Kinv, y), w)

    return LogDensityResult(lp, outcome)


def multi_gp_lpdf(y, Sigma, w, propto: bool = False, wrt: Collection[str] = ()):
    """
    Same as multi_gp_log, but returns the bare value.

    Raises:
        DensityValidationError: If any argument check fails
    """
    return multi_gp_log(y, Sigma, w, propto=propto, wrt=wrt).unwrap()
