"""
Common utilities for log-density functions.

This module provides the validation checks, result types and linear-algebra
helpers shared by density implementations.

Constants:
    NEG_LOG_SQRT_TWO_PI: -0.5 * log(2 * pi), the per-element normalizing constant
    CONSTRAINT_TOLERANCE: Absolute tolerance used by the symmetry check

Types:
    ValidationCheck: IntEnum naming each argument check, in evaluation order
    ValidationOutcome: Pass/fail result of one check
    LogDensityResult: (value, outcome) pair returned by density functions

Functions:
    check_size_match, check_positive_size, check_finite, check_symmetric,
    check_pos_definite, check_positive, check_not_nan: argument checks
    include_summand: Proportionality rule for keeping a term
    log_determinant_spd: Log-determinant from a Cholesky factor
    mdivide_right_spd: y * inverse(Sigma) via Cholesky solve
    rows_dot_product: Row-wise dot product of two matrices
"""

import math
from dataclasses import dataclass
from enum import IntEnum
from typing import NamedTuple, Optional, Tuple

import jax
import jax.numpy as jnp
import jax.scipy.linalg

from ..error_handling import DensityValidationError


NEG_LOG_SQRT_TWO_PI = -0.5 * math.log(2.0 * math.pi)

CONSTRAINT_TOLERANCE = 1e-8


class ValidationCheck(IntEnum):
    """
    Argument checks run by the multivariate GP density.

    Values give the order in which the checks run; the first failure stops
    evaluation, so a lower value always wins when several checks would fail.
    """
    SIGMA_SQUARE = 1        # Kernel matrix rows == cols
    SIGMA_NONEMPTY = 2      # Kernel matrix has at least one row
    SIGMA_FINITE = 3        # No NaN/Inf in kernel matrix
    SIGMA_SYMMETRIC = 4     # Kernel matrix symmetric within CONSTRAINT_TOLERANCE
    SIGMA_POS_DEFINITE = 5  # Kernel matrix positive definite
    Y_ROWS_MATCH_W = 6      # rows(y) == size(w)
    Y_COLS_MATCH_SIGMA = 7  # cols(y) == rows(Sigma)
    W_FINITE = 8            # No NaN/Inf in kernel scales
    W_POSITIVE = 9          # Kernel scales strictly positive
    Y_NOT_NAN = 10          # No NaN in random variable


@dataclass(frozen=True)
class ValidationOutcome:
    """
    Result of an argument check.

    Attributes:
        ok: True if the check passed
        check: Failing check (None when ok)
        argument: Name of the offending argument (None when ok)
        message: Human-readable description of the failure
    """
    ok: bool
    check: Optional[ValidationCheck] = None
    argument: Optional[str] = None
    message: str = ""

    @classmethod
    def passed(cls) -> "ValidationOutcome":
        return _PASSED

    @classmethod
    def failed(cls, function: str, check: ValidationCheck, argument: str, detail: str) -> "ValidationOutcome":
        return cls(ok=False, check=check, argument=argument,
                   message=f"{function}: {argument} {detail}")


_PASSED = ValidationOutcome(ok=True)


def _outcome_flatten(outcome):
    """Flatten ValidationOutcome for JAX pytree: no array children, all static."""
    return (), (outcome.ok, outcome.check, outcome.argument, outcome.message)


def _outcome_unflatten(aux_data, children):
    return ValidationOutcome(*aux_data)


# Register ValidationOutcome as a leafless pytree so it can ride along as
# auxiliary output of jax.value_and_grad
jax.tree_util.register_pytree_node(
    ValidationOutcome,
    _outcome_flatten,
    _outcome_unflatten
)


class LogDensityResult(NamedTuple):
    """
    Log-density value paired with the validation outcome that produced it.

    When outcome.ok is False the value is the untouched accumulator (zero).
    As a NamedTuple this is a JAX pytree, so differentiate through `.value`:

        jax.grad(lambda S: multi_gp_log(y, S, w, wrt=('Sigma',)).value)(Sigma)
    """
    value: jax.Array
    outcome: ValidationOutcome

    @property
    def ok(self) -> bool:
        return self.outcome.ok

    def unwrap(self) -> jax.Array:
        """Return the value, raising DensityValidationError if validation failed."""
        if not self.outcome.ok:
            raise DensityValidationError(self.outcome)
        return self.value


# =============================================================================
# ARGUMENT CHECKS
# =============================================================================

def _all(x) -> bool:
    # Argument checks inspect values only; they never contribute to gradients
    return bool(jnp.all(jax.lax.stop_gradient(x)))


def check_size_match(function: str, size_a: int, name_a: str, size_b: int, name_b: str,
                     check: ValidationCheck) -> ValidationOutcome:
    if size_a != size_b:
        return ValidationOutcome.failed(
            function, check, name_a,
            f"({size_a}) must match {name_b} ({size_b})")
    return _PASSED


def check_positive_size(function: str, size: int, name: str, check: ValidationCheck) -> ValidationOutcome:
    if size <= 0:
        return ValidationOutcome.failed(function, check, name, f"must be positive, but is {size}")
    return _PASSED


def check_finite(function: str, x, name: str, check: ValidationCheck) -> ValidationOutcome:
    if not _all(jnp.isfinite(x)):
        return ValidationOutcome.failed(function, check, name, "must be finite")
    return _PASSED


def check_not_nan(function: str, x, name: str, check: ValidationCheck) -> ValidationOutcome:
    if not _all(~jnp.isnan(x)):
        return ValidationOutcome.failed(function, check, name, "must not contain NaN")
    return _PASSED


def check_positive(function: str, x, name: str, check: ValidationCheck) -> ValidationOutcome:
    if not _all(x > 0):
        return ValidationOutcome.failed(function, check, name, "must be strictly positive")
    return _PASSED


def check_symmetric(function: str, x, name: str, check: ValidationCheck) -> ValidationOutcome:
    if not _all(jnp.abs(x - x.T) <= CONSTRAINT_TOLERANCE):
        return ValidationOutcome.failed(function, check, name, "is not symmetric")
    return _PASSED


def check_pos_definite(function: str, x, name: str,
                       check: ValidationCheck) -> Tuple[ValidationOutcome, Optional[jax.Array]]:
    """
    Check positive-definiteness through a Cholesky factorization.

    Returns:
        (outcome, L): L is the lower Cholesky factor when the check passes,
        so callers can reuse it for the determinant and solves.
    """
    L = jnp.linalg.cholesky(x)
    diag = jnp.diagonal(L)
    if not (_all(jnp.isfinite(L)) and _all(diag > 0)):
        return ValidationOutcome.failed(function, check, name, "is not positive definite"), None
    return _PASSED, L


# =============================================================================
# PROPORTIONALITY
# =============================================================================

def include_summand(propto: bool, *is_variable: bool) -> bool:
    """
    Decide whether a term belongs in the log density.

    With propto=False every term is kept. With propto=True a term is kept only
    if at least one of the arguments it depends on is a differentiation target.
    A term with no arguments (a pure constant) is always dropped under propto.
    """
    if not propto:
        return True
    return any(is_variable)


# =============================================================================
# LINEAR ALGEBRA
# =============================================================================

def log_determinant_spd(L: jax.Array) -> jax.Array:
    """log(det(Sigma)) from the lower Cholesky factor L of Sigma."""
    return 2.0 * jnp.sum(jnp.log(jnp.diagonal(L)))


def mdivide_right_spd(y: jax.Array, L: jax.Array) -> jax.Array:
    """
    Compute y * inverse(Sigma) without forming the inverse.

    Args:
        y: (d, N) matrix
        L: Lower Cholesky factor of the (N, N) SPD matrix Sigma

    Returns:
        (d, N) matrix equal to y @ inv(Sigma)
    """
    # Sigma is symmetric, so y Sigma^-1 = (Sigma^-1 y^T)^T
    return jax.scipy.linalg.cho_solve((L, True), y.T).T


def rows_dot_product(a: jax.Array, b: jax.Array) -> jax.Array:
    """Dot product of each row of a with the matching row of b."""
    return jnp.sum(a * b, axis=1)
