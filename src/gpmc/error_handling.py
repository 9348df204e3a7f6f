"""
Error Handling and Validation Utilities

This module provides the exception hierarchy, configuration validation and
post-run diagnostic tools for chain runs.

Error classes:
- Validation errors: a density argument fails a precondition. The evaluator
  reports these as a ValidationOutcome; DensityValidationError is raised only
  when a caller asks for the value to be unwrapped.
- Numerical errors: a transition yields a non-finite state. Fatal to the
  chain (ChainFailure).
- Sequencing errors: bad warmup/sample/thin/refresh settings. Raised as
  ValueError before the loop starts.
"""

from typing import Any, Dict

import numpy as np

import logging
logger = logging.getLogger('gpmc')


class GPMCError(Exception):
    """Base class for all gpmc errors."""

    pass


class DensityValidationError(GPMCError, ValueError):
    """
    Raised when a log-density result with a failed validation is unwrapped.

    Attributes:
        outcome: The ValidationOutcome describing the failing check
    """

    def __init__(self, outcome):
        self.outcome = outcome
        super().__init__(outcome.message)


class ChainFailure(GPMCError, RuntimeError):
    """
    Raised when a chain run must stop because a transition failed.

    Attributes:
        iteration: Global iteration index (0-based) of the failed transition
        phase: Phase the chain was in
        reason: Short description of the failure
    """

    def __init__(self, iteration: int, phase, reason: str):
        self.iteration = iteration
        self.phase = phase
        self.reason = reason
        phase_name = getattr(phase, 'value', phase)
        super().__init__(f"Chain failed at iteration {iteration} ({phase_name}): {reason}")


def validate_chain_config(chain_config: Dict[str, Any]) -> None:
    """
    Validates that a chain configuration is sensible.

    Args:
        chain_config: Configuration dictionary

    Raises:
        ValueError: If configuration is invalid
    """
    errors = []

    required_keys = ['num_warmup', 'num_samples']
    for key in required_keys:
        if key not in chain_config:
            errors.append(f"Missing required config key: '{key}'")

    for key in ('num_warmup', 'num_samples', 'num_thin', 'refresh', 'rng_seed'):
        if key in chain_config and not isinstance(chain_config[key], (int, np.integer)):
            errors.append(f"{key} must be an integer, got {chain_config[key]!r}")

    if isinstance(chain_config.get('num_warmup'), (int, np.integer)):
        if chain_config['num_warmup'] < 0:
            errors.append("num_warmup must be >= 0")

    if isinstance(chain_config.get('num_samples'), (int, np.integer)):
        if chain_config['num_samples'] < 0:
            errors.append("num_samples must be >= 0")

    if isinstance(chain_config.get('num_thin'), (int, np.integer)):
        if chain_config['num_thin'] < 1:
            errors.append("num_thin must be >= 1")

    if isinstance(chain_config.get('refresh'), (int, np.integer)):
        if chain_config['refresh'] < 0:
            errors.append("refresh must be >= 0")

    if 'save_warmup' in chain_config and not isinstance(chain_config['save_warmup'], bool):
        errors.append("save_warmup must be True or False")

    if errors:
        raise ValueError("Invalid chain configuration:\n  " + "\n  ".join(errors))


def diagnose_chain(params: np.ndarray, accepted: np.ndarray, diagnostics: Dict[str, Any]) -> Dict[str, Any]:
    """
    Analyzes recorded draws to identify common issues.

    Args:
        params: Recorded parameter draws (n_draws, n_params)
        accepted: Per-draw acceptance flags (n_draws,), may be empty
        diagnostics: Existing diagnostics dict to extend

    Returns:
        diagnostics: Dictionary with issues, warnings, and info
    """
    diagnostics = diagnostics | {
        'issues': [],
        'warnings': [],
        'info': []
    }

    if params.size == 0:
        diagnostics['warnings'].append("No draws were recorded")
        return diagnostics

    if not np.all(np.isfinite(params)):
        diagnostics['issues'].append(
            "Draws contain NaN or Inf values - sampler became unstable"
        )

    if params.shape[0] > 1:
        param_vars = np.var(params, axis=0)
        stuck = int(np.sum(param_vars < 1e-10))
        if stuck > 0:
            diagnostics['warnings'].append(
                f"{stuck} parameter(s) appear stuck (near-zero variance)"
            )

    if accepted.size > 0:
        rate = float(np.mean(accepted))
        diagnostics['info'].append(f"Acceptance rate: {rate:.1%}")
        if rate < 0.10:
            diagnostics['warnings'].append(f"Acceptance rate is low ({rate:.1%}); consider a smaller step size")

    diagnostics['info'].append(f"Total draws: {params.shape[0]}")
    diagnostics['info'].append(f"Number of parameters: {params.shape[1]}")

    return diagnostics


def print_diagnostics(diagnostics: Dict[str, Any]) -> None:
    """Pretty-print diagnostics from diagnose_chain."""
    if diagnostics['issues']:
        logger.error("\n[ERROR] ISSUES:")
        for issue in diagnostics['issues']:
            logger.error(f"  - {issue}")

    if diagnostics['warnings']:
        logger.warning("\n[WARN] WARNINGS:")
        for warning in diagnostics['warnings']:
            logger.warning(f"  - {warning}")

    if diagnostics['info']:
        logger.info("\n[INFO] INFO:")
        for info in diagnostics['info']:
            logger.info(f"  - {info}")

    if not diagnostics['issues'] and not diagnostics['warnings']:
        logger.info("\n[OK] No issues detected")
