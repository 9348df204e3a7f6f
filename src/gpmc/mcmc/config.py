"""
Chain Configuration and Initialization.

This module handles setting up and running a chain from a config dict:
- clean_chain_config: Fill in defaults
- gen_rng_key: Generate the chain's JAX random key
- run_from_config: Validate, place on device, initialize and sample

All config keys use lowercase with underscores (e.g., 'num_warmup', 'rng_seed').
"""

from typing import Any, Dict, Tuple

import jax
import jax.numpy as jnp
import numpy as np

from ..backend import BackendConfig, detect_backend, select_device
from ..error_handling import validate_chain_config, diagnose_chain, print_diagnostics
from .driver import sample
from .model import LogDensityModel
from .recorders import MemoryRecorder
from .samplers import Sampler
from .types import ChainResult

import logging
logger = logging.getLogger('gpmc')


def clean_chain_config(chain_config: Dict[str, Any]) -> Dict[str, Any]:
    """
    Cleans the config dict and sets defaults.
    All config keys use lowercase with underscores.
    """
    chain_config = dict(chain_config)
    chain_config.setdefault('num_warmup', 1000)
    chain_config.setdefault('num_samples', 1000)
    chain_config.setdefault('num_thin', 1)
    chain_config.setdefault('refresh', 100)
    chain_config.setdefault('save_warmup', False)
    chain_config.setdefault('rng_seed', 0)
    chain_config.setdefault('platform', None)
    chain_config.setdefault('device_id', 0)
    chain_config.setdefault('distributed', False)
    chain_config.setdefault('use_double', False)

    # x64 is never switched off here
    if chain_config['use_double']:
        jax.config.update("jax_enable_x64", True)

    return chain_config


def gen_rng_key(rng_seed: int) -> jax.Array:
    """Generate the chain's JAX PRNG key from a seed."""
    return jax.random.PRNGKey(rng_seed)


def backend_from_config(chain_config: Dict[str, Any]) -> BackendConfig:
    return BackendConfig(
        platform=chain_config.get('platform'),
        device_id=chain_config.get('device_id', 0),
        distributed=chain_config.get('distributed', False),
    )


def run_from_config(
    chain_config: Dict[str, Any],
    sampler: Sampler,
    model: LogDensityModel,
    initial_params,
    callback=None,
    progress=None,
) -> Tuple[ChainResult, MemoryRecorder, MemoryRecorder, Dict[str, Any]]:
    """
    Run one chain described by a config dict.

    Args:
        chain_config: Dict with num_warmup, num_samples and optional
                      num_thin, refresh, save_warmup, rng_seed, platform,
                      device_id, distributed, use_double
        sampler: One-step sampler
        model: Model capability
        initial_params: Starting parameter vector
        callback: Optional start-of-iteration callback
        progress: Optional ProgressReport sink

    Returns:
        (result, sample_recorder, diagnostic_recorder, diagnostics)

    Raises:
        ValueError: If the configuration is invalid
        ChainFailure: If the chain aborts
    """
    # --- 1. VALIDATE CONFIGURATION ---
    logger.info("Validating chain configuration...")
    try:
        validate_chain_config(chain_config)
        logger.info("Configuration is valid\n")
    except ValueError as e:
        logger.info(f"Invalid configuration:\n{e}")
        raise

    chain_config = clean_chain_config(chain_config)

    # --- 2. SELECT BACKEND ---
    device = select_device(backend_from_config(chain_config))
    backend_info = detect_backend()
    logger.info(f"JAX backend: {backend_info['jax_backend']}  Device: {device}")

    # --- 3. INITIALIZE CHAIN ---
    dtype = jnp.float64 if chain_config['use_double'] else jnp.float32
    params = jax.device_put(jnp.asarray(initial_params, dtype=dtype), device)
    initial_state = model.initial_state(params)
    key = jax.device_put(gen_rng_key(chain_config['rng_seed']), device)

    # --- 4. RUN ---
    sample_recorder = MemoryRecorder()
    diagnostic_recorder = MemoryRecorder()
    result = sample(
        sampler, model, initial_state, key,
        num_warmup=chain_config['num_warmup'],
        num_samples=chain_config['num_samples'],
        num_thin=chain_config['num_thin'],
        refresh=chain_config['refresh'],
        save_warmup=chain_config['save_warmup'],
        sample_recorder=sample_recorder,
        diagnostic_recorder=diagnostic_recorder,
        callback=callback,
        progress=progress,
    )

    # --- 5. POST-RUN DIAGNOSTICS ---
    diagnostics = {
        'wall_time': result.wall_time,
        'iterations_completed': result.iterations_completed,
        'cancelled': result.cancelled,
        'backend': backend_info,
    }
    logger.info("\n--- Post-Run Diagnostics ---")
    accepted = diagnostic_recorder.stat_array('accepted').astype(np.float64)
    diagnostics = diagnose_chain(sample_recorder.params_array(), accepted, diagnostics)
    print_diagnostics(diagnostics)

    if diagnostics['issues']:
        logger.warning("\n  Issues detected during sampling!")
        logger.info("Review diagnostics above before using results.")

    return result, sample_recorder, diagnostic_recorder, diagnostics
