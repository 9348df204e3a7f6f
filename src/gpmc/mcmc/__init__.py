"""
MCMC Subpackage - Single-chain Markov-chain driver.

This package contains the chain sampling logic:
- driver: Warmup/sampling loop (run_markov_chain, sample)
- config: Config-dict entry point and defaults
- model: Model capability (log density + gradient)
- samplers: Reference one-step samplers (RandomWalkMetropolis, MALA)
- recorders: Append-only draw sinks
- types: Core data structures (ChainState, Draw, Phase, ...)
"""

# Import types first (needed by other modules)
from .types import (
    ChainResult,
    ChainState,
    DiagnosticDraw,
    Draw,
    Phase,
    ProgressReport,
)

from .model import LogDensityModel
from .samplers import Sampler, RandomWalkMetropolis, MALA
from .recorders import Recorder, MemoryRecorder
from .driver import run_markov_chain, sample, validate_chain_inputs, num_recorded_draws
from .config import clean_chain_config, gen_rng_key, run_from_config

__all__ = [
    # Types
    'ChainResult',
    'ChainState',
    'DiagnosticDraw',
    'Draw',
    'Phase',
    'ProgressReport',
    # Capabilities
    'LogDensityModel',
    'Sampler',
    'RandomWalkMetropolis',
    'MALA',
    'Recorder',
    'MemoryRecorder',
    # Driver
    'run_markov_chain',
    'sample',
    'validate_chain_inputs',
    'num_recorded_draws',
    # Config
    'clean_chain_config',
    'gen_rng_key',
    'run_from_config',
]
