"""
gpmc - Gaussian-process log densities and a Markov-chain driver

Public API:
    Log densities:
        multi_gp_log - Multivariate GP log density, returns LogDensityResult
        multi_gp_lpdf - Same, raising DensityValidationError on bad arguments
        exp_quad_kernel - Squared-exponential kernel matrix
        LogDensityResult - (value, outcome) pair
        ValidationCheck - IntEnum of argument checks in evaluation order
        ValidationOutcome - Pass/fail record for one check

    Chain driver:
        sample - Warmup then sampling for one chain
        run_markov_chain - The underlying loop
        run_from_config - Config-dict entry point with diagnostics
        LogDensityModel - Model capability (log density + gradient)
        RandomWalkMetropolis, MALA - Reference samplers
        MemoryRecorder - In-memory append-only recorder
        ChainState, Draw, DiagnosticDraw, Phase, ProgressReport, ChainResult

    Backend:
        BackendConfig - Requested platform/device
        select_device - Resolve a BackendConfig to a jax.Device
        detect_backend - Backend fingerprint

    Errors:
        GPMCError, DensityValidationError, ChainFailure

Example:
    import jax
    from gpmc import LogDensityModel, MALA, MemoryRecorder, multi_gp_log, sample

    model = LogDensityModel(lambda p: multi_gp_log(y, make_kernel(p), w,
                                                   propto=True, wrt=('Sigma',)))
    state = model.initial_state(init_params)
    draws = MemoryRecorder()
    result = sample(MALA(0.1), model, state, jax.random.PRNGKey(0),
                    num_warmup=500, num_samples=1000, num_thin=2,
                    sample_recorder=draws)
"""
# CRITICAL: Import jax_config FIRST to set environment variables before JAX loads
from . import jax_config  # noqa: F401

from .densities import (
    LogDensityResult,
    ValidationCheck,
    ValidationOutcome,
    exp_quad_kernel,
    multi_gp_log,
    multi_gp_lpdf,
)
from .error_handling import GPMCError, DensityValidationError, ChainFailure
from .backend import BackendConfig, detect_backend, select_device

# Main chain entry points
from .mcmc import (
    ChainResult,
    ChainState,
    DiagnosticDraw,
    Draw,
    Phase,
    ProgressReport,
    LogDensityModel,
    RandomWalkMetropolis,
    MALA,
    MemoryRecorder,
    run_markov_chain,
    sample,
    run_from_config,
)

__version__ = "0.1.0"
