"""
Log-density functions.

- multi_gp_log: Multivariate GP log density returning (value, outcome)
- multi_gp_lpdf: Same, raising DensityValidationError on invalid arguments
- exp_quad_kernel: Squared-exponential kernel matrix builder
- common: Validation checks, result types and linear-algebra helpers
"""

from .common import (
    LogDensityResult,
    ValidationCheck,
    ValidationOutcome,
    include_summand,
)
from .multi_gp import multi_gp_log, multi_gp_lpdf
from .kernels import exp_quad_kernel

__all__ = [
    'LogDensityResult',
    'ValidationCheck',
    'ValidationOutcome',
    'include_summand',
    'multi_gp_log',
    'multi_gp_lpdf',
    'exp_quad_kernel',
]
