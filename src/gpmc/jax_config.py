"""
JAX Configuration - MUST be imported before any JAX imports.

This module sets environment variables for JAX configuration including:
- Persistent compilation cache directory
- Minimum compile time threshold for caching
- GPU memory allocator settings
- XLA C++ log verbosity
"""
import os
from pathlib import Path

# --- GPU MEMORY ALLOCATOR ---
os.environ.setdefault("TF_GPU_ALLOCATOR", "cuda_malloc_async")

# Suppress CUDA/XLA C++ warnings (GPU interconnect, NUMA, cuDNN factories)
os.environ.setdefault("TF_CPP_MIN_LOG_LEVEL", "2")

# --- PERSISTENT COMPILATION CACHE ---
_JAX_CACHE_DIR = Path.home() / ".cache" / "jax" / "gpmc_cache"
try:
    _JAX_CACHE_DIR.mkdir(parents=True, exist_ok=True)
    os.environ.setdefault("JAX_COMPILATION_CACHE_DIR", str(_JAX_CACHE_DIR))
    os.environ.setdefault("JAX_PERSISTENT_CACHE_MIN_COMPILE_TIME_SECS", "1.0")
except OSError:
    # Read-only home directory: no persistent cache
    pass
