"""
Backend Selection - Runtime detection of the linear-algebra accelerator.

The dense-matrix work in the density evaluator runs on whatever device JAX
places it on. This module replaces build-time GPU/MPI toggles with an explicit
runtime configuration:

- BackendConfig: Requested platform, device index and distributed flag
- detect_backend: Collect backend/device fingerprint for logging
- select_device: Resolve a BackendConfig to a concrete jax.Device
"""

from dataclasses import dataclass
from typing import Dict, Any, Optional

import jax

import logging
logger = logging.getLogger('gpmc')

VALID_PLATFORMS = (None, 'cpu', 'gpu', 'tpu')


@dataclass(frozen=True)
class BackendConfig:
    """
    Requested execution backend for one chain.

    Attributes:
        platform: 'cpu', 'gpu', 'tpu' or None for the JAX default backend
        device_id: Index into the platform's device list
        distributed: Whether chains are expected to run across JAX processes
    """
    platform: Optional[str] = None
    device_id: int = 0
    distributed: bool = False

    def __post_init__(self):
        if self.platform not in VALID_PLATFORMS:
            raise ValueError(
                f"platform must be one of {VALID_PLATFORMS}, got {self.platform!r}"
            )
        if self.device_id < 0:
            raise ValueError(f"device_id must be >= 0, got {self.device_id}")


def detect_backend() -> Dict[str, Any]:
    """
    Collect backend information for run logs.

    Returns:
        Dict with the default backend name, visible devices, process count
        and the JAX version.
    """
    return {
        'jax_backend': str(jax.default_backend()),
        'jax_devices': [str(d) for d in jax.devices()],
        'process_count': jax.process_count(),
        'jax_version': jax.__version__,
    }


def select_device(config: Optional[BackendConfig] = None) -> jax.Device:
    """
    Resolve a backend request to a device.

    Falls back to the default device (with a warning) when the requested
    platform is not available or the device index is out of range, so a
    config written for a GPU box still runs on a laptop.

    Args:
        config: Requested backend, or None for the JAX default

    Returns:
        The jax.Device that chain state should be placed on
    """
    if config is None:
        config = BackendConfig()

    if config.distributed and jax.process_count() <= 1:
        logger.warning("Distributed execution requested but only one JAX process is running; "
                       "continuing single-process.")

    if config.platform is None:
        devices = jax.devices()
    else:
        try:
            devices = jax.devices(config.platform)
        except RuntimeError:
            logger.warning(f"Platform '{config.platform}' not available; "
                           f"using default backend '{jax.default_backend()}'.")
            return jax.devices()[0]

    if config.device_id >= len(devices):
        logger.warning(f"Device {config.device_id} not found on '{devices[0].platform}' "
                       f"({len(devices)} available); using device 0.")
        return devices[0]

    return devices[config.device_id]
