"""
Recorders - append-only sinks for persisted chain states.

One recorder instance belongs to one chain. Appends from chains running
concurrently would interleave, so recorders must never be shared.
"""

from pathlib import Path
from typing import Any, Iterator, List, Protocol

import jax
import numpy as np

import logging
logger = logging.getLogger('gpmc')


class Recorder(Protocol):
    """Protocol for append-only, order-preserving sinks."""

    def append(self, item: Any) -> None:
        ...


class MemoryRecorder:
    """
    In-memory recorder backed by a list.

    Accepts Draw items (sample recorder) or DiagnosticDraw items (diagnostic
    recorder); array helpers apply to whichever fields the items carry.
    """

    def __init__(self):
        self._items: List[Any] = []

    def append(self, item: Any) -> None:
        self._items.append(item)

    def __len__(self) -> int:
        return len(self._items)

    def __iter__(self) -> Iterator[Any]:
        return iter(self._items)

    def __getitem__(self, index):
        return self._items[index]

    @property
    def items(self) -> List[Any]:
        return list(self._items)

    def iterations(self) -> np.ndarray:
        return np.array([item.iteration for item in self._items], dtype=np.int64)

    def phases(self) -> List[str]:
        return [item.phase.value for item in self._items]

    def params_array(self) -> np.ndarray:
        """Recorded parameters stacked as (n_draws, n_params)."""
        if not self._items:
            return np.empty((0, 0))
        return np.stack([np.asarray(jax.device_get(item.params)) for item in self._items])

    def log_density_array(self) -> np.ndarray:
        return np.array([float(item.log_density) for item in self._items])

    def stat_array(self, name: str) -> np.ndarray:
        """One sampler statistic per recorded item (e.g. 'accepted')."""
        return np.array([item.stats[name] for item in self._items if name in item.stats])

    def save(self, filepath: str) -> None:
        """
        Save recorded draws to a compressed .npz file.

        Saves whichever of params / log_density / gradient the items carry,
        plus iteration numbers and phases.
        """
        arrays = {
            'iteration': self.iterations(),
            'phase': np.array(self.phases()),
        }
        if self._items and hasattr(self._items[0], 'params'):
            arrays['params'] = self.params_array()
            arrays['log_density'] = self.log_density_array()
        if self._items and hasattr(self._items[0], 'gradient'):
            arrays['gradient'] = np.stack([np.asarray(item.gradient) for item in self._items])

        filepath = Path(filepath)
        np.savez_compressed(filepath, **arrays)
        logger.info(f"Saved {len(self)} recorded items to {filepath}")
