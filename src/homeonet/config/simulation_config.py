"""
Simulation Configuration - Parameters shared by the whole run.

These parameters are truly global: they define the clock and the worker
pool and must be consistent everywhere.
"""

from __future__ import annotations

import os
from dataclasses import dataclass
from typing import Optional

from homeonet.config.base import BaseConfig
from homeonet.constants.synapse import MAX_WEIGHT
from homeonet.errors import ConfigurationError


@dataclass
class SimulationConfig(BaseConfig):
    """Universal parameters shared across all components.

    Inherits device, dtype, and seed from BaseConfig.

    Example:
        config = SimulationConfig(dt_ms=0.5, n_workers=4, seed=1234)
    """

    # =========================================================================
    # TIMING
    # =========================================================================
    dt_ms: float = 1.0
    """Simulation timestep in milliseconds. Smaller = more precise but slower."""

    start_time_ms: float = 0.0
    """Simulation time of the first step."""

    # =========================================================================
    # WORKER POOL
    # =========================================================================
    n_workers: Optional[int] = None
    """Worker threads. None = available hardware parallelism."""

    # =========================================================================
    # WEIGHT BOUNDS
    # =========================================================================
    max_weight: float = MAX_WEIGHT
    """Maximum synaptic weight enforced by dampening."""

    def __post_init__(self):
        """Validate configuration after initialization."""
        self._validate()

    def _validate(self) -> None:
        if self.dt_ms <= 0:
            raise ConfigurationError(f"dt_ms must be positive, got {self.dt_ms}")
        if self.n_workers is not None and self.n_workers < 1:
            raise ConfigurationError(f"n_workers must be >= 1, got {self.n_workers}")
        if self.max_weight <= 0:
            raise ConfigurationError(f"max_weight must be positive, got {self.max_weight}")

    @property
    def resolved_workers(self) -> int:
        """Worker count, defaulting to the CPU count."""
        return self.n_workers or os.cpu_count() or 1
