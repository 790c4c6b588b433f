"""
Neuron Configuration - Baseline leaky integrate-and-fire membrane.
"""

from __future__ import annotations

from dataclasses import dataclass

from homeonet.config.base import BaseConfig
from homeonet.constants.neuron import (
    BACKGROUND_CURRENT,
    INPUT_RESISTANCE,
    REFRACTORY_EXC_MS,
    REFRACTORY_INH_MS,
    TAU_MEM_EXC,
    TAU_MEM_INH,
    V_RESET_EXC,
    V_RESET_INH,
    V_REST,
    V_THRESHOLD_INIT,
)
from homeonet.errors import ConfigurationError


@dataclass
class LIFConfig(BaseConfig):
    """Configuration for the current-based LIF baseline.

    Membrane dynamics (per ms):

        tau_mem * dV/dt = (v_rest - V) + R * (I_bg + I_exc - I_inh)

    A unit spikes when V crosses its (homeostatic) threshold, is reset to
    v_reset and held for tau_ref ms.
    """

    tau_mem: float = TAU_MEM_EXC
    v_rest: float = V_REST
    v_reset: float = V_RESET_EXC
    v_threshold: float = V_THRESHOLD_INIT
    tau_ref: float = REFRACTORY_EXC_MS
    background_current: float = BACKGROUND_CURRENT
    resistance: float = INPUT_RESISTANCE

    @classmethod
    def inhibitory(cls, **overrides) -> LIFConfig:
        """Defaults for fast-spiking inhibitory units."""
        params = dict(tau_mem=TAU_MEM_INH, v_reset=V_RESET_INH, tau_ref=REFRACTORY_INH_MS)
        params.update(overrides)
        return cls(**params)

    def __post_init__(self):
        if self.tau_mem <= 0:
            raise ConfigurationError(f"tau_mem must be positive, got {self.tau_mem}")
        if self.tau_ref < 0:
            raise ConfigurationError(f"tau_ref must be non-negative, got {self.tau_ref}")
        if self.resistance <= 0:
            raise ConfigurationError(f"resistance must be positive, got {self.resistance}")
