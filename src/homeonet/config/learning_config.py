"""
Learning Configuration - STDP windows and UDF short-term plasticity.

Both configs resolve their defaults from the (source, target) polarity pair
of the connection they describe, so a node gets sensible parameters for
E→E, E→I, I→E and I→I synapses without extra wiring code.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Optional

from homeonet.config.base import BaseConfig
from homeonet.constants.synapse import (
    MAX_WEIGHT,
    MIN_WEIGHT,
    STDP_DEFAULTS,
    STDP_LEARNING_RATE,
    UDF_DEFAULTS,
)
from homeonet.errors import ConfigurationError


@dataclass
class STDPConfig(BaseConfig):
    """Configuration for exponential-window STDP.

    Hebbian mode:
        pre arrives after post  → Δw = -eta * w_minus * exp((t_post - t_arr) / tau_minus)
        post fires after arrival → Δw = +eta * w_plus  * exp((t_arr - t_post) / tau_plus)

    Anti-Hebbian mode swaps the signs (and windows) of both terms.
    Unset amplitudes/time constants are filled from the polarity pair.
    """

    learning_rate: float = STDP_LEARNING_RATE
    """STDP-specific learning rate (eta)."""

    hebbian: bool = True
    """Hebbian (causal potentiation) vs anti-Hebbian window."""

    w_plus: Optional[float] = None
    w_minus: Optional[float] = None
    tau_plus: Optional[float] = None
    tau_minus: Optional[float] = None

    w_min: float = MIN_WEIGHT
    w_max: float = MAX_WEIGHT

    @classmethod
    def for_polarities(cls, src_exc: bool, tar_exc: bool, **overrides) -> STDPConfig:
        """Defaults for a connection from a src_exc source to a tar_exc target."""
        w_p, w_m, tau_p, tau_m = STDP_DEFAULTS[(src_exc, tar_exc)]
        params = dict(w_plus=w_p, w_minus=w_m, tau_plus=tau_p, tau_minus=tau_m, hebbian=src_exc)
        params.update(overrides)
        return cls(**params)

    def __post_init__(self):
        if self.learning_rate < 0:
            raise ConfigurationError(f"learning_rate must be non-negative, got {self.learning_rate}")
        if self.w_max <= self.w_min:
            raise ConfigurationError(f"w_max ({self.w_max}) must exceed w_min ({self.w_min})")
        w_p, w_m, tau_p, tau_m = STDP_DEFAULTS[(True, True)]
        if self.w_plus is None:
            self.w_plus = w_p
        if self.w_minus is None:
            self.w_minus = w_m
        if self.tau_plus is None:
            self.tau_plus = tau_p
        if self.tau_minus is None:
            self.tau_minus = tau_m
        if self.tau_plus <= 0 or self.tau_minus <= 0:
            raise ConfigurationError(
                f"STDP time constants must be positive, got tau_plus={self.tau_plus}, "
                f"tau_minus={self.tau_minus}"
            )


@dataclass
class STPConfig(BaseConfig):
    """Configuration for UDF (use, depression, facilitation) short-term plasticity.

    On each presynaptic spike with inter-spike interval isi:

        u' = U + u * (1 - U) * exp(-isi / F)
        r' = 1 + (r - u * r - 1) * exp(-isi / D)
        response = u' * r'
    """

    U: float = 0.5
    D: float = 1100.0
    F: float = 50.0
    enabled: bool = True

    @classmethod
    def for_polarities(cls, src_exc: bool, tar_exc: bool, **overrides) -> STPConfig:
        """Markram defaults for the given polarity pair."""
        U, D, F = UDF_DEFAULTS[(src_exc, tar_exc)]
        params = dict(U=U, D=D, F=F)
        params.update(overrides)
        return cls(**params)

    def __post_init__(self):
        if not (0.0 < self.U <= 1.0):
            raise ConfigurationError(f"U must be in (0, 1], got {self.U}")
        if self.D <= 0 or self.F <= 0:
            raise ConfigurationError(f"D and F must be positive, got D={self.D}, F={self.F}")
