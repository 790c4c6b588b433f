"""
Homeostasis Configuration - Threshold, scale-factor and preferred-rate adaptation.

Gathers the constants the homeostatic neuron update depends on so they can be
set per neuron group instead of being hard-coded. Defaults come from
``homeonet.constants.homeostasis``.
"""

from __future__ import annotations

from dataclasses import dataclass

from homeonet.config.base import BaseConfig
from homeonet.constants.homeostasis import (
    ETA_MHP_FINAL,
    ETA_MHP_INIT,
    EXC_SF_TAU,
    HP_DECAY,
    INH_NORM_DIVISOR,
    INH_SF_TAU,
    INITIAL_PREF_FR,
    LAMBDA_HP_FINAL,
    LAMBDA_HP_INIT,
    MAX_PFR,
    MHP_ALPHA,
    MHP_BETA,
    MHP_DECAY,
    MHP_LOW_FR,
    MHP_NOISE_VAR,
    MHP_WARMUP_MS,
    MIN_PFR,
    PFR_RESEED_JITTER,
    RATE_BIN_RESOLUTION,
    RATE_TAU_SCALE,
    SAT_A,
    SAT_B,
    SAT_C,
)
from homeonet.errors import ConfigurationError


@dataclass
class HomeostasisConfig(BaseConfig):
    """Configuration for homeostatic and meta-homeostatic plasticity.

    Attributes:
        lambda_init / lambda_final: Threshold adaptation rate and its floor.
        eta_init / eta_final: Preferred-rate adaptation rate and its floor.
        hp_decay / mhp_decay: Per-ms decay of lambda / eta toward their floors.

        mhp_enabled: Whether preferred rates drift under meta-homeostatic
            pressure. If False, preferred rates track estimated rates.
        warmup_ms: Simulation time before drift starts. During warm-up,
            preferred rates track estimated rates.
        noise_var: Multiplicative noise scale of the drift term.

        min_pfr / max_pfr: Bounds for preferred firing rates (Hz).
        initial_pref_fr: Starting preferred and estimated rate (Hz).
        reseed_jitter: Std of the jitter used to re-seed units below min_pfr.

        rate_tau_scale: Rate-estimate time constant numerator,
            tau = rate_tau_scale / sqrt(pref_fr).
        exc_sf_tau / inh_sf_tau: Sigmoid temperatures for the scale factors.
        sat_a / sat_b / sat_c: Saturating map from preferred rate to
            normalization target.
        inh_norm_divisor: Inhibitory target = excitatory target / divisor.

        alpha / beta / low_fr: Shape of the f-/f+ MHP nonlinearities.
        rate_bin_resolution: Rate bins per Hz for f+/f- lookup.
    """

    lambda_init: float = LAMBDA_HP_INIT
    lambda_final: float = LAMBDA_HP_FINAL
    eta_init: float = ETA_MHP_INIT
    eta_final: float = ETA_MHP_FINAL
    hp_decay: float = HP_DECAY
    mhp_decay: float = MHP_DECAY

    mhp_enabled: bool = True
    warmup_ms: float = MHP_WARMUP_MS
    noise_var: float = MHP_NOISE_VAR

    min_pfr: float = MIN_PFR
    max_pfr: float = MAX_PFR
    initial_pref_fr: float = INITIAL_PREF_FR
    reseed_jitter: float = PFR_RESEED_JITTER

    rate_tau_scale: float = RATE_TAU_SCALE
    exc_sf_tau: float = EXC_SF_TAU
    inh_sf_tau: float = INH_SF_TAU
    sat_a: float = SAT_A
    sat_b: float = SAT_B
    sat_c: float = SAT_C
    inh_norm_divisor: float = INH_NORM_DIVISOR

    alpha: float = MHP_ALPHA
    beta: float = MHP_BETA
    low_fr: float = MHP_LOW_FR
    rate_bin_resolution: float = RATE_BIN_RESOLUTION

    def __post_init__(self):
        """Validate configuration after initialization."""
        self._validate()

    def _validate(self) -> None:
        """Validate configuration values."""
        for name in ("lambda_init", "lambda_final", "eta_init", "eta_final", "hp_decay", "mhp_decay"):
            if getattr(self, name) < 0:
                raise ConfigurationError(f"{name} must be non-negative, got {getattr(self, name)}")
        if self.warmup_ms < 0:
            raise ConfigurationError(f"warmup_ms must be non-negative, got {self.warmup_ms}")
        if not (0 < self.min_pfr < self.max_pfr):
            raise ConfigurationError(
                f"Need 0 < min_pfr < max_pfr, got min_pfr={self.min_pfr}, max_pfr={self.max_pfr}"
            )
        if self.initial_pref_fr <= 0:
            raise ConfigurationError(f"initial_pref_fr must be positive, got {self.initial_pref_fr}")
        for name in ("rate_tau_scale", "exc_sf_tau", "inh_sf_tau", "inh_norm_divisor",
                     "alpha", "beta", "low_fr", "rate_bin_resolution"):
            if getattr(self, name) <= 0:
                raise ConfigurationError(f"{name} must be positive, got {getattr(self, name)}")
