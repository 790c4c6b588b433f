"""
Homeostasis Constants - Adaptation rates, firing-rate bounds, scale-factor shapes.

Time is in milliseconds and firing rates are in Hz throughout.
"""

from __future__ import annotations

import math

# =============================================================================
# ADAPTATION RATES
# =============================================================================

LAMBDA_HP_INIT = 1e-4
"""Initial homeostatic (threshold) adaptation rate."""

LAMBDA_HP_FINAL = 1e-5
"""Floor the homeostatic adaptation rate decays toward."""

ETA_MHP_INIT = 0.05
"""Initial meta-homeostatic (preferred rate) adaptation rate."""

ETA_MHP_FINAL = 1e-6
"""Floor the meta-homeostatic adaptation rate decays toward."""

HP_DECAY = 5e-6
"""Per-ms decay rate of lambda toward its floor."""

MHP_DECAY = 5e-6
"""Per-ms decay rate of eta toward its floor."""

# =============================================================================
# PREFERRED FIRING RATE
# =============================================================================

MIN_PFR = 0.5
"""Floor for preferred firing rates (Hz). Units below it are re-seeded."""

MAX_PFR = 100.0
"""Ceiling for preferred firing rates (Hz)."""

INITIAL_PREF_FR = 1.0
"""Preferred (and estimated) firing rate every unit starts at (Hz)."""

PFR_RESEED_JITTER = 0.1
"""Std of the Gaussian jitter used when re-seeding a unit below MIN_PFR."""

MHP_NOISE_VAR = 0.7
"""Multiplicative noise scale applied to preferred-rate drift."""

MHP_WARMUP_MS = 20000.0
"""Simulation time before preferred rates start drifting on their own."""

# =============================================================================
# FIRING RATE ESTIMATION
# =============================================================================

RATE_TAU_SCALE = 10000.0
"""Rate-estimate time constant is RATE_TAU_SCALE / sqrt(pref_fr) (ms)."""

RATE_EPS = 1e-4
"""Offset keeping log-ratios of firing rates finite."""

# =============================================================================
# SCALE FACTORS
# =============================================================================

LN2 = math.log(2.0)

EXC_SF_TAU = 0.2
"""Temperature of the excitatory scale-factor sigmoid."""

INH_SF_TAU = 0.2
"""Temperature of the inhibitory scale-factor sigmoid."""

SF_OFFSET = 0.5
"""Lower bound of both scale factors."""

SF_GAIN = 1.5
"""Sigmoid gain of both scale factors."""

SF_MAX = SF_OFFSET + SF_GAIN / (1.0 + LN2)
"""Upper bound of both scale factors."""

SF_EQUILIBRIUM = SF_OFFSET + SF_GAIN / (2.0 + LN2)
"""Scale factor at zero deviation."""

# =============================================================================
# NORMALIZATION TARGETS
# =============================================================================

SAT_A = 300.0
SAT_B = 0.1
SAT_C = -100.0
"""Saturating map from preferred rate to normalization target:
sat_a / (1 + exp(-sat_b * pref)) + sat_c."""

INH_NORM_DIVISOR = 5.0
"""Inhibitory targets are the excitatory target divided by this."""

# =============================================================================
# MHP NONLINEARITY
# =============================================================================

MHP_ALPHA = 2.0
MHP_BETA = 10.0
MHP_LOW_FR = 2.0

RATE_BIN_RESOLUTION = 10.0
"""Rate bins per Hz used to discretize preferred rates for f+/f- lookup."""
