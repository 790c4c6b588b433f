"""
Synapse Constants - Weight bounds, STDP windows and UDF short-term plasticity.

Polarity pairs are keyed as (source_excitatory, target_excitatory).
"""

from __future__ import annotations

from typing import Dict, Tuple

# =============================================================================
# WEIGHT BOUNDS
# =============================================================================

MAX_WEIGHT = 20.0
"""Upper bound applied by dampening."""

MIN_WEIGHT = 0.0
"""Lower bound applied by dampening."""

# =============================================================================
# STDP WINDOWS
# =============================================================================

STDP_LEARNING_RATE = 1e-4
"""Default STDP learning rate (eta)."""

# (w_plus, w_minus, tau_plus_ms, tau_minus_ms)
STDP_DEFAULTS: Dict[Tuple[bool, bool], Tuple[float, float, float, float]] = {
    (True, True): (5.0, 1.0, 25.0, 100.0),
    (True, False): (1.0, 1.0, 25.0, 100.0),
    (False, True): (1.5, 1.0, 25.0, 25.0),
    (False, False): (1.0, 1.0, 25.0, 25.0),
}

# =============================================================================
# UDF SHORT-TERM PLASTICITY (Markram et al., 1998)
# =============================================================================

# (U, D_ms, F_ms)
UDF_DEFAULTS: Dict[Tuple[bool, bool], Tuple[float, float, float]] = {
    (True, True): (0.5, 1100.0, 50.0),
    (True, False): (0.05, 125.0, 1200.0),
    (False, True): (0.25, 700.0, 20.0),
    (False, False): (0.32, 144.0, 60.0),
}

# =============================================================================
# DELAYS
# =============================================================================

DEFAULT_DELAY_MS = 1.0
MAX_DELAY_MS = 20.0
