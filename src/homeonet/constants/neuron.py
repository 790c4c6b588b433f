"""
Neuron Constants - Baseline LIF membrane parameters.

Voltages are in mV, times in ms.
"""

from __future__ import annotations

TAU_MEM_EXC = 30.0
"""Membrane time constant of excitatory units."""

TAU_MEM_INH = 20.0
"""Membrane time constant of inhibitory units."""

V_REST = -70.0
V_RESET_EXC = 13.5 - 70.0
V_RESET_INH = 14.5 - 70.0
V_THRESHOLD_INIT = -50.0

REFRACTORY_EXC_MS = 3.0
REFRACTORY_INH_MS = 2.0

BACKGROUND_CURRENT = 18.0
"""Constant background drive added to every unit (scaled by membrane resistance)."""

INPUT_RESISTANCE = 1.0
"""Membrane resistance scaling synaptic current into voltage."""

NEVER_SPIKED = -1.0e9
"""Sentinel last-spike time for units that never spiked."""
