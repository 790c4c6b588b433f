"""
Centralized Constants for homeonet.

Usage:
======
    from homeonet.constants.homeostasis import MIN_PFR, MAX_PFR
    from homeonet.constants import synapse

Categories:
===========
- homeostasis: Adaptation rates, preferred-rate bounds, scale-factor shapes
- neuron: Baseline LIF membrane parameters
- synapse: Weight bounds, STDP windows, UDF short-term plasticity
"""

from __future__ import annotations

from .homeostasis import *
from .neuron import *
from .synapse import *
