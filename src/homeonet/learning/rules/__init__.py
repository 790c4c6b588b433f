"""Plasticity rules injected into synaptic nodes."""

from homeonet.learning.rules.stdp import StandardSTDP, STDPRule

__all__ = ["StandardSTDP", "STDPRule"]
