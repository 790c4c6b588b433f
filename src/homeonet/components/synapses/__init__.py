"""
Synaptic components: weight storage, short-term plasticity, dampening and nodes.
"""

from __future__ import annotations

from .dampening import (
    DampeningFunction,
    dampen,
)
from .stp import (
    UDFPlasticity,
)
from .weight_store import (
    SynapticWeightStore,
)
from .synaptic_node import (
    SynapticNode,
)

__all__ = [
    # Dampening
    "DampeningFunction",
    "dampen",
    # Short-term plasticity
    "UDFPlasticity",
    # Storage
    "SynapticWeightStore",
    # Nodes
    "SynapticNode",
]
