"""
Network components: neuron groups and synaptic nodes.

This module provides the building blocks wired together by ``Network``.
"""

from homeonet.components.neurons import (
    BaselineNeuronModel,
    HomeostaticNeuronGroup,
    InputNeuronGroup,
    InputSource,
    LIFDynamics,
    NeuronGroup,
    NormalizationState,
    PoissonInput,
    Polarity,
    SpikeTrainInput,
)
from homeonet.components.synapses import (
    DampeningFunction,
    SynapticNode,
    SynapticWeightStore,
    UDFPlasticity,
)

__all__ = [
    "BaselineNeuronModel",
    "HomeostaticNeuronGroup",
    "InputNeuronGroup",
    "InputSource",
    "LIFDynamics",
    "NeuronGroup",
    "NormalizationState",
    "PoissonInput",
    "Polarity",
    "SpikeTrainInput",
    "DampeningFunction",
    "SynapticNode",
    "SynapticWeightStore",
    "UDFPlasticity",
]
