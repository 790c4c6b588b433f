"""
Neuron groups: double-buffered spike state, LIF baseline, inputs and homeostasis.
"""

from __future__ import annotations

from .neuron_group import (
    NeuronGroup,
    Polarity,
)
from .lif_dynamics import (
    BaselineNeuronModel,
    LIFDynamics,
)
from .input_neurons import (
    InputNeuronGroup,
    InputSource,
    PoissonInput,
    SpikeTrainInput,
)
from .normalization import (
    NormalizationState,
)
from .homeostatic_neurons import (
    HomeostaticNeuronGroup,
    scale_factor_sigmoid,
)

__all__ = [
    # Groups
    "NeuronGroup",
    "Polarity",
    "HomeostaticNeuronGroup",
    "InputNeuronGroup",
    # Baseline model
    "BaselineNeuronModel",
    "LIFDynamics",
    # Inputs
    "InputSource",
    "PoissonInput",
    "SpikeTrainInput",
    # Homeostasis
    "NormalizationState",
    "scale_factor_sigmoid",
]
