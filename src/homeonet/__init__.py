"""
homeonet - Homeostatic and meta-homeostatic spiking networks.

A concurrent per-timestep engine for spiking networks whose neurons regulate
their own firing rates: thresholds adapt toward a preferred rate, afferent
weights are normalized and scaled, and the preferred rates themselves drift
under network-wide pressure (meta-homeostasis), alongside STDP.

Quick Start:
============

    from homeonet import (
        HomeostaticNeuronGroup, InputNeuronGroup, Network, PoissonInput,
        Polarity, Scheduler, SimulationConfig,
    )

    net = Network(SimulationConfig(dt_ms=1.0, max_weight=10.0, seed=2))
    net.add_input(InputNeuronGroup("drive", PoissonInput(20.0, 100, seed=1)))
    net.add_group(HomeostaticNeuronGroup("exc", 80))
    net.connect("drive", "exc", connectivity=0.2, weight_range=(0.5, 1.5))

    with Scheduler(net) as scheduler:
        scheduler.run(1000)

Internal code should use explicit module imports:

    from homeonet.core.sector import Sector
    from homeonet.components.synapses.synaptic_node import SynapticNode
"""

__version__ = "0.1.0"

# ============================================================================
# PUBLIC API
# ============================================================================

# Errors
from homeonet.errors import (
    ConcurrencyFault,
    ConfigurationError,
    HomeonetError,
    ModelingFault,
)

# Configuration
from homeonet.config import (
    HomeostasisConfig,
    LIFConfig,
    SimulationConfig,
    STDPConfig,
    STPConfig,
)

# Engine (imported before components; see homeonet.core)
from homeonet.core import (
    Network,
    Scheduler,
    Sector,
    SimulationClock,
    StepContext,
)

# Components
from homeonet.components import (
    DampeningFunction,
    HomeostaticNeuronGroup,
    InputNeuronGroup,
    LIFDynamics,
    NeuronGroup,
    PoissonInput,
    Polarity,
    SpikeTrainInput,
    SynapticNode,
    SynapticWeightStore,
)

# Learning
from homeonet.learning import StandardSTDP

__all__ = [
    "__version__",
    # Errors
    "ConcurrencyFault",
    "ConfigurationError",
    "HomeonetError",
    "ModelingFault",
    # Configuration
    "HomeostasisConfig",
    "LIFConfig",
    "SimulationConfig",
    "STDPConfig",
    "STPConfig",
    # Engine
    "Network",
    "Scheduler",
    "Sector",
    "SimulationClock",
    "StepContext",
    # Components
    "DampeningFunction",
    "HomeostaticNeuronGroup",
    "InputNeuronGroup",
    "LIFDynamics",
    "NeuronGroup",
    "PoissonInput",
    "Polarity",
    "SpikeTrainInput",
    "SynapticNode",
    "SynapticWeightStore",
    # Learning
    "StandardSTDP",
]
