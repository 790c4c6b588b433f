"""
homeonet Configuration System.

Usage:
======

    from homeonet.config import SimulationConfig, HomeostasisConfig

    sim_config = SimulationConfig(dt_ms=1.0, seed=42)
    hp_config = HomeostasisConfig(warmup_ms=5000.0)
"""

from homeonet.config.base import BaseConfig
from homeonet.config.homeostasis_config import HomeostasisConfig
from homeonet.config.learning_config import STDPConfig, STPConfig
from homeonet.config.neuron_config import LIFConfig
from homeonet.config.simulation_config import SimulationConfig

__all__ = [
    "BaseConfig",
    "HomeostasisConfig",
    "LIFConfig",
    "STDPConfig",
    "STPConfig",
    "SimulationConfig",
]
