"""Shared test fixtures and configuration."""

import numpy as np
import pytest
import torch

from homeonet import (
    HomeostasisConfig,
    HomeostaticNeuronGroup,
    InputNeuronGroup,
    Network,
    PoissonInput,
    Polarity,
)
from homeonet.utils.numerical_validation import set_numerical_validation


@pytest.fixture(autouse=True)
def set_random_seed():
    """Ensure reproducible tests by setting all random seeds.

    This fixture runs automatically for every test to ensure deterministic behavior.
    """
    torch.manual_seed(42)
    np.random.seed(42)


@pytest.fixture(autouse=True)
def numerical_validation_on():
    """Every test starts (and ends) with numerical validation enabled."""
    set_numerical_validation(True)
    yield
    set_numerical_validation(True)


@pytest.fixture
def hp_config():
    """Homeostasis config with a seeded generator and default warm-up."""
    return HomeostasisConfig(seed=7)


@pytest.fixture
def small_network(hp_config):
    """Poisson input driving an E ⇄ I pair of homeostatic groups."""
    net = Network()
    net.add_input(InputNeuronGroup("drive", PoissonInput(40.0, 30, seed=11)))
    net.add_group(HomeostaticNeuronGroup("exc", 24, config=hp_config))
    net.add_group(HomeostaticNeuronGroup("inh", 8, polarity=Polarity.INHIBITORY, config=hp_config))
    net.connect("drive", "exc", connectivity=0.3, weight_range=(2.0, 4.0), delay_range=(1, 3), seed=1)
    net.connect("exc", "exc", connectivity=0.2, weight_range=(0.5, 1.0), delay_range=(1, 4), seed=2)
    net.connect("exc", "inh", connectivity=0.4, weight_range=(1.0, 2.0), seed=3)
    net.connect("inh", "exc", connectivity=0.4, weight_range=(0.5, 1.0), seed=4)
    return net
