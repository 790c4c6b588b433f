"""
Neuron Groups - Spike state shared between synaptic nodes.

A neuron group is an ordered population of units. Synaptic nodes read its
committed state (``spikes``, ``last_spike_time``, ``est_fr``) concurrently,
so every per-step write goes into a buffer that is committed only during
the synchronization phase:

    spike_buffer       → spikes
    last_spike_buffer  → last_spike_time
    est_fr_buffer      → est_fr

Polarity:
=========
Every group is either EXCITATORY or INHIBITORY, fixed at construction. The
polarity of a node's *source* group decides which of the target's
normalization states (and which STDP/UDF defaults) the node uses.
"""

from __future__ import annotations

from enum import Enum
from typing import Any, Dict, Optional

import torch
import torch.nn as nn

from homeonet.constants.homeostasis import INITIAL_PREF_FR
from homeonet.constants.neuron import NEVER_SPIKED
from homeonet.errors import ConfigurationError


class Polarity(Enum):
    """Sign of a population's outgoing synapses."""
    EXCITATORY = "excitatory"
    INHIBITORY = "inhibitory"

    @property
    def is_excitatory(self) -> bool:
        return self is Polarity.EXCITATORY


class NeuronGroup(nn.Module):
    """Ordered population of units with double-buffered spike state.

    Args:
        name: Identity used in logs and fault messages
        n_neurons: Population size
        polarity: EXCITATORY or INHIBITORY
        dtype: Floating dtype for time/rate tensors
        device: Torch device
    """

    def __init__(
        self,
        name: str,
        n_neurons: int,
        polarity: Polarity = Polarity.EXCITATORY,
        dtype: torch.dtype = torch.float64,
        device: Optional[torch.device] = None,
        initial_rate: float = INITIAL_PREF_FR,
    ):
        super().__init__()
        if n_neurons <= 0:
            raise ConfigurationError(f"Neuron group '{name}' must have n_neurons > 0, got {n_neurons}")
        if not isinstance(polarity, Polarity):
            raise ConfigurationError(f"polarity must be a Polarity, got {polarity!r}")

        self.name = name
        self.n_neurons = n_neurons
        self.polarity = polarity
        self.dtype = dtype
        self._device = device or torch.device("cpu")

        self.register_buffer("spikes", torch.zeros(n_neurons, dtype=torch.bool, device=self._device))
        self.register_buffer("spike_buffer", torch.zeros(n_neurons, dtype=torch.bool, device=self._device))
        self.register_buffer(
            "last_spike_time", torch.full((n_neurons,), NEVER_SPIKED, dtype=dtype, device=self._device)
        )
        self.register_buffer(
            "last_spike_buffer", torch.full((n_neurons,), NEVER_SPIKED, dtype=dtype, device=self._device)
        )
        self.register_buffer("est_fr", torch.full((n_neurons,), initial_rate, dtype=dtype, device=self._device))
        self.register_buffer(
            "est_fr_buffer", torch.full((n_neurons,), initial_rate, dtype=dtype, device=self._device)
        )
        self.spikes: torch.Tensor
        self.spike_buffer: torch.Tensor
        self.last_spike_time: torch.Tensor
        self.last_spike_buffer: torch.Tensor
        self.est_fr: torch.Tensor
        self.est_fr_buffer: torch.Tensor

    @property
    def device(self) -> torch.device:
        return self.spikes.device

    @property
    def size(self) -> int:
        return self.n_neurons

    @property
    def is_excitatory(self) -> bool:
        return self.polarity.is_excitatory

    @property
    def is_external(self) -> bool:
        """True for experimenter-driven input populations."""
        return False

    def commit(self) -> None:
        """Publish the buffered spikes, spike times and rate estimates."""
        self.spikes.copy_(self.spike_buffer)
        self.last_spike_time.copy_(self.last_spike_buffer)
        self.est_fr.copy_(self.est_fr_buffer)

    def get_diagnostics(self) -> Dict[str, Any]:
        return {
            "name": self.name,
            "n_neurons": self.n_neurons,
            "polarity": self.polarity.value,
            "spike_count": int(self.spikes.sum().item()),
            "est_fr_mean": float(self.est_fr.mean().item()),
        }

    def extra_repr(self) -> str:
        return f"name={self.name!r}, n_neurons={self.n_neurons}, polarity={self.polarity.value}"
