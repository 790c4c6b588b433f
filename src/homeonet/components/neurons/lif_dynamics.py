"""Leaky Integrate-and-Fire baseline for homeostatic neuron groups.

**Membrane Dynamics**:
=====================
.. math::

    \\tau_m \\frac{dV}{dt} = (V_{rest} - V) + R \\cdot I_{bg}

Synaptic input is delta-shaped: the currents drained from a sector's nodes
jump the membrane by ``R * (I_exc - I_inh)`` at the start of the step.

**Spike Generation**:
When V ≥ threshold (the homeostatically adapted per-unit threshold):
- Write a spike into the group's spike buffer
- Reset: V → V_reset
- Enter refractory period (tau_ref ms, no integration)

The model never touches committed state: it writes ``spike_buffer`` and
``last_spike_buffer`` only, which the sector commits during synchronization.
"""

from __future__ import annotations

from typing import Optional, Protocol

import torch
import torch.nn as nn

from homeonet.config.neuron_config import LIFConfig


class BaselineNeuronModel(Protocol):
    """Produces this step's spikes for a homeostatic group."""

    def update(
        self,
        dt: float,
        time: float,
        exc_current: torch.Tensor,
        inh_current: torch.Tensor,
        threshold: torch.Tensor,
        last_spike_time: torch.Tensor,
        spike_buffer: torch.Tensor,
        last_spike_buffer: torch.Tensor,
    ) -> None:
        ...


class LIFDynamics(nn.Module):
    """Current-based LIF membrane with external (homeostatic) thresholds."""

    def __init__(
        self,
        n_neurons: int,
        config: Optional[LIFConfig] = None,
        dtype: torch.dtype = torch.float64,
        device: Optional[torch.device] = None,
    ):
        super().__init__()
        self.n_neurons = n_neurons
        self.config = config or LIFConfig()
        device = device or torch.device("cpu")

        self.register_buffer("membrane", torch.full((n_neurons,), self.config.v_rest, dtype=dtype, device=device))
        self.register_buffer("refractory", torch.zeros(n_neurons, dtype=dtype, device=device))
        self.membrane: torch.Tensor
        self.refractory: torch.Tensor

    def update(
        self,
        dt: float,
        time: float,
        exc_current: torch.Tensor,
        inh_current: torch.Tensor,
        threshold: torch.Tensor,
        last_spike_time: torch.Tensor,
        spike_buffer: torch.Tensor,
        last_spike_buffer: torch.Tensor,
    ) -> None:
        cfg = self.config

        # Decrement refractory counters (in-place)
        self.refractory.sub_(dt).clamp_(min=0.0)
        active = self.refractory <= 0.0

        leak = (cfg.v_rest - self.membrane) + cfg.resistance * cfg.background_current
        dv = (dt / cfg.tau_mem) * leak + cfg.resistance * (exc_current - inh_current)
        self.membrane.add_(torch.where(active, dv, torch.zeros_like(dv)))

        spikes = active & (self.membrane >= threshold)
        self.membrane.masked_fill_(spikes, cfg.v_reset)
        self.refractory.masked_fill_(spikes, cfg.tau_ref)

        spike_buffer.copy_(spikes)
        last_spike_buffer.copy_(torch.where(spikes, torch.full_like(last_spike_time, time), last_spike_time))
