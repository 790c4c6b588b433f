"""
Spike-Timing-Dependent Plasticity rules.

The synaptic node treats the rule as an injected strategy: a pure function
of (arrival times, post-synaptic spike times) returning weight deltas. The
node accumulates these deltas into the store's pending ``dw`` buffer;
dampening and commit happen afterwards.

Two triggers exist:

1. **Pre-triggered** (an event arrives at its target): compares the arrival
   time with the target's last spike. In Hebbian mode, a post spike that
   preceded the arrival yields depression.
2. **Post-triggered** (the target spikes): compares the target's spike time
   with the last arrival on each of its incoming synapses. In Hebbian mode,
   an arrival that preceded the post spike yields potentiation.

Anti-Hebbian mode reverses both signs (and swaps the windows), which is the
default for inhibitory sources.
"""

from __future__ import annotations

from typing import Optional, Protocol

import torch

from homeonet.config.learning_config import STDPConfig


class STDPRule(Protocol):
    """Interface every STDP rule used by a synaptic node implements."""

    def pre_triggered(self, arrival_times: torch.Tensor, last_post_spikes: torch.Tensor) -> torch.Tensor:
        """Δw for events arriving at targets whose last spike was last_post_spikes."""
        ...

    def post_triggered(self, last_arrivals: torch.Tensor, post_spike_times: torch.Tensor) -> torch.Tensor:
        """Δw for synapses whose target just spiked at post_spike_times."""
        ...


class StandardSTDP:
    """Exponential-window STDP.

    Hebbian:
        post-triggered:  +eta * w_plus  * exp((t_arr - t_post) / tau_plus)
        pre-triggered:   -eta * w_minus * exp((t_post - t_arr) / tau_minus)

    Anti-Hebbian:
        post-triggered:  -eta * w_minus * exp((t_arr - t_post) / tau_minus)
        pre-triggered:   +eta * w_plus  * exp((t_post - t_arr) / tau_plus)
    """

    def __init__(self, config: Optional[STDPConfig] = None):
        self.config = config or STDPConfig()

    @classmethod
    def for_polarities(cls, src_exc: bool, tar_exc: bool, **overrides) -> StandardSTDP:
        return cls(STDPConfig.for_polarities(src_exc, tar_exc, **overrides))

    @property
    def hebbian(self) -> bool:
        return self.config.hebbian

    def post_triggered(self, last_arrivals: torch.Tensor, post_spike_times: torch.Tensor) -> torch.Tensor:
        cfg = self.config
        lag = last_arrivals - post_spike_times
        if cfg.hebbian:
            return cfg.learning_rate * cfg.w_plus * torch.exp(lag / cfg.tau_plus)
        return -cfg.learning_rate * cfg.w_minus * torch.exp(lag / cfg.tau_minus)

    def pre_triggered(self, arrival_times: torch.Tensor, last_post_spikes: torch.Tensor) -> torch.Tensor:
        cfg = self.config
        lag = last_post_spikes - arrival_times
        if cfg.hebbian:
            return -cfg.learning_rate * cfg.w_minus * torch.exp(lag / cfg.tau_minus)
        return cfg.learning_rate * cfg.w_plus * torch.exp(lag / cfg.tau_plus)

    def __repr__(self) -> str:
        cfg = self.config
        return (
            f"StandardSTDP(eta={cfg.learning_rate}, hebbian={cfg.hebbian}, "
            f"w_plus={cfg.w_plus}, w_minus={cfg.w_minus}, "
            f"tau_plus={cfg.tau_plus}, tau_minus={cfg.tau_minus})"
        )
