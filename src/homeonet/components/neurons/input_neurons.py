"""
Input Neurons - Experimenter-driven spike sources.

Input groups have no dynamics of their own. During the synchronization phase
the Scheduler calls

    group.update(dt, time, group.spikes, group.last_spike_time)

which asks the attached ``InputSource`` to write this step's spikes directly
into the committed buffers (no node update runs during that phase).

Every source must be idempotent: calling ``update`` twice with the same
arguments produces the same spikes. ``PoissonInput`` achieves this with a
counter-based RNG keyed by (seed, step, unit) instead of a stateful
generator.

Nodes whose source is an input group skip meta-homeostatic staging, since
experimenter-driven activity carries no network rate information.
"""

from __future__ import annotations

from typing import Optional, Protocol, Sequence, Union

import torch

from homeonet.components.neurons.neuron_group import NeuronGroup, Polarity
from homeonet.errors import ConfigurationError
from homeonet.utils.rng import philox_uniform, step_counters


class InputSource(Protocol):
    """Fills a spike vector for the step starting at ``time``."""

    def update(
        self,
        dt: float,
        time: float,
        spikes: torch.Tensor,
        last_spike_time: torch.Tensor,
    ) -> None:
        ...


class PoissonInput:
    """Independent Poisson spike trains with fixed per-unit rates (Hz).

    Args:
        rates_hz: Scalar or per-unit firing rates
        n_neurons: Population size
        seed: Seed of the counter-based stream
    """

    def __init__(self, rates_hz: Union[float, torch.Tensor], n_neurons: int, seed: int = 0):
        rates = torch.as_tensor(rates_hz, dtype=torch.float64)
        if rates.dim() == 0:
            rates = rates.expand(n_neurons).clone()
        if rates.shape != (n_neurons,):
            raise ConfigurationError(f"rates_hz must have shape ({n_neurons},), got {tuple(rates.shape)}")
        if (rates < 0).any() or not torch.isfinite(rates).all():
            raise ConfigurationError("rates_hz must be finite and non-negative")
        self.rates_hz = rates
        self.n_neurons = n_neurons
        self.seed = seed

    def update(self, dt: float, time: float, spikes: torch.Tensor, last_spike_time: torch.Tensor) -> None:
        step = int(round(time / dt))
        u = philox_uniform(step_counters(self.seed, step, self.n_neurons))
        p_spike = (self.rates_hz * dt / 1000.0).clamp(max=1.0)
        fired = (u < p_spike).to(spikes.device)
        spikes.copy_(fired)
        last_spike_time.masked_fill_(fired, time)


class SpikeTrainInput:
    """Replays explicit spike times.

    Args:
        spike_times: One sequence of spike times (ms) per unit
    """

    def __init__(self, spike_times: Sequence[Sequence[float]]):
        units, times = [], []
        for unit, unit_times in enumerate(spike_times):
            for t in unit_times:
                units.append(unit)
                times.append(float(t))
        self.n_neurons = len(spike_times)
        self._units = torch.tensor(units, dtype=torch.long)
        self._times = torch.tensor(times, dtype=torch.float64)

    def update(self, dt: float, time: float, spikes: torch.Tensor, last_spike_time: torch.Tensor) -> None:
        in_window = (self._times >= time) & (self._times < time + dt)
        fired = torch.zeros(self.n_neurons, dtype=torch.bool)
        fired[self._units[in_window]] = True
        fired = fired.to(spikes.device)
        spikes.copy_(fired)
        last_spike_time.masked_fill_(fired, time)


class InputNeuronGroup(NeuronGroup):
    """Neuron group driven entirely by an external ``InputSource``."""

    def __init__(
        self,
        name: str,
        source: InputSource,
        n_neurons: Optional[int] = None,
        polarity: Polarity = Polarity.EXCITATORY,
        dtype: torch.dtype = torch.float64,
        device: Optional[torch.device] = None,
    ):
        n_neurons = n_neurons if n_neurons is not None else getattr(source, "n_neurons", None)
        if n_neurons is None:
            raise ConfigurationError(f"Input group '{name}' needs n_neurons (source does not declare one)")
        source_size = getattr(source, "n_neurons", n_neurons)
        if source_size != n_neurons:
            raise ConfigurationError(
                f"Input group '{name}' has {n_neurons} units but its source produces {source_size}"
            )
        super().__init__(name, n_neurons, polarity=polarity, dtype=dtype, device=device)
        self.source = source

    @property
    def is_external(self) -> bool:
        return True

    def update(self, dt: float, time: float, spikes: torch.Tensor, last_spike_time: torch.Tensor) -> None:
        """Refresh this step's spikes from the external source."""
        self.source.update(dt, time, spikes, last_spike_time)
