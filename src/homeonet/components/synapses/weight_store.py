"""
Synaptic Weight Store - Target-ordered connection storage for one node.

The store owns every per-connection tensor of a synaptic node. Connections
are kept sorted by (target, source), so all incoming connections of a target
are contiguous and per-target operations (incoming sums, scaling) reduce to
``index_add_`` / gather over ``conn_target``.

Per-connection state:
=====================
- ``conn_source`` / ``conn_target``: local source and target indices
- ``weights``: committed weights (non-negative, bounded by ``w_max``)
- ``dw``: pending weight changes, accumulated during a step and committed
  by ``update_weights`` after dampening
- ``delays``: transmission delays (ms)
- ``last_arrival``: time of the most recent event delivered along the
  connection (read by post-triggered STDP)
- ``stp``: UDF short-term plasticity state

Event flow for a step:
======================
.. code-block:: python

    conns = store.calc_spike_responses(source.spikes, time)
    store.add_events(conns, time, queue, target_offset)
    due = queue.pop_due(time)
    store.process_events_stdp(due, currents, rule, target.last_spike_time)
    store.post_triggered(target.spikes, target.last_spike_time, rule)
    store.dampen(dampening)
    store.update_weights()

Weights are stored as a flat vector rather than a dense matrix: sparse
connectivity is the common case and every operation here is target-keyed.
"""

from __future__ import annotations

from typing import Optional, Sequence, Tuple, Union

import torch
import torch.nn as nn

from homeonet.components.synapses.dampening import DampeningFunction, dampen
from homeonet.components.synapses.stp import UDFPlasticity
from homeonet.config.learning_config import STPConfig
from homeonet.constants.neuron import NEVER_SPIKED
from homeonet.constants.synapse import DEFAULT_DELAY_MS, MAX_DELAY_MS, MAX_WEIGHT, MIN_WEIGHT
from homeonet.core.event_queue import SynapticEvent, SynapticEventQueue
from homeonet.errors import ConfigurationError
from homeonet.learning.rules.stdp import STDPRule

TensorLike = Union[torch.Tensor, Sequence[float], Sequence[int]]


class SynapticWeightStore(nn.Module):
    """Target-ordered COO storage of one node's connections.

    Args:
        n_source: Source group size (node height)
        n_target: Target group size (node width)
        conn_source: Source index of each connection
        conn_target: Target index of each connection
        weights: Initial weight of each connection
        delays: Transmission delay of each connection (ms), scalar or per-connection
        stp_config: UDF parameters (None disables short-term plasticity)
        w_max: Upper weight bound enforced by dampening
        w_min: Lower weight bound enforced by dampening
    """

    def __init__(
        self,
        n_source: int,
        n_target: int,
        conn_source: TensorLike,
        conn_target: TensorLike,
        weights: TensorLike,
        delays: Union[float, TensorLike] = DEFAULT_DELAY_MS,
        stp_config: Optional[STPConfig] = None,
        w_max: float = MAX_WEIGHT,
        w_min: float = MIN_WEIGHT,
        dtype: torch.dtype = torch.float64,
        device: Optional[torch.device] = None,
    ):
        super().__init__()
        device = device or torch.device("cpu")
        src = torch.as_tensor(conn_source, dtype=torch.long, device=device).flatten()
        tgt = torch.as_tensor(conn_target, dtype=torch.long, device=device).flatten()
        w = torch.as_tensor(weights, dtype=dtype, device=device).flatten()
        d = torch.as_tensor(delays, dtype=dtype, device=device).flatten()
        if d.numel() == 1:
            d = d.expand(src.numel()).clone()

        self._validate(n_source, n_target, src, tgt, w, d, w_max, w_min)

        # Sort by (target, source)
        order = torch.argsort(tgt * n_source + src, stable=True)
        self.n_source = n_source
        self.n_target = n_target
        self.w_max = w_max
        self.w_min = w_min

        self.register_buffer("conn_source", src[order].contiguous())
        self.register_buffer("conn_target", tgt[order].contiguous())
        self.register_buffer("weights", w[order].contiguous())
        self.register_buffer("dw", torch.zeros_like(w))
        self.register_buffer("delays", d[order].contiguous())
        self.register_buffer("last_arrival", torch.full_like(w, NEVER_SPIKED))
        self.conn_source: torch.Tensor
        self.conn_target: torch.Tensor
        self.weights: torch.Tensor
        self.dw: torch.Tensor
        self.delays: torch.Tensor
        self.last_arrival: torch.Tensor

        if stp_config is None:
            stp_config = STPConfig(enabled=False)
        self.stp = UDFPlasticity(self.n_connections, stp_config, dtype=dtype, device=device)
        self.register_buffer("responses", torch.ones_like(w))
        self.responses: torch.Tensor

    @staticmethod
    def _validate(n_source, n_target, src, tgt, w, d, w_max, w_min) -> None:
        if n_source <= 0 or n_target <= 0:
            raise ConfigurationError(f"Store dimensions must be positive, got {n_source}x{n_target}")
        n = src.numel()
        if tgt.numel() != n or w.numel() != n or d.numel() != n:
            raise ConfigurationError(
                f"Connection arrays differ in length: source={n}, target={tgt.numel()}, "
                f"weights={w.numel()}, delays={d.numel()}"
            )
        if n and (src.min() < 0 or src.max() >= n_source):
            raise ConfigurationError(f"Source index out of range [0, {n_source})")
        if n and (tgt.min() < 0 or tgt.max() >= n_target):
            raise ConfigurationError(f"Target index out of range [0, {n_target})")
        if n and torch.unique(tgt * n_source + src).numel() != n:
            raise ConfigurationError("Duplicate (source, target) connections")
        if not torch.isfinite(w).all() or (w < w_min).any() or (w > w_max).any():
            raise ConfigurationError(f"Initial weights must be finite and within [{w_min}, {w_max}]")
        if not torch.isfinite(d).all() or (d < 0).any() or (d > MAX_DELAY_MS).any():
            raise ConfigurationError(f"Delays must be within [0, {MAX_DELAY_MS}] ms")

    # =========================================================================
    # Builders
    # =========================================================================

    @classmethod
    def from_coo(
        cls,
        n_source: int,
        n_target: int,
        conn_source: TensorLike,
        conn_target: TensorLike,
        weights: TensorLike,
        **kwargs,
    ) -> SynapticWeightStore:
        """Build from explicit (source, target, weight) triples."""
        return cls(n_source, n_target, conn_source, conn_target, weights, **kwargs)

    @classmethod
    def random(
        cls,
        n_source: int,
        n_target: int,
        connectivity: float,
        weight_range: Tuple[float, float] = (0.0, 1.0),
        delay_range: Tuple[float, float] = (DEFAULT_DELAY_MS, DEFAULT_DELAY_MS),
        allow_autapses: bool = True,
        seed: Optional[int] = None,
        **kwargs,
    ) -> SynapticWeightStore:
        """Random connectivity: each (source, target) pair exists with probability ``connectivity``.

        Args:
            connectivity: Connection probability (0-1)
            weight_range: Uniform initial weight range
            delay_range: Uniform delay range (ms), rounded to whole ms
            allow_autapses: If False, drop source == target pairs (recurrent nodes)
            seed: Seed for a private generator (None = nondeterministic)
        """
        if not (0.0 <= connectivity <= 1.0):
            raise ConfigurationError(f"connectivity must be in [0, 1], got {connectivity}")
        lo, hi = weight_range
        if lo < 0 or hi < lo:
            raise ConfigurationError(f"Invalid weight_range {weight_range}")
        d_lo, d_hi = delay_range
        if d_lo < 0 or d_hi < d_lo:
            raise ConfigurationError(f"Invalid delay_range {delay_range}")

        generator = torch.Generator()
        if seed is None:
            generator.seed()
        else:
            generator.manual_seed(seed)

        mask = torch.rand(n_target, n_source, generator=generator) < connectivity
        if not allow_autapses:
            if n_source != n_target:
                raise ConfigurationError("allow_autapses=False requires a square (recurrent) node")
            mask.fill_diagonal_(False)
        tgt, src = torch.nonzero(mask, as_tuple=True)
        n = tgt.numel()
        weights = lo + (hi - lo) * torch.rand(n, generator=generator, dtype=torch.float64)
        delays = torch.round(d_lo + (d_hi - d_lo) * torch.rand(n, generator=generator, dtype=torch.float64))
        return cls(n_source, n_target, src, tgt, weights, delays=delays, **kwargs)

    # =========================================================================
    # Shape
    # =========================================================================

    @property
    def n_connections(self) -> int:
        return self.conn_source.numel()

    def in_degree(self) -> torch.Tensor:
        """Number of incoming connections per target."""
        return torch.bincount(self.conn_target, minlength=self.n_target)

    def incoming_sums(self) -> torch.Tensor:
        """Sum of committed incoming weights per target."""
        sums = torch.zeros(self.n_target, dtype=self.weights.dtype, device=self.weights.device)
        return sums.index_add_(0, self.conn_target, self.weights)

    # =========================================================================
    # Transmission
    # =========================================================================

    def calc_spike_responses(self, source_spikes: torch.Tensor, time: float) -> torch.Tensor:
        """Update UDF state for every outgoing connection of the spiking sources.

        Returns:
            Indices of the connections that carry a new event
        """
        conns = torch.nonzero(source_spikes[self.conn_source], as_tuple=True)[0]
        if conns.numel():
            self.responses[conns] = self.stp(conns, time)
        return conns

    def add_events(
        self,
        connections: torch.Tensor,
        time: float,
        queue: SynapticEventQueue,
        target_offset: int = 0,
    ) -> None:
        """Schedule one event per connection, arriving at ``time + delay``."""
        if connections.numel() == 0:
            return
        arrivals = (time + self.delays[connections]).tolist()
        targets = (self.conn_target[connections] + target_offset).tolist()
        responses = self.responses[connections].tolist()
        queue.push_many(
            SynapticEvent(arrival, target, conn, response)
            for arrival, target, conn, response in zip(arrivals, targets, connections.tolist(), responses)
        )

    def _unpack(self, events: Sequence[SynapticEvent]):
        device = self.weights.device
        conns = torch.tensor([e.connection for e in events], dtype=torch.long, device=device)
        arrivals = torch.tensor([e.arrival_time for e in events], dtype=self.weights.dtype, device=device)
        responses = torch.tensor([e.response for e in events], dtype=self.weights.dtype, device=device)
        return conns, arrivals, responses

    def process_events(self, events: Sequence[SynapticEvent], currents: torch.Tensor) -> None:
        """Deliver events: add ``weight * response`` into ``currents[target]``."""
        if not events:
            return
        conns, arrivals, responses = self._unpack(events)
        currents.index_add_(0, self.conn_target[conns], self.weights[conns] * responses)
        self.last_arrival.scatter_reduce_(0, conns, arrivals, reduce="amax")

    def process_events_stdp(
        self,
        events: Sequence[SynapticEvent],
        currents: torch.Tensor,
        rule: STDPRule,
        target_last_spike: torch.Tensor,
    ) -> None:
        """Deliver events and accumulate pre-triggered STDP into ``dw``."""
        if not events:
            return
        conns, arrivals, responses = self._unpack(events)
        targets = self.conn_target[conns]
        currents.index_add_(0, targets, self.weights[conns] * responses)
        self.dw.index_add_(0, conns, rule.pre_triggered(arrivals, target_last_spike[targets]))
        self.last_arrival.scatter_reduce_(0, conns, arrivals, reduce="amax")

    # =========================================================================
    # Plasticity
    # =========================================================================

    def post_triggered(
        self,
        target_spikes: torch.Tensor,
        post_spike_times: torch.Tensor,
        rule: STDPRule,
    ) -> None:
        """Accumulate post-triggered STDP on every incoming connection of spiking targets."""
        conns = torch.nonzero(target_spikes[self.conn_target], as_tuple=True)[0]
        if conns.numel() == 0:
            return
        post_times = post_spike_times[self.conn_target[conns]]
        self.dw.index_add_(0, conns, rule.post_triggered(self.last_arrival[conns], post_times))

    def dampen(self, mode: DampeningFunction = DampeningFunction.HARD) -> None:
        """Bound pending changes so committed weights stay in [w_min, w_max]."""
        dampen(self.weights, self.dw, self.w_max, self.w_min, mode=mode)

    def update_weights(self) -> None:
        """Commit pending changes."""
        self.weights.add_(self.dw)
        self.dw.zero_()

    # =========================================================================
    # Normalization
    # =========================================================================

    def scale_weights(self, target_mask: torch.Tensor, multipliers: torch.Tensor) -> None:
        """Scale the incoming weights of masked targets by their multipliers."""
        per_conn = torch.where(
            target_mask[self.conn_target],
            multipliers[self.conn_target],
            torch.ones_like(self.weights),
        )
        self.weights.mul_(per_conn)

    def norm_weights(self, multipliers: torch.Tensor) -> None:
        """Scale every incoming weight by its target's multiplier."""
        self.weights.mul_(multipliers[self.conn_target])

    def extra_repr(self) -> str:
        return f"{self.n_source}x{self.n_target}, connections={self.n_connections}"
