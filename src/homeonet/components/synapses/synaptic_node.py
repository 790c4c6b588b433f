"""
Synaptic Node - Event-driven transmission and plasticity for one projection.

A node owns the connections from one source group onto one homeostatic
target group. Its ``update`` is the unit of parallel work: the Scheduler
runs every node of every sector concurrently, and the last node of a sector
to finish hands control to the sector's neuron-group update.

Per-step pipeline (``update``):
===============================
1. **Transmission**: every spiking source unit computes its UDF responses
   and schedules one event per outgoing connection at ``time + delay``.
2. **Delivery + STDP** (plasticity on): due events add ``weight * response``
   to ``local_currents`` and pre-triggered STDP to ``dw``; spiking targets
   add post-triggered STDP to their incoming connections; ``dw`` is dampened
   and committed. With plasticity off, events only deliver current.
3. **Normalization**: triggered targets have their incoming weights scaled
   by the cached multipliers (plasticity on only); incoming sums are always
   reported in ``local_sums``.
4. **MHP staging**: stages 0-2 fill ``mhp_aux`` (skipped for external
   sources or when MHP is off).
5. **Arrive** at the sector barrier.

Ownership:
==========
``local_currents``, ``local_sums`` and ``mhp_aux`` belong to this node
alone. Source and target groups are read through their committed buffers
only. The target's normalization state is read, never written.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Any, Dict, Optional

import torch
import torch.nn as nn

from homeonet.components.neurons.homeostatic_neurons import HomeostaticNeuronGroup
from homeonet.components.neurons.neuron_group import NeuronGroup
from homeonet.components.neurons.normalization import NormalizationState
from homeonet.components.synapses.dampening import DampeningFunction
from homeonet.components.synapses.weight_store import SynapticWeightStore
from homeonet.core.clock import StepContext
from homeonet.core.event_queue import SynapticEventQueue
from homeonet.errors import ConcurrencyFault, ConfigurationError
from homeonet.learning.meta_homeostasis import mhp_stage0, mhp_stage1, mhp_stage2
from homeonet.learning.rules.stdp import StandardSTDP, STDPRule
from homeonet.utils.numerical_validation import validate_non_negative_tensor

if TYPE_CHECKING:
    from homeonet.core.sector import Sector

logger = logging.getLogger(__name__)


class SynapticNode(nn.Module):
    """Connections from one source group onto one homeostatic target group.

    Args:
        source: Presynaptic group (may be an input group)
        target: Postsynaptic homeostatic group
        store: Connection storage; its dimensions must match the groups
        stdp_rule: STDP strategy (defaults to polarity-pair StandardSTDP)
        dampening: Bounding mode applied to pending weight changes
        synaptic_plasticity_on: Enable STDP and normalization weight scaling
        use_mhp: Enable meta-homeostatic staging for this node
        source_offset: Offset of the source group in the absolute index space
        target_offset: Offset of the target group in the absolute index space
        name: Identity used in logs and fault messages
    """

    def __init__(
        self,
        source: NeuronGroup,
        target: HomeostaticNeuronGroup,
        store: SynapticWeightStore,
        stdp_rule: Optional[STDPRule] = None,
        dampening: DampeningFunction = DampeningFunction.HARD,
        synaptic_plasticity_on: bool = True,
        use_mhp: bool = True,
        source_offset: int = 0,
        target_offset: int = 0,
        name: Optional[str] = None,
    ):
        super().__init__()
        if not isinstance(target, HomeostaticNeuronGroup):
            raise ConfigurationError(
                f"Node target must be a HomeostaticNeuronGroup, got {type(target).__name__}"
            )
        if store.n_source != source.n_neurons or store.n_target != target.n_neurons:
            raise ConfigurationError(
                f"Store is {store.n_source}x{store.n_target} but groups are "
                f"{source.name}({source.n_neurons}) -> {target.name}({target.n_neurons})"
            )

        self.name = name or f"{source.name}->{target.name}"
        # Groups are shared with other nodes; keep them out of the module tree
        object.__setattr__(self, "source", source)
        object.__setattr__(self, "target", target)
        self.store = store
        self.height = source.n_neurons
        self.width = target.n_neurons
        self.source_offset = source_offset
        self.target_offset = target_offset

        self.stdp_rule: STDPRule = stdp_rule or StandardSTDP.for_polarities(
            source.is_excitatory, target.is_excitatory
        )
        self.dampening = dampening
        self.synaptic_plasticity_on = synaptic_plasticity_on
        self.use_mhp = use_mhp
        self.queue = SynapticEventQueue()
        self.sector: Optional[Sector] = None

        # Selected once: afferents of this polarity use this normalization state
        self.norm_state: NormalizationState = target.normalization_for(source.polarity)

        dtype, device = store.weights.dtype, store.weights.device
        self.register_buffer("local_currents", torch.zeros(self.width, dtype=dtype, device=device))
        self.register_buffer("local_sums", store.incoming_sums())
        self.register_buffer("mhp_aux", torch.zeros(self.width, dtype=dtype, device=device))
        self.local_currents: torch.Tensor
        self.local_sums: torch.Tensor
        self.mhp_aux: torch.Tensor

    @property
    def input_is_external(self) -> bool:
        return self.source.is_external

    @property
    def mhp_on(self) -> bool:
        return self.use_mhp and self.target.config.mhp_enabled and not self.input_is_external

    # =========================================================================
    # Step
    # =========================================================================

    def update(self, ctx: StepContext) -> None:
        """Run the full per-step pipeline, then arrive at the sector barrier."""
        if self.sector is None:
            raise ConcurrencyFault(f"Node '{self.name}' is not attached to a sector")

        time = ctx.time
        store = self.store

        conns = store.calc_spike_responses(self.source.spikes, time)
        store.add_events(conns, time, self.queue, self.target_offset)

        # Events carry absolute targets for ordering; delivery goes by connection index
        due = self.queue.pop_due(time)
        if self.synaptic_plasticity_on:
            store.process_events_stdp(due, self.local_currents, self.stdp_rule, self.target.last_spike_time)
            store.post_triggered(self.target.spikes, self.target.last_spike_time, self.stdp_rule)
            store.dampen(self.dampening)
            store.update_weights()
        else:
            store.process_events(due, self.local_currents)

        self.normalize()

        if self.mhp_on:
            self.stage_mhp()
        else:
            self.mhp_aux.zero_()

        validate_non_negative_tensor(store.weights, "weight", self.name, store.conn_target)
        validate_non_negative_tensor(self.local_currents, "input current", self.name)

        self.sector.arrive(ctx)

    def normalize(self) -> None:
        """Scale triggered targets' incoming weights; report incoming sums."""
        state = self.norm_state
        if self.synaptic_plasticity_on:
            if state.all_triggered:
                self.store.norm_weights(state.multipliers)
            elif bool(state.triggered.any()):
                self.store.scale_weights(state.triggered, state.multipliers)
        self.local_sums.copy_(self.store.incoming_sums())

    def stage_mhp(self) -> None:
        """MHP stages 0-2 into ``mhp_aux``."""
        target, store = self.target, self.store
        raw = mhp_stage0(target.est_fr, target.pref_fr, self.source.est_fr, store.conn_source, store.conn_target)
        aux = mhp_stage1(raw, store.conn_target, self.width)
        f_plus, f_minus = target.mhp_terms.lookup(target.rate_bins)
        self.mhp_aux.copy_(mhp_stage2(aux, f_plus, f_minus))

    def add_and_clear_local_current(self, currents: torch.Tensor) -> None:
        """Drain this step's delivered current into the target's accumulator."""
        currents.add_(self.local_currents)
        self.local_currents.zero_()

    # =========================================================================
    # Diagnostics
    # =========================================================================

    def get_diagnostics(self) -> Dict[str, Any]:
        weights = self.store.weights
        return {
            "name": self.name,
            "source_range": (self.source_offset, self.source_offset + self.height),
            "target_range": (self.target_offset, self.target_offset + self.width),
            "n_connections": self.store.n_connections,
            "weight_mean": float(weights.mean().item()) if weights.numel() else 0.0,
            "weight_max": float(weights.max().item()) if weights.numel() else 0.0,
            "pending_events": len(self.queue),
            "plasticity": self.synaptic_plasticity_on,
            "mhp": self.mhp_on,
        }

    def extra_repr(self) -> str:
        return f"name={self.name!r}, {self.height}->{self.width}"
