"""
Sector - The nodes sharing one target group, and their completion barrier.

A sector pairs one homeostatic target group with every synaptic node that
projects onto it. Node updates of a sector run concurrently; the target's
neuron-level update must run exactly once per step, after all of them.

Barrier protocol:
=================
.. code-block:: none

    Scheduler:  reset_barrier()            counter = len(nodes)
    each node:  ... update ...; arrive()   counter -= 1 (atomic)
    node that observes 0:                  update_no_sync(ctx)
    Scheduler (sync phase):                synchronize(ctx) → commit buffers

No lock is held while the group update runs: exactly one thread observes the
transition to zero, so exactly one thread runs it. A node whose update
raises never arrives, which leaves the group update un-run for that step.

Sector update (``update_no_sync``):
===================================
1. Drain each node's delivered current into the target's excitatory or
   inhibitory input current, by source polarity
2. Sum ``local_sums`` per polarity and update the normalization triggers
3. Sum ``mhp_aux`` into the preferred-rate pressure ``pfr_dts``
4. Run the target's full homeostatic update
5. Refresh the normalization multipliers used by the nodes next step
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Any, Dict, List, Optional, Tuple

import torch

from homeonet.core.atomic import AtomicCounter
from homeonet.core.clock import StepContext
from homeonet.errors import ConcurrencyFault, ConfigurationError

if TYPE_CHECKING:
    from homeonet.components.neurons.homeostatic_neurons import HomeostaticNeuronGroup
    from homeonet.components.synapses.synaptic_node import SynapticNode

logger = logging.getLogger(__name__)


class Sector:
    """Target group, its afferent nodes and their completion barrier."""

    def __init__(self, target: HomeostaticNeuronGroup, name: Optional[str] = None):
        self.target = target
        self.name = name or target.name
        self.nodes: List[SynapticNode] = []
        self.countdown = AtomicCounter(0)
        self._last_update_step: Optional[int] = None
        self.update_count = 0

    # =========================================================================
    # Wiring
    # =========================================================================

    def add_node(self, node: SynapticNode) -> None:
        """Attach a node whose target is this sector's group."""
        if node.target is not self.target:
            raise ConfigurationError(
                f"Node '{node.name}' targets '{node.target.name}', not sector '{self.name}'"
            )
        if node.sector is not None:
            raise ConfigurationError(f"Node '{node.name}' is already attached to sector '{node.sector.name}'")
        if node.width != self.target.n_neurons:
            raise ConfigurationError(
                f"Node '{node.name}' width {node.width} does not match target size {self.target.n_neurons}"
            )
        node.sector = self
        self.nodes.append(node)
        self.recompute_in_degree()
        logger.debug("Sector %s: attached node %s (%d nodes)", self.name, node.name, len(self.nodes))

    def recompute_in_degree(self) -> None:
        """Total incoming connections per target unit, across all nodes."""
        in_degree = torch.zeros(self.target.n_neurons, dtype=torch.long, device=self.target.device)
        for node in self.nodes:
            in_degree += node.store.in_degree().to(in_degree.device)
        self.target.set_in_degree(in_degree)

    # =========================================================================
    # Barrier
    # =========================================================================

    def reset_barrier(self) -> None:
        """Re-arm the barrier. Only the Scheduler calls this, between steps."""
        self.countdown.set(len(self.nodes))

    def arrive(self, ctx: StepContext) -> None:
        """Called by each node at the end of its update."""
        remaining = self.countdown.decrement_and_get()
        if remaining < 0:
            raise ConcurrencyFault(
                f"Sector '{self.name}' barrier went negative ({remaining}) at step {ctx.step}"
            )
        if remaining == 0:
            self.update_no_sync(ctx)

    # =========================================================================
    # Updates
    # =========================================================================

    def _polarity_sums(self) -> Tuple[torch.Tensor, torch.Tensor]:
        exc_sums = torch.zeros_like(self.target.pref_fr)
        inh_sums = torch.zeros_like(self.target.pref_fr)
        for node in self.nodes:
            if node.source.is_excitatory:
                exc_sums += node.local_sums
            else:
                inh_sums += node.local_sums
        return exc_sums, inh_sums

    def update_no_sync(self, ctx: StepContext) -> None:
        """Neuron-level update; runs once per step in the thread that emptied the barrier."""
        target = self.target
        for node in self.nodes:
            node.add_and_clear_local_current(target.current_for(node.source.polarity))

        exc_sums, inh_sums = self._polarity_sums()
        target.update_triggers(exc_sums, inh_sums)

        pfr_dts = torch.zeros_like(target.pref_fr)
        for node in self.nodes:
            pfr_dts += node.mhp_aux

        target.perform_full_update(ctx.time, ctx.dt, pfr_dts)

        target.exc.refresh_multipliers(exc_sums)
        target.inh.refresh_multipliers(inh_sums)

        self._last_update_step = ctx.step
        self.update_count += 1

    def synchronize(self, ctx: StepContext) -> None:
        """Commit the target's buffers (running the update first if no node ran it)."""
        if self._last_update_step != ctx.step:
            if self.nodes:
                raise ConcurrencyFault(
                    f"Sector '{self.name}' reached synchronization at step {ctx.step} "
                    f"with {self.countdown.get()} node(s) still pending"
                )
            self.update_no_sync(ctx)
        self.target.commit()

    # =========================================================================
    # Diagnostics
    # =========================================================================

    def get_diagnostics(self) -> Dict[str, Any]:
        return {
            "name": self.name,
            "n_nodes": len(self.nodes),
            "update_count": self.update_count,
            "target": self.target.get_diagnostics(),
            "nodes": [node.get_diagnostics() for node in self.nodes],
        }

    def __repr__(self) -> str:
        return f"Sector({self.name!r}, nodes={len(self.nodes)})"
