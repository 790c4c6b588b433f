"""
Network - Wiring of groups, inputs, nodes and sectors.

The network is a registry: it owns no dynamics of its own. Every
homeostatic group gets one sector; every ``connect`` call creates one
synaptic node and attaches it to the target's sector.

All wiring errors (unknown names, size mismatches, indices out of range)
raise ``ConfigurationError`` here, before the first step executes.

Example:
========
.. code-block:: python

    net = Network()
    net.add_input(InputNeuronGroup("drive", PoissonInput(20.0, 100, seed=1)))
    net.add_group(HomeostaticNeuronGroup("exc", 80))
    net.add_group(HomeostaticNeuronGroup("inh", 20, polarity=Polarity.INHIBITORY))
    net.connect("drive", "exc", connectivity=0.2, weight_range=(0.5, 1.5), seed=2)
    net.connect("exc", "inh", connectivity=0.3, seed=3)
    net.connect("inh", "exc", connectivity=0.3, seed=4)
"""

from __future__ import annotations

import logging
from typing import Any, Dict, List, Optional, Sequence, Tuple, Union

import torch

from homeonet.components.neurons.homeostatic_neurons import HomeostaticNeuronGroup
from homeonet.components.neurons.input_neurons import InputNeuronGroup
from homeonet.components.neurons.neuron_group import NeuronGroup
from homeonet.components.synapses.dampening import DampeningFunction
from homeonet.components.synapses.synaptic_node import SynapticNode
from homeonet.components.synapses.weight_store import SynapticWeightStore
from homeonet.config.learning_config import STDPConfig, STPConfig
from homeonet.config.simulation_config import SimulationConfig
from homeonet.constants.synapse import DEFAULT_DELAY_MS
from homeonet.core.sector import Sector
from homeonet.errors import ConfigurationError
from homeonet.learning.rules.stdp import StandardSTDP, STDPRule

logger = logging.getLogger(__name__)


class Network:
    """Registry of neuron groups, input groups, synaptic nodes and sectors.

    Args:
        config: Run-wide settings. ``max_weight`` bounds every weight store,
            ``dtype``/``device`` must match every registered group, and
            ``seed`` (if set) seeds random connectivity that has no explicit seed.
    """

    def __init__(self, config: Optional[SimulationConfig] = None):
        self.config = config or SimulationConfig()
        self.max_weight = self.config.max_weight
        self.dtype = self.config.get_torch_dtype()
        self.device = self.config.get_torch_device()
        self.groups: Dict[str, HomeostaticNeuronGroup] = {}
        self.inputs: Dict[str, InputNeuronGroup] = {}
        self.sectors: Dict[str, Sector] = {}
        self.nodes: List[SynapticNode] = []
        self._offsets: Dict[str, int] = {}
        self._next_offset = 0

    # =========================================================================
    # Groups
    # =========================================================================

    def _register_name(self, group: NeuronGroup) -> None:
        if group.name in self.groups or group.name in self.inputs:
            raise ConfigurationError(f"Duplicate group name '{group.name}'")
        if group.dtype != self.dtype:
            raise ConfigurationError(
                f"Group '{group.name}' uses {group.dtype}, network is configured for {self.dtype}"
            )
        if group.device.type != self.device.type or (
            self.device.index is not None and group.device.index != self.device.index
        ):
            raise ConfigurationError(
                f"Group '{group.name}' lives on {group.device}, network is configured for {self.device}"
            )
        self._offsets[group.name] = self._next_offset
        self._next_offset += group.n_neurons

    def add_group(self, group: HomeostaticNeuronGroup) -> HomeostaticNeuronGroup:
        """Register a homeostatic group and create its sector."""
        if not isinstance(group, HomeostaticNeuronGroup):
            raise ConfigurationError(f"add_group expects a HomeostaticNeuronGroup, got {type(group).__name__}")
        self._register_name(group)
        self.groups[group.name] = group
        self.sectors[group.name] = Sector(group)
        logger.debug("Added group %s (%d %s units)", group.name, group.n_neurons, group.polarity.value)
        return group

    def add_input(self, group: InputNeuronGroup) -> InputNeuronGroup:
        """Register an externally driven input group."""
        if not isinstance(group, InputNeuronGroup):
            raise ConfigurationError(f"add_input expects an InputNeuronGroup, got {type(group).__name__}")
        self._register_name(group)
        self.inputs[group.name] = group
        logger.debug("Added input %s (%d units)", group.name, group.n_neurons)
        return group

    def get_group(self, name: str) -> NeuronGroup:
        if name in self.groups:
            return self.groups[name]
        if name in self.inputs:
            return self.inputs[name]
        raise ConfigurationError(f"Unknown group '{name}'")

    def offset_of(self, name: str) -> int:
        """Start of the group's range in the absolute unit index space."""
        self.get_group(name)
        return self._offsets[name]

    # =========================================================================
    # Connections
    # =========================================================================

    def connect(
        self,
        source: str,
        target: str,
        *,
        conn_source: Optional[Sequence[int]] = None,
        conn_target: Optional[Sequence[int]] = None,
        weights: Optional[Union[Sequence[float], torch.Tensor]] = None,
        delays: Union[float, Sequence[float], torch.Tensor] = DEFAULT_DELAY_MS,
        connectivity: Optional[float] = None,
        weight_range: Tuple[float, float] = (0.0, 1.0),
        delay_range: Optional[Tuple[float, float]] = None,
        seed: Optional[int] = None,
        stdp: Optional[Union[STDPRule, STDPConfig]] = None,
        stp: Optional[STPConfig] = None,
        use_stp: bool = True,
        dampening: DampeningFunction = DampeningFunction.HARD,
        plasticity: bool = True,
        use_mhp: bool = True,
        name: Optional[str] = None,
    ) -> SynapticNode:
        """Create a node from ``source`` onto ``target`` and attach it to the target's sector.

        Connections come either from explicit COO arrays (``conn_source``,
        ``conn_target``, ``weights``) or from a random connection probability
        (``connectivity``, with ``weight_range``, ``delay_range`` and ``seed``).
        Without an explicit ``seed``, random connectivity is seeded from
        ``config.seed`` (offset by the node count) when that is set.

        STDP and UDF parameters default to the (source, target) polarity pair.
        """
        src_group = self.get_group(source)
        if target not in self.groups:
            raise ConfigurationError(f"Target '{target}' must be a homeostatic group added with add_group")
        tgt_group = self.groups[target]
        src_exc, tar_exc = src_group.is_excitatory, tgt_group.is_excitatory

        if use_stp:
            stp_config = stp or STPConfig.for_polarities(src_exc, tar_exc)
        else:
            stp_config = None
        store_kwargs: Dict[str, Any] = dict(
            stp_config=stp_config,
            w_max=self.max_weight,
            dtype=tgt_group.dtype,
            device=tgt_group.device,
        )

        explicit = conn_source is not None or conn_target is not None or weights is not None
        if explicit and connectivity is not None:
            raise ConfigurationError("Pass either explicit connections or connectivity, not both")
        if explicit:
            if conn_source is None or conn_target is None or weights is None:
                raise ConfigurationError("Explicit connections need conn_source, conn_target and weights")
            store = SynapticWeightStore.from_coo(
                src_group.n_neurons, tgt_group.n_neurons, conn_source, conn_target, weights,
                delays=delays, **store_kwargs,
            )
        elif connectivity is not None:
            if delay_range is None:
                delay_value = float(delays) if not isinstance(delays, (list, tuple, torch.Tensor)) else None
                if delay_value is None:
                    raise ConfigurationError("Random connectivity takes a scalar delay or a delay_range")
                delay_range = (delay_value, delay_value)
            if seed is None and self.config.seed is not None:
                seed = self.config.seed + len(self.nodes)
            store = SynapticWeightStore.random(
                src_group.n_neurons, tgt_group.n_neurons, connectivity,
                weight_range=weight_range, delay_range=delay_range,
                allow_autapses=src_group is not tgt_group, seed=seed, **store_kwargs,
            )
        else:
            raise ConfigurationError("connect() needs explicit connections or a connectivity")

        if isinstance(stdp, STDPConfig):
            rule: STDPRule = StandardSTDP(stdp)
        elif stdp is None:
            rule = StandardSTDP.for_polarities(src_exc, tar_exc)
        else:
            rule = stdp

        node = SynapticNode(
            src_group, tgt_group, store,
            stdp_rule=rule,
            dampening=dampening,
            synaptic_plasticity_on=plasticity,
            use_mhp=use_mhp,
            source_offset=self._offsets[source],
            target_offset=self._offsets[target],
            name=name,
        )
        self.sectors[target].add_node(node)
        self.nodes.append(node)
        logger.info("Connected %s: %d connections", node.name, store.n_connections)
        return node

    # =========================================================================
    # Validation
    # =========================================================================

    def validate(self) -> None:
        """Check the wiring before the first step."""
        if not self.groups:
            raise ConfigurationError("Network has no homeostatic groups")
        for node in self.nodes:
            if node.sector is None or node.sector is not self.sectors.get(node.target.name):
                raise ConfigurationError(f"Node '{node.name}' is not attached to its target's sector")
        for sector in self.sectors.values():
            for node in sector.nodes:
                if node not in self.nodes:
                    raise ConfigurationError(
                        f"Sector '{sector.name}' holds node '{node.name}' unknown to the network"
                    )

    def get_diagnostics(self) -> Dict[str, Any]:
        return {
            "groups": {name: group.get_diagnostics() for name, group in self.groups.items()},
            "inputs": {name: group.get_diagnostics() for name, group in self.inputs.items()},
            "n_nodes": len(self.nodes),
        }

    def __repr__(self) -> str:
        return (
            f"Network(groups={list(self.groups)}, inputs={list(self.inputs)}, nodes={len(self.nodes)})"
        )
