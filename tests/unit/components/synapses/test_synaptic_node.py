"""Tests for the synaptic node pipeline."""

import pytest
import torch

from homeonet import (
    HomeostasisConfig,
    HomeostaticNeuronGroup,
    NeuronGroup,
    Polarity,
    Sector,
    StepContext,
)
from homeonet.components.synapses.synaptic_node import SynapticNode
from homeonet.components.synapses.weight_store import SynapticWeightStore
from homeonet.errors import ConcurrencyFault, ConfigurationError, ModelingFault


class RecordingSector:
    """Stands in for a sector: records what the node reported on arrival."""

    def __init__(self):
        self.name = "recording"
        self.arrivals = []

    def arrive(self, ctx):
        self.arrivals.append(ctx.step)


def make_node(n_source=1, n_target=1, conn_source=(0,), conn_target=(0,), weights=(1.0,),
              delays=2.0, plasticity=True, source_polarity=Polarity.EXCITATORY, **node_kwargs):
    source = HomeostaticNeuronGroup("src", n_source, polarity=source_polarity,
                                    config=HomeostasisConfig(seed=1))
    target = HomeostaticNeuronGroup("tgt", n_target, config=HomeostasisConfig(seed=2))
    store = SynapticWeightStore.from_coo(n_source, n_target, list(conn_source), list(conn_target),
                                         list(weights), delays=delays)
    node = SynapticNode(source, target, store, synaptic_plasticity_on=plasticity, **node_kwargs)
    node.sector = RecordingSector()
    return node


def step(node, k, dt=1.0):
    node.update(StepContext(time=k * dt, dt=dt, step=k))


@pytest.mark.unit
class TestTransmission:

    def test_event_drained_exactly_at_arrival(self):
        """Spike at t=0 with a 2 ms delay: not delivered at 0 or 1, delivered at 2."""
        node = make_node(delays=2.0, plasticity=False)
        node.source.spikes[0] = True

        delivered = []
        for k in range(4):
            step(node, k)
            node.source.spikes[0] = False
            delivered.append(node.local_currents[0].item())
            node.local_currents.zero_()

        assert delivered == [0.0, 0.0, 1.0, 0.0]
        assert node.sector.arrivals == [0, 1, 2, 3]

    def test_current_drains_into_target_accumulator(self):
        node = make_node(delays=0.0, plasticity=False, weights=(2.5,))
        node.source.spikes[0] = True
        step(node, 0)

        node.add_and_clear_local_current(node.target.exc_current)

        assert node.target.exc_current.item() == 2.5
        assert node.local_currents.item() == 0.0

    def test_inhibitory_source_selects_inhibitory_normalization(self):
        node = make_node(source_polarity=Polarity.INHIBITORY)
        assert node.norm_state is node.target.inh
        assert not node.stdp_rule.hebbian


@pytest.mark.unit
class TestPlasticity:

    def test_plasticity_off_leaves_weights_unchanged(self):
        node = make_node(n_source=3, n_target=2, conn_source=(0, 1, 2, 0), conn_target=(0, 0, 1, 1),
                         weights=(1.0, 2.0, 3.0, 4.0), delays=1.0, plasticity=False)
        node.norm_state.triggered.fill_(True)
        node.norm_state.multipliers.fill_(0.5)
        initial = node.store.weights.clone()

        for k in range(20):
            node.source.spikes.copy_(torch.rand(3) < 0.5)
            node.target.spikes.copy_(torch.rand(2) < 0.5)
            node.target.last_spike_time.masked_fill_(node.target.spikes, float(k))
            step(node, k)

        assert torch.equal(node.store.weights, initial)
        # Sums are still reported
        assert node.local_sums.tolist() == [3.0, 7.0]

    def test_causal_pairing_potentiates(self):
        node = make_node(delays=1.0)
        node.source.spikes[0] = True
        step(node, 0)  # event arrives at t=1
        node.source.spikes[0] = False
        step(node, 1)
        w_after_arrival = node.store.weights.item()

        node.target.spikes[0] = True
        node.target.last_spike_time[0] = 2.0
        step(node, 2)

        assert node.store.weights.item() > w_after_arrival

    def test_weights_stay_within_bounds(self):
        node = make_node(weights=(19.9999,), delays=1.0)
        node.stdp_rule.config.learning_rate = 10.0
        for k in range(10):
            node.source.spikes[0] = k % 2 == 0
            node.target.spikes[0] = k % 2 == 1
            if node.target.spikes[0]:
                node.target.last_spike_time[0] = float(k)
            step(node, k)
            assert 0.0 <= node.store.weights.item() <= node.store.w_max


@pytest.mark.unit
class TestNormalization:

    def test_triggered_targets_scaled_by_multiplier(self):
        node = make_node(n_source=2, n_target=2, conn_source=(0, 1), conn_target=(0, 1),
                         weights=(4.0, 4.0), delays=1.0)
        state = node.norm_state
        state.triggered[0] = True
        state.multipliers.copy_(torch.tensor([0.25, 3.0], dtype=torch.float64))

        step(node, 0)

        # Only the triggered target is scaled; the untriggered multiplier is ignored
        assert node.store.weights.tolist() == [1.0, 4.0]
        assert node.local_sums.tolist() == [1.0, 4.0]

    def test_all_triggered_normalizes_every_target(self):
        node = make_node(n_source=2, n_target=2, conn_source=(0, 1), conn_target=(0, 1),
                         weights=(4.0, 4.0), delays=1.0)
        state = node.norm_state
        state.triggered.fill_(True)
        state.all_triggered = True
        state.multipliers.copy_(torch.tensor([0.5, 2.0], dtype=torch.float64))

        step(node, 0)

        assert node.store.weights.tolist() == [2.0, 8.0]
        assert node.local_sums.tolist() == [2.0, 8.0]


@pytest.mark.unit
class TestMetaHomeostaticStaging:

    def test_mhp_aux_pushes_toward_source_rate(self):
        node = make_node(n_source=2, n_target=1, conn_source=(0, 1), conn_target=(0, 0),
                         weights=(1.0, 1.0))
        node.source.est_fr.fill_(10.0)  # sources fire above the target's preference
        step(node, 0)
        assert node.mhp_aux.item() > 0

    def test_external_source_skips_mhp(self):
        from homeonet import InputNeuronGroup, SpikeTrainInput

        source = InputNeuronGroup("drive", SpikeTrainInput([[0.0]]))
        target = HomeostaticNeuronGroup("tgt", 1, config=HomeostasisConfig(seed=2))
        store = SynapticWeightStore.from_coo(1, 1, [0], [0], [1.0])
        node = SynapticNode(source, target, store)
        node.sector = RecordingSector()
        node.mhp_aux.fill_(5.0)

        step(node, 0)

        assert not node.mhp_on
        assert node.mhp_aux.item() == 0.0


@pytest.mark.unit
class TestFaults:

    def test_negative_weight_raises_modeling_fault(self):
        node = make_node(n_source=1, n_target=3, conn_source=(0, 0, 0), conn_target=(0, 1, 2),
                         weights=(1.0, 1.0, 1.0), plasticity=False, name="exc->exc")
        node.store.weights[1] = -0.5

        with pytest.raises(ModelingFault) as excinfo:
            step(node, 0)

        assert excinfo.value.unit == 1
        assert excinfo.value.component == "exc->exc"
        # Faulting node never arrives at the barrier
        assert node.sector.arrivals == []

    def test_unattached_node_cannot_update(self):
        node = make_node()
        node.sector = None
        with pytest.raises(ConcurrencyFault):
            step(node, 0)

    def test_store_size_mismatch_rejected(self):
        source = NeuronGroup("src", 3)
        target = HomeostaticNeuronGroup("tgt", 2, config=HomeostasisConfig(seed=1))
        store = SynapticWeightStore.from_coo(2, 2, [0], [0], [1.0])
        with pytest.raises(ConfigurationError):
            SynapticNode(source, target, store)

    def test_target_must_be_homeostatic(self):
        source = NeuronGroup("src", 1)
        store = SynapticWeightStore.from_coo(1, 1, [0], [0], [1.0])
        with pytest.raises(ConfigurationError):
            SynapticNode(source, NeuronGroup("plain", 1), store)


@pytest.mark.unit
class TestSectorWiring:

    def test_in_degree_summed_across_nodes(self):
        target = HomeostaticNeuronGroup("tgt", 2, config=HomeostasisConfig(seed=1))
        sector = Sector(target)
        for name, targets in (("a", [0, 1]), ("b", [1])):
            source = NeuronGroup(name, 2)
            store = SynapticWeightStore.from_coo(2, 2, [0] * len(targets), targets, [1.0] * len(targets))
            sector.add_node(SynapticNode(source, target, store))

        assert target.in_degree.tolist() == [1, 2]

    def test_node_cannot_join_two_sectors(self):
        target = HomeostaticNeuronGroup("tgt", 1, config=HomeostasisConfig(seed=1))
        node = SynapticNode(NeuronGroup("src", 1), target, SynapticWeightStore.from_coo(1, 1, [0], [0], [1.0]))
        Sector(target).add_node(node)
        with pytest.raises(ConfigurationError):
            Sector(target).add_node(node)
