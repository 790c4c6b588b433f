"""Tests for the LIF baseline and the external input sources."""

import pytest
import torch

from homeonet import InputNeuronGroup, LIFConfig, PoissonInput, SpikeTrainInput
from homeonet.components.neurons.lif_dynamics import LIFDynamics
from homeonet.constants.neuron import NEVER_SPIKED
from homeonet.errors import ConfigurationError


def lif_buffers(n):
    zeros = torch.zeros(n, dtype=torch.float64)
    return dict(
        threshold=torch.full((n,), -50.0, dtype=torch.float64),
        last_spike_time=torch.full((n,), NEVER_SPIKED, dtype=torch.float64),
        spike_buffer=torch.zeros(n, dtype=torch.bool),
        last_spike_buffer=torch.full((n,), NEVER_SPIKED, dtype=torch.float64),
        exc_current=zeros.clone(),
        inh_current=zeros.clone(),
    )


@pytest.mark.unit
class TestLIFDynamics:

    def test_background_alone_stays_subthreshold(self):
        lif = LIFDynamics(2)
        buf = lif_buffers(2)
        for step in range(500):
            lif.update(1.0, float(step), **buf)
            assert not buf["spike_buffer"].any()
        # Converges toward v_rest + R * I_bg
        assert lif.membrane[0].item() == pytest.approx(-52.0, abs=0.1)

    def test_spike_reset_and_refractory(self):
        config = LIFConfig(tau_ref=3.0)
        lif = LIFDynamics(1, config)
        buf = lif_buffers(1)
        buf["exc_current"].fill_(50.0)

        lif.update(1.0, 0.0, **buf)
        assert buf["spike_buffer"].item()
        assert lif.membrane.item() == config.v_reset
        assert buf["last_spike_buffer"].item() == 0.0
        buf["last_spike_time"].copy_(buf["last_spike_buffer"])

        # Refractory: no integration, no spike
        lif.update(1.0, 1.0, **buf)
        assert not buf["spike_buffer"].item()
        assert lif.membrane.item() == config.v_reset
        assert buf["last_spike_buffer"].item() == 0.0

    def test_inhibition_prevents_spike(self):
        lif = LIFDynamics(1)
        buf = lif_buffers(1)
        buf["exc_current"].fill_(50.0)
        buf["inh_current"].fill_(45.0)
        lif.update(1.0, 0.0, **buf)
        assert not buf["spike_buffer"].item()

    def test_invalid_config_rejected(self):
        with pytest.raises(ConfigurationError):
            LIFConfig(tau_mem=0.0)


@pytest.mark.unit
class TestInputSources:

    def test_poisson_is_idempotent(self):
        source = PoissonInput(200.0, 500, seed=3)
        a_spikes = torch.zeros(500, dtype=torch.bool)
        b_spikes = torch.zeros(500, dtype=torch.bool)
        a_last = torch.full((500,), NEVER_SPIKED, dtype=torch.float64)
        b_last = a_last.clone()

        source.update(1.0, 17.0, a_spikes, a_last)
        source.update(1.0, 17.0, b_spikes, b_last)

        assert torch.equal(a_spikes, b_spikes)
        assert torch.equal(a_last, b_last)
        assert 0 < int(a_spikes.sum()) < 500

    def test_poisson_rate_extremes(self):
        spikes = torch.zeros(10, dtype=torch.bool)
        last = torch.zeros(10, dtype=torch.float64)
        PoissonInput(0.0, 10).update(1.0, 0.0, spikes, last)
        assert not spikes.any()
        PoissonInput(1000.0, 10).update(1.0, 5.0, spikes, last)
        assert spikes.all()
        assert (last == 5.0).all()

    def test_poisson_mean_rate(self):
        source = PoissonInput(50.0, 1000, seed=9)
        spikes = torch.zeros(1000, dtype=torch.bool)
        last = torch.zeros(1000, dtype=torch.float64)
        total = 0
        for step in range(200):
            source.update(1.0, float(step), spikes, last)
            total += int(spikes.sum())
        # 50 Hz over 200 ms across 1000 units ≈ 10000 spikes
        assert total == pytest.approx(10000, rel=0.05)

    def test_spike_train_window(self):
        source = SpikeTrainInput([[0.0, 1.5], [1.0]])
        spikes = torch.zeros(2, dtype=torch.bool)
        last = torch.full((2,), NEVER_SPIKED, dtype=torch.float64)

        source.update(1.0, 1.0, spikes, last)

        assert spikes.tolist() == [True, True]
        assert last.tolist() == [1.0, 1.0]

    def test_input_group_size_mismatch(self):
        with pytest.raises(ConfigurationError):
            InputNeuronGroup("bad", PoissonInput(1.0, 5), n_neurons=6)

    def test_input_group_is_external(self):
        group = InputNeuronGroup("drive", SpikeTrainInput([[0.0]]))
        assert group.is_external
        assert group.n_neurons == 1
