"""Tests for the homeostatic neuron group's full update."""

import math

import pytest
import torch
from hypothesis import given, settings, strategies as st

from homeonet import HomeostasisConfig, HomeostaticNeuronGroup, Polarity
from homeonet.components.neurons.homeostatic_neurons import scale_factor_sigmoid
from homeonet.constants.homeostasis import SF_EQUILIBRIUM, SF_MAX, SF_OFFSET
from homeonet.errors import ModelingFault

EQUILIBRIUM_SF = 0.5 + 1.5 / (1.0 + 1.0 + math.log(2.0))


@pytest.mark.unit
class TestScaleFactors:

    def test_equal_rates_converge_to_closed_form(self):
        """Two units with est == pref reach 0.5 + 1.5/(2 + ln 2) after one update."""
        group = HomeostaticNeuronGroup("pair", 2, config=HomeostasisConfig(seed=1))
        assert torch.equal(group.est_fr, group.pref_fr)

        group.perform_full_update(time=0.0, dt=1.0)

        expected = torch.full((2,), EQUILIBRIUM_SF, dtype=torch.float64)
        torch.testing.assert_close(group.exc.scale_factors, expected)
        torch.testing.assert_close(group.inh.scale_factors, expected)
        assert SF_EQUILIBRIUM == pytest.approx(EQUILIBRIUM_SF)

    @given(x=st.floats(min_value=-1e3, max_value=1e3, allow_nan=False))
    @settings(max_examples=100, deadline=1000)
    def test_sigmoid_is_bounded(self, x):
        value = scale_factor_sigmoid(torch.tensor([x], dtype=torch.float64), tau=0.2).item()
        assert SF_OFFSET <= value <= SF_MAX + 1e-12

    def test_low_rate_increases_excitatory_factor(self):
        group = HomeostaticNeuronGroup("g", 2, config=HomeostasisConfig(seed=1))
        group.set_pref_fr(10.0)  # est stays at the initial 1 Hz
        group.perform_full_update(time=0.0, dt=1.0)
        assert (group.exc.scale_factors > EQUILIBRIUM_SF).all()


@pytest.mark.unit
class TestThreshold:

    def test_threshold_rises_when_firing_above_preference(self):
        group = HomeostaticNeuronGroup("g", 3, config=HomeostasisConfig(seed=1))
        group.est_fr.fill_(20.0)
        before = group.threshold.clone()
        lam = group.lambda_hp

        group.update_threshold(dt=1.0)

        expected = before + lam * math.log((20.0 + 1e-4) / (1.0 + 1e-4))
        torch.testing.assert_close(group.threshold, expected)
        # Running average moves toward the new threshold by lambda * dt
        torch.testing.assert_close(group.threshold_ra, before * (1 - lam) + group.threshold * lam)

    def test_nan_threshold_raises_modeling_fault(self):
        group = HomeostaticNeuronGroup("cortex", 4, config=HomeostasisConfig(seed=1))
        group.threshold[2] = float("nan")

        with pytest.raises(ModelingFault) as excinfo:
            group.perform_full_update(time=0.0, dt=1.0)

        assert excinfo.value.unit == 2
        assert excinfo.value.component == "cortex"


@pytest.mark.unit
class TestPreferredRate:

    def test_tracks_estimate_during_warmup(self):
        group = HomeostaticNeuronGroup("g", 3, config=HomeostasisConfig(seed=1, warmup_ms=100.0))
        group.est_fr.copy_(torch.tensor([0.1, 5.0, 500.0], dtype=torch.float64))

        group.update_pref_fr(time=50.0, dt=1.0, pfr_dts=torch.ones(3, dtype=torch.float64))

        torch.testing.assert_close(group.pref_fr, torch.tensor([0.5, 5.0, 100.0], dtype=torch.float64))

    def test_tracks_estimate_when_mhp_disabled(self):
        group = HomeostaticNeuronGroup("g", 2, config=HomeostasisConfig(seed=1, mhp_enabled=False, warmup_ms=0.0))
        group.est_fr.fill_(7.0)
        group.update_pref_fr(time=1e6, dt=1.0, pfr_dts=torch.ones(2, dtype=torch.float64))
        torch.testing.assert_close(group.pref_fr, torch.full((2,), 7.0, dtype=torch.float64))

    @given(
        prefs=st.lists(st.floats(min_value=0.0, max_value=500.0), min_size=1, max_size=20),
        pressure=st.floats(min_value=-1e6, max_value=1e6, allow_nan=False),
        seed=st.integers(min_value=0, max_value=2**16),
    )
    @settings(max_examples=100, deadline=None)
    def test_drift_stays_within_bounds(self, prefs, pressure, seed):
        """After drift the preferred rate is in [MIN_PFR, MAX_PFR] for any noise draw."""
        config = HomeostasisConfig(seed=seed, warmup_ms=0.0)
        group = HomeostaticNeuronGroup("g", len(prefs), config=config)
        group.pref_fr.copy_(torch.tensor(prefs, dtype=torch.float64))
        pfr_dts = torch.full((len(prefs),), pressure, dtype=torch.float64)

        group.update_pref_fr(time=1.0, dt=1.0, pfr_dts=pfr_dts)

        assert (group.pref_fr >= config.min_pfr).all()
        assert (group.pref_fr <= config.max_pfr).all()
        assert (group.rate_bins <= math.ceil(config.max_pfr * config.rate_bin_resolution)).all()

    def test_drift_scales_with_in_degree(self):
        config = HomeostasisConfig(seed=5, warmup_ms=0.0, noise_var=1.0)
        a = HomeostaticNeuronGroup("a", 1, config=config)
        b = HomeostaticNeuronGroup("b", 1, config=config)
        for group in (a, b):
            group.set_pref_fr(10.0)
        b.set_in_degree(torch.tensor([9]))
        pressure = torch.ones(1, dtype=torch.float64)

        a.update_pref_fr(time=1.0, dt=1.0, pfr_dts=pressure)
        b.update_pref_fr(time=1.0, dt=1.0, pfr_dts=pressure)

        # Same seed → same noise draw; in-degree 9 divides the step by 10
        torch.testing.assert_close(b.pref_fr - 10.0, (a.pref_fr - 10.0) / 10.0)

    def test_frozen_once_fully_normalized(self):
        group = HomeostaticNeuronGroup("g", 2, config=HomeostasisConfig(seed=1, warmup_ms=0.0))
        group.set_pref_fr(12.0)
        for state in (group.exc, group.inh):
            state.triggered.fill_(True)
            state.all_triggered = True

        group.update_pref_fr(time=10.0, dt=1.0, pfr_dts=torch.full((2,), 100.0, dtype=torch.float64))

        torch.testing.assert_close(group.pref_fr, torch.full((2,), 12.0, dtype=torch.float64))


@pytest.mark.unit
class TestNormalizationTargets:

    def test_initial_targets_follow_saturating_curve(self):
        group = HomeostaticNeuronGroup("g", 2, config=HomeostasisConfig(seed=1))
        expected = 300.0 / (1.0 + math.exp(-0.1 * 1.0)) - 100.0
        torch.testing.assert_close(group.exc.targets, torch.full((2,), expected, dtype=torch.float64))
        torch.testing.assert_close(group.inh.targets, torch.full((2,), expected / 5.0, dtype=torch.float64))

    def test_triggered_target_keeps_observed_sum_under_constant_factor(self):
        group = HomeostaticNeuronGroup("g", 2, config=HomeostasisConfig(seed=1))
        sums = torch.tensor([100.0, 0.0], dtype=torch.float64)
        group.update_triggers(sums, torch.zeros(2, dtype=torch.float64))
        assert group.exc.triggered.tolist() == [True, False]

        # First update replaces the unit scale factor with the equilibrium value
        group.perform_full_update(time=0.0, dt=1.0)
        first = group.exc.targets[0].item()
        assert first == pytest.approx(100.0 * EQUILIBRIUM_SF)

        # Unchanged factors: descale → rescale leaves the triggered target as is
        group.perform_full_update(time=1.0, dt=1.0)
        assert group.exc.targets[0].item() == pytest.approx(first)


@pytest.mark.unit
class TestAdaptationRates:

    def test_lambda_and_eta_decay_toward_floors(self):
        config = HomeostasisConfig(seed=1, hp_decay=0.1, mhp_decay=0.1)
        group = HomeostaticNeuronGroup("g", 1, config=config)
        lam0, eta0 = group.lambda_hp, group.eta_mhp

        group.decay_adaptation_rates(dt=1.0)

        assert group.lambda_hp == pytest.approx(lam0 + 0.1 * (config.lambda_final - lam0))
        assert group.eta_mhp == pytest.approx(eta0 + 0.1 * (config.eta_final - eta0))
        for _ in range(500):
            group.decay_adaptation_rates(dt=1.0)
        assert group.lambda_hp == pytest.approx(config.lambda_final, rel=1e-6)
        assert group.eta_mhp == pytest.approx(config.eta_final, rel=1e-3)


@pytest.mark.unit
class TestBaseUpdate:

    def test_spikes_written_to_buffers_only(self):
        group = HomeostaticNeuronGroup("g", 3, polarity=Polarity.INHIBITORY, config=HomeostasisConfig(seed=1))
        group.exc_current.fill_(100.0)

        group.perform_full_update(time=4.0, dt=1.0)

        assert group.spike_buffer.all()
        assert not group.spikes.any()
        assert (group.last_spike_buffer == 4.0).all()
        assert (group.exc_current == 0).all()

        group.commit()
        assert group.spikes.all()
        assert (group.last_spike_time == 4.0).all()

    def test_rate_estimate_rises_with_spiking(self):
        group = HomeostaticNeuronGroup("g", 1, config=HomeostasisConfig(seed=1))
        for step in range(50):
            group.exc_current.fill_(100.0)
            group.perform_full_update(time=float(step), dt=1.0)
            group.commit()
        assert group.est_fr.item() > 1.0
