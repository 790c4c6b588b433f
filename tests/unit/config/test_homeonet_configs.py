"""Tests for configuration dataclasses and their validation."""

import os

import pytest
import torch

from homeonet.config import (
    HomeostasisConfig,
    LIFConfig,
    SimulationConfig,
    STDPConfig,
    STPConfig,
)
from homeonet.errors import ConfigurationError


@pytest.mark.unit
class TestSimulationConfig:

    def test_defaults(self):
        cfg = SimulationConfig()
        assert cfg.dt_ms == 1.0
        assert cfg.start_time_ms == 0.0
        assert cfg.resolved_workers == (os.cpu_count() or 1)

    def test_explicit_workers(self):
        assert SimulationConfig(n_workers=3).resolved_workers == 3

    @pytest.mark.parametrize("kwargs", [{"dt_ms": 0.0}, {"dt_ms": -1.0}, {"n_workers": 0}, {"max_weight": 0.0}])
    def test_invalid(self, kwargs):
        with pytest.raises(ConfigurationError):
            SimulationConfig(**kwargs)


@pytest.mark.unit
class TestBaseConfig:

    def test_dtype_lookup(self):
        assert SimulationConfig(dtype="float32").get_torch_dtype() is torch.float32
        assert SimulationConfig().get_torch_dtype() is torch.float64

    def test_unknown_dtype(self):
        with pytest.raises(ConfigurationError, match="Unknown dtype"):
            SimulationConfig(dtype="int8").get_torch_dtype()

    def test_seeded_generators_repeat(self):
        cfg = HomeostasisConfig(seed=11)
        a = torch.rand(5, generator=cfg.make_generator())
        b = torch.rand(5, generator=cfg.make_generator())
        c = torch.rand(5, generator=cfg.make_generator(offset=1))
        assert torch.equal(a, b)
        assert not torch.equal(a, c)


@pytest.mark.unit
class TestHomeostasisConfig:

    def test_defaults_are_consistent(self):
        cfg = HomeostasisConfig()
        assert 0 < cfg.min_pfr < cfg.initial_pref_fr < cfg.max_pfr
        assert cfg.lambda_final <= cfg.lambda_init
        assert cfg.eta_final <= cfg.eta_init

    @pytest.mark.parametrize(
        "kwargs",
        [
            {"lambda_init": -1.0},
            {"warmup_ms": -10.0},
            {"min_pfr": 5.0, "max_pfr": 1.0},
            {"min_pfr": 0.0},
            {"initial_pref_fr": 0.0},
            {"rate_bin_resolution": 0.0},
            {"inh_norm_divisor": -2.0},
        ],
    )
    def test_invalid(self, kwargs):
        with pytest.raises(ConfigurationError):
            HomeostasisConfig(**kwargs)


@pytest.mark.unit
class TestSynapseConfigs:

    def test_stp_polarity_defaults_differ(self):
        ee = STPConfig.for_polarities(True, True)
        ei = STPConfig.for_polarities(True, False)
        assert (ee.U, ee.D, ee.F) != (ei.U, ei.D, ei.F)

    def test_stp_override(self):
        assert STPConfig.for_polarities(False, True, U=0.9).U == 0.9

    @pytest.mark.parametrize("kwargs", [{"U": 0.0}, {"U": 1.5}, {"D": 0.0}, {"F": -1.0}])
    def test_stp_invalid(self, kwargs):
        with pytest.raises(ConfigurationError):
            STPConfig(**kwargs)

    def test_stdp_unset_amplitudes_filled(self):
        cfg = STDPConfig()
        assert cfg.w_plus is not None and cfg.tau_minus is not None

    def test_lif_inhibitory_preset(self):
        exc, inh = LIFConfig(), LIFConfig.inhibitory()
        assert inh.tau_mem != exc.tau_mem or inh.tau_ref != exc.tau_ref

    @pytest.mark.parametrize("kwargs", [{"tau_mem": 0.0}, {"tau_ref": -1.0}, {"resistance": 0.0}])
    def test_lif_invalid(self, kwargs):
        with pytest.raises(ConfigurationError):
            LIFConfig(**kwargs)
