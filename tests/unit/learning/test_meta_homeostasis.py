"""Tests for meta-homeostatic staging (stages 0-2) and rate-bin lookup."""

import math

import pytest
import torch
from hypothesis import given, settings
from hypothesis import strategies as st

from homeonet.config.homeostasis_config import HomeostasisConfig
from homeonet.learning.meta_homeostasis import (
    MHPTermTable,
    compute_rate_bins,
    mhp_stage0,
    mhp_stage1,
    mhp_stage2,
)


def t(values):
    return torch.tensor(values, dtype=torch.float64)


@pytest.mark.unit
class TestStages:

    def test_stage0_zero_when_source_matches_preference(self):
        raw = mhp_stage0(
            target_est=t([3.0]), target_pref=t([3.0]), source_est=t([3.0, 3.0]),
            conn_source=torch.tensor([0, 1]), conn_target=torch.tensor([0, 0]),
        )
        assert torch.allclose(raw, torch.zeros(2, dtype=torch.float64))

    def test_stage0_sign_follows_source_rate(self):
        raw = mhp_stage0(
            target_est=t([2.0]), target_pref=t([2.0]), source_est=t([8.0, 0.5]),
            conn_source=torch.tensor([0, 1]), conn_target=torch.tensor([0, 0]),
        )
        assert raw[0] > 0
        assert raw[1] < 0
        assert raw[0].item() == pytest.approx(math.log((8.0 + 1e-4) / (2.0 + 1e-4)))

    def test_stage0_attenuated_far_from_preference(self):
        kwargs = dict(source_est=t([8.0]), conn_source=torch.tensor([0]), conn_target=torch.tensor([0]))
        near = mhp_stage0(target_est=t([2.0]), target_pref=t([2.0]), **kwargs)
        far = mhp_stage0(target_est=t([20.0]), target_pref=t([2.0]), **kwargs)
        assert 0 < far.item() < near.item()

    def test_stage1_sums_per_target(self):
        aux = mhp_stage1(t([1.0, 2.0, -0.5, 4.0]), torch.tensor([0, 2, 2, 0]), width=3)
        assert aux.tolist() == [5.0, 0.0, 1.5]

    def test_stage2_selects_term_by_sign(self):
        out = mhp_stage2(t([2.0, -2.0, 0.0]), f_plus=t([0.5, 0.5, 0.5]), f_minus=t([0.25, 0.25, 0.25]))
        assert out.tolist() == [1.0, -0.5, 0.0]


@pytest.mark.unit
class TestTermTable:

    def test_zero_rate_bin(self):
        table = MHPTermTable(HomeostasisConfig())
        f_plus, f_minus = table.lookup(torch.tensor([0]))
        assert f_plus.item() == 1.0
        assert f_minus.item() == 0.0

    def test_terms_are_monotonic(self):
        table = MHPTermTable(HomeostasisConfig())
        assert (table.f_plus[1:] <= table.f_plus[:-1]).all()
        assert (table.f_minus[1:] >= table.f_minus[:-1]).all()

    def test_table_covers_max_rate(self):
        cfg = HomeostasisConfig()
        table = MHPTermTable(cfg)
        bins = compute_rate_bins(t([cfg.max_pfr]), cfg)
        table.lookup(bins)  # must not index out of range


@pytest.mark.unit
@settings(max_examples=50, deadline=None)
@given(st.lists(st.floats(min_value=-50.0, max_value=500.0, allow_nan=False), min_size=1, max_size=20))
def test_rate_bins_stay_in_table(rates):
    cfg = HomeostasisConfig()
    table = MHPTermTable(cfg)
    bins = compute_rate_bins(t(rates), cfg)
    assert (bins >= 0).all()
    assert (bins < table.f_plus.numel()).all()
