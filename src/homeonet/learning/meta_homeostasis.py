"""
Meta-Homeostatic Plasticity (MHP) - Pressure on preferred firing rates.

**Scope**: Slow drift of each unit's preferred firing rate (the homeostatic
set-point itself), driven by the rates of the units projecting onto it.

Homeostatic plasticity drives a unit's *estimated* rate toward its
*preferred* rate. MHP moves the preferred rate, on a much slower timescale,
under pressure from network-wide rate statistics. The per-node staging runs
three ordered stages per target unit:

.. code-block:: none

    stage 0: raw[c]  = ln((r_src + ε) / (p_tgt + ε)) · exp(-|ln((r_tgt + ε) / (p_tgt + ε))|)
    stage 1: aux[i]  = Σ_{c → i} raw[c]
    stage 2: aux[i] *= f+(bin_i) if aux[i] ≥ 0 else f-(bin_i)

with ``c`` ranging over connections, ``r`` estimated and ``p`` preferred
rates. Stage 0 pushes a target's set-point toward the rates of its inputs,
attenuated while the unit is far from its current set-point. Stage 2 makes
low set-points easy to raise and high set-points easy to lower:

.. code-block:: none

    f+(p) = exp(-p / (beta · low_fr))
    f-(p) = 1 - exp(-p / (alpha · low_fr))

Preferred rates are discretized into rate bins (``rate_bin_resolution`` bins
per Hz) so f+/f- are table lookups computed once per group.

The sector sums every node's ``aux`` into ``pfr_dts``, which the neuron
group integrates in its full update:

.. code-block:: none

    p_i += dt · eta / (in_degree_i + 1) · pfr_dts_i · (1 + N(0, 1)) · noise_var

All functions here are pure: they read their tensor arguments and return
new tensors, and may run concurrently from different nodes.
"""

from __future__ import annotations

import math

import torch

from homeonet.config.homeostasis_config import HomeostasisConfig
from homeonet.constants.homeostasis import RATE_EPS


def compute_rate_bins(pref_fr: torch.Tensor, config: HomeostasisConfig) -> torch.Tensor:
    """Discretize preferred rates into integer bins for f+/f- lookup."""
    max_bin = int(math.ceil(config.max_pfr * config.rate_bin_resolution))
    bins = torch.round(pref_fr * config.rate_bin_resolution).to(torch.long)
    return bins.clamp_(0, max_bin)


class MHPTermTable:
    """Precomputed f+ and f- values indexed by rate bin."""

    def __init__(self, config: HomeostasisConfig, dtype: torch.dtype = torch.float64,
                 device: torch.device = torch.device("cpu")):
        n_bins = int(math.ceil(config.max_pfr * config.rate_bin_resolution)) + 1
        rates = torch.arange(n_bins, dtype=dtype, device=device) / config.rate_bin_resolution
        self.f_plus = torch.exp(-rates / (config.beta * config.low_fr))
        self.f_minus = 1.0 - torch.exp(-rates / (config.alpha * config.low_fr))

    def lookup(self, bins: torch.Tensor) -> tuple[torch.Tensor, torch.Tensor]:
        return self.f_plus[bins], self.f_minus[bins]


def mhp_stage0(
    target_est: torch.Tensor,
    target_pref: torch.Tensor,
    source_est: torch.Tensor,
    conn_source: torch.Tensor,
    conn_target: torch.Tensor,
) -> torch.Tensor:
    """Raw per-connection pressure on the target's preferred rate."""
    pref = target_pref[conn_target]
    drive = torch.log((source_est[conn_source] + RATE_EPS) / (pref + RATE_EPS))
    mismatch = torch.log((target_est[conn_target] + RATE_EPS) / (pref + RATE_EPS)).abs()
    return drive * torch.exp(-mismatch)


def mhp_stage1(raw: torch.Tensor, conn_target: torch.Tensor, width: int) -> torch.Tensor:
    """Integrate per-connection pressure into a per-target value."""
    aux = torch.zeros(width, dtype=raw.dtype, device=raw.device)
    return aux.index_add_(0, conn_target, raw)


def mhp_stage2(aux: torch.Tensor, f_plus: torch.Tensor, f_minus: torch.Tensor) -> torch.Tensor:
    """Apply the rate-bin keyed nonlinearity (f+ for raising, f- for lowering)."""
    return torch.where(aux >= 0, aux * f_plus, aux * f_minus)
