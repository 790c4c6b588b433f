"""Homeostatic Neuron Group - Threshold, scale-factor and preferred-rate adaptation.

**Scope**: Target-side state of a population whose afferent synapses are
managed by one sector, and the single full-update entry point the sector
calls once all of its nodes have finished the step.

**What It Does**:
=================
Each unit carries an *estimated* firing rate (what it does) and a
*preferred* firing rate (what it should do):

1. **HOMEOSTATIC PLASTICITY**: the threshold moves with the log-ratio of
   estimated to preferred rate, so units firing too much become less
   excitable and vice versa.

2. **SYNAPTIC SCALING**: excitatory and inhibitory normalization targets
   are multiplied by sigmoid scale factors, so units below their preferred
   rate receive relatively more excitation and units whose threshold is
   rising receive relatively more inhibition.

3. **META-HOMEOSTATIC PLASTICITY**: past a warm-up horizon, the preferred
   rate itself drifts under pressure aggregated by the sector's nodes.

**Update Order** (``perform_full_update``):
===========================================
.. code-block:: none

    1. base update      spikes → spike_buffer, last_spike_buffer
    2. rate estimate    est_fr_buffer from a sqrt(pref)-scaled filter
    3. threshold        θ += dt·λ·ln((r+ε)/(p+ε)),  θ_ra running average
    4. descale          triggered targets /= old scale factors
    5. scale factors    s = 0.5 + 1.5 / (1 + exp(-x/τ) + ln 2)
    6. pref drift       MHP drift (or p = r during warm-up)
    7. rescale          untriggered targets from p, all targets *= s
    8. rate decay       λ, η relax toward their floors

Every stage depends on the previous one; the method must be called once per
step, by the sector whose barrier reached zero.

**Concurrency**:
================
Other sectors' nodes may read this group's committed ``spikes``,
``last_spike_time`` and ``est_fr`` while this update runs, so those are only
written through buffers (committed in ``commit``). Everything else here is
read only by this group's own sector, whose nodes have already finished.
"""

from __future__ import annotations

import logging
from typing import Any, Dict, Optional

import torch

from homeonet.components.neurons.lif_dynamics import BaselineNeuronModel, LIFDynamics
from homeonet.components.neurons.neuron_group import NeuronGroup, Polarity
from homeonet.components.neurons.normalization import NormalizationState
from homeonet.config.homeostasis_config import HomeostasisConfig
from homeonet.config.neuron_config import LIFConfig
from homeonet.constants.homeostasis import LN2, RATE_EPS, SF_GAIN, SF_OFFSET
from homeonet.errors import ConfigurationError
from homeonet.learning.meta_homeostasis import MHPTermTable, compute_rate_bins
from homeonet.utils.numerical_validation import validate_finite_tensor

logger = logging.getLogger(__name__)


def scale_factor_sigmoid(x: torch.Tensor, tau: float) -> torch.Tensor:
    """Bounded sigmoid shared by both scale factors: 0.5 + 1.5 / (1 + exp(-x/τ) + ln 2)."""
    return SF_OFFSET + SF_GAIN / (1.0 + torch.exp(-x / tau) + LN2)


class HomeostaticNeuronGroup(NeuronGroup):
    """Neuron group with homeostatic and meta-homeostatic adaptation.

    Args:
        name: Identity used in logs and fault messages
        n_neurons: Population size
        polarity: Polarity of this group's own outgoing synapses
        config: Homeostasis parameters
        lif_config: Parameters of the default baseline model
        baseline: Custom baseline neuron model (overrides lif_config)
        dtype: Overrides ``config.dtype`` when given
        device: Overrides ``config.device`` when given
    """

    def __init__(
        self,
        name: str,
        n_neurons: int,
        polarity: Polarity = Polarity.EXCITATORY,
        config: Optional[HomeostasisConfig] = None,
        lif_config: Optional[LIFConfig] = None,
        baseline: Optional[BaselineNeuronModel] = None,
        dtype: Optional[torch.dtype] = None,
        device: Optional[torch.device] = None,
    ):
        cfg = config or HomeostasisConfig()
        dtype = dtype or cfg.get_torch_dtype()
        device = device or cfg.get_torch_device()
        super().__init__(
            name, n_neurons, polarity=polarity, dtype=dtype, device=device,
            initial_rate=cfg.initial_pref_fr,
        )
        self.config = cfg
        device = self.device

        if lif_config is None:
            lif_config = LIFConfig() if polarity.is_excitatory else LIFConfig.inhibitory()
        self.baseline = baseline if baseline is not None else LIFDynamics(
            n_neurons, lif_config, dtype=dtype, device=device
        )

        def full(value: float) -> torch.Tensor:
            return torch.full((n_neurons,), value, dtype=dtype, device=device)

        self.register_buffer("pref_fr", full(cfg.initial_pref_fr))
        self.register_buffer("threshold", full(lif_config.v_threshold))
        self.register_buffer("threshold_ra", full(lif_config.v_threshold))
        self.register_buffer("exc_current", full(0.0))
        self.register_buffer("inh_current", full(0.0))
        self.register_buffer("in_degree", torch.zeros(n_neurons, dtype=torch.long, device=device))
        self.pref_fr: torch.Tensor
        self.threshold: torch.Tensor
        self.threshold_ra: torch.Tensor
        self.exc_current: torch.Tensor
        self.inh_current: torch.Tensor
        self.in_degree: torch.Tensor

        # Rate-estimate filter: a spike trace decaying with tau_a and its smoothed rate
        tau_a = self._rate_time_constant()
        rate_filter = self.est_fr / 1000.0
        self.register_buffer("rate_filter", rate_filter.clone())
        self.register_buffer("rate_trace", rate_filter * tau_a)
        self.rate_filter: torch.Tensor
        self.rate_trace: torch.Tensor

        self.register_buffer("rate_bins", compute_rate_bins(self.pref_fr, cfg))
        self.rate_bins: torch.Tensor
        self.mhp_terms = MHPTermTable(cfg, dtype=dtype, device=device)

        base_targets = self.new_norm_values()
        self.normalization: Dict[Polarity, NormalizationState] = {
            Polarity.EXCITATORY: NormalizationState(
                Polarity.EXCITATORY, n_neurons, base_targets, owner=name),
            Polarity.INHIBITORY: NormalizationState(
                Polarity.INHIBITORY, n_neurons, base_targets / cfg.inh_norm_divisor, owner=name),
        }

        self.lambda_hp = cfg.lambda_init
        self.eta_mhp = cfg.eta_init
        self._generator = cfg.make_generator()
        self._update_count = 0

    # =========================================================================
    # Accessors
    # =========================================================================

    @property
    def exc(self) -> NormalizationState:
        return self.normalization[Polarity.EXCITATORY]

    @property
    def inh(self) -> NormalizationState:
        return self.normalization[Polarity.INHIBITORY]

    def normalization_for(self, source_polarity: Polarity) -> NormalizationState:
        """Normalization state for afferents of the given source polarity."""
        return self.normalization[source_polarity]

    def current_for(self, source_polarity: Polarity) -> torch.Tensor:
        """Input current accumulator for afferents of the given source polarity."""
        return self.exc_current if source_polarity.is_excitatory else self.inh_current

    def set_in_degree(self, in_degree: torch.Tensor) -> None:
        if in_degree.shape != (self.n_neurons,):
            raise ConfigurationError(
                f"{self.name}: in_degree must have shape ({self.n_neurons},), got {tuple(in_degree.shape)}"
            )
        self.in_degree.copy_(in_degree)

    def set_pref_fr(self, value: float) -> None:
        """Set every unit's preferred rate (and its rate bin)."""
        self.pref_fr.fill_(value)
        self.rate_bins.copy_(compute_rate_bins(self.pref_fr, self.config))

    def new_norm_values(self) -> torch.Tensor:
        """Base (unscaled) excitatory normalization target for each unit's preferred rate."""
        cfg = self.config
        return cfg.sat_a / (1.0 + torch.exp(-cfg.sat_b * self.pref_fr)) + cfg.sat_c

    # =========================================================================
    # Sector-facing entry points
    # =========================================================================

    def update_triggers(self, exc_sums: torch.Tensor, inh_sums: torch.Tensor) -> None:
        """Trip normalization for units whose summed afferent weights reached their targets."""
        self.exc.update_triggers(exc_sums)
        self.inh.update_triggers(inh_sums)

    def perform_full_update(self, time: float, dt: float, pfr_dts: Optional[torch.Tensor] = None) -> None:
        """Run all homeostatic stages for one step (see module docstring).

        Args:
            time: Simulation time at the start of the step (ms)
            dt: Step size (ms)
            pfr_dts: Aggregated MHP pressure per unit (zeros if None)
        """
        if pfr_dts is None:
            pfr_dts = torch.zeros_like(self.pref_fr)

        self.base_update(time, dt)
        self.update_est_fr(dt)
        self.update_threshold(dt)
        self.descale_norm_values()
        self.calc_scale_factors()
        self.update_pref_fr(time, dt, pfr_dts)
        self.calc_new_norms()
        self.scale_norm_values()
        self.decay_adaptation_rates(dt)
        self._update_count += 1

    # =========================================================================
    # Stages
    # =========================================================================

    def base_update(self, time: float, dt: float) -> None:
        """Stage 1: integrate drained input currents; write the spike buffers."""
        self.baseline.update(
            dt, time, self.exc_current, self.inh_current, self.threshold,
            self.last_spike_time, self.spike_buffer, self.last_spike_buffer,
        )
        self.exc_current.zero_()
        self.inh_current.zero_()

    def _rate_time_constant(self) -> torch.Tensor:
        return self.config.rate_tau_scale / torch.sqrt(self.pref_fr)

    def update_est_fr(self, dt: float) -> None:
        """Stage 2: exponential-smoothing rate estimate, written to est_fr_buffer."""
        tau_a = self._rate_time_constant()
        self.rate_trace.add_(self.spike_buffer.to(self.rate_trace.dtype))
        self.rate_trace.sub_(dt * self.rate_trace / tau_a)
        # Forward-Euler step of a 1 ms smoothing filter, clamped for large dt
        gain = min(dt, 1.0)
        self.rate_filter.add_(gain * (self.rate_trace / tau_a - self.rate_filter))
        validate_finite_tensor(self.rate_filter, "estimated firing rate", self.name)
        self.est_fr_buffer.copy_(self.rate_filter * 1000.0)

    def update_threshold(self, dt: float) -> None:
        """Stage 3: log-ratio threshold adaptation and its running average."""
        lam = self.lambda_hp
        log_ratio = torch.log((self.est_fr + RATE_EPS) / (self.pref_fr + RATE_EPS))
        self.threshold.add_(dt * lam * log_ratio)
        validate_finite_tensor(self.threshold, "threshold", self.name)
        self.threshold_ra.mul_(1.0 - lam * dt).add_(self.threshold * (lam * dt))

    def descale_norm_values(self) -> None:
        """Stage 4: divide triggered targets by the scale factors about to be replaced."""
        self.exc.descale()
        self.inh.descale()

    def calc_scale_factors(self) -> None:
        """Stage 5: sigmoid scale factors from rate and threshold deviations."""
        cfg = self.config
        rate_dev = torch.log((self.pref_fr + RATE_EPS) / (self.est_fr + RATE_EPS))
        self.exc.scale_factors.copy_(scale_factor_sigmoid(rate_dev, cfg.exc_sf_tau))
        thresh_dev = self.threshold - self.threshold_ra
        self.inh.scale_factors.copy_(scale_factor_sigmoid(thresh_dev, cfg.inh_sf_tau))

    def mhp_active(self, time: float) -> bool:
        """Whether preferred rates drift on their own this step."""
        cfg = self.config
        fully_normalized = self.exc.all_triggered and self.inh.all_triggered
        return cfg.mhp_enabled and not fully_normalized and time > cfg.warmup_ms

    def update_pref_fr(self, time: float, dt: float, pfr_dts: torch.Tensor) -> None:
        """Stage 6: meta-homeostatic drift of preferred rates.

        During warm-up (or with MHP disabled) preferred rates track the
        estimated rates instead. Once both polarities are fully normalized
        past warm-up, preferred rates are frozen.
        """
        cfg = self.config
        if self.mhp_active(time):
            below = self.pref_fr < cfg.min_pfr
            if below.any():
                jitter = torch.randn(
                    self.n_neurons, generator=self._generator, dtype=self.pref_fr.dtype
                ).to(self.device)
                reseed = cfg.min_pfr + (1.0 + cfg.reseed_jitter * jitter).abs()
                self.pref_fr.copy_(torch.where(below, reseed, self.pref_fr))
            self.pref_fr.clamp_(max=cfg.max_pfr)

            noise = torch.randn(
                self.n_neurons, generator=self._generator, dtype=self.pref_fr.dtype
            ).to(self.device)
            drift_rate = dt * self.eta_mhp / (self.in_degree.to(self.pref_fr.dtype) + 1.0)
            self.pref_fr.add_(drift_rate * pfr_dts * (1.0 + noise) * cfg.noise_var)
            validate_finite_tensor(self.pref_fr, "preferred firing rate", self.name)
            self.pref_fr.clamp_(cfg.min_pfr, cfg.max_pfr)
        elif not cfg.mhp_enabled or time <= cfg.warmup_ms:
            # Tracking obeys the same bounds as drift
            self.pref_fr.copy_(self.est_fr.clamp(cfg.min_pfr, cfg.max_pfr))
        else:
            return
        self.rate_bins.copy_(compute_rate_bins(self.pref_fr, cfg))

    def calc_new_norms(self) -> None:
        """Stage 7a: recompute untriggered targets from (possibly new) preferred rates."""
        base = self.new_norm_values()
        self.exc.reset_untriggered(base)
        self.inh.reset_untriggered(base / self.config.inh_norm_divisor)

    def scale_norm_values(self) -> None:
        """Stage 7b: apply the new scale factors to every target."""
        self.exc.rescale()
        self.inh.rescale()

    def decay_adaptation_rates(self, dt: float) -> None:
        """Stage 8: relax lambda and eta toward their floors."""
        cfg = self.config
        self.lambda_hp += dt * (cfg.lambda_final - self.lambda_hp) * cfg.hp_decay
        self.eta_mhp += dt * (cfg.eta_final - self.eta_mhp) * cfg.mhp_decay

    # =========================================================================
    # Diagnostics
    # =========================================================================

    def get_diagnostics(self) -> Dict[str, Any]:
        diag = super().get_diagnostics()
        diag.update({
            "pref_fr_mean": float(self.pref_fr.mean().item()),
            "threshold_mean": float(self.threshold.mean().item()),
            "exc_sf_mean": float(self.exc.scale_factors.mean().item()),
            "inh_sf_mean": float(self.inh.scale_factors.mean().item()),
            "exc_triggered": self.exc.n_triggered,
            "inh_triggered": self.inh.n_triggered,
            "lambda_hp": self.lambda_hp,
            "eta_mhp": self.eta_mhp,
            "updates": self._update_count,
        })
        return diag


__all__ = ["HomeostaticNeuronGroup", "scale_factor_sigmoid"]
