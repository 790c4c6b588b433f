"""
Synaptic Normalization State - Per-polarity targets, triggers and scale factors.

Each homeostatic group keeps one ``NormalizationState`` per afferent
polarity (excitatory and inhibitory inputs). A synaptic node selects the
state matching its *source* polarity once, at wiring time, and only ever
reads it afterwards.

Lifecycle of a unit:
====================
1. **Untriggered**: its target is recomputed every step from its preferred
   rate. Nodes leave its weights alone and only report incoming sums.
2. **Triggered**: the first time the summed incoming weight reaches the
   target, the observed sum becomes the target and the flag is set. From
   then on nodes scale its weights by ``multipliers = target / sum`` each
   step. Flags never clear.
3. **All triggered**: once every unit is triggered, nodes skip the per-unit
   checks and normalize every target in one vectorized pass.

Scale factors multiply the targets. Each step the group divides triggered
targets by the old factors (descale), recomputes the factors, and multiplies
every target by the new factors (rescale), so an unchanged factor leaves a
triggered target unchanged.
"""

from __future__ import annotations

import logging
from typing import List

import torch

from homeonet.components.neurons.neuron_group import Polarity

logger = logging.getLogger(__name__)


class NormalizationState:
    """Normalization bookkeeping for one afferent polarity of a group."""

    def __init__(
        self,
        polarity: Polarity,
        n_neurons: int,
        initial_targets: torch.Tensor,
        owner: str = "",
    ):
        self.polarity = polarity
        self.owner = owner
        dtype, device = initial_targets.dtype, initial_targets.device
        self.targets = initial_targets.clone()
        self.scale_factors = torch.ones(n_neurons, dtype=dtype, device=device)
        self.triggered = torch.zeros(n_neurons, dtype=torch.bool, device=device)
        self.multipliers = torch.ones(n_neurons, dtype=dtype, device=device)
        self.incoming_sums = torch.zeros(n_neurons, dtype=dtype, device=device)
        self.all_triggered = False

    @property
    def n_triggered(self) -> int:
        return int(self.triggered.sum().item())

    def update_triggers(self, sums: torch.Tensor) -> List[int]:
        """Trip every untriggered unit whose incoming sum reached its target.

        The observed sum becomes the unit's new target. Returns the indices
        that tripped this call.
        """
        self.incoming_sums.copy_(sums)
        if self.all_triggered:
            return []
        tripped = (sums >= self.targets) & ~self.triggered
        tripped_units = torch.nonzero(tripped, as_tuple=True)[0].tolist()
        if tripped_units:
            self.targets[tripped] = sums[tripped]
            self.triggered |= tripped
            for unit in tripped_units:
                logger.info("%s: %s normalization triggered for unit %d",
                            self.owner, self.polarity.value, unit)
        self.all_triggered = bool(self.triggered.all().item())
        return tripped_units

    def check_triggers(self, sums: torch.Tensor) -> bool:
        """Strict comparison variant: trip units whose sum exceeds the target.

        Unlike ``update_triggers`` the target is left untouched. Returns
        whether every unit is now triggered.
        """
        untriggered = ~self.triggered
        self.triggered |= untriggered & (sums > self.targets)
        self.all_triggered = bool(self.triggered.all().item())
        return self.all_triggered

    def descale(self) -> None:
        """Undo the current scale factors on triggered targets."""
        if self.all_triggered:
            self.targets.div_(self.scale_factors)
        else:
            self.targets[self.triggered] /= self.scale_factors[self.triggered]

    def reset_untriggered(self, base_targets: torch.Tensor) -> None:
        """Replace untriggered targets with freshly computed base values."""
        if not self.all_triggered:
            untriggered = ~self.triggered
            self.targets[untriggered] = base_targets[untriggered]

    def rescale(self) -> None:
        """Apply the current scale factors to every target."""
        self.targets.mul_(self.scale_factors)

    def refresh_multipliers(self, sums: torch.Tensor) -> None:
        """Cache per-unit weight multipliers (target / sum) for triggered units."""
        self.incoming_sums.copy_(sums)
        ratio = torch.where(sums > 0, self.targets / sums.clamp(min=torch.finfo(sums.dtype).tiny),
                            torch.ones_like(sums))
        self.multipliers.copy_(torch.where(self.triggered, ratio, torch.ones_like(ratio)))

    def __repr__(self) -> str:
        return (
            f"NormalizationState({self.polarity.value}, triggered={self.n_triggered}/"
            f"{self.triggered.numel()}, all_triggered={self.all_triggered})"
        )
