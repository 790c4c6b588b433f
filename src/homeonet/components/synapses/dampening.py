"""
Weight Dampening - Bounds pending weight changes before they are committed.

Dampening is applied to the pending deltas ``dw`` after STDP and before the
weights are updated, and guarantees ``w_min <= w + dw <= w_max`` for every
connection. It is the only place where weights are deliberately bounded;
a weight found outside the bounds anywhere else is a modeling fault.

Modes:
======
- ``HARD``: clip ``w + dw`` to the bounds, leaving in-range changes untouched
- ``SOFT``: multiplicative soft bounds: potentiation shrinks as the weight
  approaches ``w_max``, depression shrinks as it approaches ``w_min``, then
  the result is clipped
- ``NONE``: pass ``dw`` through unchanged (only for tests and experiments
  that guarantee their own bounds)
"""

from __future__ import annotations

from enum import Enum

import torch


class DampeningFunction(Enum):
    """How pending weight changes are bounded."""
    NONE = "none"
    HARD = "hard"
    SOFT = "soft"

    def dampen(self, weights: torch.Tensor, dw: torch.Tensor, w_max: float, w_min: float = 0.0) -> None:
        """Bound ``dw`` in place for this mode."""
        dampen(weights, dw, w_max, w_min, mode=self)


def dampen(
    weights: torch.Tensor,
    dw: torch.Tensor,
    w_max: float,
    w_min: float = 0.0,
    mode: DampeningFunction = DampeningFunction.HARD,
) -> None:
    """Bound the pending changes ``dw`` (in place) so committed weights stay in range.

    Args:
        weights: Current weights (not modified)
        dw: Pending weight changes, modified in place
        w_max: Upper weight bound
        w_min: Lower weight bound
        mode: Dampening mode
    """
    if mode is DampeningFunction.NONE:
        return

    if mode is DampeningFunction.SOFT:
        span = w_max - w_min
        headroom = ((w_max - weights) / span).clamp(0.0, 1.0)
        footroom = ((weights - w_min) / span).clamp(0.0, 1.0)
        dw.mul_(torch.where(dw > 0, headroom, footroom))

    bounded = (weights + dw).clamp(w_min, w_max)
    dw.copy_(bounded - weights)
