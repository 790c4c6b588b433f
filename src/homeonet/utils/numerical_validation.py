"""Utility functions for numerical validation of simulation state."""

from __future__ import annotations

import math
from typing import Optional

import torch

from homeonet.errors import ModelingFault


# Module-level flag for numerical validation (mutable by design)
# ruff: noqa: N816 (allow lowercase module-level variable)
_enable_numerical_validation = True
"""Global flag to enable/disable numerical validation.

Set to False only for production/benchmarking after thorough testing.
"""


def set_numerical_validation(enabled: bool) -> None:
    """Enable or disable numerical validation globally.

    Args:
        enabled: True to enable validation, False to disable
    """
    global _enable_numerical_validation  # noqa: PLW0603
    _enable_numerical_validation = enabled


def validate_finite(
    value: float,
    name: str,
    component: str = "homeonet",
    valid_range: Optional[tuple[float, float]] = None,
) -> None:
    """Validate that a scalar is finite and optionally in range.

    Args:
        value: Value to validate
        name: Quantity name for the error message
        component: Node/group identity for the error message
        valid_range: Optional (min, max) tuple for range checking

    Raises:
        ModelingFault: If value is NaN, Inf, or out of range
    """
    if not _enable_numerical_validation:
        return

    if math.isnan(value):
        raise ModelingFault(
            component,
            f"{name} is NaN. This usually indicates a numerical instability upstream.",
        )

    if math.isinf(value):
        raise ModelingFault(
            component,
            f"{name} is Inf. This usually indicates a numerical overflow upstream.",
        )

    if valid_range is not None:
        min_val, max_val = valid_range
        if value < min_val or value > max_val:
            raise ModelingFault(
                component,
                f"{name}={value:.4f} is outside valid range [{min_val}, {max_val}].",
            )


def validate_finite_tensor(
    values: torch.Tensor,
    name: str,
    component: str,
    unit_index: Optional[torch.Tensor] = None,
) -> None:
    """Raise ModelingFault naming the first unit whose value is NaN or Inf.

    Args:
        values: Tensor to check (any shape, flattened for reporting)
        name: Quantity name for the error message
        component: Node/group identity for the error message
        unit_index: Optional map from flat position to unit index (e.g. the
            target of each connection); defaults to the flat position itself
    """
    if not _enable_numerical_validation:
        return

    bad = ~torch.isfinite(values)
    if bad.any():
        position = int(torch.nonzero(bad.flatten(), as_tuple=True)[0][0].item())
        unit = int(unit_index[position].item()) if unit_index is not None else position
        raise ModelingFault(
            component,
            f"{name} is non-finite ({values.flatten()[position].item()})",
            unit=unit,
        )


def validate_non_negative_tensor(
    values: torch.Tensor,
    name: str,
    component: str,
    unit_index: Optional[torch.Tensor] = None,
) -> None:
    """Raise ModelingFault if any value is non-finite or negative."""
    if not _enable_numerical_validation:
        return

    validate_finite_tensor(values, name, component, unit_index)
    negative = values < 0
    if negative.any():
        position = int(torch.nonzero(negative.flatten(), as_tuple=True)[0][0].item())
        unit = int(unit_index[position].item()) if unit_index is not None else position
        raise ModelingFault(
            component,
            f"{name} is negative ({values.flatten()[position].item():.6g})",
            unit=unit,
        )
