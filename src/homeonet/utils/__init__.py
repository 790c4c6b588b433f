"""Shared utilities: numerical validation and counter-based RNG."""

from homeonet.utils.numerical_validation import (
    set_numerical_validation,
    validate_finite,
    validate_finite_tensor,
    validate_non_negative_tensor,
)
from homeonet.utils.rng import philox_uniform, step_counters

__all__ = [
    "set_numerical_validation",
    "validate_finite",
    "validate_finite_tensor",
    "validate_non_negative_tensor",
    "philox_uniform",
    "step_counters",
]
