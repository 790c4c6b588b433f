"""
Custom exception classes for homeonet.

Exception Hierarchy:
====================
HomeonetError (base)
├── ConfigurationError - Invalid configuration or wiring (fails before any step)
├── ModelingFault - Non-finite or out-of-range numerical state (aborts the step)
└── ConcurrencyFault - A worker task failed or the step protocol was violated

Design Philosophy:
==================
- Specific exception types enable targeted error handling
- Modeling faults carry the component and unit identity for diagnosis
- No fault is retried: a failed step is terminal for that run

Usage Examples:
===============
    raise ConfigurationError("dt_ms must be positive, got -1.0")

    raise ModelingFault("exc->exc", "negative weight -0.3", unit=12)

    try:
        scheduler.invoke()
    except ConcurrencyFault as e:
        logger.error(f"Step failed: {e}")
        raise
"""

from __future__ import annotations

from typing import Optional


# =============================================================================
# Exception Hierarchy
# =============================================================================

class HomeonetError(Exception):
    """Base exception for all homeonet-specific errors.

    All custom exceptions inherit from this class, enabling code to catch
    simulation errors specifically:

        try:
            scheduler.invoke()
        except HomeonetError as e:
            logger.error(f"Simulation error: {e}")
    """


class ConfigurationError(HomeonetError):
    """Invalid configuration parameters or network wiring.

    Raised when configuration values are out of valid range, or when neuron
    and synapse group sizes do not match at wiring time. Always raised before
    the first simulation step executes.

    Example:
        raise ConfigurationError("Node width 50 does not match target size 40")
    """


class ModelingFault(HomeonetError):
    """Non-finite or out-of-range numerical state.

    Raised when a threshold turns NaN, a weight goes negative outside the
    dampening bound, or a current becomes non-finite. Never silently clamped.

    Args:
        component: Name of the node, sector or neuron group
        message: Description of the fault
        unit: Index of the offending unit (if known)

    Example:
        raise ModelingFault("cortex_exc", "threshold is NaN", unit=3)
    """

    def __init__(self, component: str, message: str, unit: Optional[int] = None):
        location = f"[{component}]" if unit is None else f"[{component}, unit {unit}]"
        super().__init__(f"{location} {message}")
        self.component = component
        self.unit = unit


class ConcurrencyFault(HomeonetError):
    """A worker task raised an error, or the step protocol was violated.

    The original error (if any) is chained via ``__cause__``. Node and sector
    state may be left inconsistent, so no partial-step retry is attempted.

    Example:
        raise ConcurrencyFault("Update task 'exc->inh' failed") from err
    """
