"""
Learning: STDP rules and meta-homeostatic plasticity terms.
"""

from homeonet.learning.meta_homeostasis import (
    MHPTermTable,
    compute_rate_bins,
    mhp_stage0,
    mhp_stage1,
    mhp_stage2,
)
from homeonet.learning.rules import StandardSTDP, STDPRule

__all__ = [
    "MHPTermTable",
    "compute_rate_bins",
    "mhp_stage0",
    "mhp_stage1",
    "mhp_stage2",
    "StandardSTDP",
    "STDPRule",
]
