"""Post-run analysis of weights and firing rates."""

from homeonet.evaluation.statistics import (
    NetworkSummary,
    rate_statistics,
    summarize_network,
    weight_histogram,
    weight_statistics,
)

__all__ = [
    "NetworkSummary",
    "rate_statistics",
    "summarize_network",
    "weight_histogram",
    "weight_statistics",
]
