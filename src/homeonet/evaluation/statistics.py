"""Weight and firing-rate statistics for a simulated network.

These functions read committed state only and never mutate the network, so
they can be called between steps (e.g. from a ``Scheduler.run`` callback)
or after a run to judge whether homeostasis settled.

Example:
    >>> summary = summarize_network(net)
    >>> print(summary.rates["exc"]["mean"], summary.weights["exc->exc"]["p95"])
"""

from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Dict, Tuple

import numpy as np
import torch

from homeonet.constants.homeostasis import RATE_EPS

if TYPE_CHECKING:
    from homeonet.core.network import Network


def _to_numpy(values: torch.Tensor) -> np.ndarray:
    return values.detach().cpu().numpy().astype(np.float64)


def weight_statistics(weights: torch.Tensor) -> Dict[str, float]:
    """Mean, spread and percentiles of a weight vector.

    Empty weight vectors report zeros rather than NaN.
    """
    w = _to_numpy(weights)
    if w.size == 0:
        return {"count": 0, "mean": 0.0, "std": 0.0, "min": 0.0, "p50": 0.0, "p95": 0.0, "max": 0.0}
    p50, p95 = np.percentile(w, [50, 95])
    return {
        "count": int(w.size),
        "mean": float(np.mean(w)),
        "std": float(np.std(w)),
        "min": float(np.min(w)),
        "p50": float(p50),
        "p95": float(p95),
        "max": float(np.max(w)),
    }


def weight_histogram(
    weights: torch.Tensor,
    n_bins: int = 20,
    value_range: Tuple[float, float] = (0.0, 20.0),
) -> Tuple[np.ndarray, np.ndarray]:
    """Counts and bin edges of the weight distribution."""
    counts, edges = np.histogram(_to_numpy(weights), bins=n_bins, range=value_range)
    return counts, edges


def rate_statistics(est_fr: torch.Tensor, pref_fr: torch.Tensor) -> Dict[str, float]:
    """How far estimated rates sit from their preferred rates.

    ``log_error`` is the mean absolute log-ratio, the quantity threshold
    adaptation drives to zero.
    """
    est, pref = _to_numpy(est_fr), _to_numpy(pref_fr)
    log_ratio = np.log((est + RATE_EPS) / (pref + RATE_EPS))
    return {
        "mean": float(np.mean(est)),
        "std": float(np.std(est)),
        "pref_mean": float(np.mean(pref)),
        "log_error": float(np.mean(np.abs(log_ratio))),
        "silent_fraction": float(np.mean(est < 1e-3)),
    }


@dataclass
class NetworkSummary:
    """Per-group rate and per-node weight statistics."""

    rates: Dict[str, Dict[str, float]] = field(default_factory=dict)
    weights: Dict[str, Dict[str, float]] = field(default_factory=dict)
    triggered_fraction: Dict[str, float] = field(default_factory=dict)


def summarize_network(network: "Network") -> NetworkSummary:
    """Collect rate, weight and normalization statistics across the network."""
    summary = NetworkSummary()
    for name, group in network.groups.items():
        summary.rates[name] = rate_statistics(group.est_fr, group.pref_fr)
        triggered = torch.cat([group.exc.triggered, group.inh.triggered])
        summary.triggered_fraction[name] = float(np.mean(_to_numpy(triggered.to(torch.float64))))
    for node in network.nodes:
        summary.weights[node.name] = weight_statistics(node.store.weights)
    return summary
