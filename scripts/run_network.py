"""
Homeostatic network driver - thin simulation loop.

Builds a small excitatory/inhibitory network driven by Poisson input, runs
it for a number of steps and logs per-group diagnostics at a fixed
interval.

Usage::

    python scripts/run_network.py
    python scripts/run_network.py --steps 5000 --n-exc 400 --n-inh 100
    python scripts/run_network.py --warmup-ms 1000 --workers 4 --log-level DEBUG
"""

from __future__ import annotations

import argparse
import logging
import time

import torch

from homeonet import (
    HomeostasisConfig,
    HomeostaticNeuronGroup,
    InputNeuronGroup,
    Network,
    PoissonInput,
    Polarity,
    Scheduler,
    SimulationConfig,
)
from homeonet.evaluation import summarize_network

logger = logging.getLogger("run_network")


# =============================================================================
# NETWORK
# =============================================================================


def build_network(args: argparse.Namespace, sim_config: SimulationConfig) -> Network:
    """Input → E ⇄ I network with random connectivity."""
    hp_config = HomeostasisConfig(warmup_ms=args.warmup_ms, seed=args.seed)
    net = Network(sim_config)
    net.add_input(InputNeuronGroup("input", PoissonInput(args.input_rate, args.n_input, seed=args.seed)))
    net.add_group(HomeostaticNeuronGroup("exc", args.n_exc, config=hp_config))
    net.add_group(HomeostaticNeuronGroup("inh", args.n_inh, polarity=Polarity.INHIBITORY, config=hp_config))

    p = args.connectivity
    net.connect("input", "exc", connectivity=p, weight_range=(1.0, 3.0), delay_range=(1, 5))
    net.connect("exc", "exc", connectivity=p, weight_range=(0.5, 1.5), delay_range=(1, 10))
    net.connect("exc", "inh", connectivity=p, weight_range=(0.5, 1.5), delay_range=(1, 5))
    net.connect("inh", "exc", connectivity=p, weight_range=(0.5, 1.5), delay_range=(1, 3))
    net.connect("inh", "inh", connectivity=p, weight_range=(0.5, 1.5), delay_range=(1, 3))
    return net


def log_progress(scheduler: Scheduler, interval: int) -> None:
    if scheduler.step % interval:
        return
    for name, diag in scheduler.network.get_diagnostics()["groups"].items():
        logger.info(
            "t=%8.1f ms  %-4s spikes=%3d  est_fr=%6.2f Hz  pref_fr=%6.2f Hz  θ=%7.2f  norm E/I=%d/%d",
            scheduler.time, name, diag["spike_count"], diag["est_fr_mean"], diag["pref_fr_mean"],
            diag["threshold_mean"], diag["exc_triggered"], diag["inh_triggered"],
        )


def log_summary(net: Network) -> None:
    summary = summarize_network(net)
    for name, rates in summary.rates.items():
        logger.info(
            "%-4s est_fr=%.2f±%.2f Hz  pref_fr=%.2f Hz  |log error|=%.3f  silent=%.0f%%  normalized=%.0f%%",
            name, rates["mean"], rates["std"], rates["pref_mean"], rates["log_error"],
            100 * rates["silent_fraction"], 100 * summary.triggered_fraction[name],
        )
    for name, stats in summary.weights.items():
        logger.info(
            "%-10s w mean=%.3f std=%.3f p95=%.3f max=%.3f (%d connections)",
            name, stats["mean"], stats["std"], stats["p95"], stats["max"], stats["count"],
        )


# =============================================================================
# MAIN
# =============================================================================


def main() -> None:
    parser = argparse.ArgumentParser(
        description="Run a homeostatic spiking network.",
        formatter_class=argparse.ArgumentDefaultsHelpFormatter,
    )
    parser.add_argument("--steps", type=int, default=2000, help="Number of simulation steps.")
    parser.add_argument("--dt", type=float, default=1.0, help="Step size in ms.")
    parser.add_argument("--n-input", type=int, default=100, help="Poisson input units.")
    parser.add_argument("--n-exc", type=int, default=200, help="Excitatory units.")
    parser.add_argument("--n-inh", type=int, default=50, help="Inhibitory units.")
    parser.add_argument("--input-rate", type=float, default=20.0, help="Poisson input rate (Hz).")
    parser.add_argument("--connectivity", type=float, default=0.1, help="Connection probability.")
    parser.add_argument(
        "--warmup-ms", type=float, default=20000.0,
        help="Time before preferred rates start drifting (meta-homeostasis).",
    )
    parser.add_argument("--workers", type=int, default=None, help="Worker threads (default: CPU count).")
    parser.add_argument("--seed", type=int, default=42, help="Base random seed.")
    parser.add_argument("--log-every", type=int, default=100, help="Steps between progress lines.")
    parser.add_argument(
        "--log-level", type=str, default="INFO",
        choices=["DEBUG", "INFO", "WARNING", "ERROR"],
    )
    args = parser.parse_args()

    logging.basicConfig(
        level=getattr(logging, args.log_level),
        format="%(asctime)s %(levelname)-7s %(name)s: %(message)s",
    )
    torch.manual_seed(args.seed)

    sim_config = SimulationConfig(dt_ms=args.dt, n_workers=args.workers, seed=args.seed)
    net = build_network(args, sim_config)

    start = time.perf_counter()
    with Scheduler(net, sim_config) as scheduler:
        scheduler.run(args.steps, callback=lambda s: log_progress(s, args.log_every))
        elapsed = time.perf_counter() - start
        logger.info(
            "Simulated %.1f ms in %.2f s (%.1f steps/s)",
            scheduler.time, elapsed, args.steps / max(elapsed, 1e-9),
        )

    log_summary(net)


if __name__ == "__main__":
    main()
