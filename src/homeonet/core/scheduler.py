"""
Scheduler - Two-phase parallel step execution.

Each ``invoke()`` advances the simulation by exactly one step:

.. code-block:: none

    phase 1 (update):   every SynapticNode.update(ctx), in parallel
                        └─ the last node of each sector runs the sector update
    ─── join ───────────────────────────────────────────────────────────────
    phase 2 (sync):     every Sector.synchronize(ctx) and every input
                        group update(dt, time, spikes, last_spike_time)
    ─── join ───────────────────────────────────────────────────────────────
    clock.advance()

No phase-2 task starts before every phase-1 task has completed. The clock is
only advanced after both phases join, so every task of a step sees the same
immutable ``StepContext``.

Failure semantics:
==================
A step is atomic with respect to the caller. If any task raises, the
remaining queued tasks are cancelled, running tasks are waited for, and
``ConcurrencyFault`` is raised (chained to the original error). Node and
sector state may then be inconsistent, so the scheduler refuses any further
``invoke()``; restart the simulation instead.

Usage:
======
.. code-block:: python

    with Scheduler(network, SimulationConfig(dt_ms=1.0)) as scheduler:
        scheduler.run(1000)
        print(scheduler.time)
"""

from __future__ import annotations

import logging
import threading
from concurrent.futures import FIRST_EXCEPTION, Future, ThreadPoolExecutor, wait
from typing import TYPE_CHECKING, Any, Callable, Dict, List, Optional, Tuple

from homeonet.config.simulation_config import SimulationConfig
from homeonet.core.clock import SimulationClock, StepContext
from homeonet.errors import ConcurrencyFault, ConfigurationError

if TYPE_CHECKING:
    from homeonet.core.network import Network

logger = logging.getLogger(__name__)

Task = Tuple[str, Callable[[], Any]]

_WIRING_FIELDS = ("max_weight", "dtype", "device", "seed")


def _check_wiring_fields(config: SimulationConfig, network_config: SimulationConfig) -> None:
    """Reject settings that only take effect when the network is built."""
    for name in _WIRING_FIELDS:
        requested, built = getattr(config, name), getattr(network_config, name)
        if requested != built:
            raise ConfigurationError(
                f"SimulationConfig.{name}={requested!r} differs from the network's {built!r}; "
                f"pass the config to Network() instead"
            )


class Scheduler:
    """Runs node updates and synchronization tasks on a worker pool.

    Args:
        network: Wired network (groups, inputs and sectors)
        config: Step size, start time and worker count. Defaults to the
            network's config; its wiring fields (``max_weight``, ``dtype``,
            ``device``, ``seed``) must match the network's.
    """

    def __init__(self, network: Network, config: Optional[SimulationConfig] = None):
        self.config = config or network.config
        _check_wiring_fields(self.config, network.config)
        network.validate()
        self.network = network
        self.clock = SimulationClock(self.config.dt_ms, self.config.start_time_ms)
        self.n_workers = self.config.resolved_workers
        self._pool: Optional[ThreadPoolExecutor] = ThreadPoolExecutor(
            max_workers=self.n_workers, thread_name_prefix="homeonet"
        )
        self._invoke_lock = threading.Lock()
        self._failed = False
        self.update_tasks: List[Task] = []
        self.sync_tasks: List[Task] = []
        logger.info(
            "Scheduler ready: %d sector(s), %d node(s), %d input(s), %d worker(s), dt=%.3f ms",
            len(network.sectors), len(network.nodes), len(network.inputs), self.n_workers, self.clock.dt,
        )

    # =========================================================================
    # Clock accessors
    # =========================================================================

    @property
    def time(self) -> float:
        """Simulation time of the next step (ms)."""
        return self.clock.time

    @property
    def dt(self) -> float:
        return self.clock.dt

    @property
    def step(self) -> int:
        """Number of completed steps."""
        return self.clock.step

    @property
    def failed(self) -> bool:
        return self._failed

    # =========================================================================
    # Stepping
    # =========================================================================

    def _build_tasks(self, ctx: StepContext) -> None:
        self.update_tasks = [
            (node.name, lambda node=node: node.update(ctx)) for node in self.network.nodes
        ]
        self.sync_tasks = [
            (f"sync:{sector.name}", lambda sector=sector: sector.synchronize(ctx))
            for sector in self.network.sectors.values()
        ]
        self.sync_tasks += [
            (
                f"input:{group.name}",
                lambda group=group: group.update(ctx.dt, ctx.time, group.spikes, group.last_spike_time),
            )
            for group in self.network.inputs.values()
        ]

    def _run_phase(self, phase: str, tasks: List[Task], ctx: StepContext) -> None:
        if self._pool is None:
            raise ConcurrencyFault("Scheduler has been shut down")
        futures: Dict[Future, str] = {self._pool.submit(fn): name for name, fn in tasks}
        done, pending = wait(futures, return_when=FIRST_EXCEPTION)

        failures = [(futures[f], f.exception()) for f in done if f.exception() is not None]
        if not failures:
            return

        for future in pending:
            future.cancel()
        # Let tasks that already started finish before reporting the step as failed
        wait(pending)
        self._failed = True

        for name, error in failures:
            logger.error("Step %d (t=%.3f ms): %s task '%s' failed: %s", ctx.step, ctx.time, phase, name, error)
        name, error = failures[0]
        raise ConcurrencyFault(
            f"Step {ctx.step} (t={ctx.time} ms) failed in {phase} task '{name}': {error}"
        ) from error

    def invoke(self) -> None:
        """Advance the simulation by one step.

        Raises:
            ConcurrencyFault: If any task failed, if called concurrently, or
                if a previous step failed
        """
        if not self._invoke_lock.acquire(blocking=False):
            raise ConcurrencyFault("invoke() called while another step is in progress")
        try:
            if self._failed:
                raise ConcurrencyFault("Scheduler is in a failed state; restart the simulation")

            ctx = self.clock.context()
            for sector in self.network.sectors.values():
                sector.reset_barrier()
            self._build_tasks(ctx)

            self._run_phase("update", self.update_tasks, ctx)
            self._run_phase("sync", self.sync_tasks, ctx)

            self.clock.advance()
            logger.debug("Step %d complete (t=%.3f ms)", ctx.step, ctx.time)
        finally:
            self._invoke_lock.release()

    def run(self, n_steps: int, callback: Optional[Callable[[Scheduler], None]] = None) -> None:
        """Invoke ``n_steps`` steps, calling ``callback(self)`` after each."""
        if n_steps < 0:
            raise ConfigurationError(f"n_steps must be non-negative, got {n_steps}")
        for _ in range(n_steps):
            self.invoke()
            if callback is not None:
                callback(self)

    # =========================================================================
    # Lifecycle
    # =========================================================================

    def shutdown(self) -> None:
        """Stop the worker pool. Further ``invoke()`` calls raise."""
        if self._pool is not None:
            self._pool.shutdown(wait=True)
            self._pool = None
            logger.debug("Scheduler worker pool shut down")

    def __enter__(self) -> Scheduler:
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.shutdown()

    def get_diagnostics(self) -> Dict[str, Any]:
        return {
            "time": self.time,
            "dt": self.dt,
            "step": self.step,
            "failed": self._failed,
            "n_workers": self.n_workers,
            "sectors": [sector.get_diagnostics() for sector in self.network.sectors.values()],
        }

    def __repr__(self) -> str:
        return f"Scheduler(time={self.time}, dt={self.dt}, workers={self.n_workers}, failed={self._failed})"
