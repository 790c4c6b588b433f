"""
Simulation Clock - Explicit time context passed to every task.

The clock is constructed once at simulation start and mutated only by the
Scheduler, strictly after both phases of a step have joined. Tasks never see
the clock itself; they receive an immutable ``StepContext`` snapshot, so no
task can observe a time value concurrently with its mutation.
"""

from __future__ import annotations

from dataclasses import dataclass

from homeonet.errors import ConfigurationError


@dataclass(frozen=True)
class StepContext:
    """Read-only view of the clock for one simulation step."""

    time: float   # Simulation time at the start of the step (ms)
    dt: float     # Step size (ms)
    step: int     # Number of completed steps before this one


class SimulationClock:
    """Owner of simulation time and step size."""

    def __init__(self, dt: float, start_time: float = 0.0):
        if dt <= 0:
            raise ConfigurationError(f"dt must be positive, got {dt}")
        self._origin = float(start_time)
        self._dt = float(dt)
        self._step = 0

    @property
    def time(self) -> float:
        # Derived from the step count so repeated additions do not drift
        return self._origin + self._step * self._dt

    @property
    def dt(self) -> float:
        return self._dt

    @property
    def step(self) -> int:
        return self._step

    def context(self) -> StepContext:
        """Snapshot of the clock for the step about to run."""
        return StepContext(time=self.time, dt=self._dt, step=self._step)

    def advance(self) -> None:
        """Advance by one step. Only the Scheduler calls this."""
        self._step += 1

    def __repr__(self) -> str:
        return f"SimulationClock(time={self.time}, dt={self._dt}, step={self._step})"
