"""
Synaptic Event Queue - Delayed spike deliveries for one synaptic node.

When a presynaptic unit spikes, one event per outgoing connection is pushed
with its arrival time (spike time + axonal delay). Each step the node drains
every event that has arrived.

Ordering:
=========
Events are ordered by

    1. arrival time (ascending)
    2. absolute target index (ascending)
    3. connection index (ascending, tie-break only)

so draining within a timestep is deterministic and target-ordered regardless
of the order in which sources were iterated.

The queue is owned by exactly one node and touched only by the thread
executing that node's update, so it carries no locking.
"""

from __future__ import annotations

import heapq
from dataclasses import dataclass, field
from typing import Iterator, List, Optional

# Arrival times are sums of floats; events within this tolerance of the
# current time count as due.
ARRIVAL_TOLERANCE_MS = 1e-9


@dataclass(order=True)
class SynapticEvent:
    """A spike in flight along one connection.

    Events are ordered by (arrival_time, target, connection). The response
    is the short-term-plasticity efficacy at spike time and is not used
    for ordering.
    """
    arrival_time: float                     # Simulated arrival time in ms
    target: int                             # Absolute target index
    connection: int                         # Index into the weight store
    response: float = field(compare=False)  # UDF efficacy (u * r)


class SynapticEventQueue:
    """Priority queue of pending synaptic events."""

    def __init__(self):
        self._queue: List[SynapticEvent] = []
        self._event_count: int = 0

    def __len__(self) -> int:
        return len(self._queue)

    @property
    def is_empty(self) -> bool:
        return len(self._queue) == 0

    @property
    def total_scheduled(self) -> int:
        """Number of events ever pushed."""
        return self._event_count

    def push(self, event: SynapticEvent) -> None:
        """Add an event to the queue."""
        heapq.heappush(self._queue, event)
        self._event_count += 1

    def push_many(self, events) -> None:
        for event in events:
            self.push(event)

    def peek_time(self) -> Optional[float]:
        """Arrival time of the next event without removing it."""
        if self._queue:
            return self._queue[0].arrival_time
        return None

    def pop_due(self, time: float) -> List[SynapticEvent]:
        """Remove and return every event with arrival_time <= time, in order."""
        due = []
        limit = time + ARRIVAL_TOLERANCE_MS
        while self._queue and self._queue[0].arrival_time <= limit:
            due.append(heapq.heappop(self._queue))
        return due

    def drain(self, time: float) -> Iterator[SynapticEvent]:
        """Yield due events one at a time, in order."""
        limit = time + ARRIVAL_TOLERANCE_MS
        while self._queue and self._queue[0].arrival_time <= limit:
            yield heapq.heappop(self._queue)

    def clear(self) -> None:
        """Drop all pending events."""
        self._queue.clear()
