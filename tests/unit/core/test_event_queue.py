"""Tests for the synaptic event queue ordering and draining."""

import pytest
from hypothesis import given, settings, strategies as st

from homeonet.core.event_queue import ARRIVAL_TOLERANCE_MS, SynapticEvent, SynapticEventQueue


@st.composite
def event_lists(draw):
    """Random events with arrival times on a 0.5 ms grid (so ties are common)."""
    n = draw(st.integers(min_value=0, max_value=60))
    events = []
    for conn in range(n):
        arrival = draw(st.integers(min_value=0, max_value=40)) * 0.5
        target = draw(st.integers(min_value=0, max_value=20))
        events.append(SynapticEvent(arrival, target, conn, response=1.0))
    return events


@pytest.mark.unit
class TestSynapticEventQueue:

    @given(events=event_lists(), drain_time=st.floats(min_value=0.0, max_value=25.0))
    @settings(max_examples=100, deadline=1000)
    def test_drains_in_time_then_target_order(self, events, drain_time):
        """Due events come out by (arrival time, target), never early."""
        queue = SynapticEventQueue()
        queue.push_many(events)

        due = queue.pop_due(drain_time)

        keys = [(e.arrival_time, e.target) for e in due]
        assert keys == sorted(keys)
        assert all(e.arrival_time <= drain_time + ARRIVAL_TOLERANCE_MS for e in due)
        assert len(due) + len(queue) == len(events)
        if not queue.is_empty:
            assert queue.peek_time() > drain_time + ARRIVAL_TOLERANCE_MS

    def test_event_not_due_before_arrival(self):
        queue = SynapticEventQueue()
        queue.push(SynapticEvent(2.0, target=0, connection=0, response=0.5))

        assert queue.pop_due(0.0) == []
        assert queue.pop_due(1.0) == []
        due = queue.pop_due(2.0)
        assert [e.connection for e in due] == [0]
        assert queue.is_empty

    def test_accumulated_float_time_counts_as_due(self):
        """0.1 added ten times is slightly below 1.0; the event is still due."""
        time = 0.0
        for _ in range(10):
            time += 0.1
        queue = SynapticEventQueue()
        queue.push(SynapticEvent(1.0, target=3, connection=7, response=1.0))

        assert len(queue.pop_due(time)) == 1

    def test_response_does_not_affect_order(self):
        a = SynapticEvent(1.0, 2, 5, response=0.9)
        b = SynapticEvent(1.0, 2, 5, response=0.1)
        assert not a < b and not b < a

    def test_drain_generator_and_counters(self):
        queue = SynapticEventQueue()
        queue.push_many(SynapticEvent(float(t), t, t, 1.0) for t in (3, 1, 2))

        assert queue.total_scheduled == 3
        assert [e.target for e in queue.drain(2.0)] == [1, 2]
        assert len(queue) == 1
        queue.clear()
        assert queue.peek_time() is None
        assert queue.total_scheduled == 3
