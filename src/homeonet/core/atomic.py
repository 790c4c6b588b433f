"""
Atomic integer counter for the sector completion barrier.

Python exposes no hardware atomics, so the read-modify-write is made
indivisible with a private lock held only for the arithmetic itself. Callers
never hold it across their own work: the barrier protocol is
"decrement, compare the returned value, and act if it is zero", so exactly
one thread observes each transition to zero regardless of interleaving.
"""

from __future__ import annotations

import threading


class AtomicCounter:
    """Integer with atomic decrement-and-get / reset."""

    __slots__ = ("_value", "_lock")

    def __init__(self, value: int = 0):
        self._value = int(value)
        self._lock = threading.Lock()

    def decrement_and_get(self) -> int:
        """Decrement by one and return the new value, atomically."""
        with self._lock:
            self._value -= 1
            return self._value

    def set(self, value: int) -> None:
        """Overwrite the value (used to re-arm the barrier between steps)."""
        with self._lock:
            self._value = int(value)

    def get(self) -> int:
        with self._lock:
            return self._value

    def __repr__(self) -> str:
        return f"AtomicCounter({self.get()})"
