"""
Core engine: clock, event queue, sector barrier, scheduler and network wiring.
"""

from homeonet.core.clock import SimulationClock, StepContext
from homeonet.core.atomic import AtomicCounter
from homeonet.core.event_queue import SynapticEvent, SynapticEventQueue
from homeonet.core.sector import Sector
from homeonet.core.scheduler import Scheduler

# Network imports the components package, which depends on the modules above
from homeonet.core.network import Network

__all__ = [
    "AtomicCounter",
    "Network",
    "Scheduler",
    "Sector",
    "SimulationClock",
    "StepContext",
    "SynapticEvent",
    "SynapticEventQueue",
]
