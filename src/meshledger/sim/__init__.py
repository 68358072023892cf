"""MeshLedger Simulation - the driving scheduler for a cluster."""

from .actor import EventKind, NodeActor, ScheduledEvent
from .scheduler import LinkModel, Scheduler, SchedulerStats

__all__ = [
    "EventKind",
    "LinkModel",
    "NodeActor",
    "ScheduledEvent",
    "Scheduler",
    "SchedulerStats",
]
