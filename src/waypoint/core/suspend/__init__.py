"""Suspend/recover subsystem.

Provides:
- CheckpointStore: Atomically persist a suspend point (checkpoints + record)
- RecoveryCoordinator: Find, load and consume the latest suspend point of a root
- ResumePoint: Record plus checkpoints needed to rehydrate an execution
"""

from waypoint.contracts import ResumePoint
from waypoint.core.suspend.checkpoint_store import CheckpointStore
from waypoint.core.suspend.recovery import RecoveryCoordinator

__all__ = [
    "CheckpointStore",
    "RecoveryCoordinator",
    "ResumePoint",
]
