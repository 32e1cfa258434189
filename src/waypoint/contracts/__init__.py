"""Shared contracts for cross-boundary data types.

All dataclasses, enums, protocols and errors that cross the adapter/engine
boundary are defined here.

This package is a LEAF MODULE with no outbound dependencies to core.
Settings classes are NOT re-exported here - import them from
waypoint.core.config.
"""

from waypoint.contracts.checkpoint import ResumePoint
from waypoint.contracts.enums import (
    CheckpointScope,
    EntityKind,
    ExecutionStatus,
    RecoverStatus,
)
from waypoint.contracts.errors import (
    ObjectAlreadyExistsError,
    PersistenceError,
    RecordNotFoundError,
    RecoveryConflictError,
    SchemaError,
    StatusTransitionError,
    TransactionFailureError,
    WriteConflictError,
)
from waypoint.contracts.protocols import (
    CheckpointLike,
    EntitySnapshot,
    ProcessSnapshot,
    RecoverRecordLike,
    StepSnapshot,
)
from waypoint.contracts.records import Checkpoint, ExecutionRecord, RecoverRecord

__all__ = [
    "Checkpoint",
    "CheckpointLike",
    "CheckpointScope",
    "EntityKind",
    "EntitySnapshot",
    "ExecutionRecord",
    "ExecutionStatus",
    "ObjectAlreadyExistsError",
    "PersistenceError",
    "ProcessSnapshot",
    "RecordNotFoundError",
    "RecoverRecord",
    "RecoverRecordLike",
    "RecoverStatus",
    "RecoveryConflictError",
    "ResumePoint",
    "SchemaError",
    "StatusTransitionError",
    "StepSnapshot",
    "TransactionFailureError",
    "WriteConflictError",
]
