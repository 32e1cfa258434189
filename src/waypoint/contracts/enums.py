"""All status codes, scopes, and kinds used across subsystem boundaries.

Status and scope values are persisted as small integers. The integer values
are part of the stored schema and must never be renumbered.
"""

from enum import IntEnum, StrEnum


class EntityKind(StrEnum):
    """Level of the engine's execution hierarchy.

    A flow owns processes, a process owns steps.
    """

    FLOW = "flow"
    PROCESS = "process"
    STEP = "step"


class ExecutionStatus(IntEnum):
    """Lifecycle status of a flow, process, or step.

    Stored in the database (flows/processes/steps.status).

    Transitions:
        BEGIN -> SUSPEND | SUCCESS | FAILURE
        SUSPEND -> SUSPEND | SUCCESS | FAILURE (after recovery)
    SUCCESS and FAILURE are terminal.
    """

    BEGIN = 0
    SUSPEND = 1
    SUCCESS = 2
    FAILURE = 3

    @property
    def is_terminal(self) -> bool:
        return self in (ExecutionStatus.SUCCESS, ExecutionStatus.FAILURE)


class RecoverStatus(IntEnum):
    """Status of a recovery record.

    Stored in the database (recover_records.status).
    IDLE -> CONSUMED is the only legal transition.
    """

    IDLE = 0
    CONSUMED = 1


class CheckpointScope(IntEnum):
    """Depth of the execution unit a checkpoint snapshots.

    Stored in the database (checkpoints.scope).
    """

    FLOW = 0
    PROCESS = 1
    STEP = 2
