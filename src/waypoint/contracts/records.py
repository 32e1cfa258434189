"""Persisted record contracts.

These are strict contracts - all enum fields use proper enum types.
The repository layer handles int -> enum conversion for DB reads.

Checkpoint and RecoverRecord expose the same attribute names as the
engine's checkpoint and record objects, so the values returned from
recovery can be handed straight back to the engine.
"""

from dataclasses import dataclass, replace
from datetime import datetime

from waypoint.contracts.enums import CheckpointScope, EntityKind, ExecutionStatus, RecoverStatus


def _validate_enum(value: object, enum_type: type, field_name: str) -> None:
    """Validate that value is an instance of the expected enum type.

    No coercion, no defaults: a raw int here means a conversion was skipped
    somewhere upstream.
    """
    if value is not None and not isinstance(value, enum_type):
        raise TypeError(f"{field_name} must be {enum_type.__name__}, got {type(value).__name__}: {value!r}")


@dataclass(frozen=True)
class ExecutionRecord:
    """Persisted status of one flow, process, or step.

    Parent ids depend on kind: processes carry flow_id, steps carry both
    proc_id and flow_id, flows carry neither.
    """

    kind: EntityKind
    id: str
    name: str
    status: ExecutionStatus
    created_at: datetime | None
    updated_at: datetime | None
    finished_at: datetime | None = None
    flow_id: str | None = None
    proc_id: str | None = None

    def __post_init__(self) -> None:
        _validate_enum(self.kind, EntityKind, "kind")
        _validate_enum(self.status, ExecutionStatus, "status")


@dataclass(frozen=True)
class Checkpoint:
    """Immutable snapshot of one logical execution unit at a suspend point.

    All checkpoints of one suspend event share a recover_id. The snapshot
    is opaque bytes produced by the engine and stored verbatim.
    """

    id: str
    uid: str
    name: str
    recover_id: str
    parent_uid: str | None
    root_uid: str
    scope: CheckpointScope
    snapshot: bytes | None
    created_at: datetime | None = None
    updated_at: datetime | None = None

    def __post_init__(self) -> None:
        _validate_enum(self.scope, CheckpointScope, "scope")
        if self.snapshot is not None and not isinstance(self.snapshot, bytes):
            raise TypeError(f"snapshot must be bytes, got {type(self.snapshot).__name__}")


@dataclass(frozen=True)
class RecoverRecord:
    """One suspend event of a root execution.

    At most one IDLE record exists per root. Once CONSUMED it is never
    selected for recovery again.
    """

    root_uid: str
    recover_id: str
    status: RecoverStatus
    name: str
    created_at: datetime | None = None
    updated_at: datetime | None = None

    def __post_init__(self) -> None:
        _validate_enum(self.status, RecoverStatus, "status")

    def consumed(self) -> "RecoverRecord":
        """Copy of this record marked CONSUMED, for passing to update_record_status()."""
        return replace(self, status=RecoverStatus.CONSUMED)
