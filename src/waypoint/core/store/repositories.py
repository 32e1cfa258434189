"""Repository layer for persisted records.

Handles the seam between SQLAlchemy rows (ints, naive SQLite timestamps)
and domain objects (strict enum types, UTC timestamps). This is NOT a
trust boundary - if the database holds a status code outside the enum,
we crash.
"""

from typing import Any

from sqlalchemy.engine import Row as SARow

from waypoint.contracts.enums import CheckpointScope, EntityKind, ExecutionStatus, RecoverStatus
from waypoint.contracts.records import Checkpoint, ExecutionRecord, RecoverRecord
from waypoint.core.store._helpers import as_utc


class ExecutionRecordRepository:
    """Repository for flow/process/step rows."""

    def load(self, row: SARow[Any], kind: EntityKind) -> ExecutionRecord:
        """Load ExecutionRecord from a status-table row.

        Parent columns only exist on some tables, so they are read from the
        row mapping rather than as attributes.
        """
        mapping = row._mapping
        return ExecutionRecord(
            kind=kind,
            id=row.id,
            name=row.name,
            status=ExecutionStatus(row.status),  # Convert HERE
            created_at=as_utc(row.created_at),
            updated_at=as_utc(row.updated_at),
            finished_at=as_utc(row.finished_at),
            flow_id=mapping["flow_id"] if "flow_id" in mapping else None,
            proc_id=mapping["proc_id"] if "proc_id" in mapping else None,
        )


class CheckpointRepository:
    """Repository for checkpoint rows."""

    def load(self, row: SARow[Any]) -> Checkpoint:
        return Checkpoint(
            id=row.id,
            uid=row.uid,
            name=row.name,
            recover_id=row.recover_id,
            parent_uid=row.parent_uid,
            root_uid=row.root_uid,
            scope=CheckpointScope(row.scope),
            # Some drivers return memoryview for BLOB/BYTEA columns
            snapshot=bytes(row.snapshot) if row.snapshot is not None else None,
            created_at=as_utc(row.created_at),
            updated_at=as_utc(row.updated_at),
        )


class RecoverRecordRepository:
    """Repository for recovery-record rows."""

    def load(self, row: SARow[Any]) -> RecoverRecord:
        return RecoverRecord(
            root_uid=row.root_uid,
            recover_id=row.recover_id,
            status=RecoverStatus(row.status),
            name=row.name,
            created_at=as_utc(row.created_at),
            updated_at=as_utc(row.updated_at),
        )
