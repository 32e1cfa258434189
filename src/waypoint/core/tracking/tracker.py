"""Status tracking for flows, processes and steps.

One tracker implementation serves all three entity kinds. What differs
per kind (the table and which parent ids it stores) lives in an explicit
EntityTableSpec mapping rather than in three copies of the same code.

Lifecycle:
    insert(entity)  - at the engine's Begin callback; status = BEGIN
    update(entity)  - at suspend / terminal callbacks; status derived from flags
"""

from collections.abc import Mapping
from dataclasses import dataclass
from types import MappingProxyType

import structlog
from sqlalchemy import Table, select, update
from sqlalchemy.exc import IntegrityError

from waypoint.contracts import (
    EntityKind,
    EntitySnapshot,
    ExecutionRecord,
    ExecutionStatus,
    RecordNotFoundError,
    StatusTransitionError,
    WriteConflictError,
)
from waypoint.core.logging import get_logger
from waypoint.core.store._helpers import as_utc, now
from waypoint.core.store.database import PersistenceDB
from waypoint.core.store.repositories import ExecutionRecordRepository
from waypoint.core.store.schema import flows_table, processes_table, steps_table

# Statuses an update may move away from. SUCCESS/FAILURE rows are final.
_MUTABLE_STATUSES = (ExecutionStatus.BEGIN.value, ExecutionStatus.SUSPEND.value)


@dataclass(frozen=True)
class EntityTableSpec:
    """Where and how one entity kind is persisted.

    parent_columns maps table column -> snapshot attribute holding the
    parent id, e.g. {"proc_id": "process_id"} for steps.
    """

    kind: EntityKind
    table: Table
    parent_columns: Mapping[str, str]


ENTITY_TABLES: Mapping[EntityKind, EntityTableSpec] = MappingProxyType(
    {
        EntityKind.FLOW: EntityTableSpec(EntityKind.FLOW, flows_table, MappingProxyType({})),
        EntityKind.PROCESS: EntityTableSpec(
            EntityKind.PROCESS,
            processes_table,
            MappingProxyType({"flow_id": "flow_id"}),
        ),
        EntityKind.STEP: EntityTableSpec(
            EntityKind.STEP,
            steps_table,
            MappingProxyType({"proc_id": "process_id", "flow_id": "flow_id"}),
        ),
    }
)


def derive_status(entity: EntitySnapshot) -> ExecutionStatus:
    """Map the engine's outcome flags to a persisted status.

    Suspended wins over success: a suspended entity is recorded as
    SUSPEND even if the engine also reports it successful so far.
    """
    if entity.suspended:
        return ExecutionStatus.SUSPEND
    return ExecutionStatus.SUCCESS if entity.success else ExecutionStatus.FAILURE


class StatusTracker:
    """Persists lifecycle transitions for one entity kind.

    Holds no mutable state beyond its configuration; concurrent callers
    working on distinct ids need no coordination.

    Usage:
        tracker = StatusTracker(db, EntityKind.STEP)
        tracker.insert(step)
        ...
        tracker.update(step)
    """

    def __init__(
        self,
        db: PersistenceDB,
        kind: EntityKind,
        *,
        tables: Mapping[EntityKind, EntityTableSpec] = ENTITY_TABLES,
        logger: structlog.stdlib.BoundLogger | None = None,
    ) -> None:
        """Initialize tracker.

        Args:
            db: Database holding the status tables
            kind: Entity kind this tracker records
            tables: Kind -> table mapping (override for custom table layouts)
            logger: Bound logger; defaults to this module's logger
        """
        self._db = db
        self._spec = tables[kind]
        self._repository = ExecutionRecordRepository()
        base_logger = logger if logger is not None else get_logger(__name__)
        self._log = base_logger.bind(kind=kind.value)

    @property
    def kind(self) -> EntityKind:
        return self._spec.kind

    def insert(self, entity: EntitySnapshot) -> None:
        """Record a newly started entity with status BEGIN.

        Args:
            entity: Engine snapshot at its Begin callback

        Raises:
            WriteConflictError: If a row with this id already exists
            IntegrityError: Any other constraint violation, unchanged
        """
        table = self._spec.table
        started = as_utc(entity.start_time)
        values = {
            "id": entity.id,
            "name": entity.name,
            "status": ExecutionStatus.BEGIN.value,
            "created_at": started,
            "updated_at": started,
        }
        for column, attribute in self._spec.parent_columns.items():
            values[column] = getattr(entity, attribute)

        try:
            with self._db.connection() as conn:
                conn.execute(table.insert().values(**values))
        except IntegrityError as exc:
            # NOT NULL / CHECK / foreign key violations are not conflicts
            if not self._exists(entity.id):
                raise
            raise WriteConflictError(self.kind.value, entity.id) from exc

        self._log.debug("Entity started", entity_id=entity.id, name=entity.name)

    def _exists(self, entity_id: str) -> bool:
        table = self._spec.table
        with self._db.engine.connect() as conn:
            return conn.execute(select(table.c.id).where(table.c.id == entity_id)).first() is not None

    def update(self, entity: EntitySnapshot) -> ExecutionStatus:
        """Record a suspend or terminal transition.

        Only status, updated_at and finished_at are written; name and
        created_at are never touched after insert. finished_at is written
        only when the engine reports an end time.

        Args:
            entity: Engine snapshot at its suspend/terminal callback

        Returns:
            The status that was persisted

        Raises:
            RecordNotFoundError: If the entity was never inserted
            StatusTransitionError: If the row is already SUCCESS or FAILURE
        """
        table = self._spec.table
        status = derive_status(entity)
        values = {"status": status.value, "updated_at": now()}
        if entity.end_time is not None:
            values["finished_at"] = as_utc(entity.end_time)

        with self._db.connection() as conn:
            # Guarded update keeps terminal rows terminal under concurrent callers
            result = conn.execute(update(table).where(table.c.id == entity.id).where(table.c.status.in_(_MUTABLE_STATUSES)).values(**values))
            if result.rowcount == 0:
                current = conn.execute(select(table.c.status).where(table.c.id == entity.id)).scalar_one_or_none()
                if current is None:
                    raise RecordNotFoundError(self.kind.value, entity.id)
                raise StatusTransitionError(self.kind.value, entity.id, ExecutionStatus(current), status)

        self._log.debug("Entity status updated", entity_id=entity.id, status=status.name)
        return status

    def get(self, entity_id: str) -> ExecutionRecord:
        """Read back the persisted record for an entity.

        Raises:
            RecordNotFoundError: If no row exists for entity_id
        """
        table = self._spec.table
        with self._db.engine.connect() as conn:
            row = conn.execute(select(table).where(table.c.id == entity_id)).fetchone()

        if row is None:
            raise RecordNotFoundError(self.kind.value, entity_id)
        return self._repository.load(row, self.kind)


def build_trackers(
    db: PersistenceDB,
    *,
    kinds: tuple[EntityKind, ...] = tuple(EntityKind),
    logger: structlog.stdlib.BoundLogger | None = None,
) -> dict[EntityKind, StatusTracker]:
    """Create one tracker per entity kind."""
    return {kind: StatusTracker(db, kind, logger=logger) for kind in kinds}
