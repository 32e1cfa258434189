"""Durable store: connection management, table definitions, bootstrap.

Provides:
- PersistenceDB: Engine setup and transaction helper
- SchemaBootstrap: Idempotent, race-tolerant table provisioning
- Table objects for the status and recovery groups
"""

from waypoint.core.store.bootstrap import SchemaBootstrap
from waypoint.core.store.database import PersistenceDB
from waypoint.core.store.schema import (
    RECOVERY_TABLES,
    STATUS_TABLES,
    checkpoints_table,
    flows_table,
    metadata,
    processes_table,
    recover_records_table,
    steps_table,
)

__all__ = [
    "RECOVERY_TABLES",
    "STATUS_TABLES",
    "PersistenceDB",
    "SchemaBootstrap",
    "checkpoints_table",
    "flows_table",
    "metadata",
    "processes_table",
    "recover_records_table",
    "steps_table",
]
