# src/waypoint/core/store/schema.py
"""SQLAlchemy table definitions for Waypoint.

Uses SQLAlchemy Core (not ORM) for explicit control over queries
and compatibility with multiple database backends.

Two table groups:
- Status tables (flows, processes, steps): one row per execution entity
- Recovery tables (checkpoints, recover_records): one record + N checkpoints
  per suspend event
"""

from sqlalchemy import (
    CHAR,
    CheckConstraint,
    Column,
    DateTime,
    Index,
    LargeBinary,
    MetaData,
    SmallInteger,
    String,
    Table,
)

# Shared metadata for all tables
metadata = MetaData()

# Engine ids are UUID strings
ID_LENGTH = 36

# === Execution Status ===

flows_table = Table(
    "flows",
    metadata,
    Column("id", CHAR(ID_LENGTH), primary_key=True),
    Column("name", String(255), nullable=False),
    Column("status", SmallInteger, nullable=False),  # ExecutionStatus
    Column("created_at", DateTime(timezone=True)),
    Column("updated_at", DateTime(timezone=True)),
    Column("finished_at", DateTime(timezone=True)),
    CheckConstraint("status IN (0, 1, 2, 3)", name="ck_flows_status"),
)

processes_table = Table(
    "processes",
    metadata,
    Column("id", CHAR(ID_LENGTH), primary_key=True),
    Column("name", String(255), nullable=False),
    Column("status", SmallInteger, nullable=False),
    Column("flow_id", CHAR(ID_LENGTH)),
    Column("created_at", DateTime(timezone=True)),
    Column("updated_at", DateTime(timezone=True)),
    Column("finished_at", DateTime(timezone=True)),
    CheckConstraint("status IN (0, 1, 2, 3)", name="ck_processes_status"),
)

Index("ix_processes_flow", processes_table.c.flow_id)

steps_table = Table(
    "steps",
    metadata,
    Column("id", CHAR(ID_LENGTH), primary_key=True),
    Column("name", String(255), nullable=False),
    Column("status", SmallInteger, nullable=False),
    Column("proc_id", CHAR(ID_LENGTH)),
    Column("flow_id", CHAR(ID_LENGTH)),
    Column("created_at", DateTime(timezone=True)),
    Column("updated_at", DateTime(timezone=True)),
    Column("finished_at", DateTime(timezone=True)),
    CheckConstraint("status IN (0, 1, 2, 3)", name="ck_steps_status"),
)

Index("ix_steps_proc", steps_table.c.proc_id)
Index("ix_steps_flow", steps_table.c.flow_id)

# === Suspend / Recover ===

checkpoints_table = Table(
    "checkpoints",
    metadata,
    Column("id", CHAR(ID_LENGTH), primary_key=True),
    Column("uid", CHAR(ID_LENGTH), nullable=False),  # Logical execution unit
    Column("name", String(255), nullable=False),
    Column("recover_id", CHAR(ID_LENGTH), nullable=False),  # Groups one suspend event
    Column("parent_uid", CHAR(ID_LENGTH)),
    Column("root_uid", CHAR(ID_LENGTH), nullable=False),
    Column("scope", SmallInteger, nullable=False),  # CheckpointScope
    Column("snapshot", LargeBinary),  # Opaque engine payload, stored verbatim
    Column("created_at", DateTime(timezone=True), nullable=False),
    Column("updated_at", DateTime(timezone=True), nullable=False),
)

Index("ix_checkpoints_recover", checkpoints_table.c.recover_id)

recover_records_table = Table(
    "recover_records",
    metadata,
    Column("recover_id", CHAR(ID_LENGTH), primary_key=True),
    Column("root_uid", CHAR(ID_LENGTH), nullable=False),
    Column("status", SmallInteger, nullable=False),  # RecoverStatus
    Column("name", String(255), nullable=False),
    Column("created_at", DateTime(timezone=True), nullable=False),
    Column("updated_at", DateTime(timezone=True), nullable=False),
    CheckConstraint("status IN (0, 1)", name="ck_recover_records_status"),
)

Index("ix_recover_records_root", recover_records_table.c.root_uid)

# Partial unique index: at most one IDLE record per root
Index(
    "ux_recover_records_idle_root",
    recover_records_table.c.root_uid,
    unique=True,
    sqlite_where=(recover_records_table.c.status == 0),
    postgresql_where=(recover_records_table.c.status == 0),
)

STATUS_TABLES: tuple[Table, ...] = (flows_table, processes_table, steps_table)
RECOVERY_TABLES: tuple[Table, ...] = (recover_records_table, checkpoints_table)
