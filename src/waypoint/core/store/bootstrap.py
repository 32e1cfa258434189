"""Idempotent schema provisioning.

Several processes may bootstrap the same database at once. A CREATE that
loses that race is not an error: after any failed CREATE the bootstrap
re-inspects the table inventory, and if the table is there the failure is
reported as ObjectAlreadyExistsError and tolerated. Every other failure is
a SchemaError.
"""

from collections.abc import Sequence
from typing import TYPE_CHECKING

import structlog
from sqlalchemy import Table, inspect
from sqlalchemy.exc import SQLAlchemyError

from waypoint.contracts.errors import ObjectAlreadyExistsError, SchemaError
from waypoint.core.logging import get_logger
from waypoint.core.store.schema import RECOVERY_TABLES, STATUS_TABLES

if TYPE_CHECKING:
    from waypoint.core.store.database import PersistenceDB


class SchemaBootstrap:
    """Creates missing Waypoint tables.

    Usage:
        bootstrap = SchemaBootstrap(db)
        created = bootstrap.ensure_status_tables()
    """

    def __init__(self, db: "PersistenceDB", *, logger: structlog.stdlib.BoundLogger | None = None) -> None:
        self._db = db
        self._log = logger if logger is not None else get_logger(__name__)

    def ensure_status_tables(self) -> list[str]:
        """Create flows, processes and steps if missing."""
        return self.ensure(STATUS_TABLES)

    def ensure_recovery_tables(self) -> list[str]:
        """Create recover_records and checkpoints if missing."""
        return self.ensure(RECOVERY_TABLES)

    def ensure_all(self) -> list[str]:
        return self.ensure((*STATUS_TABLES, *RECOVERY_TABLES))

    def ensure(self, tables: Sequence[Table]) -> list[str]:
        """Create every table in tables that does not exist yet.

        Args:
            tables: Tables to provision, created in order

        Returns:
            Names of the tables this call actually created

        Raises:
            SchemaError: If a table could not be created and does not exist
        """
        existing = self._existing_tables()
        created: list[str] = []
        for table in tables:
            if table.name in existing:
                continue
            try:
                self._create(table)
            except ObjectAlreadyExistsError:
                self._log.info("Table created concurrently, skipping", table=table.name)
                continue
            created.append(table.name)

        if created:
            self._log.info("Created tables", tables=created)
        return created

    def _create(self, table: Table) -> None:
        try:
            with self._db.connection() as conn:
                table.create(conn, checkfirst=False)
        except SQLAlchemyError as exc:
            if self._has_table(table.name):
                raise ObjectAlreadyExistsError(table.name) from exc
            raise SchemaError(table.name, str(exc)) from exc

    def _existing_tables(self) -> set[str]:
        return set(inspect(self._db.engine).get_table_names())

    def _has_table(self, name: str) -> bool:
        return inspect(self._db.engine).has_table(name)
