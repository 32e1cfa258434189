# src/waypoint/persistence.py
"""Persistence facade: wires the store, trackers and recovery together.

Usage:
    settings = load_settings(Path("waypoint.yaml"))
    with Persistence.from_settings(settings) as persistence:
        persistence.inject(engine_hooks)
        engine.run()
"""

from typing import Self

import structlog

from waypoint.contracts import EntityKind
from waypoint.core.config import WaypointSettings
from waypoint.core.logging import get_logger
from waypoint.core.store import PersistenceDB, SchemaBootstrap
from waypoint.core.suspend import CheckpointStore, RecoveryCoordinator
from waypoint.core.tracking import StatusTracker, build_trackers
from waypoint.plugins import PersistenceHooks, StatusPersistencePlugin, SuspendPersistencePlugin


class Persistence:
    """Owns one database and the components built on it.

    status_tracking and suspend select which table groups are
    bootstrapped and which plugins inject() registers. A disabled group
    has no component: accessing it raises RuntimeError.
    """

    def __init__(
        self,
        db: PersistenceDB,
        *,
        status_tracking: bool = True,
        suspend: bool = True,
        logger: structlog.stdlib.BoundLogger | None = None,
    ) -> None:
        self._db = db
        self._log = logger if logger is not None else get_logger(__name__)
        self._status_tracking = status_tracking
        self._suspend = suspend

        self._trackers: dict[EntityKind, StatusTracker] = build_trackers(db, logger=logger) if status_tracking else {}
        self._store = CheckpointStore(db, logger=logger) if suspend else None
        self._recovery = RecoveryCoordinator(db, logger=logger) if suspend else None

    @classmethod
    def from_settings(cls, settings: WaypointSettings) -> Self:
        """Open the configured database and bootstrap enabled table groups.

        Tables are only created when settings.create_tables is set.
        """
        db = PersistenceDB(settings.database.url, echo=settings.database.echo, create_tables=False)
        persistence = cls(db, status_tracking=settings.status_tracking, suspend=settings.suspend)
        if settings.create_tables:
            persistence.bootstrap()
        return persistence

    @property
    def db(self) -> PersistenceDB:
        return self._db

    @property
    def trackers(self) -> dict[EntityKind, StatusTracker]:
        if not self._status_tracking:
            raise RuntimeError("Status tracking is disabled")
        return dict(self._trackers)

    def tracker(self, kind: EntityKind) -> StatusTracker:
        return self.trackers[EntityKind(kind)]

    @property
    def store(self) -> CheckpointStore:
        if self._store is None:
            raise RuntimeError("Suspend persistence is disabled")
        return self._store

    @property
    def recovery(self) -> RecoveryCoordinator:
        if self._recovery is None:
            raise RuntimeError("Suspend persistence is disabled")
        return self._recovery

    def bootstrap(self) -> list[str]:
        """Create the tables of every enabled group.

        Returns:
            Names of the tables created by this call
        """
        bootstrap = SchemaBootstrap(self._db, logger=self._log)
        created: list[str] = []
        if self._status_tracking:
            created.extend(bootstrap.ensure_status_tables())
        if self._suspend:
            created.extend(bootstrap.ensure_recovery_tables())
        return created

    def inject(self, hooks: PersistenceHooks) -> None:
        """Bootstrap enabled table groups, then register their plugins.

        Raises:
            SchemaError: If bootstrap fails; nothing is registered
            ValueError: If this Persistence was already injected into hooks,
                or hooks already holds another suspend plugin; nothing from
                this call stays registered
        """
        self.bootstrap()

        plugins: list[object] = []
        if self._status_tracking:
            plugins.append(StatusPersistencePlugin(self._trackers))
        if self._store is not None and self._recovery is not None:
            plugins.append(SuspendPersistencePlugin(self._store, self._recovery))

        registered: list[object] = []
        try:
            for plugin in plugins:
                hooks.register(plugin, name=f"{type(plugin).__name__}-{id(self)}")
                registered.append(plugin)
        except ValueError:
            for plugin in registered:
                hooks.unregister(plugin)
            raise
        self._log.info(
            "Persistence injected",
            status_tracking=self._status_tracking,
            suspend=self._suspend,
        )

    def close(self) -> None:
        self._db.close()

    def __enter__(self) -> Self:
        return self

    def __exit__(
        self,
        exc_type: type[BaseException] | None,
        exc_val: BaseException | None,
        exc_tb: object,
    ) -> None:
        self.close()
