# src/waypoint/core/__init__.py
"""Core infrastructure: Configuration, Logging, Store, Suspend/Recover, Status Tracking."""

from waypoint.core.config import (
    DatabaseSettings,
    LoggingSettings,
    WaypointSettings,
    load_settings,
)
from waypoint.core.logging import (
    configure_logging,
    get_logger,
)
from waypoint.core.store import PersistenceDB, SchemaBootstrap
from waypoint.core.suspend import CheckpointStore, RecoveryCoordinator
from waypoint.core.tracking import StatusTracker, build_trackers, derive_status

__all__ = [
    "CheckpointStore",
    "DatabaseSettings",
    "LoggingSettings",
    "PersistenceDB",
    "RecoveryCoordinator",
    "SchemaBootstrap",
    "StatusTracker",
    "WaypointSettings",
    "build_trackers",
    "configure_logging",
    "derive_status",
    "get_logger",
    "load_settings",
]
