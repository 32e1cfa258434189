"""Status tracking for the flow / process / step hierarchy."""

from waypoint.core.tracking.tracker import (
    ENTITY_TABLES,
    EntityTableSpec,
    StatusTracker,
    build_trackers,
    derive_status,
)

__all__ = [
    "ENTITY_TABLES",
    "EntityTableSpec",
    "StatusTracker",
    "build_trackers",
    "derive_status",
]
