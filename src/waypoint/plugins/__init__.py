# src/waypoint/plugins/__init__.py
"""Engine registration via pluggy hooks.

Provides:
- Hook specifications (hookspecs): lifecycle and suspend hooks
- PersistenceHooks: engine-facing registration point
- StatusPersistencePlugin / SuspendPersistencePlugin: adapter hookimpls
"""

from waypoint.plugins.adapters import StatusPersistencePlugin, SuspendPersistencePlugin
from waypoint.plugins.hookspecs import PROJECT_NAME, hookimpl, hookspec
from waypoint.plugins.manager import PersistenceHooks

__all__ = [
    "PROJECT_NAME",
    "PersistenceHooks",
    "StatusPersistencePlugin",
    "SuspendPersistencePlugin",
    "hookimpl",
    "hookspec",
]
