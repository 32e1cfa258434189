"""
Waypoint: durable status tracking and suspend/recover persistence for workflow engines.

Records the lifecycle of every flow, process and step an engine runs, and
stores the checkpoint sets that let a suspended execution resume later.
"""

__version__ = "0.2.0"
