"""Ops Tracker: work-item tracking with gated status transitions."""

__version__ = "1.0.0"
