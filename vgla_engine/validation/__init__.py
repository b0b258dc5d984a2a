"""Snapshot validation package."""

from vgla_engine.validation.validator import SnapshotValidator

__all__ = ["SnapshotValidator"]
