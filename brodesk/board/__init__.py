"""Kanban board sessions."""

from brodesk.board.change_feed import PostgresChangeFeed
from brodesk.board.reconciler import BoardReconciler

__all__ = ["BoardReconciler", "PostgresChangeFeed"]
