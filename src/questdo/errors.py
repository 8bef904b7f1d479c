"""Exceptions raised by questdo."""

from __future__ import annotations

from typing import Any


class QuestDoError(Exception):
    """Base class for questdo errors."""


class PersistenceError(QuestDoError):
    """A store read or write failed.

    `outcome` holds the computed award (if any) so the caller can retry the
    write without recomputing. Nothing has been presented when this is raised.
    """

    def __init__(self, message: str, outcome: Any = None) -> None:
        super().__init__(message)
        self.outcome = outcome


class ConcurrentUpdateError(PersistenceError):
    """The user record kept changing underneath us; retries exhausted."""


class CatalogError(QuestDoError):
    """Badge catalog could not be loaded."""
