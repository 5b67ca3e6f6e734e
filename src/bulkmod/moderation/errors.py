"""Operator-facing errors raised at the bulk operation session boundary."""

from __future__ import annotations


class BulkModerationError(Exception):
    """Base class for bulk moderation session errors."""


class UnknownOperationError(BulkModerationError):
    """The requested operation is not offered for the current selection."""


class NoOperationSelectedError(BulkModerationError):
    """A gate or retry action was requested before any operation was picked."""


class OperationInFlightError(BulkModerationError):
    """An execution attempt is already pending for this session."""
