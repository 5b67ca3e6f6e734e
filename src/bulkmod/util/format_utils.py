from datetime import datetime, timezone
from typing import List, Tuple

from bulkmod.datatypes.operation_datatypes import ExecutionResult, ItemError
from bulkmod.util.logger import get_logger

logger = get_logger("format_utils")


def humanize_timestamp(value: datetime) -> str:
    """Return a human-readable timestamp (YYYY-MM-DD HH:MM:SS) in UTC.

    Naive datetimes are assumed to be UTC already.

    Args:
        value: datetime object to format.

    Returns:
        Human-readable UTC timestamp string.
    """
    if value.tzinfo is None:
        value = value.replace(tzinfo=timezone.utc)
    else:
        value = value.astimezone(timezone.utc)
    return value.strftime("%Y-%m-%d %H:%M:%S UTC")


def pluralize(count: int, noun: str) -> str:
    """Return ``"1 item"`` / ``"3 items"`` style counts."""
    return f"{count} {noun}{'' if count == 1 else 's'}"


def progress_percentage(processed: int, total: int) -> int:
    """Rounded completion percentage; 0 for an empty attempt."""
    if total <= 0:
        return 0
    return round(min(processed, total) / total * 100)


def result_headline(result: ExecutionResult) -> str:
    return "Operation Completed" if result.success else "Operation Failed"


def error_preview(result: ExecutionResult, limit: int = 5) -> Tuple[List[ItemError], int]:
    """First ``limit`` errors of a result and how many were left out."""
    shown = result.errors[:limit]
    return shown, max(len(result.errors) - limit, 0)


def format_result_lines(result: ExecutionResult, limit: int = 5) -> List[str]:
    """Render an execution result as console lines, listing failures per item.

    Args:
        result: Result to render.
        limit: Maximum number of per-item errors to list.

    Returns:
        Lines ready to print, headline first.
    """
    lines = [
        f"{result_headline(result)} ({result.operation_id})",
        f"Processed {pluralize(result.processed_count, 'item')}, failed {result.failed_count}",
    ]
    if result.errors:
        shown, remaining = error_preview(result, limit)
        lines.append(f"Failed Operations ({len(result.errors)})")
        lines.extend(f"  • {error.item_id}: {error.error}" for error in shown)
        if remaining:
            lines.append(f"  +{remaining} more error{'' if remaining == 1 else 's'}")
        lines.append(f"Retry Failed ({len(result.errors)}) available with 'retry'")
    elif result.failed_count:
        logger.warning("Result %s reports %d failure(s) without per-item errors", result.operation_id, result.failed_count)
    return lines
