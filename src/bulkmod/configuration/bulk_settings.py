from typing import Any, Dict

_TRUE_WORDS = frozenset({"true", "1", "yes", "on"})
_FALSE_WORDS = frozenset({"false", "0", "no", "off"})


class BulkOperationSettings:
    """Typed accessors for the ``bulk_operations`` configuration section.

    Values are coerced on read so a hand-edited YAML file with quoted
    numbers or booleans still works. Invalid values fall back to the defaults.
    """

    def __init__(self, data: Dict[str, Any] | None = None) -> None:
        self.data: Dict[str, Any] = data or {}

    def _int(self, key: str, default: int, minimum: int = 0) -> int:
        try:
            value = int(self.data.get(key, default))
        except (TypeError, ValueError):
            return default
        return value if value >= minimum else default

    def _bool(self, key: str, default: bool) -> bool:
        value = self.data.get(key, default)
        if isinstance(value, str):
            word = value.strip().lower()
            if word in _TRUE_WORDS:
                return True
            if word in _FALSE_WORDS:
                return False
            return default
        return bool(value)

    @property
    def executor_timeout_seconds(self) -> float | None:
        """Per-partition bound on executor calls; None or non-positive disables it."""
        raw = self.data.get("executor_timeout_seconds")
        if raw is None:
            return None
        try:
            value = float(raw)
        except (TypeError, ValueError):
            return None
        return value if value > 0 else None

    @property
    def clear_selection_on_success(self) -> bool:
        return self._bool("clear_selection_on_success", True)

    @property
    def affected_items_preview(self) -> int:
        return self._int("affected_items_preview", 3, minimum=1)

    @property
    def error_preview(self) -> int:
        return self._int("error_preview", 5, minimum=1)

    @property
    def page_size(self) -> int:
        return self._int("page_size", 10, minimum=1)
