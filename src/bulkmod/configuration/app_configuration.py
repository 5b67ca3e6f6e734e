from __future__ import annotations
from pathlib import Path
import fcntl
import os
from typing import Any, Dict
import yaml

from bulkmod.configuration.bulk_settings import BulkOperationSettings
from bulkmod.util.logger import get_logger

logger = get_logger("app_configuration")


def resolve_config_path() -> Path:
    """Config file named by ``BULKMOD_CONFIG``, else ``./config/app_config.yml``."""
    return Path(os.getenv("BULKMOD_CONFIG", "./config/app_config.yml")).resolve()


CONFIG_PATH = resolve_config_path()
DEFAULT_AUDIT_DB_PATH = Path("./data/audit.db")


class AppConfig:
    """File-lock based accessor around the YAML application configuration.

    The class caches the contents of ``./config/app_config.yml`` (or the file
    named by ``BULKMOD_CONFIG``), exposes dictionary-like access helpers, and
    wraps the bulk operation section in :class:`BulkOperationSettings`.
    """

    def __init__(self, config_path: Path) -> None:
        self.config_path = config_path
        self._data: Dict[str, Any] = {}
        self.reload()

    # --------------------------
    # Private helpers
    # --------------------------
    def load_from_disk(self) -> Dict[str, Any]:
        try:
            with self.config_path.open("r", encoding="utf-8") as f:
                fcntl.flock(f.fileno(), fcntl.LOCK_SH)
                try:
                    data = yaml.safe_load(f)
                finally:
                    fcntl.flock(f.fileno(), fcntl.LOCK_UN)
        except FileNotFoundError:
            logger.error("[APP CONFIGURATION] Config file %s not found.", self.config_path)
            return {}
        except Exception as exc:
            logger.error("[APP CONFIGURATION] Failed to load config %s: %s", self.config_path, exc)
            return {}

        if not isinstance(data, dict):
            if data is not None:
                logger.error("[APP CONFIGURATION] Config %s is not a mapping; ignoring it.", self.config_path)
            return {}
        return data

    def _section(self, key: str) -> Dict[str, Any]:
        value = self._data.get(key, {})
        return value if isinstance(value, dict) else {}

    # --------------------------
    # Public API
    # --------------------------
    def use_path(self, config_path: Path) -> Dict[str, Any]:
        """Point the configuration at ``config_path`` and reload it."""
        if config_path != self.config_path:
            logger.info("[APP CONFIGURATION] Switching config file to %s", config_path)
            self.config_path = config_path
        return self.reload()

    def reload(self) -> Dict[str, Any]:
        """Reload configuration from disk and return the loaded mapping.

        Returns the raw mapping that was loaded (an empty dict on error).
        """
        self._data = self.load_from_disk()
        return self._data

    @property
    def data(self) -> Dict[str, Any]:
        """Return the current cached configuration mapping.

        Callers should not mutate it; use get(...) or the properties instead.
        """
        return self._data

    def get(self, key: str, default: Any = None) -> Any:
        """Safe lookup for top-level configuration keys."""
        return self._data.get(key, default)

    # --------------------------
    # High-level shortcuts
    # --------------------------
    @property
    def bulk_operations(self) -> BulkOperationSettings:
        """Return the ``bulk_operations`` section wrapped in BulkOperationSettings."""
        return BulkOperationSettings(self._section("bulk_operations"))

    @property
    def audit_enabled(self) -> bool:
        return bool(self._section("audit").get("enabled", True))

    @property
    def audit_database_path(self) -> Path:
        """Return the SQLite audit trail path (default ``./data/audit.db``)."""
        value = self._section("audit").get("database_path")
        return Path(str(value)) if value else DEFAULT_AUDIT_DB_PATH

    @property
    def records_path(self) -> Path | None:
        """Return the records file the operator console pages through, if configured."""
        value = self._data.get("records_path")
        return Path(str(value)) if value else None


# Shared application-wide configuration instance
app_config = AppConfig(CONFIG_PATH)
