"""
Bulk Moderation Console
=======================

Starts an interactive operator console over a set of platform records
(accounts, uploaded videos and scheduled events). The operator pages through
the records, builds a cross-page selection and applies bulk moderation
operations to it; every attempt is written to the audit trail.
"""

import os
import sys
from pathlib import Path

from dotenv import load_dotenv

SOURCE_DIR = Path(__file__).resolve().parents[2]

def resolve_base_dir() -> Path:
    """Determine the base directory of the project.
    Resolution order:
    1. BULKMOD_HOME environment variable, if set.
    2. If running in a frozen/compiled context (e.g., PyInstaller, Nuitka), use the executable's directory.
    3. Otherwise, assume running from source and use the grandparent of this file's directory.
    """
    if env_home := os.getenv("BULKMOD_HOME"):
        return Path(env_home).resolve()

    if getattr(sys, "frozen", False) or getattr(sys, "compiled", False):
        return Path(sys.argv[0]).resolve().parent

    return SOURCE_DIR

# BULKMOD_HOME may itself be set in the checkout's .env
load_dotenv(dotenv_path=SOURCE_DIR / ".env")
BASE_DIR = resolve_base_dir()
os.chdir(BASE_DIR)
# Must run before bulkmod.configuration reads BULKMOD_CONFIG
load_dotenv(dotenv_path=BASE_DIR / ".env")

import asyncio
from typing import Any, List

import yaml

from bulkmod.backends.memory_backend import InMemoryModerationBackend, build_sample_records
from bulkmod.configuration.app_configuration import AppConfig, app_config, resolve_config_path
from bulkmod.database.audit_log import AuditTrail
from bulkmod.datatypes.record_datatypes import SelectableRecord, record_from_mapping
from bulkmod.moderation.bulk_operation_session import BulkOperationSession
from bulkmod.moderation.execution_engine import ExecutionEngine, ExecutorRegistry
from bulkmod.ui.console import ConsoleControl, console_session
from bulkmod.util.logger import get_logger, handle_exception


logger = get_logger("main")


def load_environment(base_dir: Path = BASE_DIR) -> None:
    """Load ``.env`` from ``base_dir`` and re-point the configuration at ``BULKMOD_CONFIG``.

    Variables already set in the process environment win over ``.env``.
    """
    load_dotenv(dotenv_path=base_dir / ".env")
    app_config.use_path(resolve_config_path())


def load_records(path: Path | None) -> List[SelectableRecord]:
    """Load the records the console pages through.

    Parameters
    ----------
    path:
        YAML or JSON file holding a list of raw record mappings. When ``None``
        or unreadable, the built-in sample records are used.

    Returns
    -------
    List[SelectableRecord]
        Records in file order; entries that match no record variant are skipped.
    """
    if path is None:
        logger.info("No records file configured; using sample records.")
        return build_sample_records()

    try:
        with path.open("r", encoding="utf-8") as f:
            raw: Any = yaml.safe_load(f)
    except FileNotFoundError:
        logger.error("Records file %s not found; using sample records.", path)
        return build_sample_records()
    except yaml.YAMLError as exc:
        logger.error("Failed to parse records file %s: %s; using sample records.", path, exc)
        return build_sample_records()

    if isinstance(raw, dict):
        raw = raw.get("records", [])
    if not isinstance(raw, list):
        logger.error("Records file %s does not contain a list; using sample records.", path)
        return build_sample_records()

    records: List[SelectableRecord] = []
    for index, entry in enumerate(raw):
        if not isinstance(entry, dict):
            logger.warning("Skipping record #%d in %s: not a mapping", index, path)
            continue
        try:
            records.append(record_from_mapping(entry))
        except ValueError as exc:
            logger.warning("Skipping record #%d in %s: %s", index, path, exc)

    logger.info("Loaded %d record(s) from %s", len(records), path)
    return records


def build_session(config: AppConfig, backend: InMemoryModerationBackend) -> BulkOperationSession:
    """Wire the executors, engine and session from configuration."""
    settings = config.bulk_operations
    registry = backend.register_executors(ExecutorRegistry())
    engine = ExecutionEngine(registry, timeout_seconds=settings.executor_timeout_seconds)
    return BulkOperationSession(engine, settings=settings)


async def initialize_audit(config: AppConfig, session: BulkOperationSession) -> AuditTrail | None:
    """Open the audit trail and subscribe it to the session, if enabled."""
    if not config.audit_enabled:
        logger.info("Audit trail disabled by configuration.")
        return None

    audit = AuditTrail()
    await audit.initialize(config.audit_database_path)
    session.add_completion_listener(audit.record)
    return audit


async def shutdown_runtime(audit: AuditTrail | None) -> None:
    """Close the audit database."""
    if audit is not None:
        try:
            await audit.shutdown()
        except Exception as exc:
            logger.exception("Error during audit trail shutdown: %s", exc)

    logger.info("Shutdown complete.")


async def async_main() -> int:
    """Bootstrap the session, audit trail and console, returning an exit code.

    Returns
    -------
    int
        Process exit code reflecting success or failure of initialization.
    """
    load_environment()

    backend = InMemoryModerationBackend(load_records(app_config.records_path))
    session = build_session(app_config, backend)

    try:
        audit = await initialize_audit(app_config, session)
    except Exception as exc:
        logger.critical("Failed to initialize audit database: %s", exc)
        return 1

    control = ConsoleControl(session, backend, settings=app_config.bulk_operations, audit=audit)
    try:
        async with console_session(control):
            await control.shutdown_event.wait()
    finally:
        await shutdown_runtime(audit)

    return 0


def main() -> int:
    """Entrypoint that runs the async runtime and returns the process code."""
    logger.info("Starting bulk moderation console…")
    try:
        return asyncio.run(async_main())
    except KeyboardInterrupt:
        logger.info("Shutdown requested by user.")
        return 0
    except Exception as exc:
        logger.critical("An unexpected error occurred while running the console: %s", exc)
        return 1


if __name__ == "__main__":
    sys.excepthook = handle_exception
    print(f"Exited with code: {main()}")
