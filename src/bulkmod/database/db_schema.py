"""
Audit database schema initialization.

Creates the append-only audit tables, their indexes, and the triggers that
reject updates and deletes of recorded operations.
"""

import aiosqlite
from bulkmod.util.logger import get_logger

logger = get_logger("database_schema")

SCHEMA_VERSION = 1


class SchemaManager:
    """Creates and versions the audit trail schema."""

    @staticmethod
    async def initialize_schema(db: aiosqlite.Connection) -> None:
        """
        Create all audit tables, indexes, and triggers if missing.

        Args:
            db: Open database connection
        """
        await SchemaManager._create_tables(db)
        await SchemaManager._create_indexes(db)
        await SchemaManager._create_triggers(db)
        await SchemaManager._update_schema_version(db)
        await db.commit()
        logger.info("[SCHEMA] Audit schema initialized")

    @staticmethod
    async def _create_tables(db: aiosqlite.Connection) -> None:
        await db.execute("""
            CREATE TABLE IF NOT EXISTS bulk_operations (
                operation_id TEXT PRIMARY KEY,
                operation_kind TEXT NOT NULL,
                reason TEXT,
                success INTEGER NOT NULL,
                processed_count INTEGER NOT NULL,
                failed_count INTEGER NOT NULL,
                recorded_at TIMESTAMP DEFAULT CURRENT_TIMESTAMP
            )
        """)

        await db.execute("""
            CREATE TABLE IF NOT EXISTS bulk_operation_errors (
                id INTEGER PRIMARY KEY AUTOINCREMENT,
                operation_id TEXT NOT NULL,
                item_id TEXT NOT NULL,
                error TEXT NOT NULL,
                FOREIGN KEY (operation_id) REFERENCES bulk_operations(operation_id)
            )
        """)

        await db.execute("""
            CREATE TABLE IF NOT EXISTS schema_version (
                version INTEGER PRIMARY KEY,
                applied_at TIMESTAMP DEFAULT CURRENT_TIMESTAMP
            )
        """)

    @staticmethod
    async def _create_indexes(db: aiosqlite.Connection) -> None:
        await db.execute("CREATE INDEX IF NOT EXISTS idx_bulk_operations_recorded ON bulk_operations(recorded_at DESC)")
        await db.execute("CREATE INDEX IF NOT EXISTS idx_bulk_operation_errors_operation ON bulk_operation_errors(operation_id)")

    @staticmethod
    async def _create_triggers(db: aiosqlite.Connection) -> None:
        """Make recorded operations and their errors append-only."""
        for table in ("bulk_operations", "bulk_operation_errors"):
            for event in ("UPDATE", "DELETE"):
                await db.execute(f"""
                    CREATE TRIGGER IF NOT EXISTS {table}_no_{event.lower()}
                    BEFORE {event} ON {table}
                    BEGIN
                        SELECT RAISE(ABORT, 'audit trail is append-only');
                    END
                """)

    @staticmethod
    async def _update_schema_version(db: aiosqlite.Connection) -> None:
        await db.execute("INSERT OR IGNORE INTO schema_version (version) VALUES (?)", (SCHEMA_VERSION,))
