"""
Audit trail storage for bulk operations.

- **db_connection.py**: Single long-lived aiosqlite connection with
  serialised write transactions.
- **db_schema.py**: Append-only audit tables, indexes and triggers.
- **audit_log.py**: ``AuditTrail`` recording and querying execution results.
"""
