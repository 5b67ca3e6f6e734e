"""
bulkmod - Bulk moderation for a talent platform's admin dashboard

bulkmod lets an operator select accounts, uploaded videos and scheduled
events across paginated result pages and apply one moderation operation to
the whole selection, with a uniform per-item success/failure report.

Core Components:

- **Selection**: Cross-page selection registry with "select all on page"
  toggling driven by the visible page membership
- **Operation Catalog**: Operations offered for the record kinds present in
  the selection, in a stable menu order
- **Confirmation Gate**: Confirmation and mandatory reasons for destructive
  operations
- **Execution Engine**: Concurrent per-kind dispatch to bulk action
  executors and normalization of their responses
- **Retry**: Re-running only the items that failed
- **Audit Trail**: Append-only SQLite record of every attempt
- **Interactive Console**: Operator interface for paging, selecting and
  running operations

Usage:
    from bulkmod.main import main
    main()  # Starts the operator console
"""
