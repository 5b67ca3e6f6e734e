"""
Bulk moderation core.

- **page_membership.py** / **selection_registry.py**: What the operator has
  selected across pages, and what is visible on the current page.
- **operation_catalog.py**: Which operations may be offered for the kinds of
  records currently selected.
- **confirmation_gate.py**: Pauses sensitive operations for confirmation and
  blocks destructive ones until a reason is given.
- **execution_engine.py**: Dispatches one attempt to the per-kind bulk action
  executors concurrently and normalizes their responses.
- **retry_coordinator.py**: Re-runs an operation for the failed records only.
- **bulk_operation_session.py**: Operator session owning the lifecycle state
  and the single in-flight attempt.
"""
