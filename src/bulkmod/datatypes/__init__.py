"""
Datatypes shared across the bulk moderation core.

- **record_datatypes.py**: The selectable record variants (accounts, media
  assets, scheduled events), their ``RecordKind`` discriminant, and helpers
  to discriminate raw payloads and partition records by kind.

- **operation_datatypes.py**: ``OperationKind``, the ``OperationDefinition``
  catalog entry, and the normalized ``ExecutionResult`` of one attempt.
"""
