"""
Configuration for bulkmod.

- **app_configuration.py**: YAML-backed ``AppConfig`` with a shared
  ``app_config`` instance.
- **bulk_settings.py**: ``BulkOperationSettings`` wrapper for the
  ``bulk_operations`` section.
"""
