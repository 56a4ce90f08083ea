"""
Task subsystem.

Components:
- task_models.py: data structures (Task, TaskStatus, TaskPriority) + validation + pure builders
- task_store.py: JSON-document storage with serialized, atomic writes
"""
