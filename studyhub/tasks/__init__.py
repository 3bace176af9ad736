"""Task definitions and their store."""

from __future__ import annotations

from studyhub.tasks.models import CreateTaskRequest, TaskData, TaskRecord
from studyhub.tasks.store import TaskStore

__all__ = ["CreateTaskRequest", "TaskData", "TaskRecord", "TaskStore"]
