"""Task documents, stored as a child collection of their project.

Every mutation is a targeted field update on ``projects/<projectId>/tasks``;
tasks are never rewritten whole after creation.
"""

from __future__ import annotations

import datetime
import logging
from typing import Any

from ..adapters.base import OrderBy
from ..core.models import FieldUpdate, Task, TaskStatus, resolve_update
from ..errors import ValidationError
from .base import EntityService, build, require

log = logging.getLogger(__name__)


def tasks_collection(project_id: str) -> str:
    return f"projects/{require(project_id, 'Project id')}/tasks"


class TaskService(EntityService[Task]):
    model = Task

    async def create(
        self,
        project_id: str,
        title: str,
        assigned_to: str | None = None,
        status: TaskStatus = TaskStatus.TODO,
        due_date: datetime.datetime | None = None,
    ) -> str:
        task = build(
            Task,
            title=require(title, "Task title"),
            assigned_to=assigned_to or None,
            status=status,
            due_date=due_date,
        )
        return await self._create(tasks_collection(project_id), task)

    async def fetch_one(self, project_id: str, task_id: str) -> Task:
        return await self._fetch_one(tasks_collection(project_id), task_id)

    async def fetch_for_project(self, project_id: str) -> list[Task]:
        """Oldest first."""
        return await self._fetch_many(
            tasks_collection(project_id),
            order_by=OrderBy(Task.field_alias("created_at")),
            context=f"project {project_id}",
        )

    async def update_status(
        self, project_id: str, task_id: str, status: TaskStatus
    ) -> dict[str, Any]:
        """Set any status directly; the advance ring is not enforced here."""
        return await self._update(tasks_collection(project_id), task_id, {"status": status})

    async def update_assignment(
        self, project_id: str, task_id: str, assignment: FieldUpdate[str]
    ) -> dict[str, Any]:
        return await self._update(
            tasks_collection(project_id), task_id, {"assigned_to": resolve_update(assignment)}
        )

    async def update_details(
        self,
        project_id: str,
        task_id: str,
        assignment: FieldUpdate[str] | None = None,
        due_date: FieldUpdate[datetime.datetime] | None = None,
    ) -> dict[str, Any]:
        """Change assignment and due date in one write.

        ``None`` leaves a field alone; :data:`~collective_sync.core.models.CLEAR`
        empties it. Returns the applied changes keyed by Python field name.
        """
        changes: dict[str, Any] = {}
        if assignment is not None:
            changes["assigned_to"] = resolve_update(assignment)
        if due_date is not None:
            changes["due_date"] = resolve_update(due_date)
        if not changes:
            raise ValidationError("Nothing to update.")
        return await self._update(tasks_collection(project_id), task_id, changes)

    async def delete(self, project_id: str, task_id: str) -> None:
        collection = tasks_collection(project_id)
        await self.guarded(f"deleting task {task_id}", self.store.delete(collection, task_id))
        log.info("Deleted task %s from project %s", task_id, project_id)
