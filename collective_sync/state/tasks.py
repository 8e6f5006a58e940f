"""Tasks of one project.

Field updates are applied locally only after the store confirms them, so
the projection always shows the last confirmed write. Two updates to the
same task that are in flight together are applied in the order their
responses arrive; nothing orders them by request time.
"""

from __future__ import annotations

import datetime

from ..core.models import FieldUpdate, Task, TaskStatus
from ..errors import NotFound, SyncError
from ..services.tasks import TaskService
from .base import ListState


class TaskListState(ListState[Task]):
    noun = "tasks"

    def __init__(self, service: TaskService, project_id: str) -> None:
        super().__init__()
        self.service = service
        self.project_id = project_id

    async def fetch(self) -> list[Task]:
        return await self.service.fetch_for_project(self.project_id)

    async def create(
        self,
        title: str,
        assigned_to: str | None = None,
        status: TaskStatus = TaskStatus.TODO,
        due_date: datetime.datetime | None = None,
    ) -> bool:
        return await self.create_then_refresh(
            "create task",
            lambda: self.service.create(self.project_id, title, assigned_to, status, due_date),
        )

    async def update_status(self, task_id: str, status: TaskStatus) -> bool:
        return await self.confirmed_update(
            "update task status",
            task_id,
            lambda: self.service.update_status(self.project_id, task_id, status),
        )

    async def advance_status(self, task_id: str) -> bool:
        """Move the task one step along todo, in progress, blocked, done."""
        task = self.find(task_id)
        if task is None:
            self.fail("update task status", NotFound(f"No task with id {task_id}."))
            self.notify()
            return False
        return await self.update_status(task_id, task.status.advance())

    async def update_assignment(self, task_id: str, assignment: FieldUpdate[str]) -> bool:
        return await self.confirmed_update(
            "update task assignment",
            task_id,
            lambda: self.service.update_assignment(self.project_id, task_id, assignment),
        )

    async def update_details(
        self,
        task_id: str,
        assignment: FieldUpdate[str] | None = None,
        due_date: FieldUpdate[datetime.datetime] | None = None,
    ) -> bool:
        return await self.confirmed_update(
            "update task",
            task_id,
            lambda: self.service.update_details(self.project_id, task_id, assignment, due_date),
        )

    async def delete(self, task_id: str) -> bool:
        self.last_error = None
        try:
            await self.service.delete(self.project_id, task_id)
        except SyncError as exc:
            self.fail("delete task", exc)
            self.notify()
            return False
        self.items = [task for task in self.items if task.id != task_id]
        self.notify()
        return True
