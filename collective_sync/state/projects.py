"""Projects of one collective."""

from __future__ import annotations

import datetime

from ..core.models import Project, ProjectStatus
from ..services.projects import ProjectService
from .base import ListState


class ProjectListState(ListState[Project]):
    noun = "projects"

    def __init__(self, service: ProjectService, collective_id: str) -> None:
        super().__init__()
        self.service = service
        self.collective_id = collective_id

    async def fetch(self) -> list[Project]:
        return await self.service.fetch_for_collective(self.collective_id)

    async def create(
        self,
        title: str,
        start_date: datetime.datetime,
        description: str = "",
        end_date: datetime.datetime | None = None,
    ) -> bool:
        return await self.create_then_refresh(
            "create project",
            lambda: self.service.create(
                title, self.collective_id, start_date, description, end_date=end_date
            ),
        )

    async def update_status(self, project_id: str, status: ProjectStatus) -> bool:
        return await self.confirmed_update(
            "update project status",
            project_id,
            lambda: self.service.update_status(project_id, status),
        )
