"""Project documents, queried per collective."""

from __future__ import annotations

import datetime
from collections.abc import Mapping
from typing import Any

from ..adapters.base import OrderBy, where_equal
from ..core.models import Project, ProjectStatus
from .base import EntityService, build, require


class ProjectService(EntityService[Project]):
    collection = "projects"
    model = Project
    immutable = frozenset({"id", "created_at", "collective_id"})

    async def create(
        self,
        title: str,
        collective_id: str,
        start_date: datetime.datetime,
        description: str = "",
        status: ProjectStatus = ProjectStatus.PLANNING,
        end_date: datetime.datetime | None = None,
    ) -> str:
        project = build(
            Project,
            title=require(title, "Project title"),
            description=description,
            collective_id=require(collective_id, "Collective id"),
            status=status,
            start_date=start_date,
            end_date=end_date,
        )
        return await self._create(self.collection, project)

    async def fetch_one(self, project_id: str) -> Project:
        return await self._fetch_one(self.collection, project_id)

    async def fetch_for_collective(self, collective_id: str) -> list[Project]:
        """Newest first."""
        return await self._fetch_many(
            self.collection,
            [where_equal(Project.field_alias("collective_id"), collective_id)],
            OrderBy(Project.field_alias("created_at"), descending=True),
            context=f"collective {collective_id}",
        )

    async def update(self, project_id: str, fields: Mapping[str, Any]) -> dict[str, Any]:
        return await self._update(self.collection, project_id, fields)

    async def update_status(self, project_id: str, status: ProjectStatus) -> dict[str, Any]:
        return await self.update(project_id, {"status": status})
