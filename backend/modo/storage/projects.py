"""
Project Storage
IP projects owned by a creator, with soft delete and restore.
"""

from typing import Any, Dict, List, Optional, Tuple

from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from modo.exceptions import NotFoundError, ValidationError
from modo.models import Project, User
from modo.models.project import PROJECT_STATUSES
from modo.storage.base import BaseStorage, utcnow

PROJECT_FIELDS = (
    "title",
    "description",
    "genre",
    "sub_genre",
    "studio_name",
    "ip_owner",
    "status",
    "is_public",
    "thumbnail_url",
    "storyboard_config",
)


class ProjectStorage(BaseStorage):
    """Database storage for projects."""

    async def list_projects(
        self,
        user_id: str,
        status: Optional[str] = None,
        limit: int = 20,
        offset: int = 0,
    ) -> Tuple[List[Project], int]:
        """List a user's live projects, most recently updated first."""
        conditions = [Project.user_id == user_id, Project.deleted_at.is_(None)]
        if status and status != "all":
            conditions.append(Project.status == status)
        async with self.session() as session:
            total = (await session.execute(select(func.count(Project.id)).where(*conditions))).scalar() or 0
            result = await session.execute(
                select(Project).where(*conditions).order_by(Project.updated_at.desc()).limit(limit).offset(offset)
            )
            return list(result.scalars().all()), int(total)

    async def create_project(self, user_id: str, data: Dict[str, Any]) -> Project:
        title = (data.get("title") or "").strip()
        if not title:
            raise ValidationError("title is required")
        async with self.transaction() as session:
            await self.get_live(session, User, user_id, "User")
            project = Project(user_id=user_id, title=title, status="draft", storyboard_config={})
            self.apply_updates(project, {k: v for k, v in data.items() if k != "title"}, PROJECT_FIELDS)
            project.status = "draft"
            session.add(project)
            await session.flush()
            return project

    async def get_project(self, project_id: str) -> Project:
        async with self.session() as session:
            return await self.get_live(session, Project, project_id, "Project")

    @classmethod
    async def owned(cls, session: AsyncSession, project_id: str, user_id: str) -> Project:
        """Load a live project owned by `user_id` inside an open session."""
        project = await session.get(Project, project_id)
        if project is None or project.deleted_at is not None or project.user_id != user_id:
            raise NotFoundError("Project not found")
        return project

    async def get_owned_project(self, project_id: str, user_id: str) -> Project:
        async with self.session() as session:
            return await self.owned(session, project_id, user_id)

    async def update_project(self, project_id: str, user_id: str, updates: Dict[str, Any]) -> Project:
        if updates.get("status") is not None and updates["status"] not in PROJECT_STATUSES:
            raise ValidationError(f"Invalid project status: {updates['status']}")
        if "title" in updates and updates["title"] is not None and not updates["title"].strip():
            raise ValidationError("title must not be empty")
        async with self.transaction() as session:
            project = await self.owned(session, project_id, user_id)
            self.apply_updates(project, updates, PROJECT_FIELDS)
            project.updated_at = utcnow()
            return project

    async def delete_project(self, project_id: str, user_id: str) -> None:
        async with self.transaction() as session:
            project = await self.owned(session, project_id, user_id)
            project.deleted_at = utcnow()

    async def restore_project(self, project_id: str, user_id: str) -> Project:
        async with self.transaction() as session:
            project = await session.get(Project, project_id)
            if project is None or project.user_id != user_id:
                raise NotFoundError("Project not found")
            project.deleted_at = None
            return project

    async def set_storyboard_config(self, project_id: str, storyboard_config: Dict[str, Any]) -> Project:
        async with self.transaction() as session:
            project = await self.get_live(session, Project, project_id, "Project")
            merged = dict(project.storyboard_config or {})
            merged.update(storyboard_config)
            project.storyboard_config = merged
            return project
