"""
Content Storage
Distributable titles for the public watch catalog.
"""

from typing import Any, Dict, List, Optional

from sqlalchemy import select, update

from modo.exceptions import NotFoundError, ValidationError
from modo.models import Content
from modo.models.commerce import CONTENT_TYPES
from modo.storage.base import BaseStorage, utcnow
from modo.storage.projects import ProjectStorage

CONTENT_FIELDS = (
    "genre",
    "rating",
    "release_year",
    "duration_minutes",
    "synopsis",
    "poster_url",
    "banner_url",
)


class ContentStorage(BaseStorage):

    async def list_published(
        self,
        content_type: Optional[str] = None,
        genre: Optional[str] = None,
        limit: int = 20,
    ) -> List[Content]:
        stmt = select(Content).where(Content.status == "published")
        if content_type:
            stmt = stmt.where(Content.type == content_type)
        if genre:
            stmt = stmt.where(Content.genre == genre)
        async with self.session() as session:
            result = await session.execute(stmt.order_by(Content.created_at.desc()).limit(limit))
            return list(result.scalars().all())

    async def create_content(self, project_id: str, user_id: str, title: str, data: Dict[str, Any]) -> Content:
        if not title or not title.strip():
            raise ValidationError("title is required")
        content_type = data.get("type") or "film"
        if content_type not in CONTENT_TYPES:
            raise ValidationError(f"Invalid content type: {content_type}")
        async with self.transaction() as session:
            await ProjectStorage.owned(session, project_id, user_id)
            content = Content(project_id=project_id, title=title.strip(), type=content_type, status="draft", view_count=0)
            self.apply_updates(content, data, CONTENT_FIELDS)
            session.add(content)
            await session.flush()
            return content

    async def get_content(self, content_id: str) -> Content:
        """Published content only; drafts and archived titles are 404."""
        async with self.session() as session:
            content = await session.get(Content, content_id)
            if content is None or content.status != "published":
                raise NotFoundError("Content not found")
            return content

    async def publish(self, content_id: str, user_id: str) -> Content:
        async with self.transaction() as session:
            content = await session.get(Content, content_id)
            if content is None:
                raise NotFoundError("Content not found")
            await ProjectStorage.owned(session, content.project_id, user_id)
            content.status = "published"
            content.updated_at = utcnow()
            return content

    async def record_view(self, content_id: str) -> int:
        async with self.transaction() as session:
            result = await session.execute(
                update(Content)
                .where(Content.id == content_id, Content.status == "published")
                .values(view_count=Content.view_count + 1)
                .returning(Content.view_count)
            )
            count = result.scalar_one_or_none()
            if count is None:
                raise NotFoundError("Content not found")
            return int(count)
