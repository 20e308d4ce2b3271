"""
Story Storage
Story versions per project; exactly one active version after any create or activate.
"""

from typing import Any, Dict, List, Optional

from sqlalchemy import func, select

from modo.exceptions import NotFoundError
from modo.models import StoryVersion
from modo.storage.base import BaseStorage, utcnow
from modo.storage.projects import ProjectStorage
from modo.story_structures import normalize_structure, structure_label

TEXT_FIELDS = (
    "premise",
    "synopsis",
    "global_synopsis",
    "genre",
    "format",
    "duration",
    "tone",
    "theme",
    "conflict",
    "target_audience",
    "ending_type",
)
JSON_FIELDS = ("beats", "key_actions", "tension_levels", "want_need_matrix", "beat_characters", "character_ids")
# Copied when a new structure starts from an existing version
SEED_FIELDS = ("premise", "genre", "tone", "theme", "conflict")


class StoryStorage(BaseStorage):
    """Database storage for story versions."""

    async def list_versions(self, project_id: str, include_deleted: bool = False) -> List[StoryVersion]:
        stmt = select(StoryVersion).where(StoryVersion.project_id == project_id)
        if not include_deleted:
            stmt = stmt.where(StoryVersion.deleted_at.is_(None))
        async with self.session() as session:
            result = await session.execute(stmt.order_by(StoryVersion.created_at.desc()))
            return list(result.scalars().all())

    async def get_version(self, version_id: str, project_id: Optional[str] = None) -> StoryVersion:
        async with self.session() as session:
            version = await self.get_live(session, StoryVersion, version_id, "Story version")
            if project_id is not None and version.project_id != project_id:
                raise NotFoundError("Story version not found")
            return version

    async def get_active_version(self, project_id: str) -> Optional[StoryVersion]:
        async with self.session() as session:
            result = await session.execute(
                select(StoryVersion).where(
                    StoryVersion.project_id == project_id,
                    StoryVersion.is_active.is_(True),
                    StoryVersion.deleted_at.is_(None),
                )
            )
            return result.scalars().first()

    async def create_version(
        self,
        project_id: str,
        user_id: str,
        structure: str = "save_the_cat",
        name: Optional[str] = None,
        copy_from_version_id: Optional[str] = None,
        is_duplicate: bool = False,
        fields: Optional[Dict[str, Any]] = None,
    ) -> StoryVersion:
        """
        创建故事版本并设为唯一激活版本

        Create a story version and make it the only active one.

        Args:
            structure: save_the_cat / hero_journey / dan_harmon
            copy_from_version_id: 来源版本 / Version to copy from
            is_duplicate: 完整复制 / Copy every field instead of just the premise seed
            fields: 初始字段 / Initial field values
        """
        structure = normalize_structure(structure)
        async with self.transaction() as session:
            await ProjectStorage.owned(session, project_id, user_id)

            count = (
                await session.execute(
                    select(func.count(StoryVersion.id)).where(
                        StoryVersion.project_id == project_id,
                        StoryVersion.structure == structure,
                        StoryVersion.deleted_at.is_(None),
                    )
                )
            ).scalar() or 0
            number = int(count) + 1

            version = StoryVersion(
                project_id=project_id,
                version_number=number,
                version_name=name or f"{structure_label(structure)} v{number}",
                structure=structure,
                is_active=True,
                beats={},
                key_actions={},
                tension_levels={},
                want_need_matrix={},
                beat_characters={},
                character_ids=[],
            )

            if copy_from_version_id:
                source = await self.get_live(session, StoryVersion, copy_from_version_id, "Story version")
                copied = TEXT_FIELDS + JSON_FIELDS if is_duplicate else SEED_FIELDS
                for field in copied:
                    value = getattr(source, field)
                    setattr(version, field, dict(value) if isinstance(value, dict) else value)
            self.apply_updates(version, fields or {}, TEXT_FIELDS + JSON_FIELDS)

            await self.deactivate_siblings(session, StoryVersion, "project_id", project_id)
            session.add(version)
            await session.flush()
            return version

    async def update_version(self, version_id: str, updates: Dict[str, Any]) -> StoryVersion:
        async with self.transaction() as session:
            version = await self.get_live(session, StoryVersion, version_id, "Story version")
            self.apply_updates(version, updates, TEXT_FIELDS + JSON_FIELDS + ("version_name",))
            version.updated_at = utcnow()
            return version

    async def activate_version(self, version_id: str) -> StoryVersion:
        async with self.transaction() as session:
            return await self.activate_exclusive(session, StoryVersion, version_id, "project_id", "Story version")

    async def delete_version(self, version_id: str) -> Optional[StoryVersion]:
        """
        软删除版本；若删除的是激活版本，则激活最近的剩余版本

        Soft delete a version. Deleting the active one promotes the most recent
        remaining version, which is returned.
        """
        async with self.transaction() as session:
            version = await self.get_live(session, StoryVersion, version_id, "Story version")
            was_active = version.is_active
            version.deleted_at = utcnow()
            version.is_active = False
            await session.flush()
            if not was_active:
                return None
            result = await session.execute(
                select(StoryVersion)
                .where(StoryVersion.project_id == version.project_id, StoryVersion.deleted_at.is_(None))
                .order_by(StoryVersion.created_at.desc())
                .limit(1)
            )
            replacement = result.scalars().first()
            if replacement is not None:
                replacement.is_active = True
            return replacement
