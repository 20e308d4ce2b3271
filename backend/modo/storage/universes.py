"""
Universe Storage
World-building versions (environment, society, government, economy, culture, history, lore).
"""

from typing import Any, Dict, List, Optional

from sqlalchemy import select

from modo.exceptions import NotFoundError
from modo.models import UniverseVersion
from modo.storage.base import BaseStorage, utcnow

UNIVERSE_SECTIONS = ("environment", "society", "government", "economy", "culture", "history", "lore")


class UniverseStorage(BaseStorage):
    """Database storage for universe versions."""

    async def list_versions(self, project_id: str) -> List[UniverseVersion]:
        async with self.session() as session:
            result = await session.execute(
                select(UniverseVersion)
                .where(UniverseVersion.project_id == project_id, UniverseVersion.deleted_at.is_(None))
                .order_by(UniverseVersion.version_number.desc())
            )
            return list(result.scalars().all())

    async def get_version(self, version_id: str, project_id: Optional[str] = None) -> UniverseVersion:
        async with self.session() as session:
            version = await self.get_live(session, UniverseVersion, version_id, "Universe version")
            if project_id is not None and version.project_id != project_id:
                raise NotFoundError("Universe version not found")
            return version

    async def get_active(self, project_id: str) -> Optional[UniverseVersion]:
        async with self.session() as session:
            result = await session.execute(
                select(UniverseVersion).where(
                    UniverseVersion.project_id == project_id,
                    UniverseVersion.is_active.is_(True),
                    UniverseVersion.deleted_at.is_(None),
                )
            )
            return result.scalars().first()

    async def create_version(
        self,
        project_id: str,
        name: Optional[str] = None,
        story_version_id: Optional[str] = None,
        copy_from_version_id: Optional[str] = None,
        sections: Optional[Dict[str, Any]] = None,
    ) -> UniverseVersion:
        async with self.transaction() as session:
            number = await self.next_version_number(session, UniverseVersion, "project_id", project_id)
            version = UniverseVersion(
                project_id=project_id,
                story_version_id=story_version_id,
                version_number=number,
                version_name=name or f"Universe v{number}",
                is_active=True,
            )
            for section in UNIVERSE_SECTIONS:
                setattr(version, section, {})
            if copy_from_version_id:
                source = await self.get_live(session, UniverseVersion, copy_from_version_id, "Universe version")
                for section in UNIVERSE_SECTIONS:
                    setattr(version, section, dict(getattr(source, section) or {}))
            self.apply_updates(version, sections or {}, UNIVERSE_SECTIONS)

            await self.deactivate_siblings(session, UniverseVersion, "project_id", project_id)
            session.add(version)
            await session.flush()
            return version

    async def update_version(self, version_id: str, updates: Dict[str, Any]) -> UniverseVersion:
        async with self.transaction() as session:
            version = await self.get_live(session, UniverseVersion, version_id, "Universe version")
            self.apply_updates(version, updates, UNIVERSE_SECTIONS + ("version_name", "story_version_id"))
            version.updated_at = utcnow()
            return version

    async def activate_version(self, version_id: str) -> UniverseVersion:
        async with self.transaction() as session:
            return await self.activate_exclusive(session, UniverseVersion, version_id, "project_id", "Universe version")

    async def delete_version(self, version_id: str) -> None:
        async with self.transaction() as session:
            version = await self.get_live(session, UniverseVersion, version_id, "Universe version")
            version.deleted_at = utcnow()
            version.is_active = False
