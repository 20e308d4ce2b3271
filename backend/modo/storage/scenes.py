"""
Scene Storage
Scene plots per story version, their shot lists, script versions and storyboard images.
"""

from typing import Any, Dict, List, Optional, Tuple

from sqlalchemy import delete, select, update
from sqlalchemy.ext.asyncio import AsyncSession

from modo.exceptions import NotFoundError, ValidationError
from modo.models import SceneImageVersion, ScenePlot, SceneScriptVersion, SceneShot
from modo.models.visual import SCENE_STATUSES
from modo.storage.base import BaseStorage, utcnow
from modo.utils.text import compute_context_hash

SCENE_FIELDS = ("title", "synopsis", "location", "time_of_day", "characters")
SHOT_FIELDS = ("shot_type", "camera_angle", "camera_movement", "duration_seconds", "action", "dialogue")


def advance_status(scene: ScenePlot, target: str) -> None:
    """Move a scene forward to `target`; statuses never move backwards."""
    if SCENE_STATUSES.index(target) > SCENE_STATUSES.index(scene.status or "empty"):
        scene.status = target


class SceneStorage(BaseStorage):
    """Database storage for scene plots and everything hanging off them."""

    async def create_scenes_from_distribution(
        self,
        project_id: str,
        story_version_id: str,
        distribution: List[Tuple[str, int]],
    ) -> List[ScenePlot]:
        """
        按分布重建场景 / Replace a story version's scenes from a beat distribution

        Args:
            distribution: [(beat_key, scene_count), ...] in beat order.

        Existing live scenes are soft-deleted; new empty scenes are numbered
        1..N across the whole version.
        """
        async with self.transaction() as session:
            await session.execute(
                update(ScenePlot)
                .where(ScenePlot.story_version_id == story_version_id, ScenePlot.deleted_at.is_(None))
                .values(deleted_at=utcnow())
            )
            scenes = []
            number = 1
            for beat_key, count in distribution:
                for _ in range(max(int(count), 0)):
                    scenes.append(
                        ScenePlot(
                            project_id=project_id,
                            story_version_id=story_version_id,
                            beat_key=beat_key,
                            scene_number=number,
                            characters=[],
                            status="empty",
                        )
                    )
                    number += 1
            session.add_all(scenes)
            await session.flush()
            return scenes

    async def list_scenes(self, story_version_id: str) -> List[ScenePlot]:
        async with self.session() as session:
            result = await session.execute(
                select(ScenePlot)
                .where(ScenePlot.story_version_id == story_version_id, ScenePlot.deleted_at.is_(None))
                .order_by(ScenePlot.scene_number)
            )
            return list(result.scalars().all())

    async def get_scene(self, scene_id: str) -> ScenePlot:
        async with self.session() as session:
            return await self.get_live(session, ScenePlot, scene_id, "Scene")

    async def update_scene(self, scene_id: str, updates: Dict[str, Any]) -> ScenePlot:
        async with self.transaction() as session:
            scene = await self.get_live(session, ScenePlot, scene_id, "Scene")
            self.apply_updates(scene, updates, SCENE_FIELDS)
            if scene.synopsis:
                advance_status(scene, "plotted")
            scene.updated_at = utcnow()
            return scene

    async def delete_scene(self, scene_id: str) -> None:
        async with self.transaction() as session:
            scene = await self.get_live(session, ScenePlot, scene_id, "Scene")
            scene.deleted_at = utcnow()

    # ------------------------------------------------------------------
    # Shots
    # ------------------------------------------------------------------

    @staticmethod
    async def _shots(session: AsyncSession, scene_id: str) -> List[SceneShot]:
        result = await session.execute(
            select(SceneShot).where(SceneShot.scene_id == scene_id).order_by(SceneShot.shot_number)
        )
        return list(result.scalars().all())

    async def list_shots(self, scene_id: str) -> List[SceneShot]:
        async with self.session() as session:
            return await self._shots(session, scene_id)

    async def replace_shots(self, scene_id: str, shots: List[Dict[str, Any]]) -> List[SceneShot]:
        """Replace the shot list; shots are renumbered 1..n in list order."""
        async with self.transaction() as session:
            scene = await self.get_live(session, ScenePlot, scene_id, "Scene")
            await session.execute(delete(SceneShot).where(SceneShot.scene_id == scene_id))
            rows = []
            for number, data in enumerate(shots, start=1):
                shot = SceneShot(scene_id=scene_id, shot_number=number, action="")
                self.apply_updates(shot, data, SHOT_FIELDS)
                rows.append(shot)
            session.add_all(rows)
            if rows:
                advance_status(scene, "shot_listed")
            await session.flush()
            return rows

    async def get_context_hash(self, scene_id: str) -> str:
        async with self.session() as session:
            scene = await self.get_live(session, ScenePlot, scene_id, "Scene")
            return compute_context_hash(scene.synopsis, await self._shots(session, scene_id))

    # ------------------------------------------------------------------
    # Script versions
    # ------------------------------------------------------------------

    async def list_script_versions(self, scene_id: str) -> List[SceneScriptVersion]:
        async with self.session() as session:
            result = await session.execute(
                select(SceneScriptVersion)
                .where(SceneScriptVersion.scene_id == scene_id)
                .order_by(SceneScriptVersion.version_number.desc())
            )
            return list(result.scalars().all())

    async def save_script(
        self,
        scene_id: str,
        content: str,
        force_new_version: bool = False,
        source: str = "manual",
        model_used: Optional[str] = None,
        credit_cost: int = 0,
    ) -> Tuple[SceneScriptVersion, bool]:
        """
        保存剧本 / Save a scene script

        A manual edit made against the same context (synopsis + shots) as the
        latest version updates that version in place, unless
        `force_new_version`. Everything else becomes a new active version.

        Returns:
            (version, created)
        """
        if not content or not content.strip():
            raise ValidationError("content is required")
        async with self.transaction() as session:
            scene = await self.get_live(session, ScenePlot, scene_id, "Scene")
            context_hash = compute_context_hash(scene.synopsis, await self._shots(session, scene_id))

            latest = (
                await session.execute(
                    select(SceneScriptVersion)
                    .where(SceneScriptVersion.scene_id == scene_id)
                    .order_by(SceneScriptVersion.version_number.desc())
                    .limit(1)
                )
            ).scalars().first()

            if (
                source == "manual"
                and not force_new_version
                and latest is not None
                and latest.context_hash == context_hash
            ):
                latest.content = content
                latest.updated_at = utcnow()
                advance_status(scene, "scripted")
                await session.flush()
                return latest, False

            number = (latest.version_number if latest else 0) + 1
            await self.deactivate_siblings(session, SceneScriptVersion, "scene_id", scene_id)
            version = SceneScriptVersion(
                scene_id=scene_id,
                version_number=number,
                content=content,
                context_hash=context_hash,
                is_active=True,
                source=source,
                model_used=model_used,
                credit_cost=credit_cost,
            )
            session.add(version)
            advance_status(scene, "scripted")
            await session.flush()
            return version, True

    async def get_script_version(self, version_id: str) -> SceneScriptVersion:
        return await self.fetch(SceneScriptVersion, version_id, "Script version")

    async def activate_script_version(self, version_id: str) -> SceneScriptVersion:
        async with self.transaction() as session:
            return await self.activate_exclusive(session, SceneScriptVersion, version_id, "scene_id", "Script version")

    # ------------------------------------------------------------------
    # Storyboard images
    # ------------------------------------------------------------------

    async def list_image_versions(
        self, scene_id: str
    ) -> Tuple[List[SceneImageVersion], List[SceneImageVersion], Optional[SceneImageVersion]]:
        """Return (live versions, deleted versions, active version)."""
        async with self.session() as session:
            result = await session.execute(
                select(SceneImageVersion)
                .where(SceneImageVersion.scene_id == scene_id)
                .order_by(SceneImageVersion.version_number.desc())
            )
            rows = list(result.scalars().all())
        live = [v for v in rows if v.deleted_at is None]
        deleted = [v for v in rows if v.deleted_at is not None]
        active = next((v for v in live if v.is_active), None)
        return live, deleted, active

    async def add_image_version(
        self,
        scene_id: str,
        image_url: str,
        prompt: Optional[str] = None,
        is_active: bool = True,
        source: str = "uploaded",
        model_used: Optional[str] = None,
        credit_cost: int = 0,
    ) -> SceneImageVersion:
        if not image_url:
            raise ValidationError("image_url is required")
        async with self.transaction() as session:
            scene = await self.get_live(session, ScenePlot, scene_id, "Scene")
            number = await self.next_version_number(session, SceneImageVersion, "scene_id", scene_id)
            if is_active:
                await self.deactivate_siblings(session, SceneImageVersion, "scene_id", scene_id)
            version = SceneImageVersion(
                scene_id=scene_id,
                version_number=number,
                image_url=image_url,
                prompt=prompt,
                is_active=is_active,
                source=source,
                model_used=model_used,
                credit_cost=credit_cost,
            )
            session.add(version)
            advance_status(scene, "storyboarded")
            await session.flush()
            return version

    async def get_image_version(self, version_id: str) -> SceneImageVersion:
        return await self.fetch(SceneImageVersion, version_id, "Version")

    async def activate_image_version(self, version_id: str) -> SceneImageVersion:
        async with self.transaction() as session:
            version = await session.get(SceneImageVersion, version_id)
            if version is None or version.deleted_at is not None:
                raise NotFoundError("Version not found")
            return await self.activate_exclusive(session, SceneImageVersion, version_id, "scene_id", "Version")

    async def delete_image_version(self, version_id: str) -> None:
        async with self.transaction() as session:
            version = await self.get_live(session, SceneImageVersion, version_id, "Version")
            version.deleted_at = utcnow()
            version.is_active = False
