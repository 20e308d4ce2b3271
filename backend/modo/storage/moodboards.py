"""
Moodboard Storage
Moodboards per story version, their beat/key-action items and item image versions.
"""

from typing import Any, Dict, List, Optional, Tuple

from sqlalchemy import select

from modo.exceptions import NotFoundError, ValidationError
from modo.models import Moodboard, MoodboardItem, MoodboardItemVersion, StoryVersion
from modo.models.visual import MOODBOARD_ITEM_STATUSES
from modo.storage.base import BaseStorage, utcnow
from modo.story_structures import get_beats

ITEM_FIELDS = (
    "key_action_description",
    "characters_involved",
    "universe_level",
    "prompt",
    "negative_prompt",
    "image_url",
    "video_prompt",
    "video_url",
    "status",
)
MIN_KEY_ACTIONS = 3
MAX_KEY_ACTIONS = 10


def _check_key_action_count(count: int) -> None:
    if count < MIN_KEY_ACTIONS or count > MAX_KEY_ACTIONS:
        raise ValidationError(f"key_action_count must be between {MIN_KEY_ACTIONS} and {MAX_KEY_ACTIONS}")


class MoodboardStorage(BaseStorage):
    """Database storage for moodboards and their items."""

    async def get_moodboard(self, project_id: str, story_version_id: str) -> Optional[Tuple[Moodboard, List[MoodboardItem]]]:
        """Live moodboard of a story version with its ordered items, or None."""
        async with self.session() as session:
            result = await session.execute(
                select(Moodboard).where(
                    Moodboard.project_id == project_id,
                    Moodboard.story_version_id == story_version_id,
                    Moodboard.deleted_at.is_(None),
                )
            )
            moodboard = result.scalars().first()
            if moodboard is None:
                return None
            return moodboard, await self._items(session, moodboard.id)

    async def get_moodboard_by_id(self, moodboard_id: str, project_id: Optional[str] = None) -> Moodboard:
        async with self.session() as session:
            moodboard = await self.get_live(session, Moodboard, moodboard_id, "Moodboard")
            if project_id is not None and moodboard.project_id != project_id:
                raise NotFoundError("Moodboard not found")
            return moodboard

    @staticmethod
    async def _items(session, moodboard_id: str) -> List[MoodboardItem]:
        result = await session.execute(
            select(MoodboardItem)
            .where(MoodboardItem.moodboard_id == moodboard_id)
            .order_by(MoodboardItem.beat_index, MoodboardItem.key_action_index)
        )
        return list(result.scalars().all())

    async def create_moodboard(
        self,
        project_id: str,
        story_version_id: Optional[str],
        art_style: str = "realistic",
        key_action_count: int = 7,
    ) -> Tuple[Moodboard, List[MoodboardItem]]:
        """
        创建情绪板并按节拍初始化条目

        Create a moodboard and seed `key_action_count` empty items for every
        beat of the story version's structure.

        Raises:
            ValidationError: 缺少 story_version_id 或已存在情绪板 / Missing id or moodboard exists
            NotFoundError: 故事版本不存在 / Story version missing
        """
        if not story_version_id:
            raise ValidationError("story_version_id is required")
        _check_key_action_count(key_action_count)

        async with self.transaction() as session:
            existing = await session.execute(
                select(Moodboard.id).where(
                    Moodboard.story_version_id == story_version_id, Moodboard.deleted_at.is_(None)
                )
            )
            if existing.first():
                raise ValidationError("Moodboard already exists for this story version")

            story = await self.get_live(session, StoryVersion, story_version_id, "Story version")
            if story.project_id != project_id:
                raise NotFoundError("Story version not found")

            moodboard = Moodboard(
                project_id=project_id,
                story_version_id=story_version_id,
                art_style=art_style or "realistic",
                key_action_count=key_action_count,
            )
            session.add(moodboard)
            await session.flush()

            beats_content = story.beats or {}
            items = []
            for beat_index, beat in enumerate(get_beats(story.structure), start=1):
                for action_index in range(1, key_action_count + 1):
                    items.append(
                        MoodboardItem(
                            moodboard_id=moodboard.id,
                            beat_key=beat.key,
                            beat_label=beat.label,
                            beat_content=beats_content.get(beat.key) or "",
                            beat_index=beat_index,
                            key_action_index=action_index,
                            characters_involved=[],
                            status="empty",
                        )
                    )
            session.add_all(items)
            await session.flush()
            return moodboard, items

    async def update_moodboard(self, moodboard_id: str, updates: Dict[str, Any]) -> Moodboard:
        if updates.get("key_action_count") is not None:
            _check_key_action_count(updates["key_action_count"])
        async with self.transaction() as session:
            moodboard = await self.get_live(session, Moodboard, moodboard_id, "Moodboard")
            self.apply_updates(moodboard, updates, ("art_style", "key_action_count"))
            moodboard.updated_at = utcnow()
            return moodboard

    async def delete_moodboard(self, moodboard_id: str) -> None:
        async with self.transaction() as session:
            moodboard = await self.get_live(session, Moodboard, moodboard_id, "Moodboard")
            moodboard.deleted_at = utcnow()

    # ------------------------------------------------------------------
    # Items
    # ------------------------------------------------------------------

    async def list_items(
        self,
        moodboard_id: str,
        beat_key: Optional[str] = None,
        item_id: Optional[str] = None,
    ) -> List[MoodboardItem]:
        stmt = select(MoodboardItem).where(MoodboardItem.moodboard_id == moodboard_id)
        if beat_key:
            stmt = stmt.where(MoodboardItem.beat_key == beat_key)
        if item_id:
            stmt = stmt.where(MoodboardItem.id == item_id)
        async with self.session() as session:
            result = await session.execute(stmt.order_by(MoodboardItem.beat_index, MoodboardItem.key_action_index))
            return list(result.scalars().all())

    async def get_item(self, item_id: str) -> MoodboardItem:
        async with self.session() as session:
            return await self.get_live(session, MoodboardItem, item_id, "Moodboard item")

    async def update_item(self, item_id: str, updates: Dict[str, Any]) -> MoodboardItem:
        if updates.get("status") is not None and updates["status"] not in MOODBOARD_ITEM_STATUSES:
            raise ValidationError(f"Invalid item status: {updates['status']}")
        async with self.transaction() as session:
            item = await self.get_live(session, MoodboardItem, item_id, "Moodboard item")
            self.apply_updates(item, updates, ITEM_FIELDS)
            return item

    # ------------------------------------------------------------------
    # Item image versions
    # ------------------------------------------------------------------

    async def add_item_version(
        self,
        item_id: str,
        image_url: str,
        prompt: Optional[str] = None,
        model_used: Optional[str] = None,
    ) -> MoodboardItemVersion:
        """New active image version; the item takes its url and becomes `has_image`."""
        async with self.transaction() as session:
            item = await self.get_live(session, MoodboardItem, item_id, "Moodboard item")
            number = await self.next_version_number(session, MoodboardItemVersion, "item_id", item_id)
            await self.deactivate_siblings(session, MoodboardItemVersion, "item_id", item_id)
            version = MoodboardItemVersion(
                item_id=item_id,
                version_number=number,
                image_url=image_url,
                prompt=prompt,
                is_active=True,
                model_used=model_used,
            )
            session.add(version)
            item.image_url = image_url
            item.status = "has_image"
            await session.flush()
            return version

    async def list_item_versions(self, item_id: str) -> List[MoodboardItemVersion]:
        async with self.session() as session:
            result = await session.execute(
                select(MoodboardItemVersion)
                .where(MoodboardItemVersion.item_id == item_id)
                .order_by(MoodboardItemVersion.version_number.desc())
            )
            return list(result.scalars().all())

    async def get_item_version(self, version_id: str) -> MoodboardItemVersion:
        return await self.fetch(MoodboardItemVersion, version_id, "Item version")

    async def activate_item_version(self, version_id: str) -> MoodboardItemVersion:
        async with self.transaction() as session:
            version = await self.activate_exclusive(session, MoodboardItemVersion, version_id, "item_id", "Item version")
            item = await session.get(MoodboardItem, version.item_id)
            if item is not None:
                item.image_url = version.image_url
                item.status = "has_image"
            return version
