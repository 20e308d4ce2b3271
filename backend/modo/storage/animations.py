"""
Animation Storage
Animation versions built from a moodboard, their clips and clip video versions.
"""

from typing import Any, Dict, List, Optional

from sqlalchemy import func, select

from modo.exceptions import NotFoundError, ValidationError
from modo.models import AnimationClip, AnimationVersion, ClipVideoVersion, Moodboard, MoodboardItem
from modo.models.visual import CAMERA_MOTIONS, CLIP_STATUSES, CLIP_VIDEO_SOURCES
from modo.storage.base import BaseStorage, utcnow

VERSION_FIELDS = ("version_name", "default_duration", "fps", "width", "height", "transition")
CLIP_FIELDS = (
    "video_prompt",
    "camera_motion",
    "duration",
    "source_image_url",
    "key_action_description",
    "video_url",
    "job_id",
    "status",
    "error_message",
    "clip_order",
)


async def recompute_progress(session, version_id: str) -> AnimationVersion:
    """Refresh completed_clips and the version status from its clips."""
    version = await session.get(AnimationVersion, version_id)
    if version is None:
        raise NotFoundError("Animation version not found")
    result = await session.execute(
        select(AnimationClip.status).where(AnimationClip.animation_version_id == version_id)
    )
    statuses = [row[0] for row in result.all()]
    version.total_clips = len(statuses)
    version.completed_clips = sum(1 for s in statuses if s == "completed")
    if statuses and version.completed_clips == len(statuses):
        version.status = "completed"
    elif any(s in ("queued", "processing") for s in statuses):
        version.status = "generating"
    elif statuses and all(s in ("completed", "failed") for s in statuses):
        version.status = "failed"
    else:
        version.status = "draft"
    version.updated_at = utcnow()
    return version


class AnimationStorage(BaseStorage):
    """Database storage for animation versions and clips."""

    async def list_versions(self, moodboard_id: str, include_deleted: bool = False) -> List[AnimationVersion]:
        stmt = select(AnimationVersion).where(AnimationVersion.moodboard_id == moodboard_id)
        if not include_deleted:
            stmt = stmt.where(AnimationVersion.deleted_at.is_(None))
        async with self.session() as session:
            result = await session.execute(stmt.order_by(AnimationVersion.version_number.desc()))
            return list(result.scalars().all())

    async def get_version(self, version_id: str, include_deleted: bool = False) -> AnimationVersion:
        async with self.session() as session:
            if include_deleted:
                version = await session.get(AnimationVersion, version_id)
                if version is None:
                    raise NotFoundError("Animation version not found")
                return version
            return await self.get_live(session, AnimationVersion, version_id, "Animation version")

    async def create_version(
        self,
        project_id: str,
        moodboard_id: str,
        name: Optional[str] = None,
        copy_from_moodboard: bool = True,
        settings: Optional[Dict[str, Any]] = None,
    ) -> AnimationVersion:
        """
        创建动画版本 / Create an animation version

        With `copy_from_moodboard`, one pending clip is created for every
        moodboard item that has an image, in beat / key-action order.
        """
        async with self.transaction() as session:
            moodboard = await self.get_live(session, Moodboard, moodboard_id, "Moodboard")
            if moodboard.project_id != project_id:
                raise NotFoundError("Moodboard not found")

            number = await self.next_version_number(session, AnimationVersion, "moodboard_id", moodboard_id)
            version = AnimationVersion(
                project_id=project_id,
                moodboard_id=moodboard_id,
                version_number=number,
                version_name=name or f"Animation v{number}",
                status="draft",
            )
            self.apply_updates(version, settings or {}, VERSION_FIELDS)
            session.add(version)
            await session.flush()

            clips = []
            if copy_from_moodboard:
                result = await session.execute(
                    select(MoodboardItem)
                    .where(MoodboardItem.moodboard_id == moodboard_id, MoodboardItem.image_url.is_not(None))
                    .order_by(MoodboardItem.beat_index, MoodboardItem.key_action_index)
                )
                for order, item in enumerate(result.scalars().all(), start=1):
                    clips.append(
                        AnimationClip(
                            animation_version_id=version.id,
                            moodboard_item_id=item.id,
                            beat_key=item.beat_key,
                            clip_order=order,
                            source_image_url=item.image_url,
                            key_action_description=item.key_action_description,
                            video_prompt=item.video_prompt,
                            duration=version.default_duration or 6,
                            camera_motion="static",
                            status="prompt_ready" if item.video_prompt else "pending",
                            extra={},
                        )
                    )
                session.add_all(clips)
            version.total_clips = len(clips)
            await session.flush()
            return version

    async def update_version(self, version_id: str, updates: Dict[str, Any]) -> AnimationVersion:
        async with self.transaction() as session:
            version = await self.get_live(session, AnimationVersion, version_id, "Animation version")
            self.apply_updates(version, updates, VERSION_FIELDS)
            version.updated_at = utcnow()
            return version

    async def delete_version(self, version_id: str) -> None:
        async with self.transaction() as session:
            version = await self.get_live(session, AnimationVersion, version_id, "Animation version")
            version.deleted_at = utcnow()

    async def restore_version(self, version_id: str) -> AnimationVersion:
        async with self.transaction() as session:
            version = await session.get(AnimationVersion, version_id)
            if version is None:
                raise NotFoundError("Animation version not found")
            version.deleted_at = None
            return version

    # ------------------------------------------------------------------
    # Clips
    # ------------------------------------------------------------------

    async def list_clips(self, version_id: str) -> List[AnimationClip]:
        async with self.session() as session:
            result = await session.execute(
                select(AnimationClip)
                .where(AnimationClip.animation_version_id == version_id)
                .order_by(AnimationClip.clip_order)
            )
            return list(result.scalars().all())

    async def get_clip(self, clip_id: str) -> AnimationClip:
        async with self.session() as session:
            return await self.get_live(session, AnimationClip, clip_id, "Clip")

    async def update_clip(self, clip_id: str, updates: Dict[str, Any]) -> AnimationClip:
        if updates.get("camera_motion") is not None and updates["camera_motion"] not in CAMERA_MOTIONS:
            raise ValidationError(f"Invalid camera_motion: {updates['camera_motion']}")
        if updates.get("status") is not None and updates["status"] not in CLIP_STATUSES:
            raise ValidationError(f"Invalid clip status: {updates['status']}")
        async with self.transaction() as session:
            clip = await self.get_live(session, AnimationClip, clip_id, "Clip")
            self.apply_updates(clip, updates, CLIP_FIELDS)
            if updates.get("status") is not None:
                await session.flush()
                await recompute_progress(session, clip.animation_version_id)
            return clip

    async def mark_clip_failed(self, clip_id: str, error_message: str) -> AnimationClip:
        async with self.transaction() as session:
            clip = await self.get_live(session, AnimationClip, clip_id, "Clip")
            clip.status = "failed"
            clip.error_message = error_message
            await session.flush()
            await recompute_progress(session, clip.animation_version_id)
            return clip

    # ------------------------------------------------------------------
    # Clip video versions
    # ------------------------------------------------------------------

    async def list_clip_videos(self, clip_id: str) -> List[ClipVideoVersion]:
        async with self.session() as session:
            result = await session.execute(
                select(ClipVideoVersion)
                .where(ClipVideoVersion.clip_id == clip_id)
                .order_by(ClipVideoVersion.version_number.desc())
            )
            return list(result.scalars().all())

    async def add_clip_video(self, clip_id: str, video_url: str, source: str = "uploaded") -> ClipVideoVersion:
        """
        新增激活的视频版本 / Add a new active clip video

        The clip takes the url and becomes `completed`; the parent
        version's progress is recomputed in the same transaction.
        """
        if not video_url:
            raise ValidationError("video_url is required")
        if source not in CLIP_VIDEO_SOURCES:
            raise ValidationError(f"Invalid video source: {source}")
        async with self.transaction() as session:
            clip = await self.get_live(session, AnimationClip, clip_id, "Clip")
            number = await self.next_version_number(session, ClipVideoVersion, "clip_id", clip_id)
            await self.deactivate_siblings(session, ClipVideoVersion, "clip_id", clip_id)
            video = ClipVideoVersion(
                clip_id=clip_id,
                version_number=number,
                video_url=video_url,
                source=source,
                is_active=True,
            )
            session.add(video)
            clip.video_url = video_url
            clip.status = "completed"
            clip.error_message = None
            await session.flush()
            await recompute_progress(session, clip.animation_version_id)
            return video

    async def get_clip_video(self, video_id: str) -> ClipVideoVersion:
        return await self.fetch(ClipVideoVersion, video_id, "Clip video")

    async def activate_clip_video(self, video_id: str) -> ClipVideoVersion:
        async with self.transaction() as session:
            video = await self.activate_exclusive(session, ClipVideoVersion, video_id, "clip_id", "Clip video")
            clip = await session.get(AnimationClip, video.clip_id)
            if clip is not None:
                clip.video_url = video.video_url
            return video

    async def count_versions(self, project_id: str) -> int:
        async with self.session() as session:
            result = await session.execute(
                select(func.count(AnimationVersion.id)).where(
                    AnimationVersion.project_id == project_id, AnimationVersion.deleted_at.is_(None)
                )
            )
            return int(result.scalar() or 0)
