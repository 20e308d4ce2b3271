"""Moodboard, scene plot and animation ORM models."""

from typing import Any, Dict, List, Optional

from sqlalchemy import JSON, Boolean, ForeignKey, Integer, String, Text
from sqlalchemy.orm import Mapped, mapped_column

from modo.models.base import Base, IdMixin, SoftDeleteMixin, TimestampMixin

MOODBOARD_ITEM_STATUSES = ("empty", "has_description", "has_prompt", "has_image")
SCENE_STATUSES = ("empty", "plotted", "shot_listed", "storyboarded", "scripted")
ANIMATION_STATUSES = ("draft", "generating", "completed", "failed")
CLIP_STATUSES = ("pending", "prompt_ready", "queued", "processing", "completed", "failed")
CAMERA_MOTIONS = (
    "static",
    "pan_left",
    "pan_right",
    "zoom_in",
    "zoom_out",
    "tilt_up",
    "tilt_down",
    "orbit",
    "dolly",
)
CLIP_VIDEO_SOURCES = ("generated", "uploaded", "external_link")


# =============================================================================
# Moodboards
# =============================================================================


class Moodboard(IdMixin, TimestampMixin, SoftDeleteMixin, Base):
    __tablename__ = "moodboards"

    project_id: Mapped[str] = mapped_column(ForeignKey("projects.id"), index=True)
    story_version_id: Mapped[str] = mapped_column(ForeignKey("story_versions.id"), index=True)
    art_style: Mapped[str] = mapped_column(String(64), default="realistic")
    key_action_count: Mapped[int] = mapped_column(Integer, default=7)


class MoodboardItem(IdMixin, TimestampMixin, Base):
    __tablename__ = "moodboard_items"

    moodboard_id: Mapped[str] = mapped_column(ForeignKey("moodboards.id"), index=True)
    beat_key: Mapped[str] = mapped_column(String(64))
    beat_label: Mapped[str] = mapped_column(String(128))
    beat_content: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    beat_index: Mapped[int] = mapped_column(Integer)
    key_action_index: Mapped[int] = mapped_column(Integer)
    key_action_description: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    characters_involved: Mapped[List[str]] = mapped_column(JSON, default=list)
    universe_level: Mapped[Optional[str]] = mapped_column(String(64), nullable=True)
    prompt: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    negative_prompt: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    image_url: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    video_prompt: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    video_url: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    status: Mapped[str] = mapped_column(String(32), default="empty")


class MoodboardItemVersion(IdMixin, TimestampMixin, Base):
    __tablename__ = "moodboard_item_versions"

    item_id: Mapped[str] = mapped_column(ForeignKey("moodboard_items.id"), index=True)
    version_number: Mapped[int] = mapped_column(Integer)
    image_url: Mapped[str] = mapped_column(Text)
    prompt: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    is_active: Mapped[bool] = mapped_column(Boolean, default=False)
    model_used: Mapped[Optional[str]] = mapped_column(String(128), nullable=True)


# =============================================================================
# Scene plots
# =============================================================================


class ScenePlot(IdMixin, TimestampMixin, SoftDeleteMixin, Base):
    __tablename__ = "scene_plots"

    project_id: Mapped[str] = mapped_column(ForeignKey("projects.id"), index=True)
    story_version_id: Mapped[str] = mapped_column(ForeignKey("story_versions.id"), index=True)
    beat_key: Mapped[str] = mapped_column(String(64))
    scene_number: Mapped[int] = mapped_column(Integer)
    title: Mapped[Optional[str]] = mapped_column(String(255), nullable=True)
    synopsis: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    location: Mapped[Optional[str]] = mapped_column(String(255), nullable=True)
    time_of_day: Mapped[Optional[str]] = mapped_column(String(32), nullable=True)
    characters: Mapped[List[str]] = mapped_column(JSON, default=list)
    status: Mapped[str] = mapped_column(String(32), default="empty")


class SceneShot(IdMixin, TimestampMixin, Base):
    __tablename__ = "scene_shots"

    scene_id: Mapped[str] = mapped_column(ForeignKey("scene_plots.id"), index=True)
    shot_number: Mapped[int] = mapped_column(Integer)
    shot_type: Mapped[Optional[str]] = mapped_column(String(64), nullable=True)
    camera_angle: Mapped[Optional[str]] = mapped_column(String(64), nullable=True)
    camera_movement: Mapped[Optional[str]] = mapped_column(String(64), nullable=True)
    duration_seconds: Mapped[int] = mapped_column(Integer, default=3)
    action: Mapped[str] = mapped_column(Text, default="")
    dialogue: Mapped[Optional[str]] = mapped_column(Text, nullable=True)


class SceneScriptVersion(IdMixin, TimestampMixin, Base):
    __tablename__ = "scene_script_versions"

    scene_id: Mapped[str] = mapped_column(ForeignKey("scene_plots.id"), index=True)
    version_number: Mapped[int] = mapped_column(Integer)
    content: Mapped[str] = mapped_column(Text)
    context_hash: Mapped[Optional[str]] = mapped_column(String(32), nullable=True)
    is_active: Mapped[bool] = mapped_column(Boolean, default=False)
    # generated / manual
    source: Mapped[str] = mapped_column(String(16), default="manual")
    model_used: Mapped[Optional[str]] = mapped_column(String(128), nullable=True)
    credit_cost: Mapped[int] = mapped_column(Integer, default=0)


class SceneImageVersion(IdMixin, TimestampMixin, SoftDeleteMixin, Base):
    __tablename__ = "scene_image_versions"

    scene_id: Mapped[str] = mapped_column(ForeignKey("scene_plots.id"), index=True)
    version_number: Mapped[int] = mapped_column(Integer)
    image_url: Mapped[str] = mapped_column(Text)
    prompt: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    is_active: Mapped[bool] = mapped_column(Boolean, default=False)
    source: Mapped[str] = mapped_column(String(16), default="uploaded")
    model_used: Mapped[Optional[str]] = mapped_column(String(128), nullable=True)
    credit_cost: Mapped[int] = mapped_column(Integer, default=0)


# =============================================================================
# Animation
# =============================================================================


class AnimationVersion(IdMixin, TimestampMixin, SoftDeleteMixin, Base):
    __tablename__ = "animation_versions"

    project_id: Mapped[str] = mapped_column(ForeignKey("projects.id"), index=True)
    moodboard_id: Mapped[str] = mapped_column(ForeignKey("moodboards.id"), index=True)
    version_number: Mapped[int] = mapped_column(Integer)
    version_name: Mapped[str] = mapped_column(String(255))
    default_duration: Mapped[int] = mapped_column(Integer, default=6)
    fps: Mapped[int] = mapped_column(Integer, default=25)
    width: Mapped[int] = mapped_column(Integer, default=1920)
    height: Mapped[int] = mapped_column(Integer, default=1080)
    transition: Mapped[str] = mapped_column(String(32), default="cut")
    status: Mapped[str] = mapped_column(String(16), default="draft")
    total_clips: Mapped[int] = mapped_column(Integer, default=0)
    completed_clips: Mapped[int] = mapped_column(Integer, default=0)


class AnimationClip(IdMixin, TimestampMixin, Base):
    __tablename__ = "animation_clips"

    animation_version_id: Mapped[str] = mapped_column(ForeignKey("animation_versions.id"), index=True)
    moodboard_item_id: Mapped[Optional[str]] = mapped_column(String(36), nullable=True)
    beat_key: Mapped[Optional[str]] = mapped_column(String(64), nullable=True)
    clip_order: Mapped[int] = mapped_column(Integer)
    source_image_url: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    key_action_description: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    video_prompt: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    camera_motion: Mapped[str] = mapped_column(String(16), default="static")
    duration: Mapped[int] = mapped_column(Integer, default=6)
    video_url: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    job_id: Mapped[Optional[str]] = mapped_column(String(128), nullable=True)
    status: Mapped[str] = mapped_column(String(16), default="pending")
    error_message: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    extra: Mapped[Dict[str, Any]] = mapped_column(JSON, default=dict)


class ClipVideoVersion(IdMixin, TimestampMixin, Base):
    __tablename__ = "clip_video_versions"

    clip_id: Mapped[str] = mapped_column(ForeignKey("animation_clips.id"), index=True)
    version_number: Mapped[int] = mapped_column(Integer)
    video_url: Mapped[str] = mapped_column(Text)
    source: Mapped[str] = mapped_column(String(16), default="generated")
    is_active: Mapped[bool] = mapped_column(Boolean, default=False)
