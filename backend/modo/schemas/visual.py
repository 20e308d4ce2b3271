"""
Moodboard, scene and animation schema models.
"""

from datetime import datetime
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, Field


# =============================================================================
# Moodboards
# =============================================================================


class MoodboardCreate(BaseModel):
    user_id: str
    story_version_id: Optional[str] = None
    art_style: str = "realistic"
    key_action_count: int = Field(default=7, ge=3, le=10)


class MoodboardUpdate(BaseModel):
    user_id: str
    moodboard_id: str
    art_style: Optional[str] = None
    key_action_count: Optional[int] = Field(default=None, ge=3, le=10)


class MoodboardGenerate(BaseModel):
    user_id: str
    moodboard_id: str
    type: str = Field(..., description="key_actions or prompts")
    beat_key: Optional[str] = None
    item_id: Optional[str] = None


class Moodboard(BaseModel):
    id: str
    project_id: str
    story_version_id: str
    art_style: str
    key_action_count: int
    created_at: Optional[datetime] = None

    class Config:
        from_attributes = True


class MoodboardItemUpdate(BaseModel):
    user_id: str
    key_action_description: Optional[str] = None
    characters_involved: Optional[List[str]] = None
    universe_level: Optional[str] = None
    prompt: Optional[str] = None
    negative_prompt: Optional[str] = None
    image_url: Optional[str] = None
    video_prompt: Optional[str] = None
    video_url: Optional[str] = None
    status: Optional[str] = None


class MoodboardItem(BaseModel):
    id: str
    moodboard_id: str
    beat_key: str
    beat_label: str
    beat_content: Optional[str] = None
    beat_index: int
    key_action_index: int
    key_action_description: Optional[str] = None
    characters_involved: List[str] = Field(default_factory=list)
    universe_level: Optional[str] = None
    prompt: Optional[str] = None
    negative_prompt: Optional[str] = None
    image_url: Optional[str] = None
    video_prompt: Optional[str] = None
    video_url: Optional[str] = None
    status: str

    class Config:
        from_attributes = True


class MoodboardItemVersion(BaseModel):
    id: str
    item_id: str
    version_number: int
    image_url: str
    prompt: Optional[str] = None
    is_active: bool
    model_used: Optional[str] = None
    created_at: Optional[datetime] = None

    class Config:
        from_attributes = True


# =============================================================================
# Scenes
# =============================================================================


class DistributionRequest(BaseModel):
    user_id: str
    story_version_id: str
    duration_minutes: float = Field(..., gt=0, le=600, allow_inf_nan=False)
    scenes_per_minute: float = Field(default=1, gt=0, le=10, allow_inf_nan=False)


class ScenesCreate(BaseModel):
    user_id: str
    story_version_id: str
    distribution: Optional[Dict[str, int]] = None


class SceneUpdate(BaseModel):
    user_id: str
    title: Optional[str] = None
    synopsis: Optional[str] = None
    location: Optional[str] = None
    time_of_day: Optional[str] = None
    characters: Optional[List[str]] = None


class ScenePlot(BaseModel):
    id: str
    project_id: str
    story_version_id: str
    beat_key: str
    scene_number: int
    title: Optional[str] = None
    synopsis: Optional[str] = None
    location: Optional[str] = None
    time_of_day: Optional[str] = None
    characters: List[str] = Field(default_factory=list)
    status: str

    class Config:
        from_attributes = True


class ShotIn(BaseModel):
    shot_type: Optional[str] = None
    camera_angle: Optional[str] = None
    camera_movement: Optional[str] = None
    duration_seconds: int = Field(default=3, ge=1)
    action: str = ""
    dialogue: Optional[str] = None


class ShotsReplace(BaseModel):
    user_id: str
    shots: List[ShotIn] = Field(default_factory=list)


class SceneShot(ShotIn):
    id: str
    scene_id: str
    shot_number: int

    class Config:
        from_attributes = True


class ScriptSave(BaseModel):
    user_id: str
    content: str = Field(..., min_length=1)
    force_new_version: bool = False


class SceneScriptVersion(BaseModel):
    id: str
    scene_id: str
    version_number: int
    content: str
    context_hash: Optional[str] = None
    is_active: bool
    source: str
    model_used: Optional[str] = None
    credit_cost: int = 0
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    class Config:
        from_attributes = True


class SceneImageCreate(BaseModel):
    user_id: str
    image_url: str
    prompt: Optional[str] = None
    is_active: bool = True


class SceneImageVersion(BaseModel):
    id: str
    scene_id: str
    version_number: int
    image_url: str
    prompt: Optional[str] = None
    is_active: bool
    source: str
    model_used: Optional[str] = None
    credit_cost: int = 0
    created_at: Optional[datetime] = None

    class Config:
        from_attributes = True


# =============================================================================
# Animations
# =============================================================================


class AnimationSettings(BaseModel):
    default_duration: Optional[int] = Field(default=None, ge=1)
    fps: Optional[int] = Field(default=None, ge=1)
    width: Optional[int] = Field(default=None, ge=1)
    height: Optional[int] = Field(default=None, ge=1)
    transition: Optional[str] = None


class AnimationVersionCreate(AnimationSettings):
    user_id: str
    project_id: str
    moodboard_id: str
    name: Optional[str] = None
    copy_from_moodboard: bool = True


class AnimationVersionUpdate(AnimationSettings):
    user_id: str
    version_name: Optional[str] = None


class AnimationVersion(BaseModel):
    id: str
    project_id: str
    moodboard_id: str
    version_number: int
    version_name: str
    default_duration: int
    fps: int
    width: int
    height: int
    transition: str
    status: str
    total_clips: int
    completed_clips: int
    created_at: Optional[datetime] = None
    deleted_at: Optional[datetime] = None

    class Config:
        from_attributes = True


class GeneratePromptsRequest(BaseModel):
    user_id: str
    clip_ids: Optional[List[str]] = None


class AnimationClipUpdate(BaseModel):
    user_id: str
    video_prompt: Optional[str] = None
    camera_motion: Optional[str] = None
    duration: Optional[int] = Field(default=None, ge=1)
    clip_order: Optional[int] = None


class AnimationClip(BaseModel):
    id: str
    animation_version_id: str
    moodboard_item_id: Optional[str] = None
    beat_key: Optional[str] = None
    clip_order: int
    source_image_url: Optional[str] = None
    key_action_description: Optional[str] = None
    video_prompt: Optional[str] = None
    camera_motion: str
    duration: int
    video_url: Optional[str] = None
    job_id: Optional[str] = None
    status: str
    error_message: Optional[str] = None
    extra: Dict[str, Any] = Field(default_factory=dict)

    class Config:
        from_attributes = True


class ClipVideoCreate(BaseModel):
    user_id: str
    video_url: str
    source: str = Field(default="uploaded", description="uploaded or external_link")


class ClipVideoVersion(BaseModel):
    id: str
    clip_id: str
    version_number: int
    video_url: str
    source: str
    is_active: bool
    created_at: Optional[datetime] = None

    class Config:
        from_attributes = True
