"""
Animations Router / 动画路由

动画版本、片段、提示词与视频生成、片段视频版本。
"""

from fastapi import APIRouter, Depends, HTTPException, Query

from modo.dependencies import get_animation_storage, get_moodboard_storage, get_project_storage
from modo.exceptions import ModoError
from modo.schemas.project import OwnerRequest
from modo.schemas.visual import (
    AnimationClip,
    AnimationClipUpdate,
    AnimationVersion,
    AnimationVersionCreate,
    AnimationVersionUpdate,
    ClipVideoCreate,
    ClipVideoVersion,
    GeneratePromptsRequest,
)
from modo.services.animation_service import animation_service
from modo.storage.animations import AnimationStorage
from modo.storage.moodboards import MoodboardStorage
from modo.storage.projects import ProjectStorage
from modo.utils.logger import get_logger

logger = get_logger(__name__)

router = APIRouter(tags=["animations"])

SETTINGS_FIELDS = {"default_duration", "fps", "width", "height", "transition"}


async def _owned_clip(clip_id: str, user_id: str, animations: AnimationStorage):
    clip = await animations.get_clip(clip_id)
    await animation_service.get_owned_version(clip.animation_version_id, user_id)
    return clip


# ----------------------------------------------------------------------
# Versions
# ----------------------------------------------------------------------


@router.get("/animation-versions")
async def list_versions(
    moodboard_id: str,
    user_id: str,
    include_deleted: bool = Query(False),
    projects: ProjectStorage = Depends(get_project_storage),
    moodboards: MoodboardStorage = Depends(get_moodboard_storage),
    animations: AnimationStorage = Depends(get_animation_storage),
):
    try:
        moodboard = await moodboards.get_moodboard_by_id(moodboard_id)
        await projects.get_owned_project(moodboard.project_id, user_id)
        versions = await animations.list_versions(moodboard_id, include_deleted)
        return {"success": True, "versions": [AnimationVersion.model_validate(v) for v in versions]}
    except (HTTPException, ModoError):
        raise
    except Exception as e:
        logger.error(f"Failed to list animation versions for moodboard {moodboard_id}: {e}")
        raise HTTPException(status_code=500, detail=str(e))


@router.post("/animation-versions", status_code=201)
async def create_version(
    payload: AnimationVersionCreate,
    projects: ProjectStorage = Depends(get_project_storage),
    animations: AnimationStorage = Depends(get_animation_storage),
):
    """
    创建动画版本

    copy_from_moodboard 为真时，为每个已有图像的情绪板条目创建一个片段。

    Returns:
        {"success", "version", "clips"}
    """
    try:
        await projects.get_owned_project(payload.project_id, payload.user_id)
        version = await animations.create_version(
            payload.project_id,
            payload.moodboard_id,
            name=payload.name,
            copy_from_moodboard=payload.copy_from_moodboard,
            settings=payload.model_dump(include=SETTINGS_FIELDS, exclude_none=True),
        )
        clips = await animations.list_clips(version.id)
        logger.info(f"Created animation version {version.version_name} with {len(clips)} clips")
        return {
            "success": True,
            "version": AnimationVersion.model_validate(version),
            "clips": [AnimationClip.model_validate(c) for c in clips],
        }
    except (HTTPException, ModoError):
        raise
    except Exception as e:
        logger.error(f"Failed to create animation version: {e}")
        raise HTTPException(status_code=500, detail=str(e))


@router.patch("/animation-versions/{version_id}", response_model=AnimationVersion)
async def update_version(
    version_id: str,
    payload: AnimationVersionUpdate,
    animations: AnimationStorage = Depends(get_animation_storage),
):
    try:
        await animation_service.get_owned_version(version_id, payload.user_id)
        return await animations.update_version(version_id, payload.model_dump(exclude={"user_id"}, exclude_unset=True))
    except (HTTPException, ModoError):
        raise
    except Exception as e:
        logger.error(f"Failed to update animation version {version_id}: {e}")
        raise HTTPException(status_code=500, detail=str(e))


@router.delete("/animation-versions/{version_id}")
async def delete_version(version_id: str, user_id: str, animations: AnimationStorage = Depends(get_animation_storage)):
    try:
        await animation_service.get_owned_version(version_id, user_id)
        await animations.delete_version(version_id)
        return {"success": True, "message": "Animation version deleted"}
    except (HTTPException, ModoError):
        raise
    except Exception as e:
        logger.error(f"Failed to delete animation version {version_id}: {e}")
        raise HTTPException(status_code=500, detail=str(e))


@router.post("/animation-versions/{version_id}/restore", response_model=AnimationVersion)
async def restore_version(
    version_id: str,
    payload: OwnerRequest,
    projects: ProjectStorage = Depends(get_project_storage),
    animations: AnimationStorage = Depends(get_animation_storage),
):
    try:
        version = await animations.get_version(version_id, include_deleted=True)
        await projects.get_owned_project(version.project_id, payload.user_id)
        return await animations.restore_version(version_id)
    except (HTTPException, ModoError):
        raise
    except Exception as e:
        logger.error(f"Failed to restore animation version {version_id}: {e}")
        raise HTTPException(status_code=500, detail=str(e))


@router.get("/animation-versions/{version_id}/clips")
async def list_clips(version_id: str, user_id: str, animations: AnimationStorage = Depends(get_animation_storage)):
    try:
        version = await animation_service.get_owned_version(version_id, user_id)
        clips = await animations.list_clips(version_id)
        return {
            "success": True,
            "version": AnimationVersion.model_validate(version),
            "clips": [AnimationClip.model_validate(c) for c in clips],
        }
    except (HTTPException, ModoError):
        raise
    except Exception as e:
        logger.error(f"Failed to list clips for animation version {version_id}: {e}")
        raise HTTPException(status_code=500, detail=str(e))


@router.post("/animation-versions/{version_id}/generate-prompts")
async def generate_prompts(version_id: str, payload: GeneratePromptsRequest):
    """
    为片段批量生成视频提示词

    Returns:
        {"success", "generated", "results"}
    """
    try:
        generated, results = await animation_service.generate_prompts(version_id, payload.user_id, payload.clip_ids)
        return {"success": True, "generated": generated, "results": results}
    except (HTTPException, ModoError):
        raise
    except Exception as e:
        logger.error(f"Prompt generation failed for animation version {version_id}: {e}")
        raise HTTPException(status_code=500, detail=str(e))


# ----------------------------------------------------------------------
# Clips and clip videos
# ----------------------------------------------------------------------


@router.patch("/animation-clips/{clip_id}", response_model=AnimationClip)
async def update_clip(clip_id: str, payload: AnimationClipUpdate, animations: AnimationStorage = Depends(get_animation_storage)):
    try:
        await _owned_clip(clip_id, payload.user_id, animations)
        return await animations.update_clip(clip_id, payload.model_dump(exclude={"user_id"}, exclude_unset=True))
    except (HTTPException, ModoError):
        raise
    except Exception as e:
        logger.error(f"Failed to update clip {clip_id}: {e}")
        raise HTTPException(status_code=500, detail=str(e))


@router.post("/animation-clips/{clip_id}/generate-video")
async def generate_video(clip_id: str, payload: OwnerRequest):
    """
    片段图生视频

    失败时片段状态置为 failed 并记录错误信息，积分已退还。
    """
    try:
        video, result = await animation_service.generate_video(clip_id, payload.user_id)
        return {"success": True, "video": ClipVideoVersion.model_validate(video), **result.to_dict()}
    except (HTTPException, ModoError):
        raise
    except Exception as e:
        logger.error(f"Video generation failed for clip {clip_id}: {e}")
        raise HTTPException(status_code=500, detail=str(e))


@router.get("/animation-clips/{clip_id}/videos")
async def list_clip_videos(clip_id: str, user_id: str, animations: AnimationStorage = Depends(get_animation_storage)):
    try:
        await _owned_clip(clip_id, user_id, animations)
        videos = await animations.list_clip_videos(clip_id)
        return {"success": True, "videos": [ClipVideoVersion.model_validate(v) for v in videos]}
    except (HTTPException, ModoError):
        raise
    except Exception as e:
        logger.error(f"Failed to list videos for clip {clip_id}: {e}")
        raise HTTPException(status_code=500, detail=str(e))


@router.post("/animation-clips/{clip_id}/videos", response_model=ClipVideoVersion, status_code=201)
async def add_clip_video(clip_id: str, payload: ClipVideoCreate, animations: AnimationStorage = Depends(get_animation_storage)):
    try:
        await _owned_clip(clip_id, payload.user_id, animations)
        return await animations.add_clip_video(clip_id, payload.video_url, payload.source)
    except (HTTPException, ModoError):
        raise
    except Exception as e:
        logger.error(f"Failed to add video for clip {clip_id}: {e}")
        raise HTTPException(status_code=500, detail=str(e))


@router.post("/clip-video-versions/{video_id}/activate", response_model=ClipVideoVersion)
async def activate_clip_video(video_id: str, payload: OwnerRequest, animations: AnimationStorage = Depends(get_animation_storage)):
    try:
        video = await animations.get_clip_video(video_id)
        await _owned_clip(video.clip_id, payload.user_id, animations)
        return await animations.activate_clip_video(video_id)
    except (HTTPException, ModoError):
        raise
    except Exception as e:
        logger.error(f"Failed to activate clip video {video_id}: {e}")
        raise HTTPException(status_code=500, detail=str(e))
