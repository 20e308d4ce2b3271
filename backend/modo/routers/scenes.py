"""
Scenes Router / 场景路由

场景分布、场景大纲、分镜、剧本版本与分镜图版本。
"""

from fastapi import APIRouter, Depends, HTTPException

from modo.dependencies import get_project_storage, get_scene_storage
from modo.exceptions import ModoError
from modo.schemas.project import OwnerRequest
from modo.schemas.visual import (
    DistributionRequest,
    SceneImageCreate,
    SceneImageVersion,
    ScenePlot,
    SceneScriptVersion,
    SceneShot,
    ScenesCreate,
    SceneUpdate,
    ScriptSave,
    ShotsReplace,
)
from modo.services.scene_service import scene_service
from modo.storage.projects import ProjectStorage
from modo.storage.scenes import SceneStorage
from modo.utils.logger import get_logger

logger = get_logger(__name__)

router = APIRouter(tags=["scenes"])


# ----------------------------------------------------------------------
# Distribution and scene plots
# ----------------------------------------------------------------------


@router.post("/projects/{project_id}/scene-plots/generate-distribution")
async def generate_distribution(project_id: str, payload: DistributionRequest):
    """
    AI 生成场景分布

    场景总数 = ceil(时长 × 每分钟场景数)，结果归一化后写入项目的 storyboard_config。

    Returns:
        {"success", "distribution", "generation_id", "credit_cost"}
    """
    try:
        distribution = await scene_service.generate_distribution(
            project_id,
            payload.story_version_id,
            payload.user_id,
            payload.duration_minutes,
            payload.scenes_per_minute,
        )
        generation_id = distribution.pop("generation_id")
        credit_cost = distribution.pop("credit_cost")
        return {
            "success": True,
            "distribution": distribution,
            "generation_id": generation_id,
            "credit_cost": credit_cost,
        }
    except (HTTPException, ModoError):
        raise
    except Exception as e:
        logger.error(f"Scene distribution failed for project {project_id}: {e}")
        raise HTTPException(status_code=500, detail=str(e))


@router.get("/projects/{project_id}/scene-plots")
async def list_scenes(
    project_id: str,
    story_version_id: str,
    user_id: str,
    projects: ProjectStorage = Depends(get_project_storage),
    scenes: SceneStorage = Depends(get_scene_storage),
):
    try:
        await projects.get_owned_project(project_id, user_id)
        rows = await scenes.list_scenes(story_version_id)
        return {"success": True, "scenes": [ScenePlot.model_validate(s) for s in rows if s.project_id == project_id]}
    except (HTTPException, ModoError):
        raise
    except Exception as e:
        logger.error(f"Failed to list scenes for project {project_id}: {e}")
        raise HTTPException(status_code=500, detail=str(e))


@router.post("/projects/{project_id}/scene-plots", status_code=201)
async def create_scenes(project_id: str, payload: ScenesCreate):
    """
    按分布创建场景大纲（替换该故事版本现有场景）

    Args:
        payload.distribution: 可选 {beat_key: 场景数}；缺省时使用已保存的分布
    """
    try:
        rows = await scene_service.create_scenes_from_distribution(
            project_id, payload.story_version_id, payload.user_id, payload.distribution
        )
        return {"success": True, "scenes": [ScenePlot.model_validate(s) for s in rows], "count": len(rows)}
    except (HTTPException, ModoError):
        raise
    except Exception as e:
        logger.error(f"Failed to create scenes for project {project_id}: {e}")
        raise HTTPException(status_code=500, detail=str(e))


@router.get("/scene-plots/{scene_id}", response_model=ScenePlot)
async def get_scene(scene_id: str, user_id: str):
    try:
        return await scene_service.get_owned_scene(scene_id, user_id)
    except (HTTPException, ModoError):
        raise
    except Exception as e:
        logger.error(f"Failed to get scene {scene_id}: {e}")
        raise HTTPException(status_code=500, detail=str(e))


@router.patch("/scene-plots/{scene_id}", response_model=ScenePlot)
async def update_scene(scene_id: str, payload: SceneUpdate, scenes: SceneStorage = Depends(get_scene_storage)):
    try:
        await scene_service.get_owned_scene(scene_id, payload.user_id)
        return await scenes.update_scene(scene_id, payload.model_dump(exclude={"user_id"}, exclude_unset=True))
    except (HTTPException, ModoError):
        raise
    except Exception as e:
        logger.error(f"Failed to update scene {scene_id}: {e}")
        raise HTTPException(status_code=500, detail=str(e))


@router.delete("/scene-plots/{scene_id}")
async def delete_scene(scene_id: str, user_id: str, scenes: SceneStorage = Depends(get_scene_storage)):
    try:
        await scene_service.get_owned_scene(scene_id, user_id)
        await scenes.delete_scene(scene_id)
        return {"success": True, "message": "Scene deleted"}
    except (HTTPException, ModoError):
        raise
    except Exception as e:
        logger.error(f"Failed to delete scene {scene_id}: {e}")
        raise HTTPException(status_code=500, detail=str(e))


# ----------------------------------------------------------------------
# Shots
# ----------------------------------------------------------------------


@router.get("/scene-plots/{scene_id}/shots")
async def list_shots(scene_id: str, user_id: str, scenes: SceneStorage = Depends(get_scene_storage)):
    try:
        await scene_service.get_owned_scene(scene_id, user_id)
        shots = await scenes.list_shots(scene_id)
        return {"success": True, "shots": [SceneShot.model_validate(s) for s in shots]}
    except (HTTPException, ModoError):
        raise
    except Exception as e:
        logger.error(f"Failed to list shots for scene {scene_id}: {e}")
        raise HTTPException(status_code=500, detail=str(e))


@router.put("/scene-plots/{scene_id}/shots")
async def replace_shots(scene_id: str, payload: ShotsReplace, scenes: SceneStorage = Depends(get_scene_storage)):
    try:
        await scene_service.get_owned_scene(scene_id, payload.user_id)
        shots = await scenes.replace_shots(scene_id, [s.model_dump() for s in payload.shots])
        return {"success": True, "shots": [SceneShot.model_validate(s) for s in shots]}
    except (HTTPException, ModoError):
        raise
    except Exception as e:
        logger.error(f"Failed to replace shots for scene {scene_id}: {e}")
        raise HTTPException(status_code=500, detail=str(e))


@router.post("/scene-plots/{scene_id}/generate-shots")
async def generate_shots(scene_id: str, payload: OwnerRequest):
    try:
        shots, result = await scene_service.generate_shots(scene_id, payload.user_id)
        return {"success": True, "shots": [SceneShot.model_validate(s) for s in shots], **result.to_dict()}
    except (HTTPException, ModoError):
        raise
    except Exception as e:
        logger.error(f"Shot generation failed for scene {scene_id}: {e}")
        raise HTTPException(status_code=500, detail=str(e))


# ----------------------------------------------------------------------
# Scripts
# ----------------------------------------------------------------------


@router.get("/scene-plots/{scene_id}/scripts")
async def list_scripts(scene_id: str, user_id: str, scenes: SceneStorage = Depends(get_scene_storage)):
    try:
        await scene_service.get_owned_scene(scene_id, user_id)
        versions = await scenes.list_script_versions(scene_id)
        active = next((v for v in versions if v.is_active), None)
        return {
            "success": True,
            "versions": [SceneScriptVersion.model_validate(v) for v in versions],
            "active_version_id": active.id if active else None,
        }
    except (HTTPException, ModoError):
        raise
    except Exception as e:
        logger.error(f"Failed to list scripts for scene {scene_id}: {e}")
        raise HTTPException(status_code=500, detail=str(e))


@router.post("/scene-plots/{scene_id}/scripts")
async def save_script(scene_id: str, payload: ScriptSave, scenes: SceneStorage = Depends(get_scene_storage)):
    """
    保存手写剧本

    上下文（梗概与分镜）未变化时原地更新最新版本，除非 force_new_version。

    Returns:
        {"success", "version", "created"}
    """
    try:
        await scene_service.get_owned_scene(scene_id, payload.user_id)
        version, created = await scenes.save_script(scene_id, payload.content, payload.force_new_version)
        return {"success": True, "version": SceneScriptVersion.model_validate(version), "created": created}
    except (HTTPException, ModoError):
        raise
    except Exception as e:
        logger.error(f"Failed to save script for scene {scene_id}: {e}")
        raise HTTPException(status_code=500, detail=str(e))


@router.post("/scene-plots/{scene_id}/generate-script")
async def generate_script(scene_id: str, payload: OwnerRequest):
    """
    AI 生成剧本（新的激活版本）

    Raises:
        402: 积分不足，响应包含 required
    """
    try:
        version, result = await scene_service.generate_script(scene_id, payload.user_id)
        return {"success": True, "version": SceneScriptVersion.model_validate(version), **result.to_dict()}
    except (HTTPException, ModoError):
        raise
    except Exception as e:
        logger.error(f"Script generation failed for scene {scene_id}: {e}")
        raise HTTPException(status_code=500, detail=str(e))


@router.post("/scene-scripts/{version_id}/activate", response_model=SceneScriptVersion)
async def activate_script(version_id: str, payload: OwnerRequest, scenes: SceneStorage = Depends(get_scene_storage)):
    try:
        version = await scenes.get_script_version(version_id)
        await scene_service.get_owned_scene(version.scene_id, payload.user_id)
        return await scenes.activate_script_version(version_id)
    except (HTTPException, ModoError):
        raise
    except Exception as e:
        logger.error(f"Failed to activate script version {version_id}: {e}")
        raise HTTPException(status_code=500, detail=str(e))


# ----------------------------------------------------------------------
# Storyboard images
# ----------------------------------------------------------------------


@router.get("/scene-plots/{scene_id}/images")
async def list_images(scene_id: str, user_id: str, scenes: SceneStorage = Depends(get_scene_storage)):
    try:
        await scene_service.get_owned_scene(scene_id, user_id)
        versions, deleted, active = await scenes.list_image_versions(scene_id)
        return {
            "success": True,
            "versions": [SceneImageVersion.model_validate(v) for v in versions],
            "deleted_versions": [SceneImageVersion.model_validate(v) for v in deleted],
            "active_version": SceneImageVersion.model_validate(active) if active else None,
        }
    except (HTTPException, ModoError):
        raise
    except Exception as e:
        logger.error(f"Failed to list images for scene {scene_id}: {e}")
        raise HTTPException(status_code=500, detail=str(e))


@router.post("/scene-plots/{scene_id}/images", response_model=SceneImageVersion, status_code=201)
async def add_image(scene_id: str, payload: SceneImageCreate, scenes: SceneStorage = Depends(get_scene_storage)):
    try:
        await scene_service.get_owned_scene(scene_id, payload.user_id)
        return await scenes.add_image_version(scene_id, payload.image_url, payload.prompt, payload.is_active)
    except (HTTPException, ModoError):
        raise
    except Exception as e:
        logger.error(f"Failed to add image for scene {scene_id}: {e}")
        raise HTTPException(status_code=500, detail=str(e))


@router.post("/scene-plots/{scene_id}/generate-image")
async def generate_image(scene_id: str, payload: OwnerRequest):
    try:
        version, result = await scene_service.generate_image(scene_id, payload.user_id)
        return {"success": True, "version": SceneImageVersion.model_validate(version), **result.to_dict()}
    except (HTTPException, ModoError):
        raise
    except Exception as e:
        logger.error(f"Image generation failed for scene {scene_id}: {e}")
        raise HTTPException(status_code=500, detail=str(e))


@router.post("/scene-images/{version_id}/activate")
async def activate_image(version_id: str, payload: OwnerRequest, scenes: SceneStorage = Depends(get_scene_storage)):
    try:
        version = await scenes.get_image_version(version_id)
        await scene_service.get_owned_scene(version.scene_id, payload.user_id)
        version = await scenes.activate_image_version(version_id)
        return {
            "success": True,
            "version": SceneImageVersion.model_validate(version),
            "message": f"Version {version.version_number} is now active",
        }
    except (HTTPException, ModoError):
        raise
    except Exception as e:
        logger.error(f"Failed to activate scene image {version_id}: {e}")
        raise HTTPException(status_code=500, detail=str(e))


@router.delete("/scene-images/{version_id}")
async def delete_image(version_id: str, user_id: str, scenes: SceneStorage = Depends(get_scene_storage)):
    try:
        version = await scenes.get_image_version(version_id)
        await scene_service.get_owned_scene(version.scene_id, user_id)
        await scenes.delete_image_version(version_id)
        return {"success": True, "message": "Image version deleted"}
    except (HTTPException, ModoError):
        raise
    except Exception as e:
        logger.error(f"Failed to delete scene image {version_id}: {e}")
        raise HTTPException(status_code=500, detail=str(e))
