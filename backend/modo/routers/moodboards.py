"""
Moodboards Router / 情绪板路由

情绪板与条目管理、关键动作/提示词批量生成、条目图像版本。
"""

from fastapi import APIRouter, Depends, HTTPException

from modo.dependencies import get_moodboard_storage, get_project_storage
from modo.exceptions import ModoError
from modo.schemas.project import OwnerRequest
from modo.schemas.visual import (
    Moodboard,
    MoodboardCreate,
    MoodboardGenerate,
    MoodboardItem,
    MoodboardItemUpdate,
    MoodboardItemVersion,
    MoodboardUpdate,
)
from modo.services.moodboard_service import moodboard_service
from modo.storage.moodboards import MoodboardStorage
from modo.storage.projects import ProjectStorage
from modo.utils.logger import get_logger

logger = get_logger(__name__)

router = APIRouter(tags=["moodboards"])


async def _owned_item(item_id: str, user_id: str, projects: ProjectStorage, moodboards: MoodboardStorage):
    item = await moodboards.get_item(item_id)
    moodboard = await moodboards.get_moodboard_by_id(item.moodboard_id)
    await projects.get_owned_project(moodboard.project_id, user_id)
    return item


@router.get("/projects/{project_id}/moodboard")
async def get_moodboard(
    project_id: str,
    story_version_id: str,
    user_id: str,
    projects: ProjectStorage = Depends(get_project_storage),
    moodboards: MoodboardStorage = Depends(get_moodboard_storage),
):
    """
    获取故事版本的情绪板

    Returns:
        {"success", "moodboard", "items"}；不存在时 moodboard 为 null
    """
    try:
        await projects.get_owned_project(project_id, user_id)
        found = await moodboards.get_moodboard(project_id, story_version_id)
        if found is None:
            return {"success": True, "moodboard": None, "items": []}
        moodboard, items = found
        return {
            "success": True,
            "moodboard": Moodboard.model_validate(moodboard),
            "items": [MoodboardItem.model_validate(i) for i in items],
        }
    except (HTTPException, ModoError):
        raise
    except Exception as e:
        logger.error(f"Failed to get moodboard for project {project_id}: {e}")
        raise HTTPException(status_code=500, detail=str(e))


@router.post("/projects/{project_id}/moodboard", status_code=201)
async def create_moodboard(
    project_id: str,
    payload: MoodboardCreate,
    projects: ProjectStorage = Depends(get_project_storage),
    moodboards: MoodboardStorage = Depends(get_moodboard_storage),
):
    """
    创建情绪板并为每个节拍初始化空条目

    Raises:
        400: 缺少 story_version_id 或该故事版本已有情绪板
    """
    try:
        await projects.get_owned_project(project_id, payload.user_id)
        moodboard, items = await moodboards.create_moodboard(
            project_id, payload.story_version_id, payload.art_style, payload.key_action_count
        )
        logger.info(f"Created moodboard {moodboard.id} with {len(items)} items")
        return {
            "success": True,
            "moodboard": Moodboard.model_validate(moodboard),
            "items": [MoodboardItem.model_validate(i) for i in items],
        }
    except (HTTPException, ModoError):
        raise
    except Exception as e:
        logger.error(f"Failed to create moodboard for project {project_id}: {e}")
        raise HTTPException(status_code=500, detail=str(e))


@router.patch("/projects/{project_id}/moodboard", response_model=Moodboard)
async def update_moodboard(
    project_id: str,
    payload: MoodboardUpdate,
    projects: ProjectStorage = Depends(get_project_storage),
    moodboards: MoodboardStorage = Depends(get_moodboard_storage),
):
    try:
        await projects.get_owned_project(project_id, payload.user_id)
        await moodboards.get_moodboard_by_id(payload.moodboard_id, project_id)
        updates = payload.model_dump(include={"art_style", "key_action_count"}, exclude_unset=True)
        return await moodboards.update_moodboard(payload.moodboard_id, updates)
    except (HTTPException, ModoError):
        raise
    except Exception as e:
        logger.error(f"Failed to update moodboard {payload.moodboard_id}: {e}")
        raise HTTPException(status_code=500, detail=str(e))


@router.delete("/projects/{project_id}/moodboard")
async def delete_moodboard(
    project_id: str,
    moodboard_id: str,
    user_id: str,
    projects: ProjectStorage = Depends(get_project_storage),
    moodboards: MoodboardStorage = Depends(get_moodboard_storage),
):
    try:
        await projects.get_owned_project(project_id, user_id)
        await moodboards.get_moodboard_by_id(moodboard_id, project_id)
        await moodboards.delete_moodboard(moodboard_id)
        return {"success": True, "message": "Moodboard deleted"}
    except (HTTPException, ModoError):
        raise
    except Exception as e:
        logger.error(f"Failed to delete moodboard {moodboard_id}: {e}")
        raise HTTPException(status_code=500, detail=str(e))


@router.post("/projects/{project_id}/moodboard/generate")
async def generate(project_id: str, payload: MoodboardGenerate):
    """
    批量生成关键动作或图像提示词

    Args:
        payload.type: key_actions / prompts
        payload.beat_key: 可选，只生成该节拍
        payload.item_id: 可选，只生成该条目

    Returns:
        {"success", "generated", "results"}
    """
    try:
        generated, results = await moodboard_service.generate(
            project_id, payload.moodboard_id, payload.user_id, payload.type, payload.beat_key, payload.item_id
        )
        return {"success": True, "generated": generated, "results": results}
    except (HTTPException, ModoError):
        raise
    except Exception as e:
        logger.error(f"Moodboard generation failed for {payload.moodboard_id}: {e}")
        raise HTTPException(status_code=500, detail=str(e))


# ----------------------------------------------------------------------
# Items
# ----------------------------------------------------------------------


@router.patch("/moodboard-items/{item_id}", response_model=MoodboardItem)
async def update_item(
    item_id: str,
    payload: MoodboardItemUpdate,
    projects: ProjectStorage = Depends(get_project_storage),
    moodboards: MoodboardStorage = Depends(get_moodboard_storage),
):
    try:
        await _owned_item(item_id, payload.user_id, projects, moodboards)
        return await moodboards.update_item(item_id, payload.model_dump(exclude={"user_id"}, exclude_unset=True))
    except (HTTPException, ModoError):
        raise
    except Exception as e:
        logger.error(f"Failed to update moodboard item {item_id}: {e}")
        raise HTTPException(status_code=500, detail=str(e))


@router.post("/moodboard-items/{item_id}/generate-image")
async def generate_item_image(item_id: str, payload: OwnerRequest):
    try:
        version, result = await moodboard_service.generate_item_image(item_id, payload.user_id)
        return {"success": True, "version": MoodboardItemVersion.model_validate(version), **result.to_dict()}
    except (HTTPException, ModoError):
        raise
    except Exception as e:
        logger.error(f"Image generation failed for moodboard item {item_id}: {e}")
        raise HTTPException(status_code=500, detail=str(e))


@router.get("/moodboard-items/{item_id}/versions")
async def list_item_versions(
    item_id: str,
    user_id: str,
    projects: ProjectStorage = Depends(get_project_storage),
    moodboards: MoodboardStorage = Depends(get_moodboard_storage),
):
    try:
        await _owned_item(item_id, user_id, projects, moodboards)
        versions = await moodboards.list_item_versions(item_id)
        return {"success": True, "versions": [MoodboardItemVersion.model_validate(v) for v in versions]}
    except (HTTPException, ModoError):
        raise
    except Exception as e:
        logger.error(f"Failed to list versions for moodboard item {item_id}: {e}")
        raise HTTPException(status_code=500, detail=str(e))


@router.post("/moodboard-item-versions/{version_id}/activate", response_model=MoodboardItemVersion)
async def activate_item_version(
    version_id: str,
    payload: OwnerRequest,
    projects: ProjectStorage = Depends(get_project_storage),
    moodboards: MoodboardStorage = Depends(get_moodboard_storage),
):
    try:
        version = await moodboards.get_item_version(version_id)
        await _owned_item(version.item_id, payload.user_id, projects, moodboards)
        return await moodboards.activate_item_version(version_id)
    except (HTTPException, ModoError):
        raise
    except Exception as e:
        logger.error(f"Failed to activate moodboard item version {version_id}: {e}")
        raise HTTPException(status_code=500, detail=str(e))
