"""
Stories Router / 故事版本路由

故事版本管理、激活切换以及节拍表、梗概的 AI 生成。
"""

from fastapi import APIRouter, Depends, HTTPException, Query

from modo.dependencies import get_project_storage, get_story_storage
from modo.exceptions import ModoError
from modo.schemas.project import OwnerRequest, StoryVersion, StoryVersionCreate, StoryVersionUpdate
from modo.services.story_service import story_service
from modo.storage.projects import ProjectStorage
from modo.storage.stories import StoryStorage
from modo.story_structures import list_structures
from modo.utils.logger import get_logger

logger = get_logger(__name__)

router = APIRouter(prefix="/projects/{project_id}/stories", tags=["stories"])


@router.get("/structures")
async def get_structures(project_id: str):
    """三种故事结构的节拍目录"""
    return {"success": True, "structures": list_structures()}


@router.get("")
async def list_versions(
    project_id: str,
    user_id: str,
    include_deleted: bool = Query(False),
    projects: ProjectStorage = Depends(get_project_storage),
    stories: StoryStorage = Depends(get_story_storage),
):
    try:
        await projects.get_owned_project(project_id, user_id)
        versions = await stories.list_versions(project_id, include_deleted)
        active = next((v for v in versions if v.is_active and v.deleted_at is None), None)
        return {
            "success": True,
            "versions": [StoryVersion.model_validate(v) for v in versions],
            "active_version_id": active.id if active else None,
        }
    except (HTTPException, ModoError):
        raise
    except Exception as e:
        logger.error(f"Failed to list story versions for project {project_id}: {e}")
        raise HTTPException(status_code=500, detail=str(e))


@router.post("", response_model=StoryVersion, status_code=201)
async def create_version(
    project_id: str,
    payload: StoryVersionCreate,
    stories: StoryStorage = Depends(get_story_storage),
):
    """
    创建故事版本（新版本成为唯一激活版本）

    Args:
        payload: 结构、名称、可选的复制来源与初始字段
    """
    try:
        fields = payload.model_dump(
            exclude={"user_id", "structure", "name", "copy_from_version_id", "is_duplicate"},
            exclude_none=True,
        )
        version = await stories.create_version(
            project_id,
            payload.user_id,
            structure=payload.structure,
            name=payload.name,
            copy_from_version_id=payload.copy_from_version_id,
            is_duplicate=payload.is_duplicate,
            fields=fields,
        )
        logger.info(f"Created story version {version.version_name} for project {project_id}")
        return version
    except (HTTPException, ModoError):
        raise
    except Exception as e:
        logger.error(f"Failed to create story version for project {project_id}: {e}")
        raise HTTPException(status_code=500, detail=str(e))


@router.get("/{version_id}", response_model=StoryVersion)
async def get_version(
    project_id: str,
    version_id: str,
    user_id: str,
    projects: ProjectStorage = Depends(get_project_storage),
    stories: StoryStorage = Depends(get_story_storage),
):
    try:
        await projects.get_owned_project(project_id, user_id)
        return await stories.get_version(version_id, project_id)
    except (HTTPException, ModoError):
        raise
    except Exception as e:
        logger.error(f"Failed to get story version {version_id}: {e}")
        raise HTTPException(status_code=500, detail=str(e))


@router.patch("/{version_id}", response_model=StoryVersion)
async def update_version(
    project_id: str,
    version_id: str,
    payload: StoryVersionUpdate,
    user_id: str,
    projects: ProjectStorage = Depends(get_project_storage),
    stories: StoryStorage = Depends(get_story_storage),
):
    try:
        await projects.get_owned_project(project_id, user_id)
        await stories.get_version(version_id, project_id)
        return await stories.update_version(version_id, payload.model_dump(exclude_unset=True))
    except (HTTPException, ModoError):
        raise
    except Exception as e:
        logger.error(f"Failed to update story version {version_id}: {e}")
        raise HTTPException(status_code=500, detail=str(e))


@router.delete("/{version_id}")
async def delete_version(
    project_id: str,
    version_id: str,
    user_id: str,
    projects: ProjectStorage = Depends(get_project_storage),
    stories: StoryStorage = Depends(get_story_storage),
):
    """
    软删除故事版本

    Returns:
        删除激活版本时，附带新激活的版本 ID
    """
    try:
        await projects.get_owned_project(project_id, user_id)
        await stories.get_version(version_id, project_id)
        replacement = await stories.delete_version(version_id)
        return {
            "success": True,
            "message": "Story version deleted",
            "active_version_id": replacement.id if replacement else None,
        }
    except (HTTPException, ModoError):
        raise
    except Exception as e:
        logger.error(f"Failed to delete story version {version_id}: {e}")
        raise HTTPException(status_code=500, detail=str(e))


@router.post("/{version_id}/activate", response_model=StoryVersion)
async def activate_version(
    project_id: str,
    version_id: str,
    payload: OwnerRequest,
    projects: ProjectStorage = Depends(get_project_storage),
    stories: StoryStorage = Depends(get_story_storage),
):
    try:
        await projects.get_owned_project(project_id, payload.user_id)
        await stories.get_version(version_id, project_id)
        return await stories.activate_version(version_id)
    except (HTTPException, ModoError):
        raise
    except Exception as e:
        logger.error(f"Failed to activate story version {version_id}: {e}")
        raise HTTPException(status_code=500, detail=str(e))


@router.post("/{version_id}/generate")
async def generate_story(project_id: str, version_id: str, payload: OwnerRequest):
    """
    AI 生成节拍表

    Raises:
        402: 积分不足
        404: 项目不属于该用户
    """
    try:
        version, result = await story_service.generate_story(project_id, version_id, payload.user_id)
        return {"success": True, "story": StoryVersion.model_validate(version), **result.to_dict()}
    except (HTTPException, ModoError):
        raise
    except Exception as e:
        logger.error(f"Story generation failed for version {version_id}: {e}")
        raise HTTPException(status_code=500, detail=str(e))


@router.post("/{version_id}/generate-synopsis")
async def generate_synopsis(project_id: str, version_id: str, payload: OwnerRequest):
    try:
        version, result = await story_service.generate_synopsis(project_id, version_id, payload.user_id)
        return {"success": True, "story": StoryVersion.model_validate(version), **result.to_dict()}
    except (HTTPException, ModoError):
        raise
    except Exception as e:
        logger.error(f"Synopsis generation failed for version {version_id}: {e}")
        raise HTTPException(status_code=500, detail=str(e))
