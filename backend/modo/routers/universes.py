"""
Universes Router / 世界观路由

世界观版本管理与 AI 生成七大设定板块。
"""

from fastapi import APIRouter, Depends, HTTPException

from modo.dependencies import get_project_storage, get_universe_storage
from modo.exceptions import ModoError
from modo.schemas.project import OwnerRequest, UniverseVersion, UniverseVersionCreate, UniverseVersionUpdate
from modo.services.universe_service import universe_service
from modo.storage.projects import ProjectStorage
from modo.storage.universes import UniverseStorage
from modo.utils.logger import get_logger

logger = get_logger(__name__)

router = APIRouter(prefix="/projects/{project_id}/universes", tags=["universes"])


@router.get("")
async def list_versions(
    project_id: str,
    user_id: str,
    projects: ProjectStorage = Depends(get_project_storage),
    universes: UniverseStorage = Depends(get_universe_storage),
):
    try:
        await projects.get_owned_project(project_id, user_id)
        versions = await universes.list_versions(project_id)
        active = next((v for v in versions if v.is_active), None)
        return {
            "success": True,
            "versions": [UniverseVersion.model_validate(v) for v in versions],
            "active_version_id": active.id if active else None,
        }
    except (HTTPException, ModoError):
        raise
    except Exception as e:
        logger.error(f"Failed to list universe versions for project {project_id}: {e}")
        raise HTTPException(status_code=500, detail=str(e))


@router.post("", response_model=UniverseVersion, status_code=201)
async def create_version(
    project_id: str,
    payload: UniverseVersionCreate,
    projects: ProjectStorage = Depends(get_project_storage),
    universes: UniverseStorage = Depends(get_universe_storage),
):
    """
    创建世界观版本（新版本成为唯一激活版本）

    Args:
        payload: 名称、关联故事版本、可选复制来源与初始板块
    """
    try:
        await projects.get_owned_project(project_id, payload.user_id)
        sections = payload.model_dump(
            exclude={"user_id", "name", "story_version_id", "copy_from_version_id"}, exclude_none=True
        )
        version = await universes.create_version(
            project_id,
            name=payload.name,
            story_version_id=payload.story_version_id,
            copy_from_version_id=payload.copy_from_version_id,
            sections=sections,
        )
        logger.info(f"Created universe version {version.version_name} for project {project_id}")
        return version
    except (HTTPException, ModoError):
        raise
    except Exception as e:
        logger.error(f"Failed to create universe version for project {project_id}: {e}")
        raise HTTPException(status_code=500, detail=str(e))


@router.get("/{version_id}", response_model=UniverseVersion)
async def get_version(
    project_id: str,
    version_id: str,
    user_id: str,
    projects: ProjectStorage = Depends(get_project_storage),
    universes: UniverseStorage = Depends(get_universe_storage),
):
    try:
        await projects.get_owned_project(project_id, user_id)
        return await universes.get_version(version_id, project_id)
    except (HTTPException, ModoError):
        raise
    except Exception as e:
        logger.error(f"Failed to get universe version {version_id}: {e}")
        raise HTTPException(status_code=500, detail=str(e))


@router.patch("/{version_id}", response_model=UniverseVersion)
async def update_version(
    project_id: str,
    version_id: str,
    payload: UniverseVersionUpdate,
    user_id: str,
    projects: ProjectStorage = Depends(get_project_storage),
    universes: UniverseStorage = Depends(get_universe_storage),
):
    try:
        await projects.get_owned_project(project_id, user_id)
        await universes.get_version(version_id, project_id)
        return await universes.update_version(version_id, payload.model_dump(exclude_unset=True))
    except (HTTPException, ModoError):
        raise
    except Exception as e:
        logger.error(f"Failed to update universe version {version_id}: {e}")
        raise HTTPException(status_code=500, detail=str(e))


@router.delete("/{version_id}")
async def delete_version(
    project_id: str,
    version_id: str,
    user_id: str,
    projects: ProjectStorage = Depends(get_project_storage),
    universes: UniverseStorage = Depends(get_universe_storage),
):
    try:
        await projects.get_owned_project(project_id, user_id)
        await universes.get_version(version_id, project_id)
        await universes.delete_version(version_id)
        return {"success": True, "message": "Universe version deleted"}
    except (HTTPException, ModoError):
        raise
    except Exception as e:
        logger.error(f"Failed to delete universe version {version_id}: {e}")
        raise HTTPException(status_code=500, detail=str(e))


@router.post("/{version_id}/activate", response_model=UniverseVersion)
async def activate_version(
    project_id: str,
    version_id: str,
    payload: OwnerRequest,
    projects: ProjectStorage = Depends(get_project_storage),
    universes: UniverseStorage = Depends(get_universe_storage),
):
    try:
        await projects.get_owned_project(project_id, payload.user_id)
        await universes.get_version(version_id, project_id)
        return await universes.activate_version(version_id)
    except (HTTPException, ModoError):
        raise
    except Exception as e:
        logger.error(f"Failed to activate universe version {version_id}: {e}")
        raise HTTPException(status_code=500, detail=str(e))


@router.post("/{version_id}/generate")
async def generate_universe(project_id: str, version_id: str, payload: OwnerRequest):
    try:
        universe, result = await universe_service.generate_universe(project_id, version_id, payload.user_id)
        return {"success": True, "universe": UniverseVersion.model_validate(universe), **result.to_dict()}
    except (HTTPException, ModoError):
        raise
    except Exception as e:
        logger.error(f"Universe generation failed for version {version_id}: {e}")
        raise HTTPException(status_code=500, detail=str(e))
