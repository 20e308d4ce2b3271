"""
Projects Router / 项目路由

IP 项目的增删改查、软删除恢复与 IP Bible 导出。
"""

from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, Query

from modo.dependencies import get_project_storage
from modo.exceptions import ModoError
from modo.schemas.project import Project, ProjectCreate, ProjectUpdate
from modo.services.export_service import export_service
from modo.storage.projects import ProjectStorage
from modo.utils.logger import get_logger

logger = get_logger(__name__)

router = APIRouter(prefix="/projects", tags=["projects"])


@router.get("")
async def list_projects(
    user_id: str,
    status: Optional[str] = None,
    limit: int = Query(20, ge=1, le=100),
    offset: int = Query(0, ge=0),
    projects: ProjectStorage = Depends(get_project_storage),
):
    """
    列出用户的项目

    Args:
        user_id: 项目所有者
        status: 状态过滤，"all" 表示不过滤

    Returns:
        {"success", "projects", "total"}
    """
    try:
        items, total = await projects.list_projects(user_id, status, limit, offset)
        return {"success": True, "projects": [Project.model_validate(p) for p in items], "total": total}
    except (HTTPException, ModoError):
        raise
    except Exception as e:
        logger.error(f"Failed to list projects for user {user_id}: {e}")
        raise HTTPException(status_code=500, detail=str(e))


@router.post("", response_model=Project, status_code=201)
async def create_project(payload: ProjectCreate, projects: ProjectStorage = Depends(get_project_storage)):
    try:
        project = await projects.create_project(payload.user_id, payload.model_dump(exclude={"user_id"}))
        logger.info(f"Created project {project.id} for user {payload.user_id}")
        return project
    except (HTTPException, ModoError):
        raise
    except Exception as e:
        logger.error(f"Failed to create project: {e}")
        raise HTTPException(status_code=500, detail=str(e))


@router.get("/{project_id}", response_model=Project)
async def get_project(project_id: str, user_id: str, projects: ProjectStorage = Depends(get_project_storage)):
    try:
        return await projects.get_owned_project(project_id, user_id)
    except (HTTPException, ModoError):
        raise
    except Exception as e:
        logger.error(f"Failed to get project {project_id}: {e}")
        raise HTTPException(status_code=500, detail=str(e))


@router.patch("/{project_id}", response_model=Project)
async def update_project(
    project_id: str,
    payload: ProjectUpdate,
    user_id: str,
    projects: ProjectStorage = Depends(get_project_storage),
):
    try:
        return await projects.update_project(project_id, user_id, payload.model_dump(exclude_unset=True))
    except (HTTPException, ModoError):
        raise
    except Exception as e:
        logger.error(f"Failed to update project {project_id}: {e}")
        raise HTTPException(status_code=500, detail=str(e))


@router.delete("/{project_id}")
async def delete_project(project_id: str, user_id: str, projects: ProjectStorage = Depends(get_project_storage)):
    try:
        await projects.delete_project(project_id, user_id)
        return {"success": True, "message": "Project deleted"}
    except (HTTPException, ModoError):
        raise
    except Exception as e:
        logger.error(f"Failed to delete project {project_id}: {e}")
        raise HTTPException(status_code=500, detail=str(e))


@router.post("/{project_id}/restore", response_model=Project)
async def restore_project(project_id: str, user_id: str, projects: ProjectStorage = Depends(get_project_storage)):
    try:
        return await projects.restore_project(project_id, user_id)
    except (HTTPException, ModoError):
        raise
    except Exception as e:
        logger.error(f"Failed to restore project {project_id}: {e}")
        raise HTTPException(status_code=500, detail=str(e))


@router.get("/{project_id}/export-ip-bible")
async def export_ip_bible(
    project_id: str,
    user_id: str,
    format: str = Query("markdown", description="markdown or json"),
):
    """
    导出 IP Bible

    汇总项目、激活故事、角色、激活世界观与情绪板，写入导出目录。

    Returns:
        {"success", "format", "path", "content"}
    """
    try:
        exported = await export_service.export_ip_bible(project_id, user_id, format)
        return {"success": True, **exported}
    except (HTTPException, ModoError):
        raise
    except Exception as e:
        logger.error(f"Failed to export IP bible for project {project_id}: {e}")
        raise HTTPException(status_code=500, detail=str(e))
