"""
Team Router / 团队与素材路由

项目团队成员（含 MODO 代币持有信息）与项目素材库。
"""

from typing import Optional

from fastapi import APIRouter, Depends, HTTPException

from modo.dependencies import get_team_storage
from modo.exceptions import ModoError
from modo.schemas.project import (
    Material,
    MaterialCreate,
    MaterialUpdate,
    TeamMember,
    TeamMemberCreate,
    TeamMemberUpdate,
)
from modo.storage.team import TeamStorage
from modo.utils.logger import get_logger

logger = get_logger(__name__)

router = APIRouter(prefix="/projects/{project_id}", tags=["team"])


# =============================================================================
# Team members
# =============================================================================


@router.get("/team")
async def list_members(project_id: str, user_id: str, team: TeamStorage = Depends(get_team_storage)):
    try:
        members = await team.list_members(project_id, user_id)
        return {"success": True, "members": [TeamMember.model_validate(m) for m in members]}
    except (HTTPException, ModoError):
        raise
    except Exception as e:
        logger.error(f"Failed to list team for project {project_id}: {e}")
        raise HTTPException(status_code=500, detail=str(e))


@router.post("/team", response_model=TeamMember, status_code=201)
async def add_member(project_id: str, payload: TeamMemberCreate, team: TeamStorage = Depends(get_team_storage)):
    """
    添加团队成员

    Args:
        payload: 项目所有者 user_id；平台用户成员传 member_user_id，否则需提供 name

    Raises:
        HTTPException: 400 缺少姓名；404 项目或成员用户不存在
    """
    try:
        member = await team.add_member(project_id, payload.user_id, payload.model_dump(exclude={"user_id"}))
        logger.info(f"Added team member {member.name} to project {project_id}")
        return member
    except (HTTPException, ModoError):
        raise
    except Exception as e:
        logger.error(f"Failed to add team member to project {project_id}: {e}")
        raise HTTPException(status_code=500, detail=str(e))


@router.patch("/team/{member_id}", response_model=TeamMember)
async def update_member(
    project_id: str,
    member_id: str,
    payload: TeamMemberUpdate,
    user_id: str,
    team: TeamStorage = Depends(get_team_storage),
):
    try:
        return await team.update_member(project_id, member_id, user_id, payload.model_dump(exclude_unset=True))
    except (HTTPException, ModoError):
        raise
    except Exception as e:
        logger.error(f"Failed to update team member {member_id}: {e}")
        raise HTTPException(status_code=500, detail=str(e))


@router.delete("/team/{member_id}")
async def remove_member(project_id: str, member_id: str, user_id: str, team: TeamStorage = Depends(get_team_storage)):
    try:
        await team.remove_member(project_id, member_id, user_id)
        return {"success": True, "message": "Team member removed"}
    except (HTTPException, ModoError):
        raise
    except Exception as e:
        logger.error(f"Failed to remove team member {member_id}: {e}")
        raise HTTPException(status_code=500, detail=str(e))


# =============================================================================
# Materials
# =============================================================================


@router.get("/materials")
async def list_materials(
    project_id: str,
    user_id: str,
    type: Optional[str] = None,
    team: TeamStorage = Depends(get_team_storage),
):
    try:
        materials = await team.list_materials(project_id, user_id, type)
        return {"success": True, "materials": [Material.model_validate(m) for m in materials]}
    except (HTTPException, ModoError):
        raise
    except Exception as e:
        logger.error(f"Failed to list materials for project {project_id}: {e}")
        raise HTTPException(status_code=500, detail=str(e))


@router.post("/materials", response_model=Material, status_code=201)
async def add_material(project_id: str, payload: MaterialCreate, team: TeamStorage = Depends(get_team_storage)):
    """
    上传素材记录（文件本身由客户端上传，此处只保存 URL 与元数据）

    Raises:
        HTTPException: 400 名称为空或类型无效
    """
    try:
        return await team.add_material(project_id, payload.user_id, payload.model_dump(exclude={"user_id"}))
    except (HTTPException, ModoError):
        raise
    except Exception as e:
        logger.error(f"Failed to add material to project {project_id}: {e}")
        raise HTTPException(status_code=500, detail=str(e))


@router.patch("/materials/{material_id}", response_model=Material)
async def update_material(
    project_id: str,
    material_id: str,
    payload: MaterialUpdate,
    user_id: str,
    team: TeamStorage = Depends(get_team_storage),
):
    try:
        return await team.update_material(project_id, material_id, user_id, payload.model_dump(exclude_unset=True))
    except (HTTPException, ModoError):
        raise
    except Exception as e:
        logger.error(f"Failed to update material {material_id}: {e}")
        raise HTTPException(status_code=500, detail=str(e))


@router.delete("/materials/{material_id}")
async def remove_material(
    project_id: str, material_id: str, user_id: str, team: TeamStorage = Depends(get_team_storage)
):
    try:
        await team.remove_material(project_id, material_id, user_id)
        return {"success": True, "message": "Material deleted"}
    except (HTTPException, ModoError):
        raise
    except Exception as e:
        logger.error(f"Failed to delete material {material_id}: {e}")
        raise HTTPException(status_code=500, detail=str(e))
