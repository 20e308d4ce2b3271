"""
Characters Router / 角色路由

角色档案、软删除恢复、AI 生成档案与形象版本管理。
"""

from fastapi import APIRouter, Depends, HTTPException

from modo.dependencies import get_character_storage, get_project_storage
from modo.exceptions import ModoError
from modo.schemas.project import (
    Character,
    CharacterCreate,
    CharacterImageGenerate,
    CharacterImageVersion,
    CharacterImageVersionCreate,
    CharacterUpdate,
    GenerateProfileRequest,
    OwnerRequest,
)
from modo.services.character_service import character_service
from modo.storage.characters import CharacterStorage
from modo.storage.projects import ProjectStorage
from modo.utils.logger import get_logger

logger = get_logger(__name__)

router = APIRouter(tags=["characters"])


async def _owned_character(
    character_id: str, user_id: str, projects: ProjectStorage, characters: CharacterStorage
):
    character = await characters.get_character(character_id)
    await projects.get_owned_project(character.project_id, user_id)
    return character


@router.get("/projects/{project_id}/characters")
async def list_characters(
    project_id: str,
    user_id: str,
    projects: ProjectStorage = Depends(get_project_storage),
    characters: CharacterStorage = Depends(get_character_storage),
):
    """
    列出项目角色

    Returns:
        {"success", "characters", "deleted_characters"}
    """
    try:
        await projects.get_owned_project(project_id, user_id)
        live, deleted = await characters.list_characters(project_id)
        return {
            "success": True,
            "characters": [Character.model_validate(c) for c in live],
            "deleted_characters": [Character.model_validate(c) for c in deleted],
        }
    except (HTTPException, ModoError):
        raise
    except Exception as e:
        logger.error(f"Failed to list characters for project {project_id}: {e}")
        raise HTTPException(status_code=500, detail=str(e))


@router.post("/projects/{project_id}/characters", response_model=Character, status_code=201)
async def create_character(
    project_id: str,
    payload: CharacterCreate,
    projects: ProjectStorage = Depends(get_project_storage),
    characters: CharacterStorage = Depends(get_character_storage),
):
    try:
        await projects.get_owned_project(project_id, payload.user_id)
        character = await characters.create_character(project_id, payload.model_dump(exclude={"user_id"}))
        logger.info(f"Created character {character.name} in project {project_id}")
        return character
    except (HTTPException, ModoError):
        raise
    except Exception as e:
        logger.error(f"Failed to create character in project {project_id}: {e}")
        raise HTTPException(status_code=500, detail=str(e))


@router.get("/projects/{project_id}/characters/{character_id}", response_model=Character)
async def get_character(
    project_id: str,
    character_id: str,
    user_id: str,
    projects: ProjectStorage = Depends(get_project_storage),
    characters: CharacterStorage = Depends(get_character_storage),
):
    try:
        await projects.get_owned_project(project_id, user_id)
        return await characters.get_character(character_id, project_id)
    except (HTTPException, ModoError):
        raise
    except Exception as e:
        logger.error(f"Failed to get character {character_id}: {e}")
        raise HTTPException(status_code=500, detail=str(e))


@router.patch("/projects/{project_id}/characters/{character_id}", response_model=Character)
async def update_character(
    project_id: str,
    character_id: str,
    payload: CharacterUpdate,
    user_id: str,
    projects: ProjectStorage = Depends(get_project_storage),
    characters: CharacterStorage = Depends(get_character_storage),
):
    try:
        await projects.get_owned_project(project_id, user_id)
        await characters.get_character(character_id, project_id)
        return await characters.update_character(character_id, payload.model_dump(exclude_unset=True))
    except (HTTPException, ModoError):
        raise
    except Exception as e:
        logger.error(f"Failed to update character {character_id}: {e}")
        raise HTTPException(status_code=500, detail=str(e))


@router.delete("/projects/{project_id}/characters/{character_id}")
async def delete_character(
    project_id: str,
    character_id: str,
    user_id: str,
    projects: ProjectStorage = Depends(get_project_storage),
    characters: CharacterStorage = Depends(get_character_storage),
):
    try:
        await projects.get_owned_project(project_id, user_id)
        await characters.get_character(character_id, project_id)
        await characters.delete_character(character_id)
        return {"success": True, "message": "Character deleted"}
    except (HTTPException, ModoError):
        raise
    except Exception as e:
        logger.error(f"Failed to delete character {character_id}: {e}")
        raise HTTPException(status_code=500, detail=str(e))


@router.post("/projects/{project_id}/characters/{character_id}/restore", response_model=Character)
async def restore_character(
    project_id: str,
    character_id: str,
    payload: OwnerRequest,
    projects: ProjectStorage = Depends(get_project_storage),
    characters: CharacterStorage = Depends(get_character_storage),
):
    try:
        await projects.get_owned_project(project_id, payload.user_id)
        character = await characters.restore_character(character_id)
        logger.info(f"Restored character {character_id}")
        return character
    except (HTTPException, ModoError):
        raise
    except Exception as e:
        logger.error(f"Failed to restore character {character_id}: {e}")
        raise HTTPException(status_code=500, detail=str(e))


@router.post("/projects/{project_id}/characters/{character_id}/generate-profile")
async def generate_profile(project_id: str, character_id: str, payload: GenerateProfileRequest):
    """
    AI 生成角色档案

    Raises:
        402: 积分不足
    """
    try:
        character, result = await character_service.generate_profile(
            project_id, character_id, payload.user_id, payload.prompt_hint
        )
        return {"success": True, "character": Character.model_validate(character), **result.to_dict()}
    except (HTTPException, ModoError):
        raise
    except Exception as e:
        logger.error(f"Profile generation failed for character {character_id}: {e}")
        raise HTTPException(status_code=500, detail=str(e))


# ----------------------------------------------------------------------
# Image versions
# ----------------------------------------------------------------------


@router.get("/characters/{character_id}/image-versions")
async def list_image_versions(
    character_id: str,
    user_id: str,
    projects: ProjectStorage = Depends(get_project_storage),
    characters: CharacterStorage = Depends(get_character_storage),
):
    try:
        await _owned_character(character_id, user_id, projects, characters)
        versions = await characters.list_image_versions(character_id)
        return {"success": True, "versions": [CharacterImageVersion.model_validate(v) for v in versions]}
    except (HTTPException, ModoError):
        raise
    except Exception as e:
        logger.error(f"Failed to list image versions for character {character_id}: {e}")
        raise HTTPException(status_code=500, detail=str(e))


@router.post("/characters/{character_id}/image-versions", response_model=CharacterImageVersion, status_code=201)
async def add_image_version(
    character_id: str,
    payload: CharacterImageVersionCreate,
    projects: ProjectStorage = Depends(get_project_storage),
    characters: CharacterStorage = Depends(get_character_storage),
):
    try:
        await _owned_character(character_id, payload.user_id, projects, characters)
        return await characters.add_image_version(
            character_id,
            payload.image_url,
            prompt=payload.prompt,
            template=payload.template,
            art_style=payload.art_style,
            version_name=payload.version_name,
        )
    except (HTTPException, ModoError):
        raise
    except Exception as e:
        logger.error(f"Failed to add image version for character {character_id}: {e}")
        raise HTTPException(status_code=500, detail=str(e))


@router.post("/characters/{character_id}/image-versions/generate")
async def generate_image(character_id: str, payload: CharacterImageGenerate):
    try:
        version, result = await character_service.generate_image(
            character_id, payload.user_id, payload.art_style, payload.template
        )
        return {"success": True, "version": CharacterImageVersion.model_validate(version), **result.to_dict()}
    except (HTTPException, ModoError):
        raise
    except Exception as e:
        logger.error(f"Image generation failed for character {character_id}: {e}")
        raise HTTPException(status_code=500, detail=str(e))


@router.post("/character-image-versions/{version_id}/activate", response_model=CharacterImageVersion)
async def activate_image_version(
    version_id: str,
    payload: OwnerRequest,
    projects: ProjectStorage = Depends(get_project_storage),
    characters: CharacterStorage = Depends(get_character_storage),
):
    try:
        version = await characters.get_image_version(version_id)
        await _owned_character(version.character_id, payload.user_id, projects, characters)
        return await characters.activate_image_version(version_id)
    except (HTTPException, ModoError):
        raise
    except Exception as e:
        logger.error(f"Failed to activate image version {version_id}: {e}")
        raise HTTPException(status_code=500, detail=str(e))


@router.delete("/character-image-versions/{version_id}")
async def delete_image_version(
    version_id: str,
    user_id: str,
    projects: ProjectStorage = Depends(get_project_storage),
    characters: CharacterStorage = Depends(get_character_storage),
):
    try:
        version = await characters.get_image_version(version_id)
        await _owned_character(version.character_id, user_id, projects, characters)
        await characters.delete_image_version(version_id)
        return {"success": True, "message": "Image version deleted"}
    except (HTTPException, ModoError):
        raise
    except Exception as e:
        logger.error(f"Failed to delete image version {version_id}: {e}")
        raise HTTPException(status_code=500, detail=str(e))
