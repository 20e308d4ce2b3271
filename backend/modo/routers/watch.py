"""
Watch Router / 发行观看路由

已发布作品的公开浏览、作品创建与发布、观看计数。
"""

from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, Query

from modo.dependencies import get_content_storage
from modo.exceptions import ModoError
from modo.schemas.commerce import Content, ContentCreate
from modo.schemas.project import OwnerRequest
from modo.storage.contents import ContentStorage
from modo.utils.logger import get_logger

logger = get_logger(__name__)

router = APIRouter(tags=["watch"])


@router.get("/public/watch")
async def list_published(
    type: Optional[str] = None,
    genre: Optional[str] = None,
    limit: int = Query(20, ge=1, le=100),
    contents: ContentStorage = Depends(get_content_storage),
):
    try:
        items = await contents.list_published(type, genre, limit)
        return {"success": True, "contents": [Content.model_validate(c) for c in items]}
    except (HTTPException, ModoError):
        raise
    except Exception as e:
        logger.error(f"Failed to list published contents: {e}")
        raise HTTPException(status_code=500, detail=str(e))


@router.get("/public/watch/{content_id}", response_model=Content)
async def get_content(content_id: str, contents: ContentStorage = Depends(get_content_storage)):
    try:
        return await contents.get_content(content_id)
    except (HTTPException, ModoError):
        raise
    except Exception as e:
        logger.error(f"Failed to get content {content_id}: {e}")
        raise HTTPException(status_code=500, detail=str(e))


@router.post("/public/watch/{content_id}/view")
async def record_view(content_id: str, contents: ContentStorage = Depends(get_content_storage)):
    try:
        return {"success": True, "view_count": await contents.record_view(content_id)}
    except (HTTPException, ModoError):
        raise
    except Exception as e:
        logger.error(f"Failed to record view for content {content_id}: {e}")
        raise HTTPException(status_code=500, detail=str(e))


@router.post("/contents", response_model=Content, status_code=201)
async def create_content(payload: ContentCreate, contents: ContentStorage = Depends(get_content_storage)):
    """
    创建作品（草稿状态）

    Raises:
        404: 项目不属于该用户
    """
    try:
        content = await contents.create_content(
            payload.project_id,
            payload.user_id,
            payload.title,
            payload.model_dump(exclude={"user_id", "project_id", "title"}, exclude_none=True),
        )
        logger.info(f"Created content {content.id} for project {payload.project_id}")
        return content
    except (HTTPException, ModoError):
        raise
    except Exception as e:
        logger.error(f"Failed to create content for project {payload.project_id}: {e}")
        raise HTTPException(status_code=500, detail=str(e))


@router.post("/contents/{content_id}/publish", response_model=Content)
async def publish(content_id: str, payload: OwnerRequest, contents: ContentStorage = Depends(get_content_storage)):
    try:
        content = await contents.publish(content_id, payload.user_id)
        logger.info(f"Published content {content_id}")
        return content
    except (HTTPException, ModoError):
        raise
    except Exception as e:
        logger.error(f"Failed to publish content {content_id}: {e}")
        raise HTTPException(status_code=500, detail=str(e))
