"""
Investing Router / 投资路由

公开众筹活动、活动与档位创建、投资与投资组合。
"""

from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, Query

from modo.dependencies import get_investing_storage, get_project_storage
from modo.exceptions import ModoError
from modo.schemas.commerce import Campaign, CampaignCreate, InvestRequest, Investment, InvestmentTier, TierCreate
from modo.storage.investing import InvestingStorage
from modo.storage.projects import ProjectStorage
from modo.utils.logger import get_logger

logger = get_logger(__name__)

router = APIRouter(tags=["investing"])


@router.get("/public/invest")
async def list_public_campaigns(
    status: str = "active",
    limit: int = Query(20, ge=1, le=100),
    investing: InvestingStorage = Depends(get_investing_storage),
):
    """
    公开的众筹活动列表

    Returns:
        每个活动附带项目标题、支持者数量与筹款百分比
    """
    try:
        rows = await investing.list_public_campaigns(status, limit)
        campaigns = [
            {
                **Campaign.model_validate(row["campaign"]).model_dump(),
                "project_title": row["project_title"],
                "backer_count": row["backer_count"],
                "funding_percentage": row["funding_percentage"],
            }
            for row in rows
        ]
        return {"success": True, "campaigns": campaigns}
    except (HTTPException, ModoError):
        raise
    except Exception as e:
        logger.error(f"Failed to list campaigns: {e}")
        raise HTTPException(status_code=500, detail=str(e))


@router.post("/campaigns", response_model=Campaign, status_code=201)
async def create_campaign(payload: CampaignCreate, investing: InvestingStorage = Depends(get_investing_storage)):
    try:
        campaign = await investing.create_campaign(
            payload.project_id,
            payload.user_id,
            payload.title,
            payload.funding_goal,
            description=payload.description,
            thumbnail_url=payload.thumbnail_url,
            status=payload.status,
            end_date=payload.end_date,
        )
        logger.info(f"Created campaign {campaign.id} for project {payload.project_id}")
        return campaign
    except (HTTPException, ModoError):
        raise
    except Exception as e:
        logger.error(f"Failed to create campaign for project {payload.project_id}: {e}")
        raise HTTPException(status_code=500, detail=str(e))


@router.post("/campaigns/{campaign_id}/tiers", response_model=InvestmentTier, status_code=201)
async def add_tier(
    campaign_id: str,
    payload: TierCreate,
    projects: ProjectStorage = Depends(get_project_storage),
    investing: InvestingStorage = Depends(get_investing_storage),
):
    try:
        campaign = await investing.get_campaign(campaign_id)
        await projects.get_owned_project(campaign.project_id, payload.user_id)
        return await investing.add_tier(campaign_id, payload.name, payload.min_amount, payload.rewards)
    except (HTTPException, ModoError):
        raise
    except Exception as e:
        logger.error(f"Failed to add tier to campaign {campaign_id}: {e}")
        raise HTTPException(status_code=500, detail=str(e))


@router.post("/campaigns/{campaign_id}/invest", status_code=201)
async def invest(campaign_id: str, payload: InvestRequest, investing: InvestingStorage = Depends(get_investing_storage)):
    """
    投资众筹活动

    Raises:
        400: 活动未激活、金额无效或低于档位最低额
    """
    try:
        investment = await investing.invest(payload.user_id, campaign_id, payload.amount, payload.tier_id)
        campaign = await investing.get_campaign(campaign_id)
        logger.info(f"User {payload.user_id} invested {payload.amount} in campaign {campaign_id}")
        return {
            "success": True,
            "investment": Investment.model_validate(investment),
            "campaign": Campaign.model_validate(campaign),
        }
    except (HTTPException, ModoError):
        raise
    except Exception as e:
        logger.error(f"Investment in campaign {campaign_id} failed: {e}")
        raise HTTPException(status_code=500, detail=str(e))


@router.get("/investor/portfolio")
async def get_portfolio(
    user_id: str,
    status: Optional[str] = None,
    investing: InvestingStorage = Depends(get_investing_storage),
):
    try:
        return {"success": True, **(await investing.get_portfolio(user_id, status))}
    except (HTTPException, ModoError):
        raise
    except Exception as e:
        logger.error(f"Failed to load portfolio for user {user_id}: {e}")
        raise HTTPException(status_code=500, detail=str(e))
