"""
Admin AI Providers Router / AI 提供商管理路由

提供商、模型、平台密钥、档位模型与回退队列的管理接口。
"""

from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, Query

from modo.dependencies import get_ai_registry_storage
from modo.exceptions import ModoError
from modo.schemas.ai import ApiKeyCreate, FallbackUpdate, ModelCreate, Provider, ProviderCreate, ProviderUpdate, TierModelUpdate
from modo.storage.ai_registry import AIRegistryStorage
from modo.utils.logger import get_logger

logger = get_logger(__name__)

router = APIRouter(prefix="/admin/ai-providers", tags=["admin-ai"])


@router.get("")
async def list_providers(registry: AIRegistryStorage = Depends(get_ai_registry_storage)):
    try:
        providers = await registry.list_providers()
        return {"success": True, "providers": [Provider.model_validate(p) for p in providers]}
    except (HTTPException, ModoError):
        raise
    except Exception as e:
        logger.error(f"Failed to list providers: {e}")
        raise HTTPException(status_code=500, detail=str(e))


@router.post("", status_code=201)
async def create_provider(payload: ProviderCreate, registry: AIRegistryStorage = Depends(get_ai_registry_storage)):
    """
    新增 AI 提供商

    Raises:
        400: 类型非法或 slug 已存在
    """
    try:
        provider = await registry.create_provider(
            payload.slug, payload.name, payload.type, payload.api_base_url, payload.is_active
        )
        logger.info(f"Created AI provider {provider.slug}")
        return {"success": True, "provider": Provider.model_validate(provider)}
    except (HTTPException, ModoError):
        raise
    except Exception as e:
        logger.error(f"Failed to create provider {payload.slug}: {e}")
        raise HTTPException(status_code=500, detail=str(e))


@router.put("")
async def update_provider(payload: ProviderUpdate, registry: AIRegistryStorage = Depends(get_ai_registry_storage)):
    try:
        updates = payload.model_dump(exclude={"id"}, exclude_unset=True)
        provider = await registry.update_provider(payload.id, updates)
        return {"success": True, "provider": Provider.model_validate(provider)}
    except (HTTPException, ModoError):
        raise
    except Exception as e:
        logger.error(f"Failed to update provider {payload.id}: {e}")
        raise HTTPException(status_code=500, detail=str(e))


@router.get("/models")
async def list_models(
    type: Optional[str] = Query(None, description="text / image / video / audio"),
    registry: AIRegistryStorage = Depends(get_ai_registry_storage),
):
    try:
        return {"success": True, "models": await registry.list_models(type)}
    except (HTTPException, ModoError):
        raise
    except Exception as e:
        logger.error(f"Failed to list models: {e}")
        raise HTTPException(status_code=500, detail=str(e))


@router.post("/models", status_code=201)
async def create_model(payload: ModelCreate, registry: AIRegistryStorage = Depends(get_ai_registry_storage)):
    try:
        model = await registry.create_model(
            payload.provider_slug,
            payload.model_id,
            payload.name,
            payload.type,
            credit_cost=payload.credit_cost,
            is_default=payload.is_default,
            sort_order=payload.sort_order,
        )
        logger.info(f"Registered model {payload.model_id} under {payload.provider_slug}")
        return {"success": True, "model": {"id": model.id, "model_id": model.model_id, "type": model.type}}
    except (HTTPException, ModoError):
        raise
    except Exception as e:
        logger.error(f"Failed to create model {payload.model_id}: {e}")
        raise HTTPException(status_code=500, detail=str(e))


@router.post("/models/{model_pk}/set-default")
async def set_default_model(model_pk: str, registry: AIRegistryStorage = Depends(get_ai_registry_storage)):
    """将模型设为同类型唯一默认模型"""
    try:
        model = await registry.set_default_model(model_pk)
        return {"success": True, "message": f"{model.model_id} is now the default {model.type} model"}
    except (HTTPException, ModoError):
        raise
    except Exception as e:
        logger.error(f"Failed to set default model {model_pk}: {e}")
        raise HTTPException(status_code=500, detail=str(e))


@router.get("/keys")
async def list_api_keys(
    provider: Optional[str] = None,
    registry: AIRegistryStorage = Depends(get_ai_registry_storage),
):
    try:
        return {"success": True, "keys": await registry.list_api_keys(provider)}
    except (HTTPException, ModoError):
        raise
    except Exception as e:
        logger.error(f"Failed to list API keys: {e}")
        raise HTTPException(status_code=500, detail=str(e))


@router.post("/keys", status_code=201)
async def add_api_key(payload: ApiKeyCreate, registry: AIRegistryStorage = Depends(get_ai_registry_storage)):
    try:
        key = await registry.add_api_key(payload.provider_slug, payload.api_key, payload.name)
        logger.info(f"Added platform key for {payload.provider_slug}")
        return {"success": True, "key_id": key.id}
    except (HTTPException, ModoError):
        raise
    except Exception as e:
        logger.error(f"Failed to add API key for {payload.provider_slug}: {e}")
        raise HTTPException(status_code=500, detail=str(e))


@router.delete("/keys")
async def delete_api_key(id: str = Query(..., description="Key ID"), registry: AIRegistryStorage = Depends(get_ai_registry_storage)):
    try:
        await registry.delete_api_key(id)
        return {"success": True, "message": "API key deleted"}
    except (HTTPException, ModoError):
        raise
    except Exception as e:
        logger.error(f"Failed to delete API key {id}: {e}")
        raise HTTPException(status_code=500, detail=str(e))


@router.get("/tier-models")
async def get_tier_models(registry: AIRegistryStorage = Depends(get_ai_registry_storage)):
    try:
        return {"success": True, "tier_models": await registry.get_tier_models()}
    except (HTTPException, ModoError):
        raise
    except Exception as e:
        logger.error(f"Failed to load tier models: {e}")
        raise HTTPException(status_code=500, detail=str(e))


@router.put("/tier-models")
async def set_tier_model(payload: TierModelUpdate, registry: AIRegistryStorage = Depends(get_ai_registry_storage)):
    try:
        await registry.set_tier_model(payload.tier, payload.type, payload.model_id)
        return {"success": True, "tier_models": await registry.get_tier_models()}
    except (HTTPException, ModoError):
        raise
    except Exception as e:
        logger.error(f"Failed to set {payload.tier}/{payload.type} tier model: {e}")
        raise HTTPException(status_code=500, detail=str(e))


@router.get("/fallback")
async def get_fallback_configs(registry: AIRegistryStorage = Depends(get_ai_registry_storage)):
    try:
        return {"success": True, "fallback": await registry.get_all_fallback_configs()}
    except (HTTPException, ModoError):
        raise
    except Exception as e:
        logger.error(f"Failed to load fallback configs: {e}")
        raise HTTPException(status_code=500, detail=str(e))


@router.put("/fallback")
async def save_fallback_config(payload: FallbackUpdate, registry: AIRegistryStorage = Depends(get_ai_registry_storage)):
    """
    替换某档位、某类型的回退队列

    Args:
        payload: tier、type 与按优先级排序的模型 ID 列表
    """
    try:
        rows = await registry.save_fallback_config(payload.tier, payload.type, payload.model_ids)
        logger.info(f"Saved {len(rows)} fallback entries for {payload.tier}/{payload.type}")
        return {"success": True, "count": len(rows), "fallback": await registry.get_all_fallback_configs()}
    except (HTTPException, ModoError):
        raise
    except Exception as e:
        logger.error(f"Failed to save fallback config: {e}")
        raise HTTPException(status_code=500, detail=str(e))


@router.post("/seed")
async def seed_defaults(registry: AIRegistryStorage = Depends(get_ai_registry_storage)):
    try:
        created = await registry.seed_defaults()
        return {"success": True, **created}
    except (HTTPException, ModoError):
        raise
    except Exception as e:
        logger.error(f"Failed to seed AI registry: {e}")
        raise HTTPException(status_code=500, detail=str(e))
