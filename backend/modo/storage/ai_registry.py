"""
AI Registry Storage
AI 提供商、模型、平台密钥、档位模型与回退队列配置。
Providers, models, platform API keys, tier models and fallback queues.
"""

import os
from typing import Any, Dict, List, Optional

from sqlalchemy import delete, select, update
from sqlalchemy.ext.asyncio import AsyncSession

from modo.config import config
from modo.exceptions import NotFoundError, ValidationError
from modo.models import AIModel, AIProvider, FallbackConfig, PlatformApiKey, TierModel
from modo.models.ai import AI_TYPES
from modo.models.user import SUBSCRIPTION_TIERS
from modo.pricing import AUDIO_MODEL_RATES, IMAGE_MODEL_RATES, TEXT_MODEL_RATES, VIDEO_MODEL_RATES
from modo.storage.base import BaseStorage, utcnow
from modo.utils.logger import get_logger
from modo.utils.text import mask_api_key

logger = get_logger(__name__)

PROVIDER_TYPES = ("text", "image", "video", "audio", "multi")

PROVIDER_NAMES = {
    "openai": "OpenAI",
    "anthropic": "Anthropic",
    "google": "Google AI",
    "deepseek": "DeepSeek",
    "xai": "xAI Grok",
    "zhipu": "Zhipu AI",
    "mistral": "Mistral AI",
    "qwen": "Alibaba Qwen",
    "routeway": "Routeway",
    "fal": "Fal.ai",
    "stability": "Stability AI",
    "replicate": "Replicate",
    "modelslab": "ModelsLab",
    "elevenlabs": "ElevenLabs",
}

DEFAULT_MODELS = {
    "text": "gpt-4o-mini",
    "image": "fal-ai/flux/schnell",
    "video": "fal-ai/cogvideox-5b",
    "audio": "eleven_turbo_v2_5",
}


class AIRegistryStorage(BaseStorage):
    """Database storage for the AI provider registry."""

    # ------------------------------------------------------------------
    # Providers
    # ------------------------------------------------------------------

    async def list_providers(self) -> List[AIProvider]:
        async with self.session() as session:
            result = await session.execute(select(AIProvider).order_by(AIProvider.name))
            return list(result.scalars().all())

    async def create_provider(
        self,
        slug: str,
        name: str,
        provider_type: str = "text",
        api_base_url: Optional[str] = None,
        is_active: bool = True,
    ) -> AIProvider:
        if provider_type not in PROVIDER_TYPES:
            raise ValidationError(f"Invalid provider type: {provider_type}")
        async with self.transaction() as session:
            existing = await session.execute(select(AIProvider.id).where(AIProvider.slug == slug))
            if existing.first():
                raise ValidationError(f"Provider {slug} already exists")
            provider = AIProvider(
                slug=slug, name=name, type=provider_type, api_base_url=api_base_url, is_active=is_active
            )
            session.add(provider)
            await session.flush()
            return provider

    async def update_provider(self, provider_id: str, updates: Dict[str, Any]) -> AIProvider:
        if updates.get("type") is not None and updates["type"] not in PROVIDER_TYPES:
            raise ValidationError(f"Invalid provider type: {updates['type']}")
        async with self.transaction() as session:
            provider = await self.get_live(session, AIProvider, provider_id, "Provider")
            self.apply_updates(provider, updates, ("name", "type", "api_base_url", "is_active"))
            return provider

    @staticmethod
    async def _provider_by_slug(session: AsyncSession, slug: str) -> AIProvider:
        result = await session.execute(select(AIProvider).where(AIProvider.slug == slug))
        provider = result.scalar_one_or_none()
        if provider is None:
            raise NotFoundError(f"Provider {slug} not found")
        return provider

    # ------------------------------------------------------------------
    # Models
    # ------------------------------------------------------------------

    async def list_models(self, model_type: Optional[str] = None) -> List[Dict[str, Any]]:
        stmt = select(AIModel, AIProvider).join(AIProvider, AIModel.provider_id == AIProvider.id)
        if model_type:
            stmt = stmt.where(AIModel.type == model_type)
        stmt = stmt.order_by(AIModel.type, AIModel.sort_order, AIModel.credit_cost)
        async with self.session() as session:
            rows = (await session.execute(stmt)).all()
        return [self._model_dict(model, provider) for model, provider in rows]

    @staticmethod
    def _model_dict(model: AIModel, provider: AIProvider) -> Dict[str, Any]:
        return {
            "id": model.id,
            "provider_id": provider.id,
            "provider": provider.slug,
            "provider_name": provider.name,
            "model_id": model.model_id,
            "name": model.name,
            "type": model.type,
            "credit_cost": model.credit_cost,
            "is_default": model.is_default,
            "is_active": model.is_active,
            "sort_order": model.sort_order,
        }

    async def create_model(
        self,
        provider_slug: str,
        model_id: str,
        name: str,
        model_type: str,
        credit_cost: int = 5,
        is_default: bool = False,
        sort_order: int = 0,
    ) -> AIModel:
        if model_type not in AI_TYPES:
            raise ValidationError(f"Invalid model type: {model_type}")
        async with self.transaction() as session:
            provider = await self._provider_by_slug(session, provider_slug)
            if is_default:
                await session.execute(
                    update(AIModel).where(AIModel.type == model_type).values(is_default=False)
                )
            model = AIModel(
                provider_id=provider.id,
                model_id=model_id,
                name=name,
                type=model_type,
                credit_cost=credit_cost,
                is_default=is_default,
                is_active=True,
                sort_order=sort_order,
            )
            session.add(model)
            await session.flush()
            return model

    async def set_default_model(self, model_pk: str) -> AIModel:
        """Make one model the default of its type; every other model of that type loses the flag."""
        async with self.transaction() as session:
            model = await self.get_live(session, AIModel, model_pk, "Model")
            await session.execute(
                update(AIModel)
                .where(AIModel.type == model.type, AIModel.id != model.id)
                .values(is_default=False)
                .execution_options(synchronize_session="fetch")
            )
            model.is_default = True
            model.is_active = True
            await session.flush()
            return model

    async def _resolve_entry(self, session: AsyncSession, model: AIModel, priority: int) -> Optional[Dict[str, Any]]:
        provider = await session.get(AIProvider, model.provider_id)
        if provider is None or not provider.is_active or not model.is_active:
            return None
        key_id, api_key = await self._active_key(session, provider)
        return {
            "id": model.id,
            "priority": priority,
            "provider": provider.slug,
            "base_url": provider.api_base_url,
            "model_id": model.model_id,
            "display_name": model.name,
            "type": model.type,
            "api_key": api_key,
            "api_key_id": key_id,
            "credit_cost": model.credit_cost,
        }

    async def get_active_model(self, model_type: str) -> Optional[Dict[str, Any]]:
        """Default active model of a type, with provider and key."""
        async with self.session() as session:
            return await self._default_entry(session, model_type)

    async def _default_entry(self, session: AsyncSession, model_type: str) -> Optional[Dict[str, Any]]:
        result = await session.execute(
            select(AIModel)
            .join(AIProvider, AIModel.provider_id == AIProvider.id)
            .where(
                AIModel.type == model_type,
                AIModel.is_default.is_(True),
                AIModel.is_active.is_(True),
                AIProvider.is_active.is_(True),
            )
            .limit(1)
        )
        model = result.scalar_one_or_none()
        if model is None:
            return None
        return await self._resolve_entry(session, model, 1)

    async def _tier_entry(self, session: AsyncSession, tier: str, model_type: str) -> Optional[Dict[str, Any]]:
        result = await session.execute(
            select(AIModel)
            .join(TierModel, TierModel.model_id == AIModel.id)
            .where(TierModel.tier == tier, TierModel.type == model_type)
        )
        model = result.scalar_one_or_none()
        if model is None:
            return None
        return await self._resolve_entry(session, model, 1)

    async def get_active_model_for_tier(self, tier: str, model_type: str) -> Optional[Dict[str, Any]]:
        async with self.session() as session:
            entry = await self._tier_entry(session, tier, model_type)
            if entry is not None:
                return entry
            return await self._default_entry(session, model_type)

    # ------------------------------------------------------------------
    # Tier models
    # ------------------------------------------------------------------

    async def set_tier_model(self, tier: str, model_type: str, model_pk: str) -> TierModel:
        if tier not in SUBSCRIPTION_TIERS:
            raise ValidationError(f"Invalid subscription tier: {tier}")
        async with self.transaction() as session:
            model = await self.get_live(session, AIModel, model_pk, "Model")
            if model.type != model_type:
                raise ValidationError(f"Model {model.model_id} is a {model.type} model, not {model_type}")
            result = await session.execute(
                select(TierModel).where(TierModel.tier == tier, TierModel.type == model_type)
            )
            tier_model = result.scalar_one_or_none()
            if tier_model is None:
                tier_model = TierModel(tier=tier, type=model_type, model_id=model.id)
                session.add(tier_model)
            else:
                tier_model.model_id = model.id
            await session.flush()
            return tier_model

    async def get_tier_models(self) -> Dict[str, Dict[str, Dict[str, Any]]]:
        """{tier: {type: {model_pk, model_id, name, provider}}}"""
        async with self.session() as session:
            rows = (
                await session.execute(
                    select(TierModel, AIModel, AIProvider)
                    .join(AIModel, TierModel.model_id == AIModel.id)
                    .join(AIProvider, AIModel.provider_id == AIProvider.id)
                )
            ).all()
        tier_models: Dict[str, Dict[str, Dict[str, Any]]] = {}
        for tier_model, model, provider in rows:
            tier_models.setdefault(tier_model.tier, {})[tier_model.type] = {
                "model_pk": model.id,
                "model_id": model.model_id,
                "name": model.name,
                "provider": provider.slug,
            }
        return tier_models

    # ------------------------------------------------------------------
    # Platform API keys
    # ------------------------------------------------------------------

    async def add_api_key(self, provider_slug: str, api_key: str, name: Optional[str] = None) -> PlatformApiKey:
        if not api_key or not api_key.strip():
            raise ValidationError("api_key is required")
        async with self.transaction() as session:
            provider = await self._provider_by_slug(session, provider_slug)
            key = PlatformApiKey(provider_id=provider.id, name=name, encrypted_key=api_key.strip(), is_active=True)
            session.add(key)
            await session.flush()
            return key

    async def delete_api_key(self, key_id: str) -> None:
        async with self.transaction() as session:
            key = await session.get(PlatformApiKey, key_id)
            if key is None:
                raise NotFoundError("API key not found")
            await session.delete(key)

    async def list_api_keys(self, provider_slug: Optional[str] = None) -> List[Dict[str, Any]]:
        """Every platform key with the secret masked."""
        stmt = select(PlatformApiKey, AIProvider).join(AIProvider, PlatformApiKey.provider_id == AIProvider.id)
        if provider_slug:
            stmt = stmt.where(AIProvider.slug == provider_slug)
        async with self.session() as session:
            rows = (await session.execute(stmt.order_by(PlatformApiKey.created_at))).all()
        return [
            {
                "id": key.id,
                "provider": provider.slug,
                "name": key.name,
                "api_key": mask_api_key(key.encrypted_key),
                "is_active": key.is_active,
                "usage_count": key.usage_count or 0,
                "last_used_at": key.last_used_at,
            }
            for key, provider in rows
        ]

    @staticmethod
    async def _active_key(session: AsyncSession, provider: AIProvider):
        # Least used key first spreads load across keys of one provider
        result = await session.execute(
            select(PlatformApiKey)
            .where(PlatformApiKey.provider_id == provider.id, PlatformApiKey.is_active.is_(True))
            .order_by(PlatformApiKey.usage_count.asc(), PlatformApiKey.created_at.asc())
            .limit(1)
        )
        key = result.scalar_one_or_none()
        if key is not None:
            return key.id, key.encrypted_key
        env_key = (config.get("providers", {}).get(provider.slug) or {}).get("env_key")
        return None, (os.getenv(env_key, "") if env_key else "")

    async def get_api_key(self, provider_slug: str) -> str:
        """Active platform key for a provider, else the provider's environment variable."""
        async with self.session() as session:
            provider = await self._provider_by_slug(session, provider_slug)
            _, api_key = await self._active_key(session, provider)
            return api_key

    async def increment_api_key_usage(self, key_id: str) -> None:
        async with self.transaction() as session:
            await session.execute(
                update(PlatformApiKey)
                .where(PlatformApiKey.id == key_id)
                .values(usage_count=PlatformApiKey.usage_count + 1, last_used_at=utcnow())
            )

    # ------------------------------------------------------------------
    # Fallback queues
    # ------------------------------------------------------------------

    async def save_fallback_config(self, tier: str, model_type: str, model_pks: List[str]) -> List[FallbackConfig]:
        """Replace the queue of one tier and type; list order becomes priority 1..n."""
        if tier not in SUBSCRIPTION_TIERS:
            raise ValidationError(f"Invalid subscription tier: {tier}")
        if model_type not in AI_TYPES:
            raise ValidationError(f"Invalid model type: {model_type}")
        async with self.transaction() as session:
            await session.execute(
                delete(FallbackConfig).where(FallbackConfig.tier == tier, FallbackConfig.type == model_type)
            )
            rows = []
            for priority, model_pk in enumerate(model_pks, start=1):
                await self.get_live(session, AIModel, model_pk, "Model")
                row = FallbackConfig(tier=tier, type=model_type, priority=priority, model_id=model_pk, is_active=True)
                session.add(row)
                rows.append(row)
            await session.flush()
            return rows

    async def get_all_fallback_configs(self) -> Dict[str, Dict[str, List[Dict[str, Any]]]]:
        """{tier: {type: [entry, ...]}} for the admin screen; keys never leave the server."""
        async with self.session() as session:
            rows = (
                await session.execute(
                    select(FallbackConfig, AIModel, AIProvider)
                    .join(AIModel, FallbackConfig.model_id == AIModel.id)
                    .join(AIProvider, AIModel.provider_id == AIProvider.id)
                    .order_by(FallbackConfig.tier, FallbackConfig.type, FallbackConfig.priority)
                )
            ).all()
        grouped: Dict[str, Dict[str, List[Dict[str, Any]]]] = {}
        for fallback, model, provider in rows:
            grouped.setdefault(fallback.tier, {}).setdefault(fallback.type, []).append(
                {
                    "priority": fallback.priority,
                    "model_pk": model.id,
                    "model_id": model.model_id,
                    "name": model.name,
                    "provider": provider.slug,
                    "credit_cost": model.credit_cost,
                    "is_active": fallback.is_active,
                }
            )
        return grouped

    async def get_fallback_queue(self, model_type: str, tier: str) -> List[Dict[str, Any]]:
        """
        获取回退队列 / Ordered (provider, model) entries for one type and tier

        Configured rows win. Without them the queue is the tier model followed
        by the default model when the two differ.
        """
        async with self.session() as session:
            result = await session.execute(
                select(FallbackConfig, AIModel)
                .join(AIModel, FallbackConfig.model_id == AIModel.id)
                .where(
                    FallbackConfig.tier == tier,
                    FallbackConfig.type == model_type,
                    FallbackConfig.is_active.is_(True),
                )
                .order_by(FallbackConfig.priority.asc())
            )
            configured = result.all()
            if configured:
                queue = []
                for fallback, model in configured:
                    entry = await self._resolve_entry(session, model, fallback.priority)
                    if entry is not None:
                        queue.append(entry)
                return queue

            queue = []
            primary = await self._tier_entry(session, tier, model_type)
            default = await self._default_entry(session, model_type)
            if primary is not None:
                queue.append(primary)
            if default is not None and (primary is None or default["id"] != primary["id"]):
                default["priority"] = len(queue) + 1
                queue.append(default)
            return queue

    # ------------------------------------------------------------------
    # Seeding
    # ------------------------------------------------------------------

    async def seed_defaults(self) -> Dict[str, int]:
        """
        幂等地写入默认提供商与模型目录

        Idempotently seed the provider and model catalog. Existing rows are
        left untouched; each type gets a default model when it has none.
        """
        created_providers = 0
        created_models = 0
        catalogs = (
            ("text", TEXT_MODEL_RATES),
            ("image", IMAGE_MODEL_RATES),
            ("video", VIDEO_MODEL_RATES),
            ("audio", AUDIO_MODEL_RATES),
        )
        provider_settings = config.get("providers", {}) or {}

        async with self.transaction() as session:
            providers: Dict[str, AIProvider] = {
                p.slug: p for p in (await session.execute(select(AIProvider))).scalars().all()
            }
            for slug, settings in provider_settings.items():
                if slug in providers:
                    continue
                provider = AIProvider(
                    slug=slug,
                    name=PROVIDER_NAMES.get(slug, slug.title()),
                    type=(settings or {}).get("type", "text"),
                    api_base_url=(settings or {}).get("base_url"),
                    is_active=True,
                )
                session.add(provider)
                providers[slug] = provider
                created_providers += 1
            await session.flush()

            existing = {
                (m.provider_id, m.model_id) for m in (await session.execute(select(AIModel))).scalars().all()
            }
            for model_type, catalog in catalogs:
                for sort_order, (model_id, rate) in enumerate(catalog.items()):
                    provider = providers.get(rate.provider)
                    if provider is None or (provider.id, model_id) in existing:
                        continue
                    session.add(
                        AIModel(
                            provider_id=provider.id,
                            model_id=model_id,
                            name=rate.name,
                            type=model_type,
                            credit_cost=rate.credits,
                            is_default=False,
                            is_active=True,
                            sort_order=sort_order,
                        )
                    )
                    created_models += 1
            await session.flush()

            for model_type, model_id in DEFAULT_MODELS.items():
                has_default = await session.execute(
                    select(AIModel.id).where(AIModel.type == model_type, AIModel.is_default.is_(True))
                )
                if has_default.first():
                    continue
                candidate = await session.execute(
                    select(AIModel).where(AIModel.type == model_type, AIModel.model_id == model_id)
                )
                model = candidate.scalars().first()
                if model is not None:
                    model.is_default = True

        logger.info("Seeded %d providers and %d models", created_providers, created_models)
        return {"providers": created_providers, "models": created_models}
