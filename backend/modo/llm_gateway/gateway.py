# -*- coding: utf-8 -*-
"""
MODO Creator Verse - AI 辅助的 IP Bible 创作平台
MODO Creator Verse - AI-assisted IP Bible creation platform

Copyright © 2025-2026 MODO Team
License: PolyForm Noncommercial License 1.0.0

模块说明 / Module Description:
  AI 网关 - 提供商工厂、单次调用与按档位的回退队列调用
  AI Gateway - provider factory, single calls and tier-aware fallback calls.

  call_with_fallback():
    1. Enterprise users with their own key are tried first (credit cost 0).
    2. The tier delay is applied once, before the first queued attempt.
    3. Queue entries are tried in priority order; a rate-limited failure
       waits `generation.rate_limit_backoff_seconds` before the next entry.
    4. The platform key that served a successful call has its usage bumped.
"""

import asyncio
from dataclasses import dataclass, field
from typing import Any, Awaitable, Callable, Dict, List, Optional, Union

from modo.config import config
from modo.exceptions import AllProvidersFailedError, ProviderError
from modo.llm_gateway.errors import classify_error, is_rate_limit_error
from modo.llm_gateway.providers import (
    AnthropicProvider,
    BaseLLMProvider,
    BaseMediaProvider,
    ElevenLabsProvider,
    FalProvider,
    GeminiProvider,
    ModelsLabProvider,
    OpenAICompatibleProvider,
    OpenAIImageProvider,
    ReplicateProvider,
    StabilityProvider,
)
from modo.pricing import generation_kind, get_tier_delay
from modo.storage.ai_registry import AIRegistryStorage
from modo.utils.logger import get_logger

logger = get_logger(__name__)

OPENAI_COMPATIBLE = ("openai", "deepseek", "xai", "zhipu", "mistral", "qwen", "routeway")

MEDIA_PROVIDERS = {
    "image": {
        "openai": OpenAIImageProvider,
        "fal": FalProvider,
        "stability": StabilityProvider,
        "replicate": ReplicateProvider,
    },
    "video": {
        "fal": FalProvider,
        "replicate": ReplicateProvider,
        "modelslab": ModelsLabProvider,
    },
    "audio": {
        "elevenlabs": ElevenLabsProvider,
    },
}


def _generation_settings() -> Dict[str, Any]:
    return config.get("generation", {})


def create_provider(
    slug: str,
    api_key: str,
    model: str,
    base_url: Optional[str] = None,
    kind: str = "text",
) -> Union[BaseLLMProvider, BaseMediaProvider]:
    """
    创建提供商实例 / Build the adapter for a provider slug

    Raises:
        ProviderError: 未知提供商或该提供商不支持此类型 / Unknown slug or unsupported kind
    """
    settings = _generation_settings()
    if kind == "text":
        timeout = float(settings.get("text_timeout_seconds", 60))
        if slug == "anthropic":
            return AnthropicProvider(api_key=api_key, model=model, timeout=timeout)
        if slug == "google":
            return GeminiProvider(api_key=api_key, model=model)
        if slug in OPENAI_COMPATIBLE:
            return OpenAICompatibleProvider(
                api_key=api_key, model=model, provider_name=slug, base_url=base_url, timeout=timeout
            )
        raise ProviderError(f"Unknown provider: {slug}", provider=slug, retryable=False)

    provider_cls = MEDIA_PROVIDERS.get(kind, {}).get(slug)
    if provider_cls is None:
        raise ProviderError(f"{slug} doesn't support {kind}", provider=slug, retryable=False)
    return provider_cls(
        api_key=api_key,
        model=model,
        base_url=base_url,
        timeout=float(settings.get("media_timeout_seconds", 30)),
    )


@dataclass
class AIResult:
    """一次 AI 调用的结果 / Outcome of one AI call (single or with fallback)."""

    success: bool
    content: Optional[str] = None
    url: Optional[str] = None
    provider: Optional[str] = None
    model: Optional[str] = None
    usage: Dict[str, int] = field(default_factory=dict)
    metadata: Dict[str, Any] = field(default_factory=dict)
    error: Optional[str] = None
    credit_cost: Optional[int] = None
    attempts_made: int = 0
    fallbacks_used: List[str] = field(default_factory=list)
    delay_applied: float = 0.0
    own_key_used: bool = False
    exception: Optional[Exception] = field(default=None, repr=False)


class AIGateway:
    """
    AI 网关 / Routes generation calls to vendors

    Args:
        registry: AIRegistryStorage used for fallback queues and key usage.
        provider_factory: 提供商工厂，测试时可替换 / Provider factory, swappable in tests.
        sleep: 异步等待函数 / Awaitable sleep, swappable in tests.
    """

    def __init__(
        self,
        registry: Optional[AIRegistryStorage] = None,
        provider_factory: Callable[..., Union[BaseLLMProvider, BaseMediaProvider]] = create_provider,
        sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
    ):
        self.registry = registry or AIRegistryStorage()
        self.provider_factory = provider_factory
        self.sleep = sleep

    async def call(
        self,
        kind: str,
        entry: Dict[str, Any],
        prompt: str,
        system_prompt: Optional[str] = None,
        params: Optional[Dict[str, Any]] = None,
    ) -> AIResult:
        """
        调用单个模型 / Call one (provider, model) entry

        Vendor failures are returned as an unsuccessful AIResult carrying the
        exception, so the fallback loop can classify it.
        """
        provider_slug = entry.get("provider", "")
        model_id = entry.get("model_id", "")
        if not entry.get("api_key"):
            error = ProviderError(f"API key not configured for {provider_slug}", provider=provider_slug, retryable=False)
            return AIResult(success=False, provider=provider_slug, model=model_id, error=error.message, exception=error)

        try:
            provider = self.provider_factory(
                provider_slug, entry["api_key"], model_id, entry.get("base_url"), kind=kind
            )
            if kind == "text":
                messages = []
                if system_prompt:
                    messages.append({"role": "system", "content": system_prompt})
                messages.append({"role": "user", "content": prompt})
                response = await provider.chat(messages)
                return AIResult(
                    success=True,
                    content=response.get("content", ""),
                    provider=provider_slug,
                    model=model_id,
                    usage=response.get("usage") or {},
                    metadata={"finish_reason": response.get("finish_reason")},
                    credit_cost=entry.get("credit_cost"),
                )

            response = await provider.generate(prompt, **(params or {}))
            if not response.get("url"):
                raise ProviderError(f"{provider_slug} returned no {kind} url", provider=provider_slug, retryable=False)
            return AIResult(
                success=True,
                url=response["url"],
                provider=provider_slug,
                model=model_id,
                metadata=response.get("metadata") or {},
                credit_cost=entry.get("credit_cost"),
            )
        except Exception as e:
            _, reason = classify_error(e)
            logger.warning(f"AI call failed on {provider_slug}/{model_id} ({reason}): {e}")
            return AIResult(success=False, provider=provider_slug, model=model_id, error=str(e), exception=e)

    async def call_with_fallback(
        self,
        generation_type: str,
        prompt: str,
        tier: str = "trial",
        user: Any = None,
        system_prompt: Optional[str] = None,
        params: Optional[Dict[str, Any]] = None,
    ) -> AIResult:
        """
        按回退队列调用 / Call the tier's fallback queue until one entry succeeds

        Args:
            generation_type: 生成类型（如 synopsis / moodboard_image） / Generation type
            prompt: 用户提示词 / User prompt
            tier: 订阅档位 / Subscription tier
            user: 用户对象（企业自有密钥） / User row, for enterprise own keys
            system_prompt: 系统提示词 / System prompt (text only)
            params: 媒体参数 / Media parameters (image_url, negative_prompt, ...)

        Returns:
            成功的 AIResult / The successful AIResult

        Raises:
            ProviderError: 未配置任何模型 / No model configured
            AllProvidersFailedError: 所有模型失败 / Every entry failed
        """
        kind = generation_kind(generation_type)
        attempts: List[Dict[str, Any]] = []
        fallbacks_used: List[str] = []
        last_error = ""

        own_entry = self.own_key_entry(user, kind)
        if own_entry is not None:
            result = await self.call(kind, own_entry, prompt, system_prompt, params)
            attempts.append({"provider": own_entry["provider"], "model": own_entry["model_id"], "error": result.error})
            if result.success:
                result.attempts_made = len(attempts)
                result.own_key_used = True
                result.credit_cost = 0
                return result
            last_error = result.error or "Unknown error"
            fallbacks_used.append(f"{own_entry['provider']}/{own_entry['model_id']} (own key)")
            logger.info(f"Own AI key failed for user {user.id}: {last_error}. Trying platform queue")

        queue = await self.registry.get_fallback_queue(kind, tier)
        if not queue:
            raise ProviderError(f"No AI model configured for {generation_type}", retryable=False)

        delay = get_tier_delay(tier)
        delay_applied = 0.0
        backoff = float(_generation_settings().get("rate_limit_backoff_seconds", 5))

        for index, entry in enumerate(queue):
            if index == 0 and delay > 0:
                logger.info(f"Applying {delay}s delay for {tier} tier")
                await self.sleep(delay)
                delay_applied = delay

            result = await self.call(kind, entry, prompt, system_prompt, params)
            attempts.append({"provider": entry["provider"], "model": entry["model_id"], "error": result.error})
            if result.success:
                if entry.get("api_key_id"):
                    await self.registry.increment_api_key_usage(entry["api_key_id"])
                result.attempts_made = len(attempts)
                result.fallbacks_used = fallbacks_used
                result.delay_applied = delay_applied
                return result

            last_error = result.error or "Unknown error"
            fallbacks_used.append(f"{entry['provider']}/{entry['model_id']}")
            is_last = index == len(queue) - 1
            if not is_last and result.exception is not None and is_rate_limit_error(result.exception):
                logger.info(f"Rate limit on {entry['provider']}, waiting {backoff}s before next model")
                await self.sleep(backoff)

        logger.error(f"All {len(attempts)} AI attempts failed for {generation_type}: {last_error}")
        raise AllProvidersFailedError(last_error, attempts=attempts)

    @staticmethod
    def own_key_entry(user: Any, kind: str) -> Optional[Dict[str, Any]]:
        """企业用户自有密钥条目 / Queue entry for an enterprise user's own key, if usable."""
        if user is None or kind != "text":
            return None
        if getattr(user, "subscription_tier", None) != "enterprise" or not getattr(user, "use_own_api_key", False):
            return None
        if not (user.own_ai_provider and user.own_ai_model and user.own_ai_api_key):
            return None
        base_url = (config.get("providers", {}).get(user.own_ai_provider) or {}).get("base_url")
        return {
            "provider": user.own_ai_provider,
            "model_id": user.own_ai_model,
            "api_key": user.own_ai_api_key,
            "api_key_id": None,
            "base_url": base_url,
            "credit_cost": 0,
        }


_gateway: Optional[AIGateway] = None


def get_gateway() -> AIGateway:
    """获取进程级 AI 网关 / Get the process-wide AIGateway."""
    global _gateway
    if _gateway is None:
        _gateway = AIGateway()
    return _gateway


def set_gateway(gateway: Optional[AIGateway]) -> None:
    """Replace the process-wide gateway (tests install fakes here)."""
    global _gateway
    _gateway = gateway
