# -*- coding: utf-8 -*-
"""
MODO Creator Verse - AI 辅助的 IP Bible 创作平台
MODO Creator Verse - AI-assisted IP Bible creation platform

Copyright © 2025-2026 MODO Team
License: PolyForm Noncommercial License 1.0.0

模块说明 / Module Description:
  OpenAI 兼容提供商 - OpenAI / DeepSeek / xAI / Zhipu / Mistral / Qwen / Routeway
  OpenAI-compatible providers - one chat adapter for every vendor exposing
  /chat/completions, plus the OpenAI Images adapter.
"""

from typing import Any, Dict, List, Optional

from openai import AsyncOpenAI

from modo.llm_gateway.providers.base import BaseLLMProvider, BaseMediaProvider


class OpenAICompatibleProvider(BaseLLMProvider):
    """
    OpenAI 兼容聊天提供商 / Chat provider for OpenAI-compatible endpoints

    Attributes:
        provider_name (str): 提供商标识 / Provider slug, e.g. 'deepseek'.
        client (AsyncOpenAI): 异步客户端 / Async client bound to base_url.
    """

    def __init__(
        self,
        api_key: str,
        model: str,
        provider_name: str = "openai",
        base_url: Optional[str] = None,
        max_tokens: int = 4000,
        temperature: float = 0.7,
        timeout: float = 60.0,
    ):
        super().__init__(api_key, model, max_tokens, temperature)
        self.provider_name = provider_name
        self.client = AsyncOpenAI(api_key=api_key, base_url=base_url or None, timeout=timeout)

    async def chat(
        self,
        messages: List[Dict[str, str]],
        temperature: Optional[float] = None,
        max_tokens: Optional[int] = None
    ) -> Dict[str, Any]:
        response = await self.client.chat.completions.create(
            model=self.model,
            messages=messages,
            temperature=self.temperature if temperature is None else temperature,
            max_tokens=max_tokens or self.max_tokens,
        )
        choice = response.choices[0]
        usage = response.usage
        return {
            "content": choice.message.content or "",
            "usage": {
                "prompt_tokens": getattr(usage, "prompt_tokens", 0) or 0,
                "completion_tokens": getattr(usage, "completion_tokens", 0) or 0,
                "total_tokens": getattr(usage, "total_tokens", 0) or 0,
            },
            "model": response.model,
            "finish_reason": choice.finish_reason,
        }

    def get_provider_name(self) -> str:
        return self.provider_name


class OpenAIImageProvider(BaseMediaProvider):
    """OpenAI Images (DALL-E) adapter."""

    # Catalog ids carry quality/size hints that the API takes as parameters
    _MODEL_PRESETS = {
        "dall-e-3-standard": ("dall-e-3", "standard", "1024x1024"),
        "dall-e-3-hd": ("dall-e-3", "hd", "1024x1024"),
        "dall-e-3-hd-wide": ("dall-e-3", "hd", "1792x1024"),
    }

    def __init__(self, api_key: str, model: str, base_url: Optional[str] = None, timeout: float = 60.0):
        super().__init__(api_key, model, base_url, timeout)
        self.client = AsyncOpenAI(api_key=api_key, base_url=base_url or None, timeout=timeout)

    async def generate(self, prompt: str, **params: Any) -> Dict[str, Any]:
        model, quality, size = self._MODEL_PRESETS.get(self.model, (self.model, "standard", "1024x1024"))
        response = await self.client.images.generate(
            model=model,
            prompt=prompt,
            n=1,
            quality=params.get("quality", quality),
            size=params.get("size", size),
        )
        image = response.data[0]
        url = image.url or (f"data:image/png;base64,{image.b64_json}" if image.b64_json else None)
        return {
            "url": url,
            "metadata": {"revised_prompt": getattr(image, "revised_prompt", None), "size": size},
        }

    def get_provider_name(self) -> str:
        return "openai"
