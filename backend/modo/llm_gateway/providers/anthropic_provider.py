# -*- coding: utf-8 -*-
"""
MODO Creator Verse - AI 辅助的 IP Bible 创作平台
MODO Creator Verse - AI-assisted IP Bible creation platform

Copyright © 2025-2026 MODO Team
License: PolyForm Noncommercial License 1.0.0

模块说明 / Module Description:
  Anthropic (Claude) 提供商适配器
  Anthropic (Claude) Provider - Implements BaseLLMProvider for the Claude API
"""

from typing import Any, Dict, List, Optional

from anthropic import AsyncAnthropic

from modo.llm_gateway.providers.base import BaseLLMProvider


class AnthropicProvider(BaseLLMProvider):
    """
    Anthropic API提供商 / Anthropic API provider for Claude models

    Claude takes the system prompt as a separate parameter, so system
    messages are lifted out of the message list.
    """

    def __init__(
        self,
        api_key: str,
        model: str = "claude-3-5-sonnet-20241022",
        max_tokens: int = 4000,
        temperature: float = 0.7,
        base_url: Optional[str] = None,
        timeout: float = 60.0,
    ):
        super().__init__(api_key, model, max_tokens, temperature)
        kwargs: Dict[str, Any] = {"api_key": api_key, "timeout": timeout}
        if base_url:
            kwargs["base_url"] = base_url
        self.client = AsyncAnthropic(**kwargs)

    async def chat(
        self,
        messages: List[Dict[str, str]],
        temperature: Optional[float] = None,
        max_tokens: Optional[int] = None
    ) -> Dict[str, Any]:
        system_parts = []
        filtered_messages = []
        for msg in messages:
            if msg["role"] == "system":
                system_parts.append(msg["content"])
            else:
                filtered_messages.append(msg)

        kwargs = {
            "model": self.model,
            "messages": filtered_messages,
            "temperature": self.temperature if temperature is None else temperature,
            "max_tokens": max_tokens or self.max_tokens,
        }
        if system_parts:
            kwargs["system"] = "\n\n".join(system_parts)

        response = await self.client.messages.create(**kwargs)

        text = "".join(block.text for block in response.content if getattr(block, "type", "") == "text")
        return {
            "content": text,
            "usage": {
                "prompt_tokens": response.usage.input_tokens,
                "completion_tokens": response.usage.output_tokens,
                "total_tokens": response.usage.input_tokens + response.usage.output_tokens
            },
            "model": response.model,
            "finish_reason": response.stop_reason
        }

    def get_provider_name(self) -> str:
        return "anthropic"
