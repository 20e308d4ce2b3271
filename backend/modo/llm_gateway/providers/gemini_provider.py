# -*- coding: utf-8 -*-
"""
MODO Creator Verse - AI 辅助的 IP Bible 创作平台
MODO Creator Verse - AI-assisted IP Bible creation platform

Copyright © 2025-2026 MODO Team
License: PolyForm Noncommercial License 1.0.0

模块说明 / Module Description:
  Google Gemini 提供商适配器（google-genai SDK）
  Google Gemini Provider - Implements BaseLLMProvider with the google-genai SDK.
"""

from typing import Any, Dict, List, Optional

from google import genai
from google.genai import types

from modo.llm_gateway.providers.base import BaseLLMProvider


class GeminiProvider(BaseLLMProvider):
    """Gemini chat provider; system messages become `system_instruction`."""

    def __init__(
        self,
        api_key: str,
        model: str = "gemini-2.0-flash-exp",
        max_tokens: int = 4000,
        temperature: float = 0.7,
    ):
        super().__init__(api_key, model, max_tokens, temperature)
        self.client = genai.Client(api_key=api_key)

    async def chat(
        self,
        messages: List[Dict[str, str]],
        temperature: Optional[float] = None,
        max_tokens: Optional[int] = None
    ) -> Dict[str, Any]:
        system_parts = [m["content"] for m in messages if m["role"] == "system"]
        contents = [
            types.Content(
                role="model" if m["role"] == "assistant" else "user",
                parts=[types.Part(text=m["content"])],
            )
            for m in messages
            if m["role"] != "system"
        ]

        response = await self.client.aio.models.generate_content(
            model=self.model,
            contents=contents,
            config=types.GenerateContentConfig(
                temperature=self.temperature if temperature is None else temperature,
                max_output_tokens=max_tokens or self.max_tokens,
                system_instruction="\n\n".join(system_parts) or None,
            ),
        )

        usage = response.usage_metadata
        prompt_tokens = getattr(usage, "prompt_token_count", 0) or 0
        completion_tokens = getattr(usage, "candidates_token_count", 0) or 0
        finish_reason = None
        if response.candidates:
            finish_reason = str(response.candidates[0].finish_reason)
        return {
            "content": response.text or "",
            "usage": {
                "prompt_tokens": prompt_tokens,
                "completion_tokens": completion_tokens,
                "total_tokens": prompt_tokens + completion_tokens,
            },
            "model": self.model,
            "finish_reason": finish_reason,
        }

    def get_provider_name(self) -> str:
        return "google"
