# -*- coding: utf-8 -*-
"""
MODO Creator Verse - AI 辅助的 IP Bible 创作平台
MODO Creator Verse - AI-assisted IP Bible creation platform

Copyright © 2025-2026 MODO Team
License: PolyForm Noncommercial License 1.0.0

模块说明 / Module Description:
  AI提供商抽象基类 - 文本（chat）与媒体（image/video/audio）统一接口
  Base AI Provider Abstract Classes - unified interfaces for text chat and
  media (image / video / audio) generation vendors.
"""

from abc import ABC, abstractmethod
from typing import Any, Dict, List, Optional


class BaseLLMProvider(ABC):
    """
    大模型提供商抽象基类 / Abstract base class for text (chat) providers

    Attributes:
        api_key (str): API密钥 / API key for authentication.
        model (str): 模型名称 / Model identifier.
        max_tokens (int): 最大生成token数 / Maximum tokens to generate.
        temperature (float): 生成温度 / Sampling temperature.
    """

    def __init__(
        self,
        api_key: str,
        model: str,
        max_tokens: int = 4000,
        temperature: float = 0.7
    ):
        self.api_key = api_key
        self.model = model
        self.max_tokens = max_tokens
        self.temperature = temperature

    @abstractmethod
    async def chat(
        self,
        messages: List[Dict[str, str]],
        temperature: Optional[float] = None,
        max_tokens: Optional[int] = None
    ) -> Dict[str, Any]:
        """
        发送聊天请求 / Send chat request

        Args:
            messages: [{"role": "system"|"user"|"assistant", "content": "..."}]
            temperature: 覆盖默认温度 / Override temperature.
            max_tokens: 覆盖默认token限制 / Override max tokens.

        Returns:
            Dict with keys:
            - content: 生成的文本 / Generated text
            - usage: {"prompt_tokens", "completion_tokens", "total_tokens"}
            - model: 模型名称 / Model name
            - finish_reason: 完成原因 / Completion reason
        """
        pass

    @abstractmethod
    def get_provider_name(self) -> str:
        """获取提供商名称 / Get provider name (e.g., 'openai', 'anthropic')."""
        pass


class BaseMediaProvider(ABC):
    """
    媒体生成提供商抽象基类 / Abstract base class for media providers

    Media vendors return a URL (or a ``data:`` URI when the vendor answers
    with raw bytes / base64).
    """

    def __init__(self, api_key: str, model: str, base_url: Optional[str] = None, timeout: float = 30.0):
        self.api_key = api_key
        self.model = model
        self.base_url = base_url
        self.timeout = timeout

    @abstractmethod
    async def generate(self, prompt: str, **params: Any) -> Dict[str, Any]:
        """
        生成媒体 / Generate one media artifact

        Returns:
            {"url": str, "metadata": dict}
        """
        pass

    @abstractmethod
    def get_provider_name(self) -> str:
        pass
