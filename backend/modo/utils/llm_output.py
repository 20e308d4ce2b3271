# -*- coding: utf-8 -*-
"""
MODO Creator Verse - AI 辅助的 IP Bible 创作平台
MODO Creator Verse - AI-assisted IP Bible creation platform

Copyright © 2025-2026 MODO Team
License: PolyForm Noncommercial License 1.0.0

模块说明 / Module Description:
  模型输出解析 - 从带噪声的模型回复中提取 JSON（代码块、前后缀说明文字）
  Model output parsing - resilient JSON extraction from noisy model replies
  (markdown fences, prose before or after the payload).
"""

import json
from typing import Any, Iterator, Optional, Tuple

from modo.exceptions import ProviderError

_FENCE_LANGS = {"json", "jsonc", "javascript", "js"}


def parse_json_payload(text: str, expected_type: Optional[type] = None) -> Tuple[Optional[Any], str]:
    """
    从模型回复中解析 JSON / Parse a JSON payload out of a model reply

    Tries the whole reply, then each fenced code block, then every balanced
    ``{...}`` / ``[...]`` segment found inside them.

    Args:
        text: 模型回复 / Model reply
        expected_type: 期望类型（dict / list） / Expected top-level type

    Returns:
        (data, error) where error is "" on success, otherwise
        "empty_response" or "json_parse_failed".

    Example:
        >>> parse_json_payload('Here you go: {"synopsis": "A heist"}')
        ({'synopsis': 'A heist'}, '')
    """
    if not text or not str(text).strip():
        return None, "empty_response"

    for candidate in _candidates(str(text)):
        data = _loads(candidate, expected_type)
        if data is not None:
            return data, ""
        for segment in _balanced_segments(candidate):
            data = _loads(segment, expected_type)
            if data is not None:
                return data, ""
    return None, "json_parse_failed"


def require_json(text: str, expected_type: Optional[type] = None, provider: Optional[str] = None) -> Any:
    """Like parse_json_payload but raises ProviderError("AI returned invalid JSON") on failure."""
    data, error = parse_json_payload(text, expected_type)
    if error:
        raise ProviderError("AI returned invalid JSON", provider=provider, retryable=False)
    return data


def _loads(text: str, expected_type: Optional[type]) -> Optional[Any]:
    try:
        data = json.loads(text)
    except (TypeError, ValueError):
        return None
    if expected_type is not None and not isinstance(data, expected_type):
        return None
    return data


def _candidates(text: str) -> Iterator[str]:
    cleaned = text.strip()
    yield cleaned
    if "```" not in cleaned:
        return
    blocks = cleaned.split("```")
    # Odd indexes are inside fences
    for block in blocks[1::2]:
        lines = block.strip().splitlines()
        if lines and lines[0].strip().lower() in _FENCE_LANGS:
            lines = lines[1:]
        body = "\n".join(lines).strip()
        if body:
            yield body


def _balanced_segments(text: str) -> Iterator[str]:
    """Yield every balanced JSON object or array, honouring quoted strings."""
    for start, first in enumerate(text):
        if first not in "{[":
            continue
        stack = []
        in_string = escaped = False
        for idx in range(start, len(text)):
            ch = text[idx]
            if in_string:
                if escaped:
                    escaped = False
                elif ch == "\\":
                    escaped = True
                elif ch == '"':
                    in_string = False
                continue
            if ch == '"':
                in_string = True
            elif ch in "{[":
                stack.append("}" if ch == "{" else "]")
            elif ch in "}]":
                if not stack or stack.pop() != ch:
                    break
                if not stack:
                    yield text[start : idx + 1]
                    break
