# -*- coding: utf-8 -*-
"""
MODO Creator Verse - AI 辅助的 IP Bible 创作平台
MODO Creator Verse - AI-assisted IP Bible creation platform

Copyright © 2025-2026 MODO Team
License: PolyForm Noncommercial License 1.0.0

模块说明 / Module Description:
  文本工具 - API 密钥掩码与场景上下文哈希
  Text helpers - API key masking and scene context hashing.
"""

import hashlib
from typing import Any, Iterable, Mapping, Optional


def mask_api_key(key: Optional[str]) -> str:
    """
    掩码 API 密钥 / Mask an API key for display

    Keeps the first and last four characters. Keys of eight characters or
    fewer are fully hidden.

    Example:
        >>> mask_api_key("sk-abcdefgh1234")
        'sk-a*******1234'
        >>> mask_api_key("short")
        '****'
    """
    if not key or len(key) <= 8:
        return "****"
    return key[:4] + "*" * (len(key) - 8) + key[-4:]


def compute_context_hash(synopsis: Optional[str], shots: Iterable[Any]) -> str:
    """
    计算场景上下文哈希 / Hash of the inputs a scene script is written from

    md5 over ``synopsis + "|" + "|".join("<shot_number>:<action>")``. Shots may
    be ORM rows or mappings.
    """
    parts = []
    for shot in shots:
        if isinstance(shot, Mapping):
            number, action = shot.get("shot_number"), shot.get("action")
        else:
            number, action = getattr(shot, "shot_number", None), getattr(shot, "action", None)
        parts.append(f"{number}:{action or ''}")
    payload = f"{synopsis or ''}|{'|'.join(parts)}"
    return hashlib.md5(payload.encode("utf-8")).hexdigest()
