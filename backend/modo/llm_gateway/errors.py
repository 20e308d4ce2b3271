# -*- coding: utf-8 -*-
"""
MODO Creator Verse - AI 辅助的 IP Bible 创作平台
MODO Creator Verse - AI-assisted IP Bible creation platform

Copyright © 2025-2026 MODO Team
License: PolyForm Noncommercial License 1.0.0

模块说明 / Module Description:
  AI 调用错误分类 - 决定回退队列是否继续以及是否需要限流退避
  AI Call Error Classification - decides whether the fallback queue moves on
  and whether a rate-limit backoff is due before the next entry.
"""

from typing import Tuple

from modo.exceptions import ProviderError

# Permanent failures: a different model may still work, the same one will not
NON_RETRYABLE_PATTERNS = (
    "invalid_api_key",
    "invalid api key",
    "authentication",
    "unauthorized",
    "permission",
    "forbidden",
    "access denied",
    "invalid_model",
    "model not found",
    "model_not_found",
    "context_length_exceeded",
    "maximum context",
    "content_policy",
    "content policy",
    "safety",
    "moderation",
    "billing",
    "insufficient_quota",
    "quota exceeded",
)

RATE_LIMIT_PATTERNS = (
    "rate limit",
    "rate_limit",
    "ratelimit",
    "too many requests",
    "429",
    "throttl",
    "slow down",
)

RETRYABLE_PATTERNS = (
    "timeout",
    "timed out",
    "deadline",
    "connection",
    "connect",
    "network",
    "socket",
    "reset",
    "refused",
    "unreachable",
    "server_error",
    "internal_error",
    "internal server",
    "502",
    "503",
    "504",
    "bad gateway",
    "service unavailable",
    "gateway timeout",
    "overloaded",
    "capacity",
) + RATE_LIMIT_PATTERNS


def classify_error(error: Exception) -> Tuple[bool, str]:
    """
    将错误分类为可重试或不可重试

    Classify an AI call error as retryable or non-retryable.

    Args:
        error: 要分类的异常 / The exception to classify

    Returns:
        (is_retryable, reason)

    Example:
        >>> classify_error(TimeoutError("Request timed out"))
        (True, 'connection_error')
        >>> classify_error(ValueError("invalid_api_key"))
        (False, 'non_retryable:invalid_api_key')
    """
    if isinstance(error, ProviderError) and not error.retryable:
        return False, "provider_rejected"

    error_str = str(error).lower()
    error_type = type(error).__name__.lower()

    if "ratelimit" in error_type:
        return True, "rate_limit"

    if any(t in error_type for t in ("timeout", "connection", "network", "socket")):
        return True, "connection_error"

    if any(t in error_type for t in ("authentication", "permission")):
        return False, "auth_error"

    for pattern in NON_RETRYABLE_PATTERNS:
        if pattern in error_str:
            return False, f"non_retryable:{pattern}"

    for pattern in RETRYABLE_PATTERNS:
        if pattern in error_str:
            return True, f"retryable:{pattern}"

    return True, "unknown_error"


def is_rate_limit_error(error: Exception) -> bool:
    """True when the vendor throttled the call (HTTP 429 or a rate-limit message)."""
    if "ratelimit" in type(error).__name__.lower():
        return True
    if getattr(error, "status_code", None) == 429:
        return True
    error_str = str(error).lower()
    return any(pattern in error_str for pattern in RATE_LIMIT_PATTERNS)
