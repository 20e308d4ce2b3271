# -*- coding: utf-8 -*-
"""
MODO Creator Verse - AI 辅助的 IP Bible 创作平台
MODO Creator Verse - AI-assisted IP Bible creation platform

Copyright © 2025-2026 MODO Team
License: PolyForm Noncommercial License 1.0.0

模块说明 / Module Description:
  应用级异常层次 - 每个异常携带对应的 HTTP 状态码
  Application-level Exception Hierarchy - each exception carries its HTTP status code.
"""

from typing import Any, Dict, List, Optional


class ModoError(Exception):
    """
    MODO 业务错误的基类

    Base exception for all MODO business errors.

    `status_code` is used by the API exception handler to render the
    `{"success": false, "error": ...}` envelope.
    """

    status_code = 500

    def __init__(self, message: str = "", **extra: Any):
        super().__init__(message)
        self.message = message or self.__class__.__name__
        self.extra: Dict[str, Any] = extra

    def to_payload(self) -> Dict[str, Any]:
        payload = {"success": False, "error": self.message}
        payload.update(self.extra)
        return payload


class ValidationError(ModoError):
    """
    数据验证失败异常

    Raised when input validation fails beyond Pydantic checks
    (missing ids, invalid enum values, empty cart, ...).
    """

    status_code = 400


class NotFoundError(ModoError):
    """Raised when a requested entity does not exist or is soft-deleted."""

    status_code = 404


class PermissionDeniedError(ModoError):
    """
    权限不足异常

    Raised when the caller does not own the entity or their subscription
    tier does not allow the operation.
    """

    status_code = 403


class InsufficientCreditsError(ModoError):
    """
    积分不足异常

    Raised when a user's credit balance cannot cover a generation.
    """

    status_code = 402

    def __init__(self, required: int, balance: int, message: str = "Insufficient credits"):
        super().__init__(message, required=required, balance=balance)
        self.required = required
        self.balance = balance


class StorageError(ModoError):
    """Raised when a database operation fails."""

    status_code = 500


class ProviderError(ModoError):
    """
    AI提供商调用失败异常

    Raised when an AI vendor call fails (timeout, rate limit, bad response,
    unknown provider).
    """

    status_code = 502

    def __init__(self, message: str, provider: Optional[str] = None, retryable: bool = True):
        super().__init__(message)
        self.provider = provider
        self.retryable = retryable


class AllProvidersFailedError(ProviderError):
    """Raised when every entry of a fallback queue failed."""

    def __init__(self, last_error: str, attempts: Optional[List[Dict[str, Any]]] = None):
        super().__init__(f"All AI models failed. Last error: {last_error}", retryable=False)
        self.attempts = attempts or []
