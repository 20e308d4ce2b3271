# -*- coding: utf-8 -*-
"""
MODO Creator Verse - AI 辅助的 IP Bible 创作平台
MODO Creator Verse - AI-assisted IP Bible creation platform

Copyright © 2025-2026 MODO Team
License: PolyForm Noncommercial License 1.0.0

模块说明 / Module Description:
  计量生成服务 - 扣费、记录、调用 AI 网关、失败退款
  Metered generation - charges credits and writes a processing log in one
  transaction, calls the AI gateway outside it, then completes the log or
  marks it failed and refunds in a second transaction.
"""

from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, Tuple

from modo.exceptions import ModoError, ValidationError
from modo.llm_gateway import get_gateway
from modo.models import GenerationLog
from modo.pricing import generation_kind, get_generation_cost, is_generation_type
from modo.prompts import get_system_prompt
from modo.storage.generation_logs import GenerationLogStorage
from modo.storage.users import UserStorage
from modo.utils.llm_output import require_json
from modo.utils.logger import get_logger

logger = get_logger(__name__)


@dataclass
class GenerationResult:
    generation_id: str
    credit_cost: int
    result_text: Optional[str] = None
    result_url: Optional[str] = None
    provider: Optional[str] = None
    model: Optional[str] = None
    metadata: Dict[str, Any] = field(default_factory=dict)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "generation_id": self.generation_id,
            "result_text": self.result_text,
            "result_url": self.result_url,
            "credit_cost": self.credit_cost,
            "provider": self.provider,
            "model": self.model,
        }


class GenerationService:
    """
    计量 AI 生成服务 / Metered AI generation

    Every creative module goes through `generate` or `generate_json`, so the
    credit ledger and `ai_generation_logs` always agree: a failed call is
    refunded and its log marked failed.
    """

    def __init__(
        self,
        users: Optional[UserStorage] = None,
        logs: Optional[GenerationLogStorage] = None,
    ) -> None:
        self.users = users or UserStorage()
        self.logs = logs or GenerationLogStorage()

    async def generate(
        self,
        user_id: str,
        generation_type: str,
        prompt: str,
        project_id: Optional[str] = None,
        input_params: Optional[Dict[str, Any]] = None,
        system_prompt: Optional[str] = None,
        media_params: Optional[Dict[str, Any]] = None,
        credit_cost: Optional[int] = None,
    ) -> GenerationResult:
        """
        执行一次计量生成

        Run one metered generation.

        Args:
            user_id: 用户ID / User id
            generation_type: 生成类型 / Generation type (see config credits.costs)
            prompt: 用户提示词 / Prompt
            project_id: 项目ID / Project id for the log
            input_params: 记录到日志的输入参数 / Inputs recorded on the log
            system_prompt: 覆盖默认系统提示词 / Override the type's system prompt
            media_params: 传给媒体提供商的参数 / Vendor params for image/video/audio
            credit_cost: 覆盖默认费用 / Override the configured cost

        Returns:
            GenerationResult

        Raises:
            ValidationError: 未知生成类型或提示词为空 / Unknown type or empty prompt
            InsufficientCreditsError: 积分不足 / Balance too low
            ProviderError: AI 调用失败（已退款） / AI failure (already refunded)
        """
        if not is_generation_type(generation_type):
            raise ValidationError(f"Unknown generation type: {generation_type}")
        if not prompt or not prompt.strip():
            raise ValidationError("prompt is required")

        gateway = get_gateway()
        user = await self.users.get_user(user_id)
        kind = generation_kind(generation_type)
        platform_cost = get_generation_cost(generation_type) if credit_cost is None else int(credit_cost)
        own_key = gateway.own_key_entry(user, kind) is not None
        cost = 0 if own_key else platform_cost

        async with self.users.transaction() as session:
            log = await GenerationLogStorage.create_log(
                session, user_id, generation_type, prompt, cost, project_id, input_params
            )
            if cost > 0:
                await self.users.debit(
                    session,
                    user_id,
                    cost,
                    "usage",
                    reference_type="ai_generation",
                    reference_id=log.id,
                    description=f"AI generation: {generation_type}",
                )
            log_id = log.id

        try:
            result = await gateway.call_with_fallback(
                generation_type,
                prompt,
                tier=user.subscription_tier,
                user=user,
                system_prompt=system_prompt if system_prompt is not None else get_system_prompt(generation_type),
                params=media_params,
            )
            if own_key and not result.own_key_used and platform_cost > 0:
                # Own key failed and the platform queue served the call
                async with self.users.transaction() as session:
                    await self.users.debit(
                        session,
                        user_id,
                        platform_cost,
                        "usage",
                        reference_type="ai_generation",
                        reference_id=log_id,
                        description=f"AI generation: {generation_type}",
                    )
                cost = platform_cost
        except Exception as e:
            await self._fail(log_id, user_id, cost, generation_type, e)
            raise

        usage = result.usage or {}
        await self.logs.mark_completed(
            log_id,
            provider=result.provider,
            model_id=result.model,
            result_text=result.content,
            result_url=result.url,
            result_metadata={
                **(result.metadata or {}),
                "attempts_made": result.attempts_made,
                "fallbacks_used": result.fallbacks_used,
                "delay_applied": result.delay_applied,
                "own_key_used": result.own_key_used,
            },
            tokens_input=int(usage.get("input_tokens") or usage.get("prompt_tokens") or 0),
            tokens_output=int(usage.get("output_tokens") or usage.get("completion_tokens") or 0),
            credit_cost=cost,
        )
        logger.info(
            f"Generation {log_id} ({generation_type}) completed via {result.provider}/{result.model}, cost {cost}"
        )
        return GenerationResult(
            generation_id=log_id,
            credit_cost=cost,
            result_text=result.content,
            result_url=result.url,
            provider=result.provider,
            model=result.model,
            metadata=result.metadata or {},
        )

    async def _fail(self, log_id: str, user_id: str, cost: int, generation_type: str, error: Exception) -> None:
        message = error.message if isinstance(error, ModoError) else str(error)
        logger.error(f"Generation {log_id} ({generation_type}) failed: {message}")
        async with self.users.transaction() as session:
            await GenerationLogStorage.mark_failed(session, log_id, message)
            if cost > 0:
                await self.users.credit(
                    session,
                    user_id,
                    cost,
                    "refund",
                    reference_type="ai_generation",
                    reference_id=log_id,
                    description=f"Refund for failed {generation_type}",
                )

    async def generate_json(
        self,
        user_id: str,
        generation_type: str,
        prompt: str,
        expected_type: Optional[type] = None,
        **kwargs: Any,
    ) -> Tuple[Any, GenerationResult]:
        """
        生成并解析 JSON / Generate and parse a JSON payload

        The call itself succeeded when parsing fails, so credits stay spent.

        Raises:
            ProviderError: AI returned invalid JSON
        """
        result = await self.generate(user_id, generation_type, prompt, **kwargs)
        data = require_json(result.result_text or "", expected_type, provider=result.provider)
        return data, result

    async def get_history(
        self,
        user_id: str,
        project_id: Optional[str] = None,
        generation_type: Optional[str] = None,
        accepted_only: bool = False,
        limit: int = 20,
    ) -> List[GenerationLog]:
        return await self.logs.get_history(user_id, project_id, generation_type, accepted_only, limit)

    async def get_generation(self, generation_id: str, user_id: str) -> GenerationLog:
        return await self.logs.get_generation(generation_id, user_id)

    async def accept(self, generation_id: str, user_id: str) -> GenerationLog:
        return await self.logs.accept(generation_id, user_id)


generation_service = GenerationService()
