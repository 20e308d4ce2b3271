"""
Generation Log Storage
Metered AI generation records: creation, completion, failure and acceptance.
"""

from typing import Any, Dict, List, Optional

from sqlalchemy import select, update
from sqlalchemy.ext.asyncio import AsyncSession

from modo.exceptions import NotFoundError
from modo.models import GenerationLog
from modo.storage.base import BaseStorage


class GenerationLogStorage(BaseStorage):
    """Database storage for `ai_generation_logs`."""

    @staticmethod
    async def create_log(
        session: AsyncSession,
        user_id: str,
        generation_type: str,
        prompt: str,
        credit_cost: int,
        project_id: Optional[str] = None,
        input_params: Optional[Dict[str, Any]] = None,
    ) -> GenerationLog:
        """Insert a `processing` log inside the caller's transaction."""
        log = GenerationLog(
            user_id=user_id,
            project_id=project_id,
            generation_type=generation_type,
            prompt=prompt,
            input_params=input_params or {},
            credit_cost=credit_cost,
            status="processing",
        )
        session.add(log)
        await session.flush()
        return log

    async def mark_completed(
        self,
        log_id: str,
        provider: Optional[str],
        model_id: Optional[str],
        result_text: Optional[str] = None,
        result_url: Optional[str] = None,
        result_metadata: Optional[Dict[str, Any]] = None,
        tokens_input: int = 0,
        tokens_output: int = 0,
        credit_cost: Optional[int] = None,
    ) -> GenerationLog:
        async with self.transaction() as session:
            log = await self.get_live(session, GenerationLog, log_id, "Generation")
            log.status = "completed"
            log.provider = provider
            log.model_id = model_id
            log.result_text = result_text
            log.result_url = result_url
            log.result_metadata = result_metadata or {}
            log.tokens_input = tokens_input
            log.tokens_output = tokens_output
            if credit_cost is not None:
                log.credit_cost = credit_cost
            return log

    @staticmethod
    async def mark_failed(session: AsyncSession, log_id: str, error_message: str) -> None:
        """Flip a log to `failed` inside the caller's transaction."""
        await session.execute(
            update(GenerationLog)
            .where(GenerationLog.id == log_id)
            .values(status="failed", error_message=error_message[:2000])
        )

    async def get_generation(self, generation_id: str, user_id: str) -> GenerationLog:
        async with self.session() as session:
            log = await self.get_live(session, GenerationLog, generation_id, "Generation")
            if log.user_id != user_id:
                raise NotFoundError("Generation not found")
            return log

    async def get_history(
        self,
        user_id: str,
        project_id: Optional[str] = None,
        generation_type: Optional[str] = None,
        accepted_only: bool = False,
        limit: int = 20,
    ) -> List[GenerationLog]:
        conditions = [GenerationLog.user_id == user_id, GenerationLog.deleted_at.is_(None)]
        if project_id:
            conditions.append(GenerationLog.project_id == project_id)
        if generation_type:
            conditions.append(GenerationLog.generation_type == generation_type)
        if accepted_only:
            conditions.append(GenerationLog.is_accepted.is_(True))
        async with self.session() as session:
            result = await session.execute(
                select(GenerationLog).where(*conditions).order_by(GenerationLog.created_at.desc()).limit(limit)
            )
            return list(result.scalars().all())

    async def accept(self, generation_id: str, user_id: str) -> GenerationLog:
        """
        采纳一次生成结果 / Accept one generation

        Other generations of the same user, project and type lose the flag in
        the same transaction.
        """
        async with self.transaction() as session:
            log = await self.get_live(session, GenerationLog, generation_id, "Generation")
            if log.user_id != user_id:
                raise NotFoundError("Generation not found")
            project_condition = (
                GenerationLog.project_id.is_(None) if log.project_id is None else GenerationLog.project_id == log.project_id
            )
            await session.execute(
                update(GenerationLog)
                .where(
                    GenerationLog.user_id == user_id,
                    project_condition,
                    GenerationLog.generation_type == log.generation_type,
                    GenerationLog.id != log.id,
                )
                .values(is_accepted=False)
                .execution_options(synchronize_session="fetch")
            )
            log.is_accepted = True
            await session.flush()
            return log
