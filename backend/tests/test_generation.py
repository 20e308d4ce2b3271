"""Metered generation: credit debit, refund on failure and the generation log."""
import asyncio

import pytest

from modo.exceptions import (
    AllProvidersFailedError,
    InsufficientCreditsError,
    NotFoundError,
    ProviderError,
    ValidationError,
)
from modo.services.generation_service import GenerationService
from modo.storage.users import UserStorage


@pytest.fixture
def service(gateway):
    return GenerationService()


@pytest.mark.asyncio
async def test_signup_bonus_is_recorded(user):
    users = UserStorage()
    assert await users.get_balance(user.id) == 50
    transactions, total = await users.list_transactions(user.id)
    assert total == 1
    assert transactions[0].type == "bonus"
    assert transactions[0].balance_after == 50


@pytest.mark.asyncio
async def test_successful_generation_debits_and_logs(service, registry, vendor, user, project):
    vendor.script("gpt-4o-mini", "A courier smuggles memories across a flooded port.")

    result = await service.generate(user.id, "synopsis", "Pitch a noir", project_id=project.id)

    assert result.credit_cost == 3
    assert result.result_text.startswith("A courier")
    assert await UserStorage().get_balance(user.id) == 47

    log = await service.get_generation(result.generation_id, user.id)
    assert log.status == "completed"
    assert log.credit_cost == 3
    assert log.provider == "openai"
    assert log.tokens_input == 10 and log.tokens_output == 20
    assert log.result_metadata["attempts_made"] == 1

    transactions, _ = await UserStorage().list_transactions(user.id)
    usage = [t for t in transactions if t.type == "usage"]
    assert len(usage) == 1
    assert usage[0].amount == -3
    assert usage[0].reference_id == result.generation_id


@pytest.mark.asyncio
async def test_failed_generation_is_refunded(service, registry, vendor, user, project):
    vendor.script("gpt-4o-mini", RuntimeError("503 service unavailable"))

    with pytest.raises(AllProvidersFailedError):
        await service.generate(user.id, "synopsis", "Pitch a noir", project_id=project.id)

    assert await UserStorage().get_balance(user.id) == 50
    logs = await service.get_history(user.id)
    assert len(logs) == 1
    assert logs[0].status == "failed"
    assert "503" in logs[0].error_message

    transactions, _ = await UserStorage().list_transactions(user.id)
    assert sorted(t.type for t in transactions) == ["bonus", "refund", "usage"]


@pytest.mark.asyncio
async def test_insufficient_credits_leaves_no_trace(service, registry, user):
    users = UserStorage()
    await users.adjust_credits(user.id, -48, "test drain")

    with pytest.raises(InsufficientCreditsError) as exc_info:
        await service.generate(user.id, "story_structure", "Full beat sheet")

    assert exc_info.value.status_code == 402
    assert exc_info.value.to_payload() == {
        "success": False,
        "error": "Insufficient credits",
        "required": 10,
        "balance": 2,
    }
    assert await users.get_balance(user.id) == 2
    assert await service.get_history(user.id) == []


@pytest.mark.asyncio
async def test_balance_never_negative(database, user):
    users = UserStorage()
    with pytest.raises(ValidationError):
        await users.adjust_credits(user.id, -51)
    with pytest.raises(InsufficientCreditsError):
        await users.deduct_credits(user.id, 51)
    assert await users.get_balance(user.id) == 50


@pytest.mark.asyncio
async def test_concurrent_deductions_never_overdraw(database, user):
    users = UserStorage()

    outcomes = await asyncio.gather(
        *[users.deduct_credits(user.id, 20) for _ in range(5)], return_exceptions=True
    )

    failures = [o for o in outcomes if isinstance(o, InsufficientCreditsError)]
    successes = [o for o in outcomes if not isinstance(o, Exception)]
    assert len(successes) == 2
    assert len(failures) == 3
    assert await users.get_balance(user.id) == 10
    assert sorted(t.balance_after for t in successes) == [10, 30]

@pytest.mark.asyncio
async def test_unknown_generation_type(service, user):
    with pytest.raises(ValidationError):
        await service.generate(user.id, "poem", "Roses")


@pytest.mark.asyncio
async def test_empty_prompt_rejected(service, user):
    with pytest.raises(ValidationError):
        await service.generate(user.id, "synopsis", "   ")


@pytest.mark.asyncio
async def test_invalid_json_keeps_credits_spent(service, registry, vendor, user):
    vendor.script("gpt-4o-mini", "I cannot answer in JSON today.")

    with pytest.raises(ProviderError) as exc_info:
        await service.generate_json(user.id, "universe", "Build a world", dict)

    assert exc_info.value.message == "AI returned invalid JSON"
    assert await UserStorage().get_balance(user.id) == 40


@pytest.mark.asyncio
async def test_generate_json_parses_fenced_reply(service, registry, vendor, user):
    vendor.script("gpt-4o-mini", 'Sure!\n```json\n{"world_name": "Aster"}\n```')
    data, result = await service.generate_json(user.id, "universe", "Build a world", dict)
    assert data == {"world_name": "Aster"}
    assert result.credit_cost == 10


@pytest.mark.asyncio
async def test_own_key_generation_is_free(service, registry, vendor):
    users = UserStorage()
    user = await users.create_user("ent@example.com", "Ent", tier="enterprise")
    await users.update_own_ai(user.id, True, "deepseek", "deepseek-chat", "sk-own-key-123456")
    vendor.script("deepseek-chat", "own key reply")

    result = await service.generate(user.id, "synopsis", "Pitch")

    assert result.credit_cost == 0
    assert result.provider == "deepseek"
    assert await users.get_balance(user.id) == 50


@pytest.mark.asyncio
async def test_own_key_failure_charges_platform_cost(service, registry, vendor):
    users = UserStorage()
    user = await users.create_user("ent2@example.com", "Ent", tier="enterprise")
    await users.update_own_ai(user.id, True, "deepseek", "deepseek-chat", "sk-own-key-123456")
    vendor.script("deepseek-chat", RuntimeError("invalid_api_key"))
    vendor.script("gpt-4o-mini", "platform reply")

    result = await service.generate(user.id, "synopsis", "Pitch")

    assert result.credit_cost == 3
    assert result.provider == "openai"
    assert await users.get_balance(user.id) == 47
    log = await service.get_generation(result.generation_id, user.id)
    assert log.credit_cost == 3
    assert log.result_metadata["fallbacks_used"] == ["deepseek/deepseek-chat (own key)"]


@pytest.mark.asyncio
async def test_accept_keeps_one_accepted_per_type(service, registry, vendor, user, project):
    first = await service.generate(user.id, "synopsis", "Take one", project_id=project.id)
    second = await service.generate(user.id, "synopsis", "Take two", project_id=project.id)

    await service.accept(first.generation_id, user.id)
    await service.accept(second.generation_id, user.id)

    accepted = await service.get_history(user.id, project_id=project.id, accepted_only=True)
    assert [log.id for log in accepted] == [second.generation_id]


@pytest.mark.asyncio
async def test_generation_of_other_user_is_hidden(service, registry, user):
    other = await UserStorage().create_user("other@example.com", "Other")
    result = await service.generate(user.id, "synopsis", "Mine")

    with pytest.raises(NotFoundError):
        await service.get_generation(result.generation_id, other.id)
