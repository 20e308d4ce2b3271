"""AI gateway fallback routing with a scripted vendor."""
import pytest

from modo.exceptions import AllProvidersFailedError, ProviderError
from modo.llm_gateway import classify_error, is_rate_limit_error
from modo.storage.users import UserStorage


async def _model_pks(registry, model_type="text"):
    return {m["model_id"]: m["id"] for m in await registry.list_models(model_type)}


@pytest.mark.asyncio
async def test_no_model_configured(gateway):
    with pytest.raises(ProviderError) as exc_info:
        await gateway.call_with_fallback("synopsis", "A heist in a drowned city", tier="studio")
    assert "No AI model configured for synopsis" in exc_info.value.message


@pytest.mark.asyncio
async def test_default_model_serves_call_and_counts_key_usage(gateway, registry, vendor):
    vendor.script("gpt-4o-mini", "A drowned city hides a vault.")
    result = await gateway.call_with_fallback("synopsis", "Pitch me", tier="studio")

    assert result.success
    assert result.content == "A drowned city hides a vault."
    assert result.provider == "openai"
    assert result.attempts_made == 1
    assert result.fallbacks_used == []

    keys = await registry.list_api_keys("openai")
    assert keys[0]["usage_count"] == 1
    assert keys[0]["api_key"].startswith("sk-o") and "*" in keys[0]["api_key"]


@pytest.mark.asyncio
async def test_fallback_queue_order_and_tier_delay(gateway, registry, vendor, sleeps):
    pks = await _model_pks(registry)
    await registry.save_fallback_config("trial", "text", [pks["claude-3-5-haiku"], pks["gpt-4o-mini"]])
    vendor.script("claude-3-5-haiku", RuntimeError("503 service unavailable"))
    vendor.script("gpt-4o-mini", "second model answered")

    result = await gateway.call_with_fallback("synopsis", "Pitch me", tier="trial")

    assert result.content == "second model answered"
    assert result.attempts_made == 2
    assert result.fallbacks_used == ["anthropic/claude-3-5-haiku"]
    # trial delay only once, before the first attempt
    assert sleeps == [30.0]
    assert result.delay_applied == 30.0
    assert [call[1] for call in vendor.calls] == ["claude-3-5-haiku", "gpt-4o-mini"]


@pytest.mark.asyncio
async def test_rate_limited_entry_waits_before_next(gateway, registry, vendor, sleeps):
    pks = await _model_pks(registry)
    await registry.save_fallback_config("studio", "text", [pks["claude-3-5-haiku"], pks["gpt-4o-mini"]])
    vendor.script("claude-3-5-haiku", RuntimeError("429 Too Many Requests"))
    vendor.script("gpt-4o-mini", "ok")

    result = await gateway.call_with_fallback("synopsis", "Pitch me", tier="studio")

    assert result.success
    assert sleeps == [5.0]


@pytest.mark.asyncio
async def test_all_providers_failed(gateway, registry, vendor):
    pks = await _model_pks(registry)
    await registry.save_fallback_config("studio", "text", [pks["claude-3-5-haiku"], pks["gpt-4o-mini"]])
    vendor.script("claude-3-5-haiku", RuntimeError("connection reset"))
    vendor.script("gpt-4o-mini", RuntimeError("model not found"))

    with pytest.raises(AllProvidersFailedError) as exc_info:
        await gateway.call_with_fallback("synopsis", "Pitch me", tier="studio")

    err = exc_info.value
    assert "model not found" in err.message
    assert [a["model"] for a in err.attempts] == ["claude-3-5-haiku", "gpt-4o-mini"]
    assert err.status_code == 502


@pytest.mark.asyncio
async def test_tier_model_goes_before_default(gateway, registry, vendor):
    pks = await _model_pks(registry)
    await registry.set_tier_model("studio", "text", pks["claude-3-5-haiku"])

    queue = await registry.get_fallback_queue("text", "studio")
    assert [entry["model_id"] for entry in queue] == ["claude-3-5-haiku", "gpt-4o-mini"]
    assert [entry["priority"] for entry in queue] == [1, 2]


@pytest.mark.asyncio
async def test_enterprise_own_key_is_tried_first(gateway, registry, vendor):
    users = UserStorage()
    user = await users.create_user("studio@example.com", "Studio", tier="enterprise")
    user = await users.update_own_ai(user.id, True, "deepseek", "deepseek-chat", "sk-own-key-123456")
    vendor.script("deepseek-chat", "from my own key")

    result = await gateway.call_with_fallback("synopsis", "Pitch me", tier="enterprise", user=user)

    assert result.own_key_used
    assert result.credit_cost == 0
    assert result.provider == "deepseek"


@pytest.mark.asyncio
async def test_media_call_without_url_fails(gateway, registry, vendor):
    vendor.script("dall-e-3", "")
    with pytest.raises(AllProvidersFailedError):
        await gateway.call_with_fallback("moodboard_image", "A lighthouse at dusk", tier="studio")


class TestErrorClassification:
    def test_rate_limit_by_message(self):
        assert is_rate_limit_error(RuntimeError("Rate limit reached for requests"))

    def test_rate_limit_by_status_code(self):
        err = RuntimeError("vendor said no")
        err.status_code = 429
        assert is_rate_limit_error(err)

    def test_auth_error_not_retryable(self):
        retryable, reason = classify_error(ValueError("invalid_api_key"))
        assert retryable is False
        assert reason == "non_retryable:invalid_api_key"

    def test_timeout_retryable(self):
        assert classify_error(TimeoutError("Request timed out")) == (True, "connection_error")
