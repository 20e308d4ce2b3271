"""Test pure helpers: text utils, JSON extraction, pricing and beat catalogs."""
import pytest

from modo.exceptions import ProviderError, ValidationError
from modo.pricing import (
    calculate_credit_cost,
    calculate_margin,
    estimate_monthly_cost,
    generation_kind,
    get_generation_cost,
    get_plan_limits,
    get_recommended_models,
    get_tier_delay,
)
from modo.services.scene_service import normalize_distribution
from modo.story_structures import get_beats, list_structures, normalize_structure
from modo.utils.llm_output import parse_json_payload, require_json
from modo.utils.text import compute_context_hash, mask_api_key


# --- mask_api_key ---

class TestMaskApiKey:
    def test_long_key(self):
        assert mask_api_key("sk-abcdefgh1234") == "sk-a*******1234"

    def test_short_key_fully_hidden(self):
        assert mask_api_key("short") == "****"
        assert mask_api_key("12345678") == "****"

    def test_none(self):
        assert mask_api_key(None) == "****"


# --- compute_context_hash ---

class TestContextHash:
    def test_stable_for_same_inputs(self):
        shots = [{"shot_number": 1, "action": "Wide"}, {"shot_number": 2, "action": "Close"}]
        assert compute_context_hash("Synopsis", shots) == compute_context_hash("Synopsis", list(shots))

    def test_changes_with_shots(self):
        base = compute_context_hash("Synopsis", [{"shot_number": 1, "action": "Wide"}])
        assert base != compute_context_hash("Synopsis", [{"shot_number": 1, "action": "Close"}])
        assert base != compute_context_hash("Other", [{"shot_number": 1, "action": "Wide"}])

    def test_accepts_orm_like_rows(self):
        class Shot:
            def __init__(self, shot_number, action):
                self.shot_number = shot_number
                self.action = action

        mapped = compute_context_hash("S", [{"shot_number": 1, "action": "Wide"}])
        assert compute_context_hash("S", [Shot(1, "Wide")]) == mapped
        assert len(mapped) == 32


# --- parse_json_payload ---

class TestParseJsonPayload:
    def test_plain(self):
        assert parse_json_payload('{"a": 1}') == ({"a": 1}, "")

    def test_fenced(self):
        assert parse_json_payload("```json\n[1, 2]\n```", list) == ([1, 2], "")

    def test_embedded_in_prose(self):
        data, error = parse_json_payload('Here you go: {"synopsis": "A heist"} Enjoy!')
        assert error == ""
        assert data == {"synopsis": "A heist"}

    def test_expected_type_mismatch(self):
        assert parse_json_payload("[1, 2]", dict) == (None, "json_parse_failed")

    def test_empty(self):
        assert parse_json_payload("   ") == (None, "empty_response")

    def test_require_json_raises(self):
        with pytest.raises(ProviderError) as exc_info:
            require_json("no json here", dict, provider="openai")
        assert exc_info.value.provider == "openai"


# --- pricing ---

class TestPricing:
    def test_generation_costs_from_config(self):
        assert get_generation_cost("synopsis") == 3
        assert get_generation_cost("video") == 50
        assert get_generation_cost("something_new") == 5

    def test_generation_kind(self):
        assert generation_kind("synopsis") == "text"
        assert generation_kind("character_image") == "image"
        assert generation_kind("video") == "video"
        assert generation_kind("voice") == "audio"

    def test_tier_delays(self):
        assert get_tier_delay("trial") == 30.0
        assert get_tier_delay("creator") == 5.0
        assert get_tier_delay("studio") == 0.0
        with pytest.raises(ValidationError):
            get_tier_delay("platinum")

    def test_plan_limits(self):
        assert get_plan_limits("creator") == {"monthly_credits": 500, "max_video_credits": 50}

    def test_margin(self):
        # 10 credits at $0.0125 = $0.125 revenue
        assert calculate_margin(0.025, 10) == 80.0
        assert calculate_margin(0.01, 0) == 0.0

    def test_unknown_model_uses_default_cost(self):
        assert calculate_credit_cost("no-such-model") == 5

    def test_credit_cost_by_kind(self):
        assert calculate_credit_cost("gpt-4o-mini") == 3
        assert calculate_credit_cost("gpt-4o-mini", "text") == 3
        assert calculate_credit_cost("sora-2", "video") == 100
        # known model looked up in the wrong table falls back to the default
        assert calculate_credit_cost("gpt-4o-mini", "image") == 5
        with pytest.raises(ValidationError):
            calculate_credit_cost("gpt-4o-mini", "hologram")

    def test_estimate_monthly_cost_unknown_model(self):
        estimate = estimate_monthly_cost({"drafts": {"model_id": "no-such-model", "count": 4}})
        assert estimate["credits"] == 20
        assert estimate["price_usd"] == pytest.approx(0.25)
        assert estimate["api_cost_usd"] == 0.0

    def test_recommended_models_cheapest_first(self):
        recommended = get_recommended_models("text")
        assert recommended
        for model in recommended.values():
            assert model["credits"] >= 0


# --- normalize_distribution ---

class TestNormalizeDistribution:
    def test_scales_to_total(self):
        result = normalize_distribution({"a": 1, "b": 1, "c": 2}, ["a", "b", "c"], 8)
        assert result == [("a", 2), ("b", 2), ("c", 4)]

    def test_largest_remainder(self):
        result = normalize_distribution({"a": 1, "b": 1, "c": 1}, ["a", "b", "c"], 10)
        assert sum(count for _, count in result) == 10
        # earlier beats win ties
        assert result == [("a", 4), ("b", 3), ("c", 3)]

    def test_ignores_unknown_and_invalid(self):
        result = normalize_distribution({"a": "x", "b": 2, "zzz": 50}, ["a", "b"], 4)
        assert result == [("a", 0), ("b", 4)]

    def test_even_fallback(self):
        assert normalize_distribution({}, ["a", "b", "c"], 5) == [("a", 2), ("b", 2), ("c", 1)]

    def test_zero_total(self):
        assert normalize_distribution({"a": 3}, ["a"], 0) == [("a", 0)]

    def test_non_finite_counts_ignored(self):
        result = normalize_distribution({"a": float("inf"), "b": 1, "c": float("nan")}, ["a", "b", "c"], 5)
        assert result == [("a", 0), ("b", 5), ("c", 0)]
        assert normalize_distribution({"a": 1e999, "b": "1e999"}, ["a", "b"], 4) == [("a", 2), ("b", 2)]

    def test_huge_counts_do_not_overflow(self):
        result = normalize_distribution({"a": 1e308, "b": 1e308, "c": 1e308}, ["a", "b", "c"], 6)
        assert result == [("a", 2), ("b", 2), ("c", 2)]


# --- story structures ---

class TestStoryStructures:
    def test_beat_counts(self):
        assert len(get_beats("save_the_cat")) == 15
        assert len(get_beats("hero_journey")) == 12
        assert len(get_beats("dan_harmon")) == 8

    def test_aliases(self):
        assert normalize_structure("SaveTheCat") == "save_the_cat"
        assert normalize_structure("harmon") == "dan_harmon"

    def test_unknown(self):
        with pytest.raises(ValidationError):
            normalize_structure("kishotenketsu")

    def test_catalog_shape(self):
        catalog = list_structures()
        assert [s["key"] for s in catalog] == ["save_the_cat", "hero_journey", "dan_harmon"]
        assert catalog[0]["beats"][0] == {
            "key": "openingImage",
            "label": "Opening Image",
            "description": "A snapshot of the hero's world before the journey",
        }
