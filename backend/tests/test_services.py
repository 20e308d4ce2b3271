"""Generation services: what lands in storage and what gets charged."""
import json

import pytest

from modo.exceptions import AllProvidersFailedError, InsufficientCreditsError, ValidationError
from modo.services.animation_service import animation_service
from modo.services.character_service import character_service
from modo.services.moodboard_service import moodboard_service
from modo.services.scene_service import scene_service
from modo.services.universe_service import universe_service
from modo.storage.animations import AnimationStorage
from modo.storage.characters import CharacterStorage
from modo.storage.moodboards import MoodboardStorage
from modo.storage.scenes import SceneStorage
from modo.storage.stories import StoryStorage
from modo.storage.universes import UniverseStorage
from modo.storage.users import UserStorage


@pytest.fixture
async def story(project, user):
    return await StoryStorage().create_version(
        project.id, user.id, structure="dan_harmon", fields={"premise": "A courier smuggles memories"}
    )


@pytest.fixture
async def moodboard(story, project):
    moodboard, _ = await MoodboardStorage().create_moodboard(project.id, story.id, key_action_count=3)
    return moodboard


async def _balance(user):
    return await UserStorage().get_balance(user.id)


# --- moodboards ---

@pytest.mark.asyncio
async def test_key_actions_then_prompts(gateway, registry, vendor, user, project, moodboard):
    mara = await CharacterStorage().create_character(project.id, {"name": "Mara", "role": "protagonist"})
    vendor.script(
        "gpt-4o-mini",
        json.dumps(
            [
                {"description": "Mara lights the harbor lamp", "character_ids": [mara.id, "ghost"], "universe_level": "city"},
                "Mara counts the boats",
            ]
        ),
    )

    generated, results = await moodboard_service.generate(
        project.id, moodboard.id, user.id, "key_actions", beat_key="youZone"
    )

    assert generated == 2
    assert results == [{"beat_key": "youZone", "generated": 2}]
    first, second, third = await MoodboardStorage().list_items(moodboard.id, beat_key="youZone")
    assert first.characters_involved == [mara.id]
    assert first.universe_level == "city"
    assert [i.status for i in (first, second, third)] == ["has_description", "has_description", "empty"]
    assert await _balance(user) == 47

    vendor.script(
        "gpt-4o-mini",
        json.dumps({"prompt": "Wide shot, lamp glow on wet stone", "negative_prompt": "blurry"}),
        "Sorry, no JSON today.",
    )
    generated, results = await moodboard_service.generate(
        project.id, moodboard.id, user.id, "prompts", beat_key="youZone"
    )

    assert generated == 1
    assert results[0] == {"item_id": first.id, "prompt": "Wide shot, lamp glow on wet stone"}
    assert results[1] == {"item_id": second.id, "error": "AI returned invalid JSON"}
    refreshed = await MoodboardStorage().get_item(first.id)
    assert refreshed.status == "has_prompt"
    assert refreshed.negative_prompt == "blurry"
    # invalid JSON is still a completed generation, so both calls are charged
    assert await _balance(user) == 41


@pytest.mark.asyncio
async def test_key_actions_continue_after_failed_beat(gateway, registry, vendor, user, project, moodboard):
    vendor.script(
        "gpt-4o-mini",
        RuntimeError("503 service unavailable"),
        json.dumps(["Mara boards the ferry"]),
    )

    generated, results = await moodboard_service.generate(project.id, moodboard.id, user.id, "key_actions")

    assert results[0]["beat_key"] == "youZone"
    assert "error" in results[0]
    assert all(r.get("generated") == 1 for r in results[1:])
    assert len(results) == 8
    assert generated == 7
    # the failed beat is refunded
    assert await _balance(user) == 50 - 7 * 3


@pytest.mark.asyncio
async def test_key_actions_stop_when_credits_run_out(gateway, registry, vendor, user, project, moodboard):
    await UserStorage().adjust_credits(user.id, -46, "drain")
    vendor.script("gpt-4o-mini", json.dumps(["One", "Two", "Three"]))

    generated, results = await moodboard_service.generate(project.id, moodboard.id, user.id, "key_actions")

    assert generated == 3
    assert results == [
        {"beat_key": "youZone", "generated": 3},
        {"beat_key": "needDesire", "error": "Insufficient credits"},
    ]
    assert await _balance(user) == 1

    with pytest.raises(InsufficientCreditsError):
        await moodboard_service.generate(project.id, moodboard.id, user.id, "key_actions", beat_key="go")


@pytest.mark.asyncio
async def test_prompts_need_key_actions(gateway, registry, user, project, moodboard):
    with pytest.raises(ValidationError):
        await moodboard_service.generate(project.id, moodboard.id, user.id, "prompts")
    with pytest.raises(ValidationError):
        await moodboard_service.generate(project.id, moodboard.id, user.id, "poses")
    assert await _balance(user) == 50


# --- animations ---

async def _animation(project, moodboard, images=1):
    moodboards = MoodboardStorage()
    items = await moodboards.list_items(moodboard.id)
    for item in items[:images]:
        await moodboards.update_item(item.id, {"key_action_description": f"Action {item.key_action_index}"})
        await moodboards.add_item_version(item.id, f"https://cdn.example.com/{item.id}.png")
    return await AnimationStorage().create_version(project.id, moodboard.id)


@pytest.mark.asyncio
async def test_animation_prompts_default_unknown_motion(gateway, registry, vendor, user, project, moodboard):
    version = await _animation(project, moodboard, images=3)
    vendor.script(
        "gpt-4o-mini",
        json.dumps({"video_prompt": "Slow push in", "camera_motion": "barrel_roll"}),
        json.dumps({"video_prompt": "Pan across the docks", "camera_motion": "pan_left"}),
        json.dumps({"camera_motion": "orbit"}),
    )

    generated, results = await animation_service.generate_prompts(version.id, user.id)

    assert generated == 2
    assert [r.get("camera_motion") for r in results[:2]] == ["static", "pan_left"]
    assert results[2]["error"] == "AI returned no video_prompt"
    clips = await AnimationStorage().list_clips(version.id)
    assert [c.status for c in clips] == ["prompt_ready", "prompt_ready", "pending"]
    assert await _balance(user) == 50 - 3 * 2


@pytest.mark.asyncio
async def test_failed_video_marks_clip_and_refunds(gateway, registry, vendor, user, project, moodboard):
    await registry.create_model("openai", "sora-2", "Sora 2", "video", credit_cost=100, is_default=True)
    version = await _animation(project, moodboard)
    (clip,) = await AnimationStorage().list_clips(version.id)
    vendor.script("sora-2", RuntimeError("503 service unavailable"))

    with pytest.raises(AllProvidersFailedError):
        await animation_service.generate_video(clip.id, user.id)

    animations = AnimationStorage()
    failed = await animations.get_clip(clip.id)
    assert failed.status == "failed"
    assert failed.error_message
    refreshed = await animations.get_version(version.id)
    assert refreshed.status == "failed"
    assert refreshed.completed_clips == 0
    assert await _balance(user) == 50

    vendor.script("sora-2", "https://cdn.example.com/clip.mp4")
    video, result = await animation_service.generate_video(clip.id, user.id)

    assert video.source == "generated"
    assert result.credit_cost == 50
    done = await animations.get_version(version.id)
    assert done.status == "completed"
    assert done.completed_clips == 1
    assert (await animations.get_clip(clip.id)).error_message is None
    assert await _balance(user) == 0


@pytest.mark.asyncio
async def test_video_requires_source_image(gateway, registry, user, project, moodboard):
    version = await _animation(project, moodboard)
    (clip,) = await AnimationStorage().list_clips(version.id)
    await AnimationStorage().update_clip(clip.id, {"source_image_url": ""})

    with pytest.raises(ValidationError):
        await animation_service.generate_video(clip.id, user.id)
    assert await _balance(user) == 50


# --- characters ---

@pytest.mark.asyncio
async def test_character_profile_keeps_known_sections(gateway, registry, vendor, user, project):
    mara = await CharacterStorage().create_character(project.id, {"name": "Mara", "role": "protagonist"})
    vendor.script(
        "gpt-4o-mini",
        json.dumps(
            {
                "physiological": {"age": "34", "build": "wiry"},
                "psychological": {"fear": "drowning"},
                "horoscope": {"sign": "pisces"},
                "swot": "not a section",
            }
        ),
    )

    character, result = await character_service.generate_profile(project.id, mara.id, user.id)

    assert result.credit_cost == 8
    assert character.physiological == {"age": "34", "build": "wiry"}
    assert character.psychological == {"fear": "drowning"}
    assert character.swot == {}

    vendor.script("dall-e-3", "https://cdn.example.com/mara.png")
    version, result = await character_service.generate_image(mara.id, user.id, art_style="noir")

    assert version.version_number == 1
    assert version.is_active
    assert version.credit_cost == 12
    assert "build: wiry" in vendor.calls[-1][2]
    assert (await CharacterStorage().get_character(mara.id)).image_url == "https://cdn.example.com/mara.png"
    assert await _balance(user) == 50 - 8 - 12


# --- universes ---

@pytest.mark.asyncio
async def test_universe_generation_fills_sections(gateway, registry, vendor, user, project, story):
    universe = await UniverseStorage().create_version(project.id)
    vendor.script(
        "gpt-4o-mini",
        json.dumps(
            {
                "environment": {"climate": "Endless monsoon"},
                "lore": {"origin": "The flood"},
                "society": {},
                "weather": "ignored",
            }
        ),
    )

    updated, result = await universe_service.generate_universe(project.id, universe.id, user.id)

    assert result.credit_cost == 10
    assert updated.environment == {"climate": "Endless monsoon"}
    assert updated.lore == {"origin": "The flood"}
    assert updated.society == {}
    assert "A courier smuggles memories" in vendor.calls[-1][2]


# --- scenes ---

@pytest.mark.asyncio
async def test_scene_shots_script_and_image(gateway, registry, vendor, user, project, story):
    (scene,) = await SceneStorage().create_scenes_from_distribution(project.id, story.id, [("youZone", 1)])

    with pytest.raises(ValidationError):
        await scene_service.generate_shots(scene.id, user.id)
    assert await _balance(user) == 50

    await SceneStorage().update_scene(scene.id, {"synopsis": "Mara closes the harbor for the night."})
    vendor.script(
        "gpt-4o-mini",
        '[{"action": "Wide on the harbor", "duration_seconds": 1e999},'
        ' {"action": "Close on Mara", "duration_seconds": 5},'
        ' {"dialogue": "No action here"}, "junk"]',
    )
    shots, result = await scene_service.generate_shots(scene.id, user.id)

    assert [(s.shot_number, s.action, s.duration_seconds) for s in shots] == [
        (1, "Wide on the harbor", 3),
        (2, "Close on Mara", 5),
    ]
    assert result.credit_cost == 3

    vendor.script("gpt-4o-mini", "INT. HARBOR - NIGHT")
    script, result = await scene_service.generate_script(scene.id, user.id)
    assert script.content == "INT. HARBOR - NIGHT"
    assert script.source == "generated"
    assert result.credit_cost == 4

    vendor.script("dall-e-3", "https://cdn.example.com/scene.png")
    image, result = await scene_service.generate_image(scene.id, user.id)
    assert image.image_url == "https://cdn.example.com/scene.png"
    assert "Key shot: Wide on the harbor" in vendor.calls[-1][2]

    assert (await SceneStorage().get_scene(scene.id)).status == "scripted"
    assert await _balance(user) == 50 - 3 - 4 - 12
