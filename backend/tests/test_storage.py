"""Storage behaviour against a temporary SQLite database."""
import pytest

from modo.exceptions import NotFoundError, ValidationError
from modo.storage.animations import AnimationStorage
from modo.storage.characters import CharacterStorage
from modo.storage.moodboards import MoodboardStorage
from modo.storage.projects import ProjectStorage
from modo.storage.scenes import SceneStorage
from modo.storage.stories import StoryStorage
from modo.storage.universes import UniverseStorage
from modo.storage.users import UserStorage


@pytest.fixture
def stories(database):
    return StoryStorage()


@pytest.fixture
async def story(stories, project, user):
    return await stories.create_version(project.id, user.id, fields={"premise": "A courier smuggles memories"})


# --- projects ---

@pytest.mark.asyncio
async def test_project_soft_delete_and_restore(project, user):
    projects = ProjectStorage()
    await projects.delete_project(project.id, user.id)
    with pytest.raises(NotFoundError):
        await projects.get_owned_project(project.id, user.id)
    items, total = await projects.list_projects(user.id)
    assert total == 0 and items == []

    restored = await projects.restore_project(project.id, user.id)
    assert restored.deleted_at is None


@pytest.mark.asyncio
async def test_project_of_another_user_is_not_found(project):
    other = await UserStorage().create_user("other@example.com", "Other")
    with pytest.raises(NotFoundError):
        await ProjectStorage().get_owned_project(project.id, other.id)


@pytest.mark.asyncio
async def test_project_status_is_validated(project, user):
    with pytest.raises(ValidationError):
        await ProjectStorage().update_project(project.id, user.id, {"status": "shipped"})


# --- story versions ---

@pytest.mark.asyncio
async def test_new_story_version_is_the_only_active_one(stories, project, user, story):
    second = await stories.create_version(project.id, user.id)

    versions = await stories.list_versions(project.id)
    assert [v.id for v in versions if v.is_active] == [second.id]
    assert second.version_name == "Save the Cat v2"
    assert (await stories.get_active_version(project.id)).id == second.id


@pytest.mark.asyncio
async def test_version_number_counts_per_structure(stories, project, user, story):
    hero = await stories.create_version(project.id, user.id, structure="heros_journey")
    assert hero.structure == "hero_journey"
    assert hero.version_number == 1
    assert hero.version_name == "Hero's Journey v1"


@pytest.mark.asyncio
async def test_unknown_structure_rejected(stories, project, user):
    with pytest.raises(ValidationError):
        await stories.create_version(project.id, user.id, structure="three_act_opera")


@pytest.mark.asyncio
async def test_copy_seed_fields_only(stories, project, user, story):
    await stories.update_version(story.id, {"synopsis": "Full synopsis", "genre": "noir"})
    copy = await stories.create_version(project.id, user.id, structure="dan_harmon", copy_from_version_id=story.id)
    assert copy.premise == "A courier smuggles memories"
    assert copy.genre == "noir"
    assert copy.synopsis is None


@pytest.mark.asyncio
async def test_deleting_active_version_promotes_latest(stories, project, user, story):
    second = await stories.create_version(project.id, user.id)
    third = await stories.create_version(project.id, user.id)

    promoted = await stories.delete_version(third.id)

    assert promoted.id == second.id
    active = await stories.get_active_version(project.id)
    assert active.id == second.id
    assert len(await stories.list_versions(project.id)) == 2
    assert len(await stories.list_versions(project.id, include_deleted=True)) == 3


@pytest.mark.asyncio
async def test_deleting_inactive_version_keeps_active(stories, project, user, story):
    second = await stories.create_version(project.id, user.id)
    assert await stories.delete_version(story.id) is None
    assert (await stories.get_active_version(project.id)).id == second.id


@pytest.mark.asyncio
async def test_activate_older_version(stories, project, user, story):
    await stories.create_version(project.id, user.id)
    await stories.activate_version(story.id)
    versions = await stories.list_versions(project.id)
    assert [v.id for v in versions if v.is_active] == [story.id]


# --- characters and universes ---

@pytest.mark.asyncio
async def test_character_image_versions_single_active(database, project):
    characters = CharacterStorage()
    hero = await characters.create_character(project.id, {"name": "Mara", "role": "protagonist"})

    first = await characters.add_image_version(hero.id, "https://cdn.example.com/mara-1.png")
    second = await characters.add_image_version(hero.id, "https://cdn.example.com/mara-2.png")
    assert second.version_number == 2
    assert (await characters.get_character(hero.id)).image_url.endswith("mara-2.png")

    await characters.activate_image_version(first.id)
    versions = await characters.list_image_versions(hero.id)
    assert [v.id for v in versions if v.is_active] == [first.id]
    assert (await characters.get_character(hero.id)).image_url.endswith("mara-1.png")

    await characters.delete_image_version(first.id)
    assert (await characters.get_character(hero.id)).image_url is None


@pytest.mark.asyncio
async def test_character_role_validated(database, project):
    with pytest.raises(ValidationError):
        await CharacterStorage().create_character(project.id, {"name": "Mara", "role": "sidekick-ish"})


@pytest.mark.asyncio
async def test_character_delete_and_restore(database, project):
    characters = CharacterStorage()
    hero = await characters.create_character(project.id, {"name": "Mara"})
    await characters.delete_character(hero.id)
    live, deleted = await characters.list_characters(project.id)
    assert live == [] and [c.id for c in deleted] == [hero.id]
    await characters.restore_character(hero.id)
    live, _ = await characters.list_characters(project.id)
    assert [c.id for c in live] == [hero.id]


@pytest.mark.asyncio
async def test_universe_copy_and_single_active(database, project):
    universes = UniverseStorage()
    first = await universes.create_version(project.id, sections={"lore": {"origin": "The flood"}})
    second = await universes.create_version(project.id, copy_from_version_id=first.id)

    assert second.version_name == "Universe v2"
    assert second.lore == {"origin": "The flood"}
    assert (await universes.get_active(project.id)).id == second.id


# --- moodboards ---

@pytest.mark.asyncio
async def test_moodboard_seeds_items_per_beat(database, project, story):
    moodboards = MoodboardStorage()
    moodboard, items = await moodboards.create_moodboard(project.id, story.id, key_action_count=3)

    # save_the_cat has 15 beats
    assert len(items) == 15 * 3
    assert items[0].beat_key == "openingImage"
    assert {i.key_action_index for i in items} == {1, 2, 3}
    assert all(i.status == "empty" for i in items)

    with pytest.raises(ValidationError):
        await moodboards.create_moodboard(project.id, story.id)


@pytest.mark.asyncio
async def test_moodboard_key_action_bounds(database, project, story):
    with pytest.raises(ValidationError):
        await MoodboardStorage().create_moodboard(project.id, story.id, key_action_count=11)


@pytest.mark.asyncio
async def test_moodboard_item_versions(database, project, story):
    moodboards = MoodboardStorage()
    _, items = await moodboards.create_moodboard(project.id, story.id, key_action_count=3)
    item = items[0]

    first = await moodboards.add_item_version(item.id, "https://cdn.example.com/a.png", prompt="a")
    await moodboards.add_item_version(item.id, "https://cdn.example.com/b.png", prompt="b")
    await moodboards.activate_item_version(first.id)

    refreshed = await moodboards.get_item(item.id)
    assert refreshed.image_url.endswith("a.png")
    assert refreshed.status == "has_image"
    versions = await moodboards.list_item_versions(item.id)
    assert [v.version_number for v in versions] == [2, 1]
    assert [v.id for v in versions if v.is_active] == [first.id]


# --- scenes ---

@pytest.mark.asyncio
async def test_scenes_numbered_across_version(database, project, story):
    scenes = SceneStorage()
    rows = await scenes.create_scenes_from_distribution(
        project.id, story.id, [("openingImage", 2), ("themeStated", 0), ("setup", 3)]
    )
    assert [s.scene_number for s in rows] == [1, 2, 3, 4, 5]
    assert [s.beat_key for s in rows] == ["openingImage"] * 2 + ["setup"] * 3

    # Regenerating replaces the live scenes
    await scenes.create_scenes_from_distribution(project.id, story.id, [("finale", 1)])
    live = await scenes.list_scenes(story.id)
    assert [(s.beat_key, s.scene_number) for s in live] == [("finale", 1)]


@pytest.mark.asyncio
async def test_scene_status_moves_forward_only(database, project, story):
    scenes = SceneStorage()
    (scene,) = await scenes.create_scenes_from_distribution(project.id, story.id, [("setup", 1)])

    scene = await scenes.update_scene(scene.id, {"synopsis": "Mara meets the fence"})
    assert scene.status == "plotted"

    await scenes.replace_shots(scene.id, [{"action": "Wide on the harbor"}, {"action": "Close on Mara"}])
    assert (await scenes.get_scene(scene.id)).status == "shot_listed"

    await scenes.save_script(scene.id, "INT. HARBOR - NIGHT")
    assert (await scenes.get_scene(scene.id)).status == "scripted"

    await scenes.add_image_version(scene.id, "https://cdn.example.com/board.png")
    scene = await scenes.update_scene(scene.id, {"title": "The Fence"})
    assert scene.status == "scripted"


@pytest.mark.asyncio
async def test_shots_are_renumbered(database, project, story):
    scenes = SceneStorage()
    (scene,) = await scenes.create_scenes_from_distribution(project.id, story.id, [("setup", 1)])
    shots = await scenes.replace_shots(
        scene.id, [{"action": "one", "shot_number": 7}, {"action": "two", "duration_seconds": 5}]
    )
    assert [s.shot_number for s in shots] == [1, 2]
    assert shots[1].duration_seconds == 5


@pytest.mark.asyncio
async def test_manual_script_edit_in_place_until_context_changes(database, project, story):
    scenes = SceneStorage()
    (scene,) = await scenes.create_scenes_from_distribution(project.id, story.id, [("setup", 1)])
    await scenes.update_scene(scene.id, {"synopsis": "Mara meets the fence"})

    first, created = await scenes.save_script(scene.id, "Draft one")
    assert created and first.version_number == 1

    same, created = await scenes.save_script(scene.id, "Draft one, tightened")
    assert not created
    assert same.id == first.id
    assert same.content == "Draft one, tightened"

    forced, created = await scenes.save_script(scene.id, "Alt take", force_new_version=True)
    assert created and forced.version_number == 2

    await scenes.replace_shots(scene.id, [{"action": "Mara counts the cash"}])
    changed, created = await scenes.save_script(scene.id, "After new shots")
    assert created and changed.version_number == 3

    versions = await scenes.list_script_versions(scene.id)
    assert [v.id for v in versions if v.is_active] == [changed.id]


@pytest.mark.asyncio
async def test_empty_script_rejected(database, project, story):
    scenes = SceneStorage()
    (scene,) = await scenes.create_scenes_from_distribution(project.id, story.id, [("setup", 1)])
    with pytest.raises(ValidationError):
        await scenes.save_script(scene.id, "  ")


@pytest.mark.asyncio
async def test_scene_image_delete_hides_version(database, project, story):
    scenes = SceneStorage()
    (scene,) = await scenes.create_scenes_from_distribution(project.id, story.id, [("setup", 1)])
    first = await scenes.add_image_version(scene.id, "https://cdn.example.com/1.png")
    await scenes.add_image_version(scene.id, "https://cdn.example.com/2.png")

    await scenes.delete_image_version(first.id)
    live, deleted, active = await scenes.list_image_versions(scene.id)
    assert [v.version_number for v in live] == [2]
    assert [v.id for v in deleted] == [first.id]
    assert active.version_number == 2

    with pytest.raises(NotFoundError):
        await scenes.activate_image_version(first.id)


# --- animations ---

async def _moodboard_with_images(project, story, count=2):
    moodboards = MoodboardStorage()
    moodboard, items = await moodboards.create_moodboard(project.id, story.id, key_action_count=3)
    for item in items[:count]:
        await moodboards.add_item_version(item.id, f"https://cdn.example.com/{item.id}.png")
    await moodboards.update_item(items[0].id, {"video_prompt": "Slow push in on the lighthouse"})
    return moodboard


@pytest.mark.asyncio
async def test_animation_version_copies_imaged_items(database, project, story):
    moodboard = await _moodboard_with_images(project, story)
    animations = AnimationStorage()

    version = await animations.create_version(project.id, moodboard.id)
    clips = await animations.list_clips(version.id)

    assert version.version_name == "Animation v1"
    assert version.total_clips == 2
    assert [c.clip_order for c in clips] == [1, 2]
    assert [c.status for c in clips] == ["prompt_ready", "pending"]


@pytest.mark.asyncio
async def test_animation_progress_follows_clips(database, project, story):
    moodboard = await _moodboard_with_images(project, story)
    animations = AnimationStorage()
    version = await animations.create_version(project.id, moodboard.id)
    first, second = await animations.list_clips(version.id)

    await animations.update_clip(first.id, {"status": "processing"})
    assert (await animations.get_version(version.id)).status == "generating"

    await animations.add_clip_video(first.id, "https://cdn.example.com/clip1.mp4")
    refreshed = await animations.get_version(version.id)
    assert refreshed.completed_clips == 1
    assert refreshed.status == "draft"

    await animations.mark_clip_failed(second.id, "vendor timeout")
    assert (await animations.get_version(version.id)).status == "failed"

    await animations.add_clip_video(second.id, "https://cdn.example.com/clip2.mp4", source="external_link")
    refreshed = await animations.get_version(version.id)
    assert refreshed.completed_clips == 2
    assert refreshed.status == "completed"


@pytest.mark.asyncio
async def test_clip_video_versions(database, project, story):
    moodboard = await _moodboard_with_images(project, story, count=1)
    animations = AnimationStorage()
    version = await animations.create_version(project.id, moodboard.id)
    (clip,) = await animations.list_clips(version.id)

    first = await animations.add_clip_video(clip.id, "https://cdn.example.com/v1.mp4")
    await animations.add_clip_video(clip.id, "https://cdn.example.com/v2.mp4")
    await animations.activate_clip_video(first.id)

    assert (await animations.get_clip(clip.id)).video_url.endswith("v1.mp4")
    videos = await animations.list_clip_videos(clip.id)
    assert [v.id for v in videos if v.is_active] == [first.id]

    with pytest.raises(ValidationError):
        await animations.add_clip_video(clip.id, "https://cdn.example.com/v3.mp4", source="torrent")


@pytest.mark.asyncio
async def test_animation_soft_delete_and_restore(database, project, story):
    moodboard = await _moodboard_with_images(project, story, count=1)
    animations = AnimationStorage()
    version = await animations.create_version(project.id, moodboard.id, copy_from_moodboard=False)
    assert version.total_clips == 0

    await animations.delete_version(version.id)
    assert await animations.list_versions(moodboard.id) == []
    assert len(await animations.list_versions(moodboard.id, include_deleted=True)) == 1

    restored = await animations.restore_version(version.id)
    assert restored.deleted_at is None
    assert await animations.count_versions(project.id) == 1


@pytest.mark.asyncio
async def test_clip_camera_motion_validated(database, project, story):
    moodboard = await _moodboard_with_images(project, story, count=1)
    animations = AnimationStorage()
    version = await animations.create_version(project.id, moodboard.id)
    (clip,) = await animations.list_clips(version.id)
    with pytest.raises(ValidationError):
        await animations.update_clip(clip.id, {"camera_motion": "barrel_roll"})
