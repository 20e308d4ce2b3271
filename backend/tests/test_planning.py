"""Strategic plan, project team and materials, and their place in the IP Bible."""
import pytest

from modo.exceptions import InsufficientCreditsError, NotFoundError, ValidationError
from modo.services.export_service import ExportService
from modo.services.strategic_service import normalize_section, strategic_service
from modo.storage.strategic_plans import StrategicPlanStorage
from modo.storage.team import TeamStorage
from modo.storage.users import UserStorage


@pytest.mark.asyncio
async def test_plan_created_on_first_save(project, user):
    plans = StrategicPlanStorage()
    assert await plans.get_plan(project.id, user.id) is None

    first = await plans.save_plan(
        project.id,
        user.id,
        {"customer_segments": "Noir fans 25-40", "performance_factors": {"director": 8, "genre": 6}},
    )
    second = await plans.save_plan(project.id, user.id, {"channels": "Streaming first", "customer_segments": None})

    assert second.id == first.id
    assert second.customer_segments == "Noir fans 25-40"
    assert second.channels == "Streaming first"
    assert second.performance_factors == {"director": 8, "genre": 6}


@pytest.mark.asyncio
async def test_plan_rejects_unknown_factor_and_foreign_user(project, user):
    plans = StrategicPlanStorage()
    with pytest.raises(ValidationError):
        await plans.save_plan(project.id, user.id, {"performance_factors": {"horoscope": 3}})
    with pytest.raises(ValidationError):
        await plans.set_section(project.id, user.id, "weather", "Sunny")

    other = await UserStorage().create_user("other@example.com", "Other")
    with pytest.raises(NotFoundError):
        await plans.get_plan(project.id, other.id)


def test_section_names_accept_camel_case():
    assert normalize_section("customerSegments") == "customer_segments"
    assert normalize_section("cost_structure") == "cost_structure"
    assert normalize_section(" keyPartnerships ") == "key_partnerships"


@pytest.mark.asyncio
async def test_generated_section_is_charged_and_saved(gateway, registry, vendor, project, user):
    vendor.script("gpt-4o-mini", "Primary: noir fans aged 25-40 who follow festival releases.")

    data = await strategic_service.generate_section(
        project.id, user.id, "customerSegments", project_context="Festival launch in 2027"
    )

    assert data["section"] == "customer_segments"
    assert data["saved"] is True
    assert data["credit_cost"] == 3
    prompt = vendor.calls[-1][2]
    assert "Festival launch in 2027" in prompt
    assert "Market size and growth potential" in prompt
    plan = await StrategicPlanStorage().get_plan(project.id, user.id)
    assert plan.customer_segments.startswith("Primary: noir fans")
    assert await UserStorage().get_balance(user.id) == 47


@pytest.mark.asyncio
async def test_unknown_section_is_returned_not_saved(gateway, registry, vendor, project, user):
    vendor.script("gpt-4o-mini", "Exit through a streamer acquisition.")

    data = await strategic_service.generate_section(project.id, user.id, "exitStrategy")

    assert data["saved"] is False
    assert data["content"] == "Exit through a streamer acquisition."
    assert "business model canvas" in vendor.calls[-1][2]
    assert await StrategicPlanStorage().get_plan(project.id, user.id) is None


@pytest.mark.asyncio
async def test_section_generation_needs_credits(gateway, registry, project, user):
    await UserStorage().adjust_credits(user.id, -49, "drain")
    with pytest.raises(InsufficientCreditsError):
        await strategic_service.generate_section(project.id, user.id, "channels")
    assert await StrategicPlanStorage().get_plan(project.id, user.id) is None


# --- team ---

@pytest.mark.asyncio
async def test_team_members(project, user):
    team = TeamStorage()
    colleague = await UserStorage().create_user("dp@example.com", "Rin Sato")

    from_user = await team.add_member(project.id, user.id, {"member_user_id": colleague.id, "role": "cinematographer"})
    guest = await team.add_member(project.id, user.id, {"name": "Ada Obi", "expertise": "Score"})

    assert from_user.name == "Rin Sato"
    assert from_user.email == "dp@example.com"
    assert guest.role == "member"
    assert [m.id for m in await team.list_members(project.id, user.id)] == [from_user.id, guest.id]

    updated = await team.update_member(
        project.id, guest.id, user.id, {"is_modo_token_holder": True, "modo_token_amount": 250.0}
    )
    assert updated.is_modo_token_holder is True
    assert updated.modo_token_amount == 250.0

    with pytest.raises(ValidationError):
        await team.add_member(project.id, user.id, {"role": "writer"})
    with pytest.raises(ValidationError):
        await team.update_member(project.id, guest.id, user.id, {"modo_token_amount": -1})

    await team.remove_member(project.id, guest.id, user.id)
    assert [m.id for m in await team.list_members(project.id, user.id)] == [from_user.id]
    with pytest.raises(NotFoundError):
        await team.remove_member(project.id, guest.id, user.id)


@pytest.mark.asyncio
async def test_materials(project, user):
    team = TeamStorage()
    deck = await team.add_material(
        project.id, user.id, {"name": "Pitch deck", "type": "document", "tags": ["pitch"], "file_size": 2048}
    )
    reel = await team.add_material(project.id, user.id, {"name": "Mood reel", "type": "video"})

    assert deck.uploaded_by == user.id
    assert {m.id for m in await team.list_materials(project.id, user.id)} == {deck.id, reel.id}
    assert [m.id for m in await team.list_materials(project.id, user.id, "video")] == [reel.id]

    renamed = await team.update_material(project.id, deck.id, user.id, {"name": "Pitch deck v2", "category": None})
    assert renamed.name == "Pitch deck v2"
    assert renamed.tags == ["pitch"]

    with pytest.raises(ValidationError):
        await team.add_material(project.id, user.id, {"name": "Poster", "type": "hologram"})
    with pytest.raises(ValidationError):
        await team.update_material(project.id, deck.id, user.id, {"type": "hologram"})

    await team.remove_material(project.id, reel.id, user.id)
    assert [m.id for m in await team.list_materials(project.id, user.id)] == [deck.id]


# --- export ---

@pytest.mark.asyncio
async def test_ip_bible_includes_plan_team_and_materials(project, user, tmp_path):
    await StrategicPlanStorage().save_plan(
        project.id,
        user.id,
        {"value_propositions": "Memory as currency", "performance_factors": {"fans_loyalty": 9}},
    )
    await TeamStorage().add_member(project.id, user.id, {"name": "Ada Obi", "role": "composer", "expertise": "Score"})
    await TeamStorage().add_material(
        project.id, user.id, {"name": "Pitch deck", "type": "document", "file_url": "https://cdn.example.com/deck.pdf"}
    )
    service = ExportService(export_dir=str(tmp_path))

    bible = await service.build_ip_bible(project.id, user.id)

    assert bible["strategic_plan"]["value_propositions"] == "Memory as currency"
    assert bible["team"] == [
        {"name": "Ada Obi", "role": "composer", "email": None, "responsibilities": None, "expertise": "Score"}
    ]
    assert bible["materials"][0]["file_url"] == "https://cdn.example.com/deck.pdf"

    markdown = service.render_markdown(bible)
    assert "## Strategic Plan" in markdown
    assert "Memory as currency" in markdown
    assert "- **Fans Loyalty**: 9" in markdown
    assert "- **Ada Obi** (composer)" in markdown
    assert "- **Pitch deck** [document] (https://cdn.example.com/deck.pdf)" in markdown


@pytest.mark.asyncio
async def test_ip_bible_without_plan(project, user, tmp_path):
    bible = await ExportService(export_dir=str(tmp_path)).build_ip_bible(project.id, user.id)
    assert bible["strategic_plan"] is None
    assert bible["team"] == []
    assert bible["materials"] == []
    assert "## Strategic Plan" not in ExportService.render_markdown(bible)
