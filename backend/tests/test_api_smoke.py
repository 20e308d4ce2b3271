"""Smoke tests for FastAPI endpoints."""
import json

import pytest


async def _create_user(client, email="writer@example.com", tier="studio"):
    resp = await client.post("/users", json={"email": email, "name": "Writer", "tier": tier})
    assert resp.status_code == 201
    return resp.json()


async def _create_project(client, user_id, title="Neon Harbor"):
    resp = await client.post("/projects", json={"user_id": user_id, "title": title, "genre": "noir"})
    assert resp.status_code == 201
    return resp.json()


@pytest.mark.asyncio
async def test_health(client):
    resp = await client.get("/health")
    assert resp.status_code == 200
    data = resp.json()
    assert data["status"] == "ok"
    assert data["database"] == "connected"


@pytest.mark.asyncio
async def test_unknown_route_404_envelope(client):
    resp = await client.get("/api/nonexistent")
    assert resp.status_code == 404
    assert resp.json()["success"] is False


@pytest.mark.asyncio
async def test_missing_entity_404(client):
    user = await _create_user(client)
    resp = await client.get("/projects/__nonexistent__", params={"user_id": user["id"]})
    assert resp.status_code == 404
    assert resp.json() == {"success": False, "error": "Project not found"}


@pytest.mark.asyncio
async def test_request_validation_is_400(client):
    resp = await client.post("/projects", json={"title": "No owner"})
    assert resp.status_code == 400
    body = resp.json()
    assert body["success"] is False
    assert "user_id" in body["error"]


@pytest.mark.asyncio
async def test_user_signup_and_credits(client):
    user = await _create_user(client)
    assert user["credit_balance"] == 50

    resp = await client.get(f"/users/{user['id']}/credits")
    assert resp.status_code == 200
    data = resp.json()
    assert data["balance"] == 50
    assert data["plan_limits"]["monthly_credits"] == 2000

    dup = await client.post("/users", json={"email": "WRITER@example.com", "name": "Again"})
    assert dup.status_code == 400


@pytest.mark.asyncio
async def test_api_prefix_mount(client):
    user = await _create_user(client)
    project = await _create_project(client, user["id"])

    resp = await client.get(f"/api/projects/{project['id']}", params={"user_id": user["id"]})
    assert resp.status_code == 200
    assert resp.json()["title"] == "Neon Harbor"

    listing = await client.get("/api/projects", params={"user_id": user["id"]})
    assert listing.json()["total"] == 1


@pytest.mark.asyncio
async def test_project_crud(client):
    user = await _create_user(client)
    project = await _create_project(client, user["id"])
    assert project["status"] == "draft"

    resp = await client.patch(
        f"/projects/{project['id']}", params={"user_id": user["id"]}, json={"status": "in_progress"}
    )
    assert resp.status_code == 200
    assert resp.json()["status"] == "in_progress"

    resp = await client.delete(f"/projects/{project['id']}", params={"user_id": user["id"]})
    assert resp.json()["success"] is True
    resp = await client.get(f"/projects/{project['id']}", params={"user_id": user["id"]})
    assert resp.status_code == 404

    resp = await client.post(f"/projects/{project['id']}/restore", params={"user_id": user["id"]})
    assert resp.status_code == 200


@pytest.mark.asyncio
async def test_story_structures_catalog(client):
    resp = await client.get("/projects/any/stories/structures")
    assert resp.status_code == 200
    keys = [s["key"] for s in resp.json()["structures"]]
    assert keys == ["save_the_cat", "hero_journey", "dan_harmon"]


@pytest.mark.asyncio
async def test_story_versions_single_active(client):
    user = await _create_user(client)
    project = await _create_project(client, user["id"])
    base = f"/projects/{project['id']}/stories"

    first = (await client.post(base, json={"user_id": user["id"], "premise": "A courier"})).json()
    second = (await client.post(base, json={"user_id": user["id"], "structure": "dan_harmon"})).json()

    listing = (await client.get(base, params={"user_id": user["id"]})).json()
    assert listing["active_version_id"] == second["id"]

    resp = await client.delete(f"{base}/{second['id']}", params={"user_id": user["id"]})
    assert resp.json()["active_version_id"] == first["id"]


@pytest.mark.asyncio
async def test_ai_rates(client):
    resp = await client.get("/ai/rates", params={"type": "text"})
    assert resp.status_code == 200
    data = resp.json()
    assert "text" in data["rates"]
    assert data["generation_costs"]["synopsis"] == 3


@pytest.mark.asyncio
async def test_generate_without_credits_is_402(client, gateway, registry):
    user = await _create_user(client)
    await client.post(f"/admin/users/{user['id']}/credits", json={"amount": -45})

    resp = await client.post(
        "/ai/generate", json={"user_id": user["id"], "generation_type": "story_structure", "prompt": "Beats"}
    )
    assert resp.status_code == 402
    assert resp.json() == {"success": False, "error": "Insufficient credits", "required": 10, "balance": 5}


@pytest.mark.asyncio
async def test_generate_and_accept(client, gateway, registry, vendor):
    user = await _create_user(client)
    vendor.script("gpt-4o-mini", "A lighthouse keeper hoards stolen memories.")

    resp = await client.post(
        "/ai/generate", json={"user_id": user["id"], "generation_type": "synopsis", "prompt": "Pitch"}
    )
    assert resp.status_code == 200
    body = resp.json()
    assert body["credit_cost"] == 3
    assert body["result_text"].startswith("A lighthouse")

    resp = await client.post(f"/ai/generations/{body['generation_id']}/accept", json={"user_id": user["id"]})
    assert resp.status_code == 200

    history = (await client.get("/ai/generations", params={"user_id": user["id"], "accepted_only": True})).json()
    assert len(history["generations"]) == 1


@pytest.mark.asyncio
async def test_all_providers_failed_is_502(client, gateway, registry, vendor):
    user = await _create_user(client)
    vendor.script("gpt-4o-mini", RuntimeError("503 service unavailable"))

    resp = await client.post(
        "/ai/generate", json={"user_id": user["id"], "generation_type": "synopsis", "prompt": "Pitch"}
    )
    assert resp.status_code == 502
    assert resp.json()["success"] is False

    credits = (await client.get(f"/users/{user['id']}/credits")).json()
    assert credits["balance"] == 50


@pytest.mark.asyncio
async def test_story_generation_keeps_structure_beats(client, gateway, registry, vendor):
    user = await _create_user(client)
    project = await _create_project(client, user["id"])
    base = f"/projects/{project['id']}/stories"
    story = (await client.post(base, json={"user_id": user["id"], "structure": "dan_harmon"})).json()
    vendor.script(
        "gpt-4o-mini",
        json.dumps(
            {
                "synopsis": "Mara wants out.",
                "beats": {"youZone": "Mara runs the harbor", "notABeat": "dropped"},
                "tension_levels": {"youZone": 14, "go": "3"},
            }
        ),
    )

    resp = await client.post(f"{base}/{story['id']}/generate", json={"user_id": user["id"]})

    assert resp.status_code == 200
    generated = resp.json()["story"]
    assert generated["synopsis"] == "Mara wants out."
    assert generated["beats"] == {"youZone": "Mara runs the harbor"}
    assert generated["tension_levels"] == {"youZone": 10, "go": 3}
    assert resp.json()["credit_cost"] == 10


@pytest.mark.asyncio
async def test_scene_distribution_flow(client, gateway, registry, vendor):
    user = await _create_user(client)
    project = await _create_project(client, user["id"])
    story = (
        await client.post(
            f"/projects/{project['id']}/stories", json={"user_id": user["id"], "structure": "dan_harmon"}
        )
    ).json()
    vendor.script("gpt-4o-mini", json.dumps({"youZone": 1, "go": 1, "findTake": 2}))

    resp = await client.post(
        f"/projects/{project['id']}/scene-plots/generate-distribution",
        json={"user_id": user["id"], "story_version_id": story["id"], "duration_minutes": 4, "scenes_per_minute": 2},
    )
    assert resp.status_code == 200
    distribution = resp.json()["distribution"]
    assert distribution["total_scenes"] == 8
    counts = {b["beat_key"]: b["scene_count"] for b in distribution["beats"]}
    assert counts["youZone"] == 2 and counts["go"] == 2 and counts["findTake"] == 4

    resp = await client.post(
        f"/projects/{project['id']}/scene-plots", json={"user_id": user["id"], "story_version_id": story["id"]}
    )
    assert resp.status_code == 201
    scenes = resp.json()["scenes"]
    assert [s["scene_number"] for s in scenes] == list(range(1, 9))

    scene_id = scenes[0]["id"]
    resp = await client.post(
        f"/scene-plots/{scene_id}/scripts", json={"user_id": user["id"], "content": "INT. HARBOR - NIGHT"}
    )
    assert resp.json()["created"] is True
    resp = await client.post(
        f"/scene-plots/{scene_id}/scripts", json={"user_id": user["id"], "content": "INT. HARBOR - DAWN"}
    )
    assert resp.json()["created"] is False


@pytest.mark.asyncio
async def test_cart_order_flow(client):
    user = await _create_user(client)
    product = (await client.post("/license/products", json={"name": "Mara Plush", "price": 10.0})).json()
    product_id = product["product"]["id"]

    await client.post("/license/cart", json={"user_id": user["id"], "product_id": product_id, "quantity": 3})
    resp = await client.post("/license/orders", json={"user_id": user["id"]})
    assert resp.status_code == 201
    order = resp.json()["order"]
    assert order["subtotal"] == pytest.approx(30.0)
    assert order["tax"] == pytest.approx(3.3)
    assert order["total"] == pytest.approx(33.3)

    empty = await client.post("/license/orders", json={"user_id": user["id"]})
    assert empty.status_code == 400
    assert empty.json()["error"] == "Cart is empty"


@pytest.mark.asyncio
async def test_export_ip_bible(client, tmp_path):
    user = await _create_user(client)
    project = await _create_project(client, user["id"])
    await client.post(
        f"/projects/{project['id']}/stories", json={"user_id": user["id"], "premise": "A courier smuggles memories"}
    )
    await client.post(f"/projects/{project['id']}/characters", json={"user_id": user["id"], "name": "Mara"})

    resp = await client.get(
        f"/projects/{project['id']}/export-ip-bible", params={"user_id": user["id"], "format": "markdown"}
    )
    assert resp.status_code == 200
    data = resp.json()
    assert data["content"].startswith("# Neon Harbor - IP Bible")
    assert "A courier smuggles memories" in data["content"]
    assert "Mara" in data["content"]
    assert data["path"].startswith(str(tmp_path))

    bad = await client.get(
        f"/projects/{project['id']}/export-ip-bible", params={"user_id": user["id"], "format": "pdf"}
    )
    assert bad.status_code == 400


@pytest.mark.asyncio
async def test_admin_dashboard(client):
    await _create_user(client)
    resp = await client.get("/admin/dashboard")
    assert resp.status_code == 200
    assert resp.json()["stats"]["total_users"] == 1


@pytest.mark.asyncio
async def test_story_generation_drops_non_finite_tension(client, gateway, registry, vendor):
    user = await _create_user(client)
    project = await _create_project(client, user["id"])
    base = f"/projects/{project['id']}/stories"
    story = (await client.post(base, json={"user_id": user["id"], "structure": "dan_harmon"})).json()
    vendor.script(
        "gpt-4o-mini",
        '{"synopsis": "Mara wants out.", "beats": {}, "tension_levels": {"youZone": 1e999, "needDesire": NaN, "go": 4}}',
    )

    resp = await client.post(f"{base}/{story['id']}/generate", json={"user_id": user["id"]})

    assert resp.status_code == 200
    assert resp.json()["story"]["tension_levels"] == {"go": 4}


@pytest.mark.asyncio
async def test_distribution_rejects_unbounded_duration(client, gateway, registry, vendor):
    user = await _create_user(client)
    project = await _create_project(client, user["id"])
    story = (
        await client.post(
            f"/projects/{project['id']}/stories", json={"user_id": user["id"], "structure": "dan_harmon"}
        )
    ).json()
    url = f"/projects/{project['id']}/scene-plots/generate-distribution"

    resp = await client.post(
        url,
        content=f'{{"user_id": "{user["id"]}", "story_version_id": "{story["id"]}", "duration_minutes": 1e999}}',
        headers={"content-type": "application/json"},
    )
    assert resp.status_code == 400
    assert resp.json()["success"] is False

    too_many = await client.post(
        url,
        json={"user_id": user["id"], "story_version_id": story["id"], "duration_minutes": 300, "scenes_per_minute": 2},
    )
    assert too_many.status_code == 400
    assert "at most 500 scenes" in too_many.json()["error"]

    credits = (await client.get(f"/users/{user['id']}/credits")).json()
    assert credits["balance"] == 50
    assert vendor.calls == []


@pytest.mark.asyncio
async def test_strategic_plan_routes(client, gateway, registry, vendor):
    user = await _create_user(client)
    project = await _create_project(client, user["id"])
    base = f"/projects/{project['id']}/strategic-plan"

    empty = await client.get(base, params={"user_id": user["id"]})
    assert empty.json() == {"success": True, "plan": None}

    resp = await client.put(base, json={"user_id": user["id"], "channels": "Festival circuit, then streaming"})
    assert resp.status_code == 200
    assert resp.json()["channels"] == "Festival circuit, then streaming"

    bad = await client.put(base, json={"user_id": user["id"], "performance_factors": {"horoscope": 1}})
    assert bad.status_code == 400

    vendor.script("gpt-4o-mini", "Merchandise and licensing lead.")
    resp = await client.post(
        f"{base}/generate-section", json={"user_id": user["id"], "section": "revenueStreams"}
    )
    assert resp.status_code == 200
    assert resp.json()["saved"] is True
    assert resp.json()["credit_cost"] == 3

    plan = (await client.get(base, params={"user_id": user["id"]})).json()["plan"]
    assert plan["revenue_streams"] == "Merchandise and licensing lead."
    assert plan["channels"] == "Festival circuit, then streaming"


@pytest.mark.asyncio
async def test_team_and_material_routes(client):
    user = await _create_user(client)
    project = await _create_project(client, user["id"])
    base = f"/projects/{project['id']}"
    owner = {"user_id": user["id"]}

    resp = await client.post(f"{base}/team", json={**owner, "name": "Ada Obi", "role": "composer"})
    assert resp.status_code == 201
    member_id = resp.json()["id"]

    resp = await client.patch(f"{base}/team/{member_id}", params=owner, json={"modo_token_amount": 12.5})
    assert resp.json()["modo_token_amount"] == 12.5
    members = (await client.get(f"{base}/team", params=owner)).json()["members"]
    assert [m["name"] for m in members] == ["Ada Obi"]

    missing_type = await client.post(f"{base}/materials", json={**owner, "name": "Deck"})
    assert missing_type.status_code == 400
    resp = await client.post(f"{base}/materials", json={**owner, "name": "Deck", "type": "document"})
    assert resp.status_code == 201
    material_id = resp.json()["id"]

    resp = await client.delete(f"{base}/materials/{material_id}", params=owner)
    assert resp.json()["success"] is True
    assert (await client.get(f"{base}/materials", params=owner)).json()["materials"] == []

    resp = await client.delete(f"{base}/team/{member_id}", params=owner)
    assert resp.json()["success"] is True
    gone = await client.delete(f"{base}/team/{member_id}", params=owner)
    assert gone.status_code == 404
