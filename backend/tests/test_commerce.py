"""Licensing cart and orders, investment campaigns and the watch catalog."""
import asyncio

import pytest

from modo.exceptions import NotFoundError, ValidationError
from modo.storage.contents import ContentStorage
from modo.storage.investing import InvestingStorage
from modo.storage.licensing import LicensingStorage
from modo.storage.users import UserStorage


@pytest.fixture
async def plush(database, project):
    product, variants = await LicensingStorage().create_product(
        "Mara Plush",
        20.0,
        variants=[{"name": "Large", "sku": "MARA-L", "price": 30.0}],
        project_id=project.id,
        category="toys",
    )
    return product, variants[0]


# --- licensing ---

@pytest.mark.asyncio
async def test_cart_merges_lines_and_applies_tax(plush, user):
    product, large = plush
    licensing = LicensingStorage()

    await licensing.add_to_cart(user.id, product.id)
    await licensing.add_to_cart(user.id, product.id, quantity=2)
    await licensing.add_to_cart(user.id, product.id, variant_id=large.id)

    cart = await licensing.get_cart(user.id)
    assert len(cart["items"]) == 2
    assert cart["item_count"] == 4
    assert cart["subtotal"] == pytest.approx(90.0)
    assert cart["tax"] == pytest.approx(9.9)
    assert cart["total"] == pytest.approx(99.9)
    prices = sorted(line["unit_price"] for line in cart["items"])
    assert prices == [20.0, 30.0]


@pytest.mark.asyncio
async def test_order_snapshots_prices_and_clears_cart(plush, user):
    product, large = plush
    licensing = LicensingStorage()
    await licensing.add_to_cart(user.id, product.id, variant_id=large.id, quantity=2)

    order, items = await licensing.create_order(user.id, shipping_address="1 Harbor Rd")

    assert order.status == "pending"
    assert order.payment_method == "credit_card"
    assert order.subtotal == pytest.approx(60.0)
    assert order.total == pytest.approx(66.6)
    assert [(i.quantity, i.price) for i in items] == [(2, 30.0)]
    assert (await licensing.get_cart(user.id))["items"] == []

    with pytest.raises(ValidationError):
        await licensing.create_order(user.id)

    listing = await licensing.list_orders(user.id)
    assert listing["pagination"] == {"page": 1, "limit": 20, "total": 1, "total_pages": 1}
    listed_order, listed_items = listing["orders"][0]
    assert listed_order.id == order.id
    assert len(listed_items) == 1


@pytest.mark.asyncio
async def test_cart_item_ownership(plush, user):
    product, _ = plush
    licensing = LicensingStorage()
    item = await licensing.add_to_cart(user.id, product.id)
    other = await UserStorage().create_user("other@example.com", "Other")

    with pytest.raises(NotFoundError):
        await licensing.update_cart_item(item.id, other.id, 5)
    with pytest.raises(ValidationError):
        await licensing.update_cart_item(item.id, user.id, 0)

    await licensing.remove_cart_item(item.id, user.id)
    assert (await licensing.get_cart(user.id))["item_count"] == 0


@pytest.mark.asyncio
async def test_variant_must_belong_to_product(plush, user):
    product, large = plush
    licensing = LicensingStorage()
    other, _ = await licensing.create_product("Poster", 5.0)
    with pytest.raises(NotFoundError):
        await licensing.add_to_cart(user.id, other.id, variant_id=large.id)


@pytest.mark.asyncio
async def test_order_status_update(plush, user):
    product, _ = plush
    licensing = LicensingStorage()
    await licensing.add_to_cart(user.id, product.id)
    order, _ = await licensing.create_order(user.id)

    with pytest.raises(ValidationError):
        await licensing.update_order_status(order.id, "teleported")

    shipped = await licensing.update_order_status(order.id, "shipped", tracking_number="TRK-1")
    assert shipped.status == "shipped"
    assert shipped.tracking_number == "TRK-1"


# --- investing ---

@pytest.fixture
async def campaign(database, project, user):
    return await InvestingStorage().create_campaign(
        project.id, user.id, "Neon Harbor: Season One", 1000.0, status="active"
    )


@pytest.mark.asyncio
async def test_invest_raises_funding(campaign, user):
    investing = InvestingStorage()
    tier = await investing.add_tier(campaign.id, "Backer", min_amount=100.0, rewards=["Credits roll"])

    with pytest.raises(ValidationError):
        await investing.invest(user.id, campaign.id, 50.0, tier_id=tier.id)

    investment = await investing.invest(user.id, campaign.id, 150.0, tier_id=tier.id)
    assert investment.status == "pending"
    assert (await investing.get_campaign(campaign.id)).funding_raised == pytest.approx(150.0)

    public = await investing.list_public_campaigns()
    assert len(public) == 1
    assert public[0]["backer_count"] == 1
    assert public[0]["funding_percentage"] == 15.0
    assert public[0]["project_title"] == "Neon Harbor"

    portfolio = await investing.get_portfolio(user.id)
    assert portfolio["summary"] == {"total_invested": 150.0, "investment_count": 1, "campaign_count": 1}
    assert portfolio["investments"][0]["tier_name"] == "Backer"


@pytest.mark.asyncio
async def test_invest_rejects_bad_input(campaign, user, project):
    investing = InvestingStorage()
    with pytest.raises(ValidationError):
        await investing.invest(user.id, campaign.id, 0)

    draft = await investing.create_campaign(project.id, user.id, "Spin-off", 500.0)
    assert draft.status == "draft"
    with pytest.raises(ValidationError):
        await investing.invest(user.id, draft.id, 10.0)


@pytest.mark.asyncio
async def test_concurrent_investments_all_counted(campaign, user):
    investing = InvestingStorage()
    backers = [user] + [
        await UserStorage().create_user(f"backer{i}@example.com", f"Backer {i}") for i in range(4)
    ]

    await asyncio.gather(*[investing.invest(b.id, campaign.id, 25.0) for b in backers])

    assert (await investing.get_campaign(campaign.id)).funding_raised == pytest.approx(125.0)


@pytest.mark.asyncio
async def test_invest_rejects_non_finite_amount(campaign, user):
    investing = InvestingStorage()
    with pytest.raises(ValidationError):
        await investing.invest(user.id, campaign.id, float("inf"))
    with pytest.raises(ValidationError):
        await investing.invest(user.id, campaign.id, float("nan"))
    assert (await investing.get_campaign(campaign.id)).funding_raised == 0

@pytest.mark.asyncio
async def test_campaign_requires_project_owner(project):
    other = await UserStorage().create_user("other@example.com", "Other")
    with pytest.raises(NotFoundError):
        await InvestingStorage().create_campaign(project.id, other.id, "Hijack", 100.0)


# --- watch ---

@pytest.mark.asyncio
async def test_content_visible_only_when_published(database, project, user):
    contents = ContentStorage()
    content = await contents.create_content(project.id, user.id, "Neon Harbor", {"type": "series", "genre": "noir"})

    with pytest.raises(NotFoundError):
        await contents.get_content(content.id)
    assert await contents.list_published() == []

    await contents.publish(content.id, user.id)
    assert [c.id for c in await contents.list_published(content_type="series")] == [content.id]
    assert await contents.list_published(content_type="film") == []

    assert await contents.record_view(content.id) == 1
    assert await contents.record_view(content.id) == 2


@pytest.mark.asyncio
async def test_content_type_validated(database, project, user):
    with pytest.raises(ValidationError):
        await ContentStorage().create_content(project.id, user.id, "Neon Harbor", {"type": "podcast"})
