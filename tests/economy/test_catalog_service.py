from __future__ import annotations

from uuid import uuid4

import pytest

from access_zone.economy.catalog.errors import CatalogItemConflictError, CatalogItemNotFoundError
from access_zone.economy.catalog.service import CatalogService
from tests.helpers import NOW


@pytest.mark.asyncio
async def test_add_item_fills_defaults(store, session) -> None:
    item = await CatalogService.add_item(
        session,
        subscription_id=" youtube_premium ",
        duration="3 months",
        points_cost=900,
        now_utc=NOW,
    )

    assert item.subscription_id == "youtube_premium"
    assert item.display_name == "youtube premium"
    assert item.category == "other"
    assert item.in_stock is True
    assert store.catalog[item.id] is item


@pytest.mark.asyncio
async def test_add_item_rejects_duplicates_and_bad_input(store, session) -> None:
    await CatalogService.add_item(
        session, subscription_id="netflix", duration="1 month", points_cost=500, now_utc=NOW
    )

    with pytest.raises(CatalogItemConflictError):
        await CatalogService.add_item(
            session, subscription_id="netflix", duration="1 month", points_cost=450, now_utc=NOW
        )
    with pytest.raises(ValueError):
        await CatalogService.add_item(
            session, subscription_id="netflix", duration=" ", points_cost=500, now_utc=NOW
        )
    with pytest.raises(ValueError):
        await CatalogService.add_item(
            session, subscription_id="hulu", duration="1 month", points_cost=0, now_utc=NOW
        )
    assert len(store.catalog) == 1


@pytest.mark.asyncio
async def test_stock_and_cost_updates(store, session) -> None:
    item = await CatalogService.add_item(
        session, subscription_id="disney", duration="1 month", points_cost=None, now_utc=NOW
    )

    await CatalogService.set_in_stock(session, item_id=item.id, in_stock=False, now_utc=NOW)
    await CatalogService.set_points_cost(session, item_id=item.id, points_cost=350, now_utc=NOW)

    assert item.in_stock is False
    assert item.points_cost == 350
    with pytest.raises(ValueError):
        await CatalogService.set_points_cost(session, item_id=item.id, points_cost=-1)


@pytest.mark.asyncio
async def test_missing_items_raise_not_found(store, session) -> None:
    with pytest.raises(CatalogItemNotFoundError):
        await CatalogService.set_in_stock(session, item_id=uuid4(), in_stock=True)
    with pytest.raises(CatalogItemNotFoundError):
        await CatalogService.delete_item(session, item_id=uuid4())


@pytest.mark.asyncio
async def test_delete_item(store, session) -> None:
    item = await CatalogService.add_item(
        session, subscription_id="hbo", duration="6 months", points_cost=1500, now_utc=NOW
    )

    await CatalogService.delete_item(session, item_id=item.id)

    assert store.catalog == {}
