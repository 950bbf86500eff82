"""Tests for the SQL store adapter and its change feed"""

import pytest

from kwikqueue.domain.errors import ConcurrentUpdate, RecordNotFound
from kwikqueue.store.filters import eq, in_


@pytest.mark.asyncio
async def test_insert_and_get(store, test_company):
    record = await store.get_by_id("companies", test_company["id"])
    assert record["code"] == "TEST01"
    assert record["is_accepting_orders"] is True


@pytest.mark.asyncio
async def test_get_by_id_missing(store):
    with pytest.raises(RecordNotFound):
        await store.get_by_id("orders", "2f1c7a52-3b5e-4d8e-9a55-0f4f3f9ad001")


@pytest.mark.asyncio
async def test_malformed_id_is_not_found(store):
    with pytest.raises(RecordNotFound):
        await store.get_by_id("orders", "not-a-uuid")


@pytest.mark.asyncio
async def test_filters(store, test_products):
    company_id = test_products[0]["company_id"]
    rows = await store.get(
        "products",
        [eq("company_id", company_id), in_("status", ["ACTIVE", "LOW_STOCK"])],
        order_by="price",
    )
    assert [r["name"] for r in rows] == ["Hambúrguer Clássico", "Batata Frita"]


@pytest.mark.asyncio
async def test_unknown_field_rejected(store, test_company):
    with pytest.raises(ValueError):
        await store.update("companies", test_company["id"], {"colour": "red"})


async def _order(store, company_id):
    return await store.insert("orders", {
        "company_id": company_id,
        "ticket_code": "1234",
        "customer_phone": "+244923000111",
        "status": "RECEIVED",
        "items": [],
    })


@pytest.mark.asyncio
async def test_update_bumps_version(store, test_company):
    order = await _order(store, test_company["id"])
    assert order["version"] == 1

    updated = await store.update("orders", order["id"], {"status": "PREPARING"}, expected_version=1)
    assert updated["status"] == "PREPARING"
    assert updated["version"] == 2


@pytest.mark.asyncio
async def test_conditional_update_loses_against_newer_row(store, test_company):
    order = await _order(store, test_company["id"])
    await store.update("orders", order["id"], {"status": "PREPARING"}, expected_version=1)

    with pytest.raises(ConcurrentUpdate):
        await store.update("orders", order["id"], {"status": "CANCELLED"}, expected_version=1)

    current = await store.get_by_id("orders", order["id"])
    assert current["status"] == "PREPARING"


@pytest.mark.asyncio
async def test_subscribers_receive_matching_changes(store, test_company, other_company):
    events = []
    unsubscribe = store.subscribe("orders", [eq("company_id", test_company["id"])], events.append)

    order = await _order(store, test_company["id"])
    await _order(store, other_company["id"])
    await store.update("orders", order["id"], {"status": "PREPARING"})
    await store.delete("orders", order["id"])

    assert [e.event_type for e in events] == ["INSERT", "UPDATE", "DELETE"]
    assert events[1].old["status"] == "RECEIVED"
    assert events[1].new["status"] == "PREPARING"

    unsubscribe()
    await _order(store, test_company["id"])
    assert len(events) == 3


@pytest.mark.asyncio
async def test_failing_subscriber_does_not_break_writes(store, test_company):
    def explode(event):
        raise RuntimeError("boom")

    store.subscribe("orders", [], explode)
    order = await _order(store, test_company["id"])
    assert order["ticket_code"] == "1234"
