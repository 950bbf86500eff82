"""Tests for the realtime reconciler"""

from datetime import datetime, timedelta
from uuid import uuid4

from kwikqueue.domain.status import OrderStatus
from kwikqueue.realtime.reconciler import RECENT_ECHOES, Reconciler
from kwikqueue.store.feed import ChangeEvent

T0 = datetime(2026, 3, 14, 12, 0, 0)


def order_row(order_id, status="RECEIVED", version=1, created_at=T0, company_id=1):
    return {
        "id": order_id,
        "company_id": company_id,
        "ticket_code": "1234",
        "customer_phone": "+244923000111",
        "status": status,
        "items": [],
        "version": version,
        "created_at": created_at,
    }


def update(row, old=None):
    return ChangeEvent(table="orders", event_type="UPDATE", old=old, new=row)


def test_insert_and_delete_by_id():
    reconciler = Reconciler()
    row = order_row(str(uuid4()))

    reconciler.apply(ChangeEvent(table="orders", event_type="INSERT", new=row))
    assert row["id"] in reconciler.orders

    reconciler.apply(ChangeEvent(table="orders", event_type="DELETE", old=row))
    assert row["id"] not in reconciler.orders


def test_status_change_echoes_once():
    echoes = []
    reconciler = Reconciler(on_echo=echoes.append, locale="pt")
    order_id = str(uuid4())
    reconciler.load("orders", [order_row(order_id, "PREPARING", version=2)])

    ready = order_row(order_id, "READY", version=3)
    first = reconciler.apply(update(ready))
    second = reconciler.apply(update(ready))

    assert first is not None
    assert first.status == OrderStatus.READY
    assert first.previous_status == OrderStatus.PREPARING
    assert first.message.startswith("Seu pedido está pronto")
    assert second is None
    assert len(echoes) == 1
    assert reconciler.orders[order_id].status == OrderStatus.READY


def test_stale_event_is_ignored():
    reconciler = Reconciler()
    order_id = str(uuid4())
    reconciler.load("orders", [order_row(order_id, "READY", version=4)])

    echo = reconciler.apply(update(order_row(order_id, "PREPARING", version=3)))

    assert echo is None
    assert reconciler.orders[order_id].status == OrderStatus.READY
    assert not reconciler.echoes


def test_replayed_status_does_not_echo_again():
    reconciler = Reconciler()
    order_id = str(uuid4())
    reconciler.load("orders", [order_row(order_id, "RECEIVED", version=1)])

    reconciler.apply(update(order_row(order_id, "PREPARING", version=2)))
    reconciler.apply(update(order_row(order_id, "READY", version=3)))
    # Same pair delivered again with a newer version (e.g. an unrelated field edit)
    reconciler.apply(update(order_row(order_id, "READY", version=4)))

    assert [e.status for e in reconciler.echoes] == [OrderStatus.PREPARING, OrderStatus.READY]


def test_snapshot_load_does_not_echo():
    reconciler = Reconciler()
    reconciler.load("orders", [order_row(str(uuid4()), "READY")])
    assert not reconciler.echoes


def test_positions_follow_updates():
    reconciler = Reconciler()
    first, second = str(uuid4()), str(uuid4())
    reconciler.load("orders", [
        order_row(first, created_at=T0),
        order_row(second, created_at=T0 + timedelta(seconds=30)),
    ])
    assert reconciler.position_of(second) == 2

    reconciler.apply(update(order_row(first, "DELIVERED", version=2)))
    assert reconciler.position_of(second) == 1
    assert reconciler.position_of(first) is None


def test_companies_and_products_are_upserted():
    reconciler = Reconciler()
    reconciler.apply(ChangeEvent(table="companies", event_type="UPDATE", new={
        "id": 1, "code": "TEST01", "name": "Kwik", "is_accepting_orders": False,
    }))
    reconciler.apply(ChangeEvent(table="products", event_type="INSERT", new={"id": "p1", "name": "Burger"}))

    assert reconciler.companies["1"].is_accepting_orders is False
    assert reconciler.products["p1"]["name"] == "Burger"

    reconciler.apply(ChangeEvent(table="products", event_type="DELETE", old={"id": "p1"}))
    assert "p1" not in reconciler.products


def test_finished_orders_are_released():
    echoes = []
    reconciler = Reconciler(on_echo=echoes.append)
    for _ in range(300):
        order_id = str(uuid4())
        reconciler.apply(ChangeEvent(table="orders", event_type="INSERT", new=order_row(order_id)))
        for version, status in enumerate(("PREPARING", "READY", "DELIVERED"), start=2):
            reconciler.apply(update(order_row(order_id, status, version=version)))

    assert len(echoes) == 900
    assert reconciler.orders == {}
    assert reconciler.positions == {}
    assert len(reconciler.echoes) == RECENT_ECHOES
    assert not reconciler._echoed


def test_terminal_status_still_echoes():
    reconciler = Reconciler(locale="pt")
    order_id = str(uuid4())
    reconciler.load("orders", [order_row(order_id, "READY", version=3)])

    echo = reconciler.apply(update(order_row(order_id, "DELIVERED", version=4)))

    assert echo.status == OrderStatus.DELIVERED
    assert order_id not in reconciler.orders


def test_late_replay_of_closed_order_is_ignored():
    reconciler = Reconciler()
    order_id = str(uuid4())
    reconciler.load("orders", [order_row(order_id, "READY", version=3)])
    reconciler.apply(update(order_row(order_id, "DELIVERED", version=4)))

    for status, version in (("READY", 3), ("DELIVERED", 4)):
        assert reconciler.apply(update(order_row(order_id, status, version=version))) is None
    assert order_id not in reconciler.orders


def test_snapshot_skips_finished_orders():
    reconciler = Reconciler()
    open_id, done_id = str(uuid4()), str(uuid4())
    reconciler.load("orders", [order_row(open_id), order_row(done_id, "DELIVERED", version=4)])

    assert list(reconciler.orders) == [open_id]
