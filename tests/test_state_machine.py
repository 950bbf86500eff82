"""Tests for the order state machine"""

import pytest

from kwikqueue.domain.errors import InvalidCart, InvalidTransition, UnknownStatus
from kwikqueue.domain.state_machine import (
    LineItem,
    NEW_ORDER_TEMPLATE,
    confirm_cart,
    new_order_alert,
    transition,
)
from kwikqueue.domain.status import Actor, OrderStatus, OrderType

from helpers import T0, apply_patch, make_order


def line(price, quantity, name="Item"):
    return LineItem(product_id="p-" + name, name=name, quantity=quantity, unit_price=price)


@pytest.mark.parametrize("source", ["PENDING", "RECEIVED", "PREPARING"])
def test_cancel_allowed_before_ready(source):
    order = make_order(status=source, timer_last_started_at=T0 if source == "PREPARING" else None)
    result = transition(order, "CANCELLED", Actor.ADMIN, T0)

    assert result.patch["status"] == OrderStatus.CANCELLED
    assert result.patch["cancelled_by"] == Actor.ADMIN
    assert result.patch["timer_last_started_at"] is None


@pytest.mark.parametrize("source", ["READY", "DELIVERED", "CANCELLED"])
def test_cancel_rejected_after_ready(source):
    with pytest.raises(InvalidTransition):
        transition(make_order(status=source), "CANCELLED", Actor.ADMIN, T0)


@pytest.mark.parametrize("source,target", [
    ("PENDING", "PREPARING"),
    ("READY", "PREPARING"),
    ("PENDING", "READY"),
    ("RECEIVED", "DELIVERED"),
    ("PREPARING", "DELIVERED"),
    ("DELIVERED", "READY"),
    ("CANCELLED", "PREPARING"),
])
def test_guard_violations(source, target):
    order = make_order(status=source)
    with pytest.raises(InvalidTransition) as exc_info:
        transition(order, target, Actor.ADMIN, T0)
    assert exc_info.value.current == OrderStatus(source)


def test_received_is_only_reached_by_confirming_the_cart():
    with pytest.raises(InvalidTransition):
        transition(make_order(status="PENDING"), "RECEIVED", Actor.ADMIN, T0)


def test_preparing_reentry_is_a_no_op():
    order = make_order(status="PREPARING", timer_accumulated_seconds=7, timer_last_started_at=T0)
    result = transition(order, "PREPARING", Actor.ADMIN, T0.replace(hour=13))

    assert not result.changed
    assert result.side_effects == []


def test_ready_reentry_is_a_no_op():
    result = transition(make_order(status="READY", timer_accumulated_seconds=5), "READY", Actor.ADMIN, T0)
    assert not result.changed


def test_unknown_status_rejected():
    with pytest.raises(UnknownStatus):
        transition(make_order(), "COOKING", Actor.ADMIN, T0)


def test_status_strings_are_normalized():
    result = transition(make_order(status=" received "), "preparing", Actor.ADMIN, T0)
    assert result.patch["status"] == OrderStatus.PREPARING


def test_customer_may_only_cancel():
    with pytest.raises(InvalidTransition):
        transition(make_order(status="RECEIVED"), "PREPARING", Actor.CUSTOMER, T0)


def test_customer_cannot_cancel_once_preparing():
    with pytest.raises(InvalidTransition):
        transition(make_order(status="PREPARING"), "CANCELLED", Actor.CUSTOMER, T0)


def test_customer_cancel_records_actor_and_skips_customer_sms():
    result = transition(make_order(status="RECEIVED"), "CANCELLED", Actor.CUSTOMER, T0)

    assert result.patch["cancelled_by"] == Actor.CUSTOMER
    assert [e.channel for e in result.side_effects] == ["telegram"]
    assert result.side_effects[0].cancelled_by == Actor.CUSTOMER


def test_admin_cancel_notifies_customer():
    order = make_order(status="RECEIVED")
    result = transition(order, "CANCELLED", Actor.ADMIN, T0)

    sms = [e for e in result.side_effects if e.channel == "sms"]
    assert len(sms) == 1
    assert sms[0].template_key == "CANCELLED"
    assert sms[0].recipient == order.customer_phone


@pytest.mark.parametrize("source,target", [
    ("RECEIVED", "PREPARING"),
    ("PREPARING", "READY"),
    ("READY", "DELIVERED"),
])
def test_advancing_emits_customer_sms(source, target):
    order = make_order(status=source, order_type="DELIVERY")
    result = transition(order, target, Actor.ADMIN, T0)

    sms = [e for e in result.side_effects if e.channel == "sms"]
    assert len(sms) == 1
    assert sms[0].kind == "notify"
    assert sms[0].template_key == target
    assert sms[0].order_type == OrderType.DELIVERY
    assert sms[0].order_id == str(order.id)


def test_transition_does_not_mutate_order():
    order = make_order(status="RECEIVED")
    transition(order, "PREPARING", Actor.ADMIN, T0)
    assert order.status == "RECEIVED"


def test_confirm_cart_freezes_total():
    order = make_order(status="PENDING", total=None)
    patch = confirm_cart(order, [line(500, 2, "Burger"), line(1000, 1, "Fries")])

    assert patch["status"] == OrderStatus.RECEIVED
    assert patch["total"] == 2000
    assert patch["items"][0] == {
        "product_id": "p-Burger",
        "name": "Burger",
        "quantity": 2,
        "unit_price": 500,
        "observation": None,
    }

    with pytest.raises(InvalidTransition):
        confirm_cart(apply_patch(order, patch), [line(500, 1)])


def test_confirm_cart_rejects_empty_cart():
    with pytest.raises(InvalidCart):
        confirm_cart(make_order(status="PENDING"), [])


def test_confirm_cart_rejects_bad_quantity():
    with pytest.raises(InvalidCart):
        confirm_cart(make_order(status="PENDING"), [line(500, 0)])


def test_new_order_alert_targets_staff():
    effect = new_order_alert(make_order())
    assert effect.channel == "telegram"
    assert effect.template_key == NEW_ORDER_TEMPLATE
