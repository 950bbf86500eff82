"""Tests for preparation timer accounting"""

from datetime import timedelta

from kwikqueue.domain import timer
from kwikqueue.domain.state_machine import transition
from kwikqueue.domain.status import Actor, OrderStatus

from helpers import T0, apply_patch, make_order


def at(seconds):
    return T0 + timedelta(seconds=seconds)


def advance(order, target, seconds):
    result = transition(order, target, Actor.ADMIN, at(seconds))
    return apply_patch(order, result.patch)


def test_prepared_order_charges_preparing_interval_only():
    order = make_order()
    order = advance(order, OrderStatus.PREPARING, 5)
    assert order.timer_last_started_at == at(5)

    order = advance(order, OrderStatus.READY, 65)
    assert order.timer_accumulated_seconds == 60
    assert order.timer_last_started_at is None

    order = advance(order, OrderStatus.DELIVERED, 300)
    assert order.timer_accumulated_seconds == 60
    assert order.timer_last_started_at is None


def test_skipped_preparation_charges_time_since_creation():
    order = advance(make_order(), OrderStatus.READY, 40)

    assert order.timer_accumulated_seconds == 40
    assert order.timer_last_started_at is None


def test_seconds_are_floored():
    order = make_order(status="PREPARING", timer_last_started_at=T0)
    patch = timer.on_enter_ready_or_delivered(order, T0 + timedelta(seconds=59, milliseconds=999))

    assert patch["timer_accumulated_seconds"] == 59


def test_double_close_is_a_no_op():
    order = make_order(status="READY", timer_accumulated_seconds=42)
    assert timer.on_enter_ready_or_delivered(order, at(500)) == {}


def test_resume_keeps_accumulated_seconds():
    order = make_order(status="RECEIVED", timer_accumulated_seconds=30)
    patch = timer.on_enter_preparing(order, at(100))

    assert patch == {"timer_last_started_at": at(100)}


def test_cancel_clears_start_without_charging():
    order = make_order(status="PREPARING", timer_accumulated_seconds=12, timer_last_started_at=at(10))
    order = advance(order, OrderStatus.CANCELLED, 400)

    assert order.timer_accumulated_seconds == 12
    assert order.timer_last_started_at is None


def test_clock_skew_never_decreases_total():
    order = make_order(status="PREPARING", timer_accumulated_seconds=20, timer_last_started_at=at(100))
    patch = timer.on_enter_ready_or_delivered(order, at(90))

    assert patch["timer_accumulated_seconds"] == 20


def test_elapsed_now_while_preparing():
    order = make_order(status="PREPARING", timer_accumulated_seconds=10, timer_last_started_at=at(0))
    assert timer.elapsed_now(order, at(25.7)) == 35


def test_elapsed_now_frozen_once_ready():
    order = make_order(status="READY", timer_accumulated_seconds=60)
    assert timer.elapsed_now(order, at(9999)) == 60


def test_elapsed_now_without_start():
    order = make_order(status="RECEIVED")
    assert timer.elapsed_now(order, at(100)) == 0
