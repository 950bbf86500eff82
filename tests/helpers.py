"""Builders shared by the engine tests"""

from datetime import datetime
from types import SimpleNamespace
from uuid import uuid4

T0 = datetime(2026, 3, 14, 12, 0, 0)


def make_order(**overrides):
    fields = dict(
        id=uuid4(),
        company_id=1,
        ticket_code="4821",
        customer_phone="+244923000111",
        customer_name=None,
        status="RECEIVED",
        cancelled_by=None,
        items=[],
        total=0,
        timer_accumulated_seconds=0,
        timer_last_started_at=None,
        order_type="EAT_IN",
        created_at=T0,
        version=1,
    )
    fields.update(overrides)
    return SimpleNamespace(**fields)


def apply_patch(order, patch):
    """Copy of `order` with `patch` written over it"""
    return SimpleNamespace(**{**vars(order), **patch})
