"""Tests for background notification delivery"""

from kwikqueue.api.realtime import event_message
from kwikqueue.domain.status import OrderStatus
from kwikqueue.jobs.tasks import dispatch_notifications
from kwikqueue.realtime.reconciler import Echo
from kwikqueue.store.feed import ChangeEvent


def test_dispatch_task_reports_failures_without_raising():
    # The task database is empty, so the company lookup fails
    effect = {
        "channel": "sms",
        "template_key": "READY",
        "order_id": "2f1c7a52-3b5e-4d8e-9a55-0f4f3f9ad001",
        "company_id": 1,
        "ticket_code": "4821",
        "recipient": "+244923000111",
    }
    assert dispatch_notifications.run([effect]) == {"sent": 0, "failed": 1, "skipped": 0}


def test_event_message_uses_api_field_names():
    event = ChangeEvent(
        table="orders",
        event_type="UPDATE",
        old={"id": "a", "status": "RECEIVED", "ticket_code": "4821"},
        new={"id": "a", "status": "PREPARING", "ticket_code": "4821"},
    )
    echo = Echo(order_id="a", status=OrderStatus.PREPARING, previous_status=OrderStatus.RECEIVED, message="A preparar")

    message = event_message(event, echo)

    assert message["eventType"] == "UPDATE"
    assert message["new"]["ticketCode"] == "4821"
    assert message["echo"] == {"orderId": "a", "status": "PREPARING", "message": "A preparar"}
