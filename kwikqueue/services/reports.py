"""Order history aggregates and CSV export"""

import csv
import io
from typing import Any, Dict, Iterable, Sequence

from kwikqueue.domain.status import OrderStatus
from kwikqueue.schemas.order import OrderHistoryReport, OrderView

CSV_HEADERS = ["Data", "Ticket", "Status", "Itens", "Total (Kz)", "Telefone", "Pagamento"]


def build_report(orders: Sequence[OrderView], sms_logs: Iterable[Dict[str, Any]]) -> OrderHistoryReport:
    """
    Revenue counts delivered orders only. Net revenue subtracts what was
    spent on SMS in the same period. Average preparation time is taken over
    every listed order, in whole minutes.
    """
    revenue = sum(o.total or 0 for o in orders if o.status == OrderStatus.DELIVERED)
    logs = list(sms_logs)
    sms_cost = sum(log.get("cost") or 0 for log in logs)

    average_minutes = 0
    if orders:
        seconds = sum(o.timer_accumulated_seconds for o in orders)
        average_minutes = round(seconds / len(orders) / 60)

    return OrderHistoryReport(
        items=list(orders),
        total=len(orders),
        revenue=revenue,
        sms_count=len(logs),
        sms_cost=sms_cost,
        net_revenue=revenue - sms_cost,
        average_preparation_minutes=average_minutes,
    )


def export_csv(orders: Iterable[OrderView]) -> str:
    buffer = io.StringIO()
    writer = csv.writer(buffer, quoting=csv.QUOTE_ALL)
    writer.writerow(CSV_HEADERS)
    for order in orders:
        writer.writerow([
            order.created_at.isoformat(),
            f"#{order.ticket_code}",
            order.status.value,
            " | ".join(f"{item.quantity}x {item.name}" for item in order.items),
            order.total or 0,
            order.customer_phone,
            order.payment_method or "N/A",
        ])
    return buffer.getvalue()
