"""
Message templates.

Customer SMS texts are keyed by the status the order just entered and
parameterized by company name, ticket code and order type. Staff alerts are
Telegram HTML.
"""

from html import escape
from typing import Any, Dict, Iterable, Optional

from kwikqueue.domain.status import Actor, OrderStatus, OrderType, parse_status

SMS_TEMPLATES: Dict[str, Dict[str, str]] = {
    "pt": {
        "PREPARING": "{company}: O seu pedido {ticket} está a ser preparado!",
        "READY": "{company}: O seu pedido {ticket} está pronto! Pode vir levantar.",
        "READY_DELIVERY": "{company}: O seu pedido {ticket} está a caminho, Aguarde!",
        "DELIVERED": "{company}: O seu pedido {ticket} foi entregue. Bom apetite!",
        "CANCELLED": (
            "{company}: Lamentamos imenso, mas o seu pedido {ticket} teve de ser "
            "cancelado. Por favor, contacte o estabelecimento."
        ),
    },
    "en": {
        "PREPARING": "{company}: Your order {ticket} is being prepared!",
        "READY": "{company}: Your order {ticket} is ready! Come pick it up.",
        "READY_DELIVERY": "{company}: Your order {ticket} is on the way, hang tight!",
        "DELIVERED": "{company}: Your order {ticket} was delivered. Enjoy your meal!",
        "CANCELLED": (
            "{company}: We are very sorry, but your order {ticket} had to be "
            "cancelled. Please contact the store."
        ),
    },
}

# Shown by the customer's tracking view when it observes a status change
TRACKING_ECHOES: Dict[str, Dict[str, str]] = {
    "pt": {
        "PREPARING": "Seu pedido entrou na cozinha!",
        "READY": "Seu pedido está pronto! Pode levantar o seu pedido no balcão.",
        "DELIVERED": "Pedido entregue! Bom apetite!",
        "CANCELLED": "O seu pedido foi cancelado.",
    },
    "en": {
        "PREPARING": "Your order went into the kitchen!",
        "READY": "Your order is ready! Pick it up at the counter.",
        "DELIVERED": "Order delivered! Enjoy your meal!",
        "CANCELLED": "Your order was cancelled.",
    },
}

STATUS_LABELS: Dict[str, Dict[str, str]] = {
    "pt": {
        "PENDING": "A escolher",
        "RECEIVED": "Recebido",
        "PREPARING": "Em preparação",
        "READY": "Pronto",
        "DELIVERED": "Entregue",
        "CANCELLED": "Cancelado",
        "CANCELLED_ADMIN": "Cancelado pelo Admin",
        "CANCELLED_CUSTOMER": "Cancelado pelo Cliente",
    },
    "en": {
        "PENDING": "Choosing",
        "RECEIVED": "Received",
        "PREPARING": "Preparing",
        "READY": "Ready",
        "DELIVERED": "Delivered",
        "CANCELLED": "Cancelled",
        "CANCELLED_ADMIN": "Cancelled by staff",
        "CANCELLED_CUSTOMER": "Cancelled by customer",
    },
}

ALERT_HEADINGS: Dict[str, Dict[str, str]] = {
    "pt": {"NEW_ORDER": "🆕 NOVO PEDIDO", "STATUS_CHANGE": "🔄 ATUALIZAÇÃO DE PEDIDO"},
    "en": {"NEW_ORDER": "🆕 NEW ORDER", "STATUS_CHANGE": "🔄 ORDER UPDATE"},
}

ALERT_FIELDS: Dict[str, Dict[str, str]] = {
    "pt": {"ticket": "Senha", "customer": "Cliente", "phone": "Telefone", "status": "Estado", "items": "Itens", "total": "Total"},
    "en": {"ticket": "Ticket", "customer": "Customer", "phone": "Phone", "status": "Status", "items": "Items", "total": "Total"},
}

CURRENCY = "Kz"


def _locale(locale: Optional[str]) -> str:
    return locale if locale in SMS_TEMPLATES else "pt"


def render_sms(
    template_key: str,
    company_name: str,
    ticket_code: str,
    order_type: Any = OrderType.EAT_IN,
    locale: Optional[str] = None,
) -> Optional[str]:
    """Customer SMS for the status just entered, or None when there is none"""
    templates = SMS_TEMPLATES[_locale(locale)]
    key = template_key
    if key == OrderStatus.READY.value and OrderType(order_type) == OrderType.DELIVERY:
        key = "READY_DELIVERY"

    template = templates.get(key)
    if template is None:
        return None
    return template.format(company=company_name, ticket=ticket_code)


def tracking_echo(status: Any, locale: Optional[str] = None) -> Optional[str]:
    return TRACKING_ECHOES[_locale(locale)].get(parse_status(status).value)


def status_label(status: Any, cancelled_by: Any = None, locale: Optional[str] = None) -> str:
    """Human label for a status; cancellations say who cancelled"""
    labels = STATUS_LABELS[_locale(locale)]
    status = parse_status(status)
    if status == OrderStatus.CANCELLED and cancelled_by:
        suffix = "CUSTOMER" if Actor(cancelled_by) == Actor.CUSTOMER else "ADMIN"
        return labels[f"CANCELLED_{suffix}"]
    return labels[status.value]


def format_money(amount: Optional[int]) -> str:
    return f"{amount or 0:,}".replace(",", ".") + f" {CURRENCY}"


def render_staff_alert(
    order: Any,
    template_key: str,
    locale: Optional[str] = None,
) -> str:
    """Telegram HTML summary of an order for the staff chat"""
    locale = _locale(locale)
    fields = ALERT_FIELDS[locale]
    kind = "NEW_ORDER" if template_key == "NEW_ORDER" else "STATUS_CHANGE"

    lines = [
        f"<b>{ALERT_HEADINGS[locale][kind]}</b>",
        "",
        f"<b>{fields['ticket']}:</b> #{escape(str(order.ticket_code))}",
    ]
    if order.customer_name:
        lines.append(f"<b>{fields['customer']}:</b> {escape(order.customer_name)}")
    lines.append(f"<b>{fields['phone']}:</b> {escape(order.customer_phone or '')}")
    lines.append(
        f"<b>{fields['status']}:</b> {status_label(order.status, order.cancelled_by, locale)}"
    )

    items = list(order.items or [])
    if items:
        lines.append("")
        lines.append(f"<b>{fields['items']}:</b>")
        lines.extend(_item_lines(items))

    lines.append("")
    lines.append(f"<b>{fields['total']}:</b> {format_money(order.total)}")
    return "\n".join(lines)


def _item_lines(items: Iterable[Any]) -> list:
    lines = []
    for item in items:
        lines.append(f"• {item.quantity}x {escape(item.name)}")
        if item.observation:
            lines.append(f"  <i>Obs: {escape(item.observation)}</i>")
    return lines
