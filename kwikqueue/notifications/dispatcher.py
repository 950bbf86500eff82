"""
Notification dispatcher.

Turns transition side effects into messages and hands them to the notifier
for their channel. Delivery is best-effort: every failure is logged and the
remaining effects are still attempted, so the status change that produced
them is never affected.
"""

from dataclasses import dataclass
from typing import Callable, Dict, Iterable, Optional

import structlog

from kwikqueue.config import settings
from kwikqueue.domain.errors import KwikQueueError, NotificationFailure
from kwikqueue.domain.state_machine import SideEffect
from kwikqueue.notifications.notifier import Notifier, TelegramNotifier, get_sms_notifier, mask_phone
from kwikqueue.notifications.templates import render_sms, render_staff_alert
from kwikqueue.schemas.company import CompanyRecord
from kwikqueue.schemas.order import OrderRecord
from kwikqueue.store.base import Store

logger = structlog.get_logger()

TelegramFactory = Callable[[str], Notifier]


@dataclass
class DispatchReport:
    sent: int = 0
    failed: int = 0
    skipped: int = 0


class NotificationDispatcher:
    """Best-effort delivery of side effects and SMS broadcasts"""

    def __init__(
        self,
        store: Store,
        sms_notifier: Optional[Notifier] = None,
        telegram_factory: Optional[TelegramFactory] = None,
        locale: Optional[str] = None,
        sms_cost: Optional[int] = None,
    ):
        self.store = store
        self._sms_notifier = sms_notifier
        self.telegram_factory = telegram_factory or TelegramNotifier
        self.locale = locale or settings.default_locale
        self.sms_cost = settings.sms_cost if sms_cost is None else sms_cost

    @property
    def sms_notifier(self) -> Notifier:
        if self._sms_notifier is None:
            self._sms_notifier = get_sms_notifier()
        return self._sms_notifier

    async def dispatch(self, side_effects: Iterable[SideEffect]) -> DispatchReport:
        report = DispatchReport()
        companies: Dict[int, CompanyRecord] = {}

        for effect in side_effects:
            if effect.kind != "notify":
                report.skipped += 1
                continue
            try:
                company = companies.get(effect.company_id)
                if company is None:
                    company = CompanyRecord.model_validate(
                        await self.store.get_by_id("companies", effect.company_id)
                    )
                    companies[effect.company_id] = company

                if effect.channel == "sms":
                    delivered = await self._send_customer_sms(company, effect)
                elif effect.channel == "telegram":
                    delivered = await self._send_staff_alert(company, effect)
                else:
                    logger.warning("Unknown notification channel", channel=effect.channel)
                    delivered = False

                if delivered:
                    report.sent += 1
                else:
                    report.skipped += 1
            except NotificationFailure as e:
                report.failed += 1
                logger.error(
                    "Notification failed",
                    channel=effect.channel,
                    template=effect.template_key,
                    order_id=effect.order_id,
                    error=str(e),
                )
            except Exception:
                report.failed += 1
                logger.exception(
                    "Notification dispatch error",
                    channel=effect.channel,
                    template=effect.template_key,
                    order_id=effect.order_id,
                )

        return report

    async def _send_customer_sms(self, company: CompanyRecord, effect: SideEffect) -> bool:
        if not effect.recipient:
            return False
        message = render_sms(
            effect.template_key,
            company_name=company.name,
            ticket_code=effect.ticket_code,
            order_type=effect.order_type,
            locale=self.locale,
        )
        if message is None:
            return False

        await self.send_sms(company.id, effect.recipient, message)
        logger.info(
            "Customer notified",
            order_id=effect.order_id,
            template=effect.template_key,
            recipient=mask_phone(effect.recipient),
        )
        return True

    async def _send_staff_alert(self, company: CompanyRecord, effect: SideEffect) -> bool:
        if not company.telegram_bot_token or not company.telegram_chat_id:
            logger.debug("Telegram not configured", company_id=company.id)
            return False

        order = OrderRecord.model_validate(await self.store.get_by_id("orders", effect.order_id))
        message = render_staff_alert(order, effect.template_key, self.locale)
        notifier = self.telegram_factory(company.telegram_bot_token)
        await notifier.send(company.telegram_chat_id, message)
        logger.info("Staff alerted", order_id=effect.order_id, template=effect.template_key)
        return True

    async def send_sms(self, company_id: int, recipient: str, message: str) -> str:
        """Send one SMS and append it to the delivery log"""
        reference = await self.sms_notifier.send(recipient, message)
        try:
            await self.store.insert("sms_logs", {
                "company_id": company_id,
                "recipient": recipient,
                "message": message,
                "cost": self.sms_cost,
            })
        except KwikQueueError as e:
            logger.error("SMS log write failed", company_id=company_id, error=str(e))
        return reference


def get_dispatcher() -> NotificationDispatcher:
    """Dispatcher over the application store and configured providers"""
    from kwikqueue.store.sql import get_store
    return NotificationDispatcher(get_store())
