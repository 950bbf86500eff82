"""SMS marketing broadcast to a company's customers"""

from typing import Iterable

import structlog

from kwikqueue.domain.errors import CompanyUnavailable, NotificationFailure
from kwikqueue.notifications.dispatcher import NotificationDispatcher
from kwikqueue.notifications.notifier import mask_phone
from kwikqueue.schemas.company import CompanyRecord, MarketingResponse
from kwikqueue.store.base import Store

logger = structlog.get_logger()


async def broadcast(
    store: Store,
    dispatcher: NotificationDispatcher,
    company_id: int,
    phones: Iterable[str],
    message: str,
) -> MarketingResponse:
    """Send `message` prefixed with the company name to each phone"""
    company = CompanyRecord.model_validate(await store.get_by_id("companies", company_id))
    if not company.marketing_enabled:
        raise CompanyUnavailable("Marketing is not enabled for this store")

    text = f"{company.name}: {message.strip()}"
    sent = failed = 0
    for phone in dict.fromkeys(p.strip() for p in phones if p and p.strip()):
        try:
            await dispatcher.send_sms(company.id, phone, text)
            sent += 1
        except NotificationFailure as e:
            failed += 1
            logger.error("Marketing SMS failed", company_id=company.id, recipient=mask_phone(phone), error=str(e))

    logger.info("Marketing broadcast sent", company_id=company.id, sent=sent, failed=failed)
    return MarketingResponse(sent=sent, failed=failed)
