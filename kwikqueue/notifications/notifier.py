"""
Notifier providers.

Every provider exposes ``send(recipient, message)`` which either returns a
provider reference or raises NotificationFailure.
"""

import asyncio
import re
import uuid
from abc import ABC, abstractmethod
from typing import List, Optional, Tuple

import httpx
import structlog
from twilio.base.exceptions import TwilioException
from twilio.rest import Client as TwilioClient

from kwikqueue.config import settings
from kwikqueue.domain.errors import NotificationFailure

logger = structlog.get_logger()


def normalize_phone(phone: str, country_code: Optional[str] = None) -> str:
    """E.164 form; local numbers get the default country prefix"""
    country_code = country_code or settings.default_country_code
    raw = (phone or "").strip()
    digits = re.sub(r"\D", "", raw)
    if not digits:
        raise NotificationFailure(f"Invalid phone number: {phone!r}")

    if raw.startswith("+"):
        return f"+{digits}"
    if digits.startswith("00"):
        return f"+{digits[2:]}"
    if digits.startswith(country_code) and len(digits) > 9:
        return f"+{digits}"
    return f"+{country_code}{digits}"


def mask_phone(phone: Optional[str]) -> str:
    """Phone numbers are logged with only the last digits visible"""
    if not phone:
        return ""
    return f"***{phone[-3:]}"


class Notifier(ABC):
    """Abstract base class for outbound message providers"""

    channel = "sms"

    @abstractmethod
    async def send(self, recipient: str, message: str) -> str:
        """Deliver `message`; return the provider reference"""
        pass


class TwilioNotifier(Notifier):
    """SMS through the Twilio REST API"""

    def __init__(
        self,
        account_sid: Optional[str] = None,
        auth_token: Optional[str] = None,
        from_number: Optional[str] = None,
    ):
        self.account_sid = account_sid or settings.twilio_account_sid
        self.auth_token = auth_token or settings.twilio_auth_token
        self.from_number = from_number or settings.twilio_phone_number
        self._client: Optional[TwilioClient] = None

    @property
    def client(self) -> TwilioClient:
        if self._client is None:
            self._client = TwilioClient(self.account_sid, self.auth_token)
        return self._client

    async def send(self, recipient: str, message: str) -> str:
        to = normalize_phone(recipient)
        try:
            client = self.client
            # The Twilio client is synchronous
            result = await asyncio.to_thread(
                client.messages.create,
                body=message,
                from_=self.from_number,
                to=to,
            )
        except TwilioException as e:
            raise NotificationFailure(f"Twilio rejected the message: {e}") from e
        return result.sid


class SmsHubNotifier(Notifier):
    """
    SMS through SMS Hub Angola.

    Each send authenticates first (POST /authentication) and then posts the
    message with the returned access token (POST /sendsms).
    """

    def __init__(
        self,
        base_url: Optional[str] = None,
        auth_id: Optional[str] = None,
        secret_key: Optional[str] = None,
        sender_id: Optional[str] = None,
        timeout: Optional[float] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        self.base_url = (base_url or settings.smshub_base_url).rstrip("/")
        self.auth_id = auth_id or settings.smshub_auth_id
        self.secret_key = secret_key or settings.smshub_secret_key
        self.sender_id = sender_id or settings.smshub_sender_id
        self.timeout = timeout or settings.notifier_timeout_seconds
        self.transport = transport

    async def _authenticate(self, client: httpx.AsyncClient) -> str:
        response = await client.post(
            f"{self.base_url}/authentication",
            json={"authId": self.auth_id, "secretKey": self.secret_key},
        )
        if response.status_code >= 400:
            raise NotificationFailure(f"SMS Hub authentication failed: {response.status_code}")

        try:
            data = response.json()
        except ValueError:
            data = {}
        token = (
            (data.get("data") or {}).get("authToken")
            or data.get("token")
            or data.get("accessToken")
            or response.headers.get("accessToken")
        )
        if not token:
            raise NotificationFailure("SMS Hub authentication returned no token")
        return token

    async def send(self, recipient: str, message: str) -> str:
        if not self.auth_id or not self.secret_key:
            raise NotificationFailure("SMS Hub credentials not configured")

        contact = normalize_phone(recipient).lstrip("+")
        try:
            async with httpx.AsyncClient(timeout=self.timeout, transport=self.transport) as client:
                token = await self._authenticate(client)
                response = await client.post(
                    f"{self.base_url}/sendsms",
                    headers={"accessToken": token},
                    json={
                        "contactNo": [contact],
                        "message": message,
                        "from": self.sender_id,
                    },
                )
        except httpx.HTTPError as e:
            raise NotificationFailure(f"SMS Hub request failed: {e}") from e

        if response.status_code >= 400:
            raise NotificationFailure(f"SMS Hub send failed: {response.status_code} {response.text}")
        return f"smshub-{uuid.uuid4().hex[:10]}"


class TelegramNotifier(Notifier):
    """Staff alerts through a company's Telegram bot; recipient is the chat id"""

    channel = "telegram"

    def __init__(
        self,
        bot_token: str,
        api_url: Optional[str] = None,
        timeout: Optional[float] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        self.bot_token = (bot_token or "").strip()
        self.api_url = (api_url or settings.telegram_api_url).rstrip("/")
        self.timeout = timeout or settings.notifier_timeout_seconds
        self.transport = transport

    def _url(self, method: str) -> str:
        return f"{self.api_url}/bot{self.bot_token}/{method}"

    async def send(self, recipient: str, message: str) -> str:
        chat_id = (recipient or "").strip()
        if not self.bot_token or not chat_id:
            raise NotificationFailure("Telegram bot token or chat id not configured")

        try:
            async with httpx.AsyncClient(timeout=self.timeout, transport=self.transport) as client:
                response = await client.post(
                    self._url("sendMessage"),
                    json={"chat_id": chat_id, "text": message, "parse_mode": "HTML"},
                )
        except httpx.HTTPError as e:
            raise NotificationFailure(f"Telegram request failed: {e}") from e

        data = response.json() if response.content else {}
        if response.status_code >= 400 or not data.get("ok", False):
            raise NotificationFailure(data.get("description") or "Telegram API error")
        return str((data.get("result") or {}).get("message_id", ""))

    async def check_bot(self) -> dict:
        """Resolve the bot behind the token (getMe)"""
        if not self.bot_token:
            raise NotificationFailure("Telegram bot token not configured")
        try:
            async with httpx.AsyncClient(timeout=self.timeout, transport=self.transport) as client:
                response = await client.get(self._url("getMe"))
        except httpx.HTTPError as e:
            raise NotificationFailure(f"Telegram request failed: {e}") from e

        data = response.json() if response.content else {}
        if response.status_code >= 400 or not data.get("ok", False):
            raise NotificationFailure(data.get("description") or "Invalid bot token")
        result = data.get("result") or {}
        return {"bot_name": result.get("first_name"), "username": result.get("username")}


class MockNotifier(Notifier):
    """Records messages instead of sending them (development and tests)"""

    def __init__(self, channel: str = "sms", fail: bool = False):
        self.channel = channel
        self.fail = fail
        self.sent: List[Tuple[str, str]] = []

    async def send(self, recipient: str, message: str) -> str:
        if self.fail:
            raise NotificationFailure("Mock notifier configured to fail")
        self.sent.append((recipient, message))
        logger.info("Mock message sent", channel=self.channel, recipient=mask_phone(recipient))
        return f"mock-{uuid.uuid4().hex[:10]}"


def get_sms_notifier(provider: Optional[str] = None) -> Notifier:
    """SMS provider selected by configuration"""
    provider = (provider or settings.sms_provider).lower()
    if provider == "twilio":
        return TwilioNotifier()
    if provider == "smshub":
        return SmsHubNotifier()
    if provider == "mock":
        return MockNotifier()
    raise ValueError(f"Unknown SMS provider: {provider}")
