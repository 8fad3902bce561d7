"""
SMS delivery gateways.

Two implementations share one interface:
    - ConsoleSmsGateway: development, the message is only logged
    - Fast2SmsGateway: production, delivers through the Fast2SMS bulk API

The active gateway is chosen by ``SMS_PROVIDER`` and cached on the app's
extensions, so tests can swap in their own.
"""

import logging
import uuid
from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Optional

import httpx
from flask import current_app

from canteen.errors import UpstreamFailure

logger = logging.getLogger(__name__)

EXTENSION_KEY = "canteen.sms_gateway"


@dataclass
class SmsResult:
    """Result from a delivered SMS."""
    message_id: Optional[str] = None
    provider: str = "unknown"


class SmsGateway(ABC):
    """Abstract base class for SMS gateways."""

    @property
    @abstractmethod
    def provider_name(self) -> str:
        """Return the provider name."""

    @abstractmethod
    def send(self, phone: str, message: str) -> SmsResult:
        """Deliver ``message`` to ``phone``; raise UpstreamFailure on failure."""


class ConsoleSmsGateway(SmsGateway):
    """Logs messages instead of sending them."""

    @property
    def provider_name(self) -> str:
        return "console"

    def send(self, phone: str, message: str) -> SmsResult:
        message_id = f"sms_console_{uuid.uuid4().hex[:12]}"
        logger.info(f"SMS to {phone} not sent (console gateway): {message} (ID: {message_id})")
        return SmsResult(message_id=message_id, provider=self.provider_name)


class Fast2SmsGateway(SmsGateway):
    """Production gateway using the Fast2SMS bulk endpoint."""

    def __init__(self, api_key: Optional[str], url: str, sender_id: str, timeout: float = 10):
        self.api_key = api_key
        self.url = url
        self.sender_id = sender_id
        self.timeout = timeout
        if not api_key:
            logger.warning("Fast2SMS API key not configured")

    @property
    def provider_name(self) -> str:
        return "fast2sms"

    def send(self, phone: str, message: str) -> SmsResult:
        if not self.api_key:
            raise UpstreamFailure("SMS service is not configured.")

        payload = {
            "route": "v3",
            "sender_id": self.sender_id,
            "message": message,
            "language": "english",
            "flash": 0,
            "numbers": phone,
        }
        headers = {
            "Content-Type": "application/json",
            "Authorization": self.api_key,
        }

        try:
            response = httpx.post(self.url, json=payload, headers=headers, timeout=self.timeout)
            response.raise_for_status()
            body = response.json()
        except (httpx.HTTPError, ValueError) as e:
            logger.error(f"Fast2SMS error for {phone}: {e}")
            raise UpstreamFailure("SMS service unavailable.", reason=str(e)) from e

        if body.get("return") is False:
            logger.error(f"Fast2SMS rejected message to {phone}: {body.get('message')}")
            raise UpstreamFailure("SMS service rejected the message.", reason=str(body.get("message")))

        logger.info(f"SMS sent to {phone}: {body.get('request_id')}")
        return SmsResult(message_id=body.get("request_id"), provider=self.provider_name)


def build_sms_gateway(config) -> SmsGateway:
    provider = config.get("SMS_PROVIDER", "console")
    if provider == "fast2sms":
        return Fast2SmsGateway(
            api_key=config.get("FAST2SMS_API_KEY"),
            url=config["FAST2SMS_URL"],
            sender_id=config["SMS_SENDER_ID"],
            timeout=config.get("SMS_TIMEOUT_SECONDS", 10),
        )
    if provider != "console":
        logger.warning(f"Unknown SMS provider '{provider}', falling back to console")
    return ConsoleSmsGateway()


def get_sms_gateway() -> SmsGateway:
    """Get the configured gateway for the current app."""
    gateway = current_app.extensions.get(EXTENSION_KEY)
    if gateway is None:
        gateway = build_sms_gateway(current_app.config)
        current_app.extensions[EXTENSION_KEY] = gateway
        logger.info(f"SMS gateway: {gateway.provider_name}")
    return gateway


def set_sms_gateway(app, gateway: SmsGateway) -> None:
    app.extensions[EXTENSION_KEY] = gateway
