# -*- codeing = utf-8 -*-
# @Create: 2025-10-24 11:53 p.m.
# @Update: 2025-10-24 11:53 p.m.
# @Author: John Zhao
"""SMS notification channel using the Twilio REST API."""

import logging
from typing import Any, Callable, Mapping, Optional

import requests

import configuration

from .collaborators import NotificationChannel
from .errors import DeliveryError

LOGGER = logging.getLogger(__name__)

TWILIO_MESSAGES_URL = "https://api.twilio.com/2010-04-01/Accounts/{account_sid}/Messages.json"
MAX_MESSAGE_LENGTH = 1600
DEFAULT_SEND_TIMEOUT = 10.0


def normalise_phone_number(raw: str, default_country_code: str = "1") -> str:
    """Return an E.164 number; bare ten-digit numbers get the country code."""

    text = str(raw or "").strip()
    digits = "".join(ch for ch in text if ch.isdigit())
    if text.startswith("+") and digits:
        return f"+{digits}"
    if len(digits) == 10:
        return f"+{default_country_code}{digits}"
    if digits:
        return f"+{digits}"
    raise ValueError(f"Invalid phone number: {raw!r}")


class SmsChannel(NotificationChannel):

    name = "sms"

    def __init__(
        self,
        *,
        settings_loader: Optional[Callable[[], Mapping[str, Any]]] = None,
        post_callable: Optional[Callable[..., Any]] = None,
        timeout: float = DEFAULT_SEND_TIMEOUT,
    ) -> None:
        self._settings_loader = settings_loader or configuration.read_sms_configuration
        self._post = post_callable
        self._timeout = timeout

    def send(self, address: str, message: str) -> None:
        try:
            settings = self._settings_loader()
            to_number = normalise_phone_number(address)
            account_sid = settings["account_sid"]
            auth_token = settings["auth_token"]
            from_number = settings["from_number"]
        except (KeyError, TypeError, ValueError, OSError) as exc:
            raise DeliveryError(f"SMS settings are unusable: {exc}") from exc

        body = str(message).strip()
        if not body:
            raise DeliveryError("SMS message must not be empty")
        body = body[:MAX_MESSAGE_LENGTH]

        post = self._post or requests.post
        url = TWILIO_MESSAGES_URL.format(account_sid=account_sid)
        try:
            response = post(
                url,
                data={"From": from_number, "To": to_number, "Body": body},
                auth=(account_sid, auth_token),
                timeout=self._timeout,
            )
        except requests.RequestException as exc:
            LOGGER.error("sms.twilio.error to=%s error=%s", to_number, exc)
            raise DeliveryError(f"SMS request failed: {exc}") from exc

        if not 200 <= response.status_code < 300:
            LOGGER.error("sms.twilio.failure to=%s status=%s", to_number,
                         response.status_code)
            raise DeliveryError(
                f"SMS provider returned status {response.status_code}")

        LOGGER.info("sms.twilio.sent to=%s status=%s", to_number,
                    response.status_code)
