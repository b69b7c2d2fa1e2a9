# -*- codeing = utf-8 -*-
# @Create: 2023-03-29 3:56 p.m.
# @Update: 2025-10-24 11:53 p.m.
# @Author: John Zhao
"""E-mail notification channel backed by ``smtplib``."""

import logging
import smtplib
from email.header import Header
from email.mime.multipart import MIMEMultipart
from email.mime.text import MIMEText
from email.utils import formataddr, parseaddr
from typing import Any, Callable, Dict, Iterable, Mapping, Optional, Tuple

import configuration

from .collaborators import NotificationChannel
from .errors import DeliveryError

LOGGER = logging.getLogger(__name__)

DEFAULT_SUBJECT = "Uptime Alert"
DEFAULT_SMTP_TIMEOUT = 10.0


def _normalize_recipients(explicit_recipients) -> Tuple[str, Iterable[str]]:
    """Return the header text and the delivery list for the recipients."""

    candidate = explicit_recipients
    if candidate is None:
        raise ValueError("No recipient address configured")

    if isinstance(candidate, str):
        addresses = [addr.strip() for addr in candidate.split(",") if addr.strip()]
    else:
        addresses = [str(addr).strip() for addr in candidate if str(addr).strip()]

    if not addresses:
        raise ValueError("Recipient address must not be empty")

    return ", ".join(addresses), addresses


def _format_address(address: str) -> str:
    """Render an address for a header, encoding display names as UTF-8."""

    name, email_addr = parseaddr(address)
    if not email_addr:
        if name:
            return str(Header(name, "utf-8"))
        return str(Header(address, "utf-8"))

    if name:
        return formataddr((str(Header(name, "utf-8")), email_addr))
    return email_addr


def _extract_email(address: str) -> str:
    return parseaddr(address)[1] or address


def build_message(subject: str, body: str, from_addr: str,
                  recipients: Iterable[str]) -> MIMEMultipart:
    message = MIMEMultipart()
    message["From"] = _format_address(from_addr)
    message["To"] = ", ".join(_format_address(addr) for addr in recipients)
    message["Subject"] = Header(subject, "utf-8")
    message.attach(MIMEText(body, "plain", "utf-8"))
    return message


class EmailChannel(NotificationChannel):
    """Send alert messages to the check's contact address over SMTP."""

    name = "email"

    def __init__(
        self,
        *,
        settings_loader: Optional[Callable[[], Mapping[str, Any]]] = None,
        subject: Optional[str] = None,
        timeout: float = DEFAULT_SMTP_TIMEOUT,
    ) -> None:
        self._settings_loader = settings_loader or configuration.read_mail_configuration
        self._subject = subject
        self._timeout = timeout

    def send(self, address: str, message: str) -> None:
        try:
            mailconfig: Dict[str, Any] = dict(self._settings_loader())
            smtp_port = int(mailconfig["smtp_port"])
            smtp_server = mailconfig["smtp_server"]
            from_addr = mailconfig["from_addr"]
            username = mailconfig["username"]
            password = mailconfig["password"]
            _, send_to_list = _normalize_recipients(address)
        except (KeyError, TypeError, ValueError, OSError) as exc:
            raise DeliveryError(f"Mail settings are unusable: {exc}") from exc

        use_starttls = mailconfig.get("use_starttls", False)
        use_ssl = mailconfig.get("use_ssl", False)
        if use_starttls and use_ssl:
            raise DeliveryError(
                "Mail settings use_starttls and use_ssl cannot both be enabled")

        subject = self._subject or mailconfig.get("subject") or DEFAULT_SUBJECT
        mime = build_message(subject, message, from_addr, send_to_list)
        transmit_from = _extract_email(from_addr)
        transmit_to = [_extract_email(addr) for addr in send_to_list]

        smtp_factory = smtplib.SMTP_SSL if use_ssl else smtplib.SMTP
        try:
            with smtp_factory(smtp_server, smtp_port,
                              timeout=self._timeout) as server:
                if use_starttls:
                    server.starttls()
                server.login(username, password)
                server.sendmail(transmit_from, transmit_to, mime.as_string())
        except smtplib.SMTPAuthenticationError as exc:
            LOGGER.error(
                "mail.smtp.authentication_error server=%s username=%s recipients=%s",
                smtp_server,
                username,
                mime["To"],
            )
            raise DeliveryError(f"SMTP authentication failed: {exc}") from exc
        except (smtplib.SMTPException, OSError) as exc:
            LOGGER.error(
                "mail.smtp.communication_error server=%s port=%s recipients=%s error=%s",
                smtp_server,
                smtp_port,
                mime["To"],
                exc,
            )
            raise DeliveryError(f"SMTP delivery failed: {exc}") from exc

        LOGGER.info("mail.smtp.sent recipients=%s", mime["To"])
