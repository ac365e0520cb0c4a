"""Best-effort submitter notifications over SMTP."""

from __future__ import annotations

import asyncio
import logging
from email.message import EmailMessage
from typing import TYPE_CHECKING, Protocol, runtime_checkable

import aiosmtplib

if TYPE_CHECKING:
    from newsniche.config import SmtpConfig
    from newsniche.services.email_templates import OutboundEmail

logger = logging.getLogger(__name__)


@runtime_checkable
class Notifier(Protocol):
    """Fire-and-forget delivery of an email. Must never raise."""

    def dispatch(self, email: OutboundEmail) -> None: ...


class SmtpEmailSender:
    """Send a single email through the configured SMTP relay."""

    def __init__(self, config: SmtpConfig) -> None:
        self._config = config
        self._disabled = not config.enabled
        if self._disabled:
            logger.warning("SMTP_HOST is not set — submitter emails will not be sent")

    @property
    def disabled(self) -> bool:
        return self._disabled

    def _build_message(self, email: OutboundEmail) -> EmailMessage:
        message = EmailMessage()
        message["From"] = f'"{self._config.from_name}" <{self._config.user}>'
        message["To"] = email.to
        message["Subject"] = email.subject
        message.set_content(email.text)
        message.add_alternative(email.html, subtype="html")
        return message

    async def send(self, email: OutboundEmail) -> None:
        """Deliver ``email``. Raises on SMTP failure."""
        if self._disabled:
            logger.debug("Email skipped (SMTP disabled) — subject=%s", email.subject)
            return
        await aiosmtplib.send(
            self._build_message(email),
            hostname=self._config.host,
            port=self._config.port,
            username=self._config.user or None,
            password=self._config.password or None,
            use_tls=self._config.secure,
            start_tls=not self._config.secure,
        )
        logger.info("Email sent — subject=%s", email.subject)


class BackgroundNotifier:
    """Schedule sends as background tasks so callers never wait on SMTP."""

    def __init__(self, sender: SmtpEmailSender) -> None:
        self._sender = sender
        self._tasks: set[asyncio.Task[None]] = set()

    def dispatch(self, email: OutboundEmail) -> None:
        task = asyncio.create_task(self._deliver(email))
        self._tasks.add(task)
        task.add_done_callback(self._tasks.discard)

    async def _deliver(self, email: OutboundEmail) -> None:
        try:
            await self._sender.send(email)
        except Exception:  # noqa: BLE001
            logger.warning(
                "Failed to send email — to=%s subject=%s",
                email.to,
                email.subject,
                exc_info=True,
            )

    async def drain(self) -> None:
        """Wait for in-flight sends, used at shutdown."""
        if self._tasks:
            await asyncio.gather(*self._tasks, return_exceptions=True)
