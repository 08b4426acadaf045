"""
mail/dispatcher.py -- Best-effort background mail delivery via fastapi-mail.

Request handlers call MailDispatcher.send(), which only enqueues the message
and returns immediately. One worker task, started and stopped by the app
lifespan, drains the bounded queue and hands each message to fastapi-mail.

Delivery is fire-and-forget from the caller's point of view:
  - a full queue drops the message and logs a warning,
  - a failed send is logged with its traceback and the worker moves on,
  - nothing is retried.

send() is safe to call from the event loop and from the threadpool that
FastAPI runs sync route handlers in -- off-loop callers are marshalled onto
the loop with call_soon_threadsafe.
"""

from __future__ import annotations

import asyncio
import logging
from typing import NamedTuple

from fastapi_mail import ConnectionConfig, FastMail, MessageSchema, MessageType

from core.config import Settings

logger = logging.getLogger("collegeauth.mail")


class OutboundMail(NamedTuple):
    to: str
    subject: str
    html: str


def build_mail_config(settings: Settings) -> ConnectionConfig:
    """Translate application settings into a fastapi-mail ConnectionConfig."""
    return ConnectionConfig(
        MAIL_USERNAME=settings.mail_username,
        MAIL_PASSWORD=settings.mail_password,
        MAIL_FROM=settings.mail_from,
        MAIL_FROM_NAME=settings.mail_from_name,
        MAIL_PORT=settings.mail_port,
        MAIL_SERVER=settings.mail_server,
        MAIL_STARTTLS=settings.mail_starttls,
        MAIL_SSL_TLS=settings.mail_ssl_tls,
        USE_CREDENTIALS=bool(settings.mail_username),
        SUPPRESS_SEND=1 if settings.mail_suppress_send else 0,
    )


def redact_email(email: str) -> str:
    """Redact an email address for logging to avoid PII leakage."""
    if "@" not in email:
        return "redacted"
    local, domain = email.split("@", 1)
    return f"{local[:2]}***@{domain}"


class MailDispatcher:
    """Bounded queue plus a single delivery worker."""

    def __init__(self, config: ConnectionConfig | None, queue_size: int = 100) -> None:
        self._config = config
        self._queue_size = queue_size
        self._queue: asyncio.Queue[OutboundMail] | None = None
        self._loop: asyncio.AbstractEventLoop | None = None
        self._worker: asyncio.Task | None = None

    @property
    def running(self) -> bool:
        return self._worker is not None and not self._worker.done()

    async def start(self) -> None:
        self._loop = asyncio.get_running_loop()
        self._queue = asyncio.Queue(maxsize=self._queue_size)
        self._worker = asyncio.create_task(self._run())
        logger.info("Mail dispatcher started (queue_size=%d)", self._queue_size)

    async def stop(self) -> None:
        """Cancel the worker. Messages still queued are dropped and counted."""
        if self._worker is None:
            return
        self._worker.cancel()
        try:
            await self._worker
        except asyncio.CancelledError:
            pass
        pending = self._queue.qsize() if self._queue is not None else 0
        if pending:
            logger.warning("Mail dispatcher stopped with %d undelivered messages", pending)
        self._worker = None

    def send(self, to: str, subject: str, html: str) -> None:
        """Queue a message for delivery. Never raises for delivery problems."""
        mail = OutboundMail(to, subject, html)
        if self._loop is None or self._queue is None:
            logger.error("Mail dispatcher not started; dropping mail to %s", redact_email(to))
            return
        try:
            running = asyncio.get_running_loop()
        except RuntimeError:
            running = None
        if running is self._loop:
            self._enqueue(mail)
        else:
            self._loop.call_soon_threadsafe(self._enqueue, mail)

    def _enqueue(self, mail: OutboundMail) -> None:
        try:
            self._queue.put_nowait(mail)
        except asyncio.QueueFull:
            logger.warning("Mail queue full; dropping mail to %s", redact_email(mail.to))

    async def _run(self) -> None:
        while True:
            mail = await self._queue.get()
            try:
                await self._deliver(mail)
                logger.info("Mail sent to %s", redact_email(mail.to))
            except Exception:
                logger.exception("Mail delivery to %s failed", redact_email(mail.to))
            finally:
                self._queue.task_done()

    async def _deliver(self, mail: OutboundMail) -> None:
        message = MessageSchema(
            subject=mail.subject,
            recipients=[mail.to],
            body=mail.html,
            subtype=MessageType.html,
        )
        await FastMail(self._config).send_message(message)

    async def drain(self) -> None:
        """Wait until every queued message has been handled."""
        if self._queue is not None:
            await self._queue.join()
