"""
Subscriber notifications.

``Notifier`` is the port the change detector depends on.  ``SmtpNotifier``
delivers the Croatian update e-mail over SMTP; the blocking ``smtplib``
session runs in a worker thread.
"""

import asyncio
import html
import smtplib
from dataclasses import dataclass
from email.message import EmailMessage
from typing import Optional, Protocol

from court_watch.config import get_settings
from court_watch.config.settings import NotifySettings
from court_watch.core import ConfigurationError, FilingInfo, NotificationError, get_logger

logger = get_logger(__name__)


@dataclass(frozen=True)
class Notification:
    """
    Everything a subscriber is told about one new filing.

    Attributes:
        recipient: Subscriber e-mail address
        query: The tracked search text
        filing: The newly found filing
        narrative: Synthesized analysis of the filing's documents
        unsubscribe_token: Token for the subscriber's unsubscribe link
    """

    recipient: str
    query: str
    filing: FilingInfo
    narrative: str
    unsubscribe_token: str


class Notifier(Protocol):
    """Delivers a notification or raises ``NotificationError``."""

    async def notify(self, notification: Notification) -> None: ...


def render_subject(notification: Notification) -> str:
    return f"Nova objava za Vašu pretragu: {notification.query}"


def render_html(notification: Notification, unsubscribe_base_url: str) -> str:
    """Render the update e-mail body. All interpolated values are escaped."""
    filing = notification.filing
    esc = html.escape
    unsubscribe_link = f"{unsubscribe_base_url.rstrip('/')}/{notification.unsubscribe_token}"
    return f"""\
<h1>Pronađena je nova sudska objava!</h1>
<p>Pronašli smo novu objavu za pojam koji pratite: <strong>{esc(notification.query)}</strong></p>
<hr>
<h2>Detalji objave:</h2>
<p><strong>Naziv:</strong> {esc(filing.title)}</p>
<p><strong>Broj predmeta:</strong> {esc(filing.case_number)}</p>
<p><strong>Sud:</strong> {esc(filing.court)}</p>
<p><strong>Datum objave:</strong> {esc(filing.date)}</p>
<hr>
<h2>AI Analiza:</h2>
<div style="white-space: pre-wrap; background-color: #f5f5f5; padding: 15px; border-radius: 5px;">{esc(notification.narrative)}</div>
<br>
<p><a href="{esc(filing.detail_link, quote=True)}">Pogledajte originalnu objavu na e-Oglasnoj ploči</a></p>
<br><br>
<hr>
<p style="font-size: 12px; color: #888;">
    Ne želite više primati ove obavijesti? <a href="{esc(unsubscribe_link, quote=True)}">Odjavite se</a>.
</p>
"""


class SmtpNotifier:
    """
    ``Notifier`` that sends HTML e-mail through an SMTP relay.

    Example:
        >>> notifier = SmtpNotifier()
        >>> await notifier.notify(notification)
    """

    def __init__(self, settings: Optional[NotifySettings] = None) -> None:
        self.settings = settings or get_settings().notify

    def build_message(self, notification: Notification) -> EmailMessage:
        message = EmailMessage()
        message["Subject"] = render_subject(notification)
        message["From"] = self.settings.sender
        message["To"] = notification.recipient
        message.set_content(
            f"{notification.filing.title}\n\n{notification.narrative}"
        )
        message.add_alternative(
            render_html(notification, self.settings.unsubscribe_base_url),
            subtype="html",
        )
        return message

    def _send_sync(self, message: EmailMessage) -> None:
        s = self.settings
        with smtplib.SMTP(s.smtp_host, s.smtp_port, timeout=30) as smtp:
            if s.use_tls:
                smtp.starttls()
            if s.smtp_user:
                smtp.login(s.smtp_user, s.smtp_password or "")
            smtp.send_message(message)

    async def notify(self, notification: Notification) -> None:
        """
        Send the update e-mail.

        Raises:
            ConfigurationError: If no SMTP host is configured.
            NotificationError: If delivery fails.
        """
        if not self.settings.smtp_host:
            raise ConfigurationError(
                "SMTP host is not configured",
                details="Set NOTIFY_SMTP_HOST in the environment or .env",
            )

        message = self.build_message(notification)
        try:
            await asyncio.to_thread(self._send_sync, message)
        except (smtplib.SMTPException, OSError) as e:
            raise NotificationError(
                f"Failed to send update e-mail to {notification.recipient}",
                details=str(e),
            ) from e
        logger.info("Update e-mail sent to %s", notification.recipient)
