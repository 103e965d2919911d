"""
Email notifier.

Delivers reset codes over SMTP. Credentials are passed in at construction;
the module config only supplies defaults.
"""

import logging
import smtplib
from email.mime.text import MIMEText

from chapter_api.core import config
from chapter_api.core.errors import DeliveryFailure

logger = logging.getLogger(__name__)


class EmailNotifier:
    def __init__(
        self,
        host: str | None = None,
        port: int | None = None,
        username: str | None = None,
        password: str | None = None,
        sender: str | None = None,
        use_tls: bool | None = None,
    ) -> None:
        self.host = host or config.SMTP_HOST
        self.port = port or config.SMTP_PORT
        self.username = username if username is not None else config.SMTP_USER
        self.password = password if password is not None else config.SMTP_PASSWORD
        self.sender = sender or config.SMTP_FROM or self.username
        self.use_tls = config.SMTP_USE_TLS if use_tls is None else use_tls

    def is_configured(self) -> bool:
        return bool(self.username and self.password and self.sender)

    def send(self, to_address: str, subject: str, body: str) -> None:
        """
        Send a plain-text email.

        Raises:
            DeliveryFailure: when SMTP is not configured or the server rejects the message.
        """
        if not self.is_configured():
            logger.error("Email credentials not configured. Set SMTP_USER and SMTP_PASSWORD.")
            raise DeliveryFailure(detail="SMTP credentials are not configured")

        message = MIMEText(body, "plain")
        message["From"] = self.sender
        message["To"] = to_address
        message["Subject"] = subject

        try:
            with smtplib.SMTP(self.host, self.port) as server:
                if self.use_tls:
                    server.starttls()
                server.login(self.username, self.password)
                server.send_message(message)
        except (smtplib.SMTPException, OSError) as exc:
            logger.exception("SMTP error sending email to %s", to_address)
            raise DeliveryFailure(detail=str(exc)) from exc

        logger.info("Email sent to %s: %s", to_address, subject)
