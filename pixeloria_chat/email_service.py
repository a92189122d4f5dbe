"""
Outbound email for chat notifications and transcripts.

Messages go out over SMTP (optionally upgraded with STARTTLS), one SMTP
conversation per recipient. A recipient that fails is logged and reported,
and the remaining recipients are still attempted.

Usage:
    >>> service = EmailService.from_config(app.config)
    >>> service.send(["ops@example.com"], "New chat", "<p>Hello</p>")
    {'success': True, 'sent': ['ops@example.com'], 'failed': {}}
"""

import logging
import smtplib
import ssl
from email.mime.multipart import MIMEMultipart
from email.mime.text import MIMEText
from typing import Any, Dict, Iterable, Mapping, Optional

logger = logging.getLogger(__name__)


class EmailService:
    """SMTP sender configured from the application settings."""

    def __init__(self, email_config: Dict[str, str]):
        """Initialize email service with configuration.

        Args:
            email_config: Dictionary containing SMTP configuration
        """
        self.smtp_server = email_config.get("smtp_server", "")
        self.smtp_port = int(email_config.get("smtp_port") or 587)
        self.smtp_username = email_config.get("smtp_username", "")
        self.smtp_password = email_config.get("smtp_password", "")
        self.smtp_use_tls = str(email_config.get("smtp_use_tls", "true")).lower() == "true"
        self.from_email = email_config.get("from_email", "") or self.smtp_username

    @classmethod
    def from_config(cls, config: Mapping[str, Any]) -> "EmailService":
        return cls(
            {
                "smtp_server": config.get("SMTP_SERVER", ""),
                "smtp_port": config.get("SMTP_PORT", "587"),
                "smtp_username": config.get("SMTP_USERNAME", ""),
                "smtp_password": config.get("SMTP_PASSWORD", ""),
                "smtp_use_tls": config.get("SMTP_USE_TLS", "true"),
                "from_email": config.get("FROM_EMAIL", ""),
            }
        )

    def is_configured(self) -> bool:
        """Check if email service is properly configured.

        Returns:
            True if a server and a sender address are present
        """
        return bool(self.smtp_server.strip() and self.from_email.strip())

    def send(
        self,
        recipients: Iterable[str],
        subject: str,
        html: str,
        text: Optional[str] = None,
    ) -> Dict[str, Any]:
        """Send one message to each recipient independently.

        Args:
            recipients: Addresses to deliver to
            subject: Subject line
            html: HTML body
            text: Optional plain text alternative

        Returns:
            Dictionary with overall success, delivered addresses and a
            mapping of failed addresses to their error
        """
        recipients = [r.strip() for r in recipients if r and r.strip()]
        if not self.is_configured():
            return {
                "success": False,
                "error": "Email service is not properly configured. Please check SMTP settings.",
                "sent": [],
                "failed": {},
            }
        if not recipients:
            return {"success": False, "error": "Recipient email address is required", "sent": [], "failed": {}}

        sent = []
        failed: Dict[str, str] = {}
        for to_email in recipients:
            message = MIMEMultipart("alternative")
            message["Subject"] = subject
            message["From"] = self.from_email
            message["To"] = to_email
            if text:
                message.attach(MIMEText(text, "plain"))
            message.attach(MIMEText(html, "html"))
            try:
                self._send_email(message, to_email)
            except (smtplib.SMTPException, OSError) as e:
                logger.error(f"[EMAIL] Failed to send '{subject}' to {to_email}: {e}")
                failed[to_email] = str(e)
                continue
            logger.info(f"[EMAIL] Sent '{subject}' to {to_email}")
            sent.append(to_email)

        result: Dict[str, Any] = {"success": not failed, "sent": sent, "failed": failed}
        if failed:
            result["error"] = f"Failed to send email to {len(failed)} of {len(recipients)} recipients"
        return result

    def _send_email(self, message: MIMEMultipart, to_email: str) -> None:
        """Send the email message via SMTP."""
        context = ssl.create_default_context()

        with smtplib.SMTP(self.smtp_server, self.smtp_port, timeout=30) as server:
            if self.smtp_use_tls:
                server.starttls(context=context)

            if self.smtp_username and self.smtp_password:
                server.login(self.smtp_username, self.smtp_password)

            server.sendmail(self.from_email, to_email, message.as_string())
