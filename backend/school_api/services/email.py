"""
Contact-form email over SMTP. When EMAIL_HOST is not configured the message is logged and not sent.
"""
import logging
import smtplib
from email.mime.multipart import MIMEMultipart
from email.mime.text import MIMEText
from html import escape

from school_api.config import settings

logger = logging.getLogger(__name__)


class EmailService:
    def __init__(self):
        self.host = settings.email_host
        self.port = settings.email_host_port
        self.secure = settings.email_secure
        self.user = settings.email_user
        self.password = settings.email_pass
        self.from_email = settings.email_from or settings.email_user

    @property
    def configured(self) -> bool:
        return bool(self.host)

    def send_email(self, to: str, subject: str, text: str, html: str | None = None, reply_to: str | None = None) -> bool:
        """Send one message. Returns False when SMTP is not configured; raises smtplib.SMTPException on failure."""
        if not self.configured:
            logger.warning("Email not configured. Email would be sent to %s: %s", to, subject)
            return False
        msg = MIMEMultipart("alternative")
        msg["Subject"] = subject
        msg["From"] = self.from_email
        msg["To"] = to
        if reply_to:
            msg["Reply-To"] = reply_to
        msg.attach(MIMEText(text, "plain"))
        if html:
            msg.attach(MIMEText(html, "html"))

        smtp_cls = smtplib.SMTP_SSL if self.secure else smtplib.SMTP
        with smtp_cls(self.host, self.port, timeout=15) as server:
            if not self.secure:
                server.starttls()
            if self.user and self.password:
                server.login(self.user, self.password)
            server.send_message(msg)
        logger.info("Email sent to %s: %s", to, subject)
        return True

    def send_contact_message(self, name: str, email: str, subject: str, message: str) -> bool:
        recipient = settings.contact_recipient or self.from_email
        text = f"Name: {name}\nEmail: {email}\n\nMessage:\n{message}"
        body = (
            f"<p><strong>Name:</strong> {escape(name)}</p>"
            f"<p><strong>Email:</strong> {escape(email)}</p>"
            f"<p><strong>Subject:</strong> {escape(subject)}</p>"
            f"<p><strong>Message:</strong><br/>{escape(message).replace(chr(10), '<br/>')}</p>"
        )
        return self.send_email(recipient, f"New Contact Message: {subject}", text, html=body, reply_to=email)
