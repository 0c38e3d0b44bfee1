"""
Outgoing email over SMTP.

smtplib is blocking, so delivery runs in the default executor. Sending is a
no-op (logged) while EMAIL_ENABLED is false.
"""
import logging
import smtplib
from email.mime.multipart import MIMEMultipart
from email.mime.text import MIMEText

from core.async_utils import run_blocking
from core.config import settings

logger = logging.getLogger(__name__)


class EmailService:
    """SMTP delivery using the EMAIL_* settings."""

    @staticmethod
    def _build_message(recipient: str, subject: str, text_body: str, html_body: str = None) -> MIMEMultipart:
        msg = MIMEMultipart("alternative")
        msg["Subject"] = subject
        msg["From"] = settings.email.smtp_from
        msg["To"] = recipient
        msg.attach(MIMEText(text_body, "plain"))
        if html_body:
            msg.attach(MIMEText(html_body, "html"))
        return msg

    @staticmethod
    def _send_blocking(msg: MIMEMultipart) -> None:
        config = settings.email
        if config.smtp_port == 465:
            server = smtplib.SMTP_SSL(config.smtp_host, config.smtp_port, timeout=config.timeout_seconds)
        else:
            server = smtplib.SMTP(config.smtp_host, config.smtp_port, timeout=config.timeout_seconds)
        try:
            if config.smtp_tls and config.smtp_port != 465:
                server.starttls()
            if config.smtp_user and config.smtp_password:
                server.login(config.smtp_user, config.smtp_password)
            server.send_message(msg)
        finally:
            server.quit()

    @staticmethod
    async def send_email(recipient: str, subject: str, text_body: str, html_body: str = None) -> bool:
        """
        Send an email.

        Returns:
            True if the message was handed to the SMTP server, False if email
            is disabled or delivery failed (the failure is logged).
        """
        if not settings.email.enabled:
            logger.info(f"Email disabled; not sending '{subject}' to {recipient}")
            return False

        msg = EmailService._build_message(recipient, subject, text_body, html_body)
        try:
            await run_blocking(EmailService._send_blocking, msg)
        except smtplib.SMTPAuthenticationError as e:
            logger.error(f"SMTP authentication failed: {e}")
            return False
        except (smtplib.SMTPException, OSError) as e:
            logger.error(f"Failed to send email to {recipient}: {e}")
            return False

        logger.info(f"Email '{subject}' sent to {recipient}")
        return True

    @staticmethod
    async def send_password_reset(recipient: str, emp_name: str, reset_link: str) -> bool:
        minutes = settings.password_reset.token_expire_minutes
        text_body = (
            f"Hello {emp_name},\n\n"
            f"A password reset was requested for your BranchOps account.\n"
            f"Open the link below to choose a new password:\n\n{reset_link}\n\n"
            f"The link expires in {minutes} minutes and can be used once.\n"
            f"If you did not request this, you can ignore this email.\n"
        )
        html_body = (
            f"<p>Hello {emp_name},</p>"
            f"<p>A password reset was requested for your BranchOps account.</p>"
            f'<p><a href="{reset_link}">Reset your password</a></p>'
            f"<p>The link expires in {minutes} minutes and can be used once.</p>"
        )
        return await EmailService.send_email(recipient, "Password reset", text_body, html_body)
