"""
Email Service for sending account notifications via SMTP.

Supports Gmail, Office365, and other SMTP providers.
"""

import html
import smtplib
import logging
from datetime import datetime, timezone
from email.mime.text import MIMEText
from email.mime.multipart import MIMEMultipart
from typing import Optional, List
from urllib.parse import urlencode

from config.settings import settings

logger = logging.getLogger(__name__)


def _header_safe(value: str) -> str:
    """Collapse CR/LF so user-supplied text cannot add mail headers."""
    return " ".join(value.splitlines())

_LAYOUT = """
<!DOCTYPE html>
<html>
<head>
    <style>
        body {{ font-family: Arial, sans-serif; line-height: 1.6; color: #333; }}
        .container {{ max-width: 600px; margin: 0 auto; padding: 20px; }}
        .header {{
            background: linear-gradient(135deg, #667eea 0%, #764ba2 100%);
            color: white; padding: 20px; text-align: center; border-radius: 5px 5px 0 0;
        }}
        .content {{ background-color: #f8f9fa; padding: 30px; border-radius: 0 0 5px 5px; }}
        .button {{
            display: inline-block; padding: 12px 30px; background-color: #667eea;
            color: white !important; text-decoration: none; border-radius: 5px; margin: 20px 0;
        }}
        .code {{ font-size: 32px; letter-spacing: 8px; font-weight: bold; text-align: center; }}
        .footer {{ text-align: center; margin-top: 20px; color: #666; font-size: 12px; }}
    </style>
</head>
<body>
    <div class="container">
        <div class="header"><h1>{title}</h1></div>
        <div class="content">
            <p>Hello {name},</p>
            {body}
            <p>Best regards,<br>The {brand} Team</p>
        </div>
        <div class="footer">
            <p>&copy; {year} {brand}. All rights reserved.</p>
            <p>This is an automated email. Please do not reply to this message.</p>
        </div>
    </div>
</body>
</html>
"""


class EmailService:
    """Email service for sending account notifications."""

    def __init__(self):
        """Initialize email service with settings."""
        self.enabled = settings.email_enabled
        self.backend = settings.email_backend
        self.host = settings.email_host
        self.port = settings.email_port
        self.use_tls = settings.email_use_tls
        self.use_ssl = settings.email_use_ssl
        self.username = settings.email_host_user
        self.password = settings.email_host_password
        self.from_address = settings.email_from_address
        self.from_name = settings.email_from_name

    def send_email(
        self,
        to_email: str,
        subject: str,
        html_content: str,
        text_content: Optional[str] = None,
        to_emails: Optional[List[str]] = None
    ) -> bool:
        """
        Send an email.

        Args:
            to_email: Recipient email address
            subject: Email subject
            html_content: HTML email content
            text_content: Plain text fallback content
            to_emails: List of additional recipient emails

        Returns:
            True if email sent successfully, False otherwise
        """
        if not self.enabled:
            logger.info(f"Email sending disabled; would send '{subject}' to {to_email}")
            if self.backend == "console":
                logger.info(f"Email content: {text_content or html_content[:200]}...")
            return True

        if not self.username or not self.password:
            logger.error("Email credentials not configured")
            return False

        msg = MIMEMultipart('alternative')
        msg['Subject'] = subject
        msg['From'] = f"{self.from_name} <{self.from_address}>"
        msg['To'] = to_email

        if text_content:
            msg.attach(MIMEText(text_content, 'plain'))
        msg.attach(MIMEText(html_content, 'html'))

        recipients = [to_email]
        if to_emails:
            recipients.extend(to_emails)

        try:
            if self.use_ssl:
                server = smtplib.SMTP_SSL(self.host, self.port, timeout=30)
            else:
                server = smtplib.SMTP(self.host, self.port, timeout=30)

            try:
                if self.use_tls and not self.use_ssl:
                    server.starttls()
                server.login(self.username, self.password)
                server.sendmail(self.from_address, recipients, msg.as_string())
            finally:
                server.quit()

            logger.info(f"Email sent successfully to {to_email}")
            return True

        except (smtplib.SMTPException, OSError) as e:
            logger.error(f"Failed to send email to {to_email}: {e}")
            return False

    def _send_notification(
        self,
        to_email: str,
        name: str,
        subject: str,
        title: str,
        html_body: str,
        text_body: str,
    ) -> bool:
        html_content = _LAYOUT.format(
            title=html.escape(title),
            name=html.escape(name),
            body=html_body,
            brand=self.from_name,
            year=datetime.now(timezone.utc).year,
        )
        text_content = (
            f"{title}\n\nHello {name},\n\n{text_body}\n\n"
            f"Best regards,\nThe {self.from_name} Team"
        )
        return self.send_email(
            to_email=to_email,
            subject=_header_safe(subject),
            html_content=html_content,
            text_content=text_content
        )

    def send_welcome_email(
        self,
        to_email: str,
        username: str,
        first_name: Optional[str] = None
    ) -> bool:
        """
        Send a welcome email to newly registered users.

        Args:
            to_email: Recipient email address
            username: User's username
            first_name: User's first name (optional)

        Returns:
            True if email sent successfully
        """
        greeting_name = first_name if first_name else username
        return self._send_notification(
            to_email,
            greeting_name,
            subject=f"Welcome to {self.from_name}, {greeting_name}!",
            title=f"Welcome to {self.from_name}",
            html_body=(
                "<p>Your account has been created successfully.</p>"
                f'<p style="text-align: center;"><a href="{settings.frontend_url}" class="button">'
                "Start chatting</a></p>"
            ),
            text_body=f"Your account has been created successfully.\nStart chatting: {settings.frontend_url}",
        )

    def send_password_reset_email(
        self,
        to_email: str,
        username: str,
        reset_token: str
    ) -> bool:
        """
        Send password reset email with reset link.

        Args:
            to_email: Recipient email address
            username: User's username
            reset_token: Password reset token

        Returns:
            True if email sent successfully
        """
        reset_url = f"{settings.password_reset_url}?{urlencode({'token': reset_token})}"
        minutes = settings.password_reset_token_expire_seconds // 60
        return self._send_notification(
            to_email,
            username,
            subject=f"Reset Your Password - {self.from_name}",
            title="Password Reset Request",
            html_body=(
                f"<p>We received a request to reset the password for your {self.from_name} account.</p>"
                f'<p style="text-align: center;"><a href="{html.escape(reset_url)}" class="button">Reset My Password</a></p>'
                f'<p style="word-break: break-all;">{html.escape(reset_url)}</p>'
                f"<p><strong>This link will expire in {minutes} minutes.</strong></p>"
                "<p>If you didn't request this password reset, you can ignore this email.</p>"
            ),
            text_body=(
                f"Reset your password here:\n{reset_url}\n\n"
                f"This link will expire in {minutes} minutes. "
                "If you didn't request this password reset, you can ignore this email."
            ),
        )

    def send_password_changed_email(self, to_email: str, username: str) -> bool:
        changed_on = self._get_current_datetime()
        return self._send_notification(
            to_email,
            username,
            subject=f"Password Changed Successfully - {self.from_name} Account Security Alert",
            title="Password Changed",
            html_body=(
                f"<p>The password for <strong>{html.escape(to_email)}</strong> was changed on {changed_on}.</p>"
                "<p><strong>Didn't change your password?</strong> Your account may have been "
                "compromised. Contact support immediately.</p>"
            ),
            text_body=(
                f"The password for {to_email} was changed on {changed_on}.\n"
                "Didn't change your password? Contact support immediately."
            ),
        )

    def send_two_factor_enabled_email(self, to_email: str, username: str) -> bool:
        return self._send_notification(
            to_email,
            username,
            subject=f"Two-Factor Authentication Enabled - {self.from_name}",
            title="Two-Factor Authentication Enabled",
            html_body=(
                "<p>Two-factor authentication has been enabled on your account. "
                "You will need a code from your authenticator app to sign in.</p>"
            ),
            text_body=(
                "Two-factor authentication has been enabled on your account. "
                "You will need a code from your authenticator app to sign in."
            ),
        )

    def send_two_factor_disabled_email(self, to_email: str, username: str) -> bool:
        return self._send_notification(
            to_email,
            username,
            subject=f"Two-Factor Authentication Disabled - {self.from_name} Security Alert",
            title="Two-Factor Authentication Disabled",
            html_body=(
                "<p>Two-factor authentication has been disabled on your account. "
                "You can re-enable it at any time from your account settings.</p>"
            ),
            text_body=(
                "Two-factor authentication has been disabled on your account. "
                "You can re-enable it at any time from your account settings."
            ),
        )

    def send_email_verification_code(self, to_email: str, username: str, code: str) -> bool:
        minutes = settings.email_verification_expire_minutes
        return self._send_notification(
            to_email,
            username,
            subject=f"Verify Your New Email Address - {self.from_name}",
            title="Verify Your New Email Address",
            html_body=(
                "<p>To complete this change, enter the verification code below:</p>"
                f'<p class="code">{html.escape(code)}</p>'
                f"<p>This code expires in {minutes} minutes. If you didn't request this "
                "change, you can ignore this email.</p>"
            ),
            text_body=(
                f"Your verification code is {code}. It expires in {minutes} minutes. "
                "If you didn't request this change, you can ignore this email."
            ),
        )

    def send_email_changed_email(self, to_email: str, username: str, new_email: str) -> bool:
        return self._send_notification(
            to_email,
            username,
            subject=f"Email Address Changed - {self.from_name} Account Security Alert",
            title="Email Address Changed",
            html_body=(
                f"<p>The email address on your account was changed to <strong>{html.escape(new_email)}</strong>.</p>"
                "<p>This notification was sent to your previous address. If you didn't make "
                "this change, contact support immediately.</p>"
            ),
            text_body=(
                f"The email address on your account was changed to {new_email}. "
                "If you didn't make this change, contact support immediately."
            ),
        )

    def _get_current_datetime(self) -> str:
        """Get current datetime formatted string."""
        return datetime.now(timezone.utc).strftime("%B %d, %Y at %I:%M %p UTC")


# Global email service instance
email_service = EmailService()


__all__ = ['EmailService', 'email_service']
