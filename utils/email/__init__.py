"""Email notifications."""

from .email_service import EmailService, email_service
from .dispatch import dispatch_email, send_logged

__all__ = ["EmailService", "email_service", "dispatch_email", "send_logged"]
