"""Notification delivery (email)."""

from .email_sender import LogOnlyEmailSender, ResendEmailSender, build_email_sender
from .templates import RenderedEmail, render_release_email

__all__ = [
    "LogOnlyEmailSender",
    "RenderedEmail",
    "ResendEmailSender",
    "build_email_sender",
    "render_release_email",
]
