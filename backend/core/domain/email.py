"""
core.domain.email — Outbound applicant e-mail.

A thin wrapper over ``django.core.mail.send_mail``.  Transport is whatever
``settings.EMAIL_BACKEND`` says (SMTP in production, ``locmem`` under
test).  Callers treat e-mail as best-effort: the case orchestrator calls
this after commit and logs, rather than raises, any failure.

Usage::

    from core.domain.email import EmailService

    EmailService.send(
        "status_changed",
        "applicant@example.com",
        tracking_code="EPD-1A2B3C4D",
        status="complete",
    )
"""

from __future__ import annotations

import logging
from typing import Any

from django.conf import settings
from django.core.mail import send_mail

logger = logging.getLogger(__name__)

# ── Template key → (subject, body) ──────────────────────────────────
# Both parts are ``str.format`` templates over the keyword context.
_EMAIL_TEMPLATES: dict[str, tuple[str, str]] = {
    "case_submitted": (
        "Application received: {tracking_code}",
        "Dear {applicant_name},\n\n"
        "Your application has been received. Your tracking ID is "
        "{tracking_code}.\nYou can follow its progress at {app_base_url}/track.",
    ),
    "status_changed": (
        "Application {tracking_code} status updated",
        "The status of application {tracking_code} is now: {status_label}.",
    ),
    "hearing_scheduled": (
        "Hearing scheduled for {tracking_code}",
        "A hearing for application {tracking_code} has been scheduled "
        "for {hearing_at}.",
    ),
    "hearing_reminder": (
        "Reminder: hearing for {tracking_code}",
        "This is a reminder that the hearing for application "
        "{tracking_code} starts at {hearing_at}.",
    ),
    "reauth_link": (
        "Access your application {tracking_code}",
        "Use the link below to sign in and review application "
        "{tracking_code}:\n\n{login_url}\n\nThe link expires in one hour.",
    ),
}


class EmailService:
    """Stateless e-mail sender.  All methods are classmethods."""

    @classmethod
    def render(cls, template: str, **context: Any) -> tuple[str, str]:
        """Return ``(subject, body)`` for a template key."""
        try:
            subject, body = _EMAIL_TEMPLATES[template]
        except KeyError:
            raise ValueError(f"Unknown e-mail template '{template}'.")
        context.setdefault("app_base_url", settings.APP_BASE_URL)
        context.setdefault(
            "status_label",
            str(context.get("status", "")).replace("_", " ").title(),
        )
        return subject.format(**context), body.format(**context)

    @classmethod
    def send(cls, template: str, recipient: str, **context: Any) -> bool:
        """
        Render and send one e-mail.

        Returns ``False`` (and sends nothing) when ``recipient`` is empty.
        Transport errors propagate to the caller.
        """
        if not recipient:
            logger.warning("E-mail [%s] skipped: no recipient", template)
            return False

        subject, body = cls.render(template, **context)
        send_mail(
            subject=subject,
            message=body,
            from_email=settings.DEFAULT_FROM_EMAIL,
            recipient_list=[recipient],
            fail_silently=False,
        )
        logger.info("E-mail [%s] sent to %s", template, recipient)
        return True
