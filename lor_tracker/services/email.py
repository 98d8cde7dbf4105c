"""Outbound email transport. Templates live in ``email_templates``; this module only delivers."""
from __future__ import annotations

import smtplib
from dataclasses import dataclass
from email.message import EmailMessage
from typing import Callable, Optional

import httpx

from lor_tracker.core.settings import settings

DISABLED_PROVIDERS = {"disabled", "none", ""}


@dataclass(frozen=True)
class OutgoingEmail:
    to_address: str
    subject: str
    html: str
    text: Optional[str] = None


@dataclass
class EmailSendResult:
    provider: str
    message_id: Optional[str] = None


class EmailSendError(RuntimeError):
    pass


def _provider() -> str:
    return (settings.email_provider or "disabled").strip().lower()


def email_enabled() -> bool:
    return _provider() not in DISABLED_PROVIDERS


def _require_api_key(provider: str) -> str:
    if not settings.email_api_key:
        raise EmailSendError(f"EMAIL_API_KEY not configured for {provider}")
    return settings.email_api_key


def _post(provider: str, url: str, *, payload: dict, headers: dict) -> dict:
    try:
        with httpx.Client(timeout=settings.email_timeout_seconds) as client:
            resp = client.post(url, json=payload, headers=headers)
    except httpx.HTTPError as exc:
        raise EmailSendError(f"{provider} unreachable: {exc}") from exc
    if resp.status_code >= 400:
        raise EmailSendError(f"{provider} error: {resp.status_code} {resp.text}")
    return resp.json()


def _send_resend(message: OutgoingEmail) -> EmailSendResult:
    payload = {"from": settings.email_from, "to": [message.to_address], "subject": message.subject, "html": message.html}
    if message.text:
        payload["text"] = message.text
    body = _post(
        "Resend",
        "https://api.resend.com/emails",
        payload=payload,
        headers={"Authorization": f"Bearer {_require_api_key('Resend')}"},
    )
    return EmailSendResult(provider="resend", message_id=body.get("id"))


def _send_postmark(message: OutgoingEmail) -> EmailSendResult:
    payload = {"From": settings.email_from, "To": message.to_address, "Subject": message.subject, "HtmlBody": message.html}
    if message.text:
        payload["TextBody"] = message.text
    body = _post(
        "Postmark",
        "https://api.postmarkapp.com/email",
        payload=payload,
        headers={"X-Postmark-Server-Token": _require_api_key("Postmark"), "Accept": "application/json"},
    )
    return EmailSendResult(provider="postmark", message_id=body.get("MessageID"))


def _send_smtp(message: OutgoingEmail) -> EmailSendResult:
    if not settings.smtp_host:
        raise EmailSendError("SMTP_HOST not configured")
    mime = EmailMessage()
    mime["Subject"] = message.subject
    mime["From"] = settings.email_from
    mime["To"] = message.to_address
    mime.set_content(message.text or "This email requires an HTML-capable client.")
    mime.add_alternative(message.html, subtype="html")

    try:
        with smtplib.SMTP(settings.smtp_host, settings.smtp_port, timeout=settings.email_timeout_seconds) as server:
            if settings.smtp_use_tls:
                server.starttls()
            if settings.smtp_username and settings.smtp_password:
                server.login(settings.smtp_username, settings.smtp_password)
            server.send_message(mime)
    except (smtplib.SMTPException, OSError) as exc:
        raise EmailSendError(f"SMTP delivery failed: {exc}") from exc
    return EmailSendResult(provider="smtp")


PROVIDERS: dict[str, Callable[[OutgoingEmail], EmailSendResult]] = {
    "resend": _send_resend,
    "postmark": _send_postmark,
    "smtp": _send_smtp,
}


def send_email(*, to_address: str, subject: str, html: str, text: Optional[str] = None) -> EmailSendResult:
    provider = _provider()
    if provider in DISABLED_PROVIDERS:
        raise EmailSendError("EMAIL_PROVIDER disabled")
    if not settings.email_from:
        raise EmailSendError("EMAIL_FROM not configured")
    transport = PROVIDERS.get(provider)
    if transport is None:
        raise EmailSendError(f"Unsupported EMAIL_PROVIDER: {settings.email_provider}")
    return transport(OutgoingEmail(to_address=to_address, subject=subject, html=html, text=text))
