"""Mailgun adapter for transactional email."""

import logging
from html import escape
from typing import Optional

import httpx

from app.config import settings
from app.exceptions import ExternalServiceError

logger = logging.getLogger("fitmeal.mail")

_client: Optional[httpx.Client] = None


def _get_client() -> httpx.Client:
    """Lazy init HTTP client."""
    global _client
    if _client is None:
        _client = httpx.Client(timeout=10.0)
    return _client


def is_configured() -> bool:
    return bool(settings.mailgun_api_key and settings.mailgun_domain)


def close():
    """Close the HTTP client."""
    global _client
    try:
        if _client is not None:
            _client.close()
            logger.info("Mailgun client closed")
    finally:
        _client = None


def send_email(to: str, subject: str, text: str, html: Optional[str] = None) -> bool:
    """Send a message through the Mailgun messages API.

    Returns:
        True when Mailgun accepted the message, False when Mailgun is not configured

    Raises:
        ExternalServiceError: Mailgun rejected the request or was unreachable
    """
    if not is_configured():
        logger.info("mailgun_not_configured to=%s subject=%r", to, subject)
        return False

    data = {"from": settings.mailgun_from, "to": to, "subject": subject, "text": text}
    if html:
        data["html"] = html
    url = f"{settings.mailgun_base_url.rstrip('/')}/{settings.mailgun_domain}/messages"
    try:
        response = _get_client().post(url, auth=("api", settings.mailgun_api_key), data=data)
        response.raise_for_status()
    except httpx.HTTPError as exc:
        logger.error("mailgun_send_failed to=%s error=%s", to, exc)
        raise ExternalServiceError("Email delivery failed", details={"to": to}) from exc

    logger.info("email_sent to=%s subject=%r", to, subject)
    return True


def invitation_link(token: str) -> str:
    return f"{settings.frontend_url.rstrip('/')}/accept-invitation?token={token}"


def send_invitation_email(invitation, trainer) -> bool:
    link = invitation_link(invitation.token)
    trainer_name = trainer.name or trainer.email
    text = (
        f"{trainer_name} has invited you to FitMeal Pro.\n\n"
        f"Accept the invitation: {link}\n\n"
        f"This link expires on {invitation.expires_at:%Y-%m-%d}."
    )
    if invitation.message:
        text = f"{invitation.message}\n\n{text}"
    html = (
        f"<p>{escape(trainer_name)} has invited you to FitMeal Pro.</p>"
        f'<p><a href="{link}">Accept the invitation</a></p>'
    )
    return send_email(
        invitation.customer_email,
        f"{trainer_name} invited you to FitMeal Pro",
        text,
        html,
    )
