"""
Invitation email delivery through the Resend HTTP API.

Sending is best effort: the invitation row is already committed when this
runs, so every failure comes back as an EmailSendResult instead of an
exception and the caller reports a degraded success.
"""

from dataclasses import dataclass
from html import escape
from typing import Optional
import logging

import httpx

from app.config.settings import settings

logger = logging.getLogger(__name__)


@dataclass
class EmailSendResult:
    success: bool
    error: Optional[str] = None


def build_invitation_email(invite_link: str, team_name: str, inviter_name: str) -> dict:
    subject = f"You're invited to join the {team_name} team!"
    html = (
        "<p>Hi there,</p>"
        f"<p>{escape(inviter_name)} has invited you to join the <strong>{escape(team_name)}</strong> team on our platform.</p>"
        "<p>Click the link below to accept the invitation:</p>"
        f"<p><a href=\"{escape(invite_link, quote=True)}\">Accept Invitation</a></p>"
        "<p>If you did not expect this invitation, you can safely ignore this email.</p>"
        "<p>Thanks,</p><p>The Team</p>"
    )
    text = (
        "Hi there,\n\n"
        f"{inviter_name} has invited you to join the {team_name} team on our platform.\n\n"
        f"Accept the invitation here: {invite_link}\n\n"
        "If you did not expect this invitation, you can safely ignore this email.\n\n"
        "Thanks,\nThe Team\n"
    )
    return {"subject": subject, "html": html, "text": text}


class InvitationEmailSender:
    def __init__(self, http_client: Optional[httpx.Client] = None):
        # Tests pass a client built on httpx.MockTransport
        self.http_client = http_client

    def send_invitation_email(
        self,
        to: str,
        invite_link: str,
        team_name: str,
        inviter_name: Optional[str] = None,
    ) -> EmailSendResult:
        if not settings.resend_api_key or not settings.email_from_address:
            logger.error("Invitation email not sent: RESEND_API_KEY or EMAIL_FROM_ADDRESS is not configured")
            return EmailSendResult(False, "Email delivery is not configured")

        content = build_invitation_email(invite_link, team_name, inviter_name or "Someone")
        payload = {
            "from": settings.email_from_address,
            "to": [to],
            "subject": content["subject"],
            "html": content["html"],
            "text": content["text"],
        }
        headers = {"Authorization": f"Bearer {settings.resend_api_key}"}

        try:
            if self.http_client is not None:
                response = self.http_client.post(
                    settings.resend_api_url, json=payload, headers=headers,
                    timeout=settings.email_timeout_seconds,
                )
            else:
                response = httpx.post(
                    settings.resend_api_url, json=payload, headers=headers,
                    timeout=settings.email_timeout_seconds,
                )
        except httpx.TimeoutException:
            logger.warning(f"Invitation email to {to} timed out after {settings.email_timeout_seconds}s")
            return EmailSendResult(False, "Email provider timed out")
        except httpx.HTTPError as e:
            logger.warning(f"Invitation email to {to} failed: {e}")
            return EmailSendResult(False, f"Email provider unreachable: {e}")

        if response.status_code >= 300:
            logger.warning(f"Resend API error ({response.status_code}) for {to}: {response.text}")
            return EmailSendResult(False, f"Email provider rejected the message ({response.status_code})")

        logger.info(f"Invitation email sent to {to}")
        return EmailSendResult(True)
