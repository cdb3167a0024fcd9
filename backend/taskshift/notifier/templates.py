"""HTML bodies for transactional email."""

from html import escape
from urllib.parse import urlencode
from uuid import UUID

from taskshift.notifier.base import EmailMessage

_LAYOUT = """\
<!DOCTYPE html>
<html>
  <body style="font-family: Arial, sans-serif; color: #1f2937; max-width: 560px; margin: 0 auto;">
    <h2 style="color: #111827;">{heading}</h2>
    {body}
    <p style="font-size: 12px; color: #6b7280;">{footer}</p>
  </body>
</html>
"""


def _render(heading: str, body: str, footer: str) -> str:
    return _LAYOUT.format(heading=escape(heading), body=body, footer=escape(footer))


def invite_link(frontend_url: str, invite_code: str, org_id: UUID) -> str:
    query = urlencode({"code": invite_code, "organization": str(org_id)})
    return f"{frontend_url}/join?{query}"


def verification_email(to: str, code: str, sender: str, ttl_hours: int = 24) -> EmailMessage:
    """Email carrying a six-digit verification code."""
    body = (
        "<p>Use the code below to verify your email address:</p>"
        f'<p style="font-size: 28px; letter-spacing: 6px; font-weight: bold;">{escape(code)}</p>'
        f"<p>The code expires in {ttl_hours} hours.</p>"
    )
    return EmailMessage(
        to=to,
        subject="Verify your email address",
        html=_render(
            "Verify your email",
            body,
            "If you did not create an account, you can ignore this email.",
        ),
        sender=sender,
    )


def invitation_email(
    to: str,
    *,
    full_name: str,
    organization_name: str,
    inviter_name: str,
    link: str,
    sender: str,
) -> EmailMessage:
    """Email inviting someone to join an organization."""
    body = (
        f"<p>Hi {escape(full_name)},</p>"
        f"<p>{escape(inviter_name)} has invited you to join "
        f"<strong>{escape(organization_name)}</strong>.</p>"
        f'<p><a href="{escape(link, quote=True)}" '
        'style="background: #2563eb; color: #ffffff; padding: 10px 18px; '
        'border-radius: 4px; text-decoration: none;">Accept invitation</a></p>'
    )
    return EmailMessage(
        to=to,
        subject=f"You're invited to join {organization_name}",
        html=_render(
            "You've been invited",
            body,
            "If you were not expecting this invitation, you can ignore this email.",
        ),
        sender=sender,
    )
