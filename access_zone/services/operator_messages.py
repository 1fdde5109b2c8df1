"""HTML message bodies for the operator Telegram channel.

Emails are masked and activation codes never leave the database through
this path.
"""

from __future__ import annotations

from datetime import datetime
from html import escape

from access_zone.db.models.redemption_requests import RedemptionRequest

STATUS_HEADLINES = {
    "pending": "NEW REDEMPTION REQUEST",
    "completed": "REDEMPTION COMPLETED",
    "failed": "REDEMPTION FAILED",
    "cancelled": "REDEMPTION CANCELLED",
}


def mask_email(email: str) -> str:
    value = (email or "").strip()
    if len(value) <= 5 or "@" not in value:
        return "••••@hidden.com"
    _, _, domain = value.partition("@")
    return f"{value[:3]}••••@{domain}"


def _format_ts(value: datetime | None) -> str:
    if value is None:
        return "N/A"
    return value.strftime("%Y-%m-%d %H:%M UTC")


def build_redemption_created_message(
    request: RedemptionRequest,
    *,
    account_email: str,
    full_name: str | None,
    site_url: str,
) -> str:
    return (
        f"<b>{STATUS_HEADLINES['pending']}</b>\n\n"
        f"<b>Request ID:</b> <code>{request.id}</code>\n"
        f"<b>User:</b> {escape(mask_email(account_email or request.user_email))} "
        f"(Name: {escape(full_name or 'N/A')})\n\n"
        f"<b>Subscription:</b> {escape(request.subscription_name)} "
        f"({escape(request.duration)})\n"
        f"<b>Points Cost:</b> {request.points_cost}\n"
        f"<b>Status:</b> <u>PENDING</u> {_format_ts(request.created_at)}\n\n"
        f"<b>Country:</b> {escape(request.user_country)}\n"
        f"<b>Notes:</b> {escape(request.user_notes or 'None')}\n\n"
        f"<b>Waiting for admin approval</b>\n"
        f"{escape(site_url)}"
    )


def build_redemption_status_message(request: RedemptionRequest, *, site_url: str) -> str:
    headline = STATUS_HEADLINES.get(request.status, "REDEMPTION UPDATED")
    lines = [
        f"<b>{headline}</b>\n",
        f"<b>Request ID:</b> <code>{request.id}</code>",
        f"<b>User:</b> {escape(mask_email(request.user_email))}",
        f"<b>Subscription:</b> {escape(request.subscription_name)} ({escape(request.duration)})",
        f"<b>Points Cost:</b> {request.points_cost}",
        f"<b>Status:</b> <u>{escape(request.status.upper())}</u> {_format_ts(request.completed_at)}",
    ]
    if request.status == "completed":
        lines.append("<b>Activation:</b> delivered to the user")
        lines.append(f"<b>Access until:</b> {_format_ts(request.expires_at)}")
    lines.append("")
    lines.append(escape(site_url))
    return "\n".join(lines)


def build_points_integrity_message(*, users_with_issues: int, total_users: int, threshold: int) -> str:
    return (
        "<b>POINTS INTEGRITY ALERT</b>\n\n"
        f"<b>Profiles out of balance:</b> {users_with_issues} of {total_users}\n"
        f"<b>Threshold:</b> {threshold} points\n\n"
        "Review with admin-users?action=integrity"
    )
