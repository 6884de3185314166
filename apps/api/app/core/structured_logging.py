"""Structured logging helpers (PII-safe)."""

from typing import Any


def build_log_context(
    *,
    workflow_id: int | None = None,
    step_id: int | None = None,
    booking_uid: str | None = None,
    reminder_id: int | None = None,
    team_id: int | None = None,
) -> dict[str, Any]:
    """Return a PII-safe log context dict."""
    context: dict[str, Any] = {}
    if workflow_id is not None:
        context["workflow_id"] = workflow_id
    if step_id is not None:
        context["step_id"] = step_id
    if booking_uid:
        context["booking_uid"] = booking_uid
    if reminder_id is not None:
        context["reminder_id"] = reminder_id
    if team_id is not None:
        context["team_id"] = team_id
    return context


def mask_email(email: str | None) -> str:
    if not email:
        return ""
    local, _, domain = email.partition("@")
    prefix = local[:3] if local else ""
    return f"{prefix}...@{domain}" if domain else f"{prefix}..."


def mask_phone(phone: str | None) -> str:
    """Hide all but the last four digits of a phone number."""
    if not phone:
        return ""
    if len(phone) <= 4:
        return "****"
    return "*" * (len(phone) - 4) + phone[-4:]
