"""Default reminder templates and variable substitution.

Templates are plain strings with ``{VARIABLE}`` placeholders. Rendering is a
literal replacement of the known vocabulary; placeholders outside the
vocabulary are left untouched. Dates and times are localized to the
attendee's time zone and formatted for the resolved locale only at render
time.
"""

from __future__ import annotations

import logging
import re
from datetime import datetime
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

from babel import Locale, UnknownLocaleError
from babel.dates import format_date, format_time

from app.core.config import settings
from app.db.enums import WorkflowAction, WorkflowTriggerEvent
from app.schemas.workflow import CalendarEvent

logger = logging.getLogger(__name__)

FALLBACK_LOCALE = "en"

EMAIL_VARIABLES: tuple[str, ...] = (
    "ATTENDEE_NAME",
    "ORGANIZER_NAME",
    "EVENT_TITLE",
    "EVENT_DATE",
    "EVENT_TIME",
    "EVENT_END_TIME",
    "EVENT_TIMEZONE",
    "LOCATION",
    "ADDITIONAL_NOTES",
    "MEETING_URL",
    "CANCEL_URL",
    "RESCHEDULE_URL",
)

SMS_VARIABLES: tuple[str, ...] = (
    "ATTENDEE_NAME",
    "ORGANIZER_NAME",
    "EVENT_TITLE",
    "EVENT_DATE",
    "EVENT_TIME",
    "LOCATION",
)

VARIABLE_PATTERN = re.compile(r"\{([A-Z_]+)\}")

# Template categories
REMINDER = "reminder"
NEW_BOOKING = "new_booking"
CANCELLATION = "cancellation"
RESCHEDULE = "reschedule"


# =============================================================================
# Email templates
# =============================================================================

_REMINDER_BODY_EN = """Hi {ATTENDEE_NAME},

This is a reminder for your upcoming event:

**{EVENT_TITLE}**
Date: {EVENT_DATE}
Time: {EVENT_TIME} - {EVENT_END_TIME} ({EVENT_TIMEZONE})
Location: {LOCATION}

{ADDITIONAL_NOTES}

Need to make changes?
- Reschedule: {RESCHEDULE_URL}
- Cancel: {CANCEL_URL}

Looking forward to seeing you!

Best regards,
{ORGANIZER_NAME}"""

_REMINDER_BODY_FR = """Bonjour {ATTENDEE_NAME},

Ceci est un rappel pour votre prochain événement:

**{EVENT_TITLE}**
Date: {EVENT_DATE}
Heure: {EVENT_TIME} - {EVENT_END_TIME} ({EVENT_TIMEZONE})
Lieu: {LOCATION}

{ADDITIONAL_NOTES}

Besoin de modifier?
- Reporter: {RESCHEDULE_URL}
- Annuler: {CANCEL_URL}

Au plaisir de vous voir!

Cordialement,
{ORGANIZER_NAME}"""

_NEW_BOOKING_BODY_EN = """You have a new booking!

**{EVENT_TITLE}**
With: {ATTENDEE_NAME}
Date: {EVENT_DATE}
Time: {EVENT_TIME} - {EVENT_END_TIME} ({EVENT_TIMEZONE})
Location: {LOCATION}

{ADDITIONAL_NOTES}"""

_CANCELLATION_BODY_EN = """Hi {ATTENDEE_NAME},

Your event has been cancelled:

**{EVENT_TITLE}**
Original Date: {EVENT_DATE}
Original Time: {EVENT_TIME} ({EVENT_TIMEZONE})

If you'd like to reschedule, please book a new time.

Best regards,
{ORGANIZER_NAME}"""

_RESCHEDULE_BODY_EN = """Hi {ATTENDEE_NAME},

Your event has been rescheduled:

**{EVENT_TITLE}**
New Date: {EVENT_DATE}
New Time: {EVENT_TIME} - {EVENT_END_TIME} ({EVENT_TIMEZONE})
Location: {LOCATION}

Need to make changes?
- Reschedule: {RESCHEDULE_URL}
- Cancel: {CANCEL_URL}

Best regards,
{ORGANIZER_NAME}"""

EMAIL_SUBJECTS: dict[str, dict[str, str]] = {
    REMINDER: {
        "en": "Reminder: {EVENT_TITLE} on {EVENT_DATE}",
        "fr": "Rappel: {EVENT_TITLE} le {EVENT_DATE}",
        "es": "Recordatorio: {EVENT_TITLE} el {EVENT_DATE}",
        "de": "Erinnerung: {EVENT_TITLE} am {EVENT_DATE}",
    },
    NEW_BOOKING: {
        "en": "New booking: {EVENT_TITLE}",
        "fr": "Nouvelle réservation: {EVENT_TITLE}",
    },
    CANCELLATION: {
        "en": "Event Cancelled: {EVENT_TITLE}",
        "fr": "Événement annulé: {EVENT_TITLE}",
    },
    RESCHEDULE: {
        "en": "Event Rescheduled: {EVENT_TITLE}",
        "fr": "Événement reporté: {EVENT_TITLE}",
    },
}

EMAIL_BODIES: dict[str, dict[str, str]] = {
    REMINDER: {"en": _REMINDER_BODY_EN, "fr": _REMINDER_BODY_FR},
    NEW_BOOKING: {"en": _NEW_BOOKING_BODY_EN},
    CANCELLATION: {"en": _CANCELLATION_BODY_EN},
    RESCHEDULE: {"en": _RESCHEDULE_BODY_EN},
}


# =============================================================================
# SMS templates
# =============================================================================

SMS_MESSAGES: dict[str, dict[str, str]] = {
    REMINDER: {
        "en": "Reminder: {EVENT_TITLE} on {EVENT_DATE} at {EVENT_TIME} - Location: {LOCATION}",
        "fr": "Rappel: {EVENT_TITLE} le {EVENT_DATE} à {EVENT_TIME} - Lieu: {LOCATION}",
        "es": "Recordatorio: {EVENT_TITLE} el {EVENT_DATE} a las {EVENT_TIME} - Ubicación: {LOCATION}",
    },
    NEW_BOOKING: {
        "en": "New booking: {EVENT_TITLE} with {ATTENDEE_NAME} on {EVENT_DATE} at {EVENT_TIME}",
        "fr": "Nouvelle réservation: {EVENT_TITLE} avec {ATTENDEE_NAME} le {EVENT_DATE} à {EVENT_TIME}",
    },
    CANCELLATION: {
        "en": "Cancelled: {EVENT_TITLE} on {EVENT_DATE} has been cancelled.",
        "fr": "Annulé: {EVENT_TITLE} le {EVENT_DATE} a été annulé.",
    },
    RESCHEDULE: {
        "en": "Rescheduled: {EVENT_TITLE} is now on {EVENT_DATE} at {EVENT_TIME}",
        "fr": "Reporté: {EVENT_TITLE} est maintenant le {EVENT_DATE} à {EVENT_TIME}",
    },
}


# =============================================================================
# Lookup
# =============================================================================


def template_category(trigger: WorkflowTriggerEvent | str) -> str:
    """Map a trigger onto the template category used for its defaults."""
    try:
        trigger = WorkflowTriggerEvent(trigger)
    except ValueError:
        return REMINDER

    if trigger == WorkflowTriggerEvent.NEW_EVENT:
        return NEW_BOOKING
    if trigger == WorkflowTriggerEvent.EVENT_CANCELLED:
        return CANCELLATION
    if trigger == WorkflowTriggerEvent.RESCHEDULE_EVENT:
        return RESCHEDULE
    # BEFORE_EVENT, AFTER_EVENT and anything unsupported
    return REMINDER


def resolve_locale(locale: str | None, available) -> str:
    """
    Pick the best key of ``available`` for ``locale``.

    Tries the exact tag, then its language part (``fr-CA`` -> ``fr``), then
    English.
    """
    if locale:
        normalized = locale.replace("_", "-")
        if normalized in available:
            return normalized
        language = normalized.split("-", 1)[0].lower()
        if language in available:
            return language
    return FALLBACK_LOCALE


def _pick(table: dict[str, dict[str, str]], category: str, locale: str | None) -> str:
    by_locale = table[category]
    return by_locale[resolve_locale(locale, by_locale)]


def get_email_subject(trigger: WorkflowTriggerEvent | str, locale: str | None = None) -> str:
    return _pick(EMAIL_SUBJECTS, template_category(trigger), locale)


def get_email_body(trigger: WorkflowTriggerEvent | str, locale: str | None = None) -> str:
    return _pick(EMAIL_BODIES, template_category(trigger), locale)


def get_sms_template(trigger: WorkflowTriggerEvent | str, locale: str | None = None) -> str:
    return _pick(SMS_MESSAGES, template_category(trigger), locale)


def get_default_reminder_subject(locale: str | None = None) -> str:
    return _pick(EMAIL_SUBJECTS, REMINDER, locale)


def get_default_reminder_body(locale: str | None = None) -> str:
    return _pick(EMAIL_BODIES, REMINDER, locale)


# =============================================================================
# Formatting
# =============================================================================


def _babel_locale(locale: str | None) -> Locale:
    try:
        return Locale.parse((locale or FALLBACK_LOCALE).replace("-", "_"))
    except (UnknownLocaleError, ValueError):
        return Locale.parse(FALLBACK_LOCALE)


def _zone(name: str | None) -> ZoneInfo:
    try:
        return ZoneInfo(name or "UTC")
    except (ZoneInfoNotFoundError, ValueError):
        logger.warning("Unknown time zone '%s'; rendering in UTC", name)
        return ZoneInfo("UTC")


def _event_zone_name(event: CalendarEvent) -> str:
    attendee = event.first_attendee
    if attendee and attendee.time_zone:
        return attendee.time_zone
    return event.organizer.time_zone or "UTC"


def _localize(value: datetime, zone: ZoneInfo) -> datetime:
    return value.astimezone(zone)


def _booker_url(event: CalendarEvent, booker_url: str | None) -> str:
    return (booker_url or event.booker_url or settings.webapp_url).rstrip("/")


# =============================================================================
# Variables
# =============================================================================


def build_email_variables(
    event: CalendarEvent,
    locale: str | None = None,
    *,
    booker_url: str | None = None,
) -> dict[str, str]:
    """Flat variable map for email subject/body rendering."""
    attendee = event.first_attendee
    babel_locale = _babel_locale(locale or (attendee.locale if attendee else None))
    zone_name = _event_zone_name(event)
    zone = _zone(zone_name)
    start = _localize(event.start_time, zone)
    end = _localize(event.end_time, zone)
    base_url = _booker_url(event, booker_url)

    return {
        "ATTENDEE_NAME": (attendee.name if attendee else "") or "Guest",
        "ORGANIZER_NAME": event.organizer.name or "Organizer",
        "EVENT_TITLE": event.title or "Event",
        "EVENT_DATE": format_date(start.date(), format="full", locale=babel_locale),
        "EVENT_TIME": format_time(start, "h:mm a", locale=babel_locale),
        "EVENT_END_TIME": format_time(end, "h:mm a", locale=babel_locale),
        "EVENT_TIMEZONE": zone_name,
        "LOCATION": event.location or event.video_call_url or "TBD",
        "ADDITIONAL_NOTES": event.additional_notes or "",
        "MEETING_URL": event.video_call_url or "",
        "CANCEL_URL": f"{base_url}/booking/{event.uid}?cancel=true" if event.uid else "",
        "RESCHEDULE_URL": f"{base_url}/reschedule/{event.uid}" if event.uid else "",
    }


def build_sms_variables(event: CalendarEvent, locale: str | None = None) -> dict[str, str]:
    """Reduced variable map for SMS; dates are short-form."""
    attendee = event.first_attendee
    babel_locale = _babel_locale(locale or (attendee.locale if attendee else None))
    start = _localize(event.start_time, _zone(_event_zone_name(event)))

    return {
        "ATTENDEE_NAME": (attendee.name if attendee else "") or "Guest",
        "ORGANIZER_NAME": event.organizer.name or "Organizer",
        "EVENT_TITLE": event.title or "Event",
        "EVENT_DATE": format_date(start.date(), format="MMM d", locale=babel_locale),
        "EVENT_TIME": format_time(start, "h:mm a", locale=babel_locale),
        "LOCATION": event.location or event.video_call_url or "TBD",
    }


def replace_variables(template: str, variables: dict[str, str]) -> str:
    """Replace every ``{NAME}`` whose NAME is in ``variables``."""

    def replace_var(match: re.Match) -> str:
        return variables.get(match.group(1), match.group(0))

    return VARIABLE_PATTERN.sub(replace_var, template)


# =============================================================================
# Rendering
# =============================================================================


def render_email(
    trigger: WorkflowTriggerEvent | str,
    event: CalendarEvent,
    locale: str | None = None,
    *,
    subject_override: str | None = None,
    body_override: str | None = None,
    booker_url: str | None = None,
) -> tuple[str, str]:
    """
    Render (subject, body) for an email reminder.

    Per-step overrides replace the default template but go through the same
    substitution.
    """
    variables = build_email_variables(event, locale, booker_url=booker_url)
    subject = subject_override or get_email_subject(trigger, locale)
    body = body_override or get_email_body(trigger, locale)
    return replace_variables(subject, variables), replace_variables(body, variables)


def render_sms(
    trigger: WorkflowTriggerEvent | str,
    event: CalendarEvent,
    locale: str | None = None,
    *,
    body_override: str | None = None,
) -> str:
    variables = build_sms_variables(event, locale)
    return replace_variables(body_override or get_sms_template(trigger, locale), variables)


def email_reminder_template(
    *,
    is_editing_mode: bool,
    action: WorkflowAction | str | None = None,
    start_time: str = "",
    end_time: str = "",
    event_name: str = "",
    time_zone: str = "",
    location: str = "",
    meeting_url: str = "",
    other_person: str = "",
    name: str = "",
) -> tuple[str, str]:
    """
    Default (subject, html_body) offered when a new email step is created.

    In editing mode the booking details stay as placeholders so that the
    text can be stored on the step and rendered per booking later.
    """
    if is_editing_mode:
        attendee_action = action == WorkflowAction.EMAIL_ATTENDEE
        event_date = "{EVENT_DATE} {EVENT_TIME}"
        end_time = "{EVENT_END_TIME}"
        event_name = "{EVENT_TITLE}"
        time_zone = "{EVENT_TIMEZONE}"
        location_text = "{LOCATION} {MEETING_URL}"
        other_person = "{ORGANIZER_NAME}" if attendee_action else "{ATTENDEE_NAME}"
        name = "{ATTENDEE_NAME}" if attendee_action else "{ORGANIZER_NAME}"
    else:
        event_date = start_time
        location_text = f"{location} {meeting_url}".strip()

    subject = f"Reminder: {event_name} - {event_date}"
    greeting = f"Hi {name}," if name else "Hi,"
    body = (
        "<body>"
        f"{greeting}<br><br>"
        "This is a reminder about your upcoming event.<br><br>"
        f"<div><strong>EVENT: </strong></div>{event_name}<br><br>"
        f"<div><strong>DATE & TIME: </strong></div>{event_date} - {end_time} ({time_zone})<br><br>"
        f"<div><strong>ATTENDEES: </strong></div>You & {other_person}<br><br>"
        f"<div><strong>LOCATION: </strong></div>{location_text}<br><br>"
        "</body>"
    )
    return subject, body
