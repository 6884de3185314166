"""Workflow-related enums."""

from enum import Enum


class WorkflowTriggerEvent(str, Enum):
    """Booking lifecycle events that can activate a workflow."""

    BEFORE_EVENT = "BEFORE_EVENT"
    AFTER_EVENT = "AFTER_EVENT"
    NEW_EVENT = "NEW_EVENT"
    RESCHEDULE_EVENT = "RESCHEDULE_EVENT"
    EVENT_CANCELLED = "EVENT_CANCELLED"
    # Not handled by the reminder scheduler
    BOOKING_REQUESTED = "BOOKING_REQUESTED"
    BOOKING_REJECTED = "BOOKING_REJECTED"
    BOOKING_PAID = "BOOKING_PAID"
    BOOKING_NO_SHOW_UPDATED = "BOOKING_NO_SHOW_UPDATED"
    FORM_SUBMITTED = "FORM_SUBMITTED"
    FORM_SUBMITTED_NO_EVENT = "FORM_SUBMITTED_NO_EVENT"


class WorkflowAction(str, Enum):
    """Delivery channel and target of a workflow step."""

    EMAIL_HOST = "EMAIL_HOST"
    EMAIL_ATTENDEE = "EMAIL_ATTENDEE"
    EMAIL_ADDRESS = "EMAIL_ADDRESS"
    SMS_ATTENDEE = "SMS_ATTENDEE"
    SMS_NUMBER = "SMS_NUMBER"
    # Not handled by the reminder scheduler
    WHATSAPP_ATTENDEE = "WHATSAPP_ATTENDEE"
    WHATSAPP_NUMBER = "WHATSAPP_NUMBER"
    CAL_AI_PHONE_CALL = "CAL_AI_PHONE_CALL"


class TimeUnit(str, Enum):
    """Unit of a workflow's time offset."""

    MINUTE = "MINUTE"
    HOUR = "HOUR"
    DAY = "DAY"


class WorkflowMethod(str, Enum):
    """Delivery method recorded on a reminder."""

    EMAIL = "EMAIL"
    SMS = "SMS"
    WHATSAPP = "WHATSAPP"


class WorkflowTemplate(str, Enum):
    """Content template a step was created from."""

    REMINDER = "REMINDER"
    CUSTOM = "CUSTOM"
    RATING = "RATING"
    THANKYOU = "THANKYOU"


class ReminderOutcome(str, Enum):
    """Outcome of scheduling one workflow step."""

    SCHEDULED = "scheduled"
    SKIPPED = "skipped"  # unsupported action/trigger, nothing attempted
    FAILED = "failed"
