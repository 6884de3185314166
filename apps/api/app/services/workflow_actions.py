"""Classification helpers for workflow actions and triggers.

All predicates are total over their enum: unsupported values return False
rather than raising. Plain strings are accepted and coerced, unknown strings
are treated as unsupported.
"""

from __future__ import annotations

from typing import Iterable, Protocol

from app.db.enums import WorkflowAction, WorkflowTriggerEvent


SUPPORTED_TRIGGERS: tuple[WorkflowTriggerEvent, ...] = (
    WorkflowTriggerEvent.BEFORE_EVENT,
    WorkflowTriggerEvent.AFTER_EVENT,
    WorkflowTriggerEvent.NEW_EVENT,
    WorkflowTriggerEvent.RESCHEDULE_EVENT,
    WorkflowTriggerEvent.EVENT_CANCELLED,
)

SUPPORTED_ACTIONS: tuple[WorkflowAction, ...] = (
    WorkflowAction.EMAIL_HOST,
    WorkflowAction.EMAIL_ATTENDEE,
    WorkflowAction.EMAIL_ADDRESS,
    WorkflowAction.SMS_ATTENDEE,
    WorkflowAction.SMS_NUMBER,
)

# Sent at "now" rather than at an offset from the event
IMMEDIATE_TRIGGERS: frozenset[WorkflowTriggerEvent] = frozenset(
    {
        WorkflowTriggerEvent.NEW_EVENT,
        WorkflowTriggerEvent.RESCHEDULE_EVENT,
        WorkflowTriggerEvent.EVENT_CANCELLED,
    }
)

TIMED_TRIGGERS: frozenset[WorkflowTriggerEvent] = frozenset(
    {
        WorkflowTriggerEvent.BEFORE_EVENT,
        WorkflowTriggerEvent.AFTER_EVENT,
    }
)

TIME_OPTIONS: tuple[int, ...] = (5, 10, 15, 30, 60)

# Alphanumeric sender ids are only honoured by carriers in these countries
SENDER_ID_SUPPORTED_COUNTRIES: tuple[str, ...] = (
    "US", "CA", "GB", "AU", "DE", "FR", "IT", "ES", "NL", "BE",
)


def _as_action(action: WorkflowAction | str | None) -> WorkflowAction | None:
    if action is None or isinstance(action, WorkflowAction):
        return action
    try:
        return WorkflowAction(action)
    except ValueError:
        return None


def _as_trigger(trigger: WorkflowTriggerEvent | str | None) -> WorkflowTriggerEvent | None:
    if trigger is None or isinstance(trigger, WorkflowTriggerEvent):
        return trigger
    try:
        return WorkflowTriggerEvent(trigger)
    except ValueError:
        return None


# =============================================================================
# Actions
# =============================================================================


def is_supported_action(action: WorkflowAction | str | None) -> bool:
    return _as_action(action) in SUPPORTED_ACTIONS


def is_email_action(action: WorkflowAction | str | None) -> bool:
    return _as_action(action) in (
        WorkflowAction.EMAIL_HOST,
        WorkflowAction.EMAIL_ATTENDEE,
        WorkflowAction.EMAIL_ADDRESS,
    )


def is_sms_action(action: WorkflowAction | str | None) -> bool:
    return _as_action(action) in (WorkflowAction.SMS_ATTENDEE, WorkflowAction.SMS_NUMBER)


def is_whatsapp_action(action: WorkflowAction | str | None) -> bool:
    return _as_action(action) in (
        WorkflowAction.WHATSAPP_ATTENDEE,
        WorkflowAction.WHATSAPP_NUMBER,
    )


def is_sms_or_whatsapp_action(action: WorkflowAction | str | None) -> bool:
    return is_sms_action(action) or is_whatsapp_action(action)


def is_text_reminder_action(action: WorkflowAction | str | None) -> bool:
    return is_sms_or_whatsapp_action(action)


def is_attendee_action(action: WorkflowAction | str | None) -> bool:
    return _as_action(action) in (
        WorkflowAction.EMAIL_ATTENDEE,
        WorkflowAction.SMS_ATTENDEE,
        WorkflowAction.WHATSAPP_ATTENDEE,
    )


def is_cal_ai_action(action: WorkflowAction | str | None) -> bool:
    return _as_action(action) == WorkflowAction.CAL_AI_PHONE_CALL


# =============================================================================
# Triggers
# =============================================================================


def is_supported_trigger(trigger: WorkflowTriggerEvent | str | None) -> bool:
    return _as_trigger(trigger) in SUPPORTED_TRIGGERS


def is_immediate_trigger(trigger: WorkflowTriggerEvent | str | None) -> bool:
    return _as_trigger(trigger) in IMMEDIATE_TRIGGERS


def is_timed_trigger(trigger: WorkflowTriggerEvent | str | None) -> bool:
    return _as_trigger(trigger) in TIMED_TRIGGERS


def is_form_trigger(trigger: WorkflowTriggerEvent | str | None) -> bool:
    return _as_trigger(trigger) in (
        WorkflowTriggerEvent.FORM_SUBMITTED,
        WorkflowTriggerEvent.FORM_SUBMITTED_NO_EVENT,
    )


def get_supported_triggers() -> list[WorkflowTriggerEvent]:
    return list(SUPPORTED_TRIGGERS)


def get_supported_actions() -> list[WorkflowAction]:
    return list(SUPPORTED_ACTIONS)


# =============================================================================
# Standard booking emails
# =============================================================================


class _StepLike(Protocol):
    action: str


class _WorkflowLike(Protocol):
    trigger: str
    steps: Iterable[_StepLike]


def _new_event_workflow_has_action(
    workflows: Iterable[_WorkflowLike],
    actions: tuple[WorkflowAction, ...],
) -> bool:
    for workflow in workflows:
        if _as_trigger(workflow.trigger) != WorkflowTriggerEvent.NEW_EVENT:
            continue
        if any(_as_action(step.action) in actions for step in workflow.steps):
            return True
    return False


def allow_disabling_host_confirmation_emails(workflows: Iterable[_WorkflowLike]) -> bool:
    """A NEW_EVENT workflow already emails the host."""
    return _new_event_workflow_has_action(workflows, (WorkflowAction.EMAIL_HOST,))


def allow_disabling_attendee_confirmation_emails(workflows: Iterable[_WorkflowLike]) -> bool:
    """A NEW_EVENT workflow already emails or texts the attendee."""
    return _new_event_workflow_has_action(
        workflows,
        (WorkflowAction.EMAIL_ATTENDEE, WorkflowAction.SMS_ATTENDEE),
    )
