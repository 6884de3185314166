"""Delivery time calculation for workflow reminders."""

from __future__ import annotations

from datetime import datetime, timedelta, timezone

from app.db.enums import TimeUnit, WorkflowTriggerEvent
from app.services.workflow_actions import is_immediate_trigger


def _offset(time: int, time_unit: TimeUnit | str) -> timedelta | None:
    try:
        unit = TimeUnit(time_unit)
    except ValueError:
        return None
    if unit == TimeUnit.MINUTE:
        return timedelta(minutes=time)
    if unit == TimeUnit.HOUR:
        return timedelta(hours=time)
    if unit == TimeUnit.DAY:
        return timedelta(days=time)
    return None


def _to_utc(value: datetime) -> datetime:
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


def calculate_scheduled_date(
    trigger: WorkflowTriggerEvent | str,
    time: int | None,
    time_unit: TimeUnit | str | None,
    start_time: datetime,
    end_time: datetime,
    *,
    now: datetime | None = None,
) -> datetime | None:
    """
    Compute when a reminder should be delivered.

    - Immediate triggers: ``now``.
    - BEFORE_EVENT: ``start_time - time * time_unit``.
    - AFTER_EVENT: ``end_time + time * time_unit``.
    - Anything else, or a timed trigger without an offset: None.

    Arithmetic is done on absolute UTC instants, so a DAY is always 24 hours
    even across a DST change in the attendee's zone.
    """
    if is_immediate_trigger(trigger):
        return now or datetime.now(timezone.utc)

    try:
        trigger = WorkflowTriggerEvent(trigger)
    except ValueError:
        return None

    if trigger not in (WorkflowTriggerEvent.BEFORE_EVENT, WorkflowTriggerEvent.AFTER_EVENT):
        return None
    if time is None or time_unit is None:
        return None

    offset = _offset(time, time_unit)
    if offset is None:
        return None

    if trigger == WorkflowTriggerEvent.BEFORE_EVENT:
        return _to_utc(start_time) - offset
    return _to_utc(end_time) + offset


def calculate_for_workflow(workflow, start_time: datetime, end_time: datetime) -> datetime | None:
    """Shortcut taking trigger/time/time_unit from a workflow row."""
    return calculate_scheduled_date(
        workflow.trigger,
        workflow.time,
        workflow.time_unit,
        start_time,
        end_time,
    )
