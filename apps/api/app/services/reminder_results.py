"""Outcome types returned by reminder dispatch."""

from __future__ import annotations

from dataclasses import dataclass, field

from app.db.enums import ReminderOutcome


@dataclass(frozen=True)
class ScheduleResult:
    """Result of dispatching one workflow step. Never persisted."""

    outcome: ReminderOutcome
    reminder_id: int | None = None
    error: str | None = None

    @property
    def success(self) -> bool:
        return self.outcome is ReminderOutcome.SCHEDULED

    @classmethod
    def scheduled(cls, reminder_id: int | None) -> "ScheduleResult":
        return cls(ReminderOutcome.SCHEDULED, reminder_id=reminder_id)

    @classmethod
    def skipped(cls, reason: str) -> "ScheduleResult":
        return cls(ReminderOutcome.SKIPPED, error=reason)

    @classmethod
    def failed(cls, reason: str) -> "ScheduleResult":
        return cls(ReminderOutcome.FAILED, error=reason)


@dataclass(frozen=True)
class StepResult:
    workflow_id: int
    step_id: int
    result: ScheduleResult


@dataclass
class ScheduleAllResult:
    """Aggregate of a ReminderScheduler.schedule_all run."""

    scheduled: int = 0
    failed: int = 0
    skipped: int = 0
    results: list[StepResult] = field(default_factory=list)

    def add(self, workflow_id: int, step_id: int, result: ScheduleResult) -> None:
        self.results.append(StepResult(workflow_id=workflow_id, step_id=step_id, result=result))
        if result.outcome is ReminderOutcome.SCHEDULED:
            self.scheduled += 1
        elif result.outcome is ReminderOutcome.SKIPPED:
            self.skipped += 1
        else:
            self.failed += 1
