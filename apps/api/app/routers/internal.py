"""
Internal endpoints for booking lifecycle hooks.

Protected by X-Internal-Secret header.
Called by the booking service, never by browsers.
"""
from fastapi import APIRouter, Depends
from pydantic import BaseModel
from sqlalchemy.orm import Session

from app.core.async_utils import run_async
from app.core.deps import get_db, verify_internal_secret
from app.services import workflow_service
from app.services.task_scheduler import JobTaskScheduler


router = APIRouter(
    prefix="/internal/workflows",
    tags=["internal"],
    dependencies=[Depends(verify_internal_secret)],
)


class CancelRemindersResponse(BaseModel):
    booking_uid: str
    cancelled: int


class DeletedRemindersResponse(BaseModel):
    deleted: int


@router.post("/bookings/{booking_uid}/cancel-reminders", response_model=CancelRemindersResponse)
def cancel_booking_reminders(booking_uid: str, db: Session = Depends(get_db)):
    """Cancel every email and SMS reminder of a booking."""
    cancelled = run_async(
        workflow_service.cancel_workflows_for_booking(
            db, booking_uid, task_scheduler=JobTaskScheduler(db)
        )
    )
    return CancelRemindersResponse(booking_uid=booking_uid, cancelled=cancelled)


@router.delete("/teams/{team_id}/reminders", response_model=DeletedRemindersResponse)
def delete_team_reminders(team_id: int, db: Session = Depends(get_db)):
    """Remove reminders created by a team's workflows (team deletion cleanup)."""
    deleted = workflow_service.handle_team_removal(db, team_id)
    return DeletedRemindersResponse(deleted=deleted)
