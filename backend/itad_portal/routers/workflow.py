"""Workflow endpoints: request -> quote -> job transitions."""
from __future__ import annotations

from fastapi import APIRouter, Depends, status
from sqlalchemy.orm import Session

from ..auth import PermissionChecker, get_company_user
from ..celery_app import CeleryWorkflowNotifier
from ..database import get_db
from ..models import User
from ..schemas import (
    DeclineRequestRequest,
    JobResponse,
    JobStatusResult,
    RequestCreate,
    RequestResponse,
    RespondToQuoteRequest,
    RespondToQuoteResult,
    SchedulePickupRequest,
    SendQuoteRequest,
    SuccessResponse,
    UpdateJobStatusRequest,
)
from ..use_cases.workflow import (
    WorkflowNotifier,
    decline_request_use_case,
    respond_to_quote_use_case,
    schedule_pickup_use_case,
    send_quote_use_case,
    submit_request_use_case,
    update_job_status_use_case,
)

router = APIRouter(prefix="/workflow", tags=["workflow"])

require_staff = PermissionChecker("canManageWorkflow")


def get_workflow_notifier() -> WorkflowNotifier:
    return CeleryWorkflowNotifier()


@router.post("/submit-request", response_model=RequestResponse, status_code=status.HTTP_201_CREATED)
def submit_request(
    data: RequestCreate,
    current_user: User = Depends(get_company_user),
    db: Session = Depends(get_db),
    notifier: WorkflowNotifier = Depends(get_workflow_notifier),
):
    """Submit a pickup request on behalf of the caller's company."""
    return submit_request_use_case(db=db, data=data, current_user=current_user, notifier=notifier)


@router.post("/send-quote", response_model=SuccessResponse)
def send_quote(
    data: SendQuoteRequest,
    current_user: User = Depends(require_staff),
    db: Session = Depends(get_db),
    notifier: WorkflowNotifier = Depends(get_workflow_notifier),
):
    """Send a draft quote to the client."""
    send_quote_use_case(db=db, quote_id=data.quote_id, actor_id=current_user.id, notifier=notifier)
    return SuccessResponse()


@router.post("/respond-to-quote", response_model=RespondToQuoteResult, response_model_by_alias=True)
def respond_to_quote(
    data: RespondToQuoteRequest,
    current_user: User = Depends(get_company_user),
    db: Session = Depends(get_db),
    notifier: WorkflowNotifier = Depends(get_workflow_notifier),
):
    """Client accepts, declines or asks for a revision of a sent quote."""
    result = respond_to_quote_use_case(
        db=db,
        quote_id=data.quote_id,
        response=data.response,
        acting_user_id=current_user.id,
        notifier=notifier,
    )
    return RespondToQuoteResult(job_id=result.job_id)


@router.post("/update-job-status", response_model=JobStatusResult)
def update_job_status(
    data: UpdateJobStatusRequest,
    current_user: User = Depends(require_staff),
    db: Session = Depends(get_db),
    notifier: WorkflowNotifier = Depends(get_workflow_notifier),
):
    """Advance a job to its next stage."""
    job = update_job_status_use_case(
        db=db,
        job_id=data.job_id,
        new_status=data.status,
        actor_id=current_user.id,
        notifier=notifier,
    )
    return JobStatusResult(job=JobResponse.model_validate(job))


@router.post("/schedule-pickup", response_model=JobStatusResult)
def schedule_pickup(
    data: SchedulePickupRequest,
    current_user: User = Depends(require_staff),
    db: Session = Depends(get_db),
    notifier: WorkflowNotifier = Depends(get_workflow_notifier),
):
    """Set or move the pickup date of a job."""
    job = schedule_pickup_use_case(
        db=db,
        job_id=data.job_id,
        pickup_date=data.pickup_date,
        pickup_time_window=data.pickup_time_window,
        actor_id=current_user.id,
        notifier=notifier,
    )
    return JobStatusResult(job=JobResponse.model_validate(job))


@router.post("/decline-request", response_model=SuccessResponse)
def decline_request(
    data: DeclineRequestRequest,
    current_user: User = Depends(require_staff),
    db: Session = Depends(get_db),
):
    """Decline a pending request without quoting it."""
    decline_request_use_case(db=db, request_id=data.request_id, reason=data.reason, actor_id=current_user.id)
    return SuccessResponse()
