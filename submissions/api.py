from uuid import UUID
from fastapi import APIRouter, Depends, HTTPException, status

from core.container import ServiceContainer, get_container
from verification.models import PriceSubmission, VerificationResult

from .models import ItemStatus, RunResponse, SubmissionItem, SubmissionPayload
from .queue import SubmissionQueue, build_run

router = APIRouter()

_FAILURE_STATUS = {
    "InvalidImageError": 422,
    "RecognitionFailedError": 422,
    "StorageUploadFailed": status.HTTP_502_BAD_GATEWAY,
    "ClassifierUnavailable": status.HTTP_503_SERVICE_UNAVAILABLE,
    "ClassifierTimeout": status.HTTP_504_GATEWAY_TIMEOUT,
}


def _run_response(state) -> RunResponse:
    return RunResponse(state=state, summary=state.summary())


@router.post("/verification", response_model=VerificationResult, tags=["Submissions"])
def verify_submission(submission: PriceSubmission, services: ServiceContainer = Depends(get_container)) -> VerificationResult:
    return services.pipeline.verify(submission)


@router.post("/submissions", response_model=SubmissionItem, status_code=status.HTTP_201_CREATED, tags=["Submissions"])
def submit_price(payload: SubmissionPayload, services: ServiceContainer = Depends(get_container)) -> SubmissionItem:
    queue = SubmissionQueue(services.processor.process, delay_seconds=0)
    state = queue.run(build_run([payload]))
    item = state.items[0]

    if item.status is ItemStatus.FAILED:
        code = _FAILURE_STATUS.get(item.error_type, status.HTTP_500_INTERNAL_SERVER_ERROR)
        raise HTTPException(status_code=code, detail=item.error)
    return item


@router.post("/submissions/runs", response_model=RunResponse, status_code=status.HTTP_201_CREATED, tags=["Submissions"])
def create_run(payloads: list[SubmissionPayload], services: ServiceContainer = Depends(get_container)) -> RunResponse:
    if not payloads:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="A run needs at least one submission")
    state = build_run(payloads)
    services.runs.save(state)
    return _run_response(state)


@router.get("/submissions/runs/{run_id}", response_model=RunResponse, tags=["Submissions"])
def get_run(run_id: UUID, services: ServiceContainer = Depends(get_container)) -> RunResponse:
    state = services.runs.load(run_id)
    if not state:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=f"Run {run_id} not found")
    return _run_response(state)


@router.post("/submissions/runs/{run_id}/start", response_model=RunResponse, tags=["Submissions"])
def start_run(run_id: UUID, services: ServiceContainer = Depends(get_container)) -> RunResponse:
    """Start or resume a run. Blocks until the run completes or is paused."""
    state = services.runs.load(run_id)
    if not state:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=f"Run {run_id} not found")

    queue = SubmissionQueue(
        services.processor.process,
        delay_seconds=services.settings.QUEUE_ITEM_DELAY_SECONDS,
        on_item=lambda current, _item: services.runs.save(current),
    )
    if not services.runs.attach_queue(run_id, queue):
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail=f"Run {run_id} is already running")
    try:
        state = queue.run(state)
    finally:
        services.runs.detach_queue(run_id)
        services.runs.save(state)
    return _run_response(state)


@router.post("/submissions/runs/{run_id}/pause", status_code=status.HTTP_202_ACCEPTED, tags=["Submissions"])
def pause_run(run_id: UUID, services: ServiceContainer = Depends(get_container)):
    queue = services.runs.get_queue(run_id)
    if not queue:
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail=f"Run {run_id} is not running")
    queue.pause()
    return {"run_id": str(run_id), "pause_requested": True}
