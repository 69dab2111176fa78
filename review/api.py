from typing import Optional
from uuid import UUID
from fastapi import APIRouter, Depends, HTTPException, Query, status

from core.container import ServiceContainer, get_container
from ledger.models import TransactionStatus, TransitionRequest, TransactionResponse
from ledger.service import TransactionNotFoundError

from .models import BatchRequest, BatchResult, ReviewListing

router = APIRouter(prefix="/admin")


@router.get("/transactions", response_model=ReviewListing, tags=["Admin"])
def list_transactions(
    status_filter: Optional[TransactionStatus] = Query(default=TransactionStatus.PENDING, alias="status"),
    search: Optional[str] = None,
    page: int = Query(default=1, ge=1),
    page_size: Optional[int] = Query(default=None, ge=1, le=100),
    services: ServiceContainer = Depends(get_container),
) -> ReviewListing:
    return services.review.list_transactions(status_filter, search=search, page=page, page_size=page_size)


@router.post("/transactions/batch-confirm", response_model=BatchResult, tags=["Admin"])
def batch_confirm(request: BatchRequest, services: ServiceContainer = Depends(get_container)) -> BatchResult:
    return services.review.batch_confirm(request.transaction_ids, request.performed_by)


@router.post("/transactions/batch-cancel", response_model=BatchResult, tags=["Admin"])
def batch_cancel(request: BatchRequest, services: ServiceContainer = Depends(get_container)) -> BatchResult:
    return services.review.batch_cancel(request.transaction_ids, request.performed_by)


@router.post("/transactions/{transaction_id}/confirm", response_model=TransactionResponse, tags=["Admin"])
def confirm_transaction(
    transaction_id: UUID,
    request: TransitionRequest,
    services: ServiceContainer = Depends(get_container),
) -> TransactionResponse:
    try:
        applied = services.review.confirm(transaction_id, request.performed_by)
    except TransactionNotFoundError:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=f"Transaction {transaction_id} not found")
    return TransactionResponse(
        transaction=services.ledger.get_transaction(transaction_id),
        applied=applied,
        message="Points confirmed" if applied else "Transaction already processed",
    )


@router.post("/transactions/{transaction_id}/cancel", response_model=TransactionResponse, tags=["Admin"])
def cancel_transaction(
    transaction_id: UUID,
    request: TransitionRequest,
    services: ServiceContainer = Depends(get_container),
) -> TransactionResponse:
    try:
        applied = services.review.cancel(transaction_id, request.performed_by)
    except TransactionNotFoundError:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=f"Transaction {transaction_id} not found")
    return TransactionResponse(
        transaction=services.ledger.get_transaction(transaction_id),
        applied=applied,
        message="Points cancelled" if applied else "Transaction already processed",
    )
