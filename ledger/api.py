from typing import Optional
from uuid import UUID
from fastapi import APIRouter, Depends, HTTPException, Query, status

from core.container import ServiceContainer, get_container

from .models import (
    AddPointsRequest, TransitionRequest, TransactionResponse, Transaction,
    TransactionFilters, TransactionStatus, AccountBalance, LedgerHistoryResponse,
)
from .service import InvalidAmountError, TransactionNotFoundError

router = APIRouter()


@router.post("/transactions", response_model=TransactionResponse, status_code=status.HTTP_201_CREATED, tags=["Ledger"])
def add_points(request: AddPointsRequest, services: ServiceContainer = Depends(get_container)) -> TransactionResponse:
    try:
        transaction_id = services.ledger.add(request.account_id, request.amount, request.reason, request.reference_id)
    except InvalidAmountError as e:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(e))
    return TransactionResponse(
        transaction=services.ledger.get_transaction(transaction_id),
        message="Pending points added",
    )


@router.get("/transactions", response_model=list[Transaction], tags=["Ledger"])
def list_transactions(
    status_filter: Optional[TransactionStatus] = Query(default=None, alias="status"),
    account_id: Optional[UUID] = None,
    reason: Optional[str] = None,
    search: Optional[str] = None,
    limit: int = 50,
    offset: int = 0,
    services: ServiceContainer = Depends(get_container),
) -> list[Transaction]:
    filters = TransactionFilters(account_id=account_id, reason=reason, search=search, limit=limit, offset=offset)
    return services.ledger.list_by_status(status_filter, filters)


@router.get("/transactions/{transaction_id}", response_model=Transaction, tags=["Ledger"])
def get_transaction(transaction_id: UUID, services: ServiceContainer = Depends(get_container)) -> Transaction:
    try:
        return services.ledger.get_transaction(transaction_id)
    except TransactionNotFoundError:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=f"Transaction {transaction_id} not found")


@router.post("/transactions/{transaction_id}/confirm", response_model=TransactionResponse, tags=["Ledger"])
def confirm_transaction(
    transaction_id: UUID,
    request: TransitionRequest,
    services: ServiceContainer = Depends(get_container),
) -> TransactionResponse:
    try:
        applied = services.ledger.confirm(transaction_id, request.performed_by)
    except TransactionNotFoundError:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=f"Transaction {transaction_id} not found")
    return TransactionResponse(
        transaction=services.ledger.get_transaction(transaction_id),
        applied=applied,
        message="Points confirmed" if applied else "Transaction already processed",
    )


@router.post("/transactions/{transaction_id}/cancel", response_model=TransactionResponse, tags=["Ledger"])
def cancel_transaction(
    transaction_id: UUID,
    request: TransitionRequest,
    services: ServiceContainer = Depends(get_container),
) -> TransactionResponse:
    try:
        applied = services.ledger.cancel(transaction_id, request.performed_by)
    except TransactionNotFoundError:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=f"Transaction {transaction_id} not found")
    return TransactionResponse(
        transaction=services.ledger.get_transaction(transaction_id),
        applied=applied,
        message="Points cancelled" if applied else "Transaction already processed",
    )


@router.get("/accounts/{account_id}/balance", response_model=AccountBalance, tags=["Accounts"])
def get_account_balance(account_id: UUID, services: ServiceContainer = Depends(get_container)) -> AccountBalance:
    return services.ledger.get_balance(account_id)


@router.get("/accounts/{account_id}/ledger", response_model=LedgerHistoryResponse, tags=["Accounts"])
def get_account_ledger(
    account_id: UUID,
    limit: int = 50,
    offset: int = 0,
    services: ServiceContainer = Depends(get_container),
) -> LedgerHistoryResponse:
    return services.ledger.get_ledger_history(account_id, limit, offset)
