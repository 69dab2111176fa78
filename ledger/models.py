from datetime import datetime
from enum import Enum
from typing import Optional
from uuid import UUID
from pydantic import BaseModel, Field, ConfigDict


class TransactionStatus(str, Enum):
    PENDING = "pending"
    CONFIRMED = "confirmed"
    CANCELLED = "cancelled"

    def can_transition_to(self, target: "TransactionStatus") -> bool:
        return self is TransactionStatus.PENDING and target in (
            TransactionStatus.CONFIRMED,
            TransactionStatus.CANCELLED,
        )

    @property
    def is_terminal(self) -> bool:
        return self is not TransactionStatus.PENDING


class AddPointsRequest(BaseModel):
    account_id: UUID
    amount: int = Field(..., description="Points to award, must be positive")
    reason: str = Field(..., description="Category tag, e.g. price_report")
    reference_id: Optional[UUID] = None

    model_config = ConfigDict(json_schema_extra={
        "example": {
            "account_id": "550e8400-e29b-41d4-a716-446655440000",
            "amount": 5,
            "reason": "price_report",
            "reference_id": "9b2f6a1e-3c4d-4e5f-8a9b-0c1d2e3f4a5b"
        }
    })


class TransitionRequest(BaseModel):
    performed_by: Optional[str] = None


class Account(BaseModel):
    account_id: UUID
    display_name: Optional[str] = None
    pending_points: int = 0
    confirmed_points: int = 0
    created_at: datetime

    model_config = ConfigDict(from_attributes=True)


class Transaction(BaseModel):
    id: UUID
    account_id: UUID
    amount: int
    reason: str
    reference_id: Optional[UUID] = None
    status: TransactionStatus
    created_at: datetime
    confirmed_at: Optional[datetime] = None
    cancelled_at: Optional[datetime] = None
    performed_by: Optional[str] = None

    model_config = ConfigDict(from_attributes=True)

    def can_confirm(self) -> bool:
        return self.status.can_transition_to(TransactionStatus.CONFIRMED)

    def can_cancel(self) -> bool:
        return self.status.can_transition_to(TransactionStatus.CANCELLED)


class TransactionFilters(BaseModel):
    account_id: Optional[UUID] = None
    reason: Optional[str] = None
    reference_id: Optional[UUID] = None
    search: Optional[str] = None
    limit: Optional[int] = Field(default=None, ge=1)
    offset: int = Field(default=0, ge=0)


class AccountBalance(BaseModel):
    account_id: UUID
    pending_points: int
    confirmed_points: int
    spendable_points: int
    total_transactions: int
    last_transaction_at: Optional[datetime] = None


class LedgerHistoryResponse(BaseModel):
    account_id: UUID
    transactions: list[Transaction]
    total_count: int
    pending_points: int
    confirmed_points: int


class TransactionResponse(BaseModel):
    transaction: Transaction
    applied: bool = True
    message: str
