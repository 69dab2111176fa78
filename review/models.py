from datetime import datetime
from typing import Optional
from uuid import UUID
from pydantic import BaseModel, Field

from ledger.models import Transaction, TransactionStatus


class ObservationSummary(BaseModel):
    observation_id: UUID
    product_id: str
    store_id: str
    store_name: Optional[str] = None
    price: int
    original_price: int
    discount_amount: Optional[int] = None
    discount_period: Optional[str] = None
    image_url: Optional[str] = None
    recorded_at: datetime


class ReviewRow(BaseModel):
    transaction: Transaction
    submitter_name: Optional[str] = None
    observation: Optional[ObservationSummary] = None

    @property
    def selectable(self) -> bool:
        return self.transaction.status is TransactionStatus.PENDING


class ReviewListing(BaseModel):
    rows: list[ReviewRow]
    total_count: int
    page: int
    page_size: int
    total_pages: int
    stats: dict[TransactionStatus, int]


class BatchRequest(BaseModel):
    transaction_ids: list[UUID] = Field(..., min_length=1)
    performed_by: Optional[str] = None


class BatchResult(BaseModel):
    success_count: int = 0
    fail_count: int = 0
    failed_ids: list[UUID] = Field(default_factory=list)
