from enum import Enum
from typing import Optional
from uuid import UUID, uuid4
from pydantic import BaseModel, Field

from ledger.models import TransactionStatus
from verification.models import VerificationResult


class ItemStatus(str, Enum):
    QUEUED = "queued"
    PROCESSING = "processing"
    SUCCEEDED = "succeeded"
    FAILED = "failed"
    SKIPPED = "skipped"

    @property
    def is_terminal(self) -> bool:
        return self in (ItemStatus.SUCCEEDED, ItemStatus.FAILED, ItemStatus.SKIPPED)


class SubmissionPayload(BaseModel):
    """One price report as the user sent it.

    Product id and price may be left out when a photo is attached; they are
    then read off the tag by the classifier.
    """

    account_id: UUID
    store_id: str = Field(..., min_length=1)
    product_id: Optional[str] = None
    product_name: Optional[str] = None
    price: Optional[int] = Field(default=None, ge=0)
    original_price: Optional[int] = Field(default=None, ge=0)
    discount_period: Optional[str] = None
    image_base64: Optional[str] = None
    latitude: Optional[float] = None
    longitude: Optional[float] = None
    filename: Optional[str] = None


class SubmissionOutcome(BaseModel):
    observation_id: UUID
    product_id: str
    price: int
    image_url: Optional[str] = None
    transaction_id: Optional[UUID] = None
    transaction_status: Optional[TransactionStatus] = None
    points_awarded: int = 0
    verification: VerificationResult
    notices: list[str] = Field(default_factory=list)


class SubmissionItem(BaseModel):
    item_id: UUID = Field(default_factory=uuid4)
    payload: SubmissionPayload
    status: ItemStatus = ItemStatus.QUEUED
    error: Optional[str] = None
    error_type: Optional[str] = None
    duplicate_of: Optional[UUID] = None
    outcome: Optional[SubmissionOutcome] = None


class RunSummary(BaseModel):
    total: int
    queued: int
    processing: int
    succeeded: int
    failed: int
    skipped: int

    @property
    def success_count(self) -> int:
        return self.succeeded

    @property
    def fail_count(self) -> int:
        return self.failed


class QueueRunState(BaseModel):
    run_id: UUID = Field(default_factory=uuid4)
    items: list[SubmissionItem] = Field(default_factory=list)
    current_index: int = 0
    paused: bool = False
    completed: bool = False

    def summary(self) -> RunSummary:
        counts = {status: 0 for status in ItemStatus}
        for item in self.items:
            counts[item.status] += 1
        return RunSummary(
            total=len(self.items),
            queued=counts[ItemStatus.QUEUED],
            processing=counts[ItemStatus.PROCESSING],
            succeeded=counts[ItemStatus.SUCCEEDED],
            failed=counts[ItemStatus.FAILED],
            skipped=counts[ItemStatus.SKIPPED],
        )

    def to_json(self) -> str:
        return self.model_dump_json()

    @classmethod
    def from_json(cls, data: str) -> "QueueRunState":
        return cls.model_validate_json(data)


class RunResponse(BaseModel):
    state: QueueRunState
    summary: RunSummary
