import logging
import math
from typing import Callable, Iterable, Optional
from uuid import UUID

from ledger.models import TransactionFilters, TransactionStatus
from ledger.service import LedgerServiceError, PointsLedger
from verification.observations import PriceObservationStore, StoreDirectory

from .models import BatchResult, ObservationSummary, ReviewListing, ReviewRow

logger = logging.getLogger(__name__)


class AdminReviewWorkflow:
    """Manual adjudication of point transactions.

    A human has already judged whatever reaches confirm/cancel here, so the
    ledger is called directly with no re-verification.
    """

    def __init__(
        self,
        ledger: PointsLedger,
        observations: PriceObservationStore,
        stores: StoreDirectory,
        page_size: int = 20,
    ):
        self.ledger = ledger
        self.observations = observations
        self.stores = stores
        self.page_size = page_size

    def list_transactions(
        self,
        status: Optional[TransactionStatus] = TransactionStatus.PENDING,
        search: Optional[str] = None,
        page: int = 1,
        page_size: Optional[int] = None,
    ) -> ReviewListing:
        page_size = page_size or self.page_size
        page = max(page, 1)
        matched = self.ledger.list_by_status(status, TransactionFilters(search=search))
        start = (page - 1) * page_size

        return ReviewListing(
            rows=[self._enrich(tx) for tx in matched[start:start + page_size]],
            total_count=len(matched),
            page=page,
            page_size=page_size,
            total_pages=math.ceil(len(matched) / page_size),
            stats=self.ledger.count_by_status(),
        )

    def selectable_ids(self, transaction_ids: Iterable[UUID]) -> list[UUID]:
        """Keep only ids that are still pending; anything decided meanwhile drops out."""
        selectable = []
        for transaction_id in transaction_ids:
            try:
                transaction = self.ledger.get_transaction(transaction_id)
            except LedgerServiceError:
                continue
            if transaction.status is TransactionStatus.PENDING:
                selectable.append(transaction_id)
        return selectable

    def confirm(self, transaction_id: UUID, performed_by: Optional[str] = None) -> bool:
        return self.ledger.confirm(transaction_id, performed_by=performed_by)

    def cancel(self, transaction_id: UUID, performed_by: Optional[str] = None) -> bool:
        return self.ledger.cancel(transaction_id, performed_by=performed_by)

    def batch_confirm(self, transaction_ids: Iterable[UUID], performed_by: Optional[str] = None) -> BatchResult:
        return self._batch(transaction_ids, self.confirm, performed_by, "confirm")

    def batch_cancel(self, transaction_ids: Iterable[UUID], performed_by: Optional[str] = None) -> BatchResult:
        return self._batch(transaction_ids, self.cancel, performed_by, "cancel")

    def _batch(
        self,
        transaction_ids: Iterable[UUID],
        action: Callable[..., bool],
        performed_by: Optional[str],
        label: str,
    ) -> BatchResult:
        result = BatchResult()
        for transaction_id in dict.fromkeys(transaction_ids):
            try:
                applied = action(transaction_id, performed_by=performed_by)
            except Exception as e:
                logger.warning("Batch %s of %s failed: %s", label, transaction_id, e)
                applied = False
            if applied:
                result.success_count += 1
            else:
                result.fail_count += 1
                result.failed_ids.append(transaction_id)

        logger.info("Batch %s: %d succeeded, %d failed", label, result.success_count, result.fail_count)
        return result

    def _enrich(self, transaction) -> ReviewRow:
        account = self.ledger.get_account(transaction.account_id)
        observation = None
        if transaction.reference_id:
            found = self.observations.get(transaction.reference_id)
            if found:
                store = self.stores.get(found.store_id)
                observation = ObservationSummary(
                    observation_id=found.id,
                    product_id=found.product_id,
                    store_id=found.store_id,
                    store_name=store.name if store else None,
                    price=found.price,
                    original_price=found.original_price,
                    discount_amount=found.discount_amount,
                    discount_period=found.discount_period,
                    image_url=found.image_url,
                    recorded_at=found.recorded_at,
                )
        return ReviewRow(
            transaction=transaction,
            submitter_name=account.display_name,
            observation=observation,
        )
