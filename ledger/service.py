import logging
import threading
from datetime import datetime, timezone
from typing import Optional
from uuid import UUID, uuid4

from .models import (
    Account,
    AccountBalance,
    LedgerHistoryResponse,
    Transaction,
    TransactionFilters,
    TransactionStatus,
)

logger = logging.getLogger(__name__)


class LedgerServiceError(Exception):
    pass


class InvalidAmountError(LedgerServiceError):
    pass


class TransactionNotFoundError(LedgerServiceError):
    pass


class InMemoryStorage:
    """Account balances and the transaction log.

    Only ``PointsLedger`` writes here; everything else reads through it.
    """

    def __init__(self):
        self.accounts: dict[UUID, dict] = {}
        self.transactions: dict[UUID, dict] = {}


class PointsLedger:
    def __init__(self, storage: Optional[InMemoryStorage] = None):
        self.storage = storage or InMemoryStorage()
        self._lock = threading.RLock()

    def add(
        self,
        account_id: UUID,
        amount: int,
        reason: str,
        reference_id: Optional[UUID] = None,
    ) -> UUID:
        if isinstance(amount, bool) or not isinstance(amount, int) or amount <= 0:
            raise InvalidAmountError(f"Amount must be a positive integer, got {amount!r}")

        now = datetime.now(timezone.utc)
        transaction_id = uuid4()

        with self._lock:
            account = self._ensure_account(account_id, now)
            self.storage.transactions[transaction_id] = {
                "id": transaction_id,
                "account_id": account_id,
                "amount": amount,
                "reason": reason,
                "reference_id": reference_id,
                "status": TransactionStatus.PENDING,
                "created_at": now,
                "confirmed_at": None,
                "cancelled_at": None,
                "performed_by": None,
            }
            account["pending_points"] += amount

        logger.info("Added pending transaction %s: %d points to %s (%s)", transaction_id, amount, account_id, reason)
        return transaction_id

    def confirm(self, transaction_id: UUID, performed_by: Optional[str] = None) -> bool:
        return self._transition(transaction_id, TransactionStatus.CONFIRMED, performed_by)

    def cancel(self, transaction_id: UUID, performed_by: Optional[str] = None) -> bool:
        return self._transition(transaction_id, TransactionStatus.CANCELLED, performed_by)

    def _transition(
        self,
        transaction_id: UUID,
        target: TransactionStatus,
        performed_by: Optional[str],
    ) -> bool:
        with self._lock:
            tx_data = self.storage.transactions.get(transaction_id)
            if not tx_data:
                raise TransactionNotFoundError(f"Transaction {transaction_id} not found")

            current = tx_data["status"]
            if not current.can_transition_to(target):
                logger.debug("Transaction %s already %s, ignoring %s", transaction_id, current.value, target.value)
                return False

            account = self.storage.accounts[tx_data["account_id"]]
            amount = tx_data["amount"]
            now = datetime.now(timezone.utc)

            account["pending_points"] -= amount
            if target is TransactionStatus.CONFIRMED:
                account["confirmed_points"] += amount
                tx_data["confirmed_at"] = now
            else:
                tx_data["cancelled_at"] = now
            tx_data["status"] = target
            tx_data["performed_by"] = performed_by

        logger.info("Transaction %s %s (%d points, by %s)", transaction_id, target.value, amount, performed_by or "system")
        return True

    def get_transaction(self, transaction_id: UUID) -> Transaction:
        with self._lock:
            tx_data = self.storage.transactions.get(transaction_id)
            if not tx_data:
                raise TransactionNotFoundError(f"Transaction {transaction_id} not found")
            return Transaction(**tx_data)

    def list_by_status(
        self,
        status: Optional[TransactionStatus],
        filters: Optional[TransactionFilters] = None,
    ) -> list[Transaction]:
        filters = filters or TransactionFilters()
        search = filters.search.strip().lower() if filters.search else None

        with self._lock:
            rows = list(self.storage.transactions.values())
            names = {aid: a.get("display_name") or "" for aid, a in self.storage.accounts.items()}

        matched = []
        for tx in rows:
            if status is not None and tx["status"] != status:
                continue
            if filters.account_id and tx["account_id"] != filters.account_id:
                continue
            if filters.reason and tx["reason"] != filters.reason:
                continue
            if filters.reference_id and tx["reference_id"] != filters.reference_id:
                continue
            if search and search not in tx["reason"].lower() and search not in names.get(tx["account_id"], "").lower():
                continue
            matched.append(Transaction(**tx))

        matched.sort(key=lambda t: t.created_at, reverse=True)
        end = filters.offset + filters.limit if filters.limit else None
        return matched[filters.offset:end]

    def count_by_status(self) -> dict[TransactionStatus, int]:
        counts = {status: 0 for status in TransactionStatus}
        with self._lock:
            for tx in self.storage.transactions.values():
                counts[tx["status"]] += 1
        return counts

    def register_account(self, account_id: UUID, display_name: Optional[str] = None) -> Account:
        with self._lock:
            account = self._ensure_account(account_id, datetime.now(timezone.utc))
            if display_name is not None:
                account["display_name"] = display_name
            return Account(**account)

    def get_account(self, account_id: UUID) -> Account:
        with self._lock:
            account = self.storage.accounts.get(account_id)
            if account:
                return Account(**account)
        return Account(account_id=account_id, created_at=datetime.now(timezone.utc))

    def get_balance(self, account_id: UUID) -> AccountBalance:
        with self._lock:
            account = self.storage.accounts.get(account_id) or {}
            txns = [t for t in self.storage.transactions.values() if t["account_id"] == account_id]
            pending = account.get("pending_points", 0)
            confirmed = account.get("confirmed_points", 0)

        last_tx = max(txns, key=lambda t: t["created_at"]) if txns else None
        return AccountBalance(
            account_id=account_id,
            pending_points=pending,
            confirmed_points=confirmed,
            spendable_points=confirmed,
            total_transactions=len(txns),
            last_transaction_at=last_tx["created_at"] if last_tx else None,
        )

    def get_ledger_history(self, account_id: UUID, limit: int = 50, offset: int = 0) -> LedgerHistoryResponse:
        all_txns = self.list_by_status(None, TransactionFilters(account_id=account_id))
        balance = self.get_balance(account_id)

        return LedgerHistoryResponse(
            account_id=account_id,
            transactions=all_txns[offset:offset + limit],
            total_count=len(all_txns),
            pending_points=balance.pending_points,
            confirmed_points=balance.confirmed_points,
        )

    def reconcile(self, account_id: UUID) -> bool:
        """Recompute both balance fields from the log and compare with the stored ones."""
        with self._lock:
            account = self.storage.accounts.get(account_id)
            txns = [t for t in self.storage.transactions.values() if t["account_id"] == account_id]
            if account is None:
                return not txns

            pending = sum(t["amount"] for t in txns if t["status"] is TransactionStatus.PENDING)
            confirmed = sum(t["amount"] for t in txns if t["status"] is TransactionStatus.CONFIRMED)
            consistent = account["pending_points"] == pending and account["confirmed_points"] == confirmed

        if not consistent:
            logger.error(
                "Balance drift on %s: stored pending=%d confirmed=%d, log pending=%d confirmed=%d",
                account_id, account["pending_points"], account["confirmed_points"], pending, confirmed,
            )
        return consistent

    def _ensure_account(self, account_id: UUID, now: datetime) -> dict:
        account = self.storage.accounts.get(account_id)
        if account is None:
            account = {
                "account_id": account_id,
                "display_name": None,
                "pending_points": 0,
                "confirmed_points": 0,
                "created_at": now,
            }
            self.storage.accounts[account_id] = account
        return account
