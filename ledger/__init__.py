"""
Points Ledger for Price Reports

This module provides:
- Pending / confirmed / cancelled point transactions
- Atomic balance updates (pending and confirmed points per account)
- Idempotent one-way transitions: confirm/cancel return False once processed
- Read-only listings for admin review and account history
"""

from .models import (
    TransactionStatus,
    Transaction,
    TransactionFilters,
    Account,
    AccountBalance,
)
from .service import (
    PointsLedger,
    LedgerServiceError,
    InvalidAmountError,
    TransactionNotFoundError,
)

__all__ = [
    "TransactionStatus",
    "Transaction",
    "TransactionFilters",
    "Account",
    "AccountBalance",
    "PointsLedger",
    "LedgerServiceError",
    "InvalidAmountError",
    "TransactionNotFoundError",
]
