"""
Anti-fraud verification for price submissions.

Screens each submission for a forged or unreadable photo, a redundant
report of an already-known price, and a device location far from the
chosen store, then decides how many points it earns.
"""

from .classifier import (
    PriceTagClassifier,
    ClassifierError,
    ClassifierUnavailable,
    ClassifierTimeout,
)
from .models import (
    PriceSubmission,
    PriceObservation,
    PriceTagReading,
    ImageCheck,
    VerificationResult,
    Store,
)
from .observations import PriceObservationStore, StoreDirectory
from .pipeline import VerificationPipeline

__all__ = [
    "PriceTagClassifier",
    "ClassifierError",
    "ClassifierUnavailable",
    "ClassifierTimeout",
    "PriceSubmission",
    "PriceObservation",
    "PriceTagReading",
    "ImageCheck",
    "VerificationResult",
    "Store",
    "PriceObservationStore",
    "StoreDirectory",
    "VerificationPipeline",
]
