"""
Admin review of point transactions: listing, single and batch confirm/cancel.
"""

from .models import BatchResult, ReviewListing, ReviewRow, ObservationSummary
from .workflow import AdminReviewWorkflow

__all__ = [
    "AdminReviewWorkflow",
    "BatchResult",
    "ReviewListing",
    "ReviewRow",
    "ObservationSummary",
]
