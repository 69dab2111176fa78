"""
Award eligibility for a single price submission.

The pipeline only judges; it never writes to the ledger. Callers act on the
returned VerificationResult:

- is_valid_image False  -> reject, create no transaction
- requires_review True  -> add points but leave them pending for an admin
- otherwise             -> add points and confirm them immediately
"""

import logging
from datetime import datetime, timedelta
from typing import Callable

from .classifier import ClassifierUnavailable
from .geo import haversine_km
from .images import InvalidImageData, decode_image
from .models import PriceSubmission, VerificationResult
from .observations import PriceObservationStore, StoreDirectory, utcnow

logger = logging.getLogger(__name__)


class VerificationPipeline:
    def __init__(
        self,
        classifier,
        observations: PriceObservationStore,
        stores: StoreDirectory,
        base_award: int = 5,
        duplicate_window: timedelta = timedelta(hours=24),
        geofence_radius_km: float = 1.0,
        clock: Callable[[], datetime] = utcnow,
    ):
        self.classifier = classifier
        self.observations = observations
        self.stores = stores
        self.base_award = base_award
        self.duplicate_window = duplicate_window
        self.geofence_radius_km = geofence_radius_km
        self.clock = clock

    def verify(self, submission: PriceSubmission) -> VerificationResult:
        result = VerificationResult(points_to_award=self.base_award)

        self._check_duplicate(submission, result)
        self._check_image(submission, result)
        self._check_location(submission, result)

        if not result.is_valid_image or result.is_duplicate:
            result.award_points = False
            result.points_to_award = 0

        logger.info(
            "Verified %s@%s: valid=%s duplicate=%s review=%s points=%d",
            submission.product_id, submission.store_id, result.is_valid_image,
            result.is_duplicate, result.requires_review, result.points_to_award,
        )
        return result

    def _check_duplicate(self, submission: PriceSubmission, result: VerificationResult) -> None:
        since = self.clock() - self.duplicate_window
        recent = self.observations.recent(submission.product_id, submission.store_id, since, limit=1)
        if recent and recent[0].price == submission.price:
            result.is_duplicate = True
            result.duplicate_message = (
                "The same price was already reported for this product at this store in the last "
                f"{int(self.duplicate_window.total_seconds() // 3600)} hours. "
                "The price is recorded but no points are awarded."
            )

    def _check_image(self, submission: PriceSubmission, result: VerificationResult) -> None:
        if not submission.image_base64:
            result.requires_review = True
            return

        try:
            image = decode_image(submission.image_base64)
        except InvalidImageData as e:
            result.is_valid_image = False
            result.image_validation_message = str(e)
            return

        try:
            check = self.classifier.verify_image(image)
        except ClassifierUnavailable as e:
            logger.warning("Classifier unavailable, leaving %s for manual review: %s", submission.product_id, e)
            result.requires_review = True
            return

        if not check.is_valid:
            result.is_valid_image = False
            result.image_validation_message = check.reason or "Image is not a valid price tag"

    def _check_location(self, submission: PriceSubmission, result: VerificationResult) -> None:
        if not submission.has_location:
            return
        store = self.stores.get(submission.store_id)
        if not store or not store.has_location:
            return

        distance = haversine_km(submission.latitude, submission.longitude, store.latitude, store.longitude)
        result.distance_km = round(distance, 2)
        if distance > self.geofence_radius_km:
            result.location_warning = (
                f"Your location is {distance:.1f} km from {store.name}. "
                "Please check that you picked the right store."
            )
