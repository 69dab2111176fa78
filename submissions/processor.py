import logging
from datetime import datetime, timezone
from typing import Optional
from uuid import uuid4

from ledger.service import PointsLedger
from verification.images import InvalidImageData, decode_image, sniff_content_type
from verification.models import PriceSubmission
from verification.observations import PriceObservationStore
from verification.pipeline import VerificationPipeline

from .errors import InvalidImageError, RecognitionFailedError
from .models import SubmissionOutcome, SubmissionPayload
from .storage import ImageStorage, extension_for

logger = logging.getLogger(__name__)

AUTO_CONFIRM_ACTOR = "auto-verification"


class SubmissionProcessor:
    """Takes one submission from payload to recorded price and awarded points.

    Steps, in order: decode the photo, fill missing fields from the tag,
    verify, upload the photo, record the observation, then add (and when
    trusted, confirm) the points.
    """

    def __init__(
        self,
        pipeline: VerificationPipeline,
        ledger: PointsLedger,
        observations: PriceObservationStore,
        storage: ImageStorage,
        classifier,
        reason: str = "price_report",
        max_image_bytes: int = 5 * 1024 * 1024,
    ):
        self.pipeline = pipeline
        self.ledger = ledger
        self.observations = observations
        self.storage = storage
        self.classifier = classifier
        self.reason = reason
        self.max_image_bytes = max_image_bytes

    def process(self, payload: SubmissionPayload) -> SubmissionOutcome:
        image = self._decode(payload)
        submission = self._build_submission(payload, image)

        verification = self.pipeline.verify(submission)
        if not verification.is_valid_image:
            raise InvalidImageError(verification.image_validation_message or "Image is not a valid price tag")

        image_url = self._upload(submission.product_id, image) if image else None
        observation = self.observations.record(
            account_id=submission.account_id,
            product_id=submission.product_id,
            store_id=submission.store_id,
            price=submission.price,
            original_price=submission.original_price,
            discount_period=submission.discount_period,
            image_url=image_url,
        )

        outcome = SubmissionOutcome(
            observation_id=observation.id,
            product_id=submission.product_id,
            price=submission.price,
            image_url=image_url,
            verification=verification,
            notices=verification.notices,
        )

        if not (verification.award_points and verification.points_to_award > 0):
            return outcome

        transaction_id = self.ledger.add(
            submission.account_id,
            verification.points_to_award,
            self.reason,
            reference_id=observation.id,
        )
        if not verification.requires_review:
            self.ledger.confirm(transaction_id, performed_by=AUTO_CONFIRM_ACTOR)

        transaction = self.ledger.get_transaction(transaction_id)
        outcome.transaction_id = transaction_id
        outcome.transaction_status = transaction.status
        outcome.points_awarded = transaction.amount
        return outcome

    def _decode(self, payload: SubmissionPayload) -> Optional[bytes]:
        if not payload.image_base64:
            return None
        try:
            image = decode_image(payload.image_base64)
        except InvalidImageData as e:
            raise InvalidImageError(str(e)) from e
        if len(image) > self.max_image_bytes:
            raise InvalidImageError(f"Image too large (max {self.max_image_bytes // (1024 * 1024)}MB)")
        return image

    def _build_submission(self, payload: SubmissionPayload, image: Optional[bytes]) -> PriceSubmission:
        product_id = payload.product_id
        price = payload.price
        original_price = payload.original_price
        discount_period = payload.discount_period

        if image is not None and (not product_id or price is None):
            reading = self.classifier.extract(image)
            logger.debug("Prefilled from tag: %s", reading)
            product_id = product_id or reading.product_id
            price = price if price is not None else reading.current_price
            original_price = original_price if original_price is not None else reading.original_price
            discount_period = discount_period or reading.discount_period

        if not product_id:
            raise RecognitionFailedError("Could not recognise a product id on the price tag")
        if price is None:
            raise RecognitionFailedError("Could not recognise a price on the price tag")

        return PriceSubmission(
            account_id=payload.account_id,
            product_id=product_id,
            store_id=payload.store_id,
            price=price,
            original_price=original_price,
            discount_period=discount_period,
            image_base64=payload.image_base64,
            latitude=payload.latitude,
            longitude=payload.longitude,
        )

    def _upload(self, product_id: str, image: bytes) -> str:
        content_type = sniff_content_type(image) or "image/jpeg"
        stamp = int(datetime.now(timezone.utc).timestamp() * 1000)
        key = f"{product_id}/price-{stamp}-{uuid4().hex[:8]}.{extension_for(content_type)}"
        return self.storage.upload(key, image, content_type=content_type)
