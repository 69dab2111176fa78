from dataclasses import dataclass
from datetime import timedelta
from functools import lru_cache
from typing import Optional

from ledger.service import PointsLedger
from review.workflow import AdminReviewWorkflow
from submissions.processor import SubmissionProcessor
from submissions.queue import RunStore
from submissions.storage import ImageStorage
from verification.classifier import PriceTagClassifier
from verification.observations import PriceObservationStore, StoreDirectory
from verification.pipeline import VerificationPipeline

from .config import Settings, get_settings


@dataclass
class ServiceContainer:
    settings: Settings
    ledger: PointsLedger
    observations: PriceObservationStore
    stores: StoreDirectory
    classifier: object
    storage: ImageStorage
    pipeline: VerificationPipeline
    processor: SubmissionProcessor
    review: AdminReviewWorkflow
    runs: RunStore


def build_container(
    settings: Optional[Settings] = None,
    classifier=None,
    storage: Optional[ImageStorage] = None,
    observations: Optional[PriceObservationStore] = None,
    stores: Optional[StoreDirectory] = None,
) -> ServiceContainer:
    """Wire one instance of every service. Collaborators can be swapped in for tests."""
    settings = settings or get_settings()
    ledger = PointsLedger()
    if observations is None:
        observations = PriceObservationStore()
    if stores is None:
        stores = StoreDirectory.from_file(settings.STORES_FILE) if settings.STORES_FILE else StoreDirectory()
    classifier = classifier or PriceTagClassifier(
        api_key=settings.GROQ_API_KEY,
        model=settings.CLASSIFIER_MODEL,
        timeout=settings.CLASSIFIER_TIMEOUT_SECONDS,
        max_retries=settings.CLASSIFIER_MAX_RETRIES,
        min_confidence=settings.CLASSIFIER_MIN_CONFIDENCE,
    )
    storage = storage or ImageStorage(settings.STORAGE_DIRECTORY, settings.STORAGE_PUBLIC_BASE_URL)

    pipeline = VerificationPipeline(
        classifier,
        observations,
        stores,
        base_award=settings.BASE_AWARD_POINTS,
        duplicate_window=timedelta(hours=settings.DUPLICATE_WINDOW_HOURS),
        geofence_radius_km=settings.GEOFENCE_RADIUS_KM,
        clock=observations.clock,
    )
    processor = SubmissionProcessor(
        pipeline,
        ledger,
        observations,
        storage,
        classifier,
        reason=settings.AWARD_REASON,
        max_image_bytes=settings.MAX_IMAGE_BYTES,
    )
    review = AdminReviewWorkflow(ledger, observations, stores, page_size=settings.ADMIN_PAGE_SIZE)

    return ServiceContainer(
        settings=settings,
        ledger=ledger,
        observations=observations,
        stores=stores,
        classifier=classifier,
        storage=storage,
        pipeline=pipeline,
        processor=processor,
        review=review,
        runs=RunStore(settings.RUN_STATE_DIRECTORY),
    )


@lru_cache
def get_container() -> ServiceContainer:
    return build_container()
