"""Shared fixtures: a controllable clock, a scripted image classifier and
a fully wired service container that never leaves the process."""

import base64
from datetime import datetime, timedelta, timezone
from uuid import UUID

import pytest

from core.config import Settings
from core.container import build_container
from submissions.errors import StorageUploadFailed
from submissions.storage import ImageStorage
from verification.classifier import ClassifierUnavailable
from verification.models import ImageCheck, PriceTagReading, Store
from verification.observations import PriceObservationStore, StoreDirectory


ACCOUNT_ID = UUID("550e8400-e29b-41d4-a716-446655440000")
OTHER_ACCOUNT_ID = UUID("660e8400-e29b-41d4-a716-446655440001")

# Yangjae store, Seoul
STORE_S1 = Store(id="S1", name="Costco Yangjae", latitude=37.4633, longitude=127.0436)


class FakeClock:
    def __init__(self, start: datetime = datetime(2026, 10, 18, 9, 0, tzinfo=timezone.utc)):
        self.now = start

    def __call__(self) -> datetime:
        return self.now

    def advance(self, **kwargs) -> None:
        self.now += timedelta(**kwargs)


class FakeClassifier:
    """Answers from a script instead of calling the vision model."""

    def __init__(self, valid: bool = True, reason: str = None):
        self.valid = valid
        self.reason = reason
        self.unavailable = False
        self.readings: dict[bytes, PriceTagReading] = {}
        self.errors: dict[bytes, Exception] = {}
        self.verify_calls = 0
        self.extract_calls = 0

    def verify_image(self, image: bytes) -> ImageCheck:
        self.verify_calls += 1
        if image in self.errors:
            raise self.errors[image]
        if self.unavailable:
            raise ClassifierUnavailable("Image classifier is not configured")
        return ImageCheck(is_valid=self.valid, confidence=90 if self.valid else 10, reason=self.reason)

    def extract(self, image: bytes) -> PriceTagReading:
        self.extract_calls += 1
        if image in self.errors:
            raise self.errors[image]
        return self.readings.get(image, PriceTagReading())


class BrokenStorage(ImageStorage):
    def __init__(self):
        super().__init__("/nonexistent")

    def upload(self, key, data, content_type="image/jpeg"):
        raise StorageUploadFailed("Bucket unreachable")


def tag_bytes(label: str) -> bytes:
    """Bytes that sniff as a JPEG and differ per label."""
    return b"\xff\xd8\xff\xe0" + label.encode("utf-8")


def tag_image(label: str) -> str:
    return base64.b64encode(tag_bytes(label)).decode("ascii")


@pytest.fixture()
def clock():
    return FakeClock()


@pytest.fixture()
def classifier():
    return FakeClassifier()


@pytest.fixture()
def observations(clock):
    return PriceObservationStore(clock=clock)


@pytest.fixture()
def stores():
    return StoreDirectory([STORE_S1])


@pytest.fixture()
def settings(tmp_path):
    return Settings(
        STORAGE_DIRECTORY=str(tmp_path / "price-tags"),
        QUEUE_ITEM_DELAY_SECONDS=0,
        RUN_STATE_DIRECTORY=None,
        GROQ_API_KEY=None,
    )


@pytest.fixture()
def services(settings, classifier, observations, stores):
    return build_container(settings, classifier=classifier, observations=observations, stores=stores)
