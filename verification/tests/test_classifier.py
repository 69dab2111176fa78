"""
Unit Tests for the Groq price tag classifier.

The Groq client is replaced with a stub so no network calls are made.
"""

from types import SimpleNamespace

import httpx
import pytest
from groq import APIConnectionError, APITimeoutError

from conftest import tag_bytes
from verification.classifier import (
    ClassifierTimeout,
    ClassifierUnavailable,
    PriceTagClassifier,
)

GROQ_REQUEST = httpx.Request("POST", "https://api.groq.com/openai/v1/chat/completions")


class StubCompletions:
    def __init__(self, content=None, error=None):
        self.content = content
        self.error = error
        self.calls = []

    def create(self, **kwargs):
        self.calls.append(kwargs)
        if self.error:
            raise self.error
        message = SimpleNamespace(content=self.content)
        return SimpleNamespace(choices=[SimpleNamespace(message=message)])


def make_classifier(content=None, error=None) -> tuple[PriceTagClassifier, StubCompletions]:
    classifier = PriceTagClassifier(api_key=None, min_confidence=50)
    completions = StubCompletions(content, error)
    classifier.client = SimpleNamespace(chat=SimpleNamespace(completions=completions))
    return classifier, completions


class TestVerifyImage:
    def test_valid_verdict(self):
        classifier, completions = make_classifier('{"isValid": true, "confidence": 92, "reason": "ok"}')

        check = classifier.verify_image(tag_bytes("tag"))

        assert check.is_valid is True
        assert check.confidence == 92
        image_part = completions.calls[0]["messages"][1]["content"][1]
        assert image_part["image_url"]["url"].startswith("data:image/jpeg;base64,")

    def test_low_confidence_is_invalid(self):
        classifier, _ = make_classifier('{"isValid": true, "confidence": 30, "reason": "blurry"}')

        check = classifier.verify_image(tag_bytes("tag"))

        assert check.is_valid is False
        assert check.reason == "blurry"

    def test_verdict_inside_markdown_fence(self):
        classifier, _ = make_classifier('```json\n{"isValid": false, "confidence": 95, "reason": "screenshot"}\n```')

        check = classifier.verify_image(tag_bytes("tag"))

        assert check.is_valid is False
        assert check.reason == "screenshot"

    def test_unparseable_verdict_is_unavailable(self):
        classifier, _ = make_classifier("I cannot tell.")

        with pytest.raises(ClassifierUnavailable):
            classifier.verify_image(tag_bytes("tag"))

    def test_missing_api_key_is_unavailable(self):
        classifier = PriceTagClassifier(api_key=None)

        assert classifier.is_available is False
        with pytest.raises(ClassifierUnavailable):
            classifier.verify_image(tag_bytes("tag"))

    def test_api_error_is_unavailable(self):
        classifier, _ = make_classifier(error=APIConnectionError(request=GROQ_REQUEST))

        with pytest.raises(ClassifierUnavailable):
            classifier.verify_image(tag_bytes("tag"))

    def test_timeout_is_distinct(self):
        classifier, _ = make_classifier(error=APITimeoutError(request=GROQ_REQUEST))

        with pytest.raises(ClassifierTimeout):
            classifier.verify_image(tag_bytes("tag"))


class TestExtract:
    def test_reads_fields_and_normalises_prices(self):
        classifier, _ = make_classifier(
            '{"productId": "1234567", "productName": "SWISS MISS 780G", '
            '"currentPrice": "15,990", "originalPrice": "18990", "discountPeriod": "10/01 - 10/15"}'
        )

        reading = classifier.extract(tag_bytes("tag"))

        assert reading.product_id == "1234567"
        assert reading.product_name == "SWISS MISS 780G"
        assert reading.current_price == 15990
        assert reading.original_price == 18990
        assert reading.discount_period == "10/01 - 10/15"

    def test_nulls_and_garbage_become_none(self):
        classifier, _ = make_classifier('{"productId": "null", "productName": null, "currentPrice": "n/a"}')

        reading = classifier.extract(tag_bytes("tag"))

        assert reading.product_id is None
        assert reading.product_name is None
        assert reading.current_price is None

    def test_unparseable_output_is_empty_reading(self):
        classifier, _ = make_classifier("no json here")

        reading = classifier.extract(tag_bytes("tag"))

        assert reading.product_id is None
