import json
import logging
import re
from typing import Optional

from groq import Groq, APIError, APITimeoutError

from .images import to_data_url
from .models import ImageCheck, PriceTagReading

logger = logging.getLogger(__name__)

EXTRACT_PROMPT = """You are an OCR specialist for Korean Costco price tags.
Extract the following information from the image:
1. Product ID (7-digit number, usually at the top or bottom of the tag)
2. Product Name (the MAIN name in the largest font, including weight or count such as 600g, 1.5L, 48 ct; ignore small secondary English text)
3. Current Price (the main selling price)
4. Original Price (the crossed-out or smaller price when discounted)
5. Discount Period (date range if visible, format MM/DD - MM/DD)

Respond ONLY with valid JSON using exactly these keys:
{"productId": "string or null", "productName": "string or null", "currentPrice": "number as string or null", "originalPrice": "number as string or null", "discountPeriod": "string or null"}

Prices are numeric only, without commas or currency symbols. Use null for anything you cannot read."""

VERIFY_PROMPT = """You are a fraud detection specialist for a Costco price tracking app.
Decide whether the uploaded image is an authentic Korean Costco price tag.

A valid tag usually has a 7-digit product number, a Korean product name, a price in won (e.g. 15,990) and the standard Costco tag layout.

Mark it INVALID if it is clearly not a price tag, comes from another store, is too blurry to read, or looks edited.
Mark it VALID if it looks authentic, even when only partially visible.

Respond ONLY with valid JSON:
{"isValid": true or false, "confidence": 0-100, "reason": "short explanation"}"""


class ClassifierError(Exception):
    pass


class ClassifierUnavailable(ClassifierError):
    pass


class ClassifierTimeout(ClassifierError):
    pass


class PriceTagClassifier:
    def __init__(
        self,
        api_key: Optional[str] = None,
        model: str = "meta-llama/llama-4-scout-17b-16e-instruct",
        timeout: float = 30.0,
        max_retries: int = 1,
        min_confidence: int = 50,
    ):
        self.api_key = api_key
        self.model = model
        self.min_confidence = min_confidence
        self.client = None

        if self.api_key:
            self.client = Groq(api_key=self.api_key, timeout=timeout, max_retries=max_retries)

    @property
    def is_available(self) -> bool:
        return self.client is not None

    def extract(self, image: bytes) -> PriceTagReading:
        """Read product id, name, prices and discount period off a tag photo.

        Fields the model could not read come back as None.
        """
        data = self._extract_json(self._complete(EXTRACT_PROMPT, "Extract the product details from this price tag.", image))
        return PriceTagReading(
            product_id=_clean_str(data.get("productId")),
            product_name=_clean_str(data.get("productName")),
            current_price=_parse_price(data.get("currentPrice")),
            original_price=_parse_price(data.get("originalPrice")),
            discount_period=_clean_str(data.get("discountPeriod")),
        )

    def verify_image(self, image: bytes) -> ImageCheck:
        data = self._extract_json(self._complete(VERIFY_PROMPT, "Is this a valid Costco price tag?", image))
        if "isValid" not in data:
            raise ClassifierUnavailable("Classifier returned no verdict")

        try:
            confidence = int(data.get("confidence") or 0)
        except (TypeError, ValueError):
            confidence = 0

        is_valid = bool(data["isValid"]) and confidence >= self.min_confidence
        reason = _clean_str(data.get("reason"))
        if not is_valid and not reason:
            reason = "Image is not a valid price tag"
        logger.info("Image verification: valid=%s confidence=%d", is_valid, confidence)
        return ImageCheck(is_valid=is_valid, confidence=confidence, reason=reason)

    def _complete(self, system_prompt: str, instruction: str, image: bytes) -> str:
        if not self.client:
            raise ClassifierUnavailable("Image classifier is not configured (GROQ_API_KEY missing)")

        try:
            response = self.client.chat.completions.create(
                model=self.model,
                messages=[
                    {"role": "system", "content": system_prompt},
                    {"role": "user", "content": [
                        {"type": "text", "text": instruction},
                        {"type": "image_url", "image_url": {"url": to_data_url(image)}},
                    ]},
                ],
                temperature=0.1,
                max_tokens=512,
            )
        except APITimeoutError as e:
            logger.warning("Classifier timed out: %s", e)
            raise ClassifierTimeout(f"Image classifier timed out: {e}") from e
        except APIError as e:
            logger.error("Groq error: %s", e)
            raise ClassifierUnavailable(f"Image classifier failed: {e}") from e

        return response.choices[0].message.content or ""

    def _extract_json(self, text: str) -> dict:
        json_match = re.search(r'\{[\s\S]*\}', text)
        if json_match:
            try:
                return json.loads(json_match.group())
            except json.JSONDecodeError:
                logger.warning("Unparseable classifier output: %r", text[:200])
        return {}


def _clean_str(value) -> Optional[str]:
    if value is None:
        return None
    value = str(value).strip()
    if not value or value.lower() == "null":
        return None
    return value


def _parse_price(value) -> Optional[int]:
    if value is None:
        return None
    digits = re.sub(r"[^\d]", "", str(value))
    return int(digits) if digits else None
