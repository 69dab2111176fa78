from datetime import datetime
from typing import Optional
from uuid import UUID
from pydantic import BaseModel, Field, ConfigDict


class PriceSubmission(BaseModel):
    account_id: UUID
    product_id: str = Field(..., min_length=1)
    store_id: str = Field(..., min_length=1)
    price: int = Field(..., ge=0, description="Observed selling price in won")
    original_price: Optional[int] = Field(default=None, ge=0)
    discount_period: Optional[str] = None
    image_base64: Optional[str] = Field(default=None, description="Photo of the price tag, raw base64 or a data: URL")
    latitude: Optional[float] = None
    longitude: Optional[float] = None

    model_config = ConfigDict(json_schema_extra={
        "example": {
            "account_id": "550e8400-e29b-41d4-a716-446655440000",
            "product_id": "1234567",
            "store_id": "S1",
            "price": 9990,
            "latitude": 37.5386,
            "longitude": 127.0005
        }
    })

    @property
    def has_location(self) -> bool:
        return self.latitude is not None and self.longitude is not None


class PriceTagReading(BaseModel):
    product_id: Optional[str] = None
    product_name: Optional[str] = None
    current_price: Optional[int] = None
    original_price: Optional[int] = None
    discount_period: Optional[str] = None


class ImageCheck(BaseModel):
    is_valid: bool
    confidence: int = 0
    reason: Optional[str] = None


class VerificationResult(BaseModel):
    is_valid_image: bool = True
    image_validation_message: Optional[str] = None
    is_duplicate: bool = False
    duplicate_message: Optional[str] = None
    award_points: bool = True
    points_to_award: int = 0
    location_warning: Optional[str] = None
    distance_km: Optional[float] = None
    requires_review: bool = False

    @property
    def notices(self) -> list[str]:
        return [m for m in (self.duplicate_message, self.location_warning) if m]


class PriceObservation(BaseModel):
    id: UUID
    account_id: UUID
    product_id: str
    store_id: str
    price: int
    original_price: int
    discount_amount: Optional[int] = None
    discount_period: Optional[str] = None
    image_url: Optional[str] = None
    recorded_at: datetime

    model_config = ConfigDict(from_attributes=True)


class Store(BaseModel):
    id: str
    name: str
    latitude: Optional[float] = None
    longitude: Optional[float] = None

    @property
    def has_location(self) -> bool:
        return self.latitude is not None and self.longitude is not None
