import threading
from datetime import datetime, timezone
from pathlib import Path
from typing import Callable, Optional
from uuid import UUID, uuid4

from pydantic import TypeAdapter

from .models import PriceObservation, Store


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


class PriceObservationStore:
    """Recorded price reports, the history the duplicate check reads from."""

    def __init__(self, clock: Callable[[], datetime] = utcnow):
        self.clock = clock
        self.observations: dict[UUID, dict] = {}
        self._lock = threading.Lock()

    def record(
        self,
        account_id: UUID,
        product_id: str,
        store_id: str,
        price: int,
        original_price: Optional[int] = None,
        discount_period: Optional[str] = None,
        image_url: Optional[str] = None,
    ) -> PriceObservation:
        selling_price = original_price if original_price else price
        data = {
            "id": uuid4(),
            "account_id": account_id,
            "product_id": product_id,
            "store_id": store_id,
            "price": price,
            "original_price": selling_price,
            "discount_amount": selling_price - price if selling_price > price else None,
            "discount_period": discount_period,
            "image_url": image_url,
            "recorded_at": self.clock(),
        }
        with self._lock:
            self.observations[data["id"]] = data
        return PriceObservation(**data)

    def get(self, observation_id: UUID) -> Optional[PriceObservation]:
        data = self.observations.get(observation_id)
        return PriceObservation(**data) if data else None

    def recent(self, product_id: str, store_id: str, since: datetime, limit: int = 5) -> list[PriceObservation]:
        """Observations for one product at one store recorded at or after ``since``, newest first."""
        with self._lock:
            rows = [
                o for o in self.observations.values()
                if o["product_id"] == product_id and o["store_id"] == store_id and o["recorded_at"] >= since
            ]
        rows.sort(key=lambda o: o["recorded_at"], reverse=True)
        return [PriceObservation(**o) for o in rows[:limit]]


class StoreDirectory:
    def __init__(self, stores: Optional[list[Store]] = None):
        self.stores: dict[str, Store] = {s.id: s for s in stores or []}

    @classmethod
    def from_file(cls, path: str) -> "StoreDirectory":
        """Load a JSON list of stores, e.g. ``[{"id": "S1", "name": "...", "latitude": 37.46, "longitude": 127.04}]``."""
        stores = TypeAdapter(list[Store]).validate_json(Path(path).read_bytes())
        return cls(stores)

    def add(self, store: Store) -> None:
        self.stores[store.id] = store

    def get(self, store_id: str) -> Optional[Store]:
        return self.stores.get(store_id)
