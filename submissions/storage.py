"""Filesystem storage for price tag photos.

Objects are written under ``base_dir`` using the caller's key
(``<product_id>/price-<timestamp>-<suffix>.<ext>``) and served from
``public_base_url``. Any failure surfaces as ``StorageUploadFailed`` so
the submission queue can fail the current item and move on.
"""

import logging
from pathlib import Path

from .errors import StorageUploadFailed

logger = logging.getLogger(__name__)

_EXTENSIONS = {
    "image/jpeg": "jpg",
    "image/png": "png",
    "image/webp": "webp",
    "image/gif": "gif",
}


def extension_for(content_type: str) -> str:
    return _EXTENSIONS.get(content_type, "jpg")


class ImageStorage:
    def __init__(self, base_dir: str, public_base_url: str = "/static/price-tags"):
        self.base_dir = Path(base_dir)
        self.public_base_url = public_base_url.rstrip("/")

    def _normalise_key(self, key: str) -> str:
        keepchars = {"-", "_", ".", "/"}
        parts = ["".join(c for c in part if c.isalnum() or c in keepchars) for part in key.split("/")]
        return "/".join(p for p in parts if p and p not in (".", ".."))

    def upload(self, key: str, data: bytes, content_type: str = "image/jpeg") -> str:
        safe_key = self._normalise_key(key)
        if not safe_key:
            raise StorageUploadFailed(f"Invalid storage key {key!r}")

        path = self.base_dir / safe_key
        try:
            path.parent.mkdir(parents=True, exist_ok=True)
            path.write_bytes(data)
        except OSError as e:
            logger.error("Upload of %s failed: %s", safe_key, e)
            raise StorageUploadFailed(f"Image upload failed: {e}") from e

        logger.debug("Stored %d bytes (%s) at %s", len(data), content_type, path)
        return f"{self.public_base_url}/{safe_key}"
