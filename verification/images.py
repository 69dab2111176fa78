import base64
import binascii
import hashlib
from typing import Optional

_SIGNATURES = (
    (b"\xff\xd8\xff", "image/jpeg"),
    (b"\x89PNG\r\n\x1a\n", "image/png"),
    (b"GIF87a", "image/gif"),
    (b"GIF89a", "image/gif"),
)


class InvalidImageData(ValueError):
    pass


def decode_image(image_base64: str) -> bytes:
    """Decode raw base64 or a ``data:image/...;base64,`` URL into bytes."""
    data = image_base64.strip()
    if data.startswith("data:"):
        _, _, data = data.partition(",")
    try:
        decoded = base64.b64decode(data, validate=True)
    except (binascii.Error, ValueError) as e:
        raise InvalidImageData(f"Image is not valid base64: {e}") from e
    if not decoded:
        raise InvalidImageData("Image is empty")
    return decoded


def sniff_content_type(data: bytes) -> Optional[str]:
    for signature, content_type in _SIGNATURES:
        if data.startswith(signature):
            return content_type
    if data[:4] == b"RIFF" and data[8:12] == b"WEBP":
        return "image/webp"
    return None


def to_data_url(data: bytes) -> str:
    content_type = sniff_content_type(data) or "image/jpeg"
    return f"data:{content_type};base64,{base64.b64encode(data).decode('ascii')}"


def content_hash(data: bytes) -> str:
    return hashlib.sha256(data).hexdigest()
