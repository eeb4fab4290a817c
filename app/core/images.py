import base64
import binascii
from typing import Tuple

from app.core.exceptions import InputValidationError

_DEFAULT_CONTENT_TYPE = "image/jpeg"


def decode_image(data: str, field: str = "image") -> Tuple[bytes, str]:
    """Decode a bare base64 string or a data URI into (bytes, content_type)."""
    if not data:
        raise InputValidationError(f"{field} is required")
    content_type = _DEFAULT_CONTENT_TYPE
    payload = data
    if ";base64," in data:
        header, payload = data.split(";base64,", 1)
        if header.startswith("data:") and len(header) > 5:
            content_type = header[5:]
    try:
        raw = base64.b64decode(payload, validate=False)
    except (binascii.Error, ValueError):
        raise InputValidationError(f"{field} is not valid base64")
    if not raw:
        raise InputValidationError(f"{field} is empty or invalid")
    return raw, content_type


def extension_for(content_type: str) -> str:
    return {
        "image/png": "png",
        "image/webp": "webp",
        "image/gif": "gif",
    }.get(content_type, "jpg")
