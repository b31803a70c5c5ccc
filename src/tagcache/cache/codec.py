"""
tagcache - Value Codec

Values are stored as compact JSON text. Anything JSON cannot encode is handed
to the store unmodified, and anything that does not decode as JSON is returned
as the raw stored text, so structured and legacy raw values read back uniformly.
"""

import json
import logging
from typing import Any

logger = logging.getLogger(__name__)


def encode(value: Any) -> Any:
    """Encode a value for storage, falling back to the raw value."""
    try:
        return json.dumps(value, ensure_ascii=False, separators=(",", ":"))
    except (TypeError, ValueError) as e:
        logger.debug(
            f"Value is not JSON serializable, storing raw: {e}",
            extra={"value_type": type(value).__name__, "error": str(e)},
        )
        return value


def decode(data: str | bytes | None) -> Any | None:
    """Decode a stored value. Returns None if data is None."""
    if data is None:
        return None
    if isinstance(data, bytes):
        try:
            data = data.decode("utf-8")
        except UnicodeDecodeError:
            return data
    try:
        return json.loads(data)
    except (TypeError, ValueError):
        # Legacy or raw payload
        return data
