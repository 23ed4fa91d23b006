import base64
import gzip
import json

from .config import COMPRESS_THRESHOLD
from .json_encoder import dumps


def encode_payload(value, compress_threshold: int = COMPRESS_THRESHOLD) -> tuple[str, bool]:
    """Serialize a cache value, gzip-wrapping it when it grows past the threshold.

    Returns the string to store and whether it was compressed.
    """
    payload = dumps(value)
    raw = payload.encode()
    if len(raw) <= compress_threshold:
        return payload, False
    compressed = gzip.compress(raw)
    return json.dumps({"_compressed": True, "data": base64.b64encode(compressed).decode()}), True


def decode_payload(stored: str | bytes | None):
    """Inverse of encode_payload. None stays None."""
    if stored is None:
        return None
    data = json.loads(stored)
    if isinstance(data, dict) and data.get("_compressed"):
        return json.loads(gzip.decompress(base64.b64decode(data["data"])).decode())
    return data
