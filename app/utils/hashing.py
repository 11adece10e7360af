import hashlib
import json
from typing import Any


def payload_to_dict(payload: Any) -> dict:
    if hasattr(payload, "model_dump"):
        return payload.model_dump(exclude_unset=True)
    if isinstance(payload, dict):
        return payload
    return {}


def payload_hash(payload: Any) -> str:
    s = json.dumps(payload_to_dict(payload), sort_keys=True, default=str)
    return hashlib.sha256(s.encode()).hexdigest()
