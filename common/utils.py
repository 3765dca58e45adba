"""
utils.py - Common Utility Functions
"""

import time
import os
import uuid
import json
import logging

logger = logging.getLogger(__name__)


def current_timestamp_ms() -> int:
    return int(time.time() * 1000)


def random_bytes(n: int) -> bytes:
    """Cryptographically secure random bytes from the OS entropy pool."""
    return os.urandom(n)


def generate_id() -> str:
    return str(uuid.uuid4())


def pretty_json(obj) -> str:
    return json.dumps(obj, indent=2, default=str)


def canonical_json(obj) -> str:
    """Stable encoding: sorted keys, no insignificant whitespace."""
    return json.dumps(obj, sort_keys=True, separators=(",", ":"), ensure_ascii=False)


def mask_sensitive(data: dict, keys=("proof", "password", "password_hash", "token")) -> dict:
    """
    Return a copy of *data* with sensitive fields replaced by a placeholder.
    Useful for safe logging.
    """
    masked = {}
    for k, v in data.items():
        if k in keys:
            masked[k] = f"<{k}: {len(str(v))} chars>"
        elif isinstance(v, dict):
            masked[k] = mask_sensitive(v, keys)
        else:
            masked[k] = v
    return masked


def ensure_dir(path: str):
    if path:
        os.makedirs(path, exist_ok=True)
