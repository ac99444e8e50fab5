"""Deterministic ID helpers.

Alert IDs are content-derived so that re-running an analysis over the
same inputs yields the same IDs, which is what lets persisted and
freshly computed alerts be compared.
"""

from __future__ import annotations

import hashlib
import json
from typing import Any


def content_hash(*parts: str, length: int = 16) -> str:
    """Generate a deterministic SHA256-based ID from content strings.

    Concatenates all *parts* with ``':'`` before hashing.
    """
    raw = ":".join(parts)
    return hashlib.sha256(raw.encode()).hexdigest()[:length]


def payload_hash(payload: dict[str, Any], *, length: int = 16) -> str:
    """Generate a deterministic hash from a JSON-serializable dict."""
    raw = json.dumps(payload, sort_keys=True, default=str)
    return hashlib.sha256(raw.encode()).hexdigest()[:length]
