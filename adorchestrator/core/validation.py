"""AdOrchestrator — Boundary validation helpers."""

import re
import uuid

from fastapi import HTTPException

UUID_RE = re.compile(
    r"^[0-9a-f]{8}-[0-9a-f]{4}-[0-9a-f]{4}-[0-9a-f]{4}-[0-9a-f]{12}$", re.IGNORECASE
)


def is_valid_uuid(value: str) -> bool:
    """True for canonical hyphenated UUID strings (any version)."""
    return bool(UUID_RE.match(value or ""))


def parse_uuid(value: str, label: str) -> uuid.UUID:
    """Parse a UUID path/query value or fail with 400 ``Invalid <label> format``."""
    if not is_valid_uuid(value):
        raise HTTPException(status_code=400, detail=f"Invalid {label} format")
    return uuid.UUID(value)
