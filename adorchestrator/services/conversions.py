"""AdOrchestrator — Conversion Event Preparation.

Normalizes and one-way hashes user identifiers (Enhanced Conversions
format: SHA-256 hex of the lower-cased, trimmed value) and assigns the
idempotency key used for deduplication on the ad platform.
"""

import hashlib
import re
import secrets
import time
import uuid
from datetime import datetime, timezone
from typing import Any, Dict, Optional

from pydantic import BaseModel

BASE36_ALPHABET = "0123456789abcdefghijklmnopqrstuvwxyz"


class ConversionEventInput(BaseModel):
    """Raw conversion payload as submitted by a client or tracking pixel."""

    event_name: Optional[str] = None
    event_id: Optional[str] = None
    event_time: Optional[datetime] = None
    user_email: Optional[str] = None
    user_phone: Optional[str] = None
    user_first_name: Optional[str] = None
    user_last_name: Optional[str] = None
    user_ip: Optional[str] = None
    user_agent: Optional[str] = None
    event_value: Optional[float] = None
    currency: Optional[str] = None
    transaction_id: Optional[str] = None
    custom_params: Optional[Dict[str, Any]] = None
    source: Optional[str] = None
    campaign_id: Optional[uuid.UUID] = None
    brand_id: Optional[uuid.UUID] = None


def hash_user_data(value: Optional[str]) -> Optional[str]:
    """SHA-256 of the lower-cased, trimmed value; None for empty input."""
    if not value:
        return None
    normalized = value.lower().strip()
    return hashlib.sha256(normalized.encode("utf-8")).hexdigest()


def normalize_phone(phone: str) -> str:
    """Normalize a phone number to E.164 (US assumed for 10 digits)."""
    digits = re.sub(r"\D", "", phone)
    if len(digits) == 10:
        return "+1" + digits
    return "+" + digits


def _to_base36(number: int) -> str:
    if number == 0:
        return "0"
    out = []
    while number:
        number, rem = divmod(number, 36)
        out.append(BASE36_ALPHABET[rem])
    return "".join(reversed(out))


def generate_event_id(prefix: str = "evt") -> str:
    """``<prefix>_<base36 epoch ms>_<6 hex chars>``, unique per call."""
    timestamp = _to_base36(int(time.time() * 1000))
    return f"{prefix}_{timestamp}_{secrets.token_hex(3)}"


def prepare_conversion_event(event: ConversionEventInput) -> Dict[str, Any]:
    """Map a raw payload to storable columns. Raw PII never leaves here."""
    return {
        "event_name": event.event_name,
        "event_id": event.event_id or None,
        "user_email_hash": hash_user_data(event.user_email),
        "user_phone_hash": (
            hash_user_data(normalize_phone(event.user_phone))
            if event.user_phone
            else None
        ),
        "user_first_name_hash": hash_user_data(event.user_first_name),
        "user_last_name_hash": hash_user_data(event.user_last_name),
        "user_ip": event.user_ip or None,
        "user_agent": event.user_agent or None,
        "event_value": event.event_value,
        "currency": event.currency or "USD",
        "transaction_id": event.transaction_id or None,
        "custom_params": event.custom_params or {},
        "source": event.source or None,
        "campaign_id": event.campaign_id or None,
        "brand_id": event.brand_id or None,
        "event_time": event.event_time or datetime.now(timezone.utc),
    }
