"""AdOrchestrator — Conversion Event → Google Ads click-conversion payload."""

from datetime import datetime, timezone
from typing import Any, Dict, List

from adorchestrator.models.conversion_models import ConversionEvent


def build_conversion_action_name(customer_id: str, conversion_action_id: str) -> str:
    return f"customers/{customer_id}/conversionActions/{conversion_action_id}"


def format_google_datetime(value: datetime) -> str:
    """Google Ads wants ``yyyy-mm-dd hh:mm:ss+|-hh:mm``; we always send UTC."""
    if value.tzinfo is None:
        value = value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc).strftime("%Y-%m-%d %H:%M:%S+00:00")


def convert_to_google_format(
    event: ConversionEvent, conversion_action_name: str
) -> Dict[str, Any]:
    """One ``ClickConversion`` with Enhanced Conversions user identifiers."""
    upload: Dict[str, Any] = {
        "conversionAction": conversion_action_name,
        "conversionDateTime": format_google_datetime(event.event_time),
    }

    if event.event_value is not None:
        upload["conversionValue"] = event.event_value
        upload["currencyCode"] = event.currency

    if event.transaction_id:
        upload["orderId"] = event.transaction_id

    identifiers: List[Dict[str, Any]] = []
    if event.user_email_hash:
        identifiers.append({"hashedEmail": event.user_email_hash})
    if event.user_phone_hash:
        identifiers.append({"hashedPhoneNumber": event.user_phone_hash})
    if event.user_first_name_hash or event.user_last_name_hash:
        address = {}
        if event.user_first_name_hash:
            address["hashedFirstName"] = event.user_first_name_hash
        if event.user_last_name_hash:
            address["hashedLastName"] = event.user_last_name_hash
        identifiers.append({"addressInfo": address})

    if identifiers:
        upload["userIdentifiers"] = identifiers

    return upload
