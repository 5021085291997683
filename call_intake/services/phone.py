"""Caller phone-number resolution for voice-platform events."""

from typing import Any

SIP_SCHEME = "sip:"


def as_dict(value: Any) -> dict:
    """Treat anything that isn't a JSON object as an empty one."""
    return value if isinstance(value, dict) else {}


def normalize_sip_uri(value: str) -> str:
    """Strip a ``sip:`` scheme and ``@host`` suffix, keeping the user part.

    Plain numbers are returned unchanged.
    """
    if not value.startswith(SIP_SCHEME):
        return value
    user_part = value[len(SIP_SCHEME):]
    return user_part.split("@", 1)[0]


def get_phone_number(message: dict) -> str | None:
    """Return the caller's normalized number, or None if the event has none.

    Candidates are tried in order: customer SIP URI, call customer number,
    call customer SIP URI, customer number.
    """
    customer = as_dict(message.get("customer"))
    call_customer = as_dict(as_dict(message.get("call")).get("customer"))

    candidates = (
        customer.get("sipUri"),
        call_customer.get("number"),
        call_customer.get("sipUri"),
        customer.get("number"),
    )
    for candidate in candidates:
        if candidate and isinstance(candidate, str):
            return normalize_sip_uri(candidate.strip())
    return None
