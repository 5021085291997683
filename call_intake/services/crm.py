"""External CRM forwarding (savecontact endpoint).

Best-effort: the caller record is already committed by the time this
runs, so failures are logged and reported as False, never raised.
"""

import logging
from typing import Any

import httpx

from call_intake.core.config import settings
from call_intake.core.exceptions import ForwardingError
from call_intake.models.caller import SENTINELS

logger = logging.getLogger(__name__)

# internal Caller attribute -> external API field
FIELD_MAP: dict[str, str] = {
    "contact_num": "contact_num",
    "contact_name": "contact_name",
    "contact_status": "contact_status",
    "contact_followuptime": "contact_followuptime",
    "contact_followupdate": "contact_followupdate",
    "user_type": "user_type",
    "city": "city",
    "state": "state",
    "call_status": "call_status",
    "lead_status": "lead_status",
    "remark": "remark",
}


def sanitize(value: Any) -> str:
    """Placeholder values go to the CRM as empty strings."""
    if value is None:
        return ""
    value = str(value)
    return "" if value in SENTINELS else value


def build_payload(record: Any, authcode: str) -> dict[str, str]:
    """Map a Caller (or any object with the same attributes) to the CRM contract."""
    payload = {"authcode": authcode}
    for attr, field in FIELD_MAP.items():
        payload[field] = sanitize(getattr(record, attr, None))
    return payload


class CrmForwarder:
    def __init__(
        self,
        url: str,
        authcode: str = "",
        body_format: str = "json",
        timeout: float = 30.0,
        transport: httpx.AsyncBaseTransport | None = None,
    ):
        self.url = url
        self.authcode = authcode
        self.body_format = body_format
        self.timeout = timeout
        self._transport = transport

    @classmethod
    def from_settings(cls) -> "CrmForwarder":
        return cls(
            url=settings.CRM_URL,
            authcode=settings.EXTERNAL_CRM_AUTHCODE,
            body_format=settings.CRM_BODY_FORMAT,
            timeout=settings.HTTP_TIMEOUT_SECONDS,
        )

    async def send(self, record: Any) -> bool:
        """Forward one caller record. Returns True on a 2xx response."""
        if not self.authcode:
            logger.error("EXTERNAL_CRM_AUTHCODE is not set, skipping CRM send for %s",
                         getattr(record, "contact_num", "?"))
            return False

        payload = build_payload(record, self.authcode)
        try:
            body = await self._post(payload)
        except (ForwardingError, httpx.HTTPError) as e:
            logger.error("Error sending %s to external CRM: %s", payload["contact_num"], e)
            return False

        logger.info("Sent %s to external CRM. Response: %s", payload["contact_num"], body[:200])
        return True

    async def _post(self, payload: dict[str, str]) -> str:
        async with httpx.AsyncClient(timeout=self.timeout, transport=self._transport) as client:
            if self.body_format == "form":
                # multipart/form-data, one part per field
                files = {k: (None, v.encode("utf-8")) for k, v in payload.items()}
                response = await client.post(self.url, files=files)
            else:
                response = await client.post(self.url, json=payload)

        if not response.is_success:
            raise ForwardingError(
                f"CRM request failed with status {response.status_code} and body: {response.text[:200]}"
            )
        return response.text
