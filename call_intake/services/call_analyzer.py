"""
LLM-based call analysis.

Sends the call summary and transcript to Gemini with a fixed prompt and
reads back call status, lead status, a short remark and the follow-up
schedule. The call never fails the pipeline: any error turns into the
default analysis, whose lead status is the "Uncertain" sentinel.
"""

import json
import logging
from datetime import date

import httpx
from pydantic import ValidationError

from call_intake.core.config import settings
from call_intake.core.exceptions import (
    OracleEnvelopeError,
    OracleError,
    OracleHTTPError,
    OraclePayloadError,
)
from call_intake.models.caller import (
    CALL_STATUS_VALUES,
    LEAD_STATUS_VALUES,
    NOT_AVAILABLE,
    UNCERTAIN,
    CallStatus,
)
from call_intake.schemas.caller import CallAnalysis

logger = logging.getLogger(__name__)

REMARK_MAX_LENGTH = 100


def _quoted(values: list[str]) -> str:
    return ", ".join(f'"{v}"' for v in values)


def build_prompt(summary: str, transcript: str, company: str, today: date) -> str:
    """The instruction prompt; the keys listed here are the CallAnalysis aliases."""
    return f"""Analyze the following phone call summary and transcript for "{company}".
Your response MUST be a valid JSON object with ONLY the following keys. Adhere strictly to the provided values.
1. "Call Status": Choose ONE: {_quoted(CALL_STATUS_VALUES)}
2. "Lead Status": Choose ONE: {_quoted(LEAD_STATUS_VALUES)}
3. "contact_status": This should be the SAME as the "Lead Status".
4. "remark": One sentence describing the outcome of the call, at most {REMARK_MAX_LENGTH} characters.
5. "contact_followupdate": Analyze phrases like 'call me in 2 days'. Today's date is {today.isoformat()}. Provide date in "YYYY-MM-DD" format or "{NOT_AVAILABLE}".
6. "contact_followuptime": Analyze phrases like 'in the evening', 'around 2 pm', 'tomorrow morning'. Provide a specific time like "2:00 PM" or a general time like "Morning", "Evening". If not mentioned, use "{NOT_AVAILABLE}".
Summary: "{summary}"
Transcript: "{transcript}"
"""


def default_analysis(reason: str) -> CallAnalysis:
    """Fallback record used whenever the oracle can't be trusted."""
    return CallAnalysis(
        call_status=CallStatus.CONNECTED_IB.value,
        lead_status=UNCERTAIN,
        contact_status=UNCERTAIN,
        remark=f"Analysis failed: {reason}"[:REMARK_MAX_LENGTH],
        contact_followupdate=NOT_AVAILABLE,
        contact_followuptime=NOT_AVAILABLE,
    )


class CallAnalyzer:
    def __init__(
        self,
        api_key: str,
        model: str = "gemini-2.5-flash",
        base_url: str = "https://generativelanguage.googleapis.com/v1beta",
        company: str = "Justauto Solution Pvt. Ltd.",
        timeout: float = 30.0,
        transport: httpx.AsyncBaseTransport | None = None,
    ):
        self.api_key = api_key
        self.model = model
        self.base_url = base_url.rstrip("/")
        self.company = company
        self.timeout = timeout
        self._transport = transport

    @classmethod
    def from_settings(cls) -> "CallAnalyzer":
        return cls(
            api_key=settings.GEMINI_API_KEY,
            model=settings.GEMINI_MODEL,
            base_url=settings.GEMINI_BASE_URL,
            company=settings.COMPANY_NAME,
            timeout=settings.HTTP_TIMEOUT_SECONDS,
        )

    @property
    def url(self) -> str:
        return f"{self.base_url}/models/{self.model}:generateContent"

    async def analyze(self, summary: str, transcript: str, today: date | None = None) -> CallAnalysis:
        """Classify one call. Never raises."""
        prompt = build_prompt(summary, transcript, self.company, today or date.today())
        try:
            response = await self._request(prompt)
            text = self._decode_envelope(response)
            analysis = self._decode_payload(text)
        except OracleError as e:
            logger.error("Gemini analysis error: %s", e)
            return default_analysis(str(e))
        except httpx.HTTPError as e:
            logger.error("Gemini request failed: %s", e)
            return default_analysis(f"{type(e).__name__}: {e}")

        self._warn_off_list(analysis)
        logger.info(
            "Gemini analysis succeeded: call_status=%s lead_status=%s",
            analysis.call_status,
            analysis.lead_status,
        )
        return analysis

    async def _request(self, prompt: str) -> httpx.Response:
        payload = {
            "contents": [{"parts": [{"text": prompt}]}],
            "generationConfig": {"responseMimeType": "application/json"},
        }
        async with httpx.AsyncClient(timeout=self.timeout, transport=self._transport) as client:
            response = await client.post(self.url, params={"key": self.api_key}, json=payload)

        if response.status_code != 200:
            raise OracleHTTPError(response.status_code, response.text)
        return response

    @staticmethod
    def _decode_envelope(response: httpx.Response) -> str:
        """Stage one: the transport envelope, down to the generated text."""
        try:
            data = response.json()
        except ValueError as e:
            raise OracleEnvelopeError(f"response body is not JSON: {e}") from e
        try:
            text = data["candidates"][0]["content"]["parts"][0]["text"]
        except (KeyError, IndexError, TypeError) as e:
            raise OracleEnvelopeError(f"no generated text in response: {e!r}") from e
        if not isinstance(text, str):
            raise OracleEnvelopeError("generated text is not a string")
        return text

    @staticmethod
    def _decode_payload(text: str) -> CallAnalysis:
        """Stage two: the generated text itself, as the analysis JSON."""
        try:
            data = json.loads(text)
        except ValueError as e:
            raise OraclePayloadError(f"generated text is not JSON: {e}") from e
        if not isinstance(data, dict):
            raise OraclePayloadError("generated JSON is not an object")
        try:
            return CallAnalysis.model_validate(data)
        except ValidationError as e:
            raise OraclePayloadError(f"generated JSON does not match schema: {e.error_count()} error(s)") from e

    @staticmethod
    def _warn_off_list(analysis: CallAnalysis) -> None:
        if analysis.call_status not in CALL_STATUS_VALUES:
            logger.warning("Gemini returned unknown call status: %r", analysis.call_status)
        if analysis.lead_status not in LEAD_STATUS_VALUES:
            logger.warning("Gemini returned unknown lead status: %r", analysis.lead_status)
