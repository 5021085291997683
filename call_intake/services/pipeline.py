"""Call-ingestion pipeline.

Handles one inbound voice-platform message:

    Received → Parsed → Identified → Analyzed → Persisted → Forwarded → Acknowledged

Empty or irrelevant input, and events without a caller number, are
acknowledged with a plain 200. Malformed JSON gets a 400. The only 500
is a failed write to the callers table; analysis and CRM failures are
absorbed so the platform never retries a call we already have.
"""

import enum
import json
import logging
from dataclasses import dataclass
from typing import Any

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from call_intake.core.exceptions import PersistenceError
from call_intake.services.call_analyzer import CallAnalyzer
from call_intake.services.caller_info import extract_caller_info
from call_intake.services.callers import CallerRepository
from call_intake.services.crm import CrmForwarder
from call_intake.services.phone import as_dict, get_phone_number

logger = logging.getLogger(__name__)

END_OF_CALL_REPORT = "end-of-call-report"
TOOL_CALL = "tool-call"
DATABASE_CHECK_TOOL = "databasecheck"

NEW_CALLER = "New caller"
EXISTING_CALLER = "Existing caller"
NO_SUMMARY = "No summary available."
PREVIOUS_CALL_ON_RECORD = "Previous call on record."
DATABASE_CHECK_ERROR = "Error checking database"
INVALID_JSON = "Invalid JSON"


class PipelineState(str, enum.Enum):
    RECEIVED = "received"
    PARSED = "parsed"
    IDENTIFIED = "identified"
    ANALYZED = "analyzed"
    PERSISTED = "persisted"
    FORWARDED = "forwarded"
    ACKNOWLEDGED = "acknowledged"
    FAILED = "failed"


@dataclass
class PipelineOutcome:
    """HTTP-level result: body is None (empty), str (plain text) or dict (JSON)."""
    status_code: int = 200
    body: str | dict | None = None


def acknowledged() -> PipelineOutcome:
    return PipelineOutcome(200)


def parse_body(body: bytes | str | dict | None) -> Any:
    """Decode a raw or pre-parsed body. Returns None for an empty body.

    Raises ValueError for anything that isn't JSON.
    """
    if body is None:
        return None
    if isinstance(body, dict):
        return body
    if isinstance(body, bytes):
        body = body.decode("utf-8")
    if not body.strip():
        return None
    return json.loads(body)


def get_message(payload: Any) -> dict | None:
    """Nested events wrap everything in "message"; legacy ones don't."""
    if not isinstance(payload, dict):
        return None
    message = payload.get("message")
    if isinstance(message, dict):
        return message
    return payload


def as_text(value: Any) -> str:
    """Strings pass through; other JSON values are re-serialized."""
    if isinstance(value, str):
        return value
    if not value:
        return ""
    return json.dumps(value, ensure_ascii=False, default=str)


def get_summary(message: dict) -> str:
    analysis = as_dict(message.get("analysis"))
    return as_text(analysis.get("summary") or message.get("summary")) or NO_SUMMARY


def get_transcript(message: dict) -> str:
    artifact = as_dict(message.get("artifact"))
    return as_text(artifact.get("transcript") or message.get("transcript"))


def get_tool_name(message: dict) -> str | None:
    return as_dict(message.get("toolCall")).get("name")


class IngestionPipeline:
    def __init__(
        self,
        analyzer: CallAnalyzer,
        forwarder: CrmForwarder,
        database_check_enabled: bool = True,
    ):
        self.analyzer = analyzer
        self.forwarder = forwarder
        self.database_check_enabled = database_check_enabled

    async def handle(self, body: bytes | str | dict | None, db: AsyncSession) -> PipelineOutcome:
        _enter(PipelineState.RECEIVED)
        try:
            payload = parse_body(body)
        except ValueError as e:
            logger.warning("Rejecting malformed body: %s", e)
            return PipelineOutcome(400, INVALID_JSON)

        _enter(PipelineState.PARSED)
        message = get_message(payload)
        if not message or not message.get("type"):
            return acknowledged()

        event_type = message["type"]
        if event_type == END_OF_CALL_REPORT:
            return await self.process_end_of_call(message, db)

        if event_type == TOOL_CALL and get_tool_name(message) == DATABASE_CHECK_TOOL:
            if not self.database_check_enabled:
                logger.info("databasecheck tool call ignored (DATABASE_CHECK_ENABLED is off)")
                return acknowledged()
            return await self.check_database(message, db)

        logger.debug("Ignoring event type %s", event_type)
        return acknowledged()

    async def check_database(self, message: dict, db: AsyncSession) -> PipelineOutcome:
        """In-call lookup of the caller's stored profile. Read-only."""
        phone_number = get_phone_number(message)
        if not phone_number:
            return PipelineOutcome(200, {"result": NEW_CALLER})

        _enter(PipelineState.IDENTIFIED, phone_number)
        try:
            caller = await CallerRepository(db).find_by_phone(phone_number)
        except SQLAlchemyError as e:
            logger.error("Database check tool error for %s: %s", phone_number, e)
            return PipelineOutcome(200, {"result": DATABASE_CHECK_ERROR})

        if caller is None:
            return PipelineOutcome(200, {"result": NEW_CALLER})

        result = {
            "status": EXISTING_CALLER,
            "name": caller.contact_name,
            "userType": caller.user_type,
            "course": caller.course,
            "city": caller.city,
            "state": caller.state,
            "lastCallSummary": caller.last_call_summary or PREVIOUS_CALL_ON_RECORD,
        }
        return PipelineOutcome(200, {"result": json.dumps(result)})

    async def process_end_of_call(self, message: dict, db: AsyncSession) -> PipelineOutcome:
        phone_number = get_phone_number(message)
        if not phone_number:
            logger.info("end-of-call-report without a caller number; nothing to store")
            return acknowledged()
        _enter(PipelineState.IDENTIFIED, phone_number)

        summary = get_summary(message)
        transcript = get_transcript(message)
        analysis = await self.analyzer.analyze(summary, transcript)
        info = extract_caller_info(transcript)
        _enter(PipelineState.ANALYZED, phone_number)

        fields = {
            "contact_name": info.name,
            "course": info.course,
            "user_type": info.user_type,
            "city": info.city,
            "state": info.state,
            "call_status": analysis.call_status,
            "lead_status": analysis.lead_status,
            "contact_status": analysis.contact_status,
            "contact_followupdate": analysis.contact_followupdate,
            "contact_followuptime": analysis.contact_followuptime,
            "remark": analysis.remark,
            "last_call_summary": summary,
            "last_transcript": transcript,
        }
        try:
            caller, _created = await CallerRepository(db).upsert(phone_number, fields)
        except PersistenceError:
            _enter(PipelineState.FAILED, phone_number)
            logger.exception("End of call processing error for %s", phone_number)
            return PipelineOutcome(500)
        _enter(PipelineState.PERSISTED, phone_number)

        try:
            await self.forwarder.send(caller)
        except Exception as e:
            logger.error("CRM forwarding for %s failed: %s", phone_number, e)
        _enter(PipelineState.FORWARDED, phone_number)

        _enter(PipelineState.ACKNOWLEDGED, phone_number)
        return acknowledged()


def _enter(state: PipelineState, phone_number: str | None = None) -> None:
    logger.debug("pipeline → %s%s", state.value, f" ({phone_number})" if phone_number else "")
