"""Rule-based caller profile extraction from call transcripts.

This is a best-effort fallback: the patterns only catch callers who
introduce themselves in the usual phrasing. Anything not matched stays
"Unknown".
"""

import logging
import re

from call_intake.models.caller import USER_TYPE_VALUES
from call_intake.schemas.caller import CallerInfo

logger = logging.getLogger(__name__)

CALLER_PREFIX = "User:"

_FLAGS = re.IGNORECASE | re.MULTILINE

USER_TYPE_RE = re.compile(r"\b(" + "|".join(map(re.escape, USER_TYPE_VALUES)) + r")\b", _FLAGS)
NAME_RE = re.compile(r"(?:my full name is|my name is)\s+([\w\s]+?)(?=\s+and\b|[.,!?]|$)", _FLAGS)
COURSE_RE = re.compile(r"interested in the ([\w\s+]+?)\s*course", _FLAGS)
CITY_STATE_RE = re.compile(r"\b(?:live in|in|from)\s+([\w\s]+?),\s*([\w\s]+?)(?=[.!?]|$)", _FLAGS)
LOCATED_IN_RE = re.compile(r"\blocated in\s+([\w\s]+?)(?=[.,!?]|$)", _FLAGS)


def caller_lines(transcript: str) -> str:
    """Keep only the lines spoken by the caller, without the speaker tag."""
    lines = [
        line.strip()[len(CALLER_PREFIX):].strip()
        for line in transcript.splitlines()
        if line.strip().startswith(CALLER_PREFIX)
    ]
    return "\n".join(lines)


def extract_caller_info(transcript: str | None) -> CallerInfo:
    """Pull name, course, city/state and user type out of a transcript."""
    info = CallerInfo()
    if not transcript or not isinstance(transcript, str):
        return info

    text = caller_lines(transcript)
    if not text:
        return info

    user_type = USER_TYPE_RE.search(text)
    if user_type:
        info.user_type = user_type.group(1).title()

    name = NAME_RE.search(text)
    if name and name.group(1).strip():
        info.name = name.group(1).strip()

    course = COURSE_RE.search(text)
    if course and course.group(1).strip():
        info.course = course.group(1).strip()

    location = CITY_STATE_RE.search(text)
    if location:
        info.city = location.group(1).strip()
        info.state = location.group(2).strip()
    else:
        located = LOCATED_IN_RE.search(text)
        if located:
            info.city = located.group(1).strip()

    logger.debug("Extracted caller info: %s", info.model_dump())
    return info
