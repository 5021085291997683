"""Tests for the POST /api/handler webhook endpoint."""

import json

import pytest
from sqlalchemy import func, select

from call_intake.models.caller import Caller


def end_of_call_report(sip_uri: str, summary: str = "caller wants info", transcript: str = "") -> dict:
    return {
        "message": {
            "type": "end-of-call-report",
            "analysis": {"summary": summary},
            "artifact": {"transcript": transcript},
            "customer": {"sipUri": sip_uri},
        }
    }


async def caller_count(db) -> int:
    return (await db.execute(select(func.count()).select_from(Caller))).scalar_one()


@pytest.mark.asyncio
async def test_end_of_call_report_creates_record(client, db, crm):
    resp = await client.post("/api/handler", json=end_of_call_report("sip:919999999999@host"))
    assert resp.status_code == 200
    assert resp.content == b""

    result = await db.execute(select(Caller).where(Caller.contact_num == "919999999999"))
    caller = result.scalar_one()
    assert caller.last_call_summary == "caller wants info"
    assert caller.contact_name == "Unknown"
    assert len(crm.requests) == 1


@pytest.mark.asyncio
async def test_raw_text_body_is_accepted(client, db):
    body = json.dumps(end_of_call_report("sip:919999999999@host"))
    resp = await client.post("/api/handler", content=body, headers={"content-type": "text/plain"})
    assert resp.status_code == 200
    assert await caller_count(db) == 1


@pytest.mark.asyncio
async def test_two_events_same_number_keep_one_record(client, db, crm):
    first = end_of_call_report("sip:+911234567890@sip.vapi.ai", summary="first call")
    second = end_of_call_report("sip:+911234567890@sip.vapi.ai", summary="second call",
                                transcript="User: my name is Asha.")

    assert (await client.post("/api/handler", json=first)).status_code == 200
    assert (await client.post("/api/handler", json=second)).status_code == 200

    assert await caller_count(db) == 1
    caller = (await db.execute(select(Caller))).scalar_one()
    assert caller.contact_num == "+911234567890"
    assert caller.last_call_summary == "second call"
    assert caller.contact_name == "Asha"
    assert len(crm.requests) == 2


@pytest.mark.asyncio
async def test_legacy_flat_event(client, db):
    resp = await client.post("/api/handler", json={
        "type": "end-of-call-report",
        "call": {"customer": {"number": "+15551234567"}},
        "summary": "legacy summary",
        "transcript": "User: I am an employee",
    })
    assert resp.status_code == 200
    caller = (await db.execute(select(Caller))).scalar_one()
    assert caller.contact_num == "+15551234567"
    assert caller.user_type == "Employee"
    assert caller.last_call_summary == "legacy summary"


@pytest.mark.asyncio
async def test_malformed_body_returns_400(client):
    resp = await client.post("/api/handler", content="this is not json",
                             headers={"content-type": "text/plain"})
    assert resp.status_code == 400
    assert resp.text == "Invalid JSON"
    assert resp.headers["content-type"].startswith("text/plain")


@pytest.mark.asyncio
async def test_empty_body_returns_200(client, db):
    resp = await client.post("/api/handler", content=b"")
    assert resp.status_code == 200
    assert resp.content == b""
    assert await caller_count(db) == 0


@pytest.mark.asyncio
async def test_unknown_event_type_returns_200(client, gemini):
    resp = await client.post("/api/handler", json={"message": {"type": "status-update"}})
    assert resp.status_code == 200
    assert gemini.requests == []


@pytest.mark.asyncio
async def test_tool_call_new_caller(client, db):
    resp = await client.post("/api/handler", json={
        "message": {
            "type": "tool-call",
            "toolCall": {"name": "databasecheck"},
            "customer": {"sipUri": "sip:91888@h"},
        }
    })
    assert resp.status_code == 200
    assert resp.json() == {"result": "New caller"}
    assert await caller_count(db) == 0


@pytest.mark.asyncio
async def test_tool_call_without_number_is_new_caller(client):
    resp = await client.post("/api/handler", json={
        "message": {"type": "tool-call", "toolCall": {"name": "databasecheck"}}
    })
    assert resp.status_code == 200
    assert resp.json() == {"result": "New caller"}


@pytest.mark.asyncio
async def test_tool_call_existing_caller(client):
    await client.post("/api/handler", json=end_of_call_report(
        "sip:91888@h", summary="Asked about the welding course",
        transcript="User: my name is Ravi.",
    ))
    resp = await client.post("/api/handler", json={
        "message": {
            "type": "tool-call",
            "toolCall": {"name": "databasecheck"},
            "customer": {"sipUri": "sip:91888@h"},
        }
    })
    assert resp.status_code == 200
    result = json.loads(resp.json()["result"])
    assert result["status"] == "Existing caller"
    assert result["name"] == "Ravi"
    assert result["lastCallSummary"] == "Asked about the welding course"
