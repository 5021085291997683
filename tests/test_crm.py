"""Tests for CRM sanitization, field mapping and forwarding."""

import json
from types import SimpleNamespace

import httpx
import pytest

from call_intake.services.crm import CrmForwarder, build_payload, sanitize
CRM_URL = "https://crm.test/api_v2/savecontact_v2"


def make_record(**overrides):
    fields = {
        "contact_num": "919999999999",
        "contact_name": "Asha",
        "contact_status": "Interested",
        "contact_followuptime": "N/A",
        "contact_followupdate": "2026-10-21",
        "user_type": "Unknown",
        "city": "Pune",
        "state": "Unknown",
        "call_status": "Connected-IB",
        "lead_status": "Interested",
        "remark": "Asked about fees.",
    }
    fields.update(overrides)
    return SimpleNamespace(**fields)


@pytest.mark.parametrize("value", ["N/A", "Unknown", "Uncertain", None])
def test_sentinels_become_empty(value):
    assert sanitize(value) == ""


@pytest.mark.parametrize("value", ["Interested", "Connected-IB", "unknown", "", "2026-10-21"])
def test_other_values_pass_through(value):
    assert sanitize(value) == value


def test_payload_mapping():
    payload = build_payload(make_record(), "code-1")
    assert payload == {
        "authcode": "code-1",
        "contact_num": "919999999999",
        "contact_name": "Asha",
        "contact_status": "Interested",
        "contact_followuptime": "",
        "contact_followupdate": "2026-10-21",
        "user_type": "",
        "city": "Pune",
        "state": "",
        "call_status": "Connected-IB",
        "lead_status": "Interested",
        "remark": "Asked about fees.",
    }


@pytest.mark.asyncio
async def test_send_json(crm):
    forwarder = CrmForwarder(url=CRM_URL, authcode="code-1", transport=crm.transport)
    assert await forwarder.send(make_record()) is True

    assert len(crm.requests) == 1
    request = crm.requests[0]
    assert str(request.url) == CRM_URL
    assert request.headers["content-type"] == "application/json"
    assert json.loads(request.content)["contact_num"] == "919999999999"


@pytest.mark.asyncio
async def test_send_form(crm):
    forwarder = CrmForwarder(url=CRM_URL, authcode="code-1", body_format="form", transport=crm.transport)
    assert await forwarder.send(make_record()) is True

    request = crm.requests[0]
    assert request.headers["content-type"].startswith("multipart/form-data")
    content = request.read()
    assert b'name="authcode"' in content
    assert b"919999999999" in content


@pytest.mark.asyncio
async def test_missing_authcode_skips_send(crm):
    forwarder = CrmForwarder(url=CRM_URL, authcode="", transport=crm.transport)
    assert await forwarder.send(make_record()) is False
    assert crm.requests == []


@pytest.mark.asyncio
async def test_error_status_is_swallowed(mock_http):
    recorder = mock_http(lambda request: httpx.Response(502, text="bad gateway"))
    forwarder = CrmForwarder(url=CRM_URL, authcode="code-1", transport=recorder.transport)
    assert await forwarder.send(make_record()) is False


@pytest.mark.asyncio
async def test_transport_error_is_swallowed(mock_http):
    def boom(request):
        raise httpx.ReadTimeout("timed out", request=request)

    recorder = mock_http(boom)
    forwarder = CrmForwarder(url=CRM_URL, authcode="code-1", transport=recorder.transport)
    assert await forwarder.send(make_record()) is False
