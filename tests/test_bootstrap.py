# tests/test_bootstrap.py
import asyncio
import json

import httpx
import pytest

from app.bootstrap import build_core
from app.settings import CaptureConfig, EscalationConfig, Settings, VisionConfig
from core.enums import AnalysisMode
from tests.conftest import BlockingClient, FakeVideoSource


def gemini_handler(request: httpx.Request) -> httpx.Response:
    payload = json.loads(request.content)
    if "tools" in payload:
        text = '{"verified": true, "summary": "Matches the metro station"}'
    else:
        text = "car, person, bag"
    return httpx.Response(200, json={"candidates": [{"content": {"parts": [{"text": text}]}}]})


@pytest.fixture
def core(cameras):
    config = Settings(
        log_format="console",
        vision=VisionConfig(api_key="test-key", max_retries=1),
        capture=CaptureConfig(frame_count=1),
        escalation=EscalationConfig(otp_code="1234"),
    )
    return build_core(cameras, settings=config, transport=httpx.MockTransport(gemini_handler))


@pytest.mark.asyncio
async def test_escalation_grants_are_scheduled(core):
    core.registry.request_access("cam-1")
    core.escalation.open(duration_minutes=30)
    core.escalation.approve()

    grants = core.escalation.submit_code("1234")

    assert core.schedule_expiry(grants) == 2
    assert set(core.scheduler.scheduled) == {"cam-1", "cam-4"}

    await core.shutdown()
    assert core.scheduler.scheduled == {}


@pytest.mark.asyncio
async def test_scan_session_end_to_end(core):
    session = await core.open_scan_session("cam-1", FakeVideoSource())

    result = await session.scan(AnalysisMode.OBJECTS)

    assert result.detected_objects == ("car", "person", "bag")
    assert core.metrics.get_stats()["analyses"]["OBJECTS:ok"] == 1
    assert core.client.get_stats()["successful_requests"] == 1

    assert await core.close_scan_session("cam-1") is True
    assert session.closed is True
    assert await core.close_scan_session("cam-1") is False


@pytest.mark.asyncio
async def test_location_verification_through_model(core):
    verdict = await core.registry.verify_location("cam-1")

    assert verdict.verified is True
    assert core.registry.get("cam-1").location_verified is True


@pytest.mark.asyncio
async def test_unknown_camera_session(core):
    with pytest.raises(KeyError):
        await core.open_scan_session("missing", FakeVideoSource())


@pytest.mark.asyncio
async def test_reopening_a_camera_abandons_the_earlier_scan(core):
    client = BlockingClient("car")
    core.dispatcher.client = client
    first = await core.open_scan_session("cam-1", FakeVideoSource())
    first_scan = asyncio.create_task(first.scan(AnalysisMode.OBJECTS))
    await client.started.wait()

    second = await core.open_scan_session("cam-1", FakeVideoSource())

    assert first.closed is True
    assert first.analyzing is False
    assert await first_scan is None
    assert core.sessions == {"cam-1": second}

    client.release.set()
    result = await second.scan(AnalysisMode.OBJECTS)
    assert result.detected_objects == ("car",)
    assert len(client.calls) == 1

    await core.shutdown()
    assert second.closed is True
