# tests/test_location_verifier.py
import httpx
import pytest

from core.exceptions import VisionModelError
from infrastructure.external.location_verifier import (
    UNPARSEABLE_VERDICT,
    UNREACHABLE_VERDICT,
    GeminiLocationVerifier,
)
from tests.conftest import FakeVisionClient


@pytest.mark.asyncio
async def test_verified_reply_in_prose():
    client = FakeVisionClient(
        'Checked nearby landmarks.\n```json\n{"verified": true, "summary": "Near Rajiv Chowk metro"}\n```'
    )
    verifier = GeminiLocationVerifier(client)

    verdict = await verifier.verify("Connaught Place", 28.6315, 77.2167)

    assert verdict.verified is True
    assert verdict.summary == "Near Rajiv Chowk metro"
    call = client.calls[0]
    assert call["tools"] == [{"googleMaps": {}}]
    assert call["structured"] is False
    assert '"Connaught Place"' in call["instruction"]
    assert "Latitude: 28.6315, Longitude: 77.2167" in call["instruction"]


@pytest.mark.asyncio
async def test_string_flag_is_not_verified():
    verifier = GeminiLocationVerifier(FakeVisionClient('{"verified": "yes", "summary": "maybe"}'))

    verdict = await verifier.verify("Somewhere", 0.0, 0.0)

    assert verdict.verified is False


@pytest.mark.asyncio
async def test_unparseable_reply():
    verifier = GeminiLocationVerifier(FakeVisionClient("The location seems plausible."))

    assert await verifier.verify("Somewhere", 0.0, 0.0) == UNPARSEABLE_VERDICT


@pytest.mark.parametrize("error", [
    httpx.ConnectTimeout("timed out"),
    VisionModelError("Vision model returned HTTP 429", status_code=429),
])
@pytest.mark.asyncio
async def test_failures_become_unreachable_verdict(error):
    verifier = GeminiLocationVerifier(FakeVisionClient(error=error))

    verdict = await verifier.verify("Somewhere", 0.0, 0.0)

    assert verdict == UNREACHABLE_VERDICT
    assert verdict.summary == "Could not verify location connectivity."
