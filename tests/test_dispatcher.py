# tests/test_dispatcher.py
import httpx
import pytest

from core.enums import AnalysisMode, MatchConfidence
from core.exceptions import MissingQueryError, VisionModelError
from core.models import FrameBatch
from services.analysis.dispatcher import EMPTY_FRAMES_TEXT, OFFLINE_TEXT, AnalysisDispatcher
from services.analysis.modes import MODE_SPECS, get_mode_spec
from tests.conftest import FakeVisionClient

FRAMES = FrameBatch(frames=("ZnJhbWUx", "ZnJhbWUy", "ZnJhbWUz"), width=640, height=360)


def make_dispatcher(client, vision_config, metrics=None):
    return AnalysisDispatcher(client, vision_config, metrics=metrics)


@pytest.mark.asyncio
async def test_search_without_query_makes_no_call(vision_config, metrics):
    client = FakeVisionClient('{"matchFound": true}')
    dispatcher = make_dispatcher(client, vision_config, metrics)

    for query in (None, "", "   "):
        with pytest.raises(MissingQueryError):
            await dispatcher.analyze(FRAMES, AnalysisMode.SEARCH, query)

    assert client.calls == []
    assert metrics.get_stats()["analyses"]["SEARCH:rejected"] == 3


@pytest.mark.asyncio
async def test_search_embeds_target_and_uses_structured_model(vision_config):
    client = FakeVisionClient('{"matchFound": true, "confidence": "MEDIUM", "description": "Likely match"}')
    dispatcher = make_dispatcher(client, vision_config)

    result = await dispatcher.analyze(FRAMES, "search", "woman in a yellow raincoat")

    call = client.calls[0]
    assert 'matching this description: "woman in a yellow raincoat"' in call["instruction"]
    assert call["structured"] is True
    assert call["model"] == vision_config.structured_model
    assert call["images"] == list(FRAMES.frames)
    assert result.match_found is True
    assert result.match_confidence is MatchConfidence.MEDIUM
    assert result.mode is AnalysisMode.SEARCH


@pytest.mark.asyncio
async def test_privacy_fenced_json(vision_config):
    client = FakeVisionClient('```json\n{"summary": "No privacy risks detected", "risks": [], "recommendBlur": false}\n```')
    dispatcher = make_dispatcher(client, vision_config)

    result = await dispatcher.analyze(FRAMES, AnalysisMode.PRIVACY)

    assert result.privacy_recommendation is False
    assert result.detected_objects == ()
    assert client.calls[0]["structured"] is True


@pytest.mark.asyncio
async def test_free_text_modes_use_default_model(vision_config):
    client = FakeVisionClient("Fire near a parked truck, plate RJ14AB1234")
    dispatcher = make_dispatcher(client, vision_config)

    result = await dispatcher.analyze(FRAMES, AnalysisMode.ANOMALY)

    call = client.calls[0]
    assert call["structured"] is False
    assert call["model"] == vision_config.default_model
    assert result.safety_score == 30
    assert result.is_dangerous is True
    assert result.detected_objects == ("fire", "truck")
    assert result.anpr_candidates == ("RJ14AB1234",)
    assert result.degraded is False


@pytest.mark.asyncio
async def test_objects_mode(vision_config):
    client = FakeVisionClient("Cars, people, bags, traffic signs")
    dispatcher = make_dispatcher(client, vision_config)

    result = await dispatcher.analyze(FRAMES, AnalysisMode.OBJECTS)

    assert result.detected_objects == ("cars", "people", "bags", "traffic signs")
    assert result.safety_score == 95


@pytest.mark.asyncio
async def test_empty_frames_degrade_without_call(vision_config, metrics):
    client = FakeVisionClient("unused")
    dispatcher = make_dispatcher(client, vision_config, metrics)

    result = await dispatcher.analyze([], AnalysisMode.OBJECTS)

    assert result.text == EMPTY_FRAMES_TEXT
    assert result.safety_score == 0
    assert result.degraded is True
    assert client.calls == []
    assert metrics.get_stats()["analyses"]["OBJECTS:degraded"] == 1


@pytest.mark.parametrize("error", [
    VisionModelError("Vision model returned HTTP 500", status_code=500),
    httpx.ConnectError("connection refused"),
])
@pytest.mark.asyncio
async def test_model_failure_degrades(vision_config, error):
    dispatcher = make_dispatcher(FakeVisionClient(error=error), vision_config)

    result = await dispatcher.analyze(FRAMES, AnalysisMode.FACE)

    assert result.text == OFFLINE_TEXT
    assert result.safety_score == 0
    assert result.degraded is True
    assert result.error


@pytest.mark.asyncio
async def test_unparseable_structured_reply_degrades(vision_config, metrics):
    dispatcher = make_dispatcher(FakeVisionClient("Sorry, I cannot help."), vision_config, metrics)

    result = await dispatcher.analyze(FRAMES, AnalysisMode.PRIVACY)

    assert result.text == "Error parsing AI report."
    assert result.degraded is True
    assert metrics.get_stats()["analyses"]["PRIVACY:degraded"] == 1


def test_every_mode_is_registered():
    assert set(MODE_SPECS) == set(AnalysisMode)
    assert get_mode_spec("anpr").mode is AnalysisMode.ANPR
    with pytest.raises(ValueError):
        get_mode_spec("thermal")
