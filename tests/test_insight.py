"""Tests de l'insight IA: construction du prompt et client Gemini."""

from __future__ import annotations

import json

import httpx
import pytest

from backend.domain.entities import ChakraProfile, DharmaType, InconclusiveData, MergedProfile
from backend.domain.errors import ConfigurationError, UpstreamError, UpstreamErrorKind
from backend.domain.insight_orchestrator import InsightOrchestrator, build_prompt
from backend.infra.llm.gemini_client import GeminiLLM
from tests.fakes import FAKE_INSIGHT, FakeLLM, FakeUpstream, counting_transport

QUESTION = "I feel stuck at work."
GEMINI_HOST = "https://gemini.test"
HTTP_TOO_MANY_REQUESTS = 429

PROFILE = MergedProfile(
    kundli={"ascendant": {"name": "Leo"}, "planet_positions": []},
    dasha={},
    planet_positions={},
)
CHAKRA = ChakraProfile(lord_planet="Saturn", chakra_name="Root", description="...")


def test_prompt_carries_profile_and_question() -> None:
    prompt = build_prompt(PROFILE, DharmaType.MERCHANT, CHAKRA, QUESTION)

    assert "JyotishTherapist" in prompt
    assert "Dharma Type: Merchant" in prompt
    assert "Root (driven by their current Saturn Dasha)" in prompt
    assert "Ascendant: Leo" in prompt
    assert QUESTION in prompt


def test_prompt_marks_inconclusive_data_as_unknown() -> None:
    inconclusive = InconclusiveData(reason="no dasha periods")
    profile = MergedProfile(kundli={}, dasha={}, planet_positions={})

    prompt = build_prompt(profile, inconclusive, inconclusive, QUESTION)

    assert "Dharma Type: unknown" in prompt
    assert "Active Chakra Theme: unknown" in prompt
    assert "Ascendant: unknown" in prompt


@pytest.mark.asyncio
async def test_orchestrator_delegates_to_llm() -> None:
    llm = FakeLLM()
    text = await InsightOrchestrator(llm).advise(PROFILE, DharmaType.EDUCATOR, CHAKRA, QUESTION)

    assert text == FAKE_INSIGHT
    assert len(llm.prompts) == 1
    assert QUESTION in llm.prompts[0]


@pytest.mark.asyncio
async def test_gemini_posts_prompt_and_returns_candidate_text() -> None:
    upstream = FakeUpstream()
    llm = GeminiLLM(
        "k-123", model="gemini-pro", api_host=GEMINI_HOST, transport=upstream.transport()
    )

    text = await llm.generate("hello")

    assert text == f"{FAKE_INSIGHT}:5"
    [request] = upstream.requests
    assert request.method == "POST"
    assert request.url.path == "/v1beta/models/gemini-pro:generateContent"
    assert request.url.params["key"] == "k-123"
    assert json.loads(request.content) == {"contents": [{"parts": [{"text": "hello"}]}]}


@pytest.mark.asyncio
async def test_gemini_without_key_makes_no_call() -> None:
    transport, seen = counting_transport(lambda r: httpx.Response(200))
    llm = GeminiLLM(None, api_host=GEMINI_HOST, transport=transport)

    with pytest.raises(ConfigurationError):
        await llm.generate("hello")
    assert seen == []


@pytest.mark.asyncio
async def test_gemini_error_status_is_upstream_error() -> None:
    upstream = FakeUpstream(statuses={"gemini": HTTP_TOO_MANY_REQUESTS})
    llm = GeminiLLM("k", api_host=GEMINI_HOST, transport=upstream.transport())

    with pytest.raises(UpstreamError) as excinfo:
        await llm.generate("hello")

    assert excinfo.value.endpoint == "insight"
    assert excinfo.value.kind is UpstreamErrorKind.HTTP_STATUS
    assert excinfo.value.status_code == HTTP_TOO_MANY_REQUESTS


@pytest.mark.asyncio
async def test_gemini_without_candidates_is_parse_error() -> None:
    transport, _ = counting_transport(lambda r: httpx.Response(200, json={"candidates": []}))
    llm = GeminiLLM("k", api_host=GEMINI_HOST, transport=transport)

    with pytest.raises(UpstreamError) as excinfo:
        await llm.generate("hello")
    assert excinfo.value.kind is UpstreamErrorKind.PARSE


@pytest.mark.asyncio
async def test_gemini_network_failure_is_upstream_error() -> None:
    def _refuse(request: httpx.Request) -> httpx.Response:
        raise httpx.ConnectError("refused")

    transport, _ = counting_transport(_refuse)
    llm = GeminiLLM("k", api_host=GEMINI_HOST, transport=transport)

    with pytest.raises(UpstreamError) as excinfo:
        await llm.generate("hello")
    assert excinfo.value.kind is UpstreamErrorKind.NETWORK
