"""
Tests des routes HTTP `/api` (profil, graphique, insight, proxy) et de l'enveloppe d'erreur.

Les routes sont servies par un `TestClient` dont le conteneur pointe sur le faux Prokerala.
"""

from __future__ import annotations

import httpx
import pytest
from fastapi.testclient import TestClient

from backend.core.container import Container
from backend.core.http_constants import (
    HTTP_BAD_GATEWAY,
    HTTP_GATEWAY_TIMEOUT,
    HTTP_INTERNAL_SERVER_ERROR,
    HTTP_NOT_FOUND,
    HTTP_OK,
    HTTP_UNPROCESSABLE_ENTITY,
)
from tests.fakes import FAKE_INSIGHT, FAKE_SVG, KUNDLI_DATA, FakeUpstream, make_settings

DATETIME = "2024-01-15T10:30:00+05:30"
COORDS = "10.214747,78.097626"
BODY = {"datetime": DATETIME, "coordinates": COORDS}
HTTP_SERVICE_UNAVAILABLE = 503

KUNDLI = "/v2/astrology/kundli"
DASHA = "/v2/astrology/dasha-periods"


def _client(monkeypatch, upstream: FakeUpstream, **overrides) -> TestClient:
    from backend.app.main import app

    container = Container(settings=make_settings(**overrides), transport=upstream.transport())
    monkeypatch.setattr("backend.api.deps.container", container)
    monkeypatch.setattr("backend.api.routes_health.container", container)
    return TestClient(app)


def _assert_envelope(resp, status: int, code: str) -> dict:
    assert resp.status_code == status
    body = resp.json()
    assert set(body) == {"code", "detail", "trace_id"}
    assert body["code"] == code
    assert body["detail"]
    return body


def test_post_profile_returns_merged_profile_and_classifications(client, fake_upstream) -> None:
    r = client.post("/api/profile", json=BODY)

    assert r.status_code == HTTP_OK
    data = r.json()
    assert data["profile"]["kundli"]["nakshatra_details"] == KUNDLI_DATA["nakshatra_details"]
    assert data["profile"]["kundli"]["ascendant"] == {"name": "Leo"}
    assert "chart_svg" not in data["profile"]
    assert data["dharma_type"] == "Educator"
    assert data["chakra"]["lord_planet"] in {"Jupiter", "Saturn"}
    assert fake_upstream.token_calls == 1


def test_get_profile_keeps_literal_plus_end_to_end(client, fake_upstream) -> None:
    """Un `+` littéral dans la query entrante n'est pas décodé en espace."""
    r = client.get(f"/api/profile?datetime={DATETIME}&coordinates={COORDS}")

    assert r.status_code == HTTP_OK
    [request] = fake_upstream.upstream_requests(KUNDLI)
    assert b"datetime=2024-01-15T10:30:00+05:30" in request.url.query
    assert b"%2B" not in request.url.query


def test_get_profile_accepts_percent_encoded_plus(client, fake_upstream) -> None:
    r = client.get(
        "/api/profile?datetime=2024-01-15T10:30:00%2B05:30&coordinates=10.2,78.1&ayanamsa=3"
    )

    assert r.status_code == HTTP_OK
    [request] = fake_upstream.upstream_requests(DASHA)
    expected = b"datetime=2024-01-15T10:30:00+05:30&coordinates=10.2,78.1&ayanamsa=3"
    assert request.url.query == expected


def test_profile_with_chart_embeds_svg(client) -> None:
    r = client.post("/api/profile", json={**BODY, "include_chart": True})
    assert r.status_code == HTTP_OK
    assert r.json()["profile"]["chart_svg"] == FAKE_SVG


def test_chart_returns_svg(client, fake_upstream) -> None:
    r = client.post("/api/chart", json={**BODY, "chart_style": "south-indian"})

    assert r.status_code == HTTP_OK
    assert r.headers["content-type"].startswith("image/svg+xml")
    assert r.text == FAKE_SVG
    [request] = fake_upstream.upstream_requests("/v2/astrology/chart")
    assert b"chart_style=south-indian" in request.url.query


def test_get_chart_returns_svg(client) -> None:
    r = client.get(f"/api/chart?datetime={DATETIME}&coordinates={COORDS}")
    assert r.status_code == HTTP_OK
    assert r.text == FAKE_SVG


def test_insight_calls_gemini_with_profile_prompt(client, fake_upstream) -> None:
    r = client.post("/api/insight", json={**BODY, "question": "Should I change careers?"})

    assert r.status_code == HTTP_OK
    data = r.json()
    assert data["insight"].startswith(FAKE_INSIGHT)
    assert data["dharma_type"] == "Educator"
    [gemini] = [req for req in fake_upstream.requests if req.url.host == "gemini.test"]
    assert gemini.url.params["key"] == "test-gemini"
    assert b"Should I change careers?" in gemini.content


def test_missing_credentials_give_configuration_error(monkeypatch) -> None:
    upstream = FakeUpstream()
    client = _client(monkeypatch, upstream, CLIENT_ID=None, CLIENT_SECRET=None)

    r = client.post("/api/profile", json=BODY)

    _assert_envelope(r, HTTP_INTERNAL_SERVER_ERROR, "CONFIGURATION_ERROR")
    assert upstream.requests == []


def test_rejected_token_gives_generic_authentication_error(monkeypatch) -> None:
    upstream = FakeUpstream(token_status=401)
    client = _client(monkeypatch, upstream)

    r = client.post("/api/profile", json=BODY)

    body = _assert_envelope(r, HTTP_BAD_GATEWAY, "AUTHENTICATION_ERROR")
    assert body["detail"] == "Failed to fetch token from Prokerala API."
    assert "test-secret" not in r.text


def test_upstream_failure_gives_single_error_without_partial_profile(monkeypatch) -> None:
    upstream = FakeUpstream(statuses={DASHA: HTTP_SERVICE_UNAVAILABLE})
    client = _client(monkeypatch, upstream)

    r = client.post("/api/profile", json=BODY)

    body = _assert_envelope(r, HTTP_BAD_GATEWAY, "UPSTREAM_ERROR")
    assert body["detail"].startswith("dasha-periods:")
    assert "profile" not in body


def test_upstream_timeout_gives_gateway_timeout(monkeypatch) -> None:
    upstream = FakeUpstream(raises={KUNDLI: httpx.ReadTimeout("slow")})
    client = _client(monkeypatch, upstream)

    r = client.post("/api/profile", json=BODY)

    _assert_envelope(r, HTTP_GATEWAY_TIMEOUT, "UPSTREAM_TIMEOUT")


@pytest.mark.parametrize(
    "payload",
    [
        {"datetime": "2024-01-15T10:30:00", "coordinates": COORDS},
        {"datetime": "not-a-date", "coordinates": COORDS},
        {"datetime": DATETIME, "coordinates": "north"},
        {"coordinates": COORDS},
    ],
)
def test_invalid_body_gives_validation_error(client, fake_upstream, payload) -> None:
    r = client.post("/api/profile", json=payload)

    _assert_envelope(r, HTTP_UNPROCESSABLE_ENTITY, "VALIDATION_ERROR")
    assert fake_upstream.requests == []


def test_get_profile_without_coordinates_gives_validation_error(client) -> None:
    r = client.get(f"/api/profile?datetime={DATETIME}")
    body = _assert_envelope(r, HTTP_UNPROCESSABLE_ENTITY, "VALIDATION_ERROR")
    assert "coordinates" in body["detail"]


def test_insight_without_gemini_key_gives_configuration_error(monkeypatch) -> None:
    upstream = FakeUpstream()
    client = _client(monkeypatch, upstream, GEMINI_API_KEY=None)

    r = client.post("/api/insight", json={**BODY, "question": "Why?"})

    _assert_envelope(r, HTTP_INTERNAL_SERVER_ERROR, "CONFIGURATION_ERROR")


def test_insight_upstream_failure_gives_upstream_error(monkeypatch) -> None:
    upstream = FakeUpstream(statuses={"gemini": 429})
    client = _client(monkeypatch, upstream)

    r = client.post("/api/insight", json={**BODY, "question": "Why?"})

    body = _assert_envelope(r, HTTP_BAD_GATEWAY, "UPSTREAM_ERROR")
    assert body["detail"].startswith("insight:")


def test_proxy_relays_upstream_body(client, fake_upstream) -> None:
    r = client.get(
        f"/api/v2/astrology/kundli?datetime={DATETIME}&coordinates={COORDS}&ayanamsa=1"
    )

    assert r.status_code == HTTP_OK
    assert r.json()["data"] == KUNDLI_DATA
    [request] = fake_upstream.upstream_requests(KUNDLI)
    assert b"+05:30" in request.url.query
    assert request.headers["authorization"] == "Bearer tok-1"


def test_proxy_relays_upstream_status(monkeypatch) -> None:
    upstream = FakeUpstream(statuses={DASHA: HTTP_SERVICE_UNAVAILABLE})
    client = _client(monkeypatch, upstream)

    r = client.get(f"/api/v2/astrology/dasha-periods?datetime={DATETIME}&coordinates={COORDS}")

    assert r.status_code == HTTP_SERVICE_UNAVAILABLE
    assert r.json()["errors"][0]["detail"].endswith("unavailable")


def test_request_id_is_echoed_and_used_as_trace_id(client) -> None:
    r = client.post(
        "/api/profile", json={"coordinates": COORDS}, headers={"X-Request-ID": "req-42"}
    )

    assert r.headers["X-Request-ID"] == "req-42"
    assert r.json()["trace_id"] == "req-42"


def test_unknown_route_uses_error_envelope(client) -> None:
    r = client.get("/api/nope")
    _assert_envelope(r, HTTP_NOT_FOUND, "NOT_FOUND")
