"""Tests pour les métriques Prometheus.

Ce module teste que les métriques Prometheus sont correctement exposées via l'endpoint /metrics,
y compris les compteurs d'appels amont et de jetons alimentés par une requête de profil.
"""

from backend.core.http_constants import HTTP_OK


def test_metrics_exposed(client):
    """Teste que l'endpoint /metrics expose les métriques Prometheus."""
    r = client.get("/metrics")
    assert r.status_code == HTTP_OK
    assert b"http_requests_total" in r.content


def test_upstream_and_token_metrics_after_profile(client):
    client.post(
        "/api/profile",
        json={"datetime": "2024-01-15T10:30:00+05:30", "coordinates": "10.2,78.1"},
    )
    body = client.get("/metrics").text
    assert 'upstream_calls_total{endpoint="kundli",outcome="ok"}' in body
    assert 'token_fetches_total{outcome="ok"}' in body
    assert 'profile_classifications_total{kind="dharma",value="Educator"}' in body


def test_proxy_route_label_is_the_template(client):
    client.get("/api/v2/astrology/kundli?datetime=x")
    body = client.get("/metrics").text
    assert 'route="/api/v2/{path:path}"' in body
