"""Tests for the generated OpenAPI document."""

from fastapi.testclient import TestClient


def test_rate_limited_operations_document_429(client: TestClient):
    schema = client.get("/openapi.json").json()

    register = schema["paths"]["/api/auth/register"]["post"]
    assert "429" in register["responses"]
    assert register["x-rate-limit"] == {"max": 5, "windowMs": 900000}

    quick = schema["paths"]["/api/contact-inquiries/quick"]["post"]
    assert quick["x-rate-limit"] == {"max": 10, "windowMs": 3600000}


def test_unlimited_operations_have_no_429(client: TestClient):
    schema = client.get("/openapi.json").json()

    health = schema["paths"]["/health"]["get"]
    assert "429" not in health["responses"]
    assert "x-rate-limit" not in health


def test_tags_metadata(client: TestClient):
    schema = client.get("/openapi.json").json()

    assert {"Auth", "Contact inquiries", "Health"} <= {t["name"] for t in schema["tags"]}
