"""OpenAPI metadata and customization utilities.

Provides:
- Tags metadata merged into the generated schema
- The documented 429 response that ``RateLimitedRoute`` attaches to every
  rate-limited operation, alongside its ``x-rate-limit`` quota

This keeps documentation concerns decoupled from the app factory.
"""

from __future__ import annotations

from typing import Any, Dict

from fastapi import FastAPI

TAGS_METADATA = [
    {
        "name": "Auth",
        "description": "Account registration and login.",
    },
    {
        "name": "Contact inquiries",
        "description": "Contact requests from clients to artists.",
    },
    {
        "name": "Health",
        "description": "Liveness and readiness checks.",
    },
]

RATE_LIMITED_RESPONSE: Dict[str, Any] = {
    "description": "Too many requests for this route from this client.",
    "headers": {
        "Retry-After": {
            "description": "Seconds until the window resets.",
            "schema": {"type": "integer"},
        },
    },
    "content": {
        "application/json": {
            "schema": {
                "type": "object",
                "properties": {
                    "success": {"type": "boolean", "example": False},
                    "message": {"type": "string"},
                    "retryAfter": {"type": "integer"},
                },
            }
        }
    },
}


def apply_openapi_customizations(app: FastAPI) -> None:
    """Patch FastAPI's OpenAPI generation to add tag descriptions."""

    original_openapi = app.openapi

    def custom_openapi() -> Dict[str, Any]:
        if app.openapi_schema:
            return app.openapi_schema

        schema = original_openapi()

        tags = schema.setdefault("tags", [])
        existing_tag_names = {t.get("name") for t in tags}
        for tag in TAGS_METADATA:
            if tag["name"] not in existing_tag_names:
                tags.append(tag)

        app.openapi_schema = schema
        return schema

    app.openapi = custom_openapi  # type: ignore[assignment]
