"""OpenAPI metadata and customization utilities.

Adds the ``x-api-key`` security scheme and marks which operations need it,
using the same route table the request gate enforces, so the docs never
disagree with the gate.
"""

from __future__ import annotations

from typing import Any, Dict

from fastapi import FastAPI

from animequotes.core.endpoints import EndpointAccess, classify
from animequotes.core.middleware import relative_path


def apply_openapi_customizations(app: FastAPI, *, api_prefix: str) -> None:
    """Patch FastAPI's OpenAPI generation to add the API key scheme.

    - Injects components.securitySchemes for API key auth (header ``x-api-key``)
    - Protected operations require the key; free and non-API operations
      get ``security: []``
    - Adds tags metadata if not present
    """

    original_openapi = app.openapi

    def custom_openapi() -> Dict[str, Any]:
        if app.openapi_schema:
            return app.openapi_schema
        schema = original_openapi()

        components = schema.setdefault("components", {})
        security_schemes = components.setdefault("securitySchemes", {})
        security_schemes.setdefault(
            "ApiKeyAuth",
            {
                "type": "apiKey",
                "in": "header",
                "name": "x-api-key",
                "description": "Keys start with the configured prefix (default ``ani-``).",
            },
        )

        tags = schema.setdefault("tags", [])
        existing_tag_names = {t.get("name") for t in tags}
        for tag in (
            {"name": "Quotes", "description": "Anime quote lookups."},
            {"name": "Health", "description": "Liveness checks."},
        ):
            if tag["name"] not in existing_tag_names:
                tags.append(tag)

        for path, methods in schema.get("paths", {}).items():
            relative = relative_path(path.replace("{quote_id}", "1"), api_prefix)
            protected = relative is not None and classify(relative) is EndpointAccess.PROTECTED
            for method_obj in methods.values():
                if isinstance(method_obj, dict):
                    method_obj["security"] = [{"ApiKeyAuth": []}] if protected else []

        app.openapi_schema = schema
        return schema

    app.openapi = custom_openapi  # type: ignore[assignment]
