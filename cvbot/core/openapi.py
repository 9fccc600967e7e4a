"""OpenAPI metadata and customization utilities.

Enriches the generated OpenAPI schema with tags metadata, keeping
documentation concerns out of the app factory.
"""

from __future__ import annotations

from typing import Any, Dict

from fastapi import FastAPI

TAGS_METADATA = [
    {
        "name": "Files",
        "description": "Upload, serve, list and copy CV documents and profile photos.",
    },
    {
        "name": "Parsing",
        "description": "Convert résumé text or documents into structured profile JSON.",
    },
    {
        "name": "Profile",
        "description": "Read-only console view over a profile document.",
    },
    {
        "name": "Health",
        "description": "Liveness checks.",
    },
]


def apply_openapi_customizations(app: FastAPI) -> None:
    """Patch FastAPI's OpenAPI generation to add tags metadata.

    Binary file responses are documented as such on the download route.
    """

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

        download = schema.get("paths", {}).get("/api/files/{file_type}/{filename}", {}).get("get")
        if isinstance(download, dict):
            download.setdefault("responses", {}).setdefault("200", {})["content"] = {
                "application/octet-stream": {"schema": {"type": "string", "format": "binary"}}
            }

        app.openapi_schema = schema
        return schema

    app.openapi = custom_openapi  # type: ignore[assignment]
