"""
Utility script to generate and write the OpenAPI schema for the FastAPI app.

This script imports the FastAPI application instance and serializes its OpenAPI
schema to the interfaces/openapi.json file so that calendar front ends can consume
a stable spec without running the server.

Usage:
    python -m src.calendar_api.generate_openapi

Notes:
- The script ensures every tag of main.openapi_tags is present in the OpenAPI tags metadata.
- Output file path is relative to the repository root: interfaces/openapi.json
"""
from __future__ import annotations

import json
import os
from typing import Any, Dict, List

from .main import app, openapi_tags


def _ensure_tags(schema: Dict[str, Any]) -> None:
    """
    Ensure the OpenAPI schema lists the reminders/days/month tag descriptions
    without overriding tag definitions that are already present.
    """
    existing_tags: List[Dict[str, Any]] = schema.get("tags", []) or []
    existing_names = {t.get("name") for t in existing_tags if isinstance(t, dict)}
    for tag in openapi_tags:
        if tag.get("name") not in existing_names:
            existing_tags.append(tag)
    if existing_tags:
        schema["tags"] = existing_tags


def _output_path() -> str:
    # <repo_root>/interfaces/openapi.json, two levels above this package
    src_dir = os.path.dirname(os.path.dirname(os.path.abspath(__file__)))
    repo_root = os.path.dirname(src_dir)
    return os.path.join(repo_root, "interfaces", "openapi.json")


# PUBLIC_INTERFACE
def generate_openapi(out_path: str = "") -> str:
    """Write the OpenAPI schema and return the written file path."""
    schema = app.openapi()
    _ensure_tags(schema)

    path = out_path or _output_path()
    os.makedirs(os.path.dirname(path), exist_ok=True)
    with open(path, "w", encoding="utf-8") as f:
        json.dump(schema, f, indent=2, ensure_ascii=False)
    return path


def main() -> None:
    path = generate_openapi()
    print(f"Wrote OpenAPI schema to: {path}")


if __name__ == "__main__":
    main()
