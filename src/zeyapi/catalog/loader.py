"""Fetch the machine-readable API description.

The description is an OpenAPI (or Swagger 2) document served over HTTP or
stored locally, in JSON or YAML. :func:`load_description` returns it as a
dictionary and guarantees that it carries a ``paths`` object; any failure is
raised as :class:`~zeyapi.exceptions.DescriptionFetchError` before the
catalog writes a single file.
"""

from __future__ import annotations

import json
from pathlib import Path
from typing import Any

import httpx
import yaml

from zeyapi.exceptions import DescriptionFetchError


def load_description(source: str, timeout: float = 30.0) -> dict[str, Any]:
    """Load an API description from a URL or a file path.

    Args:
        source: ``http(s)://`` URL or local file path.
        timeout: HTTP timeout in seconds for URL sources.

    Returns:
        The parsed description.

    Raises:
        DescriptionFetchError: If the source cannot be read or parsed, or
            the document has no ``paths`` object.
    """
    if source.startswith(("http://", "https://")):
        content, hint = _load_from_url(source, timeout)
    else:
        content, hint = _load_from_file(source)

    description = _parse_content(content, hint)
    if not isinstance(description.get("paths"), dict):
        raise DescriptionFetchError(
            f"API description from {source} has no 'paths' object"
        )
    return description


def _load_from_url(url: str, timeout: float) -> tuple[str, str]:
    try:
        response = httpx.get(url, timeout=timeout, follow_redirects=True)
        response.raise_for_status()
    except httpx.HTTPStatusError as exc:
        raise DescriptionFetchError(
            f"HTTP {exc.response.status_code} fetching API description from {url}",
            payload=exc.response.text,
        ) from exc
    except httpx.HTTPError as exc:
        raise DescriptionFetchError(
            f"Failed to fetch API description from {url}: {exc}"
        ) from exc

    content_type = response.headers.get("content-type", "")
    hint = ""
    if "json" in content_type:
        hint = "json"
    elif "yaml" in content_type or "yml" in content_type:
        hint = "yaml"
    return response.text, hint


def _load_from_file(path: str) -> tuple[str, str]:
    file_path = Path(path)
    if not file_path.is_file():
        raise DescriptionFetchError(f"API description file not found: {path}")
    try:
        content = file_path.read_text(encoding="utf-8")
    except OSError as exc:
        raise DescriptionFetchError(f"Failed to read API description {path}: {exc}") from exc

    suffix = file_path.suffix.lower()
    hint = ""
    if suffix == ".json":
        hint = "json"
    elif suffix in (".yaml", ".yml"):
        hint = "yaml"
    return content, hint


def _parse_content(content: str, hint: str = "") -> dict[str, Any]:
    """Parse JSON first (unless hinted YAML), then fall back to YAML."""
    if not content.strip():
        raise DescriptionFetchError("API description is empty")

    if hint != "yaml":
        try:
            result = json.loads(content)
        except json.JSONDecodeError as exc:
            if hint == "json":
                raise DescriptionFetchError(f"Invalid JSON in API description: {exc}") from exc
        else:
            return _require_object(result)

    try:
        result = yaml.safe_load(content)
    except yaml.YAMLError as exc:
        raise DescriptionFetchError(
            f"Failed to parse API description as JSON or YAML: {exc}"
        ) from exc
    return _require_object(result)


def _require_object(result: Any) -> dict[str, Any]:
    if not isinstance(result, dict):
        kind = type(result).__name__ if result is not None else "empty document"
        raise DescriptionFetchError(f"API description must be an object (got {kind})")
    return result
