"""File-backed route catalog.

One JSON file per route under ``<workspace>/routes/``; the file stem is the
route's catalog key (see :func:`~zeyapi.catalog.generator.file_name_for`).
Each file holds ``route``, ``method``, ``description`` and, when the route
has a body, ``data``.
"""

from __future__ import annotations

import json
from pathlib import Path
from typing import Optional

from pydantic import ValidationError

from zeyapi.config import write_json
from zeyapi.exceptions import RouteNotFoundError, StorageError
from zeyapi.models import RouteDefinition

_SUFFIX = ".json"


class RouteCatalog:
    """Read and write route files in *routes_dir*."""

    def __init__(self, routes_dir: Path) -> None:
        self._dir = routes_dir

    @property
    def directory(self) -> Path:
        return self._dir

    def save_all(self, named_routes: list[tuple[str, RouteDefinition]]) -> int:
        """Write every route, overwriting existing files of the same name.

        Returns:
            The number of files written.

        Raises:
            StorageError: If a file cannot be written.
        """
        try:
            self._dir.mkdir(parents=True, exist_ok=True)
            for name, route in named_routes:
                write_json(self._dir / f"{name}{_SUFFIX}", route.to_file_data())
        except OSError as exc:
            raise StorageError(f"Could not write routes to {self._dir}: {exc}") from exc
        return len(named_routes)

    def list(self, filter: Optional[str] = None) -> list[tuple[str, RouteDefinition]]:
        """Return ``(file name, route)`` pairs whose file name contains *filter*.

        Matching is a case-sensitive substring test on the file name
        (including the ``.json`` suffix). Files are enumerated in sorted
        order; a missing directory yields an empty list.
        """
        if not self._dir.is_dir():
            return []
        result: list[tuple[str, RouteDefinition]] = []
        for path in sorted(self._dir.iterdir()):
            if not path.is_file() or path.suffix != _SUFFIX:
                continue
            if filter and filter not in path.name:
                continue
            result.append((path.name, self._read(path)))
        return result

    def lookup(self, name: str) -> RouteDefinition:
        """Load the route called *name* (``.json`` suffix optional).

        Raises:
            RouteNotFoundError: If no such file exists.
            StorageError: If the file exists but is not a valid route.
        """
        stem = name.removesuffix(_SUFFIX)
        path = self._dir / f"{stem}{_SUFFIX}"
        if not stem or "/" in stem or not path.is_file():
            raise RouteNotFoundError(stem or name)
        return self._read(path)

    def _read(self, path: Path) -> RouteDefinition:
        try:
            data = json.loads(path.read_text(encoding="utf-8"))
            return RouteDefinition.model_validate(data)
        except (json.JSONDecodeError, OSError, ValidationError) as exc:
            raise StorageError(f"Invalid route file {path}: {exc}") from exc
