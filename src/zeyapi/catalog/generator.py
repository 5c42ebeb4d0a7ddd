"""Build route definitions from an API description.

:func:`generate_routes` walks the description's ``paths`` object in document
order and emits one :class:`~zeyapi.models.RouteDefinition` per
(path, HTTP method) pair. Path templates are kept verbatim, so ``{id}``
segments become run-time placeholders without renaming.

Non-path parameters (query, header, cookie, formData) are always discovered,
with operation-level parameters overriding path-level ones that share the
same ``name`` and ``in``. They only end up in the route's body template when
the caller opts in with ``merge_parameters=True``: each becomes a field
``{"<name>": "{<name>}"}``.

Every route is addressed by a derived name (:func:`file_name_for`);
:func:`assign_names` makes those names unique.
"""

from __future__ import annotations

import re
from typing import Any, Optional

from zeyapi.models import RouteDefinition
from zeyapi.output import warning

# Path-item keys that are operations; everything else (parameters, servers,
# summary, $ref, ...) is ignored.
HTTP_METHODS = ("get", "put", "post", "delete", "options", "head", "patch", "trace")

_BRACES = re.compile(r"[{}]")


def generate_routes(
    description: dict[str, Any],
    merge_parameters: bool = False,
) -> list[RouteDefinition]:
    """Extract one route per (path, method) pair.

    Args:
        description: A parsed API description with a ``paths`` object.
        merge_parameters: Turn discovered non-path parameters into body
            template placeholders.

    Returns:
        Routes in description order.
    """
    routes: list[RouteDefinition] = []
    for path, path_item in (description.get("paths") or {}).items():
        if not isinstance(path_item, dict):
            continue
        shared = path_item.get("parameters") or []
        for method in HTTP_METHODS:
            operation = path_item.get(method)
            if not isinstance(operation, dict):
                continue

            data: Optional[dict[str, str]] = None
            if merge_parameters:
                fields = {
                    name: "{" + name + "}"
                    for name in non_path_parameters(description, shared, operation)
                }
                data = fields or None

            routes.append(
                RouteDefinition(
                    route=path,
                    method=method.upper(),
                    description=operation.get("summary") or operation.get("description") or "",
                    data=data,
                )
            )
    return routes


def non_path_parameters(
    description: dict[str, Any],
    shared: list[Any],
    operation: dict[str, Any],
) -> list[str]:
    """Names of the operation's non-path parameters, in declaration order."""
    merged: dict[tuple[str, str], dict[str, Any]] = {}
    for raw in list(shared) + list(operation.get("parameters") or []):
        param = _deref(description, raw)
        name = param.get("name")
        location = param.get("in")
        if not name or not location:
            continue
        merged[(name, location)] = param

    names: list[str] = []
    for name, location in merged:
        if location != "path" and name not in names:
            names.append(name)
    return names


def _deref(description: dict[str, Any], obj: Any) -> dict[str, Any]:
    """Follow local ``#/...`` references (with a cycle guard)."""
    seen: set[str] = set()
    while isinstance(obj, dict) and isinstance(obj.get("$ref"), str):
        ref = obj["$ref"]
        if not ref.startswith("#/") or ref in seen:
            return {}
        seen.add(ref)
        target: Any = description
        for part in ref[2:].split("/"):
            part = part.replace("~1", "/").replace("~0", "~")
            if not isinstance(target, dict) or part not in target:
                return {}
            target = target[part]
        obj = target
    return obj if isinstance(obj, dict) else {}


def file_name_for(route: RouteDefinition) -> str:
    """Derive the catalog key of *route*.

    Strips the leading slash, removes placeholder braces, turns the remaining
    slashes into ``-``, lower-cases, and appends the lower-cased method::

        /invoices/{id} + GET  ->  invoices-id-get
    """
    stem = _BRACES.sub("", route.route.removeprefix("/")).replace("/", "-").lower()
    return f"{stem}-{route.method.lower()}"


def assign_names(routes: list[RouteDefinition]) -> list[tuple[str, RouteDefinition]]:
    """Pair each route with a unique catalog key.

    The first route to claim a key keeps it; later routes mapping to the
    same key get ``-2``, ``-3``, ... in generation order, and a warning is
    printed for each.
    """
    taken: set[str] = set()
    named: list[tuple[str, RouteDefinition]] = []
    for route in routes:
        base = file_name_for(route)
        name = base
        suffix = 2
        while name in taken:
            name = f"{base}-{suffix}"
            suffix += 1
        if name != base:
            warning(
                f"{route.method} {route.route} collides with an earlier route "
                f"named '{base}'; saved as '{name}'"
            )
        taken.add(name)
        named.append((name, route))
    return named
