"""Pure placeholder substitution for route templates.

Nothing in this module performs I/O. When a path placeholder has no bound
value the resolver returns :class:`NeedsValue` instead of prompting; the
caller obtains the value however it likes and calls again::

    result = resolve_path("/invoices/{id}", bindings)
    while isinstance(result, NeedsValue):
        bindings[result.name] = ask(result.name)
        result = resolve_path("/invoices/{id}", bindings)

Bound values are always injected as strings.
"""

from __future__ import annotations

import re
from dataclasses import dataclass
from typing import Any, Optional, Union

from zeyapi.models import RouteDefinition
from zeyapi.template import ListNode, Literal, ObjectNode, Placeholder, TemplateNode, to_data

PLACEHOLDER_PATTERN = re.compile(r"\{(\w+)\}")


@dataclass(frozen=True)
class NeedsValue:
    """Resolution is suspended until *name* is bound."""

    name: str


@dataclass(frozen=True)
class ResolvedPath:
    path: str


@dataclass(frozen=True)
class ResolvedRequest:
    """A fully materialised request, ready to send."""

    method: str
    url: str
    body: Any = None


PathResult = Union[ResolvedPath, NeedsValue]


def parse_params(raw: Optional[str]) -> dict[str, str]:
    """Parse ``key=value,key2=value2`` into a binding.

    Pairs without ``=`` or with an empty key or value are dropped. Only the
    first ``=`` splits, so values may themselves contain ``=``. Keys and values
    are kept exactly as typed; ``id = 5`` binds ``"id "`` rather than ``id``.
    """
    bindings: dict[str, str] = {}
    if not raw:
        return bindings
    for pair in raw.split(","):
        key, sep, value = pair.partition("=")
        if not sep or not key or not value:
            continue
        bindings[key] = value
    return bindings


def path_placeholders(path: str) -> list[str]:
    """Placeholder names in *path*, in order of first appearance."""
    names: list[str] = []
    for match in PLACEHOLDER_PATTERN.finditer(path):
        if match.group(1) not in names:
            names.append(match.group(1))
    return names


def resolve_path(path: str, bindings: dict[str, str]) -> PathResult:
    """Substitute every ``{name}`` token of *path*.

    Returns:
        :class:`NeedsValue` for the first unbound placeholder, otherwise
        :class:`ResolvedPath` with every occurrence replaced.
    """
    for name in path_placeholders(path):
        if not bindings.get(name):
            return NeedsValue(name)
    return ResolvedPath(PLACEHOLDER_PATTERN.sub(lambda m: str(bindings[m.group(1)]), path))


def resolve_body(node: TemplateNode, bindings: dict[str, str]) -> TemplateNode:
    """Replace bound placeholders anywhere in *node*.

    Unbound placeholders and literals are returned unchanged, so resolving
    with an empty binding is a no-op.
    """
    if isinstance(node, Placeholder):
        if node.name in bindings:
            return Literal(str(bindings[node.name]))
        return node
    if isinstance(node, ObjectNode):
        return ObjectNode({k: resolve_body(v, bindings) for k, v in node.fields.items()})
    if isinstance(node, ListNode):
        return ListNode(tuple(resolve_body(item, bindings) for item in node.items))
    return node


def resolve_request(
    route: RouteDefinition,
    bindings: dict[str, str],
    api_base: str,
) -> Union[ResolvedRequest, NeedsValue]:
    """Bind *route* against *bindings* and prefix its path with *api_base*.

    The body template (if any) is resolved with the same bindings; body
    placeholders never suspend resolution, only path placeholders do.
    """
    path = resolve_path(route.route, bindings)
    if isinstance(path, NeedsValue):
        return path

    body = None
    template = route.body_template
    if template is not None:
        body = to_data(resolve_body(template, bindings))
    return ResolvedRequest(method=route.method, url=f"{api_base}{path.path}", body=body)
