"""Tagged body-template nodes.

A route's optional request body is stored on disk as plain JSON in which any
string leaf of the exact form ``{name}`` marks a value to be supplied at run
time. In memory the body is a tree of four node kinds:

* :class:`Literal` -- any JSON scalar that is not a placeholder.
* :class:`Placeholder` -- a ``{name}`` leaf.
* :class:`ObjectNode` -- a JSON object, fields in document order.
* :class:`ListNode` -- a JSON array.

:func:`parse_template` converts JSON to nodes and :func:`to_data` converts
back; ``to_data(parse_template(x)) == x`` for any JSON value *x*.
"""

from __future__ import annotations

import re
from dataclasses import dataclass, field
from typing import Any, Union

BODY_PLACEHOLDER = re.compile(r"\{([^{}]+)\}")


@dataclass(frozen=True)
class Literal:
    value: Any


@dataclass(frozen=True)
class Placeholder:
    name: str

    @property
    def token(self) -> str:
        return "{" + self.name + "}"


@dataclass(frozen=True)
class ObjectNode:
    fields: dict[str, "TemplateNode"] = field(default_factory=dict)


@dataclass(frozen=True)
class ListNode:
    items: tuple["TemplateNode", ...] = ()


TemplateNode = Union[Literal, Placeholder, ObjectNode, ListNode]


def parse_template(value: Any) -> TemplateNode:
    """Build a node tree from a decoded JSON value."""
    if isinstance(value, dict):
        return ObjectNode({str(k): parse_template(v) for k, v in value.items()})
    if isinstance(value, (list, tuple)):
        return ListNode(tuple(parse_template(v) for v in value))
    if isinstance(value, str):
        match = BODY_PLACEHOLDER.fullmatch(value)
        if match:
            return Placeholder(match.group(1))
    return Literal(value)


def to_data(node: TemplateNode) -> Any:
    """Convert a node tree back into plain JSON data."""
    if isinstance(node, ObjectNode):
        return {k: to_data(v) for k, v in node.fields.items()}
    if isinstance(node, ListNode):
        return [to_data(item) for item in node.items]
    if isinstance(node, Placeholder):
        return node.token
    return node.value


def placeholder_names(node: TemplateNode) -> list[str]:
    """Return placeholder names in depth-first order, without duplicates."""
    names: list[str] = []

    def _walk(n: TemplateNode) -> None:
        if isinstance(n, Placeholder):
            if n.name not in names:
                names.append(n.name)
        elif isinstance(n, ObjectNode):
            for child in n.fields.values():
                _walk(child)
        elif isinstance(n, ListNode):
            for child in n.items:
                _walk(child)

    _walk(node)
    return names
