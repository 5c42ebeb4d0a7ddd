"""Canonical Pydantic models shared across zeyapi.

Two persisted shapes live here:

* :class:`CredentialRecord` -- the OAuth2 client identity plus the current
  access/refresh token pair, stored in ``<workspace>/config.json``.
* :class:`RouteDefinition` -- one callable operation of the target API,
  stored in ``<workspace>/routes/<name>.json``.

Field aliases keep the on-disk JSON keys stable (``clientId``, ``route``,
``data``) while the Python attributes follow snake_case.
"""

from __future__ import annotations

from typing import Any, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator

from zeyapi.template import TemplateNode, parse_template


class CredentialRecord(BaseModel):
    """The persisted OAuth2 client identity and token pair.

    The record is treated as a value: a token exchange produces a new record
    via :meth:`with_tokens` instead of mutating the old one, so the access and
    refresh tokens are always replaced together.

    Example::

        CredentialRecord(
            instance="acme",
            client_id="cli-app",
            secret="s3cret",
            access_token="at-1",
            refresh_token="rt-1",
        )
    """

    model_config = ConfigDict(populate_by_name=True)

    instance: str = Field(description="ZeyOS instance identifier")
    client_id: str = Field(alias="clientId")
    secret: str = Field(description="OAuth2 client secret")
    access_token: str
    refresh_token: str

    def with_tokens(self, access_token: str, refresh_token: str) -> CredentialRecord:
        """Return a copy holding a fresh token pair."""
        return self.model_copy(
            update={"access_token": access_token, "refresh_token": refresh_token}
        )

    def to_file_data(self) -> dict[str, Any]:
        return self.model_dump(mode="json", by_alias=True)


class RouteDefinition(BaseModel):
    """A named, reusable template for one HTTP operation.

    ``route`` is the path template, e.g. ``/invoices/{id}``; each ``{name}``
    token is bound from the caller's parameters at run time. ``data`` is the
    optional JSON body template whose ``{name}`` string leaves are bound the
    same way.
    """

    model_config = ConfigDict(populate_by_name=True)

    route: str = Field(description="Path template relative to the API base")
    method: str = Field(description="HTTP method, upper-case")
    description: str = ""
    data: Optional[Any] = Field(default=None, description="Body template")

    @field_validator("method")
    @classmethod
    def _upper_method(cls, value: str) -> str:
        return value.upper()

    @property
    def body_template(self) -> Optional[TemplateNode]:
        if self.data is None:
            return None
        return parse_template(self.data)

    def to_file_data(self) -> dict[str, Any]:
        """On-disk shape; ``data`` is omitted when the route has no body."""
        data = self.model_dump(mode="json")
        if data["data"] is None:
            del data["data"]
        return data
