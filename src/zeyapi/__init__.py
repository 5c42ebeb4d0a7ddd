"""zeyapi -- call a ZeyOS-style REST API through named, persisted routes.

Instead of hand-building HTTP requests, the operator links an OAuth2 client
once, generates a local catalog of *routes* from the API's machine-readable
description, and then runs routes by name, supplying placeholder values on
the command line or interactively.

Typical workflow::

    zeyapi link                               # authorize and store tokens
    zeyapi generate                           # build the route catalog
    zeyapi routes invoice                     # find a route
    zeyapi run invoices-id-get -p id=42       # call it

Modules:
    app: Typer application and CLI entry point.
    config: Settings resolution and atomic file writes.
    models: Pydantic models for credentials and routes.
    template: Tagged body-template nodes.
    resolver: Pure placeholder substitution.
    engine: End-to-end route execution.
    exceptions: Exception hierarchy with exit-code mapping.
    output: stdout/stderr formatting system with Rich support.
"""

__version__ = "0.3.0"
