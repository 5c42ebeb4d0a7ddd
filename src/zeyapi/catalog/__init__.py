"""Route catalog -- fetch an API description, derive routes, persist them.

Typical usage::

    from zeyapi.catalog import RouteCatalog, assign_names, generate_routes, load_description

    description = load_description(settings.description_url)
    routes = generate_routes(description)
    RouteCatalog(settings.routes_dir).save_all(assign_names(routes))

Sub-modules:

* :mod:`~zeyapi.catalog.loader` -- URL/file I/O and JSON/YAML parsing.
* :mod:`~zeyapi.catalog.generator` -- (path, method) walk and naming.
* :mod:`~zeyapi.catalog.store` -- one JSON file per route.
"""

from zeyapi.catalog.generator import assign_names, file_name_for, generate_routes
from zeyapi.catalog.loader import load_description
from zeyapi.catalog.store import RouteCatalog

__all__ = [
    "RouteCatalog",
    "assign_names",
    "file_name_for",
    "generate_routes",
    "load_description",
]
