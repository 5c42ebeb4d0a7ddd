"""Numeric process exit codes.

Every fatal condition (missing credential file, unknown route, failed token
exchange or refresh, unreachable API description) exits with
:data:`EXIT_FAILURE`. HTTP error responses returned by the target API while
running a route are *not* fatal and leave the exit code at
:data:`EXIT_SUCCESS`.

Example::

    $ zeyapi run no-such-route-get
    Error: Route no-such-route-get does not exist.
    $ echo $?
    1
"""

EXIT_SUCCESS = 0
"""The command completed (including routes that returned HTTP errors)."""

EXIT_FAILURE = 1
"""A fatal error aborted the command."""

EXIT_INTERRUPTED = 130
"""The operator pressed Ctrl-C."""
