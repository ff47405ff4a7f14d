"""Numeric process exit codes for the ``gremlin-mcp`` command.

Each constant maps to an error category and is referenced by the
corresponding :class:`~gremlin_mcp.exceptions.GremlinMcpError` subclass.
Wrapper scripts can inspect the exit code of ``gremlin-mcp check`` to tell
a bad key from an unreachable API without parsing stderr.

Example::

    $ gremlin-mcp check
    $ echo $?
    3   # EXIT_CONFIG_ERROR -- GREMLIN_API_KEY is not set
"""

EXIT_SUCCESS = 0
"""The command completed successfully."""

EXIT_GENERIC_FAILURE = 1
"""An unclassified error occurred."""

EXIT_INVALID_USAGE = 2
"""The command or a tool was invoked with invalid arguments."""

EXIT_CONFIG_ERROR = 3
"""Configuration is missing or invalid (API key, config file, env values)."""

EXIT_REQUEST_FAILED = 4
"""An upstream request failed on every retry attempt."""

EXIT_SERVER_ERROR = 5
"""The Gremlin API answered with a non-2xx status or an unreadable body."""

EXIT_CONNECTION_ERROR = 6
"""A network-level error occurred (timeout, DNS failure, connection refused)."""

EXIT_INTERRUPTED = 130
"""The process was interrupted with Ctrl-C."""
