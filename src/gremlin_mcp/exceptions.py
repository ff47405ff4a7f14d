"""Exception hierarchy for gremlin-mcp.

All exceptions inherit from :class:`GremlinMcpError`, which carries an
``exit_code`` attribute mapped to a constant from :mod:`gremlin_mcp.exit_codes`.
The CLI entry point in :func:`gremlin_mcp.app.main` catches
``GremlinMcpError`` and exits with the matching code; the MCP server turns
the same exceptions into error results whose text is the exception message.

Subclass hierarchy::

    GremlinMcpError (exit 1)
    +-- InvalidUsageError   (exit 2)
    +-- ConfigError         (exit 3)
    +-- RequestFailed       (exit 4)
    +-- HttpStatusError     (exit 5)
    +-- ParseError          (exit 5)
    +-- TransportError      (exit 6)
    +-- ToolError           (exit 1)

:class:`TransportError`, :class:`HttpStatusError` and :class:`ParseError`
describe a single failed attempt and never leave the HTTP client on their
own.  Once every attempt has failed the client raises :class:`RequestFailed`
wrapping the most recent of them.
"""

from __future__ import annotations

from gremlin_mcp.exit_codes import (
    EXIT_CONFIG_ERROR,
    EXIT_CONNECTION_ERROR,
    EXIT_GENERIC_FAILURE,
    EXIT_INVALID_USAGE,
    EXIT_REQUEST_FAILED,
    EXIT_SERVER_ERROR,
)


class GremlinMcpError(Exception):
    """Base exception for all gremlin-mcp errors.

    Args:
        message: Human-readable error description.
        exit_code: Optional override for the class-level exit code.
    """

    exit_code: int = EXIT_GENERIC_FAILURE

    def __init__(self, message: str, exit_code: int | None = None):
        super().__init__(message)
        if exit_code is not None:
            self.exit_code = exit_code


class InvalidUsageError(GremlinMcpError):
    """Raised for invalid arguments, missing identifiers, or unknown resource URIs."""

    exit_code = EXIT_INVALID_USAGE


class ConfigError(GremlinMcpError):
    """Raised for configuration problems (missing API key, invalid config file or env value)."""

    exit_code = EXIT_CONFIG_ERROR


class TransportError(GremlinMcpError):
    """A connection could not be established or was interrupted."""

    exit_code = EXIT_CONNECTION_ERROR


class HttpStatusError(GremlinMcpError):
    """The Gremlin API answered with a non-2xx status code.

    Args:
        status_code: The HTTP status code of the response.
        detail: Optional error text extracted from the response body.
    """

    exit_code = EXIT_SERVER_ERROR

    def __init__(self, status_code: int, detail: str = "") -> None:
        message = f"HTTP error! status: {status_code}"
        if detail:
            message = f"{message}: {detail}"
        super().__init__(message)
        self.status_code = status_code
        self.detail = detail


class ParseError(GremlinMcpError):
    """A 2xx response body could not be decoded as JSON."""

    exit_code = EXIT_SERVER_ERROR


class RequestFailed(GremlinMcpError):
    """Raised once every retry attempt of a request has failed.

    Only the error from the final attempt is kept; earlier attempts are
    reported through debug output and then discarded.

    Args:
        url: The request URL (also the cache key).
        attempts: How many attempts were made.
        last_error: The error raised by the final attempt.
    """

    exit_code = EXIT_REQUEST_FAILED

    def __init__(self, url: str, attempts: int, last_error: GremlinMcpError) -> None:
        super().__init__(str(last_error))
        self.url = url
        self.attempts = attempts
        self.last_error = last_error


class ToolError(GremlinMcpError):
    """Short, user-facing failure message returned by a tool or resource handler."""

    exit_code = EXIT_GENERIC_FAILURE
