"""gremlin-mcp -- Expose the Gremlin reliability API over the Model Context Protocol.

This package wraps the Gremlin REST API (``https://api.gremlin.com/v1``) as a
set of MCP tools and resources so that an AI assistant can inspect teams,
services, reliability reports and recent reliability tests.  Every upstream
call goes through a single caching, retrying HTTP client.

Typical workflow::

    export GREMLIN_API_KEY=...
    gremlin-mcp check     # verify the key against users/self
    gremlin-mcp serve     # run the MCP server over stdio

Modules:
    app: Typer application and CLI entry point.
    models: Pydantic configuration and Vendor API payload models.
    config: Configuration precedence and credential resolution.
    exceptions: Exception hierarchy with exit-code mapping.
    exit_codes: Numeric process exit codes.
    output: stdout/stderr output discipline with Rich support.
"""

__version__ = "0.1.0"
