"""Entry point for the context-engine MCP server."""

from context_engine.server import create_server


def main() -> None:
    """Run the context-engine MCP server."""
    server = create_server()
    server.run(transport="stdio")


if __name__ == "__main__":
    main()
