"""CLI entry point: python -m idlegarden.mcp [config.json]"""

from __future__ import annotations

import logging
import sys


def main() -> None:
    # stdout carries the MCP protocol; logs go to stderr
    logging.basicConfig(level=logging.WARNING, stream=sys.stderr)

    from idlegarden.catalog import default_catalog
    from idlegarden.config import GardenConfig, load_config

    config = load_config(sys.argv[1]) if len(sys.argv) > 1 else GardenConfig()

    from idlegarden.mcp.server import create_server

    server = create_server(default_catalog(), config)
    server.run(transport="stdio")


if __name__ == "__main__":
    main()
