#!/usr/bin/env python3
"""
MCP Server for foolhtml - bundles files into a single HTML viewer and inlines HTML resources
"""

import asyncio
import logging
import pathlib
from typing import Any, Dict, List

from mcp.server import Server
from mcp.server.stdio import stdio_server
from mcp.types import TextContent, Tool

from .foolhtml import BundleError, BundleOptions, bundle, bytes_human
from .inliner import InlineOptions, inline_resources

# Set up logging
logging.basicConfig(level=logging.INFO)
logger = logging.getLogger(__name__)

# Initialize the MCP server
server = Server("foolhtml-mcp")


@server.list_tools()
async def list_tools() -> List[Tool]:
    """List available tools."""
    return [
        Tool(
            name="bundle_files",
            description="Bundle files and directories into one self-contained HTML viewer page",
            inputSchema={
                "type": "object",
                "properties": {
                    "output": {
                        "type": "string",
                        "description": "Path of the HTML file to write",
                    },
                    "paths": {
                        "type": "array",
                        "items": {"type": "string"},
                        "description": "Files or directories to include",
                    },
                    "fetch_remote": {
                        "type": "boolean",
                        "description": "Also inline http(s) references",
                    },
                    "skip_missing": {
                        "type": "boolean",
                        "description": "Skip missing inputs instead of failing",
                    },
                },
                "required": ["output", "paths"],
            },
        ),
        Tool(
            name="inline_html",
            description="Return an HTML file with its local stylesheets, scripts and images inlined",
            inputSchema={
                "type": "object",
                "properties": {
                    "path": {
                        "type": "string",
                        "description": "HTML file to inline",
                    },
                    "fetch_remote": {
                        "type": "boolean",
                        "description": "Also inline http(s) references",
                    },
                },
                "required": ["path"],
            },
        ),
    ]


def _bundle_files(arguments: Dict[str, Any]) -> str:
    if "output" not in arguments or "paths" not in arguments:
        raise ValueError("Missing required arguments: output, paths")
    options = BundleOptions(
        fetch_remote=bool(arguments.get("fetch_remote", False)),
        skip_missing=bool(arguments.get("skip_missing", False)),
    )
    logger.info(f"Bundling {len(arguments['paths'])} path(s) into {arguments['output']}")
    summary = bundle(arguments["output"], arguments["paths"], options)
    lines = [
        f"Combined {len(summary.entries)} files into {summary.output} ({bytes_human(summary.size)})",
    ]
    lines.extend(f"- {e.name} ({e.content_type})" for e in summary.entries)
    lines.extend(f"warning: {w}" for w in summary.warnings)
    return "\n".join(lines)


def _inline_html(arguments: Dict[str, Any]) -> str:
    if "path" not in arguments:
        raise ValueError("Missing required argument: path")
    path = pathlib.Path(arguments["path"]).absolute()
    logger.info(f"Inlining resources of {path}")
    text = path.read_bytes().decode("utf-8", errors="replace")
    options = InlineOptions(fetch_remote=bool(arguments.get("fetch_remote", False)))
    return inline_resources(path, text, options)


@server.call_tool()
async def call_tool(name: str, arguments: Dict[str, Any]) -> List[TextContent]:
    """Call a specific tool by name."""
    if name == "bundle_files":
        handler = _bundle_files
    elif name == "inline_html":
        handler = _inline_html
    else:
        raise ValueError(f"Unknown tool: {name}")

    try:
        text = await asyncio.to_thread(handler, arguments)
    except (BundleError, OSError) as e:
        logger.error(f"Error running {name}: {e}")
        raise
    return [TextContent(type="text", text=text)]


async def serve() -> None:
    """Run the MCP server over stdio."""
    async with stdio_server() as (read_stream, write_stream):
        await server.run(read_stream, write_stream, server.create_initialization_options())


def main() -> None:
    asyncio.run(serve())


if __name__ == "__main__":
    main()
