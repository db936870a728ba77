"""MCP server for noteimpact.

Exposes note classification, impact totals and the review queue to agents via
the Model Context Protocol.

Usage:
    uv run python -m noteimpact.mcp_server [--db /path/to/noteimpact.db]
"""

from __future__ import annotations

import json
import os
import sys
import uuid
from pathlib import Path

import mcp.server.stdio
import mcp.types as types
from mcp.server import Server

from noteimpact.classification.classifier import NoteClassifier
from noteimpact.config import Config
from noteimpact.pipeline import ImpactPipeline, handle_trigger
from noteimpact.storage.db import get_connection
from noteimpact.storage.repository import ImpactRepository


def _resolve_db_path() -> Path:
    """Find the database, checking CLI args, env var, then current directory."""
    for i, arg in enumerate(sys.argv):
        if arg == "--db" and i + 1 < len(sys.argv):
            return Path(sys.argv[i + 1])

    env_db = os.getenv("NOTEIMPACT_DB_PATH")
    if env_db:
        return Path(env_db)

    return Path("noteimpact.db")


DB_PATH = _resolve_db_path()

server = Server("noteimpact")


def _text(payload) -> list[types.TextContent]:
    if isinstance(payload, str):
        return [types.TextContent(type="text", text=payload)]
    return [types.TextContent(type="text", text=json.dumps(payload, indent=2, default=str))]


@server.list_tools()
async def list_tools() -> list[types.Tool]:
    return [
        types.Tool(
            name="classify_note",
            description=(
                "Classify a climate action note (e.g. 'biked 5 miles to school instead "
                "of driving') and store its estimated CO2, plastic, water and energy "
                "savings. Low-confidence results are queued for human review."
            ),
            inputSchema={
                "type": "object",
                "properties": {
                    "note_text": {"type": "string", "description": "The note text"},
                    "user_id": {"type": "string", "description": "Author id"},
                    "note_id": {
                        "type": "string",
                        "description": "Optional note id; re-using one overwrites its record",
                    },
                },
                "required": ["note_text", "user_id"],
            },
        ),
        types.Tool(
            name="get_impact_totals",
            description=(
                "Summed impact across all classified notes, or for one user, "
                "with a per-category count of actions."
            ),
            inputSchema={
                "type": "object",
                "properties": {
                    "user_id": {"type": "string", "description": "Optional: restrict to one user"},
                },
            },
        ),
        types.Tool(
            name="list_review_queue",
            description="List notes whose classification needs human review.",
            inputSchema={
                "type": "object",
                "properties": {
                    "status": {
                        "type": "string",
                        "enum": ["pending", "resolved"],
                        "description": "Queue status (default pending)",
                    },
                    "limit": {"type": "integer", "description": "Max entries (default 20)"},
                },
            },
        ),
    ]


@server.call_tool()
async def call_tool(name: str, arguments: dict) -> list[types.TextContent]:
    try:
        return _dispatch_tool(name, arguments)
    except Exception as e:
        return _text(f"Error: {e}")


def _dispatch_tool(name: str, arguments: dict) -> list[types.TextContent]:
    """Route a tool call to the appropriate handler."""
    if name == "classify_note":
        return _handle_classify(arguments)
    elif name == "get_impact_totals":
        return _handle_totals(arguments.get("user_id"))
    elif name == "list_review_queue":
        return _handle_review_queue(
            arguments.get("status", "pending"),
            int(arguments.get("limit", 20)),
        )
    else:
        return _text(f"Unknown tool: {name}")


def _handle_classify(arguments: dict) -> list[types.TextContent]:
    config = Config.load()
    if not config.anthropic_api_key:
        return _text({"success": False, "error": "ANTHROPIC_API_KEY not set"})

    payload = {
        "note_id": arguments.get("note_id") or str(uuid.uuid4()),
        "note_text": arguments.get("note_text"),
        "user_id": arguments.get("user_id"),
    }
    conn = get_connection(DB_PATH)
    try:
        classifier = NoteClassifier(
            config.make_client(), config.model, timeout=config.classify_timeout
        )
        response = handle_trigger(payload, ImpactPipeline(classifier, ImpactRepository(conn)))
    finally:
        conn.close()
    return _text({"note_id": payload["note_id"], **response})


def _handle_totals(user_id: str | None) -> list[types.TextContent]:
    conn = get_connection(DB_PATH)
    try:
        totals = ImpactRepository(conn).get_totals(user_id=user_id)
    finally:
        conn.close()
    return _text({"user_id": user_id, **totals.to_dict()})


def _handle_review_queue(status: str, limit: int) -> list[types.TextContent]:
    conn = get_connection(DB_PATH)
    try:
        entries = ImpactRepository(conn).list_review_queue(status=status, limit=limit)
    finally:
        conn.close()
    if not entries:
        return _text("Review queue is empty.")
    return _text({"status": status, "count": len(entries), "entries": entries})


async def main() -> None:
    async with mcp.server.stdio.stdio_server() as (read_stream, write_stream):
        await server.run(
            read_stream,
            write_stream,
            server.create_initialization_options(),
        )


if __name__ == "__main__":
    import asyncio
    asyncio.run(main())
