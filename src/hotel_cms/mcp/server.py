"""MCP server exposing hotel content reading, checking and AI-action tools."""

from collections.abc import AsyncIterator
from contextlib import asynccontextmanager
from dataclasses import dataclass
from typing import Any

from loguru import logger
from mcp.server.fastmcp import Context, FastMCP

from hotel_cms.backend import open_gateway
from hotel_cms.core.actions import action_from_dict, apply_actions
from hotel_cms.core.export.ai_json import clean_ai_json
from hotel_cms.core.sync.shard_sync import ShardSync
from hotel_cms.core.tree.markdown import render_subtree_as_markdown
from hotel_cms.core.tree.navigation import breadcrumbs, find_node, iter_nodes
from hotel_cms.core.tree.stats import compute_stats
from hotel_cms.core.tree.transform import node_matches
from hotel_cms.core.validation import run_local_validation
from hotel_cms.models.node import ContentNode
from hotel_cms.models.payload import primary_content


def _load(gateway: ShardSync, document: str) -> tuple[ContentNode | None, dict[str, Any] | None]:
    tree = gateway.load(document)
    if tree is None:
        return None, {"error": f"Document '{document}' not found."}
    return tree, None


# --- Core functions (testable without MCP context) ---


def hotel_list_documents(gateway: ShardSync) -> dict[str, Any]:
    """List all hotel documents."""
    hotels = gateway.list()
    return {
        "documents": [{"id": h.id, "name": h.name} for h in hotels],
        "count": len(hotels),
    }


def hotel_read_node(
    gateway: ShardSync,
    *,
    document: str,
    node_id: str | None = None,
    max_depth: int | None = None,
    output_format: str = "markdown",
    include_notes: bool = True,
) -> dict[str, Any]:
    """Read a node and its subtree as markdown or clean JSON.

    Args:
        document: Document ID.
        node_id: Node to read (None = the root).
        max_depth: Max depth levels to include (None = unlimited).
        output_format: "markdown" or "json".
        include_notes: Include node descriptions in markdown output.
    """
    tree, error = _load(gateway, document)
    if tree is None:
        return error or {}
    node = tree if node_id is None else find_node(tree, node_id)
    if node is None:
        return {"error": f"Node '{node_id}' not found."}

    result: dict[str, Any] = {
        "node_id": node.id,
        "name": node.name,
        "breadcrumbs": " > ".join(breadcrumbs(tree, node.id)),
        "child_count": len(node.children),
    }
    if output_format == "json":
        result["content"] = clean_ai_json(node)
    else:
        result["content"] = render_subtree_as_markdown(
            tree, node_id=node.id, max_depth=max_depth, include_notes=include_notes
        )
    return result


def hotel_search(
    gateway: ShardSync,
    *,
    document: str,
    query: str,
    limit: int = 20,
) -> dict[str, Any]:
    """Find nodes whose name, value, attributes or tags contain the query.

    Args:
        document: Document ID.
        query: Case-insensitive search text.
        limit: Max results (1-100, default 20).
    """
    if not query.strip():
        return {"error": "No search query provided.", "results": [], "count": 0, "total": 0}
    tree, error = _load(gateway, document)
    if tree is None:
        return {**(error or {}), "results": [], "count": 0, "total": 0}

    limit = max(1, min(limit, 100))
    hits = [n for n in iter_nodes(tree) if node_matches(n, query.strip())]
    results = [
        {
            "node_id": n.id,
            "kind": n.kind,
            "name": n.name,
            "content": primary_content(n),
            "breadcrumbs": " > ".join(breadcrumbs(tree, n.id)),
        }
        for n in hits[:limit]
    ]
    return {
        "results": results,
        "count": len(results),
        "total": len(hits),
        "has_more": len(hits) > len(results),
    }


def hotel_stats(gateway: ShardSync, *, document: str) -> dict[str, Any]:
    """Counters and completion rate of a document."""
    tree, error = _load(gateway, document)
    if tree is None:
        return error or {}
    s = compute_stats(tree)
    return {
        "total_nodes": s.total_nodes,
        "depth": s.depth,
        "categories": s.categories,
        "fillable_items": s.fillable_items,
        "empty_field_count": s.empty_field_count,
        "completion_rate": s.completion_rate,
    }


def hotel_validate(gateway: ShardSync, *, document: str) -> dict[str, Any]:
    """Run the local data-health checks."""
    tree, error = _load(gateway, document)
    if tree is None:
        return error or {}
    issues = run_local_validation(tree)
    return {
        "issues": [
            {
                "id": i.id,
                "node_id": i.node_id,
                "node_name": i.node_name,
                "severity": i.severity,
                "message": i.message,
                "fixable": i.fix is not None and bool(i.fix.data),
            }
            for i in issues
        ],
        "count": len(issues),
    }


def hotel_apply_actions(
    gateway: ShardSync,
    *,
    document: str,
    actions: list[dict[str, Any]],
) -> dict[str, Any]:
    """Apply structural actions in order and save the result.

    Each action is ``{"type": "add"|"update"|"delete"|"move", "targetId": ...,
    "data": {...}, "destinationId": ...}``. Failing actions are reported and skipped.
    """
    tree, error = _load(gateway, document)
    if tree is None:
        return error or {}

    parsed = []
    invalid: list[dict[str, Any]] = []
    for raw in actions:
        try:
            parsed.append(action_from_dict(raw))
        except (KeyError, TypeError) as e:
            invalid.append({"action": raw, "error": f"malformed action: {e}"})

    report = apply_actions(tree, parsed)
    failed = invalid + [
        {"type": a.type, "target_id": a.target_id, "error": msg} for a, msg in report.failed
    ]

    saved = False
    remote = False
    if report.tree is not tree:
        result = gateway.save(document, report.tree)
        saved, remote = True, result.remote
    return {
        "applied": len(report.applied),
        "failed": failed,
        "saved": saved,
        "remote": remote,
    }


# --- MCP Server Setup ---


@dataclass
class ServerContext:
    """Shared resources for the MCP server lifetime."""

    gateway: ShardSync


@asynccontextmanager
async def server_lifespan(_server: FastMCP) -> AsyncIterator[ServerContext]:
    """Open the gateway on startup, close the local cache on shutdown."""
    gateway = open_gateway()
    logger.info("MCP server ready (remote store: {})", gateway.remote is not None)
    try:
        yield ServerContext(gateway=gateway)
    finally:
        gateway.cache.close()


mcp_server = FastMCP(
    "hotel-cms",
    instructions="""\
Hotel content is a tree: categories contain fields, lists, menus, events and Q&A pairs.

1. Call hotel_list_documents_tool to find a document id.
2. Read with hotel_read_node_tool; use max_depth=1 or 2 for a table of contents,
   then read interesting nodes by node_id.
3. Search with hotel_search_tool; results carry breadcrumbs, not children.
4. hotel_validate_tool lists empty or suspicious nodes worth filling in.
5. hotel_apply_actions_tool edits the tree. Use node ids from read/search results.
""",
    lifespan=server_lifespan,
)


def _ctx(mcp_ctx: Context) -> ServerContext:
    return mcp_ctx.request_context.lifespan_context  # type: ignore[return-value]


# --- MCP Tool Wrappers ---


@mcp_server.tool()
async def hotel_list_documents_tool(ctx: Context) -> dict[str, Any]:
    """List all hotel documents (id and name)."""
    return hotel_list_documents(_ctx(ctx).gateway)


@mcp_server.tool()
async def hotel_read_node_tool(
    ctx: Context,
    document: str,
    node_id: str | None = None,
    max_depth: int | None = None,
    output_format: str = "markdown",
    include_notes: bool = True,
) -> dict[str, Any]:
    """Read a node and its subtree.

    Args:
        document: Document ID from hotel_list_documents_tool.
        node_id: Node ID (omit for the whole document).
        max_depth: Max depth levels (None = unlimited).
        output_format: "markdown" (human-readable) or "json" (structured).
        include_notes: Include node descriptions.
    """
    return hotel_read_node(
        _ctx(ctx).gateway,
        document=document,
        node_id=node_id,
        max_depth=max_depth,
        output_format=output_format,
        include_notes=include_notes,
    )


@mcp_server.tool()
async def hotel_search_tool(
    ctx: Context,
    document: str,
    query: str,
    limit: int = 20,
) -> dict[str, Any]:
    """Search a document's nodes by name, value, attributes and tags.

    Args:
        document: Document ID.
        query: Case-insensitive search text.
        limit: Max results (1-100, default 20).
    """
    return hotel_search(_ctx(ctx).gateway, document=document, query=query, limit=limit)


@mcp_server.tool()
async def hotel_stats_tool(ctx: Context, document: str) -> dict[str, Any]:
    """Node counts, depth and completion rate of a document."""
    return hotel_stats(_ctx(ctx).gateway, document=document)


@mcp_server.tool()
async def hotel_validate_tool(ctx: Context, document: str) -> dict[str, Any]:
    """List data-health issues: empty values, missing prices, deep nesting, duplicates."""
    return hotel_validate(_ctx(ctx).gateway, document=document)


@mcp_server.tool()
async def hotel_apply_actions_tool(
    ctx: Context,
    document: str,
    actions: list[dict[str, Any]],
) -> dict[str, Any]:
    """Apply structural edits to a document and save it.

    Actions run in order; a failing action is skipped and reported.

    Args:
        document: Document ID.
        actions: List of {"type": "add"|"update"|"delete"|"move", "targetId": str,
            "data": {...}, "destinationId": str}. For "add", targetId is the parent
            and data is the new node; for "move", the node goes inside destinationId.
    """
    return hotel_apply_actions(_ctx(ctx).gateway, document=document, actions=actions)


def run_mcp_server() -> None:
    """Run the MCP server with stdio transport."""
    from hotel_cms.logging_config import configure_logging

    configure_logging(verbose=False)
    mcp_server.run(transport="stdio")
