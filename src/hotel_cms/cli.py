"""CLI for hotel-cms (list, read, search, check, export, create, MCP server)."""

import json
from pathlib import Path
from typing import Annotated

import typer
from loguru import logger

from hotel_cms.backend import open_gateway
from hotel_cms.core.export.ai_json import clean_ai_json
from hotel_cms.core.export.csv_export import export_csv
from hotel_cms.core.sync.records import TemplateLibrary
from hotel_cms.core.sync.shard_sync import ShardSync
from hotel_cms.core.tree.markdown import render_subtree_as_markdown
from hotel_cms.core.tree.navigation import breadcrumbs, iter_nodes
from hotel_cms.core.tree.operations import initial_tree
from hotel_cms.core.tree.stats import compute_stats
from hotel_cms.core.tree.transform import filter_tree, tree_from_template
from hotel_cms.core.validation import apply_fix, run_local_validation
from hotel_cms.logging_config import configure_logging
from hotel_cms.models.node import ContentNode
from hotel_cms.models.serialization import node_from_dict, node_to_dict

app = typer.Typer(help="Hotel CMS: browse, check and export hotel content trees.")

EXPORT_FORMATS = ("csv", "txt", "json")

DataDirOption = Annotated[
    Path | None,
    typer.Option("--data-dir", "-d", help="Local cache directory"),
]
OfflineOption = Annotated[
    bool,
    typer.Option("--offline", help="Use the local cache only, never the remote store"),
]


@app.callback()
def main(
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Enable debug logging"),
    log_file: Annotated[
        Path | None,
        typer.Option("--log-file", help="Also write debug logs to this file"),
    ] = None,
) -> None:
    configure_logging(verbose=verbose, log_file=log_file)


def _gateway(data_dir: Path | None, offline: bool) -> ShardSync:
    try:
        return open_gateway(data_dir, offline=offline)
    except RuntimeError as e:
        logger.error("{} (use --offline to work from the local cache)", e)
        raise typer.Exit(1) from e


def _load(gateway: ShardSync, doc_id: str) -> ContentNode:
    tree = gateway.load(doc_id)
    if tree is None:
        typer.echo(f"Document '{doc_id}' not found.")
        raise typer.Exit(1)
    return tree


@app.command()
def documents(data_dir: DataDirOption = None, offline: OfflineOption = False) -> None:
    """List all hotel documents."""
    hotels = _gateway(data_dir, offline).list()
    typer.echo(f"{len(hotels)} documents:\n")
    for h in hotels:
        typer.echo(f"  {h.name}  [id={h.id}]")


@app.command()
def show(
    doc_id: str = typer.Argument(..., help="Document ID"),
    node_id: Annotated[
        str | None,
        typer.Option("--node", "-n", help="Node to start at (default: root)"),
    ] = None,
    max_depth: Annotated[
        int | None,
        typer.Option("--max-depth", "-m", help="Max depth levels to render"),
    ] = None,
    data_dir: DataDirOption = None,
    offline: OfflineOption = False,
) -> None:
    """Show a document or one of its subtrees as markdown."""
    tree = _load(_gateway(data_dir, offline), doc_id)
    md = render_subtree_as_markdown(tree, node_id=node_id, max_depth=max_depth)
    if not md:
        typer.echo(f"Node '{node_id}' not found in document.")
        raise typer.Exit(1)
    typer.echo(md, nl=False)


@app.command()
def search(
    doc_id: str = typer.Argument(..., help="Document ID"),
    query: str = typer.Argument(..., help="Search text (case-insensitive)"),
    data_dir: DataDirOption = None,
    offline: OfflineOption = False,
    output_json: bool = typer.Option(False, "--json", "-j", help="Output as JSON"),
) -> None:
    """Show the document pruned to nodes matching a query, with their ancestors."""
    tree = _load(_gateway(data_dir, offline), doc_id)
    filtered = filter_tree(tree, query)
    if filtered is None:
        typer.echo(f"No matches for '{query}'.")
        return
    if output_json:
        typer.echo(json.dumps(node_to_dict(filtered), indent=2, ensure_ascii=False))
    else:
        typer.echo(render_subtree_as_markdown(filtered), nl=False)


@app.command()
def stats(
    doc_id: str = typer.Argument(..., help="Document ID"),
    data_dir: DataDirOption = None,
    offline: OfflineOption = False,
) -> None:
    """Print node counts, depth and completion rate."""
    s = compute_stats(_load(_gateway(data_dir, offline), doc_id))
    typer.echo(f"Nodes:           {s.total_nodes}")
    typer.echo(f"Depth:           {s.depth}")
    typer.echo(f"Categories:      {s.categories}")
    typer.echo(f"Fillable items:  {s.fillable_items}")
    typer.echo(f"Empty fields:    {s.empty_field_count}")
    typer.echo(f"Completion:      {s.completion_rate}%")


@app.command()
def check(
    doc_id: str = typer.Argument(..., help="Document ID"),
    fix: bool = typer.Option(False, "--fix", help="Apply automatic fixes and save"),
    data_dir: DataDirOption = None,
    offline: OfflineOption = False,
) -> None:
    """Run local data-health checks."""
    gateway = _gateway(data_dir, offline)
    tree = _load(gateway, doc_id)
    issues = run_local_validation(tree)
    if not issues:
        typer.echo("No issues found.")
        return

    typer.echo(f"{len(issues)} issue(s):\n")
    for issue in issues:
        path = " > ".join(breadcrumbs(tree, issue.node_id))
        typer.echo(f"  [{issue.severity}] {issue.message}")
        typer.echo(f"    {path}  (id={issue.node_id})")

    if fix:
        fixed = tree
        for issue in issues:
            fixed = apply_fix(fixed, issue)
        if fixed is tree:
            typer.echo("\nNothing to fix automatically.")
            return
        result = gateway.save(doc_id, fixed)
        where = "remote store" if result.remote else "local cache"
        typer.echo(f"\nFixes applied and saved to the {where}.")


@app.command()
def export(
    doc_id: str = typer.Argument(..., help="Document ID"),
    fmt: Annotated[
        str,
        typer.Option("--format", "-f", help="csv, txt (markdown for AI context) or json"),
    ] = "txt",
    output: Annotated[
        Path | None,
        typer.Option("--output", "-o", help="Write to this file instead of stdout"),
    ] = None,
    data_dir: DataDirOption = None,
    offline: OfflineOption = False,
) -> None:
    """Export a document as CSV, AI-friendly text or clean JSON."""
    if fmt not in EXPORT_FORMATS:
        typer.echo(f"Unknown format '{fmt}', expected one of: {', '.join(EXPORT_FORMATS)}")
        raise typer.Exit(1)

    tree = _load(_gateway(data_dir, offline), doc_id)
    if fmt == "csv":
        text = export_csv(tree)
    elif fmt == "json":
        text = json.dumps(clean_ai_json(tree), indent=2, ensure_ascii=False) + "\n"
    else:
        text = render_subtree_as_markdown(tree)

    if output is None:
        typer.echo(text, nl=False)
        return
    output.write_text(text, encoding="utf-8")
    typer.echo(f"Wrote {output}")


@app.command()
def create(
    name: str = typer.Argument(..., help="Hotel name"),
    template_id: Annotated[
        str | None,
        typer.Option("--template", "-t", help="Start from this template"),
    ] = None,
    structure_only: bool = typer.Option(
        False, "--structure-only", help="Drop the template's values, keep its structure"
    ),
    data_dir: DataDirOption = None,
    offline: OfflineOption = False,
) -> None:
    """Create a new hotel document."""
    gateway = _gateway(data_dir, offline)
    if template_id is None:
        tree = initial_tree(name)
    else:
        template = TemplateLibrary(gateway.remote, gateway.cache).get(template_id)
        if template is None:
            typer.echo(f"Template '{template_id}' not found.")
            raise typer.Exit(1)
        tree = tree_from_template(template.data, name, keep_values=not structure_only)
    doc_id = gateway.create(tree)
    typer.echo(f"Created '{name}' [id={doc_id}]")


@app.command(name="import-json")
def import_json(
    path: Path = typer.Argument(..., help="JSON file holding a content tree"),
    doc_id: Annotated[
        str | None,
        typer.Option("--doc-id", help="Overwrite this document instead of creating one"),
    ] = None,
    data_dir: DataDirOption = None,
    offline: OfflineOption = False,
) -> None:
    """Import a content tree from a JSON file."""
    try:
        tree = node_from_dict(json.loads(path.read_text(encoding="utf-8")))
    except FileNotFoundError:
        logger.error("File not found: {}", path)
        raise typer.Exit(1) from None
    except ValueError as e:
        logger.error("Not a valid content tree: {}", e)
        raise typer.Exit(1) from e

    gateway = _gateway(data_dir, offline)
    count = sum(1 for _ in iter_nodes(tree))
    if doc_id is None:
        doc_id = gateway.create(tree)
    else:
        gateway.save(doc_id, tree)
    typer.echo(f"Imported {count} nodes [id={doc_id}]")


@app.command()
def templates(data_dir: DataDirOption = None, offline: OfflineOption = False) -> None:
    """List saved hotel templates."""
    gateway = _gateway(data_dir, offline)
    items = TemplateLibrary(gateway.remote, gateway.cache).list()
    typer.echo(f"{len(items)} templates:\n")
    for t in items:
        desc = f" - {t.description}" if t.description else ""
        typer.echo(f"  {t.name}{desc}  [id={t.id}]")


@app.command()
def serve() -> None:
    """Start the MCP server (stdio transport)."""
    from hotel_cms.mcp.server import run_mcp_server

    run_mcp_server()
