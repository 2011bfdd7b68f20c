"""Checkpoint commands: splice run, checkpoints, show and messages."""

from __future__ import annotations

import json
from pathlib import Path

import click
from rich import box
from rich.table import Table

from splice.cli.main import console, fail, resolve_workspace, workspace_option
from splice.core.errors import SpliceError


@click.command("run")
@click.argument("items_path", type=click.Path(exists=True, dir_okay=False))
@workspace_option
@click.option("--since", default=None, help="Keep items created at or after this ISO date")
@click.option("--until", default=None, help="Keep items created at or before this ISO date")
@click.option("--min-length", default=0, type=int, help="Minimum text length")
@click.option("--exclude-rt", is_flag=True, help="Drop retweets")
@click.option("--only-threads", is_flag=True, help="Drop conversations after grouping")
@click.option("--with-media", is_flag=True, help="Keep only items with media")
@click.option("--decisions-import", "decisions_import", default=None, type=click.Path(), help="Decisions JSONL to store")
@click.option("--set-status", default=None, help="Record this status for --ids / --ids-file")
@click.option("--ids", multiple=True, help="Item id for --set-status (repeatable)")
@click.option("--ids-file", default=None, type=click.Path(), help="JSON array or newline list of ids")
@click.option("--source-kind", default=None, help="Source kind recorded in the manifest (e.g. twitter)")
@click.option("--notes", default=None, help="Free-form note stored on the checkpoint")
@click.option("-n", "--dry-run", is_flag=True, help="Group only; do not write to the workspace")
@click.pass_context
def run(
    ctx: click.Context,
    items_path: str,
    workspace: str | None,
    out_dir: str | None,
    since: str | None,
    until: str | None,
    min_length: int,
    exclude_rt: bool,
    only_threads: bool,
    with_media: bool,
    decisions_import: str | None,
    set_status: str | None,
    ids: tuple[str, ...],
    ids_file: str | None,
    source_kind: str | None,
    notes: str | None,
    dry_run: bool,
):
    """Group normalized items and record a checkpoint.

    ITEMS_PATH is a JSONL file of normalized content items.
    """
    from splice.artifacts.checkpoints import CheckpointLedger
    from splice.artifacts.store import ObjectStore
    from splice.core.models import SourceRef
    from splice.decisions import decisions_from_ids, load_ids_file, read_decisions_jsonl
    from splice.pipeline.runner import read_items_jsonl, run_checkpoint
    from splice.transforms.filters import FilterOptions

    settings = ctx.obj["settings"]
    ws = resolve_workspace(settings, workspace, out_dir)
    items = read_items_jsonl(items_path)
    filters = FilterOptions(
        since=since,
        until=until,
        min_length=min_length,
        exclude_rt=exclude_rt,
        only_threads=only_threads,
        with_media=with_media,
    )

    decision_records = []
    if decisions_import:
        decision_records.extend(read_decisions_jsonl(decisions_import))
    if set_status:
        wanted = list(ids)
        if ids_file:
            wanted.extend(load_ids_file(ids_file))
        wanted = list(dict.fromkeys(i for i in wanted if i))
        decision_records.extend(decisions_from_ids(wanted, set_status, by="cli"))

    source_refs = [SourceRef(kind=source_kind, uri=str(Path(items_path).resolve()))] if source_kind else None

    try:
        if dry_run:
            result = run_checkpoint(items, None, None, filters, dry_run=True)
        else:
            result = run_checkpoint(
                items,
                ObjectStore(ws),
                CheckpointLedger(ws),
                filters,
                decisions=decision_records or None,
                source_refs=source_refs,
                notes=notes,
            )
    except SpliceError as e:
        fail(str(e))

    console.print(
        f"[bold]{result.total}[/bold] items, {len(result.filtered)} after filters: "
        f"[green]{len(result.threads)}[/green] threads, "
        f"[blue]{len(result.conversations)}[/blue] conversations"
    )
    if result.dry_run:
        console.print(f"[dim](dry-run) would create checkpoint in {ws}[/dim]")
    else:
        console.print(f"Saved checkpoint [bold]{result.checkpoint_id}[/bold] in {ws}")


@click.command("checkpoints")
@workspace_option
@click.pass_context
def list_checkpoints(ctx: click.Context, workspace: str | None, out_dir: str | None):
    """List checkpoints in the workspace, oldest first."""
    from splice.artifacts.checkpoints import CheckpointLedger

    ws = resolve_workspace(ctx.obj["settings"], workspace, out_dir)
    if not (ws / "checkpoints").exists():
        fail(f"No checkpoints found in {ws}. Run [bold]splice run[/bold] first.")

    manifests = CheckpointLedger(ws).list_checkpoints()
    if not manifests:
        console.print("[dim]No checkpoints found.[/dim]")
        return

    table = Table(title=f"Checkpoints ({len(manifests)})", box=box.ROUNDED)
    table.add_column("ID", style="bold", no_wrap=True)
    table.add_column("Created", no_wrap=True)
    table.add_column("Parent", style="dim", no_wrap=True)
    table.add_column("Transforms")
    table.add_column("Decisions", justify="center")

    for m in manifests:
        names = ", ".join(t.name for t in m.transforms) or "-"
        table.add_row(m.id, m.created_at, m.parent_id or "-", names, "yes" if m.decisions_ref else "-")
    console.print(table)


@click.command("show")
@click.argument("checkpoint_id", required=False)
@workspace_option
@click.pass_context
def show_checkpoint(ctx: click.Context, checkpoint_id: str | None, workspace: str | None, out_dir: str | None):
    """Print a checkpoint manifest as JSON.

    CHECKPOINT_ID defaults to the latest checkpoint.
    """
    from splice.artifacts.checkpoints import CheckpointLedger

    ws = resolve_workspace(ctx.obj["settings"], workspace, out_dir)
    ledger = CheckpointLedger(ws)
    try:
        manifest = ledger.read_checkpoint(checkpoint_id) if checkpoint_id else ledger.resolve_latest_checkpoint()
    except SpliceError as e:
        fail(str(e))
    if manifest is None:
        fail(f"No checkpoints found in {ws}")
    click.echo(json.dumps(manifest.to_dict(), indent=2))


@click.command("messages")
@click.argument("checkpoint_id", required=False)
@workspace_option
@click.option("-o", "--output", required=True, type=click.Path(dir_okay=False), help="Chat JSONL file to write")
@click.option("--system-message", default=None, help="System turn for each record (default: SPLICE_SYSTEM_MESSAGE)")
@click.pass_context
def export_messages(
    ctx: click.Context,
    checkpoint_id: str | None,
    workspace: str | None,
    out_dir: str | None,
    output: str,
    system_message: str | None,
):
    """Write a checkpoint's threads and conversations as chat-format JSONL.

    Each line is {"messages": [...]} with a leading system turn.
    CHECKPOINT_ID defaults to the latest checkpoint.
    """
    from splice.artifacts.checkpoints import CheckpointLedger
    from splice.artifacts.store import ObjectStore, load_conversations, load_threads
    from splice.transforms.text import messages_from_conversation

    settings = ctx.obj["settings"]
    ws = resolve_workspace(settings, workspace, out_dir)
    ledger = CheckpointLedger(ws)
    try:
        manifest = ledger.read_checkpoint(checkpoint_id) if checkpoint_id else ledger.resolve_latest_checkpoint()
        if manifest is None:
            fail(f"No checkpoints found in {ws}")
        refs = manifest.materialized or {}
        if "threadsRef" not in refs or "conversationsRef" not in refs:
            fail(f"Checkpoint {manifest.id} has no materialized threads or conversations")
        store = ObjectStore(ws)
        threads = load_threads(store, refs["threadsRef"])
        conversations = load_conversations(store, refs["conversationsRef"])
    except SpliceError as e:
        fail(str(e))

    system = system_message or settings.system_message
    path = Path(output)
    path.parent.mkdir(parents=True, exist_ok=True)
    written = 0
    with open(path, "w", encoding="utf-8") as f:
        for chain in [t.items for t in threads] + conversations:
            msgs = messages_from_conversation(chain, system_message=system)
            if not msgs:
                continue
            f.write(json.dumps({"messages": [m.to_dict() for m in msgs]}, ensure_ascii=False) + "\n")
            written += 1
    console.print(f"Wrote {written} conversation(s) from {manifest.id} to {path}")
