"""Decision commands: splice decisions fold, splice decisions set."""

from __future__ import annotations

import click
from rich import box
from rich.table import Table

from splice.cli.main import console, fail


@click.group("decisions")
def decisions():
    """Inspect and record item decisions (export / skip / unread)."""
    pass


@decisions.command("fold")
@click.argument("decisions_path", type=click.Path(exists=True, dir_okay=False))
@click.option("--all-statuses", is_flag=True, help="Accept statuses outside unread/export/skip")
@click.option("--status", "status_filter", default=None, help="Only show ids with this status")
@click.pass_context
def fold(ctx: click.Context, decisions_path: str, all_statuses: bool, status_filter: str | None):
    """Fold a decisions JSONL file into the latest decision per id."""
    from splice.decisions import FoldOptions, fold_decisions, read_decisions_jsonl, summarize_latest_decisions

    settings = ctx.obj["settings"]
    opts = FoldOptions(restrict_statuses=settings.restrict_statuses and not all_statuses)
    latest = fold_decisions(read_decisions_jsonl(decisions_path), opts)

    table = Table(title=f"Latest decisions ({len(latest)})", box=box.ROUNDED)
    table.add_column("ID", style="bold", no_wrap=True)
    table.add_column("Status")
    table.add_column("Tags")
    table.add_column("Timestamp", style="dim", no_wrap=True)
    table.add_column("By", style="dim")
    for decision in latest.values():
        status = decision.status or "unread"
        if status_filter and status != status_filter:
            continue
        table.add_row(decision.id, status, ", ".join(decision.tags), decision.ts or "-", decision.by or "-")
    console.print(table)

    summary = summarize_latest_decisions(latest)
    counts = ", ".join(f"{k}: {v}" for k, v in sorted(summary.counts_by_status.items()))
    console.print(f"[bold]{summary.total_ids}[/bold] ids ({counts or 'none'})")


@decisions.command("set")
@click.argument("status")
@click.argument("ids", nargs=-1)
@click.option("--ids-file", default=None, type=click.Path(), help="JSON array or newline list of ids")
@click.option("--tag", "tags", multiple=True, help="Tag to attach (repeatable)")
@click.option("--notes", default=None, help="Note to attach")
@click.option("--by", default="cli", help="Who made the decision")
@click.option("-o", "--output", required=True, type=click.Path(dir_okay=False), help="Decisions JSONL to append to")
def set_status(
    status: str,
    ids: tuple[str, ...],
    ids_file: str | None,
    tags: tuple[str, ...],
    notes: str | None,
    by: str,
    output: str,
):
    """Append decisions setting STATUS for IDS to a JSONL file."""
    import json
    from pathlib import Path

    from splice.decisions import decisions_from_ids, load_ids_file

    wanted = list(ids)
    if ids_file:
        wanted.extend(load_ids_file(ids_file))
    wanted = list(dict.fromkeys(i for i in wanted if i))
    if not wanted:
        fail("No ids given. Pass IDS or --ids-file.", code=2)

    records = decisions_from_ids(wanted, status, by=by, tags=list(tags) or None, notes=notes)
    path = Path(output)
    path.parent.mkdir(parents=True, exist_ok=True)
    with open(path, "a", encoding="utf-8") as f:
        for rec in records:
            f.write(json.dumps(rec.to_dict(), ensure_ascii=False) + "\n")
    console.print(f"Appended {len(records)} decision(s) with status [bold]{status}[/bold] to {path}")
