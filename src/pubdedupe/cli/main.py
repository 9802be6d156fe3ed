"""Command-line interface for pubdedupe.

Provides the batch ``deduplicate`` command and the interactive ``review``
command that walks the review groups it produced.
"""

import importlib.metadata
import json
import sys
from pathlib import Path
from typing import Any

import click

from pubdedupe.decision import MatchMode

__all__ = ["cli", "parse_positions"]

try:
    __version__ = importlib.metadata.version("pubdedupe")
except importlib.metadata.PackageNotFoundError:
    __version__ = "0.1.0"  # Fallback for development

RECORDS_FILE = "records.jsonl"
DEDUP_LOG_FILE = "dedup_log.jsonl"
REVIEW_GROUPS_FILE = "review_groups.jsonl"
SUMMARY_FILE = "summary.json"
REVIEW_DECISIONS_FILE = "review_decisions.jsonl"
REVIEWED_RECORDS_FILE = "records_reviewed.jsonl"

# Columns shown for every member in the review prompt
_DISPLAY_FIELDS = ("title", "doi", "source", "origin_detail")


@click.group()
@click.version_option(version=__version__, prog_name="pubdedupe")
def cli() -> None:
    """Deduplicate publication lists merged from several sources.

    Use 'pubdedupe COMMAND --help' for command-specific help.
    """


def _load_config(config_path: str | None, overrides: dict[str, Any]) -> Any:
    from pubdedupe.engine import DedupConfig

    data: dict[str, Any] = {}
    if config_path is not None:
        with Path(config_path).open("r", encoding="utf-8") as f:
            loaded = json.load(f)
        if not isinstance(loaded, dict):
            raise click.BadParameter("config file must hold a JSON object", param_hint="--config")
        data.update(loaded)
    data.update({k: v for k, v in overrides.items() if v is not None})
    return DedupConfig.from_dict(data)


@cli.command()
@click.argument("input_path", type=click.Path(exists=True, dir_okay=False))
@click.option(
    "--output-dir",
    "-o",
    type=click.Path(file_okay=False),
    default="out",
    help="Output directory for results (default: out)",
)
@click.option(
    "--mode",
    type=click.Choice([m.value for m in MatchMode]),
    default=None,
    help="Title matching mode (default: approximate)",
)
@click.option(
    "--match-threshold",
    type=int,
    default=None,
    help="Percent similarity above which titles are duplicates (default: 95)",
)
@click.option(
    "--review-threshold",
    type=int,
    default=None,
    help="Percent similarity above which titles go to review (default: 88)",
)
@click.option(
    "--group-by",
    type=str,
    default=None,
    help="Column splitting records into independent batches (e.g. author_id)",
)
@click.option(
    "--canonical-source",
    type=str,
    default=None,
    help="Source never deduplicated against itself (default: scopus)",
)
@click.option(
    "--config",
    "config_path",
    type=click.Path(exists=True, dir_okay=False),
    default=None,
    help="JSON configuration file; command-line options override it",
)
@click.option(
    "--strict/--lenient",
    default=True,
    help="Fail on the first invalid input line (default) or skip bad lines",
)
@click.option(
    "--verbose",
    "-v",
    is_flag=True,
    help="Enable verbose output",
)
def deduplicate(
    input_path: str,
    output_dir: str,
    mode: str | None,
    match_threshold: int | None,
    review_threshold: int | None,
    group_by: str | None,
    canonical_source: str | None,
    config_path: str | None,
    strict: bool,
    verbose: bool,
) -> None:
    """Deduplicate the JSONL records in INPUT_PATH.

    Every line of INPUT_PATH is one publication with at least a
    ``source`` column; ``id``, ``title``, ``doi`` and ``origin_detail``
    are read when present and other columns are passed through.

    Outputs written to OUTPUT_DIR:
    records.jsonl, dedup_log.jsonl, review_groups.jsonl, summary.json,
    events.jsonl and run.json.

    Examples
    --------
        pubdedupe deduplicate pubs.jsonl
        pubdedupe deduplicate pubs.jsonl -o results --group-by author_id
        pubdedupe deduplicate pubs.jsonl --mode standard --canonical-source scopus
    """
    from pubdedupe.api import dedupe, load_records_jsonl, write_jsonl
    from pubdedupe.audit import RunContext

    input_path_obj = Path(input_path)
    output_dir_obj = Path(output_dir)

    try:
        config = _load_config(
            config_path,
            {
                "mode": mode,
                "match_threshold": match_threshold,
                "review_threshold": review_threshold,
                "canonical_source": canonical_source,
            },
        )
    except Exception as e:
        click.secho(f"✗ Invalid configuration: {e}", fg="red", err=True)
        sys.exit(1)

    if verbose:
        click.echo("Starting deduplication...", err=True)
        click.echo(f"  Input: {input_path}", err=True)
        click.echo(f"  Output: {output_dir}", err=True)
        click.echo(f"  Mode: {config.mode.value}", err=True)
        click.echo(
            f"  Thresholds: match {config.match_threshold}%, review {config.review_threshold}%",
            err=True,
        )

    def progress(current: int, total: int, key: str) -> None:
        click.echo(f"  [{current}/{total}] {key}", err=True)

    settings = {**config.to_dict(), "group_by": group_by, "strict": strict}

    try:
        with RunContext.start(output_dir_obj, settings) as run:
            run.start_stage("read")
            record_file = load_records_jsonl(input_path_obj, strict=strict)
            for error in record_file.rejected:
                run.audit_logger.record_flagged(
                    rid=None, reason_code="invalid_record", message=str(error), stage="read"
                )
            run.add_input(record_file.file_info())
            run.finish_stage(
                "read",
                counters={
                    "records_read": len(record_file.records),
                    "records_rejected": len(record_file.rejected),
                },
            )

            context = dedupe(
                record_file.records,
                group_by=group_by,
                config=config,
                logger=run.audit_logger,
                progress=progress if verbose else None,
            )
            for result in context.results:
                run.add_batch(result.stats())
            summary = context.summary()

            run.start_stage("write")
            outputs = {
                RECORDS_FILE: context.final_records(),
                DEDUP_LOG_FILE: context.dedup_log,
                REVIEW_GROUPS_FILE: context.review_groups,
            }
            for name, rows in outputs.items():
                count = write_jsonl(rows, output_dir_obj / name)
                run.artifact_written(output_dir_obj / name, record_count=count)

            summary_path = output_dir_obj / SUMMARY_FILE
            with summary_path.open("w", encoding="utf-8") as f:
                json.dump(summary.to_dict(), f, indent=2, sort_keys=True)
                f.write("\n")
            run.artifact_written(summary_path)
            run.finish_stage("write")
            run.set_summary(summary.to_dict())

    except Exception as e:
        click.secho(f"✗ Error: {e}", fg="red", err=True)
        if verbose:
            import traceback

            click.echo(traceback.format_exc(), err=True)
        sys.exit(1)

    if verbose:
        click.echo("\n✓ Deduplication completed successfully!", err=True)
        click.echo("\nResults:", err=True)
        click.echo(f"  Records in: {summary.initial_count}", err=True)
        for source, count in summary.initial_by_source.items():
            click.echo(f"    {source}: {count}", err=True)
        click.echo(f"  Auto-removed duplicates: {summary.auto_removed_count}", err=True)
        click.echo(f"  Review groups: {summary.review_group_count}", err=True)
        click.echo(f"  Records out: {summary.final_count}", err=True)
    else:
        click.secho(
            f"✓ Deduplicated {summary.initial_count} records "
            f"({summary.auto_removed_count} removed, "
            f"{summary.review_group_count} groups for review)",
            fg="green",
        )


def parse_positions(text: str, group_size: int) -> list[int]:
    """Parse the reviewer's answer into 1-based member positions to keep.

    Accepts ``all``, ``none`` or a comma separated list of positions and
    ranges (``1,3-4``).

    Parameters
    ----------
    text : str
        Raw answer.
    group_size : int
        Number of members in the group.

    Returns
    -------
    list[int]
        Sorted, de-duplicated positions.

    Raises
    ------
    click.BadParameter
        If the answer cannot be parsed or a position is out of range.
    """
    answer = text.strip().lower()
    if answer in ("", "all", "a"):
        return list(range(1, group_size + 1))
    if answer in ("none", "0"):
        return []

    positions: set[int] = set()
    for part in answer.replace(" ", "").split(","):
        if not part:
            continue
        try:
            if "-" in part:
                start, end = (int(p) for p in part.split("-", 1))
                positions.update(range(start, end + 1))
            else:
                positions.add(int(part))
        except ValueError as e:
            raise click.BadParameter(f"'{part}' is not a position or range") from e

    outside = sorted(p for p in positions if not 1 <= p <= group_size)
    if outside:
        raise click.BadParameter(f"positions {outside} are outside 1..{group_size}")
    return sorted(positions)


def _show_page(session: Any, page_number: int) -> int:
    group = session.current_group()
    page = session.page(page_number)
    differing = set(group.differing_fields())

    header = f"Group {session.cursor + 1}/{session.group_count}"
    if group.key is not None:
        header += f" [{group.key}]"
    if page.page_count > 1:
        header += f" (page {page.number}/{page.page_count})"
    click.secho(header, bold=True)

    for offset, member in enumerate(page.members, start=1):
        position = page.first_position + offset
        cells = []
        for name in _DISPLAY_FIELDS:
            value = member.record.get(name)
            cell = f"{name}={value if value is not None else '-'}"
            cells.append(click.style(cell, fg="yellow") if name in differing else cell)
        click.echo(f"  [{position}] ({member.similarity_label}) " + " | ".join(cells))
    return page.number


@cli.command()
@click.argument("output_dir", type=click.Path(exists=True, file_okay=False))
@click.option(
    "--page-size",
    type=click.IntRange(min=1),
    default=None,
    help="Records shown per page (default: 6)",
)
def review(output_dir: str, page_size: int | None) -> None:
    """Review the ambiguous groups written by 'deduplicate' to OUTPUT_DIR.

    For each group answer with the positions to keep (e.g. ``1,3``),
    ``all`` (default) or ``none``. Use ``n``/``p`` to page through large
    groups and ``q`` to stop; undecided groups keep all their records.

    Writes review_decisions.jsonl and records_reviewed.jsonl.
    """
    from pubdedupe.api import write_jsonl
    from pubdedupe.audit import AuditLogger, generate_run_id
    from pubdedupe.clustering import ReviewGroup
    from pubdedupe.models import Record
    from pubdedupe.review import DEFAULT_PAGE_SIZE, ReviewSession
    from pubdedupe.utils import calculate_file_sha256

    output_dir_obj = Path(output_dir)

    try:
        groups = [
            ReviewGroup.from_dict(json.loads(line))
            for line in (output_dir_obj / REVIEW_GROUPS_FILE).read_text(encoding="utf-8").splitlines()
            if line.strip()
        ]
        records = [
            Record.from_dict(json.loads(line))
            for line in (output_dir_obj / RECORDS_FILE).read_text(encoding="utf-8").splitlines()
            if line.strip()
        ]
        run_id = generate_run_id()
        manifest_path = output_dir_obj / "run.json"
        if manifest_path.exists():
            run_id = json.loads(manifest_path.read_text(encoding="utf-8")).get("run_id", run_id)
    except Exception as e:
        click.secho(f"✗ Cannot load review inputs: {e}", fg="red", err=True)
        sys.exit(1)

    with AuditLogger(run_id=run_id, log_path=output_dir_obj / "events.jsonl") as logger:
        logger.set_stage("review")
        session = ReviewSession(
            groups,
            page_size=page_size or DEFAULT_PAGE_SIZE,
            logger=logger,
        )

        if session.is_complete:
            click.echo("No groups to review.")

        page_number = 1
        while not session.is_complete:
            page_number = _show_page(session, page_number)
            answer = click.prompt("Keep which records?", default="all", show_default=True)
            command = answer.strip().lower()

            if command == "q":
                break
            if command == "n":
                page_number += 1
                continue
            if command == "p":
                page_number -= 1
                continue

            group = session.current_group()
            try:
                positions = parse_positions(answer, len(group))
            except click.BadParameter as e:
                click.secho(f"✗ {e.message}", fg="red", err=True)
                continue

            decision = session.submit_decision(
                [group.members[p - 1] for p in positions],
                group_id=group.group_id,
            )
            click.echo(
                f"  kept {len(decision.kept_ids)}, discarded {len(decision.discarded_ids)}"
            )
            page_number = 1

        reviewed = session.apply(records)
        decisions_path = output_dir_obj / REVIEW_DECISIONS_FILE
        reviewed_path = output_dir_obj / REVIEWED_RECORDS_FILE
        write_jsonl(session.decisions, decisions_path)
        write_jsonl(reviewed, reviewed_path)
        for path, count in ((decisions_path, len(session.decisions)), (reviewed_path, len(reviewed))):
            logger.artifact_written(
                path=path.name,
                sha256=calculate_file_sha256(path),
                bytes_written=path.stat().st_size,
                record_count=count,
            )

    pending = session.remaining
    click.secho(
        f"✓ Reviewed {len(session.decisions)}/{session.group_count} groups; "
        f"{len(reviewed)} records written to {REVIEWED_RECORDS_FILE}"
        + (f" ({pending} groups left undecided)" if pending else ""),
        fg="green",
    )


if __name__ == "__main__":
    cli()
