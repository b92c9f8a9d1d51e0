import sys
from pathlib import Path

import click

from constants import TRIGGER_NAMES
import file_rewriting
from run_summary import RunSummary


@click.group()
def cli():
    pass


@cli.command()
@click.argument("pattern")
@click.argument("aliases_module", type=click.Path(dir_okay=False, path_type=Path))
@click.option(
    "--dry-run",
    is_flag=True,
    help="Report which files would be rewritten without writing anything.",
)
@click.option(
    "--jobs",
    type=click.IntRange(min=1),
    default=None,
    help="Number of files to process concurrently (default: executor default).",
)
@click.option(
    "--summary-json",
    type=click.Path(dir_okay=False, path_type=Path),
    help="Write a JSON summary of the run to this path.",
)
@click.option(
    "--trigger",
    "triggers",
    multiple=True,
    help="Type name marking an expression for classification; repeatable. "
    f"(default: {', '.join(sorted(TRIGGER_NAMES))})",
)
def rewrite(pattern, aliases_module, dry_run, jobs, summary_json, triggers):
    """Collapse DataSource-shaped union types in files matching PATTERN
    into the canonical aliases exported by ALIASES_MODULE."""
    paths = file_rewriting.expand_pattern(pattern)
    if not paths:
        click.echo(f"Error: pattern {pattern} matched no files.", err=True)
        sys.exit(1)

    trigger_names = frozenset(triggers) if triggers else TRIGGER_NAMES
    outcomes = file_rewriting.rewrite_files(
        paths, aliases_module, trigger_names=trigger_names, dry_run=dry_run, jobs=jobs
    )
    summary = RunSummary(
        pattern=pattern,
        aliases_module=aliases_module.as_posix(),
        dry_run=dry_run,
        files=outcomes,
    )

    verb = "Would rewrite" if dry_run else "Rewrote"
    for outcome in summary.rewritten:
        click.echo(f"{verb} {outcome.path}: {', '.join(outcome.canonical_names)}")
    for outcome in summary.failed:
        click.echo(f"ERROR: {outcome.error}", err=True)

    if summary_json is not None:
        summary.write_json(summary_json)

    if summary.failed:
        sys.exit(1)


if __name__ == "__main__":
    cli()
