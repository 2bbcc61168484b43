"""Command-line interface for bibmerge.

Provides CLI commands for listing and merging bibliography files.
"""

import importlib.metadata
import sys
from pathlib import Path

import click

from bibmerge.engine.config import CANDIDATE_CHECK_NAMES
from bibmerge.models import CollectionMode, DiagnosticLevel

__all__ = ["cli"]

try:
    __version__ = importlib.metadata.version("bibmerge")
except importlib.metadata.PackageNotFoundError:
    __version__ = "0.1.0"  # Fallback for development


@click.group()
@click.version_option(version=__version__, prog_name="bibmerge")
def cli() -> None:
    """Merge directories of BibTeX files into one bibliography.

    Use 'bibmerge COMMAND --help' for command-specific help.
    """


@cli.command()
@click.argument("root", type=click.Path(exists=True, file_okay=False))
@click.option(
    "--suffix",
    default=".bib",
    show_default=True,
    help="File name suffix to collect",
)
def collect(root: str, suffix: str) -> None:
    """List the bibliography files under ROOT in merge order.

    Examples
    --------
        bibmerge collect incoming/
    """
    from bibmerge.errors import BibMergeError
    from bibmerge.parse import collect_files

    try:
        files = collect_files(Path(root), suffix=suffix)
    except BibMergeError as e:
        click.secho(f"✗ Error: {e}", fg="red", err=True)
        sys.exit(1)

    for path in files:
        click.echo(str(path))


@cli.command()
@click.argument("root", type=click.Path(exists=True, file_okay=False))
@click.option(
    "--into",
    "target",
    type=click.Path(dir_okay=False),
    required=True,
    help="Target .bib file (created if missing)",
)
@click.option(
    "--output",
    "-o",
    type=click.Path(dir_okay=False),
    default=None,
    help="Write the merged bibliography here instead of overwriting the target",
)
@click.option(
    "--mode",
    type=click.Choice([str(m) for m in CollectionMode]),
    default=str(CollectionMode.BIBTEX),
    show_default=True,
    help="Field conventions used for duplicate detection",
)
@click.option(
    "--workers",
    type=click.IntRange(min=1),
    default=1,
    show_default=True,
    help="Threads used to load source files",
)
@click.option(
    "--no-fuzzy",
    is_flag=True,
    help="Disable the fuzzy duplicate check",
)
@click.option(
    "--candidate-checks",
    type=str,
    default="identical,same_key",
    show_default=True,
    help=f"Checks applied among new records ({', '.join(CANDIDATE_CHECK_NAMES)})",
)
@click.option(
    "--log",
    "log_path",
    type=click.Path(dir_okay=False),
    default=None,
    help="Append JSONL audit events to this file",
)
@click.option(
    "--verbose",
    "-v",
    is_flag=True,
    help="Enable verbose output",
)
def merge(
    root: str,
    target: str,
    output: str | None,
    mode: str,
    workers: int,
    no_fuzzy: bool,
    candidate_checks: str,
    log_path: str | None,
    verbose: bool,
) -> None:
    """Merge every .bib file under ROOT into the target bibliography.

    Records already in the target, records with a citation key already in
    use, and likely duplicates are left out. Files that cannot be parsed
    are reported and skipped.

    Examples
    --------
        bibmerge merge incoming/ --into library.bib
        bibmerge merge incoming/ --into library.bib -o merged.bib --no-fuzzy
        bibmerge merge incoming/ --into library.bib --log events.jsonl -v
    """
    from bibmerge.api import merge_directory
    from bibmerge.engine import MergeConfig
    from bibmerge.errors import BibMergeError

    try:
        config = MergeConfig(
            mode=CollectionMode(mode),
            candidate_checks=tuple(c.strip() for c in candidate_checks.split(",") if c.strip()),
            workers=workers,
            fuzzy=not no_fuzzy,
        )

        if verbose:
            click.echo(f"Merging {root} into {target}", err=True)
            click.echo(f"  Mode: {config.mode}", err=True)
            click.echo(f"  Fuzzy check: {'on' if config.fuzzy else 'off'}", err=True)
            click.echo(f"  Candidate checks: {', '.join(config.candidate_checks)}", err=True)

        result = merge_directory(
            root,
            target,
            output=output,
            config=config,
            log_path=log_path,
        )
    except (BibMergeError, OSError, ValueError) as e:
        click.secho(f"✗ Error: {e}", fg="red", err=True)
        sys.exit(1)

    for diagnostic in result.diagnostics:
        color = "red" if diagnostic.level == DiagnosticLevel.ERROR else "yellow"
        click.secho(
            f"{diagnostic.level}: {diagnostic.source}: {diagnostic.message}",
            fg=color,
            err=True,
        )

    if verbose:
        click.echo("\nVerdicts:", err=True)
        for verdict, count in result.batch.counts().items():
            click.echo(f"  {verdict}: {count}", err=True)
        for rejection in result.batch.rejected:
            click.echo(
                f"  - {rejection.record.label()} ({rejection.verdict.verdict}, "
                f"matches {rejection.verdict.matched.label()})",
                err=True,
            )

    click.secho(
        f"✓ Merged {len(result.files)} files: {result.inserted_count} added, "
        f"{result.rejected_count} duplicates skipped, "
        f"{len(result.skipped_files)} files failed",
        fg="green",
    )


if __name__ == "__main__":
    cli()
