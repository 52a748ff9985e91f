"""Analyze every JS/TS file in a project directory."""

from __future__ import annotations

import logging
from pathlib import Path

import click

from onion_tears.commands.cmd_file import FUNCTION_HEADERS, function_rows
from onion_tears.commands.common import DEFAULT_OUTPUT_DIR, check_gate, load_config, summarize
from onion_tears.index.complexity import FileComplexityResult, analyze_file
from onion_tears.index.discovery import DEFAULT_EXCLUDES, discover_files
from onion_tears.output.formatter import format_table, json_envelope, loc, to_json
from onion_tears.output.report import write_report

log = logging.getLogger(__name__)


def analyze_project(root: Path, files: list[str], config) -> tuple[list[FileComplexityResult], list[str]]:
    """Analyze *files* (relative to *root*); unreadable files are skipped."""
    results: list[FileComplexityResult] = []
    skipped: list[str] = []
    for rel_path in files:
        try:
            results.append(analyze_file(root / rel_path, config, display_path=rel_path))
        except OSError as exc:
            log.warning("Skipping %s: %s", rel_path, exc)
            skipped.append(rel_path)
    return results, skipped


@click.command("project")
@click.argument("directory", default=".", type=click.Path(exists=True, file_okay=False))
@click.option("--exclude", "-e", multiple=True, help="Glob pattern to exclude (repeatable)")
@click.option("--include-tests", is_flag=True, help="Also analyze *.test.* and *.spec.* files")
@click.option(
    "--output-dir", default=DEFAULT_OUTPUT_DIR, show_default=True,
    type=click.Path(file_okay=False), help="Directory for the HTML report",
)
@click.option("--html/--no-html", "write_html", default=True, show_default=True, help="Write complexity-report.html")
@click.option("--fail-on-error", is_flag=True, help="Exit 5 if any function reaches the error threshold")
@click.pass_context
def project(ctx, directory, exclude, include_tests, output_dir, write_html, fail_on_error):
    """Analyze all JavaScript and TypeScript files under DIRECTORY."""
    json_mode = ctx.obj.get("json") if ctx.obj else False

    root = Path(directory).resolve()
    config = load_config(root)
    excludes = DEFAULT_EXCLUDES + tuple(exclude)
    files = discover_files(root, excludes=excludes, include_tests=include_tests)
    log.debug("Discovered %d file(s) under %s", len(files), root)

    results, skipped = analyze_project(root, files, config)
    report = write_report(results, output_dir) if write_html and results else None
    summary = summarize(results)

    if json_mode:
        click.echo(to_json(json_envelope("project",
            summary={**summary, "skipped": len(skipped)},
            root=str(root),
            thresholds={"warning": config.cyclomatic_warning, "error": config.cyclomatic_error},
            files=[fr.to_dict() for fr in results],
            skipped=skipped,
            report=str(report) if report else None,
        )))
    else:
        if not files:
            click.echo(f"No JavaScript/TypeScript files found in {root}")
            return
        click.echo(f"Found {len(files)} file(s) in {root}\n")
        for fr in results:
            if not fr.results:
                continue
            click.echo(f"=== {fr.file_name} ===")
            click.echo(format_table(FUNCTION_HEADERS, function_rows(fr)))
            click.echo()
            for d in fr.diagnostics:
                click.echo(f"{d.level}: {loc(fr.file_name, d.line)}: {d.message}", err=True)
        click.echo(
            f"Analyzed {summary['files']} file(s), {summary['functions']} function(s): "
            f"{summary['errors']} error(s), {summary['warnings']} warning(s)"
        )
        if skipped:
            click.echo(f"Skipped {len(skipped)} unreadable file(s)")
        if report:
            click.echo(f"\nHTML report written to {report}")

    if fail_on_error:
        check_gate(results, config)
