"""Analyze one JS/TS file: per-function scores, graphs and an HTML report."""

from __future__ import annotations

import logging
import re
from pathlib import Path

import click

from onion_tears.commands.common import DEFAULT_OUTPUT_DIR, check_gate, load_config, summarize
from onion_tears.exit_codes import SourceNotFoundError
from onion_tears.index.complexity import FileComplexityResult, analyze_file
from onion_tears.output.formatter import format_table, json_envelope, loc, status_marker, to_json
from onion_tears.output.mermaid import generate_mermaid_for_function
from onion_tears.output.report import write_report

log = logging.getLogger(__name__)

GRAPH_SUBDIR = "graphs"


def function_rows(file_result: FileComplexityResult) -> list[list[str]]:
    return [
        [
            status_marker(r.threshold_status.value),
            str(r.cyclomatic.score),
            str(r.cognitive.score),
            f"{r.function_name}()",
            loc(file_result.file_name, r.declaration_line),
        ]
        for r in file_result.results
    ]


FUNCTION_HEADERS = ["", "cyc", "cog", "function", "location"]


def clean_graph_dir(graph_dir: Path) -> None:
    """Create *graph_dir*, or remove stale ``.mermaid`` files from it."""
    if not graph_dir.exists():
        graph_dir.mkdir(parents=True)
        return
    for stale in graph_dir.glob("*.mermaid"):
        stale.unlink()


def graph_file_name(function_name: str, line: int, used: set[str]) -> str:
    """A filesystem-safe, unique ``.mermaid`` file name for a function."""
    base = re.sub(r"[^\w.-]", "_", function_name) or "anonymous"
    name = base
    if name in used:
        name = f"{base}_L{line}"
    used.add(name)
    return f"{name}.mermaid"


def write_graphs(file_result: FileComplexityResult, graph_dir: Path) -> list[Path]:
    clean_graph_dir(graph_dir)
    used: set[str] = set()
    written = []
    for r in file_result.results:
        path = graph_dir / graph_file_name(r.function_name, r.declaration_line, used)
        path.write_text(generate_mermaid_for_function(r), encoding="utf-8")
        written.append(path)
    log.debug("Wrote %d graph(s) to %s", len(written), graph_dir)
    return written


@click.command("file")
@click.argument("path", type=click.Path(dir_okay=False))
@click.option("--graph", is_flag=True, help="Write a Mermaid control flow graph per function")
@click.option(
    "--output-dir", default=DEFAULT_OUTPUT_DIR, show_default=True,
    type=click.Path(file_okay=False), help="Directory for the HTML report and graphs",
)
@click.option("--html/--no-html", "write_html", default=True, show_default=True, help="Write complexity-report.html")
@click.option("--fail-on-error", is_flag=True, help="Exit 5 if any function reaches the error threshold")
@click.pass_context
def file_cmd(ctx, path, graph, output_dir, write_html, fail_on_error):
    """Analyze a single JavaScript or TypeScript file."""
    json_mode = ctx.obj.get("json") if ctx.obj else False

    full_path = Path(path)
    if not full_path.is_file():
        raise SourceNotFoundError(str(full_path.resolve()))

    config = load_config(full_path.resolve().parent)
    result = analyze_file(full_path, config, display_path=full_path.name)

    out_dir = Path(output_dir)
    graphs = write_graphs(result, out_dir / GRAPH_SUBDIR) if graph else []
    report = write_report([result], out_dir) if write_html else None

    if json_mode:
        click.echo(to_json(json_envelope("file",
            summary=summarize([result]),
            thresholds={"warning": config.cyclomatic_warning, "error": config.cyclomatic_error},
            file=result.to_dict(),
            graphs=[str(p) for p in graphs],
            report=str(report) if report else None,
        )))
    else:
        click.echo(f"{result.file_name}: {len(result.results)} function(s)\n")
        click.echo(format_table(FUNCTION_HEADERS, function_rows(result)))
        for d in result.diagnostics:
            click.echo(f"{d.level}: {loc(result.file_name, d.line)}: {d.message}", err=True)
        for p in graphs:
            click.echo(f"  graph  {p}")
        if report:
            click.echo(f"\nHTML report written to {report}")

    if fail_on_error:
        check_gate([result], config)
