"""Print the Mermaid control flow graph of one function."""

from __future__ import annotations

import logging
from pathlib import Path

import click

from onion_tears.exit_codes import OnionTearsError, SourceNotFoundError
from onion_tears.graph.cfg import build_control_flow_graph
from onion_tears.index.complexity import analyze_file
from onion_tears.output.formatter import json_envelope, to_json
from onion_tears.output.mermaid import cfg_to_mermaid, function_title

log = logging.getLogger(__name__)


@click.command("graph")
@click.argument("path", type=click.Path(dir_okay=False))
@click.argument("function")
@click.option("--line", type=int, default=None, help="Pick the definition declared on this line")
@click.pass_context
def graph_cmd(ctx, path, function, line):
    """Print the control flow graph of FUNCTION in PATH as Mermaid."""
    json_mode = ctx.obj.get("json") if ctx.obj else False

    full_path = Path(path)
    if not full_path.is_file():
        raise SourceNotFoundError(str(full_path.resolve()))

    file_result = analyze_file(full_path, display_path=full_path.name)
    matches = [r for r in file_result.results if r.function_name == function]
    if line is not None:
        matches = [r for r in matches if r.declaration_line == line]
    if not matches:
        raise OnionTearsError(f"Function {function}() not found in {full_path.name}")
    if len(matches) > 1:
        log.info(
            "%d functions named %s; using line %d (pass --line to choose)",
            len(matches), function, matches[0].declaration_line,
        )

    result = matches[0]
    cfg = build_control_flow_graph(result)
    mermaid = cfg_to_mermaid(cfg, title=function_title(result))

    if json_mode:
        click.echo(to_json(json_envelope("graph",
            summary={
                "function": result.function_name,
                "line": result.declaration_line,
                "cyclomatic": result.cyclomatic.score,
                "cognitive": result.cognitive.score,
                "nodes": len(cfg.nodes),
                "edges": len(cfg.edges),
                "decisions": len(cfg.decision_nodes()),
            },
            graph=cfg.to_dict(),
            mermaid=mermaid,
        )))
        return

    click.echo(mermaid)
