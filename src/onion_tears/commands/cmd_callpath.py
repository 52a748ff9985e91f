"""Show every chain of callers leading to a function, across files."""

from __future__ import annotations

import logging
from pathlib import Path

import click

from onion_tears.commands.common import relative_path
from onion_tears.graph.callpath import (
    CROSS_FILE_MAX_DEPTH,
    UNKNOWN_FILE,
    SourceFile,
    build_call_path_tree_across_files,
    call_path_to_dict,
    format_call_path_tree,
    iter_paths,
)
from onion_tears.index.discovery import discover_files
from onion_tears.index.parser import read_source
from onion_tears.output.formatter import json_envelope, to_json

log = logging.getLogger(__name__)


def collect_sources(paths: tuple[str, ...], include_tests: bool) -> list[SourceFile]:
    """Expand files and directories into SourceFile objects (absolute paths)."""
    sources: list[SourceFile] = []
    for raw in paths or (".",):
        p = Path(raw).resolve()
        if p.is_dir():
            files = [p / rel for rel in discover_files(p, include_tests=include_tests)]
        else:
            files = [p]
        for f in files:
            try:
                content = read_source(f).decode("utf-8")
            except OSError as exc:
                log.warning("Skipping %s: %s", f, exc)
                continue
            sources.append(SourceFile(file_path=str(f), content=content))
    return sources


@click.command("callpath")
@click.argument("function")
@click.argument("paths", nargs=-1, type=click.Path(exists=True))
@click.option(
    "--depth", default=CROSS_FILE_MAX_DEPTH, show_default=True,
    type=click.IntRange(min=0), help="Maximum number of caller levels",
)
@click.option("--include-tests", is_flag=True, help="Also scan *.test.* and *.spec.* files")
@click.pass_context
def callpath(ctx, function, paths, depth, include_tests):
    """Show the call paths that lead to FUNCTION.

    PATHS are files or directories to scan (default: the current directory).
    """
    json_mode = ctx.obj.get("json") if ctx.obj else False

    sources = collect_sources(paths, include_tests)
    tree = build_call_path_tree_across_files(function, sources, max_depth=depth)
    found = tree.file_path != UNKNOWN_FILE
    chains = list(iter_paths(tree)) if tree.callers else []

    if json_mode:
        click.echo(to_json(json_envelope("callpath",
            summary={
                "function": function,
                "found": found,
                "files_scanned": len(sources),
                "direct_callers": len(tree.callers),
                "paths": len(chains),
            },
            tree=call_path_to_dict(tree, relative_path),
        )))
        return

    if not found:
        click.echo(f"Function {function}() not found in {len(sources)} file(s).")
        return

    click.echo(format_call_path_tree(tree, relative_path), nl=False)
    click.echo(f"\n{len(tree.callers)} direct caller(s), {len(chains)} call path(s)")
