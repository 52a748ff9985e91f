"""Caller trees: who calls this function, transitively.

The call graph is name-based.  Every function-like node is registered
under its resolved name (last definition wins), its call expressions are
reduced to the callee's textual head (``obj.method`` for
``obj.method(x)``), and the relation is inverted to walk from a target
up through its callers.

Expansion never repeats a name along one root-to-leaf path, so recursive
and mutually recursive functions terminate; the same caller may still
appear under several siblings (diamonds).  Depth is capped separately
for single-file and cross-file trees.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Callable, Iterable

import networkx as nx

from onion_tears.exit_codes import UnsupportedLanguageError
from onion_tears.graph.builder import build_call_graph, callers_of
from onion_tears.index.functions import descendants, iter_functions, parse_function_name
from onion_tears.index.parser import SourceTree, parse_source

log = logging.getLogger(__name__)

SINGLE_FILE_MAX_DEPTH = 20
CROSS_FILE_MAX_DEPTH = 10
UNKNOWN_FILE = "unknown"


@dataclass(frozen=True)
class SourceFile:
    """Input to cross-file call path analysis."""

    file_path: str
    content: str


@dataclass(frozen=True)
class FunctionEntry:
    name: str
    file_path: str
    node: object = field(repr=False, compare=False)
    tree: SourceTree = field(repr=False, compare=False)
    callees: tuple[str, ...] = ()


@dataclass(frozen=True)
class CallPathNode:
    """A function and, recursively, the functions that call it."""

    function_name: str
    file_path: str
    callers: tuple["CallPathNode", ...] = ()
    node: object = field(default=None, repr=False, compare=False)

    def to_dict(self) -> dict:
        return call_path_to_dict(self)


# ── Function table ───────────────────────────────────────────────────


def _callee_name(call_node, tree: SourceTree) -> str | None:
    args = call_node.child_by_field_name("arguments")
    if args is not None and args.type == "template_string":
        return None  # tagged template, not a call
    target = call_node.child_by_field_name("function")
    if target is None:
        return None
    text = tree.text(target)
    head = text.split("(", 1)[0].strip()
    return head or text.strip() or None


def extract_function_calls(func_node, tree: SourceTree) -> tuple[str, ...]:
    """Distinct callee names referenced under *func_node*, in first-seen order.

    Calls inside nested functions are attributed to the enclosing function too.
    """
    seen: dict[str, None] = {}
    for node in descendants(func_node, stop_at_functions=False):
        if node.type == "call_expression":
            name = _callee_name(node, tree)
            if name:
                seen.setdefault(name, None)
    return tuple(seen)


def build_function_table(trees: Iterable[SourceTree]) -> dict[str, FunctionEntry]:
    """Index every function-like node of *trees* by name (last write wins)."""
    table: dict[str, FunctionEntry] = {}
    for tree in trees:
        for func_node in iter_functions(tree.root):
            name = parse_function_name(func_node, tree)
            table[name] = FunctionEntry(
                name=name,
                file_path=tree.path,
                node=func_node,
                tree=tree,
                callees=extract_function_calls(func_node, tree),
            )
    return table


# ── Expansion ────────────────────────────────────────────────────────


def _expand(name: str, table: dict[str, FunctionEntry], G: nx.DiGraph, max_depth: int) -> CallPathNode:
    on_path: set[str] = set()

    def _build(func_name: str, depth: int) -> CallPathNode:
        entry = table.get(func_name)
        if entry is None:
            return CallPathNode(function_name=func_name, file_path=UNKNOWN_FILE)

        callers: list[CallPathNode] = []
        if depth < max_depth:
            on_path.add(func_name)
            for caller in callers_of(G, func_name):
                if caller == func_name or caller in on_path:
                    continue
                callers.append(_build(caller, depth + 1))
            on_path.discard(func_name)

        return CallPathNode(
            function_name=func_name,
            file_path=entry.file_path,
            callers=tuple(callers),
            node=entry.node,
        )

    return _build(name, 0)


def build_call_path_tree(target, tree: SourceTree, max_depth: int = SINGLE_FILE_MAX_DEPTH) -> CallPathNode:
    """Caller tree for *target* within a single file.

    *target* is a function-like node of *tree* or a function name.
    """
    target_name = target if isinstance(target, str) else parse_function_name(target, tree)
    table = build_function_table([tree])
    G = build_call_graph(table)
    log.debug("Call graph for %s: %d nodes, %d edges", tree.path, G.number_of_nodes(), G.number_of_edges())
    return _expand(target_name, table, G, max_depth)


def _coerce_source(item) -> SourceFile:
    if isinstance(item, SourceFile):
        return item
    file_path, content = item
    return SourceFile(file_path=file_path, content=content)


def build_call_path_tree_across_files(
    target_name: str,
    sources: Iterable[SourceFile | tuple[str, str]],
    max_depth: int = CROSS_FILE_MAX_DEPTH,
) -> CallPathNode:
    """Caller tree for *target_name* across several files.

    Files with an unsupported extension are skipped with a warning.
    """
    trees: list[SourceTree] = []
    for item in sources:
        src = _coerce_source(item)
        try:
            trees.append(parse_source(src.content, src.file_path))
        except UnsupportedLanguageError:
            log.warning("Skipping %s: unsupported file type", src.file_path)

    table = build_function_table(trees)
    G = build_call_graph(table)
    log.debug("Cross-file call graph: %d files, %d functions", len(trees), len(table))
    return _expand(target_name, table, G, max_depth)


# ── Rendering ────────────────────────────────────────────────────────


def format_call_path_tree(
    tree: CallPathNode,
    format_file_path: Callable[[str], str] | None = None,
    indent: str = "",
) -> str:
    """Render a caller tree, one ``name() [path]`` line per node.

    Each caller is indented beneath its callee; non-last siblings continue
    with ``│   ``, the last one with blanks.
    """
    display_path = format_file_path(tree.file_path) if format_file_path else tree.file_path
    out = f"{indent}{tree.function_name}() [{display_path}]\n"

    for i, caller in enumerate(tree.callers):
        is_last = i == len(tree.callers) - 1
        continuation = indent + ("    " if is_last else "│   ")
        out += format_call_path_tree(caller, format_file_path, continuation)

    return out


def call_path_to_dict(tree: CallPathNode, format_file_path: Callable[[str], str] | None = None) -> dict:
    """JSON-ready form of a caller tree, with optional path rewriting."""
    return {
        "function": tree.function_name,
        "file": format_file_path(tree.file_path) if format_file_path else tree.file_path,
        "callers": [call_path_to_dict(c, format_file_path) for c in tree.callers],
    }


def iter_paths(tree: CallPathNode) -> Iterable[list[str]]:
    """Yield every root-to-leaf path of names."""
    if not tree.callers:
        yield [tree.function_name]
        return
    for caller in tree.callers:
        for path in iter_paths(caller):
            yield [tree.function_name] + path
