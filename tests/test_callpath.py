"""Tests for call graphs and caller trees."""

from __future__ import annotations

import logging
import sys
from pathlib import Path

sys.path.insert(0, str(Path(__file__).parent))
from conftest import LAYERED_CALLS, parse_ts

from onion_tears.graph.builder import build_call_graph, callers_of
from onion_tears.graph.callpath import (
    CROSS_FILE_MAX_DEPTH,
    SINGLE_FILE_MAX_DEPTH,
    UNKNOWN_FILE,
    SourceFile,
    build_call_path_tree,
    build_call_path_tree_across_files,
    build_function_table,
    call_path_to_dict,
    extract_function_calls,
    format_call_path_tree,
    iter_paths,
)
from onion_tears.index.functions import find_function


def caller_names(node):
    return [c.function_name for c in node.callers]


def chain_source(length):
    """f1 calls f0, f2 calls f1, ... f<length> calls f<length-1>."""
    lines = ["function f0() {}"]
    lines += [f"function f{i}() {{ f{i - 1}() }}" for i in range(1, length + 1)]
    return "\n".join(lines) + "\n"


# ===========================================================================
# Call graph
# ===========================================================================


class TestCallGraph:
    def test_edges_point_caller_to_callee(self):
        tree = parse_ts(LAYERED_CALLS)
        G = build_call_graph(build_function_table([tree]))
        assert G.has_edge("midLevel1", "lowLevel")
        assert not G.has_edge("lowLevel", "midLevel1")
        assert G.nodes["lowLevel"]["defined"] is True

    def test_callers_in_definition_order(self):
        tree = parse_ts(LAYERED_CALLS)
        G = build_call_graph(build_function_table([tree]))
        assert callers_of(G, "lowLevel") == ["midLevel1", "midLevel2"]
        assert callers_of(G, "missing") == []

    def test_call_names_use_callee_text(self):
        tree = parse_ts("""
            function f() {
              a()
              obj.method(1)
              make()(2)
              tag`template`
              a()
            }
        """)
        calls = extract_function_calls(find_function(tree, "f"), tree)
        assert calls == ("a", "obj.method", "make")

    def test_calls_in_nested_functions_count_for_enclosing(self):
        tree = parse_ts("function outer() { [1].map(() => inner()) }\nfunction inner() {}\n")
        calls = extract_function_calls(find_function(tree, "outer"), tree)
        assert "inner" in calls


# ===========================================================================
# Single-file trees
# ===========================================================================


class TestCallPathTree:
    def test_layered_callers(self):
        tree = parse_ts(LAYERED_CALLS)
        root = build_call_path_tree(find_function(tree, "lowLevel"), tree)
        assert root.function_name == "lowLevel"
        assert sorted(caller_names(root)) == ["midLevel1", "midLevel2"]
        mid1 = next(c for c in root.callers if c.function_name == "midLevel1")
        assert sorted(caller_names(mid1)) == ["topLevel1", "topLevel2"]

    def test_function_without_callers(self):
        tree = parse_ts(LAYERED_CALLS)
        root = build_call_path_tree(find_function(tree, "topLevel1"), tree)
        assert root.callers == ()
        assert root.file_path == "test.ts"

    def test_target_by_name(self):
        tree = parse_ts(LAYERED_CALLS)
        root = build_call_path_tree("midLevel3", tree)
        assert caller_names(root) == ["topLevel3"]

    def test_unknown_target_is_a_leaf(self):
        tree = parse_ts(LAYERED_CALLS)
        root = build_call_path_tree("nothingHere", tree)
        assert root.function_name == "nothingHere"
        assert root.file_path == UNKNOWN_FILE
        assert root.callers == ()

    def test_direct_recursion_terminates(self):
        tree = parse_ts("function r(n) { if (n) r(n - 1) }\nfunction main() { r(3) }\n")
        root = build_call_path_tree("r", tree)
        assert caller_names(root) == ["main"]

    def test_mutual_recursion_never_repeats_on_a_path(self):
        tree = parse_ts("function a() { b() }\nfunction b() { a() }\nfunction c() { a() }\n")
        root = build_call_path_tree("a", tree)
        for path in iter_paths(root):
            assert len(path) == len(set(path))
        assert sorted(caller_names(root)) == ["b", "c"]

    def test_diamond_repeats_shared_caller(self):
        tree = parse_ts("""
            function top() { left(); right() }
            function left() { base() }
            function right() { base() }
            function base() {}
        """)
        root = build_call_path_tree("base", tree)
        assert list(iter_paths(root)) == [["base", "left", "top"], ["base", "right", "top"]]

    def test_single_file_depth_limit(self):
        tree = parse_ts(chain_source(SINGLE_FILE_MAX_DEPTH + 5))
        root = build_call_path_tree("f0", tree)
        longest = max(len(p) for p in iter_paths(root))
        assert longest == SINGLE_FILE_MAX_DEPTH + 1

    def test_last_definition_wins(self):
        tree = parse_ts("function dup() {}\nfunction dup() { target() }\nfunction target() {}\n")
        root = build_call_path_tree("target", tree)
        assert caller_names(root) == ["dup"]
        assert root.callers[0].node.start_point[0] == 1


# ===========================================================================
# Cross-file trees
# ===========================================================================


class TestCrossFile:
    SOURCES = [
        SourceFile("src/a.ts", "export function low() {}\n"),
        SourceFile("src/b.ts", "import { low } from './a'\nexport function mid() { low() }\n"),
        ("src/c.js", "function top() { mid() }\n"),
    ]

    def test_callers_span_files(self):
        root = build_call_path_tree_across_files("low", self.SOURCES)
        assert (root.function_name, root.file_path) == ("low", "src/a.ts")
        [mid] = root.callers
        assert (mid.function_name, mid.file_path) == ("mid", "src/b.ts")
        [top] = mid.callers
        assert (top.function_name, top.file_path) == ("top", "src/c.js")

    def test_unsupported_files_skipped_with_warning(self, caplog):
        sources = self.SOURCES + [SourceFile("README.md", "# low()\n")]
        with caplog.at_level(logging.WARNING):
            root = build_call_path_tree_across_files("low", sources)
        assert "README.md" in caplog.text
        assert caller_names(root) == ["mid"]

    def test_missing_target(self):
        root = build_call_path_tree_across_files("ghost", self.SOURCES)
        assert root.file_path == UNKNOWN_FILE
        assert root.callers == ()

    def test_cross_file_depth_limit(self):
        root = build_call_path_tree_across_files("f0", [("chain.ts", chain_source(15))])
        assert max(len(p) for p in iter_paths(root)) == CROSS_FILE_MAX_DEPTH + 1

    def test_explicit_depth(self):
        root = build_call_path_tree_across_files("f0", [("chain.ts", chain_source(15))], max_depth=2)
        assert list(iter_paths(root)) == [["f0", "f1", "f2"]]


# ===========================================================================
# Rendering
# ===========================================================================


class TestFormat:
    def test_snapshot_with_relative_paths(self):
        tree = parse_ts(LAYERED_CALLS, file_path="/project/src/test.ts")
        root = build_call_path_tree(find_function(tree, "lowLevel"), tree)
        formatted = format_call_path_tree(root, lambda p: p.replace("/project/", ""))
        assert formatted == (
            "lowLevel() [src/test.ts]\n"
            "│   midLevel1() [src/test.ts]\n"
            "│   │   topLevel1() [src/test.ts]\n"
            "│       topLevel2() [src/test.ts]\n"
            "    midLevel2() [src/test.ts]\n"
        )

    def test_leaf_renders_one_line(self):
        tree = parse_ts(LAYERED_CALLS)
        root = build_call_path_tree("topLevel1", tree)
        assert format_call_path_tree(root) == "topLevel1() [test.ts]\n"

    def test_to_dict(self):
        tree = parse_ts(LAYERED_CALLS, file_path="/project/src/test.ts")
        root = build_call_path_tree("midLevel1", tree)
        data = call_path_to_dict(root, lambda p: p.replace("/project/", ""))
        assert data == {
            "function": "midLevel1",
            "file": "src/test.ts",
            "callers": [
                {"function": "topLevel1", "file": "src/test.ts", "callers": []},
                {"function": "topLevel2", "file": "src/test.ts", "callers": []},
            ],
        }
        assert root.to_dict()["file"] == "/project/src/test.ts"
