"""Tests for the tree-sitter front-end and function naming."""

from __future__ import annotations

import sys
from pathlib import Path

import pytest

sys.path.insert(0, str(Path(__file__).parent))
from conftest import parse_ts

from onion_tears.exit_codes import UnsupportedLanguageError
from onion_tears.index.functions import (
    find_function,
    iter_functions,
    label,
    parse_function_name,
    snippet,
)
from onion_tears.index.parser import detect_language, parse_file, parse_source


def names(code, file_path="test.ts"):
    tree = parse_ts(code, file_path)
    return [parse_function_name(n, tree) for n in iter_functions(tree.root)]


class TestDetectLanguage:
    @pytest.mark.parametrize(
        "path, expected",
        [
            ("a.ts", "typescript"),
            ("a.mts", "typescript"),
            ("a.tsx", "tsx"),
            ("a.js", "javascript"),
            ("a.jsx", "javascript"),
            ("a.cjs", "javascript"),
            ("types.d.ts", None),
            ("README.md", None),
            ("Makefile", None),
        ],
    )
    def test_extensions(self, path, expected):
        assert detect_language(path) == expected

    def test_unsupported_raises(self):
        with pytest.raises(UnsupportedLanguageError):
            parse_source("x", "notes.txt")

    def test_explicit_language_overrides_extension(self):
        tree = parse_source("function f() {}", "snippet", language="javascript")
        assert tree.language == "javascript"


class TestSourceTree:
    def test_positions_are_one_based(self):
        # parse_source directly: parse_ts would dedent the leading spaces away
        tree = parse_source("\n  function f() {}\n", "test.ts")
        fn = find_function(tree, "f")
        assert tree.position(fn) == (2, 3)

    def test_columns_count_characters(self):
        tree = parse_ts("const s = 'ñé'; function f() {}\n")
        fn = find_function(tree, "f")
        assert tree.position(fn) == (1, 17)

    def test_text_slices_source(self):
        tree = parse_ts("function hello() { return 1 }")
        assert tree.text(find_function(tree, "hello")) == "function hello() { return 1 }"

    def test_tsx(self):
        tree = parse_source("const App = () => <div>{ok ? 1 : 2}</div>\n", "App.tsx")
        assert not tree.has_errors
        assert [parse_function_name(n, tree) for n in iter_functions(tree.root)] == ["App"]

    def test_parse_file(self, tmp_path):
        path = tmp_path / "mod.js"
        path.write_text("export function go() {}\n", encoding="utf-8")
        tree = parse_file(path, display_path="mod.js")
        assert tree.path == "mod.js"
        assert tree.language == "javascript"


class TestFunctionNames:
    def test_declarations_and_methods(self):
        code = """
            function a() {}
            function* gen() {}
            class K {
              method() {}
              get value() { return 1 }
              static make() {}
            }
        """
        assert names(code) == ["a", "gen", "method", "value", "make"]

    def test_bindings(self):
        code = """
            const arrow = () => 1
            let expr = function () {}
            const named = function inner() {}
            obj.handler = () => 2
            exports.run = async () => 3
        """
        assert names(code) == ["arrow", "expr", "named", "obj.handler", "exports.run"]

    def test_wrapped_binding(self):
        assert names("const cb = (() => 1) as Fn\n") == ["cb"]

    def test_unbound_expressions_are_anonymous(self):
        assert names("[1, 2].map((x) => x * 2)\nsetTimeout(function () {}, 1)\n") == [
            "anonymous",
            "anonymous",
        ]

    def test_named_expression_without_binding(self):
        assert names("run(function worker() {})\n") == ["worker"]

    def test_imports_skipped(self):
        assert names("import x from 'y'\nexport const f = () => x\n") == ["f"]

    def test_find_function_last_wins(self):
        tree = parse_ts("function d() {}\nfunction d() { return 2 }\n")
        assert tree.position(find_function(tree, "d"))[0] == 2
        assert find_function(tree, "missing") is None


class TestTextHelpers:
    def test_snippet(self):
        assert snippet("if (a) {\n  b()\n}") == "if (a) {   b() }"
        assert len(snippet("x" * 80)) == 50

    def test_label_first_line(self):
        assert label("  for (;;) {\n  x()\n}", 40) == "for (;;) {"
        assert label("abcdef", 3) == "abc"
