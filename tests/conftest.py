"""Shared test fixtures and helpers for onion-tears tests.

Provides:
- Parsing helpers: parse_ts(), first_function(), analyze_source()
- CliRunner fixtures: cli_runner, invoke_cli()
- Factory fixture: project_factory for custom file combinations
- JSON validation helpers: parse_json_output(), assert_json_envelope()
"""

from __future__ import annotations

import json
import os
import textwrap

import pytest
from click.testing import CliRunner

# ===========================================================================
# Parsing helpers
# ===========================================================================


def parse_ts(code, file_path="test.ts"):
    """Parse a code snippet (dedented) as TypeScript and return the SourceTree."""
    from onion_tears.index.parser import parse_source

    return parse_source(textwrap.dedent(code), file_path)


def first_function(tree):
    """Return the first function-like node of *tree* in pre-order."""
    from onion_tears.index.functions import iter_functions

    for node in iter_functions(tree.root):
        return node
    raise AssertionError("No function found in source")


def analyze_source(code, config=None, file_path="test.ts"):
    """Parse and analyze a snippet, returning the list of function results."""
    from onion_tears.index.complexity import analyze

    return analyze(parse_ts(code, file_path), config)


def by_name(results, name):
    """Find a single FunctionComplexityResult by function name."""
    matches = [r for r in results if r.function_name == name]
    assert len(matches) == 1, f"expected one {name}, got {[r.function_name for r in results]}"
    return matches[0]


# ===========================================================================
# CliRunner helpers
# ===========================================================================


@pytest.fixture
def cli_runner():
    """Provide a Click CliRunner for in-process CLI testing."""
    return CliRunner()


def invoke_cli(runner, args, cwd=None, json_mode=False):
    """Invoke the onion-tears CLI via CliRunner.

    Args:
        runner: CliRunner instance
        args: list of CLI arguments (e.g. ["file", "a.ts"])
        cwd: directory to run in
        json_mode: if True, prepend --json flag
    Returns:
        click.testing.Result
    """
    from onion_tears.cli import cli

    full_args = []
    if json_mode:
        full_args.append("--json")
    full_args.extend(args)

    old_cwd = os.getcwd()
    try:
        if cwd:
            os.chdir(str(cwd))
        result = runner.invoke(cli, full_args)
    finally:
        os.chdir(old_cwd)

    return result


# ===========================================================================
# JSON validation helpers
# ===========================================================================


def parse_json_output(result, command=None, expected_exit=0):
    """Parse JSON from a CliRunner result."""
    assert result.exit_code == expected_exit, (
        f"Command {command or '?'} exited {result.exit_code}:\n{result.output}"
    )
    try:
        return json.loads(result.stdout)
    except json.JSONDecodeError as e:
        pytest.fail(f"Invalid JSON from {command or '?'}: {e}\nOutput was:\n{result.stdout[:500]}")


def assert_json_envelope(data, command=None):
    """Validate that a parsed JSON dict follows the envelope contract."""
    assert isinstance(data, dict), f"Expected dict, got {type(data)}"
    for key in ("schema", "schema_version", "command", "version", "summary"):
        assert key in data, f"Missing {key!r} key in envelope"
    assert "timestamp" in data.get("_meta", {}), "Missing 'timestamp' in _meta"
    if command:
        assert data["command"] == command, f"Expected command={command}, got {data['command']}"
    assert isinstance(data["summary"], dict)


# ===========================================================================
# Project fixtures
# ===========================================================================


@pytest.fixture
def project_factory(tmp_path_factory):
    """Factory fixture for creating custom project layouts.

    Usage:
        def test_something(project_factory):
            proj = project_factory({
                "src/app.ts": "export function main() {}",
                "src/lib/helper.js": "function help() {}",
            })

    Returns a callable that accepts a dict of {relative_path: content}
    and returns the project path.
    """

    def _create(files):
        proj = tmp_path_factory.mktemp("project")
        for rel_path, content in files.items():
            fp = proj / rel_path
            fp.parent.mkdir(parents=True, exist_ok=True)
            fp.write_text(textwrap.dedent(content), encoding="utf-8")
        return proj

    return _create


LAYERED_CALLS = """
function topLevel1() {
  midLevel1()
}
function topLevel2() {
  midLevel1()
}
function topLevel3() {
  midLevel3()
}
function midLevel1() {
  lowLevel()
}
function midLevel2() {
  lowLevel()
}
function midLevel3() {}
function lowLevel() {}
"""
