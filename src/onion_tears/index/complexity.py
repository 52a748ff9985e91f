"""Per-function cyclomatic and cognitive complexity over tree-sitter ASTs.

Two independent walks score each function-like node:

- cyclomatic: 1 + one point per decision (if, loops, ternary, catch,
  each ``case`` of a switch, each ``&&`` / ``||``).  No nesting weight.
- cognitive: control structures cost ``1 + nesting`` and deepen the
  nesting of everything below them; ``&&`` / ``||`` / ``??`` cost a
  flat 1 each.

Every increment is recorded as a :class:`ComplexityContributor` so that
reports can say *why* a function scored what it did.  Nested functions
are not walked; they are scored on their own by :func:`analyze`.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path

from onion_tears.config import Config
from onion_tears.index.functions import (
    descendants,
    function_body,
    is_function_node,
    iter_functions,
    parse_function_name,
    snippet,
)
from onion_tears.index.parser import SourceTree, parse_file

log = logging.getLogger(__name__)

# ── Node-type mappings (JS/TS grammars) ──────────────────────────────

# Decision points counted once each by the cyclomatic walk
_CYCLOMATIC_KINDS = {
    "if_statement": "if statement",
    "while_statement": "while loop",
    "do_statement": "do-while loop",
    "for_statement": "for loop",
    "for_in_statement": "for-in loop",  # relabelled for-of by _kind_label
    "ternary_expression": "ternary operator",
    "catch_clause": "catch clause",
}

# Control flow that costs 1 + nesting AND deepens nesting (cognitive)
_NESTING_KINDS = {
    "if_statement": "if statement",
    "for_statement": "for loop",
    "for_in_statement": "for-in loop",
    "while_statement": "while loop",
    "do_statement": "do-while loop",
    "ternary_expression": "ternary operator",
    "catch_clause": "catch clause",
    "switch_statement": "switch statement",
}

# Short-circuit operators: cyclomatic counts && and ||, cognitive adds ??
_CYCLOMATIC_BOOL_OPS = frozenset({"&&", "||"})
_COGNITIVE_BOOL_OPS = frozenset({"&&", "||", "??"})


# ── Result types ─────────────────────────────────────────────────────


class ThresholdStatus(str, Enum):
    NONE = "none"
    WARNING = "warning"
    ERROR = "error"


@dataclass(frozen=True)
class ComplexityContributor:
    """One attributed increment of a complexity score."""

    kind: str
    cost: int
    line: int
    column: int
    text: str

    def to_dict(self) -> dict:
        return {
            "kind": self.kind,
            "cost": self.cost,
            "line": self.line,
            "column": self.column,
            "text": self.text,
        }


@dataclass(frozen=True)
class ComplexityResult:
    score: int
    contributors: tuple[ComplexityContributor, ...] = ()

    def to_dict(self) -> dict:
        return {
            "score": self.score,
            "contributors": [c.to_dict() for c in self.contributors],
        }


@dataclass(frozen=True)
class FunctionComplexityResult:
    """Scores for one function.  ``node`` is a handle back into ``tree``."""

    function_name: str
    declaration_line: int
    cyclomatic: ComplexityResult
    cognitive: ComplexityResult
    threshold_status: ThresholdStatus = ThresholdStatus.NONE
    node: object = field(default=None, repr=False, compare=False)
    tree: SourceTree | None = field(default=None, repr=False, compare=False)

    def to_dict(self) -> dict:
        return {
            "function": self.function_name,
            "line": self.declaration_line,
            "cyclomatic": self.cyclomatic.score,
            "cognitive": self.cognitive.score,
            "threshold_status": self.threshold_status.value,
            "cyclomatic_contributors": [c.to_dict() for c in self.cyclomatic.contributors],
            "cognitive_contributors": [c.to_dict() for c in self.cognitive.contributors],
        }


@dataclass(frozen=True)
class Diagnostic:
    level: str  # "warning" | "error"
    message: str
    line: int | None = None

    def to_dict(self) -> dict:
        return {"level": self.level, "message": self.message, "line": self.line}


@dataclass
class FileComplexityResult:
    file_name: str
    results: list[FunctionComplexityResult] = field(default_factory=list)
    diagnostics: list[Diagnostic] = field(default_factory=list)

    def to_dict(self) -> dict:
        return {
            "file": self.file_name,
            "functions": [r.to_dict() for r in self.results],
            "diagnostics": [d.to_dict() for d in self.diagnostics],
        }


# ── Helpers ──────────────────────────────────────────────────────────


def _kind_label(node, labels: dict[str, str]) -> str | None:
    kind = labels.get(node.type)
    if kind is not None and node.type == "for_in_statement":
        op = node.child_by_field_name("operator")
        if op is not None and op.type == "of":
            return "for-of loop"
    return kind


def _bool_operator(node, operators: frozenset[str]):
    """Return the operator token of a short-circuit binary expression, else None."""
    if node.type != "binary_expression":
        return None
    op = node.child_by_field_name("operator")
    if op is not None and op.type in operators:
        return op
    return None


def _contributor(kind: str, cost: int, anchor, text_node, tree: SourceTree) -> ComplexityContributor:
    line, column = tree.position(anchor)
    return ComplexityContributor(
        kind=kind,
        cost=cost,
        line=line,
        column=column,
        text=snippet(tree.text(text_node)),
    )


# ── Calculators ──────────────────────────────────────────────────────


def calculate_cyclomatic_complexity(func_node, tree: SourceTree) -> ComplexityResult:
    """Cyclomatic complexity of *func_node*: 1 + number of decision points."""
    contributors: list[ComplexityContributor] = []

    for node in descendants(func_node):
        kind = _kind_label(node, _CYCLOMATIC_KINDS)
        if kind is not None:
            contributors.append(_contributor(kind, 1, node, node, tree))
            continue

        if node.type == "switch_statement":
            body = node.child_by_field_name("body")
            clauses = body.named_children if body is not None else []
            for clause in clauses:
                if clause.type == "switch_case":
                    contributors.append(_contributor("case clause", 1, clause, clause, tree))
            continue

        op = _bool_operator(node, _CYCLOMATIC_BOOL_OPS)
        if op is not None:
            contributors.append(_contributor(f"logical {op.type}", 1, op, node, tree))

    score = 1 + sum(c.cost for c in contributors)
    return ComplexityResult(score=score, contributors=tuple(contributors))


def calculate_cognitive_complexity(func_node, tree: SourceTree) -> ComplexityResult:
    """Nesting-aware cognitive complexity of *func_node*."""
    contributors: list[ComplexityContributor] = []

    def _visit(node, nesting: int) -> None:
        if is_function_node(node):
            return

        child_nesting = nesting
        kind = _kind_label(node, _NESTING_KINDS)
        if kind is not None:
            contributors.append(_contributor(kind, 1 + nesting, node, node, tree))
            child_nesting = nesting + 1
        else:
            op = _bool_operator(node, _COGNITIVE_BOOL_OPS)
            if op is not None:
                contributors.append(_contributor(f"logical {op.type}", 1, op, node, tree))

        for child in node.children:
            _visit(child, child_nesting)

    for child in func_node.children:
        _visit(child, 0)

    score = sum(c.cost for c in contributors)
    return ComplexityResult(score=score, contributors=tuple(contributors))


def classify_threshold(score: int, config: Config | None) -> ThresholdStatus:
    """Map a cyclomatic score onto a threshold status; error wins over warning."""
    if config is None:
        return ThresholdStatus.NONE
    if config.cyclomatic_error and score >= config.cyclomatic_error:
        return ThresholdStatus.ERROR
    if config.cyclomatic_warning and score >= config.cyclomatic_warning:
        return ThresholdStatus.WARNING
    return ThresholdStatus.NONE


# ── File-level analysis ──────────────────────────────────────────────


def score_function(
    func_node, tree: SourceTree, config: Config | None = None
) -> tuple[FunctionComplexityResult, Diagnostic | None]:
    """Score one function-like node.

    A function without a body gets an empty result (cyclomatic 1,
    cognitive 0) and a warning diagnostic instead of failing.
    """
    if not is_function_node(func_node):
        raise ValueError(f"Expected a function-like node, got {func_node.type!r}")

    name = parse_function_name(func_node, tree)
    line, _ = tree.position(func_node)

    diagnostic = None
    if function_body(func_node) is None:
        log.warning("%s:%d: function %s has no body; reporting empty complexity", tree.path, line, name)
        cyclomatic = ComplexityResult(score=1)
        cognitive = ComplexityResult(score=0)
        diagnostic = Diagnostic("warning", f"function {name} has no body", line)
    else:
        cyclomatic = calculate_cyclomatic_complexity(func_node, tree)
        cognitive = calculate_cognitive_complexity(func_node, tree)

    result = FunctionComplexityResult(
        function_name=name,
        declaration_line=line,
        cyclomatic=cyclomatic,
        cognitive=cognitive,
        threshold_status=classify_threshold(cyclomatic.score, config),
        node=func_node,
        tree=tree,
    )
    return result, diagnostic


def _first_error_line(tree: SourceTree) -> int | None:
    for node in descendants(tree.root, stop_at_functions=False):
        if node.type == "ERROR" or node.is_missing:
            return tree.position(node)[0]
    return None


def analyze_tree(tree: SourceTree, config: Config | None = None) -> FileComplexityResult:
    """Score every function in *tree*, collecting diagnostics alongside."""
    file_result = FileComplexityResult(file_name=tree.path)

    if tree.has_errors:
        line = _first_error_line(tree)
        log.warning("%s: syntax errors near line %s; results are best-effort", tree.path, line)
        file_result.diagnostics.append(Diagnostic("warning", "syntax errors; results are best-effort", line))

    for func_node in iter_functions(tree.root):
        try:
            result, diagnostic = score_function(func_node, tree, config)
        except Exception as exc:
            line = tree.position(func_node)[0]
            log.error("%s:%d: failed to analyze function: %s", tree.path, line, exc)
            file_result.diagnostics.append(Diagnostic("error", f"analysis failed: {exc}", line))
            continue
        file_result.results.append(result)
        if diagnostic is not None:
            file_result.diagnostics.append(diagnostic)

    log.debug("Analyzed %d functions in %s", len(file_result.results), tree.path)
    return file_result


def analyze(tree: SourceTree, config: Config | None = None) -> list[FunctionComplexityResult]:
    """Score every function in *tree*, in source (pre-order) order."""
    return analyze_tree(tree, config).results


def analyze_file(
    path: str | Path, config: Config | None = None, display_path: str | None = None
) -> FileComplexityResult:
    """Parse and analyze one file from disk."""
    tree = parse_file(path, display_path=display_path)
    return analyze_tree(tree, config)
