"""Control flow graphs for visualising one function.

The graph is built by structural recursion over the function body: each
visit receives the id of the node control arrives from and returns the
id that control continues from.  Decision nodes are emitted for exactly
the constructs the cyclomatic calculator counts (a switch is one decision
with one edge per clause), so the picture and the score agree.

The graph is a presentation aid, not an analysis IR: short-circuit
operators get two edges (``eval`` / ``skip``) into the same continuation
node, and code after a ``return`` is still threaded after it.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum

import networkx as nx

from onion_tears.index.complexity import FunctionComplexityResult
from onion_tears.index.functions import is_function_node, label
from onion_tears.index.parser import SourceTree


class NodeKind(str, Enum):
    ENTRY = "entry"
    EXIT = "exit"
    DECISION = "decision"
    STATEMENT = "statement"


@dataclass(frozen=True)
class CFGNode:
    id: int
    label: str
    kind: NodeKind

    def to_dict(self) -> dict:
        return {"id": self.id, "label": self.label, "kind": self.kind.value}


@dataclass(frozen=True)
class CFGEdge:
    from_id: int
    to_id: int
    label: str | None = None

    def to_dict(self) -> dict:
        return {"from": self.from_id, "to": self.to_id, "label": self.label}


@dataclass(frozen=True)
class ControlFlowGraph:
    nodes: tuple[CFGNode, ...]
    edges: tuple[CFGEdge, ...]

    @property
    def entry(self) -> CFGNode:
        return self.nodes[0]

    def nodes_of_kind(self, kind: NodeKind) -> list[CFGNode]:
        return [n for n in self.nodes if n.kind == kind]

    def decision_nodes(self) -> list[CFGNode]:
        return self.nodes_of_kind(NodeKind.DECISION)

    def outgoing(self, node_id: int) -> list[CFGEdge]:
        return [e for e in self.edges if e.from_id == node_id]

    def incoming(self, node_id: int) -> list[CFGEdge]:
        return [e for e in self.edges if e.to_id == node_id]

    def successors(self, node_id: int) -> list[int]:
        """Distinct successor ids of *node_id*, in edge order."""
        return list(dict.fromkeys(e.to_id for e in self.outgoing(node_id)))

    def to_networkx(self) -> nx.MultiDiGraph:
        """Export as a MultiDiGraph (short-circuit decisions have parallel edges)."""
        G = nx.MultiDiGraph()
        G.add_nodes_from((n.id, {"label": n.label, "kind": n.kind.value}) for n in self.nodes)
        G.add_edges_from((e.from_id, e.to_id, {"label": e.label}) for e in self.edges)
        return G

    def to_dict(self) -> dict:
        return {
            "nodes": [n.to_dict() for n in self.nodes],
            "edges": [e.to_dict() for e in self.edges],
        }


# ── Builder ──────────────────────────────────────────────────────────

_LOOP_TYPES = frozenset({
    "while_statement",
    "do_statement",
    "for_statement",
    "for_in_statement",
})

_TERMINAL_TYPES = frozenset({
    "return_statement",
    "break_statement",
    "continue_statement",
    "throw_statement",
})

_SHORT_CIRCUIT_OPS = frozenset({"&&", "||"})


def _same_node(a, b) -> bool:
    return a is not None and b is not None and (a.type, a.start_byte, a.end_byte) == (b.type, b.start_byte, b.end_byte)


def _statements(node) -> list:
    """Statements of a block, or the single statement itself."""
    if node is None:
        return []
    if node.type == "statement_block":
        return [c for c in node.named_children if c.type != "comment"]
    return [node]


def _first_statement(node):
    """The statement wrapped by an else clause (comments skipped)."""
    if node is None:
        return None
    for child in node.named_children:
        if child.type != "comment":
            return child
    return None


class _CFGBuilder:
    def __init__(self, tree: SourceTree):
        self.tree = tree
        self.nodes: list[CFGNode] = []
        self.edges: list[CFGEdge] = []
        # decision id -> label for the next unlabelled edge leaving it (else-if chains)
        self._deferred: dict[int, str] = {}

    # -- primitives --

    def add_node(self, text: str, kind: NodeKind) -> int:
        node_id = len(self.nodes)
        self.nodes.append(CFGNode(id=node_id, label=text, kind=kind))
        return node_id

    def add_edge(self, src: int, dst: int, edge_label: str | None = None) -> None:
        if edge_label is None:
            edge_label = self._deferred.pop(src, None)
        self.edges.append(CFGEdge(from_id=src, to_id=dst, label=edge_label))

    def _text(self, node) -> str:
        return self.tree.text(node)

    def _condition_text(self, node) -> str:
        # parenthesized_expression -> the expression inside the parentheses
        if node is not None and node.type == "parenthesized_expression":
            inner = _first_statement(node)
            if inner is not None:
                node = inner
        return self._text(node) if node is not None else ""

    # -- traversal --

    def build(self, func_node) -> ControlFlowGraph:
        entry = self.add_node("ENTRY", NodeKind.ENTRY)
        last = self.thread_children(func_node, entry)
        exit_id = self.add_node("EXIT", NodeKind.EXIT)
        self.add_edge(last, exit_id)
        return ControlFlowGraph(nodes=tuple(self.nodes), edges=tuple(self.edges))

    def thread_children(self, node, prev: int) -> int:
        current = prev
        for child in node.named_children:
            current = self.visit(child, current)
        return current

    def visit(self, node, prev: int) -> int:
        if node is None or is_function_node(node):
            return prev

        ntype = node.type
        if ntype == "if_statement":
            return self._visit_if(node, prev)
        if ntype in _LOOP_TYPES:
            return self._visit_loop(node, prev)
        if ntype == "switch_statement":
            return self._visit_switch(node, prev)
        if ntype == "ternary_expression":
            return self._visit_ternary(node, prev)
        if ntype == "try_statement":
            return self._visit_try(node, prev)
        if ntype in _TERMINAL_TYPES:
            return self._terminal(node, prev)
        if ntype == "binary_expression":
            op = node.child_by_field_name("operator")
            if op is not None and op.type in _SHORT_CIRCUIT_OPS:
                return self._visit_short_circuit(node, op.type, prev)

        return self.thread_children(node, prev)

    def _terminal(self, node, prev: int, edge_label: str | None = None) -> int:
        stmt_id = self.add_node(label(self._text(node), 30), NodeKind.STATEMENT)
        self.add_edge(prev, stmt_id, edge_label)
        # returned/thrown expressions may hold decisions of their own
        return self.thread_children(node, stmt_id)

    def _branch(self, body, decision: int, edge_label: str, default_label: str) -> int:
        """Open a branch out of *decision* into *body*; return the branch exit."""
        statements = _statements(body)
        if statements and statements[0].type in _TERMINAL_TYPES:
            current = self._terminal(statements[0], decision, edge_label)
            rest = statements[1:]
        else:
            text = label(self._text(statements[0]), 40) if statements else ""
            current = self.add_node(text or default_label, NodeKind.STATEMENT)
            self.add_edge(decision, current, edge_label)
            rest = statements
        for stmt in rest:
            current = self.visit(stmt, current)
        return current

    def _visit_if(self, node, prev: int) -> int:
        condition = node.child_by_field_name("condition")
        prev = self.visit(condition, prev)

        decision = self.add_node(f"if ({label(self._condition_text(condition), 30)})", NodeKind.DECISION)
        self.add_edge(prev, decision)

        then_exit = self._branch(node.child_by_field_name("consequence"), decision, "true", "then")
        else_stmt = _first_statement(node.child_by_field_name("alternative"))

        if else_stmt is None:
            merge = self.add_node("merge", NodeKind.STATEMENT)
            self.add_edge(then_exit, merge)
            self.add_edge(decision, merge, "false")
            return merge

        if else_stmt.type == "if_statement":
            # else-if: the chained decision hangs directly off this one
            self._deferred[decision] = "false"
            else_exit = self.visit(else_stmt, decision)
            self._deferred.pop(decision, None)
        else:
            else_exit = self._branch(else_stmt, decision, "false", "else")

        merge = self.add_node("merge", NodeKind.STATEMENT)
        self.add_edge(then_exit, merge)
        self.add_edge(else_exit, merge)
        return merge

    def _visit_loop(self, node, prev: int) -> int:
        body = node.child_by_field_name("body")
        for part in node.named_children:
            if not _same_node(part, body):
                prev = self.visit(part, prev)

        decision = self.add_node(label(self._text(node), 40) or "loop", NodeKind.DECISION)
        self.add_edge(prev, decision)

        body_id = self.add_node("loop body", NodeKind.STATEMENT)
        self.add_edge(decision, body_id, "true")
        body_exit = self.visit(body, body_id)
        self.add_edge(body_exit, decision, "continue")

        exit_id = self.add_node("loop exit", NodeKind.STATEMENT)
        self.add_edge(decision, exit_id, "false")
        return exit_id

    def _visit_switch(self, node, prev: int) -> int:
        value = node.child_by_field_name("value")
        prev = self.visit(value, prev)

        decision = self.add_node(f"switch ({label(self._condition_text(value), 20)})", NodeKind.DECISION)
        self.add_edge(prev, decision)

        body = node.child_by_field_name("body")
        clauses = [c for c in body.named_children if c.type in ("switch_case", "switch_default")] if body else []

        exits: list[int] = []
        for idx, clause in enumerate(clauses):
            case_value = clause.child_by_field_name("value")
            text = f"case {label(self._text(case_value), 30)}" if case_value is not None else "default"
            case_id = self.add_node(text, NodeKind.STATEMENT)
            self.add_edge(decision, case_id, f"case {idx}")
            current = self.visit(case_value, case_id)
            for stmt in clause.children_by_field_name("body"):
                current = self.visit(stmt, current)
            exits.append(current)

        merge = self.add_node("switch merge", NodeKind.STATEMENT)
        for exit_id in exits:
            self.add_edge(exit_id, merge)
        if not clauses:
            self.add_edge(decision, merge)
        return merge

    def _visit_ternary(self, node, prev: int) -> int:
        condition = node.child_by_field_name("condition")
        prev = self.visit(condition, prev)

        decision = self.add_node(f"{label(self._text(condition), 20)} ?", NodeKind.DECISION)
        self.add_edge(prev, decision)

        true_id = self.add_node("true branch", NodeKind.STATEMENT)
        self.add_edge(decision, true_id, "true")
        true_exit = self.visit(node.child_by_field_name("consequence"), true_id)

        false_id = self.add_node("false branch", NodeKind.STATEMENT)
        self.add_edge(decision, false_id, "false")
        false_exit = self.visit(node.child_by_field_name("alternative"), false_id)

        merge = self.add_node("merge", NodeKind.STATEMENT)
        self.add_edge(true_exit, merge)
        self.add_edge(false_exit, merge)
        return merge

    def _visit_short_circuit(self, node, op: str, prev: int) -> int:
        prev = self.visit(node.child_by_field_name("left"), prev)

        decision = self.add_node(f"{op} short-circuit", NodeKind.DECISION)
        self.add_edge(prev, decision)

        next_id = self.add_node("continue", NodeKind.STATEMENT)
        self.add_edge(decision, next_id, "eval")
        self.add_edge(decision, next_id, "skip")
        return self.visit(node.child_by_field_name("right"), next_id)

    def _visit_try(self, node, prev: int) -> int:
        current = self.visit(node.child_by_field_name("body"), prev)

        handler = node.child_by_field_name("handler")
        if handler is not None:
            param = handler.child_by_field_name("parameter")
            text = f"catch ({label(self._text(param), 20)})" if param is not None else "catch"
            decision = self.add_node(text, NodeKind.DECISION)
            self.add_edge(current, decision)

            caught_exit = self._branch(handler.child_by_field_name("body"), decision, "throw", "catch body")
            merge = self.add_node("merge", NodeKind.STATEMENT)
            self.add_edge(caught_exit, merge)
            self.add_edge(decision, merge, "ok")
            current = merge

        return self.visit(node.child_by_field_name("finalizer"), current)


def build_control_flow_graph(target, tree: SourceTree | None = None) -> ControlFlowGraph:
    """Build the CFG of a function.

    *target* is either a :class:`FunctionComplexityResult` (which carries
    its own node and tree) or a function-like node together with *tree*.
    """
    if isinstance(target, FunctionComplexityResult):
        func_node, tree = target.node, target.tree
    else:
        func_node = target
    if tree is None or func_node is None:
        raise ValueError("A syntax tree is required to build a control flow graph")
    if not is_function_node(func_node):
        raise ValueError(f"Expected a function-like node, got {func_node.type!r}")
    return _CFGBuilder(tree).build(func_node)
