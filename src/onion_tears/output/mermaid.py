"""Mermaid flowchart rendering for control flow graphs.

Small building blocks (ids, node shapes, labelled edges) plus the
assembled diagram.  Every function returns plain strings; callers decide
whether to echo them or write them to disk.
"""

from __future__ import annotations

from onion_tears.graph.cfg import CFGEdge, CFGNode, ControlFlowGraph, NodeKind, build_control_flow_graph
from onion_tears.index.complexity import FunctionComplexityResult

# Node fill per kind, emitted as one ``style`` line per node
NODE_STYLES = {
    NodeKind.ENTRY: "fill:#2d5016,stroke:#4a8c2a,color:#fff",
    NodeKind.EXIT: "fill:#5d1f1f,stroke:#a33,color:#fff",
    NodeKind.DECISION: "fill:#4a3c00,stroke:#c9a400,color:#fff",
    NodeKind.STATEMENT: "fill:#1e3a5f,stroke:#3b6ea5,color:#fff",
}


def escape_label(text: str) -> str:
    """Make *text* safe inside a double-quoted Mermaid label."""
    text = " ".join(text.split())
    return text.replace('"', "'")


def node_id(cfg_node: CFGNode | int) -> str:
    number = cfg_node.id if isinstance(cfg_node, CFGNode) else cfg_node
    return f"N{number}"


def node(cfg_node: CFGNode) -> str:
    """One node definition; the bracket shape follows the node kind."""
    text = escape_label(cfg_node.label)
    nid = node_id(cfg_node)
    if cfg_node.kind in (NodeKind.ENTRY, NodeKind.EXIT):
        return f'    {nid}(["{text}"])'
    if cfg_node.kind == NodeKind.DECISION:
        return f'    {nid}{{"{text}"}}'
    return f'    {nid}["{text}"]'


def edge(cfg_edge: CFGEdge) -> str:
    """One edge, with a quoted label when the edge has one."""
    src, dst = node_id(cfg_edge.from_id), node_id(cfg_edge.to_id)
    if cfg_edge.label:
        return f'    {src} -->|"{escape_label(cfg_edge.label)}"| {dst}'
    return f"    {src} --> {dst}"


def style(cfg_node: CFGNode) -> str:
    return f"    style {node_id(cfg_node)} {NODE_STYLES[cfg_node.kind]}"


def diagram(direction: str, elements: list[str], title: str | None = None) -> str:
    """Assemble a complete flowchart, with an optional front-matter title."""
    lines: list[str] = []
    if title:
        lines.extend(["---", f"title: {escape_label(title)}", "---"])
    lines.append(f"flowchart {direction}")
    lines.extend(elements)
    return "\n".join(lines)


def cfg_to_mermaid(cfg: ControlFlowGraph, title: str | None = None) -> str:
    """Render *cfg* as Mermaid flowchart text.

    Node ids are ``N<id>``; entry and exit are stadium-shaped, decisions
    are diamonds and everything else is a rectangle.
    """
    elements = [node(n) for n in cfg.nodes]
    elements.extend(edge(e) for e in cfg.edges)
    elements.extend(style(n) for n in cfg.nodes)
    return diagram("TD", elements, title=title)


def function_title(result: FunctionComplexityResult) -> str:
    return (
        f"{result.function_name}() | "
        f"Cyclomatic:{result.cyclomatic.score} Cognitive:{result.cognitive.score}"
    )


def generate_mermaid_for_function(result: FunctionComplexityResult) -> str:
    """Build the CFG of an analyzed function and render it with a score title."""
    cfg = build_control_flow_graph(result)
    return cfg_to_mermaid(cfg, title=function_title(result))
