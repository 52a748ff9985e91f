"""Call graphs, caller trees and control flow graphs."""

from onion_tears.graph.builder import build_call_graph, callers_of
from onion_tears.graph.callpath import (
    CallPathNode,
    SourceFile,
    build_call_path_tree,
    build_call_path_tree_across_files,
    call_path_to_dict,
    format_call_path_tree,
)
from onion_tears.graph.cfg import (
    CFGEdge,
    CFGNode,
    ControlFlowGraph,
    NodeKind,
    build_control_flow_graph,
)

__all__ = [
    "build_call_graph",
    "callers_of",
    "CallPathNode",
    "SourceFile",
    "build_call_path_tree",
    "build_call_path_tree_across_files",
    "call_path_to_dict",
    "format_call_path_tree",
    "CFGEdge",
    "CFGNode",
    "ControlFlowGraph",
    "NodeKind",
    "build_control_flow_graph",
]
