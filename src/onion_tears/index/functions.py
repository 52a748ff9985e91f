"""Function-like node classification, naming and shared tree walks."""

from __future__ import annotations

from typing import Iterator

# Node types that own a body of their own (JS/TS grammars).
# "function" is the pre-0.21 tree-sitter-javascript name of function_expression.
FUNCTION_NODE_TYPES = frozenset({
    "function_declaration",
    "generator_function_declaration",
    "function_expression",
    "function",
    "generator_function",
    "arrow_function",
    "method_definition",
})

# Declarations whose own ``name`` field is authoritative
_DECLARATION_TYPES = frozenset({
    "function_declaration",
    "generator_function_declaration",
    "method_definition",
})

# Expression wrappers looked through when searching for a binding name
_TRANSPARENT_PARENTS = frozenset({
    "parenthesized_expression",
    "as_expression",
    "satisfies_expression",
    "non_null_expression",
    "type_assertion",
})

# Subtrees that never contain analysable functions
SKIPPED_STATEMENTS = frozenset({"import_statement"})

ANONYMOUS = "anonymous"


def is_function_node(node) -> bool:
    return node.is_named and node.type in FUNCTION_NODE_TYPES


def function_body(node):
    """Return the body node of a function-like node, or None when absent."""
    body = node.child_by_field_name("body")
    if body is None or body.is_missing:
        return None
    return body


def _strip_quotes(text: str) -> str:
    if len(text) >= 2 and text[0] == text[-1] and text[0] in "'\"`":
        return text[1:-1]
    return text


def _binding_name(node, tree) -> str | None:
    """Name of the variable, property or field a function expression is bound to."""
    parent = node.parent
    while parent is not None and parent.type in _TRANSPARENT_PARENTS:
        parent = parent.parent
    if parent is None:
        return None

    ptype = parent.type
    target = None
    if ptype == "variable_declarator":
        target = parent.child_by_field_name("name")
    elif ptype == "pair":
        target = parent.child_by_field_name("key")
    elif ptype in ("public_field_definition", "field_definition"):
        target = parent.child_by_field_name("name") or parent.child_by_field_name("property")
    elif ptype == "assignment_expression":
        target = parent.child_by_field_name("left")

    if target is None:
        return None
    return _strip_quotes(tree.text(target).strip()) or None


def parse_function_name(node, tree) -> str:
    """Best-effort name for a function-like node.

    Declarations and methods use their own name.  Expressions and arrow
    functions take the name of the binding they are assigned to, falling
    back to their own (named function expression) name, else ``anonymous``.
    """
    own = node.child_by_field_name("name")
    if node.type in _DECLARATION_TYPES and own is not None:
        return tree.text(own)

    bound = _binding_name(node, tree)
    if bound:
        return bound
    if own is not None:
        return tree.text(own)
    return ANONYMOUS


def iter_functions(root) -> Iterator:
    """Yield every function-like node under *root* in pre-order.

    Nested functions are yielded too, after their enclosing function.
    Import statements are skipped entirely.
    """
    stack = [root]
    while stack:
        node = stack.pop()
        if node.type in SKIPPED_STATEMENTS:
            continue
        if is_function_node(node):
            yield node
        stack.extend(reversed(node.children))


def descendants(node, stop_at_functions: bool = True) -> Iterator:
    """Pre-order walk of the descendants of *node* (excluding *node* itself).

    With *stop_at_functions*, nested function-like nodes and their
    subtrees are not visited.
    """
    stack = list(reversed(node.children))
    while stack:
        current = stack.pop()
        if stop_at_functions and is_function_node(current):
            continue
        yield current
        stack.extend(reversed(current.children))


def find_function(tree, name: str):
    """Return the last function-like node named *name* in *tree*, or None.

    Last-wins matches the name-keyed function table used for call paths.
    """
    found = None
    for fn in iter_functions(tree.root):
        if parse_function_name(fn, tree) == name:
            found = fn
    return found


def snippet(text: str, limit: int = 50) -> str:
    """First *limit* characters of *text* with newlines turned into spaces."""
    # one space per newline; indentation after it is kept as-is
    return text[:limit].replace("\r", "").replace("\n", " ")


def label(text: str, limit: int = 40) -> str:
    """First line of *text*, truncated to *limit* characters."""
    first = text.strip().split("\n", 1)[0].rstrip("\r")
    return first[:limit]
