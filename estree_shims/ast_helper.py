#!/usr/bin/env python3
# -*- coding: utf-8 -*-
"""
estree_shims/ast_helper.py
══════════════════════════

Loading, navigation and classification utilities for ESTree syntax trees.

Trees arrive as ESTree JSON (the output of any ESTree-conformant parser
passed through ``JSON.stringify``) and are kept as the plain ``dict``/
``list`` structure ``json`` produces.  Nothing here copies or mutates nodes,
so node identity (``is``) stays meaningful for the whole analysis.

    ┌─────────────────────────────────────────────────────────────────┐
    │  Loading                                                        │
    │    • load_program / parse_program (root must be a Program)      │
    ├─────────────────────────────────────────────────────────────────┤
    │  Navigation                                                     │
    │    • iter_child_nodes in document order (visitor-keys table)    │
    │    • node_position for diagnostics                              │
    ├─────────────────────────────────────────────────────────────────┤
    │  Classification                                                 │
    │    • block / program / function predicates                      │
    │    • block-scoped declaration kinds                             │
    │    • directive prologue ("use strict") detection                │
    └─────────────────────────────────────────────────────────────────┘

Usage Example
─────────────
    from estree_shims.ast_helper import load_program, iter_child_nodes

    program = load_program("app.js.json")
    for child in iter_child_nodes(program):
        print(node_type(child))

License: MIT
"""

from __future__ import annotations

import json
import sys
from typing import (
    Any,
    Dict,
    FrozenSet,
    Iterator,
    List,
    Optional,
    Sequence,
    Tuple,
)

from estree_shims.errors import DumpLoadError, TraversalContractError


# ═══════════════════════════════════════════════════════════════════════════
#  TYPE ALIASES
# ═══════════════════════════════════════════════════════════════════════════

# ESTree nodes are the dicts produced by ``json.loads``.
Node = Dict[str, Any]


# ═══════════════════════════════════════════════════════════════════════════
#  CONSTANTS
# ═══════════════════════════════════════════════════════════════════════════

PROGRAM = "Program"
BLOCK_STATEMENT = "BlockStatement"

FUNCTION_TYPES: FrozenSet[str] = frozenset({
    "FunctionDeclaration",
    "FunctionExpression",
    "ArrowFunctionExpression",
})

CLASS_TYPES: FrozenSet[str] = frozenset({
    "ClassDeclaration",
    "ClassExpression",
})

# var is function-scoped; everything else binds to the nearest block.
BLOCK_SCOPED_KINDS: FrozenSet[str] = frozenset({
    "let", "const", "using", "await using",
})

# Keys that carry metadata, never child nodes.
METADATA_KEYS: FrozenSet[str] = frozenset({
    "type", "loc", "range", "start", "end", "parent",
    "comments", "tokens", "leadingComments", "trailingComments",
    "innerComments", "raw", "value", "regex", "directive",
})

# Child keys per node type, in document order (mirrors eslint-visitor-keys).
VISITOR_KEYS: Dict[str, Tuple[str, ...]] = {
    "ArrayExpression": ("elements",),
    "ArrayPattern": ("elements",),
    "ArrowFunctionExpression": ("params", "body"),
    "AssignmentExpression": ("left", "right"),
    "AssignmentPattern": ("left", "right"),
    "AwaitExpression": ("argument",),
    "BinaryExpression": ("left", "right"),
    "BlockStatement": ("body",),
    "BreakStatement": ("label",),
    "CallExpression": ("callee", "arguments"),
    "CatchClause": ("param", "body"),
    "ChainExpression": ("expression",),
    "ClassBody": ("body",),
    "ClassDeclaration": ("id", "superClass", "body"),
    "ClassExpression": ("id", "superClass", "body"),
    "ConditionalExpression": ("test", "consequent", "alternate"),
    "ContinueStatement": ("label",),
    "DebuggerStatement": (),
    "DoWhileStatement": ("body", "test"),
    "EmptyStatement": (),
    "ExportAllDeclaration": ("exported", "source"),
    "ExportDefaultDeclaration": ("declaration",),
    "ExportNamedDeclaration": ("declaration", "specifiers", "source"),
    "ExportSpecifier": ("exported", "local"),
    "ExpressionStatement": ("expression",),
    "ForInStatement": ("left", "right", "body"),
    "ForOfStatement": ("left", "right", "body"),
    "ForStatement": ("init", "test", "update", "body"),
    "FunctionDeclaration": ("id", "params", "body"),
    "FunctionExpression": ("id", "params", "body"),
    "Identifier": (),
    "IfStatement": ("test", "consequent", "alternate"),
    "ImportDeclaration": ("specifiers", "source"),
    "ImportDefaultSpecifier": ("local",),
    "ImportExpression": ("source",),
    "ImportNamespaceSpecifier": ("local",),
    "ImportSpecifier": ("imported", "local"),
    "LabeledStatement": ("label", "body"),
    "Literal": (),
    "LogicalExpression": ("left", "right"),
    "MemberExpression": ("object", "property"),
    "MetaProperty": ("meta", "property"),
    "MethodDefinition": ("key", "value"),
    "NewExpression": ("callee", "arguments"),
    "ObjectExpression": ("properties",),
    "ObjectPattern": ("properties",),
    "PrivateIdentifier": (),
    "Program": ("body",),
    "Property": ("key", "value"),
    "PropertyDefinition": ("key", "value"),
    "RestElement": ("argument",),
    "ReturnStatement": ("argument",),
    "SequenceExpression": ("expressions",),
    "SpreadElement": ("argument",),
    "StaticBlock": ("body",),
    "Super": (),
    "SwitchCase": ("test", "consequent"),
    "SwitchStatement": ("discriminant", "cases"),
    "TaggedTemplateExpression": ("tag", "quasi"),
    "TemplateElement": (),
    "TemplateLiteral": ("quasis", "expressions"),
    "ThisExpression": (),
    "ThrowStatement": ("argument",),
    "TryStatement": ("block", "handler", "finalizer"),
    "UnaryExpression": ("argument",),
    "UpdateExpression": ("argument",),
    "VariableDeclaration": ("declarations",),
    "VariableDeclarator": ("id", "init"),
    "WhileStatement": ("test", "body"),
    "WithStatement": ("object", "body"),
    "YieldExpression": ("argument",),
}

_USE_STRICT_RAW: FrozenSet[str] = frozenset({'"use strict"', "'use strict'"})


# ═══════════════════════════════════════════════════════════════════════════
#  NODE PREDICATES
# ═══════════════════════════════════════════════════════════════════════════

def is_node(value: Any) -> bool:
    """True for a dict that looks like an ESTree node."""
    return isinstance(value, dict) and isinstance(value.get("type"), str)


def node_type(node: Optional[Node]) -> str:
    """Return the node's ``type``, or ``""`` for None."""
    if node is None:
        return ""
    return node.get("type", "") or ""


def is_program(node: Optional[Node]) -> bool:
    return node_type(node) == PROGRAM


def is_block(node: Optional[Node]) -> bool:
    return node_type(node) == BLOCK_STATEMENT


def is_function(node: Optional[Node]) -> bool:
    return node_type(node) in FUNCTION_TYPES


def is_class(node: Optional[Node]) -> bool:
    return node_type(node) in CLASS_TYPES


def is_block_scoped_declaration(node: Node) -> bool:
    """
    True when a ``VariableDeclaration`` binds to its enclosing block
    (``let``, ``const``, ``using``, ``await using``).

    Raises:
        TraversalContractError: the node carries no string ``kind``.
    """
    kind = node.get("kind")
    if not isinstance(kind, str):
        raise TraversalContractError(
            f"VariableDeclaration without a kind: {kind!r}"
        )
    return kind in BLOCK_SCOPED_KINDS


# ═══════════════════════════════════════════════════════════════════════════
#  NAVIGATION
# ═══════════════════════════════════════════════════════════════════════════

def iter_child_nodes(node: Node) -> Iterator[Node]:
    """
    Iterate the direct children of a node in document order.

    Known node types follow ``VISITOR_KEYS``; unknown ones fall back to the
    dict's key order, skipping metadata keys.  Holes in arrays (``null``
    elements) are skipped.
    """
    keys: Sequence[str]
    ntype = node_type(node)
    if ntype in VISITOR_KEYS:
        keys = VISITOR_KEYS[ntype]
    else:
        keys = [k for k in node if k not in METADATA_KEYS]

    for key in keys:
        value = node.get(key)
        if isinstance(value, list):
            for item in value:
                if is_node(item):
                    yield item
        elif is_node(value):
            yield value


def count_nodes(root: Node) -> int:
    """Number of nodes in the tree rooted at ``root`` (inclusive)."""
    total = 0
    stack: List[Node] = [root]
    while stack:
        node = stack.pop()
        total += 1
        stack.extend(iter_child_nodes(node))
    return total


def node_position(node: Optional[Node]) -> Tuple[int, int]:
    """
    Return ``(line, column)`` of the node's start, with a 1-based column.

    ESTree ``loc`` columns are 0-based; reports use 1-based columns.
    Nodes without ``loc`` yield ``(0, 0)``.
    """
    if node is None:
        return (0, 0)
    start = (node.get("loc") or {}).get("start") or {}
    line = start.get("line", 0) or 0
    column = start.get("column")
    return (line, column + 1 if isinstance(column, int) else 0)


# ═══════════════════════════════════════════════════════════════════════════
#  DIRECTIVES
# ═══════════════════════════════════════════════════════════════════════════

def _is_use_strict(stmt: Node) -> bool:
    directive = stmt.get("directive")
    if directive is not None:
        return directive == "use strict"
    expr = stmt.get("expression") or {}
    raw = expr.get("raw")
    if raw is not None:
        return raw in _USE_STRICT_RAW
    return expr.get("value") == "use strict"


def iter_directive_prologue(body: Sequence[Node]) -> Iterator[Node]:
    """Yield the leading string-literal expression statements of a body."""
    for stmt in body:
        if node_type(stmt) != "ExpressionStatement":
            return
        expr = stmt.get("expression") or {}
        if node_type(expr) != "Literal" or not isinstance(expr.get("value"), str):
            return
        yield stmt


def has_use_strict_directive(body: Sequence[Node]) -> bool:
    """True when the directive prologue of ``body`` contains "use strict"."""
    return any(_is_use_strict(stmt) for stmt in iter_directive_prologue(body))


def function_has_use_strict(node: Node) -> bool:
    """
    True when a function's own body opens with a "use strict" directive.

    Arrow functions with an expression body have no prologue.
    """
    body = node.get("body")
    if not is_block(body):
        return False
    return has_use_strict_directive(body.get("body") or [])


# ═══════════════════════════════════════════════════════════════════════════
#  LOADING
# ═══════════════════════════════════════════════════════════════════════════

def parse_program(text: str, file: Optional[str] = None) -> Node:
    """
    Decode ESTree JSON text and return its ``Program`` node.

    Raises:
        DumpLoadError: the text is not JSON or its root is not a Program.
    """
    try:
        root = json.loads(text)
    except json.JSONDecodeError as exc:
        raise DumpLoadError(f"invalid ESTree JSON: {exc}", file=file) from exc
    if not is_program(root):
        found = node_type(root) if isinstance(root, dict) else type(root).__name__
        raise DumpLoadError(
            f"root node must be a Program, found {found or 'untyped object'}",
            file=file,
        )
    return root


def load_program(path: str) -> Node:
    """Load an ESTree JSON dump from ``path`` (``-`` reads stdin)."""
    if path == "-":
        return parse_program(sys.stdin.read(), file="<stdin>")
    try:
        with open(path, "r", encoding="utf-8") as fh:
            text = fh.read()
    except OSError as exc:
        raise DumpLoadError(f"cannot read dump: {exc.strerror}", file=path) from exc
    return parse_program(text, file=path)


__all__ = [
    "Node",
    "PROGRAM",
    "BLOCK_STATEMENT",
    "FUNCTION_TYPES",
    "CLASS_TYPES",
    "BLOCK_SCOPED_KINDS",
    "VISITOR_KEYS",
    "is_node",
    "node_type",
    "is_program",
    "is_block",
    "is_function",
    "is_class",
    "is_block_scoped_declaration",
    "iter_child_nodes",
    "count_nodes",
    "node_position",
    "iter_directive_prologue",
    "has_use_strict_directive",
    "function_has_use_strict",
    "parse_program",
    "load_program",
]
