#!/usr/bin/env python3
# -*- coding: utf-8 -*-
"""
estree_shims/traversal.py
=========================

Depth-first traversal of ESTree programs with enter/leave dispatch.

Listeners are plain objects.  For every node the traverser looks up
``enter_<snake_type>`` before the node's children and ``leave_<snake_type>``
after them, e.g. ``enter_block_statement`` / ``leave_block_statement``, and
calls them as ``handler(node, ctx)``.  Listeners only implement the hooks
they care about.

The traverser owns an explicit ancestor stack and a strictness stack, and
hands both to listeners through ``TraversalContext``; listeners never have to
ask "where am I" through global state.
"""

from __future__ import annotations

import logging
import re
from typing import Any, Callable, Dict, List, Optional, Sequence, Tuple

from estree_shims.ast_helper import (
    Node,
    function_has_use_strict,
    has_use_strict_directive,
    is_class,
    is_function,
    is_program,
    iter_child_nodes,
    node_type,
)
from estree_shims.config import ParserOptions
from estree_shims.errors import TraversalContractError

__all__ = [
    "TraversalContext",
    "Traverser",
    "hook_name",
    "traverse",
]

logger = logging.getLogger(__name__)

_CAMEL_RE = re.compile(r"(?<!^)(?=[A-Z])")
_HOOK_NAMES: Dict[str, str] = {}


def hook_name(ntype: str) -> str:
    """``"BlockStatement"`` → ``"block_statement"``."""
    name = _HOOK_NAMES.get(ntype)
    if name is None:
        name = _CAMEL_RE.sub("_", ntype).lower()
        _HOOK_NAMES[ntype] = name
    return name


class TraversalContext:
    """
    Position information handed to every listener callback.

    ``ancestors`` lists the open nodes from the Program down to the
    immediate parent of the node being visited; the node itself is not
    included.
    """

    def __init__(self) -> None:
        self._ancestors: List[Node] = []
        self._strict: List[bool] = []

    @property
    def ancestors(self) -> Sequence[Node]:
        return tuple(self._ancestors)

    @property
    def parent(self) -> Optional[Node]:
        """Immediate syntactic parent, None for the Program itself."""
        return self._ancestors[-1] if self._ancestors else None

    @property
    def depth(self) -> int:
        return len(self._ancestors)

    @property
    def is_strict(self) -> bool:
        """Whether the innermost enclosing scope runs under strict mode."""
        return self._strict[-1] if self._strict else False


class Traverser:
    """
    Walks a Program depth-first in document order.

    Usage
    -----
    >>> traverser = Traverser([listener], ParserOptions(ecma_version=6))
    >>> traverser.traverse(program)

    One traverser may walk several programs in turn; context state is reset
    at the start of each walk.
    """

    def __init__(
        self,
        listeners: Sequence[Any],
        options: Optional[ParserOptions] = None,
    ) -> None:
        self.listeners = list(listeners)
        self.options = options or ParserOptions()
        self.ctx = TraversalContext()

    # ── strictness ──────────────────────────────────────────────────

    def _program_is_strict(self, program: Node) -> bool:
        opts = self.options
        if opts.is_module:
            return True
        if not opts.supports_directives:
            return False
        return opts.implied_strict or has_use_strict_directive(
            program.get("body") or []
        )

    def _scope_strictness(self, node: Node) -> Optional[bool]:
        """Strictness of the scope ``node`` opens, None if it opens none."""
        if is_class(node):
            return True
        if is_function(node):
            if self.ctx.is_strict:
                return True
            return self.options.supports_directives and function_has_use_strict(node)
        return None

    # ── dispatch ────────────────────────────────────────────────────

    def _dispatch(self, phase: str, node: Node) -> None:
        attr = f"{phase}_{hook_name(node_type(node))}"
        for listener in self.listeners:
            handler: Optional[Callable[[Node, TraversalContext], Any]] = getattr(
                listener, attr, None
            )
            if handler is not None:
                handler(node, self.ctx)

    # ── walk ────────────────────────────────────────────────────────

    def traverse(self, program: Node) -> int:
        """
        Walk ``program`` and return the number of nodes visited.

        Raises:
            TraversalContractError: ``program`` is not a Program node.
        """
        if not is_program(program):
            raise TraversalContractError(
                f"traversal must start at a Program, got {node_type(program)!r}"
            )

        ctx = self.ctx = TraversalContext()
        ctx._strict.append(self._program_is_strict(program))
        logger.debug("Program strict mode: %s", ctx.is_strict)

        visited = 0
        # (node, exiting, pushed_strict_frame)
        stack: List[Tuple[Node, bool, bool]] = [(program, False, False)]
        while stack:
            node, exiting, pushed = stack.pop()
            if exiting:
                ctx._ancestors.pop()
                self._dispatch("leave", node)
                if pushed:
                    ctx._strict.pop()
                continue

            visited += 1
            strict = None if node is program else self._scope_strictness(node)
            if strict is not None:
                ctx._strict.append(strict)
            self._dispatch("enter", node)
            ctx._ancestors.append(node)
            stack.append((node, True, strict is not None))
            children = list(iter_child_nodes(node))
            for child in reversed(children):
                stack.append((child, False, False))

        return visited


def traverse(
    program: Node,
    listeners: Sequence[Any],
    options: Optional[ParserOptions] = None,
) -> int:
    """Convenience wrapper around ``Traverser(listeners, options).traverse``."""
    return Traverser(listeners, options).traverse(program)
