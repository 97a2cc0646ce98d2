# estree_shims/lone_blocks.py
"""
Detection of block statements that exist for no reason.

A *lone* block is a ``BlockStatement`` whose immediate parent is another
``BlockStatement`` or the ``Program``: no ``if``, loop, ``try`` or function
needs it.  Whether a lone block is redundant depends on the language level:

* Before ES2015 nothing can be scoped to a block, so every lone block is
  redundant and is reported as soon as it is entered.
* From ES2015 on, a lone block that directly contains a block-scoped
  declaration (``let``, ``const``, ``using``), a class declaration, or (in
  strict code) a function declaration delimits that binding's visibility
  and is kept.  Candidates are held on a stack until their exit; a
  qualifying declaration pops the top entry if and only if that entry is
  the declaration's own parent.

``LoneBlockTracker`` holds that stack.  It is created empty for each
analysed program and never shared between programs.
"""

from __future__ import annotations

import logging
from typing import Callable, List, Optional

from estree_shims.ast_helper import (
    Node,
    is_block,
    is_block_scoped_declaration,
    is_program,
    node_position,
    node_type,
)
from estree_shims.errors import TraversalContractError

logger = logging.getLogger(__name__)

MSG_REDUNDANT_BLOCK = "Block is redundant."
MSG_REDUNDANT_NESTED_BLOCK = "Nested block is redundant."

ReportSink = Callable[[Node, str], None]


def is_lone_block(node: Node, parent: Optional[Node]) -> bool:
    """True when ``parent`` is a block statement or the program."""
    return is_block(parent) or is_program(parent)


def redundancy_message(parent: Optional[Node]) -> str:
    if is_program(parent):
        return MSG_REDUNDANT_BLOCK
    return MSG_REDUNDANT_NESTED_BLOCK


class LoneBlockTracker:
    """
    Validity stack for one traversal.

    The traversal engine feeds it block entry/exit and declaration events in
    document order, always with the node's immediate parent.  Redundant
    blocks are passed to ``report`` as ``(node, message)``.

    Parameters
    ----------
    report          : sink called once per redundant block
    block_bindings  : True when the language level has block-scoped bindings
    """

    def __init__(self, report: ReportSink, block_bindings: bool) -> None:
        self._report = report
        self.block_bindings = block_bindings
        self._candidates: List[Node] = []
        # every block entered and not yet exited, candidate or not
        self._open_blocks: List[Node] = []

    @property
    def candidates(self) -> List[Node]:
        """Open candidates, outermost first."""
        return list(self._candidates)

    def _emit(self, node: Node, parent: Optional[Node]) -> None:
        message = redundancy_message(parent)
        logger.debug(
            "Redundant block at %d:%d (%s)",
            *node_position(node), node_type(parent),
        )
        self._report(node, message)

    def _mark_valid(self, parent: Optional[Node]) -> None:
        """Drop the innermost candidate if it directly encloses a binding."""
        if self._candidates and self._candidates[-1] is parent:
            self._candidates.pop()
            logger.debug("Block at %d:%d scopes a binding", *node_position(parent))

    # ── block events ────────────────────────────────────────────────

    def enter_block(self, node: Node, parent: Optional[Node]) -> None:
        if parent is None:
            raise TraversalContractError("block statement entered without a parent")
        self._open_blocks.append(node)
        if not is_lone_block(node, parent):
            return
        if self.block_bindings:
            self._candidates.append(node)
        else:
            self._emit(node, parent)

    def exit_block(self, node: Node, parent: Optional[Node]) -> None:
        if not self._open_blocks or self._open_blocks[-1] is not node:
            raise TraversalContractError(
                "exit of a block statement whose entry was not observed "
                "at %d:%d" % node_position(node)
            )
        self._open_blocks.pop()
        if self._candidates and self._candidates[-1] is node:
            self._candidates.pop()
            self._emit(node, parent)

    # ── declaration events (only matter with block bindings) ────────

    def variable_declaration(self, node: Node, parent: Optional[Node]) -> None:
        block_scoped = is_block_scoped_declaration(node)
        if self.block_bindings and block_scoped:
            self._mark_valid(parent)

    def function_declaration(
        self, node: Node, parent: Optional[Node], strict: bool
    ) -> None:
        if self.block_bindings and strict:
            self._mark_valid(parent)

    def class_declaration(self, node: Node, parent: Optional[Node]) -> None:
        if self.block_bindings:
            self._mark_valid(parent)

    def finish(self) -> None:
        """Check that every entered block was also exited."""
        if self._open_blocks:
            raise TraversalContractError(
                f"{len(self._open_blocks)} block statement(s) never exited"
            )


__all__ = [
    "MSG_REDUNDANT_BLOCK",
    "MSG_REDUNDANT_NESTED_BLOCK",
    "LoneBlockTracker",
    "is_lone_block",
    "redundancy_message",
]
