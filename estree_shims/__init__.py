"""
estree_shims — Static-analysis shims for ESTree syntax trees
============================================================

This package runs lint-style checkers over JavaScript syntax trees delivered
as ESTree JSON (any ESTree-conformant parser's output, serialised with
``JSON.stringify``).  Parsing JavaScript is left to those parsers.

Core modules
------------
errors
    Exception hierarchy (load, config and internal/contract errors).
config
    ``ParserOptions`` / ``LintConfig``: language level and rule severities.
ast_helper
    Loading ESTree JSON, child iteration, node and directive predicates.
traversal
    Depth-first enter/leave traversal with ancestor and strict-mode tracking.
lone_blocks
    The lone block classifier and validity tracker behind ``no-lone-blocks``.
checkers
    Diagnostic model, suppressions, checker framework and runner.

Quick start
-----------
>>> from estree_shims import CheckerRunner, LintConfig, ParserOptions
>>> runner = CheckerRunner(config=LintConfig(ParserOptions(ecma_version=6)))
>>> results = runner.run_files(["app.js.json"])
>>> print(results.to_gcc_format())

Package layout
--------------
::

    estree_shims/
    ├── __init__.py            ← this file
    ├── __main__.py
    ├── main.py
    ├── errors.py
    ├── config.py
    ├── ast_helper.py
    ├── traversal.py
    ├── lone_blocks.py
    └── checkers.py
"""

from __future__ import annotations

import importlib
import logging
import sys
from typing import TYPE_CHECKING, List

# ---------------------------------------------------------------------------
# Package metadata
# ---------------------------------------------------------------------------

__version__ = "0.1.0"
__author__ = "estree-shims contributors"
__license__ = "MIT"
__all__: List[str] = []          # populated incrementally below

_log = logging.getLogger(__name__)
_log.addHandler(logging.NullHandler())

# ---------------------------------------------------------------------------
# Internal registry: (module_name, list_of_names_to_import)
# ---------------------------------------------------------------------------

_CORE_MODULES = {
    "errors": [
        "EstreeShimsError",
        "DumpLoadError",
        "ConfigError",
        "InternalError",
        "TraversalContractError",
    ],
    "config": [
        "ParserOptions",
        "LintConfig",
        "load_config",
    ],
    "ast_helper": [
        "load_program",
        "parse_program",
        "iter_child_nodes",
    ],
    "traversal": [
        "Traverser",
        "TraversalContext",
        "traverse",
    ],
    "lone_blocks": [
        "LoneBlockTracker",
        "is_lone_block",
        "MSG_REDUNDANT_BLOCK",
        "MSG_REDUNDANT_NESTED_BLOCK",
    ],
    "checkers": [
        "Diagnostic",
        "DiagnosticSeverity",
        "SourceLocation",
        "SuppressionManager",
        "Checker",
        "CheckerContext",
        "CheckerRegistry",
        "LoneBlocksChecker",
        "CheckerRunner",
        "CheckerRunResults",
    ],
}


def _import_names(module_rel_name: str, names: List[str]) -> None:
    """Import *names* from a submodule and bind them in the package namespace."""
    fq_name = f"{__name__}.{module_rel_name}"
    try:
        mod = importlib.import_module(fq_name)
    except ImportError as exc:
        raise ImportError(
            f"estree_shims: required submodule '{module_rel_name}' "
            f"failed to import: {exc}"
        ) from exc

    current_module = sys.modules[__name__]
    for name in names:
        if not hasattr(mod, name):
            raise AttributeError(
                f"estree_shims.{module_rel_name} does not export '{name}'"
            )
        setattr(current_module, name, getattr(mod, name))
        __all__.append(name)

    if module_rel_name not in __all__:
        __all__.append(module_rel_name)


for _mod, _names in _CORE_MODULES.items():
    _import_names(_mod, _names)

del _mod, _names

__all__ += ["__version__"]

# ---------------------------------------------------------------------------
# TYPE_CHECKING block — gives IDEs full visibility without runtime cost
# ---------------------------------------------------------------------------

if TYPE_CHECKING:
    from .errors import (
        EstreeShimsError as EstreeShimsError,
        DumpLoadError as DumpLoadError,
        ConfigError as ConfigError,
        InternalError as InternalError,
        TraversalContractError as TraversalContractError,
    )
    from .config import (
        ParserOptions as ParserOptions,
        LintConfig as LintConfig,
        load_config as load_config,
    )
    from .ast_helper import (
        load_program as load_program,
        parse_program as parse_program,
        iter_child_nodes as iter_child_nodes,
    )
    from .traversal import (
        Traverser as Traverser,
        TraversalContext as TraversalContext,
        traverse as traverse,
    )
    from .lone_blocks import (
        LoneBlockTracker as LoneBlockTracker,
        is_lone_block as is_lone_block,
        MSG_REDUNDANT_BLOCK as MSG_REDUNDANT_BLOCK,
        MSG_REDUNDANT_NESTED_BLOCK as MSG_REDUNDANT_NESTED_BLOCK,
    )
    from .checkers import (
        Diagnostic as Diagnostic,
        DiagnosticSeverity as DiagnosticSeverity,
        SourceLocation as SourceLocation,
        SuppressionManager as SuppressionManager,
        Checker as Checker,
        CheckerContext as CheckerContext,
        CheckerRegistry as CheckerRegistry,
        LoneBlocksChecker as LoneBlocksChecker,
        CheckerRunner as CheckerRunner,
        CheckerRunResults as CheckerRunResults,
    )
