"""
estree_shims/checkers.py
════════════════════════

Checker framework that turns ESTree analyses into actionable diagnostics.

This is the "last mile" module: it bridges the traversal engine and the
rule cores (``lone_blocks``) to concrete, ESLint-compatible diagnostics.

Architecture
────────────

  ┌─────────────────────────────────────────────────────────┐
  │                   CheckerRunner                         │
  │  ┌──────────────────┐                                   │
  │  │ LoneBlocksChecker│   (one instance per program)      │
  │  └────────┬─────────┘                                   │
  │           │                                             │
  │  ┌────────▼───────────────────────────────────────────┐ │
  │  │              Evidence Collection                   │ │
  │  │      traversal.Traverser │ lone_blocks tracker     │ │
  │  └──────────────────────────┬─────────────────────────┘ │
  │                             │                           │
  │  ┌──────────────────────────▼────────────────────────┐  │
  │  │           SuppressionManager                      │  │
  │  │  eslint-disable comments │ file-level │ global    │  │
  │  └──────────────────────────┬────────────────────────┘  │
  │                             │                           │
  │  ┌──────────────────────────▼────────────────────────┐  │
  │  │        Diagnostic Formatter (JSON / gcc)          │  │
  │  └───────────────────────────────────────────────────┘  │
  └─────────────────────────────────────────────────────────┘

Each Checker follows a four-phase lifecycle:

  1. **configure()**        — read configuration, set up per-program state
  2. **collect_evidence()** — traverse the program, gather suspicious sites
  3. **diagnose()**         — turn evidence into Diagnostics
  4. **report()**           — return Diagnostics (filtered by suppressions)

License: MIT — same as estree-shims.
"""

from __future__ import annotations

import json
import logging
import re
import time
from abc import ABC, abstractmethod
from collections import defaultdict
from dataclasses import dataclass, field
from enum import Enum
from fnmatch import fnmatch
from typing import (
    Any,
    ClassVar,
    Dict,
    FrozenSet,
    Iterable,
    List,
    Optional,
    Sequence,
    Set,
    Tuple,
    Type,
)

from estree_shims.ast_helper import Node, count_nodes, load_program, node_position, node_type
from estree_shims.config import RULE_ERROR, RULE_WARN, LintConfig
from estree_shims.errors import InternalError
from estree_shims.lone_blocks import MSG_REDUNDANT_BLOCK, LoneBlockTracker
from estree_shims.traversal import TraversalContext, Traverser

logger = logging.getLogger(__name__)


# ═════════════════════════════════════════════════════════════════════════
#  PART 1 — DIAGNOSTIC MODEL
# ═════════════════════════════════════════════════════════════════════════

class DiagnosticSeverity(Enum):
    """Diagnostic severity levels."""
    ERROR = "error"
    WARNING = "warning"
    STYLE = "style"
    INFORMATION = "information"

    @property
    def eslint_level(self) -> int:
        """ESLint numeric severity: 2 for errors, 1 for everything else."""
        return 2 if self is DiagnosticSeverity.ERROR else 1


@dataclass(frozen=True)
class SourceLocation:
    """A specific point in source code."""
    file: str = ""
    line: int = 0
    column: int = 0

    def __str__(self) -> str:
        if self.column:
            return f"{self.file}:{self.line}:{self.column}"
        return f"{self.file}:{self.line}"


@dataclass(frozen=True)
class Diagnostic:
    """
    A single diagnostic finding.

    Attributes
    ----------
    error_id     : Unique identifier (e.g., "redundantBlock")
    message      : Human-readable description
    severity     : DiagnosticSeverity
    location     : Primary source location
    checker_name : Name of the checker (the ESLint rule id)
    node_type    : ESTree type of the reported node
    """
    error_id: str
    message: str
    severity: DiagnosticSeverity
    location: SourceLocation
    checker_name: str = ""
    node_type: str = ""

    def to_json(self) -> Dict[str, Any]:
        """Serialize to an ESLint-style message object."""
        return {
            "file": self.location.file,
            "ruleId": self.checker_name,
            "errorId": self.error_id,
            "severity": self.severity.eslint_level,
            "message": self.message,
            "line": self.location.line,
            "column": self.location.column,
            "nodeType": self.node_type,
        }

    def to_json_str(self) -> str:
        """Single-line JSON string."""
        return json.dumps(self.to_json())

    def to_gcc_format(self) -> str:
        """GCC-style diagnostic string: file:line:col: severity: message."""
        sev = self.severity.value
        return f"{self.location}: {sev}: {self.message} [{self.checker_name}]"


# ═════════════════════════════════════════════════════════════════════════
#  PART 2 — SUPPRESSION MANAGER
# ═════════════════════════════════════════════════════════════════════════

_DIRECTIVE_RE = re.compile(
    r"^\s*(eslint-disable-next-line|eslint-disable-line|eslint-disable|eslint-enable)"
    r"(?:\s+(.*?))?\s*$",
    re.DOTALL,
)


def _parse_rule_list(text: Optional[str]) -> Set[str]:
    """``"a, b -- why"`` → ``{"a", "b"}``; empty means every rule."""
    if not text:
        return {"*"}
    text = text.split("--", 1)[0]
    ids = {part.strip() for part in text.split(",") if part.strip()}
    return ids or {"*"}


class SuppressionManager:
    """
    Manages diagnostic suppressions from multiple sources.

    Sources:
      1. Inline comments: ``// eslint-disable-line [rules]``,
         ``// eslint-disable-next-line [rules]`` and
         ``/* eslint-disable [rules] */ ... /* eslint-enable [rules] */``
      2. File-level suppressions (passed programmatically)
      3. Global suppressions (command-line or config)

    A rule list entry matches either the checker name (``no-lone-blocks``)
    or an error id (``redundantNestedBlock``).

    Usage
    -----
    >>> sm = SuppressionManager()
    >>> sm.load_inline_suppressions(program, "app.js")
    >>> sm.add_file_suppression("no-lone-blocks", "vendor/*")
    >>> sm.add_global_suppression("redundantBlock")
    >>> if not sm.is_suppressed(diagnostic):
    ...     emit(diagnostic)
    """

    def __init__(self) -> None:
        # {(file, line)} → set of ids suppressed at that line
        self._inline: Dict[Tuple[str, int], Set[str]] = defaultdict(set)
        # file → [(line, "disable" | "enable", ids)] in source order
        self._switches: Dict[str, List[Tuple[int, str, Set[str]]]] = defaultdict(list)
        # file pattern → set of ids
        self._file_level: Dict[str, Set[str]] = defaultdict(set)
        # globally suppressed ids
        self._global: Set[str] = set()

    def load_inline_suppressions(self, program: Node, file: str) -> None:
        """Scan ``Program.comments`` for eslint-disable directives."""
        for comment in program.get("comments") or []:
            match = _DIRECTIVE_RE.match(comment.get("value", "") or "")
            if not match:
                continue
            directive, rules = match.group(1), _parse_rule_list(match.group(2))
            line, _ = node_position(comment)
            if directive == "eslint-disable-line":
                self._inline[(file, line)].update(rules)
            elif directive == "eslint-disable-next-line":
                self._inline[(file, line + 1)].update(rules)
            elif comment.get("type") != "Block":
                # disable/enable ranges are only honoured in block comments
                continue
            elif directive == "eslint-disable":
                self._switches[file].append((line, "disable", rules))
            else:
                self._switches[file].append((line, "enable", rules))
        self._switches[file].sort(key=lambda sw: sw[0])

    def _disabled_at(self, file: str, line: int) -> Tuple[bool, Set[str], Set[str]]:
        """
        Replay disable/enable switches up to ``line``.

        Returns ``(all_disabled, disabled_ids, reenabled_ids)``: a bare
        ``eslint-disable`` turns everything off, after which a named
        ``eslint-enable`` re-enables just the rules it names.
        """
        all_disabled = False
        disabled: Set[str] = set()
        reenabled: Set[str] = set()
        for at, kind, rules in self._switches.get(file, []):
            if at > line:
                break
            if kind == "disable":
                if "*" in rules:
                    all_disabled, disabled, reenabled = True, set(), set()
                elif all_disabled:
                    reenabled -= rules
                else:
                    disabled |= rules
            elif "*" in rules:
                all_disabled, disabled, reenabled = False, set(), set()
            elif all_disabled:
                reenabled |= rules
            else:
                disabled -= rules
        return all_disabled, disabled, reenabled

    def add_file_suppression(self, error_id: str, file_pattern: str) -> None:
        """Suppress ``error_id`` in files matching ``file_pattern``."""
        self._file_level[file_pattern].add(error_id)

    def add_global_suppression(self, error_id: str) -> None:
        """Globally suppress ``error_id``."""
        self._global.add(error_id)

    @staticmethod
    def _matches(ids: Set[str], diag: Diagnostic) -> bool:
        return "*" in ids or diag.error_id in ids or diag.checker_name in ids

    def is_suppressed(self, diag: Diagnostic) -> bool:
        """Check whether a diagnostic should be suppressed."""
        if self._matches(self._global, diag):
            return True

        loc = diag.location

        if self._matches(self._inline.get((loc.file, loc.line), set()), diag):
            return True

        all_disabled, disabled, reenabled = self._disabled_at(loc.file, loc.line)
        if all_disabled and not self._matches(reenabled, diag):
            return True
        if self._matches(disabled, diag):
            return True

        for pattern, ids in self._file_level.items():
            if self._matches(ids, diag):
                if pattern == loc.file or fnmatch(loc.file, pattern):
                    return True

        return False

    def filter_diagnostics(
        self, diagnostics: Iterable[Diagnostic]
    ) -> List[Diagnostic]:
        """Return only non-suppressed diagnostics."""
        return [d for d in diagnostics if not self.is_suppressed(d)]


# ═════════════════════════════════════════════════════════════════════════
#  PART 3 — CHECKER BASE CLASS
# ═════════════════════════════════════════════════════════════════════════

class Checker(ABC):
    """
    Abstract base class for all checkers.

    Lifecycle
    ─────────
      1. ``configure(ctx)``        — receive context, set up state
      2. ``collect_evidence(ctx)`` — traverse and gather evidence
      3. ``diagnose(ctx)``         — correlate evidence into diagnostics
      4. ``report(ctx)``           — yield final diagnostics

    Subclass Contract
    ─────────────────
      - Override ``name``, ``description``, ``error_ids``
      - Implement ``collect_evidence()`` and ``diagnose()``
      - Optionally override ``configure()`` for custom setup

    A checker instance analyses exactly one program.
    """

    # ── Metadata (override in subclasses) ────────────────────────────

    name: ClassVar[str] = "base-checker"
    description: ClassVar[str] = ""
    error_ids: ClassVar[FrozenSet[str]] = frozenset()
    default_severity: ClassVar[DiagnosticSeverity] = DiagnosticSeverity.WARNING

    def __init__(self) -> None:
        self._diagnostics: List[Diagnostic] = []
        self.severity: DiagnosticSeverity = self.default_severity

    @property
    def diagnostics(self) -> List[Diagnostic]:
        return list(self._diagnostics)

    def configure(self, ctx: CheckerContext) -> None:
        """
        Called before evidence collection.

        The base implementation applies the configured rule severity
        (``"warn"`` or ``"error"``); unconfigured rules keep their default.
        """
        setting = ctx.config.rule_setting(self.name)
        if setting == RULE_ERROR:
            self.severity = DiagnosticSeverity.ERROR
        elif setting == RULE_WARN:
            self.severity = DiagnosticSeverity.WARNING

    @abstractmethod
    def collect_evidence(self, ctx: CheckerContext) -> None:
        """Traverse the program and gather evidence."""
        ...

    @abstractmethod
    def diagnose(self, ctx: CheckerContext) -> None:
        """
        Correlate evidence into Diagnostic objects.

        Append diagnostics to ``self._diagnostics``.
        """
        ...

    def report(self, ctx: CheckerContext) -> List[Diagnostic]:
        """
        Return final diagnostics, filtered by suppressions.

        Normally you don't need to override this.
        """
        return ctx.suppressions.filter_diagnostics(self._diagnostics)

    def _emit(
        self,
        error_id: str,
        message: str,
        file: str,
        node: Optional[Node] = None,
        severity: Optional[DiagnosticSeverity] = None,
    ) -> None:
        """Helper to create and store a diagnostic."""
        line, column = node_position(node)
        self._diagnostics.append(Diagnostic(
            error_id=error_id,
            message=message,
            severity=severity or self.severity,
            location=SourceLocation(file=file, line=line, column=column),
            checker_name=self.name,
            node_type=node_type(node),
        ))

    def __repr__(self) -> str:
        return f"<{self.__class__.__name__} '{self.name}'>"


@dataclass
class CheckerContext:
    """
    Shared context passed to every checker during execution.

    Attributes
    ----------
    program      : ESTree Program node
    file         : name used in diagnostic locations
    config       : LintConfig (parser options + rule severities)
    suppressions : SuppressionManager
    stats        : mutable dict for timing / counting statistics
    """
    program: Node
    file: str = "<input>"
    config: LintConfig = field(default_factory=LintConfig)
    suppressions: SuppressionManager = field(default_factory=SuppressionManager)
    stats: Dict[str, Any] = field(default_factory=dict)


# ═════════════════════════════════════════════════════════════════════════
#  PART 4 — CHECKER REGISTRY
# ═════════════════════════════════════════════════════════════════════════

class CheckerRegistry:
    """
    Registry of available checkers with discovery and filtering.

    Usage
    -----
    >>> registry = CheckerRegistry()
    >>> registry.register(LoneBlocksChecker)
    >>> checkers = registry.get_enabled()
    >>> checkers = registry.filter_by_error_id("redundantBlock")
    """

    def __init__(self) -> None:
        self._checkers: Dict[str, Type[Checker]] = {}
        self._disabled: Set[str] = set()

    def register(self, checker_cls: Type[Checker]) -> None:
        """Register a checker class."""
        self._checkers[checker_cls.name] = checker_cls

    def disable(self, name: str) -> None:
        """Disable a registered checker."""
        self._disabled.add(name)

    def enable(self, name: str) -> None:
        """Re-enable a disabled checker."""
        self._disabled.discard(name)

    def get_enabled(self) -> List[Type[Checker]]:
        """Return only enabled checker classes."""
        return [
            cls for name, cls in self._checkers.items()
            if name not in self._disabled
        ]

    def get_by_name(self, name: str) -> Optional[Type[Checker]]:
        return self._checkers.get(name)

    def filter_by_error_id(self, error_id: str) -> List[Type[Checker]]:
        """Return checkers that can produce the given error_id."""
        return [
            cls for cls in self._checkers.values()
            if error_id in cls.error_ids
        ]

    @property
    def names(self) -> List[str]:
        return sorted(self._checkers.keys())


# ═════════════════════════════════════════════════════════════════════════
#  PART 5 — PRODUCTION CHECKERS
# ═════════════════════════════════════════════════════════════════════════

class LoneBlocksChecker(Checker):
    """
    Flags block statements not required by any surrounding construct.

    Patterns:
      - ``{ ... }`` directly in the program body
      - ``{ ... }`` directly inside another block

    With ecmaVersion 6 or later, blocks that directly scope a ``let``,
    ``const``, ``using`` or class declaration, or a function declaration in strict
    code, are kept.
    """

    name: ClassVar[str] = "no-lone-blocks"
    description: ClassVar[str] = "Disallow unnecessary nested blocks"
    error_ids: ClassVar[FrozenSet[str]] = frozenset({
        "redundantBlock", "redundantNestedBlock",
    })
    default_severity: ClassVar[DiagnosticSeverity] = DiagnosticSeverity.STYLE

    def __init__(self) -> None:
        super().__init__()
        self._redundant: List[Tuple[Node, str]] = []
        self._tracker: Optional[LoneBlockTracker] = None

    def configure(self, ctx: CheckerContext) -> None:
        super().configure(ctx)
        self._tracker = LoneBlockTracker(
            self._collect,
            block_bindings=ctx.config.parser_options.supports_block_bindings,
        )

    def _collect(self, node: Node, message: str) -> None:
        self._redundant.append((node, message))

    # ── traversal hooks ──────────────────────────────────────────────

    def enter_block_statement(self, node: Node, tctx: TraversalContext) -> None:
        self._tracker.enter_block(node, tctx.parent)

    def leave_block_statement(self, node: Node, tctx: TraversalContext) -> None:
        self._tracker.exit_block(node, tctx.parent)

    def enter_variable_declaration(self, node: Node, tctx: TraversalContext) -> None:
        self._tracker.variable_declaration(node, tctx.parent)

    def enter_function_declaration(self, node: Node, tctx: TraversalContext) -> None:
        self._tracker.function_declaration(node, tctx.parent, tctx.is_strict)

    def enter_class_declaration(self, node: Node, tctx: TraversalContext) -> None:
        self._tracker.class_declaration(node, tctx.parent)

    # ── lifecycle ────────────────────────────────────────────────────

    def collect_evidence(self, ctx: CheckerContext) -> None:
        if self._tracker is None:
            self.configure(ctx)
        traverser = Traverser([self], ctx.config.parser_options)
        ctx.stats[f"{self.name}_nodes"] = traverser.traverse(ctx.program)
        self._tracker.finish()

    def diagnose(self, ctx: CheckerContext) -> None:
        for node, message in self._redundant:
            top_level = message == MSG_REDUNDANT_BLOCK
            self._emit(
                error_id="redundantBlock" if top_level else "redundantNestedBlock",
                message=message,
                file=ctx.file,
                node=node,
            )


# ═════════════════════════════════════════════════════════════════════════
#  PART 6 — CHECKER RUNNER
# ═════════════════════════════════════════════════════════════════════════

_DEFAULT_REGISTRY = CheckerRegistry()
_DEFAULT_REGISTRY.register(LoneBlocksChecker)


def default_registry() -> CheckerRegistry:
    return _DEFAULT_REGISTRY


@dataclass
class CheckerRunResults:
    """
    Aggregate results from running a suite of checkers.

    Attributes
    ----------
    diagnostics            : All diagnostics from all checkers
    diagnostics_by_checker : Diagnostics grouped by checker name
    stats                  : Timing and counting statistics
    checker_names          : Names of checkers that were run
    files                  : Files analysed, in order
    """
    diagnostics: List[Diagnostic] = field(default_factory=list)
    diagnostics_by_checker: Dict[str, List[Diagnostic]] = field(
        default_factory=lambda: defaultdict(list)
    )
    stats: Dict[str, Any] = field(default_factory=dict)
    checker_names: List[str] = field(default_factory=list)
    files: List[str] = field(default_factory=list)

    @property
    def error_count(self) -> int:
        return sum(
            1 for d in self.diagnostics
            if d.severity == DiagnosticSeverity.ERROR
        )

    @property
    def warning_count(self) -> int:
        return sum(
            1 for d in self.diagnostics
            if d.severity == DiagnosticSeverity.WARNING
        )

    @property
    def total_count(self) -> int:
        return len(self.diagnostics)

    def by_severity(self, severity: DiagnosticSeverity) -> List[Diagnostic]:
        return [d for d in self.diagnostics if d.severity == severity]

    def by_file(self, file: str) -> List[Diagnostic]:
        return [d for d in self.diagnostics if d.location.file == file]

    def to_json_lines(self) -> str:
        """Format all diagnostics as one JSON object per line."""
        return "\n".join(d.to_json_str() for d in self.diagnostics)

    def to_gcc_format(self) -> str:
        """Format all diagnostics in GCC-style."""
        return "\n".join(d.to_gcc_format() for d in self.diagnostics)

    def summary(self) -> str:
        """Human-readable summary."""
        lines = [
            f"Checker run complete: {self.total_count} diagnostics "
            f"({self.error_count} errors, {self.warning_count} warnings) "
            f"in {len(self.files)} file(s)",
        ]
        for name in self.checker_names:
            count = len(self.diagnostics_by_checker.get(name, []))
            elapsed = self.stats.get(f"{name}_elapsed_ms", 0)
            lines.append(f"  {name}: {count} findings ({elapsed:.1f}ms)")
        return "\n".join(lines)

    def merge(self, other: "CheckerRunResults") -> None:
        """Fold another run's results into this one."""
        self.diagnostics.extend(other.diagnostics)
        for name, diags in other.diagnostics_by_checker.items():
            self.diagnostics_by_checker[name].extend(diags)
        for key, val in other.stats.items():
            if key in self.stats:
                self.stats[key] += val
            else:
                self.stats[key] = val
        for name in other.checker_names:
            if name not in self.checker_names:
                self.checker_names.append(name)
        self.files.extend(other.files)


class CheckerRunner:
    """
    Runs a suite of checkers against ESTree programs.

    Usage
    -----
    >>> runner = CheckerRunner(config=LintConfig(ParserOptions(ecma_version=6)))
    >>> results = runner.run(program, file="app.js")
    >>> print(results.summary())

    >>> # Or a batch of dump files:
    >>> results = runner.run_files(["a.json", "b.json"])

    Parameters for constructor
    ─────────────────────────
    registry     : CheckerRegistry — source of checker classes
    suppressions : SuppressionManager — pre-loaded suppression rules
    config       : LintConfig — parser options and rule severities
    """

    def __init__(
        self,
        registry: Optional[CheckerRegistry] = None,
        suppressions: Optional[SuppressionManager] = None,
        config: Optional[LintConfig] = None,
    ) -> None:
        self.registry = registry or _DEFAULT_REGISTRY
        self.suppressions = suppressions or SuppressionManager()
        self.config = config or LintConfig()

    def _select(self, checkers: Optional[Sequence[str]]) -> List[Type[Checker]]:
        if checkers is not None:
            selected: List[Type[Checker]] = []
            for name in checkers:
                cls = self.registry.get_by_name(name)
                if cls is None:
                    logger.warning("Unknown checker: %s", name)
                else:
                    selected.append(cls)
        else:
            selected = self.registry.get_enabled()
        return [cls for cls in selected if self.config.is_enabled(cls.name)]

    def run(
        self,
        program: Node,
        file: str = "<input>",
        checkers: Optional[Sequence[str]] = None,
    ) -> CheckerRunResults:
        """
        Run checkers against a single program.

        Parameters
        ----------
        program  : ESTree Program node
        file     : name used in diagnostic locations
        checkers : list of checker names to run (None = all enabled)

        Returns
        -------
        CheckerRunResults
        """
        results = CheckerRunResults(files=[file])

        self.suppressions.load_inline_suppressions(program, file)

        ctx = CheckerContext(
            program=program,
            file=file,
            config=self.config,
            suppressions=self.suppressions,
        )

        for cls in self._select(checkers):
            checker = cls()
            checker_name = cls.name
            results.checker_names.append(checker_name)

            t0 = time.monotonic()
            try:
                checker.configure(ctx)
                checker.collect_evidence(ctx)
                checker.diagnose(ctx)
                diags = checker.report(ctx)
            except InternalError:
                raise
            except Exception as exc:
                # Graceful degradation: report the failure, don't crash
                logger.warning("Checker %s failed on %s: %s", checker_name, file, exc)
                diags = [Diagnostic(
                    error_id="checkerInternalError",
                    message=f"Checker '{checker_name}' failed: {exc}",
                    severity=DiagnosticSeverity.INFORMATION,
                    location=SourceLocation(file=file),
                    checker_name=checker_name,
                )]
            elapsed_ms = (time.monotonic() - t0) * 1000.0

            results.diagnostics.extend(diags)
            results.diagnostics_by_checker[checker_name] = diags
            results.stats[f"{checker_name}_elapsed_ms"] = elapsed_ms

        results.stats.update(ctx.stats)
        logger.info("%s: %d diagnostic(s)", file, len(results.diagnostics))
        return results

    def run_files(
        self,
        paths: Sequence[str],
        checkers: Optional[Sequence[str]] = None,
    ) -> CheckerRunResults:
        """
        Load and check each ESTree JSON dump in ``paths``.

        Raises DumpLoadError for the first dump that cannot be loaded, and
        InternalError (tagged with the dump's path) if a checker hits one.
        """
        combined = CheckerRunResults()
        for path in paths:
            logger.info("Checking %s", path)
            program = load_program(path)
            if logger.isEnabledFor(logging.DEBUG):
                logger.debug("%s: %d nodes", path, count_nodes(program))
            try:
                results = self.run(program, file=path, checkers=checkers)
            except InternalError as exc:
                if exc.file is None:
                    exc.file = path
                raise
            combined.merge(results)
        return combined


__all__ = [
    # Diagnostic model
    "Diagnostic",
    "DiagnosticSeverity",
    "SourceLocation",
    # Suppression
    "SuppressionManager",
    # Checker framework
    "Checker",
    "CheckerContext",
    "CheckerRegistry",
    # Production checkers
    "LoneBlocksChecker",
    # Runner
    "CheckerRunner",
    "CheckerRunResults",
    "default_registry",
]
