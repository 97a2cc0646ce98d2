# tests/test_checkers.py
"""
Tests for the checker framework: diagnostic model, suppressions, registry,
and the runner driving LoneBlocksChecker.
"""

import json

import pytest

from estree_shims.checkers import (
    Checker,
    CheckerRegistry,
    CheckerRunner,
    CheckerRunResults,
    Diagnostic,
    DiagnosticSeverity,
    LoneBlocksChecker,
    SourceLocation,
    SuppressionManager,
    default_registry,
)
from estree_shims.errors import DumpLoadError, TraversalContractError
from estree_shims.lone_blocks import MSG_REDUNDANT_BLOCK, MSG_REDUNDANT_NESTED_BLOCK
from tests.conftest import (
    block, comment, func_decl, let, lint, make_config, node, program,
)


def _diag(line=3, error_id="redundantBlock", checker="no-lone-blocks", file="a.js"):
    return Diagnostic(
        error_id=error_id,
        message=MSG_REDUNDANT_BLOCK,
        severity=DiagnosticSeverity.STYLE,
        location=SourceLocation(file=file, line=line, column=1),
        checker_name=checker,
        node_type="BlockStatement",
    )


class TestDiagnosticOutput:

    def test_location_str(self):
        assert str(SourceLocation("a.js", 3, 5)) == "a.js:3:5"
        assert str(SourceLocation("a.js", 3)) == "a.js:3"

    def test_to_json(self):
        data = json.loads(_diag().to_json_str())
        assert data == {
            "file": "a.js",
            "ruleId": "no-lone-blocks",
            "errorId": "redundantBlock",
            "severity": 1,
            "message": "Block is redundant.",
            "line": 3,
            "column": 1,
            "nodeType": "BlockStatement",
        }

    def test_eslint_levels(self):
        assert DiagnosticSeverity.ERROR.eslint_level == 2
        for sev in (DiagnosticSeverity.WARNING, DiagnosticSeverity.STYLE,
                    DiagnosticSeverity.INFORMATION):
            assert sev.eslint_level == 1

    def test_gcc_format(self):
        assert _diag().to_gcc_format() == (
            "a.js:3:1: style: Block is redundant. [no-lone-blocks]"
        )


class TestSuppressionManager:

    def _loaded(self, *comments):
        sm = SuppressionManager()
        sm.load_inline_suppressions(program(comments=list(comments)), "a.js")
        return sm

    def test_disable_line(self):
        sm = self._loaded(comment(" eslint-disable-line no-lone-blocks", 3))
        assert sm.is_suppressed(_diag(line=3))
        assert not sm.is_suppressed(_diag(line=4))

    def test_disable_next_line(self):
        sm = self._loaded(comment(" eslint-disable-next-line", 2))
        assert sm.is_suppressed(_diag(line=3))
        assert not sm.is_suppressed(_diag(line=2))

    def test_rule_list_must_match(self):
        sm = self._loaded(comment(" eslint-disable-line no-console, eqeqeq", 3))
        assert not sm.is_suppressed(_diag(line=3))

    def test_error_id_matches(self):
        sm = self._loaded(comment(" eslint-disable-line redundantNestedBlock", 3))
        assert sm.is_suppressed(_diag(line=3, error_id="redundantNestedBlock"))
        assert not sm.is_suppressed(_diag(line=3, error_id="redundantBlock"))

    def test_description_after_double_dash(self):
        sm = self._loaded(
            comment(" eslint-disable-line no-lone-blocks -- legacy grouping", 3),
        )
        assert sm.is_suppressed(_diag(line=3))

    def test_block_range(self):
        sm = self._loaded(
            comment(" eslint-disable no-lone-blocks ", 2, kind="Block"),
            comment(" eslint-enable no-lone-blocks ", 6, kind="Block"),
        )
        assert not sm.is_suppressed(_diag(line=1))
        assert sm.is_suppressed(_diag(line=4))
        assert not sm.is_suppressed(_diag(line=7))

    def test_named_enable_inside_bare_disable(self):
        sm = self._loaded(
            comment(" eslint-disable ", 2, kind="Block"),
            comment(" eslint-enable no-lone-blocks ", 6, kind="Block"),
        )
        assert sm.is_suppressed(_diag(line=4))
        assert not sm.is_suppressed(_diag(line=8))
        assert sm.is_suppressed(_diag(line=8, checker="eqeqeq", error_id="eqeqeq"))

    def test_enable_reenables_only_named_rules(self):
        sm = self._loaded(
            comment(" eslint-disable no-lone-blocks, eqeqeq ", 2, kind="Block"),
            comment(" eslint-enable no-lone-blocks ", 6, kind="Block"),
        )
        assert sm.is_suppressed(_diag(line=4))
        assert not sm.is_suppressed(_diag(line=8))
        assert sm.is_suppressed(_diag(line=8, checker="eqeqeq", error_id="eqeqeq"))

    def test_bare_enable_closes_everything(self):
        sm = self._loaded(
            comment(" eslint-disable no-lone-blocks ", 2, kind="Block"),
            comment(" eslint-disable eqeqeq ", 3, kind="Block"),
            comment(" eslint-enable ", 6, kind="Block"),
        )
        assert not sm.is_suppressed(_diag(line=8))
        assert not sm.is_suppressed(_diag(line=8, checker="eqeqeq", error_id="eqeqeq"))

    def test_disable_after_named_enable(self):
        sm = self._loaded(
            comment(" eslint-disable ", 1, kind="Block"),
            comment(" eslint-enable no-lone-blocks ", 3, kind="Block"),
            comment(" eslint-disable no-lone-blocks ", 5, kind="Block"),
        )
        assert not sm.is_suppressed(_diag(line=4))
        assert sm.is_suppressed(_diag(line=6))

    def test_unterminated_range_runs_to_end_of_file(self):
        sm = self._loaded(comment(" eslint-disable ", 2, kind="Block"))
        assert sm.is_suppressed(_diag(line=500))

    def test_range_requires_block_comment(self):
        sm = self._loaded(comment(" eslint-disable", 1, kind="Line"))
        assert not sm.is_suppressed(_diag(line=4))

    def test_ranges_are_per_file(self):
        sm = self._loaded(comment(" eslint-disable ", 1, kind="Block"))
        assert not sm.is_suppressed(_diag(line=4, file="b.js"))

    def test_global_suppression(self):
        sm = SuppressionManager()
        sm.add_global_suppression("no-lone-blocks")
        assert sm.is_suppressed(_diag())

    def test_file_suppression(self):
        sm = SuppressionManager()
        sm.add_file_suppression("redundantBlock", "vendor/*")
        assert sm.is_suppressed(_diag(file="vendor/lib.js"))
        assert not sm.is_suppressed(_diag(file="src/app.js"))

    def test_filter_diagnostics(self):
        sm = self._loaded(comment(" eslint-disable-line", 3))
        kept = sm.filter_diagnostics([_diag(line=3), _diag(line=5)])
        assert [d.location.line for d in kept] == [5]


class TestCheckerRegistry:

    def test_default_registry_has_lone_blocks(self):
        assert default_registry().get_by_name("no-lone-blocks") is LoneBlocksChecker

    def test_filter_by_error_id(self):
        registry = CheckerRegistry()
        registry.register(LoneBlocksChecker)
        assert registry.filter_by_error_id("redundantNestedBlock") == [LoneBlocksChecker]
        assert registry.filter_by_error_id("nope") == []

    def test_disable_enable(self):
        registry = CheckerRegistry()
        registry.register(LoneBlocksChecker)
        registry.disable("no-lone-blocks")
        assert registry.get_enabled() == []
        registry.enable("no-lone-blocks")
        assert registry.get_enabled() == [LoneBlocksChecker]
        assert registry.names == ["no-lone-blocks"]

    def test_checker_metadata(self):
        assert LoneBlocksChecker.error_ids == frozenset({
            "redundantBlock", "redundantNestedBlock",
        })
        assert LoneBlocksChecker.default_severity is DiagnosticSeverity.STYLE
        assert repr(LoneBlocksChecker()) == "<LoneBlocksChecker 'no-lone-blocks'>"


class TestLoneBlocksDiagnostics:

    def test_location_and_ids(self):
        inner = block(line=2, column=4)
        outer = block(inner, line=1, column=0)
        diags = lint(program(outer), file="x.js")
        assert [(d.error_id, d.location.line, d.location.column) for d in diags] == [
            ("redundantNestedBlock", 2, 5),
            ("redundantBlock", 1, 1),
        ]
        assert all(d.location.file == "x.js" for d in diags)
        assert all(d.node_type == "BlockStatement" for d in diags)

    def test_default_severity(self):
        (diag,) = lint(program(block()))
        assert diag.severity is DiagnosticSeverity.STYLE

    @pytest.mark.parametrize("setting,expected", [
        ("warn", DiagnosticSeverity.WARNING),
        ("error", DiagnosticSeverity.ERROR),
    ])
    def test_configured_severity(self, setting, expected):
        (diag,) = lint(program(block()), rules={"no-lone-blocks": setting})
        assert diag.severity is expected

    def test_rule_off(self):
        assert lint(program(block()), rules={"no-lone-blocks": "off"}) == []

    def test_inline_suppression_applies(self):
        prog = program(
            block(line=2),
            block(line=4),
            comments=[comment(" eslint-disable-next-line no-lone-blocks", 1)],
        )
        diags = lint(prog)
        assert [d.location.line for d in diags] == [4]


class _Exploding(Checker):
    name = "exploding"
    error_ids = frozenset({"boom"})

    def collect_evidence(self, ctx):
        raise ValueError("kaboom")

    def diagnose(self, ctx):
        pass


class TestCheckerRunner:

    def test_run_results(self):
        runner = CheckerRunner(config=make_config())
        results = runner.run(program(block(), block(let())), file="a.js")
        assert results.total_count == 1
        assert results.checker_names == ["no-lone-blocks"]
        assert results.files == ["a.js"]
        assert "no-lone-blocks_elapsed_ms" in results.stats
        assert results.stats["no-lone-blocks_nodes"] == 6

    def test_select_by_name(self):
        runner = CheckerRunner(config=make_config())
        results = runner.run(program(block()), checkers=["does-not-exist"])
        assert results.diagnostics == []
        assert results.checker_names == []

    def test_failing_checker_degrades_to_information(self):
        registry = CheckerRegistry()
        registry.register(_Exploding)
        runner = CheckerRunner(registry=registry)
        results = runner.run(program(), file="a.js")
        (diag,) = results.diagnostics
        assert diag.error_id == "checkerInternalError"
        assert diag.severity is DiagnosticSeverity.INFORMATION
        assert "kaboom" in diag.message

    def test_run_files(self, dump_file):
        first = dump_file(program(block()), "one.json")
        second = dump_file(program(func_decl("f", block(block()))), "two.json")
        runner = CheckerRunner(config=make_config(rules={"no-lone-blocks": "error"}))
        results = runner.run_files([first, second])
        assert results.files == [first, second]
        assert len(results.by_file(first)) == 1
        assert len(results.by_file(second)) == 2
        assert results.error_count == 3
        assert results.warning_count == 0
        assert len(results.by_severity(DiagnosticSeverity.ERROR)) == 3
        assert len(results.to_json_lines().splitlines()) == 3
        assert len(results.to_gcc_format().splitlines()) == 3
        assert "3 diagnostics" in results.summary()
        assert "in 2 file(s)" in results.summary()

    def test_run_files_rejects_non_program(self, dump_file):
        path = dump_file(block())
        with pytest.raises(DumpLoadError):
            CheckerRunner().run_files([path])

    def test_merge_accumulates_stats(self):
        a = CheckerRunResults(stats={"t": 1.0}, checker_names=["x"], files=["a"])
        b = CheckerRunResults(stats={"t": 2.0}, checker_names=["x"], files=["b"])
        a.merge(b)
        assert a.stats["t"] == 3.0
        assert a.checker_names == ["x"]
        assert a.files == ["a", "b"]

    def test_run_files_tags_internal_errors_with_path(self, dump_file):
        bad = program(block(node("VariableDeclaration", declarations=[])))
        path = dump_file(bad)
        with pytest.raises(TraversalContractError) as info:
            CheckerRunner(config=make_config()).run_files([path])
        assert info.value.file == path
