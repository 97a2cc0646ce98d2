# tests/conftest.py
"""
Shared ESTree builders and helpers for the estree-shims test suite.

Builders return fresh dicts on every call so node identity inside a tree
is always unique, exactly as with a parser's JSON output.
"""

import json
from typing import Any, Dict, List, Optional

import pytest

from estree_shims.checkers import CheckerRunner, Diagnostic
from estree_shims.config import LintConfig, ParserOptions


# ═══════════════════════════════════════════════════════════════════════
#  ESTree builders
# ═══════════════════════════════════════════════════════════════════════

def node(type_: str, line: Optional[int] = None, column: int = 0, **fields) -> Dict[str, Any]:
    n: Dict[str, Any] = {"type": type_}
    n.update(fields)
    if line is not None:
        n["loc"] = {
            "start": {"line": line, "column": column},
            "end": {"line": line, "column": column + 1},
        }
    return n


def program(*body, source_type: str = "script", comments: Optional[List[dict]] = None):
    prog = node("Program", line=1, body=list(body), sourceType=source_type)
    if comments is not None:
        prog["comments"] = comments
    return prog


def block(*body, line: Optional[int] = None, column: int = 0):
    return node("BlockStatement", line=line, column=column, body=list(body))


def ident(name: str = "x"):
    return node("Identifier", name=name)


def var_decl(kind: str, name: str = "x", line: Optional[int] = None):
    return node(
        "VariableDeclaration",
        line=line,
        kind=kind,
        declarations=[node("VariableDeclarator", id=ident(name), init=None)],
    )


def let(name: str = "x"):
    return var_decl("let", name)


def const(name: str = "x"):
    return var_decl("const", name)


def var(name: str = "x"):
    return var_decl("var", name)


def func_decl(name: str = "f", *body):
    return node(
        "FunctionDeclaration",
        id=ident(name), params=[], body=block(*body),
        generator=False, expression=False,
    )


def func_expr(*body):
    return node("FunctionExpression", id=None, params=[], body=block(*body))


def arrow(body):
    return node("ArrowFunctionExpression", params=[], body=body)


def class_decl(name: str = "C", *members):
    return node(
        "ClassDeclaration",
        id=ident(name), superClass=None,
        body=node("ClassBody", body=list(members)),
    )


def method(name: str, *body):
    return node(
        "MethodDefinition",
        key=ident(name), value=func_expr(*body),
        kind="method", static=False, computed=False,
    )


def expr_stmt(expr=None):
    return node("ExpressionStatement", expression=expr or ident())


def directive(text: str = "use strict"):
    return node(
        "ExpressionStatement",
        expression=node("Literal", value=text, raw=f'"{text}"'),
        directive=text,
    )


def if_stmt(consequent, alternate=None):
    return node("IfStatement", test=ident("cond"), consequent=consequent, alternate=alternate)


def while_stmt(body):
    return node("WhileStatement", test=ident("cond"), body=body)


def for_stmt(init, body):
    return node("ForStatement", init=init, test=None, update=None, body=body)


def switch_stmt(*consequent):
    return node(
        "SwitchStatement",
        discriminant=ident("k"),
        cases=[node("SwitchCase", test=ident("v"), consequent=list(consequent))],
    )


def try_stmt(body):
    return node("TryStatement", block=body, handler=None, finalizer=None)


def comment(value: str, line: int, kind: str = "Line"):
    return node(kind, line=line, value=value)


# ═══════════════════════════════════════════════════════════════════════
#  Run helpers
# ═══════════════════════════════════════════════════════════════════════

def make_config(
    ecma_version: int = 6,
    source_type: str = "script",
    implied_strict: bool = False,
    rules: Optional[Dict[str, str]] = None,
) -> LintConfig:
    return LintConfig(
        parser_options=ParserOptions(
            ecma_version=ecma_version,
            source_type=source_type,
            implied_strict=implied_strict,
        ),
        rules=dict(rules or {}),
    )


def lint(prog, file: str = "test.js", **config_kwargs) -> List[Diagnostic]:
    """Run the default checkers on ``prog`` and return the diagnostics."""
    runner = CheckerRunner(config=make_config(**config_kwargs))
    return runner.run(prog, file=file).diagnostics


def messages(prog, **config_kwargs) -> List[str]:
    return [d.message for d in lint(prog, **config_kwargs)]


def write_dump(path, prog) -> str:
    path.write_text(json.dumps(prog), encoding="utf-8")
    return str(path)


@pytest.fixture
def dump_file(tmp_path):
    """Factory fixture: write a program as ESTree JSON, return its path."""
    counter = {"n": 0}

    def _make(prog, name: Optional[str] = None) -> str:
        counter["n"] += 1
        return write_dump(tmp_path / (name or f"dump{counter['n']}.json"), prog)

    return _make
