"""Tests for the hoisting analysis over php2js nodes."""

from php2js.middleend.hoisting import collect_locals, declared_names
from php2js.nodes import (
    Assign,
    Call,
    Catch,
    Class,
    Closure,
    ClosureUse,
    ConstStmt,
    ExprStmt,
    Foreach,
    Function,
    Global,
    If,
    ListExpr,
    Name,
    NumberLit,
    Param,
    PropertyLookup,
    StaticVar,
    StringLit,
    Try,
    Variable,
)


def _assign(name: str, value=None) -> ExprStmt:
    return ExprStmt(Assign(Variable(name), value or NumberLit("1")))


def test_order_of_first_assignment():
    body = [_assign("b"), _assign("a"), _assign("b")]
    assert collect_locals(body) == ["b", "a"]


def test_params_and_uses_excluded():
    body = [_assign("x"), _assign("y"), _assign("z")]
    assert collect_locals(body, [Param("x")], [ClosureUse("y")]) == ["z"]


def test_this_and_superglobals_excluded():
    body = [_assign("this"), _assign("_GET"), _assign("GLOBALS"), _assign("ok")]
    assert collect_locals(body) == ["ok"]


def test_global_and_static_excluded():
    body = [
        Global(["config"]),
        StaticVar([("count", NumberLit("0"))]),
        _assign("config"),
        _assign("count"),
        _assign("local"),
    ]
    assert collect_locals(body) == ["local"]


def test_nested_blocks_included():
    body = [
        If(Variable("c"), [_assign("inner")], [_assign("other")]),
        Foreach(Variable("xs"), Variable("x"), [_assign("seen")]),
        Try([_assign("t")], [Catch(["Exception"], "e", [_assign("c2")])]),
    ]
    assert collect_locals(body) == ["inner", "other", "seen", "t", "c2"]


def test_nested_functions_skipped():
    body = [
        Function("f", [], [_assign("hidden")]),
        Class("K", []),
        ExprStmt(Assign(Variable("fn"), Closure([], [_assign("also_hidden")]))),
    ]
    assert collect_locals(body) == ["fn"]


def test_by_ref_closure_use_declares_outer():
    closure = Closure([], [], uses=[ClosureUse("acc", by_ref=True), ClosureUse("plain")])
    body = [ExprStmt(Assign(Variable("f"), closure))]
    assert collect_locals(body) == ["f", "acc"]


def test_destructuring_binds_each_name():
    body = [ExprStmt(Assign(ListExpr([Variable("a"), None, ListExpr([Variable("b")])]), Variable("pair")))]
    assert collect_locals(body) == ["a", "b"]


def test_property_assignment_binds_nothing():
    body = [ExprStmt(Assign(PropertyLookup(Variable("obj"), "x"), NumberLit("1")))]
    assert collect_locals(body) == []


def test_assignment_inside_condition():
    body = [If(Assign(Variable("row"), Call(Name("fetch"), [])), [])]
    assert collect_locals(body) == ["row"]


def test_declared_names_excluded():
    body = [
        Function("helper", [], []),
        ConstStmt([("LIMIT", NumberLit("3"))]),
        ExprStmt(Call(Name("define"), [StringLit("DEBUG"), NumberLit("1")])),
        _assign("helper"),
        _assign("LIMIT"),
        _assign("DEBUG"),
    ]
    assert declared_names(body) == {"helper", "LIMIT", "DEBUG"}
    assert collect_locals(body) == []
