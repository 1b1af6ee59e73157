"""Hoisting analysis: variables to declare with `let` at the top of a scope.

PHP variables are function-scoped and spring into existence on first
assignment. Strict ES modules reject assignment to undeclared names, so each
function, method, closure and module body declares its locals up front.
"""

from __future__ import annotations

from ..backend.inject import SUPERGLOBALS
from ..nodes import (
    ArrayLit,
    Assign,
    AssignRef,
    Block,
    Call,
    Case,
    Catch,
    Class,
    Closure,
    ClosureUse,
    ConstStmt,
    Declare,
    DoWhile,
    Echo,
    Expr,
    ExprStmt,
    For,
    Foreach,
    Function,
    Global,
    If,
    ListExpr,
    Name,
    Namespace,
    Node,
    Param,
    Return,
    StaticVar,
    Stmt,
    StringLit,
    Switch,
    Try,
    Unknown,
    Variable,
    While,
)


def collect_locals(
    body: list[Stmt],
    params: list[Param] | None = None,
    uses: list[ClosureUse] | None = None,
) -> list[str]:
    """PHP names first assigned in body, in order of first assignment."""
    excluded: set[str] = {"this"} | set(SUPERGLOBALS)
    excluded.update(p.name for p in params or [])
    excluded.update(u.name for u in uses or [])
    excluded.update(declared_names(body))
    assigned: list[str] = []
    _walk_stmts(body, assigned, excluded)
    return [name for name in assigned if name not in excluded]


def declared_names(body: list[Stmt]) -> set[str]:
    """Function, class and constant names bound in this scope."""
    names: set[str] = set()
    for stmt in _scope_stmts(body):
        match stmt:
            case Function(name=name) | Class(name=name):
                names.add(name)
            case ConstStmt(consts=consts):
                names.update(name for name, _ in consts)
            case ExprStmt(expr=Call(callee=Name(name=callee), args=[StringLit(value=value), *_])):
                if callee.lstrip("\\").lower() == "define":
                    names.add(value)
    return names


def _scope_stmts(body: list[Stmt]):
    """Yield statements of this scope, descending through blocks but not functions."""
    for stmt in body:
        yield stmt
        for child in _child_bodies(stmt):
            yield from _scope_stmts(child)


def _child_bodies(stmt: Stmt) -> list[list[Stmt]]:
    match stmt:
        case Block(body=body) | Namespace(body=body) | Declare(body=body):
            return [body]
        case If(body=body, alternate=alternate):
            if isinstance(alternate, If):
                return [body, [alternate]]
            return [body, alternate or []]
        case While(body=body) | DoWhile(body=body) | For(body=body) | Foreach(body=body):
            return [body]
        case Switch(cases=cases):
            return [case.body for case in cases]
        case Try(body=body, catches=catches, finally_body=finally_body):
            return [body] + [c.body for c in catches] + [finally_body or []]
        case Unknown(children=children):
            return [[c for c in children if isinstance(c, Stmt)]]
    return []


def _walk_stmts(stmts: list[Stmt], assigned: list[str], excluded: set[str]) -> None:
    for stmt in stmts:
        _walk_stmt(stmt, assigned, excluded)


def _walk_stmt(stmt: Stmt, assigned: list[str], excluded: set[str]) -> None:
    match stmt:
        case Function() | Class():
            return
        case ExprStmt(expr=expr) | Return(value=expr):
            _walk_expr(expr, assigned)
        case Echo(args=args):
            for arg in args:
                _walk_expr(arg, assigned)
        case Global(names=names):
            excluded.update(names)
        case StaticVar(vars=decls):
            excluded.update(name for name, _ in decls)
        case If(test=test):
            _walk_expr(test, assigned)
        case While(test=test) | DoWhile(test=test):
            _walk_expr(test, assigned)
        case For(init=init, test=test, update=update):
            for expr in init + test + update:
                _walk_expr(expr, assigned)
        case Foreach(source=source):
            _walk_expr(source, assigned)
        case Switch(test=test):
            _walk_expr(test, assigned)
    for body in _child_bodies(stmt):
        _walk_stmts(body, assigned, excluded)


def _walk_expr(expr: Expr | None, assigned: list[str]) -> None:
    if expr is None:
        return
    match expr:
        case Assign(target=target, value=value) | AssignRef(target=target, value=value):
            _bind(target, assigned)
            _walk_expr(target, assigned)
            _walk_expr(value, assigned)
            return
        case Closure(uses=uses):
            # By-reference captures create the variable in the enclosing scope.
            for use in uses:
                if use.by_ref:
                    _note(use.name, assigned)
            return
    for child in _sub_exprs(expr):
        _walk_expr(child, assigned)


def _bind(target: Expr, assigned: list[str]) -> None:
    match target:
        case Variable(name=name):
            _note(name, assigned)
        case ListExpr(items=items):
            for item in items:
                if item is not None:
                    _bind(item, assigned)
        case ArrayLit(items=items):
            for entry in items:
                _bind(entry.value, assigned)


def _note(name: str, assigned: list[str]) -> None:
    if name not in assigned:
        assigned.append(name)


def _sub_exprs(expr: Expr) -> list[Expr]:
    """Direct expression children, excluding nested function bodies."""
    result: list[Expr] = []
    for value in vars(expr).values():
        _gather(value, result)
    return result


def _gather(value: object, result: list[Expr]) -> None:
    if isinstance(value, Expr):
        result.append(value)
    elif isinstance(value, Node) and not isinstance(value, (Stmt, Param, Case, Catch)):
        # ArrayEntry, MatchArm
        for inner in vars(value).values():
            _gather(inner, result)
    elif isinstance(value, (list, tuple)):
        for item in value:
            _gather(item, result)
