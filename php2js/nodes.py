"""php2js AST - the closed set of PHP node kinds the backend understands.

The frontend lowers tree-sitter's concrete syntax tree into these dataclasses;
the backend dispatches over them with `match`. Anything the frontend does not
model arrives as `Unknown`, carrying the tree-sitter node type as its kind.

Architecture:
    PHP source -> Frontend (parse, lower) -> [nodes] -> Middleend (hoisting) -> Backend -> JS
"""

from __future__ import annotations

from dataclasses import dataclass, field


# ============================================================
# SOURCE POSITIONS
# ============================================================


@dataclass(frozen=True)
class Pos:
    """Source position for diagnostics and __LINE__.

    Invariants:
    - line >= 1 for valid positions (0 indicates unknown)
    - col >= 1 (1-indexed within line)
    """

    line: int = 0
    col: int = 0


def pos_unknown() -> Pos:
    """Factory for unknown source position."""
    return Pos(0, 0)


@dataclass(kw_only=True)
class Node:
    """Base for every AST node."""

    pos: Pos = field(default_factory=pos_unknown)


@dataclass(kw_only=True)
class Expr(Node):
    """Base for expression nodes."""


@dataclass(kw_only=True)
class Stmt(Node):
    """Base for statement nodes."""


@dataclass(kw_only=True)
class Unknown(Expr, Stmt):
    """Syntax the frontend does not model.

    Serves in either position. As an expression the backend emits a
    placeholder comment; as a statement it visits `children` that are
    statements and ignores the rest.
    """

    kind: str
    children: list[Node] = field(default_factory=list)


# ============================================================
# EXPRESSIONS: NAMES AND LITERALS
# ============================================================


@dataclass
class Variable(Expr):
    """`$name`, stored without the sigil."""

    name: str


@dataclass
class Name(Expr):
    """Bare or qualified identifier: constants, function and class names.

    `name` keeps the source spelling, leading backslash included.
    """

    name: str


@dataclass
class MagicConst(Expr):
    """`__DIR__`, `__LINE__`, `__CLASS__` and friends (upper-cased)."""

    name: str


@dataclass
class RelativeScope(Expr):
    """`self`, `static` or `parent` in a scope-resolution position."""

    which: str


@dataclass
class StringLit(Expr):
    """String literal holding its decoded value.

    `double_quoted` records the source quoting, which selects the rendering
    rule (template literal candidates vs. plain single-quoted).
    """

    value: str
    double_quoted: bool = False


@dataclass
class Encapsed(Expr):
    """Interpolated string or heredoc.

    `parts` alternates freely between decoded text (str) and expressions.
    """

    parts: list[str | Expr]


@dataclass
class NumberLit(Expr):
    """Integer or float literal, source text preserved."""

    raw: str


@dataclass
class BoolLit(Expr):
    value: bool


@dataclass
class NullLit(Expr):
    pass


@dataclass
class ArrayEntry(Node):
    """One `key => value` slot of an array literal."""

    value: Expr
    key: Expr | None = None
    spread: bool = False
    by_ref: bool = False


@dataclass
class ArrayLit(Expr):
    items: list[ArrayEntry]


@dataclass
class ListExpr(Expr):
    """Destructuring target; None marks a skipped slot."""

    items: list[Expr | None]


# ============================================================
# EXPRESSIONS: OPERATORS
# ============================================================


@dataclass
class Bin(Expr):
    """Binary operation with the PHP operator spelling (`.`, `==`, `and`...)."""

    op: str
    left: Expr
    right: Expr


@dataclass
class Unary(Expr):
    """Prefix `!`, `-`, `+` or `~`."""

    op: str
    operand: Expr


@dataclass
class Silence(Expr):
    """`@expr` error suppression."""

    expr: Expr


@dataclass
class Update(Expr):
    """`++`/`--`, prefix or postfix."""

    op: str
    operand: Expr
    prefix: bool


@dataclass
class Assign(Expr):
    """`target op= value`; op is `=` for plain assignment."""

    target: Expr
    value: Expr
    op: str = "="


@dataclass
class AssignRef(Expr):
    """`target =& value`."""

    target: Expr
    value: Expr


@dataclass
class Ternary(Expr):
    """`test ? then : else_`; then is None for the short `?:` form."""

    test: Expr
    then: Expr | None
    else_: Expr


@dataclass
class Cast(Expr):
    type: str
    expr: Expr


@dataclass
class Clone(Expr):
    expr: Expr


@dataclass
class Spread(Expr):
    """`...expr` as a call argument."""

    expr: Expr


@dataclass
class NamedArg(Expr):
    """PHP 8 `name: value` call argument."""

    name: str
    value: Expr


# ============================================================
# EXPRESSIONS: ACCESS AND CALLS
# ============================================================


@dataclass
class PropertyLookup(Expr):
    """`obj->name`; member is a str for plain names, an Expr when dynamic."""

    obj: Expr
    member: str | Expr
    nullsafe: bool = False


@dataclass
class StaticLookup(Expr):
    """`Scope::member`, `Scope::$member` or `Scope::CONST`."""

    scope: Expr
    member: str


@dataclass
class OffsetLookup(Expr):
    """`obj[offset]`; offset is None for the append form `$a[]`."""

    obj: Expr
    offset: Expr | None


@dataclass
class Call(Expr):
    """Function call. Method calls arrive with a PropertyLookup or
    StaticLookup callee."""

    callee: Expr
    args: list[Expr]


@dataclass
class New(Expr):
    cls: Expr
    args: list[Expr]


@dataclass
class Isset(Expr):
    vars: list[Expr]


@dataclass
class Empty(Expr):
    expr: Expr


@dataclass
class Print(Expr):
    expr: Expr


@dataclass
class Exit(Expr):
    """`exit`/`die`, with optional status or message."""

    expr: Expr | None = None


@dataclass
class Include(Expr):
    """`include`, `include_once`, `require` or `require_once`."""

    kind: str
    target: Expr


@dataclass
class Throw(Expr):
    """`throw expr`, statement or PHP 8 expression."""

    expr: Expr


@dataclass
class Yield(Expr):
    value: Expr | None = None
    key: Expr | None = None
    delegate: bool = False


@dataclass
class MatchArm(Node):
    """`c1, c2 => result`; conditions is empty for `default`."""

    conditions: list[Expr]
    result: Expr


@dataclass
class Match(Expr):
    subject: Expr
    arms: list[MatchArm]


# ============================================================
# FUNCTIONS
# ============================================================


@dataclass
class Param(Node):
    """Formal parameter.

    `promote` holds the visibility of a PHP 8 constructor-promoted
    parameter and is None otherwise.
    """

    name: str
    default: Expr | None = None
    variadic: bool = False
    by_ref: bool = False
    promote: str | None = None


@dataclass
class ClosureUse(Node):
    name: str
    by_ref: bool = False


@dataclass
class Closure(Expr):
    """Anonymous function or arrow fn.

    Arrow fns carry `expr_body` and leave `body` empty.
    """

    params: list[Param]
    body: list[Stmt] = field(default_factory=list)
    uses: list[ClosureUse] = field(default_factory=list)
    expr_body: Expr | None = None
    is_static: bool = False


# ============================================================
# STATEMENTS
# ============================================================


@dataclass
class Program(Stmt):
    body: list[Stmt]


@dataclass
class Block(Stmt):
    """Stand-alone `{ ... }` block."""

    body: list[Stmt]


@dataclass
class ExprStmt(Stmt):
    expr: Expr


@dataclass
class Echo(Stmt):
    args: list[Expr]


@dataclass
class InlineHtml(Stmt):
    """Text outside `<?php ... ?>` tags."""

    value: str


@dataclass
class Comment(Stmt):
    """Standalone source comment, raw text including delimiters."""

    text: str


@dataclass
class Function(Stmt):
    name: str
    params: list[Param]
    body: list[Stmt]
    doc: str | None = None


@dataclass
class Method(Stmt):
    """Class or interface method; body is None when abstract."""

    name: str
    params: list[Param]
    body: list[Stmt] | None
    is_static: bool = False
    visibility: str = "public"
    doc: str | None = None


@dataclass
class PropertyDecl(Stmt):
    """`[static] $a = 1, $b;` inside a class body."""

    props: list[tuple[str, Expr | None]]
    is_static: bool = False


@dataclass
class ClassConst(Stmt):
    consts: list[tuple[str, Expr]]


@dataclass
class TraitUse(Stmt):
    names: list[str]


@dataclass
class EnumCase(Stmt):
    name: str
    value: Expr | None = None


@dataclass
class Class(Stmt):
    """Class-like declaration.

    | kind      | emitted as                            |
    |-----------|---------------------------------------|
    | class     | class                                 |
    | trait     | class                                 |
    | enum      | class with static case members        |
    | interface | governed by Options.interface_style   |
    """

    name: str
    body: list[Stmt]
    kind: str = "class"
    extends: list[str] = field(default_factory=list)
    implements: list[str] = field(default_factory=list)
    is_abstract: bool = False
    doc: str | None = None


@dataclass
class ConstStmt(Stmt):
    """Top-level `const A = 1, B = 2;`."""

    consts: list[tuple[str, Expr]]


@dataclass
class Return(Stmt):
    value: Expr | None = None


@dataclass
class If(Stmt):
    """`if`; alternate is another If for `elseif`, a list for `else`."""

    test: Expr
    body: list[Stmt]
    alternate: If | list[Stmt] | None = None


@dataclass
class While(Stmt):
    test: Expr
    body: list[Stmt]


@dataclass
class DoWhile(Stmt):
    body: list[Stmt]
    test: Expr


@dataclass
class For(Stmt):
    init: list[Expr]
    test: list[Expr]
    update: list[Expr]
    body: list[Stmt]


@dataclass
class Foreach(Stmt):
    source: Expr
    value: Expr
    body: list[Stmt]
    key: Expr | None = None
    by_ref: bool = False


@dataclass
class Case(Node):
    """`case test:`; test is None for `default:`."""

    test: Expr | None
    body: list[Stmt]


@dataclass
class Switch(Stmt):
    test: Expr
    cases: list[Case]


@dataclass
class Break(Stmt):
    level: int = 1


@dataclass
class Continue(Stmt):
    level: int = 1


@dataclass
class Catch(Node):
    types: list[str]
    var: str | None
    body: list[Stmt]


@dataclass
class Try(Stmt):
    body: list[Stmt]
    catches: list[Catch]
    finally_body: list[Stmt] | None = None


@dataclass
class Unset(Stmt):
    vars: list[Expr]


@dataclass
class Global(Stmt):
    names: list[str]


@dataclass
class StaticVar(Stmt):
    """`static $a = 1, $b;` inside a function."""

    vars: list[tuple[str, Expr | None]]


@dataclass
class Namespace(Stmt):
    """Namespace declaration; braceless forms own the statements that follow."""

    name: str
    body: list[Stmt]


@dataclass
class UseItem(Node):
    name: str
    alias: str | None = None


@dataclass
class Use(Stmt):
    """`use A\\B as C;`; kind is "", "function" or "const"."""

    items: list[UseItem]
    kind: str = ""


@dataclass
class Declare(Stmt):
    """`declare(strict_types=1)`; directives keep their source text."""

    directives: list[str]
    body: list[Stmt] = field(default_factory=list)
