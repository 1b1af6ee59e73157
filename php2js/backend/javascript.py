"""JavaScript backend: php2js nodes → ES module text.

One JsBackend is created per transpile call. Statements are emitted as
indented lines into `self.lines`; expressions are rendered to strings by
`_expr`. Closures render their bodies through a nested line buffer, so an
expression string may span several lines already carrying absolute
indentation.

Emission state:

| field             | meaning                                              |
|-------------------|------------------------------------------------------|
| indent            | current indentation level (4 spaces each)            |
| scope             | ScopeTracker: lexical scope and conditional depth     |
| uses_superglobals | set once any `$_GET`-style variable is rendered       |
| exported          | names that received an `export` keyword              |
| utilities         | helper usage and rendering for the chosen style      |
"""

from __future__ import annotations

import logging
import re
from datetime import datetime, timezone

from ..middleend.hoisting import collect_locals
from ..nodes import (
    ArrayEntry,
    ArrayLit,
    Assign,
    AssignRef,
    Bin,
    Block,
    BoolLit,
    Break,
    Call,
    Cast,
    Catch,
    Class,
    ClassConst,
    Clone,
    Closure,
    ClosureUse,
    Comment,
    ConstStmt,
    Continue,
    Declare,
    DoWhile,
    Echo,
    Empty,
    Encapsed,
    EnumCase,
    Exit,
    Expr,
    ExprStmt,
    For,
    Foreach,
    Function,
    Global,
    If,
    Include,
    InlineHtml,
    Isset,
    ListExpr,
    MagicConst,
    Match,
    Method,
    Name,
    NamedArg,
    Namespace,
    New,
    Node,
    NullLit,
    NumberLit,
    OffsetLookup,
    Param,
    Print,
    Program,
    PropertyDecl,
    PropertyLookup,
    RelativeScope,
    Return,
    Silence,
    Spread,
    StaticLookup,
    StaticVar,
    Stmt,
    StringLit,
    Switch,
    Ternary,
    Throw,
    TraitUse,
    Try,
    Unary,
    Unknown,
    Unset,
    Update,
    Use,
    UseItem,
    Variable,
    While,
    Yield,
)
from ..options import Options
from .inject import SUPERGLOBALS
from .scope import Scope, ScopeTracker
from .util import (
    KNOWN_CONSTANTS,
    escape_single,
    escape_template,
    number_literal,
    phpdoc_to_jsdoc,
    render_name,
    safe_name,
    short_name,
    string_literal,
)
from .utilities import UtilityManager, UtilityRegistry

logger = logging.getLogger(__name__)

_INDENT = "    "

# PHP operator -> JS operator; anything absent is spelled the same.
_BINARY_OPS = {
    ".": "+",
    "==": "===",
    "!=": "!==",
    "<>": "!==",
    "and": "&&",
    "or": "||",
}

_ASSIGN_OPS = {".=": "+="}

# JS binding power; higher binds tighter.
_PREC_ASSIGN = 1
_PREC_TERNARY = 2
_PREC_UNARY = 14
_PREC_POSTFIX = 15
_PREC_CALL = 17
_PREC_ATOM = 20
_BINARY_PREC = {
    "??": 3,
    "||": 3,
    "&&": 4,
    "|": 5,
    "^": 6,
    "&": 7,
    "===": 8,
    "!==": 8,
    "<": 9,
    "<=": 9,
    ">": 9,
    ">=": 9,
    "instanceof": 9,
    "<<": 10,
    ">>": 10,
    "+": 11,
    "-": 11,
    "*": 12,
    "/": 12,
    "%": 12,
    "**": 13,
}

# Catch types that match any throwable; they become the final `else`.
GENERIC_CATCH_TYPES = frozenset({"Exception", "Error", "Throwable"})

# PHP functions routed through the utility strategy.
HELPER_CALLS = frozenset({"array_key_exists", "in_array", "is_array"})

_IDENTIFIER = re.compile(r"[A-Za-z_$][A-Za-z0-9_$]*")
_DECIMAL = re.compile(r"[0-9]+")
_STATIC_IMPORT = re.compile(r"import[\s{*'\"]")


def _js_op(op: str) -> str:
    return _BINARY_OPS.get(op, op)


def _contains_yield(value: object) -> bool:
    """True if a body yields, ignoring nested function bodies."""
    if isinstance(value, Yield):
        return True
    if isinstance(value, (Function, Method, Class, Closure)):
        return False
    if isinstance(value, Node):
        return any(_contains_yield(v) for v in vars(value).values())
    if isinstance(value, (list, tuple)):
        return any(_contains_yield(v) for v in value)
    return False


def _bound_names(target: Expr | None) -> set[str]:
    match target:
        case Variable(name=name):
            return {name}
        case ListExpr(items=items):
            names: set[str] = set()
            for item in items:
                names |= _bound_names(item)
            return names
    return set()


def _include_path(target: str) -> str:
    """`lib\\db.php` -> `./lib/db.js`."""
    path = target.replace("\\", "/")
    if path.endswith(".php"):
        path = path[:-4] + ".js"
    if not path.startswith(("./", "../", "/")):
        path = "./" + path
    return path


def _define_name(name: str) -> str:
    return re.sub(r"[^A-Za-z0-9_]", "_", name)


class JsBackend:
    """Emit an ES module from a php2js Program."""

    def __init__(
        self,
        options: Options | None = None,
        registry: UtilityRegistry | None = None,
        filename: str = "<string>",
    ) -> None:
        self.options = options if options is not None else Options()
        self.utilities = UtilityManager(
            self.options.utility_style, self.options.utility_module, registry
        )
        self.filename = filename
        self.scope = ScopeTracker()
        self.indent = 0
        self.lines: list[str] = []
        self.uses_superglobals = False
        self.exported: list[str] = []
        self.current_class: str | None = None
        self.current_function: str | None = None
        self.in_static_method = False
        self.namespace = ""
        self._toplevel_returns: list[tuple[int, int]] = []

    def emit(self, program: Program) -> str:
        """Emit the complete module text: header, body, footer."""
        self.indent = 0
        self.lines = []
        self._emit_hoisted(program.body)
        for stmt in program.body:
            self._emit_stmt(stmt)
        body = self._finish_body()
        lines = self._header() + body + self._footer()
        return "\n".join(lines) + "\n"

    # -- module assembly -------------------------------------------------------

    def _header(self) -> list[str]:
        stamp = datetime.now(timezone.utc).isoformat(timespec="seconds")
        lines = [
            "//",
            "// Transpiled from PHP using AST-based transpiler",
            f"// Generated: {stamp}",
            "//",
            "",
        ]
        module_import = self.utilities.module_import()
        if module_import is not None:
            lines.append(module_import)
            lines.append("")
        lines.extend(
            [
                "const __ENV__ = { isNode: typeof process !== 'undefined' && process.versions?.node, isBrowser: typeof window !== 'undefined' };",
                "",
                "function __outputHtml(lines) {",
                f"{_INDENT}console.log(lines.join('\\n'));",
                "}",
                "",
            ]
        )
        return lines

    def _footer(self) -> list[str]:
        lines = [""]
        lines.extend(self.utilities.inline_definitions())
        lines.append("export { __ENV__, __outputHtml };")
        return lines

    def _finish_body(self) -> list[str]:
        """Resolve top-level returns: drop them, or wrap the module body."""
        if not self._toplevel_returns:
            return self.lines
        if self.exported:
            for start, end in reversed(self._toplevel_returns):
                del self.lines[start:end]
            return self.lines
        physical = "\n".join(self.lines).split("\n")
        imports = [line for line in physical if _STATIC_IMPORT.match(line)]
        wrapped = ["// Module wrapped in function to support top-level return", "(function() {"]
        for line in physical:
            if _STATIC_IMPORT.match(line):
                continue
            wrapped.append(_INDENT + line if line else "")
        wrapped.append("})();")
        if imports:
            return imports + [""] + wrapped
        return wrapped

    # -- line helpers ----------------------------------------------------------

    def _line(self, text: str = "") -> None:
        if text:
            self.lines.append(_INDENT * self.indent + text)
        else:
            self.lines.append("")

    def _emit_body(self, body: list[Stmt]) -> None:
        """Emit a nested block one level deeper; blocks count as conditional."""
        self.indent += 1
        with self.scope.conditional():
            for stmt in body:
                self._emit_stmt(stmt)
        self.indent -= 1

    def _emit_hoisted(
        self,
        body: list[Stmt],
        params: list[Param] | None = None,
        uses: list[ClosureUse] | None = None,
    ) -> None:
        names = collect_locals(body, params, uses)
        if names:
            self._line("let " + ", ".join(safe_name(name) for name in names) + ";")

    def _emit_doc(self, doc: str | None) -> None:
        if doc:
            for line in phpdoc_to_jsdoc(doc):
                self._line(line)

    def _export_prefix(self, name: str) -> str:
        if self.scope.is_top_level():
            self.exported.append(name)
            return "export "
        return ""

    # -- statements ------------------------------------------------------------

    def _emit_stmt(self, stmt: Stmt) -> None:
        match stmt:
            case Comment(text=text):
                self._emit_comment(text)
            case ExprStmt(expr=expr):
                self._emit_expr_stmt(expr)
            case Echo(args=args):
                self._line(f"console.log({', '.join(self._expr(a) for a in args)});")
            case InlineHtml(value=value):
                self._emit_inline_html(value)
            case Function():
                self._emit_function(stmt)
            case Class(kind="interface"):
                self._emit_interface(stmt)
            case Class():
                self._emit_class(stmt)
            case ConstStmt(consts=consts):
                for name, value in consts:
                    prefix = self._export_prefix(name)
                    self._line(f"{prefix}const {safe_name(name)} = {self._expr(value)};")
            case Return(value=value):
                if self.scope.scope in (Scope.NONE, Scope.NAMESPACE):
                    self._emit_toplevel_return(value)
                elif value is None:
                    self._line("return;")
                else:
                    self._line(f"return {self._expr(value)};")
            case If():
                self._emit_if(stmt)
            case While(test=test, body=body):
                self._line(f"while ({self._expr(test)}) {{")
                self._emit_body(body)
                self._line("}")
            case DoWhile(body=body, test=test):
                self._line("do {")
                self._emit_body(body)
                self._line(f"}} while ({self._expr(test)});")
            case For():
                self._emit_for(stmt)
            case Foreach():
                self._emit_foreach(stmt)
            case Switch():
                self._emit_switch(stmt)
            case Break(level=level):
                self._line("break;" if level <= 1 else f"break; // break {level}")
            case Continue(level=level):
                self._line("continue;" if level <= 1 else f"continue; // continue {level}")
            case Try():
                self._emit_try(stmt)
            case Unset(vars=targets):
                for target in targets:
                    if self.options.unset_style == "delete":
                        self._line(f"delete {self._expr(target)};")
                    else:
                        self._line(f"// unset({self._expr(target)});")
            case Global(names=names):
                self._line(f"// global {', '.join(safe_name(n) for n in names)}")
            case StaticVar(vars=decls):
                for name, value in decls:
                    if value is None:
                        self._line(f"let {safe_name(name)}; // static")
                    else:
                        self._line(f"let {safe_name(name)} = {self._expr(value)}; // static")
            case Namespace(name=name, body=body):
                self._line(f"// Namespace: {name or '(global)'}")
                saved = self.namespace
                self.namespace = name
                with self.scope.enter(Scope.NAMESPACE):
                    for s in body:
                        self._emit_stmt(s)
                self.namespace = saved
            case Use(items=items):
                self._emit_use(items)
            case Declare(directives=directives, body=body):
                self._line(f"// declare({', '.join(directives)})")
                for s in body:
                    self._emit_stmt(s)
            case Block(body=body):
                self._line("{")
                self._emit_body(body)
                self._line("}")
            case Unknown(kind=kind, children=children):
                logger.warning("%s:%d: unsupported statement %s", self.filename, stmt.pos.line, kind)
                for child in children:
                    if isinstance(child, Stmt):
                        self._emit_stmt(child)
            case _:
                logger.warning(
                    "%s:%d: statement %s outside its context",
                    self.filename,
                    stmt.pos.line,
                    type(stmt).__name__,
                )
                self._line(f"// unsupported: {type(stmt).__name__}")

    def _emit_comment(self, text: str) -> None:
        text = text.rstrip()
        if text.startswith("#"):
            self._line("//" + text[1:])
            return
        if not text.startswith("/*"):
            self._line(text)
            return
        for i, raw in enumerate(text.split("\n")):
            line = raw.strip()
            if i > 0 and line.startswith("*"):
                line = " " + line
            self._line(line)

    def _emit_expr_stmt(self, expr: Expr) -> None:
        match expr:
            case Exit(expr=value):
                self._line(f"throw new Error({self._exit_message(value)});")
            case Throw(expr=value):
                self._line(f"throw {self._expr(value)};")
            case Print(expr=value):
                self._line(f"console.log({self._expr(value)});")
            case Include():
                self._emit_include(expr)
            case Call(callee=Name(name=callee), args=args) if callee.lstrip("\\").lower() == "define":
                self._emit_define(args)
            case Unknown(kind=kind):
                logger.warning("%s:%d: unsupported expression %s", self.filename, expr.pos.line, kind)
                self._line(f"/* unsupported: {kind} */")
            case _:
                self._line(f"{self._expr(expr)};")

    def _exit_message(self, value: Expr | None) -> str:
        if value is None:
            return '"Script terminated"'
        return self._expr(value)

    def _emit_inline_html(self, value: str) -> None:
        lines = [line.strip() for line in value.split("\n") if line.strip()]
        if not lines:
            return
        self._line("__outputHtml([")
        self.indent += 1
        for i, line in enumerate(lines):
            comma = "," if i < len(lines) - 1 else ""
            self._line(f"`{escape_template(line)}`{comma}")
        self.indent -= 1
        self._line("]);")

    def _emit_include(self, node: Include) -> None:
        if not isinstance(node.target, StringLit):
            self._line(f"// Dynamic {node.kind} not converted: {self._expr(node.target)}")
            return
        path = escape_single(_include_path(node.target.value))
        if self.scope.is_module_level():
            self._line(f"import '{path}';")
        else:
            self._line(f"import('{path}');")

    def _emit_define(self, args: list[Expr]) -> None:
        value = self._expr(args[1]) if len(args) > 1 else "undefined"
        if not args or not isinstance(args[0], StringLit):
            key = self._expr(args[0]) if args else ""
            self._line(f"// Dynamic define not converted: define({key}, {value});")
            return
        raw = args[0].value
        name = _define_name(raw)
        style = self.options.define_style
        if style == "comment":
            self._line(f"// define('{escape_single(raw)}', {value});")
        elif style == "export-const":
            self._line(f"{self._export_prefix(name)}const {name} = {value};")
        else:
            self._line(f"const {name} = {value};")

    def _emit_toplevel_return(self, value: Expr | None) -> None:
        text = "return;" if value is None else f"return {self._expr(value)};"
        flat = " ".join(part.strip() for part in text.split("\n"))
        self._line("// WARNING: Top-level return not supported in ES6 modules")
        self._line(f"// Original: {flat}")
        start = len(self.lines)
        self._line(text)
        self._toplevel_returns.append((start, len(self.lines)))

    def _emit_if(self, stmt: If) -> None:
        self._line(f"if ({self._expr(stmt.test)}) {{")
        self._emit_body(stmt.body)
        alternate = stmt.alternate
        while isinstance(alternate, If):
            self._line(f"}} else if ({self._expr(alternate.test)}) {{")
            self._emit_body(alternate.body)
            alternate = alternate.alternate
        if alternate:
            self._line("} else {")
            self._emit_body(alternate)
        self._line("}")

    def _emit_for(self, stmt: For) -> None:
        init = ", ".join(self._expr(e) for e in stmt.init)
        test = ", ".join(self._expr(e) for e in stmt.test)
        update = ", ".join(self._expr(e) for e in stmt.update)
        header = init + ";" + (" " + test if test else "") + ";" + (" " + update if update else "")
        self._line(f"for ({header}) {{")
        self._emit_body(stmt.body)
        self._line("}")

    def _emit_foreach(self, stmt: Foreach) -> None:
        source = self._expr(stmt.source)
        value = self._expr(stmt.value)
        bound = _bound_names(stmt.value) | (_bound_names(stmt.key) if stmt.key is not None else set())
        # a loop variable the body writes to cannot be const
        decl = "let" if bound & set(collect_locals(stmt.body)) else "const"
        if stmt.key is not None:
            key = self._expr(stmt.key)
            self._line(f"for ({decl} [{key}, {value}] of Object.entries({source})) {{")
        else:
            self._line(f"for ({decl} {value} of {source}) {{")
        self._emit_body(stmt.body)
        self._line("}")

    def _emit_switch(self, stmt: Switch) -> None:
        self._line(f"switch ({self._expr(stmt.test)}) {{")
        self.indent += 1
        for case in stmt.cases:
            if case.test is None:
                self._line("default:")
            else:
                self._line(f"case {self._expr(case.test)}:")
            self._emit_body(case.body)
        self.indent -= 1
        self._line("}")

    def _emit_try(self, stmt: Try) -> None:
        self._line("try {")
        self._emit_body(stmt.body)
        if len(stmt.catches) == 1:
            catch = stmt.catches[0]
            self._line(f"}} catch ({safe_name(catch.var or 'e')}) {{")
            self.indent += 1
            if any(t not in GENERIC_CATCH_TYPES for t in catch.types):
                self._line(f"// Catch {' | '.join(render_name(t) for t in catch.types)}")
            self.indent -= 1
            self._emit_body(catch.body)
        elif stmt.catches:
            self._emit_catch_chain(stmt.catches)
        if stmt.finally_body is not None:
            self._line("} finally {")
            self._emit_body(stmt.finally_body)
        self._line("}")

    def _emit_catch_chain(self, catches: list[Catch]) -> None:
        """Merge several catch clauses into one block dispatching on instanceof."""
        var = safe_name(next((c.var for c in catches if c.var), "e"))
        specific: list[Catch] = []
        fallback: Catch | None = None
        for catch in catches:
            if not catch.types or any(t in GENERIC_CATCH_TYPES for t in catch.types):
                fallback = catch
                break
            specific.append(catch)
        self._line(f"}} catch ({var}) {{")
        if not specific and fallback is not None:
            self._emit_catch_body(fallback, var)
            return
        self.indent += 1
        for i, catch in enumerate(specific):
            cond = " || ".join(
                f"(typeof {render_name(t)} !== 'undefined' && {var} instanceof {render_name(t)})"
                for t in catch.types
            )
            self._line(f"{'} else ' if i else ''}if ({cond}) {{")
            self._emit_catch_body(catch, var)
        self._line("} else {")
        if fallback is not None:
            self._emit_catch_body(fallback, var)
        else:
            self.indent += 1
            self._line(f"throw {var};")
            self.indent -= 1
        self._line("}")
        self.indent -= 1

    def _emit_catch_alias(self, catch: Catch, var: str) -> None:
        if catch.var and safe_name(catch.var) != var:
            self._line(f"const {safe_name(catch.var)} = {var};")

    def _emit_catch_body(self, catch: Catch, var: str) -> None:
        self.indent += 1
        self._emit_catch_alias(catch, var)
        self.indent -= 1
        self._emit_body(catch.body)

    def _emit_use(self, items: list[UseItem]) -> None:
        for item in items:
            name = item.name.lstrip("\\")
            segments = name.split("\\")
            alias = f" as {item.alias}" if item.alias else ""
            if len(segments) == 1:
                self._line(f"// use {name}{alias}")
                continue
            imported = short_name(name)
            if item.alias and item.alias != imported:
                binding = f"{imported} as {safe_name(item.alias)}"
            else:
                binding = imported
            path = "/".join(segments)
            self._line(f"import {{ {binding} }} from './{path}.js';")

    # -- functions and classes -------------------------------------------------

    def _params(self, params: list[Param]) -> str:
        parts: list[str] = []
        for p in params:
            name = safe_name(p.name)
            if p.variadic:
                parts.append(f"...{name}")
            elif p.default is not None:
                parts.append(f"{name} = {self._expr(p.default)}")
            else:
                parts.append(name)
        return ", ".join(parts)

    def _emit_function(self, fn: Function) -> None:
        self._emit_doc(fn.doc)
        prefix = self._export_prefix(fn.name)
        star = "*" if _contains_yield(fn.body) else ""
        self._line(f"{prefix}function{star} {safe_name(render_name(fn.name))}({self._params(fn.params)}) {{")
        saved = self.current_function
        self.current_function = fn.name
        with self.scope.enter(Scope.FUNCTION):
            self.indent += 1
            self._emit_hoisted(fn.body, fn.params)
            for stmt in fn.body:
                self._emit_stmt(stmt)
            self.indent -= 1
        self.current_function = saved
        self._line("}")
        self._line()

    def _class_head(self, cls: Class) -> str:
        prefix = self._export_prefix(cls.name)
        head = f"{prefix}class {safe_name(render_name(cls.name))}"
        if cls.extends:
            head += f" extends {safe_name(render_name(cls.extends[0]))}"
        if cls.implements:
            head += f" /* implements {', '.join(render_name(i) for i in cls.implements)} */"
        return head

    def _emit_class(self, cls: Class) -> None:
        self._emit_doc(cls.doc)
        self._line(self._class_head(cls) + " {")
        saved = self.current_class
        self.current_class = cls.name
        self.indent += 1
        if cls.kind != "class":
            self._line(f"// {cls.kind} {cls.name}")
        self._emit_members(cls.body)
        self.indent -= 1
        self.current_class = saved
        self._line("}")
        self._line()

    def _emit_members(self, members: list[Stmt]) -> None:
        previous: Stmt | None = None
        for member in members:
            if isinstance(member, Method) and previous is not None and not isinstance(previous, Comment):
                self._line()
            match member:
                case PropertyDecl(props=props, is_static=is_static):
                    static = "static " if is_static else ""
                    for name, value in props:
                        if value is None:
                            self._line(f"{static}{name};")
                        else:
                            self._line(f"{static}{name} = {self._expr(value)};")
                case ClassConst(consts=consts):
                    for name, value in consts:
                        self._line(f"static {name} = {self._expr(value)};")
                case TraitUse(names=names):
                    for name in names:
                        self._line(f"// use {name}")
                case EnumCase(name=name, value=value):
                    rendered = self._expr(value) if value is not None else f"'{escape_single(name)}'"
                    self._line(f"static {name} = {rendered};")
                case Method():
                    self._emit_method(member)
                case _:
                    self._emit_stmt(member)
            previous = member

    def _method_name(self, method: Method) -> str:
        if method.name.lower() == "__construct":
            return "constructor"
        return method.name

    def _emit_method(self, method: Method) -> None:
        self._emit_doc(method.doc)
        static = "static " if method.is_static else ""
        name = self._method_name(method)
        params = self._params(method.params)
        if method.body is None:
            self._line(f"{static}{name}({params}) {{")
            self.indent += 1
            self._line(f"throw new Error('Method {method.name}() must be implemented');")
            self.indent -= 1
            self._line("}")
            return
        star = "*" if _contains_yield(method.body) else ""
        self._line(f"{static}{star}{name}({params}) {{")
        saved = (self.current_function, self.in_static_method)
        self.current_function = method.name
        self.in_static_method = method.is_static
        with self.scope.enter(Scope.CLASS_METHOD):
            self.indent += 1
            self._emit_hoisted(method.body, method.params)
            body = list(method.body)
            promoted = [p for p in method.params if p.promote is not None]
            if promoted and body and self._is_parent_construct(body[0]):
                self._emit_stmt(body.pop(0))
            for p in promoted:
                self._line(f"this.{p.name} = {safe_name(p.name)};")
            for stmt in body:
                self._emit_stmt(stmt)
            self.indent -= 1
        self.current_function, self.in_static_method = saved
        self._line("}")

    def _is_parent_construct(self, stmt: Stmt) -> bool:
        match stmt:
            case ExprStmt(expr=Call(callee=StaticLookup(scope=RelativeScope(which="parent"), member=member))):
                return member.lower() == "__construct"
        return False

    def _emit_interface(self, cls: Class) -> None:
        style = self.options.interface_style
        methods = [m for m in cls.body if isinstance(m, Method)]
        consts = [c for c in cls.body if isinstance(c, ClassConst)]
        name = safe_name(render_name(cls.name))
        if style == "comment":
            extends = f" extends {', '.join(render_name(e) for e in cls.extends)}" if cls.extends else ""
            self._line(f"// interface {name}{extends} {{")
            for const in consts:
                for const_name, value in const.consts:
                    self._line(f"//     const {const_name} = {self._expr(value)};")
            for m in methods:
                self._line(f"//     {m.name}({self._params(m.params)});")
            self._line("// }")
            self._line()
            return
        if style == "jsdoc":
            self._line("/**")
            self._line(f" * @interface {name}")
            for parent in cls.extends:
                self._line(f" * @extends {render_name(parent)}")
            for m in methods:
                params = ", ".join(f"{{*}} {safe_name(p.name)}" for p in m.params)
                self._line(f" * @method {m.name}({params})")
            self._line(" */")
            self._line(f"{self._export_prefix(cls.name)}class {name} {{}}")
            self._line()
            return
        if style == "empty-class":
            self._emit_doc(cls.doc)
            self._line(f"{self._export_prefix(cls.name)}class {name} {{}}")
            self._line()
            return
        self._emit_doc(cls.doc)
        head = f"{self._export_prefix(cls.name)}class {name}"
        if cls.extends:
            head += f" extends {safe_name(render_name(cls.extends[0]))}"
        self._line(head + " {")
        saved = self.current_class
        self.current_class = cls.name
        self.indent += 1
        self._emit_members([m for m in cls.body if isinstance(m, (ClassConst, Method, Comment))])
        self.indent -= 1
        self.current_class = saved
        self._line("}")
        self._line()

    # -- expressions -----------------------------------------------------------

    def _prec(self, expr: Expr) -> int:
        """JS binding power of the rendering of expr."""
        match expr:
            case Bin(op="xor"):
                return _BINARY_PREC["!=="]
            case Bin(op="<=>"):
                return _PREC_ATOM
            case Bin(op=op):
                return _BINARY_PREC.get(_js_op(op), _PREC_ASSIGN)
            case Ternary(then=None):
                return _BINARY_PREC["||"]
            case Ternary():
                return _PREC_TERNARY
            case Assign(target=OffsetLookup(offset=None), op="="):
                return _PREC_CALL
            case Assign() | AssignRef() | Closure() | Yield():
                return _PREC_ASSIGN
            case Unary() | Update(prefix=True):
                return _PREC_UNARY
            case Update():
                return _PREC_POSTFIX
            case Empty() if self.utilities.style == "none":
                return _PREC_UNARY
            case Cast(expr=inner) | Silence(expr=inner):
                return self._prec(inner)
            case Call() | New() | Clone() | Exit() | Throw() | Match() | Empty():
                return _PREC_CALL
        return _PREC_ATOM

    def _wrap(self, expr: Expr, min_prec: int) -> str:
        text = self._expr(expr)
        if self._prec(expr) < min_prec:
            return f"({text})"
        return text

    def _operand(self, expr: Expr, op: str, min_prec: int) -> str:
        """Render a binary operand; `??` never mixes with `||`/`&&` unparenthesized."""
        inner: str | None = None
        if isinstance(expr, Bin):
            inner = _js_op(expr.op)
        elif isinstance(expr, Ternary) and expr.then is None:
            inner = "||"
        if inner is not None and "??" in (op, inner) and {op, inner} & {"||", "&&"}:
            return f"({self._expr(expr)})"
        return self._wrap(expr, min_prec)

    def _expr(self, expr: Expr) -> str:
        match expr:
            case Variable(name=name):
                return self._variable(name)
            case Name(name=name):
                return self._name_ref(name)
            case MagicConst(name=name):
                return self._magic(name, expr)
            case RelativeScope(which=which):
                return self._relative(which)
            case StringLit(value=value, double_quoted=double_quoted):
                return string_literal(value, double_quoted)
            case Encapsed(parts=parts):
                return self._template(parts)
            case NumberLit(raw=raw):
                return number_literal(raw)
            case BoolLit(value=value):
                return "true" if value else "false"
            case NullLit():
                return "null"
            case Bin():
                return self._binary(expr)
            case Unary(op=op, operand=operand):
                inner = self._wrap(operand, _PREC_UNARY)
                if op in ("-", "+") and inner.startswith(op):
                    return f"{op} {inner}"
                return f"{op}{inner}"
            case Silence(expr=inner):
                return f"/* @suppress-errors */ {self._expr(inner)}"
            case Update(op=op, operand=operand, prefix=prefix):
                target = self._wrap(operand, _PREC_POSTFIX)
                return f"{op}{target}" if prefix else f"{target}{op}"
            case Assign(target=OffsetLookup(obj=obj, offset=None), value=value, op="="):
                return f"{self._wrap(obj, _PREC_CALL)}.push({self._expr(value)})"
            case Assign(target=target, value=value, op=op):
                js_op = _ASSIGN_OPS.get(op, op)
                return f"{self._expr(target)} {js_op} {self._wrap(value, _PREC_ASSIGN)}"
            case AssignRef(target=target, value=value):
                return f"{self._expr(target)} = {self._wrap(value, _PREC_ASSIGN)} /* ref */"
            case Ternary(test=test, then=None, else_=else_):
                return f"{self._operand(test, '||', 3)} || {self._operand(else_, '||', 4)}"
            case Ternary(test=test, then=then, else_=else_):
                return (
                    f"{self._wrap(test, 3)} ? {self._wrap(then, _PREC_ASSIGN)}"
                    f" : {self._wrap(else_, _PREC_ASSIGN)}"
                )
            case Cast(expr=inner):
                return self._expr(inner)
            case Clone(expr=inner):
                value = self._expr(inner)
                return f"Object.assign(Object.create(Object.getPrototypeOf({value})), {value})"
            case Spread(expr=inner):
                return f"...{self._wrap(inner, _PREC_ASSIGN)}"
            case NamedArg(name=name, value=value):
                return f"/* {name}: */ {self._expr(value)}"
            case PropertyLookup(obj=obj, member=member, nullsafe=nullsafe):
                base = self._wrap(obj, _PREC_CALL)
                if isinstance(member, str):
                    return f"{base}{'?.' if nullsafe else '.'}{member}"
                return f"{base}{'?.' if nullsafe else ''}[{self._expr(member)}]"
            case StaticLookup(scope=scope, member=member):
                return self._static_lookup(scope, member)
            case OffsetLookup(obj=obj, offset=offset):
                base = self._wrap(obj, _PREC_CALL)
                if offset is None:
                    return f"{base}[{base}.length]"
                return f"{base}[{self._expr(offset)}]"
            case Call():
                return self._call(expr)
            case New(cls=cls, args=args):
                return f"new {self._class_ref(cls)}({self._args(args)})"
            case Isset(vars=targets):
                checks = " && ".join(f"typeof {self._wrap(t, _PREC_UNARY)} !== 'undefined'" for t in targets)
                return f"({checks})"
            case Empty(expr=inner):
                return self.utilities.call("empty", [self._expr(inner)])
            case Print(expr=inner):
                return f"(console.log({self._expr(inner)}), 1)"
            case Exit(expr=value):
                return f"(() => {{ throw new Error({self._exit_message(value)}); }})()"
            case Throw(expr=value):
                return f"(() => {{ throw {self._expr(value)}; }})()"
            case Include(kind=kind, target=target):
                if isinstance(target, StringLit):
                    return f"import('{escape_single(_include_path(target.value))}')"
                return f"/* Dynamic {kind} not converted: {self._expr(target)} */ undefined"
            case Yield(value=value, key=key, delegate=delegate):
                if value is None:
                    return "yield"
                if delegate:
                    return f"yield* {self._wrap(value, _PREC_ASSIGN)}"
                if key is not None:
                    return f"yield [{self._expr(key)}, {self._expr(value)}]"
                return f"yield {self._wrap(value, _PREC_ASSIGN)}"
            case Match():
                return self._match(expr)
            case ArrayLit(items=items):
                return self._array(items)
            case ListExpr(items=items):
                return "[" + ", ".join("" if i is None else self._expr(i) for i in items) + "]"
            case Closure():
                return self._closure(expr)
            case Unknown(kind=kind):
                logger.warning("%s:%d: unsupported expression %s", self.filename, expr.pos.line, kind)
                return f"/* unsupported: {kind} */"
        logger.warning("%s: unhandled expression %s", self.filename, type(expr).__name__)
        return f"/* unsupported: {type(expr).__name__} */"

    def _variable(self, name: str) -> str:
        if name == "this":
            return "this"
        if name in SUPERGLOBALS:
            self.uses_superglobals = True
            return SUPERGLOBALS[name]
        return safe_name(name)

    def _name_ref(self, name: str) -> str:
        bare = name.lstrip("\\")
        if bare in KNOWN_CONSTANTS:
            return KNOWN_CONSTANTS[bare]
        return safe_name(render_name(name))

    def _magic(self, name: str, node: Expr) -> str:
        match name:
            case "__DIR__":
                return "__dirname"
            case "__FILE__":
                return "__filename"
            case "__LINE__":
                return str(node.pos.line)
            case "__CLASS__" | "__TRAIT__":
                return string_literal(self.current_class or "", False)
            case "__FUNCTION__":
                return string_literal(self.current_function or "", False)
            case "__METHOD__":
                if self.current_class and self.current_function:
                    return string_literal(f"{self.current_class}::{self.current_function}", False)
                return string_literal(self.current_function or "", False)
            case "__NAMESPACE__":
                return string_literal(self.namespace, False)
        return f"/* unsupported: {name} */"

    def _relative(self, which: str) -> str:
        if which == "parent":
            return "super"
        return "this" if self.in_static_method else "this.constructor"

    def _class_ref(self, cls: Expr) -> str:
        match cls:
            case Name(name=name):
                return safe_name(render_name(name))
            case RelativeScope(which="parent"):
                return "(Object.getPrototypeOf(this.constructor))"
        return self._wrap(cls, _PREC_CALL)

    def _static_lookup(self, scope: Expr, member: str) -> str:
        if member.lower() == "class":
            match scope:
                case Name(name=name):
                    return f"'{escape_single(render_name(name))}'"
                case RelativeScope(which="parent"):
                    return "super.constructor.name"
                case RelativeScope():
                    return f"{self._relative('self')}.name"
            return f"{self._wrap(scope, _PREC_CALL)}.constructor.name"
        if isinstance(scope, RelativeScope):
            base = self._relative(scope.which)
        elif isinstance(scope, Variable) and scope.name != "this":
            base = f"{self._expr(scope)}.constructor"
        else:
            base = self._class_ref(scope)
        return f"{base}.{member}"

    def _args(self, args: list[Expr]) -> str:
        return ", ".join(self._expr(a) for a in args)

    def _call(self, call: Call) -> str:
        callee = call.callee
        match callee:
            case StaticLookup(scope=RelativeScope(which="parent"), member=member) if member.lower() == "__construct":
                return f"super({self._args(call.args)})"
            case Name(name=name) if name.lstrip("\\").lower() in HELPER_CALLS:
                helper = name.lstrip("\\").lower()
                return self.utilities.call(helper, [self._expr(a) for a in call.args])
        return f"{self._wrap(callee, _PREC_CALL)}({self._args(call.args)})"

    def _binary(self, expr: Bin) -> str:
        op = expr.op
        if op == "xor":
            return f"!!({self._expr(expr.left)}) !== !!({self._expr(expr.right)})"
        if op == "<=>":
            left = self._wrap(expr.left, 10)
            right = self._wrap(expr.right, 10)
            return f"(({left} > {right}) - ({left} < {right}))"
        js_op = _js_op(op)
        prec = _BINARY_PREC.get(js_op, _PREC_ASSIGN)
        if js_op == "**":
            left = self._operand(expr.left, js_op, _PREC_POSTFIX)
            right = self._operand(expr.right, js_op, prec)
        else:
            left = self._operand(expr.left, js_op, prec)
            right = self._operand(expr.right, js_op, prec + 1)
        return f"{left} {js_op} {right}"

    def _template(self, parts: list) -> str:
        out: list[str] = []
        for part in parts:
            if isinstance(part, str):
                out.append(escape_template(part))
            elif isinstance(part, Unknown):
                out.append("${undefined " + self._expr(part) + "}")
            else:
                out.append("${" + self._expr(part) + "}")
        return "`" + "".join(out) + "`"

    def _array(self, items: list[ArrayEntry]) -> str:
        if not items:
            return "[]"
        keyed = False
        position = 0
        for entry in items:
            if entry.spread:
                continue
            if entry.key is not None and not (
                isinstance(entry.key, NumberLit)
                and _DECIMAL.fullmatch(entry.key.raw)
                and int(entry.key.raw) == position
            ):
                keyed = True
                break
            position += 1
        if not keyed:
            values = [("..." if e.spread else "") + self._wrap(e.value, _PREC_ASSIGN) for e in items]
            return "[" + ", ".join(values) + "]"
        parts: list[str] = []
        next_index = 0
        for entry in items:
            value = self._wrap(entry.value, _PREC_ASSIGN)
            if entry.spread:
                parts.append(f"...{value}")
                continue
            key = entry.key
            if key is None:
                parts.append(f"{next_index}: {value}")
                next_index += 1
            elif isinstance(key, NumberLit) and _DECIMAL.fullmatch(key.raw):
                index = int(key.raw)
                next_index = max(next_index, index + 1)
                parts.append(f"{index}: {value}")
            elif isinstance(key, StringLit):
                if _IDENTIFIER.fullmatch(key.value):
                    parts.append(f"{key.value}: {value}")
                else:
                    parts.append(f"{string_literal(key.value, False)}: {value}")
            else:
                parts.append(f"[{self._expr(key)}]: {value}")
        return "{ " + ", ".join(parts) + " }"

    def _match(self, expr: Match) -> str:
        subject = "__match"
        default: Expr | None = None
        branches: list[str] = []
        for arm in expr.arms:
            if not arm.conditions:
                default = arm.result
                continue
            tests = [f"{subject} === {self._wrap(c, 9)}" for c in arm.conditions]
            test = tests[0] if len(tests) == 1 else "(" + " || ".join(tests) + ")"
            branches.append(f"{test} ? {self._wrap(arm.result, _PREC_ASSIGN)}")
        if default is not None:
            fallback = self._wrap(default, _PREC_ASSIGN)
        else:
            fallback = "(() => { throw new Error('UnhandledMatchError'); })()"
        chain = " : ".join(branches + [fallback])
        return f"(({subject}) => {chain})({self._expr(expr.subject)})"

    def _closure(self, fn: Closure) -> str:
        params = self._params(fn.params)
        if fn.expr_body is not None:
            saved = self.current_function
            self.current_function = "{closure}"
            body = self._wrap(fn.expr_body, _PREC_ASSIGN)
            self.current_function = saved
            if body.startswith("{"):
                body = f"({body})"
            return f"({params}) => {body}"
        head = f"({params}) => {{"
        if fn.uses:
            captured = ", ".join(("&" if u.by_ref else "") + safe_name(u.name) for u in fn.uses)
            head += f" /* use ({captured}) */"
        saved_lines = self.lines
        saved_function = self.current_function
        self.lines = []
        self.current_function = "{closure}"
        with self.scope.enter(Scope.FUNCTION):
            self.indent += 1
            self._emit_hoisted(fn.body, fn.params, fn.uses)
            for stmt in fn.body:
                self._emit_stmt(stmt)
            self.indent -= 1
        inner = self.lines
        self.lines = saved_lines
        self.current_function = saved_function
        return "\n".join([head] + inner + [_INDENT * self.indent + "}"])
