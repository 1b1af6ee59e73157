"""Tests for the JavaScript backend, driven directly from php2js nodes."""

from php2js.backend.javascript import JsBackend
from php2js.backend.utilities import UtilityRegistry
from php2js.nodes import (
    ArrayEntry,
    ArrayLit,
    Assign,
    AssignRef,
    Bin,
    Block,
    Call,
    Catch,
    Class,
    Closure,
    Comment,
    Continue,
    Declare,
    Echo,
    Encapsed,
    Exit,
    ExprStmt,
    Function,
    If,
    Include,
    MagicConst,
    Method,
    Name,
    NamedArg,
    Namespace,
    New,
    NumberLit,
    Param,
    Pos,
    Print,
    Program,
    RelativeScope,
    Return,
    Spread,
    StaticLookup,
    StaticVar,
    StringLit,
    Throw,
    Try,
    Unary,
    Unknown,
    Update,
    Variable,
    Yield,
)
from php2js.options import Options


def _lines(stmts, **options) -> list[str]:
    """Body lines (no header or footer) for a program."""
    backend = JsBackend(Options(**options))
    backend.emit(Program(stmts))
    return backend.lines


def _expr(expr, **options) -> str:
    """Rendering of a single expression statement, without the semicolon."""
    lines = _lines([ExprStmt(expr)], **options)
    return lines[-1].removesuffix(";")


def _v(name: str) -> Variable:
    return Variable(name)


# ── Operators and precedence ──


def test_parenthesizes_lower_precedence():
    assert _expr(Bin("*", Bin("+", _v("a"), _v("b")), _v("c"))) == "(a + b) * c"


def test_right_associativity_respected():
    assert _expr(Bin("-", _v("a"), Bin("-", _v("b"), _v("c")))) == "a - (b - c)"
    assert _expr(Bin("-", Bin("-", _v("a"), _v("b")), _v("c"))) == "a - b - c"


def test_coalesce_never_mixes_with_logical():
    assert _expr(Bin("??", Bin("||", _v("a"), _v("b")), _v("c"))) == "(a || b) ?? c"
    assert _expr(Bin("&&", _v("a"), Bin("??", _v("b"), _v("c")))) == "a && (b ?? c)"


def test_exponent_with_unary_base():
    assert _expr(Bin("**", Unary("-", _v("a")), _v("b"))) == "(-a) ** b"


def test_double_negation_spaced():
    assert _expr(Unary("-", Unary("-", _v("x")))) == "- -x"


def test_not_equal_variants():
    assert _expr(Bin("<>", _v("a"), _v("b"))) == "a !== b"


def test_updates():
    assert _expr(Update("++", _v("i"), True)) == "++i"
    assert _expr(Update("--", _v("i"), False)) == "i--"


def test_reference_assignment():
    assert _lines([ExprStmt(AssignRef(_v("a"), _v("b")))])[-1] == "a = b /* ref */;"


# ── Expression forms ──


def test_named_and_spread_arguments():
    call = Call(Name("f"), [NamedArg("limit", NumberLit("1")), Spread(_v("rest"))])
    assert _expr(call) == "f(/* limit: */ 1, ...rest)"


def test_print_expression():
    assert _expr(Assign(_v("r"), Print(StringLit("a")))) == "r = (console.log('a'), 1)"


def test_exit_expression():
    expr = Bin("or", Call(Name("connect"), []), Exit(StringLit("fail")))
    assert _expr(expr) == "connect() || (() => { throw new Error('fail'); })()"


def test_throw_expression():
    expr = Bin("??", _v("x"), Throw(New(Name("E"), [])))
    assert _expr(expr) == "x ?? (() => { throw new E(); })()"


def test_include_expression():
    assert _expr(Assign(_v("cfg"), Include("require", StringLit("config.php")))) == "cfg = import('./config.js')"
    assert _expr(Assign(_v("cfg"), Include("include", _v("p")))) == (
        "cfg = /* Dynamic include not converted: p */ undefined"
    )


def test_yield_forms():
    assert _expr(Yield(_v("v"), key=_v("k"))) == "yield [k, v]"
    assert _expr(Yield(Call(Name("gen"), []), delegate=True)) == "yield* gen()"
    assert _expr(Yield()) == "yield"


def test_arrow_returning_object_wrapped():
    body = ArrayLit([ArrayEntry(NumberLit("1"), key=StringLit("a"))])
    assert _expr(Closure([Param("x")], expr_body=body)) == "(x) => ({ a: 1 })"


def test_template_escapes_literal_text():
    expr = Encapsed(["cost ${", _v("n"), "`"])
    assert _expr(expr) == "`cost \\${${n}\\``"


def test_template_unknown_part_keeps_substitution_valid():
    expr = Encapsed(["Hi ", Unknown(kind="odd_name"), "!"])
    assert _expr(expr) == "`Hi ${undefined /* unsupported: odd_name */}!`"


def test_new_parent():
    assert _expr(New(RelativeScope("parent"), [])) == "new (Object.getPrototypeOf(this.constructor))()"


def test_static_lookup_on_instance():
    assert _expr(StaticLookup(_v("obj"), "LIMIT")) == "obj.constructor.LIMIT"


def test_unknown_expression_placeholder():
    assert _lines([ExprStmt(Unknown(kind="weird"))])[-1] == "/* unsupported: weird */"


# ── Class context ──


def _method_body(method: Method, cls: str = "Point") -> list[str]:
    return [line.strip() for line in _lines([Class(cls, [method])])]


def test_magic_constants_in_method():
    method = Method("where", [], [Return(MagicConst("__METHOD__"))])
    assert "return 'Point::where';" in _method_body(method)
    method = Method("who", [], [Return(MagicConst("__CLASS__"))])
    assert "return 'Point';" in _method_body(method)


def test_line_and_dir_constants():
    assert _expr(MagicConst("__LINE__", pos=Pos(7, 1))) == "7"
    assert _expr(MagicConst("__DIR__")) == "__dirname"
    assert _expr(MagicConst("__FILE__")) == "__filename"


def test_function_name_constant():
    lines = _lines([Function("f", [], [Return(MagicConst("__FUNCTION__"))])])
    assert "    return 'f';" in lines


def test_class_name_lookups():
    static = Method("make", [], [Return(StaticLookup(RelativeScope("static"), "class"))], is_static=True)
    assert "return this.name;" in _method_body(static)
    instance = Method("kind", [], [Return(StaticLookup(RelativeScope("self"), "class"))])
    assert "return this.constructor.name;" in _method_body(instance)
    parent = Method("base", [], [Return(StaticLookup(RelativeScope("parent"), "class"))])
    assert "return super.constructor.name;" in _method_body(parent)


def test_parent_method_call():
    method = Method("save", [], [ExprStmt(Call(StaticLookup(RelativeScope("parent"), "save"), []))])
    assert "super.save();" in _method_body(method)


# ── Statements ──


def test_static_without_initializer():
    lines = _lines([Function("f", [], [StaticVar([("n", None)])])])
    assert "    let n; // static" in lines


def test_continue_levels():
    assert _lines([Continue(2)]) == ["continue; // continue 2"]


def test_hash_comment():
    assert _lines([Comment("# note")]) == ["// note"]


def test_block_comment_realigned():
    assert _lines([Comment("/* a\n     * b\n     */")]) == ["/* a", " * b", " */"]


def test_declare_comment():
    assert _lines([Declare(["strict_types=1"])]) == ["// declare(strict_types=1)"]


def test_block_statement():
    assert _lines([Block([Echo([NumberLit("1")])])]) == ["{", "    console.log(1);", "}"]


def test_unknown_statement_lowers_children():
    stmt = Unknown(kind="labelled", children=[Echo([NumberLit("1")])])
    assert _lines([stmt]) == ["console.log(1);"]


def test_catch_without_variable():
    stmt = Try([], [Catch(["RuntimeException"], None, [])])
    assert _lines([stmt]) == ["try {", "} catch (e) {", "    // Catch RuntimeException", "}"]


def test_leading_generic_catch_takes_all():
    stmt = Try(
        [],
        [
            Catch(["Exception"], "e", [Echo([StringLit("any")])]),
            Catch(["TypeError"], "t", [Echo([StringLit("type")])]),
        ],
    )
    assert _lines([stmt]) == ["try {", "} catch (e) {", "    console.log('any');", "}"]


def test_namespace_comment_without_export():
    backend = JsBackend(Options())
    backend.emit(Program([Namespace("App\\Util", [Function("f", [], [])])]))
    assert "// Namespace: App\\Util" in backend.lines
    assert "function f() {" in backend.lines
    assert backend.exported == []


def test_export_inside_try_suppressed():
    lines = _lines([Try([Function("f", [], [])], [])])
    assert "    function f() {" in lines


def test_toplevel_return_in_branch_wraps():
    backend = JsBackend()
    code = backend.emit(Program([If(_v("done"), [Return()])]))
    lines = code.split("\n")
    assert "(function() {" in lines
    assert "        return;" in lines
    assert "})();" in lines


def test_exported_names_recorded():
    backend = JsBackend()
    backend.emit(Program([Function("a", [], []), Class("B", []), If(_v("c"), [Function("d", [], [])])]))
    assert backend.exported == ["a", "B"]


# ── Utilities and registry ──


def test_helper_registration_waits_for_commit():
    registry = UtilityRegistry()
    backend = JsBackend(Options(utility_style="module"), registry=registry)
    backend.emit(Program([ExprStmt(Call(Name("is_array"), [_v("v")]))]))
    assert backend.utilities.used == ["is_array"]
    assert len(registry) == 0


def test_superglobal_flag():
    backend = JsBackend()
    backend.emit(Program([Echo([Variable("_SERVER")])]))
    assert backend.uses_superglobals
    assert backend.lines == ["console.log(_.SERVER);"]
