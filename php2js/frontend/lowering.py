"""Lower a tree-sitter PHP tree into php2js nodes.

Dispatch is keyed by tree-sitter node type. Types without a handler become
`Unknown` nodes so the backend can degrade gracefully.
"""

from __future__ import annotations

import logging
import re
from typing import Callable

from tree_sitter import Node as TSNode

from .. import nodes as n
from .parse import ParsedSource
from .strings import decode_double_quoted, decode_single_quoted, dedent_heredoc, strip_quotes

logger = logging.getLogger(__name__)

MAGIC_CONSTANTS = frozenset(
    {
        "__DIR__",
        "__FILE__",
        "__LINE__",
        "__CLASS__",
        "__FUNCTION__",
        "__METHOD__",
        "__NAMESPACE__",
        "__TRAIT__",
    }
)

# Tree-sitter statement containers worth descending into for unknown kinds.
_CONTAINER_SUFFIXES = ("_statement", "_declaration", "_definition", "_block")

_USE_ALIAS = re.compile(r"\s+as\s+", re.IGNORECASE)


def lower(parsed: ParsedSource) -> n.Program:
    """Lower a parsed source into a Program node."""
    return Lowerer(parsed).lower_program()


class Lowerer:
    """Tree-sitter CST -> php2js AST."""

    def __init__(self, parsed: ParsedSource) -> None:
        self.source = parsed.source
        self.line_offset = parsed.line_offset
        self.root = parsed.tree.root_node
        self._STMT_DISPATCH: dict[str, Callable[[TSNode], list[n.Stmt]]] = {
            "expression_statement": self._stmt_expression,
            "echo_statement": self._stmt_echo,
            "return_statement": self._stmt_return,
            "if_statement": self._stmt_if,
            "while_statement": self._stmt_while,
            "do_statement": self._stmt_do,
            "for_statement": self._stmt_for,
            "foreach_statement": self._stmt_foreach,
            "switch_statement": self._stmt_switch,
            "break_statement": self._stmt_break,
            "continue_statement": self._stmt_continue,
            "try_statement": self._stmt_try,
            "throw_statement": self._stmt_throw,
            "function_definition": self._stmt_function,
            "class_declaration": self._stmt_class,
            "interface_declaration": self._stmt_interface,
            "trait_declaration": self._stmt_trait,
            "enum_declaration": self._stmt_enum,
            "method_declaration": self._stmt_method,
            "property_declaration": self._stmt_property,
            "const_declaration": self._stmt_const,
            "use_declaration": self._stmt_trait_use,
            "enum_case": self._stmt_enum_case,
            "namespace_definition": self._stmt_namespace,
            "namespace_use_declaration": self._stmt_use,
            "global_declaration": self._stmt_global,
            "function_static_declaration": self._stmt_static,
            "unset_statement": self._stmt_unset,
            "declare_statement": self._stmt_declare,
            "exit_statement": self._stmt_exit,
            "compound_statement": self._stmt_compound,
            "empty_statement": lambda node: [],
            "text": self._stmt_text,
            "text_interpolation": self._stmt_text_interpolation,
            "php_tag": lambda node: [],
        }
        self._EXPR_DISPATCH: dict[str, Callable[[TSNode], n.Expr]] = {
            "variable_name": self._expr_variable,
            "name": self._expr_name,
            "qualified_name": self._expr_name,
            "namespace_name": self._expr_name,
            "relative_scope": lambda node: n.RelativeScope(self._text(node).lower()),
            "integer": lambda node: n.NumberLit(self._text(node)),
            "float": lambda node: n.NumberLit(self._text(node)),
            "boolean": lambda node: n.BoolLit(self._text(node).lower() == "true"),
            "null": lambda node: n.NullLit(),
            "string": self._expr_string,
            "encapsed_string": self._expr_encapsed,
            "heredoc": self._expr_heredoc,
            "nowdoc": self._expr_nowdoc,
            "parenthesized_expression": self._expr_paren,
            "binary_expression": self._expr_binary,
            "unary_op_expression": self._expr_unary,
            "error_suppression_expression": lambda node: n.Silence(self._first_expr(node)),
            "update_expression": self._expr_update,
            "assignment_expression": self._expr_assign,
            "reference_assignment_expression": self._expr_assign_ref,
            "augmented_assignment_expression": self._expr_augmented,
            "conditional_expression": self._expr_conditional,
            "cast_expression": self._expr_cast,
            "clone_expression": lambda node: n.Clone(self._first_expr(node)),
            "print_intrinsic": lambda node: n.Print(self._first_expr(node)),
            "function_call_expression": self._expr_call,
            "member_call_expression": self._expr_member_call,
            "nullsafe_member_call_expression": self._expr_member_call,
            "member_access_expression": self._expr_member_access,
            "nullsafe_member_access_expression": self._expr_member_access,
            "scoped_call_expression": self._expr_scoped_call,
            "scoped_property_access_expression": self._expr_scoped_property,
            "class_constant_access_expression": self._expr_class_constant,
            "subscript_expression": self._expr_subscript,
            "array_creation_expression": self._expr_array,
            "list_literal": self._expr_list,
            "object_creation_expression": self._expr_new,
            "anonymous_function": self._expr_closure,
            "anonymous_function_creation_expression": self._expr_closure,
            "arrow_function": self._expr_arrow,
            "include_expression": self._expr_include,
            "include_once_expression": self._expr_include,
            "require_expression": self._expr_include,
            "require_once_expression": self._expr_include,
            "throw_expression": lambda node: n.Throw(self._first_expr(node)),
            "yield_expression": self._expr_yield,
            "match_expression": self._expr_match,
            "by_ref": self._first_expr,
            "variadic_unpacking": lambda node: n.Spread(self._first_expr(node)),
            "exit_statement": self._expr_exit,
        }

    # -- helpers ---------------------------------------------------------------

    def _text(self, node: TSNode) -> str:
        return self.source[node.start_byte : node.end_byte].decode("utf-8", errors="replace")

    def _pos(self, node: TSNode) -> n.Pos:
        row, col = node.start_point[0], node.start_point[1]
        return n.Pos(max(row + 1 - self.line_offset, 1), col + 1)

    def _named(self, node: TSNode) -> list[TSNode]:
        """Named children without comments."""
        return [c for c in node.named_children if c.type != "comment"]

    def _field(self, node: TSNode, name: str) -> TSNode | None:
        return node.child_by_field_name(name)

    def _first_expr(self, node: TSNode) -> n.Expr:
        named = self._named(node)
        if not named:
            return n.Unknown(kind=node.type, pos=self._pos(node))
        return self._lower_expr(named[0])

    def _var_name(self, node: TSNode) -> str:
        text = self._text(node).strip()
        return text.lstrip("&").strip().lstrip("$")

    # -- program and statement lists -------------------------------------------

    def lower_program(self) -> n.Program:
        body = self._lower_stmts(self.root.children)
        return n.Program(body, pos=n.Pos(1, 1))

    def _lower_stmts(self, children: list[TSNode]) -> list[n.Stmt]:
        """Lower a statement sequence, attaching docblocks to declarations.

        A braceless `namespace X;` owns every statement up to the next
        namespace declaration.
        """
        result: list[n.Stmt] = []
        target = result
        pending_doc: str | None = None
        for child in children:
            if not child.is_named:
                continue
            if child.type == "comment":
                text = self._text(child)
                if pending_doc is not None:
                    target.append(n.Comment(pending_doc, pos=self._pos(child)))
                    pending_doc = None
                if text.startswith("/**"):
                    pending_doc = text
                else:
                    target.append(n.Comment(text, pos=self._pos(child)))
                continue
            stmts = self._lower_stmt(child)
            if pending_doc is not None:
                head = stmts[0] if stmts else None
                if isinstance(head, (n.Function, n.Method, n.Class)) and head.doc is None:
                    head.doc = pending_doc
                else:
                    target.append(n.Comment(pending_doc))
                pending_doc = None
            for stmt in stmts:
                if isinstance(stmt, n.Namespace) and child.child_by_field_name("body") is None:
                    result.append(stmt)
                    target = stmt.body
                elif isinstance(stmt, n.Namespace):
                    result.append(stmt)
                    target = result
                else:
                    target.append(stmt)
        if pending_doc is not None:
            target.append(n.Comment(pending_doc))
        return result

    def _lower_block(self, node: TSNode | None) -> list[n.Stmt]:
        if node is None:
            return []
        if node.type in ("compound_statement", "colon_block"):
            return self._lower_stmts(node.children)
        return self._lower_stmts([node])

    def _lower_stmt(self, node: TSNode) -> list[n.Stmt]:
        handler = self._STMT_DISPATCH.get(node.type)
        if handler is None:
            return [self._unknown_stmt(node)]
        stmts = handler(node)
        for stmt in stmts:
            if stmt.pos.line == 0:
                stmt.pos = self._pos(node)
        return stmts

    def _unknown_stmt(self, node: TSNode) -> n.Unknown:
        children: list[n.Node] = []
        for child in self._named(node):
            if child.type.endswith(_CONTAINER_SUFFIXES):
                children.extend(self._lower_stmt(child))
        return n.Unknown(kind=node.type, children=children, pos=self._pos(node))

    # -- simple statements -----------------------------------------------------

    def _stmt_expression(self, node: TSNode) -> list[n.Stmt]:
        named = self._named(node)
        if not named:
            return []
        return [n.ExprStmt(self._lower_expr(named[0]))]

    def _stmt_echo(self, node: TSNode) -> list[n.Stmt]:
        args: list[n.Expr] = []
        for child in self._named(node):
            args.extend(self._expr_sequence(child))
        return [n.Echo(args)]

    def _stmt_return(self, node: TSNode) -> list[n.Stmt]:
        named = self._named(node)
        return [n.Return(self._lower_expr(named[0]) if named else None)]

    def _stmt_break(self, node: TSNode) -> list[n.Stmt]:
        return [n.Break(self._level(node))]

    def _stmt_continue(self, node: TSNode) -> list[n.Stmt]:
        return [n.Continue(self._level(node))]

    def _level(self, node: TSNode) -> int:
        named = self._named(node)
        if named and named[0].type == "integer":
            return int(self._text(named[0]))
        return 1

    def _stmt_throw(self, node: TSNode) -> list[n.Stmt]:
        return [n.ExprStmt(n.Throw(self._first_expr(node)))]

    def _stmt_exit(self, node: TSNode) -> list[n.Stmt]:
        return [n.ExprStmt(self._expr_exit(node))]

    def _stmt_compound(self, node: TSNode) -> list[n.Stmt]:
        return [n.Block(self._lower_block(node))]

    def _stmt_text(self, node: TSNode) -> list[n.Stmt]:
        return [n.InlineHtml(self._text(node))]

    def _stmt_text_interpolation(self, node: TSNode) -> list[n.Stmt]:
        return [n.InlineHtml(self._text(c)) for c in node.named_children if c.type == "text"]

    def _stmt_global(self, node: TSNode) -> list[n.Stmt]:
        return [n.Global([self._var_name(c) for c in self._named(node)])]

    def _stmt_static(self, node: TSNode) -> list[n.Stmt]:
        decls: list[tuple[str, n.Expr | None]] = []
        for child in self._named(node):
            if child.type != "static_variable_declaration":
                continue
            name_node = self._field(child, "name")
            value_node = self._field(child, "value")
            named = self._named(child)
            if name_node is None and named:
                name_node = named[0]
            if value_node is None and len(named) > 1:
                value_node = named[-1]
            value = self._lower_expr(value_node) if value_node is not None else None
            decls.append((self._var_name(name_node), value))
        return [n.StaticVar(decls)]

    def _stmt_unset(self, node: TSNode) -> list[n.Stmt]:
        return [n.Unset([self._lower_expr(c) for c in self._named(node)])]

    def _stmt_declare(self, node: TSNode) -> list[n.Stmt]:
        directives: list[str] = []
        body: list[n.Stmt] = []
        for child in self._named(node):
            if child.type == "declare_directive":
                directives.append(re.sub(r"\s+", "", self._text(child)))
            else:
                body.extend(self._lower_block(child))
        return [n.Declare(directives, body)]

    # -- control flow ----------------------------------------------------------

    def _condition(self, node: TSNode) -> n.Expr:
        cond = self._field(node, "condition")
        if cond is None:
            named = self._named(node)
            cond = named[0] if named else None
        if cond is None:
            return n.Unknown(kind="condition", pos=self._pos(node))
        return self._lower_expr(cond)

    def _body_node(self, node: TSNode, skip: int) -> TSNode | None:
        body = self._field(node, "body")
        if body is not None:
            return body
        named = self._named(node)
        return named[skip] if len(named) > skip else None

    def _stmt_if(self, node: TSNode) -> list[n.Stmt]:
        test = self._condition(node)
        body = self._lower_block(self._body_node(node, 1))
        alternate: n.If | list[n.Stmt] | None = None
        clauses = [c for c in node.children if c.type in ("else_if_clause", "else_clause")]
        for clause in reversed(clauses):
            if clause.type == "else_if_clause":
                clause_body = self._lower_block(self._body_node(clause, 1))
                alternate = n.If(self._condition(clause), clause_body, alternate, pos=self._pos(clause))
            else:
                else_body = self._lower_block(self._body_node(clause, 0))
                if len(else_body) == 1 and isinstance(else_body[0], n.If):
                    alternate = else_body[0]
                else:
                    alternate = else_body
        return [n.If(test, body, alternate)]

    def _stmt_while(self, node: TSNode) -> list[n.Stmt]:
        return [n.While(self._condition(node), self._lower_block(self._body_node(node, 1)))]

    def _stmt_do(self, node: TSNode) -> list[n.Stmt]:
        body = self._field(node, "body")
        if body is None:
            named = self._named(node)
            body = named[0] if named else None
        cond = self._field(node, "condition")
        if cond is None:
            cond = self._named(node)[-1]
        return [n.DoWhile(self._lower_block(body), self._lower_expr(cond))]

    def _stmt_for(self, node: TSNode) -> list[n.Stmt]:
        sections: list[list[n.Expr]] = [[], [], []]
        index = 0
        state = "start"
        body_nodes: list[TSNode] = []
        for child in node.children:
            if state == "start":
                if child.type == "(":
                    state = "header"
                continue
            if state == "header":
                if child.type == ";":
                    index = min(index + 1, 2)
                elif child.type == ")":
                    state = "body"
                elif child.is_named and child.type != "comment":
                    sections[index].extend(self._expr_sequence(child))
                continue
            if child.is_named and child.type != "comment":
                body_nodes.append(child)
        if len(body_nodes) == 1:
            body = self._lower_block(body_nodes[0])
        else:
            body = self._lower_stmts(body_nodes)
        return [n.For(sections[0], sections[1], sections[2], body)]

    def _stmt_foreach(self, node: TSNode) -> list[n.Stmt]:
        body_node = self._field(node, "body")
        named = [c for c in self._named(node) if body_node is None or c.start_byte != body_node.start_byte]
        source = self._lower_expr(named[0])
        binding = named[1]
        key: n.Expr | None = None
        if binding.type in ("pair", "foreach_pair"):
            parts = self._named(binding)
            key = self._lower_expr(parts[0])
            binding = parts[-1]
        by_ref = binding.type == "by_ref"
        if by_ref:
            binding = self._named(binding)[0]
        value = self._lower_expr(binding)
        if isinstance(value, n.ArrayLit):
            value = self._array_to_list(value)
        if body_node is not None:
            body = self._lower_block(body_node)
        else:
            body = self._lower_stmts(named[2:])
        return [n.Foreach(source, value, body, key=key, by_ref=by_ref)]

    def _stmt_switch(self, node: TSNode) -> list[n.Stmt]:
        test = self._condition(node)
        block = self._field(node, "body")
        if block is None:
            block = next((c for c in node.children if c.type == "switch_block"), None)
        cases: list[n.Case] = []
        for child in block.named_children if block is not None else []:
            if child.type == "case_statement":
                value = self._field(child, "value")
                if value is None:
                    value = self._named(child)[0]
                rest = [c for c in child.children if c.start_byte != value.start_byte or c.type != value.type]
                cases.append(n.Case(self._lower_expr(value), self._lower_stmts(rest), pos=self._pos(child)))
            elif child.type == "default_statement":
                cases.append(n.Case(None, self._lower_stmts(child.children), pos=self._pos(child)))
        return [n.Switch(test, cases)]

    def _stmt_try(self, node: TSNode) -> list[n.Stmt]:
        body = self._lower_block(self._body_node(node, 0))
        catches: list[n.Catch] = []
        finally_body: list[n.Stmt] | None = None
        for child in node.children:
            if child.type == "catch_clause":
                catches.append(self._catch(child))
            elif child.type == "finally_clause":
                finally_body = self._lower_block(self._body_node(child, 0))
        return [n.Try(body, catches, finally_body)]

    def _catch(self, node: TSNode) -> n.Catch:
        type_node = self._field(node, "type")
        if type_node is None:
            type_node = next(
                (c for c in node.children if c.type in ("type_list", "named_type", "name", "qualified_name")),
                None,
            )
        types: list[str] = []
        if type_node is not None:
            if type_node.type == "type_list":
                types = [self._text(c).lstrip("\\") for c in self._named(type_node)]
            else:
                types = [self._text(type_node).lstrip("\\")]
        var_node = self._field(node, "name")
        if var_node is None:
            var_node = next((c for c in node.children if c.type == "variable_name"), None)
        var = self._var_name(var_node) if var_node is not None else None
        body = self._lower_block(self._field(node, "body") or next((c for c in node.children if c.type == "compound_statement"), None))
        return n.Catch(types, var, body, pos=self._pos(node))

    # -- declarations ----------------------------------------------------------

    def _params(self, node: TSNode | None) -> list[n.Param]:
        params: list[n.Param] = []
        if node is None:
            return params
        for child in self._named(node):
            if child.type not in ("simple_parameter", "variadic_parameter", "property_promotion_parameter"):
                continue
            name_node = self._field(child, "name")
            if name_node is None:
                name_node = next(c for c in child.named_children if c.type in ("variable_name", "by_ref"))
            default_node = self._field(child, "default_value")
            by_ref = any(c.type == "reference_modifier" for c in child.children) or name_node.type == "by_ref"
            promote = None
            if child.type == "property_promotion_parameter":
                visibility = self._field(child, "visibility")
                promote = self._text(visibility).lower() if visibility is not None else "public"
            params.append(
                n.Param(
                    self._var_name(name_node),
                    default=self._lower_expr(default_node) if default_node is not None else None,
                    variadic=child.type == "variadic_parameter",
                    by_ref=by_ref,
                    promote=promote,
                    pos=self._pos(child),
                )
            )
        return params

    def _stmt_function(self, node: TSNode) -> list[n.Stmt]:
        name = self._text(self._field(node, "name"))
        params = self._params(self._field(node, "parameters"))
        body = self._lower_block(self._field(node, "body"))
        return [n.Function(name, params, body)]

    def _stmt_method(self, node: TSNode) -> list[n.Stmt]:
        name = self._text(self._field(node, "name"))
        params = self._params(self._field(node, "parameters"))
        body_node = self._field(node, "body")
        body = self._lower_block(body_node) if body_node is not None else None
        visibility = "public"
        is_static = False
        for child in node.children:
            if child.type == "visibility_modifier":
                visibility = self._text(child).lower()
            elif child.type == "static_modifier":
                is_static = True
        return [n.Method(name, params, body, is_static=is_static, visibility=visibility)]

    def _stmt_property(self, node: TSNode) -> list[n.Stmt]:
        is_static = any(c.type == "static_modifier" for c in node.children)
        props: list[tuple[str, n.Expr | None]] = []
        for child in node.named_children:
            if child.type != "property_element":
                continue
            name_node = self._field(child, "name")
            if name_node is None:
                name_node = next(c for c in child.named_children if c.type == "variable_name")
            value_node = self._field(child, "default_value")
            if value_node is None:
                value_node = next(
                    (c for c in self._named(child) if c.type != "variable_name"),
                    None,
                )
            if value_node is not None and value_node.type == "property_initializer":
                value_node = self._named(value_node)[0]
            value = self._lower_expr(value_node) if value_node is not None else None
            props.append((self._var_name(name_node), value))
        return [n.PropertyDecl(props, is_static=is_static)]

    def _stmt_const(self, node: TSNode) -> list[n.Stmt]:
        consts: list[tuple[str, n.Expr]] = []
        for child in node.named_children:
            if child.type != "const_element":
                continue
            named = self._named(child)
            consts.append((self._text(named[0]), self._lower_expr(named[-1])))
        return [n.ConstStmt(consts)]

    def _stmt_trait_use(self, node: TSNode) -> list[n.Stmt]:
        names = [self._text(c).lstrip("\\") for c in self._named(node) if c.type in ("name", "qualified_name")]
        return [n.TraitUse(names)]

    def _stmt_enum_case(self, node: TSNode) -> list[n.Stmt]:
        name_node = self._field(node, "name")
        named = self._named(node)
        if name_node is None:
            name_node = named[0]
        value_node = self._field(node, "value")
        if value_node is None and len(named) > 1:
            value_node = named[-1]
        value = self._lower_expr(value_node) if value_node is not None else None
        return [n.EnumCase(self._text(name_node), value)]

    def _members(self, node: TSNode | None) -> list[n.Stmt]:
        if node is None:
            return []
        members = self._lower_stmts(node.children)
        return [n.ClassConst(m.consts, pos=m.pos) if isinstance(m, n.ConstStmt) else m for m in members]

    def _clause_names(self, node: TSNode, clause_type: str) -> list[str]:
        for child in node.children:
            if child.type == clause_type:
                return [self._text(c) for c in self._named(child)]
        return []

    def _stmt_class(self, node: TSNode) -> list[n.Stmt]:
        return [
            n.Class(
                self._text(self._field(node, "name")),
                self._members(self._field(node, "body")),
                kind="class",
                extends=self._clause_names(node, "base_clause"),
                implements=self._clause_names(node, "class_interface_clause"),
                is_abstract=any(c.type == "abstract_modifier" for c in node.children),
            )
        ]

    def _stmt_interface(self, node: TSNode) -> list[n.Stmt]:
        return [
            n.Class(
                self._text(self._field(node, "name")),
                self._members(self._field(node, "body")),
                kind="interface",
                extends=self._clause_names(node, "base_clause"),
            )
        ]

    def _stmt_trait(self, node: TSNode) -> list[n.Stmt]:
        return [n.Class(self._text(self._field(node, "name")), self._members(self._field(node, "body")), kind="trait")]

    def _stmt_enum(self, node: TSNode) -> list[n.Stmt]:
        return [
            n.Class(
                self._text(self._field(node, "name")),
                self._members(self._field(node, "body")),
                kind="enum",
                implements=self._clause_names(node, "class_interface_clause"),
            )
        ]

    def _stmt_namespace(self, node: TSNode) -> list[n.Stmt]:
        name_node = self._field(node, "name")
        if name_node is None:
            name_node = next((c for c in node.named_children if c.type == "namespace_name"), None)
        name = self._text(name_node) if name_node is not None else ""
        body_node = self._field(node, "body")
        body = self._lower_block(body_node) if body_node is not None else []
        return [n.Namespace(name, body)]

    def _stmt_use(self, node: TSNode) -> list[n.Stmt]:
        text = self._text(node).strip()
        text = re.sub(r"^use\s+", "", text, flags=re.IGNORECASE).rstrip(";").strip()
        kind = ""
        m = re.match(r"(function|const)\s+", text, re.IGNORECASE)
        if m:
            kind = m.group(1).lower()
            text = text[m.end() :]
        if "{" in text:
            prefix, _, group = text.partition("{")
            prefix = prefix.strip().rstrip("\\")
            entries = [prefix + "\\" + e.strip() for e in group.rstrip("}").split(",") if e.strip()]
        else:
            entries = [e.strip() for e in text.split(",") if e.strip()]
        items: list[n.UseItem] = []
        for entry in entries:
            entry = re.sub(r"\\(?:function|const)\s+", "\\\\", entry, flags=re.IGNORECASE)
            parts = _USE_ALIAS.split(entry)
            alias = parts[1].strip() if len(parts) > 1 else None
            items.append(n.UseItem(parts[0].strip().lstrip("\\"), alias))
        return [n.Use(items, kind)]

    # -- expressions -----------------------------------------------------------

    def _lower_expr(self, node: TSNode) -> n.Expr:
        handler = self._EXPR_DISPATCH.get(node.type)
        if handler is None:
            logger.debug("no lowering for expression kind %s", node.type)
            return n.Unknown(kind=node.type, pos=self._pos(node))
        expr = handler(node)
        if expr.pos.line == 0:
            expr.pos = self._pos(node)
        return expr

    def _expr_sequence(self, node: TSNode) -> list[n.Expr]:
        """Flatten `a, b, c` sequence expressions (echo, for headers)."""
        if node.type == "sequence_expression":
            result: list[n.Expr] = []
            for child in self._named(node):
                result.extend(self._expr_sequence(child))
            return result
        return [self._lower_expr(node)]

    def _expr_variable(self, node: TSNode) -> n.Expr:
        return n.Variable(self._var_name(node))

    def _expr_name(self, node: TSNode) -> n.Expr:
        text = self._text(node)
        upper = text.upper()
        if upper in MAGIC_CONSTANTS:
            return n.MagicConst(upper)
        lower = text.lower()
        if lower in ("true", "false"):
            return n.BoolLit(lower == "true")
        if lower == "null":
            return n.NullLit()
        if lower in ("exit", "die"):
            return n.Exit(None)
        return n.Name(text)

    def _expr_paren(self, node: TSNode) -> n.Expr:
        return self._first_expr(node)

    def _expr_string(self, node: TSNode) -> n.Expr:
        quote, body = strip_quotes(self._text(node))
        if quote == '"':
            return n.StringLit(decode_double_quoted(body), double_quoted=True)
        return n.StringLit(decode_single_quoted(body))

    def _interpolation(self, node: TSNode, start: int, end: int) -> list[str | n.Expr | tuple[str]]:
        """Split an interpolated body into raw text (1-tuples) and expressions.

        Text not covered by any child is treated as literal source, so the
        result does not depend on whether the grammar emits content nodes.
        """
        parts: list[str | n.Expr | tuple[str]] = []
        pos = start
        for child in node.children:
            if child.start_byte < start or child.end_byte > end:
                continue
            if child.start_byte > pos:
                parts.append((self.source[pos : child.start_byte].decode("utf-8", errors="replace"),))
            if child.type in ("string_content", "string_value", "string", "escape_sequence", "heredoc_body"):
                if child.type == "heredoc_body":
                    parts.extend(self._interpolation(child, child.start_byte, child.end_byte))
                else:
                    parts.append((self._text(child),))
            elif child.is_named and child.type != "comment":
                parts.append(self._interpolated_expr(child))
            pos = max(pos, child.end_byte)
        if pos < end:
            parts.append((self.source[pos:end].decode("utf-8", errors="replace"),))
        return parts

    def _interpolated_expr(self, node: TSNode) -> n.Expr:
        if node.type == "name":
            return n.Variable(self._text(node))
        if node.type == "dynamic_variable_name":
            # "${name}" is the same as "$name"
            named = self._named(node)
            if len(named) == 1 and named[0].type == "name":
                return n.Variable(self._text(named[0]))
        if node.type == "subscript_expression":
            named = self._named(node)
            if len(named) == 2 and named[1].type == "name":
                return n.OffsetLookup(self._lower_expr(named[0]), n.StringLit(self._text(named[1])))
        return self._lower_expr(node)

    def _encapsed(self, raw_parts: list, heredoc: bool) -> n.Expr:
        parts: list[str | n.Expr] = []
        for part in raw_parts:
            if isinstance(part, tuple):
                text = decode_double_quoted(part[0], heredoc=heredoc)
                if parts and isinstance(parts[-1], str):
                    parts[-1] += text
                elif text:
                    parts.append(text)
            else:
                parts.append(part)
        if all(isinstance(p, str) for p in parts):
            return n.StringLit("".join(parts), double_quoted=True)  # type: ignore[arg-type]
        return n.Encapsed(parts)

    def _expr_encapsed(self, node: TSNode) -> n.Expr:
        text = self._text(node)
        prefix = 2 if text[:1] in ("b", "B") else 1
        raw = self._interpolation(node, node.start_byte + prefix, node.end_byte - 1)
        return self._encapsed(raw, heredoc=False)

    def _heredoc_bounds(self, node: TSNode) -> tuple[int, int, str]:
        start_node = next((c for c in node.children if c.type == "heredoc_start"), None)
        end_node = next((c for c in node.children if c.type == "heredoc_end"), None)
        start = start_node.end_byte if start_node is not None else node.start_byte
        if self.source[start : start + 1] in (b"'", b'"'):
            start += 1
        end = end_node.start_byte if end_node is not None else node.end_byte
        line_start = self.source.rfind(b"\n", 0, end) + 1
        indent = self.source[line_start:end].decode("utf-8", errors="replace")
        if indent.strip():
            indent = ""
        return start, end, indent

    def _trim_heredoc(self, raw: list, indent: str) -> list:
        """Drop the newline after the opener and before the closer, then dedent."""
        if raw and isinstance(raw[0], tuple):
            raw[0] = (re.sub(r"^\r?\n", "", raw[0][0]),)
        if raw and isinstance(raw[-1], tuple):
            raw[-1] = (re.sub(r"\r?\n[ \t]*$", "", raw[-1][0]),)
        result = []
        at_line_start = True
        for part in raw:
            if isinstance(part, tuple):
                if not part[0]:
                    continue
                lines = part[0].split("\n")
                if at_line_start:
                    lines = dedent_heredoc(lines, indent)
                else:
                    lines = lines[:1] + dedent_heredoc(lines[1:], indent)
                text = "\n".join(lines)
                result.append((text,))
                at_line_start = text.endswith("\n")
            else:
                result.append(part)
                at_line_start = False
        return result

    def _expr_heredoc(self, node: TSNode) -> n.Expr:
        start, end, indent = self._heredoc_bounds(node)
        raw = self._interpolation(node, start, end)
        return self._encapsed(self._trim_heredoc(raw, indent), heredoc=True)

    def _expr_nowdoc(self, node: TSNode) -> n.Expr:
        start, end, indent = self._heredoc_bounds(node)
        raw = [(self.source[start:end].decode("utf-8", errors="replace"),)]
        trimmed = self._trim_heredoc(raw, indent)
        return n.StringLit(trimmed[0][0] if trimmed else "")

    def _operator(self, node: TSNode) -> str:
        op = self._field(node, "operator")
        if op is not None:
            return self._text(op)
        for child in node.children:
            if not child.is_named:
                return child.type
        return "?"

    def _expr_binary(self, node: TSNode) -> n.Expr:
        left = self._field(node, "left")
        right = self._field(node, "right")
        if left is None or right is None:
            named = self._named(node)
            left, right = named[0], named[-1]
        op = self._operator(node)
        if op.isalpha():
            op = op.lower()
        return n.Bin(op, self._lower_expr(left), self._lower_expr(right))

    def _expr_unary(self, node: TSNode) -> n.Expr:
        operand = self._lower_expr(self._named(node)[-1])
        op = self._operator(node)
        if op == "@":
            return n.Silence(operand)
        return n.Unary(op, operand)

    def _expr_update(self, node: TSNode) -> n.Expr:
        first = node.children[0]
        prefix = not first.is_named and first.type in ("++", "--")
        if prefix:
            op = first.type
        else:
            op = node.children[-1].type
        return n.Update(op, self._first_expr(node), prefix)

    def _assign_sides(self, node: TSNode) -> tuple[n.Expr, n.Expr]:
        left = self._field(node, "left")
        right = self._field(node, "right")
        if left is None or right is None:
            named = self._named(node)
            left, right = named[0], named[-1]
        target = self._lower_expr(left)
        if isinstance(target, n.ArrayLit):
            target = self._array_to_list(target)
        return target, self._lower_expr(right)

    def _expr_assign(self, node: TSNode) -> n.Expr:
        target, value = self._assign_sides(node)
        return n.Assign(target, value)

    def _expr_assign_ref(self, node: TSNode) -> n.Expr:
        target, value = self._assign_sides(node)
        return n.AssignRef(target, value)

    def _expr_augmented(self, node: TSNode) -> n.Expr:
        target, value = self._assign_sides(node)
        return n.Assign(target, value, op=self._operator(node))

    def _expr_conditional(self, node: TSNode) -> n.Expr:
        cond = self._field(node, "condition")
        then = self._field(node, "body")
        other = self._field(node, "alternative")
        if cond is None or other is None:
            named = self._named(node)
            cond, other = named[0], named[-1]
            then = named[1] if len(named) == 3 else None
        return n.Ternary(
            self._lower_expr(cond),
            self._lower_expr(then) if then is not None else None,
            self._lower_expr(other),
        )

    def _expr_cast(self, node: TSNode) -> n.Expr:
        type_node = self._field(node, "type")
        value = self._field(node, "value")
        if value is None:
            value = self._named(node)[-1]
        cast_type = self._text(type_node).strip("() ").lower() if type_node is not None else ""
        return n.Cast(cast_type, self._lower_expr(value))

    def _args(self, node: TSNode | None) -> list[n.Expr]:
        args: list[n.Expr] = []
        if node is None:
            return args
        for child in self._named(node):
            if child.type != "argument":
                args.append(self._lower_expr(child))
                continue
            name_node = self._field(child, "name")
            named = self._named(child)
            value = self._lower_expr(named[-1])
            if name_node is not None and named[-1].start_byte != name_node.start_byte:
                value = n.NamedArg(self._text(name_node), value)
            args.append(value)
        return args

    def _expr_call(self, node: TSNode) -> n.Expr:
        func = self._field(node, "function")
        if func is None:
            func = self._named(node)[0]
        args_node = self._field(node, "arguments")
        if args_node is None:
            args_node = next((c for c in node.children if c.type == "arguments"), None)
        args = self._args(args_node)
        if func.type in ("name", "qualified_name"):
            name = self._text(func).lstrip("\\").lower()
            if name == "isset":
                return n.Isset(args)
            if name == "empty" and args:
                return n.Empty(args[0])
            if name in ("exit", "die"):
                return n.Exit(args[0] if args else None)
        return n.Call(self._lower_expr(func), args)

    def _member(self, node: TSNode | None) -> str | n.Expr:
        if node is None:
            return ""
        if node.type == "name":
            return self._text(node)
        return self._lower_expr(node)

    def _expr_member_access(self, node: TSNode) -> n.Expr:
        obj = self._lower_expr(self._field(node, "object"))
        member = self._member(self._field(node, "name"))
        return n.PropertyLookup(obj, member, nullsafe=node.type.startswith("nullsafe"))

    def _expr_member_call(self, node: TSNode) -> n.Expr:
        obj = self._lower_expr(self._field(node, "object"))
        member = self._member(self._field(node, "name"))
        lookup = n.PropertyLookup(obj, member, nullsafe=node.type.startswith("nullsafe"), pos=self._pos(node))
        return n.Call(lookup, self._args(self._field(node, "arguments")))

    def _expr_scoped_call(self, node: TSNode) -> n.Expr:
        scope = self._lower_expr(self._field(node, "scope"))
        name = self._text(self._field(node, "name"))
        lookup = n.StaticLookup(scope, name, pos=self._pos(node))
        return n.Call(lookup, self._args(self._field(node, "arguments")))

    def _expr_scoped_property(self, node: TSNode) -> n.Expr:
        scope_node = self._field(node, "scope")
        name_node = self._field(node, "name")
        if scope_node is None or name_node is None:
            named = self._named(node)
            scope_node, name_node = named[0], named[-1]
        return n.StaticLookup(self._lower_expr(scope_node), self._var_name(name_node))

    def _expr_class_constant(self, node: TSNode) -> n.Expr:
        named = self._named(node)
        member = self._text(node).rsplit("::", 1)[-1].strip()
        return n.StaticLookup(self._lower_expr(named[0]), member)

    def _expr_subscript(self, node: TSNode) -> n.Expr:
        named = self._named(node)
        base = self._lower_expr(named[0])
        offset = self._lower_expr(named[1]) if len(named) > 1 else None
        return n.OffsetLookup(base, offset)

    def _expr_array(self, node: TSNode) -> n.Expr:
        items: list[n.ArrayEntry] = []
        for child in node.named_children:
            if child.type != "array_element_initializer":
                continue
            named = self._named(child)
            if not named:
                continue
            if any(c.type == "variadic_unpacking" for c in named) or any(c.type == "..." for c in child.children):
                inner = named[0]
                value = self._lower_expr(inner)
                if isinstance(value, n.Spread):
                    value = value.expr
                items.append(n.ArrayEntry(value, spread=True, pos=self._pos(child)))
                continue
            has_key = any(c.type == "=>" for c in child.children)
            value_node = named[-1]
            by_ref = value_node.type == "by_ref"
            if by_ref:
                value_node = self._named(value_node)[0]
            key = self._lower_expr(named[0]) if has_key and len(named) > 1 else None
            items.append(n.ArrayEntry(self._lower_expr(value_node), key=key, by_ref=by_ref, pos=self._pos(child)))
        return n.ArrayLit(items)

    def _array_to_list(self, array: n.ArrayLit) -> n.ListExpr:
        items: list[n.Expr | None] = []
        for entry in array.items:
            value = entry.value
            if isinstance(value, n.ArrayLit):
                value = self._array_to_list(value)
            items.append(value)
        return n.ListExpr(items, pos=array.pos)

    def _expr_list(self, node: TSNode) -> n.Expr:
        items: list[n.Expr | None] = []
        current: n.Expr | None = None
        for child in node.children:
            if child.type == ",":
                items.append(current)
                current = None
            elif child.is_named and child.type != "comment":
                if child.type == "array_element_initializer":
                    child = self._named(child)[-1]
                current = self._lower_expr(child)
                if isinstance(current, n.ArrayLit):
                    current = self._array_to_list(current)
        if current is not None:
            items.append(current)
        return n.ListExpr(items)

    def _expr_new(self, node: TSNode) -> n.Expr:
        named = self._named(node)
        args_node = next((c for c in named if c.type == "arguments"), None)
        designators = [c for c in named if c.type != "arguments"]
        if not designators or any(c.type in ("anonymous_class", "declaration_list") for c in designators):
            return n.Unknown(kind="anonymous_class")
        return n.New(self._lower_expr(designators[0]), self._args(args_node))

    def _expr_closure(self, node: TSNode) -> n.Expr:
        params = self._params(self._field(node, "parameters"))
        body = self._lower_block(self._field(node, "body"))
        uses: list[n.ClosureUse] = []
        for child in node.named_children:
            if child.type == "anonymous_function_use_clause":
                for var in self._named(child):
                    uses.append(n.ClosureUse(self._var_name(var), by_ref=var.type == "by_ref" or self._text(var).startswith("&")))
        is_static = any(c.type == "static_modifier" for c in node.children)
        return n.Closure(params, body, uses, is_static=is_static)

    def _expr_arrow(self, node: TSNode) -> n.Expr:
        params = self._params(self._field(node, "parameters"))
        body = self._field(node, "body")
        if body is None:
            body = self._named(node)[-1]
        return n.Closure(params, expr_body=self._lower_expr(body))

    def _expr_include(self, node: TSNode) -> n.Expr:
        kind = node.type.removesuffix("_expression")
        return n.Include(kind, self._first_expr(node))

    def _expr_exit(self, node: TSNode) -> n.Expr:
        named = self._named(node)
        return n.Exit(self._lower_expr(named[0]) if named else None)

    def _expr_yield(self, node: TSNode) -> n.Expr:
        delegate = re.match(r"yield\s+from\b", self._text(node), re.IGNORECASE) is not None
        named = self._named(node)
        if not named:
            return n.Yield()
        inner = named[0]
        if inner.type == "array_element_initializer":
            parts = self._named(inner)
            if any(c.type == "=>" for c in inner.children) and len(parts) > 1:
                return n.Yield(self._lower_expr(parts[-1]), key=self._lower_expr(parts[0]))
            return n.Yield(self._lower_expr(parts[-1]), delegate=delegate)
        return n.Yield(self._lower_expr(inner), delegate=delegate)

    def _expr_match(self, node: TSNode) -> n.Expr:
        subject = self._condition(node)
        block = self._field(node, "body")
        if block is None:
            block = next((c for c in node.children if c.type == "match_block"), None)
        arms: list[n.MatchArm] = []
        for arm in block.named_children if block is not None else []:
            result = self._field(arm, "return_expression")
            if result is None:
                result = self._named(arm)[-1]
            if arm.type == "match_default_expression":
                arms.append(n.MatchArm([], self._lower_expr(result), pos=self._pos(arm)))
            elif arm.type == "match_conditional_expression":
                conds = self._field(arm, "conditional_expressions")
                if conds is None:
                    conds = self._named(arm)[0]
                arms.append(
                    n.MatchArm(
                        [self._lower_expr(c) for c in self._named(conds)],
                        self._lower_expr(result),
                        pos=self._pos(arm),
                    )
                )
        return n.Match(subject, arms)
