"""Print an AST back to vtlang source text.

The output is canonical rather than faithful: comments and source layout
are lost, but lexing and parsing it again yields the same tree shape.
"""

from __future__ import annotations

from vtlang.ast_nodes import (
    ClassDecl,
    Expression,
    FunctionDecl,
    IntExpr,
    MethodAttr,
    MethodCallExpr,
    MethodDecl,
    NewExpr,
    PrintStmt,
    Program,
    ReturnStmt,
    Statement,
    StringExpr,
    VarDeclStmt,
    VarExpr,
)


INDENT = "    "

_ESCAPES = {
    "\\": "\\\\",
    '"': '\\"',
    "\n": "\\n",
    "\t": "\\t",
    "\r": "\\r",
}


def format_program(program: Program) -> str:
    chunks = [_format_class(decl) for decl in program.classes]
    chunks.extend(_format_function(decl) for decl in program.functions)
    return "\n\n".join(chunks) + "\n"


def format_expression(expr: Expression) -> str:
    if isinstance(expr, StringExpr):
        return '"' + "".join(_ESCAPES.get(ch, ch) for ch in expr.value) + '"'
    if isinstance(expr, IntExpr):
        return str(expr.value)
    if isinstance(expr, VarExpr):
        return expr.name
    if isinstance(expr, NewExpr):
        return f"new {expr.class_name}()"
    if isinstance(expr, MethodCallExpr):
        return f"{format_expression(expr.receiver)}.{expr.method_name}()"
    raise TypeError(f"Unsupported expression node: {type(expr).__name__}")


def _format_class(decl: ClassDecl) -> str:
    header = f"class {decl.name}"
    if decl.base_name is not None:
        header += f" extends {decl.base_name}"
    if not decl.methods:
        return header + " {\n}"
    methods = "\n\n".join(_format_method(method) for method in decl.methods)
    return f"{header} {{\n{methods}\n}}"


def _format_method(decl: MethodDecl) -> str:
    prefix = "" if decl.attr == MethodAttr.NONE else f"{decl.attr.value} "
    header = f"{INDENT}{prefix}{decl.name}(): {decl.return_type.name}"
    return _format_body(header, decl.body, depth=1)


def _format_function(decl: FunctionDecl) -> str:
    header = f"function {decl.name}(): {decl.return_type.name}"
    return _format_body(header, decl.body, depth=0)


def _format_body(header: str, body: list[Statement], *, depth: int) -> str:
    lines = [header + " {"]
    lines.extend(INDENT * (depth + 1) + _format_statement(stmt) for stmt in body)
    lines.append(INDENT * depth + "}")
    return "\n".join(lines)


def _format_statement(stmt: Statement) -> str:
    if isinstance(stmt, ReturnStmt):
        return f"return {format_expression(stmt.value)};"
    if isinstance(stmt, PrintStmt):
        return f"print({format_expression(stmt.value)});"
    if isinstance(stmt, VarDeclStmt):
        return f"var {stmt.name}: {stmt.type_ref.name} = {format_expression(stmt.initializer)};"
    raise TypeError(f"Unsupported statement node: {type(stmt).__name__}")
