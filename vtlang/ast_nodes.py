from __future__ import annotations

from dataclasses import dataclass
from enum import Enum

from vtlang.lexer import SourceSpan


class MethodAttr(str, Enum):
    NONE = "none"
    VIRTUAL = "virtual"
    OVERRIDE = "override"


@dataclass(frozen=True)
class TypeRef:
    name: str
    span: SourceSpan


@dataclass(frozen=True)
class StringExpr:
    value: str
    span: SourceSpan


@dataclass(frozen=True)
class IntExpr:
    value: int
    span: SourceSpan


@dataclass(frozen=True)
class VarExpr:
    name: str
    span: SourceSpan


@dataclass(frozen=True)
class NewExpr:
    class_name: str
    span: SourceSpan


@dataclass(frozen=True)
class MethodCallExpr:
    receiver: "Expression"
    method_name: str
    span: SourceSpan


Expression = StringExpr | IntExpr | VarExpr | NewExpr | MethodCallExpr


@dataclass(frozen=True)
class ReturnStmt:
    value: Expression
    span: SourceSpan


@dataclass(frozen=True)
class PrintStmt:
    value: Expression
    span: SourceSpan


@dataclass(frozen=True)
class VarDeclStmt:
    name: str
    type_ref: TypeRef
    initializer: NewExpr
    span: SourceSpan


Statement = ReturnStmt | PrintStmt | VarDeclStmt


@dataclass(frozen=True)
class MethodDecl:
    attr: MethodAttr
    name: str
    return_type: TypeRef
    body: list[Statement]
    span: SourceSpan


@dataclass(frozen=True)
class FunctionDecl:
    name: str
    return_type: TypeRef
    body: list[Statement]
    span: SourceSpan


@dataclass(frozen=True)
class ClassDecl:
    name: str
    base_name: str | None
    methods: list[MethodDecl]
    span: SourceSpan


@dataclass(frozen=True)
class Program:
    classes: list[ClassDecl]
    functions: list[FunctionDecl]
    span: SourceSpan
