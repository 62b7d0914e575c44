from __future__ import annotations

from dataclasses import dataclass, field

from llvmlite import ir

from vtlang.annotations import AnnotationTable
from vtlang.errors import SemanticError
from vtlang.layout import ClassInfo
from vtlang.lexer import SourceSpan


INT_TYPE_NAME = "Int"
STRING_TYPE_NAME = "String"

I8 = ir.IntType(8)
I32 = ir.IntType(32)
I8_PTR = I8.as_pointer()

PUTS_SYMBOL = "puts"
SOURCE_METADATA_KIND = "vtlang.src"


@dataclass(frozen=True)
class LoweringOptions:
    module_name: str = "vtlang-module"
    source_path: str = "<memory>"
    source_text: str | None = None
    annotate: bool = True
    verify: bool = True


@dataclass(frozen=True)
class TypedValue:
    value: ir.Value
    type_name: str


@dataclass(frozen=True)
class ScopeVar:
    address: ir.AllocaInstr
    type_name: str


@dataclass
class EmitContext:
    fn_name: str
    return_type_name: str
    scope: dict[str, ScopeVar] = field(default_factory=dict)

    def bind(self, name: str, var: ScopeVar) -> None:
        # Re-declaring a name simply replaces the earlier binding.
        self.scope[name] = var

    def lookup(self, name: str, span: SourceSpan) -> ScopeVar:
        var = self.scope.get(name)
        if var is None:
            raise SemanticError(f"Unknown variable '{name}'", span)
        return var


@dataclass
class LoweredModule:
    module: ir.Module
    classes: dict[str, ClassInfo]
    annotations: AnnotationTable

    def __str__(self) -> str:
        return str(self.module)


def object_type_name(class_name: str) -> str:
    return f"class.{class_name}"


def vtable_type_name(class_name: str) -> str:
    return f"vtable.{class_name}"


def vtable_global_name(class_name: str) -> str:
    return f"vtable.{class_name}"


def method_symbol(class_name: str, method_name: str) -> str:
    return f"{class_name}.{method_name}"


def llvm_type_for(type_name: str) -> ir.Type:
    if type_name == INT_TYPE_NAME:
        return I32
    return I8_PTR
