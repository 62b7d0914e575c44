from __future__ import annotations

import logging
from dataclasses import dataclass, field

from llvmlite import ir

from vtlang.ast_nodes import ClassDecl, MethodAttr, MethodDecl, Program
from vtlang.errors import SemanticError


logger = logging.getLogger(__name__)

# Builtin value types, and the prefix LLVM keeps for intrinsics ("llvm.<m>" method symbols).
RESERVED_CLASS_NAMES = frozenset({"Int", "String", "llvm"})


@dataclass
class ClassLayout:
    """Virtual method table shape of one class.

    ``methods[i]`` names the method occupying slot ``i``; ``slot_of`` is the
    reverse mapping. A derived class's layout always starts with its base's
    slots in the same order.
    """

    methods: list[str] = field(default_factory=list)
    slot_of: dict[str, int] = field(default_factory=dict)

    def copy(self) -> ClassLayout:
        return ClassLayout(methods=list(self.methods), slot_of=dict(self.slot_of))

    def append_slot(self, method_name: str) -> int:
        index = len(self.methods)
        self.methods.append(method_name)
        self.slot_of[method_name] = index
        return index

    @property
    def slot_count(self) -> int:
        return len(self.methods)


@dataclass
class ClassInfo:
    decl: ClassDecl
    base: ClassInfo | None
    layout: ClassLayout
    object_type: ir.IdentifiedStructType | None = None
    vtable_type: ir.IdentifiedStructType | None = None
    vtable_global: ir.GlobalVariable | None = None
    # Only methods defined by this class, not inherited ones.
    methods: dict[str, ir.Function] = field(default_factory=dict)

    @property
    def name(self) -> str:
        return self.decl.name

    def declared_method(self, method_name: str) -> MethodDecl | None:
        return next((method for method in self.decl.methods if method.name == method_name), None)

    def is_subclass_of(self, other: ClassInfo) -> bool:
        current: ClassInfo | None = self
        while current is not None:
            if current is other:
                return True
            current = current.base
        return False


def copy_class_infos(classes: dict[str, ClassInfo]) -> dict[str, ClassInfo]:
    """Return fresh records sharing declarations and layouts but no backend fields."""
    copies: dict[str, ClassInfo] = {}

    def copy_info(info: ClassInfo) -> ClassInfo:
        existing = copies.get(info.name)
        if existing is not None:
            return existing
        base = copy_info(info.base) if info.base is not None else None
        copied = ClassInfo(decl=info.decl, base=base, layout=info.layout.copy())
        copies[info.name] = copied
        return copied

    return {name: copy_info(info) for name, info in classes.items()}


def compute_layouts(program: Program) -> dict[str, ClassInfo]:
    decls_by_name: dict[str, ClassDecl] = {}
    for class_decl in program.classes:
        if class_decl.name in RESERVED_CLASS_NAMES:
            raise SemanticError(f"Class name '{class_decl.name}' is reserved", class_decl.span)
        if class_decl.name in decls_by_name:
            raise SemanticError(f"Duplicate class '{class_decl.name}'", class_decl.span)
        decls_by_name[class_decl.name] = class_decl

    resolved: dict[str, ClassInfo] = {}
    visiting: set[str] = set()

    def resolve_class(class_decl: ClassDecl) -> ClassInfo:
        existing = resolved.get(class_decl.name)
        if existing is not None:
            return existing

        if class_decl.name in visiting:
            raise SemanticError(f"Inheritance cycle detected at class '{class_decl.name}'", class_decl.span)

        visiting.add(class_decl.name)
        base: ClassInfo | None = None
        if class_decl.base_name is not None:
            base_decl = decls_by_name.get(class_decl.base_name)
            if base_decl is None:
                raise SemanticError(f"Unknown base class '{class_decl.base_name}'", class_decl.span)
            base = resolve_class(base_decl)

        info = ClassInfo(decl=class_decl, base=base, layout=_build_layout(class_decl, base))
        visiting.remove(class_decl.name)
        resolved[class_decl.name] = info

        logger.debug(
            "Computed class layout",
            extra={
                "class_name": info.name,
                "base_name": class_decl.base_name,
                "slots": list(info.layout.methods),
            },
        )
        return info

    for class_decl in program.classes:
        resolve_class(class_decl)

    return {class_decl.name: resolved[class_decl.name] for class_decl in program.classes}


def _build_layout(class_decl: ClassDecl, base: ClassInfo | None) -> ClassLayout:
    layout = base.layout.copy() if base is not None else ClassLayout()
    seen: set[str] = set()

    for method in class_decl.methods:
        if method.name in seen:
            raise SemanticError(f"Duplicate method '{class_decl.name}.{method.name}'", method.span)
        seen.add(method.name)

        inherited = method.name in layout.slot_of
        if inherited and base is not None:
            _check_return_type_matches(base, method)

        if method.attr == MethodAttr.VIRTUAL:
            if inherited:
                raise SemanticError(
                    f"Method '{method.name}' is already virtual in a base class; use 'override'",
                    method.span,
                )
            layout.append_slot(method.name)
        elif method.attr == MethodAttr.OVERRIDE:
            if not inherited:
                raise SemanticError(f"Method '{method.name}' marked override but no base method", method.span)
            # The slot index is inherited unchanged; only the implementation differs.

    return layout


def _check_return_type_matches(base: ClassInfo, method: MethodDecl) -> None:
    base_decl = find_method_decl(base, method.name)
    if base_decl is None:
        return
    if base_decl.return_type.name != method.return_type.name:
        raise SemanticError(
            f"Method '{method.name}' changes return type from "
            f"'{base_decl.return_type.name}' to '{method.return_type.name}'",
            method.return_type.span,
        )


def find_method_decl(info: ClassInfo, method_name: str) -> MethodDecl | None:
    current: ClassInfo | None = info
    while current is not None:
        method = current.declared_method(method_name)
        if method is not None:
            return method
        current = current.base
    return None


def implementation_owner(classes: dict[str, ClassInfo], class_name: str, method_name: str) -> ClassInfo:
    """Return the closest class, starting at ``class_name``, that defines ``method_name``."""
    info = classes.get(class_name)
    if info is None:
        raise SemanticError(f"Unknown class '{class_name}'")

    current: ClassInfo | None = info
    while current is not None:
        if current.declared_method(method_name) is not None:
            return current
        current = current.base

    raise SemanticError(f"No implementation for method '{method_name}' in class '{class_name}'")
