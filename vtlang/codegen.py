from __future__ import annotations

import logging

from llvmlite import binding, ir

from vtlang.annotations import AnnotationTable
from vtlang.ast_nodes import (
    Expression,
    FunctionDecl,
    IntExpr,
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
from vtlang.codegen_model import (
    I8,
    I8_PTR,
    I32,
    INT_TYPE_NAME,
    PUTS_SYMBOL,
    SOURCE_METADATA_KIND,
    STRING_TYPE_NAME,
    EmitContext,
    LoweredModule,
    LoweringOptions,
    ScopeVar,
    TypedValue,
    llvm_type_for,
    method_symbol,
    object_type_name,
    vtable_global_name,
    vtable_type_name,
)
from vtlang.errors import BackendVerificationError, SemanticError
from vtlang.layout import ClassInfo, compute_layouts, copy_class_infos, find_method_decl, implementation_owner
from vtlang.lexer import SourceSpan


logger = logging.getLogger(__name__)


def _i32(value: int) -> ir.Constant:
    return ir.Constant(I32, value)


def _encode_string_literal(value: str) -> bytes:
    # Source text is read as single-byte characters; round-trip them unchanged.
    try:
        return value.encode("latin-1")
    except UnicodeEncodeError:
        return value.encode("utf-8")


class CodeGenerator:
    def __init__(
        self,
        program: Program,
        classes: dict[str, ClassInfo],
        options: LoweringOptions | None = None,
    ) -> None:
        self.program = program
        # Private copies: the backend fields are filled per module.
        self.classes = copy_class_infos(classes)
        self.options = options if options is not None else LoweringOptions()
        self.context = ir.Context()
        self.module = ir.Module(name=self.options.module_name, context=self.context)
        self.annotations = AnnotationTable(self.options.source_path, self.options.source_text)
        self.string_literals: dict[str, ir.GlobalVariable] = {}
        self.functions: dict[str, ir.Function] = {}
        self.builder: ir.IRBuilder | None = None

    def generate(self) -> LoweredModule:
        self._declare_types()
        self._emit_methods()
        self._emit_vtables()
        self._emit_functions()
        self._puts()

        if self.options.annotate:
            self.annotations.attach_metadata(self.module, SOURCE_METADATA_KIND)
        if self.options.verify:
            verify_module(self.module)

        logger.debug(
            "Lowered program",
            extra={
                "module_name": self.options.module_name,
                "class_count": len(self.classes),
                "function_count": len(self.functions),
            },
        )
        return LoweredModule(module=self.module, classes=self.classes, annotations=self.annotations)

    # -- phase 1 -----------------------------------------------------------

    def _declare_types(self) -> None:
        for info in self.classes.values():
            info.vtable_type = self.context.get_identified_type(vtable_type_name(info.name))
            info.object_type = self.context.get_identified_type(object_type_name(info.name))

        # Bodies are set only once every opaque type exists.
        for info in self.classes.values():
            info.vtable_type.set_body(*([I8_PTR] * info.layout.slot_count))
            info.object_type.set_body(info.vtable_type.as_pointer())

            vtable_global = ir.GlobalVariable(self.module, info.vtable_type, name=vtable_global_name(info.name))
            vtable_global.linkage = "private"
            vtable_global.global_constant = True
            info.vtable_global = vtable_global

    # -- phase 2 -----------------------------------------------------------

    def _emit_methods(self) -> None:
        for info in self.classes.values():
            for method in info.decl.methods:
                fn_type = self._method_function_type(method.return_type.name, info)
                fn = ir.Function(self.module, fn_type, name=method_symbol(info.name, method.name))
                fn.args[0].name = "this"
                info.methods[method.name] = fn
                self._emit_body(fn, method)

    def _method_function_type(self, return_type_name: str, info: ClassInfo) -> ir.FunctionType:
        return ir.FunctionType(llvm_type_for(return_type_name), [info.object_type.as_pointer()])

    def _emit_body(self, fn: ir.Function, decl: MethodDecl | FunctionDecl) -> None:
        entry = fn.append_basic_block(name="entry")
        self.builder = ir.IRBuilder(entry)
        ctx = EmitContext(fn_name=fn.name, return_type_name=decl.return_type.name)

        for stmt in decl.body:
            self._emit_statement(stmt, ctx)
            if self.builder.block.is_terminated:
                break

        if not self.builder.block.is_terminated:
            if ctx.return_type_name == INT_TYPE_NAME:
                self.builder.ret(_i32(0))
            else:
                self.builder.ret(ir.Constant(llvm_type_for(ctx.return_type_name), ir.Undefined))

        self.builder = None

    # -- phase 3 -----------------------------------------------------------

    def _emit_vtables(self) -> None:
        for info in self.classes.values():
            if info.layout.slot_count == 0:
                info.vtable_global.initializer = ir.Constant(info.vtable_type, ir.Undefined)
                continue

            slots: list[ir.Constant] = []
            for method_name in info.layout.methods:
                owner = implementation_owner(self.classes, info.name, method_name)
                slots.append(owner.methods[method_name].bitcast(I8_PTR))
            info.vtable_global.initializer = ir.Constant(info.vtable_type, slots)

            logger.debug(
                "Emitted vtable",
                extra={"class_name": info.name, "slots": list(info.layout.methods)},
            )

    # -- phase 4 -----------------------------------------------------------

    def _emit_functions(self) -> None:
        for decl in self.program.functions:
            if decl.name in self.functions:
                raise SemanticError(f"Duplicate function '{decl.name}'", decl.span)
            if decl.name == PUTS_SYMBOL:
                raise SemanticError(f"Function name '{decl.name}' is reserved", decl.span)
            fn_type = ir.FunctionType(llvm_type_for(decl.return_type.name), [])
            fn = ir.Function(self.module, fn_type, name=decl.name)
            self.functions[decl.name] = fn
            self._emit_body(fn, decl)

    # -- phase 5 -----------------------------------------------------------

    def _puts(self) -> ir.Function:
        existing = self.module.globals.get(PUTS_SYMBOL)
        if existing is not None:
            return existing
        fn_type = ir.FunctionType(I32, [I8_PTR])
        return ir.Function(self.module, fn_type, name=PUTS_SYMBOL)

    # -- statements --------------------------------------------------------

    def _emit_statement(self, stmt: Statement, ctx: EmitContext) -> None:
        builder = self.builder

        if isinstance(stmt, ReturnStmt):
            result = self._emit_expr(stmt.value, ctx)
            if not self._is_assignable(result.type_name, ctx.return_type_name):
                raise SemanticError(
                    f"Cannot return '{result.type_name}' from function returning '{ctx.return_type_name}'",
                    stmt.value.span,
                )
            self._annotate(builder.ret(result.value), stmt.span, "return")
            return

        if isinstance(stmt, PrintStmt):
            result = self._emit_expr(stmt.value, ctx)
            if result.type_name != STRING_TYPE_NAME:
                raise SemanticError(f"print expects a String value, got '{result.type_name}'", stmt.value.span)
            self._annotate(builder.call(self._puts(), [result.value]), stmt.span, "print")
            return

        if isinstance(stmt, VarDeclStmt):
            address = builder.alloca(I8_PTR, name=f"{stmt.name}.addr")
            self._annotate(address, stmt.span, "alloca var")
            initializer = self._emit_expr(stmt.initializer, ctx)
            self._check_initializer(stmt, initializer)
            self._annotate(builder.store(initializer.value, address), stmt.span, "store var")
            ctx.bind(stmt.name, ScopeVar(address=address, type_name=stmt.type_ref.name))
            return

        raise NotImplementedError(f"statement codegen not implemented for {type(stmt).__name__}")

    def _is_assignable(self, actual_type_name: str, declared_type_name: str) -> bool:
        declared = self.classes.get(declared_type_name)
        actual = self.classes.get(actual_type_name)
        if declared is None or actual is None:
            return actual_type_name == declared_type_name and declared_type_name in (INT_TYPE_NAME, STRING_TYPE_NAME)
        return actual.is_subclass_of(declared)

    def _check_initializer(self, stmt: VarDeclStmt, initializer: TypedValue) -> None:
        if not self._is_assignable(initializer.type_name, stmt.type_ref.name):
            raise SemanticError(
                f"Cannot initialize '{stmt.name}' of type '{stmt.type_ref.name}' with '{initializer.type_name}'",
                stmt.span,
            )

    # -- expressions -------------------------------------------------------

    def _emit_expr(self, expr: Expression, ctx: EmitContext) -> TypedValue:
        builder = self.builder

        if isinstance(expr, StringExpr):
            return TypedValue(self._string_constant(expr.value), STRING_TYPE_NAME)

        if isinstance(expr, IntExpr):
            return TypedValue(_i32(expr.value), INT_TYPE_NAME)

        if isinstance(expr, VarExpr):
            var = ctx.lookup(expr.name, expr.span)
            loaded = builder.load(var.address, name=f"{expr.name}.val")
            self._annotate(loaded, expr.span, "load var")
            return TypedValue(loaded, var.type_name)

        if isinstance(expr, NewExpr):
            return self._emit_new_expr(expr)

        if isinstance(expr, MethodCallExpr):
            return self._emit_method_call_expr(expr, ctx)

        raise NotImplementedError(f"expression codegen not implemented for {type(expr).__name__}")

    def _string_constant(self, value: str) -> ir.Constant:
        global_var = self.string_literals.get(value)
        if global_var is None:
            data = bytearray(_encode_string_literal(value) + b"\0")
            array_type = ir.ArrayType(I8, len(data))
            global_var = ir.GlobalVariable(self.module, array_type, name=f".str.{len(self.string_literals)}")
            global_var.linkage = "private"
            global_var.global_constant = True
            global_var.unnamed_addr = True
            global_var.initializer = ir.Constant(array_type, data)
            self.string_literals[value] = global_var
        return global_var.gep([_i32(0), _i32(0)])

    def _emit_new_expr(self, expr: NewExpr) -> TypedValue:
        builder = self.builder
        info = self._require_class(expr.class_name, expr.span)

        obj = builder.alloca(info.object_type, name=f"{info.name}.obj")
        self._annotate(obj, expr.span, "alloca object")
        vptr_addr = builder.gep(obj, [_i32(0), _i32(0)], inbounds=True, name=f"{info.name}.vptr.addr")
        self._annotate(vptr_addr, expr.span, "vptr addr")
        self._annotate(builder.store(info.vtable_global, vptr_addr), expr.span, "store vptr")

        return TypedValue(builder.bitcast(obj, I8_PTR, name=f"{info.name}.ref"), info.name)

    def _emit_method_call_expr(self, expr: MethodCallExpr, ctx: EmitContext) -> TypedValue:
        receiver = expr.receiver
        if not isinstance(receiver, VarExpr):
            raise SemanticError("Unsupported method receiver expression", expr.span)

        var = ctx.lookup(receiver.name, receiver.span)
        this_ref = self.builder.load(var.address, name=f"{receiver.name}.val")
        self._annotate(this_ref, expr.span, "load this")
        return self._emit_virtual_call(this_ref, var.type_name, expr.method_name, expr.span)

    def _emit_virtual_call(
        self,
        this_ref: ir.Value,
        static_class_name: str,
        method_name: str,
        span: SourceSpan,
    ) -> TypedValue:
        """Call ``method_name`` through the vtable of the object in ``this_ref``.

        The slot index comes from the static class; which function sits in that
        slot depends on the vtable stored into the object by ``new``.
        """
        builder = self.builder
        info = self._require_class(static_class_name, span)
        slot = info.layout.slot_of.get(method_name)
        if slot is None:
            raise SemanticError(f"No virtual method '{method_name}' in class '{static_class_name}'", span)
        return_type_name = find_method_decl(info, method_name).return_type.name

        this_ptr = builder.bitcast(this_ref, info.object_type.as_pointer(), name=f"{static_class_name}.this")
        vptr_addr = builder.gep(this_ptr, [_i32(0), _i32(0)], inbounds=True, name=f"{static_class_name}.vptr.addr")
        self._annotate(vptr_addr, span, "vptr addr")
        vptr = builder.load(vptr_addr, name=f"{static_class_name}.vptr")
        self._annotate(vptr, span, "load vptr")

        slot_addr = builder.gep(vptr, [_i32(0), _i32(slot)], inbounds=True, name=f"{method_name}.slot.addr")
        self._annotate(slot_addr, span, "slot addr")
        fn_raw = builder.load(slot_addr, name=f"{method_name}.slot")
        self._annotate(fn_raw, span, "load slot")

        fn_type = self._method_function_type(return_type_name, info)
        fn_ptr = builder.bitcast(fn_raw, fn_type.as_pointer(), name=f"{method_name}.fn")
        self._annotate(fn_ptr, span, "bitcast fn")
        call = builder.call(fn_ptr, [this_ptr], name=f"{method_name}.call")
        self._annotate(call, span, "vcall")
        return TypedValue(call, return_type_name)

    # -- helpers -----------------------------------------------------------

    def _require_class(self, name: str, span: SourceSpan) -> ClassInfo:
        info = self.classes.get(name)
        if info is None:
            raise SemanticError(f"Unknown class '{name}'", span)
        return info

    def _annotate(self, instr: ir.Instruction, span: SourceSpan, kind: str) -> None:
        self.annotations.record(instr, span, kind)


def verify_module(module: ir.Module) -> None:
    context = binding.create_context()
    try:
        parsed = binding.parse_assembly(str(module), context=context)
        parsed.verify()
    except RuntimeError as error:
        raise BackendVerificationError(str(error)) from error


def lower(
    program: Program,
    classes: dict[str, ClassInfo] | None = None,
    options: LoweringOptions | None = None,
) -> LoweredModule:
    if classes is None:
        classes = compute_layouts(program)
    return CodeGenerator(program, classes, options).generate()
