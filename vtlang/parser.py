from __future__ import annotations

from dataclasses import dataclass

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
    TypeRef,
    VarDeclStmt,
    VarExpr,
)
from vtlang.errors import ParserError
from vtlang.lexer import SourceSpan, Token
from vtlang.tokens import TokenKind, describe_token_kind


INT_LITERAL_MAX = 2**31 - 1


@dataclass
class TokenStream:
    tokens: list[Token]
    index: int = 0

    def __post_init__(self) -> None:
        if not self.tokens:
            raise ValueError("TokenStream requires at least one token (EOF)")

    def is_at_end(self) -> bool:
        return self.peek().kind == TokenKind.EOF

    def peek(self, offset: int = 0) -> Token:
        target = self.index + offset
        if target < 0:
            return self.tokens[0]
        if target >= len(self.tokens):
            return self.tokens[-1]
        return self.tokens[target]

    def previous(self) -> Token:
        return self.peek(-1)

    def advance(self) -> Token:
        current = self.peek()
        if not self.is_at_end():
            self.index += 1
        return current

    def check(self, kind: TokenKind) -> bool:
        return self.peek().kind == kind

    def match(self, *kinds: TokenKind) -> bool:
        if self.peek().kind in kinds:
            self.advance()
            return True
        return False

    def expect(self, kind: TokenKind, what: str) -> Token:
        if self.check(kind):
            return self.advance()
        raise _unexpected(what, self.peek())


def _unexpected(what: str, token: Token) -> ParserError:
    return ParserError(f"Expected {what}, found {describe_token_kind(token.kind)}", token.span)


def parse(tokens: list[Token]) -> Program:
    stream = TokenStream(tokens)
    classes: list[ClassDecl] = []
    functions: list[FunctionDecl] = []

    start = stream.peek().span.start

    while not stream.is_at_end():
        if stream.check(TokenKind.CLASS):
            classes.append(_parse_class_decl(stream))
            continue

        if stream.check(TokenKind.FUNCTION):
            functions.append(_parse_function_decl(stream))
            continue

        raise _unexpected("'class' or 'function'", stream.peek())

    end = stream.peek().span.end
    return Program(classes=classes, functions=functions, span=SourceSpan(start=start, end=end))


def parse_expression(tokens: list[Token]) -> Expression:
    stream = TokenStream(tokens)
    expr = _parse_expression(stream)
    stream.expect(TokenKind.EOF, "end of input")
    return expr


def _parse_class_decl(stream: TokenStream) -> ClassDecl:
    class_token = stream.expect(TokenKind.CLASS, "'class'")
    name_token = stream.expect(TokenKind.IDENT, "class name")

    base_name: str | None = None
    if stream.match(TokenKind.EXTENDS):
        base_name = stream.expect(TokenKind.IDENT, "base class name").text

    stream.expect(TokenKind.LBRACE, "'{'")
    methods: list[MethodDecl] = []
    while not stream.check(TokenKind.RBRACE):
        methods.append(_parse_method_decl(stream))

    rbrace = stream.expect(TokenKind.RBRACE, "'}'")
    return ClassDecl(
        name=name_token.text,
        base_name=base_name,
        methods=methods,
        span=SourceSpan(start=class_token.span.start, end=rbrace.span.end),
    )


def _parse_method_decl(stream: TokenStream) -> MethodDecl:
    start_token = stream.peek()
    attr = MethodAttr.NONE
    if stream.match(TokenKind.VIRTUAL):
        attr = MethodAttr.VIRTUAL
    elif stream.match(TokenKind.OVERRIDE):
        attr = MethodAttr.OVERRIDE

    name = stream.expect(TokenKind.IDENT, "method name")
    return_type = _parse_signature_tail(stream)
    body, rbrace = _parse_body(stream)
    return MethodDecl(
        attr=attr,
        name=name.text,
        return_type=return_type,
        body=body,
        span=SourceSpan(start=start_token.span.start, end=rbrace.span.end),
    )


def _parse_function_decl(stream: TokenStream) -> FunctionDecl:
    fn_token = stream.expect(TokenKind.FUNCTION, "'function'")
    name = stream.expect(TokenKind.IDENT, "function name")
    return_type = _parse_signature_tail(stream)
    body, rbrace = _parse_body(stream)
    return FunctionDecl(
        name=name.text,
        return_type=return_type,
        body=body,
        span=SourceSpan(start=fn_token.span.start, end=rbrace.span.end),
    )


def _parse_signature_tail(stream: TokenStream) -> TypeRef:
    stream.expect(TokenKind.LPAREN, "'('")
    stream.expect(TokenKind.RPAREN, "')'")
    stream.expect(TokenKind.COLON, "':'")
    return _parse_type_ref(stream)


def _parse_body(stream: TokenStream) -> tuple[list[Statement], Token]:
    stream.expect(TokenKind.LBRACE, "'{'")
    statements: list[Statement] = []
    while not stream.check(TokenKind.RBRACE):
        statements.append(_parse_statement(stream))
    rbrace = stream.expect(TokenKind.RBRACE, "'}'")
    return statements, rbrace


def _parse_type_ref(stream: TokenStream) -> TypeRef:
    token = stream.expect(TokenKind.IDENT, "type name")
    return TypeRef(name=token.text, span=token.span)


def _parse_statement(stream: TokenStream) -> Statement:
    if stream.check(TokenKind.VAR):
        return _parse_var_decl(stream)
    if stream.check(TokenKind.PRINT):
        return _parse_print(stream)
    if stream.check(TokenKind.RETURN):
        return _parse_return(stream)
    raise _unexpected("statement", stream.peek())


def _parse_var_decl(stream: TokenStream) -> VarDeclStmt:
    var_token = stream.expect(TokenKind.VAR, "'var'")
    name = stream.expect(TokenKind.IDENT, "variable name")
    stream.expect(TokenKind.COLON, "':'")
    type_ref = _parse_type_ref(stream)
    stream.expect(TokenKind.ASSIGN, "'='")
    initializer = _parse_new_expr(stream)
    semicolon = stream.expect(TokenKind.SEMICOLON, "';'")
    return VarDeclStmt(
        name=name.text,
        type_ref=type_ref,
        initializer=initializer,
        span=SourceSpan(start=var_token.span.start, end=semicolon.span.end),
    )


def _parse_print(stream: TokenStream) -> PrintStmt:
    print_token = stream.expect(TokenKind.PRINT, "'print'")
    stream.expect(TokenKind.LPAREN, "'('")
    value = _parse_expression(stream)
    stream.expect(TokenKind.RPAREN, "')'")
    semicolon = stream.expect(TokenKind.SEMICOLON, "';'")
    return PrintStmt(value=value, span=SourceSpan(start=print_token.span.start, end=semicolon.span.end))


def _parse_return(stream: TokenStream) -> ReturnStmt:
    return_token = stream.expect(TokenKind.RETURN, "'return'")
    value = _parse_expression(stream)
    semicolon = stream.expect(TokenKind.SEMICOLON, "';'")
    return ReturnStmt(value=value, span=SourceSpan(start=return_token.span.start, end=semicolon.span.end))


def _parse_expression(stream: TokenStream) -> Expression:
    token = stream.peek()

    if token.kind == TokenKind.STRING_LIT:
        stream.advance()
        return StringExpr(value=token.text, span=token.span)

    if token.kind == TokenKind.INT_LIT:
        stream.advance()
        value = int(token.text)
        if value > INT_LITERAL_MAX:
            raise ParserError(f"Integer literal out of range: {token.text}", token.span)
        return IntExpr(value=value, span=token.span)

    if token.kind == TokenKind.NEW:
        return _parse_new_expr(stream)

    if token.kind == TokenKind.IDENT:
        return _parse_var_or_method_call(stream)

    raise _unexpected("expression", token)


def _parse_new_expr(stream: TokenStream) -> NewExpr:
    new_token = stream.expect(TokenKind.NEW, "'new'")
    class_name = stream.expect(TokenKind.IDENT, "class name")
    stream.expect(TokenKind.LPAREN, "'('")
    rparen = stream.expect(TokenKind.RPAREN, "')'")
    return NewExpr(class_name=class_name.text, span=SourceSpan(start=new_token.span.start, end=rparen.span.end))


def _parse_var_or_method_call(stream: TokenStream) -> Expression:
    ident = stream.expect(TokenKind.IDENT, "identifier")
    receiver = VarExpr(name=ident.text, span=ident.span)
    if not stream.match(TokenKind.DOT):
        return receiver

    method_name = stream.expect(TokenKind.IDENT, "method name")
    stream.expect(TokenKind.LPAREN, "'('")
    rparen = stream.expect(TokenKind.RPAREN, "')'")
    return MethodCallExpr(
        receiver=receiver,
        method_name=method_name.text,
        span=SourceSpan(start=ident.span.start, end=rparen.span.end),
    )
