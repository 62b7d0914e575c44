from __future__ import annotations

from enum import Enum


class TokenKind(str, Enum):
    EOF = "EOF"

    IDENT = "IDENT"
    INT_LIT = "INT_LIT"
    STRING_LIT = "STRING_LIT"

    CLASS = "CLASS"
    EXTENDS = "EXTENDS"
    FUNCTION = "FUNCTION"
    VIRTUAL = "VIRTUAL"
    OVERRIDE = "OVERRIDE"
    VAR = "VAR"
    RETURN = "RETURN"
    NEW = "NEW"
    PRINT = "PRINT"

    LBRACE = "LBRACE"
    RBRACE = "RBRACE"
    LPAREN = "LPAREN"
    RPAREN = "RPAREN"
    COLON = "COLON"
    SEMICOLON = "SEMICOLON"
    DOT = "DOT"
    COMMA = "COMMA"
    ASSIGN = "ASSIGN"


KEYWORDS: dict[str, TokenKind] = {
    "class": TokenKind.CLASS,
    "extends": TokenKind.EXTENDS,
    "function": TokenKind.FUNCTION,
    "virtual": TokenKind.VIRTUAL,
    "override": TokenKind.OVERRIDE,
    "var": TokenKind.VAR,
    "return": TokenKind.RETURN,
    "new": TokenKind.NEW,
    "print": TokenKind.PRINT,
}


ONE_CHAR_TOKENS: dict[str, TokenKind] = {
    "{": TokenKind.LBRACE,
    "}": TokenKind.RBRACE,
    "(": TokenKind.LPAREN,
    ")": TokenKind.RPAREN,
    ":": TokenKind.COLON,
    ";": TokenKind.SEMICOLON,
    ".": TokenKind.DOT,
    ",": TokenKind.COMMA,
    "=": TokenKind.ASSIGN,
}


_KIND_DESCRIPTIONS: dict[TokenKind, str] = {
    TokenKind.EOF: "<eof>",
    TokenKind.IDENT: "identifier",
    TokenKind.INT_LIT: "number",
    TokenKind.STRING_LIT: "string",
    **{kind: text for text, kind in KEYWORDS.items()},
    **{kind: text for text, kind in ONE_CHAR_TOKENS.items()},
}


def describe_token_kind(kind: TokenKind) -> str:
    return _KIND_DESCRIPTIONS[kind]
