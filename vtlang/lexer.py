from __future__ import annotations

import string
from dataclasses import dataclass

from vtlang.errors import LexerError
from vtlang.tokens import KEYWORDS, ONE_CHAR_TOKENS, TokenKind


WHITESPACE = " \t\r\n\v\f"
IDENT_START = string.ascii_letters + "_"
IDENT_PART = IDENT_START + string.digits

STRING_ESCAPES: dict[str, str] = {
    "n": "\n",
    "t": "\t",
    "r": "\r",
    '"': '"',
    "\\": "\\",
}


@dataclass(frozen=True)
class SourcePos:
    path: str
    offset: int
    line: int
    column: int


@dataclass(frozen=True)
class SourceSpan:
    start: SourcePos
    end: SourcePos


@dataclass(frozen=True)
class Token:
    kind: TokenKind
    text: str
    span: SourceSpan


class Lexer:
    def __init__(self, source: str, source_path: str = "<memory>"):
        self.source = source
        self.source_path = source_path
        self.length = len(source)
        self.index = 0
        self.line = 1
        self.column = 1

    def lex(self) -> list[Token]:
        tokens: list[Token] = []

        while True:
            self._skip_whitespace_and_comments()
            if self._is_at_end():
                break

            start = self._pos()
            ch = self._peek()

            if ch in IDENT_START:
                tokens.append(self._read_identifier(start))
                continue

            if ch in string.digits:
                tokens.append(self._read_number(start))
                continue

            if ch == '"':
                tokens.append(self._read_string(start))
                continue

            token_kind = ONE_CHAR_TOKENS.get(ch)
            if token_kind is not None:
                self._advance()
                tokens.append(Token(token_kind, ch, SourceSpan(start, self._pos())))
                continue

            raise LexerError(f"Unexpected character {ch!r}", SourceSpan(start, start))

        eof_pos = self._pos()
        tokens.append(Token(TokenKind.EOF, "", SourceSpan(eof_pos, eof_pos)))
        return tokens

    def _skip_whitespace_and_comments(self) -> None:
        while not self._is_at_end():
            ch = self._peek()
            if ch in WHITESPACE:
                self._advance()
                continue

            if ch == "/" and self._peek_next() == "/":
                while not self._is_at_end() and self._peek() != "\n":
                    self._advance()
                continue

            return

    def _read_identifier(self, start: SourcePos) -> Token:
        while not self._is_at_end() and self._peek() in IDENT_PART:
            self._advance()

        text = self.source[start.offset : self.index]
        kind = KEYWORDS.get(text, TokenKind.IDENT)
        return Token(kind, text, SourceSpan(start, self._pos()))

    def _read_number(self, start: SourcePos) -> Token:
        while not self._is_at_end() and self._peek() in string.digits:
            self._advance()

        text = self.source[start.offset : self.index]
        return Token(TokenKind.INT_LIT, text, SourceSpan(start, self._pos()))

    def _read_string(self, start: SourcePos) -> Token:
        self._advance()
        chars: list[str] = []

        while not self._is_at_end():
            ch = self._advance()

            if ch == '"':
                return Token(TokenKind.STRING_LIT, "".join(chars), SourceSpan(start, self._pos()))

            if ch == "\\":
                if self._is_at_end():
                    break
                esc = self._advance()
                # Unknown escapes keep the escaped character as-is.
                chars.append(STRING_ESCAPES.get(esc, esc))
                continue

            chars.append(ch)

        raise LexerError("Unterminated string literal", SourceSpan(start, self._pos()))

    def _is_at_end(self) -> bool:
        return self.index >= self.length

    def _peek(self) -> str:
        return "\0" if self._is_at_end() else self.source[self.index]

    def _peek_next(self) -> str:
        next_index = self.index + 1
        return "\0" if next_index >= self.length else self.source[next_index]

    def _advance(self) -> str:
        ch = self.source[self.index]
        self.index += 1
        if ch == "\n":
            self.line += 1
            self.column = 1
        else:
            self.column += 1
        return ch

    def _pos(self) -> SourcePos:
        return SourcePos(path=self.source_path, offset=self.index, line=self.line, column=self.column)


def lex(source: str, source_path: str = "<memory>") -> list[Token]:
    return Lexer(source, source_path=source_path).lex()
