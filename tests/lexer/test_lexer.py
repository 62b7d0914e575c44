import pytest

from vtlang.errors import LexerError
from vtlang.lexer import lex
from vtlang.tokens import TokenKind, describe_token_kind


def test_lex_class_header_and_keywords() -> None:
    source = "class Dog extends Animal { override speak(): String { return \"Woof\"; } }"
    kinds = [token.kind for token in lex(source)]
    assert kinds == [
        TokenKind.CLASS,
        TokenKind.IDENT,
        TokenKind.EXTENDS,
        TokenKind.IDENT,
        TokenKind.LBRACE,
        TokenKind.OVERRIDE,
        TokenKind.IDENT,
        TokenKind.LPAREN,
        TokenKind.RPAREN,
        TokenKind.COLON,
        TokenKind.IDENT,
        TokenKind.LBRACE,
        TokenKind.RETURN,
        TokenKind.STRING_LIT,
        TokenKind.SEMICOLON,
        TokenKind.RBRACE,
        TokenKind.RBRACE,
        TokenKind.EOF,
    ]


def test_lex_all_keywords_and_punctuation() -> None:
    source = "class extends function virtual override var return new print { } ( ) : ; . , ="
    kinds = [token.kind for token in lex(source)]
    assert kinds == [
        TokenKind.CLASS,
        TokenKind.EXTENDS,
        TokenKind.FUNCTION,
        TokenKind.VIRTUAL,
        TokenKind.OVERRIDE,
        TokenKind.VAR,
        TokenKind.RETURN,
        TokenKind.NEW,
        TokenKind.PRINT,
        TokenKind.LBRACE,
        TokenKind.RBRACE,
        TokenKind.LPAREN,
        TokenKind.RPAREN,
        TokenKind.COLON,
        TokenKind.SEMICOLON,
        TokenKind.DOT,
        TokenKind.COMMA,
        TokenKind.ASSIGN,
        TokenKind.EOF,
    ]


def test_lex_keywords_are_case_sensitive_and_exact() -> None:
    tokens = lex("Class classy _new new1 print")
    assert [(t.kind, t.text) for t in tokens] == [
        (TokenKind.IDENT, "Class"),
        (TokenKind.IDENT, "classy"),
        (TokenKind.IDENT, "_new"),
        (TokenKind.IDENT, "new1"),
        (TokenKind.PRINT, "print"),
        (TokenKind.EOF, ""),
    ]


def test_lex_skips_whitespace_and_line_comments() -> None:
    source = "// first\nvar x: A = new A(); // second\n"
    tokens = lex(source)
    assert [t.kind for t in tokens] == [
        TokenKind.VAR,
        TokenKind.IDENT,
        TokenKind.COLON,
        TokenKind.IDENT,
        TokenKind.ASSIGN,
        TokenKind.NEW,
        TokenKind.IDENT,
        TokenKind.LPAREN,
        TokenKind.RPAREN,
        TokenKind.SEMICOLON,
        TokenKind.EOF,
    ]


def test_lex_comment_running_to_end_of_input() -> None:
    tokens = lex("return 1; // no trailing newline")
    assert [t.kind for t in tokens] == [TokenKind.RETURN, TokenKind.INT_LIT, TokenKind.SEMICOLON, TokenKind.EOF]


@pytest.mark.parametrize("source", ["", "   \n\t", "// only a comment"])
def test_lex_empty_inputs_produce_single_eof(source: str) -> None:
    tokens = lex(source)
    assert len(tokens) == 1
    assert tokens[0].kind == TokenKind.EOF


def test_lex_integer_literal_is_maximal_digit_run() -> None:
    tokens = lex("0123 45abc")
    assert [(t.kind, t.text) for t in tokens[:3]] == [
        (TokenKind.INT_LIT, "0123"),
        (TokenKind.INT_LIT, "45"),
        (TokenKind.IDENT, "abc"),
    ]


def test_lex_string_literal_decodes_escapes() -> None:
    tokens = lex(r'"a\nb\tc\rd\"e\\f"')
    assert tokens[0].kind == TokenKind.STRING_LIT
    assert tokens[0].text == 'a\nb\tc\rd"e\\f'


def test_lex_string_literal_passes_unknown_escape_through() -> None:
    tokens = lex(r'"\q\0"')
    assert tokens[0].text == "q0"


def test_lex_string_literal_may_span_lines() -> None:
    tokens = lex('"one\ntwo" x')
    assert tokens[0].text == "one\ntwo"
    assert tokens[1].span.start.line == 2
    assert tokens[1].span.start.column == 6


def test_lex_token_span_line_and_column() -> None:
    source = "\n\n  function main(): Int { return 0; }"
    tokens = lex(source, source_path="demo.vt")
    fn_token = tokens[0]
    assert fn_token.kind == TokenKind.FUNCTION
    assert fn_token.span.start.path == "demo.vt"
    assert fn_token.span.start.line == 3
    assert fn_token.span.start.column == 3
    assert fn_token.span.end.line == 3
    assert fn_token.span.end.column == 11


def test_lex_string_span_covers_quotes() -> None:
    tokens = lex('  "hi"')
    span = tokens[0].span
    assert (span.start.column, span.end.column) == (3, 7)
    assert (span.start.offset, span.end.offset) == (2, 6)


def test_lex_eof_span_is_empty_at_end_of_input() -> None:
    tokens = lex("a\nbc")
    eof = tokens[-1]
    assert eof.kind == TokenKind.EOF
    assert eof.span.start == eof.span.end
    assert (eof.span.start.line, eof.span.start.column) == (2, 3)


def test_lex_raises_on_unterminated_string() -> None:
    with pytest.raises(LexerError) as error:
        lex('print("unterminated')

    assert "Unterminated string literal" in str(error.value)


def test_lex_raises_on_backslash_at_end_of_input() -> None:
    with pytest.raises(LexerError, match="Unterminated string literal"):
        lex('"abc\\')


@pytest.mark.parametrize("source", ["var x = 1 + 2;", "a # b", "café"])
def test_lex_raises_on_unexpected_character(source: str) -> None:
    with pytest.raises(LexerError) as error:
        lex(source, source_path="bad.vt")

    assert "Unexpected character" in error.value.message
    assert error.value.span is not None
    assert "bad.vt:1:" in str(error.value)


def test_describe_token_kind_uses_source_spelling() -> None:
    assert describe_token_kind(TokenKind.EOF) == "<eof>"
    assert describe_token_kind(TokenKind.IDENT) == "identifier"
    assert describe_token_kind(TokenKind.INT_LIT) == "number"
    assert describe_token_kind(TokenKind.STRING_LIT) == "string"
    assert describe_token_kind(TokenKind.OVERRIDE) == "override"
    assert describe_token_kind(TokenKind.SEMICOLON) == ";"
