from __future__ import annotations

from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from vtlang.lexer import SourceSpan


class CompileError(ValueError):
    """Base class for every failure that stops a compilation."""

    def __init__(self, message: str, span: SourceSpan | None = None):
        if span is not None:
            super().__init__(f"{message} at {span.start.path}:{span.start.line}:{span.start.column}")
        else:
            super().__init__(message)
        self.message = message
        self.span = span


class LexerError(CompileError):
    pass


class ParserError(CompileError):
    pass


class SemanticError(CompileError):
    pass


class BackendVerificationError(CompileError):
    """The emitted module failed structural validation.

    This points at a defect in the lowering engine rather than in the input
    program, but it is still reported to the caller with the verifier's text.
    """

    def __init__(self, verifier_message: str):
        super().__init__(f"Invalid module generated: {verifier_message.strip()}")
        self.verifier_message = verifier_message
