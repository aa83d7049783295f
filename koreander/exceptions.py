from typing import Iterable, Optional

from .token import Token, TokenKind


class KoreanderError(ValueError):
    """Base class for every error raised by koreander."""


class CompileError(KoreanderError):
    """
    A template could not be compiled.
    The offending token, when there is one, is kept on the exception and its
    position is folded into the message.
    """

    def __init__(self, message: str, token: Optional[Token] = None):
        self.token = token
        if token is not None:
            message = f"Koreander Compile Error (Line {token.line}, Column {token.column}): {message}"
        else:
            message = f"Koreander Compile Error: {message}"
        super().__init__(message)


class UnexpectedToken(CompileError):
    def __init__(self, token: Token):
        super().__init__(f"Unexpected {token.kind.name} {token.content!r}.", token)


class ExpectedOther(CompileError):
    def __init__(self, token: Token, expected: Iterable[TokenKind]):
        self.expected = frozenset(expected)
        names = ", ".join(sorted(kind.name for kind in self.expected))
        super().__init__(f"Expected one of {{{names}}} but found {token.kind.name} {token.content!r}.", token)


class UnexpectedEndOfInput(CompileError):
    def __init__(self):
        super().__init__("Unexpected end of input.")


class UnexpectedDocType(CompileError):
    def __init__(self, token: Token):
        super().__init__(f"Unknown doctype {token.content!r}.", token)


class InvalidSyntax(CompileError):
    """Raised by the lexer for source it cannot split into tokens."""

    def __init__(self, message: str, line: int, column: int):
        self.line = line
        self.column = column
        super(CompileError, self).__init__(f"Koreander Compile Error (Line {line}, Column {column}): {message}")
        self.token = None


class TemplateNotFound(KoreanderError):
    pass


class ConfigError(KoreanderError):
    pass


class ContextTypeError(TypeError):
    pass
