from .compiler import KoreanderCompiler, ParseEngine
from .exceptions import (
    CompileError, ConfigError, ContextTypeError, ExpectedOther, InvalidSyntax, KoreanderError,
    TemplateNotFound, UnexpectedDocType, UnexpectedEndOfInput, UnexpectedToken,
)
from .lexer import Lexer
from .template import CompiledTemplate, Koreander
from .token import Token, TokenKind
