from dataclasses import dataclass
from enum import Enum, auto


class TokenKind(Enum):
    DOC_TYPE_IDENTIFIER = auto()
    DOC_TYPE = auto()
    WHITE_SPACE = auto()
    ELEMENT_IDENTIFIER = auto()
    ELEMENT_ID_IDENTIFIER = auto()
    ELEMENT_CLASS_IDENTIFIER = auto()
    ATTRIBUTE_KEY = auto()
    ATTRIBUTE_CONNECTOR = auto()
    FILTER_IDENTIFIER = auto()
    STRING = auto()
    TEXT = auto()
    QUOTED_STRING = auto()
    EXPRESSION = auto()
    BRACKET_EXPRESSION = auto()
    CODE_IDENTIFIER = auto()
    LAMBDA_VARIABLES_IDENTIFIER = auto()
    LAMBDA_VARIABLES = auto()
    SILENT_CODE_IDENTIFIER = auto()
    COMMENT_IDENTIFIER = auto()
    COMMENT = auto()


@dataclass(frozen=True)
class Token:
    """A single lexed unit of template source. Line and column are 1-based, offset is 0-based."""
    kind: TokenKind
    content: str
    line: int = 0
    column: int = 0
    offset: int = 0
