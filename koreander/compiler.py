import logging
from dataclasses import dataclass, field
from typing import List, Optional, Sequence, Set

from .exceptions import ExpectedOther, UnexpectedDocType, UnexpectedEndOfInput, UnexpectedToken
from .expressions import assigned_names, expression_code, literal_body
from .lexer import Lexer
from .lines import (
    ESCAPE_NAME, OUTPUT_NAME,
    ControlLine, ExpressionLine, HtmlSafeLine, OutputLine, TemplateLine,
    output_expression, reset_depth, statement_form,
)
from .token import Token, TokenKind

logger = logging.getLogger(__name__)

INDENT = "    "
BODY_LEVEL = 1  # statements inside the generated render function

DOC_TYPES = {
    None: '<!DOCTYPE html PUBLIC "-//W3C//DTD XHTML 1.0 Transitional//EN" "http://www.w3.org/TR/xhtml1/DTD/xhtml1-transitional.dtd">',
    "Strict": '<!DOCTYPE html PUBLIC "-//W3C//DTD XHTML 1.0 Strict//EN" "http://www.w3.org/TR/xhtml1/DTD/xhtml1-strict.dtd">',
    "Frameset": '<!DOCTYPE html PUBLIC "-//W3C//DTD XHTML 1.0 Frameset//EN" "http://www.w3.org/TR/xhtml1/DTD/xhtml1-frameset.dtd">',
    "5": '<!DOCTYPE html>',
    "1.1": '<!DOCTYPE html PUBLIC "-//W3C//DTD XHTML 1.1//EN" "http://www.w3.org/TR/xhtml11/DTD/xhtml11.dtd">',
    "Basic": '<!DOCTYPE html PUBLIC "-//W3C//DTD XHTML Basic 1.1//EN" "http://www.w3.org/TR/xhtml-basic/xhtml-basic11.dtd">',
    "Mobile": '<!DOCTYPE html PUBLIC "-//WAPFORUM//DTD XHTML Mobile 1.2//EN" "http://www.openmobilealliance.org/tech/DTD/xhtml-mobile12.dtd">',
    "RDFa": '<!DOCTYPE html PUBLIC "-//W3C//DTD XHTML+RDFa 1.0//EN" "http://www.w3.org/MarkUp/DTD/xhtml-rdfa-1.dtd">',
}

TAG_VALUE_KINDS = (TokenKind.BRACKET_EXPRESSION, TokenKind.STRING)
ATTRIBUTE_VALUE_KINDS = (TokenKind.BRACKET_EXPRESSION, TokenKind.QUOTED_STRING, TokenKind.STRING)


@dataclass
class BlockScope:
    """Names bound in the render function or in one generated block function."""
    names: Set[str] = field(default_factory=set)
    declaration: Optional[ControlLine] = None  # receives the nonlocal statement
    closing_line: Optional[ControlLine] = None


class ParseEngine:
    """
    Compiles one token sequence into the source of a Python module.

    The generated module defines `render(bindings)`, which renders the template
    with `bindings['context']` bound to `self` and returns the output text.

    Features:
    - Doctype shortcuts (first line only)
    - Tags with id, class and attributes, closed when indentation returns
    - Tag, inline content and closing tag fused into one expression
    - Code (=) with or without a nested block, silent code (-), comments, text

    An engine is good for a single parse() call: the token cursor, the emitted
    lines and the deferred-closing stack all belong to that one compilation.
    """

    def __init__(self, tokens: Sequence[Token], context_type: str):
        self.tokens = tuple(tokens)
        self.context_type = context_type
        self.position = 0
        self.lines: List[TemplateLine] = []
        self.delayed_lines: List[TemplateLine] = []  # deferred-closing stack
        self.block_level = 0  # open generated Python blocks
        self.block_counter = 0
        self.scopes = [BlockScope({OUTPUT_NAME, "self"})]

    # --- Cursor ---

    def _peek(self) -> Optional[Token]:
        return self.tokens[self.position] if self.position < len(self.tokens) else None

    def _advance(self) -> Token:
        token = self.tokens[self.position]
        self.position += 1
        return token

    def _has_next(self) -> bool:
        return self.position < len(self.tokens)

    def _next_if_kind(self, *kinds: TokenKind) -> Optional[Token]:
        token = self._peek()
        if token is not None and token.kind in kinds:
            return self._advance()
        return None

    def _next_force_kind(self, *kinds: TokenKind) -> Token:
        token = self._next_if_kind(*kinds)
        if token is not None:
            return token
        found = self._peek()
        if found is None:
            raise UnexpectedEndOfInput()
        raise ExpectedOther(found, kinds)

    def _next_is_deeper_white_space(self) -> bool:
        token = self._peek()
        return token is not None and token.kind == TokenKind.WHITE_SPACE and len(token.content) > self.current_depth

    def _next_is_closing_white_space(self) -> bool:
        token = self._peek()
        if token is None:
            return True  # end of input, everything gets closed
        return token.kind == TokenKind.WHITE_SPACE and len(token.content) <= self.current_depth

    @property
    def current_depth(self) -> int:
        return self.delayed_lines[-1].depth if self.delayed_lines else 0

    @property
    def current_white_space(self) -> str:
        return " " * self.current_depth

    # --- Emitting ---

    def _emit(self, line: TemplateLine) -> None:
        line.level = BODY_LEVEL + self.block_level
        self.lines.append(line)

    def _delay(self, line: TemplateLine) -> None:
        if isinstance(line, ControlLine) and line.block:
            self.block_level += 1
        self.delayed_lines.append(line)

    def _close_open_tags(self, down_to: int) -> None:
        """Flushes deferred lines until the current depth is below down_to."""
        while self.delayed_lines and self.current_depth >= down_to:
            line = self.delayed_lines.pop()
            if isinstance(line, ControlLine) and line.block:
                self.block_level -= 1
            if line is self.scopes[-1].closing_line:
                self._close_scope()
            self._emit(line)

    def _close_scope(self) -> None:
        """Declares names rebound inside a block function that belong to an enclosing scope."""
        scope = self.scopes.pop()
        enclosing = set().union(*(outer.names for outer in self.scopes))
        shared = scope.names & enclosing
        if shared:
            scope.declaration.content = f"nonlocal {', '.join(sorted(shared))}"

    # --- Driver ---

    def parse(self) -> str:
        header = [
            ControlLine("from html import escape as _html_escape"),
            ControlLine(f"def {ESCAPE_NAME}(text):"),
            ControlLine("return _html_escape(text, quote=False)", level=1),
            ControlLine("def render(bindings):"),
            ControlLine(f"{OUTPUT_NAME} = []", level=BODY_LEVEL),
            ControlLine(f"self: {self.context_type!r} = bindings['context']", level=BODY_LEVEL),
        ]
        self.lines = list(header)

        self._unshift_doc_type()

        # one pass processes one line of the template
        while self._has_next():
            index = self.position

            self._unshift_white_space()

            had_tag = self._unshift_tag()

            had_output = (self._unshift_code() or self._unshift_silent_code()
                          or self._unshift_comment() or self._unshift_text())

            if had_tag and had_output and self._next_is_closing_white_space():
                self._one_liner_tag_output()

            # nothing has been processed
            if index == self.position:
                raise UnexpectedToken(self._advance())

        self._close_open_tags(0)

        self.lines.append(ControlLine(f"return '\\n'.join({OUTPUT_NAME})", level=BODY_LEVEL))

        statements = (INDENT * line.level + statement_form(line) for line in self.lines)
        output = "\n".join(statement for statement in statements if statement.strip())

        logger.debug("Generated template code:\n%s", output)

        return output

    def _one_liner_tag_output(self) -> None:
        """Merges an opening tag, its inline content and its closing tag into one expression."""
        if isinstance(self.lines[-1], ControlLine):
            # silent code has nothing to concatenate, the tag closes on dedent
            return

        expression_line = self.lines.pop()
        opening_tag_line = self.lines.pop()
        closing_tag_line = self.delayed_lines.pop()
        depth = opening_tag_line.depth

        for line in (opening_tag_line, expression_line, closing_tag_line):
            reset_depth(line)

        expression = " + ".join([
            output_expression(opening_tag_line),
            output_expression(expression_line),
            output_expression(closing_tag_line),
        ])

        self._emit(ExpressionLine(expression, depth))

    # --- Constructs ---

    def _unshift_doc_type(self) -> bool:
        if self._next_if_kind(TokenKind.DOC_TYPE_IDENTIFIER) is None:
            return False
        type_token = self._next_if_kind(TokenKind.DOC_TYPE)

        key = type_token.content if type_token is not None else None
        if key not in DOC_TYPES:
            raise UnexpectedDocType(type_token)

        self._emit(HtmlSafeLine(literal_body(DOC_TYPES[key]), self.current_depth))
        return True

    def _unshift_white_space(self) -> bool:
        token = self._next_if_kind(TokenKind.WHITE_SPACE)
        if token is None:
            return False

        length = len(token.content)
        self._close_open_tags(length)

        # remember as current depth
        self._delay(ControlLine("", length))
        return True

    def _unshift_comment(self) -> bool:
        identifier = self._next_if_kind(TokenKind.COMMENT_IDENTIFIER)
        token = self._next_if_kind(TokenKind.COMMENT) if identifier is None else self._next_force_kind(TokenKind.COMMENT)
        if token is None:
            return False
        self._emit(HtmlSafeLine(f"<!-- {literal_body(token.content)} -->", self.current_depth))
        return True

    def _unshift_text(self) -> bool:
        token = self._next_if_kind(TokenKind.TEXT)
        if token is None:
            return False
        self._emit(OutputLine(expression_code(token, True), self.current_depth))
        return True

    def _unshift_tag(self) -> bool:
        element_token = self._next_if_kind(TokenKind.ELEMENT_IDENTIFIER)
        element_value = self._next_force_kind(*TAG_VALUE_KINDS) if element_token else None

        id_token = self._next_if_kind(TokenKind.ELEMENT_ID_IDENTIFIER)
        id_value = self._next_force_kind(*TAG_VALUE_KINDS) if id_token else None

        class_token = self._next_if_kind(TokenKind.ELEMENT_CLASS_IDENTIFIER)
        class_value = self._next_force_kind(*TAG_VALUE_KINDS) if class_token else None

        # must have at least one defined
        if element_token is None and id_token is None and class_token is None:
            return False

        attributes = []
        while True:
            name = self._next_if_kind(*TAG_VALUE_KINDS)
            if name is None:
                break
            self._next_force_kind(TokenKind.ATTRIBUTE_CONNECTOR)
            value = self._next_force_kind(*ATTRIBUTE_VALUE_KINDS)
            attributes.append((name, value))

        tag_name = "div" if element_value is None else expression_code(element_value, True)
        id_string = "" if id_value is None else self._attribute_string("id", id_value)
        class_string = "" if class_value is None else self._attribute_string("class", class_value)
        attribute_string = "".join(self._attribute_code(name, value) for name, value in attributes)
        attrs = f"{id_string}{class_string}{attribute_string}"

        if self._next_is_closing_white_space():
            self._emit(HtmlSafeLine(f"<{tag_name}{attrs}></{tag_name}>", self.current_depth))
        else:
            self._emit(HtmlSafeLine(f"<{tag_name}{attrs}>", self.current_depth))
            self._delay(HtmlSafeLine(f"</{tag_name}>", self.current_depth))

        return True

    def _attribute_string(self, name: str, value: Token) -> str:
        return f' {name}="{expression_code(value, True)}"'

    def _attribute_code(self, name: Token, value: Token) -> str:
        return f' {expression_code(name, True)}="{expression_code(value, True)}"'

    def _unshift_code(self) -> bool:
        if self._next_if_kind(TokenKind.CODE_IDENTIFIER) is None:
            return False
        code = self._next_force_kind(TokenKind.EXPRESSION)

        if self._next_is_deeper_white_space():
            block_name = f"_block_{self.block_counter}"
            self.block_counter += 1
            closing = (f"{OUTPUT_NAME}.append('{self.current_white_space}' + "
                       f"str(({code.content})({block_name})))")
            closing_line = ControlLine(closing, self.current_depth, block=True)
            self._open_block(f"def {block_name}():", closing_line)
            declaration = ControlLine("")
            self._emit(declaration)
            self.scopes.append(BlockScope(declaration=declaration, closing_line=closing_line))
        else:
            self._emit(ExpressionLine(expression_code(code, False), self.current_depth))

        return True

    def _unshift_silent_code(self) -> bool:
        if self._next_if_kind(TokenKind.SILENT_CODE_IDENTIFIER) is None:
            return False
        code = self._next_force_kind(TokenKind.EXPRESSION)

        if self._next_is_deeper_white_space():
            statement = code.content.rstrip()
            if not statement.endswith(":"):
                statement += ":"
            self.scopes[-1].names |= assigned_names(statement)
            self._open_block(statement, ControlLine("", self.current_depth, block=True))
        else:
            self.scopes[-1].names |= assigned_names(code.content)
            self._emit(ControlLine(code.content))

        return True

    def _open_block(self, statement: str, closing_line: ControlLine) -> None:
        self._emit(ControlLine(statement))
        self._delay(closing_line)
        # keeps the block valid when nothing inside it emits a statement
        self._emit(ControlLine("pass"))


class KoreanderCompiler:
    """Compiles koreander template source into the source of a Python module."""

    def __init__(self, lexer: Optional[Lexer] = None):
        self.lexer = lexer or Lexer()

    def compile(self, source: str, context_type: str) -> str:
        tokens = self.lexer.lex(source)
        logger.debug("Lexed %d tokens", len(tokens))
        return ParseEngine(tokens, context_type).parse()
