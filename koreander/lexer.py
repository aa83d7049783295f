import re
from typing import List, Optional

from .exceptions import InvalidSyntax
from .token import Token, TokenKind

NAME_PATTERN = re.compile(r"[\w:-]+")
INDENT_PATTERN = re.compile(r"[ \t]*")
ATTRIBUTE_START_PATTERN = re.compile(r"(\{|[\w:-]+=)")

TAG_IDENTIFIERS = (
    ("%", TokenKind.ELEMENT_IDENTIFIER),
    ("#", TokenKind.ELEMENT_ID_IDENTIFIER),
    (".", TokenKind.ELEMENT_CLASS_IDENTIFIER),
)


class Lexer:
    """
    Splits koreander template source into tokens.

    Every non-blank line after the first starts with a WHITE_SPACE token holding
    its indentation (possibly empty). Within a line:
    - `!!! 5`            doctype
    - `/ text`           html comment
    - `= expr`           code, output is the value of expr
    - `- stmt`           silent code
    - `%tag#id.class`    tag, followed by `name=value` attributes and inline content
    - `\\text`           escaped text
    - anything else      text
    """

    def lex(self, source: str) -> List[Token]:
        self.tokens: List[Token] = []
        self.line_number = 0
        self.line_offset = 0
        first = True

        for raw_line in source.splitlines(keepends=True):
            self.line_number += 1
            line = raw_line.rstrip("\r\n")

            if line.strip():
                indent = INDENT_PATTERN.match(line).group(0)
                if indent or not first:
                    self._add(TokenKind.WHITE_SPACE, indent, 0)
                self._lex_line(line, len(indent))
                first = False

            self.line_offset += len(raw_line)

        return self.tokens

    def _add(self, kind: TokenKind, content: str, column: int) -> Token:
        token = Token(kind, content, self.line_number, column + 1, self.line_offset + column)
        self.tokens.append(token)
        return token

    def _error(self, message: str, column: int):
        raise InvalidSyntax(message, self.line_number, column + 1)

    # --- Line constructs ---

    def _lex_line(self, line: str, pos: int) -> None:
        if line.startswith("!!!", pos):
            self._add(TokenKind.DOC_TYPE_IDENTIFIER, "!!!", pos)
            self._lex_rest(line, pos + 3, TokenKind.DOC_TYPE, optional=True)
        elif line.startswith("/", pos):
            self._add(TokenKind.COMMENT_IDENTIFIER, "/", pos)
            self._lex_rest(line, pos + 1, TokenKind.COMMENT)
        elif line.startswith("=", pos):
            self._add(TokenKind.CODE_IDENTIFIER, "=", pos)
            self._lex_rest(line, pos + 1, TokenKind.EXPRESSION)
        elif line.startswith("-", pos):
            self._add(TokenKind.SILENT_CODE_IDENTIFIER, "-", pos)
            self._lex_rest(line, pos + 1, TokenKind.EXPRESSION)
        elif line.startswith("\\", pos):
            self._add(TokenKind.TEXT, line[pos + 1:].rstrip(), pos + 1)
        elif line[pos] in "%#.":
            self._lex_tag(line, pos)
        else:
            self._add(TokenKind.TEXT, line[pos:].rstrip(), pos)

    def _lex_rest(self, line: str, pos: int, kind: TokenKind, optional: bool = False) -> None:
        start = self._skip_spaces(line, pos)
        content = line[start:].rstrip()
        if content or not optional:
            self._add(kind, content, start)

    def _lex_tag(self, line: str, pos: int) -> None:
        for char, kind in TAG_IDENTIFIERS:
            if line.startswith(char, pos):
                self._add(kind, char, pos)
                pos = self._lex_value(line, pos + 1)

        # --- Attributes ---
        while True:
            start = self._skip_spaces(line, pos)
            if start >= len(line) or not self._is_attribute(line, start):
                break
            pos = self._lex_value(line, start)
            if not line.startswith("=", pos):
                self._error("Expected '=' after attribute name.", pos)
            self._add(TokenKind.ATTRIBUTE_CONNECTOR, "=", pos)
            pos = self._lex_attribute_value(line, pos + 1)

        # --- Inline content ---
        start = self._skip_spaces(line, pos)
        if start >= len(line):
            return
        if line.startswith("=", start):
            self._add(TokenKind.CODE_IDENTIFIER, "=", start)
            self._lex_rest(line, start + 1, TokenKind.EXPRESSION)
        elif start == pos:
            self._error(f"Unexpected character {line[start]!r} in tag.", start)
        else:
            self._add(TokenKind.TEXT, line[start:].rstrip(), start)

    def _is_attribute(self, line: str, pos: int) -> bool:
        match = ATTRIBUTE_START_PATTERN.match(line, pos)
        if match is None:
            return False
        if match.group(1) != "{":
            return True
        end = self._bracket_end(line, pos)
        return line.startswith("=", end)

    def _lex_value(self, line: str, pos: int) -> int:
        """Lexes a bracketed expression or a name, returns the position after it."""
        if line.startswith("{", pos):
            end = self._bracket_end(line, pos)
            self._add(TokenKind.BRACKET_EXPRESSION, line[pos:end], pos)
            return end
        match = NAME_PATTERN.match(line, pos)
        if match is None:
            self._error("Expected a name or a {bracketed expression}.", pos)
        self._add(TokenKind.STRING, match.group(0), pos)
        return match.end()

    def _lex_attribute_value(self, line: str, pos: int) -> int:
        if line.startswith('"', pos):
            end = self._quote_end(line, pos)
            self._add(TokenKind.QUOTED_STRING, line[pos:end], pos)
            return end
        if line.startswith("{", pos):
            return self._lex_value(line, pos)
        end = pos
        while end < len(line) and not line[end].isspace():
            end += 1
        if end == pos:
            self._error("Expected an attribute value.", pos)
        self._add(TokenKind.STRING, line[pos:end], pos)
        return end

    # --- Scanning helpers ---

    def _skip_spaces(self, line: str, pos: int) -> int:
        while pos < len(line) and line[pos] in " \t":
            pos += 1
        return pos

    def _quote_end(self, line: str, pos: int) -> int:
        quote = line[pos]
        index = pos + 1
        while index < len(line):
            if line[index] == "\\":
                index += 2
                continue
            if line[index] == quote:
                return index + 1
            index += 1
        self._error("Unterminated string.", pos)

    def _bracket_end(self, line: str, pos: int) -> int:
        """Returns the position after the brace matching the one at pos."""
        depth = 0
        index = pos
        while index < len(line):
            char = line[index]
            if char in "\"'":
                index = self._quote_end(line, index)
                continue
            if char == "{":
                depth += 1
            elif char == "}":
                depth -= 1
                if depth == 0:
                    return index + 1
            index += 1
        self._error("Unterminated expression.", pos)
