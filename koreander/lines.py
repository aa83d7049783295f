"""
Template lines: the units the compile engine emits.

Each line is one of four dataclasses. `output_expression` gives the Python
expression whose value is appended to the rendered output and
`statement_form` the Python statement written into the generated source.
OutputLine and HtmlSafeLine hold the body of a single-quoted string literal,
ExpressionLine holds a Python expression and ControlLine a Python statement.
"""
from dataclasses import dataclass
from typing import Union

OUTPUT_NAME = "_output"
ESCAPE_NAME = "_escape"


@dataclass
class ControlLine:
    content: str
    depth: int = 0
    block: bool = False  # closes a generated Python block when flushed
    level: int = 0


@dataclass
class OutputLine:
    content: str
    depth: int
    level: int = 0


@dataclass
class HtmlSafeLine:
    content: str
    depth: int
    level: int = 0


@dataclass
class ExpressionLine:
    content: str
    depth: int
    level: int = 0


TemplateLine = Union[ControlLine, OutputLine, HtmlSafeLine, ExpressionLine]


def output_expression(line: TemplateLine) -> str:
    match line:
        case ControlLine():
            raise AssertionError("Control lines do not output anything.")
        case OutputLine(content=content, depth=depth):
            return f"{ESCAPE_NAME}('{' ' * depth}{content}')"
        case HtmlSafeLine(content=content, depth=depth):
            return f"'{' ' * depth}{content}'"
        case ExpressionLine(content=content, depth=depth) if depth > 0:
            return f"'{' ' * depth}' + {content}"
        case ExpressionLine(content=content):
            return content
    raise TypeError(f"Not a template line: {line!r}")


def statement_form(line: TemplateLine) -> str:
    match line:
        case ControlLine(content=content):
            return content
        case _:
            return f"{OUTPUT_NAME}.append({output_expression(line)})"


def reset_depth(line: TemplateLine) -> None:
    line.depth = 0
