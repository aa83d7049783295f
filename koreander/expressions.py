import ast

from .exceptions import ExpectedOther
from .token import Token, TokenKind

ACCEPTED_KINDS = frozenset({
    TokenKind.BRACKET_EXPRESSION,
    TokenKind.QUOTED_STRING,
    TokenKind.EXPRESSION,
    TokenKind.STRING,
})


def literal_body(text: str) -> str:
    """Escapes text so it can sit between the quotes of a single-quoted Python literal."""
    return (text.replace('\\', '\\\\')
                .replace("'", "\\'")
                .replace('\r', '\\r')
                .replace('\n', '\\n'))


def in_string_expression(expression: str) -> str:
    # closes the surrounding literal, appends the value and reopens it
    return f"' + {expression} + '"


def expression_code(token: Token, in_string: bool) -> str:
    """
    Converts a token into a fragment of generated Python code.

    With in_string the fragment is meant to be placed inside a single-quoted
    string literal, otherwise it is a standalone expression.
    """
    kind = token.kind
    if kind in (TokenKind.EXPRESSION, TokenKind.BRACKET_EXPRESSION):
        expression = token.content if kind == TokenKind.EXPRESSION else token.content[1:-1]
        code = f"str({expression})"
        return in_string_expression(code) if in_string else code
    if kind == TokenKind.QUOTED_STRING:
        if not in_string:
            return token.content
        try:
            value = ast.literal_eval(token.content)
        except (ValueError, SyntaxError):
            # not a valid Python literal, keep the raw text between the quotes
            value = token.content[1:-1]
        return literal_body(str(value))
    if kind in (TokenKind.STRING, TokenKind.TEXT):
        return literal_body(token.content) if in_string else repr(token.content)
    raise ExpectedOther(token, ACCEPTED_KINDS)


class _AssignedNames(ast.NodeVisitor):
    """Collects names a statement binds in the scope it runs in."""

    def __init__(self):
        self.names = set()

    def visit_Name(self, node):
        if isinstance(node.ctx, ast.Store):
            self.names.add(node.id)

    def visit_FunctionDef(self, node):
        self.names.add(node.name)

    visit_AsyncFunctionDef = visit_FunctionDef
    visit_ClassDef = visit_FunctionDef

    def visit_Import(self, node):
        for alias in node.names:
            if alias.name != "*":
                self.names.add((alias.asname or alias.name).split(".")[0])

    visit_ImportFrom = visit_Import

    # these open their own scope
    def visit_Lambda(self, node):
        pass

    visit_ListComp = visit_SetComp = visit_DictComp = visit_GeneratorExp = visit_Lambda


def assigned_names(statement: str) -> set:
    """
    Names bound by a single statement, or by the header of a compound statement
    such as `for item in items:`. Statements that only parse in context (`else:`)
    bind nothing.
    """
    source = statement + "\n    pass" if statement.rstrip().endswith(":") else statement
    try:
        tree = ast.parse(source)
    except SyntaxError:
        return set()
    collector = _AssignedNames()
    collector.visit(tree)
    return collector.names
