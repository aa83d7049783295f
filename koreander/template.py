"""
Compiling and rendering koreander templates.

Example:
    koreander = Koreander()
    template = koreander.compile(Path("page.kor"), Page)
    html = koreander.render(template, Page(title="Home"))

    # or in one go, compiled against type(context)
    html = koreander.render("%h1= self.title", Page(title="Home"))
"""
import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Callable, Dict, Optional, TextIO, Union

from .compiler import KoreanderCompiler
from .exceptions import ContextTypeError, TemplateNotFound

logger = logging.getLogger(__name__)

Source = Union[str, Path, TextIO]


def type_name(context_type: type) -> str:
    return f"{context_type.__module__}.{context_type.__qualname__}"


@dataclass
class CompiledTemplate:
    """Generated Python source for one template, executed once into its own namespace."""
    name: str
    context_type: type
    code: str
    render_func: Callable[[Dict[str, Any]], str] = field(init=False, repr=False)

    def __post_init__(self):
        namespace: Dict[str, Any] = {"__name__": f"koreander_template_{id(self):x}"}
        exec(compile(self.code, self.name, "exec"), namespace)
        self.render_func = namespace["render"]

    def render(self, context: Any) -> str:
        if not isinstance(context, self.context_type):
            raise ContextTypeError(
                f"Template {self.name} expects a {type_name(self.context_type)} context, "
                f"got {type_name(type(context))}."
            )
        return self.render_func({"context": context})


class Koreander:
    """Entry point: compiles template sources and renders them against a context object."""

    def __init__(self, compiler: Optional[KoreanderCompiler] = None):
        self.compiler = compiler or KoreanderCompiler()

    @staticmethod
    def type_of(obj: Any) -> type:
        return type(obj)

    def compile(self, source: Source, context_type: type, name: Optional[str] = None) -> CompiledTemplate:
        text, source_name = self._read(source)
        name = name or source_name
        logger.debug("Compiling template %s for %s", name, type_name(context_type))
        code = self.compiler.compile(text, type_name(context_type))
        return CompiledTemplate(name, context_type, code)

    def render(self, template: Union[CompiledTemplate, Source], context: Any) -> str:
        if not isinstance(template, CompiledTemplate):
            template = self.compile(template, self.type_of(context))
        return template.render(context)

    def _read(self, source: Source):
        if isinstance(source, Path):
            if not source.is_file():
                raise TemplateNotFound(f"Template not found: {source}")
            return source.read_text(encoding="utf-8"), str(source)
        if isinstance(source, str):
            return source, "<string>"
        return source.read(), str(getattr(source, "name", "<stream>"))
