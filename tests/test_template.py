import io
import threading

import pytest

from koreander import CompiledTemplate, ContextTypeError, Koreander, TemplateNotFound


class Page:
    def __init__(self, **attributes):
        self.__dict__.update(attributes)

    def wrap(self, block):
        block()
        return "wrapped"


class Other:
    pass


def test_compile_string(koreander):
    assert isinstance(koreander.compile("", Page), CompiledTemplate)


def test_render_empty(koreander):
    assert koreander.render("", Page()) == ""


def test_compile_file(koreander, tmp_path):
    path = tmp_path / "page.kor"
    path.write_text("%p file\n")
    template = koreander.compile(path, Page)
    assert template.name == str(path)
    assert template.render(Page()) == "<p>file</p>"


def test_compile_stream(koreander):
    assert koreander.render(io.StringIO("%p stream"), Page()) == "<p>stream</p>"


def test_missing_file(koreander, tmp_path):
    with pytest.raises(TemplateNotFound):
        koreander.compile(tmp_path / "missing.kor", Page)


def test_render_div(render):
    assert render("%div") == "<div></div>"


def test_render_id_and_class(render):
    assert render("%span#x.y") == '<span id="x" class="y"></span>'


def test_render_nested(render):
    source = "%div\n  %p Hello\n%span"
    assert render(source) == "<div>\n  <p>Hello</p>\n</div>\n<span></span>"


def test_text_is_escaped(render):
    assert render("%p a < b & c > d") == "<p>a &lt; b &amp; c &gt; d</p>"


def test_code_output_is_not_escaped(render):
    assert render("= self.markup", markup="<b>x</b>") == "<b>x</b>"


def test_attributes(render):
    source = '%a href={self.link} title="Go home" Home'
    assert render(source, link="/") == '<a href="/" title="Go home">Home</a>'


def test_dynamic_tag_name(render):
    assert render("%{self.tag} x", tag="em") == "<em>x</em>"


def test_doc_type(render):
    assert render("!!! 5\n%html") == "<!DOCTYPE html>\n<html></html>"


def test_comment(render):
    assert render("/ note") == "<!-- note -->"


def test_loop(render):
    source = "%ul\n  - for item in self.items\n    %li= item\n"
    assert render(source, items=["a", "b"]) == "<ul>\n    <li>a</li>\n    <li>b</li>\n</ul>"


def test_if_else(render):
    source = "- if self.admin\n  %p admin\n- else\n  %p guest"
    assert render(source, admin=True) == "  <p>admin</p>"
    assert render(source, admin=False) == "  <p>guest</p>"


def test_code_block(koreander):
    source = "%div\n  = self.wrap\n    %b x\n"
    assert koreander.render(source, Page()) == "<div>\n    <b>x</b>\n  wrapped\n</div>"


def test_template_renders_repeatedly(koreander):
    template = koreander.compile("- for i in range(self.n)\n  %i= i", Page)
    first = template.render(Page(n=2))
    assert first == "  <i>0</i>\n  <i>1</i>"
    assert template.render(Page(n=2)) == first
    assert template.render(Page(n=1)) == "  <i>0</i>"


def test_template_renders_concurrently(koreander):
    template = koreander.compile("%p= self.n", Page)
    results = {}

    def worker(n):
        results[n] = template.render(Page(n=n))

    threads = [threading.Thread(target=worker, args=(n,)) for n in range(8)]
    for thread in threads:
        thread.start()
    for thread in threads:
        thread.join()
    assert results == {n: f"<p>{n}</p>" for n in range(8)}


def test_multiple_compiles(koreander):
    page_template = koreander.compile("%p page", Page)
    other_template = koreander.compile("%p other", Other)
    assert page_template.render(Page()) == "<p>page</p>"
    assert other_template.render(Other()) == "<p>other</p>"
    assert page_template.render(Page()) == "<p>page</p>"


def test_wrong_context_type(koreander):
    template = koreander.compile("%p", Page)
    with pytest.raises(ContextTypeError):
        template.render(Other())


def test_type_of():
    assert Koreander.type_of(Page()) is Page


def test_code_block_updates_template_variables(koreander):
    source = "- total = 0\n= self.wrap\n  - total += 1\n= total"
    assert koreander.render(source, Page()) == "wrapped\n1"


def test_code_block_reads_loop_variable(koreander):
    source = "- for name in self.names\n  = self.wrap\n    %b= name\n"
    assert koreander.render(source, Page(names=["a"])) == "    <b>a</b>\n  wrapped"


def test_code_block_locals_stay_local(koreander):
    source = "= self.wrap\n  - inner = 2\n  = inner"
    assert koreander.render(source, Page()) == "  2\nwrapped"
