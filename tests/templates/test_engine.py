"""
Тесты фасада TemplateEngine.
"""

import io
from pathlib import Path

import pytest

from elt.config import EngineConfig
from elt.expr.lexer import ExpressionSyntaxError
from elt.resolver import PropertyResolver
from elt.template import TemplateCompileError, TemplateEngine, TemplateRenderError


class TestTemplateEngine:

    def setup_method(self):
        self.engine = TemplateEngine()

    def test_compile_text_and_render(self):
        tpl = self.engine.compile_text("Hello, ${name}!\n<% if vip %>\nWelcome back.\n<% /if %>\n")
        assert self.engine.render(tpl, {"name": "Ann", "vip": True}) == "Hello, Ann!\nWelcome back.\n"
        assert self.engine.render(tpl, {"name": "Bob", "vip": False}) == "Hello, Bob!\n"

    def test_compile_text_line_endings(self):
        tpl = self.engine.compile_text("a\r\nb\rc\n")
        assert self.engine.render(tpl, {}) == "a\nb\nc\n"

    def test_compile_text_keeps_other_line_separators(self):
        """Строки делятся только по LF, CRLF и CR; прочие разделители остаются в тексте"""
        text = "page one\x0cpage two\nsep\u2028here\nrs\x1erecord\x85end\n"
        tpl = self.engine.compile_text(text)
        assert tpl.line_count == 3
        assert self.engine.render(tpl, {}) == text

    def test_empty_text(self):
        assert self.engine.render(self.engine.compile_text(""), {}) == ""

    def test_compile_lines(self):
        tpl = self.engine.compile_lines(["<% for x in xs %>", "${x}", "<% /for %>"], uri="inline")
        assert tpl.uri == "inline"
        assert self.engine.render(tpl, {"xs": [1, 2]}) == "1\n2\n"

    def test_compile_stream(self):
        tpl = self.engine.compile_stream(io.StringIO("x=${x}\ny\n"))
        assert self.engine.render(tpl, {"x": 1}) == "x=1\ny\n"

    def test_compile_file(self, tmp_path: Path):
        path = tmp_path / "page.tpl"
        path.write_bytes(b"Title: ${title}\r\n<% if show %>\r\nbody\r\n<% /if %>\r\n")
        tpl = self.engine.compile_file(path)
        assert tpl.uri == str(path)
        assert tpl.line_count == 4
        assert self.engine.render(tpl, {"title": "T", "show": True}) == "Title: T\nbody\n"

    def test_compile_file_error_carries_path(self, tmp_path: Path):
        path = tmp_path / "broken.tpl"
        path.write_text("ok\n<% if a %>\n", encoding="utf-8")
        with pytest.raises(TemplateCompileError, match="broken.tpl, line 2: Unterminated if statement"):
            self.engine.compile_file(path)

    def test_compile_file_encoding(self, tmp_path: Path):
        path = tmp_path / "latin.tpl"
        path.write_bytes("café ${x}\n".encode("latin-1"))
        engine = TemplateEngine(EngineConfig(encoding="latin-1"))
        assert engine.render(engine.compile_file(path), {"x": 1}) == "café 1\n"

    def test_render_error_carries_uri(self):
        tpl = self.engine.compile_text("a\n${b}", uri="mem.tpl")
        with pytest.raises(TemplateRenderError) as exc:
            self.engine.render(tpl, {})
        assert str(exc.value) == "mem.tpl, line 2: Variable resolved to null: b"

    def test_render_to(self):
        tpl = self.engine.compile_text("v=${v}")
        out = io.StringIO()
        self.engine.render_to(tpl, {"v": "w"}, out)
        assert out.getvalue() == "v=w\n"

    def test_configured_line_terminator(self):
        engine = TemplateEngine(EngineConfig(line_terminator="crlf"))
        assert engine.render(engine.compile_text("a\nb"), {}) == "a\r\nb\r\n"

    def test_string_conditions_disabled(self):
        engine = TemplateEngine(EngineConfig(accept_if_strings=False))
        tpl = engine.compile_text("<% if f %>\nx\n<% /if %>")
        assert engine.render(tpl, {"f": True}) == "x\n"
        with pytest.raises(TemplateRenderError, match="must evaluate to a boolean"):
            engine.render(tpl, {"f": "true"})

    def test_evaluate(self):
        assert self.engine.evaluate("?0 * 2", None, 21) == 42
        assert self.engine.evaluate("a > ?0 && b == ?1", {"a": 5, "b": "x"}, 3, "x") is True
        with pytest.raises(ExpressionSyntaxError):
            self.engine.evaluate("a ==", {})

    def test_custom_resolver(self):
        class Echo(PropertyResolver):
            def get_value(self, obj, prop):
                return f"<{prop}>"

        engine = TemplateEngine(resolver=Echo())
        assert engine.render(engine.compile_text("${a.b}"), object()) == "<a.b>\n"
        assert engine.evaluate("x == '<x>'", object()) is True
