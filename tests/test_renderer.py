"""Tests for sandboxed preview document assembly."""

from __future__ import annotations

import html
from unittest.mock import patch

from motion_studio_mcp.config import REACT_RUNTIME_URLS
from motion_studio_mcp.renderer import SANDBOX_POLICY, SandboxedRenderer
from tests.conftest import SAMPLE_CODE, SAMPLE_CSS


class TestRender:
    def test_empty_code_renders_nothing(self):
        assert SandboxedRenderer().render("", SAMPLE_CSS) is None

    def test_document_contents(self):
        doc = SandboxedRenderer().render(SAMPLE_CODE, SAMPLE_CSS)
        assert doc is not None
        for url in REACT_RUNTIME_URLS:
            assert f'<script src="{url}" crossorigin></script>' in doc.html
        assert SAMPLE_CSS in doc.html
        assert SAMPLE_CODE in doc.html
        assert '<script type="text/babel">' in doc.html
        assert "background: #18181b;" in doc.html

    def test_code_is_inside_guarded_block(self):
        html_text = SandboxedRenderer().render(SAMPLE_CODE, "").html
        try_at = html_text.index("try {")
        code_at = html_text.index(SAMPLE_CODE)
        catch_at = html_text.index("} catch (error) {")
        assert try_at < code_at < catch_at

    def test_fallback_render_checks_rendered_flag(self):
        html_text = SandboxedRenderer().render("function Animation() { return null; }").html
        assert "typeof Animation !== 'undefined' && !window.__rendered" in html_text
        assert '<Animation key="0" />' in html_text

    def test_errors_reported_as_text_and_posted_to_host(self):
        doc = SandboxedRenderer().render(SAMPLE_CODE)
        assert "textContent" in doc.html
        assert "innerHTML" not in doc.html
        assert "window.addEventListener('error'" in doc.html
        assert "window.parent.postMessage(" in doc.html
        assert doc.context_id in doc.html

    def test_closing_tags_are_neutralised(self):
        code = "const s = '</script><script>alert(1)</SCRIPT>';"
        css = ".a { content: '</style><script>x()</script>'; }"
        html_text = SandboxedRenderer().render(code, css).html
        assert "</script><script>alert(1)" not in html_text
        assert "<\\/script><script>alert(1)<\\/SCRIPT>" in html_text
        assert "<\\/style>" in html_text
        assert html_text.count("</style>") == 1

    def test_dollar_signs_survive(self):
        code = "const price = `$${PARAMS.size}`;"
        assert code in SandboxedRenderer().render(code).html

    def test_each_render_gets_fresh_context(self):
        renderer = SandboxedRenderer()
        first = renderer.render(SAMPLE_CODE, SAMPLE_CSS)
        second = renderer.render(SAMPLE_CODE, SAMPLE_CSS)
        assert first.context_id != second.context_id
        assert first.mount_key == second.mount_key == 0

    def test_constructor_overrides(self):
        renderer = SandboxedRenderer(runtime_urls=("https://cdn.example/react.js",), background="#fff")
        html_text = renderer.render(SAMPLE_CODE).html
        assert '<script src="https://cdn.example/react.js" crossorigin></script>' in html_text
        assert "unpkg.com" not in html_text
        assert "background: #fff;" in html_text


class TestForceRemount:
    def test_bumps_key_and_recreates_context(self):
        renderer = SandboxedRenderer()
        first = renderer.render(SAMPLE_CODE, SAMPLE_CSS)
        remounted = renderer.force_remount()
        assert remounted is not None
        assert remounted.mount_key == first.mount_key + 1
        assert remounted.context_id != first.context_id
        assert '<Animation key="1" />' in remounted.html
        assert SAMPLE_CSS in remounted.html

    def test_without_prior_render(self):
        renderer = SandboxedRenderer()
        assert renderer.force_remount() is None
        assert renderer.mount_key == 1

    def test_key_persists_for_later_renders(self):
        renderer = SandboxedRenderer()
        renderer.render(SAMPLE_CODE)
        renderer.force_remount()
        assert renderer.render("const other = 1;").mount_key == 1

    def test_explicit_inputs_build_one_document(self):
        renderer = SandboxedRenderer()
        renderer.render("const old = 1;")
        with patch.object(renderer, "_build", wraps=renderer._build) as build:
            remounted = renderer.force_remount(SAMPLE_CODE, SAMPLE_CSS)
        assert build.call_count == 1
        assert remounted.mount_key == 1
        assert SAMPLE_CODE in remounted.html
        assert "const old = 1;" not in remounted.html


class TestIframeMarkup:
    def test_srcdoc_escaped_and_sandboxed(self):
        doc = SandboxedRenderer().render(SAMPLE_CODE, SAMPLE_CSS)
        markup = doc.iframe_markup()
        assert doc.sandbox == SANDBOX_POLICY == "allow-scripts"
        assert 'sandbox="allow-scripts"' in markup
        assert "allow-same-origin" not in markup
        assert f'srcdoc="{html.escape(doc.html, quote=True)}"' in markup
        assert html.unescape(markup.split('srcdoc="', 1)[1].split('" sandbox=', 1)[0]) == doc.html
