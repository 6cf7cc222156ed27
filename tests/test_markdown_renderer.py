from course_app.core.markdown_renderer import MarkdownRenderer, renderer


def test_blank_markdown_gets_placeholder() -> None:
    assert renderer.render_fragment("   ") == "<p><em>No content provided.</em></p>"


def test_tables_and_strikethrough_are_enabled() -> None:
    html = renderer.render_fragment("| a | b |\n|---|---|\n| 1 | 2 |\n\n~~old~~")
    assert "<table>" in html
    assert "<s>old</s>" in html


def test_raw_html_is_escaped_by_default() -> None:
    html = renderer.render_fragment("<script>alert(1)</script>")
    assert "<script>" not in html
    assert "<script>" in MarkdownRenderer(enable_html=True).render_fragment("<script>alert(1)</script>")


def test_full_document_loads_mathjax() -> None:
    document = renderer.render_full_document("$x^2$", title="Preview", font_size=18)
    assert "<title>Preview</title>" in document
    assert "mathjax" in document
    assert "font-size: 18pt" in document
    assert "$x^2$" in document
