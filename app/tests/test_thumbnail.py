import base64

from ..core.thumbnail import (
    CANVAS_BACKGROUND, DATA_URI_PREFIX, DEFAULT_BACKGROUND, FORM_BACKGROUND,
    IMAGE_BACKGROUND, TABLE_BACKGROUND, analyze_html, background_color,
    content_icons, darken_color, synthesize,
)


def decode(uri):
    assert uri.startswith(DATA_URI_PREFIX)
    return base64.b64decode(uri[len(DATA_URI_PREFIX):]).decode("utf-8")


def test_empty_html_has_no_thumbnail():
    assert synthesize("") == ""


def test_thumbnail_is_deterministic():
    html = "<html><body><h1>Portfolio</h1><img src='a.png'></body></html>"
    assert synthesize(html) == synthesize(html)
    assert synthesize(html) != synthesize(html + "<table></table>")


def test_svg_dimensions_and_label():
    svg = decode(synthesize("<p>Hello</p>"))
    assert 'width="300" height="200"' in svg
    assert "HTML Content" in svg
    assert "1 elements · 5 chars" in svg


def test_stats_without_text():
    svg = decode(synthesize("<div></div><span></span>"))
    assert "2 elements</text>" in svg
    assert "chars" not in svg


def test_background_priority():
    assert background_color(analyze_html("<canvas></canvas><form></form>")) == CANVAS_BACKGROUND
    assert background_color(analyze_html("<form></form><table></table>")) == FORM_BACKGROUND
    assert background_color(analyze_html("<input><table></table>")) == FORM_BACKGROUND
    assert background_color(analyze_html("<table></table><img src='x'>")) == TABLE_BACKGROUND
    assert background_color(analyze_html("<div style='background-image: url(x)'></div>")) == IMAGE_BACKGROUND
    assert background_color(analyze_html("<div></div>")) == DEFAULT_BACKGROUND


def test_darker_variants():
    assert darken_color(CANVAS_BACKGROUND) == "#1a252f"
    assert darken_color(DEFAULT_BACKGROUND) == "#e9ecef"
    assert darken_color("#123456") == "#ddd"


def test_icons_follow_content_order():
    summary = analyze_html("<canvas></canvas><p>text</p><img src='x'>")
    assert content_icons(summary) == ["🖼️", "📝", "🎨"]
    assert content_icons(analyze_html("<div></div>")) == ["💻"]


def test_colors_are_unique_and_capped():
    html = "".join(
        f"<div style='color: {c}'></div>"
        for c in ["#fff", "#fff", "#000", "rgb(1,2,3)", "#abcdef", "rgba(0,0,0,0.5)", "#123"]
    )
    summary = analyze_html(html)
    assert summary.colors == ["#fff", "#000", "rgb(1,2,3)", "#abcdef", "rgba(0,0,0,0.5)"]
    assert summary.has_colors


def test_title_prefers_title_tag_over_h1():
    assert analyze_html("<title> Page </title><h1>Heading</h1>").title == "Page"
    assert analyze_html("<h1>Heading</h1>").title == "Heading"
    assert analyze_html("<p>none</p>").title == ""


def test_text_length_counts_utf8_bytes():
    assert analyze_html("<p>你好</p>").text_length == 6
    assert "1 elements · 6 chars" in decode(synthesize("<p>你好</p>"))
