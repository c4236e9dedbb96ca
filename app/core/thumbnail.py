"""
Placeholder thumbnails for HTML portfolio versions.

The thumbnail is not a rendering of the page. The markup is scanned with a few
regular expressions and the detected content types pick a background color and
a row of icons for a small SVG, returned as a base64 data URI.
"""
from dataclasses import dataclass, field
from typing import List
import base64
import re

WIDTH = 300
HEIGHT = 200
MAX_COLORS = 5

ELEMENT_RE = re.compile(r"<[a-zA-Z][^>]*>")
TEXT_RE = re.compile(r">[^<]+<")
COLOR_RE = re.compile(r"#[0-9a-fA-F]{3,6}|rgb\([^)]+\)|rgba\([^)]+\)")
TITLE_RE = re.compile(r"<title[^>]*>([^<]+)</title>")
H1_RE = re.compile(r"<h1[^>]*>([^<]+)</h1>")

DEFAULT_BACKGROUND = "#f8f9fa"
CANVAS_BACKGROUND = "#2c3e50"
FORM_BACKGROUND = "#e3f2fd"
TABLE_BACKGROUND = "#fff3e0"
IMAGE_BACKGROUND = "#f3e5f5"

DARKER_VARIANTS = {
    DEFAULT_BACKGROUND: "#e9ecef",
    CANVAS_BACKGROUND: "#1a252f",
    FORM_BACKGROUND: "#bbdefb",
    TABLE_BACKGROUND: "#ffe0b2",
    IMAGE_BACKGROUND: "#e1bee7",
}
FALLBACK_DARKER = "#ddd"

ICON_IMAGE = "🖼️"
ICON_TEXT = "📝"
ICON_TABLE = "📊"
ICON_FORM = "📋"
ICON_CANVAS = "🎨"
ICON_GENERIC = "💻"

DATA_URI_PREFIX = "data:image/svg+xml;base64,"


@dataclass
class HTMLSummary:
    has_images: bool = False
    has_text: bool = False
    has_tables: bool = False
    has_forms: bool = False
    has_canvas: bool = False
    element_count: int = 0
    text_length: int = 0
    colors: List[str] = field(default_factory=list)
    title: str = ""

    @property
    def has_colors(self) -> bool:
        return len(self.colors) > 0


def _unique_colors(colors: List[str]) -> List[str]:
    # first-seen order, capped
    result = []
    for color in colors:
        if color not in result and len(result) < MAX_COLORS:
            result.append(color)
    return result


def analyze_html(html: str) -> HTMLSummary:
    """Collect the content signals used to pick the thumbnail layout."""
    summary = HTMLSummary()
    clean_html = html.lower()

    summary.element_count = len(ELEMENT_RE.findall(clean_html))
    summary.has_images = "<img" in clean_html or "background-image" in clean_html

    text_matches = TEXT_RE.findall(clean_html)
    summary.has_text = len(text_matches) > 0
    # counted in UTF-8 bytes
    summary.text_length = sum(len(match.strip("><").strip().encode("utf-8")) for match in text_matches)

    summary.has_tables = "<table" in clean_html
    summary.has_forms = "<form" in clean_html or "<input" in clean_html
    summary.has_canvas = "<canvas" in clean_html

    summary.colors = _unique_colors(COLOR_RE.findall(html))

    title_match = TITLE_RE.search(html)
    if title_match:
        summary.title = title_match.group(1).strip()
    if not summary.title:
        h1_match = H1_RE.search(html)
        if h1_match:
            summary.title = h1_match.group(1).strip()

    return summary


def background_color(summary: HTMLSummary) -> str:
    if summary.has_canvas:
        return CANVAS_BACKGROUND
    if summary.has_forms:
        return FORM_BACKGROUND
    if summary.has_tables:
        return TABLE_BACKGROUND
    if summary.has_images:
        return IMAGE_BACKGROUND
    return DEFAULT_BACKGROUND


def darken_color(color: str) -> str:
    return DARKER_VARIANTS.get(color, FALLBACK_DARKER)


def content_icons(summary: HTMLSummary) -> List[str]:
    icons = []
    if summary.has_images:
        icons.append(ICON_IMAGE)
    if summary.has_text:
        icons.append(ICON_TEXT)
    if summary.has_tables:
        icons.append(ICON_TABLE)
    if summary.has_forms:
        icons.append(ICON_FORM)
    if summary.has_canvas:
        icons.append(ICON_CANVAS)
    if not icons:
        icons.append(ICON_GENERIC)
    return icons


def render_svg(summary: HTMLSummary) -> str:
    background = background_color(summary)
    icons = content_icons(summary)

    parts = [
        f'<svg width="{WIDTH}" height="{HEIGHT}" xmlns="http://www.w3.org/2000/svg">',
        f'<rect width="100%" height="100%" fill="{background}"/>',
        '<defs><linearGradient id="grad1" x1="0%" y1="0%" x2="100%" y2="100%">',
        f'<stop offset="0%" style="stop-color:{background};stop-opacity:1" />',
        f'<stop offset="100%" style="stop-color:{darken_color(background)};stop-opacity:0.8" />',
        '</linearGradient></defs>',
        '<rect width="100%" height="100%" fill="url(#grad1)"/>',
    ]

    icon_y = HEIGHT // 2 - 15
    icon_x = WIDTH // 2 - (len(icons) * 20) // 2
    for i, icon in enumerate(icons):
        parts.append(
            f'<text x="{icon_x + i * 25}" y="{icon_y}" font-size="20" text-anchor="middle">{icon}</text>'
        )

    stats_text = f"{summary.element_count} elements"
    if summary.text_length > 0:
        stats_text += f" · {summary.text_length} chars"

    parts.append(
        f'<text x="{WIDTH // 2}" y="{HEIGHT - 20}" font-family="Arial, sans-serif" font-size="12" '
        f'fill="#666" text-anchor="middle">{stats_text}</text>'
    )
    parts.append(
        f'<text x="{WIDTH // 2}" y="{HEIGHT - 5}" font-family="Arial, sans-serif" font-size="10" '
        f'fill="#999" text-anchor="middle">HTML Content</text>'
    )
    parts.append("</svg>")
    return "".join(parts)


def synthesize(html: str) -> str:
    """
    Build the placeholder thumbnail for a piece of HTML.

    Args:
        html: Raw HTML markup of a portfolio version

    Returns:
        str: "data:image/svg+xml;base64,..." or "" for empty markup
    """
    if not html:
        return ""
    svg = render_svg(analyze_html(html))
    return DATA_URI_PREFIX + base64.b64encode(svg.encode("utf-8")).decode("ascii")
