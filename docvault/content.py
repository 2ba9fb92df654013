import enum
import re
from pathlib import Path
from typing import Callable, NamedTuple, Optional

import markdown

from docvault.errors import UnsupportedType


class ContentKind(enum.Enum):
    TEXT = "text"
    MARKDOWN = "markdown"
    JPEG = "jpeg"
    PNG = "png"


EXTENSION_KINDS = {
    ".txt": ContentKind.TEXT,
    ".md": ContentKind.MARKDOWN,
    ".jpg": ContentKind.JPEG,
    ".jpeg": ContentKind.JPEG,
    ".png": ContentKind.PNG,
}

MEDIA_TYPES = {
    ContentKind.TEXT: "text/plain",
    ContentKind.MARKDOWN: "text/html",
    ContentKind.JPEG: "image/jpeg",
    ContentKind.PNG: "image/png",
}

DEFAULT_MARKDOWN_EXTENSIONS = ["fenced_code", "tables", "sane_lists"]

# (rendered markdown html, filename) -> full page
Layout = Callable[[str, str], str]


class Rendered(NamedTuple):
    kind: ContentKind
    payload: bytes
    media_type: str


def extension_of(filename: str) -> str:
    return Path(filename).suffix.lower()


def kind_for(filename: str) -> ContentKind:
    try:
        return EXTENSION_KINDS[extension_of(filename)]
    except KeyError:
        raise UnsupportedType(filename) from None


def render_markdown(text: str, extensions: Optional[list] = None) -> str:
    if extensions is None:
        extensions = DEFAULT_MARKDOWN_EXTENSIONS
    html = markdown.markdown(text, extensions=list(extensions))
    html = re.sub(
        r'<a href="(https?://[^"]+)"',
        r'<a href="\1" target="_blank" rel="noopener noreferrer"',
        html,
    )
    return html


def render(filename: str, data: bytes, layout: Optional[Layout] = None,
           extensions: Optional[list] = None) -> Rendered:
    """Turn a document's bytes into what gets served for it.

    Text and images pass through untouched with their media type. Markdown is
    converted to HTML and, when a layout is given, embedded in the page it
    returns. Anything else raises UnsupportedType.
    """
    kind = kind_for(filename)
    if kind is ContentKind.MARKDOWN:
        html = render_markdown(data.decode("utf-8", errors="replace"), extensions)
        if layout is not None:
            html = layout(html, filename)
        return Rendered(kind, html.encode("utf-8"), MEDIA_TYPES[kind])
    return Rendered(kind, data, MEDIA_TYPES[kind])
