"""Main-content extraction (noise removal + ordered container selection)."""

from __future__ import annotations

import re

from bs4 import BeautifulSoup, NavigableString, Tag

NOISE_SELECTORS: tuple[str, ...] = (
    "script",
    "style",
    "iframe",
    "noscript",
    "nav",
    "header",
    "footer",
    ".menu",
    ".sidebar",
    ".comments",
    ".ad",
    ".advertisement",
    ".social-share",
    ".related-posts",
    ".popup",
    ".modal",
    "form",
    "button",
    "input",
    "select",
    "textarea",
    '[role="navigation"]',
    '[role="banner"]',
    '[role="contentinfo"]',
    ".meta",
    ".tags",
    ".categories",
    ".author-bio",
    'link[rel="stylesheet"]',
    "meta",
)

# Article-like containers first, generic containers last.
CONTENT_SELECTORS: tuple[str, ...] = (
    "article",
    "main",
    ".post-content",
    ".article-content",
    ".entry-content",
    ".post-body",
    ".article-body",
    ".content",
    "section",
    "div.content",
    "div.article",
    "div.post",
)

_BLOCK_TAGS = ["p", "h1", "h2", "h3", "h4", "h5", "h6", "div", "li"]

_TAG_RE = re.compile(r"<[^>]*>")
_ENTITY_RE = re.compile(r"&[a-z0-9#]+;", re.IGNORECASE)
_INLINE_WS_RE = re.compile(r"[^\S\n]+")
_NEWLINES_RE = re.compile(r" *\n[\s]*")


def parse_html(html: str) -> BeautifulSoup:
    return BeautifulSoup(html or "", "lxml")


def normalize_text(text: str) -> str:
    """Strip residual markup and entities, collapse whitespace and newline runs."""
    text = _TAG_RE.sub("", text or "")
    text = _ENTITY_RE.sub(" ", text)
    text = _INLINE_WS_RE.sub(" ", text)
    text = _NEWLINES_RE.sub("\n", text)
    return text.strip()


class ContentExtractor:
    """Processing layer component: main-content extraction.

    Rules:
    - Noise elements are removed from the whole document before any selection
    - Content selectors are tried in priority order; the first one whose text
      is longer than ``min_length`` wins (no scoring across candidates)
    - If none qualifies, the whole body is used, however short
    """

    def __init__(
        self,
        *,
        min_length: int = 100,
        noise_selectors: tuple[str, ...] = NOISE_SELECTORS,
        content_selectors: tuple[str, ...] = CONTENT_SELECTORS,
    ):
        self._min_length = int(min_length)
        self._noise = ", ".join(noise_selectors)
        self._content_selectors = content_selectors

    def extract(self, soup: BeautifulSoup) -> str:
        """Extract main text. Mutates ``soup``; read metadata before calling this."""
        self._remove_noise(soup)

        for selector in self._content_selectors:
            candidate = soup.select_one(selector)
            if candidate is None:
                continue
            text = self._element_text(candidate)
            if len(text.strip()) > self._min_length:
                return normalize_text(text)

        body = soup.body or soup
        return normalize_text(self._element_text(body))

    def extract_from_html(self, html: str) -> str:
        return self.extract(parse_html(html))

    def _remove_noise(self, root: BeautifulSoup | Tag) -> None:
        for el in root.select(self._noise):
            # Nested matches are already gone once their ancestor is decomposed.
            if el.decomposed:
                continue
            el.decompose()

    def _element_text(self, element: BeautifulSoup | Tag) -> str:
        self._remove_noise(element)
        for br in element.find_all("br"):
            br.replace_with(NavigableString("\n"))
        for block in element.find_all(_BLOCK_TAGS):
            block.insert_after(NavigableString("\n"))
        return element.get_text()
