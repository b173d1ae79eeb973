"""Title / author / image resolution.

Each field is resolved by an ordered list of rules. A rule is a pure function
``soup -> str | None``; the first rule returning a non-blank value wins, and
the field's literal default is used when every rule misses.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Callable, Optional, Sequence
from urllib.parse import urljoin, urlparse

from bs4 import BeautifulSoup

Rule = Callable[[BeautifulSoup], Optional[str]]

DEFAULT_TITLE = "Untitled Article"
DEFAULT_AUTHOR = "Unknown Author"
PLACEHOLDER_IMAGE = "https://via.placeholder.com/800x400?text=No+Image+Found"


def meta_content(*, prop: str | None = None, name: str | None = None) -> Rule:
    attrs = {"property": prop} if prop else {"name": name}

    def rule(soup: BeautifulSoup) -> Optional[str]:
        tag = soup.find("meta", attrs=attrs)
        if tag is None:
            return None
        content = tag.get("content")
        return content if isinstance(content, str) else None

    rule.__name__ = f"meta[{'property' if prop else 'name'}={prop or name}]"
    return rule


def first_text(selector: str) -> Rule:
    def rule(soup: BeautifulSoup) -> Optional[str]:
        el = soup.select_one(selector)
        return " ".join(el.get_text().split()) if el is not None else None

    rule.__name__ = f"text({selector})"
    return rule


def first_attr(selector: str, attr: str) -> Rule:
    def rule(soup: BeautifulSoup) -> Optional[str]:
        el = soup.select_one(selector)
        if el is None:
            return None
        value = el.get(attr)
        return value if isinstance(value, str) else None

    rule.__name__ = f"attr({selector}@{attr})"
    return rule


TITLE_RULES: tuple[Rule, ...] = (
    meta_content(prop="og:title"),
    meta_content(name="twitter:title"),
    first_text("title"),
    first_text("h1"),
    first_text("h2"),
)

AUTHOR_RULES: tuple[Rule, ...] = (
    meta_content(name="author"),
    meta_content(prop="article:author"),
    first_text(".author"),
    first_text(".byline"),
    first_text(".author-name"),
)

IMAGE_RULES: tuple[Rule, ...] = (
    meta_content(prop="og:image"),
    meta_content(name="twitter:image"),
    meta_content(prop="og:image:url"),
    first_attr("article img[src]", "src"),
    first_attr("img[src]", "src"),
)


def first_match(soup: BeautifulSoup, rules: Sequence[Rule]) -> Optional[str]:
    for rule in rules:
        value = rule(soup)
        if value is not None and value.strip():
            return value.strip()
    return None


def resolve_image_url(raw: str, page_url: str) -> str:
    """Resolve ``raw`` against ``page_url``; anything that is not an absolute http(s) URL becomes the placeholder."""
    try:
        resolved = urljoin(page_url, raw.strip())
        parsed = urlparse(resolved)
    except ValueError:
        return PLACEHOLDER_IMAGE
    if parsed.scheme not in ("http", "https") or not parsed.netloc:
        return PLACEHOLDER_IMAGE
    return resolved


@dataclass(frozen=True)
class PageMetadata:
    title: str
    author: str
    image: str


class MetadataExtractor:
    def __init__(
        self,
        *,
        title_rules: Sequence[Rule] = TITLE_RULES,
        author_rules: Sequence[Rule] = AUTHOR_RULES,
        image_rules: Sequence[Rule] = IMAGE_RULES,
    ):
        self._title_rules = tuple(title_rules)
        self._author_rules = tuple(author_rules)
        self._image_rules = tuple(image_rules)

    def title(self, soup: BeautifulSoup) -> str:
        return first_match(soup, self._title_rules) or DEFAULT_TITLE

    def author(self, soup: BeautifulSoup) -> str:
        return first_match(soup, self._author_rules) or DEFAULT_AUTHOR

    def image(self, soup: BeautifulSoup, page_url: str) -> str:
        return resolve_image_url(first_match(soup, self._image_rules) or PLACEHOLDER_IMAGE, page_url)

    def extract(self, soup: BeautifulSoup, page_url: str) -> PageMetadata:
        return PageMetadata(
            title=self.title(soup),
            author=self.author(soup),
            image=self.image(soup, page_url),
        )
