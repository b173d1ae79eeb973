from __future__ import annotations

from article_enhancer.services.content_extractor import parse_html
from article_enhancer.services.metadata_extractor import (
    DEFAULT_AUTHOR,
    DEFAULT_TITLE,
    PLACEHOLDER_IMAGE,
    TITLE_RULES,
    MetadataExtractor,
    first_match,
    resolve_image_url,
)

PAGE = "https://example.com/blog/post-1"


def test_og_title_beats_title_tag() -> None:
    soup = parse_html(
        '<html><head><meta property="og:title" content=" OG Title "><title>Doc Title</title></head>'
        "<body><h1>H1</h1></body></html>"
    )
    assert MetadataExtractor().title(soup) == "OG Title"


def test_blank_meta_falls_through_to_next_rule() -> None:
    soup = parse_html(
        '<html><head><meta property="og:title" content="   "><meta name="twitter:title" content="Tw">'
        "</head><body></body></html>"
    )
    assert first_match(soup, TITLE_RULES) == "Tw"


def test_title_falls_back_to_headings_then_default() -> None:
    assert MetadataExtractor().title(parse_html("<body><h2>Second</h2></body>")) == "Second"
    assert MetadataExtractor().title(parse_html("<body><p>nothing</p></body>")) == DEFAULT_TITLE


def test_author_chain() -> None:
    ex = MetadataExtractor()
    assert ex.author(parse_html('<head><meta name="author" content="Ann"></head>')) == "Ann"
    assert ex.author(parse_html('<head><meta property="article:author" content="Bo"></head>')) == "Bo"
    assert ex.author(parse_html('<body><span class="byline">  Cy  </span></body>')) == "Cy"
    assert ex.author(parse_html("<body></body>")) == DEFAULT_AUTHOR


def test_author_text_collapses_bio_whitespace() -> None:
    bio = "Jane Doe is a writer. " * 20
    soup = parse_html(f"<body><div class='author'>By Jane Doe\n\n   <p>{bio}</p></div></body>")
    author = MetadataExtractor().author(soup)
    assert author.startswith("By Jane Doe Jane Doe is a writer.")
    assert "\n" not in author
    assert "  " not in author


def test_relative_image_is_resolved_against_page() -> None:
    soup = parse_html('<body><article><img src="/img/a.png"></article><img src="/img/b.png"></body>')
    assert MetadataExtractor().image(soup, PAGE) == "https://example.com/img/a.png"


def test_og_image_beats_inline_images() -> None:
    soup = parse_html(
        '<head><meta property="og:image" content="https://cdn.example.com/cover.jpg"></head>'
        '<body><img src="/img/a.png"></body>'
    )
    assert MetadataExtractor().image(soup, PAGE) == "https://cdn.example.com/cover.jpg"


def test_missing_or_unresolvable_image_uses_placeholder() -> None:
    assert MetadataExtractor().image(parse_html("<body></body>"), PAGE) == PLACEHOLDER_IMAGE
    assert resolve_image_url("javascript:alert(1)", PAGE) == PLACEHOLDER_IMAGE
    assert resolve_image_url("data:image/png;base64,AAAA", PAGE) == PLACEHOLDER_IMAGE


def test_extract_returns_all_fields() -> None:
    soup = parse_html(
        "<html><head><title>T</title></head><body>"
        '<div class="author">Writer</div><img src="pic.jpg"></body></html>'
    )
    meta = MetadataExtractor().extract(soup, PAGE)
    assert meta.title == "T"
    assert meta.author == "Writer"
    assert meta.image == "https://example.com/blog/pic.jpg"
