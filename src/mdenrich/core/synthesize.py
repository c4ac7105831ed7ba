"""Attribute synthesis: slug, excerpt, featured flag and defaults for unset fields"""

import re
from datetime import datetime
from pathlib import PurePath

from mdenrich.config import Settings
from mdenrich.core.models import ParsedMetadata, RecordAttrs
from mdenrich.core.parse import UNTITLED
from mdenrich.core.utils.plaintext import collapse_whitespace, to_plain_text
from mdenrich.core.utils.slug import filename_to_slug
from mdenrich.util.errors import ParseError


DEFAULT_EXCERPT = "Learn more about this topic."
EXCERPT_HEAD = 150          # characters considered for a generated excerpt
EXCERPT_WORDS = 140         # word-boundary cut when no usable sentence
MIN_SENTENCE = 50           # a leading sentence must be longer than this to stand alone
MAX_EXCERPT = 200
ELLIPSIS = "..."

_BOLD_RE   = re.compile(r'\*\*([^*]+)\*\*')
_ITALIC_RE = re.compile(r'\*([^*]+)\*')
_CODE_RE   = re.compile(r'`([^`]+)`')
_LINK_RE   = re.compile(r'!?\[([^\]]*)\]\([^)]*\)')


def _word_limited(text: str, limit: int = EXCERPT_WORDS) -> str:
    """Keep whole words up to `limit` characters and append an ellipsis."""
    kept = ""
    for word in text.split(" "):
        candidate = f"{kept} {word}" if kept else word
        if len(candidate) > limit:
            break
        kept = candidate
    if not kept:
        kept = text[:limit]
    return kept.rstrip(" ,;:.") + ELLIPSIS


def excerpt_from_text(text: str) -> str:
    """Build an excerpt from already-plain text, preferring a sentence boundary."""
    text = collapse_whitespace(text)
    if not text:
        return DEFAULT_EXCERPT
    if len(text) <= EXCERPT_HEAD:
        return text

    head = text[:EXCERPT_HEAD]
    first, sep, _ = head.partition(". ")
    if sep and len(first) > MIN_SENTENCE:
        return first + "."
    return _word_limited(head)


def generate_excerpt(body: str, preset: str = 'commonmark') -> str:
    """Excerpt of at most ~150 characters from markdown body text."""
    return excerpt_from_text(to_plain_text(body, preset))


def clean_excerpt(excerpt: str | None) -> str:
    """Strip bold/italic/inline-code/link markup and surrounding quotes from a stored excerpt."""
    if excerpt is None or not excerpt.strip():
        return DEFAULT_EXCERPT
    text = excerpt.strip()
    text = _BOLD_RE.sub(r'\1', text)
    text = _ITALIC_RE.sub(r'\1', text)
    text = _CODE_RE.sub(r'\1', text)
    text = _LINK_RE.sub(r'\1', text)
    text = collapse_whitespace(text.strip('"'))
    if not text:
        return DEFAULT_EXCERPT
    return text if len(text) <= MAX_EXCERPT else _word_limited(text, MAX_EXCERPT - len(ELLIPSIS))


def is_featured(slug: str, title: str, keywords: list[str]) -> bool:
    """Best-effort: true when slug or title contains any keyword (case-insensitive)."""
    slug, title = slug.lower(), title.lower()
    return any(k.lower() in slug or k.lower() in title for k in keywords if k)


def normalize_tags(tags: list[str] | None, limit: int = 8) -> list[str]:
    """Trim, drop empties and duplicates, cap at `limit`."""
    cleaned = (t.strip() for t in tags or [])
    return list(dict.fromkeys(t for t in cleaned if t))[:limit]


def synthesize(meta: ParsedMetadata, body: str, source: str, settings: Settings) -> RecordAttrs:
    """Fill every required field from metadata, body and the source filename.

    Raises ParseError when the body is empty.
    """
    if not body.strip():
        raise ParseError(f"{PurePath(source).name} has no body text")

    slug = (meta.slug or "").strip() or filename_to_slug(source)
    title = (meta.title or "").strip() or UNTITLED

    if meta.excerpt and meta.excerpt.strip():
        excerpt = clean_excerpt(meta.excerpt)
    else:
        excerpt = generate_excerpt(body, settings.parser_config)

    featured = meta.featured if meta.featured is not None else \
        is_featured(slug, title, settings.featured_keywords)

    read_time = meta.read_time_minutes if meta.read_time_minutes and meta.read_time_minutes >= 1 else None

    return RecordAttrs(
        slug=slug,
        title=title,
        body=body,
        excerpt=excerpt,
        author=meta.author or settings.default_author,
        author_contact=meta.author_contact or None,
        tags=normalize_tags(meta.tags, settings.max_tags),
        featured=featured,
        published=meta.published if meta.published is not None else True,
        published_at=meta.published_at or datetime.now(),
        estimated_read_minutes=read_time,
    )
