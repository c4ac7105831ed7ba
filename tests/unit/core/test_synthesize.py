"""Unit tests for core/synthesize.py"""

from datetime import datetime

import pytest

from mdenrich.config import Settings
from mdenrich.core.models import ParsedMetadata
from mdenrich.core.parse import parse_document
from mdenrich.core.synthesize import (
    DEFAULT_EXCERPT,
    clean_excerpt,
    excerpt_from_text,
    generate_excerpt,
    is_featured,
    normalize_tags,
    synthesize,
)
from mdenrich.util.errors import ParseError


LONG_SENTENCE = "This opening sentence is definitely longer than fifty characters"


@pytest.fixture(name="settings")
def settings_fixture():
    return Settings(enrichment_provider="disabled")


# --- excerpts ---

def test_short_text_used_whole():
    assert excerpt_from_text("A short body.") == "A short body."


def test_long_text_cut_at_first_sentence():
    text = f"{LONG_SENTENCE}. " + "More words follow here. " * 10
    assert excerpt_from_text(text) == f"{LONG_SENTENCE}."


def test_short_first_sentence_falls_back_to_word_cut():
    text = "Too short. " + "word " * 60
    excerpt = excerpt_from_text(text)
    assert excerpt.endswith("...")
    assert not excerpt.endswith(" ...")
    assert len(excerpt) <= 143


def test_markdown_body_excerpt_has_no_markup():
    body = "# Heading\n\nSome **bold** text with a [link](http://x).\n\n```\ncode()\n```"
    assert generate_excerpt(body) == "Heading Some bold text with a link."


def test_code_only_body_gets_default_excerpt():
    assert generate_excerpt("```\nonly_code()\n```") == DEFAULT_EXCERPT


@pytest.mark.parametrize("body", [
    "x",
    "word " * 500,
    "a" * 1000,
    f"{LONG_SENTENCE}. " * 20,
    "# Only a heading",
    "```\nonly_code()\n```",
])
def test_generated_excerpt_bounded_and_non_empty(body):
    excerpt = generate_excerpt(body)
    assert 0 < len(excerpt) <= 200


def test_clean_excerpt_strips_markup_and_quotes():
    raw = '"**Bold** and *it* with `x` and [link](http://u)"'
    assert clean_excerpt(raw) == "Bold and it with x and link"


@pytest.mark.parametrize("raw", [None, "", "   ", '""'])
def test_clean_excerpt_empty_becomes_default(raw):
    assert clean_excerpt(raw) == DEFAULT_EXCERPT


def test_clean_excerpt_caps_length():
    cleaned = clean_excerpt("lengthy " * 60)
    assert len(cleaned) <= 200
    assert cleaned.endswith("...")


# --- featured / tags ---

@pytest.mark.parametrize("slug,title,expected", [
    ("getting-started-guide", "A Guide", True),
    ("notes", "Installation Notes", True),
    ("deep-dive", "Deep Dive", False),
])
def test_is_featured(slug, title, expected):
    keywords = Settings().featured_keywords
    assert is_featured(slug, title, keywords) is expected


def test_normalize_tags_trims_dedupes_and_caps():
    assert normalize_tags([" a ", "", "b", "a", "c"], limit=2) == ["a", "b"]
    assert normalize_tags(None) == []


# --- synthesize ---

def test_scenario_duplicate_tags_collapsed(settings):
    meta, body = parse_document('---\ntitle: T\ntags: ["a", "b", "a"]\n---\nBody text.')
    assert synthesize(meta, body, "t.md", settings).tags == ["a", "b"]


def test_slug_from_filename_when_undeclared(settings):
    attrs = synthesize(ParsedMetadata(title="T"), "Body.", "my_first_post.md", settings)
    assert attrs.slug == "my-first-post"


def test_declared_slug_wins(settings):
    attrs = synthesize(ParsedMetadata(slug="custom"), "Body.", "file_name.md", settings)
    assert attrs.slug == "custom"
    assert attrs.title == "Untitled"


def test_defaults_for_unset_fields(settings):
    before = datetime.now()
    attrs = synthesize(ParsedMetadata(title="Deep Dive"), "Body text.", "deep.md", settings)
    assert attrs.published is True
    assert attrs.featured is False
    assert attrs.tags == []
    assert attrs.author is None
    assert attrs.estimated_read_minutes is None
    assert attrs.excerpt == "Body text."
    assert attrs.published_at >= before


def test_keyword_slug_is_featured(settings):
    attrs = synthesize(ParsedMetadata(title="T"), "Body.", "getting_started.md", settings)
    assert attrs.featured is True


def test_explicit_false_flags_honored(settings):
    meta = ParsedMetadata(title="Getting Started", featured=False, published=False)
    attrs = synthesize(meta, "Body.", "getting_started.md", settings)
    assert attrs.featured is False
    assert attrs.published is False


def test_declared_excerpt_is_cleaned(settings):
    attrs = synthesize(ParsedMetadata(excerpt="**Short** summary"), "Body.", "a.md", settings)
    assert attrs.excerpt == "Short summary"


def test_declared_read_time_kept_when_positive(settings):
    assert synthesize(ParsedMetadata(read_time_minutes=6), "Body.", "a.md", settings).estimated_read_minutes == 6
    assert synthesize(ParsedMetadata(read_time_minutes=0), "Body.", "a.md", settings).estimated_read_minutes is None


def test_default_author_from_settings():
    settings = Settings(enrichment_provider="disabled", default_author="Editorial Team")
    assert synthesize(ParsedMetadata(), "Body.", "a.md", settings).author == "Editorial Team"
    assert synthesize(ParsedMetadata(author="Ada"), "Body.", "a.md", settings).author == "Ada"


def test_empty_body_raises(settings):
    with pytest.raises(ParseError, match="empty.md has no body text"):
        synthesize(ParsedMetadata(title="T"), "   ", "empty.md", settings)


def test_tags_capped_at_max(settings):
    meta = ParsedMetadata(tags=[f"t{i}" for i in range(12)])
    assert len(synthesize(meta, "Body.", "a.md", settings).tags) == 8
