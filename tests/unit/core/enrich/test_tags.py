"""Unit tests for core/enrich/tags.py"""

import pytest

from mdenrich.core.enrich.tags import (
    DEFAULT_TAXONOMY,
    load_taxonomy,
    parse_tag_response,
    remote_tags,
    tags_fallback,
)
from mdenrich.util.errors import ConfigurationError, EnrichmentError


# --- fallback ---

def test_fallback_maps_keywords_in_order():
    assert tags_fallback("A Python tutorial about Django") == ["Python", "Tutorial", "Django"]


def test_fallback_matches_multi_word_phrases():
    tags = tags_fallback("Notes on sql injection and best practices")
    assert "SQL Injection" in tags
    assert "Best Practices" in tags


def test_fallback_is_deterministic_capped_and_unique():
    text = ("python django flask fastapi docker kubernetes redis postgres security "
            "testing performance caching logging tutorial")
    tags = tags_fallback(text)
    assert tags == tags_fallback(text)
    assert len(tags) <= 8
    assert len(tags) == len(set(tags))


def test_fallback_without_keywords_is_empty():
    assert tags_fallback("zzz qqq") == []


def test_fallback_with_custom_taxonomy():
    taxonomy = {"rust": ["Rust", "Systems"], "wasm": ["WebAssembly"]}
    assert tags_fallback("Rust compiled to wasm", taxonomy, limit=2) == ["Rust", "Systems"]


# --- taxonomy file ---

def test_load_taxonomy_default():
    assert load_taxonomy(None) is DEFAULT_TAXONOMY


def test_load_taxonomy_from_yaml(tmp_path):
    f = tmp_path / "taxonomy.yaml"
    f.write_text("Rust: [Rust, Systems]\nwasm: WebAssembly\n")
    assert load_taxonomy(str(f)) == {"rust": ["Rust", "Systems"], "wasm": ["WebAssembly"]}


def test_load_taxonomy_rejects_non_mapping(tmp_path):
    f = tmp_path / "taxonomy.yaml"
    f.write_text("- rust\n- wasm\n")
    with pytest.raises(ConfigurationError, match="expected a mapping"):
        load_taxonomy(str(f))


def test_load_taxonomy_missing_file(tmp_path):
    with pytest.raises(ConfigurationError, match="Invalid taxonomy file"):
        load_taxonomy(str(tmp_path / "absent.yaml"))


# --- remote response ---

@pytest.mark.parametrize("response,expected", [
    ('["a", "b", "a", ""]', ["a", "b"]),
    ('```json\n["Python", "Testing"]\n```', ["Python", "Testing"]),
    ('[" spaced ", 3, null]', ["spaced"]),
    ("nope", None),
    ('{"tags": ["a"]}', None),
    ("[]", None),
])
def test_parse_tag_response(response, expected):
    assert parse_tag_response(response) == expected


def test_parse_tag_response_caps():
    assert len(parse_tag_response(str([f"t{i}" for i in range(20)]).replace("'", '"'))) == 8


def test_remote_tags_prompt_names_subject_areas(stub_provider):
    provider = stub_provider(['["Python"]'])
    tags = remote_tags("Title", "Summary", "Body", provider, ["Python", "security"])
    assert tags == ["Python"]
    call = provider.calls[0]
    assert "Python, security" in call["system"]
    assert "Title: Title" in call["prompt"]
    assert "Summary: Summary" in call["prompt"]


def test_remote_tags_rejects_unusable(stub_provider):
    with pytest.raises(EnrichmentError, match="unusable tag list"):
        remote_tags("T", "E", "B", stub_provider(["Sure! Here are tags: Python"]), ["Python"])
