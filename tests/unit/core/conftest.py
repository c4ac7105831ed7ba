"""Shared fixtures for core unit tests"""

from datetime import datetime

import pytest

from mdenrich.config import Settings
from mdenrich.core.enrich.enricher import Enricher
from mdenrich.core.enrich.providers import CompletionProvider
from mdenrich.core.models import RecordAttrs
from mdenrich.crud.memory_repo import MemoryRecordRepo
from mdenrich.util.errors import EnrichmentError


SAMPLE_MD = """\
---
title: "Getting Started with Python"
author: Ada
tags: [python, tutorial]
published_at: 2024-03-01T09:30:00
---

# Getting Started with Python

Python is a friendly language for beginners. This tutorial walks through
installing the interpreter and writing a first script.

```python
print("hello")
```

Next steps cover virtualenv and pip packaging.
"""

PLAIN_MD = """\
# Caching Strategies

Caching with redis keeps hot paths fast. Database load drops when reads are
served from memory, and performance improves for every request.
"""


class StubProvider(CompletionProvider):
    """Scripted completion provider; records every call."""

    name = "stub"

    def __init__(self, responses=None, available=True, error=None):
        self.responses = list(responses or [])
        self.available = available
        self.error = error
        self.calls = []

    def is_available(self):
        return self.available

    def complete(self, prompt, system=None, max_tokens=100, temperature=0.3):
        self.calls.append({"prompt": prompt, "system": system,
                           "max_tokens": max_tokens, "temperature": temperature})
        if self.error:
            raise EnrichmentError(self.error, provider_name=self.name)
        return self.responses.pop(0) if self.responses else ""


class BrokenProvider(CompletionProvider):
    """Fails every call with a non-enrichment exception, as a malformed response body would."""

    name = "broken"

    def __init__(self):
        self.calls = 0

    def is_available(self):
        return True

    def complete(self, prompt, system=None, max_tokens=100, temperature=0.3):
        self.calls += 1
        raise AttributeError("'str' object has no attribute 'get'")


@pytest.fixture(name="broken_provider")
def broken_provider_fixture():
    return BrokenProvider()


@pytest.fixture(name="stub_provider")
def stub_provider_fixture():
    """The StubProvider class, for tests to construct with scripted responses."""
    return StubProvider


@pytest.fixture(name="content_dir")
def content_dir_fixture(tmp_path):
    d = tmp_path / "content"
    d.mkdir()
    (d / "getting_started.md").write_text(SAMPLE_MD)
    (d / "caching.md").write_text(PLAIN_MD)
    return d


@pytest.fixture(name="settings")
def settings_fixture(content_dir):
    return Settings(enrichment_provider="disabled", content_dir=str(content_dir))


@pytest.fixture(name="enricher")
def enricher_fixture(settings):
    return Enricher(settings)


@pytest.fixture(name="repo")
def repo_fixture():
    return MemoryRecordRepo()


@pytest.fixture(name="attrs")
def attrs_fixture():
    """Synthesized attributes with nothing enriched yet."""
    return RecordAttrs(
        slug="caching",
        title="Caching Strategies",
        body=PLAIN_MD,
        excerpt="Caching with redis keeps hot paths fast.",
        published_at=datetime(2024, 1, 1),
    )
