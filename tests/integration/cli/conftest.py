"""Fixtures for CLI integration tests"""

import pytest
from typer.testing import CliRunner


ARTICLE = """\
---
title: "Getting Started"
excerpt: "**Install** the tool and run it."
tags: [setup]
---

Install the package, then run the loader against your content directory.
"""


@pytest.fixture(name="runner")
def runner_fixture():
    return CliRunner()


@pytest.fixture(name="project", autouse=True)
def project_fixture(tmp_path, monkeypatch):
    """A project directory with two articles, a file-backed DB and enrichment disabled."""
    monkeypatch.chdir(tmp_path)
    monkeypatch.setenv("MDENRICH_DB_URL", f"sqlite:///{tmp_path}/test.db")
    monkeypatch.setenv("MDENRICH_ENRICHMENT_PROVIDER", "disabled")
    monkeypatch.setenv("MDENRICH_STARTUP_DELAY", "0")
    # structlog output stays on the default (unconfigured) stdout logger during CliRunner runs
    monkeypatch.setattr("mdenrich.cli.commands.configure_logging", lambda *args, **kwargs: None)

    content = tmp_path / "content"
    content.mkdir()
    (content / "getting_started.md").write_text(ARTICLE)
    (content / "redis_caching.md").write_text("# Redis Caching\n\nCaching with redis and python.\n")
    return tmp_path
