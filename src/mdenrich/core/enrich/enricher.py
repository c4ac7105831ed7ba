"""Attempt-remote-then-fallback enrichment of synthesized record attributes.

Every field follows the same two steps: ``_attempt`` runs the remote call and
returns ``(value, None)`` or ``(None, reason)``; on a reason the named local
fallback computes the value. Nothing here raises for a remote failure.
"""

from typing import Callable, TypeVar

import httpx

from mdenrich.config import Settings
from mdenrich.core.enrich.excerpt import remote_excerpt
from mdenrich.core.enrich.providers import CompletionProvider, build_provider
from mdenrich.core.enrich.read_time import read_time_fallback, remote_read_time
from mdenrich.core.enrich.tags import DEFAULT_TAXONOMY, load_taxonomy, remote_tags, tags_fallback
from mdenrich.core.models import RecordAttrs
from mdenrich.core.synthesize import generate_excerpt, normalize_tags
from mdenrich.util.errors import EnrichmentError
from mdenrich.util.logging import get_logger


logger = get_logger(__name__)

T = TypeVar("T")


class Enricher:
    """Derives read time, tags and (optionally) excerpts for a record."""

    def __init__(self, settings: Settings, provider: CompletionProvider | None = None,
                 taxonomy: dict[str, list[str]] | None = None) -> None:
        self._settings = settings
        self._provider = provider
        self._taxonomy = taxonomy if taxonomy is not None else DEFAULT_TAXONOMY

    @property
    def remote_enabled(self) -> bool:
        return self._provider is not None

    def _attempt(self, field: str, slug: str, call: Callable[[CompletionProvider], T]) -> tuple[T | None, str | None]:
        if self._provider is None:
            return None, "enrichment disabled"
        if not self._provider.is_available():
            logger.debug("enrichment_skipped", field=field, slug=slug,
                         provider=self._provider.name, reason="no API key")
            return None, "no API key"
        try:
            return call(self._provider), None
        except EnrichmentError as e:
            logger.info("enrichment_fallback", field=field, slug=slug, reason=str(e))
            return None, str(e)
        except Exception as e:  # a remote failure never fails the document
            logger.warning("enrichment_failed", field=field, slug=slug,
                           provider=self._provider.name, error=repr(e))
            return None, repr(e)

    # --- per-field ---

    def read_time(self, slug: str, body: str) -> int:
        minutes, reason = self._attempt("read_time", slug, lambda p: remote_read_time(body, p))
        if minutes is None:
            minutes = read_time_fallback(body, self._settings.words_per_minute, self._settings.parser_config)
            logger.debug("read_time_fallback", slug=slug, minutes=minutes, reason=reason)
        return minutes

    def local_tags(self, title: str, excerpt: str, body: str) -> list[str]:
        text = " ".join(part for part in (title, excerpt, body) if part)
        return tags_fallback(text, self._taxonomy, self._settings.max_tags)

    def tags(self, slug: str, title: str, excerpt: str, body: str) -> list[str]:
        tags, reason = None, "AI tagging off"
        if self._settings.ai_tagging:
            tags, reason = self._attempt(
                "tags", slug,
                lambda p: remote_tags(title, excerpt, body, p, self._settings.subject_areas, self._settings.max_tags),
            )
        if tags is None:
            tags = self.local_tags(title, excerpt, body)
            logger.debug("tags_fallback", slug=slug, tags=tags, reason=reason)
        return normalize_tags(tags, self._settings.max_tags)

    def excerpt(self, slug: str, title: str, body: str) -> str:
        excerpt, reason = self._attempt("excerpt", slug, lambda p: remote_excerpt(title, body, p))
        if excerpt is None:
            excerpt = generate_excerpt(body, self._settings.parser_config)
            logger.debug("excerpt_fallback", slug=slug, reason=reason)
        return excerpt

    # --- whole record ---

    def enrich(self, attrs: RecordAttrs, excerpt_declared: bool = True) -> RecordAttrs:
        """Return a copy of attrs with read time and tags filled in.

        When `ai_excerpts` is on and the document declared no excerpt, the
        synthesized excerpt is replaced by a remote one where available.
        """
        update = {}
        if self._settings.ai_excerpts and not excerpt_declared:
            update["excerpt"] = self.excerpt(attrs.slug, attrs.title, attrs.body)
        if attrs.estimated_read_minutes is None:
            update["estimated_read_minutes"] = self.read_time(attrs.slug, attrs.body)
        if not attrs.tags:
            update["tags"] = self.tags(attrs.slug, attrs.title, update.get("excerpt", attrs.excerpt), attrs.body)
        return attrs.model_copy(update=update)


def build_enricher(settings: Settings, client: httpx.Client) -> Enricher:
    """Wire the configured provider and taxonomy into an Enricher."""
    return Enricher(settings, build_provider(settings, client), load_taxonomy(settings.taxonomy_file))
