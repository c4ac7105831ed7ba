"""Exception hierarchy shared by the parser, enrichment, persistence and loader layers.

Per-document failures (``ParseError``, ``PersistenceError``) are caught by the
pipeline and recorded; ``EnrichmentError`` never leaves the enricher because
every remote field has a local fallback; ``PipelineError`` aborts a load.
"""


class MdEnrichError(Exception):
    """Base exception carrying a message and an optional provider name."""

    def __init__(self, message: str = "An unexpected error occurred", provider_name: str | None = None) -> None:
        self._message = message
        self._provider_name = provider_name
        super().__init__(message)

    @property
    def message(self) -> str:
        return self._message

    @property
    def provider_name(self) -> str | None:
        return self._provider_name

    def __str__(self) -> str:
        if self._provider_name:
            return f"[{self._provider_name}] {self._message}"
        return self._message


class ParseError(MdEnrichError):
    """A document could not be read or declares a malformed typed field."""


class EnrichmentError(MdEnrichError):
    """A remote completion call failed or returned an unusable response."""


class PersistenceError(MdEnrichError):
    """A lookup or write against the record store failed."""


class PipelineError(MdEnrichError):
    """A load cannot continue (e.g. the content directory is missing)."""


class ConfigurationError(MdEnrichError, ValueError):
    """config.yaml or an override holds an invalid value."""
