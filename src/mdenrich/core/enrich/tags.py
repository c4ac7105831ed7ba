"""Tag generation: remote JSON tag list or a deterministic keyword taxonomy"""

import json
import re
from pathlib import Path

import yaml

from mdenrich.core.enrich.providers import CompletionProvider
from mdenrich.util.errors import ConfigurationError, EnrichmentError


PROMPT_CHARS = 3000
MAX_TAGS = 8

_WORD_RE = re.compile(r'\W+')
_FENCE_RE = re.compile(r'^```(?:json)?\s*|\s*```$')

# keyword (lowercase, single word or phrase) -> tags it implies
DEFAULT_TAXONOMY: dict[str, list[str]] = {
    # Python ecosystem
    "python": ["Python"],
    "django": ["Django", "Python"],
    "flask": ["Flask", "Python"],
    "fastapi": ["FastAPI", "Python"],
    "pydantic": ["Pydantic", "Python"],
    "asyncio": ["Asyncio", "Python", "Concurrency"],
    "pytest": ["pytest", "Testing", "Python"],
    "typing": ["Type Hints", "Python"],
    "type hints": ["Type Hints", "Python"],
    "virtualenv": ["Virtual Environments", "Python"],
    "packaging": ["Packaging", "Python"],
    "pip": ["pip", "Packaging"],
    "sqlalchemy": ["SQLAlchemy", "Database", "Python"],
    "celery": ["Celery", "Python", "Background Jobs"],

    # Web development
    "html": ["HTML", "Web Development"],
    "css": ["CSS", "Web Development"],
    "javascript": ["JavaScript", "Web Development"],
    "typescript": ["TypeScript", "Web Development"],
    "tailwind": ["Tailwind CSS", "CSS"],
    "websocket": ["WebSockets", "Real-time"],
    "rest": ["REST API", "API"],
    "graphql": ["GraphQL", "API"],
    "json api": ["JSON API", "API"],
    "api": ["API", "Web Development"],
    "http": ["HTTP", "Web Development"],
    "accessibility": ["Accessibility", "Web Development"],
    "responsive": ["Responsive Design", "CSS"],

    # Databases
    "postgresql": ["PostgreSQL", "Database"],
    "postgres": ["PostgreSQL", "Database"],
    "sqlite": ["SQLite", "Database"],
    "database": ["Database"],
    "sql": ["SQL", "Database"],
    "migration": ["Database Migration", "Database"],
    "schema": ["Database Schema", "Database"],
    "redis": ["Redis", "Caching"],

    # Security
    "security": ["Security"],
    "cybersecurity": ["Cybersecurity", "Security"],
    "authentication": ["Authentication", "Security"],
    "authorization": ["Authorization", "Security"],
    "csrf": ["CSRF", "Security"],
    "xss": ["XSS", "Security"],
    "sql injection": ["SQL Injection", "Security"],
    "encryption": ["Encryption", "Security"],
    "oauth": ["OAuth", "Authentication"],
    "jwt": ["JWT", "Authentication"],
    "cors": ["CORS", "Security"],
    "tls": ["TLS", "Security"],
    "privacy": ["Privacy", "Security"],
    "gdpr": ["GDPR", "Privacy"],

    # Practices and operations
    "testing": ["Testing"],
    "unit testing": ["Unit Testing", "Testing"],
    "integration testing": ["Integration Testing", "Testing"],
    "tdd": ["TDD", "Testing"],
    "continuous integration": ["CI/CD", "DevOps"],
    "deployment": ["Deployment", "DevOps"],
    "docker": ["Docker", "DevOps"],
    "kubernetes": ["Kubernetes", "DevOps"],
    "performance": ["Performance"],
    "caching": ["Caching", "Performance"],
    "logging": ["Logging", "Observability"],
    "monitoring": ["Monitoring", "Observability"],
    "metrics": ["Metrics", "Observability"],
    "microservices": ["Microservices", "Architecture"],
    "event sourcing": ["Event Sourcing", "Architecture"],
    "concurrency": ["Concurrency"],

    # Content types
    "tutorial": ["Tutorial"],
    "guide": ["Guide"],
    "getting started": ["Getting Started", "Tutorial"],
    "best practices": ["Best Practices"],
    "beginner": ["Beginner"],
    "advanced": ["Advanced"],
    "case study": ["Case Study"],
}

SYSTEM_PROMPT = ("You are a technical content analyzer specializing in {areas}. "
                 "Return only JSON arrays of tags.")

PROMPT = """Analyze the following article and generate relevant tags.
Focus ONLY on: {areas}.
Return only a JSON array of strings, with each tag being 1-3 words maximum.
Limit to {limit} tags maximum.

Title: {title}
Summary: {excerpt}

Content:
{content}"""


def load_taxonomy(path: str | None) -> dict[str, list[str]]:
    """Return the taxonomy from a YAML file, or the built-in table when path is None."""
    if path is None:
        return DEFAULT_TAXONOMY
    try:
        data = yaml.safe_load(Path(path).read_text(encoding='utf-8')) or {}
    except (OSError, yaml.YAMLError) as e:
        raise ConfigurationError(f"Invalid taxonomy file {path}: {e}") from e
    if not isinstance(data, dict):
        raise ConfigurationError(f"Invalid taxonomy file {path}: expected a mapping")
    return {
        str(k).lower(): [str(t) for t in (v if isinstance(v, list) else [v])]
        for k, v in data.items()
    }


def _keywords(text: str, taxonomy: dict[str, list[str]]) -> list[str]:
    """Word tokens of length >= 3 in order, then taxonomy keys found as substrings, deduped."""
    words = [w for w in _WORD_RE.split(text) if len(w) >= 3]
    phrases = [k for k in taxonomy if k in text]
    return list(dict.fromkeys(words + phrases))


def tags_fallback(text: str, taxonomy: dict[str, list[str]] = DEFAULT_TAXONOMY, limit: int = MAX_TAGS) -> list[str]:
    """Deterministic tags from keyword matches against the taxonomy."""
    tags: list[str] = []
    for keyword in _keywords(text.lower(), taxonomy):
        tags.extend(taxonomy.get(keyword, []))
    return list(dict.fromkeys(t for t in tags if t))[:limit]


def parse_tag_response(response: str, limit: int = MAX_TAGS) -> list[str] | None:
    """Validated tags from a JSON array response, or None when unusable."""
    text = _FENCE_RE.sub('', response.strip())
    try:
        data = json.loads(text)
    except ValueError:
        return None
    if not isinstance(data, list):
        return None
    tags = [t.strip() for t in data if isinstance(t, str) and t.strip()]
    tags = list(dict.fromkeys(tags))[:limit]
    return tags or None


def remote_tags(title: str, excerpt: str, body: str, provider: CompletionProvider,
                subject_areas: list[str], limit: int = MAX_TAGS) -> list[str]:
    """Ask the provider for tags. Raises EnrichmentError on any unusable answer."""
    areas = ", ".join(subject_areas)
    response = provider.complete(
        PROMPT.format(areas=areas, limit=limit, title=title, excerpt=excerpt, content=body[:PROMPT_CHARS]),
        system=SYSTEM_PROMPT.format(areas=areas),
        max_tokens=100,
        temperature=0.3,
    )
    tags = parse_tag_response(response, limit)
    if tags is None:
        raise EnrichmentError("unusable tag list", provider_name=provider.name)
    return tags
