"""File discovery, front-matter splitting and typed metadata coercion"""

from datetime import datetime, timezone
from pathlib import Path
from typing import Any

from mdenrich.core.models import Document, ParsedMetadata
from mdenrich.util.errors import ParseError


FENCE = "---"
MD_EXTENSIONS = {'.md', '.mdx'}
UNTITLED = "Untitled"

LIST_FIELDS     = {'tags'}
BOOL_FIELDS     = {'featured', 'published'}
DATETIME_FIELDS = {'published_at'}
INT_FIELDS      = {'read_time_minutes'}
TEXT_FIELDS     = {'title', 'slug', 'excerpt', 'author', 'author_contact'}

# Alternate spellings seen in the wild, mapped onto the canonical field
KEY_ALIASES = {
    'author_email': 'author_contact',
    'date': 'published_at',
    'read_time': 'read_time_minutes',
}


def _trim_quotes(value: str) -> str:
    """Remove one matching pair of surrounding double or single quotes."""
    if len(value) >= 2 and value[0] == value[-1] and value[0] in ('"', "'"):
        return value[1:-1]
    return value


def parse_tags(value: str) -> list[str]:
    """Parse `[a, "b"]` or `a, b` into a list of unique non-empty strings, order kept."""
    value = value.strip()
    if value.startswith('[') and value.endswith(']'):
        value = value[1:-1]
    tags = (_trim_quotes(part.strip()).strip() for part in value.split(','))
    return list(dict.fromkeys(t for t in tags if t))


def parse_datetime(value: str) -> datetime:
    """Parse an ISO date or date-time; aware values become naive UTC; unparseable → now."""
    try:
        parsed = datetime.fromisoformat(value.strip())
    except ValueError:
        return datetime.now()
    if parsed.tzinfo is not None:
        parsed = parsed.astimezone(timezone.utc).replace(tzinfo=None)
    return parsed


def _parse_int(key: str, value: str) -> int:
    try:
        return int(value.strip())
    except ValueError:
        raise ParseError(f"Invalid integer for '{key}': {value!r}") from None


def _coerce(key: str, value: str) -> Any:
    if key in LIST_FIELDS:
        return parse_tags(value)
    if key in BOOL_FIELDS:
        return value.strip().lower() == 'true'
    if key in DATETIME_FIELDS:
        return parse_datetime(value)
    if key in INT_FIELDS:
        return _parse_int(key, value)
    return value


def parse_frontmatter(block: str) -> ParsedMetadata:
    """Parse `key: value` lines into ParsedMetadata; unknown keys go to `extra`.

    Raises ParseError when an integer field holds a non-numeric value.
    """
    fields: dict[str, Any] = {}
    extra: dict[str, str] = {}
    for line in block.splitlines():
        stripped = line.strip()
        if not stripped or stripped.startswith('#') or ':' not in stripped:
            continue
        key, value = stripped.split(':', 1)
        key = key.strip()
        value = _trim_quotes(value.strip())
        key = KEY_ALIASES.get(key, key)
        if key in TEXT_FIELDS or key in LIST_FIELDS or key in BOOL_FIELDS \
                or key in DATETIME_FIELDS or key in INT_FIELDS:
            fields[key] = _coerce(key, value)
        else:
            extra[key] = value
    return ParsedMetadata(**fields, extra=extra)


def split_frontmatter(text: str) -> tuple[str, str] | None:
    """Return (metadata_block, body) when text opens with a fenced block, else None."""
    lines = text.splitlines()
    if not lines or lines[0].strip() != FENCE:
        return None
    for i in range(1, len(lines)):
        if lines[i].strip() == FENCE:
            return "\n".join(lines[1:i]), "\n".join(lines[i + 1:])
    return None


def extract_title(text: str) -> tuple[str, str]:
    """Return (title, remaining_text) using the first `# ` heading; 'Untitled' if none."""
    lines = text.split("\n")
    for i, line in enumerate(lines):
        if line.startswith("# "):
            title = line[2:].strip()
            return title or UNTITLED, "\n".join(lines[:i] + lines[i + 1:])
    return UNTITLED, text


def parse_document(text: str) -> tuple[ParsedMetadata, str]:
    """Split raw text into (ParsedMetadata, body).

    Never fails on missing structure: without front-matter the first level-1
    heading supplies the title.
    """
    split = split_frontmatter(text)
    if split is not None:
        block, body = split
        return parse_frontmatter(block), body.strip()

    title, body = extract_title(text)
    return ParsedMetadata(title=title), body.strip()


def read_document(path: Path) -> Document:
    """Read raw bytes for a source file."""
    try:
        return Document(path=path, raw=path.read_bytes())
    except OSError as e:
        raise ParseError(f"Cannot read {path}: {e}") from e


def decode_document(doc: Document) -> str:
    try:
        return doc.raw.decode('utf-8-sig')
    except UnicodeDecodeError as e:
        raise ParseError(f"{doc.filename} is not valid UTF-8: {e}") from e


def discover_files(path: Path) -> list[Path]:
    """Return sorted .md/.mdx files under path, or [path] if a single file."""
    if path.is_file():
        return [path] if path.suffix in MD_EXTENSIONS else []
    return sorted(p for p in path.rglob('*') if p.is_file() and p.suffix in MD_EXTENSIONS)
