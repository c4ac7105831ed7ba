"""Read-time estimation: remote estimate validated to 1-60 minutes, word-count fallback"""

import re

from mdenrich.core.enrich.providers import CompletionProvider
from mdenrich.core.utils.plaintext import word_count
from mdenrich.util.errors import EnrichmentError


PROMPT_CHARS = 4000
MIN_MINUTES, MAX_MINUTES = 1, 60
DEFAULT_WPM = 225

PROMPT = """Analyze the following article and estimate the read time in minutes.
Consider technical complexity, code blocks, and typical reading patterns.
Return only the number of minutes as an integer.
Content:
{content}"""

_NON_DIGIT_RE = re.compile(r'\D')


def read_time_fallback(text: str, words_per_minute: int = DEFAULT_WPM, preset: str = 'commonmark') -> int:
    """Minutes to read `text` at `words_per_minute`, code blocks excluded; never below 1."""
    return max(1, round(word_count(text, preset) / words_per_minute))


def parse_minutes(response: str) -> int | None:
    """Digits of the response as an integer when within 1-60, else None."""
    digits = _NON_DIGIT_RE.sub('', response)
    if not digits:
        return None
    minutes = int(digits)
    return minutes if MIN_MINUTES <= minutes <= MAX_MINUTES else None


def remote_read_time(body: str, provider: CompletionProvider) -> int:
    """Ask the provider for a minute count. Raises EnrichmentError on any unusable answer."""
    response = provider.complete(
        PROMPT.format(content=body[:PROMPT_CHARS]),
        max_tokens=10,
        temperature=0.1,
    )
    minutes = parse_minutes(response)
    if minutes is None:
        raise EnrichmentError(f"unusable read time {response.strip()[:40]!r}", provider_name=provider.name)
    return minutes
