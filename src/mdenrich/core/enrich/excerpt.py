"""Remote excerpt writing; the synthesized excerpt is the fallback"""

from mdenrich.core.enrich.providers import CompletionProvider
from mdenrich.core.synthesize import MAX_EXCERPT, clean_excerpt
from mdenrich.util.errors import EnrichmentError


PROMPT_CHARS = 2000

SYSTEM_PROMPT = ("You are a professional editor creating compelling excerpts "
                 "for technical articles.")

PROMPT = """Please create a concise, engaging excerpt for this article that would work well on a card.

Requirements:
- Maximum 150-180 characters
- Focus on the main value to the reader
- No quotes around the response
- Professional but approachable tone

Article:
{content}"""


def remote_excerpt(title: str, body: str, provider: CompletionProvider) -> str:
    """Ask the provider for an excerpt; quotes and markup stripped, capped at 200 characters."""
    content = "\n\n".join(part for part in (title, body) if part and part.strip())
    response = provider.complete(
        PROMPT.format(content=content[:PROMPT_CHARS]),
        system=SYSTEM_PROMPT,
        max_tokens=100,
        temperature=0.7,
    )
    if not response.strip():
        raise EnrichmentError("empty excerpt", provider_name=provider.name)
    excerpt = clean_excerpt(response)
    return excerpt[:MAX_EXCERPT]
