"""Markdown to plain text via markdown-it tokens (code blocks dropped, inline markup removed)"""

import re
from functools import lru_cache

from markdown_it import MarkdownIt


SKIP_BLOCKS = {'fence', 'code_block', 'html_block'}
WHITESPACE_RE = re.compile(r'\s+')


@lru_cache(maxsize=8)
def _make_parser(preset: str) -> MarkdownIt:
    """Build a MarkdownIt instance for the given preset name."""
    return MarkdownIt(preset, options_update={"linkify": False})


def _inline_text(token) -> str:
    parts = []
    for child in token.children or []:
        if child.type in ('text', 'code_inline'):
            parts.append(child.content)
        elif child.type == 'image':
            parts.append(child.content)     # alt text
        elif child.type in ('softbreak', 'hardbreak'):
            parts.append(' ')
    return ''.join(parts)


def to_plain_text(markdown: str, preset: str = 'commonmark') -> str:
    """Return whitespace-collapsed text with headings, emphasis, inline code and links reduced to their text."""
    blocks = []
    for token in _make_parser(preset).parse(markdown):
        if token.type in SKIP_BLOCKS:
            continue
        if token.type == 'inline':
            blocks.append(_inline_text(token))
    return collapse_whitespace(' '.join(blocks))


def collapse_whitespace(text: str) -> str:
    return WHITESPACE_RE.sub(' ', text).strip()


def word_count(markdown: str, preset: str = 'commonmark') -> int:
    """Count whitespace-delimited words outside code blocks."""
    return len(to_plain_text(markdown, preset).split())
