"""Slug derivation for record identifiers"""

from pathlib import PurePath


def filename_to_slug(filename: str) -> str:
    """Strip the extension and replace underscores with hyphens: `my_post.md` → `my-post`."""
    return PurePath(filename).stem.replace('_', '-')
