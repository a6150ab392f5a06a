"""URL slug helper for canonical entity titles."""

import re

_NON_ALNUM_RE = re.compile(r"[^a-z0-9]+")


def create_slug(title: str) -> str:
    """Lowercase, collapse every non-alphanumeric run to one hyphen, trim hyphens."""

    slug = _NON_ALNUM_RE.sub("-", title.strip().lower())
    return slug.strip("-")
