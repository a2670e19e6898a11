import re
from typing import Iterable

FALLBACK_SLUG = "project"


def slugify(title: str, existing_slugs: Iterable[str] = ()) -> str:
    """Derive a URL slug from ``title`` that is not in ``existing_slugs``.

    Collisions get ``-2``, ``-3``, ... appended until the slug is free.
    """
    slug = (title or "").lower().strip()
    slug = re.sub(r"[^a-z0-9\s-]", "", slug)
    slug = re.sub(r"\s+", "-", slug)
    slug = re.sub(r"-+", "-", slug)
    slug = slug.strip("-") or FALLBACK_SLUG

    taken = set(existing_slugs)
    candidate = slug
    counter = 2
    while candidate in taken:
        candidate = f"{slug}-{counter}"
        counter += 1
    return candidate
