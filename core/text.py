"""
core/text.py -- Pure text transformations used by the content lifecycle.

No I/O, no clock reads except where a caller passes one in. Every function
here is a single pass over its input and safe to call from any layer.
"""

import math
import re
import time
import unicodedata
from collections import Counter
from collections.abc import Iterable

WORDS_PER_MINUTE = 200
EXCERPT_LENGTH = 200

_NON_ALNUM_RE = re.compile(r"[^a-z0-9]+")


def slugify(title: str) -> str:
    """Derive a URL-safe slug from a title.

    Lowercases, folds accented characters to ASCII where a decomposition
    exists, collapses every run of non-alphanumeric characters to a single
    hyphen and strips leading/trailing hyphens. Idempotent.

        slugify("  Hello, World! ")  -> "hello-world"
        slugify("Café & Crème")      -> "cafe-creme"
    """
    folded = unicodedata.normalize("NFKD", title).encode("ascii", "ignore").decode("ascii")
    return _NON_ALNUM_RE.sub("-", folded.lower().strip()).strip("-")


def disambiguate_slug(slug: str, now_ms: int | None = None) -> str:
    """Append a time-based suffix so a colliding slug becomes unique.

    The suffix is the current epoch time in milliseconds; the prefix is
    always preserved.
    """
    if now_ms is None:
        now_ms = int(time.time() * 1000)
    return f"{slug}-{now_ms}"


def read_time_minutes(content: str) -> int:
    """Estimated reading time at 200 words per minute, rounded up."""
    words = len(content.split())
    return math.ceil(words / WORDS_PER_MINUTE)


def make_excerpt(content: str, length: int = EXCERPT_LENGTH) -> str:
    """First `length` characters of content, with an ellipsis when truncated."""
    if len(content) <= length:
        return content
    return content[:length] + "..."


def count_frequencies(groups: Iterable[Iterable[str]]) -> list[dict]:
    """Count how many groups each value appears in, most common first.

    Each group is a record's tag/technology list. Returned as
    [{"name": value, "count": n}, ...]. Ties keep first-seen order.
    """
    counts: Counter[str] = Counter()
    for values in groups:
        counts.update(dict.fromkeys(values, 1))
    return [{"name": name, "count": count} for name, count in counts.most_common()]
