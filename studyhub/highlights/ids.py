"""Highlight id helpers.

New highlights get a UUID4. Notes written by older clients carry legacy ids of
the form `{category}-{n}` (e.g. `red-2`); those ids are kept as-is and their
`n` is trusted as a numbering hint.
"""

import re
import uuid
from functools import lru_cache
from typing import Iterable, Optional, Tuple

from studyhub.models.highlight import DEFAULT_HIGHLIGHT_CATEGORIES


def generate_highlight_id() -> str:
    return str(uuid.uuid4())


@lru_cache(maxsize=32)
def _legacy_pattern(category_keys: Tuple[str, ...]) -> re.Pattern:
    alternatives = "|".join(re.escape(k) for k in category_keys)
    return re.compile(rf"^({alternatives})-(\d+)$")


def legacy_id_pattern(categories: Iterable[str] = DEFAULT_HIGHLIGHT_CATEGORIES) -> re.Pattern:
    return _legacy_pattern(tuple(categories))


def parse_legacy_highlight_id(
    highlight_id: Optional[str],
    categories: Iterable[str] = DEFAULT_HIGHLIGHT_CATEGORIES,
) -> Optional[Tuple[str, int]]:
    """(category, number) for a legacy id, else None."""
    if not highlight_id:
        return None
    match = legacy_id_pattern(categories).match(highlight_id)
    if match is None:
        return None
    return match.group(1), int(match.group(2))


def is_legacy_highlight_id(
    highlight_id: Optional[str],
    categories: Iterable[str] = DEFAULT_HIGHLIGHT_CATEGORIES,
) -> bool:
    return parse_legacy_highlight_id(highlight_id, categories) is not None


def is_uuid(value: Optional[str]) -> bool:
    if not value:
        return False
    try:
        uuid.UUID(str(value))
        return True
    except ValueError:
        return False


def is_valid_highlight_id(
    highlight_id: Optional[str],
    categories: Iterable[str] = DEFAULT_HIGHLIGHT_CATEGORIES,
) -> bool:
    return is_uuid(highlight_id) or is_legacy_highlight_id(highlight_id, categories)
