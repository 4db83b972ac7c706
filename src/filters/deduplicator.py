# src/filters/deduplicator.py

"""Order-preserving merge and deduplication of history lists."""

import logging
from collections.abc import Iterable, Sequence
from typing import TypeVar

from src.filters.text_normalizer import normalize
from src.models.entities import SearchableEntity

logger = logging.getLogger("storefront_search.filters")

E = TypeVar("E", bound=SearchableEntity)


class ListDeduplicator:
    """Merge local and remote lists without duplicates.

    Nothing here re-sorts: the first occurrence wins, so whichever list
    is passed as *primary* takes priority on conflict.
    """

    @staticmethod
    def dedupe_strings(
        items: Iterable[object], limit: int | None = None,
    ) -> list[str]:
        """Trim, drop blanks, and keep the first item per normalized key."""
        seen: set[str] = set()
        kept: list[str] = []
        for item in items:
            text = str(item).strip() if item is not None else ""
            if not text:
                continue
            key = normalize(text)
            if key in seen:
                continue
            seen.add(key)
            kept.append(text)
            if limit is not None and len(kept) >= limit:
                break
        return kept

    @staticmethod
    def merge_string_lists(
        primary: Sequence[str],
        secondary: Sequence[str],
        limit: int,
    ) -> list[str]:
        """Concatenate *primary* then *secondary*, dedupe, and truncate."""
        if limit <= 0:
            return []
        merged = ListDeduplicator.dedupe_strings(
            [*primary, *secondary], limit
        )
        dropped = len(primary) + len(secondary) - len(merged)
        if dropped:
            logger.debug(
                "String merge dropped %d duplicate/blank/overflow items",
                dropped,
            )
        return merged

    @staticmethod
    def dedupe_by_id(entities: Iterable[E]) -> list[E]:
        """Keep the first entity per integer ``id``, in order."""
        seen: set[int] = set()
        kept: list[E] = []
        for entity in entities:
            entity_id = getattr(entity, "id", None)
            if not isinstance(entity_id, int) or entity_id in seen:
                continue
            seen.add(entity_id)
            kept.append(entity)
        return kept

    @staticmethod
    def merge_entities(
        primary: Sequence[E],
        secondary: Sequence[E],
        limit: int,
    ) -> list[E]:
        """``dedupe_by_id(primary + secondary)`` truncated to *limit*."""
        if limit <= 0:
            return []
        return ListDeduplicator.dedupe_by_id(
            [*primary, *secondary]
        )[:limit]
