# src/filters/ranking.py

"""Field-level relevance ranking for catalogue entities."""

import logging
from collections.abc import Sequence
from typing import TypeVar

from src.filters.text_normalizer import normalize
from src.models.entities import RankedResult, SearchableEntity

logger = logging.getLogger("storefront_search.filters")

E = TypeVar("E", bound=SearchableEntity)

EXACT_SCORE = 100
PREFIX_SCORE = 80
CONTAINS_SCORE = 60
NO_MATCH_SCORE = 0


class RelevanceRanker:
    """Score entities against a query by exact / prefix / substring tiers."""

    @staticmethod
    def _field_score(field_text: str, norm_query: str) -> int:
        if not field_text:
            return NO_MATCH_SCORE
        if field_text == norm_query:
            return EXACT_SCORE
        if field_text.startswith(norm_query):
            return PREFIX_SCORE
        # Whole-token hits are a subset of substring hits: same tier
        if norm_query in field_text:
            return CONTAINS_SCORE
        return NO_MATCH_SCORE

    @staticmethod
    def score(entity: SearchableEntity, norm_query: str) -> int:
        """Best tier across the entity's fields (tiers never add up).

        *norm_query* must already be normalized.
        """
        if not norm_query:
            return NO_MATCH_SCORE
        return max(
            (
                RelevanceRanker._field_score(normalize(text), norm_query)
                for text in entity.searchable_fields()
            ),
            default=NO_MATCH_SCORE,
        )

    @staticmethod
    def rank_with_scores(
        entities: Sequence[E], query: str,
    ) -> list[RankedResult]:
        """Rank and keep the score and fetch index of every entity."""
        norm_query = normalize(query)
        scored = [
            RankedResult(
                entity=entity,
                score=RelevanceRanker.score(entity, norm_query),
                index=idx,
            )
            for idx, entity in enumerate(entities)
        ]
        if not norm_query:
            return scored
        # Index tie-break keeps equal scores in fetch order
        return sorted(scored, key=lambda r: (-r.score, r.index))

    @staticmethod
    def rank(entities: Sequence[E], query: str) -> list[E]:
        """Return *entities* ordered by relevance to *query*.

        An empty normalized query is a no-op: the input order is
        returned unchanged.  Non-matching entities are kept, last.
        """
        if not normalize(query):
            return list(entities)
        ranked = RelevanceRanker.rank_with_scores(entities, query)
        return [r.entity for r in ranked]

    @staticmethod
    def has_exact_match(entity: SearchableEntity, query: str) -> bool:
        """True if any field normalizes to exactly the normalized query."""
        norm_query = normalize(query)
        if not norm_query:
            return False
        return any(
            normalize(text) == norm_query
            for text in entity.searchable_fields()
        )

    @staticmethod
    def filter_by_name(
        entities: Sequence[E], query: str, limit: int,
    ) -> list[E]:
        """Keep entities whose normalized name contains the query.

        Used for brands and categories, which the API returns in full.
        Input order is preserved and the result is capped at *limit*.
        """
        norm_query = normalize(query)
        if not norm_query:
            return []
        matched: list[E] = []
        for entity in entities:
            if any(
                norm_query in normalize(name)
                for name in entity.name_fields()
            ):
                matched.append(entity)
                if len(matched) >= limit:
                    break
        logger.debug(
            "Name filter '%s' kept %d of %d", norm_query, len(matched),
            len(entities),
        )
        return matched
