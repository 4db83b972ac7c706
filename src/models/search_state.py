# src/models/search_state.py

"""Observable state of a search session."""

from dataclasses import dataclass, field
from enum import Enum

from src.models.entities import Brand, Category, Product


class SearchState(Enum):
    """Lifecycle of a search-as-you-type attempt."""

    IDLE = "idle"
    DEBOUNCING = "debouncing"
    FETCHING = "fetching"
    COMPLETED = "completed"
    SUPERSEDED = "superseded"
    FAILED = "failed"


@dataclass(frozen=True)
class SearchViewState:
    """Everything a presentation layer renders for the search screen.

    A new instance is published on every change; listeners never see a
    partially updated snapshot.
    """

    query: str = ""
    status: SearchState = SearchState.IDLE
    is_searching: bool = False
    products: list[Product] = field(
        default_factory=lambda: list[Product]()
    )
    brands: list[Brand] = field(
        default_factory=lambda: list[Brand]()
    )
    categories: list[Category] = field(
        default_factory=lambda: list[Category]()
    )
    recent_searches: list[str] = field(
        default_factory=lambda: list[str]()
    )
    trending_searches: list[str] = field(
        default_factory=lambda: list[str]()
    )
    recently_viewed: list[Product] = field(
        default_factory=lambda: list[Product]()
    )

    @property
    def has_results(self) -> bool:
        return bool(self.products or self.brands or self.categories)
