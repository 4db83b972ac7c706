# src/models/entities.py

"""Searchable catalogue entities: products, brands, and categories."""

from dataclasses import asdict, dataclass, field
from typing import Any, ClassVar, Protocol


def pick_first_non_empty(*values: object) -> str:
    """Return the first value that is a non-blank string, else ``""``."""
    for value in values:
        if isinstance(value, str) and value.strip():
            return value.strip()
    return ""


def _as_int(value: object) -> int | None:
    if isinstance(value, bool):
        return None
    if isinstance(value, int):
        return value
    if isinstance(value, str) and value.strip().isdigit():
        return int(value.strip())
    return None


def _as_float(value: object) -> float | None:
    if value is None or isinstance(value, bool):
        return None
    try:
        return float(str(value))
    except ValueError:
        return None


def _as_text(value: object) -> str:
    return value.strip() if isinstance(value, str) else ""


class SearchableEntity(Protocol):
    """Anything the ranking engine can score."""

    id: int

    def name_fields(self) -> list[str]: ...

    def searchable_fields(self) -> list[str]: ...


@dataclass(frozen=True)
class _NamedEntity:
    """Shared fields of every catalogue entity."""

    # Display-name resolution order
    NAME_FIELDS: ClassVar[tuple[str, ...]] = ("name_en", "name", "name_ar")
    # Every textual field compared against a query
    SEARCH_FIELDS: ClassVar[tuple[str, ...]] = (
        "name_en", "name", "name_ar", "slug",
    )

    id: int
    name: str = ""
    name_en: str = ""
    name_ar: str = ""
    slug: str = ""

    @property
    def display_name(self) -> str:
        return pick_first_non_empty(
            *(getattr(self, f) for f in self.NAME_FIELDS)
        )

    def name_fields(self) -> list[str]:
        return [
            getattr(self, f) for f in self.NAME_FIELDS if getattr(self, f)
        ]

    def searchable_fields(self) -> list[str]:
        return [
            getattr(self, f)
            for f in self.SEARCH_FIELDS
            if getattr(self, f)
        ]

    def to_dict(self) -> dict[str, Any]:
        return asdict(self)


@dataclass(frozen=True)
class Brand(_NamedEntity):
    """A brand as returned by ``GET /brands``."""

    @classmethod
    def from_dict(cls, payload: dict[str, Any]) -> "Brand | None":
        entity_id = _as_int(payload.get("id"))
        if entity_id is None:
            return None
        return cls(
            id=entity_id,
            name=_as_text(payload.get("name")),
            name_en=_as_text(payload.get("name_en")),
            name_ar=_as_text(payload.get("name_ar")),
            slug=_as_text(payload.get("slug")),
        )


@dataclass(frozen=True)
class Category(_NamedEntity):
    """A category as returned by ``GET /categories``."""

    parent_id: int | None = None

    @classmethod
    def from_dict(cls, payload: dict[str, Any]) -> "Category | None":
        entity_id = _as_int(payload.get("id"))
        if entity_id is None:
            return None
        return cls(
            id=entity_id,
            name=_as_text(payload.get("name")),
            name_en=_as_text(payload.get("name_en")),
            name_ar=_as_text(payload.get("name_ar")),
            slug=_as_text(payload.get("slug")),
            parent_id=_as_int(payload.get("parent_id")),
        )


@dataclass(frozen=True)
class Product(_NamedEntity):
    """An immutable product snapshot from a search page or the local cache."""

    SEARCH_FIELDS: ClassVar[tuple[str, ...]] = (
        "name_en", "name", "name_ar", "slug", "sku",
    )

    sku: str = ""
    price: float | None = None
    main_image: str = ""
    brand_name: str = ""

    @classmethod
    def from_dict(cls, payload: dict[str, Any]) -> "Product | None":
        """Build a product from an API or cache payload.

        The API may embed ``brand`` either as a plain string or as a
        brand object; both collapse to ``brand_name``.
        """
        entity_id = _as_int(payload.get("id"))
        if entity_id is None:
            return None

        brand: object = payload.get("brand")
        if isinstance(brand, dict):
            brand_name = pick_first_non_empty(
                brand.get("name_en"), brand.get("name"),
            )
        else:
            brand_name = pick_first_non_empty(
                payload.get("brand_name"), brand,
            )

        return cls(
            id=entity_id,
            name=_as_text(payload.get("name")),
            name_en=_as_text(payload.get("name_en")),
            name_ar=_as_text(payload.get("name_ar")),
            slug=_as_text(payload.get("slug")),
            sku=_as_text(payload.get("sku")),
            price=_as_float(payload.get("price")),
            main_image=_as_text(payload.get("main_image")),
            brand_name=brand_name,
        )


@dataclass(frozen=True)
class RankedResult:
    """An entity with its relevance score and original fetch position."""

    entity: Any
    score: int
    index: int


@dataclass(frozen=True)
class TrendingSnapshot:
    """Cached trending terms plus when they were fetched (epoch ms)."""

    items: list[str] = field(default_factory=lambda: list[str]())
    fetched_at: int | None = None
