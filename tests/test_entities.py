# tests/test_entities.py

"""Tests for catalogue entity parsing and field resolution."""

import unittest

from src.models.entities import (
    Brand,
    Category,
    Product,
    pick_first_non_empty,
)


class TestPickFirstNonEmpty(unittest.TestCase):
    """pick_first_non_empty helper."""

    def test_skips_blank_and_non_strings(self) -> None:
        self.assertEqual(pick_first_non_empty(None, "  ", 5, " Tote "), "Tote")

    def test_all_empty(self) -> None:
        self.assertEqual(pick_first_non_empty("", None), "")


class TestProduct(unittest.TestCase):
    """Product.from_dict / fields."""

    def test_display_name_priority(self) -> None:
        product = Product(id=1, name="fallback", name_en="English", name_ar="عربي")
        self.assertEqual(product.display_name, "English")
        self.assertEqual(Product(id=2, name="fallback").display_name, "fallback")
        self.assertEqual(Product(id=3, name_ar="عربي").display_name, "عربي")

    def test_searchable_fields_include_slug_and_sku(self) -> None:
        product = Product(id=1, name="Tote", slug="tote-bag", sku="TB-1")
        self.assertEqual(
            product.searchable_fields(), ["Tote", "tote-bag", "TB-1"]
        )

    def test_from_dict_requires_integer_id(self) -> None:
        self.assertIsNone(Product.from_dict({"name": "x"}))
        self.assertIsNone(Product.from_dict({"id": True, "name": "x"}))
        self.assertIsNone(Product.from_dict({"id": "abc"}))

    def test_from_dict_brand_string(self) -> None:
        product = Product.from_dict({"id": 1, "brand": "Acme"})
        assert product is not None
        self.assertEqual(product.brand_name, "Acme")

    def test_from_dict_bad_price(self) -> None:
        product = Product.from_dict({"id": 1, "price": "n/a"})
        assert product is not None
        self.assertIsNone(product.price)

    def test_roundtrip(self) -> None:
        product = Product(id=4, name="Scarf", price=12.0, brand_name="Acme")
        self.assertEqual(Product.from_dict(product.to_dict()), product)

    def test_frozen(self) -> None:
        product = Product(id=1, name="Tote")
        with self.assertRaises(AttributeError):
            product.name = "Other"  # type: ignore[misc]


class TestBrandAndCategory(unittest.TestCase):
    """Brand / Category parsing."""

    def test_brand_searchable_fields_exclude_sku(self) -> None:
        brand = Brand(id=1, name="Nike", slug="nike")
        self.assertEqual(brand.searchable_fields(), ["Nike", "nike"])

    def test_category_parent(self) -> None:
        category = Category.from_dict({"id": 2, "name": "Bags", "parent_id": None})
        assert category is not None
        self.assertIsNone(category.parent_id)
        self.assertEqual(category.name_fields(), ["Bags"])


if __name__ == "__main__":
    unittest.main()
