from __future__ import annotations

import unittest

from incentives.departments import NO_MATCH, DepartmentCatalog


class TestDepartmentCatalog(unittest.TestCase):
    def setUp(self) -> None:
        self.catalog = DepartmentCatalog()

    def test_exact_match_ignores_case_and_spacing(self) -> None:
        self.assertEqual(self.catalog.canonicalize("  SAREES "), "sarees")
        self.assertEqual(self.catalog.canonicalize("Men’s   Ethnic"), "men's ethnic")

    def test_variant_table(self) -> None:
        self.assertEqual(self.catalog.canonicalize("Mens Accessories"), "men's ethnic")
        self.assertEqual(self.catalog.canonicalize("Saree"), "sarees")
        self.assertEqual(self.catalog.canonicalize("womens ethnis"), "women's ethnic")

    def test_containment_either_direction(self) -> None:
        self.assertEqual(self.catalog.canonicalize("Kurta Pyjama"), "kurta")
        self.assertEqual(self.catalog.canonicalize("readymade"), "men's readymade")

    def test_unknown_and_blank_are_no_match(self) -> None:
        self.assertIs(self.catalog.canonicalize("Electronics"), NO_MATCH)
        self.assertIs(self.catalog.canonicalize(""), NO_MATCH)
        self.assertIs(self.catalog.canonicalize(None), NO_MATCH)
        self.assertFalse(self.catalog.is_master("Electronics"))
        self.assertTrue(self.catalog.is_master("kurta"))

    def test_format_with_counter(self) -> None:
        self.assertEqual(self.catalog.format_with_counter("Kurta", "C2"), "kurta (C2)")
        self.assertEqual(self.catalog.format_with_counter("Kurta", ""), "kurta")
        self.assertEqual(self.catalog.format_with_counter("Electronics", "C2"), "")

    def test_not_visited_keeps_master_order(self) -> None:
        remaining = self.catalog.not_visited(["sarees", "kurta"])
        self.assertEqual(
            remaining,
            ["shutting shirting", "men's ethnic", "men's readymade", "women's ethnic"],
        )

    def test_custom_taxonomy(self) -> None:
        catalog = DepartmentCatalog(departments=["Toys", "Books"], variants={"comics": "Books"})
        self.assertEqual(catalog.departments, ("Toys", "Books"))
        self.assertEqual(catalog.canonicalize("COMICS"), "Books")
        self.assertIs(catalog.canonicalize("kurta"), NO_MATCH)

    def test_rejects_empty_master_list(self) -> None:
        with self.assertRaises(ValueError):
            DepartmentCatalog(departments=["  "])

    def test_rejects_variant_pointing_outside_master_list(self) -> None:
        with self.assertRaises(ValueError):
            DepartmentCatalog(departments=["Toys"], variants={"lego": "Bricks"})


if __name__ == "__main__":
    unittest.main()
