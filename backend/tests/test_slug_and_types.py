"""Unit tests for slugs and extraction result classification."""

import unittest

from ideagraph.extraction.types import (
    ExtractedIdea,
    ExtractedProblem,
    ExtractedProduct,
    ExtractionResult,
    ExtractionVerdict,
    split_categories,
)
from ideagraph.utils.slug import create_slug


class SlugTests(unittest.TestCase):
    def test_non_alphanumeric_runs_collapse_to_single_hyphen(self) -> None:
        self.assertEqual(create_slug("  Hello,  World!! 2024 "), "hello-world-2024")
        self.assertEqual(create_slug("--AI / SaaS--"), "ai-saas")

    def test_empty_and_symbol_only_titles_give_empty_slug(self) -> None:
        self.assertEqual(create_slug(""), "")
        self.assertEqual(create_slug("!!!"), "")


class ExtractionResultTests(unittest.TestCase):
    def test_meta_wins_over_scores(self) -> None:
        result = ExtractionResult(is_meta=True, problem=ExtractedProblem(title="x", score=80))

        self.assertEqual(result.classify(), ExtractionVerdict.META)

    def test_no_scores_and_no_products_is_empty(self) -> None:
        self.assertEqual(ExtractionResult().classify(), ExtractionVerdict.EMPTY)

    def test_product_alone_is_usable(self) -> None:
        result = ExtractionResult(products=[ExtractedProduct(name="Notion")])

        self.assertEqual(result.classify(), ExtractionVerdict.USABLE)

    def test_stored_blob_round_trips_with_comma_categories(self) -> None:
        payload = ExtractionResult(
            idea=ExtractedIdea(title="Invoice bot", score=40, categories=["fintech"]),
        ).to_dict()
        payload["idea"]["categories"] = "ai, saas , "

        restored = ExtractionResult.from_dict(payload)

        self.assertEqual(restored.idea.title, "Invoice bot")
        self.assertEqual(restored.idea.score, 40)
        self.assertEqual(restored.idea.categories, ["ai", "saas"])

    def test_malformed_blob_raises_value_error(self) -> None:
        with self.assertRaises(ValueError):
            ExtractionResult.from_dict(["not", "an", "object"])  # type: ignore[arg-type]
        with self.assertRaises(ValueError):
            ExtractionResult.from_dict({"idea": {"categories": 7}})

    def test_split_categories_rejects_other_types(self) -> None:
        self.assertEqual(split_categories(None), [])
        self.assertEqual(split_categories([" a ", "", "b"]), ["a", "b"])
        with self.assertRaises(TypeError):
            split_categories({"a": 1})


if __name__ == "__main__":
    unittest.main()
