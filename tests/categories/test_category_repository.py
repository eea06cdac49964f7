import json
import tempfile
from pathlib import Path
from unittest import IsolatedAsyncioTestCase

from categories import (
    CategoryDataError,
    CategoryNotFoundError,
    CategoryRepository,
)

URL = "https://assetstore.unity.com/packages/tools/camera/smart-cam-pro-12345"


class TestCategoryRepository(IsolatedAsyncioTestCase):
    async def asyncSetUp(self):
        self.repo = CategoryRepository()

    async def asyncTearDown(self):
        pass

    async def test_list_categories_is_sorted_and_complete(self):
        summaries = self.repo.list_categories()
        slugs = [s.slug for s in summaries]
        self.assertEqual(len(slugs), 109)
        self.assertEqual(slugs, sorted(slugs))
        self.assertIn("tools-camera", slugs)

    async def test_get(self):
        category = self.repo.get("tools-camera")
        self.assertEqual(category.name, "Tools/Camera")
        self.assertEqual(category.recommendations.pricing.range, "$4.99-$385 typical")
        dumped = category.model_dump(by_alias=True)
        self.assertIn("recommendations", dumped)
        self.assertIn("commonTags", dumped["recommendations"]["tags"])

    async def test_get_unknown_slug(self):
        with self.assertRaises(CategoryNotFoundError) as ctx:
            self.repo.get("no-such-category")
        self.assertEqual(ctx.exception.slug, "no-such-category")

    async def test_suggestions(self):
        self.assertIn("Camera", self.repo.suggestions("tools-camera", "tags"))
        self.assertIn("Smart Cam PRO", self.repo.suggestions("tools-camera", "titles"))
        pricing = self.repo.suggestions("tools-camera", "pricing")
        self.assertEqual(pricing[0], "$4.99-$385 typical")
        self.assertEqual(len(pricing), 4)

        keywords = self.repo.suggestions("tools-camera", "keywords")
        self.assertEqual(keywords[0], "sensor camera")
        self.assertEqual(keywords.count("camera controller"), 1)
        self.assertEqual(len(keywords), 15)

    async def test_suggestions_rejects_unknown_kind(self):
        with self.assertRaises(ValueError):
            self.repo.suggestions("tools-camera", "colors")

    async def test_for_asset_url_prefers_most_specific(self):
        self.assertEqual(self.repo.for_asset_url(URL).slug, "tools-camera")
        parent = self.repo.for_asset_url(
            "https://assetstore.unity.com/packages/tools/not-a-subcategory/x-1"
        )
        self.assertEqual(parent.slug, "tools")
        self.assertIsNone(
            self.repo.for_asset_url("https://assetstore.unity.com/packages/nothing/x-1")
        )

    async def test_invalid_document_raises_data_error(self):
        with tempfile.TemporaryDirectory() as tmp:
            Path(tmp, "broken.json").write_text("{not json", encoding="utf-8")
            with self.assertRaises(CategoryDataError):
                CategoryRepository(tmp).list_categories()

            Path(tmp, "broken.json").write_text(json.dumps({"slug": "x"}), encoding="utf-8")
            with self.assertRaises(CategoryDataError):
                CategoryRepository(tmp).get("x")
