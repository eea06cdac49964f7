from unittest import IsolatedAsyncioTestCase

from tools.scraping.embedded import find_embedded_asset_json

PAGE = r"""<script>window.__STATE__ = {"other": {"x": 1}, "12345": {"id": "12345", "name": "Cam", "description": "<p>{not} \"json\" } braces</p>", "images": [{"type": "screenshot"}]}, "tail": true};</script>"""


class TestEmbeddedJson(IsolatedAsyncioTestCase):
    async def asyncSetUp(self):
        pass

    async def asyncTearDown(self):
        pass

    async def test_extracts_block_with_braces_inside_strings(self):
        data = find_embedded_asset_json(PAGE, "12345")
        self.assertEqual(data["name"], "Cam")
        self.assertEqual(data["description"], '<p>{not} "json" } braces</p>')
        self.assertEqual(len(data["images"]), 1)

    async def test_compact_marker(self):
        data = find_embedded_asset_json('{"7":{"name":"A"}}', "7")
        self.assertEqual(data, {"name": "A"})

    async def test_missing_unbalanced_or_invalid(self):
        self.assertIsNone(find_embedded_asset_json(PAGE, "999"))
        self.assertIsNone(find_embedded_asset_json('"1": {"a": {"b": 1}', "1"))
        self.assertIsNone(find_embedded_asset_json('"1": {a: 1}', "1"))
        self.assertIsNone(find_embedded_asset_json(PAGE, None))
        self.assertIsNone(find_embedded_asset_json("", "1"))
