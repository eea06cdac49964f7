from unittest import IsolatedAsyncioTestCase
from unittest.mock import AsyncMock, MagicMock, patch

import httpx

from models import NO_LONG_DESCRIPTION, NO_SHORT_DESCRIPTION

URL = "https://assetstore.unity.com/packages/tools/camera/smart-cam-pro-12345"

DOM_HTML = """
<html><head>
  <title>Smart Cam PRO | Unity Asset Store</title>
  <meta name="description" content="Meta description">
</head><body>
  <h1 class="cfm2v">Smart Cam PRO</h1>
  <div class="_1rkJa"><p>Camera made easy.</p></div>
  <div class="_1rkJa"><p>First paragraph.</p><ul><li>Feature one</li><li>Feature two</li></ul></div>
  <div class="_3JkgG"><a class="_15pcy">Camera</a><a class="_15pcy">Cinematic</a><a class="_15pcy">Camera</a></div>
  <div class="_223RA">$24.99</div>
  <div class="_10GvD"><div class="screenshot"></div><div class="screenshot"></div><div class="youtube"></div></div>
  <div class="_31fUb" data-rating="4.5"><span class="NoXio">(1,234)</span></div>
  <div class="product-date"><span class="SoNzt">Jan 5, 2024</span></div>
  <a class="U9Sw1">One Guy Productions</a>
  <div class="product-size"><span class="SoNzt">2.3 MB</span></div>
  <div class="product-version"><span class="SoNzt">1.2.0</span></div>
  <div class="_3EMPt">87</div>
  <div>5 star123 4 star21 3 star7 2 star4 1 star0</div>
</body></html>
"""

EMBEDDED_HTML = r"""
<html><body>
<script>window.__STATE__ = {"products": {"12345": {"id": "12345", "name": "Smart Cam PRO", "elevatorPitch": "Camera made easy.", "description": "<p>Long {braces} \"quoted\"</p>", "originalPrice": {"finalPrice": "24.99"}, "images": [{"type": "screenshot"}, {"type": "screenshot"}, {"type": "youtube"}], "rating": {"average": 4.5, "count": 12}, "firstPublishedDate": "2023-01-01", "downloadSize": "2411724", "supportedUnityVersions": ["2021.3.0", "2022.3.0"], "publisher": {"name": "One Guy"}, "tags": [{"name": "Camera"}]}}};</script>
<div class="_3JkgG"><a class="_15pcy">DomTag</a></div>
</body></html>
"""

RATING_SUMMARY_HTML = r"""
<script>{"12345": {"name": "Summary only", "rating": {"average": 4.5, "count": 12}, "tags": []}}</script>
<div class="_3JkgG"><a class="_15pcy">DomTag</a></div>
<div>5 star10 4 star2 3 star0 2 star0 1 star0</div>
"""

LOOSE_NODES_HTML = """
<h1 class="cfm2v">Loose</h1>
<div class="_31fUb" data-rating="4.0"></div>
<span class="NoXio">(99)</span>
<div class="product-date"><div class="wrapper"><span class="SoNzt">Jan 5, 2024</span></div></div>
<div class="_10GvD"><div class="row"><div class="screenshot"></div></div></div>
"""

RATING_LIST_HTML = """
<script>{"12345": {"name": "Rated", "rating": [{"value": "5", "count": "8"}, {"value": "4", "count": "2"}], "tags": []}}</script>
<div class="_3JkgG"><a class="_15pcy">DomTag</a></div>
"""


class TestHTMLScraper(IsolatedAsyncioTestCase):
    async def asyncSetUp(self):
        from tools.scraping.base import ScrapeError
        from tools.scraping.html_scraper import HTMLScraper

        self.HTMLScraper = HTMLScraper
        self.ScrapeError = ScrapeError

    async def asyncTearDown(self):
        pass

    async def _scrape(self, html, status_code=200):
        resp = MagicMock(status_code=status_code, text=html)
        with patch("httpx.AsyncClient.get", new=AsyncMock(return_value=resp)):
            async with self.HTMLScraper() as scraper:
                return await scraper.scrape(URL)

    async def test_dom_extraction(self):
        asset = await self._scrape(DOM_HTML)
        self.assertEqual(asset.id, "12345")
        self.assertEqual(asset.url, URL)
        self.assertEqual(asset.title, "Smart Cam PRO")
        self.assertEqual(asset.short_description, "Camera made easy.")
        self.assertTrue(asset.long_description.startswith("First paragraph."))
        self.assertIn("• Feature one\n• Feature two", asset.long_description)
        self.assertEqual(asset.tags, ["Camera", "Cinematic"])
        self.assertEqual(asset.category, "Tools")
        self.assertEqual(asset.price, 24.99)
        self.assertEqual(asset.images_count, 2)
        self.assertEqual(asset.videos_count, 1)
        self.assertEqual(asset.rating, 4.5)
        self.assertEqual(asset.reviews_count, 1234)
        self.assertEqual(asset.review_breakdown["five_star"], 123)
        self.assertEqual(asset.review_breakdown["two_star"], 4)
        self.assertEqual(asset.last_update, "Jan 5, 2024")
        self.assertEqual(asset.publisher, "One Guy Productions")
        self.assertEqual(asset.size, "2.3 MB")
        self.assertEqual(asset.version, "1.2.0")
        self.assertEqual(asset.favorites, 87)

    async def test_dom_defaults_for_missing_fields(self):
        asset = await self._scrape("<html><head><title>Bare | Unity Asset Store</title></head></html>")
        self.assertEqual(asset.title, "Bare")
        self.assertEqual(asset.short_description, NO_SHORT_DESCRIPTION)
        self.assertEqual(asset.long_description, NO_LONG_DESCRIPTION)
        self.assertEqual(asset.tags, [])
        self.assertIsNone(asset.price)
        self.assertEqual(asset.images_count, 0)
        self.assertIsNone(asset.rating)
        self.assertEqual(asset.reviews_count, 0)
        self.assertEqual(sum(asset.review_breakdown.values()), 0)
        self.assertEqual(asset.publisher, "Unknown Publisher")
        self.assertIsNone(asset.favorites)

    async def test_single_description_and_meta_keywords(self):
        html = """
        <h1>Lone</h1>
        <div class="_1rkJa"><p>Only block</p></div>
        <meta name="keywords" content="a, b, , c">
        """
        asset = await self._scrape(html)
        self.assertEqual(asset.title, "Lone")
        self.assertEqual(asset.short_description, "")
        self.assertEqual(asset.long_description, "Only block")
        self.assertEqual(asset.tags, ["a", "b", "c"])

    async def test_meta_description_fallback(self):
        asset = await self._scrape('<meta name="description" content=" Meta text ">')
        self.assertEqual(asset.short_description, "")
        self.assertEqual(asset.long_description, "Meta text")

    async def test_embedded_json_preferred_over_dom(self):
        asset = await self._scrape(EMBEDDED_HTML)
        self.assertEqual(asset.id, "12345")
        self.assertEqual(asset.title, "Smart Cam PRO")
        self.assertEqual(asset.short_description, "Camera made easy.")
        self.assertEqual(asset.long_description, 'Long {braces} "quoted"')
        self.assertEqual(asset.tags, ["Camera"])
        self.assertEqual(asset.price, 24.99)
        self.assertEqual(asset.images_count, 2)
        self.assertEqual(asset.videos_count, 1)
        self.assertEqual(asset.rating, 4.5)
        self.assertEqual(asset.reviews_count, 12)
        self.assertEqual(asset.last_update, "2023-01-01")
        self.assertEqual(asset.publisher, "One Guy")
        self.assertEqual(asset.size, "2.3 MB")
        self.assertEqual(asset.version, "2022.3.0")

    async def test_embedded_rating_list_gives_breakdown(self):
        asset = await self._scrape(RATING_LIST_HTML)
        self.assertEqual(asset.title, "Rated")
        self.assertEqual(asset.review_breakdown["five_star"], 8)
        self.assertEqual(asset.review_breakdown["four_star"], 2)
        self.assertEqual(asset.reviews_count, 10)
        self.assertEqual(asset.rating, 4.8)
        self.assertEqual(asset.tags, ["DomTag"])
        self.assertEqual(asset.publisher, "Unknown Publisher")

    async def test_unbalanced_embedded_json_falls_back_to_dom(self):
        html = '<script>{"12345": {"name": "Broken"</script><h1 class="cfm2v">From DOM</h1>'
        asset = await self._scrape(html)
        self.assertEqual(asset.title, "From DOM")

    async def test_http_error_status_raises(self):
        with self.assertRaises(self.ScrapeError) as ctx:
            await self._scrape("", status_code=404)
        self.assertIn("404", str(ctx.exception))

    async def test_transport_error_raises(self):
        with patch(
            "httpx.AsyncClient.get", new=AsyncMock(side_effect=httpx.ConnectError("boom"))
        ):
            scraper = self.HTMLScraper()
            with self.assertRaises(self.ScrapeError):
                await scraper.scrape(URL)
            await scraper.close()

    async def test_external_client_is_not_closed(self):
        client = AsyncMock()
        scraper = self.HTMLScraper(client=client)
        await scraper.close()
        client.aclose.assert_not_called()

    async def test_embedded_rating_summary_reads_breakdown_from_page_text(self):
        asset = await self._scrape(RATING_SUMMARY_HTML)
        self.assertEqual(asset.title, "Summary only")
        self.assertEqual(asset.rating, 4.5)
        self.assertEqual(asset.reviews_count, 12)
        self.assertEqual(asset.review_breakdown["five_star"], 10)
        self.assertEqual(asset.review_breakdown["four_star"], 2)

    async def test_dom_selectors_only_match_direct_children(self):
        asset = await self._scrape(LOOSE_NODES_HTML)
        self.assertEqual(asset.title, "Loose")
        self.assertEqual(asset.rating, 4.0)
        self.assertEqual(asset.reviews_count, 0)
        self.assertIsNone(asset.last_update)
        self.assertEqual(asset.images_count, 0)
