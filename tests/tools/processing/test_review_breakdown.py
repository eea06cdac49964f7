from unittest import IsolatedAsyncioTestCase

from tools.processing.review_breakdown import ReviewBreakdownParser


class TestReviewBreakdownParser(IsolatedAsyncioTestCase):
    async def asyncSetUp(self):
        self.parser = ReviewBreakdownParser()

    async def asyncTearDown(self):
        pass

    async def test_combined_pattern(self):
        breakdown = self.parser.parse("Reviews 5 star123 4 star21 3 star7 2 star4 1 star0 Write")
        self.assertEqual(
            breakdown,
            {"five_star": 123, "four_star": 21, "three_star": 7, "two_star": 4, "one_star": 0},
        )

    async def test_per_star_scan_keeps_largest_positive_count(self):
        text = "12 5 stars | 5 stars 40 | 3 stars 2 | 1 star 0"
        breakdown = self.parser.parse(text)
        self.assertEqual(breakdown["five_star"], 40)
        self.assertEqual(breakdown["three_star"], 2)
        self.assertEqual(breakdown["four_star"], 0)
        self.assertEqual(breakdown["one_star"], 0)

    async def test_empty_text(self):
        self.assertEqual(sum(self.parser.parse("").values()), 0)
        self.assertEqual(sum(self.parser.parse(None).values()), 0)

    async def test_from_ratings(self):
        breakdown = ReviewBreakdownParser.from_ratings(
            [{"value": "5", "count": "10"}, {"value": 1, "count": 2}]
        )
        self.assertEqual(breakdown["five_star"], 10)
        self.assertEqual(breakdown["one_star"], 2)
        self.assertEqual(breakdown["three_star"], 0)

    async def test_from_ratings_rejects_malformed(self):
        self.assertIsNone(ReviewBreakdownParser.from_ratings(None))
        self.assertIsNone(ReviewBreakdownParser.from_ratings([]))
        self.assertIsNone(ReviewBreakdownParser.from_ratings([{"value": "5"}]))
        self.assertIsNone(ReviewBreakdownParser.from_ratings([{"value": "x", "count": 1}]))

    async def test_average(self):
        breakdown = ReviewBreakdownParser.from_ratings(
            [{"value": 5, "count": 8}, {"value": 4, "count": 2}]
        )
        self.assertEqual(ReviewBreakdownParser.average(breakdown), 4.8)
        self.assertIsNone(ReviewBreakdownParser.average(self.parser.parse("")))
