REVIEW_BREAKDOWN_FIELDS = ("five_star", "four_star", "three_star", "two_star", "one_star")

UNKNOWN_TITLE = "Unknown Title"
UNKNOWN_PUBLISHER = "Unknown Publisher"
UNKNOWN_CATEGORY = "Unknown"
NO_SHORT_DESCRIPTION = "No short description available"
NO_LONG_DESCRIPTION = "No long description available"


def empty_review_breakdown():
    return {field: 0 for field in REVIEW_BREAKDOWN_FIELDS}


class Asset:
    """Flat record of one Unity Asset Store listing."""

    FIELDS = (
        "id",
        "url",
        "title",
        "short_description",
        "long_description",
        "tags",
        "category",
        "price",
        "images_count",
        "videos_count",
        "rating",
        "reviews_count",
        "review_breakdown",
        "last_update",
        "publisher",
        "size",
        "version",
        "favorites",
    )

    def __init__(
        self,
        url,
        id=None,
        title=UNKNOWN_TITLE,
        short_description="",
        long_description="",
        tags=None,
        category=UNKNOWN_CATEGORY,
        price=None,
        images_count=0,
        videos_count=0,
        rating=None,
        reviews_count=0,
        review_breakdown=None,
        last_update=None,
        publisher=UNKNOWN_PUBLISHER,
        size=None,
        version=None,
        favorites=None,
    ):
        self.id = id
        self.url = url
        self.title = title
        self.short_description = short_description
        self.long_description = long_description
        self.tags = list(tags) if tags else []
        self.category = category
        self.price = price
        self.images_count = images_count
        self.videos_count = videos_count
        self.rating = rating
        self.reviews_count = reviews_count
        self.review_breakdown = {**empty_review_breakdown(), **(review_breakdown or {})}
        self.last_update = last_update
        self.publisher = publisher
        self.size = size
        self.version = version
        self.favorites = favorites

    def to_dict(self):
        data = {field: getattr(self, field) for field in self.FIELDS}
        data["tags"] = list(self.tags)
        data["review_breakdown"] = dict(self.review_breakdown)
        return data

    @classmethod
    def from_dict(cls, data):
        return cls(**{k: v for k, v in data.items() if k in cls.FIELDS})

    def __repr__(self):
        return f"Asset(id={self.id!r}, title={self.title!r})"
