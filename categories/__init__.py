from .models import CategoryData, CategorySummary
from .repository import (
    SUGGESTION_KINDS,
    CategoryDataError,
    CategoryNotFoundError,
    CategoryRepository,
)
