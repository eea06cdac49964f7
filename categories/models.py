"""Pydantic models for the per-category listing guidance documents."""

from typing import List

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel


class CategoryModel(BaseModel):
    """Documents are stored with camelCase keys; attributes are snake_case."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class Overview(CategoryModel):
    market_size: str
    competition: str
    average_price: str


class TitleExamples(CategoryModel):
    good: List[str] = Field(default_factory=list)
    bad: List[str] = Field(default_factory=list)


class TitleGuidance(CategoryModel):
    optimal_length: str
    tips: List[str] = Field(default_factory=list)
    examples: TitleExamples = Field(default_factory=TitleExamples)


class DescriptionGuidance(CategoryModel):
    optimal_length: str
    structure: List[str] = Field(default_factory=list)
    tips: List[str] = Field(default_factory=list)
    example: str = ""


class ImageGuidance(CategoryModel):
    optimal_count: str
    requirements: List[str] = Field(default_factory=list)
    tips: List[str] = Field(default_factory=list)


class TagGuidance(CategoryModel):
    optimal_count: str
    common_tags: List[str] = Field(default_factory=list)
    tips: List[str] = Field(default_factory=list)


class KeywordGuidance(CategoryModel):
    primary: List[str] = Field(default_factory=list)
    secondary: List[str] = Field(default_factory=list)
    tips: List[str] = Field(default_factory=list)


class PricingGuidance(CategoryModel):
    range: str
    strategy: List[str] = Field(default_factory=list)


class Recommendations(CategoryModel):
    title: TitleGuidance
    description: DescriptionGuidance
    images: ImageGuidance
    tags: TagGuidance
    keywords: KeywordGuidance
    pricing: PricingGuidance


class ExampleMetrics(CategoryModel):
    title_length: int
    description_length: int
    image_count: int
    tag_count: int


class RealExample(CategoryModel):
    name: str
    publisher: str
    tags: List[str] = Field(default_factory=list)
    why_it_works: List[str] = Field(default_factory=list)
    metrics: ExampleMetrics


class CommonMistake(CategoryModel):
    mistake: str
    impact: str
    solution: str


class CategoryData(CategoryModel):
    slug: str
    name: str
    description: str
    overview: Overview
    recommendations: Recommendations
    real_examples: List[RealExample] = Field(default_factory=list)
    common_mistakes: List[CommonMistake] = Field(default_factory=list)


class CategorySummary(CategoryModel):
    slug: str
    name: str
    description: str
