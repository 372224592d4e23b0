import logging
from typing import Literal

from pydantic import BaseModel, Field, field_validator

log = logging.getLogger(__name__)


class FinalAchievement(BaseModel):
    """One statement in the merged achievement list returned by the LLM."""

    description: str = Field(
        ...,
        min_length=1,
        description="The final achievement description (either merged from multiple achievements or individually optimized).",
    )
    original_indices: list[int] = Field(
        ...,
        min_length=1,
        description="Which original achievements were used to create this final achievement (1-indexed). For merged achievements, this will have multiple indices. For standalone achievements, this will have one index.",
    )
    action: Literal["merged", "optimized"] = Field(
        ...,
        description="Whether this achievement was created by merging multiple achievements or by optimizing a single achievement.",
    )

    @field_validator("description")
    @classmethod
    def description_not_blank(cls, v: str) -> str:
        stripped = v.strip()
        if not stripped:
            raise ValueError("Achievement description must not be blank")
        return stripped


class AchievementMergeResult(BaseModel):
    """Structured output of the achievement merge call.

    Attributes:
        final_achievements (list[FinalAchievement]): Every statement that should remain.
        reasoning (str | None): Brief explanation of what was merged and optimized.

    """

    final_achievements: list[FinalAchievement] = Field(
        ...,
        description="Every achievement that should appear in the final list, both merged entries and individually optimized entries.",
    )
    reasoning: str | None = Field(
        default=None,
        description="Brief explanation of what was merged and optimized.",
    )


class LLMConfig(BaseModel):
    """Configuration for LLM client initialization."""

    llm_endpoint: str | None = None
    api_key: str | None = None
    llm_model_name: str | None = None
    temperature: float = 0.3
