"""Output formatting for recommendations."""

from recipe_recommender.output.formatters import (
    format_learning_json,
    format_learning_markdown,
    format_recommendations_json,
    format_recommendations_markdown,
    format_sub_scores,
    recommendation_to_dict,
    to_json_text,
)

__all__ = [
    "format_learning_json",
    "format_learning_markdown",
    "format_recommendations_json",
    "format_recommendations_markdown",
    "format_sub_scores",
    "recommendation_to_dict",
    "to_json_text",
]
