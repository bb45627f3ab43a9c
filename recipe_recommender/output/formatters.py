"""Formatters for recommendation output (JSON and Markdown)."""

import json
from typing import Any, Dict, List, Mapping, Optional

from recipe_recommender.data_layer.models import (
    LearningResult,
    RecipeCandidate,
    Recommendation,
    SubScores,
)


def format_sub_scores(sub_scores: SubScores, indent: str = "") -> str:
    """Format the five sub-scores as a readable breakdown.

    Args:
        sub_scores: SubScores object
        indent: Optional indentation prefix

    Returns:
        Formatted string with one line per dimension
    """
    return "\n".join(
        f"{indent}- {name.capitalize()}: {value:.2f}"
        for name, value in sub_scores.as_dict().items()
    )


def format_recommendations_markdown(
    recommendations: List[Recommendation],
    recipes: Optional[Mapping[str, RecipeCandidate]] = None,
    title: str = "Recommended Recipes",
) -> str:
    """Format recommendations as Markdown.

    Args:
        recommendations: Ordered recommendations
        recipes: Optional id -> recipe map used to show names and details
        title: Heading for the list

    Returns:
        Formatted Markdown string
    """
    recipes = recipes or {}
    lines = [f"# {title}\n"]

    if not recommendations:
        lines.append("_No recipes match the current constraints._")
        lines.append("")
        return "\n".join(lines)

    for idx, rec in enumerate(recommendations, 1):
        recipe = recipes.get(rec.recipe_id)
        name = recipe.name if recipe else rec.recipe_id
        lines.append(f"## {idx}. {name}")
        lines.append(f"**Score:** {rec.score:.3f}")
        if recipe is not None:
            details = [f"{recipe.total_time_minutes} min", recipe.category]
            if recipe.cuisine:
                details.append(recipe.cuisine)
            if recipe.estimated_cost is not None:
                details.append(f"${recipe.estimated_cost:.2f}")
            lines.append(f"**Details:** {' | '.join(d for d in details if d)}")
        lines.append("")
        lines.append(rec.explanation)
        lines.append("")

        if rec.reasons:
            lines.append("### Why")
            for reason in rec.reasons:
                lines.append(f"- {reason}")
            lines.append("")

        lines.append("### Sub-scores")
        lines.append(format_sub_scores(rec.metadata))
        lines.append("")

    return "\n".join(lines)


def recommendation_to_dict(rec: Recommendation) -> Dict[str, Any]:
    return {
        "recipe_id": rec.recipe_id,
        "score": round(rec.score, 6),
        "reasons": list(rec.reasons),
        "explanation": rec.explanation,
        "metadata": {k: round(v, 6) for k, v in rec.metadata.as_dict().items()},
    }


def format_recommendations_json(recommendations: List[Recommendation]) -> Dict[str, Any]:
    """Format recommendations as a JSON-ready dictionary.

    Args:
        recommendations: Ordered recommendations

    Returns:
        Dictionary ready for JSON serialization
    """
    return {
        "count": len(recommendations),
        "recommendations": [recommendation_to_dict(r) for r in recommendations],
    }


def format_learning_markdown(result: LearningResult) -> str:
    """Summarize a preference update as Markdown."""
    profile = result.profile
    learned = profile.learned
    lines = [
        f"# Preference Update: {profile.member_id}\n",
        f"**Processed events:** {result.processed_count}",
        f"**Skipped events:** {result.skipped_count}",
        f"**Confidence:** {profile.preference_score:.3f}",
        "",
    ]
    if result.skipped_event_ids:
        lines.append("## Skipped")
        for event_id in result.skipped_event_ids:
            lines.append(f"- {event_id}")
        lines.append("")

    top_cuisines = learned.top_cuisines()
    if top_cuisines:
        lines.append(f"**Top cuisines:** {', '.join(top_cuisines)}")
    top_ingredients = learned.top_ingredients()
    if top_ingredients:
        lines.append(f"**Top ingredients:** {', '.join(top_ingredients)}")
    if profile.avoided_ingredients:
        lines.append(f"**Avoided ingredients:** {', '.join(profile.avoided_ingredients)}")
    spice = profile.spice_level or learned.spice_level
    if spice is not None:
        lines.append(f"**Spice level:** {spice.value}")
    lines.append("")
    return "\n".join(lines)


def format_learning_json(result: LearningResult) -> Dict[str, Any]:
    profile = result.profile
    learned = profile.learned
    spice = profile.spice_level or learned.spice_level
    return {
        "member_id": profile.member_id,
        "processed_count": result.processed_count,
        "skipped_count": result.skipped_count,
        "skipped_event_ids": list(result.skipped_event_ids),
        "preference_score": round(profile.preference_score, 6),
        "top_cuisines": learned.top_cuisines(),
        "top_ingredients": learned.top_ingredients(),
        "avoided_ingredients": list(profile.avoided_ingredients),
        "spice_level": spice.value if spice else None,
        "average_rating": learned.average_rating,
    }


def to_json_text(data: Dict[str, Any]) -> str:
    return json.dumps(data, indent=2)
