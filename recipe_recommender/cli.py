#!/usr/bin/env python3
"""Command-line interface for the recipe recommendation engine."""

import argparse
import sys
from pathlib import Path
from typing import List, Optional

from recipe_recommender.config import resolve_config
from recipe_recommender.data_layer.exceptions import RecipeNotFoundError, RecommenderError
from recipe_recommender.data_layer.feedback_log import FeedbackLog
from recipe_recommender.data_layer.models import (
    GoalType,
    HealthGoal,
    MealType,
    RecommendationContext,
    Season,
)
from recipe_recommender.data_layer.recipe_db import RecipeDB
from recipe_recommender.data_layer.user_profile import UserProfileStore
from recipe_recommender.engine import RecommendationEngine
from recipe_recommender.output.formatters import (
    format_learning_json,
    format_learning_markdown,
    format_recommendations_json,
    format_recommendations_markdown,
    to_json_text,
)
from recipe_recommender.ranking.ordering import DiversityPolicy
from recipe_recommender.utils.logging_config import setup_logging

EXIT_BAD_INPUT = 1
EXIT_NOT_FOUND = 2


def _split_list(values: Optional[List[str]]) -> List[str]:
    """Flatten repeated and comma-separated option values."""
    items: List[str] = []
    for value in values or []:
        items.extend(part.strip() for part in value.split(",") if part.strip())
    return items


def build_context(args: argparse.Namespace) -> RecommendationContext:
    """Build a RecommendationContext from parsed `recommend` arguments.

    Raises:
        ValueError: If an enum value or numeric field is invalid
    """
    pantry = _split_list(args.pantry)
    goal = HealthGoal(goal_type=GoalType(args.goal)) if args.goal else None
    return RecommendationContext(
        member_id=args.member,
        meal_type=MealType(args.meal_type),
        servings=args.servings,
        max_cook_time=args.max_time,
        budget_limit=args.budget,
        dietary_restrictions=frozenset(_split_list(args.diet)),
        excluded_ingredients=frozenset(_split_list(args.exclude)),
        preferred_cuisines=tuple(_split_list(args.cuisine)),
        season=Season(args.season) if args.season else None,
        pantry=frozenset(pantry) if args.pantry is not None else None,
        health_goal=goal,
        exclude_recipe_ids=frozenset(_split_list(args.exclude_recipe)),
    )


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        description="Rank and explain recipe recommendations for family members"
    )
    parser.add_argument(
        "--recipes",
        type=str,
        default="data/recipes.json",
        help="Path to recipes JSON file (default: data/recipes.json)"
    )
    parser.add_argument(
        "--profiles",
        type=str,
        default="data/profiles",
        help="Directory of member profile YAML files (default: data/profiles)"
    )
    parser.add_argument(
        "--feedback",
        type=str,
        default="data/feedback.json",
        help="Path to feedback log JSON file (default: data/feedback.json)"
    )
    parser.add_argument(
        "--config",
        type=str,
        help="Optional engine config YAML (engine settings and weights)"
    )
    parser.add_argument(
        "--output",
        choices=["markdown", "json"],
        default="markdown",
        help="Output format: markdown (default) or json"
    )
    parser.add_argument(
        "--output-file",
        type=str,
        help="Optional file path to save output (default: print to stdout)"
    )
    parser.add_argument(
        "--log-level",
        default="WARNING",
        help="Log level for stderr logging (default: WARNING)"
    )

    sub = parser.add_subparsers(dest="command", required=True)

    rec = sub.add_parser("recommend", help="Personalized recommendations")
    rec.add_argument("--member", required=True, help="Member id")
    rec.add_argument("--meal-type", required=True, choices=[m.value for m in MealType])
    rec.add_argument("--servings", type=int, default=1)
    rec.add_argument("--budget", type=float, help="Budget limit per recipe")
    rec.add_argument("--max-time", type=int, help="Maximum total time in minutes")
    rec.add_argument("--diet", action="append", help="Required diet tag (repeatable)")
    rec.add_argument("--exclude", action="append", help="Excluded ingredient (repeatable)")
    rec.add_argument("--cuisine", action="append", help="Preferred cuisine (repeatable)")
    rec.add_argument("--season", choices=[s.value for s in Season])
    rec.add_argument("--pantry", action="append", help="Ingredients in stock (comma-separated)")
    rec.add_argument("--goal", choices=[g.value for g in GoalType], help="Active health goal")
    rec.add_argument("--exclude-recipe", action="append", help="Recipe id already shown")
    rec.add_argument("--limit", type=int)
    rec.add_argument("--max-per-category", type=int)
    rec.add_argument("--max-per-cuisine", type=int)

    sim = sub.add_parser("similar", help="Recipes similar to a reference recipe")
    sim.add_argument("--recipe", required=True, help="Reference recipe id")
    sim.add_argument("--member", required=True, help="Member id")
    sim.add_argument("--limit", type=int, default=5)

    pop = sub.add_parser("popular", help="Globally popular recipes")
    pop.add_argument("--category", help="Optional category filter")
    pop.add_argument("--limit", type=int)

    learn = sub.add_parser("learn", help="Update a member's learned preferences")
    learn.add_argument("--member", required=True, help="Member id")

    return parser


def _emit(text: str, output_file: Optional[str]) -> None:
    if output_file:
        output_path = Path(output_file)
        output_path.write_text(text)
        print(f"Output saved to {output_path}", file=sys.stderr)
    else:
        print(text)


def main(argv: Optional[List[str]] = None) -> int:
    """Main CLI entry point. Returns the process exit code."""
    parser = build_parser()
    args = parser.parse_args(argv)
    setup_logging(args.log_level)

    recipes_path = Path(args.recipes)
    if not recipes_path.exists():
        print(f"Error: Recipes file not found: {recipes_path}", file=sys.stderr)
        return EXIT_BAD_INPUT

    try:
        settings, weights = resolve_config(args.config)
        engine = RecommendationEngine(
            catalog=RecipeDB(str(recipes_path)),
            profiles=UserProfileStore(args.profiles),
            feedback=FeedbackLog(args.feedback),
            settings=settings,
            weights=weights,
        )

        if args.command == "learn":
            result = engine.update_user_preferences(args.member)
            if args.output == "json":
                text = to_json_text(format_learning_json(result))
            else:
                text = format_learning_markdown(result)
            _emit(text, args.output_file)
            return 0

        if args.command == "recommend":
            diversity = None
            if args.max_per_category or args.max_per_cuisine:
                diversity = DiversityPolicy(
                    max_per_category=args.max_per_category,
                    max_per_cuisine=args.max_per_cuisine,
                )
            results = engine.get_recommendations(
                build_context(args), limit=args.limit, diversity=diversity
            )
            title = "Recommended Recipes"
        elif args.command == "similar":
            results = engine.get_similar_recipes(args.recipe, args.member, limit=args.limit)
            reference = engine.catalog.get_recipe(args.recipe)
            title = f"Similar to {reference.name}"
        else:
            results = engine.get_popular_recipes(limit=args.limit, category=args.category)
            title = "Popular Recipes"

        if args.output == "json":
            text = to_json_text(format_recommendations_json(results))
        else:
            recipes = {r.recipe_id: engine.catalog.get_recipe(r.recipe_id) for r in results}
            text = format_recommendations_markdown(results, recipes, title=title)
        _emit(text, args.output_file)
        return 0

    except RecipeNotFoundError as e:
        print(f"Error: {e}", file=sys.stderr)
        return EXIT_NOT_FOUND
    except (RecommenderError, ValueError) as e:
        print(f"Error: {e}", file=sys.stderr)
        return EXIT_BAD_INPUT


if __name__ == "__main__":
    sys.exit(main())
