"""Recipe catalog loaded from JSON.

Expected file shape::

    {
      "recipes": [
        {
          "id": "r1",
          "name": "Chicken Stir Fry",
          "total_time_minutes": 25,
          "estimated_cost": 12.5,
          "category": "main",
          "cuisine": "chinese",
          "difficulty": "easy",
          "meal_types": ["lunch", "dinner"],
          "seasons": ["spring", "summer"],
          "diet_tags": ["dairy_free"],
          "spice_level": "medium",
          "macros": {"calories": 520, "protein_g": 38, "carbs_g": 45, "fat_g": 16},
          "ingredients": [{"name": "chicken breast", "category": "poultry"}],
          "stats": {"average_rating": 4.4, "rating_count": 120, "view_count": 3400}
        }
      ]
    }
"""
import json
import logging
from pathlib import Path
from typing import Any, Dict, List, Optional

from recipe_recommender.data_layer.exceptions import CatalogLoadError
from recipe_recommender.data_layer.models import (
    Difficulty,
    Macros,
    MealType,
    RecipeCandidate,
    RecipeIngredient,
    RecipeStats,
    Season,
    SpiceLevel,
)
from recipe_recommender.providers.interfaces import CatalogFilter, CatalogReader

logger = logging.getLogger(__name__)


class RecipeDB(CatalogReader):
    """Recipe catalog backed by a JSON file, fully loaded on construction."""

    def __init__(self, json_path: str):
        """Initialize recipe database from JSON file.

        Args:
            json_path: Path to JSON file containing recipes

        Raises:
            CatalogLoadError: If the file cannot be read or a recipe is malformed
        """
        self.json_path = Path(json_path)
        self._recipes: List[RecipeCandidate] = []
        self._by_id: Dict[str, RecipeCandidate] = {}
        self._load_recipes()

    def _load_recipes(self):
        """Load recipes from JSON file."""
        try:
            with open(self.json_path, "r") as f:
                data = json.load(f)
        except OSError as exc:
            raise CatalogLoadError(str(self.json_path), str(exc)) from exc
        except json.JSONDecodeError as exc:
            raise CatalogLoadError(str(self.json_path), f"invalid JSON: {exc}") from exc

        if not isinstance(data, dict):
            raise CatalogLoadError(str(self.json_path), "root must be a JSON object")
        entries = data.get("recipes", [])
        if not isinstance(entries, list):
            raise CatalogLoadError(str(self.json_path), "'recipes' must be a list")

        for index, recipe_data in enumerate(entries):
            try:
                recipe = self._parse_recipe(recipe_data)
            except (KeyError, TypeError, ValueError) as exc:
                raise CatalogLoadError(
                    str(self.json_path), f"recipe #{index}: {exc!r}"
                ) from exc
            if recipe.id in self._by_id:
                raise CatalogLoadError(str(self.json_path), f"duplicate recipe id '{recipe.id}'")
            self._recipes.append(recipe)
            self._by_id[recipe.id] = recipe

        logger.info("Loaded %d recipes from %s", len(self._recipes), self.json_path)

    def _parse_recipe(self, recipe_data: Dict[str, Any]) -> RecipeCandidate:
        """Parse a single recipe from dictionary data.

        Args:
            recipe_data: Dictionary containing recipe data

        Returns:
            RecipeCandidate object
        """
        macros_data = recipe_data["macros"]
        macros = Macros(
            calories=float(macros_data["calories"]),
            protein_g=float(macros_data["protein_g"]),
            carbs_g=float(macros_data["carbs_g"]),
            fat_g=float(macros_data["fat_g"]),
            fiber_g=_optional_float(macros_data.get("fiber_g")),
            sodium_mg=_optional_float(macros_data.get("sodium_mg")),
        )

        stats_data = recipe_data.get("stats") or {}
        stats = RecipeStats(
            average_rating=float(stats_data.get("average_rating", 0.0)),
            rating_count=int(stats_data.get("rating_count", 0)),
            view_count=int(stats_data.get("view_count", 0)),
            favorite_count=int(stats_data.get("favorite_count", 0)),
        )

        spice = recipe_data.get("spice_level")
        return RecipeCandidate(
            id=str(recipe_data["id"]),
            name=recipe_data["name"],
            total_time_minutes=int(recipe_data["total_time_minutes"]),
            macros=macros,
            category=recipe_data.get("category", ""),
            estimated_cost=_optional_float(recipe_data.get("estimated_cost")),
            difficulty=Difficulty(recipe_data.get("difficulty", "medium")),
            cuisine=recipe_data.get("cuisine"),
            seasons=frozenset(Season(s) for s in recipe_data.get("seasons", [])),
            meal_types=frozenset(MealType(m) for m in recipe_data.get("meal_types", [])),
            ingredients=tuple(
                self._parse_ingredient(ing) for ing in recipe_data.get("ingredients", [])
            ),
            diet_tags=frozenset(str(t) for t in recipe_data.get("diet_tags", [])),
            spice_level=SpiceLevel(spice) if spice else None,
            stats=stats,
        )

    def _parse_ingredient(self, ing_data: Any) -> RecipeIngredient:
        # Bare strings are accepted as uncategorized ingredients
        if isinstance(ing_data, str):
            return RecipeIngredient(name=ing_data)
        return RecipeIngredient(
            name=ing_data["name"],
            category=ing_data.get("category", ""),
            optional=bool(ing_data.get("optional", False)),
        )

    def list_recipes(self, filter_hints: Optional[CatalogFilter] = None) -> List[RecipeCandidate]:
        if filter_hints is None:
            return self._recipes.copy()
        return [r for r in self._recipes if filter_hints.matches(r)]

    def get_recipe(self, recipe_id: str) -> Optional[RecipeCandidate]:
        """Get a recipe by its ID.

        Args:
            recipe_id: Unique recipe identifier

        Returns:
            RecipeCandidate if found, None otherwise
        """
        return self._by_id.get(recipe_id)


def _optional_float(value: Any) -> Optional[float]:
    return None if value is None else float(value)
