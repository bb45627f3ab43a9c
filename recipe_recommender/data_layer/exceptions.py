"""Custom exceptions for the recipe recommendation engine."""


class RecommenderError(Exception):
    """Base class for all recommender errors."""


class RecipeNotFoundError(RecommenderError):
    """Raised when a referenced recipe is not in the catalog."""

    def __init__(self, recipe_id: str):
        """Initialize exception with recipe id.

        Args:
            recipe_id: Id of the recipe that was not found
        """
        self.recipe_id = recipe_id
        super().__init__(f"Recipe '{recipe_id}' not found in catalog")


class CatalogLoadError(RecommenderError):
    """Raised when a recipe catalog file cannot be read or parsed."""

    def __init__(self, path: str, detail: str):
        self.path = path
        self.detail = detail
        super().__init__(f"Failed to load recipe catalog '{path}': {detail}")


class ProfileLoadError(RecommenderError):
    """Raised when a member profile file cannot be read or parsed."""

    def __init__(self, member_id: str, detail: str):
        self.member_id = member_id
        self.detail = detail
        super().__init__(f"Failed to load profile for member '{member_id}': {detail}")


class ConfigurationError(RecommenderError):
    """Raised for missing or invalid engine configuration."""


class FeedbackLoadError(RecommenderError):
    """Raised when a feedback log file cannot be read or parsed."""

    def __init__(self, path: str, detail: str):
        self.path = path
        self.detail = detail
        super().__init__(f"Failed to load feedback log '{path}': {detail}")
