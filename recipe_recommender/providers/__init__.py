"""Collaborator interfaces the engine reads from and writes to.

This package decouples the engine from concrete data sources (memory,
local files, a database).
"""

from recipe_recommender.providers.interfaces import (
    CatalogFilter,
    CatalogReader,
    FeedbackSource,
    ProfileStore,
)
from recipe_recommender.providers.local_provider import (
    InMemoryCatalog,
    InMemoryFeedbackLog,
    InMemoryProfileStore,
)

__all__ = [
    "CatalogFilter",
    "CatalogReader",
    "FeedbackSource",
    "ProfileStore",
    "InMemoryCatalog",
    "InMemoryFeedbackLog",
    "InMemoryProfileStore",
]
