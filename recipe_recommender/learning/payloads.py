"""Validated payload shapes for feedback events."""

from typing import Dict, Optional, Type

from pydantic import BaseModel, Field

from recipe_recommender.data_layer.models import FeedbackKind


class RatingPayload(BaseModel):
    rating: int = Field(..., ge=1, le=5, description="Star rating, 1-5")


class FavoritePayload(BaseModel):
    pass


class ViewPayload(BaseModel):
    duration_seconds: Optional[float] = Field(None, ge=0, description="Time spent on the recipe page")


class SubstitutionPayload(BaseModel):
    original: str = Field(..., min_length=1, description="Ingredient that was replaced")
    substitute: str = Field(..., min_length=1, description="Ingredient used instead")


PAYLOAD_MODELS: Dict[FeedbackKind, Type[BaseModel]] = {
    FeedbackKind.RATING: RatingPayload,
    FeedbackKind.FAVORITE: FavoritePayload,
    FeedbackKind.VIEW: ViewPayload,
    FeedbackKind.SUBSTITUTION: SubstitutionPayload,
}
