"""Community review routes.

- GET  /                 the feed, newest first; ?game= and ?user= filter
- POST /                 add a review as the calling player
- POST /{id}/like        add one like

Reading the feed is public. Writing needs a player.
"""

from typing import Any

from fastapi import APIRouter, Depends
from pydantic import BaseModel, ConfigDict, Field

from versepuzzle.api.deps import get_current_player, get_reviews
from versepuzzle.engine.reviews import (
    add_review,
    like_review,
    new_review,
    newest_first,
    reviews_by_game,
    reviews_by_user,
)
from versepuzzle.persistence import ReviewRepository
from versepuzzle.schemas import ApiResponse, GameType, Player, Review

router = APIRouter()


class ReviewRequest(BaseModel):
    model_config = ConfigDict(str_strip_whitespace=True)

    game_type: GameType
    rating: int = Field(ge=1, le=5)
    comment: str = Field(min_length=1, max_length=2000)
    user_name: str | None = Field(default=None, min_length=1, max_length=80)


@router.get("")
async def list_reviews(
    game: GameType | None = None,
    user: str | None = None,
    reviews: ReviewRepository = Depends(get_reviews),
) -> dict[str, Any]:
    feed = await reviews.load()
    if game is not None:
        feed = reviews_by_game(feed, game)
    if user is not None:
        feed = reviews_by_user(feed, user)
    data = [review.model_dump(mode="json") for review in newest_first(feed)]
    return ApiResponse(ok=True, data=data).model_dump()


@router.post("")
async def post_review(
    body: ReviewRequest,
    player: Player = Depends(get_current_player),
    reviews: ReviewRepository = Depends(get_reviews),
) -> dict[str, Any]:
    review = new_review(
        player, body.game_type, body.rating, body.comment, user_name=body.user_name
    )
    await reviews.update(lambda feed: add_review(feed, review))
    return ApiResponse(ok=True, data=review.model_dump(mode="json")).model_dump()


@router.post("/{review_id}/like")
async def like(
    review_id: str,
    player: Player = Depends(get_current_player),
    reviews: ReviewRepository = Depends(get_reviews),
) -> dict[str, Any]:
    liked: list[Review] = []

    def _like(feed: list[Review]) -> list[Review]:
        updated, review = like_review(feed, review_id)
        liked.append(review)
        return updated

    await reviews.update(_like)
    return ApiResponse(ok=True, data=liked[0].model_dump(mode="json")).model_dump()
