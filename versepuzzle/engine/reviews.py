"""Community review feed — pure functions over a list of reviews.

Nothing here touches storage. Callers load the feed, apply one of these
functions and save what comes back; the input list is never mutated.
"""

from __future__ import annotations

import uuid
from collections.abc import Sequence
from datetime import datetime, timezone

from versepuzzle.engine.errors import ReviewNotFound
from versepuzzle.schemas import GameType, Player, Review


def new_review(
    player: Player,
    game_type: GameType,
    rating: int,
    comment: str,
    *,
    user_name: str | None = None,
    now: datetime | None = None,
) -> Review:
    """Builds a review with a fresh id and no likes.

    ``user_name`` defaults to the player's display name.

    Raises:
        pydantic.ValidationError: Blank name or comment, or a rating
            outside 1..5.
    """
    return Review(
        id=uuid.uuid4().hex,
        player_id=player.id,
        user_name=user_name if user_name is not None else player.name,
        game_type=game_type,
        rating=rating,
        comment=comment,
        created_at=now or datetime.now(timezone.utc),
    )


def add_review(reviews: Sequence[Review], review: Review) -> list[Review]:
    return [*reviews, review]


def like_review(reviews: Sequence[Review], review_id: str) -> tuple[list[Review], Review]:
    """Adds one like to the review with ``review_id``.

    Returns:
        The updated feed and the updated review.

    Raises:
        ReviewNotFound: If no review has that id.
    """
    updated: list[Review] = []
    liked: Review | None = None
    for review in reviews:
        if review.id == review_id:
            review = review.model_copy(update={"likes": review.likes + 1})
            liked = review
        updated.append(review)
    if liked is None:
        raise ReviewNotFound(f"Review {review_id!r} not found.")
    return updated, liked


def reviews_by_game(reviews: Sequence[Review], game_type: str) -> list[Review]:
    return [r for r in reviews if r.game_type == game_type]


def reviews_by_user(reviews: Sequence[Review], user_name: str) -> list[Review]:
    return [r for r in reviews if r.user_name == user_name]


def newest_first(reviews: Sequence[Review]) -> list[Review]:
    return sorted(reviews, key=lambda r: r.created_at, reverse=True)
