"""Rating store: the only writer of rating rows.

Submit is a single atomic upsert keyed by the (rater_id, store_id) unique
constraint:

    INSERT INTO ratings (...) VALUES (...)
    ON CONFLICT (rater_id, store_id) DO UPDATE SET score = ..., updated_at = ...
    RETURNING *

so two concurrent submissions for the same pair can never produce two rows and
there is no check-then-insert window. The last committed score wins.

Each public function accepts an optional session so callers can run it inside
a wider transaction; without one a fresh session is opened and committed.
"""

from datetime import datetime, timezone
import logging
from uuid import UUID

from sqlalchemy import select
from sqlalchemy.dialects import postgresql, sqlite
from sqlalchemy.ext.asyncio import AsyncSession

from app.models import Rating
from app.models.rating import generate_rating_id
from app.services.access import load_store
from app.services.errors import (
    ForbiddenError,
    InvalidArgumentError,
    NotFoundError,
    UnavailableError,
)
from app.services.identity import Identity, Role
from app.stores.postgres import use_session

logger = logging.getLogger("uvicorn.error")

MIN_SCORE = 1
MAX_SCORE = 5

# Dialect-specific INSERT constructs that support ON CONFLICT ... DO UPDATE
_UPSERT_INSERTS = {
    "postgresql": postgresql.insert,
    "sqlite": sqlite.insert,
}


def validate_score(score: object) -> int:
    """Reject anything that is not an int in [1, 5]."""
    if isinstance(score, bool) or not isinstance(score, int):
        raise InvalidArgumentError(f"Score must be an integer, got {score!r}", {"field": "score"})
    if not MIN_SCORE <= score <= MAX_SCORE:
        raise InvalidArgumentError(
            f"Score must be between {MIN_SCORE} and {MAX_SCORE}, got {score}",
            {"field": "score"},
        )
    return score


async def submit_rating(
    rater: Identity,
    store_id: int,
    score: int,
    *,
    session: AsyncSession | None = None,
) -> tuple[Rating, bool]:
    """Create or replace the caller's rating for a store.

    Args:
        rater: Caller identity; must hold the `user` role.
        store_id: Target store.
        score: Integer score 1-5.
        session: Optional session to run in (no commit is issued on it).

    Returns:
        (rating, created) where `created` is False when an existing rating
        was updated.
    """
    validate_score(score)
    if rater.role is not Role.USER:
        raise ForbiddenError("Only users can submit ratings", {"role": rater.role.value})

    async with use_session(session) as s:
        return await _submit(s, rater, store_id, score)


async def _submit(
    session: AsyncSession,
    rater: Identity,
    store_id: int,
    score: int,
) -> tuple[Rating, bool]:
    await load_store(session, store_id)

    dialect = session.get_bind().dialect.name
    insert = _UPSERT_INSERTS.get(dialect)
    if insert is None:
        raise UnavailableError(f"Rating upsert is not supported on {dialect}")

    now = datetime.now(timezone.utc)
    candidate_id = generate_rating_id()

    stmt = insert(Rating).values(
        rating_id=candidate_id,
        rater_id=rater.id,
        store_id=store_id,
        score=score,
        created_at=now,
        updated_at=now,
    )
    stmt = stmt.on_conflict_do_update(
        index_elements=[Rating.rater_id, Rating.store_id],
        set_={"score": stmt.excluded.score, "updated_at": stmt.excluded.updated_at},
    ).returning(Rating)

    result = await session.scalars(stmt, execution_options={"populate_existing": True})
    rating = result.one()
    created = rating.rating_id == candidate_id

    logger.info(
        f"Rating {'created' if created else 'updated'}: "
        f"rating_id={rating.rating_id} rater={rater.id} store={store_id} score={score}"
    )
    return rating, created


def parse_rating_id(rating_id: object) -> str:
    """Canonical form of a rating id; anything that is not a UUID is malformed."""
    if not isinstance(rating_id, str):
        raise InvalidArgumentError("Malformed rating id", {"field": "ratingId"})
    try:
        return str(UUID(rating_id.strip()))
    except ValueError as e:
        raise InvalidArgumentError("Malformed rating id", {"field": "ratingId"}) from e


async def delete_rating(
    requester: Identity,
    rating_id: str,
    *,
    session: AsyncSession | None = None,
) -> None:
    """Hard-delete a rating. Only its rater or an admin may do so."""
    rating_id = parse_rating_id(rating_id)

    async with use_session(session) as s:
        await _delete(s, requester, rating_id)


async def _delete(session: AsyncSession, requester: Identity, rating_id: str) -> None:
    result = await session.execute(
        select(Rating).where(Rating.rating_id == rating_id).with_for_update()
    )
    rating = result.scalar_one_or_none()
    if rating is None:
        raise NotFoundError("Rating not found", {"ratingId": rating_id})

    if not requester.is_admin and rating.rater_id != requester.id:
        raise ForbiddenError("You can only delete your own ratings", {"ratingId": rating_id})

    await session.delete(rating)
    await session.flush()
    logger.info(f"Rating deleted: rating_id={rating_id} by={requester.id} ({requester.role.value})")


async def get_user_rating(
    identity: Identity,
    store_id: int,
    *,
    session: AsyncSession | None = None,
) -> Rating | None:
    """The caller's own rating on a store, or None if it never rated it."""
    async with use_session(session) as s:
        return await _get_user_rating(s, identity, store_id)


async def _get_user_rating(session: AsyncSession, identity: Identity, store_id: int) -> Rating | None:
    await load_store(session, store_id)
    result = await session.execute(
        select(Rating).where(Rating.rater_id == identity.id, Rating.store_id == store_id)
    )
    return result.scalar_one_or_none()
