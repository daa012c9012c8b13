"""Rating model.

One row per (rater, store). The unique constraint is what makes concurrent
submissions collapse into a single row; see services/rating_store.py.
"""

from datetime import datetime
from uuid import uuid4

from sqlalchemy import CheckConstraint, DateTime, ForeignKey, String, UniqueConstraint, func
from sqlalchemy.orm import Mapped, mapped_column

from app.stores.postgres import Base


def generate_rating_id() -> str:
    """Generate unique public rating ID."""
    return str(uuid4())


class Rating(Base):
    """A single rater's 1-5 score for one store."""

    __tablename__ = "ratings"
    __table_args__ = (
        UniqueConstraint("rater_id", "store_id", name="uq_ratings_rater_store"),
        CheckConstraint("score BETWEEN 1 AND 5", name="ck_ratings_score_range"),
    )

    id: Mapped[int] = mapped_column(primary_key=True)

    # Public rating ID (used in URLs)
    rating_id: Mapped[str] = mapped_column(
        String(100),
        unique=True,
        index=True,
        default=generate_rating_id,
    )

    # Relations
    rater_id: Mapped[int] = mapped_column(ForeignKey("users.id", ondelete="CASCADE"), index=True)
    store_id: Mapped[int] = mapped_column(ForeignKey("stores.id", ondelete="CASCADE"), index=True)

    score: Mapped[int] = mapped_column()

    # Timestamps (created_at never changes after insert)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        server_default=func.now(),
        index=True,
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        server_default=func.now(),
        index=True,
    )

    def __repr__(self) -> str:
        return f"<Rating {self.rating_id} {self.rater_id}->{self.store_id} {self.score}>"
