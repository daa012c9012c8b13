"""SQLAlchemy ORM models.

Models represent database tables:
- users: Identity master records (read-only for the engine)
- stores: Store catalog (read-only for the engine)
- ratings: One score per (rater, store), owned by the rating store
"""

from app.models.user import User
from app.models.store import Store
from app.models.rating import Rating

__all__ = ["User", "Store", "Rating"]
