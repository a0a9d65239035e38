"""Review tables and entity.

Reviews are public and hard-deleted; they are the one resource type whose
owner-only mutations an admin may override.
"""

from dataclasses import dataclass
from datetime import datetime
from typing import Any
from uuid import UUID, uuid4

from backlogged.access.policy import ResourceDescriptor, Visibility


MIN_RATING = 1
MAX_RATING = 5

REVIEWS_TABLE_CQL = """
CREATE TABLE IF NOT EXISTS {keyspace}.reviews (
    review_id UUID PRIMARY KEY,
    game_id UUID,
    author_id UUID,
    content TEXT,
    rating INT,
    created_at TIMESTAMP,
    updated_at TIMESTAMP
)
"""

REVIEWS_GAME_INDEX_CQL = """
CREATE INDEX IF NOT EXISTS reviews_game_idx
ON {keyspace}.reviews (game_id)
"""

REVIEWS_AUTHOR_INDEX_CQL = """
CREATE INDEX IF NOT EXISTS reviews_author_idx
ON {keyspace}.reviews (author_id)
"""

REVIEWS_TABLES_CQL = [
    REVIEWS_TABLE_CQL,
    REVIEWS_GAME_INDEX_CQL,
    REVIEWS_AUTHOR_INDEX_CQL,
]


@dataclass
class Review:
    review_id: UUID
    game_id: UUID
    author_id: UUID
    content: str
    rating: int
    created_at: datetime
    updated_at: datetime

    @classmethod
    def from_row(cls, row: Any) -> "Review":
        return cls(
            review_id=row.review_id,
            game_id=row.game_id,
            author_id=row.author_id,
            content=row.content,
            rating=row.rating,
            created_at=row.created_at,
            updated_at=row.updated_at or row.created_at,
        )

    @property
    def descriptor(self) -> ResourceDescriptor:
        return ResourceDescriptor(
            owner_id=self.author_id,
            visibility=Visibility.PUBLIC,
            admin_mutable=True,
        )


def create_review(
    game_id: UUID,
    author_id: UUID,
    content: str,
    rating: int,
    now: datetime,
) -> Review:
    """Factory for a new review."""
    return Review(
        review_id=uuid4(),
        game_id=game_id,
        author_id=author_id,
        content=content,
        rating=rating,
        created_at=now,
        updated_at=now,
    )
