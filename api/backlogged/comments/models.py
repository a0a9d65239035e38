"""Database models for threaded review comments.

Architecture: adjacency list
- parent_id references the parent comment (NULL for top-level comments)
- reply_count counts rows whose parent_id is this comment, tombstoned or not
- deleting a comment with replies tombstones it (state + deleted_at) and
  keeps its content; replies keep pointing at it
"""

from dataclasses import dataclass
from datetime import datetime
from typing import Any
from uuid import UUID, uuid4

from backlogged.access.policy import ResourceDescriptor, Visibility


# ==============================================================================
# CQL Table Definitions
# ==============================================================================

# Keyed by comment_id alone so every lifecycle transition is a single-row
# lightweight transaction.
COMMENTS_TABLE_CQL = """
CREATE TABLE IF NOT EXISTS {keyspace}.comments (
    comment_id UUID PRIMARY KEY,
    review_id UUID,
    parent_id UUID,
    author_id UUID,
    content TEXT,
    state TEXT,
    reply_count INT,
    created_at TIMESTAMP,
    updated_at TIMESTAMP,
    deleted_at TIMESTAMP
)
"""

COMMENTS_REVIEW_INDEX_CQL = """
CREATE INDEX IF NOT EXISTS comments_review_idx
ON {keyspace}.comments (review_id)
"""

COMMENTS_PARENT_INDEX_CQL = """
CREATE INDEX IF NOT EXISTS comments_parent_idx
ON {keyspace}.comments (parent_id)
"""

COMMENTS_AUTHOR_INDEX_CQL = """
CREATE INDEX IF NOT EXISTS comments_author_idx
ON {keyspace}.comments (author_id)
"""

COMMENTS_TABLES_CQL = [
    COMMENTS_TABLE_CQL,
    COMMENTS_REVIEW_INDEX_CQL,
    COMMENTS_PARENT_INDEX_CQL,
    COMMENTS_AUTHOR_INDEX_CQL,
]

COMMENT_INDEXED_COLUMNS = ("review_id", "parent_id", "author_id")


# ==============================================================================
# Lifecycle states
# ==============================================================================


@dataclass(frozen=True)
class Active:
    content: str


@dataclass(frozen=True)
class Tombstoned:
    deleted_at: datetime
    content: str


CommentState = Active | Tombstoned


# ==============================================================================
# Entities
# ==============================================================================


@dataclass
class Comment:
    """Comment entity."""

    comment_id: UUID
    review_id: UUID
    parent_id: UUID | None
    author_id: UUID
    state: CommentState
    reply_count: int
    created_at: datetime
    updated_at: datetime

    @classmethod
    def from_row(cls, row: Any) -> "Comment":
        """Create Comment from Cassandra row."""
        state: CommentState
        if row.state == "tombstoned":
            state = Tombstoned(
                deleted_at=row.deleted_at or row.updated_at, content=row.content
            )
        else:
            state = Active(content=row.content)
        return cls(
            comment_id=row.comment_id,
            review_id=row.review_id,
            parent_id=row.parent_id,
            author_id=row.author_id,
            state=state,
            reply_count=row.reply_count or 0,
            created_at=row.created_at,
            updated_at=row.updated_at or row.created_at,
        )

    @property
    def content(self) -> str:
        return self.state.content

    @property
    def is_tombstoned(self) -> bool:
        return isinstance(self.state, Tombstoned)

    @property
    def deleted_at(self) -> datetime | None:
        match self.state:
            case Tombstoned(deleted_at=deleted_at):
                return deleted_at
            case _:
                return None

    def descriptor(self, admin_mutable: bool = False) -> ResourceDescriptor:
        """Comments are public; only the author (or admins, if enabled) edit them."""
        return ResourceDescriptor(
            owner_id=self.author_id,
            visibility=Visibility.PUBLIC,
            admin_mutable=admin_mutable,
        )

    def to_row(self) -> dict[str, Any]:
        """Columns for the initial insert."""
        return {
            "comment_id": self.comment_id,
            "review_id": self.review_id,
            "parent_id": self.parent_id,
            "author_id": self.author_id,
            "content": self.content,
            "reply_count": self.reply_count,
            "created_at": self.created_at,
            "updated_at": self.updated_at,
            "deleted_at": None,
        }


def create_comment(
    review_id: UUID,
    author_id: UUID,
    content: str,
    now: datetime,
    parent_id: UUID | None = None,
) -> Comment:
    """Factory function to create a new comment."""
    return Comment(
        comment_id=uuid4(),
        review_id=review_id,
        parent_id=parent_id,
        author_id=author_id,
        state=Active(content=content),
        reply_count=0,
        created_at=now,
        updated_at=now,
    )
