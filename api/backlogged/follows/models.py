"""Follow graph tables.

``follows`` is the source of truth, partitioned by follower so that
"does A follow B" is a single-row read and "whom does A follow" a single
partition. ``followers_by_user`` mirrors it by followee for follower lists.
"""

from dataclasses import dataclass
from datetime import datetime
from typing import Any
from uuid import UUID


FOLLOWS_TABLE_CQL = """
CREATE TABLE IF NOT EXISTS {keyspace}.follows (
    follower_id UUID,
    following_id UUID,
    created_at TIMESTAMP,
    PRIMARY KEY ((follower_id), following_id)
)
"""

FOLLOWERS_BY_USER_TABLE_CQL = """
CREATE TABLE IF NOT EXISTS {keyspace}.followers_by_user (
    following_id UUID,
    follower_id UUID,
    created_at TIMESTAMP,
    PRIMARY KEY ((following_id), follower_id)
)
"""

FOLLOWS_TABLES_CQL = [
    FOLLOWS_TABLE_CQL,
    FOLLOWERS_BY_USER_TABLE_CQL,
]


@dataclass(frozen=True)
class FollowEdge:
    follower_id: UUID
    following_id: UUID
    created_at: datetime

    @classmethod
    def from_row(cls, row: Any) -> "FollowEdge":
        return cls(
            follower_id=row.follower_id,
            following_id=row.following_id,
            created_at=row.created_at,
        )
