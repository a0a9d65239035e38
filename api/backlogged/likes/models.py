"""Like ledger tables.

One table per target kind, partitioned by target so counting a target's
likes stays inside one partition. The (target_id, user_id) primary key is
the uniqueness constraint; a row existing is the like.
"""

from dataclasses import dataclass
from datetime import datetime
from enum import Enum
from typing import Any
from uuid import UUID


class LikeTarget(str, Enum):
    """Things that can be liked."""

    COMMENT = "comment"
    REVIEW = "review"
    PLAYLIST = "playlist"

    @property
    def table(self) -> str:
        return f"{self.value}_likes"


LIKE_TABLE_CQL_TEMPLATE = """
CREATE TABLE IF NOT EXISTS {{keyspace}}.{table} (
    target_id UUID,
    user_id UUID,
    created_at TIMESTAMP,
    PRIMARY KEY ((target_id), user_id)
)
"""

LIKES_TABLES_CQL = [
    LIKE_TABLE_CQL_TEMPLATE.format(table=target.table) for target in LikeTarget
]


@dataclass(frozen=True)
class Like:
    target: LikeTarget
    target_id: UUID
    user_id: UUID
    created_at: datetime

    @classmethod
    def from_row(cls, target: LikeTarget, row: Any) -> "Like":
        return cls(
            target=target,
            target_id=row.target_id,
            user_id=row.user_id,
            created_at=row.created_at,
        )
