"""Threaded review comments.

Comments with replies are tombstoned on delete instead of removed, so reply
chains never lose their parent.

Note: Router and service are not exported here to avoid circular imports.
Import directly from backlogged.comments.router when needed.
"""

from .models import (
    COMMENTS_TABLES_CQL,
    Active,
    Comment,
    CommentState,
    Tombstoned,
)


__all__ = [
    "COMMENTS_TABLES_CQL",
    "Active",
    "Comment",
    "CommentState",
    "Tombstoned",
]
