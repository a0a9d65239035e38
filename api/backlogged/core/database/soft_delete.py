"""Tombstone-aware table access.

Tables holding tombstone-capable entities carry a ``state`` text column
(``active`` / ``tombstoned``) next to ``deleted_at``. All reads and writes
for those tables go through ``SoftDeleteStore`` so that API-facing code only
ever sees active rows, while integrity code can still reach tombstones.

Every state transition is a Cassandra lightweight transaction conditioned on
the current state, so concurrent writers on the same row are serialized by
the store rather than by read-then-write in the app. ``state`` is used as the
condition column instead of ``deleted_at`` because ``IF deleted_at = null``
also matches rows that do not exist and would upsert ghost rows.
"""

from collections.abc import Callable, Iterable, Mapping, Sequence
from datetime import UTC, datetime
from enum import Enum
from typing import TYPE_CHECKING, Any, Generic, TypeVar
from uuid import UUID

import structlog

from backlogged.core.errors import ConflictError, DomainError, NotFoundError


if TYPE_CHECKING:
    from cassandra.cluster import Session
    from cassandra.query import PreparedStatement


logger = structlog.get_logger(__name__)

T = TypeVar("T")

DEFAULT_SCAN_LIMIT = 1000
DEFAULT_CAS_ATTEMPTS = 5


class RowState(str, Enum):
    ACTIVE = "active"
    TOMBSTONED = "tombstoned"


def utcnow() -> datetime:
    # Cassandra timestamps keep millisecond precision
    now = datetime.now(UTC)
    return now.replace(microsecond=now.microsecond // 1000 * 1000)


def row_state(row: Any) -> RowState | None:
    """State of a fetched or LWT-returned row; None when the row is absent."""
    if row is None:
        return None
    value = getattr(row, "state", None)
    return RowState(value) if value is not None else None


class SoftDeleteStore(Generic[T]):
    """Read/write policy for one tombstone-capable table.

    Args:
        session: Cassandra session exposing ``aexecute``.
        keyspace: Keyspace holding ``table``.
        table: Table name.
        key_column: Partition key column (a single UUID).
        factory: Builds the domain entity from a row.
        not_found_error: Raised for absent (or, on visible reads, tombstoned) rows.
        tombstoned_error: Raised when writing to a tombstoned row.
        indexed_columns: Columns ``list_by`` may filter on.
        children_column: Optional int column counting rows that reference
            this one; hard deletes require it to be zero.
    """

    def __init__(
        self,
        session: "Session",
        keyspace: str,
        table: str,
        key_column: str,
        factory: Callable[[Any], T],
        not_found_error: type[DomainError] = NotFoundError,
        tombstoned_error: type[DomainError] = NotFoundError,
        indexed_columns: Iterable[str] = (),
        children_column: str | None = None,
        scan_limit: int = DEFAULT_SCAN_LIMIT,
        cas_max_attempts: int = DEFAULT_CAS_ATTEMPTS,
    ) -> None:
        self.session = session
        self.keyspace = keyspace
        self.table = table
        self.key_column = key_column
        self.factory = factory
        self.not_found_error = not_found_error
        self.tombstoned_error = tombstoned_error
        self.indexed_columns = frozenset(indexed_columns)
        self.children_column = children_column
        self.scan_limit = scan_limit
        self.cas_max_attempts = cas_max_attempts
        self._statements: dict[str, "PreparedStatement"] = {}

    # ==========================================================================
    # Statement cache
    # ==========================================================================

    @property
    def _qualified(self) -> str:
        return f"{self.keyspace}.{self.table}"

    def _prepare(self, cql: str) -> "PreparedStatement":
        statement = self._statements.get(cql)
        if statement is None:
            statement = self.session.prepare(cql)
            self._statements[cql] = statement
        return statement

    async def _execute(self, cql: str, params: Sequence[Any]):
        return await self.session.aexecute(self._prepare(cql), list(params))

    async def _fetch(self, entity_id: UUID) -> Any:
        result = await self._execute(
            f"SELECT * FROM {self._qualified} WHERE {self.key_column} = ?",
            [entity_id],
        )
        return result.one()

    # ==========================================================================
    # Reads
    # ==========================================================================

    async def read(self, entity_id: UUID) -> T:
        """Return the entity; absent and tombstoned both raise not-found."""
        row = await self._fetch(entity_id)
        if row_state(row) is not RowState.ACTIVE:
            raise self.not_found_error
        return self.factory(row)

    async def read_including_deleted(self, entity_id: UUID) -> T:
        """Return the entity even when tombstoned.

        For integrity and audit code only; never hand the result to an API
        consumer without checking its state.
        """
        row = await self._fetch(entity_id)
        if row is None:
            raise self.not_found_error
        return self.factory(row)

    async def list_all(self, limit: int | None = None) -> list[T]:
        """Active entities across the table, oldest first.

        The scan reads at most ``limit`` (default ``scan_limit``) rows in token
        order, then drops tombstones and sorts. On a table larger than the
        limit the result is a truncated, arbitrary subset, not the oldest rows.
        """
        rows = await self._execute(
            f"SELECT * FROM {self._qualified} LIMIT ?",
            [limit or self.scan_limit],
        )
        return self._visible(rows)

    async def list_by(self, column: str, value: Any) -> list[T]:
        """Active entities whose indexed ``column`` equals ``value``, oldest first."""
        if column not in self.indexed_columns:
            raise ValueError(f"{self.table}.{column} is not indexed")
        rows = await self._execute(
            f"SELECT * FROM {self._qualified} WHERE {column} = ?",
            [value],
        )
        return self._visible(rows)

    def _visible(self, rows: Iterable[Any]) -> list[T]:
        active = [row for row in rows if row_state(row) is RowState.ACTIVE]
        active.sort(key=lambda row: row.created_at)
        return [self.factory(row) for row in active]

    # ==========================================================================
    # Writes
    # ==========================================================================

    async def insert(self, values: Mapping[str, Any]) -> None:
        """Insert a new active row; ``ConflictError`` if the key is taken."""
        row = {**values, "state": RowState.ACTIVE.value}
        if self.children_column:
            row.setdefault(self.children_column, 0)
        columns = list(row)
        result = await self._execute(
            f"INSERT INTO {self._qualified} ({', '.join(columns)}) "
            f"VALUES ({', '.join('?' for _ in columns)}) IF NOT EXISTS",
            [row[column] for column in columns],
        )
        if not result.was_applied:
            raise ConflictError(
                f"{self.table} row already exists", code=f"{self.table}_exists"
            )

    async def update_active(self, entity_id: UUID, values: Mapping[str, Any]) -> T:
        """Update columns of an active row.

        Raises:
            not_found_error: The row does not exist.
            tombstoned_error: The row is tombstoned.
        """
        columns = list(values)
        result = await self._execute(
            f"UPDATE {self._qualified} SET "
            f"{', '.join(f'{column} = ?' for column in columns)} "
            f"WHERE {self.key_column} = ? IF state = ?",
            [*(values[column] for column in columns), entity_id, RowState.ACTIVE.value],
        )
        if not result.was_applied:
            if row_state(result.one()) is None:
                raise self.not_found_error
            raise self.tombstoned_error
        return await self.read_including_deleted(entity_id)

    async def soft_delete(self, entity_id: UUID) -> bool:
        """Tombstone an active row, keeping its content.

        Returns:
            True when this call tombstoned the row, False when it already was.

        Raises:
            not_found_error: The row does not exist.
        """
        now = utcnow()
        result = await self._execute(
            f"UPDATE {self._qualified} SET state = ?, deleted_at = ?, updated_at = ? "
            f"WHERE {self.key_column} = ? IF state = ?",
            [RowState.TOMBSTONED.value, now, now, entity_id, RowState.ACTIVE.value],
        )
        if result.was_applied:
            logger.info("row_tombstoned", table=self.table, entity_id=str(entity_id))
            return True
        if row_state(result.one()) is None:
            raise self.not_found_error
        return False

    async def hard_delete(self, entity_id: UUID) -> None:
        """Physically remove an active row nothing references.

        The reference check runs inside the same lightweight transaction as
        the delete, so a child attached concurrently makes this fail instead
        of orphaning the child.

        Raises:
            not_found_error: The row is absent or tombstoned.
            ConflictError: The row still has children.
        """
        conditions = ["state = ?"]
        params: list[Any] = [entity_id, RowState.ACTIVE.value]
        if self.children_column:
            conditions.append(f"{self.children_column} = ?")
            params.append(0)
        result = await self._execute(
            f"DELETE FROM {self._qualified} WHERE {self.key_column} = ? "
            f"IF {' AND '.join(conditions)}",
            params,
        )
        if result.was_applied:
            logger.info("row_removed", table=self.table, entity_id=str(entity_id))
            return
        if row_state(result.one()) is not RowState.ACTIVE:
            raise self.not_found_error
        raise ConflictError(
            f"{self.table} row is still referenced", code=f"{self.table}_referenced"
        )

    # ==========================================================================
    # Children counter
    # ==========================================================================

    def _require_children_column(self) -> str:
        if not self.children_column:
            raise TypeError(f"{self.table} has no children counter")
        return self.children_column

    async def attach_child(self, parent_id: UUID) -> int:
        """Count one more child under an active parent.

        Compare-and-set on the counter, conditional on the parent still being
        active, so it cannot race a hard delete of the parent.

        Returns:
            The new counter value.

        Raises:
            not_found_error: The parent is absent or tombstoned.
            ConflictError: Too many concurrent writers on the parent.
        """
        column = self._require_children_column()
        for _ in range(self.cas_max_attempts):
            row = await self._fetch(parent_id)
            if row_state(row) is not RowState.ACTIVE:
                raise self.not_found_error
            current = getattr(row, column) or 0
            result = await self._execute(
                f"UPDATE {self._qualified} SET {column} = ? "
                f"WHERE {self.key_column} = ? IF state = ? AND {column} = ?",
                [current + 1, parent_id, RowState.ACTIVE.value, current],
            )
            if result.was_applied:
                return current + 1
            if row_state(result.one()) is not RowState.ACTIVE:
                raise self.not_found_error
        logger.warning(
            "children_counter_contended", table=self.table, entity_id=str(parent_id)
        )
        raise ConflictError(
            f"{self.table} row is busy, try again", code=f"{self.table}_busy"
        )

    async def detach_child(self, parent_id: UUID) -> bool:
        """Count one child fewer under a parent in any state.

        Returns:
            False when the parent is gone or the counter stayed contended.
            A counter left too high only turns a later removal into a
            tombstone, never the other way round.
        """
        column = self._require_children_column()
        for _ in range(self.cas_max_attempts):
            row = await self._fetch(parent_id)
            if row is None:
                return False
            current = getattr(row, column) or 0
            result = await self._execute(
                f"UPDATE {self._qualified} SET {column} = ? "
                f"WHERE {self.key_column} = ? IF {column} = ?",
                [max(0, current - 1), parent_id, current],
            )
            if result.was_applied:
                return True
        return False
