"""
SQLite-backed auction store and simple migration system.

``AuctionStore`` is an explicit handle around a single SQLite
connection.  The application opens it on startup and closes it on
shutdown (see ``main.create_app``); services receive the handle rather
than reaching for a module-level connection.  On ``open`` the pending
migrations are applied in order and recorded in the ``migrations``
table.

Timestamps are stored as ISO 8601 text in UTC with a fixed layout so
that SQL string comparison matches chronological order.  This is what
lets ``update_bid`` check the end date inside its conditional update.
"""

import logging
import os
import sqlite3
import uuid
from contextlib import contextmanager
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Dict, Iterator, List, Optional

from .errors import StoreError


logger = logging.getLogger(__name__)

MEMORY_DATABASE = ":memory:"

MIGRATIONS: list[tuple[int, str]] = [
    # Migration 1: auctions table
    (
        1,
        """
        CREATE TABLE IF NOT EXISTS auctions (
            id TEXT PRIMARY KEY,
            item_name TEXT NOT NULL,
            item_category TEXT NOT NULL,
            starting_bid REAL NOT NULL CHECK (starting_bid >= 0),
            current_bid REAL NOT NULL CHECK (current_bid >= starting_bid),
            bidder_name TEXT,
            auction_end_date TEXT NOT NULL,
            item_description TEXT NOT NULL,
            created_at TEXT NOT NULL,
            updated_at TEXT NOT NULL
        );
        """,
    ),
    # Migration 2: listing is always newest first
    (
        2,
        """
        CREATE INDEX IF NOT EXISTS idx_auctions_created_at ON auctions (created_at);
        """,
    ),
]


def format_timestamp(value: datetime) -> str:
    """Render ``value`` as UTC ISO 8601 text with microsecond precision.

    Naive datetimes are taken to be in UTC already.
    """
    if value.tzinfo is None:
        value = value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc).isoformat(timespec="microseconds")


def get_database_path(database_url: str) -> str:
    """Compute the path to the SQLite database file.

    ``:memory:`` and absolute paths are returned unchanged; relative
    paths are resolved against the project root.
    """
    if database_url == MEMORY_DATABASE or os.path.isabs(database_url):
        return database_url
    base_dir = Path(__file__).resolve().parent.parent.parent.parent
    return str((base_dir / database_url).resolve())


class AuctionStore:
    """Persistence for auction records.

    Rows are returned as plain dictionaries keyed by column name.  Every
    ``sqlite3.Error`` is re-raised as ``StoreError`` so the API can turn
    it into a 500 response.
    """

    def __init__(self, database_url: str) -> None:
        self.database_path = get_database_path(database_url)
        self._conn: Optional[sqlite3.Connection] = None

    def open(self) -> None:
        """Connect to the database and apply pending migrations."""
        if self._conn is not None:
            return
        with self._guard("opening the auction store"):
            # One connection is shared by all requests.  The event loop
            # and the test client may call it from different threads.
            conn = sqlite3.connect(self.database_path, check_same_thread=False)
            conn.row_factory = sqlite3.Row
            self._conn = conn
            self._migrate()
        logger.info("Auction store opened at %s", self.database_path)

    def close(self) -> None:
        if self._conn is None:
            return
        self._conn.close()
        self._conn = None
        logger.info("Auction store closed")

    @property
    def connection(self) -> sqlite3.Connection:
        if self._conn is None:
            raise StoreError("Auction store is not open", operation="accessing auctions")
        return self._conn

    @contextmanager
    def _guard(self, operation: str) -> Iterator[None]:
        try:
            yield
        except sqlite3.Error as exc:
            logger.error("Database error while %s: %s", operation, exc)
            raise StoreError(str(exc), operation=operation) from exc

    def _migrate(self) -> None:
        conn = self.connection
        conn.execute("CREATE TABLE IF NOT EXISTS migrations (version INTEGER PRIMARY KEY)")
        row = conn.execute("SELECT MAX(version) AS version FROM migrations").fetchone()
        current_version = row["version"] if row and row["version"] is not None else 0
        for version, sql in MIGRATIONS:
            if version > current_version:
                conn.executescript(sql)
                conn.execute("INSERT INTO migrations (version) VALUES (?)", (version,))
                current_version = version
                logger.debug("Applied migration %s", version)
        conn.commit()

    # ------------------------------------------------------------------
    # Record operations
    # ------------------------------------------------------------------
    def insert_auction(
        self,
        *,
        item_name: str,
        item_category: str,
        starting_bid: float,
        auction_end_date: datetime,
        item_description: str,
        created_at: datetime,
    ) -> Dict[str, Any]:
        """Insert a new auction with ``current_bid = starting_bid``."""
        auction_id = uuid.uuid4().hex
        created = format_timestamp(created_at)
        with self._guard("creating auction"):
            with self.connection as conn:
                conn.execute(
                    """
                    INSERT INTO auctions (
                        id, item_name, item_category, starting_bid, current_bid,
                        bidder_name, auction_end_date, item_description, created_at, updated_at
                    )
                    VALUES (?, ?, ?, ?, ?, NULL, ?, ?, ?, ?)
                    """,
                    (
                        auction_id,
                        item_name,
                        item_category,
                        starting_bid,
                        starting_bid,
                        format_timestamp(auction_end_date),
                        item_description,
                        created,
                        created,
                    ),
                )
            row = conn.execute("SELECT * FROM auctions WHERE id = ?", (auction_id,)).fetchone()
        return dict(row)

    def list_auctions(self) -> List[Dict[str, Any]]:
        """Return all auctions, newest first."""
        with self._guard("retrieving auctions"):
            rows = self.connection.execute(
                "SELECT * FROM auctions ORDER BY created_at DESC, rowid DESC"
            ).fetchall()
        return [dict(row) for row in rows]

    def get_auction(self, auction_id: str) -> Optional[Dict[str, Any]]:
        with self._guard("retrieving auction"):
            row = self.connection.execute(
                "SELECT * FROM auctions WHERE id = ?", (auction_id,)
            ).fetchone()
        return dict(row) if row else None

    def update_bid(self, auction_id: str, bid_amount: float, bidder_name: str, now: datetime) -> bool:
        """Record a bid if it still beats the current bid and the auction is open.

        The comparison and the write happen in one ``UPDATE`` statement,
        so a stale read elsewhere can never overwrite a higher bid.
        Returns ``True`` when the row was updated.
        """
        stamp = format_timestamp(now)
        with self._guard("placing bid"):
            with self.connection as conn:
                cursor = conn.execute(
                    """
                    UPDATE auctions
                    SET current_bid = ?, bidder_name = ?, updated_at = ?
                    WHERE id = ? AND current_bid < ? AND auction_end_date >= ?
                    """,
                    (bid_amount, bidder_name, stamp, auction_id, bid_amount, stamp),
                )
        return cursor.rowcount > 0

    def delete_auction(self, auction_id: str) -> Optional[Dict[str, Any]]:
        """Delete an auction and return the removed row, or ``None``."""
        with self._guard("deleting auction"):
            with self.connection as conn:
                row = conn.execute("SELECT * FROM auctions WHERE id = ?", (auction_id,)).fetchone()
                if row is None:
                    return None
                conn.execute("DELETE FROM auctions WHERE id = ?", (auction_id,))
        return dict(row)

    def count(self) -> int:
        with self._guard("counting auctions"):
            row = self.connection.execute("SELECT COUNT(*) AS total FROM auctions").fetchone()
        return row["total"]
