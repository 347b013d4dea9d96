"""SQLite-backed persistence helpers."""

from __future__ import annotations

import datetime as dt
import sqlite3
from dataclasses import dataclass
from pathlib import Path
from typing import Iterable, List, Tuple

from openpyxl import Workbook

from .exceptions import AlreadySubscribed, SubscriberNotFound
from .models import ListingRecord, PersistedRecord, Subscriber


SQLITE_PREFIX = "sqlite://"

_LISTING_COLUMNS = (
    "id, name, district, address, image_url, detail_url, description, "
    "data_hash, created_at, updated_at"
)

EXPORT_HEADERS = [
    "id",
    "district",
    "name",
    "address",
    "description",
    "detail_url",
    "image_url",
    "data_hash",
    "created_at",
    "updated_at",
]


def resolve_sqlite_path(database_url: str) -> Path:
    """Translate a DATABASE_URL into a filesystem path."""
    if not database_url:
        raise ValueError("DATABASE_URL must not be empty")

    if database_url.startswith(SQLITE_PREFIX):
        raw_path = database_url[len(SQLITE_PREFIX) :]
        # Allow sqlite:///path/to/file and sqlite://path/to/file styles.
        if raw_path.startswith("/"):
            raw_path = raw_path[1:]
        path = Path(raw_path)
    else:
        path = Path(database_url)

    if not path.is_absolute():
        path = Path.cwd() / path

    return path.expanduser().resolve()


def _now() -> str:
    return dt.datetime.now(dt.timezone.utc).isoformat()


def _row_to_record(row: tuple) -> PersistedRecord:
    return PersistedRecord(
        id=int(row[0]),
        name=row[1],
        district=row[2],
        address=row[3],
        image_url=row[4],
        detail_url=row[5],
        description=row[6],
        data_hash=row[7],
        created_at=row[8],
        updated_at=row[9],
    )


@dataclass
class Database:
    """Thin wrapper around sqlite3 for housing complexes, subscribers and run history."""

    path: Path

    def connect(self) -> sqlite3.Connection:
        self.path.parent.mkdir(parents=True, exist_ok=True)
        return sqlite3.connect(self.path)

    def initialize(self) -> None:
        with self.connect() as conn:
            conn.execute(
                """
                CREATE TABLE IF NOT EXISTS runs (
                    id INTEGER PRIMARY KEY AUTOINCREMENT,
                    executed_at TEXT NOT NULL,
                    status TEXT NOT NULL,
                    notes TEXT
                )
                """
            )
            # (name, district) is matched in-process; no uniqueness here.
            conn.execute(
                """
                CREATE TABLE IF NOT EXISTS housing_complexes (
                    id INTEGER PRIMARY KEY AUTOINCREMENT,
                    name TEXT NOT NULL,
                    district TEXT NOT NULL,
                    address TEXT,
                    image_url TEXT,
                    detail_url TEXT,
                    description TEXT,
                    data_hash TEXT,
                    created_at TEXT NOT NULL,
                    updated_at TEXT NOT NULL
                )
                """
            )
            conn.execute(
                """
                CREATE INDEX IF NOT EXISTS idx_housing_complexes_name_district
                ON housing_complexes (name, district)
                """
            )
            conn.execute(
                """
                CREATE TABLE IF NOT EXISTS subscribers (
                    email TEXT PRIMARY KEY,
                    is_active INTEGER NOT NULL DEFAULT 1,
                    created_at TEXT NOT NULL
                )
                """
            )
            conn.commit()

    def add_run(self, executed_at: str, status: str, notes: str | None) -> None:
        with self.connect() as conn:
            conn.execute(
                "INSERT INTO runs (executed_at, status, notes) VALUES (?, ?, ?)",
                (executed_at, status, notes),
            )
            conn.commit()

    def recent_runs(self, limit: int = 10) -> Iterable[Tuple[str, str, str | None]]:
        with self.connect() as conn:
            cursor = conn.execute(
                "SELECT executed_at, status, notes FROM runs ORDER BY id DESC LIMIT ?",
                (limit,),
            )
            yield from cursor.fetchall()

    def find_all(self) -> List[PersistedRecord]:
        """Return every persisted housing complex ordered by id."""
        with self.connect() as conn:
            cursor = conn.execute(
                f"SELECT {_LISTING_COLUMNS} FROM housing_complexes ORDER BY id"
            )
            return [_row_to_record(row) for row in cursor.fetchall()]

    def get(self, record_id: int) -> PersistedRecord:
        with self.connect() as conn:
            row = conn.execute(
                f"SELECT {_LISTING_COLUMNS} FROM housing_complexes WHERE id = ?",
                (record_id,),
            ).fetchone()
        if row is None:
            raise KeyError(record_id)
        return _row_to_record(row)

    def create(self, record: ListingRecord, data_hash: str) -> PersistedRecord:
        timestamp = _now()
        with self.connect() as conn:
            cursor = conn.execute(
                """
                INSERT INTO housing_complexes (
                    name, district, address, image_url, detail_url, description,
                    data_hash, created_at, updated_at
                )
                VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?)
                """,
                (
                    record.name,
                    record.district,
                    record.address,
                    record.image_url,
                    record.detail_url,
                    record.description,
                    data_hash,
                    timestamp,
                    timestamp,
                ),
            )
            conn.commit()
            record_id = cursor.lastrowid
        return PersistedRecord(
            id=int(record_id),
            name=record.name,
            district=record.district,
            address=record.address,
            image_url=record.image_url,
            detail_url=record.detail_url,
            description=record.description,
            data_hash=data_hash,
            created_at=timestamp,
            updated_at=timestamp,
        )

    def update(self, record_id: int, record: ListingRecord,
               data_hash: str) -> PersistedRecord:
        """Overwrite the content fields and hash of an existing record."""
        with self.connect() as conn:
            cursor = conn.execute(
                """
                UPDATE housing_complexes
                SET address = ?, image_url = ?, detail_url = ?, description = ?,
                    data_hash = ?, updated_at = ?
                WHERE id = ?
                """,
                (
                    record.address,
                    record.image_url,
                    record.detail_url,
                    record.description,
                    data_hash,
                    _now(),
                    record_id,
                ),
            )
            conn.commit()
            if cursor.rowcount == 0:
                raise KeyError(record_id)
        return self.get(record_id)

    def subscribe(self, email: str) -> Subscriber:
        """Add a subscriber, reactivating one that previously unsubscribed."""
        with self.connect() as conn:
            row = conn.execute(
                "SELECT is_active FROM subscribers WHERE email = ?", (email,)
            ).fetchone()
            if row is not None and row[0]:
                raise AlreadySubscribed(email)
            if row is not None:
                conn.execute(
                    "UPDATE subscribers SET is_active = 1 WHERE email = ?", (email,)
                )
            else:
                conn.execute(
                    "INSERT INTO subscribers (email, is_active, created_at) VALUES (?, 1, ?)",
                    (email, _now()),
                )
            conn.commit()
        return self._get_subscriber(email)

    def unsubscribe(self, email: str) -> Subscriber:
        with self.connect() as conn:
            cursor = conn.execute(
                "UPDATE subscribers SET is_active = 0 WHERE email = ?", (email,)
            )
            conn.commit()
            if cursor.rowcount == 0:
                raise SubscriberNotFound(email)
        return self._get_subscriber(email)

    def list_active(self) -> List[Subscriber]:
        with self.connect() as conn:
            cursor = conn.execute(
                """
                SELECT email, is_active, created_at FROM subscribers
                WHERE is_active = 1 ORDER BY created_at, email
                """
            )
            return [
                Subscriber(email=row[0], is_active=bool(row[1]), created_at=row[2])
                for row in cursor.fetchall()
            ]

    def _get_subscriber(self, email: str) -> Subscriber:
        with self.connect() as conn:
            row = conn.execute(
                "SELECT email, is_active, created_at FROM subscribers WHERE email = ?",
                (email,),
            ).fetchone()
        return Subscriber(email=row[0], is_active=bool(row[1]), created_at=row[2])

    def export_listings_to_xlsx(self, path: Path) -> Path:
        """Write the persisted housing complex inventory to a spreadsheet."""
        workbook = Workbook()
        worksheet = workbook.active
        worksheet.title = "housing_complexes"
        worksheet.append(EXPORT_HEADERS)
        for record in self.find_all():
            worksheet.append([getattr(record, header) for header in EXPORT_HEADERS])

        path = Path(path)
        path.parent.mkdir(parents=True, exist_ok=True)
        workbook.save(path)
        return path
