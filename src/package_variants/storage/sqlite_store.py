"""SQLite-backed persistence for package variants and their pricing periods."""
from __future__ import annotations

import logging
import sqlite3
import uuid
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Iterable, Sequence

from package_variants.variants.models import Variant
from package_variants.variants.normalizer import pick

ISO_FORMAT = "%Y-%m-%dT%H:%M:%S.%fZ"
SCHEMA_VERSION = 2

VALID_JOURNAL_MODES = frozenset({"delete", "truncate", "persist", "memory", "wal", "off"})

logger = logging.getLogger(__name__)


def _utc_now() -> str:
    return datetime.now(timezone.utc).strftime(ISO_FORMAT)


def _bool(value: Any) -> int:
    return 1 if bool(value) else 0


def _new_id() -> str:
    return uuid.uuid4().hex


class SqliteStore:
    """Thin synchronous wrapper over sqlite3.

    Implements the pricing repository used by ``SeasonalPricingStore``; pricing
    periods are addressed by ``(package_id, period_id)``.
    """

    def __init__(
        self,
        db_path: Path,
        *,
        busy_timeout_ms: int = 2000,
        journal_mode: str | None = "wal",
    ) -> None:
        self._path = db_path
        self._busy_timeout_ms = busy_timeout_ms
        self._journal_mode = self._normalize_journal_mode(journal_mode)
        self._connection: sqlite3.Connection | None = None

    # ------------------------------------------------------------------
    # lifecycle

    def initialize(self) -> None:
        if self._connection is None:
            self._connection = self._open_connection()

    def close(self) -> None:
        if self._connection is None:
            return
        conn = self._connection
        self._connection = None
        conn.close()

    def __enter__(self) -> "SqliteStore":
        self.initialize()
        return self

    def __exit__(self, exc_type, exc, exc_tb) -> None:
        self.close()

    def _open_connection(self) -> sqlite3.Connection:
        self._path.parent.mkdir(parents=True, exist_ok=True)
        conn = sqlite3.connect(self._path)
        conn.row_factory = sqlite3.Row
        conn.execute("PRAGMA foreign_keys = ON;")
        conn.execute(f"PRAGMA busy_timeout = {int(max(self._busy_timeout_ms, 0))};")
        if self._journal_mode:
            conn.execute(f"PRAGMA journal_mode = {self._journal_mode.upper()};")
        try:
            self._apply_migrations(conn)
        except sqlite3.OperationalError as exc:
            conn.close()
            logger.error(
                "SQLite migration failed (path=%s, timeout_ms=%s): %s",
                self._path,
                self._busy_timeout_ms,
                exc,
            )
            raise
        return conn

    @staticmethod
    def _normalize_journal_mode(value: str | None) -> str | None:
        if value is None:
            return None
        mode = value.strip().lower()
        if not mode:
            return None
        if mode not in VALID_JOURNAL_MODES:
            raise ValueError(
                f"Unsupported SQLite journal_mode '{value}'. Expected one of: {sorted(VALID_JOURNAL_MODES)}"
            )
        return mode

    def _apply_migrations(self, conn: sqlite3.Connection) -> None:
        conn.execute(
            """
            CREATE TABLE IF NOT EXISTS meta (
                key TEXT PRIMARY KEY,
                value TEXT NOT NULL
            );
            """
        )
        current = self._get_schema_version(conn)
        if current >= SCHEMA_VERSION:
            return
        for version in range(current + 1, SCHEMA_VERSION + 1):
            script = MIGRATIONS.get(version)
            if not script:
                raise RuntimeError(f"Missing migration script for version {version}")
            conn.executescript(script)
            conn.execute(
                "INSERT INTO meta(key, value) VALUES('schema_version', ?)\n"
                "ON CONFLICT(key) DO UPDATE SET value=excluded.value",
                (str(version),),
            )
        conn.commit()

    def _get_schema_version(self, conn: sqlite3.Connection) -> int:
        row = conn.execute("SELECT value FROM meta WHERE key='schema_version'").fetchone()
        if not row:
            return 0
        try:
            return int(row[0])
        except (TypeError, ValueError):
            return 0

    def _require_connection(self) -> sqlite3.Connection:
        if not self._connection:
            raise RuntimeError("SQLite store has not been initialised")
        return self._connection

    # ------------------------------------------------------------------
    # variants

    def create_variant(self, package_id: str, variant: Variant) -> str:
        """Insert ``variant`` with its hotel mappings and return the new id."""
        conn = self._require_connection()
        variant_id = variant.id or _new_id()
        now = _utc_now()
        with conn:
            conn.execute(
                """
                INSERT INTO variants(
                    id, package_id, name, description, is_default, sort_order,
                    price_modifier, created_at, updated_at
                ) VALUES(?, ?, ?, ?, ?, ?, ?, ?, ?)
                """,
                (
                    variant_id,
                    package_id,
                    variant.name,
                    variant.description,
                    _bool(variant.is_default),
                    variant.sort_order,
                    variant.price_modifier,
                    now,
                    now,
                ),
            )
            self._replace_mappings(conn, variant_id, variant.hotel_mappings)
        logger.info("Stored variant '%s' (%s) for package %s", variant.name, variant_id, package_id)
        return variant_id

    def update_variant(self, variant: Variant) -> None:
        if not variant.id:
            raise KeyError("Cannot update a variant without an id")
        conn = self._require_connection()
        with conn:
            cursor = conn.execute(
                """
                UPDATE variants
                SET name=?, description=?, is_default=?, sort_order=?, price_modifier=?, updated_at=?
                WHERE id=?
                """,
                (
                    variant.name,
                    variant.description,
                    _bool(variant.is_default),
                    variant.sort_order,
                    variant.price_modifier,
                    _utc_now(),
                    variant.id,
                ),
            )
            if cursor.rowcount == 0:
                raise KeyError(f"Variant '{variant.id}' not found")
            self._replace_mappings(conn, variant.id, variant.hotel_mappings)

    def delete_variant(self, variant_id: str) -> None:
        conn = self._require_connection()
        with conn:
            cursor = conn.execute("DELETE FROM variants WHERE id=?", (variant_id,))
        if cursor.rowcount == 0:
            raise KeyError(f"Variant '{variant_id}' not found")
        logger.info("Deleted variant %s", variant_id)

    def get_variant(self, variant_id: str) -> dict[str, Any] | None:
        conn = self._require_connection()
        row = conn.execute("SELECT * FROM variants WHERE id=?", (variant_id,)).fetchone()
        if row is None:
            return None
        return self._variant_record(conn, row)

    def list_variants(self, package_id: str) -> list[dict[str, Any]]:
        """Variant records for ``package_id`` ordered by ``sort_order``."""
        conn = self._require_connection()
        rows = conn.execute(
            "SELECT * FROM variants WHERE package_id=? ORDER BY sort_order, created_at",
            (package_id,),
        ).fetchall()
        return [self._variant_record(conn, row) for row in rows]

    def _replace_mappings(self, conn: sqlite3.Connection, variant_id: str, mappings: dict[str, str]) -> None:
        conn.execute("DELETE FROM variant_hotel_mappings WHERE variant_id=?", (variant_id,))
        conn.executemany(
            "INSERT INTO variant_hotel_mappings(variant_id, itinerary_key, hotel_id) VALUES(?, ?, ?)",
            [(variant_id, key, hotel_id) for key, hotel_id in mappings.items() if hotel_id],
        )

    def _variant_record(self, conn: sqlite3.Connection, row: sqlite3.Row) -> dict[str, Any]:
        mappings = {
            mapping["itinerary_key"]: mapping["hotel_id"]
            for mapping in conn.execute(
                "SELECT itinerary_key, hotel_id FROM variant_hotel_mappings WHERE variant_id=?",
                (row["id"],),
            )
        }
        periods = conn.execute(
            "SELECT * FROM pricing_periods WHERE variant_id=? ORDER BY start_date",
            (row["id"],),
        ).fetchall()
        return {
            "id": row["id"],
            "package_id": row["package_id"],
            "name": row["name"],
            "description": row["description"],
            "is_default": bool(row["is_default"]),
            "sort_order": row["sort_order"],
            "price_modifier": row["price_modifier"],
            "hotel_mappings": mappings,
            "seasonal_pricings": [self._period_record(conn, period) for period in periods],
        }

    # ------------------------------------------------------------------
    # pricing periods

    def create_pricing_period(
        self, package_id: str | None, package_variant_id: str, record: dict[str, object]
    ) -> str:
        conn = self._require_connection()
        period_id = str(record.get("id") or _new_id())
        now = _utc_now()
        with conn:
            conn.execute(
                """
                INSERT INTO pricing_periods(
                    id, package_id, variant_id, start_date, end_date, meal_plan_id,
                    number_of_rooms, vehicle_type_id, is_group_pricing, description,
                    location_seasonal_period_id, total_price, created_at, updated_at
                ) VALUES(?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?)
                """,
                (period_id, package_id, package_variant_id, *self._period_values(record), now, now),
            )
            self._insert_components(conn, period_id, record.get("pricing_components") or [])
        return period_id

    def update_pricing_period(self, package_id: str | None, period_id: str, record: dict[str, object]) -> None:
        conn = self._require_connection()
        with conn:
            cursor = conn.execute(
                """
                UPDATE pricing_periods
                SET start_date=?, end_date=?, meal_plan_id=?, number_of_rooms=?, vehicle_type_id=?,
                    is_group_pricing=?, description=?, location_seasonal_period_id=?, total_price=?,
                    updated_at=?
                WHERE id=? AND package_id IS ?
                """,
                (*self._period_values(record), _utc_now(), period_id, package_id),
            )
            if cursor.rowcount == 0:
                raise KeyError(f"Pricing period '{period_id}' not found for package {package_id}")
            conn.execute("DELETE FROM pricing_components WHERE period_id=?", (period_id,))
            self._insert_components(conn, period_id, record.get("pricing_components") or [])

    def delete_pricing_period(self, package_id: str | None, period_id: str) -> None:
        conn = self._require_connection()
        with conn:
            cursor = conn.execute(
                "DELETE FROM pricing_periods WHERE id=? AND package_id IS ?",
                (period_id, package_id),
            )
        if cursor.rowcount == 0:
            raise KeyError(f"Pricing period '{period_id}' not found for package {package_id}")

    def list_pricing_periods(self, variant_id: str) -> list[dict[str, Any]]:
        conn = self._require_connection()
        rows = conn.execute(
            "SELECT * FROM pricing_periods WHERE variant_id=? ORDER BY start_date",
            (variant_id,),
        ).fetchall()
        return [self._period_record(conn, row) for row in rows]

    @staticmethod
    def _period_values(record: dict[str, object]) -> tuple[Any, ...]:
        return (
            record.get("start_date"),
            record.get("end_date"),
            record.get("meal_plan_id"),
            int(record.get("number_of_rooms") or 1),
            record.get("vehicle_type_id"),
            _bool(record.get("is_group_pricing")),
            record.get("description"),
            record.get("location_seasonal_period_id"),
            record.get("total_price"),
        )

    def _insert_components(self, conn: sqlite3.Connection, period_id: str, components: Iterable[Any]) -> None:
        rows: list[tuple[Any, ...]] = []
        for position, component in enumerate(components):
            rows.append(
                (
                    str(component.get("id") or _new_id()),
                    period_id,
                    position,
                    pick(component, "attribute_id", "attributeId"),
                    pick(component, "attribute_name", "attributeName"),
                    component.get("price"),
                    pick(component, "purchase_price", "purchasePrice"),
                    component.get("description"),
                )
            )
        conn.executemany(
            """
            INSERT INTO pricing_components(
                id, period_id, position, attribute_id, attribute_name, price, purchase_price, description
            ) VALUES(?, ?, ?, ?, ?, ?, ?, ?)
            """,
            rows,
        )

    def _period_record(self, conn: sqlite3.Connection, row: sqlite3.Row) -> dict[str, Any]:
        components: Sequence[sqlite3.Row] = conn.execute(
            "SELECT * FROM pricing_components WHERE period_id=? ORDER BY position",
            (row["id"],),
        ).fetchall()
        return {
            "id": row["id"],
            "package_id": row["package_id"],
            "variant_id": row["variant_id"],
            "start_date": row["start_date"],
            "end_date": row["end_date"],
            "meal_plan_id": row["meal_plan_id"],
            "number_of_rooms": row["number_of_rooms"],
            "vehicle_type_id": row["vehicle_type_id"],
            "is_group_pricing": bool(row["is_group_pricing"]),
            "description": row["description"],
            "location_seasonal_period_id": row["location_seasonal_period_id"],
            "total_price": row["total_price"],
            "pricing_components": [
                {
                    "id": component["id"],
                    "attribute_id": component["attribute_id"],
                    "attribute_name": component["attribute_name"],
                    "price": component["price"],
                    "purchase_price": component["purchase_price"],
                    "description": component["description"],
                }
                for component in components
            ],
        }


MIGRATIONS: dict[int, str] = {
    1: """
    CREATE TABLE IF NOT EXISTS variants (
        id TEXT PRIMARY KEY,
        package_id TEXT NOT NULL,
        name TEXT NOT NULL,
        description TEXT,
        is_default INTEGER NOT NULL DEFAULT 0,
        sort_order INTEGER NOT NULL DEFAULT 0,
        price_modifier REAL NOT NULL DEFAULT 0,
        created_at TEXT NOT NULL,
        updated_at TEXT NOT NULL
    );
    CREATE INDEX IF NOT EXISTS idx_variants_package ON variants(package_id, sort_order);

    CREATE TABLE IF NOT EXISTS variant_hotel_mappings (
        variant_id TEXT NOT NULL REFERENCES variants(id) ON DELETE CASCADE,
        itinerary_key TEXT NOT NULL,
        hotel_id TEXT NOT NULL,
        PRIMARY KEY (variant_id, itinerary_key)
    );
    """,
    2: """
    CREATE TABLE IF NOT EXISTS pricing_periods (
        id TEXT PRIMARY KEY,
        package_id TEXT,
        variant_id TEXT NOT NULL REFERENCES variants(id) ON DELETE CASCADE,
        start_date TEXT NOT NULL,
        end_date TEXT NOT NULL,
        meal_plan_id TEXT NOT NULL,
        number_of_rooms INTEGER NOT NULL DEFAULT 1,
        vehicle_type_id TEXT,
        is_group_pricing INTEGER NOT NULL DEFAULT 0,
        description TEXT,
        location_seasonal_period_id TEXT,
        total_price REAL,
        created_at TEXT NOT NULL,
        updated_at TEXT NOT NULL
    );
    CREATE INDEX IF NOT EXISTS idx_pricing_periods_variant ON pricing_periods(variant_id, start_date);

    CREATE TABLE IF NOT EXISTS pricing_components (
        id TEXT PRIMARY KEY,
        period_id TEXT NOT NULL REFERENCES pricing_periods(id) ON DELETE CASCADE,
        position INTEGER NOT NULL,
        attribute_id TEXT NOT NULL,
        attribute_name TEXT,
        price REAL NOT NULL,
        purchase_price REAL,
        description TEXT
    );
    """,
}
