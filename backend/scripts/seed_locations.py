#!/usr/bin/env python3
"""
Seed the locations table for WatchTower.

Uses the built-in campus lot list, or a CSV with id,name,latitude,longitude
columns when a path is given. Existing rows keep their report state.
"""

import asyncio
import csv
import os
import sys
from pathlib import Path

import asyncpg
from dotenv import load_dotenv

from watchtower.core.registry import SEED_LOCATIONS

load_dotenv()

DATABASE_URL = os.getenv("DATABASE_URL", "").replace("+asyncpg", "")


def log(msg):
    """Print with flush for immediate output."""
    print(msg, flush=True)


def parse_float(value: str | None) -> float | None:
    """Parse float from CSV value."""
    if not value:
        return None
    try:
        return float(value)
    except ValueError:
        return None


def read_csv(csv_path: str) -> list[tuple]:
    """Read location rows as (id, name, latitude, longitude) tuples."""
    rows = []
    with open(csv_path, "r", encoding="utf-8") as f:
        for row in csv.DictReader(f):
            lat = parse_float(row.get("latitude"))
            lng = parse_float(row.get("longitude"))
            if not row.get("id") or not row.get("name") or lat is None or lng is None:
                log(f"Skipping incomplete row: {row}")
                continue
            rows.append((row["id"].strip(), row["name"].strip(), lat, lng))
    return rows


async def seed(rows: list[tuple]):
    """Insert locations that are not stored yet."""
    log("Connecting to database...")
    conn = await asyncpg.connect(DATABASE_URL)

    initial_count = await conn.fetchval("SELECT COUNT(*) FROM locations")
    log(f"Current locations in DB: {initial_count}")

    insert_sql = """
        INSERT INTO locations (
            id, name, latitude, longitude, report_count, recent_reports, sort_order
        ) VALUES ($1, $2, $3, $4, 0, '[]'::json, $5)
        ON CONFLICT (id) DO UPDATE SET
            name = EXCLUDED.name,
            latitude = EXCLUDED.latitude,
            longitude = EXCLUDED.longitude,
            sort_order = EXCLUDED.sort_order
    """
    await conn.executemany(
        insert_sql,
        [(*row, order) for order, row in enumerate(rows)],
    )

    final_count = await conn.fetchval("SELECT COUNT(*) FROM locations")
    log(f"Seeded {len(rows)} locations ({final_count - initial_count} new)")

    await conn.close()


if __name__ == "__main__":
    if len(sys.argv) > 1:
        csv_path = sys.argv[1]
        if not Path(csv_path).exists():
            log(f"Error: CSV file not found: {csv_path}")
            sys.exit(1)
        rows = read_csv(csv_path)
    else:
        rows = [(loc.id, loc.name, loc.latitude, loc.longitude) for loc in SEED_LOCATIONS]

    asyncio.run(seed(rows))
