"""
Pytest configuration and fixtures for roundtrip-verify tests.
Builds real export bundles (JSONL + attachments) and SQLite databases on disk.
"""

import copy
import json
import sqlite3
from dataclasses import dataclass
from pathlib import Path
from typing import Any

import pytest

DB_FILENAME = "arklowdun.sqlite3"

SCHEMA = [
    """
    CREATE TABLE household (
        id TEXT PRIMARY KEY,
        name TEXT NOT NULL,
        tz TEXT,
        created_at INTEGER,
        updated_at INTEGER,
        deleted_at INTEGER
    )
    """,
    """
    CREATE TABLE events (
        id TEXT PRIMARY KEY,
        household_id TEXT NOT NULL REFERENCES household(id),
        title TEXT NOT NULL,
        start_at INTEGER,
        end_at INTEGER,
        reminder INTEGER,
        created_at INTEGER,
        updated_at INTEGER,
        deleted_at INTEGER
    )
    """,
    """
    CREATE TABLE notes (
        id TEXT PRIMARY KEY,
        household_id TEXT NOT NULL REFERENCES household(id),
        text TEXT NOT NULL,
        color TEXT,
        x REAL,
        y REAL,
        z INTEGER,
        created_at INTEGER,
        updated_at INTEGER,
        deleted_at INTEGER
    )
    """,
    """
    CREATE TABLE files_index (
        id INTEGER PRIMARY KEY,
        household_id TEXT NOT NULL,
        file_id TEXT NOT NULL,
        filename TEXT NOT NULL,
        size_bytes INTEGER,
        updated_at_utc TEXT
    )
    """,
]

LIVE_TABLES = {
    "households": "household",
    "events": "events",
    "notes": "notes",
    "files": "files_index",
}

SAMPLE_ROWS: dict[str, list[dict[str, Any]]] = {
    "households": [
        {
            "id": "hh-1",
            "name": "Main household",
            "tz": "Europe/Dublin",
            "created_at": 1700000000000,
            "updated_at": 1700000000000,
            "deleted_at": None,
        },
    ],
    "events": [
        {
            "id": "ev-1",
            "household_id": "hh-1",
            "title": "Dentist",
            "start_at": 1700003600000,
            "end_at": 1700007200000,
            "reminder": 900000,
            "created_at": 1700000000000,
            "updated_at": 1700000000000,
            "deleted_at": None,
        },
        {
            "id": "ev-2",
            "household_id": "hh-1",
            "title": "Bin day",
            "start_at": 1700090000000,
            "end_at": None,
            "reminder": None,
            "created_at": 1700000000000,
            "updated_at": 1700000000000,
            "deleted_at": None,
        },
    ],
    "notes": [
        {
            "id": "n-1",
            "household_id": "hh-1",
            "text": "Buy milk",
            "color": "#FFF4B8",
            "x": 10.5,
            "y": 20.25,
            "z": 0,
            "created_at": 1700000000000,
            "updated_at": 1700000000000,
            "deleted_at": None,
        },
        {
            "id": "n-2",
            "household_id": "hh-1",
            "text": "Café opening hours",
            "color": "#CFF7E3",
            "x": 0.0,
            "y": 1.5,
            "z": 1,
            "created_at": 1700000000000,
            "updated_at": 1700000000000,
            "deleted_at": None,
        },
    ],
    "files": [
        {
            "id": 1,
            "household_id": "hh-1",
            "file_id": "f-1",
            "filename": "insurance.pdf",
            "size_bytes": 12,
            "updated_at_utc": "2023-11-14T22:13:20Z",
        },
        {
            "id": 2,
            "household_id": "hh-1",
            "file_id": "f-2",
            "filename": "boiler-manual.pdf",
            "size_bytes": 9,
            "updated_at_utc": "2023-11-14T22:13:20Z",
        },
        {
            "id": 10,
            "household_id": "hh-1",
            "file_id": "f-10",
            "filename": "receipt.png",
            "size_bytes": 4,
            "updated_at_utc": "2023-11-14T22:13:20Z",
        },
    ],
}

SAMPLE_ATTACHMENTS: dict[str, bytes] = {
    "household/hh-1/insurance.pdf": b"%PDF-1.4 ins",
    "household/hh-1/boiler-manual.pdf": b"%PDF-boil",
    "household/hh-1/receipts/receipt.png": b"\x89PNG",
}


@dataclass
class RoundtripEnv:
    """On-disk before/after pair for a verification run."""

    before_dir: Path
    app_data_dir: Path
    db_path: Path

    @property
    def data_dir(self) -> Path:
        return self.before_dir / "data"

    @property
    def before_attachments(self) -> Path:
        return self.before_dir / "attachments"

    @property
    def after_attachments(self) -> Path:
        return self.app_data_dir / "attachments"

    def execute(self, statement: str, params: tuple = ()) -> None:
        """Run a write statement against the after database."""
        connection = sqlite3.connect(self.db_path)
        try:
            connection.execute(statement, params)
            connection.commit()
        finally:
            connection.close()


def write_jsonl(path: Path, rows: list[dict[str, Any]]) -> None:
    path.parent.mkdir(parents=True, exist_ok=True)
    with open(path, "w", encoding="utf-8") as f:
        for row in rows:
            f.write(json.dumps(row, ensure_ascii=False) + "\n")


def insert_rows(connection: sqlite3.Connection, table: str, rows: list[dict[str, Any]]) -> None:
    for row in rows:
        columns = list(row)
        placeholders = ", ".join("?" for _ in columns)
        connection.execute(
            f"INSERT INTO {table} ({', '.join(columns)}) VALUES ({placeholders})",
            [row[c] for c in columns],
        )


def create_database(db_path: Path, rows_by_table: dict[str, list[dict[str, Any]]]) -> None:
    """Create a live store with the application schema and the given rows."""
    db_path.parent.mkdir(parents=True, exist_ok=True)
    connection = sqlite3.connect(db_path)
    try:
        connection.execute("PRAGMA page_size = 4096")
        for statement in SCHEMA:
            connection.execute(statement)
        for logical, rows in rows_by_table.items():
            insert_rows(connection, LIVE_TABLES[logical], rows)
        connection.commit()
    finally:
        connection.close()


def write_tree(root: Path, files: dict[str, bytes]) -> None:
    for relative, content in files.items():
        path = root.joinpath(*relative.split("/"))
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_bytes(content)


def pytest_configure(config: pytest.Config) -> None:
    """Configure pytest with custom markers."""
    config.addinivalue_line("markers", "e2e: end-to-end run against on-disk fixtures")
    config.addinivalue_line("markers", "property: hypothesis property-based test")
    config.addinivalue_line("markers", "slow: mark test as slow running")


@pytest.fixture(scope="session")
def project_root() -> Path:
    """Get project root directory."""
    return Path(__file__).parent.parent


@pytest.fixture(autouse=True)
def isolate_environment(monkeypatch: pytest.MonkeyPatch) -> None:
    """Keep host settings from leaking into defaults and tracing."""
    for name in (
        "ROUNDTRIP_SAMPLE_SIZE",
        "ROUNDTRIP_WORKERS",
        "ROUNDTRIP_DB_FILENAME",
        "ROUNDTRIP_LOG_LEVEL",
        "ROUNDTRIP_LOG_FILE",
        "ROUNDTRIP_LOG_JSON",
        "OTLP_ENDPOINT",
        "TRACE_CONSOLE",
    ):
        monkeypatch.delenv(name, raising=False)


@pytest.fixture
def sample_rows() -> dict[str, list[dict[str, Any]]]:
    """Fresh copy of the sample table rows."""
    return copy.deepcopy(SAMPLE_ROWS)


@pytest.fixture
def roundtrip_env(tmp_path: Path, sample_rows) -> RoundtripEnv:
    """
    Identical before/after pair: every table and attachment matches.

    Tests mutate the after side (or the bundle) to introduce drift.
    """
    before_dir = tmp_path / "export"
    app_data_dir = tmp_path / "appdata"

    for logical, rows in sample_rows.items():
        write_jsonl(before_dir / "data" / f"{logical}.jsonl", rows)
    write_tree(before_dir / "attachments", SAMPLE_ATTACHMENTS)

    db_path = app_data_dir / DB_FILENAME
    create_database(db_path, sample_rows)
    write_tree(app_data_dir / "attachments", SAMPLE_ATTACHMENTS)

    return RoundtripEnv(before_dir=before_dir, app_data_dir=app_data_dir, db_path=db_path)


@pytest.fixture
def make_database():
    """Factory: make_database(db_path, rows_by_table) builds a live store."""
    return create_database


@pytest.fixture
def make_jsonl():
    """Factory: make_jsonl(path, rows) writes a line-delimited snapshot file."""
    return write_jsonl


@pytest.fixture
def make_tree():
    """Factory: make_tree(root, {relative_path: bytes}) writes an attachments tree."""
    return write_tree
