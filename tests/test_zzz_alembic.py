"""Alembic migration tests.

File named test_zzz_alembic.py to sort LAST in pytest collection order.
"""

import os
import sqlite3
import subprocess
import sys
from pathlib import Path

from photohunt.db import models  # noqa: F401
from photohunt.db.base import Base

ROOT = Path(__file__).resolve().parent.parent


def _alembic(db_path: Path, *args: str) -> subprocess.CompletedProcess:
    env = {**os.environ, "PHOTOHUNT_DATABASE_URL": f"sqlite+aiosqlite:///{db_path}"}
    return subprocess.run(
        [sys.executable, "-m", "alembic", *args],
        capture_output=True,
        text=True,
        cwd=ROOT,
        env=env,
    )


def test_alembic_upgrade_head(tmp_path: Path) -> None:
    """alembic upgrade head creates every table the models declare."""
    db_path = tmp_path / "migrated.db"
    result = _alembic(db_path, "upgrade", "head")
    assert result.returncode == 0, f"alembic upgrade failed: {result.stderr}"

    with sqlite3.connect(db_path) as conn:
        tables = {row[0] for row in conn.execute("SELECT name FROM sqlite_master WHERE type = 'table'")}
    assert set(Base.metadata.tables) <= tables


def test_alembic_current_shows_head(tmp_path: Path) -> None:
    """alembic current shows the latest revision."""
    db_path = tmp_path / "migrated.db"
    assert _alembic(db_path, "upgrade", "head").returncode == 0
    result = _alembic(db_path, "current")
    assert result.returncode == 0
    assert "001_initial_schema" in result.stdout


def test_alembic_downgrade_base(tmp_path: Path) -> None:
    """Downgrading to base drops the schema cleanly."""
    db_path = tmp_path / "migrated.db"
    assert _alembic(db_path, "upgrade", "head").returncode == 0
    result = _alembic(db_path, "downgrade", "base")
    assert result.returncode == 0, result.stderr
