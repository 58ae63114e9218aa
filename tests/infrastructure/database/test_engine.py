"""Tests for database engine setup and initialization."""

from pathlib import Path

from sqlalchemy import inspect, text

from kizuna.infrastructure.database.engine import create_db_engine, database_url, init_database


class TestCreateDbEngine:
    def test_wal_mode_enabled(self, tmp_path: Path) -> None:
        engine = create_db_engine(f"sqlite:///{tmp_path / 'test.db'}")
        with engine.connect() as conn:
            assert conn.execute(text("PRAGMA journal_mode")).scalar() == "wal"

    def test_foreign_keys_enabled(self, tmp_path: Path) -> None:
        engine = create_db_engine(f"sqlite:///{tmp_path / 'test.db'}")
        with engine.connect() as conn:
            assert conn.execute(text("PRAGMA foreign_keys")).scalar() == 1


class TestInitDatabase:
    def test_creates_data_directory_and_file(self, tmp_path: Path) -> None:
        init_database(tmp_path)
        assert (tmp_path / ".kizuna").is_dir()
        assert (tmp_path / ".kizuna" / "kizuna.db").exists()

    def test_custom_filename(self, tmp_path: Path) -> None:
        init_database(tmp_path, filename="other.db")
        assert (tmp_path / ".kizuna" / "other.db").exists()

    def test_creates_all_tables(self, tmp_path: Path) -> None:
        engine = init_database(tmp_path)
        names = set(inspect(engine).get_table_names())
        assert {"users", "providers", "journeys", "bookings"} <= names

    def test_idempotent(self, tmp_path: Path) -> None:
        init_database(tmp_path).dispose()
        engine = init_database(tmp_path)
        assert "bookings" in inspect(engine).get_table_names()

    def test_url_override_skips_data_directory(self, tmp_path: Path) -> None:
        url = f"sqlite:///{tmp_path / 'elsewhere.db'}"
        init_database(tmp_path / "ws", url=url)
        assert (tmp_path / "elsewhere.db").exists()
        assert not (tmp_path / "ws" / ".kizuna").exists()


def test_database_url(tmp_path: Path) -> None:
    assert database_url(tmp_path) == f"sqlite:///{tmp_path / '.kizuna' / 'kizuna.db'}"
