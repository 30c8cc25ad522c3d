"""Tests for engine construction and the module-level engine."""

from sqlalchemy import inspect

from workshop_kernel.db.engine import build_engine, create_tables, get_engine


class TestEngine:

    def test_get_engine_returns_initialized(self, db_engine):
        assert get_engine() is db_engine

    def test_sqlite_in_memory_enforces_foreign_keys(self):
        engine = build_engine("sqlite://")
        try:
            with engine.connect() as conn:
                assert conn.exec_driver_sql("PRAGMA foreign_keys").scalar() == 1
        finally:
            engine.dispose()

    def test_create_tables_registers_every_module(self):
        engine = build_engine("sqlite://")
        try:
            create_tables(engine)
            tables = set(inspect(engine).get_table_names())
        finally:
            engine.dispose()
        assert {"bikes", "table_call_statuses", "profiles"} <= tables
