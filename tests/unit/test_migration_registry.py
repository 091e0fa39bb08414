from __future__ import annotations

import json
import logging
import sqlite3

import pytest
from pydantic import ValidationError

from sqlshift.domain.models import MigrationDescriptor, MigrationStep
from sqlshift.migration.checkpoints import CheckpointStore
from sqlshift.migration.registry import MigrationRegistry

LEGACY = "id INT, name TEXT"
TARGET = "id INT, name TEXT, age INT DEFAULT 0"


def test_empty_registry_warns_and_does_nothing(sqlite_conn, caplog):
    caplog.set_level(logging.WARNING, logger="sqlshift.migration.registry")

    assert MigrationRegistry(placeholder="?").migrate(sqlite_conn) == []
    assert "There is nothing to migrate" in caplog.text


def test_register_appends_in_order():
    registry = MigrationRegistry()

    first = registry.register("users", LEGACY, TARGET)
    second = registry.register("orders", "id INT", "id INT")

    assert first == MigrationDescriptor("users", LEGACY, TARGET)
    assert second.is_noop
    assert registry.descriptors == (first, second)
    assert len(registry) == 2


def test_failure_does_not_stop_later_descriptors(users_table, caplog):
    caplog.set_level(logging.ERROR, logger="sqlshift.migration.registry")
    registry = MigrationRegistry(placeholder="?", checkpoints=CheckpointStore(placeholder="?"))
    registry.register("missing", "id INT", "id INT, extra TEXT")
    registry.register("users", LEGACY, TARGET)

    outcomes = registry.migrate(users_table)

    assert [outcome.table for outcome in outcomes] == ["missing", "users"]
    assert not outcomes[0].succeeded
    assert outcomes[0].step is MigrationStep.SHADOW_CREATE
    assert "SHADOW_COPY" in outcomes[0].error
    assert outcomes[1].succeeded
    assert "An error occurred while trying to migrate table missing" in caplog.text
    assert users_table.execute("SELECT age FROM users").fetchall() == [(0,), (0,), (0,)]


def test_descriptors_are_kept_after_migrate(users_table):
    registry = MigrationRegistry(placeholder="?")
    registry.register("users", LEGACY, TARGET)

    registry.migrate(users_table)

    assert len(registry) == 1


def test_load_descriptors_from_json(tmp_path):
    path = tmp_path / "migrations.json"
    path.write_text(
        json.dumps(
            [
                {"table": "users", "legacy": LEGACY, "target": TARGET},
                {"table": "tags", "target": "id INT"},
            ]
        ),
        encoding="utf-8",
    )
    registry = MigrationRegistry()

    loaded = registry.load_descriptors(path)

    assert [d.table for d in loaded] == ["users", "tags"]
    assert loaded[1].legacy_definition == ""
    assert loaded[1].is_noop
    assert registry.descriptors == tuple(loaded)


def test_load_descriptors_rejects_invalid_entries(tmp_path):
    path = tmp_path / "migrations.json"
    path.write_text(json.dumps([{"table": "", "target": "id INT"}]), encoding="utf-8")

    with pytest.raises(ValidationError):
        MigrationRegistry().load_descriptors(path)


def test_dead_connection_fails_every_descriptor_without_aborting(sqlite_path, caplog):
    caplog.set_level(logging.WARNING, logger="sqlshift.migration")
    conn = sqlite3.connect(sqlite_path)
    conn.close()
    registry = MigrationRegistry(placeholder="?", checkpoints=CheckpointStore(placeholder="?"))
    registry.register("a", "id INT", "id INT, name TEXT")
    registry.register("b", "id INT", "id INT, name TEXT")

    outcomes = registry.migrate(conn)

    assert [outcome.table for outcome in outcomes] == ["a", "b"]
    assert all(outcome.step is MigrationStep.IDLE for outcome in outcomes)
    assert all(not outcome.succeeded for outcome in outcomes)
    assert "Rollback failed" in caplog.text
    assert "An error occurred while trying to migrate table b" in caplog.text
