"""CLI integration tests for `nurserydb db` against a DuckDB file."""

from __future__ import annotations

import json

import duckdb
import pytest
from click.testing import CliRunner

from nurserydb.auth import issue_token
from nurserydb.cli import main

SECRET = "cli-secret-for-nurserydb-tokens-000001"


def _token(*roles: str) -> str:
    return issue_token("u1", "u1@nursery.test", list(roles), secret=SECRET)


@pytest.fixture
def db_path(isolated_home):
    path = isolated_home / "nursery.duckdb"
    conn = duckdb.connect(str(path))
    conn.execute("CREATE TABLE Plants (ID INTEGER PRIMARY KEY, Name VARCHAR, Category VARCHAR)")
    conn.execute("INSERT INTO Plants VALUES (1, 'Fern', 'Indoor'), (2, 'Basil', 'Herb'), (3, 'Mint', 'Herb')")
    conn.execute("CREATE TABLE Orders (ID INTEGER PRIMARY KEY, Status VARCHAR)")
    conn.execute("CREATE TABLE InventoryItems (PlantID INTEGER PRIMARY KEY, QuantityOnHand INTEGER)")
    conn.execute("INSERT INTO InventoryItems VALUES (2, 10)")
    conn.close()
    return path


def _runner(db_path, *roles: str) -> CliRunner:
    env = {
        "NURSERYDB_JWT_SECRET": SECRET,
        "NURSERYDB_ENV": "test",
        "NURSERYDB_DB": f"duckdb:path={db_path}",
        "NURSERYDB_TOKEN": _token(*roles) if roles else None,
    }
    return CliRunner(env=env)


def _count(db_path, sql: str) -> int:
    conn = duckdb.connect(str(db_path))
    try:
        return conn.execute(sql).fetchone()[0]
    finally:
        conn.close()


class TestAuthentication:
    def test_missing_token_is_401(self, db_path) -> None:
        result = _runner(db_path).invoke(main, ["db", "tables"])
        assert result.exit_code == 1
        assert json.loads(result.output) == {"error": "No token provided", "status": 401}

    def test_bad_token_is_403(self, db_path) -> None:
        result = _runner(db_path).invoke(main, ["db", "tables", "--token", "nope"])
        assert result.exit_code == 1
        assert json.loads(result.output)["status"] == 403

    def test_customer_cannot_read(self, db_path) -> None:
        result = _runner(db_path, "customer").invoke(main, ["db", "tables"])
        assert result.exit_code == 1
        data = json.loads(result.output)
        assert data["error"] == "Access denied. Required roles: manager or employee"

    def test_employee_cannot_write(self, db_path) -> None:
        result = _runner(db_path, "employee").invoke(
            main, ["db", "delete", "Plants", "--where", "ID=1"]
        )
        assert result.exit_code == 1
        assert json.loads(result.output)["error"] == "Access denied. Required role: manager"
        assert _count(db_path, "SELECT COUNT(*) FROM Plants") == 3

    def test_denial_is_logged(self, db_path, isolated_home) -> None:
        _runner(db_path, "customer").invoke(main, ["db", "tables"])
        lines = [
            json.loads(line)
            for f in (isolated_home / "logs").rglob("*.jsonl")
            for line in f.read_text().splitlines()
        ]
        assert len(lines) == 1
        assert lines[0]["denied"] is True
        assert lines[0]["roles"] == ["customer"]

    def test_no_database(self, isolated_home) -> None:
        runner = CliRunner(env={
            "NURSERYDB_JWT_SECRET": SECRET, "NURSERYDB_ENV": "test",
            "NURSERYDB_DB": None, "NURSERYDB_TOKEN": _token("manager"),
        })
        result = runner.invoke(main, ["db", "tables"])
        assert result.exit_code == 2
        assert "no database given" in result.output


class TestReads:
    def test_tables(self, db_path) -> None:
        result = _runner(db_path, "employee").invoke(main, ["db", "tables"])
        assert result.exit_code == 0, result.output
        assert json.loads(result.output) == {
            "tables": ["InventoryItems", "Orders", "Plants"], "count": 3,
        }

    def test_schema(self, db_path) -> None:
        result = _runner(db_path, "manager").invoke(main, ["db", "schema", "Plants"])
        assert result.exit_code == 0
        data = json.loads(result.output)
        assert data["table"] == "Plants"
        assert [c["name"] for c in data["schema"]] == ["ID", "Name", "Category"]

    def test_schema_unknown_table_is_404(self, db_path) -> None:
        result = _runner(db_path, "manager").invoke(main, ["db", "schema", "Nope"])
        assert result.exit_code == 1
        assert json.loads(result.output) == {"error": "Table 'Nope' not found", "status": 404}

    def test_select_with_filter(self, db_path) -> None:
        result = _runner(db_path, "employee").invoke(main, [
            "db", "select", "Plants", "--where", "Category=Herb", "--order-by=-ID",
        ])
        assert result.exit_code == 0, result.output
        data = json.loads(result.output)
        assert data["count"] == 2
        assert [r["Name"] for r in data["data"]] == ["Mint", "Basil"]

    def test_select_limit(self, db_path) -> None:
        result = _runner(db_path, "employee").invoke(main, ["db", "select", "Plants", "--limit", "1"])
        assert json.loads(result.output)["count"] == 1

    def test_select_bad_pair(self, db_path) -> None:
        result = _runner(db_path, "employee").invoke(main, ["db", "select", "Plants", "--where", "ID"])
        assert result.exit_code == 2


class TestWrites:
    def test_insert(self, db_path) -> None:
        result = _runner(db_path, "admin").invoke(
            main, ["db", "insert", "Orders", "ID=5", "Status=O'Brien's order"]
        )
        assert result.exit_code == 0, result.output
        assert json.loads(result.output) == {"message": "Data inserted successfully", "table": "Orders"}
        assert _count(db_path, "SELECT COUNT(*) FROM Orders WHERE Status = 'O''Brien''s order'") == 1

    def test_insert_without_values_is_400(self, db_path) -> None:
        result = _runner(db_path, "manager").invoke(main, ["db", "insert", "Orders"])
        assert result.exit_code == 1
        data = json.loads(result.output)
        assert data["status"] == 400
        assert data["details"][0]["field"] == "data"

    def test_update(self, db_path) -> None:
        result = _runner(db_path, "manager").invoke(
            main, ["db", "update", "Plants", "Category=Culinary", "--where", "Category=Herb"]
        )
        assert result.exit_code == 0
        assert json.loads(result.output)["message"] == "Data updated successfully"
        assert _count(db_path, "SELECT COUNT(*) FROM Plants WHERE Category = 'Culinary'") == 2

    def test_update_without_where_refused(self, db_path) -> None:
        result = _runner(db_path, "manager").invoke(main, ["db", "update", "Plants", "Category=X"])
        assert result.exit_code == 1
        assert json.loads(result.output)["status"] == 400
        assert _count(db_path, "SELECT COUNT(*) FROM Plants WHERE Category = 'X'") == 0

    def test_delete(self, db_path) -> None:
        result = _runner(db_path, "manager").invoke(main, ["db", "delete", "Plants", "--where", "ID=1"])
        assert result.exit_code == 0
        assert json.loads(result.output)["message"] == "Data deleted successfully"
        assert _count(db_path, "SELECT COUNT(*) FROM Plants") == 2

    def test_delete_all_requires_flag(self, db_path) -> None:
        runner = _runner(db_path, "manager")
        assert runner.invoke(main, ["db", "delete", "Plants"]).exit_code == 1
        assert runner.invoke(main, ["db", "delete", "Plants", "--all"]).exit_code == 0
        assert _count(db_path, "SELECT COUNT(*) FROM Plants") == 0

    def test_store_error_is_redacted(self, db_path) -> None:
        result = _runner(db_path, "manager").invoke(main, ["db", "insert", "Ghost", "ID=1"])
        assert result.exit_code == 1
        assert json.loads(result.output) == {
            "error": "Database error", "message": "A database error occurred", "status": 500,
        }

    def test_store_error_detail_in_development(self, db_path) -> None:
        runner = _runner(db_path, "manager")
        runner.env["NURSERYDB_ENV"] = "development"
        result = runner.invoke(main, ["db", "insert", "Ghost", "ID=1"])
        data = json.loads(result.output)
        assert "Ghost" in data["message"]

    def test_writes_are_logged(self, db_path, isolated_home) -> None:
        _runner(db_path, "manager").invoke(main, ["db", "delete", "Plants", "--where", "ID=1"])
        entry = json.loads(next((isolated_home / "logs").rglob("*.jsonl")).read_text())
        assert entry["sql"] == 'DELETE FROM "Plants" WHERE "ID" = 1'
        assert entry["kind"] == "delete"
        assert entry["table"] == "Plants"
        assert entry["subject"] == "u1"


class TestQuery:
    def test_select_capped(self, db_path) -> None:
        result = _runner(db_path, "employee").invoke(
            main, ["db", "query", "SELECT Name FROM Plants ORDER BY ID", "--limit", "2"]
        )
        assert result.exit_code == 0, result.output
        data = json.loads(result.output)
        assert data["effective_sql"] == "SELECT Name FROM Plants ORDER BY ID LIMIT 2"
        assert data["data"] == [{"Name": "Fern"}, {"Name": "Basil"}]
        assert data["diagnostics"][0]["code"] == "Q0601"

    def test_write_blocked(self, db_path) -> None:
        result = _runner(db_path, "manager").invoke(main, ["db", "query", "DELETE FROM Plants"])
        assert result.exit_code == 1
        data = json.loads(result.output)
        assert data["status"] == 400
        assert data["error"] == "write operation blocked"
        assert _count(db_path, "SELECT COUNT(*) FROM Plants") == 3

    def test_stacked_statements_blocked(self, db_path) -> None:
        result = _runner(db_path, "manager").invoke(
            main, ["db", "query", "SELECT 1; DROP TABLE Plants"]
        )
        assert result.exit_code == 1
        assert _count(db_path, "SELECT COUNT(*) FROM Plants") == 3


class TestBatch:
    def _write(self, tmp_path, operations) -> str:
        path = tmp_path / "batch.json"
        path.write_text(json.dumps(operations))
        return str(path)

    def test_batch_applies_atomically(self, db_path, tmp_path) -> None:
        source = self._write(tmp_path, [
            {"op": "insert", "table": "Orders", "data": {"ID": 1, "Status": "pending"}},
            {"op": "update", "table": "InventoryItems",
             "data": {"QuantityOnHand": 8}, "where": {"PlantID": 2}},
        ])
        result = _runner(db_path, "manager").invoke(main, ["db", "batch", source])
        assert result.exit_code == 0, result.output
        data = json.loads(result.output)
        assert data["applied"] == 2
        assert data["tables"] == ["InventoryItems", "Orders"]
        assert _count(db_path, "SELECT QuantityOnHand FROM InventoryItems") == 8

    def test_batch_failure_rolls_back(self, db_path, tmp_path) -> None:
        source = self._write(tmp_path, [
            {"op": "insert", "table": "Orders", "data": {"ID": 1, "Status": "pending"}},
            {"op": "insert", "table": "Ghost", "data": {"ID": 1}},
        ])
        result = _runner(db_path, "manager").invoke(main, ["db", "batch", source])
        assert result.exit_code == 1
        assert json.loads(result.output)["status"] == 500
        assert _count(db_path, "SELECT COUNT(*) FROM Orders") == 0

    def test_batch_validation(self, db_path, tmp_path) -> None:
        source = self._write(tmp_path, [{"op": "truncate", "table": "Orders"}])
        result = _runner(db_path, "manager").invoke(main, ["db", "batch", source])
        assert result.exit_code == 1
        assert json.loads(result.output)["status"] == 400

    def test_batch_invalid_json(self, db_path, tmp_path) -> None:
        path = tmp_path / "broken.json"
        path.write_text("[{")
        result = _runner(db_path, "manager").invoke(main, ["db", "batch", str(path)])
        assert result.exit_code == 2
