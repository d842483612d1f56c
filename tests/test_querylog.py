"""Test statement logging — daily JSONL files with retention cleanup."""

import json
from datetime import UTC, datetime, timedelta
from unittest.mock import patch

from nurserydb.querylog import _project_slug, cleanup_old_logs, log_statement


def test_project_slug_encodes_cwd():
    with patch("nurserydb.querylog.os.getcwd", return_value="/srv/nursery/backend"):
        slug = _project_slug()
    assert slug == "srv-nursery-backend"


def test_log_statement_creates_file(tmp_path):
    with patch("nurserydb.querylog._LOG_ROOT", tmp_path), patch(
        "nurserydb.querylog.os.getcwd", return_value="/test/project"
    ):
        log_statement(sql="SELECT * FROM [Plants]", db="nursery", table="Plants", kind="select")

    log_files = list((tmp_path / "test-project").glob("*.jsonl"))
    assert len(log_files) == 1
    today = datetime.now(UTC).strftime("%Y-%m-%d")
    assert log_files[0].name == f"{today}.jsonl"

    entry = json.loads(log_files[0].read_text().strip())
    assert entry["sql"] == "SELECT * FROM [Plants]"
    assert entry["db"] == "nursery"
    assert entry["table"] == "Plants"
    assert entry["denied"] is False
    assert entry["roles"] == []
    assert "ts" in entry


def test_log_statement_appends(tmp_path):
    with patch("nurserydb.querylog._LOG_ROOT", tmp_path), patch(
        "nurserydb.querylog.os.getcwd", return_value="/test/project"
    ):
        log_statement(sql="SELECT 1")
        log_statement(sql="SELECT 2", subject="u1", roles=["employee"], denied=True,
                      error="Access denied. Required role: manager")

    lines = next((tmp_path / "test-project").glob("*.jsonl")).read_text().strip().split("\n")
    assert len(lines) == 2
    second = json.loads(lines[1])
    assert second["subject"] == "u1"
    assert second["roles"] == ["employee"]
    assert second["denied"] is True
    assert second["error"].startswith("Access denied")


def test_cleanup_deletes_old_files(tmp_path):
    project_dir = tmp_path / "test-project"
    project_dir.mkdir(parents=True)

    old_date = (datetime.now(UTC) - timedelta(days=40)).strftime("%Y-%m-%d")
    (project_dir / f"{old_date}.jsonl").write_text('{"sql":"old"}\n')
    recent_date = (datetime.now(UTC) - timedelta(days=5)).strftime("%Y-%m-%d")
    (project_dir / f"{recent_date}.jsonl").write_text('{"sql":"recent"}\n')
    (project_dir / "notes.jsonl").write_text("{}\n")

    with patch("nurserydb.querylog._LOG_ROOT", tmp_path), patch(
        "nurserydb.querylog.os.getcwd", return_value="/test/project"
    ):
        deleted = cleanup_old_logs(retention_days=30)

    assert deleted == 1
    assert not (project_dir / f"{old_date}.jsonl").exists()
    assert (project_dir / f"{recent_date}.jsonl").exists()
    assert (project_dir / "notes.jsonl").exists()


def test_cleanup_no_directory(tmp_path):
    with patch("nurserydb.querylog._LOG_ROOT", tmp_path), patch(
        "nurserydb.querylog.os.getcwd", return_value="/nonexistent/project"
    ):
        assert cleanup_old_logs() == 0
