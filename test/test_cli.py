from unittest.mock import patch

from typer.testing import CliRunner

from app.core import config
from cli import app, get_status_emoji
from serve import serve_app, startup_summary

runner = CliRunner()


def test_status_emoji():
    assert get_status_emoji("active") == ":green_circle:"
    assert get_status_emoji("paused") == ":yellow_circle:"
    assert get_status_emoji("unknown") == ":question_mark:"


def test_project_list_empty():
    result = runner.invoke(app, ["project", "list", "--tenant", "cli_tenant"])
    assert result.exit_code == 0
    assert "No projects found" in result.output


def test_project_create():
    result = runner.invoke(app, ["project", "create", "Shop", "--tenant", "cli_tenant", "--json"])
    assert result.exit_code == 0
    assert '"name": "Shop"' in result.output


def test_project_create_unknown_region():
    result = runner.invoke(
        app, ["project", "create", "Shop", "--tenant", "cli_tenant", "--region", "moon-1"]
    )
    assert result.exit_code == 1
    assert "Unsupported region" in result.output


def test_stats():
    result = runner.invoke(app, ["stats", "--tenant", "cli_tenant"])
    assert result.exit_code == 0
    assert "tables" in result.output


def test_startup_summary_names_storage(monkeypatch):
    monkeypatch.setattr(config, "STORAGE_BACKEND", "file")
    monkeypatch.setattr(config, "DATA_DIR", "/var/lib/databox")

    summary = startup_summary("127.0.0.1", 9000)

    assert "http://127.0.0.1:9000/docs" in summary
    assert "file (/var/lib/databox)" in summary
    assert "lost when the server stops" not in summary


def test_startup_summary_warns_for_memory(monkeypatch):
    monkeypatch.setattr(config, "STORAGE_BACKEND", "memory")
    assert "lost when the server stops" in startup_summary("0.0.0.0", 8000)


def test_serve_app_runs_uvicorn():
    with patch("serve.uvicorn.run") as run:
        serve_app("app.main:app", host="127.0.0.1", port=9000)
    run.assert_called_once_with(app="app.main:app", host="127.0.0.1", port=9000, reload=False)
