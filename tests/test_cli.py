import json
from pathlib import Path

from typer.testing import CliRunner

from taskreport import app as app_module
from taskreport.clients.client_frappe import BackendError
from taskreport.commands import reports
from taskreport.core import config

runner = CliRunner()


def _install(monkeypatch, settings, source):
    monkeypatch.setattr(reports, "load_settings", lambda: settings)
    monkeypatch.setattr(reports, "FrappeClient", lambda s: source)


def _written(out_dir):
    return sorted(out_dir.glob("*.json")) if out_dir.exists() else []


def test_personal_report_writes_json(monkeypatch, tmp_path, settings, source):
    _install(monkeypatch, settings, source)
    out_dir = tmp_path / "reports"

    result = runner.invoke(
        app_module.app,
        ["reports", "personal", "--email=a@x.com", "--status=Open,Working", "--latest", "--out-dir", str(out_dir)],
    )

    assert result.exit_code == 0, result.output
    files = _written(out_dir)
    assert len(files) == 1
    assert files[0].name.startswith("personal_report_by_responsible_a_x_com_")
    data = json.loads(files[0].read_text(encoding="utf-8"))
    assert [p["project_name"] for p in data] == ["alpha", "Beta"]
    assert data[1]["tasks"][0]["children"][0]["comments"][0]["comment_html"] == "<b>mẫu</b> done"


def test_personal_report_uses_default_out_dir(monkeypatch, settings, source):
    _install(monkeypatch, settings, source)
    result = runner.invoke(app_module.app, ["--quiet", "reports", "personal", "--email", "a@x.com"])
    assert result.exit_code == 0, result.output
    assert len(_written(Path(settings.out_dir))) == 1


def test_personal_report_requires_email(monkeypatch, tmp_path, settings, source):
    _install(monkeypatch, settings, source)
    result = runner.invoke(app_module.app, ["reports", "personal", "--out-dir", str(tmp_path)])
    assert result.exit_code != 0
    assert _written(tmp_path) == []
    assert source.calls == []


def test_invalid_date_is_rejected(monkeypatch, tmp_path, settings, source):
    _install(monkeypatch, settings, source)
    result = runner.invoke(app_module.app, ["reports", "progress", "--from=08/01/2025", "--out-dir", str(tmp_path)])
    assert result.exit_code != 0
    assert source.calls == []


def test_progress_report(monkeypatch, tmp_path, settings, source):
    _install(monkeypatch, settings, source)
    result = runner.invoke(
        app_module.app,
        ["reports", "progress", "--from=2025-08-01", "--to=2025-08-08", "--out-dir", str(tmp_path)],
    )
    assert result.exit_code == 0, result.output
    files = _written(tmp_path)
    assert len(files) == 1
    assert files[0].name.startswith("progress_tree_")
    data = json.loads(files[0].read_text(encoding="utf-8"))
    assert [p["project_id"] for p in data] == ["P1"]


def test_nothing_matched_exits_zero_without_file(monkeypatch, tmp_path, settings, source):
    _install(monkeypatch, settings, source)
    result = runner.invoke(app_module.app, ["reports", "personal", "--email=nobody@x.com", "--out-dir", str(tmp_path)])
    assert result.exit_code == 0
    assert "nobody@x.com" in result.output
    assert _written(tmp_path) == []


def test_backend_failure_exits_one(monkeypatch, tmp_path, settings):
    class Broken:
        def get_list(self, *args, **kwargs):
            raise BackendError("Backend error 500")

    _install(monkeypatch, settings, Broken())
    result = runner.invoke(app_module.app, ["reports", "progress", "--out-dir", str(tmp_path)])
    assert result.exit_code == 1
    assert "Backend error 500" in result.output
    assert _written(tmp_path) == []


def test_missing_configuration_exits_one(monkeypatch, tmp_path, source):
    monkeypatch.setattr(config, "load_env_file", lambda: None)
    for name in config.REQUIRED_VARS:
        monkeypatch.delenv(name, raising=False)
    monkeypatch.setattr(reports, "FrappeClient", lambda s: source)

    result = runner.invoke(app_module.app, ["reports", "personal", "--email=a@x.com", "--out-dir", str(tmp_path)])

    assert result.exit_code == 1
    assert "FRAPPE_URL" in result.output
    assert source.calls == []
    assert _written(tmp_path) == []


def test_version():
    result = runner.invoke(app_module.app, ["version"])
    assert result.exit_code == 0
    assert result.output.strip()
