import json
from datetime import date
from pathlib import Path

import pytest
from conftest import add_fixed

from bizfin import main as cli
from bizfin.application.container import build_container
from bizfin.config import AppPaths, StoreSettings, get_store_settings
from bizfin.domain.errors import ConfigurationError
from bizfin.domain.models import ReceiptStatus, Revenue
from bizfin.repositories.rest_repo import RestRepository
from bizfin.repositories.sqlite_repo import SqliteRepository


def test_store_settings_default_to_local():
    settings = get_store_settings({})
    assert settings.is_remote is False
    assert settings.timeout == 10.0


def test_store_settings_read_remote_environment():
    settings = get_store_settings(
        {
            "BIZFIN_STORE_URL": "https://store.example.com",
            "BIZFIN_STORE_KEY": "k",
            "BIZFIN_STORE_USER_ID": "u-1",
            "BIZFIN_STORE_TIMEOUT": "3.5",
        }
    )
    assert settings.is_remote
    assert settings.user_id == "u-1"
    assert settings.timeout == 3.5


def test_remote_url_without_key_is_rejected():
    with pytest.raises(ConfigurationError, match="BIZFIN_STORE_KEY"):
        get_store_settings({"BIZFIN_STORE_URL": "https://store.example.com"})


@pytest.mark.parametrize("raw", ["soon", "0", "-1"])
def test_store_timeout_must_be_positive_seconds(raw):
    with pytest.raises(ConfigurationError, match="BIZFIN_STORE_TIMEOUT"):
        get_store_settings({"BIZFIN_STORE_TIMEOUT": raw})


def test_container_picks_store_from_settings(tmp_path: Path):
    local = build_container(tmp_path / "local.db")
    remote = build_container(
        tmp_path / "unused.db",
        StoreSettings(url="https://store.example.com", api_key="k", user_id=None, timeout=2.0),
    )

    assert isinstance(local.repo, SqliteRepository)
    assert isinstance(remote.repo, RestRepository)
    assert remote.repo.timeout == 2.0
    assert remote.rollover.repo is remote.repo
    assert not (tmp_path / "unused.db").exists()


@pytest.fixture
def cli_paths(tmp_path: Path, monkeypatch) -> AppPaths:
    paths = AppPaths(base_dir=tmp_path, db_path=tmp_path / "bizfin.db", logs_dir=tmp_path / "logs")
    monkeypatch.setattr(cli, "get_app_paths", lambda: paths)
    monkeypatch.delenv("BIZFIN_STORE_URL", raising=False)
    return paths


def test_summary_command_prints_json(cli_paths: AppPaths, capsys):
    repo = build_container(cli_paths.db_path).repo
    repo.add_revenue(Revenue(date=date(2024, 6, 3), description="Sale", amount="250", category="Sales", receipt_status=ReceiptStatus.RECEIVED))

    assert cli.main(["summary", "--month", "2024-06"]) == 0

    data = json.loads(capsys.readouterr().out)
    assert data["period"]["start"] == "2024-06-01"
    assert data["revenue"]["received"] == "250"
    assert data["net_profit"] == "250"


def test_rollover_command_reports_refusal(cli_paths: AppPaths, capsys):
    repo = build_container(cli_paths.db_path).repo
    add_fixed(repo, "Rent", "900", date(2024, 5, 1))

    assert cli.main(["rollover", "--month", "2024-06"]) == 0
    assert cli.main(["rollover", "--month", "2024-06"]) == 1
    assert "already exist" in capsys.readouterr().err


def test_export_command_writes_workbook(cli_paths: AppPaths, tmp_path: Path):
    out = tmp_path / "report.xlsx"
    assert cli.main(["export", "--month", "2024-06", "--out", str(out)]) == 0
    assert out.exists()


def test_malformed_month_is_a_usage_error(cli_paths: AppPaths, capsys):
    with pytest.raises(SystemExit) as exc:
        cli.main(["summary", "--month", "June"])

    assert exc.value.code == 2
    assert "expected YYYY-MM" in capsys.readouterr().err


def test_missing_store_key_is_reported_not_raised(cli_paths: AppPaths, monkeypatch, capsys):
    monkeypatch.setenv("BIZFIN_STORE_URL", "https://store.example.com")
    monkeypatch.delenv("BIZFIN_STORE_KEY", raising=False)

    assert cli.main(["summary", "--month", "2024-06"]) == 2
    assert "BIZFIN_STORE_KEY" in capsys.readouterr().err
    assert not cli_paths.db_path.exists()
