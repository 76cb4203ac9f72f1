"""Settings and API key check tests."""

from __future__ import annotations

import json

import pytest

from relayer.auth import check_api_key
from relayer.config import Settings, read_linera_ids


def test_env_overrides(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("LINERA_CHAIN_ID", "chain-env")
    monkeypatch.setenv("LINERA_APP_ID", "app-env")
    monkeypatch.setenv("RELAYER_RETENTION", "42")
    monkeypatch.setenv("PORT", "4000")

    settings = Settings(_env_file=None)

    assert settings.linera_chain_id == "chain-env"
    assert settings.linera_app_id == "app-env"
    assert settings.relayer_retention == 42
    assert settings.port == 4000


def test_ids_file_fills_missing_ids(tmp_path) -> None:
    ids_file = tmp_path / "linera-ids.json"
    ids_file.write_text(json.dumps({"chainId": "chain-file", "appId": "app-file"}))

    settings = Settings(linera_ids_path=str(ids_file), _env_file=None)

    assert settings.linera_chain_id == "chain-file"
    assert settings.linera_app_id == "app-file"


def test_explicit_ids_win_over_file(tmp_path) -> None:
    ids_file = tmp_path / "linera-ids.json"
    ids_file.write_text(json.dumps({"chainId": "chain-file", "appId": "app-file"}))

    settings = Settings(linera_chain_id="chain-arg", linera_ids_path=str(ids_file), _env_file=None)

    assert settings.linera_chain_id == "chain-arg"
    assert settings.linera_app_id == "app-file"


def test_relative_ids_path_checks_parent(tmp_path, monkeypatch: pytest.MonkeyPatch) -> None:
    (tmp_path / "ids.json").write_text(json.dumps({"chainId": "c", "appId": "a"}))
    workdir = tmp_path / "relayer"
    workdir.mkdir()
    monkeypatch.chdir(workdir)

    assert read_linera_ids("ids.json") == ("c", "a")


@pytest.mark.parametrize("content", ["", "not json", "[1]", json.dumps({"chainId": 5})])
def test_unusable_ids_file(tmp_path, content) -> None:
    ids_file = tmp_path / "ids.json"
    ids_file.write_text(content)
    assert read_linera_ids(str(ids_file)) == (None, None)


def test_missing_ids_file() -> None:
    assert read_linera_ids("/nonexistent/ids.json") == (None, None)
    assert read_linera_ids(None) == (None, None)


def test_check_api_key() -> None:
    assert check_api_key("dev", "dev").ok is True

    missing = check_api_key(None, "dev")
    wrong = check_api_key("nope", "dev")
    unset = check_api_key("dev", None)

    assert (missing.status_code, missing.error) == (401, "unauthorized")
    assert (wrong.status_code, wrong.error) == (401, "unauthorized")
    assert (unset.status_code, unset.error) == (500, "api_key_not_configured")
