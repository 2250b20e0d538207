"""Tests for adocli.settings: precedence, config writes and the team config store."""

import gc
from pathlib import Path

import pytest
import tomlkit
import typer

import adocli.settings as settings_module
from adocli.models import HealthThresholds, TeamConfig, TeamHealthConfig, TeamMember
from adocli.settings import (
    clear_token,
    get_settings,
    load_team_config,
    parse_repo,
    require_repo,
    require_token,
    save_config,
    save_team_config,
)


def _write_config(config: dict) -> Path:
    settings_module.CONFIG_PATH.write_text(tomlkit.dumps(config))
    return settings_module.CONFIG_PATH


class TestParseRepo:
    def test_valid(self) -> None:
        assert parse_repo("contoso/Web") == ("contoso", "Web")

    @pytest.mark.parametrize("value", ["contoso", "/Web", "contoso/", "a/b/c", ""])
    def test_invalid(self, value: str) -> None:
        with pytest.raises(ValueError, match="organization/project"):
            parse_repo(value)


class TestGetSettings:
    def test_reads_config_file(self) -> None:
        _write_config({"organization": "contoso", "project": "Web", "token": "pat_file"})
        s = get_settings()
        assert s.repository == "contoso/Web"
        assert s.token is not None
        assert s.token.get_secret_value() == "pat_file"

    def test_env_var_takes_precedence_over_toml(self, monkeypatch: pytest.MonkeyPatch) -> None:
        _write_config({"organization": "contoso", "project": "Web", "token": "pat_file"})
        monkeypatch.setenv("ADO_TOKEN", "pat_env")
        monkeypatch.setenv("ADO_PROJECT", "Mobile")

        s = get_settings()
        assert s.token.get_secret_value() == "pat_env"
        assert s.repository == "contoso/Mobile"

    def test_dotenv_used(self, tmp_path: Path) -> None:
        (tmp_path / ".env").write_text("ADO_ORGANIZATION=fabrikam\nADO_PROJECT=Api\n")
        assert get_settings().repository == "fabrikam/Api"

    def test_repo_arg_takes_precedence(self, monkeypatch: pytest.MonkeyPatch) -> None:
        _write_config({"organization": "contoso", "project": "Web"})
        monkeypatch.setenv("ADO_PROJECT", "Mobile")
        assert get_settings(repo="fabrikam/Api").repository == "fabrikam/Api"

    def test_repo_arg_is_not_persisted(self) -> None:
        _write_config({"organization": "contoso", "project": "Web"})
        get_settings(repo="fabrikam/Api")
        settings_module._load_toml.cache_clear()
        assert get_settings().repository == "contoso/Web"

    def test_bad_repo_arg_exits(self) -> None:
        with pytest.raises((SystemExit, typer.Exit)):
            get_settings(repo="not-a-repo")

    def test_no_config_file_returns_empty(self) -> None:
        s = get_settings()
        assert s.repository is None
        assert s.token is None

    def test_require_helpers_exit(self) -> None:
        s = get_settings()
        with pytest.raises((SystemExit, typer.Exit)):
            require_repo(s)
        with pytest.raises((SystemExit, typer.Exit)):
            require_token(s)


class TestSaveConfig:
    def test_creates_file_and_preserves_comments(self) -> None:
        settings_module.CONFIG_PATH.write_text('# my settings\norganization = "old"\n')
        save_config(organization="contoso", project="Web")

        text = settings_module.CONFIG_PATH.read_text()
        assert "# my settings" in text
        doc = tomlkit.parse(text)
        assert doc["organization"] == "contoso"
        assert doc["project"] == "Web"

    def test_invalidates_cache(self) -> None:
        save_config(organization="contoso", project="Web")
        assert get_settings().repository == "contoso/Web"
        save_config(project="Mobile")
        assert get_settings().repository == "contoso/Mobile"

    def test_clear_token(self) -> None:
        save_config(organization="contoso", project="Web", token="pat")
        clear_token()
        doc = tomlkit.parse(settings_module.CONFIG_PATH.read_text())
        assert "token" not in doc
        assert doc["organization"] == "contoso"

    def test_clear_token_without_file_is_noop(self) -> None:
        clear_token()
        assert not settings_module.CONFIG_PATH.exists()

    @pytest.mark.filterwarnings("error::ResourceWarning", "error::pytest.PytestUnraisableExceptionWarning")
    def test_files_are_closed(self) -> None:
        save_config(organization="contoso", project="Web")
        save_config(token="pat")
        assert get_settings().repository == "contoso/Web"
        save_team_config(TeamHealthConfig(team=TeamConfig(name="Web Team")))
        assert load_team_config().team.name == "Web Team"
        gc.collect()


class TestTeamConfig:
    def test_missing_returns_none(self) -> None:
        assert load_team_config() is None

    def test_round_trip(self) -> None:
        config = TeamHealthConfig(
            team=TeamConfig(
                name="Web Team",
                members=[TeamMember(name="Bob Jones", email="bob@example.com", aliases=["Robert Jones"])],
            ),
            thresholds=HealthThresholds(stale_days=5),
        )
        save_team_config(config)
        assert load_team_config() == config

    def test_written_with_camel_case_keys(self) -> None:
        save_team_config(TeamHealthConfig(team=TeamConfig(name="Web Team")))
        doc = tomlkit.parse(settings_module.TEAM_CONFIG_PATH.read_text())
        assert doc["thresholds"]["staleDays"] == 7
        assert doc["thresholds"]["maxItemsPerPerson"] == 10

    def test_partial_file_gets_defaults(self) -> None:
        settings_module.TEAM_CONFIG_PATH.write_text(
            '[team]\nname = "Web Team"\n\n[[team.members]]\nname = "Alice"\nemail = "alice@example.com"\n'
        )
        config = load_team_config()
        assert config.team.members[0].email == "alice@example.com"
        assert config.thresholds == HealthThresholds()
        assert "Blocked" in config.states.blocked

    @pytest.mark.parametrize(
        "content",
        ["[team\nname = 'Web Team'\n", "team = 'Web Team'\n", "[thresholds]\nstaleDays = 'soon'\n"],
    )
    def test_invalid_file_exits(self, content: str, capsys: pytest.CaptureFixture[str]) -> None:
        settings_module.TEAM_CONFIG_PATH.write_text(content)
        with pytest.raises((SystemExit, typer.Exit)):
            load_team_config()
        assert "is invalid. Fix it" in " ".join(capsys.readouterr().out.split())
