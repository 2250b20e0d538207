"""Settings resolution (flag > env/.env > config.toml) and the team configuration store."""

import logging
from collections.abc import Mapping
from functools import lru_cache
from pathlib import Path

import tomlkit
import typer
from pydantic import SecretStr, ValidationError
from pydantic_settings import BaseSettings, SettingsConfigDict
from rich import print as rprint
from tomlkit.exceptions import ParseError

from adocli.models import HealthThresholds, StateCategories, TeamHealthConfig

logger = logging.getLogger(__name__)

CONFIG_DIR = Path.home() / ".config" / "ado-cli"
CONFIG_PATH = CONFIG_DIR / "config.toml"
TEAM_CONFIG_PATH = CONFIG_DIR / "team.toml"


class AdoSettings(BaseSettings):
    model_config = SettingsConfigDict(
        env_prefix="ADO_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    organization: str | None = None
    project: str | None = None
    token: SecretStr | None = None  # Personal Access Token

    @classmethod
    def settings_customise_sources(
        cls, settings_cls, init_settings, env_settings, dotenv_settings, file_secret_settings
    ):
        # config.toml values arrive as init kwargs; env vars and .env win over them
        return env_settings, dotenv_settings, init_settings, file_secret_settings

    @property
    def repository(self) -> str | None:
        if self.organization and self.project:
            return f"{self.organization}/{self.project}"
        return None


@lru_cache(maxsize=1)
def _load_toml() -> tomlkit.TOMLDocument:
    """Load ~/.config/ado-cli/config.toml, returning empty document if missing."""
    if not CONFIG_PATH.exists():
        return tomlkit.document()
    return tomlkit.parse(CONFIG_PATH.read_text())


def parse_repo(repo: str) -> tuple[str, str]:
    """Split "organization/project" into its parts."""
    organization, _, project = repo.partition("/")
    if not organization or not project or "/" in project:
        raise ValueError(f"Repository must be in format: organization/project (got '{repo}')")
    return organization, project


def get_settings(repo: str | None = None) -> AdoSettings:
    """Return fully populated settings.

    Precedence (highest to lowest):
    1. repo argument (-R/--repo CLI flag), for this invocation only
    2. ADO_* env vars and .env in cwd
    3. ~/.config/ado-cli/config.toml
    """
    file_defaults = {k: v for k, v in _load_toml().items() if not isinstance(v, Mapping)}

    # env vars + .env always override file defaults
    settings = AdoSettings(**file_defaults)

    if repo:
        try:
            organization, project = parse_repo(repo)
        except ValueError as exc:
            rprint(f"[red]{exc}[/red]")
            raise typer.Exit(1) from exc
        settings = settings.model_copy(update={"organization": organization, "project": project})

    logger.debug("Resolved repository %s", settings.repository or "(none)")
    return settings


def require_repo(settings: AdoSettings) -> None:
    if not settings.organization or not settings.project:
        rprint(
            "[red]Organization/project not configured. Use -R organization/project "
            "or run 'ado repo set-default organization/project'.[/red]"
        )
        raise typer.Exit(1)


def require_token(settings: AdoSettings) -> None:
    if not settings.token:
        rprint(f"[red]Not authenticated. Set ADO_TOKEN or run 'ado auth login' (stored in {CONFIG_PATH}).[/red]")
        raise typer.Exit(1)


def save_config(**values: str | None) -> None:
    """Write keys into config.toml, preserving comments. A None value removes the key."""
    doc = tomlkit.parse(CONFIG_PATH.read_text()) if CONFIG_PATH.exists() else tomlkit.document()
    for key, value in values.items():
        if value is None:
            doc.pop(key, None)
        else:
            doc[key] = value
    CONFIG_PATH.parent.mkdir(parents=True, exist_ok=True)
    CONFIG_PATH.write_text(tomlkit.dumps(doc))
    _load_toml.cache_clear()


def clear_token() -> None:
    if CONFIG_PATH.exists():
        save_config(token=None)


# ---------------------------------------------------------------------------
# Team configuration
# ---------------------------------------------------------------------------


def default_thresholds() -> HealthThresholds:
    return HealthThresholds()


def default_state_categories() -> StateCategories:
    return StateCategories()


def load_team_config() -> TeamHealthConfig | None:
    """Load ~/.config/ado-cli/team.toml, or None if the team was never initialised.

    An unreadable or invalid file is reported and exits 1.
    """
    if not TEAM_CONFIG_PATH.exists():
        return None
    try:
        doc = tomlkit.parse(TEAM_CONFIG_PATH.read_text())
        return TeamHealthConfig.model_validate(doc.unwrap())
    except (ParseError, ValidationError) as exc:
        logger.debug("Invalid team config: %s", exc)
        rprint(f"[red]Team config at {TEAM_CONFIG_PATH} is invalid. Fix it or run 'ado team init'.[/red]")
        raise typer.Exit(1) from exc


def save_team_config(config: TeamHealthConfig) -> None:
    TEAM_CONFIG_PATH.parent.mkdir(parents=True, exist_ok=True)
    data = config.model_dump(by_alias=True, exclude_none=True)
    TEAM_CONFIG_PATH.write_text(tomlkit.dumps(data))
